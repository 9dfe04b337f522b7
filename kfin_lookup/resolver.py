"""
Corp code resolver: maps user input (ticker, registry code or company name)
to an OpenDART registry code.

Resolution order:
1. Exact ticker (6 digits)          -> confidence 1.0
2. Exact registry code (8 digits)   -> confidence 1.0
3. Exact normalized name            -> confidence 1.0
4. Fuzzy name (jamo edit distance)  -> confidence = similarity
"""
from __future__ import annotations

import logging
import os
import re
import threading
from dataclasses import dataclass
from typing import Iterable

from .io_utils import write_json, write_parquet
from .jamo import decompose_string
from .provider import CompanySource
from .providers.provider_utils import load_corp_snapshot
from .records import (
    MATCH_EXACT_NAME,
    MATCH_EXACT_REGISTRY,
    MATCH_EXACT_TICKER,
    MATCH_FUZZY_NAME,
    Alternative,
    CompanyRecord,
    ResolutionResult,
)
from .similarity import similarity_from_jamo
from .standardize import frame_to_records, records_to_frame

logger = logging.getLogger(__name__)

MIN_FUZZY_INPUT_LENGTH = 2
MIN_SIMILARITY_THRESHOLD = 0.5
MAX_ALTERNATIVES = 5

_TICKER_RE = re.compile(r"^\d{6}$")
_REGISTRY_RE = re.compile(r"^\d{8}$")
_WS_RUN_RE = re.compile(r"\s+")
_CORP_MARKERS = ("(주)", "㈜")


def normalize_name(name: str) -> str:
    """Trim, collapse whitespace and strip the (주)/㈜ corporate markers."""
    s = _WS_RUN_RE.sub(" ", name.strip())
    for marker in _CORP_MARKERS:
        s = s.replace(marker, "")
    return s.strip()


@dataclass(frozen=True)
class _IndexState:
    records: tuple[CompanyRecord, ...]
    normalized: tuple[str, ...]
    jamo: tuple[tuple[str, ...], ...]
    by_ticker: dict[str, CompanyRecord]
    by_registry: dict[str, CompanyRecord]
    by_name: dict[str, tuple[CompanyRecord, ...]]


def _build_state(records: Iterable[CompanyRecord]) -> _IndexState:
    rows = tuple(records)
    normalized = tuple(normalize_name(r.name) for r in rows)
    by_ticker: dict[str, CompanyRecord] = {}
    by_registry: dict[str, CompanyRecord] = {}
    by_name: dict[str, list[CompanyRecord]] = {}
    for rec, norm in zip(rows, normalized):
        if rec.ticker is not None:
            by_ticker[rec.ticker] = rec
        by_registry[rec.registry_code] = rec
        by_name.setdefault(norm, []).append(rec)
    return _IndexState(
        records=rows,
        normalized=normalized,
        jamo=tuple(decompose_string(n) for n in normalized),
        by_ticker=by_ticker,
        by_registry=by_registry,
        by_name={k: tuple(v) for k, v in by_name.items()},
    )


def _listed_rank(rec: CompanyRecord) -> int:
    return 0 if rec.is_listed else 1


class CorpCodeResolver:
    """
    In-memory multi-key index over the corp-code list.

    All three lookup maps are rebuilt together on every load and swapped in
    as one immutable state object, so readers never observe a half-built index.
    """

    def __init__(
        self,
        *,
        min_similarity: float = MIN_SIMILARITY_THRESHOLD,
        min_fuzzy_length: int = MIN_FUZZY_INPUT_LENGTH,
        max_alternatives: int = MAX_ALTERNATIVES,
    ):
        self._min_similarity = float(min_similarity)
        self._min_fuzzy_length = int(min_fuzzy_length)
        self._max_alternatives = int(max_alternatives)
        self._lock = threading.Lock()
        self._state = _build_state(())

    # ---- loading -----------------------------------------------------

    def load(self, records: Iterable[CompanyRecord]) -> None:
        """Replace all data and rebuild every index."""
        state = _build_state(records)
        with self._lock:
            self._state = state
        logger.info("Corp code index loaded: %d companies (%d listed)", len(state.records), len(state.by_ticker))

    def load_from_provider(self, provider: CompanySource) -> None:
        self.load(provider.load_companies())

    def load_from_cache(self, path: str) -> bool:
        """
        Load a snapshot written by save_to_cache.

        Returns False (leaving the current index untouched) when the file is
        missing or not in the expected shape.
        """
        try:
            df = load_corp_snapshot(path)
        except FileNotFoundError:
            return False
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable corp code snapshot %s: %s", path, e)
            return False
        self.load(frame_to_records(df))
        return True

    def save_to_cache(self, path: str) -> None:
        records = list(self._state.records)
        if path.endswith(".parquet"):
            write_parquet(records_to_frame(records), path)
        else:
            write_json([r.to_mapping() for r in records], path, indent=None)

    # ---- lookups -----------------------------------------------------

    def resolve(self, text: str) -> ResolutionResult | None:
        """
        Resolve free-form input to a company.

        Returns None when nothing acceptable matches.
        """
        state = self._state
        query = normalize_name(text)
        if not query:
            return None

        # Numeric identifiers never fall through to name matching.
        if _TICKER_RE.match(query):
            rec = state.by_ticker.get(query)
            return None if rec is None else _exact(rec, MATCH_EXACT_TICKER)
        if _REGISTRY_RE.match(query):
            rec = state.by_registry.get(query)
            return None if rec is None else _exact(rec, MATCH_EXACT_REGISTRY)

        exact = state.by_name.get(query)
        if exact:
            ranked = sorted(exact, key=_listed_rank)
            best = ranked[0]
            alternatives = tuple(
                Alternative(r.registry_code, r.name, r.ticker, 1.0)
                for r in ranked[1 : self._max_alternatives + 1]
            )
            return _exact(best, MATCH_EXACT_NAME, alternatives)

        if len(query) < self._min_fuzzy_length:
            return None
        return self._fuzzy(state, query)

    def _fuzzy(self, state: _IndexState, query: str) -> ResolutionResult | None:
        query_jamo = decompose_string(query)
        scored: list[tuple[float, int, CompanyRecord]] = []
        for rec, name_jamo in zip(state.records, state.jamo):
            sim = similarity_from_jamo(query_jamo, name_jamo)
            if sim > self._min_similarity:
                scored.append((sim, _listed_rank(rec), rec))
        if not scored:
            return None

        # stable sort keeps index order for full ties
        scored.sort(key=lambda t: (-t[0], t[1]))
        best_sim, _, best = scored[0]
        alternatives = tuple(
            Alternative(r.registry_code, r.name, r.ticker, sim)
            for sim, _, r in scored[1 : self._max_alternatives + 1]
        )
        return ResolutionResult(
            registry_code=best.registry_code,
            name=best.name,
            ticker=best.ticker,
            confidence=best_sim,
            match_kind=MATCH_FUZZY_NAME,
            alternatives=alternatives,
        )

    def search_by_prefix(self, prefix: str, limit: int = 10) -> list[CompanyRecord]:
        """Companies whose normalized name starts with `prefix`, in index order."""
        wanted = normalize_name(prefix)
        if not wanted or limit <= 0:
            return []
        state = self._state
        out: list[CompanyRecord] = []
        for rec, norm in zip(state.records, state.normalized):
            if norm.startswith(wanted):
                out.append(rec)
                if len(out) >= limit:
                    break
        return out

    def get_by_registry_code(self, registry_code: str) -> CompanyRecord | None:
        return self._state.by_registry.get(registry_code)

    def get_by_ticker(self, ticker: str) -> CompanyRecord | None:
        return self._state.by_ticker.get(ticker)

    @property
    def count(self) -> int:
        return len(self._state.records)

    @property
    def listed_count(self) -> int:
        return len(self._state.by_ticker)

    @property
    def is_loaded(self) -> bool:
        return self.count > 0


def _exact(
    rec: CompanyRecord,
    kind: str,
    alternatives: tuple[Alternative, ...] = (),
) -> ResolutionResult:
    return ResolutionResult(
        registry_code=rec.registry_code,
        name=rec.name,
        ticker=rec.ticker,
        confidence=1.0,
        match_kind=kind,
        alternatives=alternatives,
    )


def create_corp_code_resolver(snapshot_path: str | None = None) -> CorpCodeResolver:
    """New resolver, optionally pre-loaded from a snapshot when one exists."""
    resolver = CorpCodeResolver()
    if snapshot_path and os.path.exists(snapshot_path):
        resolver.load_from_cache(snapshot_path)
    return resolver
