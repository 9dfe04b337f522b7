"""
Company records and resolution results.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping

MATCH_EXACT_TICKER = "exact_ticker"
MATCH_EXACT_REGISTRY = "exact_registry"
MATCH_EXACT_NAME = "exact_name"
MATCH_FUZZY_NAME = "fuzzy_name"

MatchKind = Literal["exact_ticker", "exact_registry", "exact_name", "fuzzy_name"]

EXACT_MATCH_KINDS = frozenset({MATCH_EXACT_TICKER, MATCH_EXACT_REGISTRY, MATCH_EXACT_NAME})

MARKET_UNLISTED = "UNLISTED"
MARKETS = ("KOSPI", "KOSDAQ", "KONEX", MARKET_UNLISTED)


def _ticker_or_none(value: Any) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


@dataclass(frozen=True)
class CompanyRecord:
    """
    One entry of the OpenDART corp-code list.

    registry_code: 8-digit OpenDART corp code (unique)
    ticker: 6-digit KRX code, None for unlisted companies
    """

    registry_code: str
    name: str
    ticker: str | None = None
    last_modified: str = ""

    def __post_init__(self):
        # empty-string tickers from upstream mean "unlisted"
        object.__setattr__(self, "ticker", _ticker_or_none(self.ticker))

    @property
    def is_listed(self) -> bool:
        return self.ticker is not None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "CompanyRecord":
        """Build from either OpenDART field names or our own snake_case names."""
        code = data.get("corp_code", data.get("registry_code"))
        name = data.get("corp_name", data.get("name"))
        if code is None or name is None:
            raise ValueError(f"company entry missing code or name: {dict(data)}")
        ticker = data.get("stock_code", data.get("ticker"))
        modified = data.get("modify_date", data.get("last_modified")) or ""
        return cls(
            registry_code=str(code).strip(),
            name=str(name).strip(),
            ticker=_ticker_or_none(ticker),
            last_modified=str(modified).strip(),
        )

    def to_mapping(self) -> dict[str, str]:
        """OpenDART-shaped dict (the on-disk snapshot format)."""
        return {
            "corp_code": self.registry_code,
            "corp_name": self.name,
            "stock_code": self.ticker or "",
            "modify_date": self.last_modified,
        }


@dataclass(frozen=True)
class Alternative:
    registry_code: str
    name: str
    ticker: str | None
    similarity: float


@dataclass(frozen=True)
class ResolutionResult:
    registry_code: str
    name: str
    ticker: str | None
    confidence: float
    match_kind: MatchKind
    alternatives: tuple[Alternative, ...] = field(default_factory=tuple)

    @property
    def is_exact(self) -> bool:
        return self.match_kind in EXACT_MATCH_KINDS


@dataclass(frozen=True)
class ResolvedCompany:
    """A company resolved to its canonical identifiers, as consumed by API tools."""

    registry_code: str
    ticker: str | None
    name: str
    market: str = MARKET_UNLISTED
    fiscal_year_end: int = 12
    name_en: str | None = None


def to_resolved_company(
    result: ResolutionResult,
    *,
    market_by_ticker: Mapping[str, str] | None = None,
    fiscal_year_end: int = 12,
) -> ResolvedCompany:
    if not 1 <= int(fiscal_year_end) <= 12:
        raise ValueError(f"fiscal_year_end must be 1..12: {fiscal_year_end}")
    if result.ticker is None:
        market = MARKET_UNLISTED
    else:
        market = (market_by_ticker or {}).get(result.ticker, MARKET_UNLISTED)
        if market not in MARKETS:
            market = MARKET_UNLISTED
    return ResolvedCompany(
        registry_code=result.registry_code,
        ticker=result.ticker,
        name=result.name,
        market=market,
        fiscal_year_end=int(fiscal_year_end),
    )
