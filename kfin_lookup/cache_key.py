from __future__ import annotations

from typing import Mapping

KEY_SEPARATOR = ":"
PARAM_JOINER = "_"


def build_cache_key(provider: str, operation: str, params: Mapping[str, object] | None = None) -> str:
    """
    Deterministic request fingerprint: "{provider}:{operation}:{v1_v2_..._vn}".

    Values are ordered by sorted parameter name, so live tool calls and
    backfill scripts that assemble params differently still share entries.
    Values are joined as-is; callers must keep "_" out of values when exact
    disambiguation matters.

    Persisted rows depend on this format; changing it orphans existing
    disk cache entries.

    >>> build_cache_key("opendart", "fnlttSinglAcnt", {"corp_code": "00126380", "bsns_year": "2024"})
    'opendart:fnlttSinglAcnt:2024_00126380'
    """
    params = params or {}
    values = PARAM_JOINER.join(str(params[k]) for k in sorted(params))
    return f"{provider}{KEY_SEPARATOR}{operation}{KEY_SEPARATOR}{values}"


def key_prefix(provider: str, operation: str | None = None) -> str:
    """Prefix matching every key of a provider (or of one provider operation)."""
    if operation is None:
        return f"{provider}{KEY_SEPARATOR}"
    return f"{provider}{KEY_SEPARATOR}{operation}{KEY_SEPARATOR}"
