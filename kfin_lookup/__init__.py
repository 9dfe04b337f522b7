"""
kfin_lookup

Company resolution + API response caching for Korean financial data tools.

Design goals:
- Resolve free-form input (name, ticker, corp code) to one canonical company
- Never pay for the same rate-limited API call twice (memory + disk tiers)
- Fail-fast (upstream errors propagate; only cache misses fall through)
- Minimal exception catching (catch only at CLI boundary)
"""

from .cache_config import CACHE_TTL, CacheBundle, CacheConfig, create_default_caches
from .cache_key import build_cache_key
from .disk_cache import CacheInitializationError, CacheStats, DiskCache
from .jamo import decompose_hangul, decompose_string
from .memory_cache import MemoryCache
from .orchestrator import CachedResult, SingleFlight, cached_api_call, rate_limited
from .rate_limiter import RateLimitExceeded, RateLimiter, create_eval_budget_limiter, create_rate_limiter
from .records import Alternative, CompanyRecord, ResolutionResult, ResolvedCompany, to_resolved_company
from .resolver import CorpCodeResolver, create_corp_code_resolver
from .similarity import jamo_levenshtein, jamo_similarity

__all__ = [
    "CACHE_TTL",
    "Alternative",
    "CacheBundle",
    "CacheConfig",
    "CacheInitializationError",
    "CacheStats",
    "CachedResult",
    "CompanyRecord",
    "CorpCodeResolver",
    "DiskCache",
    "MemoryCache",
    "RateLimitExceeded",
    "RateLimiter",
    "ResolutionResult",
    "ResolvedCompany",
    "SingleFlight",
    "build_cache_key",
    "cached_api_call",
    "create_corp_code_resolver",
    "create_default_caches",
    "create_eval_budget_limiter",
    "create_rate_limiter",
    "decompose_hangul",
    "decompose_string",
    "jamo_levenshtein",
    "jamo_similarity",
    "rate_limited",
    "to_resolved_company",
]
