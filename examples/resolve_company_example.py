"""
Example: Resolving companies and caching API lookups

This example loads the corp-code snapshot written by
scripts/bootstrap_corp_codes.py, resolves a few inputs and attaches the
market label from a FinanceDataReader listing cached through the
memory + disk tiers. With OPENDART_API_KEY set, the company overview of
each match is fetched through the OpenDART rate limiter and cached too.
"""
import asyncio
import os
import sys

import requests

from kfin_lookup import (
    CACHE_TTL,
    CacheConfig,
    build_cache_key,
    cached_api_call,
    create_corp_code_resolver,
    create_default_caches,
    create_rate_limiter,
    rate_limited,
    to_resolved_company,
)
from kfin_lookup.providers import FdrListingProvider
from kfin_lookup.providers.opendart_provider import OPENDART_BASE_URL

cfg = CacheConfig.from_env()
resolver = create_corp_code_resolver(cfg.corp_codes_path)
if not resolver.is_loaded:
    print(f"No snapshot at {cfg.corp_codes_path}; run scripts/bootstrap_corp_codes.py first")
    sys.exit(1)

print(f"Loaded {resolver.count} companies\n")

caches = create_default_caches(cfg)
listing = FdrListingProvider()
api_key = os.getenv("OPENDART_API_KEY")
dart_limiter = create_rate_limiter("opendart", cache_config=cfg)


async def market_map() -> dict:
    key = build_cache_key("fdr", "StockListing", {"market": listing.market})
    res = await cached_api_call(
        key,
        CACHE_TTL["CORP_CODE"],
        lambda: asyncio.to_thread(listing.market_by_ticker),
        memory=caches.memory,
        persistent=caches.disk,
    )
    print(f"[cache] {key} from_cache={res.from_cache} layer={res.layer}")
    return res.data


def _get_company(registry_code: str) -> dict:
    res = requests.get(
        f"{OPENDART_BASE_URL}/api/company.json",
        params={"crtfc_key": api_key, "corp_code": registry_code},
        timeout=30,
    )
    res.raise_for_status()
    return res.json()


async def company_overview(registry_code: str) -> dict:
    key = build_cache_key("opendart", "company", {"corp_code": registry_code})
    res = await cached_api_call(
        key,
        CACHE_TTL["LONG"],
        rate_limited(dart_limiter, lambda: asyncio.to_thread(_get_company, registry_code)),
        memory=caches.memory,
        persistent=caches.disk,
    )
    return res.data


try:
    markets = asyncio.run(market_map())
except Exception as e:
    print(f"Note: listing fetch requires internet access ({e})")
    markets = {}

for query in sys.argv[1:] or ["삼성전자", "005930", "00126380", "삼성젼자", "(주)카카오"]:
    result = resolver.resolve(query)
    if result is None:
        print(f"{query!r}: no match")
        continue
    company = to_resolved_company(result, market_by_ticker=markets)
    print(f"{query!r}: {company.name} corp_code={company.registry_code} ticker={company.ticker} "
          f"market={company.market} ({result.match_kind}, confidence={result.confidence:.3f})")
    for alt in result.alternatives:
        print(f"    alt: {alt.name} ({alt.registry_code}) similarity={alt.similarity:.3f}")
    if api_key:
        overview = asyncio.run(company_overview(company.registry_code))
        print(f"    ceo={overview.get('ceo_nm')} est_dt={overview.get('est_dt')}")

if api_key:
    status = dart_limiter.get_status()
    print(f"\nOpenDART quota: {status.daily_used} used, {status.daily_remaining} remaining")

caches.close()
