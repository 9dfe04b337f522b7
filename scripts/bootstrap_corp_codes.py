"""
Download the OpenDART corp-code list and save it as a local snapshot.

Usage:
  python scripts/bootstrap_corp_codes.py
  python scripts/bootstrap_corp_codes.py --output data/corp-codes.parquet

Requires OPENDART_API_KEY (environment or .env).

Exit codes:
  0 - Snapshot written
  1 - Missing key or download failed
"""
import argparse
import datetime as dt
import os
import sys
from pathlib import Path
from time import perf_counter

from dotenv import load_dotenv

# Add the parent directory to the path to import from kfin_lookup
sys.path.insert(0, str(Path(__file__).parent.parent))

from kfin_lookup.cache_config import CacheConfig
from kfin_lookup.io_utils import write_json
from kfin_lookup.meta import build_snapshot_meta
from kfin_lookup.providers import OpenDartCorpCodeProvider, OpenDartError
from kfin_lookup.resolver import CorpCodeResolver

SANITY_CHECK_NAME = "삼성전자"


def main() -> int:
    load_dotenv()
    cfg = CacheConfig.from_env()

    p = argparse.ArgumentParser(description="Download OpenDART corp codes and cache them locally")
    p.add_argument("--output", type=str, default=cfg.corp_codes_path, help="Snapshot path (.json or .parquet)")
    p.add_argument("--meta-output", type=str, default="", help="Meta JSON path (default: <output>.meta.json)")
    p.add_argument("--no-progress", dest="show_progress", action="store_false", help="Hide download progress bar")
    args = p.parse_args()

    api_key = os.getenv("OPENDART_API_KEY")
    if not api_key:
        print("OPENDART_API_KEY not found in environment or .env", file=sys.stderr)
        return 1

    print("Downloading corp codes from OpenDART...")
    t0 = perf_counter()
    started_at = dt.datetime.now(dt.timezone.utc)
    provider = OpenDartCorpCodeProvider(api_key=api_key, show_progress=args.show_progress)
    resolver = CorpCodeResolver()
    try:
        resolver.load_from_provider(provider)
    except OpenDartError as e:
        print(f"Download failed: {e}", file=sys.stderr)
        return 1

    print(f"Loaded {resolver.count} companies")
    resolver.save_to_cache(args.output)
    print(f"Saved to {args.output}")

    listed = resolver.listed_count
    meta_output = args.meta_output or f"{args.output}.meta.json"
    write_json(
        build_snapshot_meta(
            source=provider.name,
            path=args.output,
            record_count=resolver.count,
            listed_count=listed,
            generated_at_utc=started_at,
            elapsed_seconds=perf_counter() - t0,
        ),
        meta_output,
    )
    print(f"Meta written to {meta_output}")

    result = resolver.resolve(SANITY_CHECK_NAME)
    if result is None:
        print(f"WARNING: Could not resolve {SANITY_CHECK_NAME}", file=sys.stderr)
    else:
        print(f"Sanity check: {SANITY_CHECK_NAME} -> corp_code={result.registry_code}, stock_code={result.ticker}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
