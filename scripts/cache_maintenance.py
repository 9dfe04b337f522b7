"""
Persistent cache maintenance.

Usage:
  python scripts/cache_maintenance.py stats
  python scripts/cache_maintenance.py prune
  python scripts/cache_maintenance.py invalidate --prefix opendart:fnlttSinglAcnt:

Uses $KFIN_HOME/cache.sqlite unless --db is given.
"""
import argparse
import json
import sys
from dataclasses import asdict
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from kfin_lookup.cache_config import CacheConfig
from kfin_lookup.disk_cache import CacheInitializationError, DiskCache


def main() -> int:
    cfg = CacheConfig.from_env()

    p = argparse.ArgumentParser(description="Inspect and clean the persistent API response cache")
    p.add_argument("--db", type=str, default=cfg.db_path, help="Path to cache.sqlite")
    sub = p.add_subparsers(dest="command", required=True)
    sub.add_parser("stats", help="Print entry count, payload bytes and total hits")
    sub.add_parser("prune", help="Delete expired rows")
    inv = sub.add_parser("invalidate", help="Delete rows whose key starts with a prefix")
    inv.add_argument("--prefix", type=str, required=True)
    args = p.parse_args()

    try:
        cache = DiskCache(args.db)
    except CacheInitializationError as e:
        print(f"Cannot open cache: {e}", file=sys.stderr)
        return 1

    with cache:
        if args.command == "stats":
            out = {"db": args.db, **asdict(cache.get_stats())}
        elif args.command == "prune":
            out = {"db": args.db, "pruned": cache.prune()}
        else:
            out = {"db": args.db, "prefix": args.prefix, "invalidated": cache.invalidate_by_prefix(args.prefix)}

    print(json.dumps(out, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
