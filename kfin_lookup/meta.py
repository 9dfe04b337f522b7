from __future__ import annotations

import datetime as dt
import platform
import sys
from importlib.metadata import PackageNotFoundError, version as pkg_version


def _safe_pkg_version(dist_name: str) -> str | None:
    try:
        return pkg_version(dist_name)
    except PackageNotFoundError:
        return None


def build_env_meta() -> dict:
    return {
        "python": sys.version.split()[0],
        "platform": platform.platform(),
        "pandas": _safe_pkg_version("pandas"),
        "pyarrow": _safe_pkg_version("pyarrow"),
        "requests": _safe_pkg_version("requests"),
        "finance-datareader": _safe_pkg_version("finance-datareader"),
        "kfin-lookup": _safe_pkg_version("kfin-lookup"),
    }


def build_snapshot_meta(
    *,
    source: str,
    path: str,
    record_count: int,
    listed_count: int,
    generated_at_utc: dt.datetime,
    elapsed_seconds: float | None = None,
) -> dict:
    """Sidecar metadata written next to a corp-code snapshot."""
    return {
        "generated_at_utc": generated_at_utc.isoformat(),
        "source": source,
        "data_file": {
            "path": path,
            "format": "parquet" if path.endswith(".parquet") else "json",
        },
        "companies": {
            "total": int(record_count),
            "listed": int(listed_count),
            "unlisted": int(record_count) - int(listed_count),
        },
        "timing_seconds": None if elapsed_seconds is None else round(elapsed_seconds, 4),
        "env": build_env_meta(),
    }
