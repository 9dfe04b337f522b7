from __future__ import annotations

import json
import os
from typing import Any

import pandas as pd


def ensure_parent_dir(path: str) -> None:
    out_dir = os.path.dirname(path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)


def write_parquet(df: pd.DataFrame, path: str) -> None:
    ensure_parent_dir(path)
    df.to_parquet(path, compression="zstd", index=False)


def write_json(data: Any, path: str, *, indent: int | None = 2) -> None:
    ensure_parent_dir(path)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=indent, sort_keys=isinstance(data, dict))
