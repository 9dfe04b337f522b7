"""
Common utility functions for company sources.
"""
from __future__ import annotations

import json
from dataclasses import dataclass

import pandas as pd

from ..records import CompanyRecord
from ..standardize import frame_to_records, standardize_corp_frame


def load_corp_snapshot(path: str) -> pd.DataFrame:
    """
    Load a corp-code snapshot (JSON list or parquet) from disk.

    Args:
        path: Snapshot file; `.parquet` is read with pyarrow, anything else as JSON

    Returns:
        DataFrame with the canonical corp columns

    Raises:
        ValueError: If the file is not a list of company entries or has no valid rows
        OSError: If the file cannot be read
    """
    if path.endswith(".parquet"):
        df = pd.read_parquet(path)
    else:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"corp snapshot is not a list: {path}")
        df = pd.DataFrame(data)
    if df.empty:
        raise ValueError(f"corp snapshot is empty: {path}")
    return standardize_corp_frame(df)


@dataclass(frozen=True)
class SnapshotProvider:
    """CompanySource backed by a local snapshot file."""

    path: str
    name: str = "snapshot"

    def load_companies(self) -> list[CompanyRecord]:
        return frame_to_records(load_corp_snapshot(self.path))
