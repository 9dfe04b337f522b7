from __future__ import annotations

import pandas as pd

from .records import CompanyRecord


_OPENDART_RENAME_MAP = {
    "corp_code": "registry_code",
    "corp_name": "name",
    "stock_code": "ticker",
    "modify_date": "last_modified",
}

CORP_COLUMNS = ["registry_code", "name", "ticker", "last_modified"]


def _blank_to_na(s: pd.Series) -> pd.Series:
    s = s.astype("string").str.strip()
    return s.mask(s == "", pd.NA)


def standardize_corp_frame(raw_df: pd.DataFrame) -> pd.DataFrame:
    """
    Standardize a corp-code listing into the canonical schema.

    Canonical columns:
      registry_code, name, ticker, last_modified

    Notes:
    - Accepts OpenDART field names (corp_code, corp_name, ...) or canonical names.
    - ticker is NA for unlisted companies.
    - Duplicate registry codes keep the last row.
    - Fails early on obviously invalid inputs; callers decide how to handle it.
    """
    if raw_df is None:
        raise ValueError("raw_df is None")
    if raw_df.empty:
        raise ValueError("raw_df is empty")

    df = raw_df.rename(columns=_OPENDART_RENAME_MAP)

    missing = [c for c in ["registry_code", "name"] if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required corp columns: {missing}")

    for c in ["ticker", "last_modified"]:
        if c not in df.columns:
            df[c] = pd.NA

    df = df[CORP_COLUMNS].copy()
    df["registry_code"] = _blank_to_na(df["registry_code"]).str.zfill(8)
    df["name"] = _blank_to_na(df["name"])
    df["ticker"] = _blank_to_na(df["ticker"]).str.zfill(6)
    df["last_modified"] = _blank_to_na(df["last_modified"]).fillna("")

    df = df.dropna(subset=["registry_code", "name"])
    df = df.drop_duplicates(subset=["registry_code"], keep="last").reset_index(drop=True)

    if df.empty:
        raise ValueError("No valid rows after standardization")

    return df


def frame_to_records(df: pd.DataFrame) -> list[CompanyRecord]:
    out: list[CompanyRecord] = []
    for row in df.itertuples(index=False):
        ticker = None if pd.isna(row.ticker) else str(row.ticker)
        out.append(
            CompanyRecord(
                registry_code=str(row.registry_code),
                name=str(row.name),
                ticker=ticker,
                last_modified=str(row.last_modified),
            )
        )
    return out


def records_to_frame(records: list[CompanyRecord]) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "registry_code": [r.registry_code for r in records],
            "name": [r.name for r in records],
            "ticker": pd.array([r.ticker for r in records], dtype="string"),
            "last_modified": [r.last_modified for r in records],
        },
        columns=CORP_COLUMNS,
    )
