"""
FinanceDataReader (FDR) listing provider.

Supplies market labels (KOSPI / KOSDAQ / KONEX) for listed tickers:
https://github.com/FinanceData/FinanceDataReader
"""
from __future__ import annotations

from dataclasses import dataclass

import pandas as pd
import FinanceDataReader as fdr


_MARKET_ALIASES = {
    "KOSPI": "KOSPI",
    "KOSDAQ": "KOSDAQ",
    "KOSDAQ GLOBAL": "KOSDAQ",
    "KONEX": "KONEX",
}


def normalize_listing(df: pd.DataFrame) -> pd.DataFrame:
    """
    Reduce an FDR StockListing frame to Code/Name/Market.

    Rows with markets outside KOSPI/KOSDAQ/KONEX are dropped.
    """
    if df is None or df.empty:
        return pd.DataFrame(columns=["Code", "Name", "Market"])

    code_col = "Code" if "Code" in df.columns else "Symbol"
    missing = [c for c in [code_col, "Name", "Market"] if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required listing columns: {missing}")

    out = pd.DataFrame(
        {
            "Code": df[code_col].astype(str).str.strip().str.zfill(6),
            "Name": df["Name"].astype(str).str.strip(),
            "Market": df["Market"].astype(str).str.strip().str.upper().map(_MARKET_ALIASES),
        }
    )
    out = out.dropna(subset=["Code", "Market"]).drop_duplicates(subset=["Code"], keep="first")
    return out.sort_values(["Market", "Code"]).reset_index(drop=True)


@dataclass(frozen=True)
class FdrListingProvider:
    """
    Listing lookups using FinanceDataReader.

    `market` is passed to fdr.StockListing ("KRX" covers KOSPI, KOSDAQ and KONEX).
    """

    market: str = "KRX"
    name: str = "fdr"

    def load_listing(self) -> pd.DataFrame:
        try:
            raw = fdr.StockListing(self.market)
        except Exception as e:
            raise RuntimeError(f"Failed to fetch stock listing from FDR (market: {self.market}): {e}") from e
        return normalize_listing(raw)

    def market_by_ticker(self) -> dict[str, str]:
        listing = self.load_listing()
        return dict(zip(listing["Code"].tolist(), listing["Market"].tolist()))
