from __future__ import annotations

from typing import Protocol

from .records import CompanyRecord


class CompanySource(Protocol):
    """
    Bulk company data source contract.

    A source supplies the full corp-code list in one call:
    - remote download (OpenDART corpCode.xml)
    - local snapshot file written by a previous download
    - fixtures in tests

    The resolver only needs the already-parsed list.
    """

    name: str

    def load_companies(self) -> list[CompanyRecord]:
        """
        Returns every known company.

        registry_code must be unique across the list; ticker is None for
        unlisted companies.
        """
