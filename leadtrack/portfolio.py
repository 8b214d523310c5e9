"""
leadtrack.portfolio
===================

An ordered in‑memory registry of :class:`leadtrack.models.Company` records
keyed by their backend id.

This is the one place the client keeps companies (and, through them, their
comment threads).  It has no I/O of its own and is unit-tested without a
backend.
"""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Optional

from .models import Company, Status


def name_key(name: str) -> str:
    """Case‑insensitive, trimmed key used for duplicate detection."""
    return " ".join(name.split()).casefold()


class CompanyBook:
    """
    Dictionary‑backed registry of companies, preserving insertion order.

    Example
    -------
    >>> book = CompanyBook()
    >>> book.add(Company(id=1, name="Acme", assigned_to=3, assigned_by=3))
    >>> book.find_duplicate("acme ", owner=3).id
    1
    >>> book.find_duplicate("Acme", owner=5) is None
    True
    """

    def __init__(self, companies: Iterable[Company] = ()) -> None:
        self._companies: Dict[int, Company] = {c.id: c for c in companies}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def add(self, company: Company) -> None:
        """Insert a company, or replace the one with the same id in place."""
        self._companies[company.id] = company

    def get(self, company_id: int) -> Company:
        """Retrieve by id (raise KeyError if not present)."""
        return self._companies[company_id]

    def remove(self, company_id: int) -> Company:
        """Drop a company and return it (raise KeyError if not present)."""
        return self._companies.pop(company_id)

    def find_by_status(self, status: Status) -> List[Company]:
        """Return all companies currently at the given Status."""
        return [c for c in self._companies.values() if c.status == status]

    def find_by_owner(self, owner: int) -> List[Company]:
        return [c for c in self._companies.values() if c.assigned_to == owner]

    def find_duplicate(self, name: str, owner: int, exclude: Optional[int] = None) -> Optional[Company]:
        """
        Return another company of *owner* whose name matches *name*
        (case‑insensitive, trimmed), skipping the company with id *exclude*.
        """
        key = name_key(name)
        for company in self._companies.values():
            if company.id == exclude or company.assigned_to != owner:
                continue
            if name_key(company.name) == key:
                return company
        return None

    def copy(self) -> "CompanyBook":
        return CompanyBook(self._companies.values())

    # ------------------------------------------------------------------
    # Dunder helpers for convenience
    # ------------------------------------------------------------------
    def __iter__(self) -> Iterator[Company]:
        return iter(list(self._companies.values()))

    def __len__(self) -> int:
        return len(self._companies)

    def __contains__(self, company_id: object) -> bool:
        return company_id in self._companies
