"""Storage-agnostic ledger repository interface.

Implementations may sit on a document database, a key-value store or a flat
file: the engine only ever reads everything and filters in Python, so no
native querying is assumed. Transient storage failures must surface as
``adrewards.errors.RepositoryUnavailable``.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable

from adrewards.models.entities import Ad, ViewRecord


class LedgerRepository(ABC):
    @abstractmethod
    def list_ads(self) -> list[Ad]:
        """Return every persisted ad (any kind, any status)."""

    @abstractmethod
    def upsert_ads(self, ads: Iterable[Ad]) -> None:
        """Insert or replace ads keyed by id."""

    @abstractmethod
    def delete_ad(self, ad_id: str) -> bool:
        """Remove an ad. Returns False when it did not exist."""

    @abstractmethod
    def list_view_records(self) -> list[ViewRecord]:
        """Return the whole ledger in insertion order."""

    @abstractmethod
    def append_view_record(self, record: ViewRecord) -> ViewRecord:
        """Append a record.

        Must be idempotent on ``record.id``: appending an id that already exists
        returns the stored record and writes nothing.
        """


__all__ = ["LedgerRepository"]
