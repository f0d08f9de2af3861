"""Process-local ledger repository (tests, single-node dev)."""
from __future__ import annotations

import threading
from typing import Iterable

from adrewards.models.entities import Ad, ViewRecord
from adrewards.repositories.base import LedgerRepository


class InMemoryLedgerRepository(LedgerRepository):
    def __init__(self, ads: Iterable[Ad] = (), records: Iterable[ViewRecord] = ()):
        self._lock = threading.RLock()
        self._ads: dict[str, Ad] = {ad.id: ad for ad in ads}
        self._records: list[ViewRecord] = []
        self._record_index: dict[str, ViewRecord] = {}
        for record in records:
            self.append_view_record(record)

    def list_ads(self) -> list[Ad]:
        with self._lock:
            return list(self._ads.values())

    def upsert_ads(self, ads: Iterable[Ad]) -> None:
        with self._lock:
            for ad in ads:
                self._ads[ad.id] = ad

    def delete_ad(self, ad_id: str) -> bool:
        with self._lock:
            return self._ads.pop(ad_id, None) is not None

    def list_view_records(self) -> list[ViewRecord]:
        with self._lock:
            return list(self._records)

    def append_view_record(self, record: ViewRecord) -> ViewRecord:
        with self._lock:
            existing = self._record_index.get(record.id)
            if existing is not None:
                return existing
            self._records.append(record)
            self._record_index[record.id] = record
            return record


__all__ = ["InMemoryLedgerRepository"]
