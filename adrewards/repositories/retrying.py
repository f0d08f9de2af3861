"""Repository decorator applying backoff retries to transient failures.

Reads and ledger appends are retried (appends are idempotent on record id, so
a retry after an ambiguous failure cannot double-write). Catalog writes are
attempted once and surface ``RepositoryUnavailable`` to the caller.
"""
from __future__ import annotations

import time
from typing import Callable, Iterable, TypeVar

from adrewards.config import REPOSITORY_RETRY
from adrewards.errors import RepositoryUnavailable
from adrewards.models.entities import Ad, ViewRecord
from adrewards.repositories.base import LedgerRepository
from adrewards.utils import get_logger
from adrewards.utils.backoff import call_with_retry

logger = get_logger(__name__)

T = TypeVar("T")


class RetryingLedgerRepository(LedgerRepository):
    def __init__(
        self,
        inner: LedgerRepository,
        *,
        read_attempts: int | None = None,
        write_attempts: int | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.inner = inner
        self.read_attempts = int(read_attempts or REPOSITORY_RETRY["read_attempts"])
        self.write_attempts = int(write_attempts or REPOSITORY_RETRY["write_attempts"])
        self._sleep = sleep

    def _retry(self, operation: str, fn: Callable[[], T], attempts: int) -> T:
        def _log_retry(attempt: int, exc: BaseException, delay: float) -> None:
            logger.warning(
                "Repository call retry scheduled",
                operation=operation,
                attempt=attempt,
                backoff_seconds=round(delay, 3),
                error=str(exc),
            )

        return call_with_retry(
            fn,
            retry_on=(RepositoryUnavailable,),
            max_attempts=attempts,
            sleep=self._sleep,
            on_retry=_log_retry,
        )

    def list_ads(self) -> list[Ad]:
        return self._retry("list_ads", self.inner.list_ads, self.read_attempts)

    def upsert_ads(self, ads: Iterable[Ad]) -> None:
        self.inner.upsert_ads(list(ads))

    def delete_ad(self, ad_id: str) -> bool:
        return self.inner.delete_ad(ad_id)

    def list_view_records(self) -> list[ViewRecord]:
        return self._retry("list_view_records", self.inner.list_view_records, self.read_attempts)

    def append_view_record(self, record: ViewRecord) -> ViewRecord:
        return self._retry("append_view_record", lambda: self.inner.append_view_record(record), self.write_attempts)


__all__ = ["RetryingLedgerRepository"]
