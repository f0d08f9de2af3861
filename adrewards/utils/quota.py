"""In-memory daily quota reservations.

Makes the daily-cap check atomic with respect to concurrent starts for the same
user (reserve-before-commit): a watch session holds a reservation from start
until its ledger record is written, it expires, or it fails. The cap check
counts ledger records *plus* in-flight reservations under a per-user lock, so
two concurrent starts can no longer both pass a "count < limit" check.

Usage pattern:
    with daily_quota.hold(user_id):
        used = ledger_count + daily_quota.pending(user_id, day)
        if used >= limit:
            raise DailyLimitExceeded()
        daily_quota.reserve(user_id, day, token=session_id)
    ...
    daily_quota.release(user_id, session_id)

The store is { user_id: UserBucket(lock, { token: day }) }.
Thread-safety: a global lock only guards bucket creation and removal; all
per-user work happens under that user's RLock for minimal contention. A bucket
with no reservations and no active hold is dropped, so the map only tracks
users with work in flight. Whoever locks a bucket re-checks it is still the
registered one and retries otherwise.

Design notes:
 - Single-process only. A horizontally scaled deployment would move the
   counter into the database (transactional increment) or Redis, keeping the
   same interface.
 - Reservations are keyed by session id so ``release`` is idempotent.
"""
from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterator


@dataclass
class UserBucket:
    lock: threading.RLock = field(default_factory=threading.RLock)
    reservations: Dict[str, date] = field(default_factory=dict)
    # Nesting depth of active holds; a held bucket is never dropped.
    depth: int = 0


class DailyQuota:
    def __init__(self):
        self._buckets: Dict[str, UserBucket] = {}
        self._global_lock = threading.Lock()

    def __len__(self) -> int:
        """Number of users currently tracked (held or with open reservations)."""
        with self._global_lock:
            return len(self._buckets)

    def _bucket(self, user_id: str) -> UserBucket:
        bucket = self._buckets.get(user_id)
        if bucket is None:
            with self._global_lock:
                # Re-check inside lock
                bucket = self._buckets.setdefault(user_id, UserBucket())
        return bucket

    @contextmanager
    def _locked(self, user_id: str) -> Iterator[UserBucket]:
        while True:
            bucket = self._bucket(user_id)
            with bucket.lock:
                if self._buckets.get(user_id) is not bucket:
                    # Dropped as idle while we waited for its lock.
                    continue
                bucket.depth += 1
                try:
                    yield bucket
                finally:
                    bucket.depth -= 1
                    self._discard_if_idle(user_id, bucket)
                return

    def _discard_if_idle(self, user_id: str, bucket: UserBucket) -> None:
        # Caller holds bucket.lock; lock order is always bucket then global.
        if bucket.depth or bucket.reservations:
            return
        with self._global_lock:
            if self._buckets.get(user_id) is bucket:
                del self._buckets[user_id]

    @contextmanager
    def hold(self, user_id: str) -> Iterator[None]:
        """Serialize check-then-act sequences for one user."""
        with self._locked(user_id):
            yield

    def pending(self, user_id: str, day: date) -> int:
        with self._locked(user_id) as bucket:
            return sum(1 for d in bucket.reservations.values() if d == day)

    def reserve(self, user_id: str, day: date, *, token: str) -> None:
        with self._locked(user_id) as bucket:
            bucket.reservations[token] = day

    def release(self, user_id: str, token: str) -> bool:
        if user_id not in self._buckets:
            return False
        with self._locked(user_id) as bucket:
            return bucket.reservations.pop(token, None) is not None

    def snapshot(self) -> dict[str, dict[str, str]]:
        with self._global_lock:
            buckets = dict(self._buckets)
        return {
            user_id: {token: d.isoformat() for token, d in bucket.reservations.items()}
            for user_id, bucket in buckets.items()
            if bucket.reservations
        }


__all__ = ["DailyQuota", "UserBucket"]
