"""Watch session lifecycle: start, complete, expire.

Started -> Completed(approved) | Completed(rejected) | Rejected(limit/forbidden/not-found).
All terminal; a session id is consumed at most once.

Daily-cap flow (reserve-before-commit, see ``adrewards.utils.quota``):
  start     : under the user's hold, ledger_count + pending >= limit -> DailyLimitExceeded,
              otherwise reserve a slot keyed by session id.
  complete  : under the same hold, re-check the ledger count, verify, append,
              then release the reservation (always, via ``finally``).
  sweep     : expired sessions release their reservation.
"""
from __future__ import annotations

import random
import secrets
import string
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, List

from adrewards.config import REWARD_RANDOM_SEED, SESSION_SETTINGS
from adrewards.errors import AlreadyWatchedRecently, DailyLimitExceeded
from adrewards.models.entities import Ad, ViewRecord, WatchSession
from adrewards.repositories.base import LedgerRepository
from adrewards.services.catalog import AdCatalog
from adrewards.services.eligibility import EligibilityEngine
from adrewards.services.identity import ResolvedIdentity
from adrewards.services.session_store import InMemorySessionStore, SessionStore
from adrewards.services.verifier import VerificationResult, completion_message, verify_completion
from adrewards.utils import get_logger
from adrewards.utils.quota import DailyQuota
from adrewards.utils.time import from_epoch_millis, to_epoch_millis, utc_now

logger = get_logger(__name__)

RECORD_ID_PREFIX = "ADV-"


def new_session_id() -> str:
    suffix = "".join(secrets.choice(string.ascii_uppercase + string.digits) for _ in range(6))
    return f"WATCH{int(utc_now().timestamp() * 1000)}{suffix}"


def record_id_for(session_id: str) -> str:
    """Deterministic per session, so a retried append can never create a second record."""
    return f"{RECORD_ID_PREFIX}{session_id}"


@dataclass(frozen=True, slots=True)
class StartedWatch:
    session: WatchSession
    ad: Ad


@dataclass(frozen=True, slots=True)
class CompletedWatch:
    session: WatchSession
    ad: Ad
    record: ViewRecord
    verification: VerificationResult
    message: str


class WatchSessionManager:
    def __init__(
        self,
        catalog: AdCatalog,
        eligibility: EligibilityEngine,
        repository: LedgerRepository,
        *,
        store: SessionStore | None = None,
        quota: DailyQuota | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = utc_now,
        ttl_seconds: int | None = None,
    ):
        self.catalog = catalog
        self.eligibility = eligibility
        self.repository = repository
        self.store = store if store is not None else InMemorySessionStore()
        self.quota = quota if quota is not None else DailyQuota()
        self.rng = rng or random.Random(REWARD_RANDOM_SEED)
        self._clock = clock
        self.ttl_seconds = int(ttl_seconds if ttl_seconds is not None else SESSION_SETTINGS["ttl_seconds"])

    def start(self, user: ResolvedIdentity, ad_id: str) -> StartedWatch:
        now = self._clock()
        day = self.eligibility.day_of(now)
        owner = user.canonical_id
        ad_id = str(ad_id).strip()

        with self.quota.hold(owner):
            used = self.eligibility.daily_count(user, as_of=now) + self.quota.pending(owner, day)
            if used >= self.eligibility.daily_limit:
                raise DailyLimitExceeded(user_id=owner, daily_count=used)
            if ad_id in self.eligibility.watched_ad_ids(user, as_of=now):
                raise AlreadyWatchedRecently(user_id=owner, ad_id=ad_id)
            ad = self.catalog.find_ad(ad_id)

            started_ms = to_epoch_millis(now)
            session = WatchSession(
                session_id=new_session_id(),
                user_id=owner,
                ad_id=ad.id,
                started_at_epoch_millis=started_ms,
                expires_at_epoch_millis=started_ms + self.ttl_seconds * 1000,
            )
            self.quota.reserve(owner, day, token=session.session_id)
            try:
                self.store.put(session)
            except Exception:
                self.quota.release(owner, session.session_id)
                raise

        logger.info("Watch session started", user_id=owner, ad_id=ad.id, session_id=session.session_id)
        return StartedWatch(session=session, ad=ad)

    def complete(self, user: ResolvedIdentity, session_id: str, reported_seconds: Any, clicked: bool = False) -> CompletedWatch:
        now = self._clock()
        # Owner check accepts the canonical id and, for sessions started before
        # identity resolution existed, the raw caller id.
        session = self.store.consume(str(session_id).strip(), (user.canonical_id, user.raw_id), to_epoch_millis(now))
        owner = session.user_id

        try:
            ad = self.catalog.find_ad(session.ad_id, active_only=False)
            with self.quota.hold(owner):
                count = self.eligibility.daily_count(user, as_of=now)
                if count >= self.eligibility.daily_limit:
                    raise DailyLimitExceeded(user_id=owner, daily_count=count)

                verification = verify_completion(ad, reported_seconds, clicked, rng=self.rng)
                record = ViewRecord(
                    id=record_id_for(session.session_id),
                    user_id=owner,
                    ad_id=ad.id,
                    reward_amount=verification.reward_amount,
                    reported_watch_seconds=verification.reported_seconds,
                    completed=verification.completed,
                    clicked=verification.clicked,
                    created_at=now,
                    approval_status=verification.approval_status,
                    session_id=session.session_id,
                )
                stored = self.repository.append_view_record(record)
        finally:
            self.quota.release(owner, session.session_id)

        logger.info(
            "Watch session completed",
            user_id=owner,
            ad_id=ad.id,
            session_id=session.session_id,
            approval_status=stored.approval_status.value,
            reason=verification.reason.value,
        )
        return CompletedWatch(
            session=session,
            ad=ad,
            record=stored,
            verification=verification,
            message=completion_message(ad, verification),
        )

    def sweep_expired(self, now: datetime | None = None) -> List[WatchSession]:
        """Drop sessions past their TTL and free their daily-cap reservations."""
        now_ms = to_epoch_millis(now or self._clock())
        expired = self.store.sweep_expired(now_ms)
        for session in expired:
            self.quota.release(session.user_id, session.session_id)
        if expired:
            logger.info(
                "Expired watch sessions reclaimed",
                count=len(expired),
                oldest_started_at=from_epoch_millis(min(s.started_at_epoch_millis for s in expired)).isoformat(),
            )
        return expired

    def active_sessions(self) -> int:
        return len(self.store)


__all__ = [
    "WatchSessionManager",
    "StartedWatch",
    "CompletedWatch",
    "new_session_id",
    "record_id_for",
]
