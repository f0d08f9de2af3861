"""Ad watch orchestrator.

Public surface used by the API layer and jobs. Each call:
1. Resolves the caller (canonical id + aliases) via the identity resolver.
2. Delegates to the catalog / eligibility engine / session manager.
3. Emits a business event and a timing entry.
4. Returns a structured dict summary for API usage.

Domain errors (``adrewards.errors``) propagate unchanged; the API maps them to
HTTP responses.
"""
from __future__ import annotations

import random
import time
from datetime import datetime
from typing import Any, Callable, Dict, List

from adrewards.errors import RepositoryUnavailable
from adrewards.models.entities import Ad, ViewRecord
from adrewards.repositories.base import LedgerRepository
from adrewards.services.catalog import AdCatalog
from adrewards.services.eligibility import EligibilityEngine, EligibilitySummary
from adrewards.services.identity import IdentityResolver, PassthroughIdentityResolver, ResolvedIdentity
from adrewards.services.session_store import SessionStore
from adrewards.services.sessions import WatchSessionManager
from adrewards.services.verifier import start_message
from adrewards.utils import get_logger, log_business_event, log_performance
from adrewards.utils.quota import DailyQuota
from adrewards.utils.time import utc_now

logger = get_logger(__name__)

UNKNOWN_AD_TITLE = "Unknown Ad"


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


class AdWatchService:
    def __init__(
        self,
        repository: LedgerRepository,
        *,
        resolver: IdentityResolver | None = None,
        store: SessionStore | None = None,
        quota: DailyQuota | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = utc_now,
        ttl_seconds: int | None = None,
    ):
        self.repository = repository
        self.resolver = resolver or PassthroughIdentityResolver()
        self.eligibility = EligibilityEngine(repository, clock=clock)
        self.catalog = AdCatalog(repository, self.eligibility, rng=rng, clock=clock)
        self.sessions = WatchSessionManager(
            self.catalog,
            self.eligibility,
            repository,
            store=store,
            quota=quota,
            rng=rng,
            clock=clock,
            ttl_seconds=ttl_seconds,
        )

    def identify(self, user_id: str, email: str | None = None) -> ResolvedIdentity:
        return self.resolver.resolve(user_id, email)

    # ------------------------------ user operations ------------------------------ #
    def get_ads(self, user_id: str, email: str | None = None) -> Dict[str, Any]:
        started = time.perf_counter()
        user = self.identify(user_id, email)
        ads = self.catalog.list_active_ads(user)
        try:
            summary = self.eligibility.summary(user)
        except RepositoryUnavailable:
            logger.warning("Eligibility summary unavailable; reporting zero usage", user_id=user.canonical_id)
            summary = EligibilitySummary(daily_count=0, daily_limit=self.eligibility.daily_limit, today_reward=0)
        log_performance("get_ads", _elapsed_ms(started), {"ad_count": len(ads)})
        return {"ads": [a.to_dict() for a in ads], **summary.to_dict()}

    def start_watch(self, user_id: str, ad_id: str, *, email: str | None = None, request_id: str | None = None) -> Dict[str, Any]:
        started = time.perf_counter()
        user = self.identify(user_id, email)
        result = self.sessions.start(user, ad_id)
        log_business_event(
            "watch_started",
            {"ad_id": result.ad.id, "session_id": result.session.session_id, "ad_kind": result.ad.kind.value},
            user_id=user.canonical_id,
            request_id=request_id,
        )
        log_performance("start_watch", _elapsed_ms(started), {"ad_id": result.ad.id})
        return {
            "session_id": result.session.session_id,
            "ad": result.ad.to_dict(),
            "message": start_message(result.ad),
        }

    def complete_watch(
        self,
        user_id: str,
        session_id: str,
        reported_seconds: Any,
        clicked: bool = False,
        *,
        email: str | None = None,
        request_id: str | None = None,
    ) -> Dict[str, Any]:
        started = time.perf_counter()
        user = self.identify(user_id, email)
        outcome = self.sessions.complete(user, session_id, reported_seconds, clicked)
        record = outcome.record
        log_business_event(
            "watch_completed",
            {
                "ad_id": record.ad_id,
                "session_id": record.session_id,
                "record_id": record.id,
                "approval_status": record.approval_status.value,
                "reward_amount": record.reward_amount,
                "reason": outcome.verification.reason.value,
            },
            user_id=user.canonical_id,
            request_id=request_id,
        )
        log_performance("complete_watch", _elapsed_ms(started), {"ad_id": record.ad_id})
        return {
            "success": record.is_approved,
            "reward_amount": record.reward_amount,
            "message": outcome.message,
            "reason": outcome.verification.reason.value,
            "record": record.to_dict(),
        }

    def history(self, user_id: str, email: str | None = None) -> List[Dict[str, Any]]:
        """The caller's records under every alias, newest first, with ad titles joined in."""
        user = self.identify(user_id, email)
        records = [r for r in self.repository.list_view_records() if user.matches(r.user_id)]
        titles = self.catalog.titles_by_id()
        records.sort(key=lambda r: r.created_at, reverse=True)
        return [{**r.to_dict(), "ad_title": titles.get(r.ad_id, UNKNOWN_AD_TITLE)} for r in records]

    def earnings(self, user_id: str, email: str | None = None) -> Dict[str, Any]:
        user = self.identify(user_id, email)
        return {
            "user_id": user.canonical_id,
            "lifetime_reward": self.eligibility.lifetime_reward(user),
            **self.eligibility.summary(user).to_dict(),
        }

    # ---------------------------- operator operations ---------------------------- #
    def list_all_ads(self) -> List[Ad]:
        return self.catalog.list_all_ads()

    def create_ad(self, **payload: Any) -> Ad:
        return self.catalog.create_ad(**payload)

    def update_ad(self, ad_id: str, changes: Dict[str, Any]) -> Ad:
        return self.catalog.update_ad(ad_id, changes)

    def delete_ad(self, ad_id: str) -> None:
        self.catalog.delete_ad(ad_id)

    def list_view_records(self) -> List[Dict[str, Any]]:
        """Every ledger record, enriched with ad title and account details where known."""
        records: List[ViewRecord] = self.repository.list_view_records()
        titles = self.catalog.titles_by_id()
        enriched = []
        for r in sorted(records, key=lambda r: r.created_at, reverse=True):
            account = self.resolver.lookup(r.user_id)
            enriched.append({
                **r.to_dict(),
                "ad_title": titles.get(r.ad_id, UNKNOWN_AD_TITLE),
                "canonical_user_id": account.id if account else r.user_id,
                "user_email": account.email if account else None,
                "user_name": account.name if account else None,
            })
        return enriched

    # ---------------------------------- jobs ---------------------------------- #
    def sweep_expired_sessions(self) -> int:
        return len(self.sessions.sweep_expired())


__all__ = ["AdWatchService", "UNKNOWN_AD_TITLE"]
