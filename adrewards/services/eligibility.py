"""Eligibility engine: daily count, today's reward, 24h dedup set.

All figures are computed from a full ledger read filtered in Python (the
repository contract assumes no native querying). Records may carry either the
canonical account id or an external-provider id, so filtering matches against
the caller's full alias set.

Daily count semantics: every record created today counts, approved or
rejected. A failed completion therefore still consumes a slot, which blocks
retry-spam against the timer tolerance. Pending product confirmation.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from typing import Callable, Iterable

from adrewards.config import WATCH_RULES
from adrewards.models.entities import ViewRecord
from adrewards.repositories.base import LedgerRepository
from adrewards.services.identity import ResolvedIdentity
from adrewards.utils.time import ensure_aware, local_day_bounds, utc_now


def _aliases(user: ResolvedIdentity | str) -> frozenset[str]:
    if isinstance(user, ResolvedIdentity):
        return user.aliases
    return frozenset({str(user).strip()})


@dataclass(frozen=True, slots=True)
class EligibilitySummary:
    daily_count: int
    daily_limit: int
    today_reward: int

    @property
    def can_watch_more(self) -> bool:
        return self.daily_count < self.daily_limit

    def to_dict(self) -> dict[str, int | bool]:
        return {
            "daily_count": self.daily_count,
            "daily_limit": self.daily_limit,
            "today_reward": self.today_reward,
            "can_watch_more": self.can_watch_more,
        }


class EligibilityEngine:
    def __init__(
        self,
        repository: LedgerRepository,
        *,
        clock: Callable[[], datetime] = utc_now,
        day_tz: tzinfo | None = None,
    ):
        self.repository = repository
        self._clock = clock
        # None = server-local midnight boundary.
        self.day_tz = day_tz

    @property
    def daily_limit(self) -> int:
        return int(WATCH_RULES["daily_limit"])

    @property
    def dedup_window(self) -> timedelta:
        return timedelta(hours=float(WATCH_RULES["dedup_window_hours"]))

    def now(self) -> datetime:
        return self._clock()

    def day_of(self, as_of: datetime):
        start, _ = local_day_bounds(as_of, self.day_tz)
        return start.date()

    # ----------------------------- internal helpers ----------------------------- #
    def _user_records(self, user: ResolvedIdentity | str) -> list[ViewRecord]:
        aliases = _aliases(user)
        return [r for r in self.repository.list_view_records() if str(r.user_id or "").strip() in aliases]

    def _today(self, records: Iterable[ViewRecord], as_of: datetime) -> list[ViewRecord]:
        start, end = local_day_bounds(as_of, self.day_tz)
        return [r for r in records if start <= ensure_aware(r.created_at) < end]

    # ----------------------------- public API ----------------------------- #
    def daily_count(self, user: ResolvedIdentity | str, as_of: datetime | None = None) -> int:
        """Records created today for the user, regardless of approval status."""
        return len(self._today(self._user_records(user), as_of or self.now()))

    def today_reward(self, user: ResolvedIdentity | str, as_of: datetime | None = None) -> int:
        return sum(r.reward_amount for r in self._today(self._user_records(user), as_of or self.now()))

    def watched_ad_ids(
        self,
        user: ResolvedIdentity | str,
        window: timedelta | None = None,
        as_of: datetime | None = None,
    ) -> set[str]:
        """Ads with an approved, completed record inside the trailing window (sliding, not calendar)."""
        cutoff = (as_of or self.now()) - (window or self.dedup_window)
        return {
            str(r.ad_id).strip()
            for r in self._user_records(user)
            if r.completed and r.is_approved and str(r.ad_id or "").strip() and ensure_aware(r.created_at) >= cutoff
        }

    def summary(self, user: ResolvedIdentity | str, as_of: datetime | None = None) -> EligibilitySummary:
        today = self._today(self._user_records(user), as_of or self.now())
        return EligibilitySummary(
            daily_count=len(today),
            daily_limit=self.daily_limit,
            today_reward=sum(r.reward_amount for r in today),
        )

    def lifetime_reward(self, user: ResolvedIdentity | str) -> int:
        """All ad coins ever earned; consumed by the external payouts ledger."""
        return sum(r.reward_amount for r in self._user_records(user))


__all__ = ["EligibilityEngine", "EligibilitySummary"]
