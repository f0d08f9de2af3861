"""Domain entities passed between repositories and services.

Plain dataclasses keep the engine independent of any storage driver; the SQL
repository maps them to ``adrewards.models.db`` rows and back.
"""
from __future__ import annotations

from dataclasses import dataclass, asdict, replace
from datetime import datetime
from typing import Any

from adrewards.models.db.enums import AdKind, AdStatus, ApprovalStatus


@dataclass(frozen=True, slots=True)
class Ad:
    id: str
    title: str
    kind: AdKind
    target_url: str
    status: AdStatus
    reward_min: int
    reward_max: int
    required_watch_seconds: int
    created_at: datetime
    updated_at: datetime

    @property
    def is_active(self) -> bool:
        return self.status == AdStatus.ACTIVE

    def with_changes(self, **changes: Any) -> "Ad":
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["kind"] = self.kind.value
        data["status"] = self.status.value
        return data


@dataclass(frozen=True, slots=True)
class AnnotatedAd:
    """An ad as shown to one user: whether it was watched in the dedup window."""
    ad: Ad
    is_watched: bool
    can_watch: bool

    def to_dict(self) -> dict[str, Any]:
        data = self.ad.to_dict()
        data.update({"is_watched": self.is_watched, "can_watch": self.can_watch})
        return data


@dataclass(frozen=True, slots=True)
class ViewRecord:
    """One ledger entry. Never mutated after it is written."""
    id: str
    user_id: str
    ad_id: str
    reward_amount: int
    reported_watch_seconds: float
    completed: bool
    clicked: bool
    created_at: datetime
    approval_status: ApprovalStatus
    session_id: str | None = None

    @property
    def is_approved(self) -> bool:
        return self.approval_status == ApprovalStatus.APPROVED

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["approval_status"] = self.approval_status.value
        return data


@dataclass(slots=True)
class WatchSession:
    session_id: str
    user_id: str
    ad_id: str
    started_at_epoch_millis: int
    expires_at_epoch_millis: int | None = None

    def is_expired(self, now_epoch_millis: int) -> bool:
        return self.expires_at_epoch_millis is not None and now_epoch_millis >= self.expires_at_epoch_millis

    def owned_by(self, *candidate_ids: str | None) -> bool:
        return any(c is not None and c == self.user_id for c in candidate_ids)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WatchSession":
        return cls(
            session_id=str(data["session_id"]),
            user_id=str(data["user_id"]),
            ad_id=str(data["ad_id"]),
            started_at_epoch_millis=int(data["started_at_epoch_millis"]),
            expires_at_epoch_millis=(int(data["expires_at_epoch_millis"]) if data.get("expires_at_epoch_millis") is not None else None),
        )


__all__ = ["Ad", "AnnotatedAd", "ViewRecord", "WatchSession"]
