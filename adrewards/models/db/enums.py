"""Central Enum definitions for catalog and ledger states.

These replace scattered string literals to ensure consistency across
DB models, schemas, and business logic.
"""
from __future__ import annotations
import enum


class AdKind(str, enum.Enum):
    SYNDICATED = "syndicated"
    CURATED = "curated"


class AdStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class ApprovalStatus(str, enum.Enum):
    APPROVED = "approved"
    REJECTED = "rejected"


class RejectionReason(str, enum.Enum):
    """Why a completion was (or was not) rewarded; drives client messaging."""
    OK = "ok"
    NOT_ENOUGH_TIME = "not_enough_time"
    NOT_CLICKED = "not_clicked"
    NOT_ENOUGH_TIME_AND_NOT_CLICKED = "not_enough_time_and_not_clicked"


__all__ = [
    "AdKind",
    "AdStatus",
    "ApprovalStatus",
    "RejectionReason",
]
