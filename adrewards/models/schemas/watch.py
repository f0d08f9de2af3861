"""
Watch session and ledger schemas.
"""
from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, Field

from adrewards.models.db.enums import ApprovalStatus, RejectionReason
from .ads import AdRead


class StartWatchRequest(BaseModel):
    ad_id: str = Field(min_length=1, description="Syndicated (SYNDICATED-<n>) or curated ad id")


class StartWatchResponse(BaseModel):
    success: bool = True
    session_id: str
    ad: AdRead
    message: str


class CompleteWatchRequest(BaseModel):
    session_id: str = Field(min_length=1)
    # Some clients send the timer as a string; unparsable values count as 0 seconds.
    reported_seconds: Union[float, str, None] = None
    clicked: bool = False


class ViewRecordRead(BaseModel):
    id: str
    user_id: str
    ad_id: str
    reward_amount: int
    reported_watch_seconds: float
    completed: bool
    clicked: bool
    created_at: datetime
    approval_status: ApprovalStatus
    session_id: Optional[str] = None


class CompleteWatchResponse(BaseModel):
    success: bool
    reward_amount: int
    message: str
    reason: RejectionReason
    record: ViewRecordRead


class HistoryItem(ViewRecordRead):
    ad_title: str


class HistoryResponse(BaseModel):
    records: List[HistoryItem]
    total: int


class EarningsResponse(BaseModel):
    user_id: str
    lifetime_reward: int
    daily_count: int
    daily_limit: int
    today_reward: int
    can_watch_more: bool


class AdminViewRecord(HistoryItem):
    canonical_user_id: str
    user_email: Optional[str] = None
    user_name: Optional[str] = None
