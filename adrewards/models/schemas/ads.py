"""
Ad catalog schemas: public listings and operator management payloads.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from adrewards.models.db.enums import AdKind, AdStatus


class AdRead(BaseModel):
    """Ad as stored in the catalog."""
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

    model_config = ConfigDict(from_attributes=True)


class AnnotatedAdRead(AdRead):
    """Ad as listed to one user."""
    is_watched: bool = Field(description="Approved view within the last 24 hours")
    can_watch: bool


class AdListResponse(BaseModel):
    ads: List[AnnotatedAdRead]
    daily_count: int = Field(ge=0)
    daily_limit: int = Field(ge=0)
    today_reward: int = Field(ge=0)
    can_watch_more: bool


class AdCreate(BaseModel):
    """Payload for creating a curated ad. Omitted reward/duration fields take catalog defaults."""
    title: str = Field(min_length=1, max_length=255)
    target_url: str = Field(min_length=1, max_length=2048)
    status: AdStatus = AdStatus.ACTIVE
    reward_min: Optional[int] = Field(default=None, ge=0)
    reward_max: Optional[int] = Field(default=None, ge=0)
    required_watch_seconds: Optional[int] = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _check_reward_band(self):
        if self.reward_min is not None and self.reward_max is not None and self.reward_min > self.reward_max:
            raise ValueError("reward_min must not exceed reward_max")
        return self


class AdUpdate(BaseModel):
    """Partial update; only provided fields change."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    target_url: Optional[str] = Field(default=None, min_length=1, max_length=2048)
    status: Optional[AdStatus] = None
    reward_min: Optional[int] = Field(default=None, ge=0)
    reward_max: Optional[int] = Field(default=None, ge=0)
    required_watch_seconds: Optional[int] = Field(default=None, gt=0)
