"""SQLAlchemy model for operator-curated ads (syndicated ads are never persisted)."""
from __future__ import annotations
from datetime import datetime
from sqlalchemy import Integer, String, DateTime, Enum, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from adrewards.database import Base
from .enums import AdKind, AdStatus

class AdRow(Base):
    __tablename__ = "ads"
    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    title: Mapped[str] = mapped_column(String(300), nullable=False)
    kind: Mapped[AdKind] = mapped_column(Enum(AdKind), nullable=False, default=AdKind.CURATED)
    target_url: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[AdStatus] = mapped_column(Enum(AdStatus), nullable=False, default=AdStatus.ACTIVE, index=True)

    reward_min: Mapped[int] = mapped_column(Integer, nullable=False)
    reward_max: Mapped[int] = mapped_column(Integer, nullable=False)
    required_watch_seconds: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        CheckConstraint("reward_min >= 0 AND reward_min <= reward_max", name="ck_ads_reward_band"),
    )
