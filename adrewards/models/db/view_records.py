"""SQLAlchemy model for the append-only view ledger."""
from __future__ import annotations
from datetime import datetime
from sqlalchemy import Integer, String, DateTime, Enum, Boolean, Float, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from adrewards.database import Base
from .enums import ApprovalStatus

class ViewRecordRow(Base):
    __tablename__ = "ad_view_records"
    # Derived from the session id; the primary key is what makes retried appends idempotent.
    id: Mapped[str] = mapped_column(String(96), primary_key=True)
    session_id: Mapped[str | None] = mapped_column(String(64), nullable=True, unique=True)

    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    ad_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    reward_amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reported_watch_seconds: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    clicked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    approval_status: Mapped[ApprovalStatus] = mapped_column(Enum(ApprovalStatus), nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    __table_args__ = (
        CheckConstraint("reward_amount >= 0", name="ck_view_records_reward_non_negative"),
    )
