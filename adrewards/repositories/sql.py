"""SQLAlchemy-backed ledger repository.

Deliberately uses the repository contract's "read-all then filter" shape
(no per-user queries) so it stays interchangeable with key-value backends.
"""
from __future__ import annotations

from typing import Callable, Iterable

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from adrewards.database import SessionLocal
from adrewards.errors import InvalidAdDefinition, RepositoryUnavailable
from adrewards.models.db import AdRow, ViewRecordRow
from adrewards.models.entities import Ad, ViewRecord
from adrewards.repositories.base import LedgerRepository
from adrewards.utils import get_logger
from adrewards.utils.time import ensure_aware, to_utc

logger = get_logger(__name__)


def _ad_from_row(row: AdRow) -> Ad:
    return Ad(
        id=row.id,
        title=row.title,
        kind=row.kind,
        target_url=row.target_url,
        status=row.status,
        reward_min=row.reward_min,
        reward_max=row.reward_max,
        required_watch_seconds=row.required_watch_seconds,
        created_at=ensure_aware(row.created_at),
        updated_at=ensure_aware(row.updated_at),
    )


def _record_from_row(row: ViewRecordRow) -> ViewRecord:
    return ViewRecord(
        id=row.id,
        user_id=row.user_id,
        ad_id=row.ad_id,
        reward_amount=row.reward_amount,
        reported_watch_seconds=row.reported_watch_seconds,
        completed=row.completed,
        clicked=row.clicked,
        created_at=ensure_aware(row.created_at),
        approval_status=row.approval_status,
        session_id=row.session_id,
    )


class SqlLedgerRepository(LedgerRepository):
    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self._session_factory = session_factory

    def list_ads(self) -> list[Ad]:
        try:
            with self._session_factory() as session:
                rows = session.scalars(select(AdRow).order_by(AdRow.created_at, AdRow.id)).all()
                return [_ad_from_row(r) for r in rows]
        except SQLAlchemyError as e:
            logger.error("Ad catalog read failed", error=str(e))
            raise RepositoryUnavailable() from e

    def upsert_ads(self, ads: Iterable[Ad]) -> None:
        try:
            with self._session_factory() as session:
                for ad in ads:
                    session.merge(AdRow(
                        id=ad.id,
                        title=ad.title,
                        kind=ad.kind,
                        target_url=ad.target_url,
                        status=ad.status,
                        reward_min=ad.reward_min,
                        reward_max=ad.reward_max,
                        required_watch_seconds=ad.required_watch_seconds,
                        created_at=to_utc(ad.created_at),
                        updated_at=to_utc(ad.updated_at),
                    ))
                session.commit()
        except IntegrityError as e:
            raise InvalidAdDefinition(f"Ad rejected by storage constraints: {e.orig}") from e
        except SQLAlchemyError as e:
            logger.error("Ad catalog write failed", error=str(e))
            raise RepositoryUnavailable() from e

    def delete_ad(self, ad_id: str) -> bool:
        try:
            with self._session_factory() as session:
                row = session.get(AdRow, ad_id)
                if row is None:
                    return False
                session.delete(row)
                session.commit()
                return True
        except SQLAlchemyError as e:
            logger.error("Ad delete failed", ad_id=ad_id, error=str(e))
            raise RepositoryUnavailable() from e

    def list_view_records(self) -> list[ViewRecord]:
        try:
            with self._session_factory() as session:
                rows = session.scalars(select(ViewRecordRow).order_by(ViewRecordRow.created_at, ViewRecordRow.id)).all()
                return [_record_from_row(r) for r in rows]
        except SQLAlchemyError as e:
            logger.error("Ledger read failed", error=str(e))
            raise RepositoryUnavailable() from e

    def append_view_record(self, record: ViewRecord) -> ViewRecord:
        try:
            with self._session_factory() as session:
                existing = session.get(ViewRecordRow, record.id)
                if existing is not None:
                    return _record_from_row(existing)
                session.add(ViewRecordRow(
                    id=record.id,
                    session_id=record.session_id,
                    user_id=record.user_id,
                    ad_id=record.ad_id,
                    reward_amount=record.reward_amount,
                    reported_watch_seconds=record.reported_watch_seconds,
                    completed=record.completed,
                    clicked=record.clicked,
                    approval_status=record.approval_status,
                    created_at=to_utc(record.created_at),
                ))
                try:
                    session.commit()
                except IntegrityError:
                    # A concurrent retry of the same append won the insert; load it.
                    session.rollback()
                    existing = session.get(ViewRecordRow, record.id)
                    if existing is None:
                        raise
                    logger.warning("Duplicate ledger append ignored", record_id=record.id)
                    return _record_from_row(existing)
                return record
        except SQLAlchemyError as e:
            logger.error("Ledger append failed", record_id=record.id, error=str(e))
            raise RepositoryUnavailable() from e


__all__ = ["SqlLedgerRepository"]
