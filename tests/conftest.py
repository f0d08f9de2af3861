"""Pytest fixtures and factories.

Tests bypass the FastAPI lifespan (no SQL database, no reaper thread): the
watch service is built over an in-memory ledger with a controllable clock and
a seeded RNG, then placed on ``app.state`` for endpoint tests.
"""
import random
import secrets
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure project root on sys.path so 'adrewards' resolves without an editable install
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from adrewards import config  # noqa: E402
from adrewards.database import Base  # noqa: E402
from adrewards.main import app  # noqa: E402
from adrewards.models.db import AdKind, AdStatus, ApprovalStatus  # noqa: E402
from adrewards.models.entities import Ad, ViewRecord  # noqa: E402
from adrewards.repositories import InMemoryLedgerRepository  # noqa: E402
from adrewards.services.watch_service import AdWatchService  # noqa: E402

ADMIN_KEY = "test-admin-key"


class FakeClock:
    """Callable clock; ``advance`` moves time forward for expiry and window tests."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture()
def clock():
    # Local noon keeps "earlier today" and "an hour ago" inside the same calendar day.
    return FakeClock(datetime(2025, 6, 15, 12, 0, 0).astimezone())


@pytest.fixture()
def rng():
    return random.Random(1234)


@pytest.fixture()
def repo():
    return InMemoryLedgerRepository()


@pytest.fixture()
def service(repo, rng, clock):
    return AdWatchService(repo, rng=rng, clock=clock)


@pytest.fixture()
def client(service, monkeypatch):
    monkeypatch.setattr(config, "ADMIN_API_KEY", ADMIN_KEY)
    app.state.watch_service = service  # type: ignore[attr-defined]
    try:
        yield TestClient(app)
    finally:
        del app.state.watch_service


@pytest.fixture()
def sql_session_factory():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()

# ---------- Data factory helpers ----------

@pytest.fixture()
def curated_ad_factory(repo, clock):
    def _create(
        ad_id: str | None = None,
        *,
        title: str = "Curated Ad",
        status: AdStatus = AdStatus.ACTIVE,
        reward_min: int = 1,
        reward_max: int = 50,
        required_watch_seconds: int = 15,
    ) -> Ad:
        ad = Ad(
            id=ad_id or f"AD{secrets.token_hex(4).upper()}",
            title=title,
            kind=AdKind.CURATED,
            target_url="https://example.com/landing",
            status=status,
            reward_min=reward_min,
            reward_max=reward_max,
            required_watch_seconds=required_watch_seconds,
            created_at=clock(),
            updated_at=clock(),
        )
        repo.upsert_ads([ad])
        return ad
    return _create


@pytest.fixture()
def record_factory(repo, clock):
    def _create(
        user_id: str = "user-1",
        ad_id: str = "SYNDICATED-1",
        *,
        approved: bool = True,
        reward: int | None = None,
        ago: timedelta = timedelta(minutes=30),
    ) -> ViewRecord:
        record = ViewRecord(
            id=f"ADV-TEST{secrets.token_hex(6)}",
            user_id=user_id,
            ad_id=ad_id,
            reward_amount=(reward if reward is not None else 10) if approved else 0,
            reported_watch_seconds=15.0 if approved else 3.0,
            completed=approved,
            clicked=approved,
            created_at=clock() - ago,
            approval_status=ApprovalStatus.APPROVED if approved else ApprovalStatus.REJECTED,
        )
        return repo.append_view_record(record)
    return _create


@pytest.fixture()
def user_headers():
    def _headers(user_id: str = "user-1", email: str | None = None) -> dict:
        headers = {"X-User-ID": user_id}
        if email:
            headers["X-User-Email"] = email
        return headers
    return _headers


@pytest.fixture()
def admin_headers():
    return {"X-Admin-Key": ADMIN_KEY}
