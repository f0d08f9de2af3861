from datetime import timedelta

import pytest

from adrewards.errors import RepositoryUnavailable
from adrewards.repositories import InMemoryLedgerRepository, RetryingLedgerRepository
from adrewards.services.eligibility import EligibilityEngine
from adrewards.services.identity import ResolvedIdentity


@pytest.fixture()
def engine(repo, clock):
    return EligibilityEngine(repo, clock=clock)


def test_daily_count_includes_rejected_attempts(engine, record_factory):
    record_factory(approved=True)
    record_factory(approved=False)
    record_factory(approved=False)
    assert engine.daily_count("user-1") == 3


def test_daily_count_ignores_other_users_and_previous_days(engine, record_factory):
    record_factory()
    record_factory(user_id="someone-else")
    # Local noon minus 13h is yesterday evening.
    record_factory(ago=timedelta(hours=13))
    assert engine.daily_count("user-1") == 1


def test_today_reward_sums_only_today(engine, record_factory):
    record_factory(reward=12)
    record_factory(reward=30)
    record_factory(approved=False)
    record_factory(reward=99, ago=timedelta(days=1))
    assert engine.today_reward("user-1") == 42


def test_watched_ad_ids_only_approved_within_window(engine, record_factory):
    record_factory(ad_id="SYNDICATED-1", ago=timedelta(hours=2))
    record_factory(ad_id="SYNDICATED-2", approved=False, ago=timedelta(minutes=1))
    record_factory(ad_id="SYNDICATED-3", ago=timedelta(hours=25))
    assert engine.watched_ad_ids("user-1") == {"SYNDICATED-1"}


def test_watched_window_is_sliding_not_calendar(engine, record_factory):
    # Yesterday at 13:00 local is 23h ago: a new calendar day, still inside the window.
    record_factory(ad_id="SYNDICATED-4", ago=timedelta(hours=23))
    assert "SYNDICATED-4" in engine.watched_ad_ids("user-1")
    assert engine.daily_count("user-1") == 0


def test_summary_and_limit_flag(engine, record_factory):
    for _ in range(engine.daily_limit):
        record_factory(reward=2)
    summary = engine.summary("user-1")
    assert summary.daily_count == 25
    assert summary.daily_limit == 25
    assert summary.today_reward == 50
    assert summary.can_watch_more is False
    assert summary.to_dict()["can_watch_more"] is False


def test_alias_set_merges_records_from_both_identities(engine, record_factory):
    record_factory(user_id="acc-1", reward=10)
    record_factory(user_id="ext-1", reward=5, ad_id="SYNDICATED-2")
    identity = ResolvedIdentity(canonical_id="acc-1", aliases=frozenset({"acc-1", "ext-1"}), raw_id="ext-1")
    assert engine.daily_count(identity) == 2
    assert engine.watched_ad_ids(identity) == {"SYNDICATED-1", "SYNDICATED-2"}
    assert engine.lifetime_reward(identity) == 15


def test_lifetime_reward_spans_all_days(engine, record_factory):
    record_factory(reward=10)
    record_factory(reward=20, ago=timedelta(days=40))
    record_factory(approved=False)
    assert engine.lifetime_reward("user-1") == 30


class _DownRepository(InMemoryLedgerRepository):
    def list_view_records(self):
        raise RepositoryUnavailable()


def test_storage_failure_propagates_instead_of_reporting_ineligible(clock):
    repository = RetryingLedgerRepository(_DownRepository(), read_attempts=2, sleep=lambda s: None)
    engine = EligibilityEngine(repository, clock=clock)
    with pytest.raises(RepositoryUnavailable):
        engine.daily_count("user-1")


def test_daily_limit_follows_config(engine, monkeypatch):
    from adrewards import config
    monkeypatch.setitem(config.WATCH_RULES, "daily_limit", 3)
    assert engine.daily_limit == 3
