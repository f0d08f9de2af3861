import random
from datetime import timedelta

import pytest

from adrewards.config import SYNDICATED_AD_NAMES, SYNDICATED_LINKS
from adrewards.errors import AdNotFound, InvalidAdDefinition, RepositoryUnavailable
from adrewards.models.db.enums import AdKind, AdStatus
from adrewards.repositories import InMemoryLedgerRepository
from adrewards.services.catalog import AdCatalog, build_syndicated_ads, pick_display_name
from adrewards.services.eligibility import EligibilityEngine


@pytest.fixture()
def catalog(repo, rng, clock):
    return AdCatalog(repo, EligibilityEngine(repo, clock=clock), rng=rng, clock=clock)


def test_syndicated_ads_one_per_link(catalog):
    ads = catalog.syndicated_ads()
    assert len(ads) == len(SYNDICATED_LINKS)
    assert [ad.id for ad in ads[:3]] == ["SYNDICATED-1", "SYNDICATED-2", "SYNDICATED-3"]
    assert [ad.target_url for ad in ads] == SYNDICATED_LINKS
    for ad in ads:
        assert ad.kind == AdKind.SYNDICATED
        assert (ad.reward_min, ad.reward_max, ad.required_watch_seconds) == (20, 80, 15)


def test_syndicated_names_are_unique_and_from_pool(catalog):
    titles = [ad.title for ad in catalog.syndicated_ads()]
    assert len(set(titles)) == len(titles)
    assert set(titles) <= set(SYNDICATED_AD_NAMES)


def test_names_fall_back_to_suffixed_reuse_when_pool_is_exhausted(clock):
    ads = build_syndicated_ads(
        ["https://a.example", "https://b.example", "https://c.example"],
        names=["Alpha", "Beta"],
        rng=random.Random(0),
        now=clock(),
    )
    assert {ads[0].title, ads[1].title} == {"Alpha", "Beta"}
    assert ads[2].title in {"Alpha 3", "Beta 3"}


def test_pick_display_name_with_empty_pool():
    assert pick_display_name(4, set(), [], random.Random(0)) == "Ad 5"


def test_titles_stable_for_catalog_lifetime(catalog):
    first = [ad.title for ad in catalog.syndicated_ads()]
    second = [a.ad.title for a in catalog.list_active_ads()][: len(first)]
    assert first == second


def test_listing_orders_syndicated_then_active_curated(catalog, curated_ad_factory):
    active = curated_ad_factory(title="Active")
    curated_ad_factory(title="Paused", status=AdStatus.INACTIVE)
    listed = catalog.list_active_ads("user-1")
    assert [a.ad.id for a in listed][-1] == active.id
    assert len(listed) == len(SYNDICATED_LINKS) + 1
    assert all(a.ad.kind == AdKind.SYNDICATED for a in listed[:-1])


def test_listing_annotates_recent_views(catalog, record_factory):
    record_factory(ad_id="SYNDICATED-2", ago=timedelta(hours=1))
    by_id = {a.ad.id: a for a in catalog.list_active_ads("user-1")}
    assert by_id["SYNDICATED-2"].is_watched is True
    assert by_id["SYNDICATED-2"].can_watch is False
    assert by_id["SYNDICATED-1"].can_watch is True


class _DownRepository(InMemoryLedgerRepository):
    def list_ads(self):
        raise RepositoryUnavailable()

    def list_view_records(self):
        raise RepositoryUnavailable()


def test_listing_degrades_to_syndicated_when_storage_is_down(rng, clock):
    repo = _DownRepository()
    catalog = AdCatalog(repo, EligibilityEngine(repo, clock=clock), rng=rng, clock=clock)
    listed = catalog.list_active_ads("user-1")
    assert len(listed) == len(SYNDICATED_LINKS)
    assert all(a.can_watch and not a.is_watched for a in listed)


def test_find_ad(catalog, curated_ad_factory):
    paused = curated_ad_factory(status=AdStatus.INACTIVE)
    assert catalog.find_ad("SYNDICATED-5").id == "SYNDICATED-5"
    assert catalog.find_ad(paused.id, active_only=False).id == paused.id
    with pytest.raises(AdNotFound):
        catalog.find_ad(paused.id)


def test_create_ad_applies_defaults(catalog, repo):
    ad = catalog.create_ad(title="  New promo ", target_url="https://example.com/promo")
    assert ad.id.startswith("AD")
    assert ad.title == "New promo"
    assert (ad.reward_min, ad.reward_max, ad.required_watch_seconds) == (1, 50, 15)
    assert ad.status == AdStatus.ACTIVE
    assert repo.list_ads() == [ad]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"title": "", "target_url": "https://example.com"},
        {"title": "x", "target_url": " "},
        {"title": "x", "target_url": "https://example.com", "reward_min": 10, "reward_max": 5},
        {"title": "x", "target_url": "https://example.com", "required_watch_seconds": 0},
        {"title": "x", "target_url": "https://example.com", "kind": "syndicated"},
    ],
)
def test_create_ad_rejects_invalid_definitions(catalog, kwargs):
    with pytest.raises(InvalidAdDefinition):
        catalog.create_ad(**kwargs)


def test_update_ad_partial_and_bumps_timestamp(catalog, clock, curated_ad_factory):
    ad = curated_ad_factory(title="Before")
    clock.advance(minutes=5)
    updated = catalog.update_ad(ad.id, {"title": "After", "status": "inactive", "reward_max": None})
    assert updated.title == "After"
    assert updated.status == AdStatus.INACTIVE
    assert updated.reward_max == ad.reward_max
    assert updated.updated_at > ad.updated_at
    assert updated.created_at == ad.created_at


def test_update_rejects_unknown_fields_and_syndicated(catalog, curated_ad_factory):
    ad = curated_ad_factory()
    with pytest.raises(InvalidAdDefinition):
        catalog.update_ad(ad.id, {"kind": "syndicated"})
    with pytest.raises(InvalidAdDefinition):
        catalog.update_ad("SYNDICATED-1", {"title": "Nope"})
    with pytest.raises(AdNotFound):
        catalog.update_ad("AD-MISSING", {"title": "Nope"})


def test_delete_ad(catalog, repo, curated_ad_factory):
    ad = curated_ad_factory()
    catalog.delete_ad(ad.id)
    assert repo.list_ads() == []
    with pytest.raises(AdNotFound):
        catalog.delete_ad(ad.id)
    with pytest.raises(InvalidAdDefinition):
        catalog.delete_ad("SYNDICATED-1")
