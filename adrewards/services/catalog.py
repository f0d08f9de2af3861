"""Ad catalog: syndicated direct-link ads plus operator-curated ads.

Syndicated ads are derived from ``SYNDICATED_LINKS`` (one per link, IDs
``SYNDICATED-<n>``) and never persisted. Curated ads live in the ledger
repository and are managed by operators through ``create_ad`` / ``update_ad`` /
``delete_ad``.

Listing never fails because of storage: when the repository is unreachable the
syndicated subset is returned on its own, since it needs no persisted state.
"""
from __future__ import annotations

import random
import secrets
import string
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Sequence

from adrewards.config import (
    CURATED_AD_DEFAULTS,
    SYNDICATED_AD_NAMES,
    SYNDICATED_AD_SETTINGS,
    SYNDICATED_LINKS,
)
from adrewards.errors import AdNotFound, InvalidAdDefinition, RepositoryUnavailable
from adrewards.models.db.enums import AdKind, AdStatus
from adrewards.models.entities import Ad, AnnotatedAd
from adrewards.repositories.base import LedgerRepository
from adrewards.services.identity import ResolvedIdentity
from adrewards.utils import get_logger, log_business_event
from adrewards.utils.time import utc_now

if TYPE_CHECKING:  # pragma: no cover
    from adrewards.services.eligibility import EligibilityEngine

logger = get_logger(__name__)

_EDITABLE_FIELDS = {"title", "target_url", "status", "reward_min", "reward_max", "required_watch_seconds"}


def pick_display_name(index: int, used: set[str], pool: Sequence[str], rng: random.Random) -> str:
    """Draw a name without replacement; once the pool runs dry reuse one with a numeric suffix."""
    available = [name for name in pool if name not in used]
    if not available:
        base = rng.choice(list(pool)) if pool else "Ad"
        return f"{base} {index + 1}"
    name = rng.choice(available)
    used.add(name)
    return name


def build_syndicated_ads(
    links: Sequence[str],
    *,
    names: Sequence[str],
    rng: random.Random,
    now: datetime,
) -> list[Ad]:
    prefix = str(SYNDICATED_AD_SETTINGS["id_prefix"])
    used: set[str] = set()
    return [
        Ad(
            id=f"{prefix}{index + 1}",
            title=pick_display_name(index, used, names, rng),
            kind=AdKind.SYNDICATED,
            target_url=url,
            status=AdStatus.ACTIVE,
            reward_min=int(SYNDICATED_AD_SETTINGS["reward_min"]),
            reward_max=int(SYNDICATED_AD_SETTINGS["reward_max"]),
            required_watch_seconds=int(SYNDICATED_AD_SETTINGS["required_watch_seconds"]),
            created_at=now,
            updated_at=now,
        )
        for index, url in enumerate(links)
    ]


def _new_ad_id() -> str:
    suffix = "".join(secrets.choice(string.ascii_uppercase + string.digits) for _ in range(6))
    return f"{CURATED_AD_DEFAULTS['id_prefix']}{int(utc_now().timestamp() * 1000)}{suffix}"


def _validate(ad: Ad) -> None:
    if not ad.title or not ad.title.strip():
        raise InvalidAdDefinition("Title is required")
    if not ad.target_url or not ad.target_url.strip():
        raise InvalidAdDefinition("Ad URL is required")
    if ad.reward_min < 0 or ad.reward_max < ad.reward_min:
        raise InvalidAdDefinition("Reward band must satisfy 0 <= reward_min <= reward_max")
    if ad.required_watch_seconds <= 0:
        raise InvalidAdDefinition("Required watch duration must be positive")


class AdCatalog:
    def __init__(
        self,
        repository: LedgerRepository,
        eligibility: "EligibilityEngine",
        *,
        links: Sequence[str] | None = None,
        names: Sequence[str] | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.repository = repository
        self.eligibility = eligibility
        self._clock = clock
        self._syndicated = build_syndicated_ads(
            SYNDICATED_LINKS if links is None else links,
            names=SYNDICATED_AD_NAMES if names is None else names,
            rng=rng or random.Random(),
            now=clock(),
        )
        self._syndicated_by_id = {ad.id: ad for ad in self._syndicated}

    # ----------------------------- lookups ----------------------------- #
    def syndicated_ads(self) -> list[Ad]:
        return list(self._syndicated)

    @staticmethod
    def is_syndicated_id(ad_id: str) -> bool:
        return str(ad_id).startswith(str(SYNDICATED_AD_SETTINGS["id_prefix"]))

    def curated_active_ads(self) -> list[Ad]:
        return [ad for ad in self.repository.list_ads() if ad.is_active and ad.kind == AdKind.CURATED]

    def find_ad(self, ad_id: str, *, active_only: bool = True) -> Ad:
        """Resolve an ad by id or raise ``AdNotFound``.

        Storage failures propagate as ``RepositoryUnavailable``; a missing ad
        must not be confused with an unreachable store.
        """
        ad_id = str(ad_id).strip()
        if self.is_syndicated_id(ad_id):
            ad = self._syndicated_by_id.get(ad_id)
        else:
            ad = next((a for a in self.repository.list_ads() if a.id == ad_id), None)
        if ad is None or (active_only and not ad.is_active):
            raise AdNotFound(ad_id=ad_id)
        return ad

    def titles_by_id(self) -> dict[str, str]:
        """Ad titles for history enrichment; syndicated titles survive a storage outage."""
        titles = {ad.id: ad.title for ad in self._syndicated}
        try:
            titles.update({ad.id: ad.title for ad in self.repository.list_ads()})
        except RepositoryUnavailable:
            logger.warning("Ad titles unavailable from repository; using syndicated titles only")
        return titles

    # ----------------------------- listing ----------------------------- #
    def list_active_ads(self, user: ResolvedIdentity | str | None = None) -> list[AnnotatedAd]:
        """Syndicated ads followed by active curated ads, annotated for ``user``."""
        ads = list(self._syndicated)
        try:
            ads.extend(self.curated_active_ads())
        except RepositoryUnavailable:
            logger.warning("Repository unreachable; serving syndicated ads only", syndicated_count=len(ads))
            return [AnnotatedAd(ad=ad, is_watched=False, can_watch=True) for ad in ads]

        watched: set[str] = set()
        if user is not None:
            try:
                watched = self.eligibility.watched_ad_ids(user)
            except RepositoryUnavailable:
                logger.warning("Watch history unavailable; returning syndicated ads unannotated")
                return [AnnotatedAd(ad=ad, is_watched=False, can_watch=True) for ad in self._syndicated]

        annotated = []
        for ad in ads:
            is_watched = ad.id.strip() in watched
            annotated.append(AnnotatedAd(ad=ad, is_watched=is_watched, can_watch=not is_watched))
        return annotated

    # ------------------------- operator management ------------------------- #
    def list_all_ads(self) -> list[Ad]:
        return self.repository.list_ads()

    def create_ad(
        self,
        *,
        title: str,
        target_url: str,
        status: AdStatus | str = AdStatus.ACTIVE,
        reward_min: int | None = None,
        reward_max: int | None = None,
        required_watch_seconds: int | None = None,
        kind: AdKind | str = AdKind.CURATED,
    ) -> Ad:
        if AdKind(kind) != AdKind.CURATED:
            raise InvalidAdDefinition("Only curated ads can be created; syndicated ads come from the link list")
        now = self._clock()
        ad = Ad(
            id=_new_ad_id(),
            title=(title or "").strip(),
            kind=AdKind.CURATED,
            target_url=(target_url or "").strip(),
            status=AdStatus(status),
            reward_min=int(reward_min if reward_min is not None else CURATED_AD_DEFAULTS["reward_min"]),
            reward_max=int(reward_max if reward_max is not None else CURATED_AD_DEFAULTS["reward_max"]),
            required_watch_seconds=int(required_watch_seconds if required_watch_seconds is not None else CURATED_AD_DEFAULTS["required_watch_seconds"]),
            created_at=now,
            updated_at=now,
        )
        _validate(ad)
        self.repository.upsert_ads([ad])
        log_business_event("ad_created", {"ad_id": ad.id, "title": ad.title, "status": ad.status.value})
        return ad

    def update_ad(self, ad_id: str, changes: dict[str, Any]) -> Ad:
        current = self.find_ad(ad_id, active_only=False)
        if current.kind != AdKind.CURATED:
            raise InvalidAdDefinition("Syndicated ads are derived from the link list and cannot be edited")
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise InvalidAdDefinition(f"Unknown ad fields: {sorted(unknown)}")
        cleaned = {k: v for k, v in changes.items() if v is not None}
        if "status" in cleaned:
            cleaned["status"] = AdStatus(cleaned["status"])
        updated = current.with_changes(**cleaned, updated_at=self._clock())
        _validate(updated)
        self.repository.upsert_ads([updated])
        log_business_event("ad_updated", {"ad_id": ad_id, "fields": sorted(cleaned)})
        return updated

    def delete_ad(self, ad_id: str) -> None:
        if self.is_syndicated_id(ad_id):
            raise InvalidAdDefinition("Syndicated ads are derived from the link list and cannot be deleted")
        if not self.repository.delete_ad(ad_id):
            raise AdNotFound(ad_id=ad_id)
        log_business_event("ad_deleted", {"ad_id": ad_id})


__all__ = ["AdCatalog", "build_syndicated_ads", "pick_display_name"]
