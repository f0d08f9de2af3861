"""Core application configuration & tunable watch/reward rules.

All business rules that may evolve (daily cap, dedup window, watch tolerance,
reward bands, session TTL, retry thresholds) are centralized here so they can
be adjusted without diving into service logic. Real deployments would likely
override via environment variables; for now we keep them as module constants
(mutable dicts allowed so tests can monkeypatch values).
"""
from __future__ import annotations

import os

_seed_env = os.getenv("REWARD_RANDOM_SEED")
REWARD_RANDOM_SEED: int | None = int(_seed_env) if _seed_env and _seed_env.strip() else None

DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+pysqlite:///./adrewards.db")

# Operator endpoints (catalog management, ledger export) are guarded by a shared key.
ADMIN_API_KEY: str | None = os.getenv("ADMIN_API_KEY") or None

# ------------------------------- Watch Rules ------------------------------ #
WATCH_RULES: dict[str, float | int] = {
	# Every attempt (approved or rejected) consumes one slot of the daily cap.
	"daily_limit": int(os.getenv("DAILY_WATCH_LIMIT", "25")),
	# Sliding window during which an approved ad cannot be watched again.
	"dedup_window_hours": 24,
	# Client timers drift; accept reports this many seconds short of the requirement.
	"watch_tolerance_seconds": 0.5,
}

# ---------------------------- Syndicated Ads ------------------------------ #
SYNDICATED_AD_SETTINGS: dict[str, int | str] = {
	"id_prefix": "SYNDICATED-",
	"reward_min": 20,
	"reward_max": 80,
	"required_watch_seconds": 15,
}

# Static direct-link list. One syndicated ad is derived per entry, in order.
SYNDICATED_LINKS: list[str] = [
	"https://www.effectivegatecpm.com/hfy73qcy?key=e260bfac004e18965e13c7172696c1a3",
	"https://www.effectivegatecpm.com/ywhsa6yivz?key=bfec6a8bc15be21a9df294ff59815f8a",
	"https://www.effectivegatecpm.com/nt1fr8zua?key=ac0794fdc21673207b81cbf11e48786d",
	"https://www.effectivegatecpm.com/kbak28mme?key=4490d0846ff38b21b8e203adba4ee1e7",
	"https://www.effectivegatecpm.com/tjdzfszkgx?key=0857d1051a4e330c49332d384e8c7224",
	"https://www.effectivegatecpm.com/zm78tt82?key=8e75e688fb529c7e4e19b4023efde58a",
	"https://www.effectivegatecpm.com/xwkce5cqb5?key=a51fb8ac1e251487604903a450df3022",
	"https://www.effectivegatecpm.com/yjsx8070?key=d8d1ec71150dc79a9a16cfb5b6933aa6",
	"https://www.effectivegatecpm.com/yah4ti7k5?key=a021f0d4f330e7dd684090beb79fca53",
	"https://www.effectivegatecpm.com/ta0phpns?key=b5968cffaeae3f4ba4cc1b8d9f04627a",
	"https://www.effectivegatecpm.com/zzp52zmx?key=8f7d2827bbc3ed2e669873b5a864c6f9",
	"https://www.effectivegatecpm.com/pahd2aakkt?key=29cea4f7e122e7206cc4d7e17343fdc6",
	"https://www.effectivegatecpm.com/vvumg5fqg2?key=1cb75527f5edcd5929e57a06e1d27df6",
	"https://www.effectivegatecpm.com/byxrhrg3?key=c3543a8bba23c39fe33fc01d1ed4d260",
	"https://www.effectivegatecpm.com/ui2r75xv?key=8a6fef106b36cb213591cff574c778e2",
	"https://www.effectivegatecpm.com/msrc48a3?key=448ee3d229c4064ce805ee282a71254a",
	"https://www.effectivegatecpm.com/ycz1ni72n4?key=c807520bd1ea3746dc694effb2d3eebb",
	"https://www.effectivegatecpm.com/a51535dr?key=66e6ad1660b40bb8f64c42887ec8ebb4",
	"https://www.effectivegatecpm.com/b10fnb3rd?key=f923d62d96f4719b7797e881a42b8fb0",
]

# Display names handed out to syndicated ads (without replacement).
SYNDICATED_AD_NAMES: list[str] = [
	"Premium Offer", "Special Deal", "Exclusive Promotion", "Limited Time Offer",
	"Best Value Deal", "Hot Deal", "Flash Sale", "Mega Discount",
	"Super Savings", "Amazing Offer", "Great Opportunity", "Fantastic Deal",
	"Incredible Savings", "Top Offer", "Prime Deal", "Elite Promotion",
	"Ultimate Offer", "Power Deal", "Max Savings", "Pro Offer",
	"Gold Deal", "Platinum Offer", "Diamond Deal", "VIP Offer",
	"Premium Deal", "Exclusive Deal", "Special Offer", "Bonus Deal",
	"Extra Savings", "Super Deal", "Champion Offer", "Winner Deal",
	"Star Promotion", "Hero Offer", "Legend Deal", "Master Offer",
	"Expert Deal", "Guru Promotion", "Ace Offer", "Elite Deal",
]

# ------------------------------ Curated Ads ------------------------------- #
CURATED_AD_DEFAULTS: dict[str, int | str] = {
	"id_prefix": "AD",
	"reward_min": 1,
	"reward_max": 50,
	"required_watch_seconds": 15,
}

# -------------------------------- Sessions -------------------------------- #
SESSION_SETTINGS: dict[str, float | int | bool | str] = {
	# Abandoned sessions are reclaimed after this long; late completes see SessionNotFound.
	"ttl_seconds": int(os.getenv("WATCH_SESSION_TTL_SECONDS", "3600")),
	"sweep_interval_seconds": 60,
	"use_redis": os.getenv("WATCH_SESSION_USE_REDIS", "false").lower() in ("true", "1", "yes"),
	"redis_url": os.getenv("REDIS_URL", "redis://localhost:6379/0"),
	"redis_key_prefix": "adrewards:watch_session:",
	"redis_health_check_timeout": 2.0,
}

# --------------------------------- Backoff -------------------------------- #
BACKOFF_POLICY: dict[str, int | float] = {
	"base_seconds": 0.2,
	"factor": 2,          # Exponential factor
	"max_seconds": 5,
	"max_attempts": 3,
	"jitter_pct": 0.10,   # +/-10% jitter
}

# ---------------------------- Repository Retry ---------------------------- #
REPOSITORY_RETRY: dict[str, int] = {
	# Reads: retried, then RepositoryUnavailable propagates.
	"read_attempts": 3,
	# Ledger appends: retried; the record id is session-derived so retries never duplicate.
	"write_attempts": 3,
}

if REWARD_RANDOM_SEED is not None:
	import random
	random.seed(REWARD_RANDOM_SEED)

__all__ = [
	"REWARD_RANDOM_SEED",
	"DATABASE_URL",
	"ADMIN_API_KEY",
	# Rule groups
	"WATCH_RULES",
	"SYNDICATED_AD_SETTINGS",
	"SYNDICATED_LINKS",
	"SYNDICATED_AD_NAMES",
	"CURATED_AD_DEFAULTS",
	"SESSION_SETTINGS",
	"BACKOFF_POLICY",
	"REPOSITORY_RETRY",
]
