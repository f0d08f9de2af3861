"""Completion verification and reward calculation.

Inputs are the ad definition plus the client's claims (reported duration,
click flag); we apply the timer-jitter tolerance and the per-kind completion
rule to derive an approval status, a reward, and a reason for client messaging.
Pure apart from the injected RNG so it is trivially testable.
"""
from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Any

from adrewards.config import WATCH_RULES
from adrewards.models.db.enums import AdKind, ApprovalStatus, RejectionReason
from adrewards.models.entities import Ad


@dataclass(frozen=True, slots=True)
class VerificationResult:
    watched_enough: bool
    completed: bool
    approval_status: ApprovalStatus
    reward_amount: int
    reason: RejectionReason
    reported_seconds: float
    clicked: bool


def coerce_reported_seconds(value: Any) -> float:
    """Clients send numbers or numeric strings; anything unparsable, non-finite or negative counts as 0s."""
    if isinstance(value, bool):
        return 0.0
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(seconds) or seconds < 0:
        return 0.0
    return seconds


def watched_long_enough(ad: Ad, reported_seconds: float) -> bool:
    tolerance = float(WATCH_RULES["watch_tolerance_seconds"])
    return reported_seconds >= ad.required_watch_seconds - tolerance


def draw_reward(ad: Ad, rng: random.Random) -> int:
    """Uniform integer in [reward_min, reward_max], both inclusive."""
    return rng.randint(ad.reward_min, ad.reward_max)


def verify_completion(ad: Ad, reported_seconds: Any, clicked: bool, *, rng: random.Random) -> VerificationResult:
    seconds = coerce_reported_seconds(reported_seconds)
    clicked = clicked is True
    watched_enough = watched_long_enough(ad, seconds)

    # Syndicated ads are interstitial direct links: a click-through stands in for attention.
    if ad.kind == AdKind.SYNDICATED:
        completed = watched_enough and clicked
    else:
        completed = watched_enough

    if completed:
        reason = RejectionReason.OK
    elif ad.kind == AdKind.SYNDICATED and not watched_enough and not clicked:
        reason = RejectionReason.NOT_ENOUGH_TIME_AND_NOT_CLICKED
    elif not watched_enough:
        reason = RejectionReason.NOT_ENOUGH_TIME
    else:
        reason = RejectionReason.NOT_CLICKED

    return VerificationResult(
        watched_enough=watched_enough,
        completed=completed,
        approval_status=ApprovalStatus.APPROVED if completed else ApprovalStatus.REJECTED,
        reward_amount=draw_reward(ad, rng) if completed else 0,
        reason=reason,
        reported_seconds=seconds,
        clicked=clicked,
    )


def _fmt_seconds(seconds: float) -> str:
    return f"{seconds:g}"


def completion_message(ad: Ad, result: VerificationResult) -> str:
    required = ad.required_watch_seconds
    watched = _fmt_seconds(result.reported_seconds)
    if result.reason == RejectionReason.OK:
        return f"Congratulations! You earned {result.reward_amount} coins for watching the ad."
    if result.reason == RejectionReason.NOT_ENOUGH_TIME_AND_NOT_CLICKED:
        return (
            f"You need to watch for at least {required} seconds AND click once in the ad to earn coins. "
            f"You watched for {watched} seconds."
        )
    if result.reason == RejectionReason.NOT_CLICKED:
        return f"You watched for {watched} seconds, but you need to click once in the ad to earn coins."
    return f"You need to watch the ad for at least {required} seconds to earn coins. You watched for {watched} seconds."


def start_message(ad: Ad) -> str:
    if ad.kind == AdKind.SYNDICATED:
        return f"Ad watch session started. Watch for {ad.required_watch_seconds} seconds and click once in the ad to earn coins."
    return f"Ad watch session started. Watch for {ad.required_watch_seconds} seconds to earn coins."


__all__ = [
    "VerificationResult",
    "coerce_reported_seconds",
    "watched_long_enough",
    "draw_reward",
    "verify_completion",
    "completion_message",
    "start_message",
]
