"""Domain error taxonomy.

Every failure a caller can see carries a stable ``code`` (used in API payloads
and logs) and the HTTP status the API layer maps it to. "Not enough time" and
"not clicked" are deliberately absent: those are rejected outcomes, not errors.
"""
from __future__ import annotations


class AdRewardsError(Exception):
    code: str = "ad_rewards_error"
    http_status: int = 400
    default_message: str = "Request could not be processed"

    def __init__(self, message: str | None = None, **context: object):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.context = context


class DailyLimitExceeded(AdRewardsError):
    code = "daily_limit_exceeded"
    http_status = 429
    default_message = "Daily limit reached. Please come back tomorrow."


class AlreadyWatchedRecently(AdRewardsError):
    code = "already_watched_recently"
    http_status = 409
    default_message = "You have already watched this ad. Please try again after 24 hours."


class AdNotFound(AdRewardsError):
    code = "ad_not_found"
    http_status = 404
    default_message = "Ad not found or inactive"


class SessionNotFound(AdRewardsError):
    code = "session_not_found"
    http_status = 404
    default_message = "Watch session not found or expired"


class Forbidden(AdRewardsError):
    code = "forbidden"
    http_status = 403
    default_message = "Unauthorized access to this watch session"


class InvalidAdDefinition(AdRewardsError):
    code = "invalid_ad_definition"
    http_status = 422
    default_message = "Ad definition is invalid"


class RepositoryUnavailable(AdRewardsError):
    """Transient storage failure. Reads retry internally; writes surface 'try again'."""

    code = "repository_unavailable"
    http_status = 503
    default_message = "Storage is temporarily unavailable. Please try again."


__all__ = [
    "AdRewardsError",
    "DailyLimitExceeded",
    "AlreadyWatchedRecently",
    "AdNotFound",
    "SessionNotFound",
    "Forbidden",
    "InvalidAdDefinition",
    "RepositoryUnavailable",
]
