"""
Dependencies for caller identity, operator access, and the watch service.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Header, HTTPException, Request, status

from adrewards import config
from adrewards.services.watch_service import AdWatchService
from adrewards.utils import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Caller:
    """Identity headers as set by the upstream authentication layer."""
    user_id: str
    email: Optional[str] = None


def get_watch_service(request: Request) -> AdWatchService:
    """
    Watch service dependency.
    The application builds one service in its lifespan and exposes it on ``app.state``.
    """
    service = getattr(request.app.state, "watch_service", None)
    if service is None:
        logger.error("Watch service requested before application startup")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is starting up, please retry",
        )
    return service


def get_caller(
    x_user_id: Optional[str] = Header(None, alias="X-User-ID"),
    x_user_email: Optional[str] = Header(None, alias="X-User-Email"),
) -> Caller:
    """
    Extract the authenticated caller.

    Raises:
        HTTPException: 401 when the user id header is missing or blank
    """
    if not x_user_id or not x_user_id.strip():
        logger.warning("Caller identification failed: missing X-User-ID header")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    email = x_user_email.strip() if x_user_email and x_user_email.strip() else None
    return Caller(user_id=x_user_id.strip(), email=email)


def require_admin(
    x_admin_key: Optional[str] = Header(None, alias="X-Admin-Key")
) -> bool:
    """
    Operator endpoints require ``X-Admin-Key`` matching ``ADMIN_API_KEY``.
    With no key configured every operator request is refused.
    """
    expected_admin_key = config.ADMIN_API_KEY
    if not expected_admin_key or not x_admin_key or x_admin_key != expected_admin_key:
        logger.warning(
            "Admin access denied",
            provided_key=x_admin_key[:4] + "..." if x_admin_key and len(x_admin_key) > 4 else None,
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return True
