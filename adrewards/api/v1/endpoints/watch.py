"""
Watch session endpoints plus the caller's history and earnings.

Domain errors (daily limit, dedup, unknown session, ownership) propagate to the
application-level handler, which renders them with their HTTP status.
"""
from fastapi import APIRouter, Depends, Request, status

from adrewards.api.deps import Caller, get_caller, get_watch_service
from adrewards.models.schemas.watch import (
    CompleteWatchRequest,
    CompleteWatchResponse,
    EarningsResponse,
    HistoryResponse,
    StartWatchRequest,
    StartWatchResponse,
)
from adrewards.services.watch_service import AdWatchService
from adrewards.utils import get_logger

router = APIRouter()
logger = get_logger(__name__)


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID", "unknown")


@router.post(
    "/start",
    response_model=StartWatchResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start watching an ad",
)
def start_watch(
    payload: StartWatchRequest,
    request: Request,
    caller: Caller = Depends(get_caller),
    service: AdWatchService = Depends(get_watch_service),
) -> StartWatchResponse:
    request_id = _request_id(request)
    logger.info("Watch start requested", user_id=caller.user_id, ad_id=payload.ad_id, request_id=request_id)
    result = service.start_watch(caller.user_id, payload.ad_id, email=caller.email, request_id=request_id)
    return StartWatchResponse(**result)


@router.post(
    "/complete",
    response_model=CompleteWatchResponse,
    summary="Complete a watch session and claim the reward",
    description="Rejected outcomes (not enough time, not clicked) are returned with success=false and HTTP 200",
)
def complete_watch(
    payload: CompleteWatchRequest,
    request: Request,
    caller: Caller = Depends(get_caller),
    service: AdWatchService = Depends(get_watch_service),
) -> CompleteWatchResponse:
    request_id = _request_id(request)
    result = service.complete_watch(
        caller.user_id,
        payload.session_id,
        payload.reported_seconds,
        payload.clicked,
        email=caller.email,
        request_id=request_id,
    )
    return CompleteWatchResponse(**result)


@router.get("/history", response_model=HistoryResponse, summary="Caller's ad view history")
def watch_history(
    caller: Caller = Depends(get_caller),
    service: AdWatchService = Depends(get_watch_service),
) -> HistoryResponse:
    records = service.history(caller.user_id, caller.email)
    return HistoryResponse(records=records, total=len(records))


@router.get("/earnings", response_model=EarningsResponse, summary="Caller's ad coin totals")
def watch_earnings(
    caller: Caller = Depends(get_caller),
    service: AdWatchService = Depends(get_watch_service),
) -> EarningsResponse:
    return EarningsResponse(**service.earnings(caller.user_id, caller.email))
