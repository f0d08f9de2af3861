"""
Public ad listing.
"""
from fastapi import APIRouter, Depends

from adrewards.api.deps import Caller, get_caller, get_watch_service
from adrewards.models.schemas.ads import AdListResponse
from adrewards.services.watch_service import AdWatchService

router = APIRouter()


@router.get(
    "",
    response_model=AdListResponse,
    summary="List watchable ads",
    description="Syndicated ads followed by active curated ads, annotated with the caller's 24h watch state",
)
def list_ads(
    caller: Caller = Depends(get_caller),
    service: AdWatchService = Depends(get_watch_service),
) -> AdListResponse:
    return AdListResponse(**service.get_ads(caller.user_id, caller.email))
