"""
Operator endpoints: curated catalog management and ledger export.
"""
import time
from typing import List

from fastapi import APIRouter, Depends, Request, Response, status

from adrewards.api.deps import get_watch_service, require_admin
from adrewards.models.schemas.ads import AdCreate, AdRead, AdUpdate
from adrewards.models.schemas.watch import AdminViewRecord
from adrewards.services.watch_service import AdWatchService
from adrewards.utils import get_logger, log_performance

router = APIRouter(dependencies=[Depends(require_admin)])
logger = get_logger(__name__)


@router.get("/ads", response_model=List[AdRead], summary="List every persisted ad")
def list_all_ads(service: AdWatchService = Depends(get_watch_service)) -> List[AdRead]:
    return [AdRead(**ad.to_dict()) for ad in service.list_all_ads()]


@router.post(
    "/ads",
    response_model=AdRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a curated ad",
)
def create_ad(
    payload: AdCreate,
    request: Request,
    service: AdWatchService = Depends(get_watch_service),
) -> AdRead:
    request_id = request.headers.get("X-Request-ID", "unknown")
    logger.info("Ad creation started", title=payload.title, request_id=request_id)
    ad = service.create_ad(**payload.model_dump())
    logger.info("Ad created", ad_id=ad.id, request_id=request_id)
    return AdRead(**ad.to_dict())


@router.patch("/ads/{ad_id}", response_model=AdRead, summary="Update a curated ad")
def update_ad(
    ad_id: str,
    payload: AdUpdate,
    service: AdWatchService = Depends(get_watch_service),
) -> AdRead:
    ad = service.update_ad(ad_id, payload.model_dump(exclude_unset=True))
    return AdRead(**ad.to_dict())


@router.delete("/ads/{ad_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a curated ad")
def delete_ad(ad_id: str, service: AdWatchService = Depends(get_watch_service)) -> Response:
    service.delete_ad(ad_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/views", response_model=List[AdminViewRecord], summary="Export the view ledger")
def list_view_records(service: AdWatchService = Depends(get_watch_service)) -> List[AdminViewRecord]:
    start_time = time.time()
    records = service.list_view_records()
    log_performance("admin_list_view_records", (time.time() - start_time) * 1000, {"record_count": len(records)})
    return [AdminViewRecord(**r) for r in records]
