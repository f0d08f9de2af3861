from .base import ErrorResponse
from .ads import AdRead, AnnotatedAdRead, AdListResponse, AdCreate, AdUpdate
from .watch import (
    StartWatchRequest,
    StartWatchResponse,
    CompleteWatchRequest,
    CompleteWatchResponse,
    ViewRecordRead,
    HistoryItem,
    HistoryResponse,
    EarningsResponse,
    AdminViewRecord,
)

__all__ = [
    # Base
    "ErrorResponse",

    # Ads
    "AdRead",
    "AnnotatedAdRead",
    "AdListResponse",
    "AdCreate",
    "AdUpdate",

    # Watch sessions / ledger
    "StartWatchRequest",
    "StartWatchResponse",
    "CompleteWatchRequest",
    "CompleteWatchResponse",
    "ViewRecordRead",
    "HistoryItem",
    "HistoryResponse",
    "EarningsResponse",
    "AdminViewRecord",
]
