from .enums import AdKind, AdStatus, ApprovalStatus, RejectionReason
from .ads import AdRow
from .view_records import ViewRecordRow

__all__ = [
    "AdKind",
    "AdStatus",
    "ApprovalStatus",
    "RejectionReason",
    "AdRow",
    "ViewRecordRow",
]
