from .base import LedgerRepository
from .memory import InMemoryLedgerRepository
from .retrying import RetryingLedgerRepository
from .sql import SqlLedgerRepository

__all__ = [
    "LedgerRepository",
    "InMemoryLedgerRepository",
    "RetryingLedgerRepository",
    "SqlLedgerRepository",
]
