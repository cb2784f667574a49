"""Ledger domain exports"""

from .models import (
    AttemptKind,
    AttemptStatus,
    FundingSource,
    PaymentAttemptRecord,
    TransactionRecord,
    TransactionStatus,
)
from .service import LedgerService

__all__ = [
    "AttemptKind",
    "AttemptStatus",
    "FundingSource",
    "LedgerService",
    "PaymentAttemptRecord",
    "TransactionRecord",
    "TransactionStatus",
]
