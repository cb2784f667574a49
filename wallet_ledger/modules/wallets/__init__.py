"""Wallet domain exports"""

from .exceptions import (
    InsufficientFundsError,
    LedgerUnavailableError,
    LedgerWriteConflict,
    WalletCurrencyMismatchError,
    WalletError,
)
from .models import WalletReconciliation, WalletSnapshot
from .service import WalletService

__all__ = [
    "InsufficientFundsError",
    "LedgerUnavailableError",
    "LedgerWriteConflict",
    "WalletCurrencyMismatchError",
    "WalletError",
    "WalletReconciliation",
    "WalletService",
    "WalletSnapshot",
]
