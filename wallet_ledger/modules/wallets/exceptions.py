"""Wallet domain specific exceptions."""

from wallet_ledger.modules.common.exceptions import PaymentError


class WalletError(PaymentError):
    """Base class for wallet errors."""


class LedgerWriteConflict(WalletError):
    """Raised when a wallet row changed between read and compare-and-swap."""

    def __init__(self, owner_id: str) -> None:
        super().__init__(f"Concurrent update on wallet {owner_id}")
        self.owner_id = owner_id


class LedgerUnavailableError(WalletError):
    """Raised when the ledger unit of work kept conflicting and retries ran out."""


class InsufficientFundsError(WalletError):
    """Raised when a wallet debit would take the balance below zero."""


class WalletCurrencyMismatchError(WalletError):
    """Raised when a movement uses a currency other than the wallet's."""
