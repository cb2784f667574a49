"""SQLAlchemy-backed repository implementations."""

from .attempt_repository import SqlPaymentAttemptRepository
from .card_repository import SqlUserCardRepository
from .subscription_repository import SqlSubscriptionRepository
from .transaction_repository import SqlTransactionRepository
from .wallet_repository import SqlWalletRepository

__all__ = [
    "SqlPaymentAttemptRepository",
    "SqlSubscriptionRepository",
    "SqlTransactionRepository",
    "SqlUserCardRepository",
    "SqlWalletRepository",
]
