"""Post-commit payment notifications."""

from __future__ import annotations

import logging
from typing import Protocol

from wallet_ledger.modules.ledger.models import TransactionRecord

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    async def payment_completed(self, transaction: TransactionRecord) -> None:
        ...


class LoggingNotifier:
    """Default notifier: records completed payments in the application log."""

    async def payment_completed(self, transaction: TransactionRecord) -> None:
        logger.info(
            "Payment %s completed: %s -> %s %s %s (fee %s)",
            transaction.id,
            transaction.sender_id,
            transaction.recipient_id,
            transaction.amount,
            transaction.currency,
            transaction.platform_fee,
        )
