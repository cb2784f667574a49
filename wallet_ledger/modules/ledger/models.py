"""Domain models for ledger entries and payment attempts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from wallet_ledger.core.money import ZERO


class TransactionStatus(str, Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"
    FAILED = "Failed"
    REFUNDED = "Refunded"


class FundingSource(str, Enum):
    # Charged on an external instrument; the sender's wallet is untouched.
    EXTERNAL = "External"
    # Peer-to-peer transfer debited from the sender's wallet.
    WALLET = "Wallet"


class AttemptStatus(str, Enum):
    INITIATED = "Initiated"
    COMPLETED = "Completed"
    FAILED = "Failed"


class AttemptKind(str, Enum):
    CHARGE = "charge"
    TRANSFER = "transfer"


@dataclass(slots=True)
class TransactionRecord:
    id: int
    sender_id: str
    recipient_id: str
    amount: Decimal
    platform_fee: Decimal
    currency: str
    status: TransactionStatus
    funding_source: FundingSource
    payment_method: str
    transaction_date: datetime
    provider_payment_id: Optional[str] = None
    description: Optional[str] = None

    @property
    def net_amount(self) -> Decimal:
        """Amount credited to the recipient once the platform keeps its fee."""
        return self.amount - self.platform_fee

    def balance_effect(self, owner_id: str) -> Decimal:
        """Signed change this entry makes to ``owner_id``'s wallet."""
        if self.status is not TransactionStatus.COMPLETED:
            return ZERO
        if owner_id == self.recipient_id:
            return self.net_amount
        if owner_id == self.sender_id and self.funding_source is FundingSource.WALLET:
            return -self.amount
        return ZERO


@dataclass(slots=True)
class PaymentAttemptRecord:
    idempotency_key: str
    kind: AttemptKind
    sender_id: str
    recipient_id: str
    amount: Decimal
    platform_fee: Decimal
    currency: str
    status: AttemptStatus
    provider_payment_id: Optional[str] = None
    transaction_id: Optional[int] = None
    created_at: Optional[datetime] = None
