"""Domain models for subscriptions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from wallet_ledger.modules.gateways.models import PaymentResult


class BillingFrequency(str, Enum):
    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    YEARLY = "Yearly"

    @property
    def months(self) -> int:
        return {"Monthly": 1, "Quarterly": 3, "Yearly": 12}[self.value]


@dataclass(frozen=True, slots=True)
class SubscriptionRequest:
    amount: Decimal
    payment_method: str
    payment_type: str
    billing_frequency: BillingFrequency = BillingFrequency.MONTHLY
    description: Optional[str] = None
    idempotency_key: Optional[str] = None


@dataclass(slots=True)
class Subscription:
    id: int
    owner_id: str
    amount: Decimal
    payment_method: str
    payment_type: str
    billing_frequency: BillingFrequency
    transaction_id: int
    start_date: date
    next_billing_date: date
    is_active: bool = True
    created_at: Optional[datetime] = None


@dataclass(frozen=True, slots=True)
class SubscriptionOutcome:
    subscription_id: int
    transaction_id: int
    result: PaymentResult

    @property
    def is_completed(self) -> bool:
        return self.result.is_completed
