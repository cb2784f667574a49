"""Repository protocol for subscriptions."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Protocol, Sequence

from wallet_ledger.db.models import Subscription as SubscriptionModel


class SubscriptionRepository(Protocol):
    async def create(
        self,
        *,
        owner_id: str,
        amount: Decimal,
        payment_method: str,
        payment_type: str,
        billing_frequency: str,
        transaction_id: int,
        start_date: date,
        next_billing_date: date,
    ) -> SubscriptionModel:
        ...

    async def get_by_transaction(self, transaction_id: int) -> SubscriptionModel | None:
        ...

    async def list_by_owner(self, owner_id: str) -> Sequence[SubscriptionModel]:
        ...
