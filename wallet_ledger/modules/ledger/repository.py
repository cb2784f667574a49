"""Repository protocols for the ledger."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Protocol, Sequence

from wallet_ledger.db.models import PaymentAttempt as PaymentAttemptModel, Transaction as TransactionModel


class TransactionRepository(Protocol):
    async def add_transaction(
        self,
        *,
        sender_id: str,
        recipient_id: str,
        amount: Decimal,
        platform_fee: Decimal,
        currency: str,
        status: str,
        funding_source: str,
        payment_method: str,
        provider_payment_id: str | None,
        description: str | None,
        idempotency_key: str | None,
        transaction_date: datetime | None = None,
    ) -> TransactionModel:
        ...

    async def get_transaction(self, transaction_id: int) -> TransactionModel | None:
        ...

    async def list_for_owner(
        self,
        owner_id: str,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[TransactionModel]:
        ...


class PaymentAttemptRepository(Protocol):
    async def create(
        self,
        *,
        idempotency_key: str,
        kind: str,
        sender_id: str,
        recipient_id: str,
        amount: Decimal,
        platform_fee: Decimal,
        currency: str,
    ) -> PaymentAttemptModel:
        ...

    async def get(self, idempotency_key: str) -> PaymentAttemptModel | None:
        ...

    async def update_status(
        self,
        idempotency_key: str,
        *,
        status: str,
        transaction_id: int | None = None,
        provider_payment_id: str | None = None,
    ) -> PaymentAttemptModel | None:
        ...

    async def delete(self, idempotency_key: str) -> bool:
        ...
