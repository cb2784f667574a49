"""Ledger domain service: append-only transactions and attempt bookkeeping."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from wallet_ledger.db.models import PaymentAttempt as PaymentAttemptModel, Transaction as TransactionModel
from wallet_ledger.infrastructure.database.repositories.attempt_repository import SqlPaymentAttemptRepository
from wallet_ledger.infrastructure.database.repositories.transaction_repository import SqlTransactionRepository

from .models import (
    AttemptKind,
    AttemptStatus,
    FundingSource,
    PaymentAttemptRecord,
    TransactionRecord,
    TransactionStatus,
)
from .repository import PaymentAttemptRepository, TransactionRepository


@dataclass(slots=True)
class LedgerService:
    transactions: TransactionRepository
    attempts: PaymentAttemptRepository

    @classmethod
    def with_session(cls, session: AsyncSession) -> "LedgerService":
        return cls(SqlTransactionRepository(session), SqlPaymentAttemptRepository(session))

    async def record_transaction(
        self,
        *,
        sender_id: str,
        recipient_id: str,
        amount: Decimal,
        platform_fee: Decimal,
        currency: str,
        funding_source: FundingSource,
        payment_method: str,
        status: TransactionStatus = TransactionStatus.COMPLETED,
        provider_payment_id: Optional[str] = None,
        description: Optional[str] = None,
        idempotency_key: Optional[str] = None,
        transaction_date: Optional[datetime] = None,
    ) -> TransactionRecord:
        model = await self.transactions.add_transaction(
            sender_id=sender_id,
            recipient_id=recipient_id,
            amount=amount,
            platform_fee=platform_fee,
            currency=currency,
            status=TransactionStatus(status).value,
            funding_source=FundingSource(funding_source).value,
            payment_method=payment_method,
            provider_payment_id=provider_payment_id,
            description=description,
            idempotency_key=idempotency_key,
            transaction_date=transaction_date,
        )
        return self._to_transaction(model)

    async def get_transaction(self, transaction_id: int) -> TransactionRecord | None:
        model = await self.transactions.get_transaction(transaction_id)
        return self._to_transaction(model) if model else None

    async def list_for_owner(
        self,
        owner_id: str,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[TransactionRecord]:
        rows = await self.transactions.list_for_owner(owner_id, limit, offset)
        return [self._to_transaction(row) for row in rows]

    async def claim_attempt(
        self,
        *,
        idempotency_key: str,
        kind: AttemptKind,
        sender_id: str,
        recipient_id: str,
        amount: Decimal,
        platform_fee: Decimal,
        currency: str,
    ) -> PaymentAttemptRecord:
        """Insert the attempt row; ``IntegrityError`` means the key is taken."""
        model = await self.attempts.create(
            idempotency_key=idempotency_key,
            kind=AttemptKind(kind).value,
            sender_id=sender_id,
            recipient_id=recipient_id,
            amount=amount,
            platform_fee=platform_fee,
            currency=currency,
        )
        return self._to_attempt(model)

    async def get_attempt(self, idempotency_key: str) -> PaymentAttemptRecord | None:
        model = await self.attempts.get(idempotency_key)
        return self._to_attempt(model) if model else None

    async def mark_attempt(
        self,
        idempotency_key: str,
        status: AttemptStatus,
        *,
        transaction_id: Optional[int] = None,
        provider_payment_id: Optional[str] = None,
    ) -> PaymentAttemptRecord | None:
        model = await self.attempts.update_status(
            idempotency_key,
            status=AttemptStatus(status).value,
            transaction_id=transaction_id,
            provider_payment_id=provider_payment_id,
        )
        return self._to_attempt(model) if model else None

    async def release_attempt(self, idempotency_key: str) -> bool:
        return await self.attempts.delete(idempotency_key)

    @staticmethod
    def _to_transaction(model: TransactionModel) -> TransactionRecord:
        return TransactionRecord(
            id=model.id,
            sender_id=model.sender_id,
            recipient_id=model.recipient_id,
            amount=Decimal(model.amount),
            platform_fee=Decimal(model.platform_fee),
            currency=model.currency,
            status=TransactionStatus(model.status),
            funding_source=FundingSource(model.funding_source),
            payment_method=model.payment_method,
            transaction_date=model.transaction_date,
            provider_payment_id=model.provider_payment_id,
            description=model.description,
        )

    @staticmethod
    def _to_attempt(model: PaymentAttemptModel) -> PaymentAttemptRecord:
        return PaymentAttemptRecord(
            idempotency_key=model.idempotency_key,
            kind=AttemptKind(model.kind),
            sender_id=model.sender_id,
            recipient_id=model.recipient_id,
            amount=Decimal(model.amount),
            platform_fee=Decimal(model.platform_fee),
            currency=model.currency,
            status=AttemptStatus(model.status),
            provider_payment_id=model.provider_payment_id,
            transaction_id=model.transaction_id,
            created_at=model.created_at,
        )
