"""SQLAlchemy implementation for payment attempts (idempotency records)"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import delete

from wallet_ledger.db.models import PaymentAttempt
from wallet_ledger.modules.common.repository import AsyncRepository


class SqlPaymentAttemptRepository(AsyncRepository[PaymentAttempt]):
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
    ) -> PaymentAttempt:
        # Primary key on idempotency_key: a duplicate claim fails the flush.
        attempt = PaymentAttempt(
            idempotency_key=idempotency_key,
            kind=kind,
            sender_id=sender_id,
            recipient_id=recipient_id,
            amount=amount,
            platform_fee=platform_fee,
            currency=currency,
            status="Initiated",
        )
        return await self.add(attempt)

    async def get(self, idempotency_key: str) -> PaymentAttempt | None:
        return await self.session.get(PaymentAttempt, idempotency_key)

    async def update_status(
        self,
        idempotency_key: str,
        *,
        status: str,
        transaction_id: int | None = None,
        provider_payment_id: str | None = None,
    ) -> PaymentAttempt | None:
        attempt = await self.get(idempotency_key)
        if attempt is None:
            return None
        attempt.status = status
        if transaction_id is not None:
            attempt.transaction_id = transaction_id
        if provider_payment_id is not None:
            attempt.provider_payment_id = provider_payment_id
        await self.session.flush()
        return attempt

    async def delete(self, idempotency_key: str) -> bool:
        stmt = delete(PaymentAttempt).where(PaymentAttempt.idempotency_key == idempotency_key)
        result = await self.session.execute(stmt)
        return result.rowcount > 0
