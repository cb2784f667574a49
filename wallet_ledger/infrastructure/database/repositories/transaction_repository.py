"""SQLAlchemy implementation for ledger transactions"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Sequence

from sqlalchemy import desc, or_, select

from wallet_ledger.db.models import Transaction, utc_now
from wallet_ledger.modules.common.repository import AsyncRepository


class SqlTransactionRepository(AsyncRepository[Transaction]):
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
    ) -> Transaction:
        tx = Transaction(
            sender_id=sender_id,
            recipient_id=recipient_id,
            amount=amount,
            platform_fee=platform_fee,
            currency=currency,
            status=status,
            funding_source=funding_source,
            payment_method=payment_method,
            provider_payment_id=provider_payment_id,
            description=description,
            idempotency_key=idempotency_key,
            transaction_date=transaction_date or utc_now(),
        )
        return await self.add(tx)

    async def get_transaction(self, transaction_id: int) -> Transaction | None:
        return await self.session.get(Transaction, transaction_id)

    async def list_for_owner(
        self,
        owner_id: str,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[Transaction]:
        stmt = (
            select(Transaction)
            .where(or_(Transaction.sender_id == owner_id, Transaction.recipient_id == owner_id))
            .order_by(desc(Transaction.transaction_date), desc(Transaction.id))
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return result.scalars().all()
