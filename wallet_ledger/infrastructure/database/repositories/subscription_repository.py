"""SQLAlchemy implementation for subscriptions"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Sequence

from sqlalchemy import select

from wallet_ledger.db.models import Subscription
from wallet_ledger.modules.common.repository import AsyncRepository


class SqlSubscriptionRepository(AsyncRepository[Subscription]):
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
    ) -> Subscription:
        subscription = Subscription(
            owner_id=owner_id,
            amount=amount,
            payment_method=payment_method,
            payment_type=payment_type,
            billing_frequency=billing_frequency,
            transaction_id=transaction_id,
            start_date=start_date,
            next_billing_date=next_billing_date,
            is_active=True,
        )
        return await self.add(subscription)

    async def get_by_transaction(self, transaction_id: int) -> Subscription | None:
        stmt = select(Subscription).where(Subscription.transaction_id == transaction_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_by_owner(self, owner_id: str) -> Sequence[Subscription]:
        stmt = select(Subscription).where(Subscription.owner_id == owner_id).order_by(Subscription.id)
        result = await self.session.execute(stmt)
        return result.scalars().all()
