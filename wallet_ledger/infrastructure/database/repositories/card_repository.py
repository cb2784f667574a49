"""SQLAlchemy implementation for the card vault"""

from __future__ import annotations

from typing import Sequence

from sqlalchemy import select

from wallet_ledger.db.models import UserCard
from wallet_ledger.modules.common.repository import AsyncRepository


class SqlUserCardRepository(AsyncRepository[UserCard]):
    async def create(
        self,
        *,
        owner_id: str,
        last4: str,
        exp_month: int,
        exp_year: int,
        brand: str | None,
        purpose: str,
        provider_token: str,
        provider_customer_id: str | None,
    ) -> UserCard:
        card = UserCard(
            owner_id=owner_id,
            last4=last4,
            exp_month=exp_month,
            exp_year=exp_year,
            brand=brand,
            purpose=purpose,
            provider_token=provider_token,
            provider_customer_id=provider_customer_id,
            is_active=True,
        )
        return await self.add(card)

    async def get(self, card_id: int) -> UserCard | None:
        return await self.session.get(UserCard, card_id)

    async def list_by_owner(self, owner_id: str, include_inactive: bool = False) -> Sequence[UserCard]:
        stmt = select(UserCard).where(UserCard.owner_id == owner_id)
        if not include_inactive:
            stmt = stmt.where(UserCard.is_active.is_(True))
        stmt = stmt.order_by(UserCard.id)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def find_customer_id(self, owner_id: str) -> str | None:
        stmt = (
            select(UserCard.provider_customer_id)
            .where(UserCard.owner_id == owner_id, UserCard.provider_customer_id.is_not(None))
            .order_by(UserCard.id)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def deactivate(self, card_id: int) -> UserCard | None:
        card = await self.get(card_id)
        if card is None:
            return None
        card.is_active = False
        await self.session.flush()
        return card
