"""Card vault: tokenized payment instruments per user."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from wallet_ledger.db.models import UserCard as UserCardModel
from wallet_ledger.infrastructure.database.repositories.card_repository import SqlUserCardRepository

from .exceptions import CardNotFoundError, CardProviderUnavailableError, InvalidTokenError
from .models import UserCard, UserCardPurpose
from .provider import CardTokenProvider
from .repository import UserCardRepository

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CardVault:
    repository: UserCardRepository
    provider: Optional[CardTokenProvider] = None

    @classmethod
    def with_session(
        cls,
        session: AsyncSession,
        provider: Optional[CardTokenProvider] = None,
    ) -> "CardVault":
        return cls(SqlUserCardRepository(session), provider)

    async def save_card(
        self,
        owner_id: str,
        provider_token: str,
        purpose: UserCardPurpose,
    ) -> UserCard:
        if not provider_token or not provider_token.strip():
            raise InvalidTokenError("Card token is empty")
        if self.provider is None:
            raise CardProviderUnavailableError("No card provider configured")

        purpose = UserCardPurpose(purpose)
        customer_id = await self.repository.find_customer_id(owner_id)
        card = await self.provider.attach_card(owner_id, provider_token.strip(), customer_id)
        model = await self.repository.create(
            owner_id=owner_id,
            last4=card.last4,
            exp_month=card.exp_month,
            exp_year=card.exp_year,
            brand=card.brand,
            purpose=purpose.value,
            provider_token=card.card_id,
            provider_customer_id=card.customer_id,
        )
        logger.info("Saved %s card ****%s for owner %s", purpose.value, card.last4, owner_id)
        return self._to_domain(model)

    async def get_user_cards(self, owner_id: str, include_inactive: bool = False) -> list[UserCard]:
        models = await self.repository.list_by_owner(owner_id, include_inactive)
        return [self._to_domain(model) for model in models]

    async def get_active_card(self, owner_id: str, purpose: UserCardPurpose) -> UserCard | None:
        cards = [
            card
            for card in await self.get_user_cards(owner_id)
            if card.purpose is UserCardPurpose(purpose)
        ]
        return cards[-1] if cards else None

    async def deactivate_card(self, owner_id: str, card_id: int) -> UserCard:
        current = await self.repository.get(card_id)
        if current is None or current.owner_id != owner_id:
            raise CardNotFoundError(card_id)
        model = await self.repository.deactivate(card_id)
        if model is None:
            raise CardNotFoundError(card_id)
        return self._to_domain(model)

    @staticmethod
    def _to_domain(model: UserCardModel) -> UserCard:
        return UserCard(
            id=model.id,
            owner_id=model.owner_id,
            last4=model.last4,
            exp_month=model.exp_month,
            exp_year=model.exp_year,
            brand=model.brand,
            purpose=UserCardPurpose(model.purpose),
            provider_token=model.provider_token,
            provider_customer_id=model.provider_customer_id,
            is_active=model.is_active,
            created_at=model.created_at,
        )
