"""Repository protocol for stored cards."""

from __future__ import annotations

from typing import Protocol, Sequence

from wallet_ledger.db.models import UserCard as UserCardModel


class UserCardRepository(Protocol):
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
    ) -> UserCardModel:
        ...

    async def get(self, card_id: int) -> UserCardModel | None:
        ...

    async def list_by_owner(self, owner_id: str, include_inactive: bool) -> Sequence[UserCardModel]:
        ...

    async def find_customer_id(self, owner_id: str) -> str | None:
        ...

    async def deactivate(self, card_id: int) -> UserCardModel | None:
        ...
