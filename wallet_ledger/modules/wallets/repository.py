"""Repository protocol for wallet operations."""

from __future__ import annotations

from decimal import Decimal
from typing import Protocol, Sequence

from wallet_ledger.db.models import Wallet as WalletModel


class WalletRepository(Protocol):
    async def get_wallet(self, owner_id: str) -> WalletModel | None:
        ...

    async def create_wallet(self, owner_id: str, currency: str) -> WalletModel:
        ...

    async def compare_and_set(self, owner_id: str, expected_version: int, balance: Decimal) -> bool:
        ...

    async def list_owner_ids(self) -> Sequence[str]:
        ...
