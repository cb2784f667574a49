"""SQLAlchemy implementation for wallet domain"""

from __future__ import annotations

from decimal import Decimal
from typing import Sequence

from sqlalchemy import select, update

from wallet_ledger.db.models import Wallet, utc_now
from wallet_ledger.modules.common.repository import AsyncRepository


class SqlWalletRepository(AsyncRepository[Wallet]):
    async def get_wallet(self, owner_id: str) -> Wallet | None:
        stmt = select(Wallet).where(Wallet.owner_id == owner_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def create_wallet(self, owner_id: str, currency: str) -> Wallet:
        # A concurrent insert surfaces as IntegrityError on flush.
        wallet = Wallet(owner_id=owner_id, currency=currency, balance=Decimal("0.00"), version=0)
        return await self.add(wallet)

    async def compare_and_set(self, owner_id: str, expected_version: int, balance: Decimal) -> bool:
        stmt = (
            update(Wallet)
            .where(Wallet.owner_id == owner_id, Wallet.version == expected_version)
            .values(balance=balance, version=expected_version + 1, updated_at=utc_now())
            .execution_options(synchronize_session="evaluate")
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def list_owner_ids(self) -> Sequence[str]:
        result = await self.session.execute(select(Wallet.owner_id).order_by(Wallet.owner_id))
        return result.scalars().all()
