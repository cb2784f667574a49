"""Wallet domain service"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from wallet_ledger.core.money import ZERO, to_money
from wallet_ledger.db.models import Wallet as WalletModel
from wallet_ledger.infrastructure.database.repositories.wallet_repository import SqlWalletRepository
from wallet_ledger.modules.ledger.models import TransactionRecord

from .exceptions import InsufficientFundsError, LedgerWriteConflict, WalletCurrencyMismatchError
from .models import WalletReconciliation, WalletSnapshot
from .repository import WalletRepository


@dataclass(slots=True)
class WalletService:
    """Balance mutations for a single unit of work.

    Every change goes through a compare-and-swap on the wallet version; a lost
    race raises ``LedgerWriteConflict`` and leaves the caller to roll back and
    retry the whole unit.
    """

    repository: WalletRepository

    @classmethod
    def with_session(cls, session: AsyncSession) -> "WalletService":
        return cls(SqlWalletRepository(session))

    async def get_wallet(self, owner_id: str) -> WalletSnapshot | None:
        wallet = await self.repository.get_wallet(owner_id)
        return self._to_snapshot(wallet) if wallet else None

    async def ensure_wallet(self, owner_id: str, currency: str) -> WalletSnapshot:
        return self._to_snapshot(await self._load_or_create(owner_id, currency))

    async def credit(self, owner_id: str, amount: Decimal, currency: str) -> WalletSnapshot:
        wallet = await self._load_or_create(owner_id, currency)
        return await self._swap(wallet, to_money(amount), currency)

    async def debit(self, owner_id: str, amount: Decimal, currency: str) -> WalletSnapshot:
        amount = to_money(amount)
        wallet = await self.repository.get_wallet(owner_id)
        available = to_money(wallet.balance) if wallet else ZERO
        if wallet is None or available < amount:
            raise InsufficientFundsError(
                f"Wallet {owner_id} holds {available} {currency}, {amount} required"
            )
        return await self._swap(wallet, -amount, currency)

    async def check_currency(self, owner_id: str, currency: str) -> None:
        """Refuse a movement an existing wallet could not book."""
        wallet = await self.repository.get_wallet(owner_id)
        if wallet is not None:
            self._check_currency(wallet, currency)

    async def list_owner_ids(self) -> list[str]:
        return list(await self.repository.list_owner_ids())

    @staticmethod
    def replay(owner_id: str, transactions: Iterable[TransactionRecord]) -> Decimal:
        """Rebuild a balance from ledger entries alone."""
        return to_money(sum((tx.balance_effect(owner_id) for tx in transactions), ZERO))

    async def reconcile(
        self,
        owner_id: str,
        transactions: Iterable[TransactionRecord],
    ) -> WalletReconciliation:
        entries = [tx for tx in transactions if owner_id in (tx.sender_id, tx.recipient_id)]
        wallet = await self.repository.get_wallet(owner_id)
        return WalletReconciliation(
            owner_id=owner_id,
            stored_balance=to_money(wallet.balance) if wallet else ZERO,
            replayed_balance=self.replay(owner_id, entries),
            transaction_count=len(entries),
        )

    async def _load_or_create(self, owner_id: str, currency: str) -> WalletModel:
        wallet = await self.repository.get_wallet(owner_id)
        if wallet is not None:
            return wallet
        try:
            return await self.repository.create_wallet(owner_id, currency)
        except IntegrityError as exc:
            # Another unit created it first; the session is unusable now.
            raise LedgerWriteConflict(owner_id) from exc

    async def _swap(self, wallet: WalletModel, delta: Decimal, currency: str) -> WalletSnapshot:
        self._check_currency(wallet, currency)
        expected_version = wallet.version
        new_balance = to_money(to_money(wallet.balance) + delta)
        if not await self.repository.compare_and_set(wallet.owner_id, expected_version, new_balance):
            raise LedgerWriteConflict(wallet.owner_id)
        return WalletSnapshot(
            owner_id=wallet.owner_id,
            balance=new_balance,
            currency=wallet.currency,
            version=expected_version + 1,
            updated_at=wallet.updated_at,
        )

    @staticmethod
    def _check_currency(wallet: WalletModel, currency: str) -> None:
        if wallet.currency != currency:
            raise WalletCurrencyMismatchError(
                f"Wallet {wallet.owner_id} is kept in {wallet.currency}, got {currency}"
            )

    @staticmethod
    def _to_snapshot(model: WalletModel) -> WalletSnapshot:
        return WalletSnapshot(
            owner_id=model.owner_id,
            balance=to_money(model.balance),
            currency=model.currency,
            version=model.version,
            updated_at=model.updated_at,
        )
