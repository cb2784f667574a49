"""Domain models for wallet operations."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass(slots=True)
class WalletSnapshot:
    owner_id: str
    balance: Decimal
    currency: str
    version: int
    updated_at: Optional[datetime]


@dataclass(slots=True)
class WalletReconciliation:
    owner_id: str
    stored_balance: Decimal
    replayed_balance: Decimal
    transaction_count: int

    @property
    def drift(self) -> Decimal:
        return self.stored_balance - self.replayed_balance

    @property
    def is_consistent(self) -> bool:
        return self.drift == 0
