"""Domain models for stored payment instruments."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class UserCardPurpose(str, Enum):
    PAYING = "Paying"
    RECEIVING = "Receiving"


@dataclass(slots=True)
class UserCard:
    id: int
    owner_id: str
    last4: str
    exp_month: int
    exp_year: int
    brand: Optional[str]
    purpose: UserCardPurpose
    provider_token: str
    provider_customer_id: Optional[str]
    is_active: bool = True
    created_at: Optional[datetime] = None


@dataclass(frozen=True, slots=True)
class ProviderCard:
    """Durable card details returned by the provider after a token exchange."""

    card_id: str
    customer_id: str
    last4: str
    exp_month: int
    exp_year: int
    brand: Optional[str] = None
