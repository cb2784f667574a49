"""Capability interface implemented once per payment provider."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional, Protocol

from .models import PaymentResult


class PaymentGateway(Protocol):
    """Wraps a single provider's payment and capture API.

    Implementations hold no per-call state. Business outcomes come back as a
    ``PaymentResult``; only transport problems raise (``TransportFault``).
    """

    async def create_payment(
        self,
        amount: Decimal,
        currency: str,
        return_url: str,
        cancel_url: str,
    ) -> PaymentResult:
        ...

    async def capture_payment(
        self,
        payment_id: str,
        customer_ref: Optional[str],
        amount: Decimal,
        description: Optional[str],
        currency: Optional[str] = None,
    ) -> PaymentResult:
        """Charge ``amount`` in ``currency``; ``None`` means the gateway default."""
        ...
