"""Stripe implementation of the payment gateway interface."""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from typing import Optional

import stripe

from wallet_ledger.core.money import to_minor_units
from wallet_ledger.modules.gateways import PaymentResult, PaymentResultStatus, TransportFault

logger = logging.getLogger(__name__)

PROVIDER = "Stripe"

# Raised when Stripe could not be reached or failed on its side.
TRANSIENT_ERRORS = (stripe.APIConnectionError, stripe.RateLimitError, stripe.APIError)


class StripeGateway:
    """Checkout Sessions for redirect payments, Charges for stored cards.

    The SDK is synchronous, so every call runs in a worker thread. The API key
    is passed per request instead of through the ``stripe.api_key`` global.
    """

    def __init__(self, api_key: str, product_name: str = "Marketplace payment", currency: str = "USD") -> None:
        self._api_key = api_key
        self._product_name = product_name
        self._currency = currency.lower()

    async def create_payment(
        self,
        amount: Decimal,
        currency: str,
        return_url: str,
        cancel_url: str,
    ) -> PaymentResult:
        try:
            session = await asyncio.to_thread(
                stripe.checkout.Session.create,
                api_key=self._api_key,
                mode="payment",
                payment_method_types=["card"],
                line_items=[
                    {
                        "price_data": {
                            "currency": currency.lower(),
                            "product_data": {"name": self._product_name},
                            "unit_amount": to_minor_units(amount),
                        },
                        "quantity": 1,
                    }
                ],
                success_url=return_url,
                cancel_url=cancel_url,
            )
        except TRANSIENT_ERRORS as exc:
            raise TransportFault(PROVIDER, str(exc)) from exc
        except stripe.StripeError as exc:
            logger.warning("Stripe rejected checkout session: %s", exc)
            return PaymentResult.failed()

        return PaymentResult(
            payment_id=session.id,
            status=PaymentResultStatus.PENDING,
            approval_url=session.url,
        )

    async def capture_payment(
        self,
        payment_id: str,
        customer_ref: Optional[str],
        amount: Decimal,
        description: Optional[str],
        currency: Optional[str] = None,
    ) -> PaymentResult:
        params = {
            "amount": to_minor_units(amount),
            "currency": (currency or self._currency).lower(),
            "source": payment_id,
            "description": description,
        }
        if customer_ref:
            params["customer"] = customer_ref

        try:
            charge = await asyncio.to_thread(stripe.Charge.create, api_key=self._api_key, **params)
        except stripe.CardError as exc:
            logger.info("Stripe declined charge on %s: %s", payment_id, exc.code)
            return PaymentResult.failed()
        except TRANSIENT_ERRORS as exc:
            raise TransportFault(PROVIDER, str(exc)) from exc
        except stripe.StripeError as exc:
            logger.warning("Stripe rejected charge on %s: %s", payment_id, exc)
            return PaymentResult.failed()

        if charge.status == "succeeded":
            return PaymentResult(payment_id=charge.id, status=PaymentResultStatus.COMPLETED)
        logger.info("Stripe charge %s finished as %s", charge.id, charge.status)
        return PaymentResult.failed()
