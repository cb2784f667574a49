"""Provider adapters and their registration from settings."""

from __future__ import annotations

import logging
from typing import Optional

from wallet_ledger.core.config import Settings
from wallet_ledger.modules.cards import CardTokenProvider
from wallet_ledger.modules.gateways import PaymentGatewayFactory

from .paypal_gateway import PayPalGateway
from .stripe_cards import StripeCardProvider
from .stripe_gateway import StripeGateway

logger = logging.getLogger(__name__)


def build_gateway_factory(settings: Settings) -> PaymentGatewayFactory:
    """Register every provider whose credentials are configured."""
    factory = PaymentGatewayFactory()
    if settings.stripe.enabled:
        factory.register(
            "Stripe",
            StripeGateway(
                api_key=settings.stripe.api_key,
                product_name=settings.stripe.product_name,
                currency=settings.currency,
            ),
        )
    if settings.paypal.enabled:
        factory.register(
            "PayPal",
            PayPalGateway(
                client_id=settings.paypal.client_id,
                client_secret=settings.paypal.client_secret,
                base_url=settings.paypal.base_url,
                timeout=settings.paypal.timeout,
            ),
        )
    if not factory.keys():
        logger.warning("No payment gateways configured; captures will be refused")
    return factory


def build_card_provider(settings: Settings) -> Optional[CardTokenProvider]:
    if not settings.stripe.enabled:
        return None
    return StripeCardProvider(settings.stripe.api_key)


__all__ = [
    "PayPalGateway",
    "StripeCardProvider",
    "StripeGateway",
    "build_card_provider",
    "build_gateway_factory",
]
