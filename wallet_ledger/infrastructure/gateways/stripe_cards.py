"""Stripe-backed card token exchange for the card vault."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import stripe

from wallet_ledger.modules.cards import InvalidTokenError, ProviderCard
from wallet_ledger.modules.gateways import TransportFault

from .stripe_gateway import PROVIDER, TRANSIENT_ERRORS

logger = logging.getLogger(__name__)


class StripeCardProvider:
    def __init__(self, api_key: str) -> None:
        self._api_key = api_key

    async def attach_card(
        self,
        owner_id: str,
        token: str,
        customer_id: Optional[str] = None,
    ) -> ProviderCard:
        try:
            if customer_id is None:
                customer = await asyncio.to_thread(
                    stripe.Customer.create,
                    api_key=self._api_key,
                    metadata={"owner_id": owner_id},
                )
                customer_id = customer.id
                logger.info("Created Stripe customer %s for owner %s", customer_id, owner_id)
            card = await asyncio.to_thread(
                stripe.Customer.create_source,
                customer_id,
                api_key=self._api_key,
                source=token,
            )
        except (stripe.CardError, stripe.InvalidRequestError) as exc:
            raise InvalidTokenError(exc.user_message or str(exc)) from exc
        except TRANSIENT_ERRORS as exc:
            raise TransportFault(PROVIDER, str(exc)) from exc

        return ProviderCard(
            card_id=card.id,
            customer_id=customer_id,
            last4=card.last4,
            exp_month=int(card.exp_month),
            exp_year=int(card.exp_year),
            brand=getattr(card, "brand", None),
        )
