"""Subscription sign-up charged against the owner's stored paying card."""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wallet_ledger.core.config import Settings
from wallet_ledger.core.money import to_money
from wallet_ledger.db.models import Subscription as SubscriptionModel, utc_now
from wallet_ledger.infrastructure.database.repositories.subscription_repository import SqlSubscriptionRepository
from wallet_ledger.modules.cards import CardVault, UserCardPurpose
from wallet_ledger.modules.ledger import TransactionRecord
from wallet_ledger.modules.payments import ChargeRequest, PaymentService

from .exceptions import PaymentMethodRequiredError, UnsupportedPaymentMethodError
from .models import BillingFrequency, Subscription, SubscriptionOutcome, SubscriptionRequest

logger = logging.getLogger(__name__)

# Gateways that can charge the card ids kept by the card vault.
STORED_CARD_GATEWAYS = frozenset({"stripe"})


def add_months(start: date, months: int) -> date:
    """Shift ``start`` by whole months, clamping to the last day when needed."""
    index = start.month - 1 + months
    year, month = start.year + index // 12, index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


@dataclass(slots=True)
class SubscriptionService:
    session_factory: async_sessionmaker[AsyncSession]
    payments: PaymentService
    settings: Settings

    async def create_subscription(self, owner_id: str, request: SubscriptionRequest) -> SubscriptionOutcome:
        if request.payment_method.strip().lower() not in STORED_CARD_GATEWAYS:
            raise UnsupportedPaymentMethodError(
                f"Payment method {request.payment_method!r} cannot charge a stored card"
            )
        async with self.session_factory() as session:
            card = await CardVault.with_session(session).get_active_card(owner_id, UserCardPurpose.PAYING)
        if card is None:
            raise PaymentMethodRequiredError(f"Owner {owner_id} has no active paying card")

        amount = to_money(request.amount)
        frequency = BillingFrequency(request.billing_frequency)
        start_date = utc_now().date()
        next_billing_date = add_months(start_date, frequency.months)
        created: dict[str, int] = {}

        async def write_subscription(session: AsyncSession, transaction: TransactionRecord) -> None:
            model = await SqlSubscriptionRepository(session).create(
                owner_id=owner_id,
                amount=amount,
                payment_method=request.payment_method,
                payment_type=request.payment_type,
                billing_frequency=frequency.value,
                transaction_id=transaction.id,
                start_date=start_date,
                next_billing_date=next_billing_date,
            )
            created["id"] = model.id

        outcome = await self.payments.capture_payment(
            ChargeRequest(
                sender_id=owner_id,
                recipient_id=self.settings.platform_account_id,
                amount=amount,
                gateway=request.payment_method,
                payment_id=card.provider_token,
                customer_ref=card.provider_customer_id,
                platform_fee=amount,
                description=request.description or f"{request.payment_type} subscription ({frequency.value})",
                reference=f"subscription:{request.payment_type}:{start_date.isoformat()}",
                idempotency_key=request.idempotency_key,
            ),
            on_commit=write_subscription,
        )
        if not outcome.result.is_completed:
            logger.info("Subscription charge for %s did not complete (%s)", owner_id, outcome.status.value)
            return SubscriptionOutcome(subscription_id=0, transaction_id=0, result=outcome.result)

        subscription_id: Optional[int] = created.get("id")
        if subscription_id is None:
            # Duplicate request: the subscription was written by the first call.
            async with self.session_factory() as session:
                model = await SqlSubscriptionRepository(session).get_by_transaction(outcome.transaction_id)
            subscription_id = model.id if model else 0

        logger.info(
            "Subscription %s created for %s: %s %s, next billing %s",
            subscription_id,
            owner_id,
            amount,
            frequency.value,
            next_billing_date.isoformat(),
        )
        return SubscriptionOutcome(
            subscription_id=subscription_id,
            transaction_id=outcome.transaction_id,
            result=outcome.result,
        )

    async def get_subscriptions(self, owner_id: str) -> list[Subscription]:
        async with self.session_factory() as session:
            models = await SqlSubscriptionRepository(session).list_by_owner(owner_id)
        return [self._to_domain(model) for model in models]

    @staticmethod
    def _to_domain(model: SubscriptionModel) -> Subscription:
        return Subscription(
            id=model.id,
            owner_id=model.owner_id,
            amount=to_money(model.amount),
            payment_method=model.payment_method,
            payment_type=model.payment_type,
            billing_frequency=BillingFrequency(model.billing_frequency),
            transaction_id=model.transaction_id,
            start_date=model.start_date,
            next_billing_date=model.next_billing_date,
            is_active=model.is_active,
            created_at=model.created_at,
        )
