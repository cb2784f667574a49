"""Simple dependency container for wiring ledger services."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wallet_ledger.core.config import Settings, get_settings
from wallet_ledger.core.logging_config import configure_logging
from wallet_ledger.infrastructure.database.session import get_session_factory
from wallet_ledger.infrastructure.gateways import build_card_provider, build_gateway_factory
from wallet_ledger.modules.cards import CardTokenProvider, CardVault
from wallet_ledger.modules.gateways import PaymentGatewayFactory
from wallet_ledger.modules.notifications import LoggingNotifier, Notifier
from wallet_ledger.modules.payments import PaymentService
from wallet_ledger.modules.subscriptions import SubscriptionService


@dataclass(slots=True)
class ApplicationContainer:
    settings: Settings
    session_factory: async_sessionmaker[AsyncSession]
    gateways: PaymentGatewayFactory
    notifier: Notifier
    payments: PaymentService
    subscriptions: SubscriptionService
    card_provider: Optional[CardTokenProvider] = None

    def card_vault(self, session: AsyncSession) -> CardVault:
        """Card vault bound to the caller's unit of work."""
        return CardVault.with_session(session, self.card_provider)


def build_container(
    settings: Settings,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    gateways: Optional[PaymentGatewayFactory] = None,
    card_provider: Optional[CardTokenProvider] = None,
    notifier: Optional[Notifier] = None,
) -> ApplicationContainer:
    session_factory = session_factory or get_session_factory()
    gateways = gateways if gateways is not None else build_gateway_factory(settings)
    card_provider = card_provider or build_card_provider(settings)
    notifier = notifier or LoggingNotifier()

    payments = PaymentService(
        session_factory=session_factory,
        gateways=gateways,
        settings=settings,
        notifier=notifier,
    )
    return ApplicationContainer(
        settings=settings,
        session_factory=session_factory,
        gateways=gateways,
        notifier=notifier,
        payments=payments,
        subscriptions=SubscriptionService(session_factory, payments, settings),
        card_provider=card_provider,
    )


@lru_cache()
def get_container() -> ApplicationContainer:
    settings = get_settings()
    configure_logging(settings)
    return build_container(settings)


__all__ = ["ApplicationContainer", "build_container", "get_container"]
