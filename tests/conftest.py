"""
Shared fixtures: in-memory and on-disk ledger databases, settings and fake providers.
"""
from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from wallet_ledger.core.config import LedgerSettings, Settings
from wallet_ledger.infrastructure.database.session import build_session_factory, init_db
from wallet_ledger.modules.cards import InvalidTokenError, ProviderCard
from wallet_ledger.modules.gateways import PaymentGatewayFactory, PaymentResult, PaymentResultStatus
from wallet_ledger.modules.payments import PaymentService


class FakeGateway:
    """Provider double: completes any positive capture unless told otherwise."""

    def __init__(self) -> None:
        self.captures: list[tuple[str, Optional[str], Decimal]] = []
        self.currencies: list[Optional[str]] = []
        self.delay = 0.0
        self.fault: Optional[Exception] = None
        self.declined_tokens: set[str] = set()

    async def create_payment(self, amount, currency, return_url, cancel_url) -> PaymentResult:
        return PaymentResult(
            payment_id="pay_123",
            status=PaymentResultStatus.PENDING,
            approval_url="https://pay.example/approve/pay_123",
        )

    async def capture_payment(self, payment_id, customer_ref, amount, description, currency=None) -> PaymentResult:
        self.captures.append((payment_id, customer_ref, amount))
        self.currencies.append(currency)
        # Yield so concurrent callers interleave around the provider call.
        await asyncio.sleep(self.delay)
        if self.fault is not None:
            raise self.fault
        if amount <= 0 or payment_id in self.declined_tokens:
            return PaymentResult.failed()
        return PaymentResult(payment_id=f"charge_{len(self.captures)}", status=PaymentResultStatus.COMPLETED)


class FakeCardProvider:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str, Optional[str]]] = []

    async def attach_card(self, owner_id, token, customer_id=None) -> ProviderCard:
        self.calls.append((owner_id, token, customer_id))
        if token.startswith("tok_bad"):
            raise InvalidTokenError("No such token")
        return ProviderCard(
            card_id=f"card_{len(self.calls)}",
            customer_id=customer_id or f"cus_{owner_id}",
            last4="4242",
            exp_month=12,
            exp_year=2030,
            brand="Visa",
        )


class RecordingNotifier:
    def __init__(self) -> None:
        self.delivered = []

    async def payment_completed(self, transaction) -> None:
        self.delivered.append(transaction)


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        environment="test",
        ledger=LedgerSettings(retry_wait_seconds=0, dedup_window_seconds=0),
    )


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def file_engine(tmp_path):
    """On-disk database: every session gets its own connection."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def file_session_factory(file_engine):
    return build_session_factory(file_engine)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def gateways(gateway):
    return PaymentGatewayFactory({"Stripe": gateway})


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def card_provider():
    return FakeCardProvider()


@pytest_asyncio.fixture
async def payment_service(session_factory, gateways, settings, notifier):
    service = PaymentService(
        session_factory=session_factory,
        gateways=gateways,
        settings=settings,
        notifier=notifier,
    )
    yield service
    await service.wait_for_notifications()
