"""
Tests for payment orchestration.

Covers:
- payment creation and gateway resolution
- captures: fee split, failures, transport faults, idempotent replays
- wallet-to-wallet transfers
- payment history and ledger/wallet agreement
- ledger write conflicts and their retry budget
"""
import asyncio
from decimal import Decimal
from unittest.mock import patch

import pytest

from wallet_ledger.core.config import LedgerSettings, Settings
from wallet_ledger.modules.gateways import (
    GatewayUnavailableError,
    PaymentResultStatus,
    TransportFault,
    UnknownGatewayError,
)
from wallet_ledger.modules.ledger import AttemptStatus, FundingSource, LedgerService
from wallet_ledger.modules.payments import (
    ChargeRequest,
    IdempotencyKeyMismatchError,
    InvalidPaymentRequestError,
    PaymentRequest,
    PaymentService,
    SelfTransferError,
    TransferRequest,
)
from wallet_ledger.modules.wallets import (
    InsufficientFundsError,
    LedgerUnavailableError,
    LedgerWriteConflict,
    WalletCurrencyMismatchError,
    WalletService,
)


def charge(**overrides) -> ChargeRequest:
    fields = {
        "sender_id": "1",
        "recipient_id": "2",
        "amount": Decimal("100.00"),
        "gateway": "Stripe",
        "payment_id": "tok_visa",
        "platform_fee": Decimal("10.00"),
    }
    fields.update(overrides)
    return ChargeRequest(**fields)


async def load_attempt(session_factory, key):
    async with session_factory() as session:
        return await LedgerService.with_session(session).get_attempt(key)


async def load_wallet(session_factory, owner_id):
    async with session_factory() as session:
        return await WalletService.with_session(session).get_wallet(owner_id)


class TestCreatePayment:
    """Tests for PaymentService.create_payment"""

    @pytest.mark.asyncio
    async def test_returns_gateway_result_without_ledger_write(self, payment_service):
        """Creating a payment only starts the provider flow"""
        result = await payment_service.create_payment(
            PaymentRequest(
                amount=Decimal("25"),
                currency="usd",
                return_url="https://shop.example/ok",
                cancel_url="https://shop.example/cancel",
                gateway="Stripe",
            )
        )

        assert result.status is PaymentResultStatus.PENDING
        assert result.payment_id == "pay_123"
        assert result.approval_url.endswith("pay_123")
        history = await payment_service.get_payment_history("1")
        assert history.transactions == []

    @pytest.mark.asyncio
    async def test_unknown_gateway(self, payment_service):
        """Unregistered gateway keys are refused with both error spellings"""
        request = PaymentRequest(
            amount=Decimal("25"),
            currency="USD",
            return_url="https://shop.example/ok",
            cancel_url="https://shop.example/cancel",
            gateway="Bitcoin",
        )
        with pytest.raises(GatewayUnavailableError) as excinfo:
            await payment_service.create_payment(request)
        assert isinstance(excinfo.value, UnknownGatewayError)
        assert excinfo.value.key == "Bitcoin"

    def test_request_validation(self):
        """Non-positive amounts and malformed currencies are rejected up front"""
        with pytest.raises(InvalidPaymentRequestError):
            PaymentRequest(Decimal("0"), "USD", "https://a", "https://b", "Stripe")
        with pytest.raises(InvalidPaymentRequestError):
            PaymentRequest(Decimal("10"), "DOLLARS", "https://a", "https://b", "Stripe")
        request = PaymentRequest(Decimal("10.005"), "eur", "https://a", "https://b", "Stripe")
        assert request.amount == Decimal("10.01")
        assert request.currency == "EUR"


class TestCapturePayment:
    """Tests for PaymentService.capture_payment"""

    @pytest.mark.asyncio
    async def test_fee_is_split_from_principal(self, payment_service, session_factory):
        """Recipient is credited amount minus fee; the external sender is not debited"""
        outcome = await payment_service.capture_payment(charge(idempotency_key="order-1"))

        assert outcome.status is PaymentResultStatus.COMPLETED
        assert outcome.transaction_id > 0
        assert outcome.duplicate is False
        assert outcome.transaction.amount == Decimal("100.00")
        assert outcome.transaction.platform_fee == Decimal("10.00")
        assert outcome.transaction.funding_source is FundingSource.EXTERNAL
        assert outcome.transaction.payment_method == "Stripe"
        assert outcome.transaction.provider_payment_id == outcome.result.payment_id

        recipient = await load_wallet(session_factory, "2")
        assert recipient.balance == Decimal("90.00")
        assert await load_wallet(session_factory, "1") is None

        attempt = await load_attempt(session_factory, "order-1")
        assert attempt.status is AttemptStatus.COMPLETED
        assert attempt.transaction_id == outcome.transaction_id

    @pytest.mark.asyncio
    async def test_default_fee_from_settings(self, payment_service):
        """Without an explicit fee the configured percentage applies"""
        outcome = await payment_service.capture_payment(charge(amount=Decimal("50"), platform_fee=None))

        assert outcome.transaction.platform_fee == Decimal("5.00")
        history = await payment_service.get_payment_history("2")
        assert history.wallet_balance == Decimal("45.00")

    @pytest.mark.asyncio
    async def test_failed_capture_leaves_no_trace(self, payment_service, gateway, session_factory):
        """A declined capture writes no ledger row and moves no money"""
        gateway.declined_tokens.add("tok_declined")

        outcome = await payment_service.capture_payment(charge(payment_id="tok_declined", idempotency_key="k-1"))

        assert outcome.status is PaymentResultStatus.FAILED
        assert outcome.result.payment_id is None
        assert outcome.transaction_id == 0
        for owner in ("1", "2"):
            history = await payment_service.get_payment_history(owner)
            assert history.transactions == []
            assert history.wallet_balance == Decimal("0.00")
        attempt = await load_attempt(session_factory, "k-1")
        assert attempt.status is AttemptStatus.FAILED

    @pytest.mark.asyncio
    async def test_failed_attempt_is_terminal(self, payment_service, gateway):
        """Replaying a failed key does not call the provider again"""
        gateway.declined_tokens.add("tok_declined")
        request = charge(payment_id="tok_declined", idempotency_key="k-2")

        await payment_service.capture_payment(request)
        replay = await payment_service.capture_payment(request)

        assert replay.status is PaymentResultStatus.FAILED
        assert replay.duplicate is True
        assert len(gateway.captures) == 1

    @pytest.mark.asyncio
    async def test_transport_fault_releases_claim(self, payment_service, gateway, session_factory):
        """A transport fault propagates and the same key can be retried"""
        gateway.fault = TransportFault("Stripe", "connection reset")

        with pytest.raises(TransportFault):
            await payment_service.capture_payment(charge(idempotency_key="k-3"))

        assert await load_attempt(session_factory, "k-3") is None
        assert (await payment_service.get_payment_history("2")).transactions == []

        gateway.fault = None
        outcome = await payment_service.capture_payment(charge(idempotency_key="k-3"))
        assert outcome.status is PaymentResultStatus.COMPLETED
        assert outcome.duplicate is False

    @pytest.mark.asyncio
    async def test_unknown_gateway_records_nothing(self, payment_service, session_factory):
        """Gateway resolution happens before the attempt is claimed"""
        with pytest.raises(GatewayUnavailableError):
            await payment_service.capture_payment(charge(gateway="Venmo", idempotency_key="k-4"))

        assert await load_attempt(session_factory, "k-4") is None
        assert (await payment_service.get_payment_history("1")).transactions == []

    @pytest.mark.asyncio
    async def test_concurrent_duplicates_charge_once(self, payment_service, gateway, session_factory):
        """Two simultaneous captures with one key produce one transaction"""
        request = charge(idempotency_key="k-5")

        first, second = await asyncio.gather(
            payment_service.capture_payment(request),
            payment_service.capture_payment(request),
        )

        assert len(gateway.captures) == 1
        assert {first.duplicate, second.duplicate} == {True, False}
        assert first.transaction_id == second.transaction_id > 0
        assert second.status is PaymentResultStatus.COMPLETED
        history = await payment_service.get_payment_history("2")
        assert len(history.transactions) == 1
        assert history.wallet_balance == Decimal("90.00")

    @pytest.mark.asyncio
    async def test_duplicate_without_key_is_fingerprinted(self, payment_service, gateway):
        """Identical requests without a key collapse onto one movement"""
        first = await payment_service.capture_payment(charge(reference="invoice-7"))
        second = await payment_service.capture_payment(charge(reference="invoice-7"))
        third = await payment_service.capture_payment(charge(reference="invoice-8"))

        assert second.duplicate is True
        assert second.transaction_id == first.transaction_id
        assert third.duplicate is False
        assert len(gateway.captures) == 2

    @pytest.mark.asyncio
    async def test_key_reuse_for_other_movement(self, payment_service):
        """An idempotency key is bound to its parties and amount"""
        await payment_service.capture_payment(charge(idempotency_key="k-6"))

        with pytest.raises(IdempotencyKeyMismatchError):
            await payment_service.capture_payment(charge(idempotency_key="k-6", amount=Decimal("70")))

    @pytest.mark.asyncio
    async def test_key_reuse_with_other_fee_or_currency(self, payment_service, gateway):
        """Fee and currency are part of what a key was issued for"""
        await payment_service.capture_payment(charge(idempotency_key="k-8"))

        with pytest.raises(IdempotencyKeyMismatchError):
            await payment_service.capture_payment(charge(idempotency_key="k-8", platform_fee=Decimal("20.00")))
        with pytest.raises(IdempotencyKeyMismatchError):
            await payment_service.capture_payment(charge(idempotency_key="k-8", currency="EUR"))
        assert len(gateway.captures) == 1

    @pytest.mark.asyncio
    async def test_charge_currency_reaches_gateway(self, payment_service, gateway):
        """The provider charges in the same currency the ledger records"""
        outcome = await payment_service.capture_payment(charge(currency="eur"))

        assert outcome.transaction.currency == "EUR"
        assert gateway.currencies == ["EUR"]
        history = await payment_service.get_payment_history("2")
        assert history.currency == "EUR"

    @pytest.mark.asyncio
    async def test_wallet_currency_checked_before_charge(self, payment_service, gateway, session_factory):
        """A recipient wallet kept in another currency is refused before the provider is called"""
        await payment_service.capture_payment(charge())

        with pytest.raises(WalletCurrencyMismatchError):
            await payment_service.capture_payment(charge(sender_id="3", currency="EUR", idempotency_key="k-eur"))

        assert len(gateway.captures) == 1
        assert await load_attempt(session_factory, "k-eur") is None
        assert (await payment_service.get_payment_history("3")).transactions == []
        assert (await payment_service.get_payment_history("2")).wallet_balance == Decimal("90.00")


    def test_self_payment_rejected(self):
        """Sender and recipient must differ"""
        with pytest.raises(SelfTransferError):
            charge(recipient_id="1")

    def test_fee_above_amount_rejected(self):
        with pytest.raises(InvalidPaymentRequestError):
            charge(platform_fee=Decimal("100.01"))

    @pytest.mark.asyncio
    async def test_platform_recipient_has_no_wallet(self, payment_service, settings, session_factory):
        """Charges to the platform account are recorded without a wallet"""
        outcome = await payment_service.capture_payment(
            charge(recipient_id=settings.platform_account_id, platform_fee=Decimal("100.00"))
        )

        assert outcome.status is PaymentResultStatus.COMPLETED
        assert await load_wallet(session_factory, settings.platform_account_id) is None

    @pytest.mark.asyncio
    async def test_notifier_receives_completed_payment(self, payment_service, notifier):
        outcome = await payment_service.capture_payment(charge())
        await payment_service.wait_for_notifications()

        assert [tx.id for tx in notifier.delivered] == [outcome.transaction_id]

    @pytest.mark.asyncio
    async def test_notifier_failure_keeps_payment(self, session_factory, gateways, settings):
        """A broken notifier is logged and the payment stays committed"""

        class BrokenNotifier:
            async def payment_completed(self, transaction):
                raise RuntimeError("mail server down")

        service = PaymentService(session_factory, gateways, settings, BrokenNotifier())
        outcome = await service.capture_payment(charge())
        await service.wait_for_notifications()

        assert outcome.status is PaymentResultStatus.COMPLETED
        history = await service.get_payment_history("2")
        assert history.wallet_balance == Decimal("90.00")

    @pytest.mark.asyncio
    async def test_on_commit_failure_rolls_back_and_parks(self, payment_service, session_factory):
        """If the ledger unit fails after settlement the key stays claimed"""

        async def explode(session, transaction):
            raise RuntimeError("subscription insert failed")

        with pytest.raises(RuntimeError):
            await payment_service.capture_payment(charge(idempotency_key="k-7"), on_commit=explode)

        assert (await payment_service.get_payment_history("2")).transactions == []
        assert await load_wallet(session_factory, "2") is None
        attempt = await load_attempt(session_factory, "k-7")
        assert attempt.status is AttemptStatus.INITIATED
        assert attempt.provider_payment_id == "charge_1"


class TestTransfer:
    """Tests for PaymentService.transfer"""

    @pytest.mark.asyncio
    async def test_wallet_debit_and_credit(self, payment_service):
        """Internal transfers debit the full amount and credit amount minus fee"""
        await payment_service.capture_payment(charge(sender_id="3", recipient_id="1"))

        outcome = await payment_service.transfer(
            TransferRequest(sender_id="1", recipient_id="2", amount=Decimal("50"), platform_fee=Decimal("5"))
        )

        assert outcome.status is PaymentResultStatus.COMPLETED
        assert outcome.result.payment_id is None
        assert outcome.transaction.funding_source is FundingSource.WALLET
        assert outcome.transaction.payment_method == "Wallet"
        sender = await payment_service.get_payment_history("1")
        recipient = await payment_service.get_payment_history("2")
        assert sender.wallet_balance == Decimal("40.00")
        assert recipient.wallet_balance == Decimal("45.00")

    @pytest.mark.asyncio
    async def test_insufficient_funds(self, payment_service, session_factory):
        """An uncovered transfer writes nothing and frees its key"""
        request = TransferRequest(sender_id="1", recipient_id="2", amount=Decimal("10"), idempotency_key="t-1")

        with pytest.raises(InsufficientFundsError):
            await payment_service.transfer(request)

        assert await load_attempt(session_factory, "t-1") is None
        assert (await payment_service.get_payment_history("2")).transactions == []
        assert await load_wallet(session_factory, "2") is None

        await payment_service.capture_payment(charge(sender_id="3", recipient_id="1"))
        outcome = await payment_service.transfer(request)
        assert outcome.status is PaymentResultStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_duplicate_transfer_moves_money_once(self, payment_service):
        await payment_service.capture_payment(charge(sender_id="3", recipient_id="1"))
        request = TransferRequest(sender_id="1", recipient_id="2", amount=Decimal("20"), idempotency_key="t-2")

        first = await payment_service.transfer(request)
        second = await payment_service.transfer(request)

        assert second.duplicate is True
        assert second.transaction_id == first.transaction_id
        assert (await payment_service.get_payment_history("1")).wallet_balance == Decimal("70.00")

    @pytest.mark.asyncio
    async def test_currency_mismatch_frees_key(self, payment_service, session_factory):
        await payment_service.capture_payment(charge(sender_id="3", recipient_id="1"))
        request = TransferRequest(
            sender_id="1", recipient_id="2", amount=Decimal("20"), currency="EUR", idempotency_key="t-3"
        )

        with pytest.raises(WalletCurrencyMismatchError):
            await payment_service.transfer(request)

        assert await load_attempt(session_factory, "t-3") is None
        assert await load_wallet(session_factory, "2") is None
        assert (await payment_service.get_payment_history("1")).wallet_balance == Decimal("90.00")



class TestPaymentHistory:
    """Tests for PaymentService.get_payment_history"""

    @pytest.mark.asyncio
    async def test_two_sequential_transactions(self, payment_service):
        """Both parties see both transactions, newest first"""
        await payment_service.capture_payment(charge(amount=Decimal("50"), platform_fee=Decimal("5")))
        await payment_service.capture_payment(charge(amount=Decimal("100"), platform_fee=Decimal("10")))

        sender = await payment_service.get_payment_history("1")
        recipient = await payment_service.get_payment_history("2")

        assert len(sender.transactions) == 2
        assert len(recipient.transactions) == 2
        assert [tx.amount for tx in recipient.transactions] == [Decimal("100.00"), Decimal("50.00")]
        assert recipient.wallet_balance == Decimal("135.00")
        assert sender.wallet_balance == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_history_is_symmetric(self, payment_service):
        """Sender and recipient see the same rows and the same fee"""
        await payment_service.capture_payment(charge())

        sender = await payment_service.get_payment_history("1")
        recipient = await payment_service.get_payment_history("2")

        assert [(tx.id, tx.platform_fee) for tx in sender.transactions] == [
            (tx.id, tx.platform_fee) for tx in recipient.transactions
        ]

    @pytest.mark.asyncio
    async def test_pagination(self, payment_service):
        for amount in ("10", "20", "30"):
            await payment_service.capture_payment(charge(amount=Decimal(amount), platform_fee=Decimal("1")))

        page = await payment_service.get_payment_history("2", limit=2, offset=1)

        assert [tx.amount for tx in page.transactions] == [Decimal("20.00"), Decimal("10.00")]

    @pytest.mark.asyncio
    async def test_unknown_owner(self, payment_service):
        history = await payment_service.get_payment_history("nobody")

        assert history.transactions == []
        assert history.wallet_balance == Decimal("0.00")
        assert history.currency == "USD"

    @pytest.mark.asyncio
    async def test_balances_match_ledger_replay(self, payment_service):
        """Stored balances equal the ledger replay after mixed movements"""
        await payment_service.capture_payment(charge(sender_id="3", recipient_id="1"))
        await payment_service.capture_payment(charge(sender_id="3", recipient_id="2", amount=Decimal("40")))
        await payment_service.transfer(TransferRequest(sender_id="1", recipient_id="2", amount=Decimal("25")))
        await payment_service.transfer(TransferRequest(sender_id="2", recipient_id="1", amount=Decimal("12.34")))

        for owner in ("1", "2", "3"):
            report = await payment_service.reconcile_wallet(owner)
            assert report.is_consistent, owner
        assert (await payment_service.reconcile_wallet("1")).transaction_count == 3


class TestLedgerConflicts:
    """Tests for compare-and-swap conflicts inside the ledger unit"""

    @pytest.mark.asyncio
    async def test_conflict_is_retried(self, payment_service):
        """A lost wallet race is retried and committed once"""
        original = WalletService.credit
        calls = {"count": 0}

        async def flaky_credit(self, owner_id, amount, currency):
            calls["count"] += 1
            if calls["count"] == 1:
                raise LedgerWriteConflict(owner_id)
            return await original(self, owner_id, amount, currency)

        with patch.object(WalletService, "credit", flaky_credit):
            outcome = await payment_service.capture_payment(charge())

        assert calls["count"] == 2
        assert outcome.status is PaymentResultStatus.COMPLETED
        history = await payment_service.get_payment_history("2")
        assert len(history.transactions) == 1
        assert history.wallet_balance == Decimal("90.00")

    @pytest.mark.asyncio
    async def test_retries_exhausted(self, payment_service, settings, session_factory):
        """Persistent conflicts surface as LedgerUnavailableError with nothing written"""
        calls = {"count": 0}

        async def always_conflict(self, owner_id, amount, currency):
            calls["count"] += 1
            raise LedgerWriteConflict(owner_id)

        with patch.object(WalletService, "credit", always_conflict):
            with pytest.raises(LedgerUnavailableError):
                await payment_service.capture_payment(charge(idempotency_key="k-9"))

        assert calls["count"] == settings.ledger.max_write_attempts
        assert (await payment_service.get_payment_history("2")).transactions == []

        replay = await payment_service.capture_payment(charge(idempotency_key="k-9"))
        assert replay.status is PaymentResultStatus.PENDING
        assert replay.result.payment_id == "charge_1"
        assert replay.duplicate is True


class TestGatewayTimeouts:
    """Tests for slow providers and cancelled callers"""

    @pytest.mark.asyncio
    async def test_slow_gateway_is_transport_fault(self, session_factory, gateways, gateway):
        """A capture over the time limit frees its key like any transport fault"""
        settings = Settings(
            _env_file=None,
            environment="test",
            ledger=LedgerSettings(retry_wait_seconds=0, dedup_window_seconds=0, gateway_timeout_seconds=0.05),
        )
        service = PaymentService(session_factory, gateways, settings)
        gateway.delay = 1

        with pytest.raises(TransportFault):
            await service.capture_payment(charge(idempotency_key="k-slow"))

        assert await load_attempt(session_factory, "k-slow") is None
        gateway.delay = 0
        outcome = await service.capture_payment(charge(idempotency_key="k-slow"))
        assert outcome.status is PaymentResultStatus.COMPLETED
        assert outcome.duplicate is False

    @pytest.mark.asyncio
    async def test_cancelled_caller_frees_key(self, payment_service, gateway, session_factory):
        """A caller giving up mid-capture does not leave the key pending"""
        gateway.delay = 1

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(payment_service.capture_payment(charge(idempotency_key="k-cancel")), 0.05)

        assert await load_attempt(session_factory, "k-cancel") is None
        gateway.delay = 0
        outcome = await payment_service.capture_payment(charge(idempotency_key="k-cancel"))
        assert outcome.status is PaymentResultStatus.COMPLETED
        assert outcome.duplicate is False
        assert len((await payment_service.get_payment_history("2")).transactions) == 1


class TestConcurrentWriters:
    """Tests against an on-disk database, where every session has its own connection"""

    @pytest.mark.asyncio
    async def test_duplicates_across_service_instances(self, file_session_factory, gateways, gateway, settings):
        """Two workers without a shared in-process lock still charge a key once"""
        first_worker = PaymentService(file_session_factory, gateways, settings)
        second_worker = PaymentService(file_session_factory, gateways, settings)
        request = charge(idempotency_key="k-shared")

        outcomes = await asyncio.gather(
            first_worker.capture_payment(request),
            second_worker.capture_payment(request),
        )

        assert len(gateway.captures) == 1
        [original] = [outcome for outcome in outcomes if not outcome.duplicate]
        [replay] = [outcome for outcome in outcomes if outcome.duplicate]
        assert original.status is PaymentResultStatus.COMPLETED
        assert replay.status in (PaymentResultStatus.PENDING, PaymentResultStatus.COMPLETED)

        history = await second_worker.get_payment_history("2")
        assert len(history.transactions) == 1
        assert history.wallet_balance == Decimal("90.00")
        again = await second_worker.capture_payment(request)
        assert again.duplicate is True
        assert again.transaction_id == original.transaction_id

    @pytest.mark.asyncio
    async def test_concurrent_charges_to_one_wallet(self, file_session_factory, gateways, gateway, settings):
        """Distinct payments racing on one recipient all reach its balance"""
        workers = [PaymentService(file_session_factory, gateways, settings) for _ in range(5)]

        outcomes = await asyncio.gather(
            *(
                worker.capture_payment(
                    charge(
                        sender_id=f"payer-{n}",
                        amount=Decimal("10"),
                        platform_fee=Decimal("1"),
                        idempotency_key=f"k-race-{n}",
                    )
                )
                for n, worker in enumerate(workers)
            )
        )

        assert all(outcome.status is PaymentResultStatus.COMPLETED for outcome in outcomes)
        assert len({outcome.transaction_id for outcome in outcomes}) == 5
        assert len(gateway.captures) == 5
        history = await workers[0].get_payment_history("2")
        assert len(history.transactions) == 5
        assert history.wallet_balance == Decimal("45.00")
        assert (await workers[0].reconcile_wallet("2")).is_consistent
