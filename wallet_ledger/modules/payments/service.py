"""Payment orchestration: gateway calls, ledger writes and wallet updates."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Awaitable, Callable, Optional, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from tenacity import AsyncRetrying, before_sleep_log, retry_if_exception_type, stop_after_attempt, wait_exponential

from wallet_ledger.core.config import Settings
from wallet_ledger.core.locks import KeyedLock
from wallet_ledger.core.money import ZERO, percent_of, to_money
from wallet_ledger.modules.gateways import (
    GatewayUnavailableError,
    PaymentGateway,
    PaymentGatewayFactory,
    PaymentResult,
    PaymentResultStatus,
    TransportFault,
    UnknownGatewayError,
)
from wallet_ledger.modules.ledger import (
    AttemptKind,
    AttemptStatus,
    FundingSource,
    LedgerService,
    TransactionRecord,
)
from wallet_ledger.modules.notifications import Notifier
from wallet_ledger.modules.wallets import (
    LedgerUnavailableError,
    LedgerWriteConflict,
    WalletReconciliation,
    WalletService,
)

from .exceptions import IdempotencyKeyMismatchError, InvalidPaymentRequestError
from .idempotency import fingerprint
from .models import ChargeOutcome, ChargeRequest, PaymentHistory, PaymentRequest, TransferRequest

logger = logging.getLogger(__name__)

OnCommit = Callable[[AsyncSession, TransactionRecord], Awaitable[None]]

WALLET_PAYMENT_METHOD = "Wallet"


@dataclass(frozen=True, slots=True)
class _Movement:
    key: str
    kind: AttemptKind
    sender_id: str
    recipient_id: str
    amount: Decimal
    platform_fee: Decimal
    currency: str
    funding_source: FundingSource
    payment_method: str
    description: Optional[str]


@dataclass(slots=True)
class PaymentService:
    """Single entry point for every money movement.

    A movement is claimed under its idempotency key, settled with the provider
    (external charges only) and then written as one database transaction: the
    ledger row, both wallet updates and the attempt status commit together or
    not at all.
    """

    session_factory: async_sessionmaker[AsyncSession]
    gateways: PaymentGatewayFactory
    settings: Settings
    notifier: Optional[Notifier] = None
    _locks: KeyedLock = field(default_factory=KeyedLock, init=False, repr=False)
    _pending: set[asyncio.Task] = field(default_factory=set, init=False, repr=False)

    async def create_payment(self, request: PaymentRequest) -> PaymentResult:
        gateway = self._resolve_gateway(request.gateway)
        result = await gateway.create_payment(
            request.amount,
            request.currency,
            request.return_url,
            request.cancel_url,
        )
        logger.info(
            "Created %s payment %s for %s %s (%s)",
            request.gateway,
            result.payment_id,
            request.amount,
            request.currency,
            result.status.value,
        )
        return result

    async def capture_payment(
        self,
        request: ChargeRequest,
        *,
        on_commit: Optional[OnCommit] = None,
    ) -> ChargeOutcome:
        """Capture an external payment and credit the recipient.

        ``on_commit`` runs inside the ledger transaction after the wallet
        updates, so rows it writes share the same all-or-nothing fate.
        """
        gateway = self._resolve_gateway(request.gateway)
        movement = self._movement(AttemptKind.CHARGE, request, FundingSource.EXTERNAL, request.gateway)
        timeout = self.settings.ledger.gateway_timeout_seconds

        async with self._locks.hold(movement.key):
            replayed = await self._claim(movement)
            if replayed is not None:
                return replayed

            try:
                await self._check_currencies(movement)
                result = await asyncio.wait_for(
                    gateway.capture_payment(
                        request.payment_id,
                        request.customer_ref,
                        movement.amount,
                        movement.description,
                        currency=movement.currency,
                    ),
                    timeout,
                )
            except asyncio.TimeoutError as exc:
                logger.warning("Capture %s via %s timed out after %ss", movement.key, request.gateway, timeout)
                await self._release(movement.key)
                raise TransportFault(request.gateway, f"capture timed out after {timeout}s") from exc
            except TransportFault as exc:
                logger.warning("Capture %s via %s hit a transport fault: %s", movement.key, request.gateway, exc)
                await self._release(movement.key)
                raise
            except (Exception, asyncio.CancelledError):
                await asyncio.shield(self._release(movement.key))
                raise

            if not result.is_completed:
                if result.status is not PaymentResultStatus.FAILED:
                    logger.warning(
                        "Capture %s via %s returned %s, treating as failed",
                        movement.key,
                        request.gateway,
                        result.status.value,
                    )
                    result = PaymentResult(payment_id=result.payment_id, status=PaymentResultStatus.FAILED)
                await self._mark_failed(movement.key, result.payment_id)
                logger.info("Capture %s via %s failed at the provider", movement.key, request.gateway)
                return ChargeOutcome(result=result)

            try:
                transaction = await self._commit(movement, result.payment_id, on_commit)
            except (Exception, asyncio.CancelledError):
                # The provider holds the money; keep the claim so the key cannot charge twice.
                logger.error(
                    "Charge %s settled at %s as %s but the ledger write failed; attempt parked",
                    movement.key,
                    request.gateway,
                    result.payment_id,
                )
                await asyncio.shield(self._park(movement.key, result.payment_id))
                raise

        self._notify(transaction)
        return ChargeOutcome(result=result, transaction=transaction)

    async def transfer(self, request: TransferRequest) -> ChargeOutcome:
        movement = self._movement(AttemptKind.TRANSFER, request, FundingSource.WALLET, WALLET_PAYMENT_METHOD)

        async with self._locks.hold(movement.key):
            replayed = await self._claim(movement)
            if replayed is not None:
                return replayed
            try:
                await self._check_currencies(movement)
                transaction = await self._commit(movement)
            except (Exception, asyncio.CancelledError):
                await asyncio.shield(self._release(movement.key))
                raise

        self._notify(transaction)
        return ChargeOutcome(
            result=PaymentResult(payment_id=None, status=PaymentResultStatus.COMPLETED),
            transaction=transaction,
        )

    async def get_payment_history(
        self,
        owner_id: str,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> PaymentHistory:
        async with self.session_factory() as session:
            wallet = await WalletService.with_session(session).get_wallet(owner_id)
            transactions = await LedgerService.with_session(session).list_for_owner(owner_id, limit, offset)
        return PaymentHistory(
            owner_id=owner_id,
            wallet_balance=wallet.balance if wallet else ZERO,
            currency=wallet.currency if wallet else self.settings.currency,
            transactions=transactions,
        )

    async def reconcile_wallet(self, owner_id: str) -> WalletReconciliation:
        async with self.session_factory() as session:
            transactions = await LedgerService.with_session(session).list_for_owner(owner_id)
            report = await WalletService.with_session(session).reconcile(owner_id, transactions)
        if not report.is_consistent:
            logger.warning(
                "Wallet %s drifted by %s (stored %s, ledger %s over %d transactions)",
                owner_id,
                report.drift,
                report.stored_balance,
                report.replayed_balance,
                report.transaction_count,
            )
        return report

    async def list_wallet_owners(self) -> list[str]:
        async with self.session_factory() as session:
            return await WalletService.with_session(session).list_owner_ids()

    async def wait_for_notifications(self) -> None:
        """Block until every scheduled notification has run."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    def _resolve_gateway(self, key: str) -> PaymentGateway:
        try:
            return self.gateways.get_gateway(key)
        except UnknownGatewayError as exc:
            logger.warning("Payment gateway %r is not registered (known: %s)", key, ", ".join(self.gateways.keys()))
            raise GatewayUnavailableError(key) from exc

    def _movement(
        self,
        kind: AttemptKind,
        request: Union[ChargeRequest, TransferRequest],
        funding_source: FundingSource,
        payment_method: str,
    ) -> _Movement:
        currency = request.currency or self.settings.currency
        platform_fee = request.platform_fee
        if platform_fee is None:
            platform_fee = percent_of(request.amount, self.settings.ledger.default_fee_percent)

        key = request.idempotency_key
        if key is None:
            key = fingerprint(
                kind.value,
                request.sender_id,
                request.recipient_id,
                request.amount,
                currency,
                request.reference,
                window_seconds=self.settings.ledger.dedup_window_seconds,
            )
        elif not key or len(key) > 64:
            raise InvalidPaymentRequestError("Idempotency key must be 1 to 64 characters")

        return _Movement(
            key=key,
            kind=kind,
            sender_id=request.sender_id,
            recipient_id=request.recipient_id,
            amount=request.amount,
            platform_fee=platform_fee,
            currency=currency,
            funding_source=funding_source,
            payment_method=payment_method,
            description=request.description,
        )

    async def _check_currencies(self, movement: _Movement) -> None:
        """Reject a movement whose wallets are kept in another currency."""
        owners = []
        if movement.recipient_id != self.settings.platform_account_id:
            owners.append(movement.recipient_id)
        if movement.funding_source is FundingSource.WALLET:
            owners.append(movement.sender_id)
        if not owners:
            return
        async with self.session_factory() as session:
            wallets = WalletService.with_session(session)
            for owner_id in owners:
                await wallets.check_currency(owner_id, movement.currency)

    async def _claim(self, movement: _Movement) -> ChargeOutcome | None:
        """Insert the attempt row, or return the outcome of the earlier one."""
        try:
            async with self.session_factory() as session, session.begin():
                await LedgerService.with_session(session).claim_attempt(
                    idempotency_key=movement.key,
                    kind=movement.kind,
                    sender_id=movement.sender_id,
                    recipient_id=movement.recipient_id,
                    amount=movement.amount,
                    platform_fee=movement.platform_fee,
                    currency=movement.currency,
                )
        except IntegrityError:
            return await self._replay(movement)
        logger.debug("Claimed %s attempt %s", movement.kind.value, movement.key)
        return None

    async def _replay(self, movement: _Movement) -> ChargeOutcome:
        async with self.session_factory() as session:
            ledger = LedgerService.with_session(session)
            attempt = await ledger.get_attempt(movement.key)
            if attempt is None:
                # Released by its owner between our insert and this read.
                logger.info("Attempt %s vanished while replaying, reporting pending", movement.key)
                return ChargeOutcome(
                    result=PaymentResult(payment_id=None, status=PaymentResultStatus.PENDING),
                    duplicate=True,
                )

            if (
                attempt.kind is not movement.kind
                or attempt.sender_id != movement.sender_id
                or attempt.recipient_id != movement.recipient_id
                or to_money(attempt.amount) != movement.amount
                or to_money(attempt.platform_fee) != movement.platform_fee
                or attempt.currency != movement.currency
            ):
                raise IdempotencyKeyMismatchError(movement.key)

            logger.info("Replaying %s attempt %s (%s)", attempt.kind.value, attempt.idempotency_key, attempt.status.value)
            if attempt.status is AttemptStatus.COMPLETED and attempt.transaction_id is not None:
                transaction = await ledger.get_transaction(attempt.transaction_id)
                return ChargeOutcome(
                    result=PaymentResult(
                        payment_id=transaction.provider_payment_id if transaction else attempt.provider_payment_id,
                        status=PaymentResultStatus.COMPLETED,
                    ),
                    transaction=transaction,
                    duplicate=True,
                )
            if attempt.status is AttemptStatus.FAILED:
                return ChargeOutcome(result=PaymentResult.failed(), duplicate=True)
            return ChargeOutcome(
                result=PaymentResult(payment_id=attempt.provider_payment_id, status=PaymentResultStatus.PENDING),
                duplicate=True,
            )

    async def _commit(
        self,
        movement: _Movement,
        provider_payment_id: Optional[str] = None,
        on_commit: Optional[OnCommit] = None,
    ) -> TransactionRecord:
        ledger_settings = self.settings.ledger
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(LedgerWriteConflict),
                stop=stop_after_attempt(ledger_settings.max_write_attempts),
                wait=wait_exponential(multiplier=ledger_settings.retry_wait_seconds, max=1),
                before_sleep=before_sleep_log(logger, logging.WARNING),
                reraise=True,
            ):
                with attempt:
                    transaction = await self._apply(movement, provider_payment_id, on_commit)
        except LedgerWriteConflict as exc:
            logger.error(
                "Ledger write for %s kept conflicting after %d attempts",
                movement.key,
                ledger_settings.max_write_attempts,
            )
            raise LedgerUnavailableError(f"Ledger busy, movement {movement.key} not recorded") from exc

        logger.info(
            "Committed transaction %s: %s -> %s %s %s (fee %s, %s)",
            transaction.id,
            movement.sender_id,
            movement.recipient_id,
            movement.amount,
            movement.currency,
            movement.platform_fee,
            movement.funding_source.value,
        )
        return transaction

    async def _apply(
        self,
        movement: _Movement,
        provider_payment_id: Optional[str],
        on_commit: Optional[OnCommit],
    ) -> TransactionRecord:
        async with self.session_factory() as session, session.begin():
            ledger = LedgerService.with_session(session)
            wallets = WalletService.with_session(session)

            transaction = await ledger.record_transaction(
                sender_id=movement.sender_id,
                recipient_id=movement.recipient_id,
                amount=movement.amount,
                platform_fee=movement.platform_fee,
                currency=movement.currency,
                funding_source=movement.funding_source,
                payment_method=movement.payment_method,
                provider_payment_id=provider_payment_id,
                description=movement.description,
                idempotency_key=movement.key,
            )
            if movement.recipient_id != self.settings.platform_account_id:
                await wallets.credit(movement.recipient_id, transaction.net_amount, movement.currency)
            if movement.funding_source is FundingSource.WALLET:
                await wallets.debit(movement.sender_id, movement.amount, movement.currency)
            await ledger.mark_attempt(
                movement.key,
                AttemptStatus.COMPLETED,
                transaction_id=transaction.id,
                provider_payment_id=provider_payment_id,
            )
            if on_commit is not None:
                await on_commit(session, transaction)
        return transaction

    async def _release(self, key: str) -> None:
        async with self.session_factory() as session, session.begin():
            await LedgerService.with_session(session).release_attempt(key)
        logger.debug("Released attempt %s", key)

    async def _mark_failed(self, key: str, provider_payment_id: Optional[str]) -> None:
        async with self.session_factory() as session, session.begin():
            await LedgerService.with_session(session).mark_attempt(
                key,
                AttemptStatus.FAILED,
                provider_payment_id=provider_payment_id,
            )

    async def _park(self, key: str, provider_payment_id: Optional[str]) -> None:
        async with self.session_factory() as session, session.begin():
            await LedgerService.with_session(session).mark_attempt(
                key,
                AttemptStatus.INITIATED,
                provider_payment_id=provider_payment_id,
            )

    def _notify(self, transaction: TransactionRecord) -> None:
        if self.notifier is None:
            return
        task = asyncio.create_task(self._deliver(transaction))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, transaction: TransactionRecord) -> None:
        assert self.notifier is not None
        try:
            await self.notifier.payment_completed(transaction)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Notifier failed for transaction %s", transaction.id)
