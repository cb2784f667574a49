"""Request and outcome types for payment orchestration."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from wallet_ledger.core.money import ZERO, MoneyLike, to_money
from wallet_ledger.modules.gateways.models import PaymentResult, PaymentResultStatus
from wallet_ledger.modules.ledger.models import TransactionRecord

from .exceptions import InvalidPaymentRequestError, SelfTransferError


def _positive_amount(value: MoneyLike) -> Decimal:
    try:
        amount = to_money(value)
    except ValueError as exc:
        raise InvalidPaymentRequestError(str(exc)) from exc
    if amount <= ZERO:
        raise InvalidPaymentRequestError(f"Amount must be positive, got {amount}")
    return amount


def _currency_code(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    code = value.strip().upper()
    if len(code) != 3 or not code.isalpha():
        raise InvalidPaymentRequestError(f"Currency must be a 3 letter ISO code, got {value!r}")
    return code


def _check_parties(sender_id: str, recipient_id: str) -> None:
    if not sender_id or not recipient_id:
        raise InvalidPaymentRequestError("Sender and recipient are required")
    if sender_id == recipient_id:
        raise SelfTransferError(f"Account {sender_id} cannot pay itself")


def _check_fee(platform_fee: Optional[MoneyLike], amount: Decimal) -> Optional[Decimal]:
    if platform_fee is None:
        return None
    try:
        fee = to_money(platform_fee)
    except ValueError as exc:
        raise InvalidPaymentRequestError(str(exc)) from exc
    if fee < ZERO or fee > amount:
        raise InvalidPaymentRequestError(f"Platform fee {fee} outside 0..{amount}")
    return fee


@dataclass(frozen=True, slots=True)
class PaymentRequest:
    amount: Decimal
    currency: str
    return_url: str
    cancel_url: str
    gateway: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", _positive_amount(self.amount))
        object.__setattr__(self, "currency", _currency_code(self.currency))
        if not self.gateway:
            raise InvalidPaymentRequestError("Gateway key is required")


@dataclass(frozen=True, slots=True)
class ChargeRequest:
    """Capture of an external instrument, credited to ``recipient_id``.

    ``platform_fee`` and ``currency`` fall back to the ledger settings when
    left as ``None``.
    """

    sender_id: str
    recipient_id: str
    amount: Decimal
    gateway: str
    payment_id: str
    customer_ref: Optional[str] = None
    platform_fee: Optional[Decimal] = None
    currency: Optional[str] = None
    description: Optional[str] = None
    reference: Optional[str] = None
    idempotency_key: Optional[str] = None

    def __post_init__(self) -> None:
        _check_parties(self.sender_id, self.recipient_id)
        amount = _positive_amount(self.amount)
        object.__setattr__(self, "amount", amount)
        object.__setattr__(self, "platform_fee", _check_fee(self.platform_fee, amount))
        object.__setattr__(self, "currency", _currency_code(self.currency))
        if not self.gateway:
            raise InvalidPaymentRequestError("Gateway key is required")
        if not self.payment_id:
            raise InvalidPaymentRequestError("Provider payment reference is required")


@dataclass(frozen=True, slots=True)
class TransferRequest:
    """Wallet-to-wallet movement; no provider is involved."""

    sender_id: str
    recipient_id: str
    amount: Decimal
    platform_fee: Optional[Decimal] = None
    currency: Optional[str] = None
    description: Optional[str] = None
    reference: Optional[str] = None
    idempotency_key: Optional[str] = None

    def __post_init__(self) -> None:
        _check_parties(self.sender_id, self.recipient_id)
        amount = _positive_amount(self.amount)
        object.__setattr__(self, "amount", amount)
        object.__setattr__(self, "platform_fee", _check_fee(self.platform_fee, amount))
        object.__setattr__(self, "currency", _currency_code(self.currency))


@dataclass(frozen=True, slots=True)
class ChargeOutcome:
    result: PaymentResult
    transaction: Optional[TransactionRecord] = None
    duplicate: bool = False

    @property
    def status(self) -> PaymentResultStatus:
        return self.result.status

    @property
    def transaction_id(self) -> int:
        return self.transaction.id if self.transaction else 0


@dataclass(slots=True)
class PaymentHistory:
    owner_id: str
    wallet_balance: Decimal
    currency: str
    transactions: list[TransactionRecord] = field(default_factory=list)
