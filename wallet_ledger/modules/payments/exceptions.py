"""Payment orchestration specific exceptions."""

from wallet_ledger.modules.common.exceptions import PaymentError


class InvalidPaymentRequestError(PaymentError, ValueError):
    """Raised when a payment request fails validation."""


class SelfTransferError(InvalidPaymentRequestError):
    """Raised when sender and recipient are the same account."""


class IdempotencyKeyMismatchError(PaymentError):
    """Raised when an idempotency key is reused for a different movement."""

    def __init__(self, idempotency_key: str) -> None:
        super().__init__(f"Idempotency key {idempotency_key!r} was issued for another payment")
        self.idempotency_key = idempotency_key
