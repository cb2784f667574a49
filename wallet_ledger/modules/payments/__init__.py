"""Payment orchestration exports"""

from .exceptions import IdempotencyKeyMismatchError, InvalidPaymentRequestError, SelfTransferError
from .idempotency import fingerprint
from .models import ChargeOutcome, ChargeRequest, PaymentHistory, PaymentRequest, TransferRequest
from .service import WALLET_PAYMENT_METHOD, OnCommit, PaymentService

__all__ = [
    "ChargeOutcome",
    "ChargeRequest",
    "IdempotencyKeyMismatchError",
    "InvalidPaymentRequestError",
    "OnCommit",
    "PaymentHistory",
    "PaymentRequest",
    "PaymentService",
    "SelfTransferError",
    "TransferRequest",
    "WALLET_PAYMENT_METHOD",
    "fingerprint",
]
