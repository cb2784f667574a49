"""Value objects returned by payment gateways."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class PaymentResultStatus(str, Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"
    FAILED = "Failed"


@dataclass(frozen=True, slots=True)
class PaymentResult:
    payment_id: Optional[str]
    status: PaymentResultStatus
    approval_url: Optional[str] = None

    @property
    def is_completed(self) -> bool:
        return self.status is PaymentResultStatus.COMPLETED

    @classmethod
    def failed(cls) -> "PaymentResult":
        return cls(payment_id=None, status=PaymentResultStatus.FAILED)
