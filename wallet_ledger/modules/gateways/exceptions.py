"""Gateway domain specific exceptions."""

from wallet_ledger.modules.common.exceptions import PaymentError


class GatewayError(PaymentError):
    """Base class for payment gateway errors."""


class UnknownGatewayError(GatewayError, LookupError):
    """Raised when a gateway key matches no registered provider."""

    def __init__(self, key: str) -> None:
        super().__init__(f"No payment gateway registered for key {key!r}")
        self.key = key


class GatewayUnavailableError(UnknownGatewayError):
    """Raised by the payment service when the requested gateway cannot be resolved."""


class TransportFault(GatewayError):
    """Raised when a provider cannot be reached or fails server-side.

    Distinct from a business failure: nothing was recorded, so the caller may
    retry with the same idempotency key.
    """

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
