"""Card vault specific exceptions."""

from wallet_ledger.modules.common.exceptions import PaymentError


class CardError(PaymentError):
    """Base class for card vault errors."""


class InvalidTokenError(CardError):
    """Raised when the provider rejects a one-time card token."""


class CardNotFoundError(CardError):
    """Raised when the requested card does not exist for the owner."""


class CardProviderUnavailableError(CardError):
    """Raised when no card provider is configured for saving cards."""
