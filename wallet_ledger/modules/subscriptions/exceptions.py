"""Subscription specific exceptions."""

from wallet_ledger.modules.common.exceptions import PaymentError


class SubscriptionError(PaymentError):
    """Base class for subscription errors."""


class PaymentMethodRequiredError(SubscriptionError):
    """Raised when the owner has no active paying card to charge."""


class UnsupportedPaymentMethodError(SubscriptionError, ValueError):
    """Raised when the payment method cannot charge a stored card."""
