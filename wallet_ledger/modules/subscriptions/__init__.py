"""Subscription domain exports"""

from .exceptions import PaymentMethodRequiredError, SubscriptionError, UnsupportedPaymentMethodError
from .models import BillingFrequency, Subscription, SubscriptionOutcome, SubscriptionRequest
from .service import SubscriptionService, add_months

__all__ = [
    "BillingFrequency",
    "PaymentMethodRequiredError",
    "Subscription",
    "SubscriptionError",
    "SubscriptionOutcome",
    "SubscriptionRequest",
    "SubscriptionService",
    "UnsupportedPaymentMethodError",
    "add_months",
]
