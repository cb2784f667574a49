"""Root of the payment engine exception hierarchy."""


class PaymentError(Exception):
    """Base class for every error raised by the payment engine."""
