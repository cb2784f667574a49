"""Shared abstractions used across domain modules."""

from .exceptions import PaymentError
from .repository import AsyncRepository

__all__ = ["AsyncRepository", "PaymentError"]
