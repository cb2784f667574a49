"""Card vault domain exports"""

from .exceptions import CardError, CardNotFoundError, CardProviderUnavailableError, InvalidTokenError
from .models import ProviderCard, UserCard, UserCardPurpose
from .provider import CardTokenProvider
from .service import CardVault

__all__ = [
    "CardError",
    "CardNotFoundError",
    "CardProviderUnavailableError",
    "CardTokenProvider",
    "CardVault",
    "InvalidTokenError",
    "ProviderCard",
    "UserCard",
    "UserCardPurpose",
]
