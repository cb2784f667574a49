"""Provider-side token exchange used by the card vault."""

from __future__ import annotations

from typing import Optional, Protocol

from .models import ProviderCard


class CardTokenProvider(Protocol):
    async def attach_card(
        self,
        owner_id: str,
        token: str,
        customer_id: Optional[str] = None,
    ) -> ProviderCard:
        """Exchange a one-time token for a card stored on the provider.

        Creates a provider customer when ``customer_id`` is ``None``. Raises
        ``InvalidTokenError`` when the provider rejects the token.
        """
        ...
