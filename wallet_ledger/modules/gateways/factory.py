"""Registration table mapping gateway keys to provider implementations."""

from __future__ import annotations

from collections.abc import Mapping

from .exceptions import UnknownGatewayError
from .gateway import PaymentGateway


class PaymentGatewayFactory:
    """Resolves a gateway key such as ``"Stripe"`` to its gateway.

    Keys are matched case-insensitively. Providers are registered during
    start-up; lookups afterwards are plain dictionary reads.
    """

    def __init__(self, gateways: Mapping[str, PaymentGateway] | None = None) -> None:
        self._gateways: dict[str, PaymentGateway] = {}
        self._names: dict[str, str] = {}
        for key, gateway in (gateways or {}).items():
            self.register(key, gateway)

    def register(self, key: str, gateway: PaymentGateway) -> None:
        normalized = key.strip().lower()
        if not normalized:
            raise ValueError("gateway key must not be empty")
        self._gateways[normalized] = gateway
        self._names[normalized] = key.strip()

    def get_gateway(self, key: str) -> PaymentGateway:
        gateway = self._gateways.get((key or "").strip().lower())
        if gateway is None:
            raise UnknownGatewayError(key)
        return gateway

    def keys(self) -> list[str]:
        return list(self._names.values())

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.strip().lower() in self._gateways
