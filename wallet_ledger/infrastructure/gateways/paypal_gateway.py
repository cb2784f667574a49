"""PayPal Orders v2 implementation of the payment gateway interface."""

from __future__ import annotations

import asyncio
import logging
import time
from decimal import Decimal
from typing import Any, Optional

import httpx

from wallet_ledger.core.money import to_money
from wallet_ledger.modules.gateways import PaymentResult, PaymentResultStatus, TransportFault

logger = logging.getLogger(__name__)

PROVIDER = "PayPal"

# Refresh the OAuth token this many seconds before PayPal expires it.
TOKEN_EXPIRY_MARGIN = 60


class PayPalGateway:
    def __init__(
        self,
        client_id: str,
        client_secret: str,
        base_url: str = "https://api-m.sandbox.paypal.com",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._token: Optional[str] = None
        self._token_expires_at = 0.0
        self._token_lock = asyncio.Lock()

    async def create_payment(
        self,
        amount: Decimal,
        currency: str,
        return_url: str,
        cancel_url: str,
    ) -> PaymentResult:
        body = {
            "intent": "CAPTURE",
            "purchase_units": [
                {"amount": {"currency_code": currency.upper(), "value": f"{to_money(amount):.2f}"}}
            ],
            "application_context": {"return_url": return_url, "cancel_url": cancel_url},
        }
        response = await self._send("POST", "/v2/checkout/orders", body)
        if response.status_code not in (200, 201):
            logger.warning("PayPal rejected order: status=%s body=%s", response.status_code, response.text[:200])
            return PaymentResult.failed()

        data = response.json()
        approval_url = next(
            (link.get("href") for link in data.get("links", []) if link.get("rel") in ("approve", "payer-action")),
            None,
        )
        return PaymentResult(
            payment_id=data.get("id"),
            status=PaymentResultStatus.PENDING,
            approval_url=approval_url,
        )

    async def capture_payment(
        self,
        payment_id: str,
        customer_ref: Optional[str],
        amount: Decimal,
        description: Optional[str],
        currency: Optional[str] = None,
    ) -> PaymentResult:
        # The order fixed amount, currency and payer when it was approved.
        response = await self._send("POST", f"/v2/checkout/orders/{payment_id}/capture", {})
        if response.status_code not in (200, 201):
            logger.warning(
                "PayPal rejected capture of %s: status=%s body=%s",
                payment_id,
                response.status_code,
                response.text[:200],
            )
            return PaymentResult.failed()

        data = response.json()
        if data.get("status") == "COMPLETED":
            return PaymentResult(payment_id=data.get("id", payment_id), status=PaymentResultStatus.COMPLETED)
        logger.info("PayPal order %s captured as %s", payment_id, data.get("status"))
        return PaymentResult.failed()

    async def _send(self, method: str, path: str, body: dict[str, Any]) -> httpx.Response:
        async with httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
        ) as client:
            token = await self._access_token(client)
            try:
                response = await client.request(
                    method,
                    path,
                    json=body,
                    headers={"Authorization": f"Bearer {token}", "Content-Type": "application/json"},
                )
            except httpx.HTTPError as exc:
                raise TransportFault(PROVIDER, f"{method} {path} failed: {exc}") from exc

        if response.status_code >= 500:
            raise TransportFault(PROVIDER, f"{method} {path} returned HTTP {response.status_code}")
        return response

    async def _access_token(self, client: httpx.AsyncClient) -> str:
        async with self._token_lock:
            if self._token is not None and time.monotonic() < self._token_expires_at:
                return self._token

            try:
                response = await client.post(
                    "/v1/oauth2/token",
                    data={"grant_type": "client_credentials"},
                    auth=(self._client_id, self._client_secret),
                )
            except httpx.HTTPError as exc:
                raise TransportFault(PROVIDER, f"token request failed: {exc}") from exc
            if response.status_code != 200:
                # Nothing was charged, so a credential problem is reported like an outage.
                raise TransportFault(PROVIDER, f"token request returned HTTP {response.status_code}")

            data = response.json()
            self._token = data["access_token"]
            self._token_expires_at = time.monotonic() + max(int(data.get("expires_in", 0)) - TOKEN_EXPIRY_MARGIN, 0)
            logger.debug("Fetched PayPal access token valid for %ss", data.get("expires_in"))
            return self._token
