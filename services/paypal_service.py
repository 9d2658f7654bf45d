"""
PayPal Orders v2 client: client-credentials token, then create or capture.
"""

import logging
import time
from typing import Any, Dict, Optional

import httpx

from config.settings import settings

logger = logging.getLogger(__name__)

SANDBOX_BASE_URL = "https://api-m.sandbox.paypal.com"
LIVE_BASE_URL = "https://api-m.paypal.com"


def _error(message: str, status: int = 400, details: Optional[str] = None) -> dict:
    result = {"error": message, "is_error": True, "status": status}
    if details:
        result["details"] = {"details": details}
    return result


def _error_details(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return response.text or None
    return body.get("error_description") or body.get("message")


class PayPalService:
    """
    Thin PayPal REST client for one restaurant's credentials.

    Args:
        client_id: PayPal REST app client id
        client_secret: PayPal REST app secret
        test_mode: Use the sandbox API when True
        transport: Optional httpx transport (tests pass httpx.MockTransport)
    """

    def __init__(self, client_id: str, client_secret: str, test_mode: bool = True,
                 transport: Optional[httpx.AsyncBaseTransport] = None, timeout: float = 20.0):
        self.client_id = client_id
        self.client_secret = client_secret
        self.base_url = SANDBOX_BASE_URL if test_mode else LIVE_BASE_URL
        self.transport = transport
        self.timeout = timeout

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, transport=self.transport, timeout=self.timeout)

    async def _access_token(self, client: httpx.AsyncClient) -> Optional[str]:
        response = await client.post(
            "/v1/oauth2/token",
            auth=(self.client_id, self.client_secret),
            data={"grant_type": "client_credentials"},
        )
        if response.status_code != 200:
            logger.error(f"PayPal authentication failed: {response.status_code} {_error_details(response)}")
            return None
        return response.json().get("access_token")

    async def create_order(self, amount: float, currency: str, metadata: Optional[Dict[str, Any]] = None) -> dict:
        if amount <= 0:
            return _error("Payment amount must be greater than 0")

        metadata = metadata or {}
        app_url = settings.frontend_url or "http://localhost:3000"
        payload = {
            "intent": "CAPTURE",
            "purchase_units": [{
                "amount": {"currency_code": currency.upper(), "value": f"{amount:.2f}"},
                "custom_id": str(metadata.get("order_id") or f"order_{int(time.time() * 1000)}"),
                "description": metadata.get("description") or "Restaurant order payment",
            }],
            "application_context": {
                "return_url": f"{app_url}/payment/success",
                "cancel_url": f"{app_url}/payment/cancel",
            },
        }

        try:
            async with self._client() as client:
                token = await self._access_token(client)
                if not token:
                    return _error("Failed to authenticate with PayPal", status=401)

                response = await client.post(
                    "/v2/checkout/orders",
                    json=payload,
                    headers={"Authorization": f"Bearer {token}"},
                )
        except httpx.HTTPError as e:
            logger.error(f"PayPal order creation failed: {e}", exc_info=True)
            return _error("Failed to create PayPal order", status=502, details=str(e))

        if response.status_code not in (200, 201):
            details = _error_details(response)
            logger.error(f"PayPal order creation error: {details}")
            return _error("Failed to create PayPal order", details=details)

        order = response.json()
        approval_url = next(
            (link.get("href") for link in order.get("links", []) if link.get("rel") == "approve"),
            None,
        )
        return {
            "data": {"order_id": order.get("id"), "approval_url": approval_url, "status": order.get("status")},
            "is_error": False,
        }

    async def capture_order(self, order_id: str) -> dict:
        try:
            async with self._client() as client:
                token = await self._access_token(client)
                if not token:
                    return _error("Failed to authenticate with PayPal", status=401)

                response = await client.post(
                    f"/v2/checkout/orders/{order_id}/capture",
                    headers={"Authorization": f"Bearer {token}", "Content-Type": "application/json"},
                )
        except httpx.HTTPError as e:
            logger.error(f"PayPal capture failed: {e}", exc_info=True)
            return _error("Failed to capture PayPal payment", status=502, details=str(e))

        if response.status_code not in (200, 201):
            details = _error_details(response)
            logger.error(f"PayPal capture error: {details}")
            return _error("Failed to capture PayPal payment", details=details)

        capture = response.json()
        amount = {}
        custom_id = None
        units = capture.get("purchase_units") or []
        if units:
            custom_id = units[0].get("custom_id")
            captures = (units[0].get("payments") or {}).get("captures") or []
            if captures:
                amount = captures[0].get("amount") or {}
                custom_id = captures[0].get("custom_id") or custom_id

        return {
            "data": {
                "capture_id": capture.get("id"),
                "status": capture.get("status"),
                "amount": amount.get("value"),
                "currency": amount.get("currency_code"),
                "custom_id": custom_id,
            },
            "is_error": False,
        }
