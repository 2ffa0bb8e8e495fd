"""Server-side Paystack client: transaction initialization and verification."""
import logging
from typing import Any, Dict, Optional

import httpx

from enielexpress.core.config import Settings

logger = logging.getLogger(__name__)


class PaymentGatewayError(Exception):
    """Raised when Paystack is unreachable or answers with ``status: false``."""

    def __init__(self, message: str, payload: Optional[dict] = None):
        super().__init__(message)
        self.payload = payload


def to_minor_units(amount: float) -> int:
    """Paystack amounts are in kobo/cents."""
    return int(round(amount * 100))


class PaystackClient:
    def __init__(self, secret_key: str, base_url: str = "https://api.paystack.co",
                 callback_url: Optional[str] = None, timeout: float = 10.0):
        self.callback_url = callback_url
        self._http = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            headers={"Authorization": f"Bearer {secret_key}"},
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "PaystackClient":
        return cls(settings.PAYSTACK_SECRET_KEY, settings.PAYSTACK_BASE_URL, settings.PAYSTACK_CALLBACK_URL)

    def _unwrap(self, resp: httpx.Response) -> Dict[str, Any]:
        try:
            body = resp.json()
        except ValueError:
            raise PaymentGatewayError(f"Unexpected Paystack response ({resp.status_code})")
        if not body.get("status"):
            logger.warning("Paystack request to %s rejected: %s", resp.request.url.path, body.get("message"))
            raise PaymentGatewayError(body.get("message") or "Paystack request failed", payload=body)
        return body.get("data") or {}

    def initialize(self, email: str, amount: float, reference: str, currency: str = "USD") -> Dict[str, Any]:
        payload = {
            "email": email,
            "amount": to_minor_units(amount),
            "reference": reference,
            "currency": currency,
        }
        if self.callback_url:
            payload["callback_url"] = self.callback_url
        try:
            resp = self._http.post("/transaction/initialize", json=payload)
        except httpx.RequestError as e:
            raise PaymentGatewayError(f"Paystack unavailable: {e}")
        return self._unwrap(resp)

    def verify(self, reference: str) -> Dict[str, Any]:
        try:
            resp = self._http.get(f"/transaction/verify/{reference}")
        except httpx.RequestError as e:
            raise PaymentGatewayError(f"Paystack unavailable: {e}")
        return self._unwrap(resp)

    def close(self) -> None:
        self._http.close()
