"""
Razorpay API client for online order payments.

Provides:
- Creating gateway orders (one per payment attempt)
- Verifying checkout signatures returned to the browser
- Verifying webhook signatures
"""

import hashlib
import hmac
from dataclasses import dataclass
from typing import Optional

import httpx
from libs.common.config import get_settings
from libs.common.logging import get_logger
from services.store_service.exceptions import ProviderUnavailable

logger = get_logger(__name__)

settings = get_settings()

RAZORPAY_BASE_URL = "https://api.razorpay.com/v1"


@dataclass
class GatewayOrder:
    """Razorpay order created for a payment attempt."""

    id: str
    amount: int  # in paise
    currency: str
    receipt: str
    status: str  # created, attempted, paid


class RazorpayError(ProviderUnavailable):
    """Base exception for Razorpay API errors."""

    def __init__(
        self, message: str, http_status: int = None, response_data: dict = None
    ):
        super().__init__(message)
        self.http_status = http_status
        self.response_data = response_data or {}


def _hmac_sha256(secret: str, message: bytes) -> str:
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


class RazorpayClient:
    """Async client for the Razorpay Orders API."""

    def __init__(
        self,
        key_id: str = None,
        key_secret: str = None,
        webhook_secret: str = None,
        timeout: float = None,
    ):
        self.key_id = key_id or settings.RAZORPAY_KEY_ID
        self.key_secret = key_secret or settings.RAZORPAY_KEY_SECRET
        if not self.key_id or not self.key_secret:
            raise ValueError("RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET are required")
        self.webhook_secret = webhook_secret or settings.RAZORPAY_WEBHOOK_SECRET
        self.timeout = timeout or settings.RAZORPAY_TIMEOUT_SECONDS

    async def _request(
        self,
        method: str,
        endpoint: str,
        json_data: dict = None,
    ) -> dict:
        """Make an async request to Razorpay API."""
        url = f"{RAZORPAY_BASE_URL}{endpoint}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(
                    method=method,
                    url=url,
                    auth=(self.key_id, self.key_secret),
                    json=json_data,
                )
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Razorpay request failed: {e}")
            raise RazorpayError(message=f"Razorpay request failed: {e}") from e

        if not response.is_success:
            logger.error(f"Razorpay API error: {response.status_code} - {data}")
            error = data.get("error") or {}
            raise RazorpayError(
                message=error.get("description", "Unknown Razorpay error"),
                http_status=response.status_code,
                response_data=data,
            )

        return data

    # =========================================================================
    # Orders
    # =========================================================================

    async def create_order(
        self,
        amount_paise: int,
        currency: str,
        receipt: str,
        notes: Optional[dict] = None,
    ) -> GatewayOrder:
        """
        Create a Razorpay order that the checkout widget will pay against.

        Args:
            amount_paise: Amount in paise (rupees * 100)
            currency: ISO currency code, e.g. INR
            receipt: Our reference, unique per attempt (max 40 chars)
            notes: Key/value metadata echoed back in webhooks

        Returns:
            GatewayOrder with the Razorpay order id
        """
        data = await self._request(
            "POST",
            "/orders",
            json_data={
                "amount": amount_paise,
                "currency": currency,
                "receipt": receipt,
                "notes": notes or {},
            },
        )

        if not data.get("id"):
            raise RazorpayError(
                message="Razorpay order response had no id", response_data=data
            )

        return GatewayOrder(
            id=data["id"],
            amount=data.get("amount", amount_paise),
            currency=data.get("currency", currency),
            receipt=data.get("receipt", receipt),
            status=data.get("status", "created"),
        )

    # =========================================================================
    # Signatures
    # =========================================================================

    def verify_payment_signature(
        self, provider_order_id: str, payment_id: str, signature: str
    ) -> bool:
        """Check the checkout handler signature over ``order_id|payment_id``."""
        expected = _hmac_sha256(
            self.key_secret, f"{provider_order_id}|{payment_id}".encode()
        )
        return hmac.compare_digest(expected, signature or "")

    def verify_webhook_signature(self, raw_body: bytes, signature: str) -> bool:
        """Check the ``X-Razorpay-Signature`` header over the raw request body."""
        if not self.webhook_secret:
            logger.warning("Webhook received but RAZORPAY_WEBHOOK_SECRET is not set")
            return False
        expected = _hmac_sha256(self.webhook_secret, raw_body)
        return hmac.compare_digest(expected, signature or "")


def get_razorpay_client() -> RazorpayClient:
    """Get a RazorpayClient instance."""
    return RazorpayClient()
