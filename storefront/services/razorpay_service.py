"""
Razorpay service - Order creation against the Razorpay REST API

The gateway has no server-side verification call for checkout callbacks;
signatures are checked locally (see payment_security.py).
"""

import logging
from typing import Optional

import httpx

from ..config import RAZORPAY_API_URL, RAZORPAY_KEY_ID, RAZORPAY_KEY_SECRET, RAZORPAY_TIMEOUT_SECONDS
from ..exceptions import ConfigurationError, PaymentGatewayError
from ..payment_security import verify_payment_signature

logger = logging.getLogger(__name__)


class RazorpayGateway:
    """Payment gateway client. Built once at startup and injected into routes."""

    def __init__(
        self,
        key_id: Optional[str],
        key_secret: Optional[str],
        api_url: str = RAZORPAY_API_URL,
        timeout: float = RAZORPAY_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.key_id = key_id
        self.key_secret = key_secret
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

        if not self.is_configured():
            logger.warning("RAZORPAY_KEY_ID/RAZORPAY_KEY_SECRET not set; payment endpoints will fail until configured")

    @classmethod
    def from_config(cls) -> "RazorpayGateway":
        return cls(RAZORPAY_KEY_ID, RAZORPAY_KEY_SECRET)

    def is_configured(self) -> bool:
        """Both the key id and key secret are present"""
        return bool(self.key_id) and bool(self.key_secret)

    def require_configured(self) -> None:
        if not self.is_configured():
            logger.error("❌ Razorpay keys missing - rejecting payment request")
            raise ConfigurationError()

    async def create_order(
        self,
        amount: int,
        receipt: str,
        currency: str = "INR",
        notes: Optional[dict] = None,
    ) -> dict:
        """
        Create a gateway order.

        Args:
            amount: Amount in the smallest currency unit (paise)
            receipt: Unique receipt token for this order
            currency: ISO currency code
            notes: Free-form key/value notes stored on the order

        Returns:
            The gateway order object (id, amount, currency, ...)

        Raises:
            ConfigurationError: keys are missing
            PaymentGatewayError: timeout, network error or non-2xx response
        """
        self.require_configured()

        payload = {"amount": amount, "currency": currency, "receipt": receipt}
        if notes:
            payload["notes"] = notes

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as http_client:
                response = await http_client.post(
                    f"{self.api_url}/orders",
                    json=payload,
                    auth=(self.key_id, self.key_secret),
                )
        except httpx.TimeoutException as e:
            logger.error(f"❌ Razorpay order creation timed out after {self.timeout}s (receipt={receipt})")
            raise PaymentGatewayError(error="Payment gateway timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"❌ Razorpay order creation failed (receipt={receipt}): {e}")
            raise PaymentGatewayError(error=str(e)) from e

        if response.status_code not in [200, 201]:
            error_detail = response.text
            try:
                error_detail = response.json().get("error", {}).get("description") or error_detail
            except ValueError:
                pass
            logger.error(f"❌ Razorpay order creation failed ({response.status_code}): {error_detail}")
            raise PaymentGatewayError(error=error_detail)

        order = response.json()
        if not order.get("id"):
            logger.error(f"❌ No order ID in Razorpay response: {order}")
            raise PaymentGatewayError(error="No order ID returned from payment gateway")

        logger.info(f"✅ Razorpay order created: {order['id']} ({order.get('amount')} {order.get('currency')})")
        return order

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        """Check a checkout callback signature with this account's key secret"""
        return verify_payment_signature(order_id, payment_id, signature, self.key_secret)
