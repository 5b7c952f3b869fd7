"""
Error taxonomy for the consultation booking flow.

Every error carries the HTTP status and message it is rendered with at the
request boundary (see the handler registered in main.py).
"""

from typing import Optional


class StorefrontError(Exception):
    """Base class for errors rendered as {"success": false, ...} responses"""

    status_code = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None, **extra):
        self.message = message or self.message
        self.extra = extra
        super().__init__(self.message)

    def to_payload(self) -> dict:
        payload = {"success": False, "message": self.message}
        payload.update({k: v for k, v in self.extra.items() if v is not None})
        return payload


class ConfigurationError(StorefrontError):
    """Payment gateway credentials are missing"""

    status_code = 500
    message = "Payment gateway is not configured. Please add Razorpay keys to .env file."


class ValidationError(StorefrontError):
    """Required booking fields are missing or out of range"""

    status_code = 400
    message = "Validation failed"

    def __init__(self, fields: list[str], message: Optional[str] = None, **extra):
        self.fields = list(fields)
        if message is None:
            message = f"Invalid or missing field(s): {', '.join(self.fields)}"
        super().__init__(message, fields=self.fields, **extra)


class SignatureMismatchError(StorefrontError):
    status_code = 400
    message = "Payment verification failed"


class PaymentGatewayError(StorefrontError):
    """Gateway call failed, returned an error or timed out"""

    status_code = 502
    message = "Error creating payment order"


class PersistenceError(StorefrontError):
    """Payment verified but the booking could not be saved; needs reconciliation"""

    status_code = 500
    message = "Payment verified but failed to save consultation. Please contact support."

    def __init__(self, order_id: str, payment_id: str, error: Optional[str] = None):
        self.order_id = order_id
        self.payment_id = payment_id
        super().__init__(orderId=order_id, paymentId=payment_id, error=error)


class NotFoundError(StorefrontError):
    status_code = 404
    message = "Consultation not found"


class SideEffectError(StorefrontError):
    """Calendar or email failure. Logged by the dispatcher, never sent to callers."""

    status_code = 500
    message = "Side effect failed"
