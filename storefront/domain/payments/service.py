"""
Booking pipeline - gateway order creation and payment verification

AwaitingPayment -> Verifying -> Verified -> Persisted. Side effects are
dispatched by the router after the response, never from here.
"""

import logging
import time
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...config import CONSULTATION_FEE_PAISE
from ...exceptions import PersistenceError, SignatureMismatchError, ValidationError
from ...models import ConsultationBooking
from ...services.razorpay_service import RazorpayGateway
from ..consultations.schemas import ConsultationInput
from ..consultations.service import ConsultationService, error_fields
from .schemas import CreateOrderRequest, VerifyPaymentRequest

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY = "INR"
NOTE_FIELDS = ("name", "email", "phone", "consultationType")
MAX_NOTE_LENGTH = 256


def generate_receipt() -> str:
    """Unique, time-derived receipt token"""
    return f"receipt_{int(time.time() * 1000)}"


def order_notes(consultation_data: Optional[dict[str, Any]]) -> dict[str, str]:
    """Gateway notes carrying the consultation contact details"""
    if not consultation_data:
        return {}
    return {
        key: str(consultation_data[key])[:MAX_NOTE_LENGTH]
        for key in NOTE_FIELDS
        if consultation_data.get(key) not in (None, "")
    }


class BookingPipeline:
    """Turns a verified payment into exactly one consultation booking"""

    def __init__(self, gateway: RazorpayGateway, db: Session):
        self.gateway = gateway
        self.db = db
        self.consultations = ConsultationService(db)

    async def create_order(self, request: CreateOrderRequest) -> dict:
        self.gateway.require_configured()

        if request.amount is None:
            raise ValidationError(["amount"], message="Amount is required")
        if request.amount <= 0:
            raise ValidationError(["amount"], message="Amount must be greater than zero")

        order = await self.gateway.create_order(
            amount=request.amount,
            receipt=generate_receipt(),
            currency=request.currency or DEFAULT_CURRENCY,
            notes=order_notes(request.consultationData),
        )
        return {
            "success": True,
            "razorpayKey": self.gateway.key_id,
            "order": {
                "id": order["id"],
                "amount": order.get("amount", request.amount),
                "currency": order.get("currency", request.currency or DEFAULT_CURRENCY),
            },
        }

    def verify_payment(
        self, request: VerifyPaymentRequest, user_id: Optional[str] = None
    ) -> tuple[ConsultationBooking, bool]:
        """
        Verify the checkout signature and persist the booking.

        Returns (booking, created). A replayed payment id returns the booking
        already stored for it with created=False.
        """
        self.gateway.require_configured()

        order_id = request.razorpay_order_id
        payment_id = request.razorpay_payment_id
        missing = [
            name
            for name, value in (
                ("razorpay_order_id", order_id),
                ("razorpay_payment_id", payment_id),
                ("razorpay_signature", request.razorpay_signature),
                ("consultationData", request.consultationData),
            )
            if not value
        ]
        if missing:
            raise ValidationError(missing, orderId=order_id, paymentId=payment_id)

        if not self.gateway.verify_signature(order_id, payment_id, request.razorpay_signature):
            raise SignatureMismatchError()

        existing = self.consultations.get_by_payment_id(payment_id)
        if existing:
            logger.info(f"⚠️ Payment {payment_id} already booked as {existing.id}, returning existing booking")
            return existing, False

        # Money has moved from here on; every failure needs reconciliation
        try:
            consultation = ConsultationInput.model_validate(request.consultationData)
        except PydanticValidationError as e:
            fields = [f"consultationData.{f}" for f in error_fields(e)]
            logger.error(
                f"❌ Payment verified but consultation data invalid: order={order_id}, payment={payment_id}: {fields}"
            )
            raise PersistenceError(
                order_id, payment_id, error=f"Invalid or missing field(s): {', '.join(fields)}"
            ) from e

        # Only form fields come from the client; schedule and status are server-assigned
        data = {
            **consultation.model_dump(),
            "razorpayOrderId": order_id,
            "razorpayPaymentId": payment_id,
            "amount": CONSULTATION_FEE_PAISE,
            "paymentStatus": "completed",
            "user": user_id,
        }
        try:
            booking = self.consultations.create(data)
        except IntegrityError as e:
            # Concurrent replay won the unique payment id
            self.db.rollback()
            existing = self.consultations.get_by_payment_id(payment_id)
            if existing:
                logger.info(f"⚠️ Payment {payment_id} booked concurrently as {existing.id}")
                return existing, False
            logger.error(f"❌ Payment verified but consultation not saved: order={order_id}, payment={payment_id}: {e}")
            raise PersistenceError(order_id, payment_id, error=str(e.orig)) from e
        except Exception as e:
            logger.error(f"❌ Payment verified but consultation not saved: order={order_id}, payment={payment_id}: {e}")
            raise PersistenceError(order_id, payment_id, error=str(e)) from e

        logger.info(f"✅ Payment {payment_id} verified and booked as {booking.id} ({booking.reference_number})")
        return booking, True
