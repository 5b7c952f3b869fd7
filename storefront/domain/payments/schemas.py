"""Payment domain schemas - checkout order and callback payloads"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel


class CreateOrderRequest(BaseModel):
    """Amount is checked by the pipeline so a missing value reports as a booking validation error"""

    amount: Optional[int] = None
    currency: Optional[str] = None
    consultationData: Optional[dict[str, Any]] = None


class OrderDescriptor(BaseModel):
    id: str
    amount: int
    currency: str


class CreateOrderResponse(BaseModel):
    success: bool = True
    razorpayKey: str
    order: OrderDescriptor


class VerifyPaymentRequest(BaseModel):
    # Field names match the gateway checkout callback
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None
    consultationData: Optional[dict[str, Any]] = None


class BookingSummary(BaseModel):
    id: str
    referenceNumber: str
    scheduledDate: Optional[datetime] = None
    scheduledTime: Optional[str] = None


class VerifyPaymentResponse(BaseModel):
    success: bool = True
    message: str
    consultation: BookingSummary
    consultationData: Optional[dict[str, Any]] = None


class RazorpayKeyResponse(BaseModel):
    key: str
