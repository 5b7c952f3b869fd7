"""Payment router - checkout order creation and payment verification"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from ...auth import CurrentUser, get_optional_user
from ...database import get_db
from ...dependencies import get_dispatcher, get_payment_gateway
from ...exceptions import ConfigurationError
from ...services.razorpay_service import RazorpayGateway
from ..consultations.schemas import ConsultationResponse
from ..consultations.side_effects import SideEffectDispatcher
from .schemas import (
    BookingSummary,
    CreateOrderRequest,
    CreateOrderResponse,
    RazorpayKeyResponse,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)
from .service import BookingPipeline

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Payments"])


def get_booking_pipeline(
    gateway: RazorpayGateway = Depends(get_payment_gateway),
    db: Session = Depends(get_db),
) -> BookingPipeline:
    """Dependency injection for BookingPipeline"""
    return BookingPipeline(gateway, db)


@router.get("/razorpay-key", response_model=RazorpayKeyResponse)
async def get_razorpay_key(gateway: RazorpayGateway = Depends(get_payment_gateway)):
    """Public key id for opening the checkout widget"""
    if not gateway.key_id:
        raise ConfigurationError()
    return RazorpayKeyResponse(key=gateway.key_id)


@router.post("/create-order", response_model=CreateOrderResponse)
async def create_order(
    request: CreateOrderRequest,
    pipeline: BookingPipeline = Depends(get_booking_pipeline),
):
    logger.info(f"📥 Create order request: amount={request.amount} currency={request.currency or 'INR'}")
    return await pipeline.create_order(request)


@router.post("/verify-payment", response_model=VerifyPaymentResponse)
async def verify_payment(
    request: VerifyPaymentRequest,
    background_tasks: BackgroundTasks,
    pipeline: BookingPipeline = Depends(get_booking_pipeline),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
    current_user: Optional[CurrentUser] = Depends(get_optional_user),
):
    """Verify the checkout signature, store the booking, then notify in the background"""
    logger.info(
        f"📥 Verify payment request: order={request.razorpay_order_id} payment={request.razorpay_payment_id}"
    )
    booking, created = pipeline.verify_payment(request, user_id=current_user.id if current_user else None)
    snapshot = ConsultationResponse.from_booking(booking)

    if created:
        # Runs after the response is sent
        background_tasks.add_task(dispatcher.dispatch, snapshot)

    return VerifyPaymentResponse(
        message="Payment verified and consultation booked successfully"
        if created
        else "Payment already verified for this consultation",
        consultation=BookingSummary(
            id=snapshot.id,
            referenceNumber=snapshot.referenceNumber,
            scheduledDate=snapshot.scheduledDate,
            scheduledTime=snapshot.scheduledTime,
        ),
        consultationData=request.consultationData,
    )
