"""Process-wide collaborators built in the app lifespan, exposed as dependencies"""

from fastapi import Request

from .domain.consultations.side_effects import SideEffectDispatcher
from .services.razorpay_service import RazorpayGateway


def get_payment_gateway(request: Request) -> RazorpayGateway:
    return request.app.state.payment_gateway


def get_dispatcher(request: Request) -> SideEffectDispatcher:
    return request.app.state.dispatcher
