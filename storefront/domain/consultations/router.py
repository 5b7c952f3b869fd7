"""Consultation router - lookup and admin endpoints for consultation bookings"""

import logging
import math
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from ...auth import CurrentUser, get_current_user
from ...database import get_db
from ...dependencies import get_dispatcher
from .schemas import (
    BookingStatus,
    ConsultationEnvelope,
    ConsultationListResponse,
    ConsultationResponse,
    ConsultationStatsResponse,
    ConsultationType,
    ConsultationUpdate,
    Pagination,
)
from .service import ConsultationService
from .side_effects import SideEffectDispatcher, calendar_action_for

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/consultations", tags=["Consultations"])


def get_consultation_service(db: Session = Depends(get_db)) -> ConsultationService:
    """Dependency injection for ConsultationService"""
    return ConsultationService(db)


@router.get("/ref/{reference}", response_model=ConsultationEnvelope)
async def get_consultation_by_reference(
    reference: str,
    service: ConsultationService = Depends(get_consultation_service),
):
    """Public lookup by CONS-XXXXXXXX reference (confirmation page)"""
    booking = service.get_by_reference(reference)
    return ConsultationEnvelope(data=ConsultationResponse.from_booking(booking))


@router.get("/stats/overview", response_model=ConsultationStatsResponse)
async def get_consultation_stats(
    current_user: CurrentUser = Depends(get_current_user),
    service: ConsultationService = Depends(get_consultation_service),
):
    return ConsultationStatsResponse(data=service.stats())


@router.get("", response_model=ConsultationListResponse)
async def list_consultations(
    current_user: CurrentUser = Depends(get_current_user),
    service: ConsultationService = Depends(get_consultation_service),
    status: Optional[BookingStatus] = Query(None),
    consultation_type: Optional[ConsultationType] = Query(None, alias="consultationType"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    """All consultations, newest first, with optional exact-match filters"""
    items, total = service.list_bookings(
        status=status, consultation_type=consultation_type, page=page, page_size=limit
    )
    return ConsultationListResponse(
        data=[ConsultationResponse.from_booking(b) for b in items],
        pagination=Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit)),
    )


@router.get("/{consultation_id}", response_model=ConsultationEnvelope)
async def get_consultation(
    consultation_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: ConsultationService = Depends(get_consultation_service),
):
    booking = service.get_by_id(consultation_id)
    return ConsultationEnvelope(data=ConsultationResponse.from_booking(booking))


@router.put("/{consultation_id}", response_model=ConsultationEnvelope)
async def update_consultation(
    consultation_id: str,
    patch: ConsultationUpdate,
    background_tasks: BackgroundTasks,
    current_user: CurrentUser = Depends(get_current_user),
    service: ConsultationService = Depends(get_consultation_service),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
):
    """Admin update of status, notes, expert and schedule"""
    booking = service.update(consultation_id, patch)
    logger.info(f"📥 Consultation {consultation_id} updated by {current_user.id}")

    data = ConsultationResponse.from_booking(booking)
    action = calendar_action_for(patch)
    if action and data.googleCalendarEventId:
        background_tasks.add_task(dispatcher.sync_calendar, data, action)

    return ConsultationEnvelope(message="Consultation updated successfully", data=data)
