"""Consultation service - Business logic for consultation bookings"""

import logging
from datetime import datetime
from typing import Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...exceptions import NotFoundError, ValidationError
from ...models import REFERENCE_PREFIX, ConsultationBooking, generate_booking_id
from ...shared.validators import is_lower_hex
from .repository import ConsultationRepository
from .scheduling import apply_default_schedule, local_now, to_local_naive
from .schemas import ConsultationUpdate, NewConsultation

logger = logging.getLogger(__name__)

REFERENCE_ID_LENGTH = 8


def error_fields(exc: PydanticValidationError) -> list[str]:
    """Field names from a pydantic error, top-level first, without duplicates"""
    fields = []
    for error in exc.errors():
        loc = ".".join(str(part) for part in error.get("loc", ())) or "__root__"
        if loc not in fields:
            fields.append(loc)
    return fields


class ConsultationService:
    """Service layer for consultation bookings (the system of record)"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ConsultationRepository()

    def create(self, data: dict, now: Optional[datetime] = None) -> ConsultationBooking:
        """
        Validate, auto-schedule and persist a new booking.

        Raises ValidationError naming the offending fields. Database errors
        are rolled back and re-raised for the caller to classify.
        """
        try:
            new = NewConsultation.model_validate(data)
        except PydanticValidationError as e:
            fields = error_fields(e)
            logger.warning(f"⚠️ Consultation validation failed: {fields}")
            raise ValidationError(fields) from e

        fields = {
            "id": generate_booking_id(),
            "name": new.name,
            "age": new.age,
            "gender": new.gender,
            "email": new.email,
            "phone": new.phone,
            "consultation_type": new.consultationType,
            "skin_type": new.skinType,
            "concerns": new.concerns,
            "current_products": new.currentProducts,
            "razorpay_order_id": new.razorpayOrderId,
            "razorpay_payment_id": new.razorpayPaymentId,
            "amount": new.amount,
            "payment_status": new.paymentStatus,
            "scheduled_date": to_local_naive(new.scheduledDate) if new.scheduledDate else None,
            "scheduled_time": new.scheduledTime,
            "status": new.status,
            "user_id": new.user,
        }
        fields = apply_default_schedule(fields, now=now or local_now())

        try:
            booking = self.repo.create(self.db, **fields)
        except SQLAlchemyError:
            self.db.rollback()
            raise

        logger.info(
            f"✅ Consultation created: {booking.id} ({booking.reference_number}) "
            f"scheduled {booking.scheduled_date} {booking.scheduled_time}"
        )
        return booking

    def get_by_id(self, booking_id: str) -> ConsultationBooking:
        booking = self.repo.get_by_id(self.db, booking_id)
        if not booking:
            raise NotFoundError()
        return booking

    def get_by_payment_id(self, payment_id: str) -> Optional[ConsultationBooking]:
        return self.repo.get_by_payment_id(self.db, payment_id)

    def get_by_reference(self, reference: str) -> ConsultationBooking:
        """
        Resolve a CONS-XXXXXXXX reference to its booking.

        The reference only carries the first 8 hex chars of the ID, so two
        bookings created in the same second share it. An ambiguous reference
        is reported as not found rather than guessing.
        """
        ref = (reference or "").strip()
        if not ref.startswith(REFERENCE_PREFIX):
            raise NotFoundError()

        prefix = ref[len(REFERENCE_PREFIX):].lower()
        if len(prefix) != REFERENCE_ID_LENGTH or not is_lower_hex(prefix):
            raise NotFoundError()

        matches = [b for b in self.repo.find_by_id_prefix(self.db, prefix) if b.reference_number == ref]
        if not matches:
            raise NotFoundError()
        if len(matches) > 1:
            logger.warning(
                f"⚠️ Reference {ref} matches {len(matches)} consultations: "
                f"{[b.id for b in matches]}"
            )
            raise NotFoundError("Consultation reference is ambiguous. Please contact support.")
        return matches[0]

    def list_bookings(
        self,
        status: Optional[str] = None,
        consultation_type: Optional[str] = None,
        page: int = 1,
        page_size: int = 10,
    ) -> tuple[list[ConsultationBooking], int]:
        """Offset pagination, 1-indexed pages, newest first"""
        page = max(page, 1)
        offset = (page - 1) * page_size
        return self.repo.list_bookings(
            self.db,
            status=status,
            consultation_type=consultation_type,
            offset=offset,
            limit=page_size,
        )

    def update(self, booking_id: str, patch: ConsultationUpdate) -> ConsultationBooking:
        """Partial admin update. Only provided fields change."""
        booking = self.get_by_id(booking_id)

        updates = {}
        if patch.status:
            updates["status"] = patch.status
        if patch.expertNotes is not None:
            updates["expert_notes"] = patch.expertNotes
        if patch.assignedExpert is not None:
            updates["assigned_expert"] = patch.assignedExpert
        if patch.scheduledDate:
            updates["scheduled_date"] = to_local_naive(patch.scheduledDate)
        if patch.scheduledTime:
            updates["scheduled_time"] = patch.scheduledTime

        if not updates:
            return booking

        try:
            booking = self.repo.update(self.db, booking, **updates)
        except SQLAlchemyError:
            self.db.rollback()
            raise

        logger.info(f"✅ Consultation {booking.id} updated: {sorted(updates)}")
        return booking

    def record_calendar_event(
        self, booking_id: str, event_id: Optional[str], link: Optional[str]
    ) -> bool:
        return self.repo.set_calendar_details(self.db, booking_id, event_id, link)

    def stats(self) -> dict:
        """Counts over the whole collection at call time"""
        return {
            "total": self.repo.count_total(self.db),
            "byStatus": {
                status: self.repo.count_by_status(self.db, status)
                for status in ("pending", "scheduled", "completed")
            },
            "byType": {
                consultation_type: self.repo.count_by_type(self.db, consultation_type)
                for consultation_type in ("skin", "hair")
            },
        }
