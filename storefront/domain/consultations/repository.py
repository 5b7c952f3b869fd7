"""Consultation repository - Database operations for consultation bookings"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import ConsultationBooking, utcnow


class ConsultationRepository:
    """Repository for consultation booking database operations"""

    @staticmethod
    def create(db: Session, **fields) -> ConsultationBooking:
        """Insert a new booking"""
        booking = ConsultationBooking(**fields)
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def get_by_id(db: Session, booking_id: str) -> Optional[ConsultationBooking]:
        return db.query(ConsultationBooking).filter(ConsultationBooking.id == booking_id).first()

    @staticmethod
    def get_by_payment_id(db: Session, payment_id: str) -> Optional[ConsultationBooking]:
        """Get the booking created for a gateway payment"""
        return (
            db.query(ConsultationBooking)
            .filter(ConsultationBooking.razorpay_payment_id == payment_id)
            .first()
        )

    @staticmethod
    def find_by_id_prefix(db: Session, prefix: str) -> list[ConsultationBooking]:
        """All bookings whose ID starts with prefix (prefix must be pre-validated hex)"""
        return (
            db.query(ConsultationBooking)
            .filter(ConsultationBooking.id.like(f"{prefix}%"))
            .order_by(ConsultationBooking.created_at.asc())
            .all()
        )

    @staticmethod
    def list_bookings(
        db: Session,
        status: Optional[str] = None,
        consultation_type: Optional[str] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[ConsultationBooking], int]:
        """Filtered page of bookings, newest first, with the total match count"""
        query = db.query(ConsultationBooking)

        if status:
            query = query.filter(ConsultationBooking.status == status)
        if consultation_type:
            query = query.filter(ConsultationBooking.consultation_type == consultation_type)

        total = query.count()
        items = (
            query.order_by(ConsultationBooking.created_at.desc(), ConsultationBooking.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return items, total

    @staticmethod
    def update(db: Session, booking: ConsultationBooking, **updates) -> ConsultationBooking:
        """Apply the given column updates"""
        for key, value in updates.items():
            setattr(booking, key, value)

        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def set_calendar_details(
        db: Session, booking_id: str, event_id: Optional[str], link: Optional[str]
    ) -> bool:
        """
        Targeted update of the calendar columns only.
        Leaves admin-managed columns untouched so concurrent admin edits survive.
        """
        updated = (
            db.query(ConsultationBooking)
            .filter(ConsultationBooking.id == booking_id)
            .update(
                {
                    ConsultationBooking.google_calendar_event_id: event_id,
                    ConsultationBooking.google_calendar_link: link,
                    ConsultationBooking.updated_at: utcnow(),
                },
                synchronize_session=False,
            )
        )
        db.commit()
        return updated > 0

    @staticmethod
    def mark_reminder_sent(db: Session, booking_id: str, sent_at: datetime) -> None:
        db.query(ConsultationBooking).filter(ConsultationBooking.id == booking_id).update(
            {ConsultationBooking.reminder_sent_at: sent_at}, synchronize_session=False
        )
        db.commit()

    @staticmethod
    def get_due_for_reminder(
        db: Session, window_start: datetime, window_end: datetime
    ) -> list[ConsultationBooking]:
        """Scheduled bookings in [window_start, window_end] not yet reminded"""
        return (
            db.query(ConsultationBooking)
            .filter(
                ConsultationBooking.status == "scheduled",
                ConsultationBooking.reminder_sent_at.is_(None),
                ConsultationBooking.email.isnot(None),
                ConsultationBooking.email != "",
                ConsultationBooking.scheduled_date >= window_start,
                ConsultationBooking.scheduled_date <= window_end,
            )
            .order_by(ConsultationBooking.scheduled_date.asc())
            .all()
        )

    @staticmethod
    def count_total(db: Session) -> int:
        return db.query(func.count(ConsultationBooking.id)).scalar() or 0

    @staticmethod
    def count_by_status(db: Session, status: str) -> int:
        return (
            db.query(func.count(ConsultationBooking.id))
            .filter(ConsultationBooking.status == status)
            .scalar()
            or 0
        )

    @staticmethod
    def count_by_type(db: Session, consultation_type: str) -> int:
        return (
            db.query(func.count(ConsultationBooking.id))
            .filter(ConsultationBooking.consultation_type == consultation_type)
            .scalar()
            or 0
        )
