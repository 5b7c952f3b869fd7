import secrets
import time
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Text

from .database import Base

REFERENCE_PREFIX = "CONS-"


def generate_booking_id() -> str:
    """
    Generate a time-sortable booking ID.
    24 lowercase hex chars: epoch seconds (8) followed by random bytes (16).
    """
    return f"{int(time.time()):08x}{secrets.token_hex(8)}"


def reference_number_for(booking_id: str) -> str:
    """Display reference: CONS- plus the first 8 hex chars of the ID, uppercased"""
    return f"{REFERENCE_PREFIX}{str(booking_id)[:8].upper()}"


def utcnow() -> datetime:
    """Naive UTC timestamp for audit columns"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class ConsultationBooking(Base):
    __tablename__ = "consultation_bookings"

    id = Column(String(24), primary_key=True, default=generate_booking_id)

    # Subject info
    name = Column(String(255), nullable=False)
    age = Column(Integer, nullable=False)
    gender = Column(String(20), nullable=False)  # male, female, other
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)

    # Request info
    consultation_type = Column(String(20), nullable=False, index=True)  # skin, hair
    skin_type = Column(String(20), nullable=True)  # dry, oily, combination, normal, sensitive
    concerns = Column(Text, default="")
    current_products = Column(Text, default="")

    # Payment info (never rewritten after creation)
    razorpay_order_id = Column(String(255), nullable=False)
    razorpay_payment_id = Column(String(255), nullable=False, unique=True, index=True)
    amount = Column(Integer, nullable=False)  # paise
    payment_status = Column(String(20), default="pending")  # pending, completed, failed

    # Scheduling
    scheduled_date = Column(DateTime, nullable=True)  # wall-clock time in CONSULTATION_TIMEZONE
    scheduled_time = Column(String(20), nullable=True)  # display string, e.g. "10:00 AM"
    status = Column(String(20), default="pending", index=True)  # pending, scheduled, completed, cancelled

    # Google Calendar integration fields
    google_calendar_event_id = Column(String(500), nullable=True)
    google_calendar_link = Column(Text, nullable=True)

    # Owning user, weak reference by subject ID
    user_id = Column(String(255), nullable=True, index=True)

    # Admin/Expert fields
    expert_notes = Column(Text, default="")
    assigned_expert = Column(String(255), default="")

    reminder_sent_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def reference_number(self) -> str:
        return reference_number_for(self.id)
