"""Consultation domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...models import ConsultationBooking
from ...shared.validators import validate_email

Gender = Literal["male", "female", "other"]
ConsultationType = Literal["skin", "hair"]
SkinType = Literal["dry", "oily", "combination", "normal", "sensitive"]
PaymentStatus = Literal["pending", "completed", "failed"]
BookingStatus = Literal["pending", "scheduled", "completed", "cancelled"]


class ConsultationInput(BaseModel):
    """Consultation form data submitted alongside the payment"""

    name: str
    age: int = Field(..., ge=1, le=120)
    gender: Gender
    email: Optional[str] = None
    phone: Optional[str] = None
    consultationType: ConsultationType
    skinType: Optional[SkinType] = None
    concerns: str = ""
    currentProducts: str = ""

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return validate_email(v)

    @field_validator("phone", mode="before")
    @classmethod
    def normalize_phone(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return v.strip() if isinstance(v, str) else v

    @field_validator("skinType", mode="before")
    @classmethod
    def blank_skin_type(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("concerns", "currentProducts", mode="before")
    @classmethod
    def default_text(cls, v):
        return "" if v is None else v

    @model_validator(mode="after")
    def drop_skin_type_for_hair(self):
        # Skin type only applies to skin consultations
        if self.consultationType != "skin":
            self.skinType = None
        return self


class NewConsultation(ConsultationInput):
    """Everything the store needs to create a booking. IDs are always server-assigned."""

    razorpayOrderId: str = Field(..., min_length=1)
    razorpayPaymentId: str = Field(..., min_length=1)
    amount: int = Field(..., gt=0)
    paymentStatus: PaymentStatus = "pending"
    scheduledDate: Optional[datetime] = None
    scheduledTime: Optional[str] = None
    status: BookingStatus = "pending"
    user: Optional[str] = None


class ConsultationUpdate(BaseModel):
    """Admin patch. Payment and identity fields are not patchable."""

    status: Optional[BookingStatus] = None
    expertNotes: Optional[str] = None
    assignedExpert: Optional[str] = None
    scheduledDate: Optional[datetime] = None
    scheduledTime: Optional[str] = None

    @field_validator("status", "scheduledDate", "scheduledTime", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class ConsultationResponse(BaseModel):
    """Schema for consultation response"""

    id: str
    referenceNumber: str
    name: str
    age: int
    gender: str
    email: Optional[str] = None
    phone: Optional[str] = None
    consultationType: str
    skinType: Optional[str] = None
    concerns: str = ""
    currentProducts: str = ""
    razorpayOrderId: str
    razorpayPaymentId: str
    amount: int
    paymentStatus: str
    scheduledDate: Optional[datetime] = None
    scheduledTime: Optional[str] = None
    status: str
    googleCalendarEventId: Optional[str] = None
    googleCalendarLink: Optional[str] = None
    user: Optional[str] = None
    expertNotes: str = ""
    assignedExpert: str = ""
    reminderSentAt: Optional[datetime] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_booking(cls, booking: ConsultationBooking) -> "ConsultationResponse":
        return cls(
            id=booking.id,
            referenceNumber=booking.reference_number,
            name=booking.name,
            age=booking.age,
            gender=booking.gender,
            email=booking.email,
            phone=booking.phone,
            consultationType=booking.consultation_type,
            skinType=booking.skin_type,
            concerns=booking.concerns or "",
            currentProducts=booking.current_products or "",
            razorpayOrderId=booking.razorpay_order_id,
            razorpayPaymentId=booking.razorpay_payment_id,
            amount=booking.amount,
            paymentStatus=booking.payment_status,
            scheduledDate=booking.scheduled_date,
            scheduledTime=booking.scheduled_time,
            status=booking.status,
            googleCalendarEventId=booking.google_calendar_event_id,
            googleCalendarLink=booking.google_calendar_link,
            user=booking.user_id,
            expertNotes=booking.expert_notes or "",
            assignedExpert=booking.assigned_expert or "",
            reminderSentAt=booking.reminder_sent_at,
            createdAt=booking.created_at,
            updatedAt=booking.updated_at,
        )


class ConsultationEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    data: ConsultationResponse


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class ConsultationListResponse(BaseModel):
    success: bool = True
    data: list[ConsultationResponse]
    pagination: Pagination


class StatusCounts(BaseModel):
    pending: int
    scheduled: int
    completed: int


class TypeCounts(BaseModel):
    skin: int
    hair: int


class ConsultationStats(BaseModel):
    total: int
    byStatus: StatusCounts
    byType: TypeCounts


class ConsultationStatsResponse(BaseModel):
    success: bool = True
    data: ConsultationStats
