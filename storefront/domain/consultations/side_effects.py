"""
Consultation side effects - calendar event and confirmation email

Both run after the booking is stored and after the HTTP response has been
sent. Each is isolated: a failure is logged (and reported to the optional
outcome callback) but never cancels the other or reaches the caller.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from sqlalchemy.orm import Session

from .schemas import ConsultationResponse, ConsultationUpdate
from .service import ConsultationService

logger = logging.getLogger(__name__)

CALENDAR_EVENT = "calendar_event"
CONFIRMATION_EMAIL = "confirmation_email"
CALENDAR_UPDATE = "calendar_update"
CALENDAR_DELETE = "calendar_delete"


@dataclass
class SideEffectOutcome:
    booking_id: str
    effect: str
    succeeded: bool
    detail: Optional[Any] = None
    error: Optional[str] = None


def calendar_action_for(patch: ConsultationUpdate) -> Optional[str]:
    """Which calendar sync an admin patch calls for, if any"""
    if patch.status == "cancelled":
        return "delete"
    if patch.scheduledDate or patch.scheduledTime:
        return "update"
    return None


class SideEffectDispatcher:
    """Runs best-effort side effects for stored bookings"""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        calendar,
        send_confirmation_email: Callable[[ConsultationResponse], Awaitable[Any]],
        on_outcome: Optional[Callable[[SideEffectOutcome], None]] = None,
    ):
        self.session_factory = session_factory
        self.calendar = calendar
        self.send_confirmation_email = send_confirmation_email
        self.on_outcome = on_outcome

    def _report(self, outcome: SideEffectOutcome) -> None:
        if self.on_outcome is None:
            return
        try:
            self.on_outcome(outcome)
        except Exception as e:
            logger.warning(f"⚠️ Side effect outcome callback failed: {e}")

    def _write_back_calendar(self, booking_id: str, event_id: Optional[str], link: Optional[str]) -> bool:
        db = None
        try:
            db = self.session_factory()
            return ConsultationService(db).record_calendar_event(booking_id, event_id, link)
        except Exception as e:
            if db is not None:
                db.rollback()
            logger.error(f"❌ Failed to save calendar event on consultation {booking_id}: {e}")
            return False
        finally:
            if db is not None:
                db.close()

    async def create_calendar_event(self, booking: ConsultationResponse) -> Optional[dict]:
        """Create the event and store its id/link on the booking. None on failure."""
        try:
            result = await self.calendar.create_event(booking)
        except Exception as e:
            logger.error(f"❌ Calendar event failed for consultation {booking.id}: {e}")
            self._report(SideEffectOutcome(booking.id, CALENDAR_EVENT, False, error=str(e)))
            return None

        if not result:
            logger.warning(f"⚠️ No calendar event created for consultation {booking.id}")
            self._report(SideEffectOutcome(booking.id, CALENDAR_EVENT, False))
            return None

        saved = self._write_back_calendar(booking.id, result.get("eventId"), result.get("link"))
        if saved:
            logger.info(f"📅 Calendar event {result.get('eventId')} linked to consultation {booking.id}")
        self._report(SideEffectOutcome(booking.id, CALENDAR_EVENT, True, detail=result))
        return result

    async def send_confirmation(self, booking: ConsultationResponse) -> bool:
        """Send the confirmation email. False when there is no address or sending fails."""
        if not booking.email:
            logger.info(f"ℹ️ Consultation {booking.id} has no email, skipping confirmation")
            self._report(SideEffectOutcome(booking.id, CONFIRMATION_EMAIL, False, error="no email address"))
            return False

        try:
            await self.send_confirmation_email(booking)
        except Exception as e:
            logger.error(f"❌ Confirmation email failed for consultation {booking.id}: {e}")
            self._report(SideEffectOutcome(booking.id, CONFIRMATION_EMAIL, False, error=str(e)))
            return False

        logger.info(f"📧 Confirmation email sent for consultation {booking.id} to {booking.email}")
        self._report(SideEffectOutcome(booking.id, CONFIRMATION_EMAIL, True))
        return True

    async def dispatch(self, booking: ConsultationResponse) -> tuple[Optional[dict], bool]:
        """Run calendar creation and the confirmation email concurrently"""
        calendar_result, email_result = await asyncio.gather(
            self.create_calendar_event(booking),
            self.send_confirmation(booking),
            return_exceptions=True,
        )

        if isinstance(calendar_result, BaseException):
            logger.error(f"❌ Calendar side effect crashed for {booking.id}: {calendar_result}")
            calendar_result = None
        if isinstance(email_result, BaseException):
            logger.error(f"❌ Email side effect crashed for {booking.id}: {email_result}")
            email_result = False

        return calendar_result, email_result

    async def sync_calendar(self, booking: ConsultationResponse, action: str) -> bool:
        """Propagate an admin schedule change ("update") or cancellation ("delete")"""
        effect = CALENDAR_DELETE if action == "delete" else CALENDAR_UPDATE
        try:
            if action == "delete":
                succeeded = await self.calendar.delete_event(booking.googleCalendarEventId)
                if succeeded:
                    self._write_back_calendar(booking.id, None, None)
            else:
                succeeded = await self.calendar.update_event(booking)
        except Exception as e:
            logger.error(f"❌ Calendar {action} failed for consultation {booking.id}: {e}")
            self._report(SideEffectOutcome(booking.id, effect, False, error=str(e)))
            return False

        self._report(SideEffectOutcome(booking.id, effect, bool(succeeded)))
        return bool(succeeded)
