"""Reminder job - emails scheduled consultations coming up within the window"""

import logging
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Optional

from sqlalchemy.orm import Session

from ...config import REMINDER_WINDOW_HOURS
from ...email_service import send_consultation_reminder
from ...models import utcnow
from .repository import ConsultationRepository
from .scheduling import local_now
from .schemas import ConsultationResponse

logger = logging.getLogger(__name__)


async def send_due_reminders(
    db: Session,
    now: Optional[datetime] = None,
    window_hours: int = REMINDER_WINDOW_HOURS,
    send_reminder: Callable[[ConsultationResponse], Awaitable[Any]] = send_consultation_reminder,
) -> int:
    """
    Send one reminder per due booking and record reminder_sent_at.

    `now` is local wall-clock time in the consultation zone, matching how
    scheduled dates are stored. Returns the number of reminders sent.
    """
    now = now or local_now()
    due = ConsultationRepository.get_due_for_reminder(db, now, now + timedelta(hours=window_hours))
    if not due:
        logger.info("📅 No consultations due for a reminder")
        return 0

    logger.info(f"📅 {len(due)} consultation(s) due for a reminder")
    sent = 0
    for booking in due:
        snapshot = ConsultationResponse.from_booking(booking)
        try:
            await send_reminder(snapshot)
        except Exception as e:
            logger.error(f"❌ Reminder failed for consultation {booking.id}: {e}")
            continue

        ConsultationRepository.mark_reminder_sent(db, booking.id, utcnow())
        sent += 1
        logger.info(f"📧 Reminder sent for consultation {booking.id} ({snapshot.referenceNumber})")

    return sent
