"""
Google Calendar Service
Handles consultation event creation, updates, and deletion
"""

import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from urllib.parse import urlencode

import httpx

from ..config import (
    CONSULTATION_TIMEZONE,
    GOOGLE_CALENDAR_ID,
    GOOGLE_CALENDAR_REFRESH_TOKEN,
    GOOGLE_CLIENT_ID,
    GOOGLE_CLIENT_SECRET,
)

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_CALENDAR_API = "https://www.googleapis.com/calendar/v3"
GOOGLE_TEMPLATE_URL = "https://calendar.google.com/calendar/render"
PLACEHOLDER_PREFIX = "placeholder-"
EVENT_DURATION = timedelta(hours=1)
REQUEST_TIMEOUT = 15.0

CONSULTATION_LABELS = {"skin": "Skin", "hair": "Hair"}


def is_placeholder_event(event_id: Optional[str]) -> bool:
    """Template-link bookings carry a placeholder ID that the API never saw"""
    return bool(event_id) and event_id.startswith(PLACEHOLDER_PREFIX)


def _template_timestamp(value: datetime) -> str:
    return value.strftime("%Y%m%dT%H%M%S")


class ConsultationCalendar:
    """
    Calendar collaborator for consultation bookings.

    With a refresh token configured, events are written to the calendar
    through the Google Calendar API. Without one, only an "add to calendar"
    template link is produced.
    """

    def __init__(
        self,
        client_id: Optional[str],
        client_secret: Optional[str],
        refresh_token: Optional[str],
        calendar_id: str = "primary",
        timezone: str = CONSULTATION_TIMEZONE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.calendar_id = calendar_id or "primary"
        self.timezone = timezone
        self.transport = transport
        self._access_token: Optional[str] = None
        self._token_expires_at: Optional[datetime] = None

    @classmethod
    def from_config(cls) -> "ConsultationCalendar":
        return cls(
            GOOGLE_CLIENT_ID,
            GOOGLE_CLIENT_SECRET,
            GOOGLE_CALENDAR_REFRESH_TOKEN,
            calendar_id=GOOGLE_CALENDAR_ID,
        )

    def is_connected(self) -> bool:
        return bool(self.client_id and self.client_secret and self.refresh_token)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=REQUEST_TIMEOUT, transport=self.transport)

    async def get_access_token(self) -> Optional[str]:
        """
        Get a valid access token, refreshing if necessary
        Returns None if refresh fails
        """
        if (
            self._access_token
            and self._token_expires_at
            and self._token_expires_at > datetime.now(timezone.utc) + timedelta(minutes=5)
        ):
            return self._access_token

        try:
            logger.info("🔄 Refreshing Google Calendar access token...")
            async with self._client() as client:
                response = await client.post(
                    GOOGLE_TOKEN_URL,
                    data={
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "refresh_token": self.refresh_token,
                        "grant_type": "refresh_token",
                    },
                )

            if response.status_code != 200:
                logger.error(f"❌ Token refresh failed: {response.text}")
                return None

            tokens = response.json()
            access_token = tokens.get("access_token")
            if not access_token:
                logger.error("❌ No access token in refresh response")
                return None

            self._access_token = access_token
            self._token_expires_at = datetime.now(timezone.utc) + timedelta(seconds=tokens.get("expires_in", 3600))
            logger.info("✅ Google Calendar token refreshed successfully")
            return access_token
        except Exception as e:
            logger.error(f"❌ Error refreshing Google Calendar token: {str(e)}")
            return None

    def event_window(self, booking) -> tuple[datetime, datetime]:
        start = booking.scheduledDate
        return start, start + EVENT_DURATION

    def build_description(self, booking) -> str:
        lines = [
            f"Reference: {booking.referenceNumber}",
            f"Customer: {booking.name} ({booking.age}, {booking.gender})",
        ]
        if booking.email:
            lines.append(f"Email: {booking.email}")
        if booking.phone:
            lines.append(f"Phone: {booking.phone}")
        if booking.skinType:
            lines.append(f"Skin type: {booking.skinType}")
        if booking.concerns:
            lines.append(f"\nConcerns: {booking.concerns}")
        if booking.currentProducts:
            lines.append(f"Current products: {booking.currentProducts}")
        return "\n".join(lines)

    def build_summary(self, booking) -> str:
        label = CONSULTATION_LABELS.get(booking.consultationType, booking.consultationType)
        return f"Consultation - {booking.name} ({label})"

    def build_event(self, booking) -> dict[str, Any]:
        """Google Calendar event body for a booking's one-hour slot"""
        start, end = self.event_window(booking)
        event_data = {
            "summary": self.build_summary(booking),
            "description": self.build_description(booking),
            "start": {"dateTime": start.isoformat(), "timeZone": self.timezone},
            "end": {"dateTime": end.isoformat(), "timeZone": self.timezone},
            "reminders": {
                "useDefault": False,
                "overrides": [
                    {"method": "email", "minutes": 24 * 60},
                    {"method": "popup", "minutes": 30},
                ],
            },
        }
        if booking.email:
            event_data["attendees"] = [{"email": booking.email, "displayName": booking.name}]
        return event_data

    def build_template_link(self, booking) -> str:
        """Google Calendar "add event" URL prefilled with the booking slot"""
        start, end = self.event_window(booking)
        params = {
            "action": "TEMPLATE",
            "text": self.build_summary(booking),
            "dates": f"{_template_timestamp(start)}/{_template_timestamp(end)}",
            "details": self.build_description(booking),
            "ctz": self.timezone,
        }
        return f"{GOOGLE_TEMPLATE_URL}?{urlencode(params)}"

    async def create_event(self, booking) -> Optional[dict[str, str]]:
        """
        Create the calendar event for a booking
        Returns {"eventId", "link"} if successful, None otherwise
        """
        try:
            if not booking.scheduledDate:
                logger.warning(f"⚠️ Consultation {booking.id} has no scheduled date, skipping calendar event")
                return None

            if not self.is_connected():
                event_id = f"{PLACEHOLDER_PREFIX}{int(time.time() * 1000)}"
                logger.info(f"ℹ️ Google Calendar not connected, built template link for {booking.id}")
                return {"eventId": event_id, "link": self.build_template_link(booking)}

            access_token = await self.get_access_token()
            if not access_token:
                logger.error("❌ Failed to get valid access token")
                return None

            async with self._client() as client:
                response = await client.post(
                    f"{GOOGLE_CALENDAR_API}/calendars/{self.calendar_id}/events",
                    headers={"Authorization": f"Bearer {access_token}"},
                    json=self.build_event(booking),
                )

            if response.status_code not in [200, 201]:
                logger.error(f"❌ Failed to create calendar event: {response.text}")
                return None

            event = response.json()
            event_id = event.get("id")
            if not event_id:
                logger.error(f"❌ No event ID in calendar response for {booking.id}")
                return None

            logger.info(f"📅 Google Calendar event created: {event_id} for consultation {booking.id}")
            return {"eventId": event_id, "link": event.get("htmlLink")}
        except Exception as e:
            logger.error(f"❌ Error creating calendar event for {booking.id}: {str(e)}")
            return None

    async def update_event(self, booking) -> bool:
        """
        Move an existing event to the booking's current schedule
        Returns True if successful, False otherwise
        """
        event_id = booking.googleCalendarEventId
        try:
            if not event_id or is_placeholder_event(event_id) or not self.is_connected():
                logger.info(f"ℹ️ No synced calendar event for {booking.id}, skipping update")
                return False
            if not booking.scheduledDate:
                return False

            access_token = await self.get_access_token()
            if not access_token:
                logger.error("❌ Failed to get valid access token")
                return False

            async with self._client() as client:
                response = await client.patch(
                    f"{GOOGLE_CALENDAR_API}/calendars/{self.calendar_id}/events/{event_id}",
                    headers={"Authorization": f"Bearer {access_token}"},
                    json=self.build_event(booking),
                )

            if response.status_code != 200:
                logger.error(f"❌ Failed to update calendar event {event_id}: {response.text}")
                return False

            logger.info(f"📅 Google Calendar event updated: {event_id}")
            return True
        except Exception as e:
            logger.error(f"❌ Error updating calendar event {event_id}: {str(e)}")
            return False

    async def delete_event(self, event_id: Optional[str]) -> bool:
        """
        Delete a calendar event
        Returns True if successful (or already gone), False otherwise
        """
        try:
            if not event_id or is_placeholder_event(event_id) or not self.is_connected():
                return False

            access_token = await self.get_access_token()
            if not access_token:
                logger.error("❌ Failed to get valid access token")
                return False

            async with self._client() as client:
                response = await client.delete(
                    f"{GOOGLE_CALENDAR_API}/calendars/{self.calendar_id}/events/{event_id}",
                    headers={"Authorization": f"Bearer {access_token}"},
                )

            # 410 Gone means the event was already deleted
            if response.status_code not in [200, 204, 410]:
                logger.error(f"❌ Failed to delete calendar event {event_id}: {response.text}")
                return False

            logger.info(f"📅 Google Calendar event deleted: {event_id}")
            return True
        except Exception as e:
            logger.error(f"❌ Error deleting calendar event {event_id}: {str(e)}")
            return False
