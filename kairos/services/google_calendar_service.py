import asyncio
from datetime import datetime, timedelta

import google.oauth2.credentials
from google.auth.transport.requests import Request
from googleapiclient.discovery import build
from dateutil import parser
from sqlalchemy.ext.asyncio import AsyncSession

from kairos.core.config import settings
from kairos.models.user import User
from kairos.services.reminder_engine import DEFAULT_REMINDER_MINUTES
from kairos.utils.timezone import ensure_utc

TOKEN_URI = "https://oauth2.googleapis.com/token"
DEFAULT_EVENT_MINUTES = 60

async def get_credentials(db: AsyncSession, user: User):
    """
    Build Google credentials from the tokens stored on the user row.
    Refreshes (and persists) the access token when it has expired.
    Returns None when the user never connected Google.
    """
    if not user.google_refresh_token:
        return None

    # No scopes here: the token carries whatever the user originally granted
    creds = google.oauth2.credentials.Credentials(
        token=user.google_access_token,
        refresh_token=user.google_refresh_token,
        token_uri=TOKEN_URI,
        client_id=settings.GOOGLE_CLIENT_ID,
        client_secret=settings.GOOGLE_CLIENT_SECRET
    )

    if creds.expired or not creds.token:
        await asyncio.to_thread(creds.refresh, Request())
        user.google_access_token = creds.token
        user.google_token_expiry = creds.expiry
        db.add(user)
        await db.commit()

    return creds

def _hhmm(dt: datetime) -> str:
    return dt.strftime("%H:%M")

def task_to_event(task) -> dict:
    """Google Calendar event body for a task."""
    start = ensure_utc(task.due_date)
    end = start + timedelta(minutes=DEFAULT_EVENT_MINUTES)
    if task.end_time:
        hours, minutes = (int(p) for p in task.end_time.split(":"))
        candidate = start.replace(hour=hours, minute=minutes, second=0, microsecond=0)
        if candidate > start:
            end = candidate

    return {
        "summary": task.title,
        "description": task.description or "",
        "start": {"dateTime": start.isoformat(), "timeZone": "UTC"},
        "end": {"dateTime": end.isoformat(), "timeZone": "UTC"},
        "reminders": {
            "useDefault": False,
            "overrides": [{"method": "popup", "minutes": task.reminder_time if task.reminder_time is not None else DEFAULT_REMINDER_MINUTES}],
        },
    }

def event_times(event: dict) -> tuple[datetime, datetime]:
    start_raw = event.get("start", {}).get("dateTime") or event.get("start", {}).get("date")
    start = ensure_utc(parser.parse(start_raw))
    end_raw = event.get("end", {}).get("dateTime") or event.get("end", {}).get("date")
    end = ensure_utc(parser.parse(end_raw)) if end_raw else start + timedelta(minutes=DEFAULT_EVENT_MINUTES)
    return start, end

def event_to_task_fields(event: dict) -> dict:
    """Task column values for a Google event (imported as personal / medium)."""
    start, end = event_times(event)
    return {
        "title": event.get("summary") or "Untitled",
        "description": event.get("description") or "",
        "due_date": start,
        "completed": event.get("status") == "completed",
        "category": "personal",
        "priority": "medium",
        "start_time": _hhmm(start),
        "end_time": _hhmm(end),
        "is_recurring": bool(event.get("recurrence")),
        "google_event_id": event.get("id"),
    }

def event_signature(event: dict) -> tuple:
    start, end = event_times(event)
    return (event.get("summary") or "", start.date().isoformat(), _hhmm(start), _hhmm(end))

def task_signature(task) -> tuple:
    return event_signature(task_to_event(task))


class GoogleCalendarClient:
    """Thin async wrapper around the Calendar v3 discovery client (primary calendar)."""

    def __init__(self, creds):
        self.service = build("calendar", "v3", credentials=creds, cache_discovery=False)

    async def list_events(self, time_min: datetime, time_max: datetime) -> list[dict]:
        events = []
        page_token = None
        while True:
            request = self.service.events().list(
                calendarId="primary",
                timeMin=ensure_utc(time_min).isoformat().replace("+00:00", "Z"),
                timeMax=ensure_utc(time_max).isoformat().replace("+00:00", "Z"),
                singleEvents=True,
                pageToken=page_token,
            )
            result = await asyncio.to_thread(request.execute)
            events.extend(result.get("items", []))
            page_token = result.get("nextPageToken")
            if not page_token:
                return events

    async def create_event(self, body: dict) -> dict:
        request = self.service.events().insert(calendarId="primary", body=body)
        return await asyncio.to_thread(request.execute)

    async def update_event(self, event_id: str, body: dict) -> dict:
        request = self.service.events().update(calendarId="primary", eventId=event_id, body=body)
        return await asyncio.to_thread(request.execute)

