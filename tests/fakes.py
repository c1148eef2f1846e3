# tests/fakes.py

import asyncio
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import httpx

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


def make_task(task_id, title, due_date: datetime, **overrides) -> SimpleNamespace:
    fields = dict(
        id=task_id,
        title=title,
        description="",
        due_date=due_date,
        completed=False,
        category="personal",
        priority="medium",
        reminder_time=None,
        end_time=None,
        google_event_id=None,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def as_existing(draft, read=False) -> SimpleNamespace:
    """Turn an engine draft into what a persisted notification looks like."""
    return SimpleNamespace(
        read=read,
        type=draft.type,
        task_id=draft.task_id,
        category=draft.category,
        related_task_ids=list(draft.related_task_ids),
    )


class FakePushSender:
    def __init__(self, stale=False):
        self.sent = []
        self.stale = stale

    async def send_notification(self, token, title, body, data=None):
        if self.stale:
            raise ValueError("STALE_TOKEN")
        self.sent.append({"token": token, "title": title, "body": body, "data": data})
        return "projects/test/messages/1"


class RecordingHandler:
    """Collection handler that records calls and fails for chosen payload ids."""

    def __init__(self, fail_ids=(), transport_error=False):
        self.calls = []
        self.fail_ids = set(fail_ids)
        self.transport_error = transport_error

    async def __call__(self, kind, payload):
        if self.transport_error:
            raise httpx.ConnectError("network down")
        if payload.get("id") in self.fail_ids:
            raise httpx.HTTPStatusError(
                "rejected",
                request=httpx.Request("POST", "http://test"),
                response=httpx.Response(422),
            )
        self.calls.append((kind, payload))
        return {"ok": True}


class FakeCalendar:
    def __init__(self, events=None, fail=False):
        self.events = {e["id"]: e for e in (events or [])}
        self.created = []
        self.updated = []
        self.fail = fail
        self._next = 1

    async def list_events(self, time_min, time_max):
        if self.fail:
            raise RuntimeError("calendar unavailable")
        return list(self.events.values())

    async def create_event(self, body):
        event_id = f"created-{self._next}"
        self._next += 1
        self.created.append(body)
        return {"id": event_id, **body}

    async def update_event(self, event_id, body):
        self.updated.append((event_id, body))
        return {"id": event_id, **body}


class FakeFit:
    def __init__(self, days):
        self.days = days

    async def fetch_daily_health(self, start, end):
        return self.days


def event(event_id, summary, start: datetime, minutes=60) -> dict:
    return {
        "id": event_id,
        "summary": summary,
        "start": {"dateTime": start.isoformat()},
        "end": {"dateTime": (start + timedelta(minutes=minutes)).isoformat()},
    }


class ServerAssigningHandler(RecordingHandler):
    """Assigns server ids on insert, like the REST API, and can stall each call."""

    def __init__(self, delay=0.0):
        super().__init__()
        self.delay = delay
        self._next_id = 100

    async def __call__(self, kind, payload):
        if self.delay:
            await asyncio.sleep(self.delay)
        self.calls.append((kind, payload))
        if kind == "insert":
            self._next_id += 1
            return {**payload, "id": self._next_id}
        return {"ok": True}
