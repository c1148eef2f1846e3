# tests/test_sync_service.py

from datetime import date, timedelta
from types import SimpleNamespace

from sqlalchemy import select

from fakes import NOW, FakeCalendar, FakeFit, event, make_task
from kairos.models.sync_status import HealthDaily
from kairos.models.task import Task
from kairos.services import sync_service, task_service
from kairos.services.google_calendar_service import GoogleCalendarClient, task_to_event


async def _add_task(db, user, title, due, **fields) -> Task:
    t = Task(title=title, due_date=due, user_id=user.id, **fields)
    db.add(t)
    await db.commit()
    await db.refresh(t)
    return t


async def test_status_defaults_to_none(db, db_user) -> None:
    status = await sync_service.get_sync_status(db, db_user.id)

    assert status["calendar"]["status"] == "none"
    assert status["health"]["in_progress"] is False


async def test_calendar_sync_reconciles_both_ways(db, db_user) -> None:
    await _add_task(db, db_user, "Write draft", NOW + timedelta(days=1))
    unchanged = await _add_task(db, db_user, "Standup", NOW + timedelta(days=2), google_event_id="ev-same")
    await _add_task(db, db_user, "Renamed", NOW + timedelta(days=3), google_event_id="ev-changed")
    await _add_task(db, db_user, "Deleted remotely", NOW + timedelta(days=4), google_event_id="ev-gone")

    calendar = FakeCalendar([
        {"id": "ev-same", **task_to_event(unchanged)},
        event("ev-changed", "Old name", NOW + timedelta(days=3)),
        event("ev-new", "Dentist", NOW + timedelta(days=5), minutes=30),
    ])

    result = await sync_service.sync_tasks_with_google_calendar(db, db_user, calendar, now=NOW)

    assert result["success"] is True
    assert result["changes"] == {"created": 3, "updated": 1, "deleted": 0}
    assert [event_id for event_id, _ in calendar.updated] == ["ev-changed"]
    assert sorted(body["summary"] for body in calendar.created) == ["Deleted remotely", "Write draft"]

    tasks = {t.title: t for t in await task_service.get_all_tasks(db, db_user.id)}
    assert tasks["Write draft"].google_event_id.startswith("created-")
    assert tasks["Deleted remotely"].google_event_id.startswith("created-")
    assert tasks["Renamed"].google_event_id == "ev-changed"
    imported = tasks["Dentist"]
    assert (imported.category, imported.priority, imported.google_event_id) == ("personal", "medium", "ev-new")
    assert imported.end_time == (NOW + timedelta(days=5, minutes=30)).strftime("%H:%M")

    status = await sync_service.get_sync_status(db, db_user.id)
    assert status["calendar"]["status"] == "success"
    assert status["calendar"]["changes"]["created"] == 3


async def test_task_moved_to_another_day_updates_its_event(db, db_user) -> None:
    moved = await _add_task(db, db_user, "Standup", NOW + timedelta(days=2), google_event_id="ev-1")
    calendar = FakeCalendar([{"id": "ev-1", **task_to_event(moved)}])
    moved.due_date = NOW + timedelta(days=3)
    await db.commit()

    result = await sync_service.sync_tasks_with_google_calendar(db, db_user, calendar, now=NOW)

    assert result["changes"] == {"created": 0, "updated": 1, "deleted": 0}
    event_id, body = calendar.updated[0]
    assert event_id == "ev-1"
    assert body["start"]["dateTime"].startswith((NOW + timedelta(days=3)).date().isoformat())


class _PagedEvents:
    def __init__(self, pages):
        self.pages = pages
        self.tokens = []

    def list(self, **kwargs):
        self.tokens.append(kwargs.get("pageToken"))
        page = self.pages[len(self.tokens) - 1]
        return SimpleNamespace(execute=lambda: page)


async def test_calendar_client_reads_every_page() -> None:
    events = _PagedEvents([
        {"items": [{"id": "a"}, {"id": "b"}], "nextPageToken": "page-2"},
        {"items": [{"id": "c"}]},
    ])
    client = GoogleCalendarClient.__new__(GoogleCalendarClient)
    client.service = SimpleNamespace(events=lambda: events)

    listed = await client.list_events(NOW, NOW + timedelta(days=7))

    assert [e["id"] for e in listed] == ["a", "b", "c"]
    assert events.tokens == [None, "page-2"]


async def test_calendar_sync_failure_is_recorded(db, db_user) -> None:
    result = await sync_service.sync_tasks_with_google_calendar(db, db_user, FakeCalendar(fail=True), now=NOW)

    assert result["success"] is False
    status = await sync_service.get_sync_status(db, db_user.id)
    assert status["calendar"]["status"] == "error"
    assert status["calendar"]["error"] == "calendar unavailable"
    assert status["calendar"]["in_progress"] is False


async def test_sync_without_google_tokens(db, db_user) -> None:
    result = await sync_service.sync_tasks_with_google_calendar(db, db_user)

    assert result == {"success": False, "message": "No Google integration"}


async def test_health_sync_upserts_days(db, db_user) -> None:
    fit = FakeFit([
        {"date": "2026-03-01", "steps": 9000, "sleep_hours": 7.5, "heart_rate": 64.0},
        {"date": "2026-03-02", "steps": 3000, "sleep_hours": 6.0, "heart_rate": 70.2},
    ])
    await sync_service.sync_health_with_google_fit(db, db_user, fit, now=NOW)

    fit.days = [{"date": "2026-03-02", "steps": 4200, "sleep_hours": 6.5, "heart_rate": 68.0}]
    result = await sync_service.sync_health_with_google_fit(db, db_user, fit, now=NOW)

    assert result["count"] == 1
    rows = (await db.execute(select(HealthDaily).order_by(HealthDaily.date))).scalars().all()
    assert [(r.date, r.steps) for r in rows] == [(date(2026, 3, 1), 9000), (date(2026, 3, 2), 4200)]
    status = await sync_service.get_sync_status(db, db_user.id)
    assert (status["health"]["status"], status["health"]["count"]) == ("success", 1)


def _health(day_offset, steps, sleep):
    return SimpleNamespace(date=(NOW + timedelta(days=day_offset)).date(), steps=steps, sleep_hours=sleep, heart_rate=65.0)


def test_correlation_finds_sleep_insight() -> None:
    health, tasks = [], []
    for offset in range(6):
        rested = offset % 2 == 0
        health.append(_health(offset, 5000, 8.0 if rested else 5.0))
        due = NOW + timedelta(days=offset)
        # Rested days: 2 of 2 done; short nights: 1 of 2 done
        tasks.append(make_task(offset * 10, "a", due, completed=True))
        tasks.append(make_task(offset * 10 + 1, "b", due, completed=rested))

    result = sync_service.correlate_health_with_productivity(health, tasks)

    assert len(result["correlations"]) == 6
    (insight,) = result["insights"]
    assert insight["type"] == "sleep"
    assert insight["confidence"] == "high"
    assert "100%" in insight["description"]


def test_correlation_needs_enough_days() -> None:
    health = [_health(i, 9000, 8.0) for i in range(4)]
    tasks = [make_task(i, "t", NOW + timedelta(days=i), completed=True) for i in range(4)]

    result = sync_service.correlate_health_with_productivity(health, tasks)

    assert len(result["correlations"]) == 4
    assert result["insights"] == []


def test_days_without_tasks_are_skipped() -> None:
    result = sync_service.correlate_health_with_productivity([_health(0, 100, 8.0)], [])

    assert result == {"correlations": [], "insights": []}


async def test_correlation_endpoint(client, auth_headers) -> None:
    response = await client.get("/api/v1/integrations/health/correlation", headers=auth_headers)
    assert response.json() == {"correlations": [], "insights": []}

    status = (await client.get("/api/v1/integrations/status", headers=auth_headers)).json()
    assert status["calendar"]["status"] == "none"

    result = (await client.post("/api/v1/integrations/calendar/sync", headers=auth_headers)).json()
    assert result["success"] is False
