# tests/test_reminder_engine.py

from datetime import timedelta

import pytest

from fakes import NOW, make_task, as_existing
from kairos.services.reminder_engine import (
    derive_notifications,
    is_focus_active,
    is_quiet_hours,
    select_overdue,
    select_upcoming,
)


@pytest.mark.parametrize(
    "now_hhmm, expected",
    [("08:59", False), ("09:00", True), ("12:30", True), ("17:00", True), ("17:01", False)],
)
def test_quiet_hours_daytime_window(now_hhmm, expected) -> None:
    assert is_quiet_hours(now_hhmm, "09:00", "17:00") is expected


@pytest.mark.parametrize(
    "now_hhmm, expected",
    [
        ("21:59", False),
        ("22:00", True),
        ("23:30", True),
        ("00:00", True),
        ("08:00", True),
        ("08:01", False),
        ("12:00", False),
    ],
)
def test_quiet_hours_window_wraps_midnight(now_hhmm, expected) -> None:
    assert is_quiet_hours(now_hhmm, "22:00", "08:00") is expected


def test_quiet_hours_off_when_a_bound_is_missing() -> None:
    assert is_quiet_hours("12:00", None, "17:00") is False
    assert is_quiet_hours("12:00", "09:00", None) is False
    assert is_quiet_hours("12:00", None, None) is False


def test_single_task_reminder(prefs) -> None:
    task = make_task(1, "Submit report", NOW + timedelta(minutes=10),
                     reminder_time=30, category="work", priority="high")

    drafts = derive_notifications([task], prefs, False, [], NOW)

    assert len(drafts) == 1
    draft = drafts[0]
    assert draft.type == "reminder"
    assert "Submit report" in draft.title
    assert draft.task_id == 1
    assert draft.related_task_ids == [1]
    assert draft.priority == "high"
    assert {a["action"] for a in draft.actions} == {"complete", "postpone", "view"}


def test_several_tasks_in_one_category_are_grouped(prefs) -> None:
    tasks = [
        make_task(1, "Laundry", NOW + timedelta(minutes=5), priority="low"),
        make_task(2, "Groceries", NOW + timedelta(minutes=10)),
        make_task(3, "Call mum", NOW + timedelta(minutes=15)),
    ]

    drafts = derive_notifications(tasks, prefs, False, [], NOW)

    assert len(drafts) == 1
    group = drafts[0]
    assert group.task_id is None
    assert group.category == "personal"
    assert sorted(group.related_task_ids) == [1, 2, 3]
    assert group.priority == "medium"
    assert {a["action"] for a in group.actions} == {"view", "dismiss"}


def test_group_is_high_priority_when_any_member_is(prefs) -> None:
    tasks = [
        make_task(1, "Standup", NOW + timedelta(minutes=5), category="work"),
        make_task(2, "Deploy", NOW + timedelta(minutes=20), category="work", priority="high"),
    ]

    (group,) = derive_notifications(tasks, prefs, False, [], NOW)

    assert group.priority == "high"


def test_categories_are_grouped_independently(prefs) -> None:
    tasks = [
        make_task(1, "Gym", NOW + timedelta(minutes=5), category="fitness"),
        make_task(2, "Report", NOW + timedelta(minutes=5), category="work"),
        make_task(3, "Review", NOW + timedelta(minutes=6), category="work"),
    ]

    drafts = derive_notifications(tasks, prefs, False, [], NOW)

    assert [(d.category, d.task_id) for d in drafts] == [("fitness", 1), ("work", None)]


def test_rerun_with_unchanged_inputs_creates_nothing(prefs) -> None:
    tasks = [
        make_task(1, "Report", NOW + timedelta(minutes=5), category="work"),
        make_task(2, "Laundry", NOW + timedelta(minutes=5)),
        make_task(3, "Groceries", NOW + timedelta(minutes=8)),
        make_task(4, "Old thing", NOW - timedelta(hours=3)),
    ]

    first = derive_notifications(tasks, prefs, False, [], NOW)
    existing = [as_existing(d) for d in first]
    second = derive_notifications(tasks, prefs, False, existing, NOW + timedelta(minutes=1))

    assert len(first) == 3
    assert second == []


def test_read_notifications_do_not_block_new_ones(prefs) -> None:
    task = make_task(1, "Report", NOW + timedelta(minutes=5))
    (draft,) = derive_notifications([task], prefs, False, [], NOW)

    again = derive_notifications([task], prefs, False, [as_existing(draft, read=True)], NOW)

    assert len(again) == 1


def test_overdue_summary(prefs) -> None:
    tasks = [
        make_task(1, "Taxes", NOW - timedelta(days=1)),
        make_task(2, "Dentist", NOW - timedelta(minutes=1)),
        make_task(3, "Done already", NOW - timedelta(days=2), completed=True),
    ]

    (summary,) = derive_notifications(tasks, prefs, False, [], NOW)

    assert summary.type == "overdue"
    assert summary.priority == "high"
    assert sorted(summary.related_task_ids) == [1, 2]
    assert "2 overdue tasks" in summary.message


def test_window_edges(prefs) -> None:
    due_now = make_task(1, "Right now", NOW)
    at_lead = make_task(2, "At lead", NOW + timedelta(minutes=30))
    past_lead = make_task(3, "Later", NOW + timedelta(minutes=31))
    tasks = [due_now, at_lead, past_lead]

    assert select_upcoming(tasks, prefs, NOW) == [at_lead]
    assert select_overdue(tasks, prefs, NOW) == []


def test_zero_minute_lead_never_reminds(prefs) -> None:
    task = make_task(1, "No reminder", NOW + timedelta(minutes=1), reminder_time=0)

    assert select_upcoming([task], prefs, NOW) == []


def test_disabled_category_and_priority_are_filtered(prefs) -> None:
    prefs.categories["work"] = False
    prefs.priorities["low"] = False
    tasks = [
        make_task(1, "Work item", NOW + timedelta(minutes=5), category="work"),
        make_task(2, "Low item", NOW + timedelta(minutes=5), priority="low"),
        make_task(3, "Kept", NOW + timedelta(minutes=5), category="fitness"),
    ]

    drafts = derive_notifications(tasks, prefs, False, [], NOW)

    assert [d.task_id for d in drafts] == [3]


def test_missing_filter_keys_count_as_enabled(prefs) -> None:
    prefs.categories = {}
    prefs.priorities = {"medium": True}
    task = make_task(1, "Study", NOW + timedelta(minutes=5), category="academic", priority="high")

    assert len(derive_notifications([task], prefs, False, [], NOW)) == 1


def test_nothing_when_disabled_or_focused(prefs) -> None:
    tasks = [make_task(1, "Report", NOW + timedelta(minutes=5)), make_task(2, "Late", NOW - timedelta(hours=1))]

    assert derive_notifications(tasks, prefs, True, [], NOW) == []
    prefs.enabled = False
    assert derive_notifications(tasks, prefs, False, [], NOW) == []


def test_quiet_hours_use_the_users_timezone(prefs) -> None:
    # 17:00 UTC is 22:30 in Kolkata
    prefs.quiet_hours_start = "22:00"
    prefs.quiet_hours_end = "08:00"
    tasks = [make_task(1, "Report", NOW.replace(hour=17) + timedelta(minutes=5))]

    prefs.timezone = "Asia/Kolkata"
    assert derive_notifications(tasks, prefs, False, [], NOW.replace(hour=17)) == []

    prefs.timezone = "UTC"
    assert len(derive_notifications(tasks, prefs, False, [], NOW.replace(hour=17))) == 1


def test_focus_mode_expires_lazily(prefs) -> None:
    assert is_focus_active(prefs, NOW) is False

    prefs.focus_until = NOW + timedelta(minutes=25)
    assert is_focus_active(prefs, NOW) is True
    assert is_focus_active(prefs, NOW + timedelta(minutes=25)) is False
