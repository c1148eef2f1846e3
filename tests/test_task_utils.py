# tests/test_task_utils.py

from datetime import timedelta

from fakes import NOW, make_task
from kairos.utils import task_utils


def _tasks():
    return [
        make_task(1, "Yesterday", NOW - timedelta(days=1), category="work"),
        make_task(2, "Earlier today", NOW - timedelta(hours=2), priority="high"),
        make_task(3, "Tonight", NOW + timedelta(hours=6), completed=True, priority="low"),
        make_task(4, "Sunday", NOW + timedelta(days=6), category="fitness"),
        make_task(5, "Next Monday", NOW + timedelta(days=7), category="fitness", priority="high"),
    ]


def test_due_today_and_overdue_use_day_granularity() -> None:
    tasks = _tasks()

    assert [t.id for t in task_utils.get_tasks_due_today(tasks, NOW)] == [2]
    assert [t.id for t in task_utils.get_overdue_tasks(tasks, NOW)] == [1]


def test_current_week_runs_monday_to_sunday() -> None:
    # NOW is a Monday
    week = task_utils.get_tasks_for_current_week(_tasks(), NOW)

    assert sorted(t.id for t in week) == [2, 3, 4]


def test_sorting() -> None:
    tasks = _tasks()

    assert [t.id for t in task_utils.sort_tasks_by_due_date(tasks)] == [1, 2, 3, 4, 5]
    assert [t.id for t in task_utils.sort_tasks_by_due_date(tasks, ascending=False)] == [5, 4, 3, 2, 1]
    assert [t.id for t in task_utils.sort_tasks_by_priority(tasks)] == [2, 5, 1, 4, 3]


def test_productivity_score_rounds_half_up() -> None:
    assert task_utils.get_productivity_score([]) == 0
    assert task_utils.get_productivity_score(_tasks()) == 20

    two = [make_task(1, "a", NOW, completed=True), make_task(2, "b", NOW)]
    assert task_utils.get_productivity_score(two) == 50

    eight = [make_task(i, "t", NOW, completed=i < 1) for i in range(8)]
    # 12.5 -> 13
    assert task_utils.get_productivity_score(eight) == 13


def test_category_distribution_lists_every_category() -> None:
    assert task_utils.get_category_distribution(_tasks()) == {
        "personal": 2, "work": 1, "fitness": 2, "academic": 0
    }
    assert task_utils.get_category_distribution([]) == {
        "personal": 0, "work": 0, "fitness": 0, "academic": 0
    }


def test_filters_by_category_and_range() -> None:
    tasks = _tasks()

    assert [t.id for t in task_utils.get_tasks_by_category(tasks, "fitness")] == [4, 5]
    in_range = task_utils.get_tasks_by_date_range(tasks, NOW - timedelta(hours=3), NOW + timedelta(days=1))
    assert [t.id for t in in_range] == [2, 3]
    assert [t.id for t in task_utils.get_pending_tasks(tasks)] == [1, 2, 4, 5]
