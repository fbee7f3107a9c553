from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from todo_app.domain.entities import Task
from todo_app.domain.enums import TaskChange
from todo_app.domain.errors import ValidationError
from todo_app.services.task_store import TaskStore

TODAY = date(2026, 6, 15)


def make_store() -> TaskStore:
    store = TaskStore()
    store.add("Buy milk", "shopping, Home")
    store.add("Write report", "work", TODAY)
    store.add("Pay rent", "home, bills", TODAY - timedelta(days=1))
    store.add("Plan trip", "", TODAY + timedelta(days=5))
    store.mark_clean()
    return store


def test_add_appends_with_unique_id_and_normalized_tags() -> None:
    store = TaskStore()
    first = store.add("One", "a, A, b")
    second = store.add("Two")

    assert [task.title for task in store.snapshot()] == ["One", "Two"]
    assert first.id != second.id
    assert first.tags == "a, b"
    assert second.tags == ""
    assert store.is_dirty()


def test_remove_marks_dirty_only_when_removed() -> None:
    store = make_store()
    assert not store.remove("missing")
    assert not store.is_dirty()

    task = store.snapshot()[0]
    assert store.remove(task.id)
    assert store.is_dirty()
    assert store.get(task.id) is None


def test_set_completed_notifies_and_ignores_no_op() -> None:
    store = make_store()
    events: list[tuple[str, TaskChange]] = []
    store.subscribe(lambda task, change: events.append((task.id, change)))
    task = store.snapshot()[1]

    assert not store.set_completed(task.id, False)
    assert not store.is_dirty()
    assert store.set_completed(task.id, True)
    assert store.is_dirty()
    assert events == [(task.id, TaskChange.COMPLETED)]
    assert not store.set_completed("missing", True)


def test_unsubscribe_stops_notifications() -> None:
    store = make_store()
    events: list[TaskChange] = []
    unsubscribe = store.subscribe(lambda task, change: events.append(change))
    unsubscribe()
    store.set_completed(store.snapshot()[0].id, True)
    assert events == []


def test_complete_all_dirty_only_if_something_changed() -> None:
    store = TaskStore()
    assert store.complete_all() == 0
    assert not store.is_dirty()

    store = make_store()
    assert store.complete_all() == 4
    assert all(task.is_completed for task in store.snapshot())
    store.mark_clean()
    assert store.complete_all() == 0
    assert not store.is_dirty()


def test_clear_completed_preserves_order_and_is_idempotent() -> None:
    store = make_store()
    tasks = store.snapshot()
    store.set_completed(tasks[0].id, True)
    store.set_completed(tasks[2].id, True)
    store.mark_clean()

    assert store.clear_completed() == 2
    assert [task.title for task in store.snapshot()] == ["Write report", "Plan trip"]
    assert store.is_dirty()

    store.mark_clean()
    assert store.clear_completed() == 0
    assert not store.is_dirty()


def test_update_title_ignores_blank_and_missing() -> None:
    store = make_store()
    events: list[TaskChange] = []
    store.subscribe(lambda task, change: events.append(change))
    task = store.snapshot()[0]

    assert not store.update_title(task.id, "   ")
    assert not store.update_title("missing", "New")
    assert not store.is_dirty()

    assert store.update_title(task.id, "Buy oat milk")
    assert store.get(task.id).title == "Buy oat milk"
    assert store.get(task.id).id == task.id
    assert store.is_dirty()
    assert events == [TaskChange.TITLE]


def test_update_tags_and_due_date() -> None:
    store = make_store()
    task = store.snapshot()[3]

    assert store.update_tags(task.id, "travel, Travel , summer")
    assert task.tags == "travel, summer"
    assert store.set_due_date(task.id, None)
    assert task.due_date is None
    assert not store.set_due_date(task.id, None)


def test_filter_by_tag_is_case_insensitive_substring() -> None:
    store = make_store()
    result = store.filter_by_tag("  HOME ")
    assert [task.title for task in result] == ["Buy milk", "Pay rent"]
    assert [task.title for task in store.filter_by_tag("bill")] == ["Pay rent"]


def test_filter_by_blank_tag_raises_and_leaves_store_untouched() -> None:
    store = make_store()
    before = store.snapshot()
    with pytest.raises(ValidationError):
        store.filter_by_tag("")
    assert store.snapshot() == before
    assert not store.is_dirty()


def test_filters_always_read_full_list() -> None:
    store = make_store()
    assert len(store.filter_by_tag("work")) == 1
    assert len(store.filter_by_tag("home")) == 2
    assert len(store) == 4


def test_filter_due_on_truncates_to_calendar_day() -> None:
    store = make_store()
    result = store.filter_due_on(datetime(2026, 6, 15, 18, 30))
    assert [task.title for task in result] == ["Write report"]


def test_filter_due_within_inclusive() -> None:
    store = make_store()
    result = store.filter_due_within(TODAY, TODAY + timedelta(days=5))
    assert [task.title for task in result] == ["Write report", "Plan trip"]


def test_filter_overdue_excludes_completed_by_default() -> None:
    store = make_store()
    rent = store.snapshot()[2]

    assert [task.title for task in store.filter_overdue(TODAY)] == ["Pay rent"]

    store.set_completed(rent.id, True)
    assert store.filter_overdue(TODAY) == []
    assert store.filter_overdue(TODAY, include_completed=True) == [rent]


def test_filter_overdue_due_today_is_not_overdue() -> None:
    store = make_store()
    assert all(task.due_date < TODAY for task in store.filter_overdue(datetime(2026, 6, 15, 23)))


def test_replace_all_resets_dirty_and_reassigns_duplicate_ids() -> None:
    store = TaskStore()
    store.add("temp")
    store.replace_all([Task("a", id="same"), Task("b", id="same")])

    ids = [task.id for task in store.snapshot()]
    assert ids[0] == "same"
    assert ids[1] != "same"
    assert not store.is_dirty()
