from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import date, datetime
from typing import Optional

from todo_app.domain.entities import Task, new_task_id
from todo_app.domain.enums import TaskChange
from todo_app.domain.filters import (
    clean_tag_query,
    is_due_on,
    is_due_within,
    is_overdue,
    matches_tag,
    normalize_tags,
)

logger = logging.getLogger(__name__)

TaskListener = Callable[[Task, TaskChange], None]


class TaskStore:
    """Canonical, ordered list of tasks and the only place that mutates them.

    Every mutator flips the dirty flag when it actually changed something.
    Filters always read the full list and return new lists.
    """

    def __init__(self, tasks: Iterable[Task] | None = None) -> None:
        self._tasks: list[Task] = []
        self._dirty = False
        self._listeners: list[TaskListener] = []
        if tasks is not None:
            self.replace_all(tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    def snapshot(self) -> list[Task]:
        return list(self._tasks)

    def get(self, task_id: str) -> Task | None:
        return next((task for task in self._tasks if task.id == task_id), None)

    def replace_all(self, tasks: Iterable[Task]) -> None:
        seen: set[str] = set()
        loaded: list[Task] = []
        for task in tasks:
            if task.id in seen:
                old_id = task.id
                task.id = new_task_id()
                logger.warning("Duplicate task id %s reassigned to %s", old_id, task.id)
            seen.add(task.id)
            loaded.append(task)
        self._tasks = loaded
        self._dirty = False

    # ---- dirty flag ----

    def is_dirty(self) -> bool:
        return self._dirty

    def mark_clean(self) -> None:
        self._dirty = False

    # ---- observers ----

    def subscribe(self, listener: TaskListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, task: Task, change: TaskChange) -> None:
        for listener in list(self._listeners):
            listener(task, change)

    # ---- mutators ----

    def add(self, title: str, tags: str = "", due_date: Optional[date] = None) -> Task:
        task = Task(
            title=title,
            tags=normalize_tags(tags),
            due_date=due_date,
            id=self._unique_id(),
        )
        self._tasks.append(task)
        self._dirty = True
        return task

    def remove(self, task_id: str) -> bool:
        for index, task in enumerate(self._tasks):
            if task.id == task_id:
                del self._tasks[index]
                self._dirty = True
                return True
        return False

    def set_completed(self, task_id: str, value: bool) -> bool:
        task = self.get(task_id)
        if task is None or task.is_completed == value:
            return False
        task.is_completed = value
        self._dirty = True
        self._notify(task, TaskChange.COMPLETED)
        return True

    def complete_all(self) -> int:
        changed = [task for task in self._tasks if not task.is_completed]
        for task in changed:
            task.is_completed = True
        if changed:
            self._dirty = True
        for task in changed:
            self._notify(task, TaskChange.COMPLETED)
        return len(changed)

    def clear_completed(self) -> int:
        remaining = [task for task in self._tasks if not task.is_completed]
        removed = len(self._tasks) - len(remaining)
        if removed:
            self._tasks = remaining
            self._dirty = True
        return removed

    def update_title(self, task_id: str, new_title: str) -> bool:
        task = self.get(task_id)
        if task is None or not new_title or not new_title.strip():
            return False
        if task.title == new_title:
            return False
        task.title = new_title
        self._dirty = True
        self._notify(task, TaskChange.TITLE)
        return True

    def update_tags(self, task_id: str, raw_tags: str) -> bool:
        task = self.get(task_id)
        if task is None:
            return False
        tags = normalize_tags(raw_tags)
        if task.tags == tags:
            return False
        task.tags = tags
        self._dirty = True
        return True

    def set_due_date(self, task_id: str, due_date: Optional[date]) -> bool:
        task = self.get(task_id)
        if task is None or task.due_date == due_date:
            return False
        task.due_date = due_date
        self._dirty = True
        return True

    # ---- queries ----

    def filter_by_tag(self, tag: str | None) -> list[Task]:
        query = clean_tag_query(tag)
        return [task for task in self._tasks if matches_tag(task, query)]

    def filter_due_on(self, day: date | datetime) -> list[Task]:
        return [task for task in self._tasks if is_due_on(task, day)]

    def filter_due_within(self, start: date | datetime, end: date | datetime) -> list[Task]:
        return [task for task in self._tasks if is_due_within(task, start, end)]

    def filter_overdue(
        self, now: date | datetime, include_completed: bool = False
    ) -> list[Task]:
        return [task for task in self._tasks if is_overdue(task, now, include_completed)]

    def _unique_id(self) -> str:
        existing = {task.id for task in self._tasks}
        task_id = new_task_id()
        while task_id in existing:
            task_id = new_task_id()
        return task_id
