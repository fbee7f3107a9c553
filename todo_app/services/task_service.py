from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date, datetime
from typing import Optional

from todo_app.domain.entities import Task
from todo_app.domain.enums import FilterKey
from todo_app.domain.filters import TaskFilters, is_overdue, week_bounds
from todo_app.infra.persistence import LoadResult, PersistenceEngine, SaveResult

from .task_store import TaskStore

logger = logging.getLogger(__name__)

SaveListener = Callable[[SaveResult], None]


class TaskService:
    def __init__(
        self,
        store: TaskStore,
        engine: PersistenceEngine,
        write_through: bool = True,
        overdue_includes_completed: bool = False,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._store = store
        self._engine = engine
        self._write_through = write_through
        self._overdue_includes_completed = overdue_includes_completed
        self._today = today
        self._save_listeners: list[SaveListener] = []
        self.last_save: SaveResult | None = None

    @property
    def store(self) -> TaskStore:
        return self._store

    def add_save_listener(self, listener: SaveListener) -> None:
        self._save_listeners.append(listener)

    # ---- persistence ----

    def load(self) -> LoadResult:
        result = self._engine.load_with_recovery()
        self._store.replace_all(result.tasks)
        logger.info("Startup load: %s (%d task(s))", result.source, len(result.tasks))
        return result

    def save(self) -> SaveResult:
        result = self._engine.save(self._store.snapshot())
        if result.ok:
            self._store.mark_clean()
        self.last_save = result
        for listener in list(self._save_listeners):
            listener(result)
        return result

    def autosave(self) -> SaveResult | None:
        if not self._store.is_dirty():
            return None
        logger.debug("Auto-save triggered")
        return self.save()

    def _after_mutation(self) -> None:
        if self._write_through and self._store.is_dirty():
            self.save()

    # ---- mutations ----

    def add_task(self, title: str, tags: str = "", due_date: Optional[date] = None) -> Task:
        task = self._store.add(title, tags, due_date)
        self._after_mutation()
        return task

    def delete_task(self, task_id: str) -> bool:
        removed = self._store.remove(task_id)
        self._after_mutation()
        return removed

    def set_completed(self, task_id: str, value: bool) -> bool:
        changed = self._store.set_completed(task_id, value)
        self._after_mutation()
        return changed

    def complete_all(self) -> int:
        count = self._store.complete_all()
        self._after_mutation()
        return count

    def clear_completed(self) -> int:
        count = self._store.clear_completed()
        self._after_mutation()
        return count

    def update_task(
        self, task_id: str, title: str, tags: str, due_date: Optional[date]
    ) -> bool:
        changed = self._store.update_title(task_id, title)
        changed = self._store.update_tags(task_id, tags) or changed
        changed = self._store.set_due_date(task_id, due_date) or changed
        self._after_mutation()
        return changed

    # ---- queries ----

    def list_tasks(self, filters: TaskFilters) -> list[Task]:
        today = self._today()
        key = filters.filter_key

        if key == FilterKey.TAG:
            return self._store.filter_by_tag(filters.tag)
        if key == FilterKey.DUE_ON and filters.due_on:
            return self._store.filter_due_on(filters.due_on)
        if key == FilterKey.TODAY:
            return self._store.filter_due_on(today)
        if key == FilterKey.WEEK:
            start, end = week_bounds(today)
            return self._store.filter_due_within(start, end)
        if key == FilterKey.OVERDUE:
            return self._store.filter_overdue(today, self._overdue_includes_completed)
        return self._store.snapshot()

    def is_overdue(self, task: Task, now: date | datetime | None = None) -> bool:
        return is_overdue(task, now or self._today(), self._overdue_includes_completed)

    def get_stats(self) -> dict[str, int]:
        tasks = self._store.snapshot()
        today = self._today()
        completed = sum(1 for task in tasks if task.is_completed)
        return {
            "total": len(tasks),
            "completed": completed,
            "pending": len(tasks) - completed,
            "overdue": len(self._store.filter_overdue(today, self._overdue_includes_completed)),
            "due_today": len(self._store.filter_due_on(today)),
        }
