from __future__ import annotations

from datetime import date, timedelta
from pathlib import Path

from todo_app.domain.entities import Task
from todo_app.domain.enums import FilterKey, LoadSource, SaveErrorKind
from todo_app.domain.filters import TaskFilters
from todo_app.infra.persistence import LoadResult, PersistenceEngine, SaveResult
from todo_app.services.task_service import TaskService
from todo_app.services.task_store import TaskStore

TODAY = date(2026, 6, 15)


class FakeEngine:
    def __init__(self, load_result: LoadResult | None = None) -> None:
        self.saved: list[list[Task]] = []
        self.fail_with: SaveErrorKind | None = None
        self._load_result = load_result or LoadResult(LoadSource.FRESH_START)

    def save(self, tasks: list[Task]) -> SaveResult:
        if self.fail_with:
            return SaveResult(Path("tasks.json"), 0, self.fail_with, "denied")
        self.saved.append(list(tasks))
        return SaveResult(Path("tasks.json"), len(tasks))

    def load_with_recovery(self) -> LoadResult:
        return self._load_result


def make_service(engine: FakeEngine, write_through: bool = True, **kwargs) -> TaskService:
    return TaskService(TaskStore(), engine, write_through=write_through, today=lambda: TODAY, **kwargs)


def test_write_through_saves_after_each_mutation() -> None:
    engine = FakeEngine()
    service = make_service(engine)

    task = service.add_task("Buy milk", "home")
    service.set_completed(task.id, True)
    service.set_completed(task.id, True)
    service.clear_completed()

    assert [len(snapshot) for snapshot in engine.saved] == [1, 1, 0]
    assert not service.store.is_dirty()


def test_without_write_through_only_autosave_persists() -> None:
    engine = FakeEngine()
    service = make_service(engine, write_through=False)

    assert service.autosave() is None
    service.add_task("Draft")
    assert engine.saved == []
    assert service.store.is_dirty()

    result = service.autosave()
    assert result is not None and result.ok
    assert len(engine.saved) == 1
    assert service.autosave() is None


def test_failed_save_keeps_dirty_flag_and_notifies() -> None:
    engine = FakeEngine()
    engine.fail_with = SaveErrorKind.PERMISSION_DENIED
    service = make_service(engine)
    seen: list[SaveResult] = []
    service.add_save_listener(seen.append)

    service.add_task("Important")

    assert service.store.is_dirty()
    assert len(service.store) == 1
    assert seen and seen[0].error_kind == SaveErrorKind.PERMISSION_DENIED
    assert service.last_save is seen[0]

    engine.fail_with = None
    assert service.autosave().ok
    assert not service.store.is_dirty()


def test_load_populates_store() -> None:
    tasks = [Task("From backup", id="b-1")]
    engine = FakeEngine(LoadResult(LoadSource.BACKUP, tasks, "Restored 1 task(s) from backup"))
    service = make_service(engine)

    result = service.load()

    assert result.source == LoadSource.BACKUP
    assert service.store.snapshot() == tasks
    assert not service.store.is_dirty()


def test_update_task_edits_title_tags_and_due_date() -> None:
    engine = FakeEngine()
    service = make_service(engine)
    task = service.add_task("Old")

    assert service.update_task(task.id, "New", "a, A", TODAY)
    assert (task.title, task.tags, task.due_date) == ("New", "a", TODAY)
    assert not service.update_task(task.id, "New", "a", TODAY)
    assert len(engine.saved) == 2


def test_list_tasks_dispatches_filters() -> None:
    service = make_service(FakeEngine(), write_through=False)
    service.add_task("Today", "work", TODAY)
    service.add_task("Late", "home", TODAY - timedelta(days=2))
    service.add_task("Soon", "work", TODAY + timedelta(days=7))
    service.add_task("Later", "", TODAY + timedelta(days=8))

    def titles(filters: TaskFilters) -> list[str]:
        return [task.title for task in service.list_tasks(filters)]

    assert titles(TaskFilters()) == ["Today", "Late", "Soon", "Later"]
    assert titles(TaskFilters(FilterKey.TAG, tag="WORK")) == ["Today", "Soon"]
    assert titles(TaskFilters(FilterKey.TODAY)) == ["Today"]
    assert titles(TaskFilters(FilterKey.WEEK)) == ["Today", "Soon"]
    assert titles(TaskFilters(FilterKey.OVERDUE)) == ["Late"]
    assert titles(TaskFilters(FilterKey.DUE_ON, due_on=TODAY + timedelta(days=8))) == ["Later"]


def test_overdue_can_include_completed() -> None:
    service = make_service(FakeEngine(), overdue_includes_completed=True)
    task = service.add_task("Late", due_date=TODAY - timedelta(days=1))
    service.set_completed(task.id, True)

    assert service.list_tasks(TaskFilters(FilterKey.OVERDUE)) == [task]
    assert service.is_overdue(task)


def test_stats() -> None:
    service = make_service(FakeEngine())
    done = service.add_task("Done", due_date=TODAY - timedelta(days=1))
    service.add_task("Late", due_date=TODAY - timedelta(days=1))
    service.add_task("Today", due_date=TODAY)
    service.set_completed(done.id, True)

    assert service.get_stats() == {
        "total": 3,
        "completed": 1,
        "pending": 2,
        "overdue": 1,
        "due_today": 1,
    }


def test_end_to_end_with_real_engine(tmp_path: Path) -> None:
    engine = PersistenceEngine(tmp_path / "data" / "tasks.json", tmp_path / "data" / "tasks.backup.json")
    service = TaskService(TaskStore(), engine)
    assert service.load().source == LoadSource.FRESH_START

    service.add_task("Persist me", "x, y", TODAY)

    reloaded = TaskService(TaskStore(), engine)
    result = reloaded.load()
    assert result.source == LoadSource.PRIMARY
    assert reloaded.store.snapshot() == service.store.snapshot()


def test_denied_write_keeps_file_and_dirty_flag(tmp_path: Path, monkeypatch) -> None:
    engine = PersistenceEngine(tmp_path / "data" / "tasks.json", tmp_path / "data" / "tasks.backup.json")
    service = TaskService(TaskStore(), engine)
    service.add_task("Saved first")
    before = engine.primary_path.read_bytes()

    def deny(payload: str) -> None:
        raise PermissionError("access denied")

    monkeypatch.setattr(engine, "_write_primary", deny)
    service.add_task("Never written")

    assert service.last_save.error_kind == SaveErrorKind.PERMISSION_DENIED
    assert engine.primary_path.read_bytes() == before
    assert service.store.is_dirty()
    assert len(service.store) == 2
