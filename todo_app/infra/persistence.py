from __future__ import annotations

import json
import logging
import shutil
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, Optional

from todo_app.domain.entities import Task, new_task_id
from todo_app.domain.enums import LoadSource, SaveErrorKind
from todo_app.domain.errors import (
    NotFoundError,
    ParseError,
    PermissionDeniedError,
    PersistenceError,
    StorageIOError,
)
from todo_app.domain.filters import normalize_tags

logger = logging.getLogger(__name__)

# Files written by older builds used PascalCase keys.
_FIELD_ALIASES = {
    "id": ("id", "Id"),
    "title": ("title", "Title"),
    "tags": ("tags", "Tags"),
    "dueDate": ("dueDate", "DueDate"),
    "isCompleted": ("isCompleted", "IsCompleted"),
}


@dataclass(frozen=True)
class SaveResult:
    path: Path
    count: int = 0
    error_kind: SaveErrorKind | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error_kind is None


@dataclass(frozen=True)
class LoadResult:
    source: LoadSource
    tasks: list[Task] = field(default_factory=list)
    message: str = ""


def _field(record: dict, name: str, default: Any = None) -> Any:
    for key in _FIELD_ALIASES[name]:
        if key in record:
            return record[key]
    return default


def _parse_due_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValueError(f"dueDate must be a string, got {type(value).__name__}")
    return datetime.fromisoformat(value).date()


def _to_entity(record: Any) -> Task:
    if not isinstance(record, dict):
        raise ValueError(f"task entry must be an object, got {type(record).__name__}")

    title = _field(record, "title", "")
    tags = _field(record, "tags", "")
    completed = _field(record, "isCompleted", False)
    task_id = _field(record, "id")

    if not isinstance(title, str):
        raise ValueError("title must be a string")
    if tags is None:
        tags = ""
    if not isinstance(tags, str):
        raise ValueError("tags must be a string")
    if completed is None:
        completed = False
    if not isinstance(completed, bool):
        raise ValueError("isCompleted must be a boolean")

    return Task(
        id=str(task_id) if task_id else new_task_id(),
        title=title,
        tags=normalize_tags(tags),
        due_date=_parse_due_date(_field(record, "dueDate")),
        is_completed=completed,
    )


def _to_record(task: Task) -> dict:
    due = datetime.combine(task.due_date, time.min).isoformat() if task.due_date else None
    return {
        "id": task.id,
        "title": task.title,
        "tags": task.tags,
        "dueDate": due,
        "isCompleted": task.is_completed,
    }


def decode_tasks(text: str, path: Path | None = None) -> list[Task]:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Invalid JSON: {exc}", path) from exc

    if payload is None:
        return []
    if isinstance(payload, dict):
        payload = payload.get("tasks")
        if payload is None:
            return []
    if not isinstance(payload, list):
        raise ParseError(f"Expected a list of tasks, got {type(payload).__name__}", path)

    try:
        return [_to_entity(record) for record in payload]
    except ValueError as exc:
        raise ParseError(f"Invalid task entry: {exc}", path) from exc


def encode_tasks(tasks: Sequence[Task]) -> str:
    return json.dumps([_to_record(task) for task in tasks], indent=2, ensure_ascii=False)


class PersistenceEngine:
    def __init__(self, primary_path: Path | str, backup_path: Path | str) -> None:
        self.primary_path = Path(primary_path)
        self.backup_path = Path(backup_path)
        self._skip_next_backup = False

    def save(self, tasks: Sequence[Task]) -> SaveResult:
        try:
            payload = encode_tasks(tasks)
            self.primary_path.parent.mkdir(parents=True, exist_ok=True)
            self._backup_primary()
            self._write_primary(payload)
        except PermissionError as exc:
            logger.error("Permission denied saving %s: %s", self.primary_path, exc)
            return SaveResult(self.primary_path, 0, SaveErrorKind.PERMISSION_DENIED, str(exc))
        except OSError as exc:
            logger.error("I/O error saving %s: %s", self.primary_path, exc)
            return SaveResult(self.primary_path, 0, SaveErrorKind.IO_FAILURE, str(exc))
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected error saving %s", self.primary_path)
            return SaveResult(self.primary_path, 0, SaveErrorKind.OTHER, str(exc))

        self._skip_next_backup = False
        logger.info("Saved %d task(s) to %s", len(tasks), self.primary_path)
        return SaveResult(self.primary_path, len(tasks))

    def load(self, path: Path | str | None = None) -> list[Task]:
        target = Path(path) if path is not None else self.primary_path
        try:
            raw = target.read_bytes()
        except FileNotFoundError as exc:
            raise NotFoundError(f"No task file at {target}", target) from exc
        except PermissionError as exc:
            raise PermissionDeniedError(f"Permission denied reading {target}", target) from exc
        except OSError as exc:
            raise StorageIOError(f"Could not read {target}: {exc}", target) from exc

        try:
            text = raw.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ParseError(f"{target} is not valid UTF-8", target) from exc

        tasks = decode_tasks(text, target)
        logger.debug("Read %d task(s) from %s", len(tasks), target)
        return tasks

    def load_with_recovery(self) -> LoadResult:
        primary_failed = False
        try:
            tasks = self.load(self.primary_path)
        except NotFoundError:
            logger.info("No primary task file at %s", self.primary_path)
        except PersistenceError as exc:
            primary_failed = True
            logger.warning("Primary task file unreadable, trying backup: %s", exc)
        else:
            return LoadResult(
                LoadSource.PRIMARY, tasks, f"Loaded {len(tasks)} task(s) from file"
            )

        # An unreadable primary must not overwrite the backup on the next save.
        self._skip_next_backup = primary_failed

        try:
            tasks = self.load(self.backup_path)
        except NotFoundError:
            if primary_failed:
                logger.error("Task file corrupted and no backup at %s", self.backup_path)
                return LoadResult(
                    LoadSource.BOTH_CORRUPTED,
                    [],
                    "Task file is corrupted and no backup exists. Starting empty.",
                )
            return LoadResult(
                LoadSource.FRESH_START, [], "No saved tasks found. Starting fresh!"
            )
        except PersistenceError as exc:
            logger.error("Backup task file unreadable too: %s", exc)
            return LoadResult(
                LoadSource.BOTH_CORRUPTED,
                [],
                "Task file and backup are both corrupted. Starting empty.",
            )

        logger.warning("Restored %d task(s) from backup %s", len(tasks), self.backup_path)
        return LoadResult(
            LoadSource.BACKUP, tasks, f"Restored {len(tasks)} task(s) from backup"
        )

    def _backup_primary(self) -> None:
        if self._skip_next_backup or not self.primary_path.exists():
            return
        try:
            shutil.copy2(self.primary_path, self.backup_path)
        except OSError as exc:
            logger.warning("Backup copy to %s failed: %s", self.backup_path, exc)

    def _write_primary(self, payload: str) -> None:
        self.primary_path.write_text(payload, encoding="utf-8")
