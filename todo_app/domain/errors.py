from __future__ import annotations

from pathlib import Path


class TaskError(Exception):
    """Base class for every error raised by the task core."""


class ValidationError(TaskError, ValueError):
    """Caller supplied input the core refuses to act on (blank tag filter)."""


class PersistenceError(TaskError):
    def __init__(self, message: str, path: Path | str | None = None) -> None:
        super().__init__(message)
        self.path = Path(path) if path is not None else None


class NotFoundError(PersistenceError):
    pass


class ParseError(PersistenceError):
    pass


class PermissionDeniedError(PersistenceError):
    pass


class StorageIOError(PersistenceError):
    pass
