from __future__ import annotations

from enum import StrEnum


class LoadSource(StrEnum):
    PRIMARY = "primary"
    BACKUP = "backup"
    FRESH_START = "fresh_start"
    BOTH_CORRUPTED = "both_corrupted"


class SaveErrorKind(StrEnum):
    PERMISSION_DENIED = "permission_denied"
    IO_FAILURE = "io_failure"
    OTHER = "other"


class TaskChange(StrEnum):
    TITLE = "title"
    COMPLETED = "is_completed"


class FilterKey(StrEnum):
    ALL = "all"
    TAG = "tag"
    DUE_ON = "due_on"
    TODAY = "today"
    WEEK = "week"
    OVERDUE = "overdue"
