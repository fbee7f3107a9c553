from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from .entities import Task
from .enums import FilterKey
from .errors import ValidationError

TAG_SEPARATOR = ", "
WEEK_HORIZON = timedelta(days=7)


@dataclass(frozen=True)
class TaskFilters:
    filter_key: FilterKey = FilterKey.ALL
    tag: str | None = None
    due_on: Optional[date] = None


def normalize_tags(raw: str | None) -> str:
    """Split on commas, trim, drop blanks and case-insensitive duplicates.

    The first occurrence keeps its casing and position, so the result is stable
    when fed back in.
    """
    if not raw or not raw.strip():
        return ""

    seen: set[str] = set()
    kept: list[str] = []
    for piece in raw.split(","):
        tag = piece.strip()
        if not tag:
            continue
        key = tag.casefold()
        if key in seen:
            continue
        seen.add(key)
        kept.append(tag)
    return TAG_SEPARATOR.join(kept)


def clean_tag_query(tag: str | None) -> str:
    query = (tag or "").strip().lower()
    if not query:
        raise ValidationError("Enter a tag to filter by.")
    return query


def as_day(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def matches_tag(task: Task, query: str) -> bool:
    return bool(task.tags) and query in task.tags.lower()


def is_due_on(task: Task, day: date | datetime) -> bool:
    return task.due_date is not None and as_day(task.due_date) == as_day(day)


def is_due_within(task: Task, start: date | datetime, end: date | datetime) -> bool:
    if task.due_date is None:
        return False
    return as_day(start) <= as_day(task.due_date) <= as_day(end)


def is_overdue(task: Task, now: date | datetime, include_completed: bool = False) -> bool:
    if task.due_date is None:
        return False
    if task.is_completed and not include_completed:
        return False
    return as_day(task.due_date) < as_day(now)


def week_bounds(today: date | datetime) -> tuple[date, date]:
    start = as_day(today)
    return start, start + WEEK_HORIZON
