from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Optional


def new_task_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Task:
    title: str
    tags: str = ""
    due_date: Optional[date] = None
    is_completed: bool = False
    id: str = field(default_factory=new_task_id)
