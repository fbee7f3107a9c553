from __future__ import annotations

from collections.abc import Callable

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QAbstractItemView,
    QCheckBox,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QSizePolicy,
    QVBoxLayout,
    QWidget,
)

from todo_app.domain.entities import Task

STATUS_COLORS = {
    "info": "#93C5FD",
    "success": "#7CC4A1",
    "warning": "#E0B25B",
    "error": "#E24A4A",
}


class TaskItemWidget(QWidget):
    def __init__(
        self,
        task: Task,
        overdue: bool,
        on_toggle: Callable[[str, bool], None],
        parent=None,
    ):
        super().__init__(parent)
        self.task = task
        self._on_toggle = on_toggle

        self.setObjectName("TaskCard")
        self.setAttribute(Qt.WA_StyledBackground, True)
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Fixed)
        self.setMinimumHeight(52)

        self.checkbox = QCheckBox()
        self.checkbox.setChecked(task.is_completed)
        self.checkbox.toggled.connect(self._handle_toggle)

        title = QLabel(task.title.strip() if task.title else "Untitled")
        title.setProperty("class", "task-title")
        title.setWordWrap(True)
        if task.is_completed:
            font = title.font()
            font.setStrikeOut(True)
            title.setFont(font)

        meta_parts = []
        if task.due_date:
            meta_parts.append(f"Due: {task.due_date.strftime('%d.%m.%Y')}")
        if task.tags:
            meta_parts.append(f"Tags: {task.tags}")
        if overdue:
            meta_parts.append("Overdue")

        meta = QLabel(" | ".join(meta_parts) if meta_parts else "No details")
        meta.setProperty("class", "task-meta")
        meta.setWordWrap(True)
        if overdue:
            meta.setStyleSheet(f"color: {STATUS_COLORS['error']};")

        text_column = QVBoxLayout()
        text_column.setSpacing(2)
        text_column.addWidget(title)
        text_column.addWidget(meta)

        layout = QHBoxLayout(self)
        layout.setContentsMargins(12, 6, 12, 6)
        layout.setSpacing(10)
        layout.addWidget(self.checkbox, 0, Qt.AlignTop)
        layout.addLayout(text_column, 1)

    def _handle_toggle(self, checked: bool) -> None:
        self._on_toggle(self.task.id, checked)


class TaskListWidget(QListWidget):
    def __init__(self, parent=None):
        super().__init__(parent)
        self.setSelectionMode(QAbstractItemView.SingleSelection)
        self.setSpacing(6)

    def selected_task(self) -> Task | None:
        item = self.currentItem()
        if item is None:
            return None
        widget = self.itemWidget(item)
        return widget.task if isinstance(widget, TaskItemWidget) else None
