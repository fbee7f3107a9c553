from __future__ import annotations

import logging

from PySide6.QtCore import QDate, QSize, Qt, QTimer
from PySide6.QtGui import QKeySequence, QShortcut
from PySide6.QtWidgets import (
    QDateEdit,
    QFrame,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidgetItem,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from todo_app.config import SETTINGS, Settings
from todo_app.domain.entities import Task
from todo_app.domain.enums import FilterKey, LoadSource, SaveErrorKind, TaskChange
from todo_app.domain.errors import ValidationError
from todo_app.domain.filters import TaskFilters
from todo_app.infra.persistence import LoadResult, SaveResult
from todo_app.services.task_service import TaskService

from .dialogs import EditTaskDialog
from .widgets import STATUS_COLORS, TaskItemWidget, TaskListWidget

logger = logging.getLogger(__name__)

LOAD_TONES = {
    LoadSource.PRIMARY: "info",
    LoadSource.BACKUP: "warning",
    LoadSource.FRESH_START: "info",
    LoadSource.BOTH_CORRUPTED: "error",
}

SAVE_ERROR_TITLES = {
    SaveErrorKind.PERMISSION_DENIED: "Permission denied",
    SaveErrorKind.IO_FAILURE: "Disk error",
    SaveErrorKind.OTHER: "Save failed",
}

FILTER_LABELS = {
    FilterKey.TODAY: "Tasks due today",
    FilterKey.WEEK: "Tasks due this week",
    FilterKey.OVERDUE: "Overdue tasks",
}


class MainWindow(QWidget):
    def __init__(self, service: TaskService, load_result: LoadResult, settings: Settings = SETTINGS):
        super().__init__()
        self.setWindowTitle("To-Do List")
        self.resize(760, 640)

        self.service = service
        self.filters = TaskFilters()

        layout = QVBoxLayout(self)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.setSpacing(10)
        layout.addWidget(self._build_input_bar())
        layout.addWidget(self._build_filter_bar())

        self.task_list = TaskListWidget()
        self.task_list.setObjectName("TaskList")
        self.task_list.itemDoubleClicked.connect(self.edit_task)
        layout.addWidget(self.task_list, 1)

        layout.addLayout(self._build_action_row())

        self.status_label = QLabel("")
        self.status_label.setObjectName("StatusText")
        layout.addWidget(self.status_label)

        self._unsubscribe = self.service.store.subscribe(self._on_task_changed)
        self.service.add_save_listener(self._on_saved)

        # QTimer fires on the GUI thread, so saves never interleave with edits.
        self.autosave_timer = QTimer(self)
        self.autosave_timer.setInterval(settings.autosave_interval_sec * 1000)
        self.autosave_timer.timeout.connect(self.autosave)
        self.autosave_timer.start()

        self.refresh_tasks()
        self.show_status(load_result.message, LOAD_TONES.get(load_result.source, "info"))

        QShortcut(QKeySequence("Ctrl+S"), self, self.save_tasks)
        QShortcut(QKeySequence("Delete"), self, self.delete_task)

    def _build_input_bar(self) -> QWidget:
        frame = QFrame()
        frame.setObjectName("InputBar")
        row = QHBoxLayout(frame)
        row.setContentsMargins(0, 0, 0, 0)

        self.title_input = QLineEdit()
        self.title_input.setPlaceholderText("What needs to be done?")
        self.title_input.returnPressed.connect(self.add_task)

        self.tags_input = QLineEdit()
        self.tags_input.setPlaceholderText("Tags, comma-separated")
        self.tags_input.setMaximumWidth(200)

        self.due_toggle = QPushButton("No due date")
        self.due_toggle.setCheckable(True)
        self.due_toggle.setProperty("variant", "secondary")
        self.due_toggle.toggled.connect(self.on_due_toggled)

        self.due_input = QDateEdit()
        self.due_input.setCalendarPopup(True)
        self.due_input.setDate(QDate.currentDate())
        self.due_input.setEnabled(False)

        add_button = QPushButton("Add")
        add_button.clicked.connect(self.add_task)

        row.addWidget(self.title_input, 1)
        row.addWidget(self.tags_input)
        row.addWidget(self.due_toggle)
        row.addWidget(self.due_input)
        row.addWidget(add_button)
        return frame

    def _build_filter_bar(self) -> QWidget:
        frame = QFrame()
        frame.setObjectName("FilterBar")
        row = QHBoxLayout(frame)
        row.setContentsMargins(0, 0, 0, 0)

        self.tag_filter_input = QLineEdit()
        self.tag_filter_input.setPlaceholderText("Filter by tag")
        self.tag_filter_input.returnPressed.connect(self.filter_by_tag)

        filter_button = QPushButton("Filter")
        filter_button.clicked.connect(self.filter_by_tag)

        clear_button = QPushButton("Show all")
        clear_button.setProperty("variant", "ghost")
        clear_button.clicked.connect(self.clear_filter)

        row.addWidget(self.tag_filter_input, 1)
        row.addWidget(filter_button)
        row.addWidget(clear_button)

        for key, label in ((FilterKey.TODAY, "Today"), (FilterKey.WEEK, "This week"), (FilterKey.OVERDUE, "Overdue")):
            button = QPushButton(label)
            button.setProperty("variant", "secondary")
            button.clicked.connect(lambda _checked=False, k=key: self.apply_filter(TaskFilters(filter_key=k)))
            row.addWidget(button)
        return frame

    def _build_action_row(self) -> QHBoxLayout:
        row = QHBoxLayout()

        edit_button = QPushButton("Edit")
        edit_button.setProperty("variant", "secondary")
        edit_button.clicked.connect(lambda: self.edit_task(self.task_list.currentItem()))

        delete_button = QPushButton("Delete")
        delete_button.setProperty("variant", "danger")
        delete_button.clicked.connect(self.delete_task)

        complete_all_button = QPushButton("Complete all")
        complete_all_button.setProperty("variant", "secondary")
        complete_all_button.clicked.connect(self.complete_all)

        clear_completed_button = QPushButton("Clear completed")
        clear_completed_button.setProperty("variant", "ghost")
        clear_completed_button.clicked.connect(self.clear_completed)

        save_button = QPushButton("Save")
        save_button.clicked.connect(self.save_tasks)

        self.stats_label = QLabel("")
        self.stats_label.setProperty("class", "stats-badge")

        row.addWidget(edit_button)
        row.addWidget(delete_button)
        row.addWidget(complete_all_button)
        row.addWidget(clear_completed_button)
        row.addStretch()
        row.addWidget(self.stats_label)
        row.addWidget(save_button)
        return row

    # ---- rendering ----

    def refresh_tasks(self) -> None:
        try:
            tasks = self.service.list_tasks(self.filters)
        except ValidationError as exc:
            self.show_status(str(exc), "warning")
            return

        self.task_list.clear()
        for task in tasks:
            widget = TaskItemWidget(task, self.service.is_overdue(task), self.on_task_toggled)
            item = QListWidgetItem()
            item.setSizeHint(QSize(0, max(widget.sizeHint().height(), 52)))
            item.setData(Qt.UserRole, task.id)
            self.task_list.addItem(item)
            self.task_list.setItemWidget(item, widget)

        stats = self.service.get_stats()
        self.stats_label.setText(
            f"{stats['pending']} open / {stats['total']} total, "
            f"{stats['overdue']} overdue, {stats['due_today']} due today"
        )

    def show_status(self, message: str, tone: str = "info") -> None:
        self.status_label.setText(message)
        self.status_label.setStyleSheet(f"color: {STATUS_COLORS.get(tone, STATUS_COLORS['info'])};")

    # ---- filtering ----

    def apply_filter(self, filters: TaskFilters) -> None:
        try:
            tasks = self.service.list_tasks(filters)
        except ValidationError as exc:
            self.show_status(str(exc), "warning")
            return
        self.filters = filters
        self.refresh_tasks()
        label = FILTER_LABELS.get(filters.filter_key)
        if filters.filter_key == FilterKey.TAG:
            label = f"Filtered by '{filters.tag.strip().lower()}'"
        if label:
            tone = "error" if filters.filter_key == FilterKey.OVERDUE else "info"
            self.show_status(f"{label} - {len(tasks)} task(s) found", tone)

    def filter_by_tag(self) -> None:
        self.apply_filter(TaskFilters(filter_key=FilterKey.TAG, tag=self.tag_filter_input.text()))

    def clear_filter(self) -> None:
        self.filters = TaskFilters()
        self.tag_filter_input.clear()
        self.refresh_tasks()
        self.show_status(f"Filter cleared - showing all {len(self.service.store)} task(s)")

    # ---- actions ----

    def on_due_toggled(self, checked: bool) -> None:
        self.due_input.setEnabled(checked)
        self.due_toggle.setText("Due date" if checked else "No due date")

    def add_task(self) -> None:
        title = self.title_input.text().strip()
        if not title:
            self.show_status("Enter a task title first.", "warning")
            return
        due = self.due_input.date().toPython() if self.due_toggle.isChecked() else None
        self.service.add_task(title, self.tags_input.text(), due)
        self.title_input.clear()
        self.tags_input.clear()
        self.due_toggle.setChecked(False)
        self.refresh_tasks()

    def edit_task(self, item: QListWidgetItem | None) -> None:
        task = self._task_for_item(item)
        if task is None:
            return
        dialog = EditTaskDialog(task, self)
        if dialog.exec() != EditTaskDialog.Accepted:
            return
        title, tags, due = dialog.values()
        if self.service.update_task(task.id, title, tags, due):
            self.refresh_tasks()

    def delete_task(self) -> None:
        task = self.task_list.selected_task()
        if task is None:
            return
        confirm = QMessageBox.question(self, "Delete task", f"Delete '{task.title}'?")
        if confirm != QMessageBox.Yes:
            return
        self.service.delete_task(task.id)
        self.refresh_tasks()

    def on_task_toggled(self, task_id: str, checked: bool) -> None:
        self.service.set_completed(task_id, checked)

    def complete_all(self) -> None:
        if self.service.complete_all():
            self.refresh_tasks()

    def clear_completed(self) -> None:
        removed = self.service.clear_completed()
        self.refresh_tasks()
        self.show_status(f"Removed {removed} completed task(s)")

    def save_tasks(self) -> None:
        result = self.service.save()
        if not result.ok:
            title = SAVE_ERROR_TITLES.get(result.error_kind, "Save failed")
            QMessageBox.warning(self, title, f"Could not save tasks to {result.path}.\n{result.message}")

    def autosave(self) -> None:
        self.service.autosave()

    # ---- callbacks ----

    def _on_task_changed(self, task: Task, change: TaskChange) -> None:
        logger.debug("Task %s changed: %s", task.id, change)
        # Rebuilding inside a checkbox signal would delete the emitting widget.
        QTimer.singleShot(0, self.refresh_tasks)

    def _on_saved(self, result: SaveResult) -> None:
        if result.ok:
            self.show_status(f"Tasks saved ({result.count} task(s))", "success")
            return
        self.show_status(f"Error saving tasks: {result.message}", "error")

    def _task_for_item(self, item: QListWidgetItem | None) -> Task | None:
        if item is None:
            return None
        return self.service.store.get(item.data(Qt.UserRole))

    def closeEvent(self, event) -> None:  # type: ignore[override]
        self.autosave_timer.stop()
        if not self._save_before_close():
            event.ignore()
            self.autosave_timer.start()
            return
        self._unsubscribe()
        super().closeEvent(event)

    def _save_before_close(self) -> bool:
        while self.service.store.is_dirty():
            result = self.service.save()
            if result.ok:
                return True
            choice = self._ask_unsaved_action(result)
            if choice == QMessageBox.Discard:
                logger.warning("Closing with unsaved tasks after failed save: %s", result.message)
                return True
            if choice != QMessageBox.Retry:
                return False
        return True

    def _ask_unsaved_action(self, result: SaveResult) -> QMessageBox.StandardButton:
        title = SAVE_ERROR_TITLES.get(result.error_kind, "Save failed")
        return QMessageBox.warning(
            self,
            title,
            f"Could not save tasks to {result.path}.\n{result.message}\n\n"
            "Retry, discard the unsaved changes, or cancel closing?",
            QMessageBox.Retry | QMessageBox.Discard | QMessageBox.Cancel,
            QMessageBox.Retry,
        )
