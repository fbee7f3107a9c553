from __future__ import annotations

from datetime import date

from PySide6.QtCore import QDate
from PySide6.QtWidgets import (
    QCheckBox,
    QDateEdit,
    QDialog,
    QDialogButtonBox,
    QFormLayout,
    QLineEdit,
    QMessageBox,
    QVBoxLayout,
)

from todo_app.domain.entities import Task


class EditTaskDialog(QDialog):
    def __init__(self, task: Task, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Edit task")
        self.setObjectName("EditTaskDialog")
        self.setMinimumWidth(380)

        self.title_input = QLineEdit(task.title)
        self.title_input.setPlaceholderText("Task title")

        self.tags_input = QLineEdit(task.tags)
        self.tags_input.setPlaceholderText("Comma-separated tags")

        self.due_check = QCheckBox("Has due date")
        self.due_input = QDateEdit()
        self.due_input.setCalendarPopup(True)
        if task.due_date:
            self.due_check.setChecked(True)
            self.due_input.setDate(QDate(task.due_date.year, task.due_date.month, task.due_date.day))
        else:
            self.due_input.setDate(QDate.currentDate())
            self.due_input.setEnabled(False)
        self.due_check.toggled.connect(self.due_input.setEnabled)

        form = QFormLayout()
        form.addRow("Title", self.title_input)
        form.addRow("Tags", self.tags_input)
        form.addRow(self.due_check, self.due_input)

        buttons = QDialogButtonBox(QDialogButtonBox.Save | QDialogButtonBox.Cancel)
        buttons.accepted.connect(self._accept)
        buttons.rejected.connect(self.reject)

        layout = QVBoxLayout(self)
        layout.addLayout(form)
        layout.addWidget(buttons)

    def _accept(self) -> None:
        if not self.title_input.text().strip():
            QMessageBox.warning(self, "Title required", "The task title cannot be empty.")
            return
        self.accept()

    def values(self) -> tuple[str, str, date | None]:
        due = self.due_input.date().toPython() if self.due_check.isChecked() else None
        return self.title_input.text().strip(), self.tags_input.text(), due
