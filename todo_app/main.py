from __future__ import annotations

import logging
import sys

from PySide6.QtGui import QColor, QFont, QPalette
from PySide6.QtWidgets import QApplication, QMessageBox, QStyleFactory

from todo_app.config import SETTINGS, Settings
from todo_app.infra.logging import setup_logging
from todo_app.infra.persistence import PersistenceEngine
from todo_app.services.task_service import TaskService
from todo_app.services.task_store import TaskStore
from todo_app.ui.main_window import MainWindow

logger = logging.getLogger(__name__)


def _apply_dark_palette(app: QApplication) -> None:
    palette = QPalette()
    palette.setColor(QPalette.Window, QColor("#0F172A"))
    palette.setColor(QPalette.WindowText, QColor("#E6EDF3"))
    palette.setColor(QPalette.Base, QColor("#111827"))
    palette.setColor(QPalette.AlternateBase, QColor("#1B2230"))
    palette.setColor(QPalette.Text, QColor("#E6EDF3"))
    palette.setColor(QPalette.Button, QColor("#202A3B"))
    palette.setColor(QPalette.ButtonText, QColor("#E6EDF3"))
    palette.setColor(QPalette.Highlight, QColor("#2563EB"))
    palette.setColor(QPalette.HighlightedText, QColor("#FFFFFF"))
    app.setPalette(palette)


def build_service(settings: Settings = SETTINGS) -> TaskService:
    engine = PersistenceEngine(settings.primary_path, settings.backup_path)
    return TaskService(
        TaskStore(),
        engine,
        write_through=settings.write_through,
        overdue_includes_completed=settings.overdue_includes_completed,
    )


def main() -> None:
    setup_logging()
    app = QApplication(sys.argv)
    app.setStyle(QStyleFactory.create("Fusion"))
    _apply_dark_palette(app)
    app.setFont(QFont("Segoe UI", 10))

    service = build_service()
    try:
        load_result = service.load()
    except Exception as exc:  # noqa: BLE001
        logger.exception("Failed to start")
        QMessageBox.critical(None, "Startup error", str(exc))
        return

    window = MainWindow(service, load_result)
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
