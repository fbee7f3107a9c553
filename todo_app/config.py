from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def base_dir() -> Path:
    """Directory relative paths resolve against: the exe folder when frozen, else CWD."""
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path.cwd()


def env_candidates() -> list[Path]:
    candidates = [Path.cwd()]
    if getattr(sys, "frozen", False):
        candidates.append(base_dir())
    return candidates


def load_env() -> None:
    env_name = os.getenv("APP_ENV", "development")
    candidates = env_candidates()
    for base in candidates:
        env_path = base / ".env"
        if env_path.exists():
            load_dotenv(env_path)
            break

    for base in candidates:
        env_specific = base / f".env.{env_name}"
        if env_specific.exists():
            load_dotenv(env_specific, override=True)
            break


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r, expected an integer", name, raw)
        return default
    return value if value > 0 else default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    if raw:
        logger.warning("Ignoring %s=%r, expected a boolean", name, raw)
    return default


@dataclass(frozen=True)
class Settings:
    data_dir: str = "data"
    tasks_file: str = "tasks.json"
    backup_file: str = "tasks.backup.json"
    autosave_interval_sec: int = 30
    write_through: bool = True
    overdue_includes_completed: bool = False
    log_level: str = "INFO"
    log_dir: str = "logs"

    @property
    def data_path(self) -> Path:
        path = Path(self.data_dir)
        return path if path.is_absolute() else Path.cwd() / path

    @property
    def primary_path(self) -> Path:
        return self.data_path / self.tasks_file

    @property
    def backup_path(self) -> Path:
        return self.data_path / self.backup_file

    @property
    def log_path(self) -> Path:
        path = Path(self.log_dir)
        return path if path.is_absolute() else base_dir() / path


def load_settings() -> Settings:
    return Settings(
        data_dir=os.getenv("TODO_DATA_DIR", "").strip() or "data",
        tasks_file=os.getenv("TODO_TASKS_FILE", "").strip() or "tasks.json",
        backup_file=os.getenv("TODO_BACKUP_FILE", "").strip() or "tasks.backup.json",
        autosave_interval_sec=_env_int("TODO_AUTOSAVE_SECONDS", 30),
        write_through=_env_bool("TODO_WRITE_THROUGH", True),
        overdue_includes_completed=_env_bool("TODO_OVERDUE_INCLUDES_COMPLETED", False),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_dir=os.getenv("LOG_DIR", "logs"),
    )


load_env()

SETTINGS = load_settings()
