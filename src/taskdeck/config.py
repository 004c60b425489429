# src/taskdeck/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Nothing is required: every variable has a working default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKDECK"

VIEWS = ("list", "kanban")


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None or v.strip() == "" else v.strip()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_choice(name: str, choices: tuple[str, ...], default: str) -> str:
    raw = _env(name, default).lower()
    return raw if raw in choices else default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Storage ----
    data_dir: Path
    storage_backend: str
    storage_path: Path
    storage_key: str

    # ---- Initial view selection ----
    default_filter: str
    default_sort: str
    default_view: str

    # ---- Front end ----
    console_enabled: bool

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "taskdeck")
        log_level = _env(_k("LOG_LEVEL"), "INFO").upper()

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskdeck"))
        storage_backend = _env_choice(_k("STORAGE_BACKEND"), ("sqlite", "json"), "sqlite")
        default_file = "tasks.sqlite3" if storage_backend == "sqlite" else "tasks.json"
        storage_path = _env_path(_k("STORAGE_PATH"), data_dir / default_file)
        storage_key = _env(_k("STORAGE_KEY"), "tasks")

        # Selectors are validated by the view layer (unknown -> fallback).
        default_filter = _env(_k("DEFAULT_FILTER"), "all")
        default_sort = _env(_k("DEFAULT_SORT"), "dueDate")
        default_view = _env_choice(_k("DEFAULT_VIEW"), VIEWS, "list")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            storage_backend=storage_backend,
            storage_path=storage_path,
            storage_key=storage_key,
            default_filter=default_filter,
            default_sort=default_sort,
            default_view=default_view,
            console_enabled=console_enabled,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    """Process-wide settings; reads .env and the environment on first call."""
    global _SETTINGS
    if _SETTINGS is None:
        load_dotenv(override=False)
        _SETTINGS = Settings.from_env()
    return _SETTINGS
