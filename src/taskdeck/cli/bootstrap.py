# src/taskdeck/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures the local (gitignored) data directory exists,
- opens the configured key-value backend,
- wires a TaskStore into AppState and loads the stored snapshot.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import KeyValueStore
from ..core.state import AppState
from ..storage.kv_store import open_kv_store
from ..tasks.task_store import TaskStore
from ..tasks.task_view import TaskFilter, TaskSort

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.storage_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, kv: KeyValueStore | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings (and the backend) injectable makes the app easier to test.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    if kv is None:
        _ensure_local_dirs(settings)
        kv = open_kv_store(settings.storage_backend, settings.storage_path)

    store = TaskStore(kv, key=getattr(settings, "storage_key", "tasks"))
    view = str(getattr(settings, "default_view", "list"))

    state = AppState(
        settings=settings,
        store=store,
        filter=TaskFilter.from_raw(getattr(settings, "default_filter", None)),
        sort=TaskSort.from_raw(getattr(settings, "default_sort", None)),
        view=view if view in ("list", "kanban") else "list",
    )
    store.subscribe_stats(state.refresh_stats)
    store.load()
    logger.info(
        "State ready: %d tasks (filter=%s sort=%s view=%s)",
        len(store),
        state.filter.value,
        state.sort.value,
        state.view,
    )
    return state
