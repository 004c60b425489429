# src/taskdeck/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field

from ..tasks.task_store import TaskStore
from ..tasks.task_view import TaskFilter, TaskSort, TaskStats, compute_stats


@dataclass
class AppState:
    # Settings object (taskdeck.config.Settings or a test double).
    settings: object

    store: TaskStore

    # Current view selection, like the filter/sort/view pickers of a board UI.
    filter: TaskFilter = TaskFilter.ALL
    sort: TaskSort = TaskSort.DUE_DATE
    view: str = "list"

    # Refreshed by the store's stats callback.
    stats: TaskStats = field(default_factory=lambda: compute_stats(()))

    def refresh_stats(self, tasks: tuple) -> None:
        self.stats = compute_stats(tasks)
