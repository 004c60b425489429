# src/taskdeck/tasks/task_view.py

from __future__ import annotations

"""
Derived views over a task collection.

Everything here is a pure function of its arguments: no caching, no
persistence, no mutation of the input. Callers compose them:
- list display:   filter_tasks -> sort_tasks   (see list_view)
- kanban display: filter_tasks -> group_by_status, unsorted (see kanban_view)
"""

import locale
import unicodedata
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from enum import StrEnum

from .task_models import Task, TaskPriority, TaskStatus


class TaskFilter(StrEnum):
    ALL = "all"
    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    ON_HOLD = "on-hold"
    COMPLETED = "completed"
    HIGH_PRIORITY = "high-priority"
    TODAY = "today"

    @classmethod
    def from_raw(cls, raw: str | None) -> TaskFilter:
        """Unknown selectors behave as ALL."""
        try:
            return cls(raw)
        except ValueError:
            return cls.ALL


class TaskSort(StrEnum):
    PRIORITY = "priority"
    TITLE = "title"
    DUE_DATE = "dueDate"
    STATUS = "status"
    CREATED = "createdAt"  # newest first

    @classmethod
    def from_raw(cls, raw: str | None) -> TaskSort:
        """Unknown keys fall back to newest-first."""
        try:
            return cls(raw)
        except ValueError:
            return cls.CREATED


PRIORITY_RANK: dict[TaskPriority, int] = {
    TaskPriority.URGENT: 0,
    TaskPriority.HIGH: 1,
    TaskPriority.MEDIUM: 2,
    TaskPriority.LOW: 3,
}

STATUS_RANK: dict[TaskStatus, int] = {
    TaskStatus.NOT_STARTED: 0,
    TaskStatus.IN_PROGRESS: 1,
    TaskStatus.ON_HOLD: 2,
    TaskStatus.COMPLETED: 3,
}

# Kanban column order.
STATUS_ORDER: tuple[TaskStatus, ...] = tuple(sorted(TaskStatus, key=STATUS_RANK.__getitem__))

STATUS_LABELS: dict[TaskStatus, str] = {
    TaskStatus.NOT_STARTED: "Not Started",
    TaskStatus.IN_PROGRESS: "In Progress",
    TaskStatus.ON_HOLD: "On Hold",
    TaskStatus.COMPLETED: "Completed",
}

PRIORITY_LABELS: dict[TaskPriority, str] = {p: p.value.capitalize() for p in TaskPriority}

FILTER_LABELS: dict[TaskFilter, str] = {
    TaskFilter.ALL: "All Tasks",
    TaskFilter.NOT_STARTED: "Not Started",
    TaskFilter.IN_PROGRESS: "In Progress",
    TaskFilter.ON_HOLD: "On Hold",
    TaskFilter.COMPLETED: "Completed",
    TaskFilter.HIGH_PRIORITY: "High Priority",
    TaskFilter.TODAY: "Due Today",
}

SORT_LABELS: dict[TaskSort, str] = {
    TaskSort.DUE_DATE: "Sort by Due Date",
    TaskSort.PRIORITY: "Sort by Priority",
    TaskSort.TITLE: "Sort by Title",
    TaskSort.STATUS: "Sort by Status",
    TaskSort.CREATED: "Sort by Newest",
}


@dataclass(frozen=True, slots=True)
class TaskStats:
    total_tasks: int
    completed_tasks: int
    pending_tasks: int


def filter_tasks(
    tasks: Iterable[Task],
    selector: TaskFilter | str,
    *,
    today: date | None = None,
) -> list[Task]:
    sel = selector if isinstance(selector, TaskFilter) else TaskFilter.from_raw(selector)

    if sel is TaskFilter.ALL:
        return list(tasks)
    if sel is TaskFilter.HIGH_PRIORITY:
        return [t for t in tasks if t.priority in (TaskPriority.HIGH, TaskPriority.URGENT)]
    if sel is TaskFilter.TODAY:
        day = today or date.today()
        return [t for t in tasks if t.due_date == day]

    status = TaskStatus(sel.value)
    return [t for t in tasks if t.status is status]


def collation_key(text: str) -> str:
    """
    Case- and accent-insensitive sort key, collated by the process locale.

    "apple" < "Banana" < "cherry", and "Éclair" sorts with the e's. Under the
    C locale (nothing called setlocale) this is plain code-point order of the
    folded text.
    """
    folded = unicodedata.normalize("NFKD", text.casefold())
    # strxfrm rejects embedded NULs.
    base = "".join(ch for ch in folded if ch != "\x00" and not unicodedata.combining(ch))
    return locale.strxfrm(base)


def sort_tasks(tasks: Iterable[Task], key: TaskSort | str) -> list[Task]:
    """Stable sort: tasks that compare equal keep their input order."""
    sort_key = key if isinstance(key, TaskSort) else TaskSort.from_raw(key)
    items = list(tasks)

    if sort_key is TaskSort.PRIORITY:
        return sorted(items, key=lambda t: PRIORITY_RANK[t.priority])
    if sort_key is TaskSort.TITLE:
        return sorted(items, key=lambda t: collation_key(t.title))
    if sort_key is TaskSort.DUE_DATE:
        return sorted(items, key=lambda t: t.due_date)
    if sort_key is TaskSort.STATUS:
        return sorted(items, key=lambda t: STATUS_RANK[t.status])
    return sorted(items, key=lambda t: t.created_at, reverse=True)


def group_by_status(tasks: Iterable[Task]) -> dict[TaskStatus, list[Task]]:
    """All four buckets are always present, in kanban column order."""
    columns: dict[TaskStatus, list[Task]] = {status: [] for status in STATUS_ORDER}
    for task in tasks:
        columns[task.status].append(task)
    return columns


def list_view(
    tasks: Iterable[Task],
    selector: TaskFilter | str = TaskFilter.ALL,
    key: TaskSort | str = TaskSort.DUE_DATE,
    *,
    today: date | None = None,
) -> list[Task]:
    return sort_tasks(filter_tasks(tasks, selector, today=today), key)


def kanban_view(
    tasks: Iterable[Task],
    selector: TaskFilter | str = TaskFilter.ALL,
    *,
    today: date | None = None,
) -> dict[TaskStatus, list[Task]]:
    return group_by_status(filter_tasks(tasks, selector, today=today))


def format_due_date(due: date, *, today: date | None = None) -> str:
    day = today or date.today()
    if due == day:
        return "Today"
    if due == day + timedelta(days=1):
        return "Tomorrow"
    return f"{due:%b} {due.day}"


def compute_stats(tasks: Iterable[Task]) -> TaskStats:
    items = list(tasks)
    completed = sum(1 for t in items if t.status is TaskStatus.COMPLETED)
    return TaskStats(
        total_tasks=len(items),
        completed_tasks=completed,
        pending_tasks=len(items) - completed,
    )
