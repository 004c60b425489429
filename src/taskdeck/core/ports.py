# src/taskdeck/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the task engine.

The engine depends on Protocols instead of concrete implementations.
This keeps storage backends and front ends swappable and makes testing easier.
"""

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..tasks.task_events import TaskAction
    from ..tasks.task_models import Task


class KeyValueStore(Protocol):
    """
    Durable local key-value storage.

    set() must be atomic: after it returns the key holds the new value,
    after it raises the key still holds the old one.
    """

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...


class TaskListener(Protocol):
    """
    Notification callback, invoked once per applied mutation.

    `subject` is the affected Task, or the task id (str) for deletions.
    """

    def __call__(self, action: TaskAction, subject: Task | str) -> None: ...


class StatsListener(Protocol):
    """Receives the full task sequence after load and after every mutation."""

    def __call__(self, tasks: tuple[Task, ...]) -> None: ...
