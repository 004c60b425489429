# src/taskdeck/tasks/task_events.py

from __future__ import annotations

"""
Task change notifications.

TaskStore emits one event per applied mutation, after the snapshot is written.
Delivery is synchronous and in-process. Events raised while another event is
being delivered (a listener mutating the store) are queued and delivered
afterwards, so every listener sees events in mutation order.
"""

import logging
from collections import deque
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.ports import StatsListener, TaskListener
    from .task_models import Task

logger = logging.getLogger(__name__)


class TaskAction(StrEnum):
    ADD = "add"
    UPDATE = "update"
    DELETE = "delete"
    COMPLETE = "complete"


ACTION_MESSAGES: dict[TaskAction, str] = {
    TaskAction.ADD: "Task added successfully!",
    TaskAction.UPDATE: "Task updated",
    TaskAction.DELETE: "Task removed",
    TaskAction.COMPLETE: "Task completed!",
}


def action_message(action: TaskAction) -> str:
    return ACTION_MESSAGES[action]


class EventDispatcher:
    """Routes task events and stats snapshots to subscribed callbacks."""

    def __init__(self) -> None:
        self._listeners: list[TaskListener] = []
        self._stats_listeners: list[StatsListener] = []
        self._queue: deque[tuple[TaskAction, Task | str, tuple[Task, ...]]] = deque()
        self._dispatching = False

    def subscribe(self, listener: TaskListener) -> None:
        if not any(l is listener for l in self._listeners):
            self._listeners.append(listener)

    def subscribe_stats(self, listener: StatsListener) -> None:
        if not any(l is listener for l in self._stats_listeners):
            self._stats_listeners.append(listener)

    def emit(self, action: TaskAction, subject: Task | str, tasks: tuple[Task, ...]) -> None:
        """
        Deliver one event followed by a stats snapshot.

        Re-entrant calls only enqueue; the outermost call drains the queue.
        """
        self._queue.append((action, subject, tasks))
        if self._dispatching:
            logger.debug("Queued re-entrant event action=%s", action.value)
            return

        self._dispatching = True
        try:
            while self._queue:
                act, subj, snapshot = self._queue.popleft()
                self._deliver(act, subj)
                self.publish_stats(snapshot)
        finally:
            self._dispatching = False

    def publish_stats(self, tasks: tuple[Task, ...]) -> None:
        for listener in list(self._stats_listeners):
            try:
                listener(tasks)
            except Exception:
                logger.exception("Stats listener failed.")

    def _deliver(self, action: TaskAction, subject: Task | str) -> None:
        for listener in list(self._listeners):
            try:
                listener(action, subject)
            except Exception:
                logger.exception("Task listener failed action=%s", action.value)
