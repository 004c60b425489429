# src/taskdeck/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import StrEnum


class TaskPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @classmethod
    def from_raw(cls, raw: str | None) -> TaskPriority:
        """Lenient parse used when reading stored snapshots."""
        if not raw:
            return cls.MEDIUM
        try:
            return cls(raw)
        except ValueError:
            return cls.MEDIUM


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    Any status can move to any other one; there is no transition table.
    """

    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    ON_HOLD = "on-hold"
    COMPLETED = "completed"

    @classmethod
    def from_raw(cls, raw: str | None) -> TaskStatus:
        if not raw:
            return cls.NOT_STARTED
        try:
            return cls(raw)
        except ValueError:
            return cls.NOT_STARTED


@dataclass(frozen=True, slots=True)
class Task:
    id: str
    title: str
    description: str
    priority: TaskPriority
    status: TaskStatus
    due_date: date
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True, slots=True)
class TaskDraft:
    """
    Input for TaskStore.add().

    Enum fields accept either the enum member or its wire string
    ("high", "in-progress"); unknown strings make add() reject the draft.
    due_date=None means "tomorrow" relative to the store clock.
    """

    title: str
    description: str = ""
    priority: TaskPriority | str = TaskPriority.MEDIUM
    status: TaskStatus | str = TaskStatus.NOT_STARTED
    due_date: date | None = None


@dataclass(frozen=True, slots=True)
class TaskPatch:
    """Partial update: None keeps the current value."""

    title: str | None = None
    description: str | None = None
    priority: TaskPriority | str | None = None
    status: TaskStatus | str | None = None
    due_date: date | None = None

    def is_empty(self) -> bool:
        return all(
            v is None
            for v in (self.title, self.description, self.priority, self.status, self.due_date)
        )


class MutationOutcome(StrEnum):
    APPLIED = "applied"
    REJECTED = "rejected"
    NOT_FOUND = "not_found"


@dataclass(frozen=True, slots=True)
class MutationResult:
    """
    Outcome of a TaskStore mutation.

    Rejections and unknown ids are normal results, not exceptions.
    `task` is the task after the mutation (or the removed task for remove()).
    """

    outcome: MutationOutcome
    task: Task | None = None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is MutationOutcome.APPLIED

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def applied(cls, task: Task) -> MutationResult:
        return cls(MutationOutcome.APPLIED, task=task)

    @classmethod
    def rejected(cls, reason: str, task: Task | None = None) -> MutationResult:
        return cls(MutationOutcome.REJECTED, task=task, reason=reason)

    @classmethod
    def not_found(cls) -> MutationResult:
        return cls(MutationOutcome.NOT_FOUND, reason="unknown_id")
