# src/taskdeck/tasks/task_store.py

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Callable, Iterator
from dataclasses import replace
from datetime import UTC, date, datetime, timedelta
from enum import StrEnum
from typing import Any, TypeVar

from ..core.ports import KeyValueStore, StatsListener, TaskListener
from .task_events import EventDispatcher, TaskAction
from .task_models import (
    MutationResult,
    Task,
    TaskDraft,
    TaskPatch,
    TaskPriority,
    TaskStatus,
)

logger = logging.getLogger(__name__)

DEFAULT_KEY = "tasks"

Clock = Callable[[], datetime]
IdFactory = Callable[[], str]

_E = TypeVar("_E", bound=StrEnum)


class TaskStorageError(RuntimeError):
    """The backend refused a snapshot write. In-memory state is unchanged."""


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _new_id() -> str:
    return uuid.uuid4().hex


def local_date(ts: datetime) -> date:
    """Calendar date of `ts` in the local timezone."""
    return ts.astimezone().date()


def _coerce(enum_cls: type[_E], value: Any) -> _E | None:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return None


def _as_date(value: date) -> date:
    return value.date() if isinstance(value, datetime) else value


def _parse_ts(raw: Any) -> datetime | None:
    if not isinstance(raw, str) or not raw:
        return None
    try:
        ts = datetime.fromisoformat(raw)
    except ValueError:
        return None
    # Naive values are local time, as for the clock.
    return ts if ts.tzinfo is not None else ts.astimezone()


def _parse_date(raw: Any) -> date | None:
    if not isinstance(raw, str) or not raw:
        return None
    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        return None


class TaskStore:
    """
    Owner of the task collection.

    The store holds the only mutable reference to the collection. Readers get
    immutable snapshots (`tasks`, `get()`), so the presentation layer cannot
    change state behind the store's back.

    Every applied mutation:
    - writes the whole collection as one snapshot under `key`,
    - swaps the in-memory collection only after the write succeeded,
    - emits exactly one event, then a stats snapshot.

    Blank titles, invalid enum values and unknown ids are reported through
    MutationResult and never raised.
    """

    def __init__(
        self,
        kv: KeyValueStore,
        *,
        key: str = DEFAULT_KEY,
        clock: Clock | None = None,
        id_factory: IdFactory | None = None,
    ) -> None:
        self._kv = kv
        self._key = key
        self._clock = clock or _utc_now
        self._id_factory = id_factory or _new_id
        self._tasks: tuple[Task, ...] = ()
        self._events = EventDispatcher()

    # ---- read-only projection ----

    @property
    def key(self) -> str:
        return self._key

    @property
    def tasks(self) -> tuple[Task, ...]:
        return self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[Task]:
        return iter(self._tasks)

    def get(self, task_id: str) -> Task | None:
        idx = self._index_of(task_id)
        return None if idx is None else self._tasks[idx]

    def subscribe(self, listener: TaskListener) -> None:
        self._events.subscribe(listener)

    def subscribe_stats(self, listener: StatsListener) -> None:
        self._events.subscribe_stats(listener)

    # ---- persistence ----

    def load(self) -> tuple[Task, ...]:
        """
        Replace the in-memory collection with the stored snapshot.

        Missing or malformed snapshots yield an empty collection; nothing is raised.
        """
        try:
            raw = self._kv.get(self._key)
        except Exception:
            logger.warning("Failed to read snapshot key=%s; starting empty.", self._key, exc_info=True)
            raw = None

        self._tasks = self._decode_snapshot(raw, now=self._now())
        logger.info("TaskStore loaded key=%s total=%d", self._key, len(self._tasks))
        self._events.publish_stats(self._tasks)
        return self._tasks

    def _commit(self, tasks: tuple[Task, ...]) -> None:
        payload = self._encode_snapshot(tasks)
        try:
            self._kv.set(self._key, payload)
        except Exception as e:
            logger.exception("Failed to persist snapshot key=%s", self._key)
            raise TaskStorageError(f"could not persist tasks under key {self._key!r}") from e
        self._tasks = tasks

    @staticmethod
    def _task_to_record(task: Task) -> dict[str, str]:
        return {
            "id": task.id,
            "title": task.title,
            "description": task.description,
            "priority": task.priority.value,
            "status": task.status.value,
            "dueDate": task.due_date.isoformat(),
            "createdAt": task.created_at.isoformat(),
            "updatedAt": task.updated_at.isoformat(),
        }

    @staticmethod
    def _record_to_task(item: Any, *, now: datetime) -> Task | None:
        if not isinstance(item, dict):
            return None
        task_id = str(item.get("id") or "").strip()
        title = str(item.get("title") or "").strip()
        if not task_id or not title:
            return None

        created_at = _parse_ts(item.get("createdAt")) or now
        updated_at = _parse_ts(item.get("updatedAt")) or created_at
        # Keep updated_at >= created_at even for hand-edited snapshots.
        updated_at = max(updated_at, created_at)

        return Task(
            id=task_id,
            title=title,
            description=str(item.get("description") or ""),
            priority=TaskPriority.from_raw(item.get("priority")),
            status=TaskStatus.from_raw(item.get("status")),
            due_date=_parse_date(item.get("dueDate")) or local_date(now) + timedelta(days=1),
            created_at=created_at,
            updated_at=updated_at,
        )

    def _encode_snapshot(self, tasks: tuple[Task, ...]) -> str:
        return json.dumps([self._task_to_record(t) for t in tasks])

    def _decode_snapshot(self, raw: str | None, *, now: datetime) -> tuple[Task, ...]:
        if not raw:
            return ()
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Snapshot key=%s is not valid JSON; starting empty.", self._key)
            return ()
        if not isinstance(data, list):
            logger.warning("Snapshot key=%s is not a list; starting empty.", self._key)
            return ()

        out: list[Task] = []
        seen: set[str] = set()
        for item in data:
            task = self._record_to_task(item, now=now)
            if task is None or task.id in seen:
                continue
            seen.add(task.id)
            out.append(task)

        dropped = len(data) - len(out)
        if dropped:
            logger.warning("Dropped %d invalid or duplicate task records key=%s", dropped, self._key)
        return tuple(out)

    # ---- helpers ----

    def _now(self) -> datetime:
        ts = self._clock()
        return ts if ts.tzinfo is not None else ts.astimezone()

    def _stamp(self, previous: Task) -> datetime:
        return max(self._now(), previous.updated_at)

    def _index_of(self, task_id: str) -> int | None:
        for i, task in enumerate(self._tasks):
            if task.id == task_id:
                return i
        return None

    def _fresh_id(self) -> str:
        taken = {t.id for t in self._tasks}
        for _ in range(16):
            candidate = str(self._id_factory())
            if candidate and candidate not in taken:
                return candidate
        raise RuntimeError("id factory keeps returning ids that are already taken")

    def _replace_at(self, idx: int, task: Task) -> None:
        self._commit(self._tasks[:idx] + (task,) + self._tasks[idx + 1 :])

    # ---- mutations ----

    def add(self, draft: TaskDraft) -> MutationResult:
        title = (draft.title or "").strip()
        if not title:
            logger.debug("Rejected add: blank title")
            return MutationResult.rejected("blank_title")

        priority = _coerce(TaskPriority, draft.priority)
        if priority is None:
            logger.debug("Rejected add: priority=%r", draft.priority)
            return MutationResult.rejected("invalid_priority")

        status = _coerce(TaskStatus, draft.status)
        if status is None:
            logger.debug("Rejected add: status=%r", draft.status)
            return MutationResult.rejected("invalid_status")

        now = self._now()
        due_date = _as_date(draft.due_date) if draft.due_date else local_date(now) + timedelta(days=1)
        task = Task(
            id=self._fresh_id(),
            title=title,
            description=draft.description or "",
            priority=priority,
            status=status,
            due_date=due_date,
            created_at=now,
            updated_at=now,
        )

        self._commit(self._tasks + (task,))
        logger.debug(
            "Task added id=%s priority=%s status=%s due=%s",
            task.id,
            task.priority.value,
            task.status.value,
            task.due_date,
        )
        self._events.emit(TaskAction.ADD, task, self._tasks)
        return MutationResult.applied(task)

    def update(self, task_id: str, patch: TaskPatch) -> MutationResult:
        idx = self._index_of(task_id)
        if idx is None:
            logger.debug("Update ignored: unknown id=%s", task_id)
            return MutationResult.not_found()
        current = self._tasks[idx]

        title = current.title if patch.title is None else patch.title.strip()
        if not title:
            logger.debug("Rejected update id=%s: blank title", task_id)
            return MutationResult.rejected("blank_title", current)

        priority = current.priority if patch.priority is None else _coerce(TaskPriority, patch.priority)
        if priority is None:
            return MutationResult.rejected("invalid_priority", current)

        status = current.status if patch.status is None else _coerce(TaskStatus, patch.status)
        if status is None:
            return MutationResult.rejected("invalid_status", current)

        updated = replace(
            current,
            title=title,
            description=current.description if patch.description is None else patch.description,
            priority=priority,
            status=status,
            due_date=current.due_date if patch.due_date is None else _as_date(patch.due_date),
            updated_at=self._stamp(current),
        )

        self._replace_at(idx, updated)
        logger.debug("Task updated id=%s", task_id)
        self._events.emit(TaskAction.UPDATE, updated, self._tasks)
        return MutationResult.applied(updated)

    def set_status(self, task_id: str, new_status: TaskStatus | str) -> MutationResult:
        idx = self._index_of(task_id)
        if idx is None:
            logger.debug("Status change ignored: unknown id=%s", task_id)
            return MutationResult.not_found()
        current = self._tasks[idx]

        status = _coerce(TaskStatus, new_status)
        if status is None:
            logger.debug("Rejected status change id=%s: status=%r", task_id, new_status)
            return MutationResult.rejected("invalid_status", current)

        updated = replace(current, status=status, updated_at=self._stamp(current))
        self._replace_at(idx, updated)
        logger.debug("Task status id=%s %s -> %s", task_id, current.status.value, status.value)

        action = TaskAction.COMPLETE if status is TaskStatus.COMPLETED else TaskAction.UPDATE
        self._events.emit(action, updated, self._tasks)
        return MutationResult.applied(updated)

    def toggle_completed(self, task_id: str) -> MutationResult:
        """Completed tasks go back to not-started; anything else becomes completed."""
        current = self.get(task_id)
        if current is None:
            return MutationResult.not_found()
        target = TaskStatus.NOT_STARTED if current.status is TaskStatus.COMPLETED else TaskStatus.COMPLETED
        return self.set_status(task_id, target)

    def remove(self, task_id: str) -> MutationResult:
        idx = self._index_of(task_id)
        if idx is None:
            logger.debug("Remove ignored: unknown id=%s", task_id)
            return MutationResult.not_found()

        removed = self._tasks[idx]
        self._commit(self._tasks[:idx] + self._tasks[idx + 1 :])
        logger.debug("Task removed id=%s", task_id)
        self._events.emit(TaskAction.DELETE, removed.id, self._tasks)
        return MutationResult.applied(removed)
