# tests/test_task_store.py

from __future__ import annotations

import json
from datetime import date, datetime, timedelta

import pytest

from taskdeck.storage.kv_store import SqliteKeyValueStore
from taskdeck.tasks.task_events import TaskAction
from taskdeck.tasks.task_models import (
    MutationOutcome,
    Task,
    TaskDraft,
    TaskPatch,
    TaskPriority,
    TaskStatus,
)
from taskdeck.tasks.task_store import TaskStorageError, TaskStore, local_date
from taskdeck.tasks.task_view import filter_tasks

from .fakes import FakeClock, FakeKeyValueStore, RecordingListener


def _stored(kv: FakeKeyValueStore) -> list[dict]:
    return json.loads(kv.data["tasks"])


# ---- add ----


def test_add_appends_persists_and_emits(store: TaskStore, kv, listener) -> None:
    result = store.add(TaskDraft(title="Write spec"))

    assert result.ok
    assert result.outcome is MutationOutcome.APPLIED
    task = result.task
    assert task is not None
    assert len(store) == 1
    assert task.created_at == task.updated_at
    assert listener.events == [(TaskAction.ADD, task)]
    assert [r["id"] for r in _stored(kv)] == [task.id]


def test_add_defaults(store: TaskStore, clock: FakeClock) -> None:
    task = store.add(TaskDraft(title="  Buy milk  ")).task
    assert task is not None

    assert task.title == "Buy milk"
    assert task.description == ""
    assert task.priority is TaskPriority.MEDIUM
    assert task.status is TaskStatus.NOT_STARTED
    assert task.due_date == local_date(clock()) + timedelta(days=1)
    assert task.created_at == clock()


@pytest.mark.parametrize("title", ["", "   ", "\t\n"])
def test_add_blank_title_is_a_noop(store: TaskStore, kv, listener, title: str) -> None:
    result = store.add(TaskDraft(title=title))

    assert not result
    assert result.outcome is MutationOutcome.REJECTED
    assert result.reason == "blank_title"
    assert len(store) == 0
    assert listener.events == []
    assert kv.writes == 0


def test_add_rejects_unknown_enum_values(store: TaskStore, listener) -> None:
    bad_priority = store.add(TaskDraft(title="x", priority="critical"))
    bad_status = store.add(TaskDraft(title="x", status="done"))

    assert bad_priority.reason == "invalid_priority"
    assert bad_status.reason == "invalid_status"
    assert len(store) == 0
    assert listener.events == []


def test_add_accepts_wire_strings(store: TaskStore) -> None:
    task = store.add(TaskDraft(title="x", priority="urgent", status="on-hold")).task
    assert task is not None
    assert task.priority is TaskPriority.URGENT
    assert task.status is TaskStatus.ON_HOLD


def test_ids_are_unique_even_if_factory_repeats(kv, clock) -> None:
    ids = iter(["a", "a", "b"])
    store = TaskStore(kv, clock=clock, id_factory=lambda: next(ids))

    first = store.add(TaskDraft(title="one")).task
    second = store.add(TaskDraft(title="two")).task

    assert first is not None and second is not None
    assert (first.id, second.id) == ("a", "b")


def test_scenario_add_then_filter(store: TaskStore) -> None:
    store.add(
        TaskDraft(
            title="Write spec",
            priority="high",
            due_date=date(2024, 6, 1),
            status="not-started",
        )
    )

    assert len(store) == 1
    assert [t.title for t in filter_tasks(store.tasks, "high-priority")] == ["Write spec"]
    assert filter_tasks(store.tasks, "completed") == []


# ---- update ----


def test_update_merges_patch_and_keeps_identity(store: TaskStore, clock: FakeClock, listener) -> None:
    original = store.add(TaskDraft(title="Draft", description="v1")).task
    assert original is not None
    clock.advance(minutes=5)

    result = store.update(original.id, TaskPatch(description="v2", priority=TaskPriority.LOW))

    assert result.ok
    updated = result.task
    assert updated is not None
    assert updated.id == original.id
    assert updated.created_at == original.created_at
    assert updated.updated_at == clock()
    assert updated.title == "Draft"
    assert updated.description == "v2"
    assert updated.priority is TaskPriority.LOW
    assert store.get(original.id) == updated
    assert listener.actions == [TaskAction.ADD, TaskAction.UPDATE]


def test_update_never_moves_updated_at_backwards(store: TaskStore, clock: FakeClock) -> None:
    task = store.add(TaskDraft(title="t")).task
    assert task is not None
    clock.advance(hours=-3)

    updated = store.update(task.id, TaskPatch(title="t2")).task
    assert updated is not None
    assert updated.updated_at >= task.updated_at
    assert updated.updated_at >= updated.created_at


def test_update_unknown_id_is_a_noop(store: TaskStore, kv, listener) -> None:
    result = store.update("missing", TaskPatch(title="x"))

    assert result.outcome is MutationOutcome.NOT_FOUND
    assert listener.events == []
    assert kv.writes == 0


def test_update_to_blank_title_is_rejected(store: TaskStore, listener) -> None:
    task = store.add(TaskDraft(title="keep me")).task
    assert task is not None

    result = store.update(task.id, TaskPatch(title="   "))

    assert result.outcome is MutationOutcome.REJECTED
    assert store.get(task.id) == task
    assert listener.actions == [TaskAction.ADD]


# ---- set_status / toggle ----


def test_set_status_completed_changes_only_status_and_timestamp(
    store: TaskStore, clock: FakeClock, listener
) -> None:
    task = store.add(TaskDraft(title="Ship it")).task
    assert task is not None
    clock.advance(seconds=30)

    done = store.set_status(task.id, "completed").task

    assert done is not None
    assert done.status is TaskStatus.COMPLETED
    assert done.updated_at > task.updated_at
    assert (done.id, done.title, done.description, done.priority, done.due_date, done.created_at) == (
        task.id,
        task.title,
        task.description,
        task.priority,
        task.due_date,
        task.created_at,
    )
    assert listener.events[-1] == (TaskAction.COMPLETE, done)


def test_set_status_other_values_emit_update(store: TaskStore, listener) -> None:
    task = store.add(TaskDraft(title="t")).task
    assert task is not None

    store.set_status(task.id, TaskStatus.IN_PROGRESS)

    assert listener.actions == [TaskAction.ADD, TaskAction.UPDATE]


def test_set_status_unknown_id_and_bad_status(store: TaskStore, listener) -> None:
    task = store.add(TaskDraft(title="t")).task
    assert task is not None

    assert store.set_status("nope", "completed").outcome is MutationOutcome.NOT_FOUND
    assert store.set_status(task.id, "archived").reason == "invalid_status"
    assert store.get(task.id) == task
    assert listener.actions == [TaskAction.ADD]


def test_toggle_completed_round_trips(store: TaskStore, listener) -> None:
    task = store.add(TaskDraft(title="t", status="in-progress")).task
    assert task is not None

    first = store.toggle_completed(task.id).task
    second = store.toggle_completed(task.id).task

    assert first is not None and second is not None
    assert first.status is TaskStatus.COMPLETED
    assert second.status is TaskStatus.NOT_STARTED
    assert listener.actions == [TaskAction.ADD, TaskAction.COMPLETE, TaskAction.UPDATE]
    assert store.toggle_completed("nope").outcome is MutationOutcome.NOT_FOUND


# ---- remove ----


def test_remove_existing_and_missing(store: TaskStore, kv, listener) -> None:
    a = store.add(TaskDraft(title="a")).task
    b = store.add(TaskDraft(title="b")).task
    assert a is not None and b is not None

    result = store.remove(a.id)
    assert result.ok and result.task == a
    assert len(store) == 1
    assert listener.events[-1] == (TaskAction.DELETE, a.id)
    assert [r["id"] for r in _stored(kv)] == [b.id]

    writes = kv.writes
    missing = store.remove(a.id)
    assert missing.outcome is MutationOutcome.NOT_FOUND
    assert len(store) == 1
    assert kv.writes == writes


# ---- persistence ----


def test_round_trip_through_storage(store: TaskStore, kv, clock: FakeClock) -> None:
    store.add(TaskDraft(title="one", priority="urgent", due_date=date(2024, 6, 2)))
    clock.advance(minutes=1)
    store.add(TaskDraft(title="two", description="details", status="on-hold"))

    reloaded = TaskStore(kv, clock=clock).load()

    assert set(reloaded) == set(store.tasks)
    assert reloaded == store.tasks  # insertion order kept


def test_round_trip_empty_collection(store: TaskStore, kv, clock: FakeClock) -> None:
    task = store.add(TaskDraft(title="gone soon")).task
    assert task is not None
    store.remove(task.id)

    assert kv.data["tasks"] == "[]"
    assert TaskStore(kv, clock=clock).load() == ()


def test_snapshot_uses_camel_case_wire_format(store: TaskStore, kv) -> None:
    store.add(TaskDraft(title="Write spec", priority="high", due_date=date(2024, 6, 1)))

    (record,) = _stored(kv)
    assert set(record) == {
        "id",
        "title",
        "description",
        "priority",
        "status",
        "dueDate",
        "createdAt",
        "updatedAt",
    }
    assert record["priority"] == "high"
    assert record["status"] == "not-started"
    assert record["dueDate"] == "2024-06-01"


@pytest.mark.parametrize("payload", ["{not json", '{"a": 1}', "42", "null"])
def test_load_corrupted_payload_yields_empty(clock: FakeClock, payload: str) -> None:
    kv = FakeKeyValueStore({"tasks": payload})

    assert TaskStore(kv, clock=clock).load() == ()


def test_load_survives_backend_read_errors(clock: FakeClock) -> None:
    class BrokenKV(FakeKeyValueStore):
        def get(self, key: str) -> str | None:
            raise OSError("unreadable")

    assert TaskStore(BrokenKV(), clock=clock).load() == ()


def test_load_repairs_records(clock: FakeClock) -> None:
    records = [
        {
            "id": "1717200000000",
            "title": "From the browser",
            "description": "",
            "priority": "critical",
            "status": "done",
            "dueDate": "2024-06-01",
            "createdAt": "2024-05-30T10:00:00.000Z",
            "updatedAt": "2024-05-29T10:00:00.000Z",
        },
        {"id": "1717200000000", "title": "duplicate id"},
        {"id": "x", "title": "   "},
        "not a record",
        {"id": "y", "title": "minimal"},
    ]
    kv = FakeKeyValueStore({"tasks": json.dumps(records)})

    tasks = TaskStore(kv, clock=clock).load()

    assert [t.id for t in tasks] == ["1717200000000", "y"]
    legacy, minimal = tasks
    assert legacy.priority is TaskPriority.MEDIUM
    assert legacy.status is TaskStatus.NOT_STARTED
    assert legacy.created_at.tzinfo is not None
    assert legacy.updated_at == legacy.created_at
    assert minimal.due_date == local_date(clock()) + timedelta(days=1)
    assert minimal.created_at == minimal.updated_at == clock()


def test_failed_write_leaves_state_unchanged(store: TaskStore, kv, listener) -> None:
    task = store.add(TaskDraft(title="safe")).task
    assert task is not None
    kv.fail_writes = True

    with pytest.raises(TaskStorageError):
        store.add(TaskDraft(title="lost"))
    with pytest.raises(TaskStorageError):
        store.remove(task.id)

    assert store.tasks == (task,)
    assert listener.actions == [TaskAction.ADD]


# ---- notifications ----


def test_listener_errors_do_not_break_delivery(store: TaskStore, listener) -> None:
    def broken(action, subject) -> None:
        raise RuntimeError("boom")

    late = RecordingListener()
    store.subscribe(broken)
    store.subscribe(late)

    assert store.add(TaskDraft(title="still works")).ok
    assert late.actions == [TaskAction.ADD]
    assert listener.actions == [TaskAction.ADD]


def test_reentrant_mutation_events_stay_ordered(store: TaskStore) -> None:
    seen = RecordingListener()

    def spawn_child(action, subject) -> None:
        if action is TaskAction.ADD and isinstance(subject, Task) and subject.title == "parent":
            store.add(TaskDraft(title="child"))

    store.subscribe(spawn_child)
    store.subscribe(seen)

    store.add(TaskDraft(title="parent"))

    assert [t.title for t in store.tasks] == ["parent", "child"]
    assert [s.title for _, s in seen.events if isinstance(s, Task)] == ["parent", "child"]


def test_equal_listeners_each_get_one_event(store: TaskStore) -> None:
    first, second = RecordingListener(), RecordingListener()
    assert first == second

    store.subscribe(first)
    store.subscribe(second)
    store.subscribe(first)

    store.add(TaskDraft(title="once"))

    assert first.actions == [TaskAction.ADD]
    assert second.actions == [TaskAction.ADD]


def test_unpaired_surrogate_title_still_persists(tmp_path, clock: FakeClock) -> None:
    kv = SqliteKeyValueStore(tmp_path / "tasks.sqlite3")
    store = TaskStore(kv, clock=clock)

    assert store.add(TaskDraft(title="x\ud800")).ok
    assert "\\ud800" in (kv.get("tasks") or "")

    again = TaskStore(kv, clock=clock)
    (task,) = again.load()
    assert task.title == "x\ud800"
    assert again.add(TaskDraft(title="next")).ok


def test_naive_stored_timestamps_are_local_time(clock: FakeClock) -> None:
    naive = datetime(2024, 5, 1, 9, 30)
    kv = FakeKeyValueStore(
        {"tasks": json.dumps([{"id": "a", "title": "t", "createdAt": naive.isoformat()}])}
    )

    (task,) = TaskStore(kv, clock=clock).load()

    assert task.created_at == naive.astimezone()
    assert task.created_at.tzinfo is not None


def test_stats_listener_sees_every_snapshot(kv, clock: FakeClock) -> None:
    snapshots: list[tuple[Task, ...]] = []
    store = TaskStore(kv, clock=clock)
    store.subscribe_stats(snapshots.append)

    store.load()
    task = store.add(TaskDraft(title="a")).task
    assert task is not None
    store.set_status(task.id, "completed")
    store.add(TaskDraft(title=""))  # rejected: no snapshot

    assert [len(s) for s in snapshots] == [0, 1, 1]
    assert snapshots[-1][0].status is TaskStatus.COMPLETED
