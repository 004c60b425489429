# tests/test_commands.py

from __future__ import annotations

from taskdeck.cli.bootstrap import create_initial_state
from taskdeck.cli.commands import CommandRegistry, registry
from taskdeck.tasks.task_models import TaskPriority, TaskStatus
from taskdeck.tasks.task_view import TaskFilter, TaskSort


def test_command_registry_routes_2_and_3_params(state) -> None:
    reg = CommandRegistry()
    called = {"h2": 0, "h3": 0}

    def h2(state, args):
        called["h2"] += 1
        return "h2"

    def h3(state, args, emit):
        called["h3"] += 1
        if emit is not None:
            emit("note")
        return "h3"

    reg.register("a", h2, "a")
    reg.register("b", h3, "b", aliases=["bee"])

    notes: list[str] = []
    assert reg.handle(state, "/a x") == "h2"
    assert reg.handle(state, "/BEE y", emit=notes.append) == "h3"
    assert called == {"h2": 1, "h3": 1}
    assert notes == ["note"]


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")
    assert "Empty command" in (reg.handle(state, "/") or "")
    assert "Could not parse" in (reg.handle(state, '/add "unterminated') or "")


def test_add_edit_done_remove_flow(state) -> None:
    reply = registry.handle(
        state, '/add Write spec priority=high due=2024-06-01 desc="first draft"'
    )
    assert reply is not None and "Write spec" in reply

    (task,) = state.store.tasks
    assert task.priority is TaskPriority.HIGH
    assert task.description == "first draft"
    assert task.due_date.isoformat() == "2024-06-01"
    assert state.stats.total_tasks == 1

    prefix = task.id[:6]
    registry.handle(state, f'/edit {prefix} title="Write the spec" priority=urgent')
    edited = state.store.get(task.id)
    assert edited is not None
    assert edited.title == "Write the spec"
    assert edited.priority is TaskPriority.URGENT

    registry.handle(state, f"/done {prefix}")
    assert state.store.get(task.id).status is TaskStatus.COMPLETED
    assert state.stats.completed_tasks == 1
    assert "Completed:" in (registry.handle(state, "/stats") or "")

    assert "Removed" in (registry.handle(state, f"/rm {task.id}") or "")
    assert len(state.store) == 0
    assert state.stats.pending_tasks == 0


def test_add_reports_rejections(state) -> None:
    assert "title is required" in (registry.handle(state, "/add priority=high") or "")
    assert "priority must be" in (registry.handle(state, "/add Thing priority=extreme") or "")
    assert "Invalid due date" in (registry.handle(state, "/add Thing due=someday") or "")
    assert len(state.store) == 0


def test_unknown_ids_and_usage(state) -> None:
    assert "No task matches" in (registry.handle(state, "/done zzz") or "")
    assert "Usage" in (registry.handle(state, "/move") or "")


def test_empty_id_matches_nothing(state) -> None:
    registry.handle(state, "/add only")

    for line in ('/rm ""', '/done ""', '/toggle ""', '/edit "" title=other'):
        assert "No task matches" in (registry.handle(state, line) or "")

    (task,) = state.store.tasks
    assert task.title == "only"
    assert task.status is TaskStatus.NOT_STARTED


def test_filter_sort_and_views(state) -> None:
    registry.handle(state, "/add Low one priority=low")
    registry.handle(state, "/add Urgent one priority=urgent status=in-progress")

    assert "High Priority" in (registry.handle(state, "/filter high-priority") or "")
    assert state.filter is TaskFilter.HIGH_PRIORITY
    listing = registry.handle(state, "/list") or ""
    assert "Urgent one" in listing and "Low one" not in listing

    registry.handle(state, "/filter bogus")
    assert state.filter is TaskFilter.ALL

    registry.handle(state, "/sort priority")
    assert state.sort is TaskSort.PRIORITY
    listing = registry.handle(state, "/list") or ""
    assert listing.index("Urgent one") < listing.index("Low one")

    board = registry.handle(state, "/view kanban") or ""
    assert state.view == "kanban"
    for column in ("Not Started", "In Progress", "On Hold", "Completed"):
        assert f"== {column}" in board


def test_state_reloads_from_disk(state, settings) -> None:
    registry.handle(state, "/add Survives restart status=on-hold")

    again = create_initial_state(settings=settings)

    (task,) = again.store.tasks
    assert task.title == "Survives restart"
    assert task.status is TaskStatus.ON_HOLD
    assert again.stats.pending_tasks == 1
