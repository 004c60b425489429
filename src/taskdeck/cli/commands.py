# src/taskdeck/cli/commands.py

from __future__ import annotations

import inspect
import logging
import shlex
from collections.abc import Callable
from datetime import date, timedelta
from typing import cast

from ..core.state import AppState
from ..tasks.task_models import MutationResult, Task, TaskDraft, TaskPatch, TaskStatus
from ..tasks.task_view import (
    FILTER_LABELS,
    PRIORITY_LABELS,
    SORT_LABELS,
    STATUS_LABELS,
    TaskFilter,
    TaskSort,
    format_due_date,
    kanban_view,
    list_view,
)

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

SHORT_ID = 8
FIELD_NAMES = ("title", "desc", "priority", "status", "due")

REASON_TEXT = {
    "blank_title": "title is required",
    "invalid_priority": "priority must be one of low, medium, high, urgent",
    "invalid_status": "status must be one of not-started, in-progress, on-hold, completed",
    "unknown_id": "no such task",
}


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        try:
            parts = shlex.split(line[1:])
        except ValueError as e:
            return f"Could not parse command: {e}."
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- argument helpers ----


def _split_fields(args: list[str]) -> tuple[list[str], dict[str, str]]:
    """Separate free words from key=value fields (only known keys count as fields)."""
    words: list[str] = []
    fields: dict[str, str] = {}
    for arg in args:
        key, sep, value = arg.partition("=")
        if sep and key.lower() in FIELD_NAMES:
            fields[key.lower()] = value
        else:
            words.append(arg)
    return words, fields


def _parse_due(raw: str) -> date | None:
    value = raw.strip().lower()
    if value == "today":
        return date.today()
    if value == "tomorrow":
        return date.today() + timedelta(days=1)
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def _resolve(state: AppState, token: str) -> Task | str:
    """Find a task by full id or unique id prefix; returns an error text otherwise."""
    if not token:
        return "No task matches an empty id."
    exact = state.store.get(token)
    if exact is not None:
        return exact
    matches = [t for t in state.store.tasks if t.id.startswith(token)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        return f"No task matches id '{token}'."
    return f"Id '{token}' is ambiguous ({len(matches)} tasks). Use more characters."


def _failure(result: MutationResult, what: str) -> str:
    reason = REASON_TEXT.get(result.reason or "", result.reason or "unknown reason")
    return f"{what}: {reason}."


def format_task_line(task: Task, *, today: date | None = None) -> str:
    mark = "x" if task.status is TaskStatus.COMPLETED else " "
    return (
        f"[{task.id[:SHORT_ID]}] [{mark}] {task.title}"
        f" | {PRIORITY_LABELS[task.priority]}"
        f" | {STATUS_LABELS[task.status]}"
        f" | due {format_due_date(task.due_date, today=today)}"
    )


def _render_list(state: AppState) -> str:
    tasks = list_view(state.store.tasks, state.filter, state.sort)
    header = f"{FILTER_LABELS[state.filter]} ({SORT_LABELS[state.sort]}): {len(tasks)}"
    if not tasks:
        return f"{header}\n  (no tasks)"
    return "\n".join([header, *(f"  {format_task_line(t)}" for t in tasks)])


def _render_board(state: AppState) -> str:
    columns = kanban_view(state.store.tasks, state.filter)
    lines = [f"Board - {FILTER_LABELS[state.filter]}"]
    for status, tasks in columns.items():
        lines.append(f"== {STATUS_LABELS[status]} ({len(tasks)})")
        if not tasks:
            lines.append("  (empty)")
        lines.extend(f"  {format_task_line(t)}" for t in tasks)
    return "\n".join(lines)


# ---- commands ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_add(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /add Title words [priority=high] [status=in-progress] [due=2024-06-01] [desc="..."]
    """
    words, fields = _split_fields(args)
    title = fields.get("title") or " ".join(words)

    due: date | None = None
    if "due" in fields:
        due = _parse_due(fields["due"])
        if due is None:
            return f"Invalid due date '{fields['due']}'. Use YYYY-MM-DD, today or tomorrow."

    draft = TaskDraft(
        title=title,
        description=fields.get("desc", ""),
        priority=fields.get("priority", "medium").lower(),
        status=fields.get("status", "not-started").lower(),
        due_date=due,
    )
    result = state.store.add(draft)
    if not result.ok or result.task is None:
        return _failure(result, "Task not added")
    return format_task_line(result.task)


def cmd_edit(state: AppState, args: list[str]) -> str:
    """/edit <id> [title=...] [desc=...] [priority=...] [status=...] [due=...]"""
    if not args:
        return "Usage: /edit <id> title=... desc=... priority=... status=... due=YYYY-MM-DD"

    found = _resolve(state, args[0])
    if isinstance(found, str):
        return found

    _, fields = _split_fields(args[1:])
    if not fields:
        return "Nothing to change. Give at least one field, e.g. priority=high."

    due: date | None = None
    if "due" in fields:
        due = _parse_due(fields["due"])
        if due is None:
            return f"Invalid due date '{fields['due']}'. Use YYYY-MM-DD, today or tomorrow."

    patch = TaskPatch(
        title=fields.get("title"),
        description=fields.get("desc"),
        priority=fields["priority"].lower() if "priority" in fields else None,
        status=fields["status"].lower() if "status" in fields else None,
        due_date=due,
    )
    result = state.store.update(found.id, patch)
    if not result.ok or result.task is None:
        return _failure(result, "Task not updated")
    return format_task_line(result.task)


def cmd_rm(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /rm <id>"
    found = _resolve(state, args[0])
    if isinstance(found, str):
        return found
    result = state.store.remove(found.id)
    if not result.ok:
        return _failure(result, "Task not removed")
    return f"Removed: {found.title}"


def cmd_move(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /move <id> <not-started|in-progress|on-hold|completed>"
    found = _resolve(state, args[0])
    if isinstance(found, str):
        return found
    result = state.store.set_status(found.id, args[1].lower())
    if not result.ok or result.task is None:
        return _failure(result, "Status not changed")
    return format_task_line(result.task)


def cmd_done(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /done <id>"
    return cmd_move(state, [args[0], TaskStatus.COMPLETED.value])


def cmd_toggle(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /toggle <id>"
    found = _resolve(state, args[0])
    if isinstance(found, str):
        return found
    result = state.store.toggle_completed(found.id)
    if not result.ok or result.task is None:
        return _failure(result, "Status not changed")
    return format_task_line(result.task)


def cmd_show(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /show <id>"
    found = _resolve(state, args[0])
    if isinstance(found, str):
        return found
    lines = [
        format_task_line(found),
        f"  id:          {found.id}",
        f"  due:         {found.due_date.isoformat()}",
        f"  created:     {found.created_at.isoformat(timespec='seconds')}",
        f"  updated:     {found.updated_at.isoformat(timespec='seconds')}",
    ]
    if found.description:
        lines.append(f"  description: {found.description}")
    return "\n".join(lines)


def cmd_list(state: AppState, args: list[str]) -> str:
    return _render_list(state)


def cmd_board(state: AppState, args: list[str]) -> str:
    return _render_board(state)


def cmd_filter(state: AppState, args: list[str]) -> str:
    """
    /filter            -> show current filter and choices
    /filter <selector> -> change filter (unknown selectors mean "all")
    """
    if not args:
        choices = ", ".join(f.value for f in TaskFilter)
        return f"Filter: {state.filter.value}. Choices: {choices}."
    state.filter = TaskFilter.from_raw(args[0].lower())
    return f"Filter set to {FILTER_LABELS[state.filter]}."


def cmd_sort(state: AppState, args: list[str]) -> str:
    if not args:
        choices = ", ".join(s.value for s in TaskSort)
        return f"Sort: {state.sort.value}. Choices: {choices}."
    state.sort = TaskSort.from_raw(args[0])
    return f"{SORT_LABELS[state.sort]}."


def cmd_view(state: AppState, args: list[str]) -> str:
    """
    /view          -> render the current view
    /view list     -> switch to list view
    /view kanban   -> switch to kanban board
    """
    if args:
        mode = args[0].lower()
        if mode not in ("list", "kanban"):
            return "Usage: /view list | /view kanban"
        state.view = mode
    return _render_board(state) if state.view == "kanban" else _render_list(state)


def cmd_stats(state: AppState, args: list[str]) -> str:
    s = state.stats
    return (
        "Stats:\n"
        f"  Total:     {s.total_tasks}\n"
        f"  Completed: {s.completed_tasks}\n"
        f"  Pending:   {s.pending_tasks}"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register(
    "add",
    cmd_add,
    help_text='Add a task: /add Title [priority=high] [status=...] [due=YYYY-MM-DD] [desc="..."].',
)
registry.register("edit", cmd_edit, help_text="Edit a task: /edit <id> field=value ...")
registry.register("rm", cmd_rm, help_text="Remove a task: /rm <id>.", aliases=["del", "delete"])
registry.register("move", cmd_move, help_text="Change status: /move <id> <status>.")
registry.register("done", cmd_done, help_text="Mark a task completed: /done <id>.")
registry.register("toggle", cmd_toggle, help_text="Toggle completed / not-started: /toggle <id>.")
registry.register("show", cmd_show, help_text="Show task details: /show <id>.")
registry.register("list", cmd_list, help_text="List tasks (current filter and sort).", aliases=["ls"])
registry.register("board", cmd_board, help_text="Kanban board (current filter).", aliases=["kanban"])
registry.register("filter", cmd_filter, help_text="Show or set the filter.")
registry.register("sort", cmd_sort, help_text="Show or set the sort key.")
registry.register("view", cmd_view, help_text="Render the current view: /view [list|kanban].")
registry.register("stats", cmd_stats, help_text="Total / completed / pending counts.")
