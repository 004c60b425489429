# src/taskdeck/connectors/console_connector.py

from __future__ import annotations

import logging
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..tasks.task_events import TaskAction, action_message
from ..tasks.task_models import Task
from ..tasks.task_store import TaskStorageError

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def _toast(action: TaskAction, subject: Task | str) -> None:
    """Console rendition of the board's toast notifications."""
    _print_ts(f"* {action_message(action)}")


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started (tasks=%d).", len(state.store))
    app_name = str(getattr(getattr(state, "settings", None), "app_name", "taskdeck"))

    state.store.subscribe(_toast)

    def emit(text: str) -> None:
        print(f"[{_ts_local()}] {text}", flush=True)

    _print_ts(f"[{app_name}] Use /help for commands, /exit to quit.\n")
    print(command_registry.handle(state, "/view", emit=emit))

    while True:
        try:
            user_input = input(f"{app_name}> ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            response = command_registry.handle(state, user_input, emit=emit)
        except TaskStorageError:
            response = "Could not save tasks; nothing was changed. See the log for details."
        except Exception:
            logger.exception("Command handler crashed.")
            response = "Internal error while handling a command."

        if response is None:
            response = "Commands start with '/'. Use /help to list them."
        print(response)

    logger.info("Console connector finished.")
