# src/taskdeck/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState (loading the stored tasks), then runs
the console REPL in the main thread.
"""

from __future__ import annotations

import locale
import logging

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    # Console handler follows settings.log_level but never goes below WARNING,
    # so INFO chatter stays in the log file and out of the REPL.
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = max(getattr(logging, level_name, logging.INFO), logging.WARNING)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    # Title sorting collates with the user's locale.
    try:
        locale.setlocale(locale.LC_ALL, "")
    except locale.Error:
        logger.warning("Unsupported locale settings; title sorting uses code-point order.")

    logger.info(
        "Starting %s (backend=%s path=%s)...",
        settings.app_name,
        settings.storage_backend,
        settings.storage_path,
    )

    state = create_initial_state(settings=settings)

    if settings.console_enabled:
        run_console_loop(state)
    else:
        logger.info("Console disabled; %d tasks loaded, nothing to do.", len(state.store))

    logger.info("Bye.")


if __name__ == "__main__":
    main()
