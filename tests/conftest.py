# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from taskdeck.cli.bootstrap import create_initial_state
from taskdeck.core.state import AppState
from taskdeck.tasks.task_store import TaskStore

from .fakes import FakeClock, FakeKeyValueStore, RecordingListener


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap and commands.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment and any local .env.
    """
    return SimpleNamespace(
        app_name="taskdeck-test",
        log_level="DEBUG",
        data_dir=tmp_path,
        storage_backend="json",
        storage_path=tmp_path / "tasks.json",
        storage_key="tasks",
        default_filter="all",
        default_sort="dueDate",
        default_view="list",
        console_enabled=False,
    )


@pytest.fixture()
def kv() -> FakeKeyValueStore:
    return FakeKeyValueStore()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def listener() -> RecordingListener:
    return RecordingListener()


@pytest.fixture()
def store(kv: FakeKeyValueStore, clock: FakeClock, listener: RecordingListener) -> TaskStore:
    s = TaskStore(kv, clock=clock)
    s.subscribe(listener)
    s.load()
    return s


@pytest.fixture()
def state(settings: SimpleNamespace) -> AppState:
    """
    AppState wired the same way as the CLI.

    NOTE: the real JSON file backend is used here (under tmp_path) because
    persistence across restarts is part of what we want to test.
    """
    return create_initial_state(settings=settings)
