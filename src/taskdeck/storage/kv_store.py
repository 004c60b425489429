# src/taskdeck/storage/kv_store.py

from __future__ import annotations

import contextlib
import json
import logging
import os
import sqlite3
import time
from pathlib import Path

from ..core.ports import KeyValueStore

logger = logging.getLogger(__name__)

BACKENDS = ("sqlite", "json")


class SqliteKeyValueStore:
    """
    SQLite key-value store.

    One table, one row per key. Every write is a single transaction, so a
    snapshot is either fully stored or not stored at all.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("SqliteKeyValueStore ready db=%s", self._db_path)

    @property
    def path(self) -> Path:
        return self._db_path

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def get(self, key: str) -> str | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
            return str(row["value"]) if row else None
        finally:
            conn.close()

    def set(self, key: str, value: str) -> None:
        conn = self._get_conn()
        try:
            with conn:
                conn.execute(
                    """
                    INSERT INTO kv(key, value, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    (key, value, time.time()),
                )
            logger.debug("kv set key=%s bytes=%d", key, len(value))
        finally:
            conn.close()


class JsonFileKeyValueStore:
    """
    Key-value store kept in a single JSON object file.

    Writes go to a temp file which then replaces the target (atomic on the
    same filesystem). An unreadable file reads as empty.
    """

    def __init__(self, path: str | Path = "tasks.json") -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("JsonFileKeyValueStore ready path=%s", self._path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text("utf-8"))
        except (OSError, ValueError):
            logger.warning("Unreadable key-value file %s; treating as empty.", self._path)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def get(self, key: str) -> str | None:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), "utf-8")
        os.replace(tmp, self._path)
        logger.debug("kv set key=%s bytes=%d path=%s", key, len(value), self._path)


def open_kv_store(backend: str, path: str | Path) -> KeyValueStore:
    """Build the configured backend ("sqlite" or "json")."""
    name = (backend or "").strip().lower()
    if name == "sqlite":
        return SqliteKeyValueStore(path)
    if name == "json":
        return JsonFileKeyValueStore(path)
    raise ValueError(f"Unknown storage backend: {backend!r} (expected one of {', '.join(BACKENDS)})")
