"""
aethergrid/data/store.py
────────────────────────
Key-value blob persistence.

Provides:
  - KeyValueStore : load(key) -> str | None, save(key, blob)
  - InMemoryStore : dict-backed, for tests and throwaway sessions
  - SqliteStore   : one `kv` table, whole-blob read/replace

Callers serialize to JSON themselves; the store never interprets blobs.
Thread safety: each store guards its backend with an RLock.
"""
from __future__ import annotations

import sqlite3
import threading
from typing import Protocol

from config.settings import settings


class KeyValueStore(Protocol):
    def load(self, key: str) -> str | None: ...

    def save(self, key: str, blob: str) -> None: ...


class InMemoryStore:
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.RLock()

    def load(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def save(self, key: str, blob: str) -> None:
        with self._lock:
            self._data[key] = blob

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._data)


# ── SQLite ────────────────────────────────────────────────────────────────────

_CREATE_KV = """
CREATE TABLE IF NOT EXISTS kv (
    key        TEXT PRIMARY KEY,
    value      TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);
"""


class SqliteStore:
    """SQLite-backed store. `path` defaults to settings.DATABASE_URL."""

    def __init__(self, path: str | None = None) -> None:
        self._path = path or settings.DATABASE_URL
        self._lock = threading.RLock()
        self._conn = sqlite3.connect(self._path, check_same_thread=False)
        with self._conn:
            self._conn.executescript(_CREATE_KV)

    def load(self, key: str) -> str | None:
        with self._lock:
            row = self._conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def save(self, key: str, blob: str) -> None:
        with self._lock, self._conn:
            self._conn.execute(
                """INSERT INTO kv (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP)
                   ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                                  updated_at = excluded.updated_at""",
                (key, blob),
            )

    def close(self) -> None:
        with self._lock:
            self._conn.close()
