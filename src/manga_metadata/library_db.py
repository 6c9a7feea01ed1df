"""SQLite-backed library store -- one row per title folder.

Holds the caller-side view of each title: folder path, display title, the
cover reference (local folder image or cached asset), and the metadata
merged in from the resolver. WAL mode with per-thread connections, so a
scan and a reader can share the file.
"""

from __future__ import annotations

import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from loguru import logger

from .errors import LibraryError

log = logger.bind(stage="db")

_SCHEMA = """\
PRAGMA journal_mode=WAL;
PRAGMA busy_timeout=5000;

CREATE TABLE IF NOT EXISTS manga (
    path         TEXT PRIMARY KEY,
    title        TEXT NOT NULL,
    cover        TEXT,
    synopsis     TEXT,
    status       TEXT,
    rating       REAL,
    external_id  TEXT,
    source       TEXT,
    created_at   TEXT NOT NULL,
    updated_at   TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_manga_updated ON manga(updated_at);
"""

# Columns callers may set through update()
_UPDATABLE_COLUMNS = {
    "title",
    "cover",
    "synopsis",
    "status",
    "rating",
    "external_id",
    "source",
}


def _utcnow() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class LibraryDB:
    """SQLite library store.

    Thread-safe: each thread gets its own connection via threading.local().
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self._local = threading.local()
        self._init_schema()

    def _get_conn(self) -> sqlite3.Connection:
        """Get or create a per-thread SQLite connection."""
        conn = getattr(self._local, "conn", None)
        if conn is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.db_path), timeout=10.0)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA busy_timeout=5000")
            self._local.conn = conn
        return conn

    def _init_schema(self) -> None:
        conn = self._get_conn()
        conn.executescript(_SCHEMA)
        conn.commit()

    def close(self) -> None:
        """Close the current thread's connection."""
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            conn.close()
            self._local.conn = None

    def upsert_folder(self, path: str, title: str) -> tuple[dict[str, Any], bool]:
        """Return (row, created). Existing rows are left untouched."""
        existing = self.read(path)
        if existing is not None:
            return existing, False

        now = _utcnow()
        conn = self._get_conn()
        conn.execute(
            "INSERT INTO manga (path, title, created_at, updated_at) VALUES (?, ?, ?, ?)",
            (path, title, now, now),
        )
        conn.commit()
        log.debug(f"Added {title!r} ({path})")
        return self.read(path), True

    def read(self, path: str) -> dict[str, Any] | None:
        row = self._get_conn().execute(
            "SELECT * FROM manga WHERE path = ?", (path,)
        ).fetchone()
        return dict(row) if row else None

    def list_all(self) -> list[dict[str, Any]]:
        """All rows, most recently updated first."""
        rows = self._get_conn().execute(
            "SELECT * FROM manga ORDER BY updated_at DESC, path"
        ).fetchall()
        return [dict(r) for r in rows]

    def update(self, path: str, **fields: Any) -> dict[str, Any]:
        """Set the given columns on one row and bump updated_at."""
        unknown = set(fields) - _UPDATABLE_COLUMNS
        if unknown:
            raise LibraryError(f"Unknown library columns: {sorted(unknown)}")
        if self.read(path) is None:
            raise LibraryError(f"No library entry for {path}")

        fields["updated_at"] = _utcnow()
        assignments = ", ".join(f"{col} = ?" for col in fields)
        conn = self._get_conn()
        conn.execute(
            f"UPDATE manga SET {assignments} WHERE path = ?",
            (*fields.values(), path),
        )
        conn.commit()
        return self.read(path)
