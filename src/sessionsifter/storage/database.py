"""SQLite database schema and connection management."""

from __future__ import annotations

import sqlite3
from pathlib import Path

SCHEMA_VERSION = 1

SCHEMA_SQL = """
-- Tracking ledger: one row per processed recording
CREATE TABLE IF NOT EXISTS sessions (
    id                 INTEGER PRIMARY KEY AUTOINCREMENT,
    recording_id       TEXT NOT NULL UNIQUE,
    topic              TEXT NOT NULL,
    coach              TEXT,
    coach_confidence   REAL DEFAULT 0,
    coach_source       TEXT,
    student            TEXT,
    student_confidence REAL DEFAULT 0,
    student_source     TEXT,
    week               TEXT,
    week_source        TEXT,
    category           TEXT NOT NULL,
    has_game_plan      INTEGER DEFAULT 0,
    program            TEXT,
    session_date       TEXT,
    host_email         TEXT,
    base_name          TEXT NOT NULL,
    needs_review       INTEGER DEFAULT 0,
    record_json        TEXT,
    created_at         TEXT DEFAULT (datetime('now'))
);

-- Canonical name for every media file of a recording
CREATE TABLE IF NOT EXISTS session_files (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    session_id   INTEGER NOT NULL REFERENCES sessions(id) ON DELETE CASCADE,
    media_kind   TEXT NOT NULL,
    file_name    TEXT NOT NULL,
    source       TEXT,
    UNIQUE(session_id, file_name)
);

-- Low-confidence recordings awaiting manual review
CREATE TABLE IF NOT EXISTS review_queue (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    recording_id TEXT NOT NULL UNIQUE,
    reason       TEXT NOT NULL,
    record_json  TEXT,
    resolved     INTEGER DEFAULT 0,
    created_at   TEXT DEFAULT (datetime('now')),
    resolved_at  TEXT
);

-- Student directory
CREATE TABLE IF NOT EXISTS students (
    email        TEXT PRIMARY KEY,
    display_name TEXT NOT NULL,
    coach_name   TEXT DEFAULT '',
    coach_email  TEXT DEFAULT '',
    program      TEXT DEFAULT '',
    start_date   TEXT,
    updated_at   TEXT DEFAULT (datetime('now'))
);

-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER NOT NULL
);

-- Indexes
CREATE INDEX IF NOT EXISTS idx_sessions_coach ON sessions(coach);
CREATE INDEX IF NOT EXISTS idx_sessions_review ON sessions(needs_review);
CREATE INDEX IF NOT EXISTS idx_session_files_session ON session_files(session_id);
CREATE INDEX IF NOT EXISTS idx_review_queue_resolved ON review_queue(resolved);
"""


class Database:
    """SQLite database connection manager."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn: sqlite3.Connection | None = None

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.db_path))
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA foreign_keys=ON")
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def initialize(self):
        """Create all tables if they don't exist."""
        self.conn.executescript(SCHEMA_SQL)
        row = self.conn.execute(
            "SELECT version FROM schema_version LIMIT 1"
        ).fetchone()
        if row is None:
            self.conn.execute(
                "INSERT INTO schema_version (version) VALUES (?)",
                (SCHEMA_VERSION,),
            )
        self.conn.commit()

    def close(self):
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        self.initialize()
        return self

    def __exit__(self, *args):
        self.close()
