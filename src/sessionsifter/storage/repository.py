"""CRUD operations for the SessionSifter database."""

from __future__ import annotations

import csv
import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from sessionsifter.storage.database import Database
from sessionsifter.storage.models import (
    FinalizedMetadataRecord,
    MediaKind,
    StudentDirectoryEntry,
)

logger = logging.getLogger(__name__)


class Repository:
    """Database operations for SessionSifter."""

    def __init__(self, db: Database):
        self.db = db

    # ── Sessions ───────────────────────────────────────────────────

    def session_exists(self, recording_id: str) -> bool:
        row = self.db.conn.execute(
            "SELECT 1 FROM sessions WHERE recording_id = ?",
            (recording_id,),
        ).fetchone()
        return row is not None

    def insert_session(
        self,
        recording_id: str,
        topic: str,
        record: FinalizedMetadataRecord,
        base_name: str,
        files: list[tuple[str, MediaKind, str]] = (),
        session_date: Optional[str] = None,
        host_email: Optional[str] = None,
        program: Optional[str] = None,
    ) -> int:
        """Write the ledger row for one recording and its named files."""
        cursor = self.db.conn.execute(
            """INSERT INTO sessions
               (recording_id, topic, coach, coach_confidence, coach_source,
                student, student_confidence, student_source, week, week_source,
                category, has_game_plan, program, session_date, host_email,
                base_name, needs_review, record_json)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                recording_id,
                topic,
                record.coach.value,
                record.coach.confidence,
                record.coach.source.value,
                record.student.value,
                record.student.confidence,
                record.student.source.value,
                record.week_number.value,
                record.week_number.source.value,
                record.category.value,
                int(record.has_game_plan),
                program,
                session_date,
                host_email,
                base_name,
                int(record.needs_review),
                json.dumps(record.to_dict()),
            ),
        )
        session_id = cursor.lastrowid

        for source, kind, file_name in files:
            self.db.conn.execute(
                """INSERT OR IGNORE INTO session_files
                   (session_id, media_kind, file_name, source)
                   VALUES (?, ?, ?, ?)""",
                (session_id, kind.value, file_name, source),
            )

        self.db.conn.commit()
        return session_id

    def get_session(self, recording_id: str) -> dict | None:
        row = self.db.conn.execute(
            "SELECT * FROM sessions WHERE recording_id = ?", (recording_id,)
        ).fetchone()
        if row is None:
            return None
        session = dict(row)
        files = self.db.conn.execute(
            "SELECT media_kind, file_name, source FROM session_files WHERE session_id = ? ORDER BY id",
            (session["id"],),
        ).fetchall()
        session["files"] = [dict(f) for f in files]
        return session

    def get_all_sessions(self) -> list[dict]:
        rows = self.db.conn.execute(
            "SELECT * FROM sessions ORDER BY session_date, id"
        ).fetchall()
        return [dict(r) for r in rows]

    # ── Review Queue ───────────────────────────────────────────────

    def flag(self, recording_id: str, record: FinalizedMetadataRecord, reason: str):
        """Queue a recording for manual review; re-flagging reopens it."""
        self.db.conn.execute(
            """INSERT INTO review_queue (recording_id, reason, record_json)
               VALUES (?, ?, ?)
               ON CONFLICT(recording_id) DO UPDATE SET
                   reason = excluded.reason,
                   record_json = excluded.record_json,
                   resolved = 0,
                   resolved_at = NULL""",
            (recording_id, reason, json.dumps(record.to_dict())),
        )
        self.db.conn.commit()
        logger.info("Flagged %s for review: %s", recording_id, reason)

    def get_review_queue(self, include_resolved: bool = False) -> list[dict]:
        query = "SELECT * FROM review_queue"
        if not include_resolved:
            query += " WHERE resolved = 0"
        rows = self.db.conn.execute(query + " ORDER BY created_at, id").fetchall()
        return [dict(r) for r in rows]

    def resolve_review(self, recording_id: str) -> bool:
        cursor = self.db.conn.execute(
            """UPDATE review_queue SET resolved = 1, resolved_at = ?
               WHERE recording_id = ? AND resolved = 0""",
            (datetime.now().isoformat(), recording_id),
        )
        self.db.conn.commit()
        return cursor.rowcount > 0

    # ── Student Directory ──────────────────────────────────────────

    def upsert_student(self, entry: StudentDirectoryEntry):
        self.db.conn.execute(
            """INSERT INTO students
               (email, display_name, coach_name, coach_email, program, start_date)
               VALUES (?, ?, ?, ?, ?, ?)
               ON CONFLICT(email) DO UPDATE SET
                   display_name = excluded.display_name,
                   coach_name = excluded.coach_name,
                   coach_email = excluded.coach_email,
                   program = excluded.program,
                   start_date = excluded.start_date,
                   updated_at = datetime('now')""",
            (
                entry.email.strip().lower(),
                entry.display_name,
                entry.coach_name,
                entry.coach_email,
                entry.program,
                entry.start_date.isoformat() if entry.start_date else None,
            ),
        )

    def import_students_csv(self, path: Path) -> int:
        """Load a directory CSV with a header row; returns rows imported."""
        count = 0
        with open(path, newline="", encoding="utf-8-sig") as f:
            for row in csv.DictReader(f):
                email = (row.get("student_email") or "").strip()
                if not email:
                    continue
                start = None
                raw_start = (row.get("start_date") or "").strip()
                if raw_start:
                    try:
                        start = date.fromisoformat(raw_start)
                    except ValueError:
                        logger.warning("Ignoring bad start date for %s: %s", email, raw_start)
                self.upsert_student(StudentDirectoryEntry(
                    email=email,
                    display_name=(row.get("student_name") or "").strip(),
                    coach_name=(row.get("coach_name") or "").strip(),
                    coach_email=(row.get("coach_email") or "").strip(),
                    program=(row.get("program") or "").strip(),
                    start_date=start,
                ))
                count += 1
        self.db.conn.commit()
        return count

    def load_directory(self) -> list[StudentDirectoryEntry]:
        rows = self.db.conn.execute(
            "SELECT * FROM students ORDER BY email"
        ).fetchall()
        return [
            StudentDirectoryEntry(
                email=r["email"],
                display_name=r["display_name"],
                coach_name=r["coach_name"] or "",
                coach_email=r["coach_email"] or "",
                program=r["program"] or "",
                start_date=date.fromisoformat(r["start_date"]) if r["start_date"] else None,
            )
            for r in rows
        ]

    # ── Progress ───────────────────────────────────────────────────

    def get_progress_summary(self) -> dict:
        summary = {}

        row = self.db.conn.execute("SELECT COUNT(*) FROM sessions").fetchone()
        summary["total_sessions"] = row[0]

        rows = self.db.conn.execute(
            "SELECT category, COUNT(*) FROM sessions GROUP BY category"
        ).fetchall()
        summary["by_category"] = {r[0]: r[1] for r in rows}

        rows = self.db.conn.execute(
            """SELECT coach, COUNT(*) FROM sessions
               WHERE coach IS NOT NULL GROUP BY coach ORDER BY coach"""
        ).fetchall()
        summary["by_coach"] = {r[0]: r[1] for r in rows}

        row = self.db.conn.execute(
            "SELECT COUNT(*) FROM review_queue WHERE resolved = 0"
        ).fetchone()
        summary["pending_review"] = row[0]

        row = self.db.conn.execute("SELECT COUNT(*) FROM students").fetchone()
        summary["students"] = row[0]

        return summary
