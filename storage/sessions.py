from __future__ import annotations  # Interview session document store

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from interview_session.errors import ConcurrentUpdate
from interview_session.models import InterviewSession

from .migrate import migrate


logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class SessionStore:  # SQLite-backed store with optimistic concurrency on ``version``
    def __init__(self, path: Path) -> None:  # Initialize store and schema
        self._path = Path(path)
        migrate(str(self._path))

    def _connect(self) -> sqlite3.Connection:  # Open SQLite connection with row access by name
        self._path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self._path, timeout=10.0)
        conn.row_factory = sqlite3.Row
        return conn

    def _from_row(self, row: sqlite3.Row) -> InterviewSession:
        session = InterviewSession.model_validate_json(row["document"])
        return session.model_copy(update={"version": int(row["version"])})

    def find(self, session_id: str) -> Optional[InterviewSession]:  # Load a session by id
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT document, version FROM interview_sessions WHERE session_id = ?",
                (session_id,),
            ).fetchone()
        finally:
            conn.close()
        return self._from_row(row) if row else None

    def create(self, session: InterviewSession) -> InterviewSession:  # Insert a new session at version 1
        stored = session.model_copy(update={"version": 1})
        conn = self._connect()
        try:
            conn.execute(
                """
                INSERT INTO interview_sessions
                    (session_id, subject_id, domain, status, version, document, started_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    stored.session_id,
                    stored.subject_id,
                    stored.domain,
                    stored.status,
                    stored.version,
                    stored.model_dump_json(exclude={"version"}),
                    stored.started_at.isoformat(),
                    _now(),
                ),
            )
            conn.commit()
        finally:
            conn.close()
        logger.info("Session created session=%s subject=%s", stored.session_id, stored.subject_id)
        return stored

    def save(self, session: InterviewSession) -> InterviewSession:
        """Replace the stored document if nobody else wrote since ``session.version`` was read.

        Raises:
            ConcurrentUpdate: If the stored version moved on.
        """

        stored = session.model_copy(update={"version": session.version + 1})
        conn = self._connect()
        try:
            cur = conn.execute(
                """
                UPDATE interview_sessions
                   SET status = ?, version = ?, document = ?, updated_at = ?
                 WHERE session_id = ? AND version = ?
                """,
                (
                    stored.status,
                    stored.version,
                    stored.model_dump_json(exclude={"version"}),
                    _now(),
                    session.session_id,
                    session.version,
                ),
            )
            conn.commit()
            updated = cur.rowcount
        finally:
            conn.close()
        if updated != 1:
            logger.warning("Stale write rejected session=%s version=%d", session.session_id, session.version)
            raise ConcurrentUpdate()
        return stored

    def list_for_subject(self, subject_id: str, *, limit: int = 50) -> List[InterviewSession]:  # Most recent first
        conn = self._connect()
        try:
            rows = conn.execute(
                """
                SELECT document, version FROM interview_sessions
                 WHERE subject_id = ?
                 ORDER BY started_at DESC
                 LIMIT ?
                """,
                (subject_id, limit),
            ).fetchall()
        finally:
            conn.close()
        return [self._from_row(row) for row in rows]


__all__ = ["SessionStore"]
