"""Persistence helpers for interview sessions with optimistic versioning."""
from __future__ import annotations

import sqlite3
from typing import List, Optional

from session_flow.state import SessionState

from .sqlite import get_conn


class StaleSessionError(RuntimeError):
    """Raised when a session was written by someone else since it was loaded."""


def _row_to_state(row) -> SessionState:
    state = SessionState.model_validate_json(row[0])
    state.version = int(row[1])
    return state


def get_open(candidate_id: str, job_id: str) -> Optional[SessionState]:
    """Return the open session for the pair, if any."""

    with get_conn() as conn:
        row = conn.execute(
            """SELECT payload, version FROM sessions
               WHERE candidate_id=? AND job_id=? AND completed_at IS NULL""",
            (candidate_id, job_id),
        ).fetchone()
    return _row_to_state(row) if row else None


def get(session_id: str) -> Optional[SessionState]:
    with get_conn() as conn:
        row = conn.execute("SELECT payload, version FROM sessions WHERE session_id=?", (session_id,)).fetchone()
    return _row_to_state(row) if row else None


def create(state: SessionState) -> SessionState:
    """Insert a new open session at version 1.

    A second open session for the same (candidate, job) violates the partial unique
    index and surfaces as :class:`StaleSessionError`.
    """

    state.version = 1
    try:
        with get_conn() as conn:
            conn.execute(
                """INSERT INTO sessions
                   (session_id, candidate_id, job_id, current_index, started_at, completed_at, version, payload)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    state.session_id,
                    state.candidate_id,
                    state.job_id,
                    state.current_index,
                    state.started_at.isoformat(),
                    state.completed_at.isoformat() if state.completed_at else None,
                    state.version,
                    state.model_dump_json(),
                ),
            )
    except sqlite3.IntegrityError as exc:
        state.version = 0
        raise StaleSessionError(f"open session already exists for {state.candidate_id}/{state.job_id}") from exc
    return state


def save(state: SessionState) -> SessionState:
    """Write ``state`` if nobody else has since the version it was loaded at."""

    expected = state.version
    state.version = expected + 1
    with get_conn() as conn:
        cur = conn.execute(
            """UPDATE sessions
               SET current_index=?, completed_at=?, version=?, payload=?
               WHERE session_id=? AND version=?""",
            (
                state.current_index,
                state.completed_at.isoformat() if state.completed_at else None,
                state.version,
                state.model_dump_json(),
                state.session_id,
                expected,
            ),
        )
        updated = cur.rowcount
    if updated != 1:
        state.version = expected
        raise StaleSessionError(f"session {state.session_id} changed since version {expected}")
    return state


def list_recent(limit: int = 20) -> List[SessionState]:
    with get_conn() as conn:
        rows = conn.execute(
            "SELECT payload, version FROM sessions ORDER BY started_at DESC LIMIT ?", (limit,)
        ).fetchall()
    return [_row_to_state(row) for row in rows]


def latest(candidate_id: str, job_id: str) -> Optional[SessionState]:
    """Most recently started session for the pair, open or completed."""

    with get_conn() as conn:
        row = conn.execute(
            """SELECT payload, version FROM sessions
               WHERE candidate_id=? AND job_id=?
               ORDER BY started_at DESC LIMIT 1""",
            (candidate_id, job_id),
        ).fetchone()
    return _row_to_state(row) if row else None


def completed_without_submission(limit: int = 100) -> List[SessionState]:
    """Completed sessions whose submission was never written, oldest first."""

    with get_conn() as conn:
        rows = conn.execute(
            """SELECT s.payload, s.version FROM sessions s
               LEFT JOIN submissions sub ON sub.session_id = s.session_id
               WHERE s.completed_at IS NOT NULL AND sub.submission_id IS NULL
               ORDER BY s.completed_at ASC LIMIT ?""",
            (limit,),
        ).fetchall()
    return [_row_to_state(row) for row in rows]
