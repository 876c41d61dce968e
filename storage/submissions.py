"""Append-only persistence for scored submissions."""
from __future__ import annotations

import sqlite3
from typing import List, Optional

from session_flow.state import Submission

from .sqlite import get_conn


def create(submission: Submission) -> Submission:
    """Insert the submission; a second insert for the same session returns the first."""

    try:
        with get_conn() as conn:
            conn.execute(
                """INSERT INTO submissions
                   (submission_id, session_id, candidate_id, job_id, created_at, score, decision, payload)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    submission.submission_id,
                    submission.session_id,
                    submission.candidate_id,
                    submission.job_id,
                    submission.created_at.isoformat(),
                    submission.score,
                    submission.decision,
                    submission.model_dump_json(),
                ),
            )
    except sqlite3.IntegrityError:
        existing = for_session(submission.session_id)
        if existing is None:
            raise
        return existing
    return submission


def get(submission_id: str) -> Optional[Submission]:
    with get_conn() as conn:
        row = conn.execute("SELECT payload FROM submissions WHERE submission_id=?", (submission_id,)).fetchone()
    return Submission.model_validate_json(row[0]) if row else None


def for_session(session_id: str) -> Optional[Submission]:
    with get_conn() as conn:
        row = conn.execute("SELECT payload FROM submissions WHERE session_id=?", (session_id,)).fetchone()
    return Submission.model_validate_json(row[0]) if row else None


def list_for_job(job_id: str) -> List[Submission]:
    with get_conn() as conn:
        rows = conn.execute(
            "SELECT payload FROM submissions WHERE job_id=? ORDER BY created_at DESC", (job_id,)
        ).fetchall()
    return [Submission.model_validate_json(row[0]) for row in rows]


def list_recent(limit: int = 20) -> List[Submission]:
    with get_conn() as conn:
        rows = conn.execute("SELECT payload FROM submissions ORDER BY created_at DESC LIMIT ?", (limit,)).fetchall()
    return [Submission.model_validate_json(row[0]) for row in rows]
