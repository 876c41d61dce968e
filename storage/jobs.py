"""Persistence helpers for job templates (read-mostly)."""
from __future__ import annotations

from typing import List, Optional

from session_flow.state import Job

from .sqlite import get_conn


class JobNotFoundError(LookupError):
    pass


DEMO_JOB = Job(
    job_id="JOB-DEMO",
    title="Junior Backend Engineer",
    language="en",
    questions=[
        "Briefly introduce yourself and your experience.",
        "What programming languages and frameworks are you most comfortable with?",
        "Describe a challenging backend problem you solved and how.",
        "What are your salary expectations and notice period?",
    ],
)


def upsert_job(job: Job) -> str:
    """Insert or replace a job template and return its id."""

    with get_conn() as conn:
        conn.execute(
            """INSERT INTO jobs (job_id, created_at, title, language, payload)
               VALUES (?, ?, ?, ?, ?)
               ON CONFLICT(job_id) DO UPDATE SET
                 title=excluded.title, language=excluded.language, payload=excluded.payload""",
            (job.job_id, job.created_at.isoformat(), job.title, job.language, job.model_dump_json()),
        )
    return job.job_id


def get_job(job_id: str) -> Job:
    with get_conn() as conn:
        row = conn.execute("SELECT payload FROM jobs WHERE job_id=?", (job_id,)).fetchone()
    if row is None:
        raise JobNotFoundError(job_id)
    return Job.model_validate_json(row[0])


def latest_job() -> Optional[Job]:
    with get_conn() as conn:
        row = conn.execute("SELECT payload FROM jobs ORDER BY created_at DESC LIMIT 1").fetchone()
    return Job.model_validate_json(row[0]) if row else None


def list_jobs() -> List[Job]:
    with get_conn() as conn:
        rows = conn.execute("SELECT payload FROM jobs ORDER BY created_at DESC").fetchall()
    return [Job.model_validate_json(row[0]) for row in rows]


def seed_demo_job() -> Job:
    """Ensure the demo job exists so a fresh install can run an interview."""

    try:
        return get_job(DEMO_JOB.job_id)
    except JobNotFoundError:
        upsert_job(DEMO_JOB)
        return DEMO_JOB
