import sqlite3

import pytest

from config.settings import settings
from session_flow.state import Job, SessionState, Submission, utcnow
from storage import jobs, sessions, submissions
from storage.migrate import migrate
from storage.sessions import StaleSessionError


def _job(job_id="JOB-S"):
    return Job(job_id=job_id, title="Storage", questions=["one?", "two?"])


def test_migrate_is_idempotent():
    migrate(settings.DB_PATH)
    migrate(settings.DB_PATH)
    conn = sqlite3.connect(settings.DB_PATH)
    try:
        names = {row[0] for row in conn.execute("SELECT name FROM sqlite_master")}
    finally:
        conn.close()
    assert {"jobs", "sessions", "submissions", "ux_sessions_open"} <= names


def test_job_upsert_get_and_latest():
    jobs.upsert_job(_job())
    updated = _job().model_copy(update={"title": "Storage v2"})
    jobs.upsert_job(updated)
    assert jobs.get_job("JOB-S").title == "Storage v2"
    assert jobs.latest_job().job_id == "JOB-S"
    assert [j.job_id for j in jobs.list_jobs()] == ["JOB-S"]
    with pytest.raises(jobs.JobNotFoundError):
        jobs.get_job("missing")


def test_seed_demo_job_is_stable():
    first = jobs.seed_demo_job()
    second = jobs.seed_demo_job()
    assert first.job_id == second.job_id == jobs.DEMO_JOB.job_id
    assert len(jobs.list_jobs()) == 1


def test_one_open_session_per_pair():
    job = _job()
    sessions.create(SessionState.open_for("c1", job))
    with pytest.raises(StaleSessionError):
        sessions.create(SessionState.open_for("c1", job))
    sessions.create(SessionState.open_for("c2", job))


def test_save_detects_stale_version():
    job = _job()
    created = sessions.create(SessionState.open_for("c1", job))
    copy_a = sessions.get(created.session_id)
    copy_b = sessions.get(created.session_id)

    copy_a.current_index = 1
    sessions.save(copy_a)
    assert copy_a.version == 2

    copy_b.current_index = 1
    with pytest.raises(StaleSessionError):
        sessions.save(copy_b)
    assert copy_b.version == 1
    assert sessions.get(created.session_id).version == 2


def test_completed_session_frees_the_pair():
    job = _job()
    state = sessions.create(SessionState.open_for("c1", job))
    state.completed_at = utcnow()
    sessions.save(state)
    assert sessions.get_open("c1", job.job_id) is None
    assert sessions.latest("c1", job.job_id).session_id == state.session_id
    sessions.create(SessionState.open_for("c1", job))
    assert len(sessions.list_recent(10)) == 2


def test_submission_insert_is_once_per_session():
    first = submissions.create(Submission(session_id="S1", candidate_id="c1", job_id="JOB-S", score=70))
    second = submissions.create(Submission(session_id="S1", candidate_id="c1", job_id="JOB-S", score=10))
    assert second.submission_id == first.submission_id
    assert submissions.get(first.submission_id).score == 70
    assert [s.session_id for s in submissions.list_for_job("JOB-S")] == ["S1"]
    assert submissions.list_recent(5)[0].submission_id == first.submission_id
