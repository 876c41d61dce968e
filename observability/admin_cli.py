"""Lightweight CLI helpers for preparing the database and inspecting interviews."""
from __future__ import annotations

import argparse

from config.settings import settings
from storage import sessions as session_store
from storage import submissions as submission_store
from services.scoring import refinalize_pending
from session_flow.state import Job
from storage.jobs import seed_demo_job, upsert_job
from storage.migrate import migrate


def tail_sessions(limit: int = 20) -> None:
    for state in session_store.list_recent(limit):
        status = "completed" if state.is_completed else f"q{state.current_index + 1}"
        print(
            f"[{state.started_at.isoformat()}] {state.job_id}/{state.candidate_id} "
            f"session={state.session_id} {status} answered={sum(1 for a in state.answers if a)} "
            f"review={state.needs_review}"
        )


def tail_submissions(limit: int = 20) -> None:
    for item in submission_store.list_recent(limit):
        print(
            f"[{item.created_at.isoformat()}] {item.job_id}/{item.candidate_id} "
            f"score={item.score} decision={item.decision} review={item.needs_review} summary={item.summary[:80]}"
        )


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Screening interview admin tools")
    parser.add_argument("--migrate", action="store_true", help="Create tables and indexes")
    parser.add_argument("--seed-demo", action="store_true", help="Insert the demo job if missing")
    parser.add_argument("--tail-sessions", type=int, help="Show the latest sessions")
    parser.add_argument("--tail-submissions", type=int, help="Show the latest submissions")
    parser.add_argument("--import-job", metavar="FILE", help="Insert or replace a job from a JSON file")
    parser.add_argument("--refinalize", action="store_true", help="Write missing submissions for completed sessions")
    args = parser.parse_args(argv)

    if args.migrate:
        migrate(settings.DB_PATH)
        print(f"migrated {settings.DB_PATH}")
    if args.seed_demo:
        job = seed_demo_job()
        print(f"seeded {job.job_id}")
    if args.import_job:
        with open(args.import_job, "r", encoding="utf-8") as fh:
            job = Job.model_validate_json(fh.read())
        upsert_job(job)
        print(f"imported {job.job_id} questions={job.question_count} recipients={len(job.recipients)}")
    if args.refinalize:
        written = refinalize_pending()
        for item in written:
            print(f"finalized session={item.session_id} score={item.score} decision={item.decision}")
        print(f"refinalized {len(written)}")
    if args.tail_sessions:
        tail_sessions(args.tail_sessions)
    if args.tail_submissions:
        tail_submissions(args.tail_submissions)


if __name__ == "__main__":
    main()
