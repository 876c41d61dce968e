"""SQLite schema migrations."""
from __future__ import annotations

import os
import sqlite3
from typing import Iterable

SCHEMA: Iterable[str] = [
    """
CREATE TABLE IF NOT EXISTS jobs (
  job_id TEXT PRIMARY KEY,
  created_at TEXT NOT NULL,
  title TEXT NOT NULL,
  language TEXT NOT NULL,
  payload TEXT NOT NULL
);
""",
    """
CREATE TABLE IF NOT EXISTS sessions (
  session_id TEXT PRIMARY KEY,
  candidate_id TEXT NOT NULL,
  job_id TEXT NOT NULL,
  current_index INTEGER NOT NULL,
  started_at TEXT NOT NULL,
  completed_at TEXT,
  version INTEGER NOT NULL,
  payload TEXT NOT NULL
);
""",
    """
CREATE UNIQUE INDEX IF NOT EXISTS ux_sessions_open
  ON sessions (candidate_id, job_id) WHERE completed_at IS NULL;
""",
    """
CREATE TABLE IF NOT EXISTS submissions (
  submission_id TEXT PRIMARY KEY,
  session_id TEXT NOT NULL UNIQUE,
  candidate_id TEXT NOT NULL,
  job_id TEXT NOT NULL,
  created_at TEXT NOT NULL,
  score INTEGER NOT NULL,
  decision TEXT NOT NULL,
  payload TEXT NOT NULL
);
""",
    """
CREATE INDEX IF NOT EXISTS ix_submissions_job ON submissions (job_id, created_at);
""",
]


def migrate(db_path: str = "data/screening.db") -> None:
    """Apply schema migrations to the SQLite database."""

    directory = os.path.dirname(db_path) or "."
    os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(db_path)
    try:
        cur = conn.cursor()
        for stmt in SCHEMA:
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


if __name__ == "__main__":
    from config.settings import settings

    migrate(settings.DB_PATH)
