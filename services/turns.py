"""Turn orchestration: lock, load, apply, persist, finalize, deliver."""
from __future__ import annotations

import logging
import time
from typing import Optional

from config.locales import catalog
from config.settings import settings
from messaging.outbox import CHANNEL_PREFIX, Outbox, RecordingOutbox
from observability.logger import log_event
from observability.tracing import span
from services.locks import SessionLocks
from services.scoring import finalize
from session_flow.machine import InterviewMachine, TurnOutcome
from session_flow.state import InboundTurn, Job, SessionState, Submission
from storage import jobs as job_store
from storage import sessions as session_store
from storage.sessions import StaleSessionError


class InvalidTurnError(ValueError):
    """The inbound delivery cannot be attributed to a candidate."""


def normalize_identity(raw: Optional[str]) -> str:
    identity = (raw or "").strip()
    if identity.lower().startswith(CHANNEL_PREFIX):
        identity = identity[len(CHANNEL_PREFIX):]
    return identity.strip()


class TurnService:
    def __init__(
        self,
        *,
        machine: Optional[InterviewMachine] = None,
        outbox: Optional[Outbox] = None,
        locks: Optional[SessionLocks] = None,
    ):
        self.machine = machine or InterviewMachine()
        self.outbox = outbox if outbox is not None else RecordingOutbox()
        self.locks = locks or SessionLocks()

    def resolve_job(self, job_id: Optional[str] = None) -> Optional[Job]:
        """Explicit job first, then the configured default, then the newest job.

        An explicit id that does not exist raises ``JobNotFoundError``.
        """

        if job_id:
            return job_store.get_job(job_id)
        if settings.DEFAULT_JOB_ID:
            try:
                return job_store.get_job(settings.DEFAULT_JOB_ID)
            except job_store.JobNotFoundError:
                log_event("turn.default_job_missing", None, level=logging.WARNING, outcome=settings.DEFAULT_JOB_ID)
        return job_store.latest_job()

    def handle(self, turn: InboundTurn) -> TurnOutcome:
        started = time.perf_counter()
        identity = normalize_identity(turn.channel_identity)
        if not identity:
            raise InvalidTurnError("channel identity is required")

        job = self.resolve_job(turn.job_id)
        if job is None:
            outcome = TurnOutcome(replies=[catalog().text("en", "no_active_job")])
            log_event("turn.no_job", None, candidate=identity)
            self._deliver(turn.channel_identity, None, outcome)
            return outcome

        with self.locks.hold((identity, job.job_id)):
            outcome = self._apply(job, identity, turn)
            if outcome.completed and outcome.session is not None:
                with span(outcome.events, "finalize"):
                    outcome.submission = self._finalize(job, outcome.session)

        session_id = outcome.session.session_id if outcome.session else None
        self._deliver(turn.channel_identity, session_id, outcome)
        log_event(
            "turn.done",
            session_id,
            candidate=identity,
            index=outcome.session.current_index if outcome.session else None,
            outcome="duplicate" if outcome.duplicate else ("completed" if outcome.completed else "ok"),
            ms=int((time.perf_counter() - started) * 1000),
        )
        return outcome

    def _apply(self, job: Job, identity: str, turn: InboundTurn) -> TurnOutcome:
        replayed = False
        while True:
            session = session_store.get_open(identity, job.job_id)
            if session is None and self._seen_after_completion(identity, job, turn.delivery_id):
                return TurnOutcome(duplicate=True)
            outcome = self.machine.handle(job, identity, session, turn.body_text, turn.delivery_id)
            if outcome.session is None or outcome.duplicate:
                return outcome
            try:
                if outcome.created:
                    session_store.create(outcome.session)
                else:
                    session_store.save(outcome.session)
            except StaleSessionError:
                if replayed:
                    raise
                replayed = True
                log_event("turn.stale_replay", outcome.session.session_id, level=logging.WARNING, candidate=identity)
                continue
            return outcome

    @staticmethod
    def _seen_after_completion(identity: str, job: Job, delivery_id: Optional[str]) -> bool:
        if not delivery_id:
            return False
        previous = session_store.latest(identity, job.job_id)
        return previous is not None and previous.is_completed and previous.has_processed(delivery_id)

    @staticmethod
    def _finalize(job: Job, session: SessionState) -> Optional[Submission]:
        try:
            submission = finalize(job, session)
        except Exception as exc:  # noqa: BLE001
            log_event("session.finalize_failed", session.session_id, level=logging.ERROR, outcome=str(exc))
            return None
        log_event(
            "session.finalized",
            session.session_id,
            score=submission.score,
            decision=submission.decision,
        )
        return submission

    def _deliver(self, to: str, session_id: Optional[str], outcome: TurnOutcome) -> None:
        for body in outcome.replies:
            try:
                self.outbox.send(to, body)
            except Exception as exc:  # noqa: BLE001
                log_event("outbox.failed", session_id, level=logging.ERROR, outcome=str(exc))


__all__ = ["InvalidTurnError", "TurnService", "normalize_identity"]
