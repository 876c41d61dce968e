"""Per-message interview state machine.

States are implicit in the session record: no open session (NOT_STARTED),
``current_index`` below the question count (AWAITING_ANSWER), and ``completed_at``
set (COMPLETED). :meth:`InterviewMachine.handle` applies one inbound message and
returns the mutated session plus the replies to send; persistence, locking and
finalization belong to :mod:`services.turns`.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, Field

from agents.classifier import MessageCategory, classify, is_start_message, is_valid_answer_content
from agents.delegate import converse
from agents.types import DelegateAction, DelegateReply
from config.locales import MessageCatalog, catalog
from observability.logger import log_event
from observability.tracing import span
from session_flow.escalation import EscalationPolicy
from session_flow.state import Job, LedgerSlot, SessionState, Submission, utcnow

Delegate = Callable[[Job, SessionState, str, str], DelegateReply]


class TurnOutcome(BaseModel):
    """What one inbound message did to the interview."""

    session: Optional[SessionState] = None
    replies: List[str] = Field(default_factory=list)
    created: bool = False
    completed: bool = False
    duplicate: bool = False
    submission: Optional[Submission] = None
    events: List[Dict[str, Any]] = Field(default_factory=list)


def _join(*parts: Optional[str]) -> str:
    return "\n".join(part for part in parts if part)


class InterviewMachine:
    def __init__(
        self,
        *,
        policy: Optional[EscalationPolicy] = None,
        delegate: Optional[Delegate] = None,
        messages: Optional[MessageCatalog] = None,
    ):
        self.policy = policy or EscalationPolicy()
        self.delegate = delegate or converse
        self.messages = messages or catalog()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def welcome(self, job: Job) -> str:
        return self.messages.text(job.language, "welcome", title=job.title)

    def prompt(self, job: Job, index: int) -> str:
        return self.messages.text(
            job.language,
            "question_prefix",
            current=index + 1,
            total=job.question_count,
            question=job.questions[index],
        )

    def closing(self, job: Job) -> str:
        return self.messages.text(job.language, "final")

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------
    def handle(
        self,
        job: Job,
        candidate_id: str,
        session: Optional[SessionState],
        message: str,
        delivery_id: Optional[str] = None,
    ) -> TurnOutcome:
        """Apply one inbound message.

        ``session`` is the candidate's open session for ``job`` or None. A
        completed session is treated as absent; it is never mutated again.
        """

        if session is None or session.is_completed:
            return self._not_started(job, candidate_id, message, delivery_id)

        if session.has_processed(delivery_id):
            log_event("turn.duplicate", session.session_id, candidate=candidate_id)
            return TurnOutcome(session=session, duplicate=True)

        session.mark_processed(delivery_id)
        session.log("user", message)
        outcome = TurnOutcome(session=session)
        self._awaiting(job, session, message, outcome)
        for reply in outcome.replies:
            session.log("assistant", reply)
        return outcome

    # ------------------------------------------------------------------
    # NOT_STARTED
    # ------------------------------------------------------------------
    def _not_started(
        self, job: Job, candidate_id: str, message: str, delivery_id: Optional[str]
    ) -> TurnOutcome:
        if not is_start_message(message):
            log_event("turn.welcome", None, candidate=candidate_id)
            return TurnOutcome(replies=[self.welcome(job)])

        session = SessionState.open_for(candidate_id, job)
        session.mark_processed(delivery_id)
        session.log("user", message)
        outcome = TurnOutcome(session=session, created=True)
        log_event("session.start", session.session_id, candidate=candidate_id, index=0)
        if job.question_count:
            outcome.replies.append(self.prompt(job, 0))
        else:
            session.completed_at = utcnow()
            outcome.completed = True
            outcome.replies.append(self.messages.text(job.language, "no_questions"))
        for reply in outcome.replies:
            session.log("assistant", reply)
        return outcome

    # ------------------------------------------------------------------
    # AWAITING_ANSWER(i)
    # ------------------------------------------------------------------
    def _awaiting(self, job: Job, session: SessionState, message: str, outcome: TurnOutcome) -> None:
        EscalationPolicy.ensure_counters(session, job.question_count)
        index = session.current_index
        if index >= job.question_count:
            self._complete(job, session, outcome, lead=None)
            return

        category = classify(message)
        log_event("turn.classified", session.session_id, index=index, category=category.value)

        if category is MessageCategory.CONFIRMATION:
            return
        if category is MessageCategory.CLARIFICATION:
            self._clarify(job, session, index, self._consult(job, session, index, message, outcome), outcome)
            return
        if category is MessageCategory.QUESTION:
            reply = self._consult(job, session, index, message, outcome)
            self._follow_up(job, session, index, _join(reply.reply_text, reply.follow_up_text), outcome)
            return

        reply = self._consult(job, session, index, message, outcome)
        if reply.action is DelegateAction.ANSWER:
            summary = reply.normalized_answer
            if not is_valid_answer_content(message) or (summary and not is_valid_answer_content(summary)):
                log_event("turn.answer_rejected", session.session_id, index=index, category=category.value)
                outcome.replies.extend(r for r in (reply.reply_text, self.prompt(job, index)) if r)
                return
            self._accept(job, session, index, message, reply.reply_text, outcome, summary=summary)
        elif reply.action is DelegateAction.CLARIFY:
            self._clarify(job, session, index, reply, outcome)
        elif is_valid_answer_content(message):
            log_event("turn.answer_override", session.session_id, index=index, action=reply.action.value)
            self._accept(job, session, index, message, reply.reply_text, outcome)
        else:
            self._follow_up(job, session, index, _join(reply.reply_text, reply.follow_up_text), outcome)

    def _consult(
        self, job: Job, session: SessionState, index: int, message: str, outcome: TurnOutcome
    ) -> DelegateReply:
        with span(outcome.events, "delegate"):
            reply = self.delegate(job, session, job.questions[index], message)
        log_event("turn.delegate", session.session_id, index=index, action=reply.action.value)
        return reply

    def _clarify(
        self, job: Job, session: SessionState, index: int, reply: DelegateReply, outcome: TurnOutcome
    ) -> None:
        if reply.reply_text:
            outcome.replies.append(reply.reply_text)
        outcome.replies.append(self.prompt(job, index))

    def _follow_up(self, job: Job, session: SessionState, index: int, text: str, outcome: TurnOutcome) -> None:
        result = self.policy.register_follow_up(session, index)
        log_event("turn.follow_up", session.session_id, index=index, count=result.count)
        if not result.ceiling_reached:
            if text:
                outcome.replies.append(text)
            return
        log_event("turn.forced_advance", session.session_id, index=index, count=result.count)
        session.current_index = index + 1
        self._next_or_complete(job, session, outcome, lead=None)

    def _accept(
        self,
        job: Job,
        session: SessionState,
        index: int,
        answer: str,
        ack: str,
        outcome: TurnOutcome,
        summary: Optional[str] = None,
    ) -> None:
        slot = LedgerSlot(question=job.questions[index], answer=answer.strip(), summary=summary)
        if not session.record_answer(index, slot):
            log_event("turn.slot_taken", session.session_id, index=index)
        session.current_index = index + 1
        log_event("turn.advance", session.session_id, index=session.current_index)
        self._next_or_complete(job, session, outcome, lead=ack)

    def _next_or_complete(self, job: Job, session: SessionState, outcome: TurnOutcome, lead: Optional[str]) -> None:
        if session.current_index < job.question_count:
            outcome.replies.append(_join(lead, self.prompt(job, session.current_index)))
            return
        self._complete(job, session, outcome, lead=lead)

    def _complete(self, job: Job, session: SessionState, outcome: TurnOutcome, lead: Optional[str]) -> None:
        session.completed_at = utcnow()
        outcome.completed = True
        outcome.replies.append(_join(lead, self.closing(job)))
        log_event("session.complete", session.session_id, outcome="completed", count=len(session.needs_review))


__all__ = ["InterviewMachine", "TurnOutcome"]
