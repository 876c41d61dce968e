"""Finalization: score a completed session and persist its submission."""
from __future__ import annotations

import logging
from typing import List, Tuple

from agents.classifier import is_valid_answer_content
from agents.evaluator import clamp_score, evaluate
from agents.types import EvaluationResult
from session_flow.state import Decision, Job, QAPair, SessionState, Submission
from storage import jobs as job_store
from storage import sessions as session_store
from storage import submissions as submission_store

logger = logging.getLogger(__name__)

DECISION_THRESHOLDS: Tuple[Tuple[int, Decision], ...] = (
    (85, "strong"),
    (75, "recommended"),
    (60, "review"),
)
TOP_TIER: Tuple[Decision, ...] = ("strong", "recommended")
FAILURE_SUMMARY = "AI analysis failed; manual review required."


def align_answers(job: Job, session: SessionState) -> List[QAPair]:
    """One pair per job question; slots that are empty or not real answers stay blank."""

    pairs: List[QAPair] = []
    for index, question in enumerate(job.questions):
        slot = session.slot(index)
        answer = slot.answer if slot is not None else ""
        pairs.append(QAPair(question=question, answer=answer if is_valid_answer_content(answer) else ""))
    return pairs


def decision_for(score: int, *, any_missing: bool) -> Decision:
    """Map a clamped score to a decision; missing answers cap it at review."""

    decision: Decision = "weak"
    for threshold, label in DECISION_THRESHOLDS:
        if score >= threshold:
            decision = label
            break
    if any_missing and decision in TOP_TIER:
        return "review"
    return decision


def score_session(job: Job, qa: List[QAPair]) -> Tuple[EvaluationResult, Decision]:
    any_missing = any(not pair.answer.strip() for pair in qa)
    try:
        result = evaluate(job, qa)
    except Exception as exc:  # noqa: BLE001
        logger.error("Evaluation failed job=%s: %s", job.job_id, exc)
        return EvaluationResult(summary=FAILURE_SUMMARY), "review"
    score = clamp_score(result.score)
    return result.model_copy(update={"score": score}), decision_for(score, any_missing=any_missing)


def finalize(job: Job, session: SessionState) -> Submission:
    """Evaluate once and write exactly one submission for ``session``."""

    existing = submission_store.for_session(session.session_id)
    if existing is not None:
        return existing
    qa = align_answers(job, session)
    result, decision = score_session(job, qa)
    submission = Submission(
        session_id=session.session_id,
        candidate_id=session.candidate_id,
        job_id=job.job_id,
        answers=qa,
        score=result.score,
        strengths=result.strengths,
        weaknesses=result.weaknesses,
        decision=decision,
        summary=result.summary,
        needs_review=list(session.needs_review),
    )
    stored = submission_store.create(submission)
    logger.info(
        "Submission stored session=%s score=%d decision=%s",
        session.session_id,
        stored.score,
        stored.decision,
    )
    return stored


def refinalize_pending(limit: int = 100) -> List[Submission]:
    """Write the missing submission for completed sessions whose finalization failed."""

    written: List[Submission] = []
    for session in session_store.completed_without_submission(limit):
        try:
            job = job_store.get_job(session.job_id)
        except job_store.JobNotFoundError:
            logger.warning("Cannot refinalize session=%s: job %s is gone", session.session_id, session.job_id)
            continue
        try:
            written.append(finalize(job, session))
        except Exception:  # noqa: BLE001
            logger.exception("Refinalize failed session=%s", session.session_id)
    return written


__all__ = ["align_answers", "decision_for", "finalize", "refinalize_pending", "score_session", "FAILURE_SUMMARY"]
