"""Per-question follow-up ceiling that keeps every interview moving."""
from __future__ import annotations

from dataclasses import dataclass

from config.settings import settings
from session_flow.state import SessionState


@dataclass(frozen=True)
class EscalationResult:
    index: int
    count: int
    ceiling_reached: bool


class EscalationPolicy:
    """Counts ask-again/guide turns per question index.

    ``max_follow_ups`` turns are tolerated; the next one flags the index for manual
    review and tells the caller to force-advance without another follow-up prompt.
    """

    def __init__(self, max_follow_ups: int | None = None):
        self.max_follow_ups = settings.MAX_FOLLOW_UPS if max_follow_ups is None else max_follow_ups

    @staticmethod
    def ensure_counters(session: SessionState, question_count: int) -> None:
        """Size the counter array to the job, zero-filling new entries."""

        missing = question_count - len(session.follow_up_counts)
        if missing > 0:
            session.follow_up_counts.extend([0] * missing)

    def count(self, session: SessionState, index: int) -> int:
        if 0 <= index < len(session.follow_up_counts):
            return session.follow_up_counts[index]
        return 0

    def register_follow_up(self, session: SessionState, index: int) -> EscalationResult:
        self.ensure_counters(session, index + 1)
        session.follow_up_counts[index] += 1
        count = session.follow_up_counts[index]
        reached = count > self.max_follow_ups
        if reached:
            flag_for_review(session, index)
        return EscalationResult(index=index, count=count, ceiling_reached=reached)


def flag_for_review(session: SessionState, index: int) -> None:
    if index not in session.needs_review:
        session.needs_review.append(index)
        session.needs_review.sort()


__all__ = ["EscalationPolicy", "EscalationResult", "flag_for_review"]
