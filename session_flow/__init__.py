"""Interview state, follow-up ceiling and the per-message state machine."""
from .escalation import EscalationPolicy, EscalationResult, flag_for_review
from .machine import InterviewMachine, TurnOutcome
from .state import InboundTurn, Job, LedgerSlot, QAPair, SessionState, Submission

__all__ = [
    "EscalationPolicy",
    "EscalationResult",
    "flag_for_review",
    "InterviewMachine",
    "TurnOutcome",
    "InboundTurn",
    "Job",
    "LedgerSlot",
    "QAPair",
    "SessionState",
    "Submission",
]
