"""Serializable interview records shared by the flow, storage and API layers."""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

Language = Literal["en", "ar"]
Decision = Literal["strong", "recommended", "review", "weak"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Job(BaseModel):
    """Question template for one role. Question order is fixed."""

    job_id: str
    title: str = ""
    language: Language = "en"
    questions: List[str] = Field(default_factory=list)
    description: str = ""
    responsibilities: str = ""
    requirements: str = ""
    skills: str = ""
    benefits: str = ""
    recipients: List[str] = Field(default_factory=list)
    sent_recipients: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def question_count(self) -> int:
        return len(self.questions)


class LedgerSlot(BaseModel):
    """The candidate's own words for one question, plus the model's summary if any."""

    question: str
    answer: str
    summary: Optional[str] = None


class TranscriptEntry(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class SessionState(BaseModel):
    """One candidate's interview against one job."""

    session_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    candidate_id: str
    job_id: str

    current_index: int = 0
    answers: List[Optional[LedgerSlot]] = Field(default_factory=list)
    processed_ids: List[str] = Field(default_factory=list)
    started: bool = False
    follow_up_counts: List[int] = Field(default_factory=list)
    needs_review: List[int] = Field(default_factory=list)

    started_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    transcript: List[TranscriptEntry] = Field(default_factory=list)

    version: int = 0

    @classmethod
    def open_for(cls, candidate_id: str, job: Job) -> "SessionState":
        """Start a session with per-question counters sized to the job."""

        return cls(
            candidate_id=candidate_id,
            job_id=job.job_id,
            started=True,
            follow_up_counts=[0] * job.question_count,
        )

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    def has_processed(self, delivery_id: Optional[str]) -> bool:
        return bool(delivery_id) and delivery_id in self.processed_ids

    def mark_processed(self, delivery_id: Optional[str]) -> None:
        if delivery_id and delivery_id not in self.processed_ids:
            self.processed_ids.append(delivery_id)

    def slot(self, index: int) -> Optional[LedgerSlot]:
        if 0 <= index < len(self.answers):
            return self.answers[index]
        return None

    def record_answer(self, index: int, slot: LedgerSlot) -> bool:
        """Fill the ledger slot at ``index`` unless it is already taken.

        Gaps left by forced advances are padded with empty slots. Returns False when
        the slot was already written.
        """

        if self.slot(index) is not None:
            return False
        while len(self.answers) < index:
            self.answers.append(None)
        if len(self.answers) == index:
            self.answers.append(slot)
        else:
            self.answers[index] = slot
        return True

    def log(self, role: Literal["user", "assistant"], content: str) -> None:
        if content:
            self.transcript.append(TranscriptEntry(role=role, content=content))


class QAPair(BaseModel):
    question: str
    answer: str = ""


class Submission(BaseModel):
    """Scored, immutable record of a completed session."""

    submission_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    session_id: str
    candidate_id: str
    job_id: str
    answers: List[QAPair] = Field(default_factory=list)
    score: int = Field(default=0, ge=0, le=100)
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    decision: Decision = "review"
    summary: str = ""
    needs_review: List[int] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)


class InboundTurn(BaseModel):
    """One delivery from the messaging channel."""

    channel_identity: str = ""
    delivery_id: Optional[str] = None
    body_text: str = ""
    job_id: Optional[str] = None
