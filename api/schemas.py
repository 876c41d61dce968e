"""Pydantic schemas for the webhook and the read-only review API."""
from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from session_flow.state import Decision, Language, LedgerSlot, QAPair, TranscriptEntry


class WebhookReq(BaseModel):
    channel_identity: str = ""
    delivery_id: Optional[str] = None
    body_text: str = ""
    job_id: Optional[str] = None


class WebhookResp(BaseModel):
    ok: bool = True
    session_id: Optional[str] = None
    replies: List[str] = Field(default_factory=list)
    current_index: Optional[int] = None
    completed: bool = False
    duplicate: bool = False
    submission_id: Optional[str] = None


class JobOut(BaseModel):
    job_id: str
    title: str
    language: Language
    questions: List[str]
    created_at: datetime


class SubmissionOut(BaseModel):
    submission_id: str
    session_id: str
    candidate_id: str
    job_id: str
    answers: List[QAPair]
    score: int
    strengths: List[str]
    weaknesses: List[str]
    decision: Decision
    summary: str
    needs_review: List[int]
    created_at: datetime


class HealthResp(BaseModel):
    status: str = "ok"
    jobs: int = 0


class InviteReq(BaseModel):
    mode: Literal["new", "all"] = "new"


class InviteResp(BaseModel):
    ok: bool = True
    sent: int = 0
    success: int = 0
    failed: List[str] = Field(default_factory=list)


class SessionJob(BaseModel):
    title: str
    language: Language
    total: int


class SessionOut(BaseModel):
    session_id: str
    candidate_id: str
    job_id: str
    current_index: int
    started: bool
    started_at: datetime
    completed_at: Optional[datetime] = None
    needs_review: List[int]
    answers: List[Optional[LedgerSlot]]
    transcript: List[TranscriptEntry]
    job: Optional[SessionJob] = None
