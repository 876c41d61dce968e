"""FastAPI routes: the messaging webhook, invitations, and the job, session and submission views."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Request
from starlette.concurrency import run_in_threadpool
from twilio.request_validator import RequestValidator

from api.schemas import (
    HealthResp,
    InviteReq,
    InviteResp,
    JobOut,
    SessionJob,
    SessionOut,
    SubmissionOut,
    WebhookReq,
    WebhookResp,
)
from config.settings import settings
from services.invites import dispatch_invites
from services.turns import InvalidTurnError, TurnService
from session_flow.state import InboundTurn
from storage import jobs as job_store
from storage import sessions as session_store
from storage import submissions as submission_store

router = APIRouter()


def _turn_service(request: Request) -> TurnService:
    return request.app.state.turn_service


def _validate_twilio_signature(request: Request, params: Dict[str, Any]) -> None:
    if not settings.TWILIO_VALIDATE_SIGNATURE:
        return
    if not settings.TWILIO_AUTH_TOKEN:
        raise HTTPException(status_code=403, detail="signature validation needs TWILIO_AUTH_TOKEN")
    signature = request.headers.get("X-Twilio-Signature", "")
    validator = RequestValidator(settings.TWILIO_AUTH_TOKEN)
    if not validator.validate(str(request.url), params, signature):
        raise HTTPException(status_code=403, detail="Invalid Twilio signature")


async def _read_turn(request: Request) -> InboundTurn:
    """Accept Twilio form posts (From/MessageSid/Body) or the JSON shape."""

    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            payload: Dict[str, Any] = await request.json()
        except ValueError as exc:
            raise HTTPException(status_code=400, detail="invalid JSON body") from exc
        if not isinstance(payload, dict):
            raise HTTPException(status_code=400, detail="JSON body must be an object")
        req = WebhookReq.model_validate(payload)
        return InboundTurn(**req.model_dump())

    form = await request.form()
    _validate_twilio_signature(request, dict(form))
    return InboundTurn(
        channel_identity=str(form.get("From") or ""),
        delivery_id=str(form.get("MessageSid") or "") or None,
        body_text=str(form.get("Body") or ""),
        job_id=str(form.get("JobId") or "") or None,
    )


@router.post("/webhook", response_model=WebhookResp)
async def webhook(request: Request) -> WebhookResp:
    turn = await _read_turn(request)
    service = _turn_service(request)
    try:
        outcome = await run_in_threadpool(service.handle, turn)
    except InvalidTurnError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except job_store.JobNotFoundError as exc:
        raise HTTPException(status_code=404, detail=f"job not found: {exc}") from exc

    session = outcome.session
    return WebhookResp(
        session_id=session.session_id if session else None,
        replies=outcome.replies,
        current_index=session.current_index if session else None,
        completed=outcome.completed,
        duplicate=outcome.duplicate,
        submission_id=outcome.submission.submission_id if outcome.submission else None,
    )


@router.get("/health", response_model=HealthResp)
def health() -> HealthResp:
    return HealthResp(jobs=len(job_store.list_jobs()))


@router.get("/api/jobs", response_model=List[JobOut])
def list_jobs() -> List[JobOut]:
    return [JobOut(**job.model_dump()) for job in job_store.list_jobs()]


@router.get("/api/jobs/{job_id}", response_model=JobOut)
def get_job(job_id: str) -> JobOut:
    try:
        job = job_store.get_job(job_id)
    except job_store.JobNotFoundError:
        raise HTTPException(status_code=404, detail="job not found")
    return JobOut(**job.model_dump())


@router.post("/api/jobs/{job_id}/send", response_model=InviteResp)
async def send_invites(job_id: str, request: Request, body: Optional[InviteReq] = None) -> InviteResp:
    try:
        job = job_store.get_job(job_id)
    except job_store.JobNotFoundError:
        raise HTTPException(status_code=404, detail="job not found")
    mode = body.mode if body else "new"
    result = await run_in_threadpool(dispatch_invites, job, _turn_service(request).outbox, mode=mode)
    return InviteResp(**result.model_dump())


@router.get("/api/jobs/{job_id}/submissions", response_model=List[SubmissionOut])
def job_submissions(job_id: str) -> List[SubmissionOut]:
    try:
        job_store.get_job(job_id)
    except job_store.JobNotFoundError:
        raise HTTPException(status_code=404, detail="job not found")
    return [SubmissionOut(**item.model_dump()) for item in submission_store.list_for_job(job_id)]


@router.get("/api/submissions/{submission_id}", response_model=SubmissionOut)
def get_submission(submission_id: str) -> SubmissionOut:
    submission = submission_store.get(submission_id)
    if submission is None:
        raise HTTPException(status_code=404, detail="submission not found")
    return SubmissionOut(**submission.model_dump())


@router.get("/api/sessions/{session_id}", response_model=SessionOut)
def get_session(session_id: str) -> SessionOut:
    session = session_store.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="session not found")
    try:
        job = job_store.get_job(session.job_id)
        summary: Optional[SessionJob] = SessionJob(
            title=job.title, language=job.language, total=job.question_count
        )
    except job_store.JobNotFoundError:
        summary = None
    return SessionOut(**session.model_dump(), job=summary)
