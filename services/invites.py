"""Invitation dispatch: send a job's welcome text to its candidate numbers."""
from __future__ import annotations

import logging
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from config.locales import MessageCatalog, catalog
from messaging.outbox import Outbox
from observability.logger import log_event
from session_flow.state import Job
from storage.jobs import upsert_job

InviteMode = Literal["new", "all"]


class InviteResult(BaseModel):
    ok: bool = True
    sent: int = 0
    success: int = 0
    failed: List[str] = Field(default_factory=list)


def pending_recipients(job: Job, mode: InviteMode = "new") -> List[str]:
    """Recipients to message: everyone for ``all``, otherwise only those never sent to."""

    already = {number.strip() for number in job.sent_recipients}
    targets: List[str] = []
    for number in job.recipients:
        number = number.strip()
        if not number or number in targets:
            continue
        if mode == "all" or number not in already:
            targets.append(number)
    return targets


def dispatch_invites(
    job: Job,
    outbox: Outbox,
    *,
    mode: InviteMode = "new",
    messages: Optional[MessageCatalog] = None,
) -> InviteResult:
    """Send the welcome text and record every targeted number as sent.

    Numbers are marked sent even when delivery fails so a retry with ``new`` does
    not hammer a blocked recipient; ``all`` resends to everyone.
    """

    text = (messages or catalog()).text(job.language, "welcome", title=job.title)
    targets = pending_recipients(job, mode)
    result = InviteResult(sent=len(targets))
    for number in targets:
        try:
            outbox.send(number, text)
            result.success += 1
        except Exception as exc:  # noqa: BLE001
            result.failed.append(number)
            log_event("invite.failed", None, level=logging.WARNING, candidate=number, outcome=str(exc))

    for number in targets:
        if number not in job.sent_recipients:
            job.sent_recipients.append(number)
    upsert_job(job)
    log_event("invite.dispatched", None, count=result.sent, outcome=f"{job.job_id}:{result.success}")
    return result


__all__ = ["InviteResult", "dispatch_invites", "pending_recipients"]
