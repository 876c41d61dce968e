"""Conversational delegate: one upstream call per ambiguous candidate turn."""
from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Pattern, Sequence

from agents.prompts import converse_system_prompt
from agents.types import DelegateAction, DelegateReply
from config.registry import CONVERSE_KEY, get_model
from llm_gateway import parse_json_object

if TYPE_CHECKING:
    from session_flow.state import Job, SessionState

logger = logging.getLogger(__name__)

_AUTHORING_OFFERS: Sequence[Pattern[str]] = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"i\s+can\s+write\s+a\s+better\s+answer",
        r"let\s+me\s+craft\s+the\s+answer",
        r"i\s+can\s+craft\s+.*answer",
        r"i\s+will\s+write\s+the\s+answer",
        r"سأ?كتب لك الإجابة",
        r"سأ?صيغ لك الإجابة",
        r"يمكنني صياغة الإجابة",
        r"أستطيع كتابة إجابة",
        r"خليني أصيغ لك",
    )
]
_META_PROMPTS: Sequence[Pattern[str]] = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"هل\s*هناك\s*سؤال\s*آخر\??",
        r"any\s*other\s*questions?\??",
        r"anything\s*else\??",
    )
]


def sanitize_reply(text: Optional[str]) -> str:
    """Strip answer-authoring offers and "anything else?" loops from model text."""

    out = str(text or "")
    for pattern in (*_AUTHORING_OFFERS, *_META_PROMPTS):
        out = pattern.sub("", out)
    out = re.sub(r"[ \t]{2,}", " ", out)
    return out.strip()


def prior_ledger(session: SessionState) -> List[Dict[str, str]]:
    return [
        {"question": slot.question, "answer": slot.answer}
        for slot in session.answers
        if slot is not None
    ]


def build_inputs(job: Job, session: SessionState, question: str, message: str) -> Dict[str, Any]:
    """Assemble the request body sent with the system prompt."""

    return {
        "job_title": job.title,
        "active_question": question,
        "prior_answer_ledger": prior_ledger(session),
        "candidate_message": message,
    }


def normalize_reply(raw: Any) -> DelegateReply:
    """Coerce an upstream payload into a :class:`DelegateReply`.

    Raises ``ValueError`` when no JSON object can be recovered.
    """

    data = parse_json_object(raw)
    normalized = data.get("normalized_answer")
    if isinstance(normalized, str):
        normalized = normalized.strip() or None
        if normalized and normalized.lower() in {"null", "none"}:
            normalized = None
    elif normalized is not None:
        normalized = str(normalized)
    return DelegateReply(
        reply_text=sanitize_reply(data.get("assistant_reply") or data.get("reply_text")),
        normalized_answer=normalized,
        action=DelegateAction.parse(data.get("action")),
        follow_up_text=sanitize_reply(data.get("follow_up_question") or data.get("follow_up_text")),
    )


def converse(job: Job, session: SessionState, question: str, message: str) -> DelegateReply:
    """Ask the registry-bound model how to treat ``message``; never raises."""

    try:
        llm = get_model(CONVERSE_KEY)
        raw = llm(
            system_prompt=converse_system_prompt(job.language),
            inputs=build_inputs(job, session, question, message),
        )
        reply = normalize_reply(raw)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Delegate fallback to ask_again session=%s: %s", session.session_id, exc)
        return DelegateReply.fallback()
    logger.info("Delegate action=%s session=%s", reply.action.value, session.session_id)
    return reply


__all__ = ["build_inputs", "converse", "normalize_reply", "prior_ledger", "sanitize_reply"]
