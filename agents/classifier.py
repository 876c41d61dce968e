"""Heuristic triage of candidate messages ahead of any model call.

Every predicate is pure and accepts raw or already normalized text. English and
Arabic phrasing are always both tested, whatever language the job is configured in.
"""
from __future__ import annotations

import enum
import re
import unicodedata
from typing import Pattern, Sequence

from config.settings import settings


class MessageCategory(str, enum.Enum):
    CONFIRMATION = "confirmation"
    META = "meta"
    CLARIFICATION = "clarification"
    QUESTION = "question"
    READY = "ready"
    ANSWER = "answer"
    UNCLEAR = "unclear"


_APOSTROPHES = str.maketrans({"’": "'", "‘": "'", "ʼ": "'"})

_READY_AR = re.compile(
    r"(جاهز|جاهزه|جاهزة|جاهزين|حاهز|يلا|يلا\s*نبدأ|يلا\s*نكمل|تمام|اوكي|أوكي|اوكيه|اوكي\s*نبدأ|تمام\s*نبدأ"
    r"|خلنا\s*نبدأ|خلّنا\s*نبدأ|لنبدأ|نبدأ|ابدا|ابدأ|بدا|بدأ|انطلق|خلاص\s*نبدأ|تمام\s*نكمل|نكمّل|نكمل)"
)
_READY_EN = re.compile(
    r"(\bready\b|let\s*'?s\s*start|lets\s*start|okay\s*let'?s\s*begin|ok\s*begin|ok\s*start|\bbegin\b|\bstart\b"
    r"|go\s*ahead|let'?s\s*go|sounds\s*good|we\s*can\s*start|\bproceed\b|\bcontinue\b)"
)

_CLARIFICATION = re.compile(
    r"(ما\s*فهمت|وضح|توضيح|اشرح|شرح|explain|what\s+do\s+you\s+mean|i\s+don'?t\s+understand|not\s+understand"
    r"|can\s+you\s+repeat|rephrase)"
)

_INTERROGATIVE_EN = re.compile(r"\b(what|why|how|when|where|which|who)\b")
_INTERROGATIVE_AR = re.compile(r"(كيف|لماذا|متى|أين|اين|كم)")

_CONFIRMATIONS: Sequence[Pattern[str]] = [
    re.compile(p)
    for p in (
        r"^تم+$",
        r"^تمام$",
        r"^او?كي$",
        r"^أوكي$",
        r"^اوكي\s*نبدأ$",
        r"^تمام\s*نبدأ$",
        r"^يلا$",
        r"^يلا\s*نبدأ$",
        r"^جاهز$",
        r"^جاهزه$",
        r"^جاهزة$",
        r"^حاضر$",
        r"^تمام\s*تمام$",
        r"^نبدأ؟$",
        r"^نكمل$",
        r"^تمام\s*نكمل$",
        r"^يلا\s*نكمل$",
        r"^go\s*ahead[.!]*$",
        r"^ok(ay)?[.!]*$",
        r"^k$",
        r"^ready[.!]*$",
        r"^(sounds|looks)\s*good[.!]*$",
        r"^let'?s\s*go[.!]*$",
        r"^continue[.!]*$",
        r"^proceed[.!]*$",
        r"^next[.!]*$",
        r"^\.{2,}$",
        r"^…+$",
    )
]

_META: Sequence[Pattern[str]] = [
    re.compile(p)
    for p in (
        r"(أتوقع|اتوقع|أعتقد|اعتقد)\s+.*(جاوبت|أجبت)\s+(كل|كافة)\s+(الأسئلة|الاسئلة|اسئلة)",
        r"(جاوبت|أجبت)\s+(كل|كافة)\s+(الأسئلة|الاسئلة|اسئلة)",
        r"(هل\s*(هناك|في)\s*سؤال\s*(آخر|اخر)\??)",
        r"(خلصنا|خلاص|انتهينا|انتهيت|ما\s*عندي\s*(شي|شيء|إضافة|اضافة))",
        r"(هذا\s*كل\s*شي(ء)?)",
        r"(أظن|اظن)\s+كفاية",
        r"i\s*think\s*i('?ve|\s*have)?\s*answered\s*(everything|all)",
        r"(did\s*i|did\s*we)\s*answer\s*(everything|all)",
        r"(anything\s*else\??|any\s*other\s*questions?\??)",
        r"(that'?s\s*(all|it))",
        r"(we\s*are\s*done|i('?m|\s*am)\s*done)",
        r"(no\s*further\s*questions)",
    )
]

_EXPLANATORY_PUNCTUATION = re.compile(r"[،,.؛\-•]")
_DIGIT = re.compile(r"\d")
_WHITESPACE = re.compile(r"\s")


def normalize(message: str | None) -> str:
    """NFKC-normalize, fold curly apostrophes, trim and lower-case."""

    text = unicodedata.normalize("NFKC", str(message or ""))
    return text.translate(_APOSTROPHES).strip().lower()


def is_confirmation_only(message: str | None) -> bool:
    m = normalize(message)
    return bool(m) and any(p.search(m) for p in _CONFIRMATIONS)


def is_meta_non_answer(message: str | None) -> bool:
    """Statements about the conversation itself rather than the question."""

    m = normalize(message)
    return bool(m) and any(p.search(m) for p in _META)


def is_clarification(message: str | None) -> bool:
    return bool(_CLARIFICATION.search(normalize(message)))


def is_user_question(message: str | None) -> bool:
    m = normalize(message)
    if not m:
        return False
    if m.endswith("?") or m.endswith("؟"):
        return True
    return bool(_INTERROGATIVE_EN.search(m) or _INTERROGATIVE_AR.search(m))


def is_start_message(message: str | None) -> bool:
    """Readiness to begin, in either supported language."""

    m = normalize(message)
    return bool(m) and bool(_READY_AR.search(m) or _READY_EN.search(m))


def is_substantive_answer(message: str | None, *, min_chars: int | None = None) -> bool:
    """Necessary-but-not-sufficient gate for treating text as an answer.

    Excludes the non-answer categories, then accepts anything of moderate length,
    multi-token text, or text carrying explanatory punctuation or digits.
    """

    m = normalize(message)
    if not m:
        return False
    if is_confirmation_only(m) or is_meta_non_answer(m):
        return False
    if is_clarification(m) or is_user_question(m):
        return False
    threshold = settings.MIN_ANSWER_CHARS if min_chars is None else min_chars
    if len(m) >= threshold:
        return True
    if _WHITESPACE.search(m):
        return True
    return bool(_EXPLANATORY_PUNCTUATION.search(m) or _DIGIT.search(m))


def is_valid_answer_content(message: str | None) -> bool:
    """Final check applied before a ledger slot is written or scored."""

    return is_substantive_answer(message)


def classify(message: str | None) -> MessageCategory:
    """Return the first matching category in priority order."""

    m = normalize(message)
    if is_confirmation_only(m):
        return MessageCategory.CONFIRMATION
    if is_meta_non_answer(m):
        return MessageCategory.META
    if is_clarification(m):
        return MessageCategory.CLARIFICATION
    if is_user_question(m):
        return MessageCategory.QUESTION
    if is_start_message(m):
        return MessageCategory.READY
    if is_substantive_answer(m):
        return MessageCategory.ANSWER
    return MessageCategory.UNCLEAR


__all__ = [
    "MessageCategory",
    "classify",
    "is_clarification",
    "is_confirmation_only",
    "is_meta_non_answer",
    "is_start_message",
    "is_substantive_answer",
    "is_user_question",
    "is_valid_answer_content",
    "normalize",
]
