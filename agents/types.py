"""Shared type definitions for agents."""
from __future__ import annotations

import enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator


class DelegateAction(str, enum.Enum):
    ANSWER = "answer"
    CLARIFY = "clarify"
    ASK_AGAIN = "ask_again"
    GUIDE = "guide"

    @classmethod
    def parse(cls, value: Any) -> "DelegateAction":
        """Map an upstream tag onto the closed set; unknown tags ask again."""

        tag = str(value or "").strip().lower().replace("-", "_").replace(" ", "_")
        try:
            return cls(tag)
        except ValueError:
            return cls.ASK_AGAIN


class DelegateReply(BaseModel):
    reply_text: str = ""
    normalized_answer: Optional[str] = None
    action: DelegateAction = DelegateAction.ASK_AGAIN
    follow_up_text: str = ""

    @classmethod
    def fallback(cls) -> "DelegateReply":
        return cls()


class EvaluationResult(BaseModel):
    score: int = Field(default=0, ge=0, le=100)
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    summary: str = ""

    @field_validator("strengths", "weaknesses", mode="before")
    @classmethod
    def _as_string_list(cls, value: Any) -> List[str]:
        if value is None or value == "":
            return []
        if isinstance(value, (list, tuple)):
            return [str(item) for item in value if item is not None and str(item).strip()]
        return [str(value)]
