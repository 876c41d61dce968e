"""Evaluation request for a finished interview."""
from __future__ import annotations

import math
from typing import Any, Dict, List, Sequence

from agents.prompts import evaluate_system_prompt
from agents.types import EvaluationResult
from config.registry import EVALUATE_KEY, get_model
from llm_gateway import parse_json_object
from session_flow.state import Job, QAPair


def clamp_score(value: Any) -> int:
    """Round half-up and clamp to 0..100; anything non-numeric becomes 0."""

    if isinstance(value, bool):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number):
        return 0
    return max(0, min(100, int(math.floor(number + 0.5))))


def build_inputs(job: Job, qa: Sequence[QAPair]) -> Dict[str, Any]:
    return {
        "job": {
            "title": job.title,
            "description": job.description,
            "responsibilities": job.responsibilities,
            "requirements": job.requirements,
            "skills": job.skills,
        },
        "question_list": [pair.question for pair in qa],
        "answer_list_aligned_by_index": [pair.answer for pair in qa],
    }


def parse_evaluation(raw: Any) -> EvaluationResult:
    """Tolerant parse of the evaluation payload; the upstream decision is ignored."""

    data = parse_json_object(raw)
    return EvaluationResult(
        score=clamp_score(data.get("score")),
        strengths=data.get("strengths"),
        weaknesses=data.get("weaknesses"),
        summary=str(data.get("summary") or ""),
    )


def evaluate(job: Job, qa: List[QAPair]) -> EvaluationResult:
    """Run the registry-bound evaluation model. Errors propagate to the caller."""

    llm = get_model(EVALUATE_KEY)
    raw = llm(system_prompt=evaluate_system_prompt(job.language), inputs=build_inputs(job, qa))
    return parse_evaluation(raw)


__all__ = ["build_inputs", "clamp_score", "evaluate", "parse_evaluation"]
