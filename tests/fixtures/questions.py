"""Question builders and generator payloads for tests."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Tuple

from cyber_quiz.quiz.models import Question


def make_question(
    qid: str = "q1", *, correct: int = 0, prompt: str | None = None
) -> Question:
    return Question(
        id=qid,
        prompt=prompt or f"Prompt for {qid}?",
        choices=(f"{qid}-a", f"{qid}-b", f"{qid}-c", f"{qid}-d"),
        correct_choice_index=correct,
        explanation=f"Because {qid}.",
    )


def make_questions(count: int = 5, *, correct: int = 0) -> Tuple[Question, ...]:
    return tuple(
        make_question(f"q{position + 1}", correct=correct)
        for position in range(count)
    )


def payload_item(qid: str, *, correct: int = 1) -> Dict[str, Any]:
    return {
        "id": qid,
        "question": f"Generated {qid}?",
        "options": ["w", "x", "y", "z"],
        "correctIndex": correct,
        "explanation": f"Generated explanation {qid}.",
    }


def payload(count: int = 5) -> str:
    items: List[Dict[str, Any]] = [
        payload_item(f"g{position + 1}") for position in range(count)
    ]
    return json.dumps({"questions": items})
