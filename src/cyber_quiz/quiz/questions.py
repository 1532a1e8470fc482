"""Question generation with a static fallback.

:class:`QuestionSource` asks an OpenAI chat model for one batch of
multiple-choice questions using a strict JSON schema response format. When
the call cannot be completed or the payload does not match the schema, the
pre-authored set from :mod:`cyber_quiz.quiz.fallback` is served instead, so
callers always receive exactly ``QUESTIONS_PER_RUN`` questions. Masking can be
turned off, in which case :class:`QuestionSourceError` is raised.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Mapping, Optional, Sequence

from ..core.ai import load_client
from .fallback import FALLBACK_QUESTIONS, fallback_questions
from .models import (
    CHOICES_PER_QUESTION,
    QUESTIONS_PER_RUN,
    Difficulty,
    Question,
)

ClientFactory = Callable[[], Any]

SYSTEM_PROMPT = (
    "You write accurate multiple-choice quiz questions for a terminal game."
)

QUESTION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "questions": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "string"},
                    "question": {"type": "string"},
                    "options": {
                        "type": "array",
                        "items": {"type": "string"},
                        "minItems": CHOICES_PER_QUESTION,
                        "maxItems": CHOICES_PER_QUESTION,
                    },
                    "correctIndex": {"type": "integer"},
                    "explanation": {"type": "string"},
                },
                "required": [
                    "id",
                    "question",
                    "options",
                    "correctIndex",
                    "explanation",
                ],
                "additionalProperties": False,
            },
        }
    },
    "required": ["questions"],
    "additionalProperties": False,
}


class QuestionSourceError(RuntimeError):
    """Raised when questions cannot be fetched and masking is disabled."""


def build_prompt(
    difficulty: Difficulty,
    *,
    count: int = QUESTIONS_PER_RUN,
    topic: str = "computer science",
) -> str:
    return (
        f"Generate {count} challenging {topic} multiple choice questions for "
        f"a {difficulty.value} level quiz.\n"
        "Ensure the questions are technically accurate and cover diverse "
        "topics like hardware, programming, networking, security, and "
        "algorithms.\n"
        f"Each question has exactly {CHOICES_PER_QUESTION} distinct options "
        "and correctIndex is the 0-based index of the right option.\n"
        "Return the response strictly as JSON."
    )


def response_format() -> dict[str, Any]:
    return {
        "type": "json_schema",
        "json_schema": {
            "name": "quiz_questions",
            "strict": True,
            "schema": QUESTION_SCHEMA,
        },
    }


def parse_questions(
    content: str, *, count: int = QUESTIONS_PER_RUN
) -> tuple[Question, ...]:
    """Parse a generator response into exactly ``count`` questions.

    Raises ``ValueError`` on malformed JSON, a shape mismatch, duplicate ids
    or fewer than ``count`` valid questions. Extra questions are dropped.
    """

    if not content or not content.strip():
        raise ValueError("empty response")
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ValueError(f"response is not valid JSON: {exc}") from exc
    if not isinstance(data, Mapping):
        raise ValueError("response root must be an object")
    records = data.get("questions")
    if not isinstance(records, list):
        raise ValueError("'questions' must be a list")

    questions: list[Question] = []
    seen: set[str] = set()
    for position, record in enumerate(records):
        try:
            question = Question.from_payload(record)
        except ValueError as exc:
            raise ValueError(f"question {position}: {exc}") from exc
        if question.id in seen:
            raise ValueError(f"duplicate question id '{question.id}'")
        seen.add(question.id)
        questions.append(question)
        if len(questions) == count:
            break

    if len(questions) < count:
        raise ValueError(
            f"expected {count} questions, received {len(questions)}"
        )
    return tuple(questions)


class QuestionSource:
    """Produce one batch of questions per call.

    ``client`` may be any object exposing ``chat.completions.create``; when it
    is omitted ``client_factory`` (``load_client`` by default) builds one on
    the first fetch, and a failure there (no API key) degrades to the fallback
    set and is retried on the next fetch.
    """

    def __init__(
        self,
        *,
        client: Any = None,
        client_factory: Optional[ClientFactory] = None,
        model: str = "gpt-4o-mini",
        temperature: float = 0.7,
        max_output_tokens: int = 1500,
        topic: str = "computer science",
        mask_errors: bool = True,
        offline: bool = False,
        fallback_table: Mapping[Difficulty, Sequence[Question]] | None = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._client = client
        self._client_factory = client_factory or load_client
        self.model = model
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.topic = topic
        self.mask_errors = mask_errors
        self.offline = offline
        self._fallback_table = (
            FALLBACK_QUESTIONS if fallback_table is None else fallback_table
        )
        self._logger = logger or logging.getLogger("cyber_quiz.questions")

    def fetch_questions(self, difficulty: Difficulty) -> tuple[Question, ...]:
        if self.offline:
            self._logger.info(
                "Serving built-in questions (offline)",
                extra={"difficulty": difficulty.value},
            )
            return self.fallback(difficulty)

        self._logger.info(
            "Requesting questions",
            extra={"difficulty": difficulty.value, "model": self.model},
        )
        try:
            questions = self._generate(difficulty)
        except Exception as exc:
            if not self.mask_errors:
                self._logger.error(
                    "Question generation failed",
                    extra={"difficulty": difficulty.value, "reason": str(exc)},
                )
                raise QuestionSourceError(str(exc)) from exc
            self._logger.warning(
                "Question generation failed; serving built-in questions",
                extra={"difficulty": difficulty.value, "reason": str(exc)},
            )
            return self.fallback(difficulty)

        self._logger.info(
            "Received generated questions",
            extra={"difficulty": difficulty.value, "count": len(questions)},
        )
        return questions

    def fallback(self, difficulty: Difficulty) -> tuple[Question, ...]:
        questions = fallback_questions(difficulty, self._fallback_table)
        return _fill_to_count(questions, QUESTIONS_PER_RUN)

    def _resolve_client(self) -> Any:
        if self._client is None:
            self._client = self._client_factory()
        return self._client

    def _generate(self, difficulty: Difficulty) -> tuple[Question, ...]:
        client = self._resolve_client()
        resp = client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": build_prompt(difficulty, topic=self.topic),
                },
            ],
            response_format=response_format(),
            temperature=self.temperature,
            max_tokens=self.max_output_tokens,
        )
        content = resp.choices[0].message.content
        return parse_questions(content or "")


def _fill_to_count(
    questions: Sequence[Question], count: int
) -> tuple[Question, ...]:
    # A short custom table is cycled; ids stay unique per batch.
    if len(questions) >= count:
        return tuple(questions[:count])
    filled: list[Question] = []
    for position in range(count):
        base = questions[position % len(questions)]
        cycle = position // len(questions)
        if cycle:
            base = Question(
                id=f"{base.id}-{cycle}",
                prompt=base.prompt,
                choices=base.choices,
                correct_choice_index=base.correct_choice_index,
                explanation=base.explanation,
            )
        filled.append(base)
    return tuple(filled)
