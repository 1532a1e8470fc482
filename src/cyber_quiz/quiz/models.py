"""Core data structures for a quiz run."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

QUESTIONS_PER_RUN = 5
CHOICES_PER_QUESTION = 4
_PAYLOAD_KEYS = ("id", "question", "options", "correctIndex", "explanation")


class Difficulty(str, Enum):
    BASIC = "BASIC"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"

    @classmethod
    def parse(cls, raw: object) -> Optional["Difficulty"]:
        """Return the level named by ``raw`` (name or 1-based menu number)."""

        if isinstance(raw, cls):
            return raw
        text = str(raw or "").strip().upper()
        if not text:
            return None
        members = list(cls)
        if text.isdigit():
            position = int(text)
            if 1 <= position <= len(members):
                return members[position - 1]
            return None
        for member in members:
            if member.value == text or member.value.startswith(text):
                return member
        return None


class Phase(str, Enum):
    IDLE = "IDLE"
    LOADING = "LOADING"
    ACTIVE = "ACTIVE"
    FINISHED = "FINISHED"
    ERRORED = "ERRORED"


@dataclass(frozen=True)
class Question:
    """A single multiple-choice item with exactly four distinct choices."""

    id: str
    prompt: str
    choices: tuple[str, ...]
    correct_choice_index: int
    explanation: str

    def __post_init__(self) -> None:
        if not str(self.id).strip():
            raise ValueError("id is required")
        if not str(self.prompt).strip():
            raise ValueError("prompt is required")
        choices = tuple(str(choice) for choice in self.choices)
        object.__setattr__(self, "choices", choices)
        if len(choices) != CHOICES_PER_QUESTION:
            raise ValueError(
                f"exactly {CHOICES_PER_QUESTION} choices required, "
                f"got {len(choices)}"
            )
        if not all(choice.strip() for choice in choices):
            raise ValueError("choice text must be non-empty")
        if len({choice.strip().lower() for choice in choices}) != len(choices):
            raise ValueError("choices must be distinct")
        index = self.correct_choice_index
        if isinstance(index, bool) or not isinstance(index, int):
            raise ValueError("correct_choice_index must be an integer")
        if not 0 <= index < CHOICES_PER_QUESTION:
            raise ValueError("correct_choice_index out of range")

    @property
    def correct_choice(self) -> str:
        return self.choices[self.correct_choice_index]

    def is_correct(self, choice_index: int) -> bool:
        return choice_index == self.correct_choice_index

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "Question":
        """Build a question from the wire shape used by the generator.

        Raises ``ValueError`` when keys are missing or of the wrong type.
        """

        if not isinstance(data, Mapping):
            raise ValueError("question payload must be an object")
        missing = [key for key in _PAYLOAD_KEYS if key not in data]
        if missing:
            raise ValueError(f"missing keys: {', '.join(missing)}")
        for key in ("id", "question", "explanation"):
            if not isinstance(data[key], str):
                raise ValueError(f"'{key}' must be a string")
        options = data["options"]
        if not isinstance(options, (list, tuple)):
            raise ValueError("options must be a list")
        if not all(isinstance(option, str) for option in options):
            raise ValueError("every option must be a string")
        return cls(
            id=data["id"].strip(),
            prompt=data["question"].strip(),
            choices=tuple(option.strip() for option in options),
            correct_choice_index=data["correctIndex"],
            explanation=data["explanation"].strip(),
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "question": self.prompt,
            "options": list(self.choices),
            "correctIndex": self.correct_choice_index,
            "explanation": self.explanation,
        }


@dataclass(frozen=True)
class QuizRun:
    """State owned by the quiz state machine.

    ``answered_current`` tracks whether the current question has already been
    scored, so a question contributes to ``score`` at most once.
    """

    questions: tuple[Question, ...] = ()
    current_index: int = 0
    score: int = 0
    difficulty: Optional[Difficulty] = None
    phase: Phase = Phase.IDLE
    last_error: Optional[str] = None
    answered_current: bool = False

    @classmethod
    def initial(cls) -> "QuizRun":
        return cls()

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def current_question(self) -> Optional[Question]:
        if 0 <= self.current_index < len(self.questions):
            return self.questions[self.current_index]
        return None

    @property
    def is_last_question(self) -> bool:
        return self.total > 0 and self.current_index + 1 == self.total


@dataclass
class AnswerSelection:
    """Per-question UI state kept outside the state machine."""

    selected_choice_index: Optional[int] = None
    revealed: bool = False

    def reveal(self, choice_index: int) -> None:
        self.selected_choice_index = choice_index
        self.revealed = True

    def reset(self) -> None:
        self.selected_choice_index = None
        self.revealed = False
