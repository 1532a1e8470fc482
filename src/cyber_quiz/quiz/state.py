"""Pure transition function for the quiz run.

Every action is a small frozen dataclass. :func:`reduce` maps the current
:class:`QuizRun` plus one action to the next run and never performs IO; an
action that does not apply to the current phase returns the run unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Union

from .models import Difficulty, Phase, Question, QuizRun


@dataclass(frozen=True)
class BeginLoad:
    difficulty: Difficulty


@dataclass(frozen=True)
class LoadSucceeded:
    questions: tuple[Question, ...]


@dataclass(frozen=True)
class LoadFailed:
    message: str


@dataclass(frozen=True)
class RecordAnswer:
    is_correct: bool


@dataclass(frozen=True)
class Advance:
    pass


@dataclass(frozen=True)
class Restart:
    pass


QuizAction = Union[
    BeginLoad, LoadSucceeded, LoadFailed, RecordAnswer, Advance, Restart
]


def reduce(run: QuizRun, action: QuizAction) -> QuizRun:
    if isinstance(action, Restart):
        return QuizRun.initial()
    if isinstance(action, BeginLoad):
        if run.phase is not Phase.IDLE:
            return run
        return replace(
            run,
            phase=Phase.LOADING,
            difficulty=action.difficulty,
            last_error=None,
        )
    if isinstance(action, LoadSucceeded):
        if run.phase is not Phase.LOADING or not action.questions:
            return run
        return replace(
            run,
            phase=Phase.ACTIVE,
            questions=tuple(action.questions),
            current_index=0,
            score=0,
            answered_current=False,
        )
    if isinstance(action, LoadFailed):
        if run.phase is not Phase.LOADING:
            return run
        return replace(run, phase=Phase.ERRORED, last_error=action.message)
    if isinstance(action, RecordAnswer):
        if (
            run.phase is not Phase.ACTIVE
            or run.current_question is None
            or run.answered_current
        ):
            return run
        score = run.score + 1 if action.is_correct else run.score
        return replace(run, score=score, answered_current=True)
    if isinstance(action, Advance):
        if run.phase is not Phase.ACTIVE:
            return run
        if run.current_index + 1 >= run.total:
            return replace(run, phase=Phase.FINISHED)
        return replace(
            run,
            current_index=run.current_index + 1,
            answered_current=False,
        )
    return run


def verdict_for(score: int, total: int) -> str:
    """Return the results-screen verdict for a finished run."""

    if total > 0 and score == total:
        return "SYSTEM ACCESS GRANTED. YOU ARE A PRO."
    if score > total / 2:
        return "PARTIAL ACCESS GRANTED. GOOD PROFICIENCY."
    return "ACCESS DENIED. REBOOT AND RE-STUDY."
