"""Orchestration between the state machine, question source and audio."""

from __future__ import annotations

import logging
from typing import Optional, Protocol, Sequence, Union

from .audio import Cue, CueSink, NullCuePlayer
from .models import AnswerSelection, Difficulty, Phase, Question, QuizRun
from .questions import QuestionSourceError
from .state import (
    Advance,
    BeginLoad,
    LoadFailed,
    LoadSucceeded,
    QuizAction,
    RecordAnswer,
    Restart,
    reduce,
)

LOAD_FAILURE_MESSAGE = (
    "System connection failure. Retry from the terminal root."
)
LoadOutcome = Union[tuple[Question, ...], QuestionSourceError]


class QuestionProvider(Protocol):
    def fetch_questions(self, difficulty: Difficulty) -> Sequence[Question]:
        ...


class QuizController:
    """Own the live :class:`QuizRun` and apply user intents to it.

    Loads are tagged with a run token. :meth:`restart` and every new
    :meth:`begin_load` invalidate older tokens, so a fetch that finishes after
    the user moved on is dropped instead of overwriting the newer run.
    """

    def __init__(
        self,
        source: QuestionProvider,
        *,
        audio: Optional[CueSink] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.source = source
        self.audio: CueSink = audio or NullCuePlayer()
        self.selection = AnswerSelection()
        self._run = QuizRun.initial()
        self._token = 0
        self._logger = logger or logging.getLogger("cyber_quiz.controller")

    @property
    def run(self) -> QuizRun:
        return self._run

    @property
    def token(self) -> int:
        return self._token

    def dispatch(self, action: QuizAction) -> QuizRun:
        before = self._run.phase
        self._run = reduce(self._run, action)
        if self._run.phase is not before:
            self._logger.debug(
                "Phase changed",
                extra={
                    "from_phase": before.value,
                    "to_phase": self._run.phase.value,
                    "action": type(action).__name__,
                },
            )
        return self._run

    def begin_load(self, difficulty: Difficulty) -> Optional[int]:
        """Enter LOADING and return the token the fetch result must carry.

        Returns ``None`` when the run is not IDLE.
        """

        if self._run.phase is not Phase.IDLE:
            return None
        self._token += 1
        self.selection.reset()
        self.dispatch(BeginLoad(difficulty))
        self.audio.play(Cue.CLICK)
        return self._token

    def complete_load(
        self, token: int, questions: Sequence[Question]
    ) -> bool:
        if not self._accepts(token):
            return False
        if not questions:
            return self.fail_load(token)
        self.dispatch(LoadSucceeded(tuple(questions)))
        return True

    def fail_load(
        self, token: int, message: str = LOAD_FAILURE_MESSAGE
    ) -> bool:
        if not self._accepts(token):
            return False
        self.dispatch(LoadFailed(message))
        self.audio.play(Cue.INCORRECT)
        return True

    def request(self, difficulty: Difficulty) -> LoadOutcome:
        """Fetch questions without touching the run.

        Safe to call from a worker thread; hand the outcome back to
        :meth:`apply` on the thread that owns the controller.
        """

        try:
            return tuple(self.source.fetch_questions(difficulty))
        except QuestionSourceError as exc:
            self._logger.error(
                "Question load failed",
                extra={"difficulty": difficulty.value, "reason": str(exc)},
            )
            return exc

    def apply(self, token: int, outcome: LoadOutcome) -> bool:
        if isinstance(outcome, QuestionSourceError):
            return self.fail_load(token)
        return self.complete_load(token, outcome)

    def load(self, difficulty: Difficulty) -> QuizRun:
        """Begin and finish a load synchronously."""

        token = self.begin_load(difficulty)
        if token is not None:
            self.apply(token, self.request(difficulty))
        return self._run

    def answer(self, choice_index: int) -> Optional[bool]:
        """Lock in ``choice_index`` for the current question.

        Returns whether the choice was correct, or ``None`` if the answer was
        ignored (not ACTIVE, already revealed, or out of range).
        """

        question = self._run.current_question
        if (
            self._run.phase is not Phase.ACTIVE
            or question is None
            or self.selection.revealed
            or not 0 <= choice_index < len(question.choices)
        ):
            return None
        is_correct = question.is_correct(choice_index)
        self.selection.reveal(choice_index)
        self.dispatch(RecordAnswer(is_correct))
        self.audio.play(Cue.CORRECT if is_correct else Cue.INCORRECT)
        return is_correct

    def advance(self) -> bool:
        if self._run.phase is not Phase.ACTIVE or not self.selection.revealed:
            return False
        self.selection.reset()
        self.dispatch(Advance())
        if self._run.phase is Phase.FINISHED:
            self._logger.info(
                "Quiz finished",
                extra={
                    "score": self._run.score,
                    "total": self._run.total,
                    "difficulty": (
                        self._run.difficulty.value
                        if self._run.difficulty
                        else None
                    ),
                },
            )
            self.audio.play(Cue.FINISH)
        else:
            self.audio.play(Cue.CLICK)
        return True

    def restart(self) -> QuizRun:
        self._token += 1
        self.selection.reset()
        self.dispatch(Restart())
        self.audio.play(Cue.CLICK)
        return self._run

    def tick(self) -> None:
        """Play the processing cue while a load is outstanding."""

        if self._run.phase is Phase.LOADING:
            self.audio.play(Cue.PROCESSING_TICK)

    def _accepts(self, token: int) -> bool:
        if token != self._token or self._run.phase is not Phase.LOADING:
            self._logger.info(
                "Discarded stale load result",
                extra={
                    "token": token,
                    "current_token": self._token,
                    "phase": self._run.phase.value,
                },
            )
            return False
        return True
