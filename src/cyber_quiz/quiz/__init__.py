from ._main import build_arg_parser
from .audio import Cue, CuePlayer, NullCuePlayer, build_cue_player
from .controller import LOAD_FAILURE_MESSAGE, QuizController
from .models import (
    AnswerSelection,
    Difficulty,
    Phase,
    Question,
    QuizRun,
)
from .questions import QuestionSource, QuestionSourceError
from .session import SessionResult, run_quiz_session
from .state import reduce, verdict_for

__all__ = [
    "build_arg_parser",
    "Cue",
    "CuePlayer",
    "NullCuePlayer",
    "build_cue_player",
    "LOAD_FAILURE_MESSAGE",
    "QuizController",
    "AnswerSelection",
    "Difficulty",
    "Phase",
    "Question",
    "QuizRun",
    "QuestionSource",
    "QuestionSourceError",
    "SessionResult",
    "run_quiz_session",
    "reduce",
    "verdict_for",
]
