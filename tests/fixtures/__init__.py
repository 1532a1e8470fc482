"""Shared testing fixtures and stubs for the cyber_quiz test suite."""

from .audio import RecordingCuePlayer  # noqa: F401
from .openai_stub import OpenAIStub, OpenAIStubFactory  # noqa: F401
from .questions import make_question, make_questions  # noqa: F401

__all__ = [
    "OpenAIStub",
    "OpenAIStubFactory",
    "RecordingCuePlayer",
    "make_question",
    "make_questions",
]
