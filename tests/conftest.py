from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
ROOT = TESTS_DIR.parent
for extra in (TESTS_DIR, ROOT / "src"):
    path_str = str(extra)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from fixtures import (  # noqa: E402
    OpenAIStub,
    OpenAIStubFactory,
    RecordingCuePlayer,
)
from cyber_quiz.core import ai as core_ai  # noqa: E402
from cyber_quiz.core.workspace import WORKSPACE_ENV  # noqa: E402
from cyber_quiz.quiz.config import CONFIG_PATH_ENV  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Iterator[None]:
    """Keep tests away from the real workspace, config and API key."""

    monkeypatch.setenv(WORKSPACE_ENV, str(tmp_path / "workspace"))
    monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setattr(core_ai, "load_dotenv", lambda *a, **k: False)
    yield


@pytest.fixture
def openai_factory(monkeypatch: pytest.MonkeyPatch) -> OpenAIStubFactory:
    """Patch ``OpenAI`` in the client loader and expose created stubs."""

    factory = OpenAIStubFactory()
    monkeypatch.setattr(core_ai, "OpenAI", factory)
    return factory


@pytest.fixture
def openai_stub() -> OpenAIStub:
    return OpenAIStub()


@pytest.fixture
def cue_recorder() -> RecordingCuePlayer:
    return RecordingCuePlayer()

