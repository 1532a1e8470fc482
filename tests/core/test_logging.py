from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path

import pytest

from cyber_quiz.core import logging as core_logging


def _read_records(path: Path) -> list[dict]:
    lines = path.read_text(encoding="utf-8").strip().splitlines()
    return [json.loads(line) for line in lines]


def _managed(logger: logging.Logger, role: str) -> list[logging.Handler]:
    return [
        h
        for h in logger.handlers
        if getattr(h, core_logging.HANDLER_ROLE_ATTR, None) == role
    ]


@pytest.fixture
def make_logger(tmp_path):
    created: list[logging.Logger] = []

    def _make(name: str, **kwargs):
        kwargs.setdefault("log_dir", tmp_path / "logs")
        logger, path = core_logging.configure_logger(name, **kwargs)
        created.append(logger)
        return logger, path

    yield _make
    for logger in created:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)


def test_configure_logger_writes_json_with_extras(make_logger):
    logger, log_path = make_logger("cyber_quiz.test_json")

    logger.info(
        "Phase changed",
        extra={"from_phase": "IDLE", "to_phase": "LOADING", "token": 3},
    )
    try:
        raise ValueError("boom")
    except ValueError:
        logger.exception(
            "with error",
            extra={"paths": [Path("/tmp/a"), 1], "obj": object()},
        )

    first, second = _read_records(log_path)
    assert first["message"] == "Phase changed"
    assert first["logger"] == "cyber_quiz.test_json"
    assert first["level"] == "INFO"
    assert first["extra"] == {
        "from_phase": "IDLE",
        "to_phase": "LOADING",
        "token": 3,
    }
    assert "ValueError: boom" in second["exception"]
    assert second["extra"]["paths"] == ["/tmp/a", 1]
    assert second["extra"]["obj"].startswith("<object object")


def test_default_filename_uses_last_name_segment(make_logger, tmp_path):
    _, log_path = make_logger("cyber_quiz.play")

    assert log_path == tmp_path / "logs" / "play.log"


def test_level_filters_file_output(make_logger):
    logger, log_path = make_logger("cyber_quiz.test_level", level="WARNING")

    logger.info("hidden")
    logger.warning("shown")

    messages = [record["message"] for record in _read_records(log_path)]
    assert messages == ["shown"]


def test_verbose_forces_debug_and_console(make_logger, capsys):
    logger, log_path = make_logger(
        "cyber_quiz.test_verbose", level="ERROR", verbose=True
    )

    logger.debug("Discarded stale load result")

    assert _managed(logger, "console")
    assert _read_records(log_path)[0]["message"] == (
        "Discarded stale load result"
    )
    assert "DEBUG Discarded stale load result" in capsys.readouterr().err


def test_repeated_configuration_reuses_handlers(make_logger, tmp_path):
    name = "cyber_quiz.test_repeat"
    logger, first_path = make_logger(name, verbose=True)
    _, second_path = make_logger(name, log_dir=tmp_path / "other", verbose=True)

    assert second_path == first_path
    assert len(_managed(logger, "file")) == 1
    assert len(_managed(logger, "console")) == 1

    make_logger(name, verbose=False)
    assert not _managed(logger, "console")


def test_configure_logger_fallback_directory(make_logger, tmp_path, monkeypatch):
    target = tmp_path / "blocked"
    original_mkdir = Path.mkdir

    def fake_mkdir(self, *args, **kwargs):  # noqa: ANN001
        if self == target:
            raise PermissionError("denied")
        return original_mkdir(self, *args, **kwargs)

    monkeypatch.setattr(Path, "mkdir", fake_mkdir)
    monkeypatch.setattr(
        core_logging, "_fallback_log_dir", lambda: tmp_path / "fallback"
    )

    _, log_path = make_logger("cyber_quiz.test_blocked", log_dir=target)

    assert log_path.parent == tmp_path / "fallback"
    assert log_path.exists()


def test_rotating_handler_permission_error_uses_fallback(
    make_logger, tmp_path, monkeypatch
):
    calls = {"count": 0}
    fallback_dir = tmp_path / "rotate-fallback"
    original_handler = core_logging.RotatingFileHandler

    def fake_handler(path, *args, **kwargs):  # noqa: ANN001
        calls["count"] += 1
        if calls["count"] == 1:
            raise PermissionError("denied")
        return original_handler(path, *args, **kwargs)

    monkeypatch.setattr(core_logging, "RotatingFileHandler", fake_handler)
    monkeypatch.setattr(core_logging, "_fallback_log_dir", lambda: fallback_dir)

    _, log_path = make_logger(
        "cyber_quiz.test_rotating", log_dir=tmp_path / "primary"
    )

    assert log_path.parent == fallback_dir
    assert calls["count"] == 2


def test_fallback_log_dir_uses_tempdir(tmp_path, monkeypatch):
    monkeypatch.setattr(tempfile, "gettempdir", lambda: str(tmp_path))

    assert core_logging._fallback_log_dir() == tmp_path / "cyber-quiz-logs"


def test_coerce_level_defaults():
    assert core_logging._coerce_level("bogus") == logging.INFO
    assert core_logging._coerce_level("debug") == logging.DEBUG
