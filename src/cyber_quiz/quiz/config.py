"""Configuration for quiz sessions.

Settings live in a TOML file whose tables mirror the concerns of a run:
the question generator (``[ai]``), gameplay (``[quiz]``), sound (``[audio]``)
and diagnostics (``[logging]``). Missing keys fall back to defaults; unknown
keys are rejected so typos surface early.
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from ..core.config import (
    ConfigError,
    load_toml,
    merge_defaults,
    optional_string,
    require_bool,
    require_float_range,
    require_positive_int,
    require_string,
    write_toml_template,
)
from ..core.workspace import WorkspaceLayout

CONFIG_PATH_ENV = "CYBER_QUIZ_CONFIG"
CONFIG_FILENAME = "cyberquiz.toml"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class AIConfig:
    model: str
    temperature: float
    max_output_tokens: int
    request_timeout_seconds: int
    api_base: Optional[str]


@dataclass(frozen=True)
class GameConfig:
    mask_fetch_errors: bool
    topic: str


@dataclass(frozen=True)
class AudioConfig:
    enabled: bool
    volume: float
    sample_rate: int


@dataclass(frozen=True)
class LoggingConfig:
    level: str
    verbose: bool


@dataclass(frozen=True)
class QuizConfig:
    ai: AIConfig
    quiz: GameConfig
    audio: AudioConfig
    logging: LoggingConfig


def _build_ai(section: Mapping[str, Any]) -> AIConfig:
    return AIConfig(
        model=require_string(section.get("model"), field="ai.model"),
        temperature=require_float_range(
            section.get("temperature"),
            field="ai.temperature",
            min_value=0.0,
            max_value=2.0,
        ),
        max_output_tokens=require_positive_int(
            section.get("max_output_tokens"), field="ai.max_output_tokens"
        ),
        request_timeout_seconds=require_positive_int(
            section.get("request_timeout_seconds"),
            field="ai.request_timeout_seconds",
        ),
        api_base=optional_string(section.get("api_base"), field="ai.api_base"),
    )


def _build_game(section: Mapping[str, Any]) -> GameConfig:
    return GameConfig(
        mask_fetch_errors=require_bool(
            section.get("mask_fetch_errors"), field="quiz.mask_fetch_errors"
        ),
        topic=require_string(section.get("topic"), field="quiz.topic"),
    )


def _build_audio(section: Mapping[str, Any]) -> AudioConfig:
    sample_rate = require_positive_int(
        section.get("sample_rate"), field="audio.sample_rate"
    )
    if sample_rate < 8000:
        raise ConfigError("audio.sample_rate must be at least 8000.")
    return AudioConfig(
        enabled=require_bool(section.get("enabled"), field="audio.enabled"),
        volume=require_float_range(
            section.get("volume"),
            field="audio.volume",
            min_value=0.0,
            max_value=1.0,
        ),
        sample_rate=sample_rate,
    )


def _build_logging(section: Mapping[str, Any]) -> LoggingConfig:
    level = require_string(section.get("level"), field="logging.level").upper()
    if level not in _LOG_LEVELS:
        raise ConfigError(
            "logging.level must be one of "
            "DEBUG, INFO, WARNING, ERROR, CRITICAL."
        )
    verbose = require_bool(section.get("verbose"), field="logging.verbose")
    return LoggingConfig(level=level, verbose=verbose)


def _build_config(tree: Mapping[str, Any]) -> QuizConfig:
    return QuizConfig(
        ai=_build_ai(tree["ai"]),
        quiz=_build_game(tree["quiz"]),
        audio=_build_audio(tree["audio"]),
        logging=_build_logging(tree["logging"]),
    )


def default_tree() -> Dict[str, Any]:
    """Return a copy of the default configuration tree."""

    return copy.deepcopy(_DEFAULTS)


def default_config() -> QuizConfig:
    return _build_config(default_tree())


def resolve_config_path(
    *,
    explicit_path: Optional[Path] = None,
    env: Mapping[str, str] | None = None,
    layout: WorkspaceLayout | None = None,
) -> Optional[Path]:
    """Return the config file to read, or ``None`` to use defaults."""

    env_map = os.environ if env is None else env
    if explicit_path is not None:
        return explicit_path.expanduser().resolve()
    env_override = env_map.get(CONFIG_PATH_ENV)
    if env_override:
        return Path(env_override).expanduser().resolve()
    if layout is not None:
        return layout.path_for("config") / CONFIG_FILENAME
    return None


def load_config(
    *,
    explicit_path: Optional[Path] = None,
    env: Mapping[str, str] | None = None,
    layout: WorkspaceLayout | None = None,
) -> QuizConfig:
    """Load the TOML config, applying defaults and validation.

    An explicit path or ``CYBER_QUIZ_CONFIG`` must point at an existing file;
    the workspace default is optional.
    """

    env_map = os.environ if env is None else env
    path = resolve_config_path(
        explicit_path=explicit_path, env=env_map, layout=layout
    )
    tree = default_tree()
    if path is None:
        return _build_config(tree)
    required = explicit_path is not None or bool(env_map.get(CONFIG_PATH_ENV))
    if not required and not path.exists():
        return _build_config(tree)
    toml_data = load_toml(path)
    merge_defaults(tree, toml_data)
    return _build_config(tree)


def config_template() -> str:
    return _CONFIG_TEMPLATE.strip() + "\n"


def write_template(path: Path, *, overwrite: bool = False) -> Path:
    return write_toml_template(
        path, template=config_template(), overwrite=overwrite
    )


_DEFAULTS: Dict[str, Any] = {
    "ai": {
        "model": "gpt-4o-mini",
        "temperature": 0.7,
        "max_output_tokens": 1500,
        "request_timeout_seconds": 30,
        "api_base": None,
    },
    "quiz": {
        "mask_fetch_errors": True,
        "topic": "computer science",
    },
    "audio": {
        "enabled": True,
        "volume": 1.0,
        "sample_rate": 44100,
    },
    "logging": {
        "level": "INFO",
        "verbose": False,
    },
}


_CONFIG_TEMPLATE = """
# CYBER_QUIZ configuration

[ai]
# Chat model used to generate each batch of questions
model = "gpt-4o-mini"
# Sampling temperature (0.0-2.0)
temperature = 0.7
max_output_tokens = 1500
request_timeout_seconds = 30
# Optional API base override
# api_base = "https://api.openai.com/v1"

[quiz]
# Serve the built-in question set when generation fails. Set to false to
# show an error screen instead.
mask_fetch_errors = true
# Subject area passed to the generator
topic = "computer science"

[audio]
enabled = true
# Master volume (0.0-1.0)
volume = 1.0
sample_rate = 44100

[logging]
level = "INFO"
verbose = false
"""
