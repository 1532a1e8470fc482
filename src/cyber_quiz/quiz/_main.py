"""Command-line entry points for the quiz."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Callable, Optional, Sequence

from rich.console import Console

from ..core import workspace as workspace_mod
from ..core.ai import load_client
from ..core.config import ConfigError
from ..core.logging import configure_logger
from ..core.workspace import WorkspaceError, WorkspaceLayout
from . import config as config_mod
from .audio import build_cue_player
from .controller import QuizController
from .models import Difficulty
from .questions import QuestionSource, QuestionSourceError
from .session import run_quiz_session

InputProvider = Callable[[], str]


@dataclass(frozen=True)
class Runtime:
    layout: WorkspaceLayout
    config: config_mod.QuizConfig
    logger: logging.Logger
    log_path: Path


def _difficulty(value: str) -> Difficulty:
    level = Difficulty.parse(value)
    if level is None:
        raise argparse.ArgumentTypeError(
            f"unknown difficulty '{value}' (use 1-3 or "
            "basic/intermediate/advanced)"
        )
    return level


def _add_runtime_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to cyberquiz.toml (defaults to CYBER_QUIZ_CONFIG or the "
        "workspace config).",
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        help="Override the workspace root (defaults to CYBER_QUIZ_DATA_HOME "
        "or ~/.cyber-quiz-data).",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Skip the generator and use the built-in question sets.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Mirror log records to stderr.",
    )


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="cyberquiz",
        description="Hacker-terminal multiple-choice quiz",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    sub = p.add_subparsers(dest="command", required=True)

    sp_init = sub.add_parser(
        "init", help="Create the workspace and a config template"
    )
    sp_init.add_argument("--path", type=Path, help="Workspace root override")
    sp_init.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing config file",
    )
    sp_init.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress informational output on success",
    )

    sp_play = sub.add_parser("play", help="Play in the Rich console session")
    _add_runtime_options(sp_play)
    sp_play.add_argument("--difficulty", type=_difficulty)
    sp_play.add_argument(
        "--once",
        action="store_true",
        help="Exit after the score screen",
    )
    sp_play.add_argument("--no-audio", dest="audio", action="store_false")
    sp_play.set_defaults(audio=True)

    sp_tui = sub.add_parser("tui", help="Play in the full-screen Textual app")
    _add_runtime_options(sp_tui)
    sp_tui.add_argument("--no-audio", dest="audio", action="store_false")
    sp_tui.set_defaults(audio=True)

    sp_q = sub.add_parser(
        "questions", help="Fetch one batch of questions and print it as JSON"
    )
    _add_runtime_options(sp_q)
    sp_q.add_argument(
        "--difficulty", type=_difficulty, default=Difficulty.BASIC
    )
    sp_q.add_argument(
        "--fallback",
        action="store_true",
        help="Print the built-in set instead of calling the generator",
    )
    return p


def _prepare(args: argparse.Namespace) -> Runtime:
    layout = workspace_mod.ensure_workspace(path=args.workspace)
    cfg = config_mod.load_config(explicit_path=args.config, layout=layout)
    logger, log_path = configure_logger(
        f"cyber_quiz.{args.command}",
        log_dir=layout.path_for("logs"),
        level=cfg.logging.level,
        verbose=bool(args.verbose or cfg.logging.verbose),
    )
    logger.debug(
        "CLI invoked",
        extra={"command": args.command, "workspace": str(layout.home)},
    )
    return Runtime(layout=layout, config=cfg, logger=logger, log_path=log_path)


def build_source(
    cfg: config_mod.QuizConfig,
    *,
    offline: bool = False,
    logger: Optional[logging.Logger] = None,
) -> QuestionSource:
    return QuestionSource(
        client_factory=partial(
            load_client,
            api_base=cfg.ai.api_base,
            timeout=cfg.ai.request_timeout_seconds,
        ),
        model=cfg.ai.model,
        temperature=cfg.ai.temperature,
        max_output_tokens=cfg.ai.max_output_tokens,
        topic=cfg.quiz.topic,
        mask_errors=cfg.quiz.mask_fetch_errors,
        offline=offline,
        logger=logger,
    )


def build_controller(
    cfg: config_mod.QuizConfig,
    *,
    offline: bool = False,
    audio: bool = True,
    logger: Optional[logging.Logger] = None,
) -> QuizController:
    player = build_cue_player(
        enabled=audio and cfg.audio.enabled,
        volume=cfg.audio.volume,
        sample_rate=cfg.audio.sample_rate,
        logger=logger,
    )
    return QuizController(
        build_source(cfg, offline=offline, logger=logger),
        audio=player,
        logger=logger,
    )


def _cmd_init(args: argparse.Namespace) -> int:
    layout = workspace_mod.ensure_workspace(path=args.path)
    target = layout.path_for("config") / config_mod.CONFIG_FILENAME
    config_mod.write_template(target, overwrite=args.force)
    if args.quiet:
        return 0
    status = "created" if layout.created.get("home") else "exists"
    print(f"Workspace ready at {layout.home} ({status})")
    print(f"Wrote config template to {target}")
    return 0


def _cmd_play(
    args: argparse.Namespace,
    *,
    console: Optional[Console] = None,
    input_provider: Optional[InputProvider] = None,
) -> int:
    runtime = _prepare(args)
    controller = build_controller(
        runtime.config,
        offline=args.offline,
        audio=args.audio,
        logger=runtime.logger,
    )
    out = console or Console()
    reader = input_provider or (lambda: out.input("[bold green]> [/]"))
    try:
        result = run_quiz_session(
            controller,
            out,
            reader,
            difficulty=args.difficulty,
            once=args.once,
        )
    finally:
        controller.audio.close()
    runtime.logger.info(
        "Session ended",
        extra={
            "exit_action": result.exit_action,
            "completed_runs": len(result.completed),
        },
    )
    return 0


def _cmd_tui(args: argparse.Namespace) -> int:
    from .view import CyberQuizApp

    runtime = _prepare(args)
    controller = build_controller(
        runtime.config,
        offline=args.offline,
        audio=args.audio,
        logger=runtime.logger,
    )
    app = CyberQuizApp(controller)
    try:
        app.run()
    finally:
        controller.audio.close()
    return 0


def _cmd_questions(args: argparse.Namespace) -> int:
    runtime = _prepare(args)
    source = build_source(
        runtime.config, offline=args.offline, logger=runtime.logger
    )
    if args.fallback:
        questions = source.fallback(args.difficulty)
    else:
        try:
            questions = source.fetch_questions(args.difficulty)
        except QuestionSourceError as exc:
            _print_error(f"Failed to fetch questions: {exc}")
            return 1
    payload = {
        "difficulty": args.difficulty.value,
        "questions": [question.to_payload() for question in questions],
    }
    sys.stdout.write(json.dumps(payload, indent=2, ensure_ascii=False) + "\n")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    handlers = {
        "init": _cmd_init,
        "play": _cmd_play,
        "tui": _cmd_tui,
        "questions": _cmd_questions,
    }
    handler = handlers.get(args.command)
    if handler is None:  # pragma: no cover - argparse enforces choices
        parser.print_help()
        return 2
    try:
        return handler(args)
    except (ConfigError, WorkspaceError) as exc:
        _print_error(str(exc))
        return 2


def _print_error(message: str) -> None:
    sys.stderr.write(message + "\n")


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
