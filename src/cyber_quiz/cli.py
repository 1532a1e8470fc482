"""``cyberquiz`` entry point.

Meta commands (``list``, ``help``, ``version``) are answered here; every quiz
command is forwarded to :func:`cyber_quiz.quiz._main.main` with the command
name kept as the first argument so its argparse subparsers see it.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from importlib import import_module, metadata
from typing import Callable, Optional, Sequence

DISTRIBUTION = "cyber-quiz"
PROG = "cyberquiz"

_QUIZ_MODULE = "cyber_quiz.quiz._main"

Writer = Callable[[str], object]


@dataclass(frozen=True)
class CommandSpec:
    name: str
    summary: str
    is_tui: bool = False

    @property
    def prog(self) -> str:
        return f"{PROG} {self.name}"


COMMANDS: dict[str, CommandSpec] = {
    spec.name: spec
    for spec in (
        CommandSpec("init", "Bootstrap the workspace and write a config template."),
        CommandSpec("play", "Run the quiz in the Rich console session."),
        CommandSpec("tui", "Run the quiz in the full-screen terminal app.", True),
        CommandSpec(
            "questions", "Fetch one batch of questions and print it as JSON."
        ),
    )
}


def format_command_table() -> str:
    width = max(len(name) for name in COMMANDS)
    rows = ["Available commands:"]
    for spec in COMMANDS.values():
        marker = " (TUI)" if spec.is_tui else ""
        rows.append(f"  {spec.name:<{width}}  {spec.summary}{marker}")
    return "\n".join(rows)


def format_usage() -> str:
    return "\n".join(
        (
            f"Usage: {PROG} <command> [args...]",
            f"Run `{PROG} list` for commands or `{PROG} help <name>` for "
            "details.",
            "",
            format_command_table(),
        )
    )


def _emit(text: str, write: Optional[Writer] = None) -> None:
    (write or sys.stdout.write)(text + "\n")


def _fail(message: str) -> int:
    _emit(message, sys.stderr.write)
    _emit(format_command_table(), sys.stderr.write)
    return 2


def _version() -> str:
    try:
        return metadata.version(DISTRIBUTION)
    except metadata.PackageNotFoundError:
        return "unknown"


def _help(argv: Sequence[str]) -> int:
    if not argv:
        _emit(format_usage())
        return 0
    spec = COMMANDS.get(argv[0])
    if spec is None:
        return _fail(f"Unknown command '{argv[0]}'.")
    _emit(f"{spec.name}: {spec.summary}")
    _emit(f"Run `{spec.prog} --help` for CLI-specific options.")
    return 0


def run_command(spec: CommandSpec, argv: Sequence[str]) -> int:
    """Call the quiz CLI for ``spec`` and turn its outcome into an exit code.

    ``sys.argv`` is swapped for the duration of the call so argparse reports
    the full ``cyberquiz <command>`` program name, and ``SystemExit`` raised by
    argparse (``--help``, usage errors) becomes a plain return code.
    """

    target = import_module(_QUIZ_MODULE).main
    forwarded = [spec.name, *argv]
    saved = sys.argv
    sys.argv = [spec.prog, *argv]
    try:
        result = target(forwarded)
    except SystemExit as exc:
        return _exit_code(exc.code)
    finally:
        sys.argv = saved
    return result if isinstance(result, int) else 0


def _exit_code(code: object) -> int:
    if code is None:
        return 0
    if isinstance(code, int):
        return code
    _emit(str(code), sys.stderr.write)
    return 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        _emit(format_usage())
        return 2

    head, tail = args[0], args[1:]
    if head in ("-h", "--help"):
        _emit(format_usage())
        return 0
    if head in ("-V", "--version", "version"):
        _emit(_version())
        return 0
    if head == "list":
        _emit(format_command_table())
        return 0
    if head == "help":
        return _help(tail)

    spec = COMMANDS.get(head)
    if spec is None:
        return _fail(f"Unknown command '{head}'.")
    return run_command(spec, tail)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
