"""Rich-powered console session.

The loop renders the controller's current phase, reads one line of input at a
time, and maps it onto controller intents. Input comes from an injectable
provider so the whole session can be driven from tests with a recorded Rich
console.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Literal, Optional

from rich.console import Console
from rich.text import Text

from . import theme
from .controller import QuizController
from .models import Difficulty, Phase, QuizRun

InputProvider = Callable[[], str]
ExitAction = Literal["finished", "quit"]
CommandType = Literal["difficulty", "answer", "next", "restart", "quit"]

TICK_INTERVAL_SECONDS = 1.0

_HINTS = {
    Phase.IDLE: "Commands: 1/2/3 or level name, q (quit)",
    Phase.LOADING: "Commands: r (restart), q (quit)",
    Phase.ACTIVE: "Commands: a-d (answer), n (next), r (restart), q (quit)",
    Phase.FINISHED: "Commands: r (relog system), q (quit)",
    Phase.ERRORED: "Commands: r (reset terminal), q (quit)",
}


@dataclass(frozen=True)
class SessionCommand:
    type: CommandType
    difficulty: Optional[Difficulty] = None
    choice: Optional[int] = None


@dataclass(frozen=True)
class SessionResult:
    exit_action: ExitAction
    run: QuizRun
    completed: tuple[QuizRun, ...] = field(default_factory=tuple)


def parse_session_command(
    raw: Optional[str], phase: Phase
) -> Optional[SessionCommand]:
    """Interpret one line of input for the given phase."""

    if raw is None:
        return None
    text = raw.strip().lower()
    if text in {"q", "quit", "exit"}:
        return SessionCommand("quit")
    if text in {"r", "restart", "reset", "relog"}:
        return SessionCommand("restart")
    if phase is Phase.IDLE:
        level = Difficulty.parse(text)
        return SessionCommand("difficulty", difficulty=level) if level else None
    if phase is Phase.ACTIVE:
        if text in {"", "n", "next"}:
            return SessionCommand("next")
        index = theme.choice_index(text)
        if index is not None:
            return SessionCommand("answer", choice=index)
    return None


def run_quiz_session(
    controller: QuizController,
    console: Console,
    input_provider: InputProvider,
    *,
    difficulty: Optional[Difficulty] = None,
    once: bool = False,
    tick_interval: float = TICK_INTERVAL_SECONDS,
) -> SessionResult:
    """Run an interactive quiz until the user quits.

    With ``once`` the session ends as soon as the score screen is shown.
    """

    completed: list[QuizRun] = []
    if difficulty is not None:
        load_questions(controller, console, difficulty, tick_interval)

    while True:
        _render(console, controller)
        if once and controller.run.phase is Phase.FINISHED:
            return SessionResult("finished", controller.run, tuple(completed))
        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            console.print(Text("\nSession interrupted.", style="bold yellow"))
            return SessionResult("quit", controller.run, tuple(completed))
        command = parse_session_command(raw, controller.run.phase)
        if command is None:
            console.print(
                Text(
                    "Unrecognized command. " + _HINTS[controller.run.phase],
                    style="red",
                )
            )
            continue
        if command.type == "quit":
            console.print(Text("Connection closed.", style="bold yellow"))
            return SessionResult("quit", controller.run, tuple(completed))
        before = controller.run.phase
        _apply_command(command, controller, console, tick_interval)
        if (
            controller.run.phase is Phase.FINISHED
            and before is not Phase.FINISHED
        ):
            completed.append(controller.run)


def load_questions(
    controller: QuizController,
    console: Console,
    difficulty: Difficulty,
    tick_interval: float = TICK_INTERVAL_SECONDS,
) -> QuizRun:
    """Fetch on a worker thread while the spinner and ticks run."""

    token = controller.begin_load(difficulty)
    if token is None:
        return controller.run
    with console.status(
        Text("DECRYPTING DATA...", style=f"bold {theme.GREEN}"),
        spinner="dots",
    ):
        with ThreadPoolExecutor(max_workers=1) as pool:
            future = pool.submit(controller.request, difficulty)
            while True:
                try:
                    outcome = future.result(timeout=tick_interval)
                    break
                except TimeoutError:
                    controller.tick()
    controller.apply(token, outcome)
    return controller.run


def _apply_command(
    command: SessionCommand,
    controller: QuizController,
    console: Console,
    tick_interval: float,
) -> None:
    if command.type == "restart":
        controller.restart()
        return
    if command.type == "difficulty" and command.difficulty is not None:
        load_questions(controller, console, command.difficulty, tick_interval)
        return
    if command.type == "answer" and command.choice is not None:
        result = controller.answer(command.choice)
        if result is None:
            if controller.selection.revealed:
                console.print(Text("Answer already locked in.", style="red"))
            else:
                console.print(
                    Text(
                        "'{0}' is not a valid choice.".format(
                            theme.choice_label(command.choice)
                        ),
                        style="red",
                    )
                )
        return
    if command.type == "next":
        if not controller.advance():
            console.print(Text("Select an answer first.", style="red"))


def _render(console: Console, controller: QuizController) -> None:
    run = controller.run
    body = theme.render_run(
        run,
        selected=controller.selection.selected_choice_index,
        revealed=controller.selection.revealed,
    )
    console.print()
    console.print(theme.terminal_frame(body))
    console.print(Text(_HINTS[run.phase], style=f"dim {theme.DIM_GREEN}"))
