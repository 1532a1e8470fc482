"""Textual front end for the quiz.

The app is a thin shell around :class:`QuizController`: key bindings map to
controller intents and the stage re-renders the shared Rich screens from
:mod:`cyber_quiz.quiz.theme`. Question fetches run on a thread worker and are
handed back with ``call_from_thread`` together with the run token taken when
the load began.
"""

from __future__ import annotations

from typing import Optional

from rich.console import RenderableType
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.timer import Timer
from textual.widgets import Footer, Static

from . import theme
from .controller import LoadOutcome, QuizController
from .models import Difficulty, Phase

TICK_INTERVAL_SECONDS = 1.0

_SCREEN_NAMES = {
    Phase.IDLE: "title",
    Phase.LOADING: "loading",
    Phase.ACTIVE: "question",
    Phase.FINISHED: "results",
    Phase.ERRORED: "error",
}


def screen_name(phase: Phase) -> str:
    return _SCREEN_NAMES[phase]


def status_text(controller: QuizController) -> str:
    """One-line status shown under the stage."""

    run = controller.run
    level = run.difficulty.value if run.difficulty else "-"
    parts = [f"PHASE: {run.phase.value}", f"LEVEL: {level}"]
    if run.phase in (Phase.ACTIVE, Phase.FINISHED):
        parts.append(f"SCORE: {run.score}/{run.total}")
    return " | ".join(parts)


class CyberQuizApp(App):
    CSS_PATH = None
    CSS = f"""
Screen {{ background: black; color: {theme.GREEN}; }}
#frame {{ height: 1fr; padding: 0 1; }}
#stage {{ height: 1fr; }}
#status {{ color: {theme.DIM_GREEN}; height: 1; }}
Footer {{ background: black; color: {theme.DIM_GREEN}; }}
"""
    BINDINGS = [
        Binding("1", "choose('BASIC')", "Basic"),
        Binding("2", "choose('INTERMEDIATE')", "Intermediate"),
        Binding("3", "choose('ADVANCED')", "Advanced"),
        Binding("a", "answer(0)", "A", show=False),
        Binding("b", "answer(1)", "B", show=False),
        Binding("c", "answer(2)", "C", show=False),
        Binding("d", "answer(3)", "D", show=False),
        Binding("n", "next", "Next"),
        Binding("enter", "next", "Next", show=False),
        Binding("r", "restart", "Restart"),
        Binding("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        controller: QuizController,
        *,
        tick_interval: float = TICK_INTERVAL_SECONDS,
    ) -> None:
        super().__init__()
        self.controller = controller
        self.tick_interval = tick_interval
        self._tick_timer: Optional[Timer] = None

    def compose(self) -> ComposeResult:
        with Container(id="frame"):
            yield Static(self.render_stage(), id="stage")
            yield Static(status_text(self.controller), id="status")
        yield Footer()

    # Pure helpers (testable without running the App)
    def render_stage(self) -> RenderableType:
        selection = self.controller.selection
        body = theme.render_run(
            self.controller.run,
            selected=selection.selected_choice_index,
            revealed=selection.revealed,
        )
        return theme.terminal_frame(body)

    def current_screen_name(self) -> str:
        return screen_name(self.controller.run.phase)

    def choose(self, level: str) -> Optional[int]:
        difficulty = Difficulty.parse(level)
        if difficulty is None:
            return None
        token = self.controller.begin_load(difficulty)
        if token is None:
            return None
        self._start_ticks()
        self._launch_fetch(token, difficulty)
        self._update_stage()
        return token

    def finish_fetch(self, token: int, outcome: LoadOutcome) -> bool:
        applied = self.controller.apply(token, outcome)
        if self.controller.run.phase is not Phase.LOADING:
            self._stop_ticks()
        self._update_stage()
        return applied

    def answer(self, index: int) -> Optional[bool]:
        result = self.controller.answer(index)
        self._update_stage()
        return result

    def next_question(self) -> bool:
        moved = self.controller.advance()
        self._update_stage()
        return moved

    def restart(self) -> None:
        self._stop_ticks()
        self.controller.restart()
        self._update_stage()

    # Actions
    def action_choose(self, level: str) -> None:
        self.choose(level)

    def action_answer(self, index: int) -> None:
        self.answer(index)

    def action_next(self) -> None:
        self.next_question()

    def action_restart(self) -> None:
        self.restart()

    def on_app_blur(self, event: events.AppBlur) -> None:
        self.controller.audio.suspend()

    def _launch_fetch(self, token: int, difficulty: Difficulty) -> None:
        def work() -> None:
            outcome = self.controller.request(difficulty)
            if not self.is_running:
                return
            self.call_from_thread(self.finish_fetch, token, outcome)

        self.run_worker(work, name="fetch-questions", thread=True)

    def _start_ticks(self) -> None:
        if not self.is_running or self._tick_timer is not None:
            return
        self._tick_timer = self.set_interval(
            self.tick_interval, self.controller.tick
        )

    def _stop_ticks(self) -> None:
        if self._tick_timer is None:
            return
        self._tick_timer.stop()
        self._tick_timer = None

    def _update_stage(self) -> None:
        if not self.is_running:
            return
        self.query_one("#stage", Static).update(self.render_stage())
        self.query_one("#status", Static).update(status_text(self.controller))
