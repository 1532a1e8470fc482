"""Rich renderables for the green-on-black terminal look.

Both the console session and the Textual app build their screens from these
helpers, so the two front ends stay visually identical.
"""

from __future__ import annotations

from typing import Optional

from rich import box
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import Difficulty, Phase, Question, QuizRun
from .state import verdict_for

GREEN = "#00ff41"
DIM_GREEN = "#008f11"
GLITCH_ONE = "#ff00c1"
GLITCH_TWO = "#00fff9"
ALERT = "red"

TITLE = "CYBER_QUIZ.v3"
HEADER = "Node: 127.0.0.1 // User: Admin"
FOOTER_LEFT = "SECURE_CONNECTION: AES-256"
FOOTER_RIGHT = "© 2024 CYBER_LABS"
PROGRESS_SEGMENTS = 20


def glitch_text(text: str, *, style: str = f"bold {GREEN}") -> Text:
    """Render ``text`` with offset colour fringes on alternate characters."""

    result = Text()
    for position, char in enumerate(text):
        if char.isspace():
            result.append(char)
        elif position % 7 == 3:
            result.append(char, style=f"bold {GLITCH_ONE}")
        elif position % 11 == 5:
            result.append(char, style=f"bold {GLITCH_TWO}")
        else:
            result.append(char, style=style)
    return result


def choice_label(index: int) -> str:
    return chr(ord("A") + index)


def choice_index(label: str) -> Optional[int]:
    text = (label or "").strip().upper()
    if len(text) != 1 or not "A" <= text <= "Z":
        return None
    return ord(text) - ord("A")


def progress_bar(current: int, total: int) -> RenderableType:
    """Segmented progress bar: ``Progress: 2/5`` plus a percentage."""

    percentage = round(current / total * 100) if total else 0
    filled = round(PROGRESS_SEGMENTS * percentage / 100)
    grid = Table.grid(expand=True)
    grid.add_column(justify="left")
    grid.add_column(justify="right")
    grid.add_row(
        Text(f"PROGRESS: {current}/{total}", style=DIM_GREEN),
        Text(f"{percentage}% COMPLETE", style=DIM_GREEN),
    )
    bar = Text("[", style=GREEN)
    bar.append("█" * filled, style=GREEN)
    bar.append("░" * (PROGRESS_SEGMENTS - filled), style=DIM_GREEN)
    bar.append("]", style=GREEN)
    return Group(grid, bar)


def terminal_frame(body: RenderableType) -> Panel:
    """Wrap ``body`` in the terminal window chrome."""

    footer = Table.grid(expand=True)
    footer.add_column(justify="left")
    footer.add_column(justify="right")
    footer.add_row(
        Text(FOOTER_LEFT, style=f"dim {DIM_GREEN}"),
        Text(FOOTER_RIGHT, style=f"dim {DIM_GREEN}"),
    )
    title = Text.assemble(
        ("● ", "red"), ("● ", "yellow"), ("● ", GREEN), (HEADER, DIM_GREEN)
    )
    return Panel(
        Group(body, Text(""), footer),
        title=title,
        title_align="left",
        border_style=GREEN,
        box=box.HEAVY,
        padding=(1, 2),
    )


def title_screen() -> RenderableType:
    menu = Table(show_header=False, box=box.SIMPLE, expand=True)
    menu.add_column("Key", justify="center", style=f"bold {GREEN}")
    menu.add_column("Level", style=GREEN)
    for position, level in enumerate(Difficulty, start=1):
        menu.add_row(str(position), f"{level.value} LEVEL")
    return Group(
        glitch_text(TITLE),
        Text("Select difficulty to initialize terminal...", style="italic"),
        menu,
        Text("[WARNING: ACCESSING PROTECTED DATAFRAME]", style=f"dim {GREEN}"),
    )


def loading_screen() -> RenderableType:
    return Panel(
        glitch_text("DECRYPTING DATA..."),
        border_style=GREEN,
        box=box.DOUBLE,
        expand=False,
    )


def error_screen(message: Optional[str]) -> RenderableType:
    return Group(
        glitch_text("SYSTEM ERROR", style=f"bold {ALERT}"),
        Text(message or "Unknown failure.", style=ALERT),
        Text("[r] RESET TERMINAL", style=f"bold {ALERT}"),
    )


def question_screen(
    run: QuizRun,
    *,
    selected: Optional[int] = None,
    revealed: bool = False,
) -> RenderableType:
    question = run.current_question
    if question is None:
        return Text("No active question.", style=ALERT)
    parts: list[RenderableType] = [
        progress_bar(run.current_index + 1, run.total),
        Text(""),
        Text.assemble(("> ", f"dim {GREEN}"), (question.prompt, "bold")),
        _choices_table(question, selected=selected, revealed=revealed),
    ]
    if revealed:
        parts.append(
            Panel(
                question.explanation or "No explanation provided.",
                title="EXPLANATION",
                title_align="left",
                border_style=DIM_GREEN,
            )
        )
        next_label = (
            "Finalize Scan" if run.is_last_question else "Next Packet >"
        )
        parts.append(Text(f"[n] {next_label.upper()}", style=f"bold {GREEN}"))
    return Group(*parts)


def _choices_table(
    question: Question, *, selected: Optional[int], revealed: bool
) -> Table:
    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("Key", justify="center", width=3)
    table.add_column("Choice")
    table.add_column("Mark", justify="center", width=2)
    for index, choice in enumerate(question.choices):
        style = GREEN
        mark = ""
        if revealed:
            if question.is_correct(index):
                style = f"bold {GREEN} reverse"
                mark = "✓"
            elif index == selected:
                style = f"bold {ALERT}"
                mark = "✗"
            else:
                style = f"dim {DIM_GREEN}"
        table.add_row(
            Text(choice_label(index), style=style),
            Text(choice, style=style),
            Text(mark, style=style),
        )
    return table


def results_screen(run: QuizRun) -> RenderableType:
    verdict = verdict_for(run.score, run.total)
    perfect = run.total > 0 and run.score == run.total
    passed = run.score > run.total / 2
    verdict_style = (
        f"bold {GREEN} blink" if perfect else GREEN if passed else ALERT
    )
    score = Text.assemble(
        (str(run.score), f"bold {GREEN}"), (f"/{run.total}", DIM_GREEN)
    )
    return Group(
        glitch_text("SCAN_COMPLETE"),
        Panel(
            Group(score, Text("INTEGRITY SCORE", style=f"dim {GREEN}")),
            border_style=GREEN,
            box=box.HEAVY,
            expand=False,
        ),
        Text(verdict, style=verdict_style),
        Text("[r] RELOG SYSTEM", style=f"bold {GREEN}"),
    )


def render_run(
    run: QuizRun,
    *,
    selected: Optional[int] = None,
    revealed: bool = False,
) -> RenderableType:
    """Pick the screen for the run's phase."""

    if run.phase is Phase.IDLE:
        return title_screen()
    if run.phase is Phase.LOADING:
        return loading_screen()
    if run.phase is Phase.ERRORED:
        return error_screen(run.last_error)
    if run.phase is Phase.FINISHED:
        return results_screen(run)
    return question_screen(run, selected=selected, revealed=revealed)
