"""Pre-authored question sets used when the generator is unavailable."""

from __future__ import annotations

from typing import Mapping

from .models import Difficulty, Question

_BASIC = (
    Question(
        id="b1",
        prompt="What does CPU stand for?",
        choices=(
            "Central Processing Unit",
            "Computer Personal Unit",
            "Control Process Utility",
            "Core Programming Universal",
        ),
        correct_choice_index=0,
        explanation=(
            "The CPU is the brain of the computer and executes program "
            "instructions."
        ),
    ),
    Question(
        id="b2",
        prompt="Which of these is an operating system kernel?",
        choices=("HTTP", "Linux", "HTML", "SSD"),
        correct_choice_index=1,
        explanation="Linux is a kernel at the core of many operating systems.",
    ),
    Question(
        id="b3",
        prompt="How many bits are in one byte?",
        choices=("4", "8", "16", "32"),
        correct_choice_index=1,
        explanation="A byte is made of 8 bits.",
    ),
    Question(
        id="b4",
        prompt="Which device forwards packets between different networks?",
        choices=("Router", "Monitor", "Keyboard", "Power supply"),
        correct_choice_index=0,
        explanation="Routers forward packets between networks using IP.",
    ),
    Question(
        id="b5",
        prompt="Which kind of memory loses its contents when power is off?",
        choices=("ROM", "SSD", "RAM", "Hard disk"),
        correct_choice_index=2,
        explanation="RAM is volatile and is cleared when power is removed.",
    ),
)

_INTERMEDIATE = (
    Question(
        id="i1",
        prompt="What does HTTP stand for?",
        choices=(
            "HyperText Transfer Protocol",
            "High Tension Tech Process",
            "Home Tool Transfer Packet",
            "Hyper Transfer Terminal Post",
        ),
        correct_choice_index=0,
        explanation="HTTP is the foundation of data exchange on the Web.",
    ),
    Question(
        id="i2",
        prompt="Which data structure serves items in first-in, first-out order?",
        choices=("Stack", "Queue", "Binary tree", "Hash set"),
        correct_choice_index=1,
        explanation="A queue removes items in the order they were added.",
    ),
    Question(
        id="i3",
        prompt="Which port does HTTPS use by default?",
        choices=("21", "80", "443", "8080"),
        correct_choice_index=2,
        explanation="HTTPS listens on TCP port 443 unless configured otherwise.",
    ),
    Question(
        id="i4",
        prompt="What does the SQL JOIN clause do?",
        choices=(
            "Deletes duplicate rows",
            "Combines rows from two or more tables",
            "Creates a new index",
            "Encrypts a column",
        ),
        correct_choice_index=1,
        explanation="JOIN combines rows from tables based on a related column.",
    ),
    Question(
        id="i5",
        prompt="Which protocol resolves domain names to IP addresses?",
        choices=("DNS", "DHCP", "SMTP", "ARP"),
        correct_choice_index=0,
        explanation="The Domain Name System maps names to IP addresses.",
    ),
)

_ADVANCED = (
    Question(
        id="a1",
        prompt="What is the average time complexity of QuickSort?",
        choices=("O(n)", "O(n log n)", "O(n^2)", "O(log n)"),
        correct_choice_index=1,
        explanation="QuickSort runs in O(n log n) on average.",
    ),
    Question(
        id="a2",
        prompt="Which attack injects malicious scripts into pages viewed by "
        "other users?",
        choices=(
            "SQL injection",
            "Cross-site scripting",
            "Man-in-the-middle",
            "Replay attack",
        ),
        correct_choice_index=1,
        explanation=(
            "Cross-site scripting (XSS) runs attacker-supplied script in a "
            "victim's browser."
        ),
    ),
    Question(
        id="a3",
        prompt="In the CAP theorem, what does the P stand for?",
        choices=(
            "Performance",
            "Persistence",
            "Partition tolerance",
            "Parallelism",
        ),
        correct_choice_index=2,
        explanation=(
            "CAP covers consistency, availability and partition tolerance."
        ),
    ),
    Question(
        id="a4",
        prompt="Which algorithm finds shortest paths with negative edge "
        "weights?",
        choices=("Dijkstra", "Prim", "Kruskal", "Bellman-Ford"),
        correct_choice_index=3,
        explanation=(
            "Bellman-Ford handles negative weights and detects negative "
            "cycles."
        ),
    ),
    Question(
        id="a5",
        prompt="What does a TLB cache?",
        choices=(
            "DNS lookups",
            "Virtual-to-physical address translations",
            "Recently used disk blocks",
            "TCP session keys",
        ),
        correct_choice_index=1,
        explanation=(
            "The translation lookaside buffer caches page table entries."
        ),
    ),
)

FALLBACK_QUESTIONS: Mapping[Difficulty, tuple[Question, ...]] = {
    Difficulty.BASIC: _BASIC,
    Difficulty.INTERMEDIATE: _INTERMEDIATE,
    Difficulty.ADVANCED: _ADVANCED,
}


def fallback_questions(
    difficulty: Difficulty | None,
    table: Mapping[Difficulty, tuple[Question, ...]] | None = None,
) -> tuple[Question, ...]:
    """Return the static set for ``difficulty``, defaulting to BASIC."""

    source = FALLBACK_QUESTIONS if table is None else table
    questions = source.get(difficulty) if difficulty is not None else None
    if not questions:
        questions = source.get(Difficulty.BASIC) or _BASIC
    return tuple(questions)
