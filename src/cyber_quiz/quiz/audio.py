"""Procedural sound cues.

Each :class:`Cue` is described as a handful of :class:`Tone` specs: a
waveform, when it starts and stops, and how its frequency and gain move over
time. Tones are rendered with numpy into 16-bit mono PCM, wrapped in a pydub
``AudioSegment`` and handed to a shared :class:`AudioOutput`, which plays them
through ffplay on background threads so callers never block and cues may
overlap. pydub is imported on first use.

Audio problems are logged and swallowed; a machine without a playback backend
simply stays silent.
"""

from __future__ import annotations

import logging
import random
import subprocess
import tempfile
import threading
import warnings
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Iterator, Optional, Protocol

import numpy as np

if TYPE_CHECKING:
    from pydub import AudioSegment

SegmentPlayer = Callable[["AudioSegment"], Any]

# Upper bound on cues sounding at the same time.
DEFAULT_MAX_WORKERS = 16


class Cue(str, Enum):
    CLICK = "CLICK"
    CORRECT = "CORRECT"
    INCORRECT = "INCORRECT"
    PROCESSING_TICK = "PROCESSING_TICK"
    FINISH = "FINISH"


class Waveform(str, Enum):
    SINE = "sine"
    SQUARE = "square"
    SAWTOOTH = "sawtooth"
    TRIANGLE = "triangle"


@dataclass(frozen=True)
class Ramp:
    """One automation point: hold (``set``) or ramp towards ``value``."""

    kind: str
    value: float
    time: float


def set_at(value: float, time: float) -> Ramp:
    return Ramp("set", value, time)


def linear_to(value: float, time: float) -> Ramp:
    return Ramp("linear", value, time)


def exponential_to(value: float, time: float) -> Ramp:
    return Ramp("exponential", value, time)


@dataclass(frozen=True)
class Tone:
    waveform: Waveform
    start: float
    stop: float
    frequency: tuple[Ramp, ...]
    gain: tuple[Ramp, ...]


def cue_tones(
    cue: Cue, rng: Optional[random.Random] = None
) -> tuple[Tone, ...]:
    """Return the tone specs for ``cue``; times are seconds from cue start."""

    if cue is Cue.CLICK:
        return (
            Tone(
                Waveform.SQUARE,
                start=0.0,
                stop=0.1,
                frequency=(set_at(800, 0.0), exponential_to(100, 0.1)),
                gain=(set_at(0.05, 0.0), exponential_to(0.01, 0.1)),
            ),
        )
    if cue is Cue.CORRECT:
        tones = []
        for position, freq in enumerate((523.25, 659.25, 783.99)):
            start = position * 0.08
            tones.append(
                Tone(
                    Waveform.SINE,
                    start=start,
                    stop=start + 0.3,
                    frequency=(set_at(freq, start),),
                    gain=(
                        set_at(0.0, start),
                        linear_to(0.1, start + 0.02),
                        exponential_to(0.01, start + 0.2),
                    ),
                )
            )
        return tuple(tones)
    if cue is Cue.INCORRECT:
        return (
            Tone(
                Waveform.SAWTOOTH,
                start=0.0,
                stop=0.3,
                frequency=(set_at(120, 0.0), linear_to(60, 0.3)),
                gain=(set_at(0.1, 0.0), linear_to(0.01, 0.3)),
            ),
        )
    if cue is Cue.PROCESSING_TICK:
        jitter = rng or random.Random()
        tones = []
        for position in range(10):
            start = position * 0.1
            tones.append(
                Tone(
                    Waveform.SINE,
                    start=start,
                    stop=start + 0.02,
                    frequency=(set_at(1200 + jitter.random() * 200, start),),
                    gain=(
                        set_at(0.02, start),
                        exponential_to(0.001, start + 0.02),
                    ),
                )
            )
        return tuple(tones)
    if cue is Cue.FINISH:
        return (
            Tone(
                Waveform.TRIANGLE,
                start=0.0,
                stop=1.0,
                frequency=(set_at(440, 0.0), exponential_to(880, 0.5)),
                gain=(set_at(0.1, 0.0), exponential_to(0.01, 1.0)),
            ),
        )
    raise ValueError(f"Unknown cue: {cue!r}")


def automation_curve(
    events: tuple[Ramp, ...], times: np.ndarray
) -> np.ndarray:
    """Evaluate automation ``events`` at ``times``.

    Before the first event the first value holds; after the last event its
    value holds. Ramps run from the previous event to their own time.
    """

    if not events:
        raise ValueError("at least one automation event is required")
    ordered = sorted(events, key=lambda event: event.time)
    values = np.full(times.shape, ordered[0].value, dtype=np.float64)
    prev_time, prev_value = ordered[0].time, ordered[0].value
    for event in ordered[1:]:
        span = event.time - prev_time
        if event.kind != "set" and span > 0:
            mask = (times >= prev_time) & (times < event.time)
            progress = (times[mask] - prev_time) / span
            ratio = event.value / prev_value if prev_value else 0.0
            if event.kind == "exponential" and ratio > 0:
                values[mask] = prev_value * ratio**progress
            else:
                delta = event.value - prev_value
                values[mask] = prev_value + delta * progress
        values[times >= event.time] = event.value
        prev_time, prev_value = event.time, event.value
    return values


def oscillate(
    waveform: Waveform, frequency: np.ndarray, sample_rate: int
) -> np.ndarray:
    cycles = np.cumsum(frequency) / float(sample_rate)
    if waveform is Waveform.SINE:
        return np.sin(2.0 * np.pi * cycles)
    if waveform is Waveform.SQUARE:
        return np.where(np.sin(2.0 * np.pi * cycles) >= 0.0, 1.0, -1.0)
    saw = 2.0 * (cycles - np.floor(cycles + 0.5))
    if waveform is Waveform.SAWTOOTH:
        return saw
    return 2.0 * np.abs(saw) - 1.0


def render_tones(
    tones: tuple[Tone, ...], *, sample_rate: int, volume: float = 1.0
) -> np.ndarray:
    """Mix ``tones`` into one float buffer in [-1, 1]."""

    length = int(round(max(tone.stop for tone in tones) * sample_rate))
    buffer = np.zeros(length, dtype=np.float64)
    for tone in tones:
        first = int(round(tone.start * sample_rate))
        last = min(int(round(tone.stop * sample_rate)), length)
        if last <= first:
            continue
        times = tone.start + np.arange(last - first) / float(sample_rate)
        frequency = automation_curve(tone.frequency, times)
        gain = automation_curve(tone.gain, times)
        wave = oscillate(tone.waveform, frequency, sample_rate)
        buffer[first:last] += wave * gain
    return np.clip(buffer * volume, -1.0, 1.0)


@contextmanager
def _without_ffmpeg_warnings() -> Iterator[None]:
    # pydub warns on stderr when ffmpeg/ffplay are not on PATH, which would
    # land on top of the terminal UI.
    with warnings.catch_warnings():
        warnings.filterwarnings(
            "ignore", message="Couldn't find ", category=RuntimeWarning
        )
        yield


def to_segment(samples: np.ndarray, *, sample_rate: int) -> AudioSegment:
    with _without_ffmpeg_warnings():
        from pydub import AudioSegment

    pcm = (samples * 32767.0).astype("<i2")
    return AudioSegment(
        data=pcm.tobytes(),
        sample_width=2,
        frame_rate=sample_rate,
        channels=1,
    )


def play_quietly(segment: AudioSegment) -> None:
    """Play ``segment`` with ffplay, discarding everything it prints.

    Raises when the player is missing or exits with an error.
    """

    with _without_ffmpeg_warnings():
        from pydub.utils import get_player_name

        player = get_player_name()
    with tempfile.TemporaryDirectory(prefix="cyber-quiz-") as tmp:
        path = Path(tmp) / "cue.wav"
        segment.export(str(path), format="wav")
        subprocess.run(
            [player, "-nodisp", "-autoexit", "-loglevel", "quiet", str(path)],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            check=True,
        )


class AudioOutput:
    """Lazily created playback handle shared by every cue.

    The worker pool is created on first use. :meth:`suspend` releases it and
    the next :meth:`submit` brings it back. If the playback backend fails the
    output turns itself off and further submissions are ignored.

    Each playing cue holds one worker for its duration, so at most
    ``max_workers`` cues sound at once; later ones queue. :meth:`submit`
    itself never waits.
    """

    def __init__(
        self,
        *,
        player: Optional[SegmentPlayer] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._player = player or play_quietly
        self._max_workers = max_workers
        self._executor: Optional[ThreadPoolExecutor] = None
        self._available = True
        self._suspended = False
        self._lock = threading.Lock()
        self._logger = logger or logging.getLogger("cyber_quiz.audio")

    @property
    def state(self) -> str:
        if not self._available:
            return "unavailable"
        if self._executor is not None:
            return "running"
        return "suspended" if self._suspended else "closed"

    def submit(self, segment: AudioSegment) -> bool:
        executor = self._ensure_running()
        if executor is None:
            return False
        try:
            executor.submit(self._play, segment)
        except RuntimeError:
            # Pool shut down between the check and the submit.
            return False
        return True

    def suspend(self) -> None:
        with self._lock:
            if self._executor is None:
                return
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None
            self._suspended = True

    def close(self) -> None:
        self.suspend()
        self._suspended = False

    def _ensure_running(self) -> Optional[ThreadPoolExecutor]:
        with self._lock:
            if not self._available:
                return None
            if self._executor is None:
                try:
                    self._executor = ThreadPoolExecutor(
                        max_workers=self._max_workers,
                        thread_name_prefix="cyber-quiz-audio",
                    )
                except Exception as exc:
                    self._mark_unavailable(exc)
                    return None
                if self._suspended:
                    self._logger.debug("Audio output resumed")
                self._suspended = False
            return self._executor

    def _play(self, segment: AudioSegment) -> None:
        try:
            self._player(segment)
        except Exception as exc:
            with self._lock:
                self._mark_unavailable(exc)

    def _mark_unavailable(self, exc: BaseException) -> None:
        if self._available:
            self._logger.warning(
                "Audio output unavailable; continuing without sound",
                extra={"reason": str(exc)},
            )
        self._available = False


class CueSink(Protocol):
    """What the quiz controller needs from a sound player."""

    def play(self, cue: Cue) -> None:
        ...

    def suspend(self) -> None:
        ...

    def close(self) -> None:
        ...


class NullCuePlayer:
    """Silent player for disabled audio and tests."""

    def play(self, cue: Cue) -> None:
        return None

    def suspend(self) -> None:
        return None

    def close(self) -> None:
        return None


class CuePlayer:
    """Render and play cues without blocking the caller."""

    def __init__(
        self,
        output: Optional[AudioOutput] = None,
        *,
        sample_rate: int = 44100,
        volume: float = 1.0,
        rng: Optional[random.Random] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._logger = logger or logging.getLogger("cyber_quiz.audio")
        self.output = output or AudioOutput(logger=self._logger)
        self.sample_rate = sample_rate
        self.volume = volume
        self._rng = rng or random.Random()
        self._cache: dict[Cue, AudioSegment] = {}

    def render(self, cue: Cue) -> AudioSegment:
        # Ticks carry random jitter, so they are rendered fresh each time.
        cached = self._cache.get(cue)
        if cached is not None:
            return cached
        samples = render_tones(
            cue_tones(cue, self._rng),
            sample_rate=self.sample_rate,
            volume=self.volume,
        )
        segment = to_segment(samples, sample_rate=self.sample_rate)
        if cue is not Cue.PROCESSING_TICK:
            self._cache[cue] = segment
        return segment

    def play(self, cue: Cue) -> None:
        if self.output.state == "unavailable":
            return
        try:
            segment = self.render(cue)
        except Exception as exc:
            self._logger.warning(
                "Failed to render cue",
                extra={"cue": cue.value, "reason": str(exc)},
            )
            return
        self.output.submit(segment)

    def suspend(self) -> None:
        self.output.suspend()

    def close(self) -> None:
        self.output.close()


def build_cue_player(
    *,
    enabled: bool,
    volume: float = 1.0,
    sample_rate: int = 44100,
    logger: Optional[logging.Logger] = None,
) -> CueSink:
    if not enabled or volume <= 0.0:
        return NullCuePlayer()
    return CuePlayer(sample_rate=sample_rate, volume=volume, logger=logger)
