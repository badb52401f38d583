from __future__ import annotations

import math
import random
import threading
from collections.abc import Callable, MutableSequence, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, TypeVar

from rich.text import Text

T = TypeVar("T")

GUTTER_WIDTH = 9  # "{:^7}│ " before every code row
MAX_CODE_LINES = 10
STARTING_POINTS = 100.0
POINTS_PER_LINE = 10.0


class Key(str, Enum):
    ONE = "1"
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    QUIT = "q"
    SKIP = "\x03"  # Ctrl+C arrives as ETX in raw mode

    @property
    def digit(self) -> int | None:
        return int(self.value) if self.value.isdigit() else None

    @classmethod
    def from_keystroke(cls, keystroke: str) -> Key | None:
        try:
            return cls(keystroke)
        except ValueError:
            return None


class RoundOutcome(str, Enum):
    CONTINUE = "continue"
    BREAK = "break"


@dataclass(frozen=True, slots=True)
class CodeSnippet:
    code: str
    language: str
    extension: str | None = None  # preferred highlighter key when known


@dataclass(frozen=True, slots=True)
class DisplayLine:
    index: int
    plain: str
    rendered: Text
    is_blank: bool

    def dotted(self) -> str:
        """Redacted preview: every visible character becomes a dot."""

        return "".join(ch if ch.isspace() else "·" for ch in self.plain).rstrip()


@dataclass(frozen=True, slots=True)
class PreparedRound:
    """Everything a round needs before it can be drawn."""

    snippet: CodeSnippet
    lines: tuple[DisplayLine, ...]
    options: tuple[str, ...]
    width: int

    @property
    def language(self) -> str:
        return self.snippet.language

    def correct_index(self) -> int:
        try:
            return self.options.index(self.snippet.language)
        except ValueError:
            raise ValueError(
                f"correct language {self.snippet.language!r} not found in options {self.options!r}"
            ) from None


@dataclass(slots=True)
class SessionState:
    total_points: int = 0
    high_score: int = 0
    rounds_played: int = 0

    def beat_high_score(self) -> bool:
        return self.total_points > self.high_score


@dataclass(frozen=True, slots=True)
class RoundResult:
    outcome: RoundOutcome
    key: Key
    awarded: int
    was_correct: bool
    response_time_s: float


class AvailablePoints:
    """Decaying point pool shared by the reveal worker and the coordinator.

    The value is never clamped here; callers decide how to treat a negative pool.
    """

    def __init__(self, value: float = STARTING_POINTS) -> None:
        self._value = float(value)
        self._lock = threading.Lock()

    @property
    def value(self) -> float:
        with self._lock:
            return self._value

    def deduct(
        self,
        amount: float = POINTS_PER_LINE,
        *,
        on_change: Callable[[float], None] | None = None,
    ) -> float:
        """Subtract ``amount`` and run ``on_change`` while still holding the lock."""

        with self._lock:
            self._value -= float(amount)
            if on_change is not None:
                on_change(self._value)
            return self._value


class SeededRng:
    """Simple seeded RNG wrapper to keep deterministic streams explicit."""

    def __init__(self, seed: int) -> None:
        self._rng = random.Random(int(seed))

    def randint(self, a: int, b: int) -> int:
        return self._rng.randint(a, b)

    def choice(self, seq: Sequence[T]) -> T:
        return self._rng.choice(seq)

    def shuffle(self, seq: MutableSequence[T]) -> None:
        self._rng.shuffle(seq)


def clamp01(x: float) -> float:
    return 0.0 if x <= 0.0 else 1.0 if x >= 1.0 else float(x)


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def points_color(points: float) -> tuple[int, int, int]:
    """Green at 100 points fading through yellow to red at 0."""

    fraction = points / STARTING_POINTS
    red = 255.0 * 2.0 * (1.0 - fraction)
    green = 255.0 * 2.0 * fraction
    return (int(255 * clamp01(red / 255.0)), int(255 * clamp01(green / 255.0)), 0)


def format_points(points: float) -> str:
    # 90.0 -> "90", 92.5 -> "92.5"
    return f"{points:g}"


class Display(Protocol):
    """Screen operations a round needs; every call is one serialized burst of writes."""

    def width(self) -> int: ...
    def draw_round(self, *, prepared: PreparedRound, total_points: int, high_score: int) -> None: ...
    def reveal_line(self, line: DisplayLine) -> None: ...
    def show_available_points(self, points: float) -> None: ...
    def show_correct(self, *, option_index: int, language: str, awarded: int | None) -> None: ...
    def show_incorrect(self, *, option_index: int, language: str) -> None: ...
    def clear(self) -> None: ...


class KeySource(Protocol):
    def drain(self) -> None:
        """Discard every keystroke that is already waiting."""
        ...

    def read_key(self) -> str:
        """Block until one whole keystroke is available and return its text."""
        ...


class FetchError(RuntimeError):
    """No snippet could be obtained for a round."""


class SnippetSource(Protocol):
    def next_snippet(self) -> CodeSnippet:
        """Return the next snippet, refilling any cache as needed; raise FetchError on failure."""
        ...
