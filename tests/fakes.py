"""Headless stand-ins for the clock, the screen, the keyboard and GitHub."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Union

import requests

from guess_that_lang.game_core import CodeSnippet, DisplayLine, FetchError, PreparedRound


@dataclass
class FakeClock:
    t: float = 0.0
    slept: list[float] = field(default_factory=list)

    def now(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += float(dt)

    def sleep(self, seconds: float) -> None:
        self.slept.append(float(seconds))
        self.advance(seconds)


class RecordingDisplay:
    """Keeps every screen operation as a tuple, in call order."""

    def __init__(self, columns: int = 80) -> None:
        self.columns = columns
        self.events: list[tuple[object, ...]] = []
        self.rounds: list[PreparedRound] = []
        self._cond = threading.Condition()

    def _record(self, *event: object) -> None:
        with self._cond:
            self.events.append(event)
            self._cond.notify_all()

    def wait_for(self, kind: str, count: int, timeout: float = 5.0) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: len(self.of_kind(kind)) >= count, timeout=timeout)

    def of_kind(self, kind: str) -> list[tuple[object, ...]]:
        return [e for e in self.events if e[0] == kind]

    def revealed(self) -> list[object]:
        return [e[1] for e in self.of_kind("reveal")]

    def points(self) -> list[object]:
        return [e[1] for e in self.of_kind("points")]

    def width(self) -> int:
        return self.columns

    def draw_round(self, *, prepared: PreparedRound, total_points: int, high_score: int) -> None:
        self.rounds.append(prepared)
        self._record("draw", prepared.language, total_points, high_score)

    def reveal_line(self, line: DisplayLine) -> None:
        self._record("reveal", line.index)

    def show_available_points(self, points: float) -> None:
        self._record("points", points)

    def show_correct(self, *, option_index: int, language: str, awarded: int | None) -> None:
        self._record("correct", option_index, language, awarded)

    def show_incorrect(self, *, option_index: int, language: str) -> None:
        self._record("incorrect", option_index, language)

    def clear(self) -> None:
        self._record("clear")


KeyStep = Union[str, Callable[[], str], tuple[str, Callable[[], bool]]]


class ScriptedKeys:
    """Returns scripted keystrokes.

    A step is a character, a callable producing one when it is read, or a
    (char, gate) pair that blocks on gate() first.
    """

    def __init__(self, script: list[KeyStep]) -> None:
        self._script = list(script)
        self.drains = 0
        self.reads = 0

    def drain(self) -> None:
        self.drains += 1

    def read_key(self) -> str:
        if not self._script:
            raise EOFError("key script exhausted")
        self.reads += 1
        step = self._script.pop(0)
        if isinstance(step, tuple):
            char, gate = step
            assert gate(), "gate never opened"
            return char
        if callable(step):
            return step()
        return step


def correct_key(display: RecordingDisplay) -> Callable[[], str]:
    """Answer the most recently drawn round correctly."""

    return lambda: str(display.rounds[-1].correct_index() + 1)


def wrong_key(display: RecordingDisplay) -> Callable[[], str]:
    def pick() -> str:
        correct = display.rounds[-1].correct_index()
        return str(1 if correct != 0 else 2)

    return pick


class ListSource:
    """Serves snippets from a list, then fails like an exhausted provider."""

    def __init__(self, snippets: list[CodeSnippet]) -> None:
        self._snippets = list(snippets)
        self.served = 0

    def next_snippet(self) -> CodeSnippet:
        if not self._snippets:
            raise FetchError("no more snippets")
        self.served += 1
        return self._snippets.pop(0)


class FakeTerminal(RecordingDisplay):
    """RecordingDisplay that also tracks entering and restoring the screen."""

    def __init__(self, columns: int = 80) -> None:
        super().__init__(columns)
        self.entered = 0
        self.restored = 0

    def __enter__(self) -> FakeTerminal:
        self.entered += 1
        return self

    def __exit__(self, *_exc: object) -> None:
        self.restored += 1


class FakeResponse:
    def __init__(self, payload: Any = None, *, text: str = "", status: int = 200) -> None:
        self._payload = payload
        self.text = text
        self.status_code = status

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("no JSON body")
        return self._payload


class FakeHttp:
    """Stands in for requests.Session; routes GETs by longest matching URL prefix."""

    def __init__(self, routes: dict[str, FakeResponse | Exception]) -> None:
        self.routes = routes
        self.headers: dict[str, str] = {}
        self.calls: list[tuple[str, dict[str, Any] | None, dict[str, str] | None]] = []

    def get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> FakeResponse:
        self.calls.append((url, params, headers))
        matches = [prefix for prefix in self.routes if url.startswith(prefix)]
        if not matches:
            raise requests.ConnectionError(f"no route for {url}")
        route = self.routes[max(matches, key=len)]
        if isinstance(route, Exception):
            raise route
        return route
