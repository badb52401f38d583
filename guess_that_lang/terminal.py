"""Raw-mode terminal screen for the game.

Layout of one round (rows are 0-based)::

    0        ───────┬──────────────
    1               │ High Score: 120
    2               │ Total Points: 90
    3               │ Available Points: 100
    4        ───────┼──────────────
    5..5+n     1    │ ···· · ··
    5+n      ───────┴──────────────
    5+n+2    prompt
    5+n+4..  [1]..[4] options, then [q] Quit

Everything is positioned absolutely, so the reveal worker and the round
coordinator can each repaint single cells without tracking the cursor.
"""

from __future__ import annotations

import os
import select
import sys
import termios
import threading
import tty
from typing import Any

from rich.color import Color
from rich.console import Console
from rich.control import Control
from rich.style import Style
from rich.text import Text

from .game_core import GUTTER_WIDTH, STARTING_POINTS, DisplayLine, PreparedRound, format_points, points_color
from .languages import PROMPT

HEADER_ROWS = 5
POINTS_ROW = 3
PADDING = 7
POINTS_LABEL = "Available Points: "
POINTS_COLUMN = PADDING + 2 + len(POINTS_LABEL)

BORDER_STYLE = Style(color="white", dim=True)
CORRECT_STYLE = Style(color="green", bold=True)
INCORRECT_STYLE = Style(color=Color.from_rgb(255, 0, 51), bold=True)

ESCAPE = b"\x1b"
# How long the rest of an escape sequence may lag behind the ESC byte.
ESC_DELAY_S = 0.05


def format_option(key: str, name: Text | str) -> Text:
    return Text.assemble(" " * 5, "[", (key, "bold"), "] ", name)


def points_text(points: float) -> Text:
    # Trailing space wipes the last digit when the value gets shorter.
    return Text(format_points(points) + " ", style=Style(color=Color.from_rgb(*points_color(points))))


class Terminal:
    """Rich-rendered raw terminal implementing both Display and KeySource."""

    def __init__(self, *, console: Console | None = None, stdin_fd: int | None = None) -> None:
        self._console = console or Console(highlight=False)
        self._fd = sys.stdin.fileno() if stdin_fd is None else stdin_fd
        self._lock = threading.RLock()
        self._saved_attrs: list[Any] | None = None
        self._options_row = 0

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def __enter__(self) -> Terminal:
        self.enter()
        return self

    def __exit__(self, *_exc: object) -> None:
        self.restore()

    def enter(self) -> None:
        try:
            self._saved_attrs = termios.tcgetattr(self._fd)
        except termios.error as exc:
            raise OSError("standard input is not a terminal") from exc
        tty.setraw(self._fd)
        with self._lock:
            self._console.control(
                Control.alt_screen(True),
                Control.show_cursor(False),
                Control.clear(),
                Control.home(),
            )
            self._flush()

    def restore(self) -> None:
        """Back to cooked mode, primary screen and a visible cursor, whatever happened."""

        try:
            with self._lock:
                self._console.control(Control.show_cursor(True), Control.alt_screen(False))
                self._flush()
        finally:
            if self._saved_attrs is not None:
                termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved_attrs)
                self._saved_attrs = None

    def width(self) -> int:
        return self._console.size.width

    def draw_round(self, *, prepared: PreparedRound, total_points: int, high_score: int) -> None:
        rows = [
            self._border("┬", prepared.width),
            self._score_row("High Score: ", Text(str(high_score), style="magenta")),
            self._score_row("Total Points: ", Text(str(total_points), style="cyan")),
            self._score_row(POINTS_LABEL, points_text(STARTING_POINTS)),
            self._border("┼", prepared.width),
        ]
        rows.extend(
            Text.assemble(f"{line.index + 1:^{PADDING}}", ("│", BORDER_STYLE), " ", line.dotted())
            for line in prepared.lines
        )
        rows.extend([self._border("┴", prepared.width), Text(), Text(PROMPT), Text()])

        self._options_row = len(rows)
        rows.extend(format_option(str(i + 1), option) for i, option in enumerate(prepared.options))
        rows.append(format_option("q", "Quit"))

        with self._lock:
            for row, text in enumerate(rows):
                self._print_at(0, row, text)
            self._flush()

    def reveal_line(self, line: DisplayLine) -> None:
        with self._lock:
            self._print_at(GUTTER_WIDTH, HEADER_ROWS + line.index, line.rendered)
            self._flush()

    def show_available_points(self, points: float) -> None:
        with self._lock:
            self._print_at(POINTS_COLUMN, POINTS_ROW, points_text(points))
            self._flush()

    def show_correct(self, *, option_index: int, language: str, awarded: int | None) -> None:
        label = f"{language} (Correct)" if awarded is None else f"{language} (+ {awarded})"
        self._show_option(option_index, Text(label, style=CORRECT_STYLE))

    def show_incorrect(self, *, option_index: int, language: str) -> None:
        self._show_option(option_index, Text(f"{language} (Incorrect)", style=INCORRECT_STYLE))

    def clear(self) -> None:
        with self._lock:
            self._console.control(Control.clear(), Control.home())
            self._flush()

    def drain(self) -> None:
        while select.select([self._fd], [], [], 0)[0]:
            if not os.read(self._fd, 1024):
                break

    def read_key(self) -> str:
        """Block for one whole keystroke.

        Escape sequences (arrows, Delete, PgUp, function keys) come back as one
        string, so their digit bytes are never mistaken for answers.
        """

        first = self._read_byte()
        if first == ESCAPE:
            return self._read_escape_sequence().decode("utf-8", errors="replace")

        lead = first[0]
        extra = 3 if lead >= 0xF0 else 2 if lead >= 0xE0 else 1 if lead >= 0xC0 else 0
        data = first + b"".join(self._read_byte() for _ in range(extra))
        return data.decode("utf-8", errors="replace")

    def _read_byte(self, timeout: float | None = None) -> bytes:
        """One byte from stdin, or b"" when ``timeout`` passes first."""

        if timeout is not None and not select.select([self._fd], [], [], timeout)[0]:
            return b""
        data = os.read(self._fd, 1)
        if not data:
            raise EOFError("stdin closed")
        return data

    def _read_escape_sequence(self) -> bytes:
        seq = ESCAPE
        introducer = self._read_byte(ESC_DELAY_S)
        seq += introducer
        if introducer == b"[":
            # CSI: parameter and intermediate bytes up to one final byte in @..~
            while True:
                byte = self._read_byte(ESC_DELAY_S)
                seq += byte
                if not byte or 0x40 <= byte[0] <= 0x7E:
                    break
        elif introducer == b"O":
            seq += self._read_byte(ESC_DELAY_S)
        return seq

    def _show_option(self, option_index: int, name: Text) -> None:
        with self._lock:
            self._print_at(0, self._options_row + option_index, format_option(str(option_index + 1), name))
            self._flush()

    def _print_at(self, x: int, y: int, text: Text) -> None:
        self._console.control(Control.move_to(x, y))
        self._console.print(text, end="", soft_wrap=True, highlight=False)

    def _flush(self) -> None:
        self._console.file.flush()

    @staticmethod
    def _border(joint: str, width: int) -> Text:
        return Text("─" * PADDING + joint + "─" * max(0, width - PADDING - 1), style=BORDER_STYLE)

    @staticmethod
    def _score_row(label: str, value: Text) -> Text:
        return Text.assemble(" " * PADDING, ("│", BORDER_STYLE), " ", (label, "bold"), value)
