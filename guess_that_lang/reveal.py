from __future__ import annotations

import logging
import threading
from collections.abc import Sequence

from .config import GameConfig
from .game_core import AvailablePoints, Display, DisplayLine, SeededRng

logger = logging.getLogger(__name__)


class RevealScheduler:
    """Swaps dotted lines for real code on a timer, charging points per line.

    Waiting happens on the cancellation event itself, so a key press stops the
    reveal mid-wait without showing the pending line.
    """

    def __init__(self, *, display: Display, config: GameConfig, rng: SeededRng) -> None:
        self._display = display
        self._config = config
        self._rng = rng
        self._revealed: list[int] = []

    @property
    def revealed(self) -> list[int]:
        """Indices shown so far, in reveal order."""

        return list(self._revealed)

    def reveal_order(self, lines: Sequence[DisplayLine]) -> list[DisplayLine]:
        order = list(lines)
        if self._config.shuffle:
            self._rng.shuffle(order)
        return order

    def run(
        self,
        lines: Sequence[DisplayLine],
        points: AvailablePoints,
        cancel: threading.Event,
    ) -> int:
        """Reveal until every line is shown or ``cancel`` is set; return the count shown."""

        is_first_line = True
        for line in self.reveal_order(lines):
            if line.is_blank:
                continue

            timeout = self._config.initial_delay_s if is_first_line else self._config.reveal_interval_s
            if cancel.wait(timeout):
                break

            self._display.reveal_line(line)
            self._revealed.append(line.index)

            if not is_first_line:
                remaining = points.deduct(on_change=self._display.show_available_points)
                logger.debug("Revealed line %d, %s points left", line.index, remaining)
            is_first_line = False

        return len(self._revealed)


class RevealWorker(threading.Thread):
    """Runs a RevealScheduler on its own thread and keeps its failure for the joiner."""

    def __init__(
        self,
        scheduler: RevealScheduler,
        lines: Sequence[DisplayLine],
        points: AvailablePoints,
        cancel: threading.Event,
    ) -> None:
        super().__init__(name="reveal", daemon=True)
        self._scheduler = scheduler
        self._lines = lines
        self._points = points
        self._cancel = cancel
        self.error: BaseException | None = None
        self.revealed_count = 0

    def run(self) -> None:
        try:
            self.revealed_count = self._scheduler.run(self._lines, self._points, self._cancel)
        except BaseException as exc:  # re-raised by join_or_raise()
            self.error = exc

    def join_or_raise(self) -> int:
        self.join()
        if self.error is not None:
            raise self.error
        return self.revealed_count
