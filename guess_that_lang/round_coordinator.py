from __future__ import annotations

import logging
import threading

from .clock import Clock
from .config import GameConfig
from .game_core import (
    AvailablePoints,
    Display,
    Key,
    KeySource,
    PreparedRound,
    RoundOutcome,
    RoundResult,
    SeededRng,
    SessionState,
    round_half_up,
)
from .input_listener import InputListener
from .reveal import RevealScheduler, RevealWorker

logger = logging.getLogger(__name__)


class RoundCoordinator:
    """Plays one round: reveal worker against key listener, then scoring."""

    def __init__(
        self,
        *,
        display: Display,
        keys: KeySource,
        config: GameConfig,
        clock: Clock,
        rng: SeededRng,
    ) -> None:
        self._display = display
        self._keys = keys
        self._config = config
        self._clock = clock
        self._rng = rng

    def play(
        self,
        prepared: PreparedRound,
        session: SessionState,
        *,
        ready: threading.Event | None = None,
        pause_after_continue: bool = True,
    ) -> RoundResult:
        correct_index = prepared.correct_index()

        if ready is not None:
            # A preloaded round must not draw over the previous outcome.
            ready.wait()

        logger.info(
            "Round %d: %s, %d lines, options %s",
            session.rounds_played + 1,
            prepared.language,
            len(prepared.lines),
            ", ".join(prepared.options),
        )
        self._display.draw_round(
            prepared=prepared,
            total_points=session.total_points,
            high_score=session.high_score,
        )

        points = AvailablePoints()
        cancel = threading.Event()
        scheduler = RevealScheduler(display=self._display, config=self._config, rng=self._rng)
        worker = RevealWorker(scheduler, prepared.lines, points, cancel)

        presented_at_s = self._clock.now()
        worker.start()
        try:
            key = InputListener(self._keys).read(cancel)
        finally:
            # Also stops the reveal when reading keys fails.
            cancel.set()
            revealed = worker.join_or_raise()
        response_time_s = max(0.0, self._clock.now() - presented_at_s)

        session.rounds_played += 1
        result = self._resolve(
            key=key,
            prepared=prepared,
            correct_index=correct_index,
            points=points,
            session=session,
            response_time_s=response_time_s,
        )
        logger.info(
            "Round %d resolved: key=%r outcome=%s awarded=%d after %d revealed lines",
            session.rounds_played,
            key.value,
            result.outcome.value,
            result.awarded,
            revealed,
        )

        if result.was_correct and pause_after_continue:
            self._clock.sleep(self._config.outcome_delay_s)
        elif key.digit is not None and not result.was_correct:
            # Let the player see the miss before the session tears down.
            self._clock.sleep(self._config.outcome_delay_s)

        return result

    def _resolve(
        self,
        *,
        key: Key,
        prepared: PreparedRound,
        correct_index: int,
        points: AvailablePoints,
        session: SessionState,
        response_time_s: float,
    ) -> RoundResult:
        if key.digit is None:
            return RoundResult(
                outcome=RoundOutcome.BREAK,
                key=key,
                awarded=0,
                was_correct=False,
                response_time_s=response_time_s,
            )

        chosen_index = key.digit - 1
        if chosen_index == correct_index:
            awarded = round_half_up(max(0.0, points.value))
            session.total_points += awarded
            self._display.show_correct(option_index=correct_index, language=prepared.language, awarded=awarded)
            return RoundResult(
                outcome=RoundOutcome.CONTINUE,
                key=key,
                awarded=awarded,
                was_correct=True,
                response_time_s=response_time_s,
            )

        self._display.show_correct(option_index=correct_index, language=prepared.language, awarded=None)
        self._display.show_incorrect(option_index=chosen_index, language=prepared.options[chosen_index])
        return RoundResult(
            outcome=RoundOutcome.BREAK,
            key=key,
            awarded=0,
            was_correct=False,
            response_time_s=response_time_s,
        )
