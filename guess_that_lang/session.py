from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from .clock import Clock
from .code_processor import process_snippet
from .config import GameConfig
from .game_core import (
    Display,
    FetchError,
    KeySource,
    PreparedRound,
    RoundOutcome,
    RoundResult,
    SeededRng,
    SessionState,
    SnippetSource,
)
from .highlighter import Highlighter
from .languages import build_options
from .round_coordinator import RoundCoordinator

logger = logging.getLogger(__name__)


class _PreloadWorker(threading.Thread):
    def __init__(self, target: Callable[[], RoundResult]) -> None:
        super().__init__(name="preload", daemon=True)
        self._target = target
        self.result: RoundResult | None = None
        self.error: BaseException | None = None

    def run(self) -> None:
        try:
            self.result = self._target()
        except BaseException as exc:  # re-raised by join_or_raise()
            self.error = exc

    def join_or_raise(self) -> RoundResult:
        self.join()
        if self.error is not None:
            raise self.error
        if self.result is None:
            raise RuntimeError("preload worker finished without a round result")
        return self.result


class SessionOrchestrator:
    """Chains rounds until one ends the session.

    With ``config.preload`` the next snippet is fetched and processed while the
    player is still looking at the previous round's result.
    """

    def __init__(
        self,
        *,
        source: SnippetSource,
        highlighter: Highlighter,
        display: Display,
        keys: KeySource,
        config: GameConfig,
        clock: Clock,
        rng: SeededRng,
    ) -> None:
        self._source = source
        self._highlighter = highlighter
        self._display = display
        self._config = config
        self._clock = clock
        self._rng = rng
        self._coordinator = RoundCoordinator(display=display, keys=keys, config=config, clock=clock, rng=rng)

    def prepare_round(self) -> PreparedRound:
        width = self._display.width()
        for attempt in range(1, self._config.max_snippet_attempts + 1):
            snippet = self._source.next_snippet()
            lines = process_snippet(snippet, width=width, highlighter=self._highlighter)
            if lines is not None:
                options = build_options(snippet.language, rng=self._rng)
                return PreparedRound(snippet=snippet, lines=lines, options=options, width=width)
            logger.info("Skipping %s snippet with no usable lines (attempt %d)", snippet.language, attempt)

        raise FetchError(f"no usable snippet after {self._config.max_snippet_attempts} attempts")

    def run(self, session: SessionState) -> SessionState:
        preload = self._config.preload
        result = self._coordinator.play(self.prepare_round(), session, pause_after_continue=not preload)

        while result.outcome is RoundOutcome.CONTINUE:
            if preload:
                result = self._play_preloaded(session)
            else:
                self._display.clear()
                result = self._coordinator.play(self.prepare_round(), session)

        logger.info("Session over after %d rounds with %d points", session.rounds_played, session.total_points)
        return session

    def _play_preloaded(self, session: SessionState) -> RoundResult:
        ready = threading.Event()
        worker = _PreloadWorker(
            lambda: self._coordinator.play(
                self.prepare_round(),
                session,
                ready=ready,
                pause_after_continue=False,
            )
        )
        worker.start()

        self._clock.sleep(self._config.outcome_delay_s)
        self._display.clear()
        ready.set()

        return worker.join_or_raise()
