"""Command line shell for Guess That Lang.

Builds the configuration once from the command line and the settings file,
hands it to the session loop, and always restores the terminal and reports
the score, however the session ended.
"""

from __future__ import annotations

import logging
import random

import click
import requests
from rich.console import Console

from . import __version__
from .clock import Clock, RealClock
from .config import GameConfig, SettingsStore
from .game_core import FetchError, KeySource, SeededRng, SessionState, SnippetSource
from .highlighter import Highlighter, Theme
from .logging_config import setup_logging
from .providers import GistProvider, RepositoryProvider, TokenError, check_token_format, new_session, validate_token
from .session import SessionOrchestrator
from .terminal import Terminal

logger = logging.getLogger(__name__)

SHARE_URL = "https://github.com/Lioness100/guess-that-lang/discussions/6"

PROVIDERS = {
    "gists": GistProvider,
    "repos": RepositoryProvider,
}


def _new_seed() -> int:
    return random.SystemRandom().randint(1, 2**31 - 1)


def resolve_theme(store: SettingsStore, requested: str | None) -> Theme:
    """A theme passed on the command line wins and is remembered for next time."""

    if requested:
        theme = Theme(requested)
        store.update(theme=theme)
        return theme
    return store.settings.theme or Theme.DARK


def resolve_token(store: SettingsStore, requested: str | None, http: requests.Session) -> str | None:
    if requested:
        token = check_token_format(requested)
        validate_token(http, token)
        store.update(token=token)
        logger.info("Stored a new access token")
        return token

    stored = store.settings.token
    if not stored:
        return None
    try:
        validate_token(http, stored)
    except TokenError:
        store.update(token="")
        raise TokenError(
            "The token found in the settings file is invalid, so it has been removed. Please try again."
        ) from None
    return stored


def report(console: Console, session: SessionState) -> None:
    console.print(f"\nYou scored [bold green]{session.total_points}[/] points!")
    if session.beat_high_score() and session.high_score > 0:
        console.print(
            f"You beat your high score of [bold magenta]{session.high_score}[/]!\n\n"
            f"Share it: [bold cyan]{SHARE_URL}[/]"
        )


def run(
    *,
    config: GameConfig,
    store: SettingsStore,
    source: SnippetSource,
    terminal: Terminal,
    theme: Theme = Theme.DARK,
    keys: KeySource | None = None,
    console: Console | None = None,
    clock: Clock | None = None,
    seed: int | None = None,
) -> int:
    console = console or Console(highlight=False)
    session = SessionState(high_score=store.settings.high_score)
    orchestrator = SessionOrchestrator(
        source=source,
        highlighter=Highlighter(theme),
        display=terminal,
        keys=terminal if keys is None else keys,
        config=config,
        clock=clock or RealClock(),
        rng=SeededRng(_new_seed() if seed is None else seed),
    )

    try:
        with terminal:
            orchestrator.run(session)
    finally:
        report(console, session)
        if store.record_score(session.total_points):
            logger.info("New high score %d (was %d)", session.total_points, session.high_score)

    return 0


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "-t",
    "--token",
    help="GitHub personal access token (no scopes needed). Stored after the first use; "
    "raises the API rate limit.",
)
@click.option("--theme", type=click.Choice([t.value for t in Theme]), help="Highlighting theme; remembered.")
@click.option(
    "-w",
    "--wait",
    type=click.IntRange(min=0),
    default=1500,
    show_default=True,
    help="Milliseconds before the first line is revealed.",
)
@click.option("-s", "--shuffle", is_flag=True, help="Reveal lines in random order.")
@click.option(
    "-p",
    "--provider",
    type=click.Choice(sorted(PROVIDERS)),
    default="gists",
    show_default=True,
    help="Where snippets come from.",
)
@click.option("--no-preload", is_flag=True, help="Fetch each round only after the previous one is cleared.")
@click.option("--log-file", type=click.Path(dir_okay=False), help="Write a debug log here.")
@click.option("--debug", is_flag=True, help="Log at DEBUG level.")
@click.version_option(__version__, prog_name="guess-that-lang")
def main(
    token: str | None,
    theme: str | None,
    wait: int,
    shuffle: bool,
    provider: str,
    no_preload: bool,
    log_file: str | None,
    debug: bool,
) -> None:
    """CLI game to see how fast you can guess the language of a code block!"""

    setup_logging(logging.DEBUG if debug else logging.INFO, log_file)

    store = SettingsStore(SettingsStore.default_path())
    config = GameConfig(initial_delay_ms=wait, shuffle=shuffle, preload=not no_preload)
    seed = _new_seed()

    try:
        http = new_session()
        access_token = resolve_token(store, token, http)
        if access_token:
            http.headers["Authorization"] = f"Bearer {access_token}"
        source = PROVIDERS[provider](session=http, rng=SeededRng(seed))
        exit_code = run(
            config=config,
            store=store,
            source=source,
            terminal=Terminal(),
            theme=resolve_theme(store, theme),
            seed=seed,
        )
    except (FetchError, TokenError, OSError, ValueError) as exc:
        logger.exception("Game aborted")
        raise click.ClickException(str(exc)) from exc

    raise SystemExit(exit_code)
