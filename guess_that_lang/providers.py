"""Snippet sources backed by the GitHub REST API.

Two providers exist:
- GistProvider pages through public gists and keeps files in a catalog language.
- RepositoryProvider picks a language, finds a recently updated repository in
  it and downloads one matching file.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Any

import requests

from . import __version__
from .game_core import CodeSnippet, FetchError, SeededRng
from .languages import LANGUAGES, is_supported

logger = logging.getLogger(__name__)

GITHUB_BASE_URL = "https://api.github.com"
USER_AGENT = f"guess-that-lang/{__version__} (https://github.com/Lioness100/guess-that-lang)"
REQUEST_TIMEOUT_S = 10.0
MAX_EMPTY_BATCHES = 5

TOKEN_PATTERN = re.compile(r"[\da-f]{40}|ghp_\w{36,251}")


class TokenError(ValueError):
    """A personal access token is malformed or rejected by GitHub."""


def check_token_format(token: str) -> str:
    token = token.strip()
    if TOKEN_PATTERN.fullmatch(token) is None:
        raise TokenError("Invalid personal access token")
    return token


def new_session(token: str | None = None) -> requests.Session:
    session = requests.Session()
    session.headers["User-Agent"] = USER_AGENT
    session.headers["Accept"] = "application/vnd.github+json"
    if token:
        session.headers["Authorization"] = f"Bearer {token}"
    return session


def validate_token(session: requests.Session, token: str) -> None:
    """Query the rate limit endpoint with ``token``; the numbers themselves are unused."""

    try:
        response = session.get(
            f"{GITHUB_BASE_URL}/rate_limit",
            headers={"Authorization": f"Bearer {token}"},
            timeout=REQUEST_TIMEOUT_S,
        )
        response.raise_for_status()
    except requests.RequestException as exc:
        raise TokenError("Invalid personal access token") from exc


def _get_json(session: requests.Session, url: str, **params: Any) -> Any:
    try:
        response = session.get(url, params=params or None, timeout=REQUEST_TIMEOUT_S)
        response.raise_for_status()
        return response.json()
    except requests.RequestException as exc:
        raise FetchError(f"GET {url} failed: {exc}") from exc
    except ValueError as exc:
        raise FetchError(f"GET {url} returned invalid JSON") from exc


def _get_text(session: requests.Session, url: str) -> str:
    try:
        response = session.get(url, timeout=REQUEST_TIMEOUT_S)
        response.raise_for_status()
        return response.text
    except requests.RequestException as exc:
        raise FetchError(f"GET {url} failed: {exc}") from exc


@dataclass(frozen=True, slots=True)
class GistFile:
    url: str
    language: str
    extension: str | None


def gist_file_from_payload(gist: object) -> GistFile | None:
    """First file of a gist written in a catalog language, or None."""

    if not isinstance(gist, dict):
        return None
    files = gist.get("files")
    if not isinstance(files, dict):
        return None
    for name in sorted(files):
        entry = files[name]
        if not isinstance(entry, dict):
            continue
        language = entry.get("language")
        raw_url = entry.get("raw_url")
        if not is_supported(language) or not raw_url:
            continue
        suffix = PurePosixPath(str(entry.get("filename") or name)).suffix.lstrip(".")
        return GistFile(url=str(raw_url), language=str(language), extension=suffix or None)
    return None


class GistProvider:
    """Serves snippets from a shuffled page of public gists, refilling when empty."""

    def __init__(self, *, session: requests.Session, rng: SeededRng) -> None:
        self._session = session
        self._rng = rng
        self._cache: list[GistFile] = []

    def fetch_batch(self) -> list[GistFile]:
        page = self._rng.randint(0, 100)
        payload = _get_json(self._session, f"{GITHUB_BASE_URL}/gists/public", page=page)
        if not isinstance(payload, list):
            raise FetchError("unexpected gist listing payload")
        gists = [f for f in (gist_file_from_payload(g) for g in payload) if f is not None]
        self._rng.shuffle(gists)
        logger.info("Fetched gist page %d: %d usable of %d", page, len(gists), len(payload))
        return gists

    def fetch_one(self, url: str) -> str:
        return _get_text(self._session, url)

    def next_snippet(self) -> CodeSnippet:
        batches = 0
        while not self._cache:
            if batches == MAX_EMPTY_BATCHES:
                raise FetchError(f"no usable gists in {batches} pages")
            self._cache = self.fetch_batch()
            batches += 1
        gist = self._cache.pop()
        return CodeSnippet(code=self.fetch_one(gist.url), language=gist.language, extension=gist.extension)


class RepositoryProvider:
    """Serves a random file from a recently updated repository in a random catalog language."""

    def __init__(self, *, session: requests.Session, rng: SeededRng) -> None:
        self._session = session
        self._rng = rng
        self._cache: dict[str, list[str]] = {}

    def fetch_repositories(self, language: str) -> list[str]:
        payload = _get_json(
            self._session,
            f"{GITHUB_BASE_URL}/search/repositories",
            q=f"language:{language} stars:>20 sort:updated",
            page=self._rng.randint(0, 34),
        )
        items = payload.get("items") if isinstance(payload, dict) else None
        if not isinstance(items, list):
            raise FetchError("unexpected repository search payload")
        repos = [str(item["full_name"]) for item in items if isinstance(item, dict) and item.get("full_name")]
        self._rng.shuffle(repos)
        logger.info("Fetched %d %s repositories", len(repos), language)
        return repos

    def fetch_file_url(self, language: str, repo: str) -> str:
        payload = _get_json(
            self._session,
            f"{GITHUB_BASE_URL}/search/code",
            q=f"language:{language} repo:{repo}",
        )
        items = payload.get("items") if isinstance(payload, dict) else None
        if not items:
            raise FetchError(f"no {language} files found in {repo}")
        preview = self._rng.choice(items)
        if not isinstance(preview, dict) or not preview.get("url"):
            raise FetchError("unexpected code search payload")
        details = _get_json(self._session, str(preview["url"]))
        download_url = details.get("download_url") if isinstance(details, dict) else None
        if not download_url:
            raise FetchError(f"no download url for a file in {repo}")
        return str(download_url)

    def fetch_one(self, url: str) -> str:
        return _get_text(self._session, url)

    def next_snippet(self) -> CodeSnippet:
        language = self._rng.choice(LANGUAGES)
        repos = self._cache.get(language)
        if not repos:
            repos = self.fetch_repositories(language)
            self._cache[language] = repos
        if not repos:
            raise FetchError(f"no {language} repositories found")
        repo = repos.pop()
        url = self.fetch_file_url(language, repo)
        extension = PurePosixPath(url).suffix.lstrip(".") or None
        return CodeSnippet(code=self.fetch_one(url), language=language, extension=extension)
