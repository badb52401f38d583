from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from .highlighter import Theme

logger = logging.getLogger(__name__)

SETTINGS_PATH_ENV = "GUESS_THAT_LANG_SETTINGS"


@dataclass(frozen=True, slots=True)
class GameConfig:
    """Run-wide knobs, built once from the command line and passed explicitly."""

    initial_delay_ms: int = 1500
    reveal_interval_ms: int = 1500
    outcome_delay_ms: int = 1500
    shuffle: bool = False
    preload: bool = True
    max_snippet_attempts: int = 50

    def __post_init__(self) -> None:
        if self.initial_delay_ms < 0:
            raise ValueError("initial_delay_ms must be >= 0")
        if self.reveal_interval_ms < 0:
            raise ValueError("reveal_interval_ms must be >= 0")
        if self.outcome_delay_ms < 0:
            raise ValueError("outcome_delay_ms must be >= 0")
        if self.max_snippet_attempts < 1:
            raise ValueError("max_snippet_attempts must be >= 1")

    @property
    def initial_delay_s(self) -> float:
        return self.initial_delay_ms / 1000.0

    @property
    def reveal_interval_s(self) -> float:
        return self.reveal_interval_ms / 1000.0

    @property
    def outcome_delay_s(self) -> float:
        return self.outcome_delay_ms / 1000.0


@dataclass(frozen=True, slots=True)
class Settings:
    high_score: int = 0
    theme: Theme | None = None
    token: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "high_score": int(self.high_score),
            "theme": None if self.theme is None else self.theme.value,
            "token": self.token,
        }

    @classmethod
    def from_dict(cls, data: object) -> Settings:
        if not isinstance(data, dict):
            return cls()
        try:
            high_score = max(0, int(data.get("high_score", 0)))
        except (TypeError, ValueError):
            high_score = 0
        raw_theme = str(data.get("theme") or "").strip().lower()
        theme = Theme(raw_theme) if raw_theme in (t.value for t in Theme) else None
        token = str(data.get("token") or "").strip()
        return cls(high_score=high_score, theme=theme, token=token)


class SettingsStore:
    """JSON file holding the high score, the chosen theme and the access token."""

    _version = 1

    def __init__(self, path: Path) -> None:
        self._path = path
        self._settings = Settings()
        self._load()

    @classmethod
    def default_path(cls) -> Path:
        explicit = os.environ.get(SETTINGS_PATH_ENV)
        if explicit:
            return Path(explicit).expanduser()
        return Path.home() / ".guess-that-lang.json"

    @property
    def path(self) -> Path:
        return self._path

    @property
    def settings(self) -> Settings:
        return self._settings

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable settings file %s: %s", self._path, exc)
            return
        self._settings = Settings.from_dict(payload)

    def update(self, **changes: Any) -> Settings:
        self._settings = replace(self._settings, **changes)
        self.save()
        return self._settings

    def record_score(self, points: int) -> bool:
        """Store ``points`` as the new high score if it beats the old one."""

        if points <= self._settings.high_score:
            return False
        self.update(high_score=int(points))
        return True

    def save(self) -> None:
        payload = {"version": self._version, **self._settings.to_dict()}
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(f"{self._path.suffix}.tmp")
            tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            tmp_path.replace(self._path)
        except OSError as exc:
            logger.warning("Could not save settings to %s: %s", self._path, exc)
