from __future__ import annotations

import json
from pathlib import Path

import pytest

from guess_that_lang.config import SETTINGS_PATH_ENV, GameConfig, Settings, SettingsStore
from guess_that_lang.highlighter import Theme


def test_game_config_defaults_and_seconds() -> None:
    config = GameConfig()
    assert config.initial_delay_s == 1.5
    assert config.reveal_interval_s == 1.5
    assert config.outcome_delay_s == 1.5
    assert config.preload is True
    assert config.shuffle is False


@pytest.mark.parametrize(
    "changes",
    [
        {"initial_delay_ms": -1},
        {"reveal_interval_ms": -1},
        {"outcome_delay_ms": -1},
        {"max_snippet_attempts": 0},
    ],
)
def test_game_config_rejects_bad_values(changes: dict[str, int]) -> None:
    with pytest.raises(ValueError):
        GameConfig(**changes)


def test_missing_file_gives_defaults(tmp_path: Path) -> None:
    store = SettingsStore(tmp_path / "settings.json")
    assert store.settings == Settings()


def test_settings_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "settings.json"
    store = SettingsStore(path)
    store.update(theme=Theme.LIGHT, token="ghp_" + "a" * 36)
    store.record_score(120)

    reloaded = SettingsStore(path)

    assert reloaded.settings == Settings(high_score=120, theme=Theme.LIGHT, token="ghp_" + "a" * 36)
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["version"] == 1
    assert payload["theme"] == "light"


def test_record_score_only_keeps_improvements(tmp_path: Path) -> None:
    store = SettingsStore(tmp_path / "settings.json")

    assert store.record_score(50) is True
    assert store.record_score(50) is False
    assert store.record_score(20) is False
    assert store.settings.high_score == 50


def test_unreadable_file_is_ignored(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")

    assert SettingsStore(path).settings == Settings()


def test_bad_fields_fall_back_to_defaults() -> None:
    settings = Settings.from_dict({"high_score": "lots", "theme": "neon", "token": None})
    assert settings == Settings()
    assert Settings.from_dict([1, 2]) == Settings()
    assert Settings.from_dict({"high_score": -5, "theme": "DARK"}) == Settings(theme=Theme.DARK)


def test_default_path_honours_the_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv(SETTINGS_PATH_ENV, str(tmp_path / "custom.json"))
    assert SettingsStore.default_path() == tmp_path / "custom.json"

    monkeypatch.delenv(SETTINGS_PATH_ENV)
    assert SettingsStore.default_path() == Path.home() / ".guess-that-lang.json"
