from __future__ import annotations

from guess_that_lang.game_core import SeededRng
from guess_that_lang.languages import LANGUAGES, OPTION_COUNT, build_options, is_supported


def test_catalog_has_no_duplicates() -> None:
    assert len(set(LANGUAGES)) == len(LANGUAGES) == 25


def test_options_contain_the_correct_language_once_and_are_distinct() -> None:
    rng = SeededRng(123)
    for correct in LANGUAGES:
        options = build_options(correct, rng=rng)
        assert len(options) == OPTION_COUNT
        assert len(set(options)) == OPTION_COUNT
        assert options.count(correct) == 1
        assert all(option in LANGUAGES for option in options)


def test_options_are_deterministic_for_a_seed() -> None:
    rng_a = SeededRng(7)
    rng_b = SeededRng(7)
    a = [build_options("Rust", rng=rng_a) for _ in range(5)]
    b = [build_options("Rust", rng=rng_b) for _ in range(5)]
    assert a == b


def test_correct_answer_position_varies() -> None:
    rng = SeededRng(1)
    positions = {build_options("Go", rng=rng).index("Go") for _ in range(200)}
    assert positions == {0, 1, 2, 3}


def test_language_outside_the_catalog_is_still_offered() -> None:
    options = build_options("Zig", rng=SeededRng(5))
    assert "Zig" in options
    assert len(set(options)) == OPTION_COUNT


def test_is_supported() -> None:
    assert is_supported("Python")
    assert not is_supported("Markdown")
    assert not is_supported(None)
