from __future__ import annotations

from .game_core import SeededRng

# Top 24 languages of the Stack Overflow 2022 developer survey, with VBA
# swapped for Dockerfile. Labels match GitHub's linguist names.
LANGUAGES: tuple[str, ...] = (
    "Assembly",
    "Shell",
    "C",
    "C#",
    "C++",
    "CSS",
    "Dart",
    "Dockerfile",
    "Go",
    "Groovy",
    "HTML",
    "Java",
    "JavaScript",
    "Kotlin",
    "Lua",
    "MATLAB",
    "PHP",
    "PowerShell",
    "Python",
    "R",
    "Ruby",
    "Rust",
    "SQL",
    "Swift",
    "TypeScript",
)

OPTION_COUNT = 4

PROMPT = "Which programming language is this? (Type the corresponding number)"


def is_supported(language: str | None) -> bool:
    return language is not None and language in LANGUAGES


def build_options(correct_language: str, *, rng: SeededRng) -> tuple[str, ...]:
    """Return the correct language plus three distinct random distractors, shuffled."""

    options = [correct_language]
    while len(options) < OPTION_COUNT:
        candidate = rng.choice(LANGUAGES)
        if candidate not in options:
            options.append(candidate)

    rng.shuffle(options)
    return tuple(options)
