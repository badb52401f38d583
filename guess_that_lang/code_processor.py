"""Turns raw snippet text into the bounded, highlighted lines a round shows.

Steps, in order:
- cut lines that do not fit next to the line-number gutter and end them with "..."
- highlight every line and drop the ones carrying a comment color
- stop after ten non-blank lines
- collapse runs of blank lines, then trim blanks at both ends
"""

from __future__ import annotations

import re

from .game_core import GUTTER_WIDTH, MAX_CODE_LINES, CodeSnippet, DisplayLine
from .highlighter import Highlighter, Span

ELLIPSIS = "..."
TAB_SIZE = 4
# C0 (tabs are expanded first), DEL and C1 controls.
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f-\x9f]")


def _split_lines(code: str) -> list[str]:
    """Split on line feeds only; any other control character is removed."""

    lines = code.replace("\r", "").split("\n")
    if lines[-1] == "":
        lines.pop()
    return [_CONTROL_CHARS.sub("", line.expandtabs(TAB_SIZE)) for line in lines]


def fit_width(line: str, width: int) -> str:
    """Cut ``line`` so that gutter plus text never exceed ``width`` columns."""

    if len(line) + GUTTER_WIDTH > width:
        return line[: width - GUTTER_WIDTH - len(ELLIPSIS)] + ELLIPSIS
    return line


def _is_blank(line: str) -> bool:
    return line.strip() == ""


def process(
    code: str,
    *,
    width: int,
    highlighter: Highlighter,
    language: str = "",
    extension: str | None = None,
) -> tuple[DisplayLine, ...] | None:
    """Return the display lines for ``code`` or None when nothing usable is left."""

    if width <= GUTTER_WIDTH + len(ELLIPSIS):
        raise ValueError(f"width must be > {GUTTER_WIDTH + len(ELLIPSIS)}, got {width}")

    candidates = [fit_width(line, width) for line in _split_lines(code)]
    lexer = highlighter.lexer_for(language, extension)
    highlighted = highlighter.highlight_lines(candidates, lexer)

    kept: list[tuple[str, tuple[Span, ...]]] = []
    non_blank = 0
    for line, spans in zip(candidates, highlighted):
        if highlighter.is_comment(spans):
            continue
        if not _is_blank(line):
            non_blank += 1
            if non_blank > MAX_CODE_LINES:
                break
        elif kept and _is_blank(kept[-1][0]):
            continue
        kept.append((line, spans))

    while kept and _is_blank(kept[0][0]):
        kept.pop(0)
    while kept and _is_blank(kept[-1][0]):
        kept.pop()

    if not kept:
        return None

    return tuple(
        DisplayLine(
            index=index,
            plain=line,
            rendered=highlighter.to_text(spans),
            is_blank=_is_blank(line),
        )
        for index, (line, spans) in enumerate(kept)
    )


def process_snippet(snippet: CodeSnippet, *, width: int, highlighter: Highlighter) -> tuple[DisplayLine, ...] | None:
    return process(
        snippet.code,
        width=width,
        highlighter=highlighter,
        language=snippet.language,
        extension=snippet.extension,
    )
