from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum

from pygments.lexer import Lexer
from pygments.lexers import get_lexer_by_name, get_lexer_for_filename
from pygments.lexers.special import TextLexer
from pygments.styles import get_style_by_name
from pygments.token import Comment, _TokenType
from pygments.util import ClassNotFound
from rich.color import Color
from rich.style import Style
from rich.text import Text

logger = logging.getLogger(__name__)

Rgb = tuple[int, int, int]

# Monokai comment colors; the second one is what shell scripts get.
KNOWN_COMMENT_COLORS: frozenset[Rgb] = frozenset({(117, 113, 94), (124, 120, 101)})

# Catalog labels that are not Pygments aliases once lower-cased.
_LEXER_ALIASES = {
    "Assembly": "nasm",
}

_LEXER_OPTIONS = {
    # Keep the text byte-for-byte so tokens line up with the source lines.
    "stripnl": False,
    "ensurenl": False,
    # PHP snippets rarely start with "<?php".
    "startinline": True,
}


class Theme(str, Enum):
    DARK = "dark"
    LIGHT = "light"

    @property
    def style_name(self) -> str:
        return "monokai" if self is Theme.DARK else "friendly"


@dataclass(frozen=True, slots=True)
class Span:
    text: str
    color: Rgb | None
    bold: bool = False
    italic: bool = False


def _hex_to_rgb(value: str) -> Rgb:
    value = value.lstrip("#")
    return (int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16))


class Highlighter:
    """Pygments tokenizer producing per-line colored spans for one theme."""

    def __init__(self, theme: Theme = Theme.DARK) -> None:
        self._theme = theme
        self._style = get_style_by_name(theme.style_name)
        self._token_styles: dict[_TokenType, tuple[Rgb | None, bool, bool]] = {}
        self._comment_colors = KNOWN_COMMENT_COLORS | frozenset(self._style_comment_colors())

    @property
    def theme(self) -> Theme:
        return self._theme

    @property
    def comment_colors(self) -> frozenset[Rgb]:
        return self._comment_colors

    def lexer_for(self, language: str, extension: str | None = None) -> Lexer:
        """Pick a lexer by file extension first, then by language name, else plain text."""

        if extension:
            try:
                return get_lexer_for_filename(f"snippet.{extension}", **_LEXER_OPTIONS)
            except ClassNotFound:
                pass
        alias = _LEXER_ALIASES.get(language, language)
        try:
            return get_lexer_by_name(alias, **_LEXER_OPTIONS)
        except ClassNotFound:
            logger.debug("No lexer for %r (extension %r); using plain text", language, extension)
            return TextLexer(**_LEXER_OPTIONS)

    def highlight_lines(self, lines: Sequence[str], lexer: Lexer) -> list[tuple[Span, ...]]:
        """Tokenize ``lines`` (without terminators) as one block, split back per line.

        Lexing the block at once lets multi-line constructs such as block
        comments color every line they cover.
        """

        if not lines:
            return []

        per_line: list[list[Span]] = [[]]
        for ttype, value in lexer.get_tokens("\n".join(lines) + "\n"):
            color, bold, italic = self._style_for(ttype)
            for i, part in enumerate(value.split("\n")):
                if i > 0:
                    per_line.append([])
                if part:
                    per_line[-1].append(Span(part, color, bold, italic))

        while len(per_line) < len(lines):
            per_line.append([])
        return [tuple(spans) for spans in per_line[: len(lines)]]

    def is_comment(self, spans: Iterable[Span]) -> bool:
        return any(span.color in self._comment_colors for span in spans)

    def to_text(self, spans: Iterable[Span]) -> Text:
        text = Text(no_wrap=True, end="")
        for span in spans:
            style = Style(
                color=None if span.color is None else Color.from_rgb(*span.color),
                bold=span.bold or None,
                italic=span.italic or None,
            )
            text.append(span.text, style=style)
        return text

    def _style_for(self, ttype: _TokenType) -> tuple[Rgb | None, bool, bool]:
        cached = self._token_styles.get(ttype)
        if cached is not None:
            return cached

        styled = ttype
        while not self._style.styles_token(styled) and styled.parent is not None:
            styled = styled.parent
        info = self._style.style_for_token(styled)
        color = None if not info["color"] else _hex_to_rgb(info["color"])
        result = (color, bool(info["bold"]), bool(info["italic"]))
        self._token_styles[ttype] = result
        return result

    def _style_comment_colors(self) -> Iterable[Rgb]:
        for ttype in (Comment, Comment.Single, Comment.Multiline, Comment.Hashbang):
            color, _bold, _italic = self._style_for(ttype)
            if color is not None:
                yield color
