"""Classify how an existing package list is laid out."""

from __future__ import annotations

from dataclasses import dataclass

from declair.document import SourceDocument
from declair.locator import ListBlock

DEFAULT_INDENT_UNIT = "  "
DEFAULT_SEPARATOR = " "


@dataclass(frozen=True)
class SingleLine:
    separator: str = DEFAULT_SEPARATOR


@dataclass(frozen=True)
class MultiLine:
    """Multi-line list layout.

    ``indent`` is the literal prefix of existing element lines and
    ``trailing_separator`` is true when the closing bracket sits on its own
    line, i.e. a line break follows the last element.
    """

    indent: str
    trailing_separator: bool
    newline: str = "\n"


FormatStyle = SingleLine | MultiLine


def _detect_newline(text: str) -> str:
    return "\r\n" if "\r\n" in text else "\n"


def analyze_style(text: str, block: ListBlock) -> FormatStyle:
    document = SourceDocument(text)
    inner = text[block.open + 1 : block.close]
    if "\n" not in inner:
        separator = DEFAULT_SEPARATOR
        if len(block.elements) > 1:
            gap = text[block.elements[0].end : block.elements[1].start]
            if gap and not gap.strip():
                separator = gap
        return SingleLine(separator=separator)

    closing_prefix = text[document.line_start(block.close) : block.close]
    trailing_separator = not closing_prefix.strip()

    indent = None
    for element in block.elements:
        prefix = text[document.line_start(element.start) : element.start]
        if not prefix.strip():
            indent = prefix
            break
    if indent is None:
        indent = document.line_indent(block.close) + DEFAULT_INDENT_UNIT
    return MultiLine(
        indent=indent,
        trailing_separator=trailing_separator,
        newline=_detect_newline(inner),
    )


__all__ = ["FormatStyle", "MultiLine", "SingleLine", "analyze_style"]
