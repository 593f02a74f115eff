"""Find package lists and per-package option declarations in Nix text.

Only two shapes are recognised: the ``with pkgs; [ ... ]`` list and whole-line
``programs.<name>.enable = <bool>;`` declarations. Everything else is treated
as opaque text, except that comments and strings are skipped so brackets and
keywords inside them are never mistaken for code.
"""

from __future__ import annotations

import logging
import math
import re
from bisect import bisect_right
from dataclasses import dataclass

from declair.exceptions import AmbiguousConstructError, MalformedConstructError

logger = logging.getLogger(__name__)

LIST_KEYWORD = "pkgs"
OPTION_NAMESPACE = "programs"
OPTION_FIELD = "enable"

PACKAGE_NAME_RE = re.compile(
    r"^[A-Za-z_][A-Za-z0-9_'\-]*(\.[A-Za-z_][A-Za-z0-9_'\-]*)*$"
)
_LIST_HEAD_RE = re.compile(rf"\bwith\s+{LIST_KEYWORD}\s*;\s*\[")
_OPTION_NAME = r"[A-Za-z_][A-Za-z0-9_'\-]*"
OPTION_NAME_RE = re.compile(rf"^{_OPTION_NAME}$")
_OPENERS = {"(": ")", "[": "]", "{": "}"}


@dataclass(frozen=True)
class ListElement:
    name: str
    start: int
    end: int


@dataclass(frozen=True)
class ListBlock:
    """A located ``with pkgs; [ ... ]`` construct.

    ``start`` points at the ``with`` keyword, ``open``/``close`` at the
    brackets, and ``end`` just past the closing bracket.
    """

    start: int
    open: int
    close: int
    elements: tuple[ListElement, ...]

    @property
    def end(self) -> int:
        return self.close + 1

    @property
    def names(self) -> list[str]:
        return [element.name for element in self.elements]

    def find(self, name: str) -> ListElement | None:
        return next((el for el in self.elements if el.name == name), None)


@dataclass(frozen=True)
class OptionDeclaration:
    """A whole-line ``<namespace>.<name>.<field> = <bool>;`` declaration.

    ``start``/``end`` cover the full line including its terminator.
    """

    name: str
    value: bool
    start: int
    end: int
    indent: str
    value_start: int
    value_end: int


def line_number(text: str, offset: int) -> int:
    return text.count("\n", 0, offset) + 1


def validate_package_name(name: str) -> str:
    if not PACKAGE_NAME_RE.match(name):
        raise ValueError(f"Not a valid package name: {name!r}")
    return name


def _comment_end(text: str, index: int) -> int | None:
    if text.startswith("#", index):
        end = text.find("\n", index)
        return len(text) if end == -1 else end
    if text.startswith("/*", index):
        end = text.find("*/", index + 2)
        return len(text) if end == -1 else end + 2
    return None


def _interpolation_end(text: str, index: int) -> int:
    """Skip a ``${ ... }`` body; ``index`` points just past ``${``."""
    depth = 1
    while index < len(text):
        skipped = _opaque_end(text, index)
        if skipped is not None:
            index = skipped
            continue
        char = text[index]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index + 1
        index += 1
    return len(text)


def _string_end(text: str, index: int) -> int | None:
    if text.startswith("''", index):
        index += 2
        while index < len(text):
            if text.startswith("''", index):
                following = text[index + 2 : index + 3]
                if following in ("'", "$"):
                    index += 3
                    continue
                if following == "\\":
                    index += 4
                    continue
                return index + 2
            if text.startswith("${", index):
                index = _interpolation_end(text, index + 2)
                continue
            index += 1
        return len(text)
    if text.startswith('"', index):
        index += 1
        while index < len(text):
            char = text[index]
            if char == "\\":
                index += 2
                continue
            if char == '"':
                return index + 1
            if text.startswith("${", index):
                index = _interpolation_end(text, index + 2)
                continue
            index += 1
        return len(text)
    return None


def _opaque_end(text: str, index: int) -> int | None:
    """End offset of a comment or string starting at ``index``, if any."""
    end = _comment_end(text, index)
    if end is None:
        end = _string_end(text, index)
    return end


def opaque_spans(text: str) -> list[tuple[int, int]]:
    """Return the ``(start, end)`` spans of every comment and string."""
    spans: list[tuple[int, int]] = []
    index = 0
    while index < len(text):
        end = _opaque_end(text, index)
        if end is None:
            index += 1
            continue
        spans.append((index, end))
        index = end
    return spans


def _in_code(spans: list[tuple[int, int]], offset: int) -> bool:
    position = bisect_right(spans, (offset, math.inf))
    if position == 0:
        return True
    start, end = spans[position - 1]
    return not start <= offset < end


def _group_end(text: str, index: int, limit: int) -> int:
    """Offset just past the bracket group opened at ``index``."""
    stack = [_OPENERS[text[index]]]
    index += 1
    while index < limit:
        skipped = _opaque_end(text, index)
        if skipped is not None:
            index = skipped
            continue
        char = text[index]
        if char in _OPENERS:
            stack.append(_OPENERS[char])
        elif char == stack[-1]:
            stack.pop()
            if not stack:
                return index + 1
        index += 1
    raise MalformedConstructError(
        f"Unbalanced brackets in package list at line {line_number(text, index)}"
    )


def matching_close(text: str, open_index: int) -> int:
    depth = 0
    index = open_index
    while index < len(text):
        skipped = _opaque_end(text, index)
        if skipped is not None:
            index = skipped
            continue
        char = text[index]
        if char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth == 0:
                return index
        index += 1
    raise MalformedConstructError(
        f"Package list opened at line {line_number(text, open_index)} is never closed"
    )


def scan_elements(
    text: str, open_index: int, close_index: int
) -> tuple[ListElement, ...]:
    """Collect the top-level items between a list's brackets."""
    elements: list[ListElement] = []
    index = open_index + 1
    while index < close_index:
        if text[index].isspace():
            index += 1
            continue
        comment_end = _comment_end(text, index)
        if comment_end is not None:
            index = comment_end
            continue
        start = index
        while index < close_index and not text[index].isspace():
            if _comment_end(text, index) is not None:
                break
            string_end = _string_end(text, index)
            if string_end is not None:
                index = string_end
            elif text[index] in _OPENERS:
                index = _group_end(text, index, close_index)
            else:
                index += 1
        elements.append(ListElement(name=text[start:index], start=start, end=index))
    return tuple(elements)


def find_list_block(text: str) -> ListBlock | None:
    """Locate the first ``with pkgs; [ ... ]`` block, or None."""
    spans = opaque_spans(text)
    for match in _LIST_HEAD_RE.finditer(text):
        if not _in_code(spans, match.start()):
            continue
        open_index = match.end() - 1
        close_index = matching_close(text, open_index)
        block = ListBlock(
            start=match.start(),
            open=open_index,
            close=close_index,
            elements=scan_elements(text, open_index, close_index),
        )
        logger.debug(
            "Found package list at line %d with %d elements",
            line_number(text, block.start),
            len(block.elements),
        )
        return block
    logger.debug("No `with %s; [` block found", LIST_KEYWORD)
    return None


def _option_re(name: str, namespace: str, field: str) -> re.Pattern[str]:
    return re.compile(
        rf"^(?P<indent>[ \t]*){re.escape(namespace)}\.(?P<name>{name})\."
        rf"{re.escape(field)}[ \t]*=[ \t]*(?P<value>true|false)[ \t]*;"
        r"[ \t]*(?:#[^\r\n]*)?\r?$",
        re.MULTILINE,
    )


def _declarations(
    text: str, pattern: re.Pattern[str]
) -> list[OptionDeclaration]:
    spans = opaque_spans(text)
    found = []
    for match in pattern.finditer(text):
        if not _in_code(spans, match.start("indent") + len(match.group("indent"))):
            continue
        end = match.end()
        if end < len(text) and text[end] == "\n":
            end += 1
        found.append(
            OptionDeclaration(
                name=match.group("name"),
                value=match.group("value") == "true",
                start=match.start(),
                end=end,
                indent=match.group("indent"),
                value_start=match.start("value"),
                value_end=match.end("value"),
            )
        )
    return found


def find_option_declarations(
    text: str,
    name: str,
    *,
    namespace: str = OPTION_NAMESPACE,
    field: str = OPTION_FIELD,
) -> list[OptionDeclaration]:
    return _declarations(text, _option_re(re.escape(name), namespace, field))


def find_option_declaration(
    text: str,
    name: str,
    *,
    namespace: str = OPTION_NAMESPACE,
    field: str = OPTION_FIELD,
) -> OptionDeclaration | None:
    """Return the single declaration for ``name``; several is an error."""
    found = find_option_declarations(text, name, namespace=namespace, field=field)
    if len(found) > 1:
        lines = ", ".join(str(line_number(text, decl.start)) for decl in found)
        raise AmbiguousConstructError(
            f"`{namespace}.{name}.{field}` is declared {len(found)} times "
            f"(lines {lines})"
        )
    return found[0] if found else None


def find_option_group(
    text: str, *, namespace: str = OPTION_NAMESPACE, field: str = OPTION_FIELD
) -> list[OptionDeclaration]:
    """Return the first run of consecutive option lines in ``namespace``."""
    found = _declarations(text, _option_re(_OPTION_NAME, namespace, field))
    group: list[OptionDeclaration] = []
    for declaration in found:
        if group and declaration.start != group[-1].end:
            break
        group.append(declaration)
    return group


__all__ = [
    "ListBlock",
    "ListElement",
    "OptionDeclaration",
    "find_list_block",
    "find_option_declaration",
    "find_option_declarations",
    "find_option_group",
    "scan_elements",
    "validate_package_name",
]
