"""Insert or remove one element of a package list without reformatting it."""

from __future__ import annotations

import logging

from declair.document import SourceDocument
from declair.edits import Edit, Status
from declair.locator import ListBlock, validate_package_name
from declair.style import FormatStyle, MultiLine, SingleLine

logger = logging.getLogger(__name__)


def insert_element(
    text: str, block: ListBlock, style: FormatStyle, name: str
) -> Edit:
    """Add ``name`` to the list, following the layout described by ``style``."""
    validate_package_name(name)
    if name in block.names:
        logger.debug("%s is already in the package list", name)
        return Edit(text=text, status=Status.ALREADY_PRESENT)

    document = SourceDocument(text)
    match style:
        case SingleLine(separator=separator):
            if block.elements:
                position = block.elements[-1].end
                addition = f"{separator}{name}"
            else:
                inner = text[block.open + 1 : block.close]
                if inner.strip():
                    # only comments between the brackets
                    position = block.close
                    addition = f"{name} " if inner.endswith(" ") else f" {name} "
                else:
                    return Edit(
                        text=document.splice(
                            block.open + 1, block.close, f" {name} "
                        ).text,
                        status=Status.INSERTED,
                    )
        case MultiLine(indent=indent, trailing_separator=True, newline=newline):
            position = document.line_start(block.close)
            addition = f"{indent}{name}{newline}"
        case MultiLine(indent=indent, trailing_separator=False, newline=newline):
            before_close = text[: block.close].rstrip(" \t")
            position = len(before_close)
            addition = f"{newline}{indent}{name}"
        case _:
            raise ValueError(f"Unknown list style: {style!r}")

    logger.debug("Inserting %s at offset %d", name, position)
    return Edit(
        text=document.splice(position, position, addition).text,
        status=Status.INSERTED,
    )


def _removal_span(
    document: SourceDocument, block: ListBlock, index: int
) -> tuple[int, int]:
    text = document.text
    element = block.elements[index]
    line_start = document.line_start(element.start)
    line_end = document.line_end(element.end)
    before = text[line_start : element.start]
    after = text[element.end : line_end].strip(" \t\r")

    if not before.strip() and (not after or after.startswith("#")):
        if line_end < len(text):
            line_end += 1
        return line_start, line_end

    if not before.strip() and after.startswith("]") and line_start > 0:
        # the element shares the closing line; take the preceding line break
        previous_end = line_start - 1
        if text[previous_end - 1 : previous_end] == "\r":
            previous_end -= 1
        return previous_end, element.end

    previous = block.elements[index - 1] if index > 0 else None
    if previous is not None:
        gap = text[previous.end : element.start]
        if gap and not gap.strip() and "\n" not in gap:
            return previous.end, element.end

    following = None
    if index + 1 < len(block.elements):
        following = block.elements[index + 1]
    if following is not None:
        gap = text[element.end : following.start]
        if gap and not gap.strip() and "\n" not in gap:
            return element.start, following.start

    start = element.start
    while start > line_start and text[start - 1] in " \t":
        start -= 1
    if start == element.start:
        end = element.end
        while end < line_end and text[end] in " \t":
            end += 1
        return start, end
    return start, element.end


def _first_match(block: ListBlock, name: str) -> int | None:
    for index, element in enumerate(block.elements):
        if element.name == name:
            return index
    return None


def remove_element(text: str, block: ListBlock, name: str) -> Edit:
    """Drop the first element named exactly ``name`` along with its layout."""
    index = _first_match(block, name)
    if index is None:
        logger.debug("%s is not in the package list", name)
        return Edit(text=text, status=Status.NOT_PRESENT)

    document = SourceDocument(text)
    start, end = _removal_span(document, block, index)
    logger.debug("Removing %s from offsets %d..%d", name, start, end)
    return Edit(text=document.splice(start, end, "").text, status=Status.REMOVED)


__all__ = ["insert_element", "remove_element"]
