"""Toggle ``programs.<name>.enable = true;`` declarations line by line."""

from __future__ import annotations

import logging

from declair.document import SourceDocument
from declair.edits import Edit, Status
from declair.locator import (
    OPTION_FIELD,
    OPTION_NAME_RE,
    OPTION_NAMESPACE,
    find_option_declaration,
    find_option_group,
    opaque_spans,
)
from declair.style import DEFAULT_INDENT_UNIT

logger = logging.getLogger(__name__)


def _validate_option_name(name: str) -> str:
    if not OPTION_NAME_RE.match(name):
        raise ValueError(f"Not a valid option name: {name!r}")
    return name


def _last_closing_brace(text: str) -> int | None:
    """Offset of the last ``}`` outside comments and strings."""
    spans = opaque_spans(text)
    index = len(text)
    while True:
        index = text.rfind("}", 0, index)
        if index == -1:
            return None
        if not any(start <= index < end for start, end in spans):
            return index


def insert_option(
    text: str,
    name: str,
    *,
    namespace: str = OPTION_NAMESPACE,
    field: str = OPTION_FIELD,
) -> Edit:
    _validate_option_name(name)
    document = SourceDocument(text)
    existing = find_option_declaration(text, name, namespace=namespace, field=field)
    if existing is not None:
        if existing.value:
            logger.debug("%s.%s.%s is already enabled", namespace, name, field)
            return Edit(text=text, status=Status.ALREADY_PRESENT)
        logger.debug("Switching %s.%s.%s to true", namespace, name, field)
        return Edit(
            text=document.splice(
                existing.value_start, existing.value_end, "true"
            ).text,
            status=Status.INSERTED,
        )

    declaration = f"{namespace}.{name}.{field} = true;"
    newline = "\r\n" if "\r\n" in text else "\n"
    group = find_option_group(text, namespace=namespace, field=field)
    if group:
        last = group[-1]
        prefix = "" if text[: last.end].endswith("\n") else newline
        logger.debug("Appending %s after the %s group", declaration, namespace)
        return Edit(
            text=document.splice(
                last.end, last.end, f"{prefix}{last.indent}{declaration}{newline}"
            ).text,
            status=Status.INSERTED,
        )

    brace = _last_closing_brace(text)
    if brace is not None:
        line_start = document.line_start(brace)
        if not text[line_start:brace].strip():
            indent = document.line_indent(brace) + DEFAULT_INDENT_UNIT
            return Edit(
                text=document.splice(
                    line_start, line_start, f"{indent}{declaration}{newline}"
                ).text,
                status=Status.INSERTED,
            )
        # keep the declaration on its own line so it can be found again
        position = len(text[:brace].rstrip(" \t"))
        indent = document.line_indent(brace)
        line = f"{indent}{DEFAULT_INDENT_UNIT}{declaration}"
        return Edit(
            text=document.splice(
                position, brace, f"{newline}{line}{newline}{indent}"
            ).text,
            status=Status.INSERTED,
        )

    prefix = "" if not text or text.endswith("\n") else newline
    return Edit(text=f"{text}{prefix}{declaration}{newline}", status=Status.INSERTED)


def remove_option(
    text: str,
    name: str,
    *,
    namespace: str = OPTION_NAMESPACE,
    field: str = OPTION_FIELD,
) -> Edit:
    existing = find_option_declaration(text, name, namespace=namespace, field=field)
    if existing is None:
        return Edit(text=text, status=Status.NOT_PRESENT)
    logger.debug("Deleting %s.%s.%s declaration", namespace, name, field)
    return Edit(
        text=SourceDocument(text).splice(existing.start, existing.end, "").text,
        status=Status.REMOVED,
    )


__all__ = ["insert_option", "remove_option"]
