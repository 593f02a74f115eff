from __future__ import annotations

import difflib
import os
import sys

from pygments import highlight
from pygments.formatters import TerminalFormatter
from pygments.lexers import DiffLexer, NixLexer


def _use_color() -> bool:
    return os.getenv("NO_COLOR") != "1" and sys.stdout.isatty()


def colorize_nix(code: str) -> str:
    """Highlight Nix snippets when writing to a terminal."""
    if not code or not _use_color():
        return code
    return highlight(code, NixLexer(), TerminalFormatter())


def unified_diff(before: str, after: str, *, filename: str) -> str:
    return "".join(
        difflib.unified_diff(
            before.splitlines(keepends=True),
            after.splitlines(keepends=True),
            fromfile=f"a/{filename}",
            tofile=f"b/{filename}",
        )
    )


def colorize_diff(diff: str) -> str:
    if not diff or not _use_color():
        return diff
    return highlight(diff, DiffLexer(), TerminalFormatter())


__all__ = ["colorize_diff", "colorize_nix", "unified_diff"]
