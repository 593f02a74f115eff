"""Immutable view of the configuration file being edited."""

from __future__ import annotations

import os
import shutil
import tempfile
from dataclasses import dataclass, replace
from pathlib import Path


@dataclass(frozen=True)
class SourceDocument:
    """Full text of a target file; edits always produce a new document."""

    text: str
    path: Path | None = None

    @classmethod
    def read(cls, path: Path) -> SourceDocument:
        # newline="" keeps \r\n intact so untouched lines stay byte-identical
        with open(path, encoding="utf-8", newline="") as handle:
            return cls(text=handle.read(), path=path)

    def write(self, path: Path | None = None) -> None:
        """Replace the target atomically so a failed write leaves it intact."""
        target = path or self.path
        if target is None:
            raise ValueError("Document has no path to write to")
        # follow symlinks so a linked configuration keeps its link
        target = Path(target).resolve()
        handle = tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            newline="",
            dir=target.parent,
            prefix=f".{target.name}.",
            suffix=".tmp",
            delete=False,
        )
        try:
            with handle:
                handle.write(self.text)
            if target.exists():
                shutil.copymode(target, handle.name)
            os.replace(handle.name, target)
        except OSError:
            Path(handle.name).unlink(missing_ok=True)
            raise

    def line_start(self, offset: int) -> int:
        """Offset of the first character of the line holding `offset`."""
        return self.text.rfind("\n", 0, offset) + 1

    def line_end(self, offset: int) -> int:
        """Offset of the line terminator (or end of text) after `offset`."""
        end = self.text.find("\n", offset)
        return len(self.text) if end == -1 else end

    def line_indent(self, offset: int) -> str:
        start = self.line_start(offset)
        line = self.text[start : self.line_end(offset)]
        return line[: len(line) - len(line.lstrip(" \t"))]

    def splice(self, start: int, end: int, replacement: str) -> SourceDocument:
        if not 0 <= start <= end <= len(self.text):
            raise ValueError(f"Invalid span {start}..{end}")
        return replace(
            self, text=self.text[:start] + replacement + self.text[end:]
        )


__all__ = ["SourceDocument"]
