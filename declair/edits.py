from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Status(Enum):
    INSERTED = "inserted"
    ALREADY_PRESENT = "already-present"
    REMOVED = "removed"
    NOT_PRESENT = "not-present"

    @property
    def changed(self) -> bool:
        return self in (Status.INSERTED, Status.REMOVED)


@dataclass(frozen=True)
class Edit:
    """Text produced by a mutator together with what happened to it."""

    text: str
    status: Status


__all__ = ["Edit", "Status"]
