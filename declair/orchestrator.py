"""Plan and apply one package mutation to a configuration file.

Each run walks ``LOCATED -> CLASSIFIED -> MUTATED -> BACKED_UP -> WRITTEN``.
Planning is pure; only :func:`apply_mutation` touches the filesystem, and it
backs the file up strictly after the new text is computed and strictly before
it is written.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path

from declair.backup import BackupRecord, create_backup
from declair.document import SourceDocument
from declair.edits import Edit, Status
from declair.exceptions import (
    ConstructNotFoundError,
    DeclairError,
    IoFailure,
    MalformedConstructError,
    WriteError,
)
from declair.list_mutator import insert_element, remove_element
from declair.locator import find_list_block, find_option_declaration
from declair.option_mutator import insert_option, remove_option
from declair.style import analyze_style
from declair.syntax import contains_error, first_error_line

logger = logging.getLogger(__name__)


class Action(Enum):
    INSERT = "insert"
    REMOVE = "remove"


class Representation(Enum):
    LIST = "list"
    OPTION = "option"


class Stage(Enum):
    STARTED = "started"
    LOCATED = "located"
    CLASSIFIED = "classified"
    MUTATED = "mutated"
    BACKED_UP = "backed-up"
    WRITTEN = "written"
    ABORTED = "aborted"


@dataclass(frozen=True)
class MutationResult:
    text: str
    name: str
    representation: Representation
    status: Status
    backup: BackupRecord | None = None

    @property
    def changed(self) -> bool:
        return self.status.changed


@dataclass
class MutationRun:
    """Records the stages one invocation went through."""

    stage: Stage = Stage.STARTED
    history: list[Stage] = field(default_factory=list)

    def advance(self, stage: Stage) -> None:
        if stage is self.stage:
            return
        logger.debug("Mutation stage %s -> %s", self.stage.value, stage.value)
        self.stage = stage
        self.history.append(stage)


def _list_edit(
    text: str, name: str, action: Action, run: MutationRun
) -> Edit | None:
    block = find_list_block(text)
    if block is None:
        return None
    run.advance(Stage.LOCATED)
    if action is Action.INSERT:
        style = analyze_style(text, block)
        run.advance(Stage.CLASSIFIED)
        logger.debug("Package list style: %r", style)
        return insert_element(text, block, style, name)
    return remove_element(text, block, name)


def _option_edit(text: str, name: str, action: Action, run: MutationRun) -> Edit:
    if action is Action.INSERT:
        edit = insert_option(text, name)
    else:
        edit = remove_option(text, name)
    run.advance(Stage.LOCATED)
    return edit


def plan_mutation(
    document: SourceDocument,
    name: str,
    action: Action,
    *,
    representation: Representation = Representation.LIST,
    option_available: bool = False,
    run: MutationRun | None = None,
) -> MutationResult:
    """Compute the new document text without touching the filesystem."""
    run = run or MutationRun()
    text = document.text

    def result(edit: Edit, used: Representation) -> MutationResult:
        run.advance(Stage.MUTATED)
        logger.debug("%s via %s: %s", name, used.value, edit.status.value)
        return MutationResult(
            text=edit.text, name=name, representation=used, status=edit.status
        )

    if action is Action.INSERT:
        if representation is Representation.OPTION and option_available:
            return result(_option_edit(text, name, action, run), Representation.OPTION)
        edit = _list_edit(text, name, action, run)
        if edit is not None:
            return result(edit, Representation.LIST)
        if option_available:
            logger.info("No package list found, enabling programs.%s instead", name)
            return result(_option_edit(text, name, action, run), Representation.OPTION)
        raise ConstructNotFoundError(
            "Failed to find `with pkgs; [...]` block in the given file."
        )

    if representation is Representation.OPTION:
        edit = _option_edit(text, name, action, run)
        if edit.status.changed:
            return result(edit, Representation.OPTION)
        fallback = _list_edit(text, name, action, run)
        if fallback is not None and fallback.status.changed:
            return result(fallback, Representation.LIST)
        return result(edit, Representation.OPTION)

    edit = _list_edit(text, name, action, run)
    if edit is not None and edit.status.changed:
        return result(edit, Representation.LIST)
    if find_option_declaration(text, name) is not None:
        return result(_option_edit(text, name, action, run), Representation.OPTION)
    if edit is None:
        raise ConstructNotFoundError(
            "Failed to find `with pkgs; [...]` block in the given file."
        )
    return result(edit, Representation.LIST)


def _check_syntax(before: str, after: str) -> None:
    if contains_error(after) and not contains_error(before):
        line = first_error_line(after)
        raise MalformedConstructError(
            f"Refusing to write a change that breaks Nix syntax near line {line}"
        )


def apply_mutation(
    path: Path,
    name: str,
    action: Action,
    *,
    representation: Representation = Representation.LIST,
    option_available: bool = False,
    dry_run: bool = False,
    check_syntax: bool = True,
    run: MutationRun | None = None,
) -> MutationResult:
    """Mutate ``path`` in place, backing it up first when anything changes."""
    run = run or MutationRun()
    try:
        document = SourceDocument.read(path)
    except OSError as exc:
        run.advance(Stage.ABORTED)
        raise IoFailure(f"Failed to read {path}: {exc}") from exc

    try:
        result = plan_mutation(
            document,
            name,
            action,
            representation=representation,
            option_available=option_available,
            run=run,
        )
        if not result.changed:
            logger.info("%s: %s, nothing to write", name, result.status.value)
            return result
        if check_syntax:
            _check_syntax(document.text, result.text)
        if dry_run:
            logger.info("Dry run, leaving %s untouched", path)
            return result

        record = create_backup(path)
        run.advance(Stage.BACKED_UP)
        try:
            SourceDocument(result.text, path).write()
        except OSError as exc:
            raise WriteError(
                f"Failed to write {path}: {exc}; the original is at {record.backup}"
            ) from exc
        run.advance(Stage.WRITTEN)
    except (DeclairError, ValueError):
        run.advance(Stage.ABORTED)
        raise

    logger.info("Wrote %s (%s %s)", path, result.status.value, name)
    return replace(result, backup=record)


__all__ = [
    "Action",
    "MutationResult",
    "MutationRun",
    "Representation",
    "Stage",
    "apply_mutation",
    "plan_mutation",
]
