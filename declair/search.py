"""Collaborators that ask Nix about packages: search and option lookup."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Callable

from pydantic import BaseModel, TypeAdapter, ValidationError

from declair.exceptions import SearchError
from declair.locator import OPTION_NAME_RE

logger = logging.getLogger(__name__)

EXPERIMENTAL_FEATURES = ("--extra-experimental-features", "nix-command flakes")

Runner = Callable[..., subprocess.CompletedProcess]


class PackageInfo(BaseModel):
    pname: str
    version: str
    description: str | None = None


_SEARCH_RESULTS = TypeAdapter(dict[str, PackageInfo])


@dataclass(frozen=True)
class Candidate:
    attribute: str
    info: PackageInfo

    def describe(self) -> str:
        return f"{self.attribute} {self.info.version}: {self.info.description or ''}"


def attribute_name(key: str) -> str:
    """``legacyPackages.x86_64-linux.firefox`` -> ``firefox``."""
    parts = key.split(".")
    if len(parts) >= 3 and parts[0] in ("legacyPackages", "packages"):
        return ".".join(parts[2:])
    return key


def rank_candidates(query: str, results: dict[str, PackageInfo]) -> list[Candidate]:
    """Exact attribute matches first, then prefixes, then substrings."""
    candidates = [
        Candidate(attribute=attribute_name(key), info=info)
        for key, info in results.items()
    ]

    def score(candidate: Candidate) -> tuple[int, str]:
        attribute = candidate.attribute
        if attribute == query or candidate.info.pname == query:
            rank = 0
        elif attribute.startswith(query):
            rank = 1
        elif query in attribute:
            rank = 2
        else:
            rank = 3
        return rank, attribute

    return sorted(candidates, key=score)


def search_packages(query: str, runner: Runner = subprocess.run) -> list[Candidate]:
    command = ["nix", "search", "nixpkgs", query, "--json", *EXPERIMENTAL_FEATURES]
    logger.debug("Running %s", " ".join(command))
    try:
        completed = runner(command, capture_output=True, text=True, check=False)
    except OSError as exc:
        raise SearchError(f"Failed to run `nix search`: {exc}") from exc
    if completed.returncode != 0:
        details = (completed.stderr or "").strip() or "non-zero exit code"
        raise SearchError(f"Error while running `nix search`: {details}")
    try:
        results = _SEARCH_RESULTS.validate_json(completed.stdout or "{}")
    except ValidationError as exc:
        raise SearchError(f"JSON parsing error: {exc}") from exc
    return rank_candidates(query, results)


class NixOptionChecker:
    """Ask ``nix eval`` whether ``programs.<name>.enable`` is a NixOS option."""

    def __init__(
        self, runner: Runner = subprocess.run, *, home_manager: bool = False
    ):
        self.runner = runner
        self.home_manager = home_manager

    def expression(self, name: str) -> str:
        return (
            "let options = (import <nixpkgs/nixos> { configuration = { }; }).options; "
            f'in options.programs ? "{name}" && options.programs."{name}" ? enable'
        )

    def __call__(self, name: str) -> bool:
        if not OPTION_NAME_RE.match(name):
            return False
        if self.home_manager:
            logger.debug("Option lookup is not supported for Home Manager")
            return False
        command = [
            "nix",
            "eval",
            "--impure",
            "--json",
            "--expr",
            self.expression(name),
            *EXPERIMENTAL_FEATURES,
        ]
        try:
            completed = self.runner(
                command, capture_output=True, text=True, check=False
            )
        except OSError as exc:
            logger.warning("Could not run `nix eval`: %s", exc)
            return False
        if completed.returncode != 0:
            logger.warning(
                "`nix eval` failed, assuming no programs.%s option: %s",
                name,
                (completed.stderr or "").strip(),
            )
            return False
        return completed.stdout.strip() == "true"


__all__ = [
    "Candidate",
    "NixOptionChecker",
    "PackageInfo",
    "rank_candidates",
    "search_packages",
]
