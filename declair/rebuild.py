from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from declair.exceptions import RebuildError
from declair.search import Runner

logger = logging.getLogger(__name__)


def rebuild_command(*, home_manager: bool, flake: bool) -> list[str]:
    """Switch command for the system (``nixos-rebuild``) or user environment."""
    if home_manager:
        command = ["home-manager", "switch"]
    else:
        command = ["sudo", "nixos-rebuild", "switch"]
    if flake:
        command += ["--flake", "."]
    return command


def run_rebuild(
    cwd: Path,
    *,
    home_manager: bool,
    flake: bool,
    runner: Runner = subprocess.run,
) -> None:
    command = rebuild_command(home_manager=home_manager, flake=flake)
    logger.info("Running %s in %s", " ".join(command), cwd)
    try:
        completed = runner(command, cwd=cwd, check=False)
    except OSError as exc:
        raise RebuildError(f"Failed to run `{command[0]}`: {exc}") from exc
    if completed.returncode != 0:
        raise RebuildError(
            f"`{' '.join(command)}` exited with status {completed.returncode}"
        )


__all__ = ["rebuild_command", "run_rebuild"]
