"""Sidecar copies taken before a configuration file is rewritten."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from declair.exceptions import BackupError

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".declair.bak"


@dataclass(frozen=True)
class BackupRecord:
    original: Path
    backup: Path


def backup_path(path: Path) -> Path:
    """``configuration.nix`` is backed up as ``configuration.declair.bak``."""
    return path.with_name(f"{path.stem}{BACKUP_SUFFIX}")


def create_backup(path: Path) -> BackupRecord:
    target = backup_path(path)
    try:
        shutil.copyfile(path, target)
    except OSError as exc:
        raise BackupError(f"Failed to back up {path} to {target}: {exc}") from exc
    logger.info("Backed up %s to %s", path, target)
    return BackupRecord(original=path, backup=target)


__all__ = ["BACKUP_SUFFIX", "BackupRecord", "backup_path", "create_backup"]
