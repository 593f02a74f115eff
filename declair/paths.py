from __future__ import annotations

import os
from pathlib import Path

CONFIG_CANDIDATES = (
    "configuration.nix",
    "flake.nix",
    "default.nix",
    "home.nix",
    "pkgs.nix",
)


def expand_tilde(path: str) -> Path:
    return Path(os.path.expanduser(path.strip()))


def resolve_nix_config(path: Path) -> Path:
    """Turn a file or directory argument into the Nix file to edit."""
    if path.is_file():
        return path
    if path.is_dir():
        for candidate in CONFIG_CANDIDATES:
            found = path / candidate
            if found.is_file():
                return found
        raise FileNotFoundError(
            f"The directory `{path}` does not contain any of the expected files: "
            + ", ".join(CONFIG_CANDIDATES)
        )
    raise FileNotFoundError(f"File or directory `{path}` not found.")


def project_root(path: Path) -> Path:
    """Enclosing git work tree, or the directory holding ``path``."""
    start = path if path.is_dir() else path.parent
    start = start.resolve()
    for directory in (start, *start.parents):
        if (directory / ".git").exists():
            return directory
    return start


__all__ = ["expand_tilde", "project_root", "resolve_nix_config"]
