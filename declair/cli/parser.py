from __future__ import annotations

import argparse
from pathlib import Path

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def with_common_arguments(parser: argparse.ArgumentParser) -> argparse.ArgumentParser:
    """Options shared by every subcommand so they may follow the command name."""
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        metavar="FILE",
        help="NixOS or Home Manager configuration file or directory",
    )
    parser.add_argument(
        "--no-interactive",
        action="store_true",
        help="never prompt; fail if information is missing",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default="WARNING",
        help="set the logging level (default: WARNING)",
    )
    return parser


def with_mutation_arguments(
    parser: argparse.ArgumentParser,
) -> argparse.ArgumentParser:
    parser.add_argument(
        "package",
        nargs="?",
        help="package name, or a search query in interactive mode",
    )
    parser.add_argument(
        "--no-rebuild",
        action="store_true",
        help="skip the rebuild even when auto_rebuild is enabled",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="print the diff instead of writing the file",
    )
    parser.add_argument(
        "--print",
        dest="print_result",
        action="store_true",
        help="print the resulting file",
    )
    parser.add_argument(
        "--option",
        action="store_true",
        help="prefer `programs.<name>.enable = true;` over the package list",
    )
    parser.add_argument(
        "--skip-option-check",
        action="store_true",
        help="assume the programs.<name> option exists instead of asking nix",
    )
    return parser


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="declair",
        description=(
            "Search, add and remove NixOS or Home Manager packages, "
            "keeping the configuration file's formatting intact."
        ),
    )
    subparsers = parser.add_subparsers(dest="command")

    with_mutation_arguments(
        with_common_arguments(
            subparsers.add_parser("add", help="add a package to the configuration")
        )
    )
    with_mutation_arguments(
        with_common_arguments(
            subparsers.add_parser(
                "rm", aliases=["remove"], help="remove a package from the configuration"
            )
        )
    )
    with_common_arguments(
        subparsers.add_parser("list", help="list configured packages")
    )
    search = with_common_arguments(
        subparsers.add_parser("search", help="search nixpkgs without editing")
    )
    search.add_argument("query")
    return parser


__all__ = ["build_parser", "with_common_arguments", "with_mutation_arguments"]
