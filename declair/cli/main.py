"""
Command-line entrypoint: resolve the target file, then list, add or remove.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable

from prompt_toolkit import prompt as toolkit_prompt
from prompt_toolkit.completion import PathCompleter, WordCompleter
from prompt_toolkit.validation import Validator

from declair.cli.parser import build_parser
from declair.color import colorize_diff, colorize_nix, unified_diff
from declair.config import Settings, config_path, load_settings, save_settings
from declair.document import SourceDocument
from declair.edits import Status
from declair.exceptions import ConfigError, DeclairError
from declair.lister import list_packages
from declair.orchestrator import Action, Representation, apply_mutation
from declair.paths import expand_tilde, project_root, resolve_nix_config
from declair.rebuild import run_rebuild
from declair.search import Candidate, NixOptionChecker, search_packages

logger = logging.getLogger(__name__)

# Same call shape as prompt_toolkit.prompt(message, completer=..., validator=...)
Prompt = Callable[..., str]

_YES_NO = Validator.from_callable(
    lambda text: text.strip().lower() in ("", "y", "yes", "n", "no"),
    error_message="Please answer y or n",
    move_cursor_to_end=True,
)


def _confirm(prompt: Prompt, question: str) -> bool:
    answer = prompt(
        f"{question} [y/N] ",
        completer=WordCompleter(["yes", "no"]),
        validator=_YES_NO,
    )
    return answer.strip().lower() in ("y", "yes")


def _prompt_settings(prompt: Prompt) -> Settings:
    nix_path = prompt(
        "Enter the path to your NixOS configuration file (with 'with pkgs; ['): ",
        completer=PathCompleter(expanduser=True),
    )
    auto_rebuild = _confirm(prompt, "Automatically rebuild after changing packages?")
    home_manager = flake = False
    if auto_rebuild:
        home_manager = _confirm(prompt, "Use Home Manager as a NixOS configuration?")
        flake = _confirm(prompt, "Use a flake as a NixOS configuration?")
    return Settings(
        nix_path=nix_path.strip(),
        auto_rebuild=auto_rebuild,
        home_manager=home_manager,
        flake=flake,
    )


def read_or_create_settings(args: argparse.Namespace, prompt: Prompt) -> Settings:
    settings = load_settings()
    if settings is None:
        if args.config is not None:
            settings = Settings(nix_path=str(args.config))
        elif args.no_interactive:
            raise ConfigError(
                f"Config file {config_path()} not found and --no-interactive specified"
            )
        else:
            settings = _prompt_settings(prompt)
            save_settings(settings)
    if args.config is not None:
        settings = settings.model_copy(update={"nix_path": str(args.config)})
    return settings


def _target_file(settings: Settings) -> Path:
    expanded = expand_tilde(settings.nix_path)
    try:
        return resolve_nix_config(expanded)
    except FileNotFoundError as exc:
        raise ConfigError(f"Failed to use path `{expanded}`: {exc}") from exc


def _print_table(packages: list[str], source: str) -> None:
    header_pkg, header_src = "Package", "Source"
    w1 = max([len(header_pkg), *(len(package) for package in packages)])
    w2 = max(len(source), len(header_src))
    print(f"{header_pkg:<{w1}} | {header_src:<{w2}}")
    print(f"{'-' * w1}-+-{'-' * w2}")
    for package in packages:
        print(f"{package:<{w1}} | {source:<{w2}}")


def _list(nix_file: Path) -> int:
    packages = list_packages(SourceDocument.read(nix_file).text)
    if not packages:
        print(f"No packages found in `with pkgs; [...]` block of {nix_file}")
        return 0
    _print_table(packages, str(nix_file))
    return 0


def _choose(candidates: list[str], prompt: Prompt, title: str) -> str:
    for index, line in enumerate(candidates):
        print(f"{index:>3}) {line}")
    valid = [str(index) for index in range(len(candidates))]
    answer = prompt(
        f"{title} [0]: ",
        completer=WordCompleter(valid),
        validator=Validator.from_callable(
            lambda text: text.strip() in ("", *valid),
            error_message=f"Enter a number between 0 and {len(candidates) - 1}",
            move_cursor_to_end=True,
        ),
    )
    answer = answer.strip() or "0"
    try:
        return candidates[int(answer)]
    except (ValueError, IndexError):
        raise ValueError(f"Invalid selection: {answer}") from None


def _select_package(
    args: argparse.Namespace, action: Action, nix_file: Path, prompt: Prompt
) -> str | None:
    if args.no_interactive:
        if not args.package:
            raise ConfigError("No package provided and --no-interactive specified")
        return args.package

    if action is Action.REMOVE:
        if args.package:
            return args.package
        installed = list_packages(SourceDocument.read(nix_file).text)
        if not installed:
            print("No packages to remove")
            return None
        return _choose(installed, prompt, "Select a package to remove")

    query = args.package or prompt("Search for a package: ").strip()
    candidates: list[Candidate] = search_packages(query)
    if not candidates:
        print("No results found")
        return None
    by_line = {candidate.describe(): candidate for candidate in candidates}
    return by_line[_choose(list(by_line), prompt, "Select a package")].attribute


def _report(
    status: Status,
    name: str,
    representation: Representation,
    nix_file: Path,
    *,
    dry_run: bool = False,
) -> None:
    target = name if representation is Representation.LIST else f"programs.{name}"
    match status:
        case Status.INSERTED if dry_run:
            print(f"Would add `{target}` to `{nix_file}`")
        case Status.INSERTED:
            print(f"Added `{target}` to `{nix_file}`")
        case Status.ALREADY_PRESENT:
            print(f"`{target}` is already in `{nix_file}`")
        case Status.REMOVED if dry_run:
            print(f"Would remove `{target}` from `{nix_file}`")
        case Status.REMOVED:
            print(f"Removed `{target}` from `{nix_file}`")
        case Status.NOT_PRESENT:
            print(f"`{target}` was not found in `{nix_file}`")


def _mutate(
    args: argparse.Namespace,
    action: Action,
    settings: Settings,
    nix_file: Path,
    prompt: Prompt,
) -> int:
    name = _select_package(args, action, nix_file, prompt)
    if name is None:
        return 0

    representation = Representation.OPTION if args.option else Representation.LIST
    option_available = False
    if args.option:
        option_available = args.skip_option_check or NixOptionChecker(
            home_manager=settings.home_manager
        )(name)
        if not option_available:
            logger.warning("No programs.%s option found, using the package list", name)

    original = SourceDocument.read(nix_file).text
    result = apply_mutation(
        nix_file,
        name,
        action,
        representation=representation,
        option_available=option_available,
        dry_run=args.dry_run,
    )
    _report(
        result.status, name, result.representation, nix_file, dry_run=args.dry_run
    )

    if args.dry_run:
        diff = unified_diff(original, result.text, filename=nix_file.name)
        print(colorize_diff(diff))
        return 0
    if args.print_result:
        print(colorize_nix(result.text))
    if result.backup is not None:
        logger.info("Backup written to %s", result.backup.backup)

    if not result.changed:
        return 0
    if settings.auto_rebuild and not args.no_rebuild:
        print("Rebuilding with the new configuration...")
        run_rebuild(
            project_root(nix_file),
            home_manager=settings.home_manager,
            flake=settings.flake,
        )
    elif settings.auto_rebuild:
        print("Skipping rebuild due to --no-rebuild flag")
    print("Done")
    return 0


def _search(query: str) -> int:
    candidates = search_packages(query)
    if not candidates:
        print("No results found")
        return 0
    for candidate in candidates:
        print(candidate.describe())
    return 0


def main(args=None, prompt: Prompt = toolkit_prompt) -> int:
    """Return CLI exit codes so automation can distinguish success from failure."""
    parser = build_parser()
    args = parser.parse_args(args)
    if args.command is None:
        parser.print_help(sys.stderr)
        return 2

    logging.basicConfig(
        level=getattr(logging, args.log_level), format="%(levelname)s: %(message)s"
    )

    try:
        if args.command == "search":
            return _search(args.query)
        settings = read_or_create_settings(args, prompt)
        nix_file = _target_file(settings)
        match args.command:
            case "list":
                return _list(nix_file)
            case "add":
                return _mutate(args, Action.INSERT, settings, nix_file, prompt)
            case "rm" | "remove":
                return _mutate(args, Action.REMOVE, settings, nix_file, prompt)
            case _:
                parser.print_help(sys.stderr)
                return 2
    except (DeclairError, ValueError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except (KeyboardInterrupt, EOFError):
        print("\nInput interrupted. Exiting.", file=sys.stderr)
        return 130
