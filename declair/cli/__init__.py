"""CLI package for the declair entrypoints."""

from declair.cli.main import main
from declair.cli.parser import build_parser, with_common_arguments

__all__ = ["build_parser", "main", "with_common_arguments"]
