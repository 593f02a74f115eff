"""Nix syntax check backed by tree-sitter.

Used only to refuse edits that would leave a file unparseable; locating and
editing constructs never goes through the parse tree.
"""

from __future__ import annotations

import tree_sitter_nix as ts_nix
from tree_sitter import Language, Node, Parser

# Initialize the tree-sitter parser only once for efficiency.
NIX_LANGUAGE = Language(ts_nix.language())
PARSER = Parser(NIX_LANGUAGE)


def parse_to_ast(source_code: bytes | str) -> Node:
    code_bytes = (
        source_code.encode("utf-8") if isinstance(source_code, str) else source_code
    )
    return PARSER.parse(code_bytes).root_node


def contains_error(source_code: bytes | str) -> bool:
    """Report whether tree-sitter found any error or missing node."""
    return parse_to_ast(source_code).has_error


def first_error_line(source_code: bytes | str) -> int | None:
    """1-based line of the first error node, for diagnostics."""
    root = parse_to_ast(source_code)
    if not root.has_error:
        return None
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_error or node.is_missing:
            return node.start_point[0] + 1
        stack.extend(reversed([child for child in node.children if child.has_error]))
    return root.start_point[0] + 1


__all__ = ["contains_error", "first_error_line", "parse_to_ast"]
