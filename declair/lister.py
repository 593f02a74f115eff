from __future__ import annotations

from declair.locator import find_list_block


def list_packages(text: str) -> list[str]:
    """Return declared package names in file order, or [] without a list."""
    block = find_list_block(text)
    if block is None:
        return []
    return block.names


__all__ = ["list_packages"]
