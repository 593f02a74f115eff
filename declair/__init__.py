"""
declair

Add, remove and list packages in NixOS or Home Manager configuration files
while leaving every unrelated byte of the file untouched.
"""

from declair.lister import list_packages
from declair.orchestrator import (
    Action,
    MutationResult,
    Representation,
    apply_mutation,
    plan_mutation,
)

__all__ = [
    "Action",
    "MutationResult",
    "Representation",
    "apply_mutation",
    "list_packages",
    "plan_mutation",
]
