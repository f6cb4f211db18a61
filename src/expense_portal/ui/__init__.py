"""
Generic UI state primitives.
"""

from .primitives import (
    RegionTree,
    Disclosure,
    Dialog,
    DropdownMenu,
    MenuItem,
    Popover,
)

__all__ = [
    "RegionTree",
    "Disclosure",
    "Dialog",
    "DropdownMenu",
    "MenuItem",
    "Popover",
]
