"""
Extent module for CineDB.

This module provides:
- ExtentRegistry: ordered set of live instances of one type
- ModelContext: owner of all registries of one object graph
- Context accessors (get_context, use_context, reset_context)
"""

from .context import (
    LinkStats,
    ModelContext,
    get_context,
    reset_context,
    set_context,
    use_context,
)
from .registry import ExtentRegistry

__all__ = [
    "ExtentRegistry",
    "LinkStats",
    "ModelContext",
    "get_context",
    "set_context",
    "use_context",
    "reset_context",
]
