"""
Link integrity checks.

symmetry_problems() walks every live entity of a context and reports each
slot whose counterpart does not hold the back-reference, or that points at
an entity outside the context's extents. An empty list means the central
invariant holds.
"""

from __future__ import annotations

from typing import Any

from .registry import entity_types


def symmetry_problems(context: Any) -> list[str]:
    """List broken links in a context (empty if consistent)."""
    problems: list[str] = []
    for cls in sorted(entity_types(), key=lambda c: c.type_name):
        if cls.is_abstract():
            continue
        for entity in context.extent(cls):
            for end in cls.link_ends():
                opposite = end.opposite
                for member in end.members(entity):
                    if member not in context.extent(type(member)):
                        problems.append(f"{end.label} of {entity!r} points at {member!r}, which is not live")
                    elif not opposite.contains(member, entity):
                        problems.append(
                            f"{end.label} of {entity!r} holds {member!r}, "
                            f"but {opposite.label} does not hold it back"
                        )
    return problems
