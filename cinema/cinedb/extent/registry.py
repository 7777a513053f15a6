"""
Extent registry for CineDB.

An extent is the complete set of live instances of one entity type. The
registry keeps them in insertion order so saved documents are stable.

Example:
    >>> extent = ExtentRegistry("Customer")
    >>> extent.register(alice)
    >>> alice in extent
    True
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any


class ExtentRegistry:
    """Ordered collection of the live instances of one entity type.

    All operations are total: registering twice or unregistering an
    absent entity is a no-op.

    Thread safety:
        None. The model assumes a single logical writer.
    """

    def __init__(self, type_name: str) -> None:
        self.type_name = type_name
        self._members: dict[int, Any] = {}

    def register(self, entity: Any) -> bool:
        """Append entity if not already present.

        Returns:
            True if the entity was added
        """
        key = id(entity)
        if key in self._members:
            return False
        self._members[key] = entity
        return True

    def unregister(self, entity: Any) -> bool:
        """Remove entity if present.

        Returns:
            True if the entity was removed
        """
        return self._members.pop(id(entity), None) is not None

    def all(self) -> tuple[Any, ...]:
        """Read-only snapshot in insertion order."""
        return tuple(self._members.values())

    def clear(self) -> None:
        """Empty the registry (reload / reset only)."""
        self._members.clear()

    def __contains__(self, entity: object) -> bool:
        return self._members.get(id(entity)) is entity

    def __iter__(self) -> Iterator[Any]:
        return iter(self.all())

    def __len__(self) -> int:
        return len(self._members)

    def __repr__(self) -> str:
        return f"ExtentRegistry({self.type_name!r}, size={len(self)})"
