"""
Entity type registry for CineDB.

Link ends name their counterpart type as a string so classes can reference
each other before both are defined. Entity classes register here when they
are created; ends resolve names lazily.
"""

from __future__ import annotations

from collections.abc import Iterator

from ..errors import ArgumentError

_entity_types: dict[str, type] = {}


class DuplicateRegistrationError(Exception):
    """Entity type with this name is already registered."""

    pass


def register_entity_type(cls: type) -> None:
    """Register an entity class under its type name.

    Raises:
        DuplicateRegistrationError: If another class already uses the name
    """
    name = cls.type_name
    existing = _entity_types.get(name)
    if existing is not None and existing is not cls:
        raise DuplicateRegistrationError(
            f"type name '{name}' already registered by {existing.__module__}.{existing.__qualname__}"
        )
    _entity_types[name] = cls


def resolve_entity_type(name: str) -> type:
    """Get entity class by type name.

    Raises:
        ArgumentError: If no class is registered under the name
    """
    try:
        return _entity_types[name]
    except KeyError:
        raise ArgumentError(f"Unknown entity type '{name}'", argument="type_name") from None


def entity_types() -> Iterator[type]:
    """Iterate over all registered entity classes."""
    yield from _entity_types.values()
