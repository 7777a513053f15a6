"""
Model context: the explicit owner of every extent registry.

Entities join the extents of the context they were created in. A process
normally uses one context, reachable through get_context(); tests and hosts
that need isolation create their own and activate it with use_context().

Invariants:
    - One ExtentRegistry per entity type name per context
    - Registries are only cleared by clear() (reload / reset)
    - Entities evicted by clear() are deleted; adopt() moves live ones

How to change safely:
    - Keep counters in LinkStats additive; tests assert on them
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from ..config import Settings, get_settings
from .registry import ExtentRegistry

logger = logging.getLogger(__name__)

_current_context: ModelContext | None = None


@dataclass
class LinkStats:
    """Counters of raw slot mutations and deletes."""

    attached: int = 0
    detached: int = 0
    deleted: int = 0

    def reset(self) -> None:
        self.attached = 0
        self.detached = 0
        self.deleted = 0


class ModelContext:
    """Holds the extent registries of one object graph.

    Attributes:
        settings: Configuration used by entities and persistence
        stats: Link mutation counters

    Example:
        >>> ctx = ModelContext()
        >>> with use_context(ctx):
        ...     hall = Hall("Main", 100)
        >>> hall in ctx.extent(Hall)
        True
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.stats = LinkStats()
        self._extents: dict[str, ExtentRegistry] = {}

    def extent(self, entity_type: type | str) -> ExtentRegistry:
        """Get (creating on first use) the registry for a type.

        Args:
            entity_type: Entity class or its type name
        """
        name = entity_type if isinstance(entity_type, str) else entity_type.type_name
        registry = self._extents.get(name)
        if registry is None:
            registry = ExtentRegistry(name)
            self._extents[name] = registry
        return registry

    def extents(self) -> Iterator[ExtentRegistry]:
        """Iterate over all registries created so far."""
        yield from self._extents.values()

    def live_count(self) -> int:
        """Total number of live entities across all extents."""
        return sum(len(r) for r in self._extents.values())

    def clear(self) -> None:
        """Empty every registry and reset counters.

        Evicted entities are marked deleted, so handles kept from before a
        reload cannot be linked into the new graph.
        """
        for registry in self._extents.values():
            for entity in registry.all():
                entity._deleted = True
            registry.clear()
        self.stats.reset()
        logger.debug("Model context cleared")

    def adopt(self, other: ModelContext) -> int:
        """Move every live entity of another context into this one.

        Used by load: the graph is rebuilt in a scratch context, and only
        adopted once it is complete.

        Returns:
            Number of entities adopted
        """
        moved = 0
        for registry in list(other.extents()):
            target = self.extent(registry.type_name)
            for entity in registry.all():
                entity._context = self
                target.register(entity)
                moved += 1
            registry.clear()
        return moved


def get_context() -> ModelContext:
    """Get the active model context."""
    global _current_context
    if _current_context is None:
        _current_context = ModelContext()
    return _current_context


def set_context(context: ModelContext | None) -> ModelContext | None:
    """Replace the active context, returning the previous one."""
    global _current_context
    previous = _current_context
    _current_context = context
    return previous


@contextmanager
def use_context(context: ModelContext) -> Iterator[ModelContext]:
    """Activate a context for the duration of a with-block."""
    previous = set_context(context)
    try:
        yield context
    finally:
        set_context(previous)


def reset_context() -> None:
    """Drop the active context (for testing only)."""
    set_context(None)
