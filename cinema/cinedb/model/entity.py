"""
Entity base class for CineDB.

Every domain object derives from Entity. Concrete subclasses are
extent-bearing: constructing one validates its fields, checks its initial
links, registers it in its type's extent and then links it.

Example:
    >>> class Hall(Entity):
    ...     record_fields = ("name", "capacity")
    ...     def __init__(self, name, capacity, *, context=None):
    ...         super().__init__(context=context)
    ...         self.name = name
    ...         self.capacity = capacity
    ...         self._validate()
    ...         self._join()

Invariants:
    - A concrete entity is in its extent iff it is live
    - Abstract entity types never get an extent of their own
    - record_fields are the only scalar state that is persisted

How to change safely:
    - Add fields to record_fields together with _validate() rules
    - Never link before _join(); initial links go through _join()
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar

from ..errors import EntityDeletedError
from ..extent import ModelContext, get_context
from ..links import LinkEnd, check_link, delete_entity, link, register_entity_type

logger = logging.getLogger(__name__)


class Entity:
    """Base class of all model objects.

    Attributes:
        type_name: Type tag (the class name); also the extent name
        record_fields: Names of persisted scalar attributes
    """

    type_name: ClassVar[str] = "Entity"
    record_fields: ClassVar[tuple[str, ...]] = ()
    _abstract: ClassVar[bool] = True

    def __init_subclass__(cls, abstract: bool = False, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.type_name = cls.__name__
        cls._abstract = abstract
        register_entity_type(cls)

    def __init__(self, *, context: ModelContext | None = None) -> None:
        if self.is_abstract():
            raise TypeError(f"{type(self).__name__} is abstract")
        self._context = context or get_context()
        self._links: dict[str, Any] = {}
        self._deleted = False
        self._deleting = False

    @classmethod
    def is_abstract(cls) -> bool:
        return cls._abstract

    @classmethod
    def link_ends(cls) -> list[LinkEnd]:
        """All link ends of the type, inherited ones first."""
        ends: dict[str, LinkEnd] = {}
        for klass in reversed(cls.__mro__):
            for name, value in vars(klass).items():
                if isinstance(value, LinkEnd):
                    ends[name] = value
        return list(ends.values())

    @classmethod
    def all(cls, context: ModelContext | None = None) -> tuple[Any, ...]:
        """Live instances of this type in creation order."""
        return (context or get_context()).extent(cls).all()

    @property
    def context(self) -> ModelContext:
        return self._context

    @property
    def is_deleted(self) -> bool:
        return self._deleted

    @property
    def is_live(self) -> bool:
        return not self._deleted and self in self._context.extent(type(self))

    def delete(self) -> int:
        """Delete this entity, cascading along ownership edges.

        Returns:
            Number of entities removed (this one included)

        Raises:
            EntityDeletedError: If already deleted
        """
        return delete_entity(self)

    def _require_live(self) -> None:
        if self._deleted:
            raise EntityDeletedError(f"{self!r} was deleted", type_name=self.type_name)

    def _validate(self) -> None:
        """Check scalar fields; raise ValidationError on the first problem."""

    def _join(self, *planned: tuple[LinkEnd, Any] | tuple[LinkEnd, Any, Any]) -> None:
        """Check initial links, register in the extent, then link.

        Args:
            planned: (end, target) or (end, target, key) tuples; entries
                with a None target are skipped
        """
        links = [(p[0], p[1], p[2] if len(p) > 2 else None) for p in planned if p[1] is not None]
        for end, target, key in links:
            check_link(end, self, target, key=key)
        self._context.extent(type(self)).register(self)
        for end, target, key in links:
            link(end, self, target, key=key)
        logger.debug("Entity created", extra={"type_name": self.type_name, "entity": repr(self)})

    # Persistence hooks

    def to_record(self) -> dict[str, Any]:
        """Scalar state as a dictionary of record_fields."""
        return {name: getattr(self, name) for name in self.record_fields}

    @classmethod
    def from_record(cls, record: dict[str, Any], context: ModelContext) -> Any:
        """Rebuild an instance from scalar state without constructor effects.

        Field validators run; links are restored separately.

        Raises:
            ValidationError: If a restored value breaks a field rule
        """
        entity = cls.__new__(cls)
        Entity.__init__(entity, context=context)
        for name in cls.record_fields:
            setattr(entity, name, record.get(name))
        entity._validate()
        context.extent(cls).register(entity)
        return entity

    def _summary(self) -> str:
        return hex(id(self))

    def __repr__(self) -> str:
        state = ", deleted" if self._deleted else ""
        return f"{self.type_name}({self._summary()}{state})"
