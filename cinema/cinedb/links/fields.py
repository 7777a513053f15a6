"""
Link descriptors for CineDB.

Associations are declared in entity class bodies, one descriptor per end,
each naming its counterpart end through ``back``:

    >>> class Hall(Entity):
    ...     equipment = Many("Equipment", back="hall", kind=LinkKind.AGGREGATION)
    >>> class Equipment(Entity):
    ...     hall = One("Hall", back="equipment", kind=LinkKind.AGGREGATION)

Descriptors are read-only views; the slot contents are only changed by the
link protocol (links.protocol), which always updates both ends.

Invariants:
    - Both ends of an association declare the same LinkKind
    - Slot storage lives in the holder's ``_links`` dict under the end name
    - One ends hold an entity or None, Many ends a list, Keyed ends a dict

How to change safely:
    - New storage shapes must implement members/contains/count/put/discard
    - Renaming an end changes the model fingerprint
"""

from __future__ import annotations

from enum import Enum
from typing import Any, ClassVar

from .registry import resolve_entity_type


class LinkKind(Enum):
    """Association categories."""

    OPTIONAL = "optional"
    COMPOSITION = "composition"
    AGGREGATION = "aggregation"
    HIERARCHY = "hierarchy"
    MANY_TO_MANY = "many_to_many"
    QUALIFIED = "qualified"


class LinkEnd:
    """One end of a bidirectional association.

    Attributes:
        target: Name of the counterpart entity type
        back: Attribute name of the counterpart end on the target type
        kind: Association category
        lower: Minimum number of counterparts (enforced on user unlink)
        guard: Name of a holder method called as guard(target, attach)
            before user-initiated link/unlink
        owner: Class the end is declared on (set by __set_name__)
        name: Attribute name (set by __set_name__)
    """

    single: ClassVar[bool] = False
    keyed: ClassVar[bool] = False

    def __init__(
        self,
        target: str,
        *,
        back: str,
        kind: LinkKind = LinkKind.OPTIONAL,
        lower: int = 0,
        guard: str | None = None,
    ) -> None:
        if lower < 0:
            raise ValueError(f"lower must be >= 0, got {lower}")
        self.target = target
        self.back = back
        self.kind = kind
        self.lower = lower
        self.guard = guard
        self.owner: type | None = None
        self.name = ""

    def __set_name__(self, owner: type, name: str) -> None:
        self.owner = owner
        self.name = name

    @property
    def label(self) -> str:
        owner = self.owner.__name__ if self.owner is not None else "?"
        return f"{owner}.{self.name}"

    @property
    def target_type(self) -> type:
        """Resolved counterpart class."""
        return resolve_entity_type(self.target)

    @property
    def opposite(self) -> LinkEnd:
        """Counterpart end declared on the target type."""
        end = getattr(self.target_type, self.back, None)
        if not isinstance(end, LinkEnd):
            raise TypeError(f"{self.label}: '{self.target}.{self.back}' is not a link end")
        return end

    @property
    def cascade(self) -> bool:
        return False

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return self.view(instance)

    def __set__(self, instance: Any, value: Any) -> None:
        raise AttributeError(f"{self.label} is read-only; use the entity's link methods")

    # Storage primitives, used only by the link protocol

    def _slot(self, instance: Any) -> Any:
        return instance._links.get(self.name)

    def view(self, instance: Any) -> Any:
        raise NotImplementedError

    def members(self, instance: Any) -> list[Any]:
        raise NotImplementedError

    def contains(self, instance: Any, target: Any) -> bool:
        return any(m is target for m in self.members(instance))

    def count(self, instance: Any) -> int:
        return len(self.members(instance))

    def put(self, instance: Any, target: Any, key: Any = None) -> None:
        raise NotImplementedError

    def discard(self, instance: Any, target: Any) -> None:
        raise NotImplementedError

    def describe(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "end": self.label,
            "target": self.target,
            "back": self.back,
            "kind": self.kind.value,
            "shape": type(self).__name__.lower(),
            "lower": self.lower,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.label} -> {self.target}.{self.back})"


class One(LinkEnd):
    """Single-valued end (0..1, or 1 with lower=1).

    Attributes:
        exclusive: Reject linking while attached to a different counterpart
            (parts of a composition, seats in a hall); the caller must
            detach first
    """

    single = True

    def __init__(
        self,
        target: str,
        *,
        back: str,
        kind: LinkKind = LinkKind.OPTIONAL,
        lower: int = 0,
        exclusive: bool = False,
        guard: str | None = None,
    ) -> None:
        if lower > 1:
            raise ValueError(f"One end cannot require {lower} counterparts")
        super().__init__(target, back=back, kind=kind, lower=lower, guard=guard)
        self.exclusive = exclusive

    def view(self, instance: Any) -> Any:
        return self._slot(instance)

    def members(self, instance: Any) -> list[Any]:
        current = self._slot(instance)
        return [] if current is None else [current]

    def contains(self, instance: Any, target: Any) -> bool:
        return self._slot(instance) is target

    def put(self, instance: Any, target: Any, key: Any = None) -> None:
        instance._links[self.name] = target

    def discard(self, instance: Any, target: Any) -> None:
        if self._slot(instance) is target:
            instance._links[self.name] = None

    def describe(self) -> dict[str, Any]:
        result = super().describe()
        if self.exclusive:
            result["exclusive"] = True
        return result


class Many(LinkEnd):
    """Collection end, ordered by link time.

    Attributes:
        upper: Maximum number of counterparts (None for unbounded)
        cascade: Delete the counterparts when the holder is deleted
            (the whole side of a composition)
    """

    def __init__(
        self,
        target: str,
        *,
        back: str,
        kind: LinkKind = LinkKind.OPTIONAL,
        lower: int = 0,
        upper: int | None = None,
        cascade: bool = False,
        guard: str | None = None,
    ) -> None:
        if upper is not None and upper < max(lower, 1):
            raise ValueError(f"upper must be >= max(lower, 1), got {upper}")
        super().__init__(target, back=back, kind=kind, lower=lower, guard=guard)
        self.upper = upper
        self._cascade = cascade

    @property
    def cascade(self) -> bool:
        return self._cascade

    def view(self, instance: Any) -> tuple[Any, ...]:
        return tuple(self.members(instance))

    def members(self, instance: Any) -> list[Any]:
        return list(self._slot(instance) or ())

    def count(self, instance: Any) -> int:
        return len(self._slot(instance) or ())

    def put(self, instance: Any, target: Any, key: Any = None) -> None:
        instance._links.setdefault(self.name, []).append(target)

    def discard(self, instance: Any, target: Any) -> None:
        slot = self._slot(instance) or []
        instance._links[self.name] = [m for m in slot if m is not target]

    def describe(self) -> dict[str, Any]:
        result = super().describe()
        if self.upper is not None:
            result["upper"] = self.upper
        if self._cascade:
            result["cascade"] = True
        return result


class Keyed(LinkEnd):
    """Qualified end: counterparts indexed by an explicit key.

    Attributes:
        capacity: Name of a holder attribute giving the maximum number of
            bound keys (None for unbounded)
    """

    keyed = True

    def __init__(
        self,
        target: str,
        *,
        back: str,
        capacity: str | None = None,
        guard: str | None = None,
    ) -> None:
        super().__init__(target, back=back, kind=LinkKind.QUALIFIED, guard=guard)
        self.capacity = capacity

    def limit(self, instance: Any) -> int | None:
        """Capacity of the holder's container."""
        if self.capacity is None:
            return None
        return getattr(instance, self.capacity)

    def view(self, instance: Any) -> tuple[Any, ...]:
        return tuple(self.members(instance))

    def items(self, instance: Any) -> list[tuple[Any, Any]]:
        """(key, counterpart) pairs in key order."""
        slot = self._slot(instance) or {}
        return sorted(slot.items(), key=lambda kv: kv[0])

    def get(self, instance: Any, key: Any) -> Any:
        return (self._slot(instance) or {}).get(key)

    def key_of(self, instance: Any, target: Any) -> Any:
        for key, member in (self._slot(instance) or {}).items():
            if member is target:
                return key
        return None

    def members(self, instance: Any) -> list[Any]:
        return [member for _, member in self.items(instance)]

    def count(self, instance: Any) -> int:
        return len(self._slot(instance) or {})

    def put(self, instance: Any, target: Any, key: Any = None) -> None:
        instance._links.setdefault(self.name, {})[key] = target

    def discard(self, instance: Any, target: Any) -> None:
        key = self.key_of(instance, target)
        if key is not None:
            del instance._links[self.name][key]

    def describe(self) -> dict[str, Any]:
        result = super().describe()
        if self.capacity is not None:
            result["capacity"] = self.capacity
        return result
