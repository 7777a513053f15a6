"""
Association catalogue and model fingerprint.

The catalogue lists every association declared by the registered entity
types, one entry per pair of ends. The fingerprint is a SHA-256 over the
canonical JSON of the catalogue and each type's persisted fields; saved
documents carry it so a changed model refuses to load stale data.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from typing import Any

from .fields import LinkEnd, LinkKind
from .registry import entity_types


@dataclass(frozen=True)
class AssociationInfo:
    """One association as a pair of ends.

    Attributes:
        kind: Association category
        first: End declared on the alphabetically first label
        second: Its opposite end
    """

    kind: LinkKind
    first: LinkEnd
    second: LinkEnd

    @property
    def name(self) -> str:
        return f"{self.first.label}<->{self.second.label}"

    @property
    def reflexive(self) -> bool:
        return self.first.owner is self.second.owner

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "kind": self.kind.value,
            "ends": [self.first.describe(), self.second.describe()],
        }


def declared_ends(cls: type) -> list[LinkEnd]:
    """Link ends declared directly in a class body."""
    return [v for v in vars(cls).values() if isinstance(v, LinkEnd)]


def association_catalogue() -> list[AssociationInfo]:
    """List every declared association, sorted by name.

    Raises:
        TypeError: If an end's opposite is missing or inconsistent
    """
    seen: dict[tuple[str, str], AssociationInfo] = {}
    for cls in entity_types():
        for end in declared_ends(cls):
            opposite = end.opposite
            if opposite.opposite is not end:
                raise TypeError(f"{end.label} and {opposite.label} do not point at each other")
            if opposite.kind is not end.kind:
                raise TypeError(
                    f"{end.label} is {end.kind.value} but {opposite.label} is {opposite.kind.value}"
                )
            first, second = sorted((end, opposite), key=lambda e: e.label)
            key = (first.label, second.label)
            if key not in seen:
                seen[key] = AssociationInfo(kind=end.kind, first=first, second=second)
    return [seen[k] for k in sorted(seen)]


def catalogue_dict() -> dict[str, Any]:
    """Convert catalogue and persisted fields to a dictionary."""
    types = sorted(entity_types(), key=lambda c: c.type_name)
    return {
        "entity_types": [
            {
                "name": cls.type_name,
                "abstract": cls.is_abstract(),
                "fields": list(cls.record_fields),
            }
            for cls in types
        ],
        "associations": [a.to_dict() for a in association_catalogue()],
    }


def model_fingerprint() -> str:
    """Compute SHA-256 fingerprint of the model."""
    canonical = json.dumps(catalogue_dict(), sort_keys=True, separators=(",", ":"))
    hash_bytes = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
    return f"sha256:{hash_bytes}"
