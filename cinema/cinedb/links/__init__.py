"""
Links module for CineDB - bidirectional associations.

This module provides:
- Link descriptors (One, Many, Keyed) and LinkKind
- The generic link protocol (link, unlink, assign, check_link)
- The cascading delete coordinator (delete_entity)
- The association catalogue and model fingerprint
- The symmetry checker (symmetry_problems)

Invariants:
    - Every association is mutated through the protocol only
    - Both ends are updated in the same call; checks precede mutation
    - Entity types resolve by name, so ends may reference later classes

How to change safely:
    - Declare both ends of a new association with the same LinkKind
    - Run association_catalogue() in tests; it rejects mismatched ends
"""

from .cascade import delete_entity
from .catalogue import (
    AssociationInfo,
    association_catalogue,
    catalogue_dict,
    model_fingerprint,
)
from .fields import Keyed, LinkEnd, LinkKind, Many, One
from .integrity import symmetry_problems
from .protocol import assign, check_link, link, unlink
from .registry import (
    DuplicateRegistrationError,
    entity_types,
    register_entity_type,
    resolve_entity_type,
)

__all__ = [
    # Descriptors
    "LinkEnd",
    "LinkKind",
    "One",
    "Many",
    "Keyed",
    # Protocol
    "link",
    "unlink",
    "assign",
    "check_link",
    # Cascade
    "delete_entity",
    # Catalogue
    "AssociationInfo",
    "association_catalogue",
    "catalogue_dict",
    "model_fingerprint",
    # Integrity
    "symmetry_problems",
    # Type registry
    "DuplicateRegistrationError",
    "register_entity_type",
    "resolve_entity_type",
    "entity_types",
]
