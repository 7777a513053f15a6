"""
CineDB - relationship-integrity and extent engine for a cinema domain model.

This package keeps a single-process object graph of cinema data (people,
halls, sessions, orders, tickets) consistent:
- Every live entity is listed in its type's extent registry
- Every association is updated on both ends by one generic link protocol
- Deletes cascade along ownership edges
- The whole graph is saved to and restored from one JSON document

Architecture:
    ┌──────────────┐     ┌──────────────────┐     ┌──────────────────┐
    │   Entities   │────▶│  Link protocol   │────▶│  Both slot ends  │
    │   (model)    │     │  (links)         │     │  updated once    │
    └──────┬───────┘     └──────────────────┘     └──────────────────┘
           │ register / unregister
           ▼
    ┌──────────────┐     ┌──────────────────┐     ┌──────────────────┐
    │ ModelContext │────▶│ Persistence      │────▶│ JSON document    │
    │ (extents)    │◀────│ gateway          │◀────│ ($id / $ref)     │
    └──────────────┘     └──────────────────┘     └──────────────────┘

Invariants:
    - An entity is in its extent iff it is live (constructed, not deleted)
    - For every populated slot the reverse slot holds a back-reference
    - All checks run before any mutation

How to change safely:
    - Declare new associations with the link descriptors, never by hand
    - Adding an association changes the model fingerprint; old documents
      will refuse to load until re-saved
"""

from ._version import __version__

__all__ = ["__version__"]
