"""
Cascading delete coordinator for CineDB.

delete_entity() resolves every relationship obligation of an entity before
it leaves its extent:

    1. Collect the entity and every part it owns, transitively
    2. Let each surviving counterpart's guard refuse the change
    3. Reflexive hierarchy: detach from the parent, orphan the children
    4. Composition: recursively delete every owned part
    5. Aggregation: detach the aggregated parts (they stay live)
    6. Many-to-many: remove the links, ignoring counterpart minimums
    7. Remaining links (optional, qualified, part-to-whole): detach
    8. Unregister from the extent

Minimum multiplicities are only enforced on user-initiated unlinks; a
counterpart leaving the model entirely is cleanup, not a user choice.
Guards are different: a counterpart that forbids changes (a paid order,
its tickets) blocks the delete.

Invariants:
    - A deleted entity has no links left on either side
    - Parts of a composition never outlive their whole
    - A refused delete changes nothing
    - Deleting an entity twice raises EntityDeletedError
"""

from __future__ import annotations

import logging
from typing import Any

from ..errors import EntityDeletedError
from .fields import LinkEnd, LinkKind
from .protocol import check_release, unlink

logger = logging.getLogger(__name__)

_DELETE_ORDER = {
    LinkKind.HIERARCHY: 0,
    LinkKind.COMPOSITION: 1,
    LinkKind.AGGREGATION: 2,
    LinkKind.MANY_TO_MANY: 3,
    LinkKind.QUALIFIED: 4,
    LinkKind.OPTIONAL: 4,
}


def delete_order(end: LinkEnd) -> tuple[int, int]:
    """Sort key placing ends in cascade order."""
    rank = _DELETE_ORDER[end.kind]
    if end.kind is LinkKind.COMPOSITION and not end.cascade:
        # part-to-whole end: plain detach, after the cascades
        rank = 4
    return rank, 0 if end.single else 1


def cascade_closure(entity: Any) -> list[Any]:
    """The entity plus every part a delete of it would remove."""
    doomed = {id(entity): entity}
    pending = [entity]
    while pending:
        current = pending.pop()
        for end in type(current).link_ends():
            if not end.cascade:
                continue
            for part in end.members(current):
                if id(part) not in doomed:
                    doomed[id(part)] = part
                    pending.append(part)
    return list(doomed.values())


def delete_entity(entity: Any) -> int:
    """Delete an entity, cascading along ownership edges.

    Args:
        entity: Live entity to delete

    Returns:
        Number of entities removed from their extents (entity included)

    Raises:
        EntityDeletedError: If the entity was already deleted
        StateError: If a surviving counterpart refuses to lose its link
    """
    if entity.is_deleted:
        raise EntityDeletedError(
            f"{entity!r} was already deleted",
            type_name=entity.type_name,
        )
    if entity._deleting:
        return 0

    _check_survivors(cascade_closure(entity))
    return _delete(entity)


def _check_survivors(doomed: list[Any]) -> None:
    doomed_ids = {id(e) for e in doomed}
    for entity in doomed:
        for end in type(entity).link_ends():
            for other in end.members(entity):
                if id(other) not in doomed_ids:
                    check_release(end.opposite, other, entity)


def _delete(entity: Any) -> int:
    entity._deleting = True
    removed = 1
    try:
        for end in sorted(type(entity).link_ends(), key=delete_order):
            for other in end.members(entity):
                if not end.contains(entity, other):
                    # already detached by a nested cascade
                    continue
                if end.cascade and not other._deleting:
                    removed += _delete(other)
                else:
                    unlink(end, entity, other, enforce_minimum=False, guarded=False)
    finally:
        entity._deleting = False

    context = entity._context
    context.extent(type(entity)).unregister(entity)
    entity._deleted = True
    context.stats.deleted += 1

    logger.info(
        "Entity deleted",
        extra={"type_name": entity.type_name, "entity": repr(entity), "cascaded": removed - 1},
    )
    return removed
