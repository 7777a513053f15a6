"""
Relationship link protocol for CineDB.

Every association in the model is changed through the functions below.
Each call validates the complete change first, then updates the forward
slot and the reverse slot within the same call stack:

    link(Hall.equipment, hall, projector)
    # hall.equipment == (projector,) and projector.hall is hall

Algorithm (single-valued ends):
    1. If the slot already holds the target, return (no reverse calls)
    2. Detach the previous counterpart from both sides
    3. Attach the target and mirror the attachment on the reverse end

The mirror step calls the same attach routine on the opposite end; that
call observes the slot already matches and returns, so each logical change
touches each side exactly once.

Invariants:
    - For every populated slot the reverse slot holds a back-reference
    - Nothing is mutated unless every check passed
    - Minimum multiplicity is checked on user unlink only; the internal
      cleanup and load paths pass enforce_minimum=False / guarded=False

How to change safely:
    - Add new checks to check_link/_check_unlink, never to _attach/_detach
    - Keep _attach/_detach free of exceptions
"""

from __future__ import annotations

import logging
from typing import Any

from ..errors import (
    ArgumentError,
    CapacityError,
    DuplicateKeyError,
    EntityDeletedError,
    MultiplicityError,
    StateError,
)
from .fields import Keyed, LinkEnd, LinkKind

logger = logging.getLogger(__name__)


def link(
    end: LinkEnd,
    holder: Any,
    target: Any,
    key: Any = None,
    guarded: bool = True,
) -> bool:
    """Link target into holder's end and holder into target's reverse end.

    Args:
        end: Link end declared on the holder's type
        holder: Entity owning the forward slot
        target: Counterpart entity
        key: Qualifier (required for Keyed ends, ignored otherwise)
        guarded: Run entity guards and displaced-minimum checks

    Returns:
        True if the link was created, False if it already existed

    Raises:
        ArgumentError: target is None or of the wrong type, key missing
        EntityDeletedError: either entity was deleted
        StateError: exclusivity, self-link, cycle or guard violation
        MultiplicityError: an end would exceed its upper bound, or a
            displaced counterpart would fall below its minimum
        DuplicateKeyError: key already bound in a Keyed end
        CapacityError: Keyed end at capacity
    """
    if not check_link(end, holder, target, key=key, guarded=guarded):
        return False
    _attach(end, holder, target, key)
    return True


def unlink(
    end: LinkEnd,
    holder: Any,
    target: Any,
    enforce_minimum: bool = True,
    guarded: bool = True,
) -> bool:
    """Remove the link between holder and target on both ends.

    Args:
        end: Link end declared on the holder's type
        holder: Entity owning the forward slot
        target: Counterpart entity
        enforce_minimum: Reject removing the last member of a lower=1 end
        guarded: Run entity guards

    Returns:
        True if a link was removed, False if none existed

    Raises:
        ArgumentError: target is None or of the wrong type
        MultiplicityError: removal would violate a minimum multiplicity
    """
    _check_types(end, holder, target)
    if not end.contains(holder, target):
        return False
    opposite = end.opposite
    if guarded:
        _run_guard(end, holder, target, attach=False)
        _run_guard(opposite, target, holder, attach=False)
    if enforce_minimum:
        _check_minimum(end, holder)
        _check_minimum(opposite, target)
    _detach(end, holder, target)
    return True


def assign(end: LinkEnd, holder: Any, target: Any | None, guarded: bool = True) -> bool:
    """Set a single-valued end (setForward); None clears it.

    Returns:
        True if the slot changed
    """
    if not end.single:
        raise TypeError(f"assign() needs a single-valued end, got {end.label}")
    if target is None:
        current = end.view(holder)
        if current is None:
            return False
        return unlink(end, holder, current, guarded=guarded)
    return link(end, holder, target, guarded=guarded)


def check_release(end: LinkEnd, holder: Any, target: Any) -> None:
    """Run the guard holder applies to losing target from end.

    Used by delete to let surviving counterparts refuse the change before
    anything is detached.
    """
    _run_guard(end, holder, target, attach=False)


def check_link(
    end: LinkEnd,
    holder: Any,
    target: Any,
    key: Any = None,
    guarded: bool = True,
) -> bool:
    """Validate a link without changing anything.

    Returns:
        False if the link already exists (nothing to do), True otherwise

    Raises:
        See link()
    """
    _check_types(end, holder, target)
    _require_not_deleted(holder)
    _require_not_deleted(target)

    opposite = end.opposite
    if isinstance(end, Keyed):
        if not _check_key(end, holder, target, key):
            return False
    elif isinstance(opposite, Keyed):
        if not _check_key(opposite, target, holder, key):
            return False
    elif end.contains(holder, target):
        return False

    if end.kind is LinkKind.HIERARCHY:
        _check_acyclic(end, holder, target)
    elif holder is target:
        raise StateError(f"{_describe(holder)} cannot be linked to itself via {end.label}")

    if guarded:
        _run_guard(end, holder, target, attach=True)
        _run_guard(opposite, target, holder, attach=True)

    _check_room(end, holder)
    _check_room(opposite, target)
    _check_displacement(end, holder, target, guarded)
    _check_displacement(opposite, target, holder, guarded)
    return True


def _check_types(end: LinkEnd, holder: Any, target: Any) -> None:
    if target is None:
        raise ArgumentError(f"{end.label} target cannot be None", argument=end.name)
    if end.owner is None or not isinstance(holder, end.owner):
        raise ArgumentError(
            f"{_describe(holder)} does not declare {end.label}",
            argument="holder",
        )
    if not isinstance(target, end.target_type):
        raise ArgumentError(
            f"{end.label} expects {end.target}, got {type(target).__name__}",
            argument=end.name,
        )


def _check_key(end: Keyed, holder: Any, target: Any, key: Any) -> bool:
    if key is None:
        raise ArgumentError(f"{end.label} requires a key", argument="key")
    bound = end.get(holder, key)
    if bound is target:
        return False
    if bound is not None:
        raise DuplicateKeyError(f"Key {key!r} is already bound in {end.label}", key=key)
    if end.contains(holder, target):
        raise StateError(
            f"{_describe(target)} is already bound in {end.label} under key "
            f"{end.key_of(holder, target)!r}"
        )
    return True


def _require_not_deleted(entity: Any) -> None:
    if entity.is_deleted:
        raise EntityDeletedError(
            f"{_describe(entity)} was deleted",
            type_name=entity.type_name,
        )


def _check_acyclic(end: LinkEnd, holder: Any, target: Any) -> None:
    # Walk from the would-be parent up to the root; finding the child
    # there means the new edge closes a cycle.
    if end.single:
        up, parent, child = end, target, holder
    else:
        up, parent, child = end.opposite, holder, target
    if parent is child:
        raise StateError(f"{_describe(child)} cannot be its own {up.name}")
    node = parent
    while node is not None:
        if node is child:
            raise StateError(
                f"Linking {_describe(child)} under {_describe(parent)} via {end.label} "
                "would create a cycle"
            )
        node = up.view(node)


def _run_guard(end: LinkEnd, holder: Any, target: Any, attach: bool) -> None:
    if end.guard is not None:
        getattr(holder, end.guard)(target, attach)


def _check_room(end: LinkEnd, holder: Any) -> None:
    if end.single:
        return
    if isinstance(end, Keyed):
        limit = end.limit(holder)
        if limit is not None and end.count(holder) >= limit:
            raise CapacityError(
                f"{_describe(holder)} is at full capacity ({limit}) in {end.label}",
                capacity=limit,
            )
        return
    upper = getattr(end, "upper", None)
    if upper is not None and end.count(holder) >= upper:
        raise MultiplicityError(
            f"{end.label} allows at most {upper} {end.target} link(s)",
            end=end.label,
            bound=upper,
        )


def _check_displacement(end: LinkEnd, holder: Any, target: Any, guarded: bool) -> None:
    if not end.single:
        return
    current = end.view(holder)
    if current is None or current is target:
        return
    if end.exclusive:
        raise StateError(
            f"{_describe(holder)} is already attached to {_describe(current)} via "
            f"{end.label}; detach it first"
        )
    if guarded:
        opposite = end.opposite
        _run_guard(opposite, current, holder, attach=False)
        _check_minimum(opposite, current)


def _check_minimum(end: LinkEnd, holder: Any) -> None:
    if end.lower and end.count(holder) <= end.lower:
        raise MultiplicityError(
            f"{end.label} requires at least {end.lower} {end.target}; "
            f"cannot remove the last one from {_describe(holder)}",
            end=end.label,
            bound=end.lower,
        )


def _attach(end: LinkEnd, holder: Any, target: Any, key: Any) -> None:
    if end.contains(holder, target):
        return
    if end.single:
        current = end.view(holder)
        if current is not None:
            end.discard(holder, current)
            holder._context.stats.detached += 1
            _detach(end.opposite, current, holder)
    end.put(holder, target, key)
    holder._context.stats.attached += 1
    logger.debug(
        "Link attached",
        extra={"end": end.label, "holder": _describe(holder), "target": _describe(target)},
    )
    _attach(end.opposite, target, holder, key)


def _detach(end: LinkEnd, holder: Any, target: Any) -> None:
    if not end.contains(holder, target):
        return
    end.discard(holder, target)
    holder._context.stats.detached += 1
    logger.debug(
        "Link detached",
        extra={"end": end.label, "holder": _describe(holder), "target": _describe(target)},
    )
    _detach(end.opposite, target, holder)


def _describe(entity: Any) -> str:
    return repr(entity)
