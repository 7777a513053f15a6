"""
Error types for CineDB.

This module defines all exception types raised by the model:
- CinemaError: Base exception
- ArgumentError: Null, missing or wrongly typed reference
- ValidationError: Scalar field rule violated
- StateError: Operation not allowed in the current object state
- MultiplicityError, DuplicateKeyError, CapacityError,
  DiscriminatorError, EntityDeletedError: specific state errors
- PersistenceError: Document cannot be written or read back

Invariants:
    - All errors inherit from CinemaError
    - Errors include context for debugging
    - Not-found conditions are never errors
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class CinemaError(Exception):
    """Base exception for all CineDB errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "CINEDB_ERROR"
        self.details = details or {}


class ArgumentError(CinemaError):
    """A required reference is missing or has the wrong type.

    Raised when:
    - None is passed where an entity is required
    - An entity of the wrong type is linked
    - A qualifier key is missing
    """

    def __init__(self, message: str, argument: Optional[str] = None) -> None:
        super().__init__(message, code="ARGUMENT_ERROR", details={"argument": argument})
        self.argument = argument


class ValidationError(CinemaError):
    """A scalar field value failed validation.

    Raised by the field validators; the link protocol never interprets it,
    it only propagates.
    """

    def __init__(self, message: str, field_name: Optional[str] = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR", details={"field": field_name})
        self.field_name = field_name


class StateError(CinemaError):
    """Operation is not allowed in the current state.

    Raised when:
    - A part is attached elsewhere and must be detached first
    - An entity is not linked where a link is assumed
    - An order is no longer editable
    - A hierarchy link would create a cycle
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=code or "STATE_ERROR", details=details)


class MultiplicityError(StateError):
    """Minimum or maximum multiplicity of an association end violated."""

    def __init__(self, message: str, end: str, bound: int) -> None:
        super().__init__(
            message,
            code="MULTIPLICITY_ERROR",
            details={"end": end, "bound": bound},
        )
        self.end = end
        self.bound = bound


class DuplicateKeyError(StateError):
    """Qualifier key already bound in a keyed container."""

    def __init__(self, message: str, key: Any) -> None:
        super().__init__(message, code="DUPLICATE_KEY", details={"key": key})
        self.key = key


class CapacityError(StateError):
    """Keyed container is at its declared capacity."""

    def __init__(self, message: str, capacity: int) -> None:
        super().__init__(message, code="CAPACITY_EXCEEDED", details={"capacity": capacity})
        self.capacity = capacity


class DiscriminatorError(StateError):
    """Slot forbidden or required by the entity's discriminator."""

    def __init__(self, message: str, discriminator: Optional[str] = None) -> None:
        super().__init__(
            message,
            code="DISCRIMINATOR_ERROR",
            details={"discriminator": discriminator},
        )
        self.discriminator = discriminator


class EntityDeletedError(StateError):
    """Entity was already deleted and left its extent."""

    def __init__(self, message: str, type_name: Optional[str] = None) -> None:
        super().__init__(message, code="ENTITY_DELETED", details={"type_name": type_name})
        self.type_name = type_name


class PersistenceError(CinemaError):
    """Saved document cannot be written, parsed or re-linked.

    Raised when:
    - Document envelope is malformed
    - Model fingerprint does not match the running model
    - A reference points at an id that was never defined
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code="PERSISTENCE_ERROR", details={"path": path, **(details or {})})
        self.path = path
