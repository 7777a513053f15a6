"""
Persisted value types for CineDB.

Enums and immutable value objects stored in entity fields register here so
the persistence codec can tag and rebuild them by name.
"""

from __future__ import annotations

from enum import Enum
from typing import TypeVar

T = TypeVar("T", bound=type)

VALUE_TYPES: dict[str, type] = {}


def persisted_value(cls: T) -> T:
    """Class decorator registering a value type for persistence."""
    existing = VALUE_TYPES.get(cls.__name__)
    if existing is not None and existing is not cls:
        raise ValueError(f"value type name '{cls.__name__}' already registered")
    VALUE_TYPES[cls.__name__] = cls
    return cls


@persisted_value
class SeatType(Enum):
    """Types of seats."""

    NORMAL = "normal"
    VIP = "vip"


@persisted_value
class EquipmentType(Enum):
    """Kinds of hall equipment."""

    AUDIO = "audio"
    PROJECTION = "projection"
    LIGHTING = "lighting"
    NETWORK = "network"
    STORAGE = "storage"


@persisted_value
class OrderKind(Enum):
    """Order discriminator: where the order was placed."""

    ONLINE = "online"
    BOX_OFFICE = "box_office"


@persisted_value
class OrderStatus(Enum):
    """Status of an order."""

    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"
