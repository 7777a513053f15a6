"""
Value codec for extent documents.

JSON has no decimals, dates, enums or value objects, so those are written
as single-key tagged objects:

    Decimal("12.50")           -> {"$decimal": "12.50"}
    date(2024, 5, 1)           -> {"$date": "2024-05-01"}
    datetime(2024, 5, 1, 18)   -> {"$datetime": "2024-05-01T18:00:00"}
    timedelta(minutes=90)      -> {"$seconds": 5400.0}
    SeatType.VIP               -> {"$enum": "SeatType", "value": "vip"}
    FullTimeContract(...)      -> {"$value": "FullTimeContract", "fields": {...}}

Entity references are {"$ref": id}; see gateway.

Invariants:
    - decode_value(encode_value(v)) == v for every supported value
    - Plain JSON scalars, lists and None pass through unchanged

How to change safely:
    - New tags must not collide with "$id" or "$ref"
    - Never rename an existing tag; saved documents use it
"""

from __future__ import annotations

import dataclasses
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from ..errors import PersistenceError
from ..model.values import VALUE_TYPES

REF = "$ref"
ID = "$id"


def encode_value(value: Any) -> Any:
    """Convert a field value to its JSON form.

    Raises:
        PersistenceError: If the value type is not supported
    """
    if isinstance(value, Enum):
        return _encode_enum(value)
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Decimal):
        return {"$decimal": str(value)}
    if isinstance(value, datetime):
        return {"$datetime": value.isoformat()}
    if isinstance(value, date):
        return {"$date": value.isoformat()}
    if isinstance(value, timedelta):
        return {"$seconds": value.total_seconds()}
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        name = type(value).__name__
        if VALUE_TYPES.get(name) is not type(value):
            raise PersistenceError(f"Value type {name} is not registered for persistence")
        return {
            "$value": name,
            "fields": {f.name: encode_value(getattr(value, f.name)) for f in dataclasses.fields(value)},
        }
    if isinstance(value, (list, tuple)):
        return [encode_value(item) for item in value]
    raise PersistenceError(f"Cannot persist value of type {type(value).__name__}")


def _encode_enum(value: Enum) -> dict[str, Any]:
    name = type(value).__name__
    if VALUE_TYPES.get(name) is not type(value):
        raise PersistenceError(f"Enum {name} is not registered for persistence")
    return {"$enum": name, "value": value.value}


def decode_value(data: Any) -> Any:
    """Rebuild a field value from its JSON form.

    Raises:
        PersistenceError: On an unknown tag or malformed payload
    """
    if isinstance(data, list):
        return [decode_value(item) for item in data]
    if not isinstance(data, dict):
        return data
    try:
        if "$decimal" in data:
            return Decimal(data["$decimal"])
        if "$datetime" in data:
            return datetime.fromisoformat(data["$datetime"])
        if "$date" in data:
            return date.fromisoformat(data["$date"])
        if "$seconds" in data:
            return timedelta(seconds=data["$seconds"])
        if "$enum" in data:
            return _value_type(data["$enum"])(data["value"])
        if "$value" in data:
            cls = _value_type(data["$value"])
            fields = {name: decode_value(raw) for name, raw in data["fields"].items()}
            return cls(**fields)
    except PersistenceError:
        raise
    except (KeyError, TypeError, ValueError, InvalidOperation) as e:
        raise PersistenceError(f"Malformed tagged value {data!r}: {e}") from e
    raise PersistenceError(f"Unknown value encoding {data!r}")


def _value_type(name: str) -> type:
    cls = VALUE_TYPES.get(name)
    if cls is None:
        raise PersistenceError(f"Unknown value type '{name}'")
    return cls


def encode_ref(ids: dict[int, int], entity: Any) -> dict[str, int]:
    """Reference to an entity by its document id.

    Args:
        ids: Mapping from id(entity) to document id
    """
    try:
        return {REF: ids[id(entity)]}
    except KeyError:
        raise PersistenceError(f"{entity!r} is linked but not in any extent") from None


def decode_ref(data: Any) -> int:
    """Document id from a {"$ref": id} object."""
    if not isinstance(data, dict) or not isinstance(data.get(REF), int) or isinstance(data.get(REF), bool):
        raise PersistenceError(f"Expected a reference, got {data!r}")
    return data[REF]
