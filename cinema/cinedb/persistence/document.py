"""
Extent document envelope.

The envelope is validated with pydantic before any registry is touched:

    {
      "format": "cinedb.extents",
      "version": 1,
      "fingerprint": "sha256:...",
      "saved_at": "2024-05-01T18:00:00",
      "extents": {"Hall": [{"$id": 1, "name": "Main", ...}], ...}
    }

Record contents (fields and link ends) are checked by the gateway, which
knows the entity types.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .codec import ID

DOCUMENT_FORMAT = "cinedb.extents"
DOCUMENT_VERSION = 1


class ExtentDocument(BaseModel):
    """Saved model: one record list per concrete entity type."""

    model_config = ConfigDict(extra="forbid")

    format: Literal["cinedb.extents"] = DOCUMENT_FORMAT
    version: Literal[1] = DOCUMENT_VERSION
    fingerprint: str = Field(pattern=r"^sha256:[0-9a-f]{64}$")
    saved_at: datetime
    extents: dict[str, list[dict[str, Any]]] = Field(default_factory=dict)

    @field_validator("extents")
    @classmethod
    def _check_record_ids(cls, extents: dict[str, list[dict[str, Any]]]) -> dict[str, list[dict[str, Any]]]:
        seen: set[int] = set()
        for type_name, records in extents.items():
            for record in records:
                record_id = record.get(ID)
                if not isinstance(record_id, int) or isinstance(record_id, bool):
                    raise ValueError(f"{type_name} record without an integer {ID}")
                if record_id in seen:
                    raise ValueError(f"duplicate {ID} {record_id}")
                seen.add(record_id)
        return extents

    def counts(self) -> dict[str, int]:
        """Number of records per entity type."""
        return {name: len(records) for name, records in sorted(self.extents.items())}

    def record_count(self) -> int:
        return sum(len(records) for records in self.extents.values())
