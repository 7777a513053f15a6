"""
Persistence gateway for CineDB.

Saves every extent of a ModelContext to one JSON document and restores the
whole object graph from it:

    gateway = PersistenceGateway(context)
    gateway.save("data/cinema-extents.json")
    gateway.load("data/cinema-extents.json")

Save:
    1. Number every live entity (document ids, in extent order)
    2. Encode fields with the codec and link ends as {"$ref": id}
    3. Write to a temp file next to the target, then os.replace()

Load:
    1. Read (gunzip if needed) and validate the envelope with pydantic
    2. Check the model fingerprint
    3. Rebuild entities with from_record() in a scratch context
    4. Re-link each association from one end through the link protocol
       (guards off), then check the other end matches the document
    5. Clear the target context and adopt the rebuilt graph

Invariants:
    - Every live entity is written once; all other occurrences are refs
    - A failed load leaves the in-memory model untouched
    - A missing document is not an error: load() returns False
    - A Many end's order survives a round trip when it is the end the
      association is rebuilt from (see _primary_end)

How to change safely:
    - Changing entity fields or ends changes the fingerprint; old documents
      are then rejected, not half-loaded
    - Keep writes atomic: never open the target path for writing directly
"""

from __future__ import annotations

import contextlib
import gzip
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any

import pydantic

from ..config import Settings
from ..errors import CinemaError, PersistenceError
from ..extent import ModelContext, get_context
from ..links import (
    AssociationInfo,
    Keyed,
    LinkEnd,
    association_catalogue,
    entity_types,
    link,
    model_fingerprint,
    resolve_entity_type,
)
from ..model import Entity
from .codec import ID, REF, decode_ref, decode_value, encode_ref, encode_value
from .document import ExtentDocument

logger = logging.getLogger(__name__)

_GZIP_MAGIC = b"\x1f\x8b"


class PersistenceGateway:
    """Saves and restores all extents of one model context.

    Attributes:
        context: Model whose extents are saved and replaced on load
        settings: Provides the default document path
    """

    def __init__(self, context: ModelContext | None = None, settings: Settings | None = None) -> None:
        self.context = context or get_context()
        self.settings = settings or self.context.settings

    def resolve_path(self, path: str | os.PathLike[str] | None = None) -> Path:
        return Path(path) if path is not None else self.settings.document_path

    # Save

    def snapshot(self) -> ExtentDocument:
        """Encode the current model as a document (nothing is written)."""
        types = _concrete_types()
        ids: dict[int, int] = {}
        for cls in types:
            for entity in self.context.extent(cls):
                ids[id(entity)] = len(ids) + 1

        extents = {
            cls.type_name: [_encode_entity(entity, ids) for entity in self.context.extent(cls)]
            for cls in types
        }
        return ExtentDocument(
            fingerprint=model_fingerprint(),
            saved_at=datetime.now(),
            extents=extents,
        )

    def save(self, path: str | os.PathLike[str] | None = None) -> int:
        """Write every extent to path, replacing it.

        Args:
            path: Target file (default: settings.document_path); a ".gz"
                suffix gzip-compresses the document

        Returns:
            Number of entities written

        Raises:
            PersistenceError: If the model cannot be encoded or written
        """
        target = self.resolve_path(path)
        document = self.snapshot()
        payload = document.model_dump_json(indent=2).encode("utf-8")
        if target.suffix == ".gz":
            payload = gzip.compress(payload)

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            _atomic_write(target, payload)
        except OSError as e:
            raise PersistenceError(f"Cannot write {target}: {e}", path=str(target)) from e

        count = document.record_count()
        logger.info(
            "Extents saved",
            extra={"path": str(target), "entities": count, "bytes": len(payload)},
        )
        return count

    # Load

    def read(self, path: str | os.PathLike[str] | None = None) -> ExtentDocument | None:
        """Read and validate a document without touching the model.

        Returns:
            The document, or None if the file does not exist

        Raises:
            PersistenceError: If the file is unreadable or malformed
        """
        target = self.resolve_path(path)
        if not target.exists():
            return None
        try:
            raw = target.read_bytes()
            if raw[:2] == _GZIP_MAGIC:
                raw = gzip.decompress(raw)
        except (OSError, EOFError) as e:
            raise PersistenceError(f"Cannot read {target}: {e}", path=str(target)) from e
        try:
            return ExtentDocument.model_validate_json(raw)
        except pydantic.ValidationError as e:
            raise PersistenceError(
                f"Malformed extent document {target}: {e.error_count()} error(s)",
                path=str(target),
                details={"errors": e.errors(include_url=False, include_context=False)},
            ) from e

    def load(self, path: str | os.PathLike[str] | None = None) -> bool:
        """Replace the model with the document's contents.

        Returns:
            False if the file does not exist (model unchanged), True otherwise

        Raises:
            PersistenceError: Malformed document, model fingerprint mismatch,
                unknown entity type, invalid record or dangling reference;
                the model is left unchanged
        """
        target = self.resolve_path(path)
        document = self.read(target)
        if document is None:
            logger.info("No extent document to load", extra={"path": str(target)})
            return False

        expected = model_fingerprint()
        if document.fingerprint != expected:
            raise PersistenceError(
                "Extent document was saved by a different model",
                path=str(target),
                details={"expected": expected, "found": document.fingerprint},
            )

        scratch = ModelContext(self.settings)
        try:
            rebuild(document, scratch)
        except PersistenceError as e:
            if e.path is None:
                e.path = e.details["path"] = str(target)
            raise

        self.context.clear()
        count = self.context.adopt(scratch)
        logger.info("Extents loaded", extra={"path": str(target), "entities": count})
        return True


def rebuild(document: ExtentDocument, context: ModelContext) -> dict[int, Any]:
    """Recreate the document's entities and links inside context.

    Returns:
        Mapping from document id to entity

    Raises:
        PersistenceError: On any inconsistency in the document
    """
    entities: dict[int, Any] = {}
    records: list[tuple[dict[str, Any], Any]] = []

    for type_name, type_records in document.extents.items():
        cls = _concrete_type(type_name)
        for record in type_records:
            entity = _decode_entity(cls, record, context)
            entities[record[ID]] = entity
            records.append((record, entity))

    for association in association_catalogue():
        end = _primary_end(association)
        for record, entity in records:
            if not isinstance(entity, end.owner):
                continue
            for target_id, key in _decode_end(end, record, entity):
                target = _lookup(entities, target_id, end, record)
                try:
                    link(end, entity, target, key=key, guarded=False)
                except CinemaError as e:
                    raise PersistenceError(
                        f"Cannot restore {end.label} of record {record[ID]}: {e.message}"
                    ) from e

    # Every end, including the ones not used above, must match the document.
    for record, entity in records:
        for end in type(entity).link_ends():
            expected = [_lookup(entities, target_id, end, record) for target_id, _ in _decode_end(end, record, entity)]
            actual = end.members(entity)
            if {id(e) for e in expected} != {id(e) for e in actual} or len(expected) != len(actual):
                raise PersistenceError(
                    f"{end.label} of record {record[ID]} does not match its counterpart ends"
                )
    return entities


def _concrete_types() -> list[type]:
    return sorted((cls for cls in entity_types() if not cls.is_abstract()), key=lambda c: c.type_name)


def _concrete_type(type_name: str) -> type:
    try:
        cls = resolve_entity_type(type_name)
    except CinemaError as e:
        raise PersistenceError(f"Unknown entity type '{type_name}' in document") from e
    if cls.is_abstract():
        raise PersistenceError(f"Entity type '{type_name}' is abstract and cannot have records")
    return cls


def _primary_end(association: AssociationInfo) -> LinkEnd:
    """End an association is rebuilt from: a collection end where there is one."""
    first, second = association.first, association.second
    if first.single and not second.single:
        return second
    return first


def _encode_entity(entity: Entity, ids: dict[int, int]) -> dict[str, Any]:
    record: dict[str, Any] = {ID: ids[id(entity)]}
    for name in entity.record_fields:
        record[name] = encode_value(getattr(entity, name))
    for end in type(entity).link_ends():
        if isinstance(end, Keyed):
            record[end.name] = [
                {"key": encode_value(key), **encode_ref(ids, member)} for key, member in end.items(entity)
            ]
        elif end.single:
            member = end.view(entity)
            record[end.name] = None if member is None else encode_ref(ids, member)
        else:
            record[end.name] = [encode_ref(ids, member) for member in end.members(entity)]
    return record


def _decode_entity(cls: type[Entity], record: dict[str, Any], context: ModelContext) -> Entity:
    missing = [name for name in cls.record_fields if name not in record]
    if missing:
        raise PersistenceError(f"{cls.type_name} record {record[ID]} is missing {', '.join(missing)}")
    values = {name: decode_value(record[name]) for name in cls.record_fields}
    try:
        return cls.from_record(values, context)
    except CinemaError as e:
        raise PersistenceError(f"Invalid {cls.type_name} record {record[ID]}: {e.message}") from e


def _decode_end(end: LinkEnd, record: dict[str, Any], entity: Any) -> list[tuple[int, Any]]:
    if end.name not in record:
        raise PersistenceError(f"{entity.type_name} record {record[ID]} is missing link end '{end.name}'")
    raw = record[end.name]
    if end.single:
        return [] if raw is None else [(decode_ref(raw), None)]
    if not isinstance(raw, list):
        raise PersistenceError(f"{end.label} of record {record[ID]} must be a list")
    if isinstance(end, Keyed):
        pairs = []
        for item in raw:
            if not isinstance(item, dict) or "key" not in item:
                raise PersistenceError(f"{end.label} of record {record[ID]} needs keyed references")
            pairs.append((decode_ref({REF: item.get(REF)}), decode_value(item["key"])))
        return pairs
    return [(decode_ref(item), None) for item in raw]


def _lookup(entities: dict[int, Any], target_id: int, end: LinkEnd, record: dict[str, Any]) -> Any:
    target = entities.get(target_id)
    if target is None:
        raise PersistenceError(f"{end.label} of record {record[ID]} refers to missing record {target_id}")
    return target


def _atomic_write(target: Path, payload: bytes) -> None:
    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(payload)
        os.replace(tmp_name, target)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise


def save_to_file(path: str | os.PathLike[str] | None = None, context: ModelContext | None = None) -> int:
    """Save the active (or given) context; see PersistenceGateway.save()."""
    return PersistenceGateway(context).save(path)


def load_from_file(path: str | os.PathLike[str] | None = None, context: ModelContext | None = None) -> bool:
    """Load into the active (or given) context; see PersistenceGateway.load()."""
    return PersistenceGateway(context).load(path)
