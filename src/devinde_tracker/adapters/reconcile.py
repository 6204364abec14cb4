"""
Identity-keyed merging of UI changes into persisted collections.

All operations return new lists; inputs are never mutated. Records missing
from a change set come back as the very same objects, untouched.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

Record = Mapping[str, Any]


class UpsertOutcome(StrEnum):
    REPLACED = "replaced"
    INSERTED = "inserted"


@dataclass(frozen=True, slots=True)
class UpsertResult:
    records: list[Record]
    outcome: UpsertOutcome


@dataclass(frozen=True, slots=True)
class PatchResult:
    records: list[Record]
    found: bool


@dataclass(frozen=True, slots=True)
class RemoveResult:
    records: list[Record]
    removed: bool


def record_id(record: object) -> str | None:
    """Return the identity key of ``record`` or ``None`` when it has none."""
    if not isinstance(record, Mapping):
        return None
    value = record.get("id")
    if isinstance(value, str) and value:
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return None


def as_records(value: object) -> list[Record]:
    """Mapping elements of a stored collection; anything else yields []."""
    if not isinstance(value, (list, tuple)):
        return []
    return [item for item in value if isinstance(item, Mapping)]


def merge_by_id(base: Sequence[Record] | None, changes: Iterable[Record] | None) -> list[Record]:
    """Overlay ``changes`` on ``base`` by id.

    Pre-existing ids keep their base position, new ids are appended in the
    order they first appear in ``changes``, and the last change wins when an
    id repeats. Base records without an id stay where they are; changes
    without an id are dropped.
    """
    slots: list[Record] = list(base or ())
    positions: dict[str, int] = {}
    for index, record in enumerate(slots):
        key = record_id(record)
        if key is not None:
            positions.setdefault(key, index)

    for change in changes or ():
        key = record_id(change)
        if key is None:
            continue
        index = positions.get(key)
        if index is None:
            positions[key] = len(slots)
            slots.append(change)
        else:
            slots[index] = change
    return slots


def upsert(collection: Sequence[Record] | None, record: Record) -> UpsertResult:
    """Single-record ``merge_by_id`` reporting whether the id already existed."""
    key = record_id(record)
    existing = {record_id(item) for item in collection or ()}
    outcome = UpsertOutcome.REPLACED if key is not None and key in existing else UpsertOutcome.INSERTED
    return UpsertResult(records=merge_by_id(collection, [record]), outcome=outcome)


def patch_by_id(
    collection: Sequence[Record] | None,
    target_id: str,
    patch: Mapping[str, Any],
) -> PatchResult:
    """Shallow-merge ``patch`` over the record with ``target_id``.

    A miss returns the collection unchanged with ``found=False``.
    """
    records = list(collection or ())
    for index, item in enumerate(records):
        if record_id(item) == target_id:
            merged = {**item, **patch, "id": item["id"]}
            records[index] = merged
            return PatchResult(records=records, found=True)
    return PatchResult(records=records, found=False)


def remove_by_id(collection: Sequence[Record] | None, target_id: str) -> RemoveResult:
    records = list(collection or ())
    kept = [item for item in records if record_id(item) != target_id]
    return RemoveResult(records=kept, removed=len(kept) != len(records))


__all__ = [
    "PatchResult",
    "Record",
    "RemoveResult",
    "UpsertOutcome",
    "UpsertResult",
    "as_records",
    "merge_by_id",
    "patch_by_id",
    "record_id",
    "remove_by_id",
    "upsert",
]
