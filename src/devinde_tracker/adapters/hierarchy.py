"""Group flat child records under their parent ids."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import Any, TypeVar

from devinde_tracker.constants import UNASSIGNED_BUCKET

TChild = TypeVar("TChild")


def build_hierarchy(
    children: Iterable[TChild],
    parents: Iterable[Any],
    *,
    parent_ref: Callable[[TChild], object] | None = None,
    unassigned_key: str = UNASSIGNED_BUCKET,
) -> dict[str, list[TChild]]:
    """Return ``{parent_id: [children...], unassigned_key: [...]}``.

    Every parent id is a key even when it has no children. A child whose
    reference is empty or names no known parent lands in ``unassigned_key``.
    Children keep their input order within each bucket.
    """
    resolve_ref = parent_ref if parent_ref is not None else _milestone_ref
    buckets: dict[str, list[TChild]] = {}
    for parent in parents:
        parent_id = getattr(parent, "id", None)
        if isinstance(parent_id, str) and parent_id and parent_id != unassigned_key:
            buckets.setdefault(parent_id, [])
    buckets[unassigned_key] = []

    for child in children:
        ref = resolve_ref(child)
        if isinstance(ref, str) and ref and ref != unassigned_key and ref in buckets:
            buckets[ref].append(child)
        else:
            buckets[unassigned_key].append(child)
    return buckets


def flatten_hierarchy(hierarchy: dict[str, Sequence[TChild]]) -> list[TChild]:
    """Concatenate every bucket; inverse of ``build_hierarchy`` up to ordering."""
    out: list[TChild] = []
    for bucket in hierarchy.values():
        out.extend(bucket)
    return out


def _milestone_ref(child: object) -> object:
    return getattr(child, "milestone_id", None)


__all__ = ["build_hierarchy", "flatten_hierarchy"]
