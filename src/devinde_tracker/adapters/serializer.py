"""View record -> persisted patch serialization (inverse of the normalizer)."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from typing import Any

from devinde_tracker.adapters.context import AdapterContext
from devinde_tracker.adapters.schema import EntitySchema, FieldSpec


def serialize(schema: EntitySchema, view: Any, context: AdapterContext) -> dict[str, Any]:
    """Return the persisted-shape patch for ``view``.

    Only persisted fields are written, under their canonical key and any
    compatibility keys. Coded fields go back through reverse codes, unset
    optional fields are omitted, and ``updatedAt`` is restamped with
    ``context.now``.
    """
    out: dict[str, Any] = {}
    if schema.has_id:
        out["id"] = getattr(view, "id", "")
    for spec in schema.fields:
        keys = spec.persisted_keys
        if not keys:
            continue
        value = _serialize_field(spec, getattr(view, spec.attr, None), context)
        if value is None:
            continue
        for key in keys:
            out[key] = value
    if schema.emit is not None:
        schema.emit(view, out, context)
    return out


def serialize_many(
    schema: EntitySchema,
    views: Iterable[Any] | None,
    context: AdapterContext,
) -> list[dict[str, Any]]:
    if views is None:
        return []
    return [serialize(schema, view, context) for view in views]


def _serialize_field(spec: FieldSpec, value: Any, context: AdapterContext) -> Any:
    if spec.kind == "timestamp":
        if spec.touch or not isinstance(value, str) or not value:
            return context.now_iso
        return value
    if spec.kind == "code":
        assert spec.family is not None
        mapper = context.codes.get(spec.family)
        return mapper.reverse(value if value is not None else mapper.default)
    if spec.kind == "entities":
        assert spec.nested is not None
        return serialize_many(spec.nested, value or (), context)
    if spec.kind == "entity":
        assert spec.nested is not None
        if value is None:
            return None
        return serialize(spec.nested, value, context)
    if spec.kind == "text_list":
        return list(value or ())
    if value is None:
        if spec.kind.startswith("optional_"):
            return None
        return spec.default_value(context)
    if isinstance(value, Enum):
        return value.value
    return value


__all__ = ["serialize", "serialize_many"]
