"""
Data-driven entity descriptors shared by the normalizer and the serializer.

An ``EntitySchema`` lists the ``FieldSpec`` of every view attribute: which
persisted keys feed it (aliases in priority order), how raw values are
coerced, which code family resolves it, and which keys it is written back to.
The tracker sections declare their entities with these descriptors
instead of hand-written converters.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, fields
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from devinde_tracker.adapters.context import AdapterContext

FieldKind = Literal[
    "text",
    "optional_text",
    "number",
    "optional_number",
    "integer",
    "optional_integer",
    "flag",
    "text_list",
    "code",
    "entity",
    "entities",
    "timestamp",
]

# Derived-value hooks receive the raw mapping, the attribute values built so
# far, and the adapter context.
DeriveHook = Callable[[Mapping[str, object], dict[str, Any], "AdapterContext"], None]
EmitHook = Callable[[Any, dict[str, Any], "AdapterContext"], None]
CoerceHook = Callable[[object], Mapping[str, object] | None]
DefaultFactory = Callable[["AdapterContext"], object]

_KIND_DEFAULTS: dict[str, object] = {
    "text": "",
    "optional_text": None,
    "number": 0,
    "optional_number": None,
    "integer": 0,
    "optional_integer": None,
    "flag": False,
}


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """How one view attribute is read from and written to a persisted record."""

    attr: str
    keys: tuple[str, ...]
    kind: FieldKind = "text"
    default: object = None
    default_from: DefaultFactory | None = None
    family: str | None = None
    nested: EntitySchema | None = None
    write_keys: tuple[str, ...] | None = None
    bounds: tuple[float, float] | None = None
    touch: bool = False

    def __post_init__(self) -> None:
        if self.kind == "code" and self.family is None:
            raise ValueError(f"{self.attr}: code fields require a family")
        if self.kind in {"entity", "entities"} and self.nested is None:
            raise ValueError(f"{self.attr}: nested fields require a nested schema")
        if self.bounds is not None and self.bounds[0] > self.bounds[1]:
            raise ValueError(f"{self.attr}: bounds must be ordered (low, high)")

    @property
    def persisted_keys(self) -> tuple[str, ...]:
        if self.write_keys is not None:
            return self.write_keys
        return self.keys[:1]

    def default_value(self, context: AdapterContext) -> object:
        if self.default_from is not None:
            return self.default_from(context)
        if self.default is not None:
            return self.default
        return _KIND_DEFAULTS.get(self.kind)


@dataclass(frozen=True, slots=True)
class EntitySchema:
    """Field descriptors plus optional hooks for one entity kind."""

    kind: str
    view_type: type[Any]
    fields: tuple[FieldSpec, ...]
    id_prefix: str | None = None
    coerce: CoerceHook | None = None
    derive: DeriveHook | None = None
    emit: EmitHook | None = None
    _by_attr: dict[str, FieldSpec] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        by_attr: dict[str, FieldSpec] = {}
        for spec in self.fields:
            if spec.attr in by_attr:
                raise ValueError(f"{self.kind}.{spec.attr}: duplicate field")
            by_attr[spec.attr] = spec

        view_attrs = {item.name for item in fields(self.view_type)}
        unknown = sorted(set(by_attr) - view_attrs)
        if unknown:
            raise ValueError(f"{self.kind}: fields not on {self.view_type.__name__}: {unknown}")
        object.__setattr__(self, "_by_attr", by_attr)

    @property
    def has_id(self) -> bool:
        return self.id_prefix is not None

    def field_for(self, attr: str) -> FieldSpec:
        try:
            return self._by_attr[attr]
        except KeyError:
            raise ValueError(f"{self.kind}: unknown field {attr!r}") from None

    def attr_for_key(self, key: str) -> str | None:
        """Return the view attribute fed by persisted ``key``, if any."""
        for spec in self.fields:
            if key in spec.keys:
                return spec.attr
        return None


def text(attr: str, *keys: str, default: str | None = None, write: tuple[str, ...] | None = None) -> FieldSpec:
    return FieldSpec(attr, keys, "text", default=default, write_keys=write)


def optional_text(attr: str, *keys: str) -> FieldSpec:
    return FieldSpec(attr, keys, "optional_text")


def number(
    attr: str,
    *keys: str,
    default: float | None = None,
    bounds: tuple[float, float] | None = None,
) -> FieldSpec:
    return FieldSpec(attr, keys, "number", default=default, bounds=bounds)


def integer(
    attr: str,
    *keys: str,
    default: int | None = None,
    bounds: tuple[float, float] | None = None,
    write: tuple[str, ...] | None = None,
) -> FieldSpec:
    return FieldSpec(attr, keys, "integer", default=default, bounds=bounds, write_keys=write)


def flag(attr: str, *keys: str, write: tuple[str, ...] | None = None) -> FieldSpec:
    return FieldSpec(attr, keys, "flag", write_keys=write)


def text_list(attr: str, *keys: str) -> FieldSpec:
    return FieldSpec(attr, keys, "text_list")


def code(attr: str, key: str, family: str, *, default: object = None) -> FieldSpec:
    return FieldSpec(attr, (key,), "code", default=default, family=family)


def entities(attr: str, key: str, nested: EntitySchema) -> FieldSpec:
    return FieldSpec(attr, (key,), "entities", nested=nested)


def entity(attr: str, key: str, nested: EntitySchema) -> FieldSpec:
    return FieldSpec(attr, (key,), "entity", nested=nested)


def timestamp(attr: str, key: str, *, touch: bool = False) -> FieldSpec:
    return FieldSpec(attr, (key,), "timestamp", touch=touch)


def audit_fields() -> tuple[FieldSpec, FieldSpec]:
    """``createdAt`` kept on write, ``updatedAt`` restamped on every write."""
    return (timestamp("created_at", "createdAt"), timestamp("updated_at", "updatedAt", touch=True))


__all__ = [
    "CoerceHook",
    "DeriveHook",
    "EmitHook",
    "EntitySchema",
    "FieldKind",
    "FieldSpec",
    "audit_fields",
    "code",
    "entities",
    "entity",
    "flag",
    "integer",
    "number",
    "optional_text",
    "text",
    "text_list",
    "timestamp",
]
