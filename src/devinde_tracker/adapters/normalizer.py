"""
Persisted record -> view record normalization.

``normalize`` never raises for structurally plausible input:
- ``None`` (or any non-mapping) yields a complete default record with ``id == ""``.
- Each attribute takes the first present alias, coerced to the attribute kind.
- Coded attributes go through the context's code registry.
- Numeric strings accept one decimal comma ("12,5"); thousands-grouped or
  mixed-separator strings ("1,000", "1,000.5") count as absent.
- Nested collections are normalized recursively; absent collections are empty.
- Records stored without an id receive ``context.new_id(prefix)``.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from devinde_tracker.adapters.context import AdapterContext
from devinde_tracker.adapters.schema import EntitySchema, FieldSpec

_LOGGER = logging.getLogger(__name__)

# "1,000" reads as either one thousand or one; both readings are refused.
_THOUSANDS_GROUPING = re.compile(r"^[+-]?\d{1,3}(,\d{3})+$")


def normalize(schema: EntitySchema, raw: object, context: AdapterContext) -> Any:
    """Return the fully-defaulted view record for ``raw``."""
    if schema.coerce is not None and raw is not None and not isinstance(raw, Mapping):
        raw = schema.coerce(raw)
    if not isinstance(raw, Mapping):
        if raw is not None:
            _LOGGER.debug("%s: expected mapping, got %s", schema.kind, type(raw).__name__)
        return _build(schema, {}, context, is_default=True)
    return _build(schema, raw, context, is_default=False)


def normalize_many(schema: EntitySchema, raws: object, context: AdapterContext) -> list[Any]:
    """Normalize a persisted collection; non-list input yields an empty list."""
    if not isinstance(raws, (list, tuple)):
        return []
    out: list[Any] = []
    for index, raw in enumerate(raws):
        if schema.coerce is not None and raw is not None and not isinstance(raw, Mapping):
            raw = schema.coerce(raw)
        if not isinstance(raw, Mapping):
            _LOGGER.debug("%s[%d]: skipping %s element", schema.kind, index, type(raw).__name__)
            continue
        out.append(_build(schema, raw, context, is_default=False))
    return out


def default_record(schema: EntitySchema, context: AdapterContext) -> Any:
    """The empty-valued record returned for missing input."""
    return _build(schema, {}, context, is_default=True)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values, like the UI does."""
    return int(Decimal(str(value)).to_integral_value(rounding=ROUND_HALF_UP))


def clamp(value: float, bounds: tuple[float, float]) -> float:
    low, high = bounds
    return min(max(value, low), high)


def first_present(raw: Mapping[str, object], keys: Iterable[str]) -> object:
    """Return the first alias value that is neither missing, ``None`` nor ``""``."""
    for key in keys:
        value = raw.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------


def _build(
    schema: EntitySchema,
    raw: Mapping[str, object],
    context: AdapterContext,
    *,
    is_default: bool,
) -> Any:
    values: dict[str, Any] = {}
    if schema.has_id:
        values["id"] = "" if is_default else _resolve_id(schema, raw, context)
    for spec in schema.fields:
        values[spec.attr] = _coerce_field(spec, raw, context)
    if schema.derive is not None and not is_default:
        schema.derive(raw, values, context)
    return schema.view_type(**values)


def _resolve_id(schema: EntitySchema, raw: Mapping[str, object], context: AdapterContext) -> str:
    value = raw.get("id")
    if isinstance(value, str) and value.strip():
        return value.strip()
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    assert schema.id_prefix is not None
    return context.new_id(schema.id_prefix)


def _coerce_field(spec: FieldSpec, raw: Mapping[str, object], context: AdapterContext) -> Any:
    if spec.kind == "entities":
        assert spec.nested is not None
        return normalize_many(spec.nested, _first_value(raw, spec.keys), context)
    if spec.kind == "entity":
        assert spec.nested is not None
        return normalize(spec.nested, _first_value(raw, spec.keys), context)
    if spec.kind == "text_list":
        return _as_text_list(_first_value(raw, spec.keys))

    value = first_present(raw, spec.keys)
    default = spec.default_value(context)

    if spec.kind == "timestamp":
        return value if isinstance(value, str) else context.now_iso
    if spec.kind == "code":
        assert spec.family is not None
        mapper = context.codes.get(spec.family)
        if value is None:
            return default if default is not None else mapper.default
        return mapper.forward(value)
    if spec.kind in {"text", "optional_text"}:
        parsed_text = _as_text(value)
        return default if parsed_text is None else parsed_text
    if spec.kind == "flag":
        return value if isinstance(value, bool) else default

    parsed_number = _as_number(value)
    if spec.kind in {"number", "integer"} and not parsed_number:
        parsed_number = None
    if parsed_number is None:
        return default
    if spec.bounds is not None:
        parsed_number = clamp(parsed_number, spec.bounds)
    if spec.kind in {"integer", "optional_integer"}:
        return round_half_up(parsed_number)
    return parsed_number


def _first_value(raw: Mapping[str, object], keys: Iterable[str]) -> object:
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return None


def _as_text(value: object) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return str(value)
    return None


def _as_number(value: object) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        text = _decimal_text(value.strip())
        if text is None:
            return None
        try:
            parsed = float(text)
        except ValueError:
            return None
        if not math.isfinite(parsed):
            return None
        return int(parsed) if parsed.is_integer() and "." not in value else parsed
    return None


def _decimal_text(text: str) -> str | None:
    """Accept one comma as a French decimal separator; ambiguous forms yield ``None``."""
    if "," not in text:
        return text
    if "." in text or text.count(",") > 1 or _THOUSANDS_GROUPING.match(text):
        return None
    return text.replace(",", ".")


def _as_text_list(value: object) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    out: list[str] = []
    for item in value:
        parsed = _as_text(item)
        if parsed is not None:
            out.append(parsed)
    return out


__all__ = [
    "clamp",
    "default_record",
    "first_present",
    "normalize",
    "normalize_many",
    "round_half_up",
]
