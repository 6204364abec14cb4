"""
devinde-tracker — configuration schema and validation.

Purpose
- Define authoritative configuration defaults and strict validation rules.

What is included in this file
- Schema versioning and migration guidance.
- Validation rules for required fields, types, enums, and numeric ranges.
- Deterministic deep-merge helpers shared with the loader.

Functional requirements
- Validate config payloads and return structured errors (field path + message).
- Collect every issue before failing.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final, Literal, NotRequired, TypedDict

from devinde_tracker.constants import CONFIG_SCHEMA_VERSION, DEFAULT_CURRENCY

ConfigSchemaVersion: Final[int] = CONFIG_SCHEMA_VERSION

LOG_LEVELS: Final[tuple[str, ...]] = ("DEBUG", "INFO", "WARNING", "ERROR")
LOG_FORMATS: Final[tuple[str, ...]] = ("json", "text")

SWOT_IMPORTANCE_MIN: Final[int] = 3
SWOT_IMPORTANCE_MAX: Final[int] = 5
SWOT_IMPORTANCE_KEYS: Final[tuple[str, ...]] = (
    "segment_strength_importance",
    "segment_weakness_importance",
    "competitor_threat_importance",
    "competitor_weakness_importance",
    "high_importance",
    "very_high_importance",
    "value_importance",
)

# Config paths that are normalized relative to the config file location.
PATH_FIELDS: Final[tuple[tuple[str, ...], ...]] = (
    ("codes", "synonyms_file"),
    ("logging", "file"),
)


class MetaConfig(TypedDict):
    schema_version: int


class SwotConfig(TypedDict):
    competitor_weakness_cap: int
    segment_strength_importance: int
    segment_weakness_importance: int
    competitor_threat_importance: int
    competitor_weakness_importance: int
    high_importance: int
    very_high_importance: int
    value_importance: int


class PricingConfig(TypedDict):
    default_currency: str


class CodesConfig(TypedDict):
    synonyms_file: NotRequired[str]


class LoggingConfig(TypedDict):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"]
    format: Literal["json", "text"]
    file: NotRequired[str]


class TrackerConfig(TypedDict):
    meta: MetaConfig
    swot: SwotConfig
    pricing: PricingConfig
    codes: CodesConfig
    logging: LoggingConfig


DEFAULT_CONFIG: Final[TrackerConfig] = {
    "meta": {
        "schema_version": ConfigSchemaVersion,
    },
    "swot": {
        "competitor_weakness_cap": 2,
        "segment_strength_importance": 4,
        "segment_weakness_importance": 3,
        "competitor_threat_importance": 4,
        "competitor_weakness_importance": 3,
        "high_importance": 4,
        "very_high_importance": 5,
        "value_importance": 4,
    },
    "pricing": {
        "default_currency": DEFAULT_CURRENCY,
    },
    "codes": {},
    "logging": {
        "level": "INFO",
        "format": "json",
    },
}


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    """Single structured validation failure."""

    path: str
    message: str


@dataclass(frozen=True, slots=True)
class ConfigValidationResult:
    """Validation result with normalized config when no issues were found."""

    config: dict[str, Any] | None
    issues: tuple[ConfigValidationIssue, ...]

    @property
    def is_valid(self) -> bool:
        return self.config is not None and not self.issues


class ConfigValidationError(ValueError):
    """Raised when strict config validation fails."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        if not self.issues:
            rendered = "unknown validation failure"
        else:
            rendered = "\n".join(f"- {item.path}: {item.message}" for item in self.issues)
        super().__init__(f"invalid config:\n{rendered}")


class _IssueCollector:
    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: list[ConfigValidationIssue] = []

    def add(self, path: str, message: str) -> None:
        self._items.append(ConfigValidationIssue(path=path, message=message))

    def items(self) -> tuple[ConfigValidationIssue, ...]:
        return tuple(self._items)

    @property
    def has_issues(self) -> bool:
        return bool(self._items)


def default_config() -> TrackerConfig:
    """Return a deep copy of the built-in defaults."""

    return copy.deepcopy(DEFAULT_CONFIG)


def migration_guidance(found_version: int) -> str:
    if found_version < ConfigSchemaVersion:
        return (
            f"schema version {found_version} is older than supported {ConfigSchemaVersion}; "
            "upgrade devinde.toml to the current schema"
        )
    if found_version > ConfigSchemaVersion:
        return (
            f"schema version {found_version} is newer than supported {ConfigSchemaVersion}; "
            "upgrade devinde-tracker"
        )
    return "schema version is current"


def merge_config(base: Mapping[str, object], overlay: Mapping[str, object]) -> dict[str, Any]:
    """Deterministically deep-merge ``overlay`` onto ``base``."""

    merged = _deep_copy_mapping(base)
    _merge_into(merged, overlay)
    return merged


def validate_config(config: Mapping[str, object] | object) -> ConfigValidationResult:
    """Validate config and return structured issues with dotted paths."""

    issues = _IssueCollector()
    root = _as_object(config, "<root>", issues)
    if root is None:
        return ConfigValidationResult(config=None, issues=issues.items())

    normalized = _validate_root(root, issues)
    if issues.has_issues:
        return ConfigValidationResult(config=None, issues=issues.items())
    return ConfigValidationResult(config=normalized, issues=())


def assert_valid_config(config: Mapping[str, object] | object) -> dict[str, Any]:
    """Validate config and raise ``ConfigValidationError`` on failure."""

    result = validate_config(config)
    if result.config is None:
        raise ConfigValidationError(result.issues)
    return result.config


def _validate_root(payload: Mapping[str, object], issues: _IssueCollector) -> dict[str, Any]:
    sections: dict[str, Callable[[Mapping[str, object], str, _IssueCollector], dict[str, Any]]] = {
        "meta": _validate_meta,
        "swot": _validate_swot,
        "pricing": _validate_pricing,
        "codes": _validate_codes,
        "logging": _validate_logging,
    }
    _reject_unknown_keys(payload, set(sections), "", issues)
    _require_keys(payload, set(sections) - {"codes"}, "", issues)

    out: dict[str, Any] = {}
    for key, validator in sections.items():
        _section(payload, key=key, issues=issues, validator=validator, out=out)
    out.setdefault("codes", {})
    return out


def _section(
    payload: Mapping[str, object],
    *,
    key: str,
    issues: _IssueCollector,
    validator: Callable[[Mapping[str, object], str, _IssueCollector], dict[str, Any]],
    out: dict[str, Any],
) -> None:
    raw = payload.get(key)
    if raw is None:
        return
    section_obj = _as_object(raw, key, issues)
    if section_obj is None:
        return
    out[key] = validator(section_obj, key, issues)


def _validate_meta(payload: Mapping[str, object], path: str, issues: _IssueCollector) -> dict[str, Any]:
    _reject_unknown_keys(payload, {"schema_version"}, path, issues)
    _require_keys(payload, {"schema_version"}, path, issues)

    out: dict[str, Any] = {}
    if "schema_version" in payload:
        parsed = _as_int(payload["schema_version"], _join(path, "schema_version"), issues, minimum=1)
        if parsed is not None:
            out["schema_version"] = parsed
            if parsed != ConfigSchemaVersion:
                issues.add(_join(path, "schema_version"), migration_guidance(parsed))
    return out


def _validate_swot(payload: Mapping[str, object], path: str, issues: _IssueCollector) -> dict[str, Any]:
    allowed = {"competitor_weakness_cap", *SWOT_IMPORTANCE_KEYS}
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, allowed, path, issues)

    out: dict[str, Any] = {}
    if "competitor_weakness_cap" in payload:
        parsed_cap = _as_int(
            payload["competitor_weakness_cap"],
            _join(path, "competitor_weakness_cap"),
            issues,
            minimum=0,
        )
        if parsed_cap is not None:
            out["competitor_weakness_cap"] = parsed_cap

    for key in SWOT_IMPORTANCE_KEYS:
        if key not in payload:
            continue
        parsed = _as_int(
            payload[key],
            _join(path, key),
            issues,
            minimum=SWOT_IMPORTANCE_MIN,
            maximum=SWOT_IMPORTANCE_MAX,
        )
        if parsed is not None:
            out[key] = parsed
    return out


def _validate_pricing(payload: Mapping[str, object], path: str, issues: _IssueCollector) -> dict[str, Any]:
    _reject_unknown_keys(payload, {"default_currency"}, path, issues)
    _require_keys(payload, {"default_currency"}, path, issues)

    out: dict[str, Any] = {}
    if "default_currency" in payload:
        parsed = _as_str(payload["default_currency"], _join(path, "default_currency"), issues)
        if parsed is not None:
            out["default_currency"] = parsed
    return out


def _validate_codes(payload: Mapping[str, object], path: str, issues: _IssueCollector) -> dict[str, Any]:
    _reject_unknown_keys(payload, {"synonyms_file"}, path, issues)

    out: dict[str, Any] = {}
    if "synonyms_file" in payload:
        parsed = _as_path_text(payload["synonyms_file"], _join(path, "synonyms_file"), issues)
        if parsed is not None:
            out["synonyms_file"] = parsed
    return out


def _validate_logging(payload: Mapping[str, object], path: str, issues: _IssueCollector) -> dict[str, Any]:
    _reject_unknown_keys(payload, {"level", "format", "file"}, path, issues)
    _require_keys(payload, {"level", "format"}, path, issues)

    out: dict[str, Any] = {}
    if "level" in payload:
        parsed_level = _as_enum(
            payload["level"],
            _join(path, "level"),
            issues,
            allowed_values=LOG_LEVELS,
            upper=True,
        )
        if parsed_level is not None:
            out["level"] = parsed_level

    if "format" in payload:
        parsed_format = _as_enum(
            payload["format"],
            _join(path, "format"),
            issues,
            allowed_values=LOG_FORMATS,
        )
        if parsed_format is not None:
            out["format"] = parsed_format

    if "file" in payload:
        parsed_file = _as_path_text(payload["file"], _join(path, "file"), issues)
        if parsed_file is not None:
            out["file"] = parsed_file
    return out


def _as_object(value: object, path: str, issues: _IssueCollector) -> dict[str, object] | None:
    if not isinstance(value, Mapping):
        issues.add(path, f"expected object, got {type(value).__name__}")
        return None
    out: dict[str, object] = {}
    for key, item in value.items():
        if not isinstance(key, str):
            issues.add(path, f"object key must be string, got {type(key).__name__}")
            continue
        out[key] = item
    return out


def _as_str(value: object, path: str, issues: _IssueCollector) -> str | None:
    if not isinstance(value, str):
        issues.add(path, f"expected string, got {type(value).__name__}")
        return None
    parsed = value.strip()
    if not parsed:
        issues.add(path, "must not be empty")
        return None
    return parsed


def _as_path_text(value: object, path: str, issues: _IssueCollector) -> str | None:
    parsed = _as_str(value, path, issues)
    if parsed is None:
        return None
    if "\x00" in parsed:
        issues.add(path, "must not contain NUL bytes")
        return None
    return parsed


def _as_int(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    minimum: int | None = None,
    maximum: int | None = None,
) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        issues.add(path, f"expected integer, got {type(value).__name__}")
        return None
    if minimum is not None and value < minimum:
        issues.add(path, f"must be >= {minimum}")
        return None
    if maximum is not None and value > maximum:
        issues.add(path, f"must be <= {maximum}")
        return None
    return value


def _as_enum(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    allowed_values: tuple[str, ...],
    upper: bool = False,
) -> str | None:
    parsed = _as_str(value, path, issues)
    if parsed is None:
        return None
    if upper:
        parsed = parsed.upper()
    if parsed not in allowed_values:
        expected = ", ".join(sorted(allowed_values))
        issues.add(path, f"invalid value {parsed!r}; expected one of: {expected}")
        return None
    return parsed


def _reject_unknown_keys(
    payload: Mapping[str, object],
    allowed: set[str],
    path: str,
    issues: _IssueCollector,
) -> None:
    for key in sorted(payload):
        if key not in allowed:
            issues.add(_join(path, key), "unknown field")


def _require_keys(
    payload: Mapping[str, object],
    required: set[str],
    path: str,
    issues: _IssueCollector,
) -> None:
    for key in sorted(required):
        if key not in payload:
            issues.add(_join(path, key), "missing required field")


def _join(path: str, key: str) -> str:
    if not path:
        return key
    return f"{path}.{key}"


def _merge_into(target: dict[str, Any], overlay: Mapping[str, object]) -> None:
    for key in sorted(overlay):
        value = overlay[key]
        if isinstance(value, Mapping):
            existing = target.get(key)
            if isinstance(existing, dict):
                _merge_into(existing, value)
            else:
                nested: dict[str, Any] = {}
                _merge_into(nested, value)
                target[key] = nested
        else:
            target[key] = copy.deepcopy(value)


def _deep_copy_mapping(value: Mapping[str, object]) -> dict[str, Any]:
    return {key: copy.deepcopy(value[key]) for key in sorted(value)}


__all__ = [
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "DEFAULT_CONFIG",
    "LOG_FORMATS",
    "LOG_LEVELS",
    "PATH_FIELDS",
    "SWOT_IMPORTANCE_KEYS",
    "TrackerConfig",
    "assert_valid_config",
    "default_config",
    "merge_config",
    "migration_guidance",
    "validate_config",
]
