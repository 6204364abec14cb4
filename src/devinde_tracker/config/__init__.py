"""
devinde-tracker config package public API.

File: src/devinde_tracker/config/__init__.py

Purpose
- Export config loading/validation entrypoints and public error types.

Functional requirements
- Support loading from ``devinde.toml`` + ``DEVINDE_`` env overrides.
- Fail fast with clear structured validation/load errors.
"""

from devinde_tracker.config.loader import (
    DEFAULT_CONFIG_FILE,
    ENV_PREFIX,
    ConfigLoadError,
    context_from_config,
    load_config,
    normalize_paths,
    swot_rules_from_config,
)
from devinde_tracker.config.schema import (
    DEFAULT_CONFIG,
    PATH_FIELDS,
    ConfigSchemaVersion,
    ConfigValidationError,
    ConfigValidationIssue,
    ConfigValidationResult,
    TrackerConfig,
    assert_valid_config,
    default_config,
    merge_config,
    migration_guidance,
    validate_config,
)

__all__ = [
    "ConfigLoadError",
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "DEFAULT_CONFIG",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "PATH_FIELDS",
    "TrackerConfig",
    "assert_valid_config",
    "context_from_config",
    "default_config",
    "load_config",
    "merge_config",
    "migration_guidance",
    "normalize_paths",
    "swot_rules_from_config",
    "validate_config",
]
