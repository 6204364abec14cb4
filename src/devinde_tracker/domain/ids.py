"""Synthetic identifier generation for tracker records."""

from __future__ import annotations

import random
import secrets
import time
from collections.abc import Callable
from datetime import datetime
from typing import Final

CROCKFORD_BASE32_ALPHABET: Final[str] = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
ULID_LENGTH: Final[int] = 26
ULID_RANDOM_BYTES: Final[int] = 10
ULID_MAX_TIMESTAMP_MS: Final[int] = (1 << 48) - 1
_ULID_MAX_VALUE: Final[int] = (1 << 128) - 1
_PREFIX_SEPARATOR: Final[str] = "-"

# Entity id prefixes.
MILESTONE_ID_PREFIX: Final[str] = "milestone"
TASK_ID_PREFIX: Final[str] = "task"
SUBTASK_ID_PREFIX: Final[str] = "subtask"
COMMENT_ID_PREFIX: Final[str] = "comment"
HOURLY_RATE_ID_PREFIX: Final[str] = "hourly"
PACKAGE_ID_PREFIX: Final[str] = "package"
SUBSCRIPTION_ID_PREFIX: Final[str] = "subscription"
CUSTOM_PRICING_ID_PREFIX: Final[str] = "custom"
SEGMENT_ID_PREFIX: Final[str] = "segment"
COMPETITOR_ID_PREFIX: Final[str] = "competitor"
OPPORTUNITY_ID_PREFIX: Final[str] = "opportunity"
TREND_ID_PREFIX: Final[str] = "trend"
RISK_CLIENT_ID_PREFIX: Final[str] = "client"
INCIDENT_ID_PREFIX: Final[str] = "incident"
DOCUMENT_ID_PREFIX: Final[str] = "document"
INVOICE_ITEM_ID_PREFIX: Final[str] = "item"
PAYMENT_ID_PREFIX: Final[str] = "payment"
SERVICE_ID_PREFIX: Final[str] = "service"
SERVICE_CATEGORY_ID_PREFIX: Final[str] = "category"

_DECODE_TABLE: Final[dict[str, int]] = {
    char: index for index, char in enumerate(CROCKFORD_BASE32_ALPHABET)
}

_RandBytes = Callable[[int], bytes]
IdFactory = Callable[[str], str]

__all__ = [
    "COMMENT_ID_PREFIX",
    "COMPETITOR_ID_PREFIX",
    "CROCKFORD_BASE32_ALPHABET",
    "CUSTOM_PRICING_ID_PREFIX",
    "DOCUMENT_ID_PREFIX",
    "HOURLY_RATE_ID_PREFIX",
    "INCIDENT_ID_PREFIX",
    "INVOICE_ITEM_ID_PREFIX",
    "IdFactory",
    "MILESTONE_ID_PREFIX",
    "OPPORTUNITY_ID_PREFIX",
    "PACKAGE_ID_PREFIX",
    "PAYMENT_ID_PREFIX",
    "RISK_CLIENT_ID_PREFIX",
    "SEGMENT_ID_PREFIX",
    "SERVICE_CATEGORY_ID_PREFIX",
    "SERVICE_ID_PREFIX",
    "SUBSCRIPTION_ID_PREFIX",
    "SUBTASK_ID_PREFIX",
    "TASK_ID_PREFIX",
    "TREND_ID_PREFIX",
    "ULID_LENGTH",
    "ULID_MAX_TIMESTAMP_MS",
    "clock_id_factory",
    "derived_id",
    "generate_prefixed_id",
    "generate_ulid",
    "parse_ulid_timestamp_ms",
    "seeded_id_factory",
    "validate_prefixed_id",
    "validate_ulid",
]


def generate_ulid(
    *,
    timestamp_ms: int | None = None,
    randbytes: _RandBytes | None = None,
) -> str:
    """Generate a ULID as a 26-character uppercase Crockford Base32 string."""
    ts_ms = _resolve_timestamp_ms(timestamp_ms)
    random_bytes = _resolve_random_bytes(randbytes)
    ulid_value = (ts_ms << 80) | int.from_bytes(random_bytes, "big")
    return _encode_crockford_base32(ulid_value, ULID_LENGTH)


def validate_ulid(s: str) -> None:
    """Validate a ULID and raise ``ValueError`` with precise context on failure."""
    _ = _decode_validated_ulid(s)


def parse_ulid_timestamp_ms(s: str) -> int:
    """Extract the 48-bit millisecond timestamp from a validated ULID."""
    return _decode_validated_ulid(s) >> 80


def generate_prefixed_id(
    prefix: str,
    *,
    timestamp_ms: int | None = None,
    randbytes: _RandBytes | None = None,
) -> str:
    """Generate a record id in the form ``<prefix>-<ulid>``.

    The ULID carries the generation timestamp in its leading characters and a
    random suffix for uniqueness within the same millisecond.
    """
    _validate_prefix(prefix)
    return f"{prefix}{_PREFIX_SEPARATOR}{generate_ulid(timestamp_ms=timestamp_ms, randbytes=randbytes)}"


def validate_prefixed_id(id_str: str, expected_prefix: str) -> None:
    """Validate ``<prefix>-<ulid>`` format and enforce ``expected_prefix``."""
    _validate_prefix(expected_prefix)
    if not isinstance(id_str, str):
        raise ValueError(f"prefixed id must be a string, got {type(id_str).__name__}")

    expected_lead = f"{expected_prefix}{_PREFIX_SEPARATOR}"
    if not id_str.startswith(expected_lead):
        raise ValueError(f"expected prefix '{expected_lead}'")

    try:
        validate_ulid(id_str[len(expected_lead) :])
    except ValueError as exc:
        raise ValueError(f"invalid ULID part for prefix '{expected_prefix}': {exc}") from exc


def clock_id_factory(now: datetime, *, randbytes: _RandBytes | None = None) -> IdFactory:
    """Return an id factory stamping every id with ``now`` instead of the wall clock."""
    timestamp_ms = int(now.timestamp() * 1000)

    def _factory(prefix: str) -> str:
        return generate_prefixed_id(prefix, timestamp_ms=timestamp_ms, randbytes=randbytes)

    return _factory


def seeded_id_factory(seed: int, *, timestamp_ms: int = 0) -> IdFactory:
    """Return a reproducible id factory; the same seed yields the same id sequence."""
    rng = random.Random(seed)

    def _factory(prefix: str) -> str:
        return generate_prefixed_id(prefix, timestamp_ms=timestamp_ms, randbytes=rng.randbytes)

    return _factory


def derived_id(category: str, *parts: str | int) -> str:
    """Build a deterministic id from a category tag and source identifiers."""
    if not isinstance(category, str) or not category.strip():
        raise ValueError("derived id category must be a non-empty string")
    return _PREFIX_SEPARATOR.join([category.strip(), *(str(part) for part in parts)])


# ------------------------
# Internal helper routines
# ------------------------


def _resolve_timestamp_ms(timestamp_ms: int | None) -> int:
    resolved = time.time_ns() // 1_000_000 if timestamp_ms is None else timestamp_ms
    if not isinstance(resolved, int):
        raise ValueError(f"timestamp_ms must be an int, got {type(resolved).__name__}")
    if not 0 <= resolved <= ULID_MAX_TIMESTAMP_MS:
        raise ValueError(
            f"timestamp_ms out of range: expected 0..{ULID_MAX_TIMESTAMP_MS}, got {resolved}"
        )
    return resolved


def _resolve_random_bytes(randbytes: _RandBytes | None) -> bytes:
    provider = secrets.token_bytes if randbytes is None else randbytes
    raw = provider(ULID_RANDOM_BYTES)
    if not isinstance(raw, (bytes, bytearray, memoryview)):
        raise ValueError("randbytes must return a bytes-like object")
    as_bytes = bytes(raw)
    if len(as_bytes) != ULID_RANDOM_BYTES:
        raise ValueError(f"randbytes must return exactly {ULID_RANDOM_BYTES} bytes")
    return as_bytes


def _decode_validated_ulid(value: str) -> int:
    if not isinstance(value, str):
        raise ValueError(f"ulid must be a string, got {type(value).__name__}")
    if len(value) != ULID_LENGTH:
        raise ValueError(f"ulid length must be {ULID_LENGTH}, got {len(value)}")

    decoded = 0
    for index, char in enumerate(value):
        digit = _DECODE_TABLE.get(char.upper())
        if digit is None:
            raise ValueError(f"invalid ULID character {char!r} at index {index}")
        decoded = (decoded << 5) | digit

    if decoded > _ULID_MAX_VALUE:
        raise ValueError("ulid overflow: value exceeds maximum 128-bit ULID")
    return decoded


def _encode_crockford_base32(value: int, length: int) -> str:
    chars = ["0"] * length
    working = value
    for index in range(length - 1, -1, -1):
        chars[index] = CROCKFORD_BASE32_ALPHABET[working & 0b11111]
        working >>= 5
    if working != 0:
        raise ValueError(f"value does not fit into {length} Crockford Base32 characters")
    return "".join(chars)


def _validate_prefix(prefix: str) -> None:
    if not isinstance(prefix, str):
        raise ValueError(f"prefix must be a string, got {type(prefix).__name__}")
    if not prefix:
        raise ValueError("prefix must not be empty")
    if _PREFIX_SEPARATOR in prefix:
        raise ValueError(f"prefix must not contain '{_PREFIX_SEPARATOR}'")
    if not prefix.isascii() or not prefix.isalnum():
        raise ValueError("prefix must be ASCII alphanumeric")
