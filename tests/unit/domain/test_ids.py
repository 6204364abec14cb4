"""Unit tests for synthetic record id helpers."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from devinde_tracker.domain import ids


def _zero_bytes(size: int) -> bytes:
    return b"\x00" * size


def _ff_bytes(size: int) -> bytes:
    return b"\xff" * size


def test_generate_ulid_no_collision_5000() -> None:
    generated = {ids.generate_ulid() for _ in range(5_000)}
    assert len(generated) == 5_000


def test_ulid_charset_length_and_reject_invalid_chars() -> None:
    ulid_value = ids.generate_ulid(timestamp_ms=123_456, randbytes=_ff_bytes)
    assert len(ulid_value) == ids.ULID_LENGTH
    assert ulid_value == ulid_value.upper()
    assert all(char in ids.CROCKFORD_BASE32_ALPHABET for char in ulid_value)

    ids.validate_ulid(ulid_value.lower())

    with pytest.raises(ValueError, match="ulid length must be"):
        ids.validate_ulid("0" * 25)
    with pytest.raises(ValueError, match="invalid ULID character"):
        ids.validate_ulid("U" + "0" * 25)
    with pytest.raises(ValueError, match="overflow"):
        ids.validate_ulid("8" + "0" * 25)


def test_timestamp_bounds_are_enforced() -> None:
    assert ids.parse_ulid_timestamp_ms("0" * 26) == 0
    top = ids.generate_ulid(timestamp_ms=ids.ULID_MAX_TIMESTAMP_MS, randbytes=_zero_bytes)
    assert ids.parse_ulid_timestamp_ms(top) == ids.ULID_MAX_TIMESTAMP_MS

    with pytest.raises(ValueError, match="timestamp_ms out of range"):
        ids.generate_ulid(timestamp_ms=-1)


def test_prefixed_ids_validate_against_their_entity_prefix() -> None:
    milestone_id = ids.generate_prefixed_id(ids.MILESTONE_ID_PREFIX, timestamp_ms=1, randbytes=_ff_bytes)
    assert milestone_id.startswith("milestone-")
    ids.validate_prefixed_id(milestone_id, ids.MILESTONE_ID_PREFIX)

    with pytest.raises(ValueError, match="expected prefix"):
        ids.validate_prefixed_id(milestone_id, ids.TASK_ID_PREFIX)
    with pytest.raises(ValueError, match="must not contain"):
        ids.generate_prefixed_id("bad-prefix")
    with pytest.raises(ValueError, match="must not be empty"):
        ids.generate_prefixed_id("")


def test_clock_id_factory_stamps_ids_with_the_given_instant() -> None:
    now = datetime(2024, 6, 15, 12, 0, tzinfo=UTC)
    factory = ids.clock_id_factory(now)

    task_id = factory(ids.TASK_ID_PREFIX)
    ulid_part = task_id.removeprefix("task-")

    assert ids.parse_ulid_timestamp_ms(ulid_part) == int(now.timestamp() * 1000)
    assert factory(ids.TASK_ID_PREFIX) != task_id


def test_seeded_id_factory_is_reproducible() -> None:
    first = ids.seeded_id_factory(42)
    second = ids.seeded_id_factory(42)

    sequence_a = [first(ids.SEGMENT_ID_PREFIX) for _ in range(3)]
    sequence_b = [second(ids.SEGMENT_ID_PREFIX) for _ in range(3)]

    assert sequence_a == sequence_b
    assert len(set(sequence_a)) == 3
    assert ids.seeded_id_factory(43)(ids.SEGMENT_ID_PREFIX) != sequence_a[0]


def test_derived_id_joins_parts_deterministically() -> None:
    assert ids.derived_id("opportunity", "comp", "weakness", "c1", 0) == "opportunity-comp-weakness-c1-0"
    assert ids.derived_id(" strength ", "value", 2) == "strength-value-2"

    with pytest.raises(ValueError, match="category"):
        ids.derived_id("  ")
