"""
devinde-tracker — unit tests for identity-keyed reconciliation

Purpose
- Merge, upsert, patch and remove by id without mutating inputs.
- Property coverage for ordering, idempotence and identity preservation.
"""

from __future__ import annotations

import copy
from typing import Any

from hypothesis import given, settings
from hypothesis import strategies as st

from devinde_tracker.adapters.reconcile import (
    UpsertOutcome,
    as_records,
    merge_by_id,
    patch_by_id,
    record_id,
    remove_by_id,
    upsert,
)

_IDS = st.sampled_from(["a", "b", "c", "d", "e", "f"])
_RECORD = st.fixed_dictionaries({"id": _IDS, "value": st.integers(min_value=0, max_value=9)})
_BASE = st.lists(_RECORD, max_size=5, unique_by=lambda record: record["id"])
_CHANGES = st.lists(_RECORD, max_size=6)


def test_changed_records_replace_in_place_and_new_ones_append() -> None:
    base = [
        {"id": "milestone-1", "title": "Draft"},
        {"id": "milestone-2", "title": "Review"},
    ]
    changes = [
        {"id": "milestone-1", "title": "Draft v2"},
        {"id": "milestone-3", "title": "Ship"},
    ]

    merged = merge_by_id(base, changes)

    assert merged == [
        {"id": "milestone-1", "title": "Draft v2"},
        {"id": "milestone-2", "title": "Review"},
        {"id": "milestone-3", "title": "Ship"},
    ]
    assert merged[1] is base[1]
    assert base[0]["title"] == "Draft"


def test_records_without_ids() -> None:
    base = [{"title": "legacy"}, {"id": "a"}]

    merged = merge_by_id(base, [{"title": "orphan change"}, {"id": "a", "v": 1}])

    assert merged == [{"title": "legacy"}, {"id": "a", "v": 1}]


def test_last_change_wins_for_repeated_ids() -> None:
    merged = merge_by_id([], [{"id": "x", "v": 1}, {"id": "y"}, {"id": "x", "v": 2}])

    assert merged == [{"id": "x", "v": 2}, {"id": "y"}]


def test_upsert_reports_outcome() -> None:
    base = [{"id": "a", "v": 1}]

    replaced = upsert(base, {"id": "a", "v": 2})
    inserted = upsert(base, {"id": "b"})

    assert replaced.outcome is UpsertOutcome.REPLACED
    assert replaced.records == [{"id": "a", "v": 2}]
    assert inserted.outcome is UpsertOutcome.INSERTED
    assert inserted.records == [{"id": "a", "v": 1}, {"id": "b"}]


def test_patch_by_id_merges_shallowly_and_keeps_the_id() -> None:
    base = [{"id": "a", "title": "x", "extra": True}, {"id": "b"}]

    hit = patch_by_id(base, "a", {"title": "y", "id": "hijack"})
    miss = patch_by_id(base, "zzz", {"title": "y"})

    assert hit.found is True
    assert hit.records[0] == {"id": "a", "title": "y", "extra": True}
    assert hit.records[1] is base[1]
    assert miss.found is False
    assert miss.records == base
    assert base[0]["title"] == "x"


def test_remove_by_id() -> None:
    base = [{"id": "a"}, {"id": "b"}]

    assert remove_by_id(base, "a").records == [{"id": "b"}]
    assert remove_by_id(base, "a").removed is True
    assert remove_by_id(base, "q").removed is False
    assert remove_by_id(None, "a").records == []


def test_record_id_and_as_records() -> None:
    assert record_id({"id": "x"}) == "x"
    assert record_id({"id": 4}) == "4"
    assert record_id({"id": True}) is None
    assert record_id({"id": ""}) is None
    assert record_id("x") is None
    assert as_records([{"id": "a"}, "junk", None]) == [{"id": "a"}]
    assert as_records({"id": "a"}) == []


@settings(max_examples=200, deadline=None)
@given(base=_BASE, changes=_CHANGES)
def test_merge_preserves_base_order_then_appends_new_ids(
    base: list[dict[str, Any]], changes: list[dict[str, Any]]
) -> None:
    merged = merge_by_id(base, changes)

    base_ids = [record["id"] for record in base]
    new_ids: list[str] = []
    for change in changes:
        if change["id"] not in base_ids and change["id"] not in new_ids:
            new_ids.append(change["id"])
    assert [record["id"] for record in merged] == base_ids + new_ids


@settings(max_examples=200, deadline=None)
@given(base=_BASE, changes=_CHANGES)
def test_merge_applies_last_change_and_keeps_untouched_records(
    base: list[dict[str, Any]], changes: list[dict[str, Any]]
) -> None:
    snapshot = copy.deepcopy(base)
    merged = merge_by_id(base, changes)

    last_change = {change["id"]: change for change in changes}
    for record in merged:
        if record["id"] in last_change:
            assert record is last_change[record["id"]]
        else:
            assert any(record is original for original in base)
    assert base == snapshot


@settings(max_examples=200, deadline=None)
@given(base=_BASE, changes=_CHANGES)
def test_merge_is_idempotent(base: list[dict[str, Any]], changes: list[dict[str, Any]]) -> None:
    once = merge_by_id(base, changes)

    assert merge_by_id(once, changes) == once
    assert merge_by_id(base, []) == base
