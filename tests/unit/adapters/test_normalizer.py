"""
devinde-tracker — unit tests for persisted -> view normalization

Purpose
- Missing or malformed input yields complete default records.
- Aliases, numeric coercion, bounds, generated ids and derived fields.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from devinde_tracker.adapters.context import AdapterContext
from devinde_tracker.adapters.normalizer import (
    default_record,
    first_present,
    normalize,
    normalize_many,
    round_half_up,
)
from devinde_tracker.domain.enums import ItemStatus, MilestoneCategory, PriorityLevel
from devinde_tracker.domain.ids import seeded_id_factory, validate_prefixed_id
from devinde_tracker.domains.action_plan import MILESTONE_SCHEMA, SUBTASK_SCHEMA, TASK_SCHEMA
from devinde_tracker.domains.market_analysis import TREND_SCHEMA

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=UTC)


def _context() -> AdapterContext:
    return AdapterContext.at(NOW, new_id=seeded_id_factory(7))


def test_missing_input_yields_complete_default_record() -> None:
    context = _context()

    task = normalize(TASK_SCHEMA, None, context)

    assert task.id == ""
    assert task.title == ""
    assert task.priority is PriorityLevel.MEDIUM
    assert task.status is ItemStatus.PENDING
    assert task.estimated_hours == 0
    assert task.subtasks == []
    assert task.created_at == context.now_iso
    assert normalize(TASK_SCHEMA, 42, context) == task
    assert default_record(TASK_SCHEMA, context) == task


def test_default_record_does_not_run_derive_hooks() -> None:
    milestone = normalize(MILESTONE_SCHEMA, None, _context())

    assert milestone.status is ItemStatus.PENDING
    assert milestone.category is MilestoneCategory.ALL
    assert milestone.days_remaining is None


def test_records_without_id_receive_prefixed_ids() -> None:
    context = _context()

    generated = normalize(TASK_SCHEMA, {"title": "Invoice"}, context)
    numeric = normalize(TASK_SCHEMA, {"id": 12}, context)
    kept = normalize(TASK_SCHEMA, {"id": " task-9 "}, context)

    validate_prefixed_id(generated.id, "task")
    assert numeric.id == "12"
    assert kept.id == "task-9"


def test_first_alias_wins_and_blank_values_are_skipped() -> None:
    context = _context()

    both = normalize(MILESTONE_SCHEMA, {"dueDate": "2024-07-01", "targetDate": "2024-08-01"}, context)
    legacy = normalize(MILESTONE_SCHEMA, {"dueDate": "  ", "targetDate": "2024-08-01"}, context)

    assert both.due_date == "2024-07-01"
    assert legacy.due_date == "2024-08-01"
    assert first_present({"a": None, "b": "", "c": 0}, ("a", "b", "c")) == 0


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (150, 100),
        (-20, 0),
        ("42.6", 43),
        ("12,5", 13),
        ("n/a", 0),
        (0, 0),
        (True, 0),
    ],
)
def test_progress_is_coerced_rounded_and_clamped(raw: object, expected: int) -> None:
    milestone = normalize(MILESTONE_SCHEMA, {"id": "m", "progress": raw}, _context())
    assert milestone.progress == expected


def test_numbers_accept_decimal_strings() -> None:
    task = normalize(TASK_SCHEMA, {"estimatedHours": "2,5", "actualHours": "3"}, _context())

    assert task.estimated_hours == 2.5
    assert task.actual_hours == 3


@pytest.mark.parametrize("raw", ["1,000", "12,500,000", "1,000.5", "1.000,5", "1,2,3", "-2,500"])
def test_ambiguous_separator_strings_count_as_absent(raw: str) -> None:
    task = normalize(TASK_SCHEMA, {"estimatedHours": raw}, _context())

    assert task.estimated_hours == 0


@pytest.mark.parametrize(("raw", "expected"), [("1,5", 1.5), ("0,25", 0.25), ("1000", 1000), ("12,50", 12.5)])
def test_single_decimal_comma_is_accepted(raw: str, expected: float) -> None:
    task = normalize(TASK_SCHEMA, {"estimatedHours": raw}, _context())

    assert task.estimated_hours == expected


def test_milestone_status_falls_back_to_completion_flag() -> None:
    context = _context()

    assert normalize(MILESTONE_SCHEMA, {"isCompleted": True}, context).status is ItemStatus.COMPLETED
    assert normalize(MILESTONE_SCHEMA, {"isCompleted": False}, context).status is ItemStatus.PENDING
    explicit = normalize(MILESTONE_SCHEMA, {"status": "in-progress", "isCompleted": True}, context)
    assert explicit.status is ItemStatus.IN_PROGRESS


def test_subtask_completion_follows_status_unless_explicit() -> None:
    context = _context()

    derived = normalize(SUBTASK_SCHEMA, {"status": "done"}, context)
    explicit = normalize(SUBTASK_SCHEMA, {"status": "done", "completed": False}, context)

    assert derived.completed is True
    assert explicit.completed is False


def test_nested_collections_are_normalized_recursively() -> None:
    task = normalize(
        TASK_SCHEMA,
        {
            "id": "task-1",
            "subtasks": [{"id": "subtask-1", "comments": [{"content": "hi"}]}, "junk"],
            "tags": ["admin", 3, None],
            "comments": "not a list",
        },
        _context(),
    )

    assert [subtask.id for subtask in task.subtasks] == ["subtask-1"]
    validate_prefixed_id(task.subtasks[0].comments[0].id, "comment")
    assert task.tags == ["admin", "3"]
    assert task.comments == []


def test_normalize_many_skips_non_mapping_elements(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger="devinde_tracker.adapters.normalizer"):
        tasks = normalize_many(TASK_SCHEMA, [None, "x", {"id": "task-1"}], _context())

    assert [task.id for task in tasks] == ["task-1"]
    assert "skipping" in caplog.text
    assert normalize_many(TASK_SCHEMA, {"id": "task-1"}, _context()) == []


def test_trend_strings_are_coerced_into_records() -> None:
    trends = normalize_many(TREND_SCHEMA, ["Remote work: steady growth", "AI"], _context())

    assert [trend.title for trend in trends] == ["Remote work", "AI"]
    assert trends[0].description == "steady growth"
    assert trends[1].description == ""
    assert trends[0].timeframe == "Medium term"


def test_existing_timestamps_are_kept() -> None:
    task = normalize(TASK_SCHEMA, {"createdAt": "2024-01-01T00:00:00.000Z"}, _context())
    assert task.created_at == "2024-01-01T00:00:00.000Z"


@pytest.mark.parametrize(
    ("value", "expected"),
    [(0.5, 1), (2.5, 3), (33.333, 33), (66.666, 67), (100 / 3, 33)],
)
def test_round_half_up(value: float, expected: int) -> None:
    assert round_half_up(value) == expected


_JSON = st.recursive(
    st.none() | st.booleans() | st.integers() | st.floats() | st.text(max_size=8),
    lambda children: st.lists(children, max_size=3) | st.dictionaries(st.text(max_size=4), children, max_size=3),
    max_leaves=12,
)
_MILESTONE_KEYS = st.sampled_from(
    ["id", "title", "status", "isCompleted", "progress", "tasksTotal", "daysRemaining", "dueDate", "targetDate", "comments"]
)
_TASK_KEYS = st.sampled_from(
    ["id", "priority", "status", "estimatedHours", "subtasks", "dependencies", "tags", "comments", "milestoneId", "createdAt"]
)


@settings(max_examples=200, deadline=None)
@given(raw=st.dictionaries(_MILESTONE_KEYS, _JSON, max_size=8))
def test_milestone_normalization_is_total_and_bounded(raw: dict[str, object]) -> None:
    milestone = normalize(MILESTONE_SCHEMA, raw, _context())

    assert milestone.id
    assert 0 <= milestone.progress <= 100
    assert isinstance(milestone.status, ItemStatus)
    assert isinstance(milestone.due_date, str)


@settings(max_examples=200, deadline=None)
@given(raw=st.one_of(_JSON, st.dictionaries(_TASK_KEYS, _JSON, max_size=8)))
def test_task_normalization_never_raises(raw: object) -> None:
    task = normalize(TASK_SCHEMA, raw, _context())

    assert isinstance(task.priority, PriorityLevel)
    assert all(isinstance(tag, str) for tag in task.tags)
    assert all(subtask.id for subtask in task.subtasks)
