"""
devinde-tracker — unit tests for the action plan section

Purpose
- Stored plan -> view with statistics and milestone grouping.
- Reconciliation of UI edits and milestone removal.
- Detailed milestones, calendar events and timeline items.
"""

from __future__ import annotations

import copy
from datetime import UTC, datetime
from typing import Any

from structlog.testing import capture_logs

from devinde_tracker.adapters.context import AdapterContext
from devinde_tracker.domain.enums import ItemStatus
from devinde_tracker.domain.ids import seeded_id_factory
from devinde_tracker.domain.models import Milestone, SubTask, Task
from devinde_tracker.domains import action_plan

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=UTC)


def _context() -> AdapterContext:
    return AdapterContext.at(NOW, new_id=seeded_id_factory(11))


def _stored_plan() -> dict[str, Any]:
    return {
        "milestones": [
            {"id": "milestone-1", "title": "Launch", "isCompleted": False, "dueDate": "2024-07-01"},
            {"id": "milestone-2", "title": "Setup", "isCompleted": True, "targetDate": "2024-05-01"},
        ],
        "tasks": [
            {"id": "task-1", "title": "Website", "status": "todo", "milestoneId": "milestone-1"},
            {"id": "task-2", "title": "Offer", "status": "in-progress", "milestoneId": "milestone-1"},
            {"id": "task-3", "title": "Bank", "status": "done"},
        ],
        "owner": "plan-42",
    }


def test_view_statistics_for_mixed_plan() -> None:
    view = action_plan.to_view(_stored_plan(), _context())

    stats = view.statistics
    assert stats.total_milestones == 2
    assert stats.completed_milestones == 1
    assert stats.total_tasks == 3
    assert stats.completed_tasks == 1
    assert stats.completion_rate == 33
    assert stats.late_milestones == 0


def test_view_groups_tasks_under_milestones() -> None:
    view = action_plan.to_view(_stored_plan(), _context())

    grouped = {key: [task.id for task in tasks] for key, tasks in view.tasks_by_milestone.items()}
    assert grouped == {
        "milestone-1": ["task-1", "task-2"],
        "milestone-2": [],
        "unassigned": ["task-3"],
    }


def test_view_enriches_milestones_against_the_clock() -> None:
    plan = _stored_plan()
    plan["milestones"].append({"id": "milestone-3", "status": "in-progress", "dueDate": "2024-06-10"})

    view = action_plan.to_view(plan, _context())
    by_id = {milestone.id: milestone for milestone in view.milestones}

    assert by_id["milestone-1"].tasks_total == 2
    assert by_id["milestone-1"].tasks_completed == 0
    assert by_id["milestone-1"].days_remaining == 16
    assert by_id["milestone-1"].is_late is False
    assert by_id["milestone-2"].due_date == "2024-05-01"
    assert by_id["milestone-2"].is_late is False
    assert by_id["milestone-3"].days_remaining == -5
    assert by_id["milestone-3"].is_late is True
    assert view.statistics.late_milestones == 1


def test_milestone_due_earlier_today_is_late_with_zero_days_remaining() -> None:
    plan = {
        "milestones": [{"id": "milestone-1", "status": "in-progress", "dueDate": "2024-06-15T00:00:00Z"}],
        "tasks": [],
    }

    view = action_plan.to_view(plan, _context())
    milestone = view.milestones[0]

    assert milestone.days_remaining == 0
    assert milestone.is_late is True
    assert view.statistics.late_milestones == 1


def test_missing_plan_yields_empty_view() -> None:
    view = action_plan.to_view(None, _context())

    assert view.milestones == []
    assert view.tasks_by_milestone == {"unassigned": []}
    assert view.statistics.completion_rate == 0
    assert view.settings.default_view == "list"


def test_to_persisted_omits_derived_milestone_fields() -> None:
    context = _context()
    view = action_plan.to_view(_stored_plan(), context)

    persisted = action_plan.to_persisted(view, context)

    first = persisted["milestones"][0]
    assert first["dueDate"] == first["targetDate"] == "2024-07-01"
    assert first["isCompleted"] is False
    assert "tasksTotal" not in first
    assert "daysRemaining" not in first
    assert [task["status"] for task in persisted["tasks"]] == ["planned", "in-progress", "done"]


def test_apply_changes_patches_existing_milestone_and_keeps_stored_extras() -> None:
    context = _context()
    stored = _stored_plan()
    stored["milestones"][0]["legacyNote"] = "keep me"
    snapshot = copy.deepcopy(stored)
    edited = Milestone(id="milestone-1", title="Launch v2", due_date="2024-07-01")

    with capture_logs() as logs:
        updated = action_plan.apply_changes(
            stored, action_plan.ActionPlanChanges(updated_milestone=edited), context
        )

    milestone = updated["milestones"][0]
    assert milestone["title"] == "Launch v2"
    assert milestone["legacyNote"] == "keep me"
    assert milestone["updatedAt"] == context.now_iso
    assert updated["milestones"][1] is stored["milestones"][1]
    assert updated["owner"] == "plan-42"
    assert stored == snapshot
    assert logs[0]["event"] == "action_plan_changes_applied"
    assert logs[0]["milestone_upsert"] == "replaced"


def test_apply_changes_appends_new_task() -> None:
    context = _context()

    with capture_logs() as logs:
        updated = action_plan.apply_changes(
            _stored_plan(),
            action_plan.ActionPlanChanges(updated_task=Task(id="task-4", title="Logo")),
            context,
        )

    assert [task["id"] for task in updated["tasks"]] == ["task-1", "task-2", "task-3", "task-4"]
    assert logs[0]["task_upsert"] == "inserted"


def test_apply_changes_with_full_lists_replaces_collections() -> None:
    context = _context()

    updated = action_plan.apply_changes(
        _stored_plan(),
        action_plan.ActionPlanChanges(tasks=[Task(id="task-9", status=ItemStatus.CANCELLED)]),
        context,
    )

    assert [task["id"] for task in updated["tasks"]] == ["task-9"]
    assert updated["tasks"][0]["status"] == "cancelled"
    assert len(updated["milestones"]) == 2


def test_remove_milestone_detaches_linked_tasks() -> None:
    context = _context()
    stored = _stored_plan()

    with capture_logs() as logs:
        removal = action_plan.remove_milestone(stored, "milestone-1", context)

    assert removal.removed is True
    assert removal.detached_tasks == 2
    assert [m["id"] for m in removal.plan["milestones"]] == ["milestone-2"]
    for task in removal.plan["tasks"][:2]:
        assert "milestoneId" not in task
        assert task["updatedAt"] == context.now_iso
    assert removal.plan["tasks"][2] is stored["tasks"][2]
    assert stored["tasks"][0]["milestoneId"] == "milestone-1"
    assert logs[0]["event"] == "action_plan_milestone_removed"


def test_remove_unknown_milestone_changes_nothing() -> None:
    stored = _stored_plan()

    with capture_logs() as logs:
        removal = action_plan.remove_milestone(stored, "milestone-404", _context())

    assert removal.removed is False
    assert removal.detached_tasks == 0
    assert removal.plan["tasks"] == stored["tasks"]
    assert logs[0]["event"] == "action_plan_milestone_remove_missed"


def test_detail_milestones_recomputes_progress_from_tasks() -> None:
    milestones = [
        Milestone(id="milestone-1", progress=10),
        Milestone(id="milestone-2", progress=40),
    ]
    tasks = [
        Task(id="task-1", milestone_id="milestone-1", status=ItemStatus.COMPLETED),
        Task(id="task-2", milestone_id="milestone-1"),
    ]

    detailed = action_plan.detail_milestones(milestones, tasks, _context())

    assert detailed[0].progress == 50
    assert detailed[0].tasks_completed == 1
    assert detailed[1].progress == 40
    assert detailed[1].tasks_total == 0
    assert milestones[0].progress == 10


def test_calendar_events_cover_dated_items() -> None:
    milestones = [Milestone(id="milestone-1", title="Launch", due_date="2024-07-01"), Milestone(id="milestone-2")]
    tasks = [
        Task(id="task-1", title="Site", start_date="2024-06-20", due_date="2024-06-30"),
        Task(id="task-2", title="Undated"),
        Task(id="task-3", title="Call", due_date="2024-06-18"),
    ]

    events = action_plan.calendar_events(milestones, tasks)

    assert [event.id for event in events] == ["milestone-milestone-1", "task-task-1", "task-task-3"]
    assert events[0].type == "milestone"
    assert events[0].linked_item_id == "milestone-1"
    assert (events[1].start, events[1].end) == ("2024-06-20", "2024-06-30")
    assert (events[2].start, events[2].end) == ("2024-06-18", "2024-06-18")
    assert all(event.all_day for event in events)


def test_timeline_items_spans() -> None:
    milestones = [Milestone(id="milestone-1", title="Q1 close", due_date="2024-03-31", progress=30)]
    tasks = [
        Task(
            id="task-1",
            due_date="2024-06-30",
            status=ItemStatus.IN_PROGRESS,
            dependencies=["task-0"],
            milestone_id="milestone-1",
            subtasks=[SubTask(id="subtask-1", completed=True), SubTask(id="subtask-2")],
        ),
        Task(id="task-2", start_date="2024-06-01"),
        Task(id="task-3"),
    ]

    items = action_plan.timeline_items(milestones, tasks, _context())
    by_id = {item.id: item for item in items}

    assert by_id["milestone-milestone-1"].start == "2024-02-29"
    assert by_id["milestone-milestone-1"].end == "2024-03-31"
    assert by_id["milestone-milestone-1"].progress == 30

    task = by_id["task-task-1"]
    assert (task.start, task.end) == ("2024-06-23", "2024-06-30")
    assert task.progress == 50
    assert task.dependencies == ("task-0",)
    assert task.milestone == "milestone-1"

    assert (by_id["task-task-2"].start, by_id["task-task-2"].end) == ("2024-06-01", "2024-06-15")
    assert "task-task-3" not in by_id

    assert by_id["subtask-subtask-1"].progress == 100
    assert by_id["subtask-subtask-2"].progress == 0
    assert by_id["subtask-subtask-1"].parent_id == "task-task-1"
    assert (by_id["subtask-subtask-2"].start, by_id["subtask-subtask-2"].end) == ("2024-06-23", "2024-06-30")
