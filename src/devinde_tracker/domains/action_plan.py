"""
Action plan section: milestones, tasks, subtasks and comments.

This module wires the generic adapter layer to the action-plan entities:
- entity schemas (aliases, codes, defaults) for normalization and serialization
- `to_view` / `to_persisted` conversions for the whole section
- `apply_changes` reconciliation of UI edits into the stored plan
- derived views: detailed milestones, calendar events and timeline items

It integrates with:
- `adapters.statistics` for counts and lateness against an explicit ``now``
- `adapters.hierarchy` for grouping tasks under their milestone
- `structlog` for machine-parseable decision logs
"""

from __future__ import annotations

import calendar
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from typing import Any

import structlog

from devinde_tracker.adapters.context import (
    AdapterContext,
    format_date,
    parse_timestamp,
)
from devinde_tracker.adapters.hierarchy import build_hierarchy
from devinde_tracker.adapters.normalizer import normalize_many
from devinde_tracker.adapters.reconcile import (
    Record,
    UpsertOutcome,
    as_records,
    patch_by_id,
    record_id,
    remove_by_id,
    upsert,
)
from devinde_tracker.adapters.schema import (
    EntitySchema,
    FieldSpec,
    audit_fields,
    code,
    entities,
    flag,
    integer,
    number,
    text,
    text_list,
    timestamp,
)
from devinde_tracker.adapters.serializer import serialize, serialize_many
from devinde_tracker.adapters.statistics import (
    ActionPlanStatistics,
    action_plan_statistics,
    completion_rate,
    is_late,
)
from devinde_tracker.constants import (
    MILESTONE_LEAD_MONTHS,
    PROGRESS_MAX,
    PROGRESS_MIN,
    TASK_LEAD_DAYS,
)
from devinde_tracker.domain.enums import ItemStatus, MilestoneCategory, PriorityLevel
from devinde_tracker.domain.ids import (
    COMMENT_ID_PREFIX,
    MILESTONE_ID_PREFIX,
    SUBTASK_ID_PREFIX,
    TASK_ID_PREFIX,
)
from devinde_tracker.domain.models import (
    CanonicalModel,
    Comment,
    Milestone,
    SubTask,
    Task,
)
from devinde_tracker.domain.records import ActionPlanRecord

_LOGGER = structlog.get_logger(__name__)

_PROGRESS_BOUNDS = (float(PROGRESS_MIN), float(PROGRESS_MAX))
_SECONDS_PER_DAY = 86_400


# ---------------------------------------------------------------------------
# Entity schemas
# ---------------------------------------------------------------------------


def _derive_milestone_status(raw: Mapping[str, object], values: dict[str, Any], _: AdapterContext) -> None:
    status = raw.get("status")
    if status is None or (isinstance(status, str) and not status.strip()):
        values["status"] = ItemStatus.COMPLETED if raw.get("isCompleted") is True else ItemStatus.PENDING


def _emit_milestone_completion(view: Milestone, out: dict[str, Any], _: AdapterContext) -> None:
    out["isCompleted"] = view.status == ItemStatus.COMPLETED


def _derive_subtask_completion(raw: Mapping[str, object], values: dict[str, Any], _: AdapterContext) -> None:
    if not isinstance(raw.get("completed"), bool):
        values["completed"] = values["status"] == ItemStatus.COMPLETED


COMMENT_SCHEMA = EntitySchema(
    kind="comment",
    view_type=Comment,
    id_prefix=COMMENT_ID_PREFIX,
    fields=(
        text("author", "author"),
        text("content", "content"),
        timestamp("timestamp", "timestamp"),
        flag("edited", "edited"),
        *audit_fields(),
    ),
)

SUBTASK_SCHEMA = EntitySchema(
    kind="subtask",
    view_type=SubTask,
    id_prefix=SUBTASK_ID_PREFIX,
    derive=_derive_subtask_completion,
    fields=(
        text("title", "title"),
        text("description", "description"),
        code("priority", "priority", "priority"),
        code("status", "status", "status"),
        flag("completed", "completed"),
        entities("comments", "comments", COMMENT_SCHEMA),
        text_list("tags", "tags"),
        text("milestone_id", "milestoneId"),
        *audit_fields(),
    ),
)

TASK_SCHEMA = EntitySchema(
    kind="task",
    view_type=Task,
    id_prefix=TASK_ID_PREFIX,
    fields=(
        text("title", "title"),
        text("description", "description"),
        code("priority", "priority", "priority"),
        code("status", "status", "status"),
        text("assignee", "assignee"),
        text("start_date", "startDate"),
        text("due_date", "dueDate"),
        number("estimated_hours", "estimatedHours"),
        number("actual_hours", "actualHours"),
        entities("subtasks", "subtasks", SUBTASK_SCHEMA),
        text_list("dependencies", "dependencies"),
        entities("comments", "comments", COMMENT_SCHEMA),
        text_list("tags", "tags"),
        flag("is_blocking", "isBlocking"),
        text("milestone_id", "milestoneId"),
        *audit_fields(),
    ),
)

# Task counts, days remaining and lateness are recomputed from the plan and
# never written back.
MILESTONE_SCHEMA = EntitySchema(
    kind="milestone",
    view_type=Milestone,
    id_prefix=MILESTONE_ID_PREFIX,
    derive=_derive_milestone_status,
    emit=_emit_milestone_completion,
    fields=(
        text("title", "title"),
        text("description", "description"),
        code("category", "category", "milestone_category"),
        code("status", "status", "status"),
        integer("progress", "progress", bounds=_PROGRESS_BOUNDS),
        integer("tasks_total", "tasksTotal", write=()),
        integer("tasks_completed", "tasksCompleted", write=()),
        FieldSpec("days_remaining", ("daysRemaining",), "optional_integer", write_keys=()),
        flag("is_late", "isLate", write=()),
        text("due_date", "dueDate", "targetDate", write=("dueDate", "targetDate")),
        entities("comments", "comments", COMMENT_SCHEMA),
        *audit_fields(),
    ),
)


# ---------------------------------------------------------------------------
# View shapes
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class ActionPlanFilters(CanonicalModel):
    statuses: list[ItemStatus] = field(default_factory=lambda: list(ItemStatus))
    priorities: list[PriorityLevel] = field(default_factory=lambda: list(PriorityLevel))
    categories: list[MilestoneCategory] = field(default_factory=lambda: list(MilestoneCategory))
    tags: list[str] = field(default_factory=list)
    assignees: list[str] = field(default_factory=list)
    search_term: str = ""


@dataclass(slots=True)
class ActionPlanViewSettings(CanonicalModel):
    show_completed_tasks: bool = True
    show_subtasks: bool = True
    active_filters: ActionPlanFilters = field(default_factory=ActionPlanFilters)
    default_view: str = "list"
    show_dependencies: bool = True


@dataclass(slots=True)
class ActionPlanView(CanonicalModel):
    milestones: list[Milestone]
    tasks: list[Task]
    tasks_by_milestone: dict[str, list[Task]]
    statistics: ActionPlanStatistics
    settings: ActionPlanViewSettings = field(default_factory=ActionPlanViewSettings)


@dataclass(slots=True)
class ActionPlanChanges:
    """UI edits; full collections replace, single records are upserted."""

    milestones: list[Milestone] | None = None
    tasks: list[Task] | None = None
    updated_milestone: Milestone | None = None
    updated_task: Task | None = None


@dataclass(frozen=True, slots=True)
class MilestoneRemoval:
    plan: ActionPlanRecord
    removed: bool
    detached_tasks: int


@dataclass(frozen=True, slots=True)
class CalendarEvent(CanonicalModel):
    id: str
    title: str
    start: str
    end: str
    type: str
    status: ItemStatus
    linked_item_id: str
    all_day: bool = True


@dataclass(frozen=True, slots=True)
class TimelineItem(CanonicalModel):
    id: str
    title: str
    type: str
    start: str
    end: str
    progress: int
    status: ItemStatus
    dependencies: tuple[str, ...] = ()
    milestone: str = ""
    assignee: str = ""
    parent_id: str = ""


# ---------------------------------------------------------------------------
# Conversions
# ---------------------------------------------------------------------------


def to_view(plan: Mapping[str, Any] | None, context: AdapterContext) -> ActionPlanView:
    """Normalize the stored plan and attach its derived views."""
    raw = plan if isinstance(plan, Mapping) else {}
    milestones = normalize_many(MILESTONE_SCHEMA, raw.get("milestones"), context)
    tasks = normalize_many(TASK_SCHEMA, raw.get("tasks"), context)
    enriched = [_enrich_milestone(milestone, tasks, context) for milestone in milestones]
    return ActionPlanView(
        milestones=enriched,
        tasks=tasks,
        tasks_by_milestone=build_hierarchy(tasks, enriched),
        statistics=action_plan_statistics(enriched, tasks, context.now),
    )


def to_persisted(view: ActionPlanView, context: AdapterContext) -> ActionPlanRecord:
    return {
        "milestones": serialize_many(MILESTONE_SCHEMA, view.milestones, context),
        "tasks": serialize_many(TASK_SCHEMA, view.tasks, context),
    }


def apply_changes(
    plan: Mapping[str, Any] | None,
    changes: ActionPlanChanges,
    context: AdapterContext,
) -> ActionPlanRecord:
    """Return a new stored plan with ``changes`` applied.

    Full ``milestones`` / ``tasks`` lists replace the stored collections.
    ``updated_milestone`` / ``updated_task`` are merged over the stored record
    with the same id, or appended when the id is new.
    """
    raw = plan if isinstance(plan, Mapping) else {}
    milestones: list[Record] = list(as_records(raw.get("milestones")))
    tasks: list[Record] = list(as_records(raw.get("tasks")))

    if changes.milestones is not None:
        milestones = list(serialize_many(MILESTONE_SCHEMA, changes.milestones, context))
    if changes.tasks is not None:
        tasks = list(serialize_many(TASK_SCHEMA, changes.tasks, context))

    milestone_outcome: UpsertOutcome | None = None
    if changes.updated_milestone is not None:
        milestones, milestone_outcome = _merge_record(
            milestones, serialize(MILESTONE_SCHEMA, changes.updated_milestone, context)
        )
    task_outcome: UpsertOutcome | None = None
    if changes.updated_task is not None:
        tasks, task_outcome = _merge_record(tasks, serialize(TASK_SCHEMA, changes.updated_task, context))

    _LOGGER.info(
        "action_plan_changes_applied",
        milestones_replaced=changes.milestones is not None,
        tasks_replaced=changes.tasks is not None,
        milestone_upsert=milestone_outcome.value if milestone_outcome is not None else None,
        task_upsert=task_outcome.value if task_outcome is not None else None,
        milestone_count=len(milestones),
        task_count=len(tasks),
    )
    return {**raw, "milestones": milestones, "tasks": tasks}  # type: ignore[typeddict-item]


def remove_milestone(
    plan: Mapping[str, Any] | None,
    milestone_id: str,
    context: AdapterContext,
) -> MilestoneRemoval:
    """Delete a milestone and detach the tasks that referenced it."""
    raw = plan if isinstance(plan, Mapping) else {}
    removal = remove_by_id(as_records(raw.get("milestones")), milestone_id)
    tasks: list[Record] = []
    detached = 0
    for task in as_records(raw.get("tasks")):
        if removal.removed and task.get("milestoneId") == milestone_id:
            stripped = {key: value for key, value in task.items() if key != "milestoneId"}
            stripped["updatedAt"] = context.now_iso
            tasks.append(stripped)
            detached += 1
        else:
            tasks.append(task)

    if not removal.removed:
        _LOGGER.info("action_plan_milestone_remove_missed", milestone_id=milestone_id)
    else:
        _LOGGER.info(
            "action_plan_milestone_removed",
            milestone_id=milestone_id,
            detached_tasks=detached,
        )
    updated = {**raw, "milestones": removal.records, "tasks": tasks}
    return MilestoneRemoval(plan=updated, removed=removal.removed, detached_tasks=detached)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Derived views
# ---------------------------------------------------------------------------


def detail_milestones(
    milestones: Sequence[Milestone],
    tasks: Sequence[Task],
    context: AdapterContext,
) -> list[Milestone]:
    """Milestones with task counts, days remaining, lateness and task-based progress."""
    detailed: list[Milestone] = []
    for milestone in milestones:
        enriched = _enrich_milestone(milestone, tasks, context)
        if enriched.tasks_total > 0:
            enriched = replace(
                enriched,
                progress=completion_rate(enriched.tasks_completed, enriched.tasks_total),
            )
        detailed.append(enriched)
    return detailed


def calendar_events(milestones: Sequence[Milestone], tasks: Sequence[Task]) -> list[CalendarEvent]:
    """All-day calendar entries for every dated milestone and task."""
    events: list[CalendarEvent] = []
    for milestone in milestones:
        if not milestone.due_date:
            continue
        events.append(
            CalendarEvent(
                id=f"milestone-{milestone.id}",
                title=milestone.title,
                start=milestone.due_date,
                end=milestone.due_date,
                type="milestone",
                status=milestone.status,
                linked_item_id=milestone.id,
            )
        )
    for task in tasks:
        if not task.due_date:
            continue
        events.append(
            CalendarEvent(
                id=f"task-{task.id}",
                title=task.title,
                start=task.start_date or task.due_date,
                end=task.due_date,
                type="task",
                status=task.status,
                linked_item_id=task.id,
            )
        )
    return events


def timeline_items(
    milestones: Sequence[Milestone],
    tasks: Sequence[Task],
    context: AdapterContext,
) -> list[TimelineItem]:
    """Gantt-style bars for milestones, tasks and their subtasks.

    Milestones span the month before their due date. A task without a due
    date ends today; a task without a start date begins a week before its end.
    Subtasks share their parent's span.
    """
    items: list[TimelineItem] = []
    for milestone in milestones:
        due = parse_timestamp(milestone.due_date)
        if due is None:
            continue
        items.append(
            TimelineItem(
                id=f"milestone-{milestone.id}",
                title=milestone.title,
                type="milestone",
                start=_months_before(due.date(), MILESTONE_LEAD_MONTHS).isoformat(),
                end=milestone.due_date,
                progress=milestone.progress,
                status=milestone.status,
            )
        )

    for task in tasks:
        if not task.due_date and not task.start_date:
            continue
        end = task.due_date or format_date(context.now)
        start = task.start_date or _days_before(end, TASK_LEAD_DAYS)
        items.append(
            TimelineItem(
                id=f"task-{task.id}",
                title=task.title,
                type="task",
                start=start,
                end=end,
                progress=_task_progress(task.status),
                status=task.status,
                dependencies=tuple(task.dependencies),
                milestone=task.milestone_id,
                assignee=task.assignee,
            )
        )
        for subtask in task.subtasks:
            items.append(
                TimelineItem(
                    id=f"subtask-{subtask.id}",
                    title=subtask.title,
                    type="subtask",
                    start=start,
                    end=end,
                    progress=PROGRESS_MAX if subtask.completed else PROGRESS_MIN,
                    status=subtask.status,
                    milestone=task.milestone_id,
                    parent_id=f"task-{task.id}",
                )
            )
    return items


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------


def _enrich_milestone(milestone: Milestone, tasks: Sequence[Task], context: AdapterContext) -> Milestone:
    linked = [task for task in tasks if task.milestone_id and task.milestone_id == milestone.id]
    days_remaining: int | None = None
    late = False
    due = parse_timestamp(milestone.due_date)
    if due is not None:
        days_remaining = math.ceil((due - context.now).total_seconds() / _SECONDS_PER_DAY)
        late = is_late(milestone.due_date, milestone.status, context.now)
    return replace(
        milestone,
        tasks_total=len(linked),
        tasks_completed=sum(1 for task in linked if task.status == ItemStatus.COMPLETED),
        days_remaining=days_remaining,
        is_late=late,
    )


def _merge_record(collection: list[Record], record: dict[str, Any]) -> tuple[list[Record], UpsertOutcome]:
    key = record_id(record)
    if key is not None:
        patched = patch_by_id(collection, key, record)
        if patched.found:
            return patched.records, UpsertOutcome.REPLACED
    result = upsert(collection, record)
    return result.records, result.outcome


def _task_progress(status: ItemStatus) -> int:
    if status == ItemStatus.COMPLETED:
        return PROGRESS_MAX
    if status == ItemStatus.IN_PROGRESS:
        return 50
    return PROGRESS_MIN


def _months_before(day: date, months: int) -> date:
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    last_day = calendar.monthrange(year, month + 1)[1]
    return date(year, month + 1, min(day.day, last_day))


def _days_before(end: str, days: int) -> str:
    parsed = parse_timestamp(end)
    if parsed is None:
        return end
    return (parsed.date() - timedelta(days=days)).isoformat()


__all__ = [
    "COMMENT_SCHEMA",
    "MILESTONE_SCHEMA",
    "SUBTASK_SCHEMA",
    "TASK_SCHEMA",
    "ActionPlanChanges",
    "ActionPlanFilters",
    "ActionPlanView",
    "ActionPlanViewSettings",
    "CalendarEvent",
    "MilestoneRemoval",
    "TimelineItem",
    "apply_changes",
    "calendar_events",
    "detail_milestones",
    "remove_milestone",
    "timeline_items",
    "to_persisted",
    "to_view",
]
