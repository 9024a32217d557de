"""
Task Service: task lifecycle and assignment bookkeeping.

Every status write goes through the completion gate, every assignee write
keeps the legacy ``assignee_id`` column mirroring the first explicit
assignee, and every read resolves assignees the same way notifications do.
"""

import logging
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import (
    Profile,
    ProfileRole,
    Task,
    TaskAssignment,
    TaskPriority,
    TaskStatus,
    TaskWatcher,
    WikiArticle,
)
from .assignments import merge_recipients, resolve_assignees, resolve_watchers
from .status_gate import apply_completion_gate

logger = logging.getLogger(__name__)

DISPLAY_ID_PREFIX = "SAHI"
STATUS_ORDER = [
    TaskStatus.PENDING,
    TaskStatus.IN_PROGRESS,
    TaskStatus.REVIEW_PENDING,
    TaskStatus.COMPLETED,
]


# =============================================================================
# EXCEPTIONS
# =============================================================================


class TaskError(Exception):
    """Base exception for task operations."""
    pass


class TaskNotFoundError(TaskError):
    """Task does not exist."""
    pass


class InvalidOperationError(TaskError):
    """Operation not allowed with the given input."""
    pass


# =============================================================================
# DATA TRANSFER OBJECTS
# =============================================================================


@dataclass
class TaskInput:
    """Fields shared by create and update."""
    title: str
    description: str | None = None
    assignee_ids: list[UUID] = field(default_factory=list)
    watcher_ids: list[UUID] = field(default_factory=list)
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: date | None = None
    wiki_article_id: UUID | None = None


@dataclass
class TaskUpdateInput(TaskInput):
    """Full edit from the task sheet, including the requested status."""
    status: TaskStatus = TaskStatus.PENDING


@dataclass
class TaskDetail:
    """A task together with its resolved assignees and watchers."""
    task: Task
    assignee_ids: list[UUID]
    watcher_ids: list[UUID]

    @property
    def display_id(self) -> str:
        return display_id(self.task.id)


def display_id(task_id: UUID) -> str:
    """Short human id, e.g. SAHI-A1B2C3."""
    return f"{DISPLAY_ID_PREFIX}-{task_id.hex[:6].upper()}"


# =============================================================================
# RELATION QUERIES
# =============================================================================


async def fetch_assignment_ids(session: AsyncSession, task_id: UUID) -> list[UUID]:
    """Profile ids from task_assignments in insertion order."""
    result = await session.execute(
        select(TaskAssignment.profile_id)
        .where(TaskAssignment.task_id == task_id)
        .order_by(TaskAssignment.position)
    )
    return list(result.scalars().all())


async def fetch_watcher_ids(session: AsyncSession, task_id: UUID) -> list[UUID]:
    result = await session.execute(
        select(TaskWatcher.profile_id)
        .where(TaskWatcher.task_id == task_id)
        .order_by(TaskWatcher.position)
    )
    return list(result.scalars().all())


async def fetch_resolved_assignees(session: AsyncSession, task: Task) -> list[UUID]:
    """Effective assignees for a loaded task (with legacy fallback)."""
    return resolve_assignees(task, await fetch_assignment_ids(session, task.id))


# =============================================================================
# TASK SERVICE
# =============================================================================


class TaskService:
    """Create, edit and move tasks through the status workflow."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_task(self, task_id: UUID) -> Task:
        task = await self._session.get(Task, task_id)
        if task is None:
            raise TaskNotFoundError(f"Task {task_id} not found")
        return task

    async def get_task_detail(self, task_id: UUID) -> TaskDetail:
        task = await self.get_task(task_id)
        return TaskDetail(
            task=task,
            assignee_ids=await fetch_resolved_assignees(self._session, task),
            watcher_ids=resolve_watchers(await fetch_watcher_ids(self._session, task.id)),
        )

    async def create_task(self, data: TaskInput, actor: Profile | None) -> TaskDetail:
        """Create a Pending task and its assignment/watcher rows."""
        title = data.title.strip()
        if not title:
            raise InvalidOperationError("Task title is required")

        assignee_ids = merge_recipients(data.assignee_ids)
        watcher_ids = merge_recipients(data.watcher_ids)
        await self._ensure_profiles_exist(merge_recipients(assignee_ids, watcher_ids))
        await self._ensure_article_exists(data.wiki_article_id)

        task = Task(
            title=title,
            description=data.description,
            assigner_id=actor.id if actor else None,
            assignee_id=assignee_ids[0] if assignee_ids else None,
            status=TaskStatus.PENDING,
            priority=TaskPriority(data.priority),
            due_date=data.due_date,
            wiki_article_id=data.wiki_article_id,
        )
        self._session.add(task)
        await self._session.flush()

        self._add_relations(task.id, assignee_ids, watcher_ids)
        await self._session.flush()

        logger.info(f"Task {display_id(task.id)} created with {len(assignee_ids)} assignee(s)")
        return TaskDetail(task=task, assignee_ids=assignee_ids, watcher_ids=watcher_ids)

    async def update_task(
        self,
        task_id: UUID,
        data: TaskUpdateInput,
        actor: Profile | None,
    ) -> TaskDetail:
        """Apply a full edit. Assignment and watcher rows are replaced."""
        task = await self.get_task(task_id)
        title = data.title.strip()
        if not title:
            raise InvalidOperationError("Task title is required")

        assignee_ids = merge_recipients(data.assignee_ids)
        watcher_ids = merge_recipients(data.watcher_ids)
        await self._ensure_profiles_exist(merge_recipients(assignee_ids, watcher_ids))
        await self._ensure_article_exists(data.wiki_article_id)

        task.title = title
        task.description = data.description
        task.assignee_id = assignee_ids[0] if assignee_ids else None
        task.priority = TaskPriority(data.priority)
        task.status = apply_completion_gate(actor.role if actor else None, data.status)
        task.due_date = data.due_date
        task.wiki_article_id = data.wiki_article_id

        await self._session.execute(delete(TaskAssignment).where(TaskAssignment.task_id == task_id))
        await self._session.execute(delete(TaskWatcher).where(TaskWatcher.task_id == task_id))
        self._add_relations(task_id, assignee_ids, watcher_ids)
        await self._session.flush()

        return TaskDetail(task=task, assignee_ids=assignee_ids, watcher_ids=watcher_ids)

    async def update_status(
        self,
        task_id: UUID,
        requested: TaskStatus,
        actor: Profile | None,
    ) -> TaskStatus:
        """Move a task (kanban drop). Returns the status actually applied."""
        task = await self.get_task(task_id)
        requested = TaskStatus(requested)
        effective = apply_completion_gate(actor.role if actor else None, requested)
        if effective != requested:
            logger.info(
                f"Task {display_id(task_id)}: {requested.value} requested by "
                f"{actor.role.value if actor else 'anonymous'}, applied {effective.value}"
            )
        task.status = effective
        await self._session.flush()
        return effective

    async def send_back_for_revision(
        self,
        task_id: UUID,
        feedback: str,
        actor: Profile | None = None,
        now: datetime | None = None,
    ) -> Task:
        """Reopen a task and append a timestamped admin note."""
        trimmed = (feedback or "").strip()
        if not trimmed:
            raise InvalidOperationError("Please enter what needs to be fixed.")

        task = await self.get_task(task_id)
        task.revision_notes = append_revision_note(task.revision_notes, trimmed, now)
        task.status = TaskStatus.IN_PROGRESS
        await self._session.flush()

        logger.info(
            f"Task {display_id(task_id)} sent back for revision by "
            f"{actor.id if actor else 'unknown'}"
        )
        return task

    async def list_tasks_for(self, actor: Profile) -> list[TaskDetail]:
        """Tasks visible to the actor, urgent first then by status."""
        tasks = (await self._session.execute(select(Task))).scalars().all()
        assignments = await self._relation_map(TaskAssignment)
        watchers = await self._relation_map(TaskWatcher)

        details = [
            TaskDetail(
                task=task,
                assignee_ids=resolve_assignees(task, assignments.get(task.id, [])),
                watcher_ids=resolve_watchers(watchers.get(task.id, [])),
            )
            for task in tasks
        ]
        if actor.role != ProfileRole.ADMIN:
            details = [
                d for d in details
                if actor.id in d.assignee_ids or actor.id in d.watcher_ids
            ]
        return sort_for_display(details)

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _add_relations(
        self,
        task_id: UUID,
        assignee_ids: Sequence[UUID],
        watcher_ids: Sequence[UUID],
    ) -> None:
        for position, profile_id in enumerate(assignee_ids):
            self._session.add(
                TaskAssignment(task_id=task_id, profile_id=profile_id, position=position)
            )
        for position, profile_id in enumerate(watcher_ids):
            self._session.add(
                TaskWatcher(task_id=task_id, profile_id=profile_id, position=position)
            )

    async def _ensure_profiles_exist(self, profile_ids: Sequence[UUID]) -> None:
        if not profile_ids:
            return
        result = await self._session.execute(
            select(Profile.id).where(Profile.id.in_(profile_ids))
        )
        missing = set(profile_ids) - set(result.scalars().all())
        if missing:
            raise InvalidOperationError(
                f"Unknown profile id(s): {', '.join(sorted(str(m) for m in missing))}"
            )

    async def _ensure_article_exists(self, article_id: UUID | None) -> None:
        if article_id is not None and await self._session.get(WikiArticle, article_id) is None:
            raise InvalidOperationError(f"Unknown wiki article {article_id}")

    async def _relation_map(self, model) -> dict[UUID, list[UUID]]:
        result = await self._session.execute(
            select(model.task_id, model.profile_id).order_by(model.task_id, model.position)
        )
        mapping: dict[UUID, list[UUID]] = defaultdict(list)
        for task_id, profile_id in result.all():
            mapping[task_id].append(profile_id)
        return mapping


def revision_stamp(now: datetime | None = None) -> str:
    now = now or datetime.now()
    return f"[{now:%d/%m/%Y} Admin]"


def append_revision_note(existing: str | None, feedback: str, now: datetime | None = None) -> str:
    """Append ``[DD/MM/YYYY Admin]: feedback``; entries are separated by a blank line."""
    existing = (existing or "").strip()
    separator = "\n\n" if existing else ""
    return f"{existing}{separator}{revision_stamp(now)}: {feedback}"


def sort_for_display(details: list[TaskDetail]) -> list[TaskDetail]:
    """Urgent first, then Pending -> ... -> Completed, then by due date."""
    def key(detail: TaskDetail):
        task = detail.task
        return (
            task.priority != TaskPriority.URGENT,
            STATUS_ORDER.index(task.status),
            task.due_date is None,
            task.due_date or date.max,
        )

    return sorted(details, key=key)
