"""Who is assigned to, and who watches, a task.

The task_assignments relation is authoritative. Tasks written before it
existed only carry the legacy ``assignee_id`` column, so resolution is an
explicit two-variant strategy rather than ad hoc null checks. Display and
notification targeting both go through ``resolve_assignees``.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID


class HasLegacyAssignee(Protocol):
    assignee_id: UUID | None


@dataclass(frozen=True)
class ExplicitAssignments:
    """The relation has rows for the task; they win."""
    profile_ids: tuple[UUID, ...]


@dataclass(frozen=True)
class LegacyAssignee:
    """No relation rows; fall back to the single legacy column."""
    profile_id: UUID | None


AssigneeSource = ExplicitAssignments | LegacyAssignee


def assignee_source(
    task: HasLegacyAssignee,
    assignment_ids: Sequence[UUID],
) -> AssigneeSource:
    """Pick the resolution strategy for a task."""
    if assignment_ids:
        return ExplicitAssignments(profile_ids=tuple(assignment_ids))
    return LegacyAssignee(profile_id=task.assignee_id)


def resolve_assignees(
    task: HasLegacyAssignee,
    assignment_ids: Sequence[UUID],
) -> list[UUID]:
    """Effective assignees in relation order, or the legacy assignee, or none."""
    source = assignee_source(task, assignment_ids)
    if isinstance(source, ExplicitAssignments):
        return list(source.profile_ids)
    if source.profile_id is not None:
        return [source.profile_id]
    return []


def resolve_watchers(watcher_ids: Sequence[UUID]) -> list[UUID]:
    """Watchers come only from the relation; there is no legacy column."""
    return list(watcher_ids)


def merge_recipients(*groups: Iterable[UUID]) -> list[UUID]:
    """Order-preserving union of several id lists."""
    seen: set[UUID] = set()
    merged: list[UUID] = []
    for group in groups:
        for profile_id in group:
            if profile_id not in seen:
                seen.add(profile_id)
                merged.append(profile_id)
    return merged
