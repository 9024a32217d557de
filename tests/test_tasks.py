"""
Tests for the task service.

These tests verify:
1. CREATE/UPDATE: relation rows, legacy assignee mirror, validation
2. STATUS: every write goes through the completion gate
3. REVISION: notes are appended with a dated admin stamp
4. LISTING: visibility per role and display ordering
"""

from datetime import date, datetime
from uuid import UUID, uuid4

import pytest

from jobdesk.models import ProfileRole, TaskPriority, TaskStatus
from jobdesk.services.tasks import (
    InvalidOperationError,
    TaskInput,
    TaskNotFoundError,
    TaskService,
    TaskUpdateInput,
    append_revision_note,
    display_id,
    fetch_assignment_ids,
    fetch_watcher_ids,
)


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def service(session):
    return TaskService(session)


@pytest.fixture
async def admin(make_profile):
    return await make_profile(full_name="Admin", role=ProfileRole.ADMIN)


@pytest.fixture
async def staff(make_profile):
    return await make_profile(full_name="Staff", role=ProfileRole.STAFF)


# =============================================================================
# TEST: CREATE / UPDATE
# =============================================================================


class TestCreateTask:

    async def test_creates_pending_task_with_relations(self, session, service, admin, make_profile):
        a = await make_profile()
        b = await make_profile()
        w = await make_profile()

        detail = await service.create_task(
            TaskInput(
                title="  Restock walk-in  ",
                assignee_ids=[a.id, b.id, a.id],
                watcher_ids=[w.id],
                priority="High",
            ),
            admin,
        )

        task = detail.task
        assert task.title == "Restock walk-in"
        assert task.status == TaskStatus.PENDING
        assert task.priority == TaskPriority.HIGH
        assert task.assigner_id == admin.id
        assert task.assignee_id == a.id
        assert detail.assignee_ids == [a.id, b.id]
        assert await fetch_assignment_ids(session, task.id) == [a.id, b.id]
        assert await fetch_watcher_ids(session, task.id) == [w.id]

    async def test_blank_title_is_rejected(self, service, admin):
        with pytest.raises(InvalidOperationError):
            await service.create_task(TaskInput(title="   "), admin)

    async def test_unknown_assignee_is_rejected(self, service, admin):
        with pytest.raises(InvalidOperationError, match="Unknown profile"):
            await service.create_task(TaskInput(title="X", assignee_ids=[uuid4()]), admin)

    async def test_display_id(self):
        task_id = UUID("a1b2c3d4-0000-0000-0000-000000000000")
        assert display_id(task_id) == "SAHI-A1B2C3"


class TestUpdateTask:

    async def test_replaces_relations_and_mirrors_first_assignee(
        self, session, service, admin, make_profile, make_task
    ):
        a = await make_profile()
        b = await make_profile()
        task = await make_task(assignees=[a], watchers=[b], legacy_assignee=a)

        detail = await service.update_task(
            task.id,
            TaskUpdateInput(title="Renamed", assignee_ids=[b.id], status="In Progress"),
            admin,
        )

        assert detail.task.title == "Renamed"
        assert detail.task.assignee_id == b.id
        assert detail.task.status == TaskStatus.IN_PROGRESS
        assert await fetch_assignment_ids(session, task.id) == [b.id]
        assert await fetch_watcher_ids(session, task.id) == []

    async def test_clearing_assignees_clears_legacy_column(
        self, service, admin, make_profile, make_task
    ):
        a = await make_profile()
        task = await make_task(assignees=[a], legacy_assignee=a)

        detail = await service.update_task(task.id, TaskUpdateInput(title="T"), admin)

        assert detail.task.assignee_id is None
        assert detail.assignee_ids == []

    async def test_staff_completion_is_gated(self, service, staff, make_task):
        task = await make_task()

        detail = await service.update_task(
            task.id, TaskUpdateInput(title="T", status=TaskStatus.COMPLETED), staff
        )

        assert detail.task.status == TaskStatus.REVIEW_PENDING

    async def test_missing_task(self, service, admin):
        with pytest.raises(TaskNotFoundError):
            await service.update_task(uuid4(), TaskUpdateInput(title="T"), admin)


# =============================================================================
# TEST: STATUS
# =============================================================================


class TestUpdateStatus:

    @pytest.mark.parametrize(
        "role, requested, expected",
        [
            (ProfileRole.STAFF, "Completed", TaskStatus.REVIEW_PENDING),
            (ProfileRole.CHEF, "Completed", TaskStatus.COMPLETED),
            (ProfileRole.ADMIN, "Completed", TaskStatus.COMPLETED),
            (ProfileRole.STAFF, "In Progress", TaskStatus.IN_PROGRESS),
        ],
    )
    async def test_gate_applies(self, service, make_profile, make_task, role, requested, expected):
        actor = await make_profile(role=role)
        task = await make_task()

        effective = await service.update_status(task.id, requested, actor)

        assert effective == expected
        assert task.status == expected

    async def test_backward_moves_are_allowed(self, service, staff, make_task):
        task = await make_task(status=TaskStatus.COMPLETED)

        assert await service.update_status(task.id, TaskStatus.PENDING, staff) == TaskStatus.PENDING


# =============================================================================
# TEST: REVISION
# =============================================================================


class TestRevision:

    async def test_appends_note_and_reopens(self, service, admin, make_task):
        task = await make_task(status=TaskStatus.REVIEW_PENDING)

        await service.send_back_for_revision(
            task.id, "  Label the containers ", admin, now=datetime(2024, 3, 5, 9, 30)
        )
        await service.send_back_for_revision(
            task.id, "Dates too", admin, now=datetime(2024, 3, 6, 9, 30)
        )

        assert task.status == TaskStatus.IN_PROGRESS
        assert task.revision_notes == (
            "[05/03/2024 Admin]: Label the containers\n\n"
            "[06/03/2024 Admin]: Dates too"
        )

    async def test_empty_feedback_is_rejected(self, service, admin, make_task):
        task = await make_task(status=TaskStatus.REVIEW_PENDING)

        with pytest.raises(InvalidOperationError, match="what needs to be fixed"):
            await service.send_back_for_revision(task.id, "   ", admin)

        assert task.status == TaskStatus.REVIEW_PENDING

    def test_first_note_has_no_separator(self):
        note = append_revision_note(None, "Redo", datetime(2024, 12, 1))
        assert note == "[01/12/2024 Admin]: Redo"


# =============================================================================
# TEST: LISTING
# =============================================================================


class TestListTasks:

    async def test_staff_sees_assigned_and_watched_tasks(
        self, service, admin, staff, make_profile, make_task
    ):
        other = await make_profile()
        assigned = await make_task(title="Assigned", assignees=[staff])
        watched = await make_task(title="Watched", watchers=[staff])
        legacy = await make_task(title="Legacy", legacy_assignee=staff)
        await make_task(title="Someone else", assignees=[other])

        visible = await service.list_tasks_for(staff)
        everything = await service.list_tasks_for(admin)

        assert {d.task.id for d in visible} == {assigned.id, watched.id, legacy.id}
        assert len(everything) == 4

    async def test_urgent_first_then_status_then_due_date(self, service, admin, make_task):
        done = await make_task(title="done", status=TaskStatus.COMPLETED)
        later = await make_task(title="later", due_date=date(2024, 5, 2))
        sooner = await make_task(title="sooner", due_date=date(2024, 5, 1))
        undated = await make_task(title="undated")
        urgent = await make_task(
            title="urgent", priority=TaskPriority.URGENT, status=TaskStatus.IN_PROGRESS
        )

        ordered = [d.task.title for d in await service.list_tasks_for(admin)]

        assert ordered == [urgent.title, sooner.title, later.title, undated.title, done.title]
