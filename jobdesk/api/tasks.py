"""Task Router: the task tracker.

Writes are committed before any WhatsApp notification is attempted, so a
gateway or bookkeeping problem never rolls back the task itself.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, HTTPException, status

from ..core.dependencies import AdminDep, CurrentUserDep, SessionDep, WhatsAppClientDep
from ..schemas import (
    TaskCreate,
    TaskMutationResponse,
    TaskResponse,
    TaskRevisionRequest,
    TaskStatusResponse,
    TaskStatusUpdate,
    TaskUpdate,
)
from ..services.tasks import (
    InvalidOperationError,
    TaskDetail,
    TaskInput,
    TaskNotFoundError,
    TaskService,
    TaskUpdateInput,
)
from .notifications import dispatch_after_commit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])


def get_task_service(session: SessionDep) -> TaskService:
    return TaskService(session)


def to_task_response(detail: TaskDetail) -> TaskResponse:
    task = detail.task
    return TaskResponse(
        id=task.id,
        display_id=detail.display_id,
        title=task.title,
        description=task.description,
        status=task.status,
        priority=task.priority,
        due_date=task.due_date,
        assigner_id=task.assigner_id,
        assignee_ids=detail.assignee_ids,
        watcher_ids=detail.watcher_ids,
        wiki_article_id=task.wiki_article_id,
        revision_notes=task.revision_notes,
        created_at=task.created_at,
        updated_at=task.updated_at,
    )


def _not_found(e: TaskNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def _invalid(e: InvalidOperationError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


# =============================================================================
# ENDPOINTS
# =============================================================================


@router.get("", response_model=list[TaskResponse])
async def list_tasks(
    current_user: CurrentUserDep,
    session: SessionDep,
):
    """Tasks visible to the caller: all for admins, otherwise own and watched."""
    details = await get_task_service(session).list_tasks_for(current_user.profile)
    return [to_task_response(d) for d in details]


@router.post("", response_model=TaskMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    request: TaskCreate,
    current_user: CurrentUserDep,
    session: SessionDep,
    client: WhatsAppClientDep,
):
    """Create a task and notify its assignees and watchers."""
    try:
        detail = await get_task_service(session).create_task(
            TaskInput(
                title=request.title,
                description=request.description,
                assignee_ids=request.assignee_ids,
                watcher_ids=request.watcher_ids,
                priority=request.priority,
                due_date=request.due_date,
                wiki_article_id=request.wiki_article_id,
            ),
            actor=current_user.profile,
        )
    except InvalidOperationError as e:
        raise _invalid(e)

    response = to_task_response(detail)
    notification, error = await dispatch_after_commit(
        session,
        client,
        lambda d: d.notify_task_assigned(
            response.id, detail.assignee_ids, detail.watcher_ids
        ),
    )
    return TaskMutationResponse(
        task=response,
        notification=notification,
        notification_error=error,
    )


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: UUID,
    current_user: CurrentUserDep,
    session: SessionDep,
):
    """Task detail with resolved assignees and watchers."""
    try:
        detail = await get_task_service(session).get_task_detail(task_id)
    except TaskNotFoundError as e:
        raise _not_found(e)
    return to_task_response(detail)


@router.put("/{task_id}", response_model=TaskMutationResponse)
async def update_task(
    task_id: UUID,
    request: TaskUpdate,
    current_user: CurrentUserDep,
    session: SessionDep,
    client: WhatsAppClientDep,
):
    """Save the task sheet and notify everyone involved of the change."""
    try:
        detail = await get_task_service(session).update_task(
            task_id,
            TaskUpdateInput(
                title=request.title,
                description=request.description,
                assignee_ids=request.assignee_ids,
                watcher_ids=request.watcher_ids,
                priority=request.priority,
                due_date=request.due_date,
                wiki_article_id=request.wiki_article_id,
                status=request.status,
            ),
            actor=current_user.profile,
        )
    except TaskNotFoundError as e:
        raise _not_found(e)
    except InvalidOperationError as e:
        raise _invalid(e)

    response = to_task_response(detail)
    notification, error = await dispatch_after_commit(
        session,
        client,
        lambda d: d.notify_task_updated(
            task_id, detail.assignee_ids, detail.watcher_ids
        ),
    )
    return TaskMutationResponse(
        task=response,
        notification=notification,
        notification_error=error,
    )


@router.patch("/{task_id}/status", response_model=TaskStatusResponse)
async def update_task_status(
    task_id: UUID,
    request: TaskStatusUpdate,
    current_user: CurrentUserDep,
    session: SessionDep,
):
    """
    Move a task on the board.

    Staff asking for Completed land in Review Pending; the response carries
    the status that was actually applied.
    """
    try:
        effective = await get_task_service(session).update_status(
            task_id, request.status, current_user.profile
        )
    except TaskNotFoundError as e:
        raise _not_found(e)

    await session.commit()
    return TaskStatusResponse(id=task_id, requested_status=request.status, status=effective)


@router.post("/{task_id}/revision", response_model=TaskMutationResponse)
async def send_back_for_revision(
    task_id: UUID,
    request: TaskRevisionRequest,
    current_user: AdminDep,
    session: SessionDep,
    client: WhatsAppClientDep,
):
    """Reopen a task with an admin note and tell its assignees."""
    service = get_task_service(session)
    try:
        await service.send_back_for_revision(task_id, request.feedback, current_user.profile)
        detail = await service.get_task_detail(task_id)
    except TaskNotFoundError as e:
        raise _not_found(e)
    except InvalidOperationError as e:
        raise _invalid(e)

    feedback = request.feedback.strip()
    response = to_task_response(detail)
    notification, error = await dispatch_after_commit(
        session,
        client,
        lambda d: d.notify_task_revision(task_id, feedback),
    )
    return TaskMutationResponse(
        task=response,
        notification=notification,
        notification_error=error,
    )
