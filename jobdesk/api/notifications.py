"""Notification Router: WhatsApp triggers.

The same use cases also run automatically after personnel and task writes;
these endpoints let an admin (or the client after an edit) trigger them
explicitly.
"""

import logging
from collections.abc import Awaitable, Callable

from fastapi import APIRouter
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import AdminDep, CurrentUserDep, SessionDep, WhatsAppClientDep
from ..schemas import (
    NotificationResultResponse,
    OnboardingNotificationRequest,
    TaskNotificationRequest,
    TaskRevisionNotificationRequest,
)
from ..services.notifications import NotificationDispatcher, NotificationResult
from ..services.system_settings import SystemSettingsService
from ..services.whatsapp import WhatsAppClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])

UseCase = Callable[[NotificationDispatcher], Awaitable[NotificationResult]]


def to_response(result: NotificationResult) -> NotificationResultResponse:
    return NotificationResultResponse(
        sent=result.sent,
        failed=result.failed,
        skipped=result.skipped.value if result.skipped else None,
    )


async def build_dispatcher(
    session: AsyncSession,
    client: WhatsAppClient,
) -> NotificationDispatcher:
    config = await SystemSettingsService(session).load_whatsapp_config()
    return NotificationDispatcher(session, config, client)


async def dispatch_after_commit(
    session: AsyncSession,
    client: WhatsAppClient,
    use_case: UseCase,
) -> tuple[NotificationResultResponse | None, str | None]:
    """Commit the pending write, then run a notification use case.

    A database failure while notifying is rolled back and reported; it never
    undoes the write that was committed first.
    """
    await session.commit()
    try:
        dispatcher = await build_dispatcher(session, client)
        result = await use_case(dispatcher)
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Notification bookkeeping failed: {e}")
        return None, "Notification could not be recorded"
    return to_response(result), None


# =============================================================================
# ENDPOINTS
# =============================================================================


@router.post("/onboarding", response_model=NotificationResultResponse)
async def notify_onboarding(
    request: OnboardingNotificationRequest,
    current_user: AdminDep,
    session: SessionDep,
    client: WhatsAppClientDep,
):
    """Send the welcome message with login details (once per profile)."""
    dispatcher = await build_dispatcher(session, client)
    return to_response(await dispatcher.notify_onboarding(request.profile_id))


@router.post("/task", response_model=NotificationResultResponse)
async def notify_task_assigned(
    request: TaskNotificationRequest,
    current_user: CurrentUserDep,
    session: SessionDep,
    client: WhatsAppClientDep,
):
    """Notify assignees and watchers of a task (once per person and task)."""
    dispatcher = await build_dispatcher(session, client)
    result = await dispatcher.notify_task_assigned(
        request.task_id, request.assignee_ids, request.watcher_ids
    )
    return to_response(result)


@router.post("/task-updated", response_model=NotificationResultResponse)
async def notify_task_updated(
    request: TaskNotificationRequest,
    current_user: CurrentUserDep,
    session: SessionDep,
    client: WhatsAppClientDep,
):
    """Notify assignees and watchers that a task changed."""
    dispatcher = await build_dispatcher(session, client)
    result = await dispatcher.notify_task_updated(
        request.task_id, request.assignee_ids, request.watcher_ids
    )
    return to_response(result)


@router.post("/task-revision", response_model=NotificationResultResponse)
async def notify_task_revision(
    request: TaskRevisionNotificationRequest,
    current_user: AdminDep,
    session: SessionDep,
    client: WhatsAppClientDep,
):
    """Tell the current assignees their task was sent back."""
    dispatcher = await build_dispatcher(session, client)
    return to_response(await dispatcher.notify_task_revision(request.task_id, request.feedback))
