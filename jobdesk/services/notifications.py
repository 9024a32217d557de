"""WhatsApp Notification Orchestrators.

Each use case follows the same pipeline:

    load rows -> require gateway config -> resolve recipients ->
    per recipient: dedup check, phone, render, send, record

A failed delivery to one recipient is logged and counted; it never aborts
the rest of the batch. Database errors are not caught here and propagate to
the caller, which owns the transaction.

Deduplicated kinds (onboarding, task_assignee, task_watcher) claim their
notification_log row *before* sending and release it if the send fails, so
concurrent callers cannot both deliver the same (kind, profile, task).
Each delivered claim is committed before the next recipient is handled, so
the caller's rollback after a failure never forgets a message that went out.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import get_settings
from ..models import NotificationKind, Profile, Task, TaskPriority
from .assignments import merge_recipients
from .formatting import format_phone_for_whatsapp, render_template, sanitize_task_description
from .notification_log import NotificationLogStore
from .system_settings import TemplateName, WhatsAppConfig
from .tasks import fetch_resolved_assignees, fetch_watcher_ids
from .whatsapp import WhatsAppClient, WhatsAppError

logger = logging.getLogger(__name__)
settings = get_settings()

TEMP_PASSWORD_NOTICE = "12 hours"
TEMP_PASSWORD_SUFFIX = " Your temporary password is valid for 12 hours."
NO_PASSWORD_DISPLAY = "Contact your administrator for initial login."
REVISION_MESSAGE = 'Your task "{title}" requires revision. Admin Note: {feedback}'


class SkipReason(str, Enum):
    """Why a notification request produced no delivery attempt."""
    ALREADY_SENT = "already_sent"
    NO_PHONE = "no_phone"
    NOT_CONFIGURED = "whatsapp_not_configured"
    TASK_NOT_FOUND = "task_not_found"
    PROFILE_NOT_FOUND = "profile_not_found"
    NO_RECIPIENTS = "no_recipients"


@dataclass
class NotificationResult:
    """Outcome of one orchestrator call."""
    sent: int = 0
    failed: int = 0
    skipped: SkipReason | None = None

    @classmethod
    def skip(cls, reason: SkipReason) -> "NotificationResult":
        return cls(skipped=reason)


class _Outcome(str, Enum):
    SENT = "sent"
    FAILED = "failed"
    DUPLICATE = "duplicate"
    NO_PHONE = "no_phone"


def display_name(profile: Profile | None, fallback: str) -> str:
    if profile is None:
        return fallback
    return profile.full_name or profile.email or fallback


# =============================================================================
# DISPATCHER
# =============================================================================


class NotificationDispatcher:
    """
    Runs the four notification use cases against one session.

    ``config`` is loaded by the caller (see ``SystemSettingsService``);
    passing None makes every use case report ``whatsapp_not_configured``.
    """

    def __init__(
        self,
        session: AsyncSession,
        config: WhatsAppConfig | None,
        client: WhatsAppClient,
        country_code: str | None = None,
    ):
        self.session = session
        self.config = config
        self.client = client
        self.country_code = country_code or settings.whatsapp_default_country_code
        self.log = NotificationLogStore(session)

    # =========================================================================
    # ONBOARDING
    # =========================================================================

    async def notify_onboarding(self, profile_id: UUID) -> NotificationResult:
        """Welcome message with login details, at most once per profile."""
        if await self.log.exists(NotificationKind.ONBOARDING, profile_id):
            return NotificationResult.skip(SkipReason.ALREADY_SENT)

        profile = await self.session.get(Profile, profile_id)
        if profile is None:
            return NotificationResult.skip(SkipReason.PROFILE_NOT_FOUND)

        if self._phone(profile) is None:
            return NotificationResult.skip(SkipReason.NO_PHONE)

        if self.config is None:
            return NotificationResult.skip(SkipReason.NOT_CONFIGURED)

        message = build_onboarding_message(
            self.config.template(TemplateName.ONBOARDING), profile
        )
        outcome = await self._deliver_once(
            NotificationKind.ONBOARDING, profile, None, message
        )
        if outcome == _Outcome.DUPLICATE:
            return NotificationResult.skip(SkipReason.ALREADY_SENT)
        return self._tally([outcome])

    # =========================================================================
    # TASK ASSIGNED / WATCHER INFORMED
    # =========================================================================

    async def notify_task_assigned(
        self,
        task_id: UUID,
        assignee_ids: Sequence[UUID] | None = None,
        watcher_ids: Sequence[UUID] | None = None,
    ) -> NotificationResult:
        """Tell new assignees about the task and watchers who it went to.

        Ids default to the task's stored assignees and watchers.
        """
        task = await self.session.get(Task, task_id)
        if task is None:
            return NotificationResult.skip(SkipReason.TASK_NOT_FOUND)

        if self.config is None:
            return NotificationResult.skip(SkipReason.NOT_CONFIGURED)

        assignees, watchers = await self._recipients(task, assignee_ids, watcher_ids)
        if not assignees and not watchers:
            return NotificationResult.skip(SkipReason.NO_RECIPIENTS)

        profiles = await self._load_profiles(merge_recipients(assignees, watchers))
        description = sanitize_task_description(task.description)
        priority = task.priority.value if task.priority else TaskPriority.MEDIUM.value
        assignee_names = [display_name(profiles.get(pid), "—") for pid in assignees]
        assignee_list = ", ".join(assignee_names) if assignee_names else "Unassigned"

        assigned_template = self.config.template(TemplateName.TASK_ASSIGNED)
        watcher_template = self.config.template(TemplateName.TASK_WATCHER)

        outcomes = []
        for profile_id in assignees:
            profile = profiles.get(profile_id)
            if profile is None:
                continue
            message = render_template(assigned_template, {
                "name": display_name(profile, "there"),
                "task_title": task.title,
                "task_description": description,
                "priority": priority,
            })
            outcomes.append(await self._deliver_once(
                NotificationKind.TASK_ASSIGNEE, profile, task.id, message
            ))

        watcher_message = render_template(watcher_template, {
            "task_title": task.title,
            "task_description": description,
            "assignee": assignee_list,
        })
        for profile_id in watchers:
            profile = profiles.get(profile_id)
            if profile is None:
                continue
            outcomes.append(await self._deliver_once(
                NotificationKind.TASK_WATCHER, profile, task.id, watcher_message
            ))

        return self._tally(outcomes)

    # =========================================================================
    # TASK UPDATED
    # =========================================================================

    async def notify_task_updated(
        self,
        task_id: UUID,
        assignee_ids: Sequence[UUID] | None = None,
        watcher_ids: Sequence[UUID] | None = None,
    ) -> NotificationResult:
        """Send the update template to every assignee and watcher (no dedup)."""
        task = await self.session.get(Task, task_id)
        if task is None:
            return NotificationResult.skip(SkipReason.TASK_NOT_FOUND)

        if self.config is None:
            return NotificationResult.skip(SkipReason.NOT_CONFIGURED)

        assignees, watchers = await self._recipients(task, assignee_ids, watcher_ids)
        recipients = merge_recipients(assignees, watchers)
        if not recipients:
            return NotificationResult.skip(SkipReason.NO_RECIPIENTS)

        profiles = await self._load_profiles(recipients)
        template = self.config.template(TemplateName.TASK_UPDATED)
        variables = {
            "task_title": task.title,
            "status": task.status.value,
            "task_description": sanitize_task_description(task.description),
        }

        outcomes = []
        for profile_id in recipients:
            profile = profiles.get(profile_id)
            if profile is None:
                continue
            message = render_template(
                template, {**variables, "name": display_name(profile, "there")}
            )
            outcomes.append(await self._deliver(profile, message))

        return self._tally(outcomes)

    # =========================================================================
    # TASK REVISION
    # =========================================================================

    async def notify_task_revision(self, task_id: UUID, feedback: str) -> NotificationResult:
        """Tell the current assignees their task was sent back (no dedup)."""
        task = await self.session.get(Task, task_id)
        if task is None:
            return NotificationResult.skip(SkipReason.TASK_NOT_FOUND)

        if self.config is None:
            return NotificationResult.skip(SkipReason.NOT_CONFIGURED)

        assignees = await fetch_resolved_assignees(self.session, task)
        if not assignees:
            return NotificationResult.skip(SkipReason.NO_RECIPIENTS)

        profiles = await self._load_profiles(assignees)
        message = REVISION_MESSAGE.format(title=task.title, feedback=feedback)

        outcomes = []
        for profile_id in assignees:
            profile = profiles.get(profile_id)
            if profile is None:
                continue
            outcomes.append(await self._deliver(profile, message))

        return self._tally(outcomes)

    # =========================================================================
    # DELIVERY HELPERS
    # =========================================================================

    def _phone(self, profile: Profile) -> str | None:
        return format_phone_for_whatsapp(profile.phone, self.country_code)

    async def _deliver(self, profile: Profile, message: str) -> _Outcome:
        """Send one message. Gateway errors are logged, not raised."""
        phone = self._phone(profile)
        if phone is None:
            return _Outcome.NO_PHONE

        try:
            await self.client.send(
                self.config.instance_id, self.config.token, phone, message
            )
        except WhatsAppError as e:
            logger.error(f"[WhatsApp] Delivery to profile {profile.id} failed: {e}")
            return _Outcome.FAILED
        return _Outcome.SENT

    async def _deliver_once(
        self,
        kind: NotificationKind,
        profile: Profile,
        task_id: UUID | None,
        message: str,
    ) -> _Outcome:
        """Send under a notification_log claim; the claim is dropped on failure.

        The atomic ``claim`` is the only dedup check here. A delivered claim
        is committed straight away: a later database error in the same batch
        rolls back only what came after it.
        """
        if self._phone(profile) is None:
            return _Outcome.NO_PHONE
        if not await self.log.claim(kind, profile.id, task_id):
            return _Outcome.DUPLICATE

        outcome = await self._deliver(profile, message)
        if outcome == _Outcome.SENT:
            await self.session.commit()
        else:
            await self.log.release(kind, profile.id, task_id)
        return outcome

    async def _recipients(
        self,
        task: Task,
        assignee_ids: Sequence[UUID] | None,
        watcher_ids: Sequence[UUID] | None,
    ) -> tuple[list[UUID], list[UUID]]:
        if assignee_ids is None:
            assignees = await fetch_resolved_assignees(self.session, task)
        else:
            assignees = merge_recipients(assignee_ids)
        if watcher_ids is None:
            watchers = await fetch_watcher_ids(self.session, task.id)
        else:
            watchers = merge_recipients(watcher_ids)
        return assignees, watchers

    async def _load_profiles(self, profile_ids: Sequence[UUID]) -> dict[UUID, Profile]:
        if not profile_ids:
            return {}
        result = await self.session.execute(
            select(Profile).where(Profile.id.in_(profile_ids))
        )
        return {profile.id: profile for profile in result.scalars().all()}

    @staticmethod
    def _tally(outcomes: Sequence[_Outcome]) -> NotificationResult:
        return NotificationResult(
            sent=sum(1 for o in outcomes if o == _Outcome.SENT),
            failed=sum(1 for o in outcomes if o == _Outcome.FAILED),
        )


def build_onboarding_message(template: str, profile: Profile) -> str:
    """Render the welcome message, making sure the validity window is stated."""
    if profile.temporary_password:
        password = f"{profile.temporary_password}. Valid for 12 hours."
    else:
        password = NO_PASSWORD_DISPLAY

    message = render_template(template, {
        "name": profile.full_name or "there",
        "email": profile.email or "",
        "password": password,
    })
    if profile.temporary_password and TEMP_PASSWORD_NOTICE not in message:
        message += TEMP_PASSWORD_SUFFIX
    return message
