"""Dedup store for WhatsApp notifications.

A row in notification_log means "this (kind, profile, task) was delivered".
Recording goes through an atomic insert-if-absent backed by the table's
unique constraints, so two concurrent requests cannot both claim the same
triple and both send.
"""

import logging
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import NotificationKind, NotificationLog

logger = logging.getLogger(__name__)

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _task_filter(task_id: UUID | None):
    if task_id is None:
        return NotificationLog.task_id.is_(None)
    return NotificationLog.task_id == task_id


class NotificationLogStore:
    """Existence checks and atomic claims against notification_log."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def exists(
        self,
        kind: NotificationKind,
        profile_id: UUID,
        task_id: UUID | None = None,
    ) -> bool:
        """Whether the exact triple has been recorded."""
        result = await self._session.execute(
            select(NotificationLog.id)
            .where(
                NotificationLog.kind == kind,
                NotificationLog.profile_id == profile_id,
                _task_filter(task_id),
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def claim(
        self,
        kind: NotificationKind,
        profile_id: UUID,
        task_id: UUID | None = None,
    ) -> bool:
        """Insert the triple unless present. Returns False if it already was."""
        dialect = self._session.get_bind().dialect.name
        dialect_insert = _DIALECT_INSERTS.get(dialect)
        if dialect_insert is None:
            raise NotImplementedError(f"No insert-if-absent support for dialect {dialect}")

        stmt = (
            dialect_insert(NotificationLog)
            .values(kind=kind, profile_id=profile_id, task_id=task_id)
            .on_conflict_do_nothing()
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def release(
        self,
        kind: NotificationKind,
        profile_id: UUID,
        task_id: UUID | None = None,
    ) -> None:
        """Drop a claim whose delivery failed."""
        await self._session.execute(
            delete(NotificationLog).where(
                NotificationLog.kind == kind,
                NotificationLog.profile_id == profile_id,
                _task_filter(task_id),
            )
        )

    async def clear(self, kind: NotificationKind, profile_id: UUID) -> int:
        """Forget every entry of a kind for a profile (e.g. after a credential reset)."""
        result = await self._session.execute(
            delete(NotificationLog).where(
                NotificationLog.kind == kind,
                NotificationLog.profile_id == profile_id,
            )
        )
        if result.rowcount:
            logger.info(f"Cleared {result.rowcount} {kind.value} log entries for profile {profile_id}")
        return result.rowcount
