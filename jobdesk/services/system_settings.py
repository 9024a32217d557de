"""Gateway credentials and message templates.

Stored as a single system_settings row and loaded on demand into an
explicit ``WhatsAppConfig`` that is handed to the notification
orchestrators, so tests can inject one directly.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.security import decrypt_secret, encrypt_secret
from ..models import SystemSettings

logger = logging.getLogger(__name__)

SECRET_MASK = "••••••••"
SETTINGS_ROW_ID = 1


class TemplateName(str, Enum):
    ONBOARDING = "onboarding"
    TASK_ASSIGNED = "task_assigned"
    TASK_WATCHER = "task_watcher"
    TASK_UPDATED = "task_updated"


DEFAULT_TEMPLATES: dict[TemplateName, str] = {
    TemplateName.ONBOARDING: "Hello {{name}}, welcome! Login: {{email}} / Pass: {{password}}",
    TemplateName.TASK_ASSIGNED: "Hi {{name}}, new task: {{task_title}}. Priority: {{priority}}.",
    TemplateName.TASK_WATCHER: "Note: Task {{task_title}} is updated. Assigned to: {{assignee}}.",
    TemplateName.TASK_UPDATED: "Update: The task {{task_title}} has been modified. New Status: {{status}}.",
}

# TemplateName -> system_settings column
TEMPLATE_COLUMNS: dict[TemplateName, str] = {
    TemplateName.ONBOARDING: "template_onboarding",
    TemplateName.TASK_ASSIGNED: "template_task_assigned",
    TemplateName.TASK_WATCHER: "template_watcher",
    TemplateName.TASK_UPDATED: "template_task_updated",
}


@dataclass
class WhatsAppConfig:
    """Everything an orchestrator needs to talk to the gateway."""
    instance_id: str
    token: str
    templates: dict[TemplateName, str] = field(default_factory=dict)

    def template(self, name: TemplateName) -> str:
        """Configured template, or the built-in default when blank."""
        value = self.templates.get(name)
        if value and value.strip():
            return value
        return DEFAULT_TEMPLATES[name]


@dataclass
class SettingsUpdate:
    """Partial update; None leaves a field untouched, "" clears it."""
    whatsapp_instance_id: str | None = None
    whatsapp_token: str | None = None
    templates: dict[TemplateName, str | None] = field(default_factory=dict)


class SystemSettingsService:
    """Read and write the single settings row."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_row(self) -> SystemSettings | None:
        result = await self._session.execute(select(SystemSettings).limit(1))
        return result.scalar_one_or_none()

    async def get_or_create_row(self) -> SystemSettings:
        row = await self.get_row()
        if row is None:
            row = SystemSettings(id=SETTINGS_ROW_ID)
            self._session.add(row)
            await self._session.flush()
        return row

    async def load_whatsapp_config(self) -> WhatsAppConfig | None:
        """Build the gateway config, or None when it is not usable."""
        row = await self.get_row()
        if row is None:
            return None

        instance_id = (row.whatsapp_instance_id or "").strip()
        token = decrypt_secret(row.whatsapp_token).strip() if row.whatsapp_token else ""
        if not instance_id or not token:
            return None

        return WhatsAppConfig(
            instance_id=instance_id,
            token=token,
            templates={
                name: getattr(row, column)
                for name, column in TEMPLATE_COLUMNS.items()
                if getattr(row, column)
            },
        )

    async def update_settings(self, update: SettingsUpdate) -> SystemSettings:
        """Apply an admin edit. A masked token keeps the stored value."""
        row = await self.get_or_create_row()

        if update.whatsapp_instance_id is not None:
            row.whatsapp_instance_id = update.whatsapp_instance_id.strip() or None

        if update.whatsapp_token is not None and update.whatsapp_token != SECRET_MASK:
            token = update.whatsapp_token.strip()
            row.whatsapp_token = encrypt_secret(token) if token else None

        for name, value in update.templates.items():
            if value is not None:
                setattr(row, TEMPLATE_COLUMNS[TemplateName(name)], value or None)

        await self._session.flush()
        logger.info("System settings updated")
        return row

    async def stored_credentials(self) -> tuple[str | None, str | None]:
        """Decrypted instance id and token, for the connection test."""
        row = await self.get_row()
        if row is None:
            return None, None
        token = decrypt_secret(row.whatsapp_token) if row.whatsapp_token else None
        return row.whatsapp_instance_id, token
