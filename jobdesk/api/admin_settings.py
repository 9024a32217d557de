"""Admin Settings Router: WhatsApp gateway credentials and message templates."""

import logging

from fastapi import APIRouter

from ..core.dependencies import AdminDep, SessionDep, WhatsAppClientDep
from ..models import SystemSettings
from ..schemas import (
    ConnectionTestRequest,
    ConnectionTestResponse,
    SystemSettingsResponse,
    SystemSettingsUpdateRequest,
    WhatsAppTemplates,
)
from ..services.system_settings import (
    DEFAULT_TEMPLATES,
    SECRET_MASK,
    TEMPLATE_COLUMNS,
    SettingsUpdate,
    SystemSettingsService,
    TemplateName,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/settings", tags=["admin"])


def _templates_of(row: SystemSettings | None) -> WhatsAppTemplates:
    if row is None:
        return WhatsAppTemplates()
    return WhatsAppTemplates(**{
        name.value: getattr(row, column) for name, column in TEMPLATE_COLUMNS.items()
    })


def to_settings_response(row: SystemSettings | None) -> SystemSettingsResponse:
    has_token = bool(row and row.whatsapp_token)
    return SystemSettingsResponse(
        whatsapp_instance_id=row.whatsapp_instance_id if row else None,
        whatsapp_token=SECRET_MASK if has_token else None,
        whatsapp_configured=bool(row and row.whatsapp_instance_id and has_token),
        templates=_templates_of(row),
        defaults=WhatsAppTemplates(**{name.value: text for name, text in DEFAULT_TEMPLATES.items()}),
        updated_at=row.updated_at if row else None,
    )


# =============================================================================
# ENDPOINTS
# =============================================================================


@router.get("", response_model=SystemSettingsResponse)
async def get_system_settings(
    current_user: AdminDep,
    session: SessionDep,
):
    """Current gateway settings. The token is masked."""
    row = await SystemSettingsService(session).get_row()
    return to_settings_response(row)


@router.put("", response_model=SystemSettingsResponse)
async def update_system_settings(
    request: SystemSettingsUpdateRequest,
    current_user: AdminDep,
    session: SessionDep,
):
    """Save credentials and templates. Sending the mask keeps the stored token."""
    templates = request.templates.model_dump()
    row = await SystemSettingsService(session).update_settings(
        SettingsUpdate(
            whatsapp_instance_id=request.whatsapp_instance_id,
            whatsapp_token=request.whatsapp_token,
            templates={TemplateName(name): value for name, value in templates.items()},
        )
    )
    await session.commit()
    logger.info(f"System settings updated by {current_user.id}")
    return to_settings_response(row)


@router.post("/test-connection", response_model=ConnectionTestResponse)
async def check_whatsapp_connection(
    request: ConnectionTestRequest,
    current_user: AdminDep,
    session: SessionDep,
    client: WhatsAppClientDep,
):
    """Probe the gateway's instance status with the given or stored credentials."""
    stored_instance, stored_token = await SystemSettingsService(session).stored_credentials()

    instance_id = request.whatsapp_instance_id or stored_instance
    token = request.whatsapp_token
    if not token or token == SECRET_MASK:
        token = stored_token

    check = await client.check_status(instance_id, token)
    return ConnectionTestResponse(ok=check.ok, error=check.error)
