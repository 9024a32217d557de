"""Core application utilities."""

from .config import Settings, get_settings
from .database import (
    async_session_factory,
    close_db,
    engine,
    get_session,
    get_session_context,
    init_db,
)
from .dependencies import (
    AdminDep,
    CurrentUser,
    CurrentUserDep,
    PrivilegedDep,
    SessionDep,
    WhatsAppClientDep,
    get_current_user,
    get_whatsapp_client,
    require_admin,
    require_privileged,
)
from .security import (
    create_access_token,
    decode_token,
    decrypt_secret,
    encrypt_secret,
    generate_temporary_password,
    hash_password,
    verify_password,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Database
    "engine",
    "async_session_factory",
    "get_session",
    "get_session_context",
    "init_db",
    "close_db",
    # Dependencies
    "CurrentUser",
    "get_current_user",
    "get_whatsapp_client",
    "require_admin",
    "require_privileged",
    "CurrentUserDep",
    "AdminDep",
    "PrivilegedDep",
    "SessionDep",
    "WhatsAppClientDep",
    # Security
    "hash_password",
    "verify_password",
    "generate_temporary_password",
    "create_access_token",
    "decode_token",
    "encrypt_secret",
    "decrypt_secret",
]
