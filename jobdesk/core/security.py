"""Security utilities: password hashing, tokens, secrets at rest."""

from datetime import datetime, timedelta, timezone
from uuid import UUID
import logging
import secrets

import jwt
from cryptography.fernet import Fernet, InvalidToken
from passlib.context import CryptContext
from pydantic import BaseModel

from .config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


# Password hashing
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


# Temporary credentials (no look-alike characters: no i, l, o, 0, 1)
TEMP_PASSWORD_ALPHABET = "abcdefghjkmnpqrstuvwxyz23456789"


def generate_temporary_password(length: int | None = None) -> str:
    """Random lowercase/digit password handed to new personnel."""
    length = length or settings.temp_password_length
    return "".join(secrets.choice(TEMP_PASSWORD_ALPHABET) for _ in range(length))


def temp_password_expiry(now: datetime | None = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now + timedelta(hours=settings.temp_password_valid_hours)


# JWT Token handling
class TokenPayload(BaseModel):
    """JWT token payload."""

    sub: str  # Profile ID
    role: str | None = None
    exp: datetime
    iat: datetime
    type: str = "access"


def create_access_token(
    profile_id: UUID,
    role: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT access token."""
    now = datetime.now(timezone.utc)
    expire = now + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )

    payload = {
        "sub": str(profile_id),
        "role": role,
        "exp": expire,
        "iat": now,
        "type": "access",
    }

    return jwt.encode(payload, settings.secret_key, algorithm="HS256")


def decode_token(token: str) -> TokenPayload | None:
    """Decode and validate a JWT token."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=["HS256"])
        return TokenPayload(**payload)
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


# Secrets at rest (gateway token)
def encrypt_secret(value: str) -> str:
    """Encrypt a secret for storage. Plaintext when no key is configured."""
    if not settings.encryption_enabled:
        logger.warning("Encryption not configured - storing secret in plaintext")
        return value
    f = Fernet(settings.encryption_key.encode())
    return f.encrypt(value.encode()).decode()


def decrypt_secret(stored: str) -> str:
    """Decrypt a stored secret. Returns "" if it cannot be decrypted."""
    if not settings.encryption_enabled:
        return stored
    try:
        f = Fernet(settings.encryption_key.encode())
        return f.decrypt(stored.encode()).decode()
    except InvalidToken:
        logger.error("Failed to decrypt stored secret (wrong key or plaintext value)")
        return ""
