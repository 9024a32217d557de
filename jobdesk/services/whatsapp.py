"""WhatsApp delivery through the UltraMsg gateway.

One outbound request per call. There is no retry or backoff here; callers
decide whether a failure for one recipient aborts anything (the
notification orchestrators log it and move on).
"""

import logging
from dataclasses import dataclass

import httpx

from ..core.config import get_settings
from .formatting import digits_only

logger = logging.getLogger(__name__)
settings = get_settings()

ERROR_SNIPPET_LENGTH = 200


# =============================================================================
# EXCEPTIONS
# =============================================================================


class WhatsAppError(Exception):
    """Base exception for gateway operations."""
    pass


class WhatsAppNotConfiguredError(WhatsAppError):
    """Instance id or token is missing."""
    pass


class WhatsAppDeliveryError(WhatsAppError):
    """The gateway rejected the message or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


@dataclass
class ConnectionCheck:
    """Outcome of an instance status check."""
    ok: bool
    error: str | None = None


# =============================================================================
# CLIENT
# =============================================================================


class WhatsAppClient:
    """Thin async client for the two gateway endpoints we use."""

    def __init__(
        self,
        base_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.base_url = (base_url or settings.whatsapp_api_base).rstrip("/")
        self.http_client = http_client or httpx.AsyncClient(
            timeout=settings.whatsapp_timeout_seconds
        )

    async def close(self):
        """Close the HTTP client."""
        await self.http_client.aclose()

    async def __aenter__(self) -> "WhatsAppClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @staticmethod
    def _require_credentials(instance_id: str | None, token: str | None) -> tuple[str, str]:
        instance_id = (instance_id or "").strip()
        token = (token or "").strip()
        if not instance_id or not token:
            raise WhatsAppNotConfiguredError(
                "WhatsApp not configured (instance ID and token required)."
            )
        return instance_id, token

    async def send(
        self,
        instance_id: str | None,
        token: str | None,
        to: str,
        message: str,
    ) -> None:
        """Send a text message to a single recipient."""
        instance_id, token = self._require_credentials(instance_id, token)
        recipient = digits_only(to)
        logger.debug(f"[WhatsApp] Sending to {recipient}: {message}")

        try:
            response = await self.http_client.post(
                f"{self.base_url}/{instance_id}/messages/chat",
                params={"token": token},
                json={"to": recipient, "body": message},
            )
        except httpx.HTTPError as e:
            raise WhatsAppDeliveryError(f"UltraMsg request failed: {e}") from e

        if not response.is_success:
            body = response.text[:ERROR_SNIPPET_LENGTH]
            raise WhatsAppDeliveryError(
                f"UltraMsg API error ({response.status_code}): {body}",
                status_code=response.status_code,
                body=body,
            )

    async def check_status(
        self,
        instance_id: str | None,
        token: str | None,
    ) -> ConnectionCheck:
        """Probe the instance status endpoint with the given credentials."""
        try:
            instance_id, token = self._require_credentials(instance_id, token)
        except WhatsAppNotConfiguredError:
            return ConnectionCheck(ok=False, error="Instance ID and token required")

        try:
            response = await self.http_client.get(
                f"{self.base_url}/{instance_id}/instance/status",
                params={"token": token},
            )
        except httpx.HTTPError as e:
            logger.warning(f"WhatsApp status check failed: {e}")
            return ConnectionCheck(ok=False, error=str(e) or "Connection failed")

        if not response.is_success:
            snippet = response.text[:ERROR_SNIPPET_LENGTH]
            return ConnectionCheck(ok=False, error=snippet or f"HTTP {response.status_code}")
        return ConnectionCheck(ok=True)
