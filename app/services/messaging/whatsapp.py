"""
WhatsApp Cloud API transport.

Turns OutboundMessage values into Graph API payloads and posts them. In
dry-run (default, forced under pytest or with placeholder credentials) the
payload is only logged.
"""

import logging
import os
from typing import Any

import httpx

from app.core.config import Settings
from app.core.errors import TransientDeliveryError
from app.schemas.messages import MessageKind, OutboundMessage
from app.services.integrations.http_client import create_httpx_client

logger = logging.getLogger(__name__)

PLACEHOLDER_TOKENS = ("", "test_token")


def to_payload(to: str, message: OutboundMessage) -> dict[str, Any]:
    """
    Build the Cloud API request body for one message.

    Args:
        to: WhatsApp phone number (with country code, no +)
        message: Structured message

    Returns:
        JSON-serializable payload for POST /{phone_number_id}/messages
    """
    payload: dict[str, Any] = {"messaging_product": "whatsapp", "to": to}

    if message.kind is MessageKind.TEXT:
        payload["type"] = "text"
        payload["text"] = {"body": message.body}
        return payload

    interactive: dict[str, Any] = {"body": {"text": message.body}}
    if message.header:
        interactive["header"] = {"type": "text", "text": message.header}
    if message.footer:
        interactive["footer"] = {"text": message.footer}

    if message.kind is MessageKind.BUTTONS:
        interactive["type"] = "button"
        interactive["action"] = {
            "buttons": [
                {"type": "reply", "reply": {"id": o.id, "title": o.title}} for o in message.options
            ]
        }
    else:
        interactive["type"] = "list"
        interactive["action"] = {
            "button": message.button_label or "Seleccionar",
            "sections": [
                {
                    "title": message.section_title or "Opciones",
                    "rows": [{"id": o.id, "title": o.title} for o in message.options],
                }
            ],
        }

    payload["type"] = "interactive"
    payload["interactive"] = interactive
    return payload


class WhatsAppClient:
    """Posts messages to the Graph API; one shared httpx client per process."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None):
        self._settings = settings
        self._http_client = http_client
        self._owns_client = http_client is None

    @property
    def url(self) -> str:
        return (
            f"https://graph.facebook.com/v{self._settings.graph_version}/"
            f"{self._settings.whatsapp_phone_number_id}/messages"
        )

    @property
    def dry_run(self) -> bool:
        # Force dry-run in tests or if credentials are placeholders/missing
        return bool(
            self._settings.whatsapp_dry_run
            or os.environ.get("PYTEST_CURRENT_TEST")
            or self._settings.whatsapp_access_token in PLACEHOLDER_TOKENS
        )

    async def send(self, to: str, message: OutboundMessage) -> str | None:
        """
        Send one message.

        Returns:
            Provider message id (None in dry-run)

        Raises:
            TransientDeliveryError: Network error or non-2xx response
        """
        payload = to_payload(to, message)

        if self.dry_run:
            logger.info(f"[DRY-RUN] Would send WhatsApp {payload['type']} to {to}: {message.body!r}")
            return None

        if self._http_client is None:
            self._http_client = create_httpx_client(
                headers={"Authorization": f"Bearer {self._settings.whatsapp_access_token}"}
            )

        try:
            response = await self._http_client.post(self.url, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransientDeliveryError(
                f"WhatsApp API returned {e.response.status_code}: {e.response.text[:200]}",
                to=to,
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise TransientDeliveryError(f"WhatsApp request failed: {e}", to=to) from e

        result = response.json()
        return (result.get("messages") or [{}])[0].get("id")

    async def aclose(self) -> None:
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
