"""
Tests for the WhatsApp Cloud API transport: payload shapes and the HTTP send path.
"""

import json

import httpx
import pytest

from app.core.config import Settings
from app.core.errors import TransientDeliveryError
from app.schemas.messages import MessageKind, Option, OutboundMessage
from app.services.messaging.whatsapp import WhatsAppClient, to_payload


def _settings(**overrides) -> Settings:
    base = {
        "whatsapp_verify_token": "verify",
        "whatsapp_access_token": "real_token",
        "whatsapp_phone_number_id": "12345",
        "whatsapp_dry_run": False,
    }
    return Settings(**{**base, **overrides})


def test_text_payload():
    payload = to_payload("50255550000", OutboundMessage.text("hola"))
    assert payload == {
        "messaging_product": "whatsapp",
        "to": "50255550000",
        "type": "text",
        "text": {"body": "hola"},
    }


def test_button_payload():
    message = OutboundMessage(
        kind=MessageKind.BUTTONS,
        header="Servicio24",
        body="¿Empezamos?",
        footer="Escribe oga para reiniciar",
        options=(Option(id="start_yes", title="Sí"), Option(id="start_no", title="No")),
    )
    interactive = to_payload("502", message)["interactive"]
    assert interactive["type"] == "button"
    assert interactive["header"] == {"type": "text", "text": "Servicio24"}
    assert interactive["footer"] == {"text": "Escribe oga para reiniciar"}
    assert [b["reply"]["id"] for b in interactive["action"]["buttons"]] == ["start_yes", "start_no"]


def test_list_payload():
    message = OutboundMessage(
        kind=MessageKind.LIST,
        body="Elige servicio",
        options=(Option(id="srv_plomero", title="Plomero"),),
        button_label="Ver servicios",
        section_title="Servicios",
    )
    payload = to_payload("502", message)
    interactive = payload["interactive"]
    assert payload["type"] == "interactive"
    assert interactive["type"] == "list"
    assert "header" not in interactive
    assert interactive["action"]["button"] == "Ver servicios"
    assert interactive["action"]["sections"][0]["title"] == "Servicios"
    assert interactive["action"]["sections"][0]["rows"] == [{"id": "srv_plomero", "title": "Plomero"}]


def test_dry_run_forced_under_pytest_and_placeholder_tokens():
    assert WhatsAppClient(_settings()).dry_run is True  # PYTEST_CURRENT_TEST is set
    assert WhatsAppClient(_settings(whatsapp_access_token="test_token")).dry_run is True


@pytest.mark.asyncio
async def test_dry_run_send_returns_none():
    client = WhatsAppClient(_settings(whatsapp_dry_run=True))
    assert await client.send("502", OutboundMessage.text("hola")) is None


def _live(monkeypatch):
    monkeypatch.setattr(WhatsAppClient, "dry_run", property(lambda self: False))


@pytest.mark.asyncio
async def test_send_posts_payload_and_returns_message_id(monkeypatch):
    _live(monkeypatch)
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"messages": [{"id": "wamid.ABC"}]})

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = WhatsAppClient(_settings(), http_client=http_client)

    message_id = await client.send("50255550000", OutboundMessage.text("hola"))

    assert message_id == "wamid.ABC"
    assert captured["url"] == "https://graph.facebook.com/v23.0/12345/messages"
    assert captured["body"]["to"] == "50255550000"
    await http_client.aclose()


@pytest.mark.asyncio
async def test_non_2xx_raises_transient_error(monkeypatch):
    _live(monkeypatch)
    http_client = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(503, text="unavailable"))
    )
    client = WhatsAppClient(_settings(), http_client=http_client)

    with pytest.raises(TransientDeliveryError) as exc_info:
        await client.send("502", OutboundMessage.text("hola"))

    assert exc_info.value.status_code == 503
    assert exc_info.value.to == "502"
    await http_client.aclose()


@pytest.mark.asyncio
async def test_network_error_raises_transient_error(monkeypatch):
    _live(monkeypatch)

    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = WhatsAppClient(_settings(), http_client=http_client)

    with pytest.raises(TransientDeliveryError) as exc_info:
        await client.send("502", OutboundMessage.text("hola"))
    assert exc_info.value.status_code is None
    await http_client.aclose()
