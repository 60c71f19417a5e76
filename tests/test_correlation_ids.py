"""
Tests for correlation IDs on webhook requests and log records.
"""

import contextvars
import logging
import uuid

from app.middleware.correlation_id import (
    HEADER_CORRELATION_ID,
    CorrelationIdFilter,
    set_correlation_id,
)

PAYLOAD = {
    "entry": [
        {
            "changes": [
                {
                    "value": {
                        "messages": [
                            {
                                "id": "wamid.test456",
                                "from": "1234567890",
                                "type": "text",
                                "text": {"body": "Hola"},
                            }
                        ]
                    }
                }
            ]
        }
    ]
}


def test_webhook_generates_correlation_id(client):
    """Each request without the header gets a fresh UUID echoed back."""
    first = client.post("/webhooks/whatsapp", json=PAYLOAD)
    second = client.post("/webhooks/whatsapp", json=PAYLOAD)

    first_id = first.headers[HEADER_CORRELATION_ID]
    second_id = second.headers[HEADER_CORRELATION_ID]
    uuid.UUID(first_id)
    assert first_id != second_id


def test_incoming_correlation_id_is_kept(client):
    response = client.get("/health", headers={HEADER_CORRELATION_ID: "trace-abc"})
    assert response.headers[HEADER_CORRELATION_ID] == "trace-abc"


def test_oversized_correlation_id_replaced(client):
    response = client.get("/health", headers={HEADER_CORRELATION_ID: "x" * 500})
    assert response.headers[HEADER_CORRELATION_ID] != "x" * 500


def test_filter_stamps_records():
    """Records get "-" until a correlation id is set for the current context."""

    def check():
        record = logging.LogRecord("t", logging.INFO, __file__, 1, "msg", None, None)
        CorrelationIdFilter().filter(record)
        assert record.correlation_id == "-"

        set_correlation_id("cid-123")
        record = logging.LogRecord("t", logging.INFO, __file__, 1, "msg", None, None)
        CorrelationIdFilter().filter(record)
        assert record.correlation_id == "cid-123"

    contextvars.Context().run(check)


def test_inbound_log_carries_correlation_id(client, caplog):
    with caplog.at_level(logging.INFO, logger="app.api.webhooks"):
        response = client.post(
            "/webhooks/whatsapp", json=PAYLOAD, headers={HEADER_CORRELATION_ID: "trace-xyz"}
        )
    assert response.status_code == 200
    records = [r for r in caplog.records if r.name == "app.api.webhooks"]
    assert any(getattr(r, "correlation_id", None) == "trace-xyz" for r in records)
