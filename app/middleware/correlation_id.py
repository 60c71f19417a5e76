"""
Correlation ID middleware for request tracing.

Reads X-Correlation-ID from the incoming request or generates a UUID, keeps it
in request.state and a contextvar, and stamps it on log records through
CorrelationIdFilter so a webhook and the conversation work it triggers can be
matched up in the logs.
"""

import logging
import uuid
from collections.abc import Callable
from contextvars import ContextVar

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

HEADER_CORRELATION_ID = "X-Correlation-ID"
MAX_CORRELATION_ID_LENGTH = 128

# Background tasks run outside the request, so the id also lives in a contextvar
_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id(request: Request | None = None) -> str | None:
    """
    Get correlation ID for the current request.
    Prefers request.state, then contextvar. Returns None if neither set.
    """
    if request is not None and getattr(request.state, "correlation_id", None):
        return request.state.correlation_id
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set correlation ID in contextvar (for background tasks that receive it)."""
    _correlation_id_var.set(correlation_id)


class CorrelationIdFilter(logging.Filter):
    """Adds record.correlation_id ("-" when unset) for format strings."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "correlation_id", None):
            record.correlation_id = _correlation_id_var.get() or "-"
        return True


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable):
        incoming = (request.headers.get(HEADER_CORRELATION_ID) or "").strip()
        cid = incoming if incoming and len(incoming) <= MAX_CORRELATION_ID_LENGTH else str(uuid.uuid4())
        request.state.correlation_id = cid
        token = _correlation_id_var.set(cid)
        try:
            response = await call_next(request)
        finally:
            _correlation_id_var.reset(token)
        # Echo back so Meta retries / clients can be correlated
        response.headers[HEADER_CORRELATION_ID] = cid
        return response
