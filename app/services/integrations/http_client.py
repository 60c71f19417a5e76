"""
Factory for outbound httpx clients.

Graph API sends are the only outbound HTTP this service makes; building every
client here keeps one timeout policy for all of them.
"""

import httpx


def get_httpx_timeout() -> httpx.Timeout:
    """10s to read a response, 5s for connecting, writing and waiting on the pool."""
    return httpx.Timeout(10.0, connect=5.0, read=10.0, write=5.0, pool=5.0)


def create_httpx_client(headers: dict[str, str] | None = None) -> httpx.AsyncClient:
    """
    New AsyncClient with the standard timeouts and optional default headers.

    The caller owns the client and is responsible for aclose().
    """
    return httpx.AsyncClient(timeout=get_httpx_timeout(), headers=headers)
