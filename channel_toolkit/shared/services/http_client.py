"""
Shared HTTP client utilities.

One pooled httpx client per process for archive reads, with timeouts and
a User-Agent taken from the environment. Services accept an injected
client (tests pass one built on httpx.MockTransport) and fall back to the
shared one.
"""

from __future__ import annotations

import os
from typing import Optional

import httpx

DEFAULT_TIMEOUT = float(os.getenv("CHANNEL_HTTP_TIMEOUT", "30"))
DEFAULT_CONNECT_TIMEOUT = float(os.getenv("CHANNEL_HTTP_CONNECT_TIMEOUT", "5"))
USER_AGENT = os.getenv("CHANNEL_HTTP_UA", "zk-channel-toolkit/0.x")

_async_client: Optional[httpx.AsyncClient] = None


def build_timeout() -> httpx.Timeout:
    # Proof ZIPs for large circuits are slow to stream
    return httpx.Timeout(DEFAULT_TIMEOUT, connect=DEFAULT_CONNECT_TIMEOUT)


def default_headers() -> dict:
    return {"User-Agent": USER_AGENT}


def get_async_client() -> httpx.AsyncClient:
    """Get a shared asynchronous httpx client."""
    global _async_client
    if _async_client is None or _async_client.is_closed:
        _async_client = httpx.AsyncClient(
            timeout=build_timeout(),
            headers=default_headers(),
            follow_redirects=True,
        )
    return _async_client


async def aclose_async_client() -> None:
    global _async_client
    if _async_client is not None:
        await _async_client.aclose()
        _async_client = None
