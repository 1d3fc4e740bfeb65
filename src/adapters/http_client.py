"""httpx wrapper.

Why a wrapper:
- Standardizes timeouts and headers for both upstream APIs.
- Eases testing: callers can pass an `httpx.MockTransport`.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx

from core.config import AppSettings


def build_async_client(
    settings: AppSettings | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an `httpx.AsyncClient` with the project defaults.

    Why a builder:
    - Centralizes timeout/headers so every source behaves the same.
    - Keeps the transport swappable for tests.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )


def describe_response(response: httpx.Response) -> str:
    """Short `<status> <reason>` label for log lines."""

    return f"{response.status_code} {response.reason_phrase}".strip()


@asynccontextmanager
async def client_session(
    settings: AppSettings,
    client: httpx.AsyncClient | None = None,
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield `client` unchanged, or a fresh client closed on exit."""

    if client is not None:
        yield client
        return
    async with build_async_client(settings) as owned:
        yield owned
