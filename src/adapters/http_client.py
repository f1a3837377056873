"""httpx wrapper.

Why a wrapper:
- Standardizes timeouts, headers and authentication for every request.
- Eases testing: a `transport` can be injected (e.g. `httpx.MockTransport`).
"""

from __future__ import annotations

import httpx

from core.config import AppSettings


def build_async_client(
    settings: AppSettings | None = None,
    *,
    token: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    extra_headers: dict[str, str] | None = None,
) -> httpx.AsyncClient:
    """Create an `httpx.AsyncClient` bound to the Discord API base URL.

    Why a builder:
    - Centralizes timeouts/headers so every call behaves the same.
    - The token is sent as `Authorization: Bot <token>`.
    """

    settings = settings or AppSettings()
    token = token or settings.bot_token

    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json",
    }
    if token:
        headers["Authorization"] = f"Bot {token}"
    if extra_headers:
        headers.update(extra_headers)

    return httpx.AsyncClient(
        base_url=settings.api_base_url.rstrip("/") + "/",
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        headers=headers,
        transport=transport,
    )
