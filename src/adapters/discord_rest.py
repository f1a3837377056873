"""Adapter: Discord REST API (v10) for application commands.

Responsibility:
- Issue one HTTP request per operation (no retries here).
- Map Discord responses to domain models and to `core.errors` types.

Routes:
- GET    users/@me
- GET    applications/{app}/commands
- GET    applications/{app}/guilds/{guild}/commands
- DELETE applications/{app}/commands/{id}
- DELETE applications/{app}/guilds/{guild}/commands/{id}
"""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import ValidationError

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.models import ApplicationIdentity, CommandRecord
from core.errors import (
    AuthError,
    CommandRegistryError,
    NotFoundError,
    RateLimited,
    TransportError,
)
from core.interfaces.registry import CommandRegistryAPI
from core.logger import get_logger

# Discord JSON error codes.
UNKNOWN_GUILD = 10004
MISSING_ACCESS = 50001

logger = get_logger(__name__)


def commands_route(application_id: str, guild_id: str | None = None) -> str:
    if guild_id is None:
        return f"applications/{application_id}/commands"
    return f"applications/{application_id}/guilds/{guild_id}/commands"


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _safe_retry_after_seconds(response: httpx.Response, payload: Any) -> float | None:
    value: Any = None
    if isinstance(payload, dict):
        value = payload.get("retry_after")
    if value is None:
        value = response.headers.get("retry-after")
    if value is None:
        return None
    try:
        return max(0.0, float(value))
    except (TypeError, ValueError):
        return None


def error_from_response(response: httpx.Response, *, guild_scoped: bool = False) -> CommandRegistryError:
    """Translate a non-2xx Discord response into a registry error."""

    payload = _json_or_none(response)
    message = response.reason_phrase or "Unknown error"
    code: int | None = None
    if isinstance(payload, dict):
        message = str(payload.get("message") or message)
        raw_code = payload.get("code")
        code = raw_code if isinstance(raw_code, int) else None

    status = response.status_code
    if status == 429:
        return RateLimited(
            message,
            retry_after=_safe_retry_after_seconds(response, payload),
            status=status,
            code=code,
        )
    if status == 401:
        return AuthError(message, status=status, code=code)
    if code == UNKNOWN_GUILD or "Unknown Guild" in message:
        return NotFoundError(message, status=status, code=code)
    if guild_scoped and status == 403 and code == MISSING_ACCESS:
        return NotFoundError(message, status=status, code=code)
    return TransportError(message, status=status, code=code)


class DiscordRestAPI(CommandRegistryAPI):
    """`CommandRegistryAPI` backed by `httpx.AsyncClient`."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @classmethod
    def from_settings(
        cls,
        settings: AppSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "DiscordRestAPI":
        return cls(build_async_client(settings, transport=transport))

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, url: str, *, guild_scoped: bool = False) -> Any:
        logger.debug("%s %s", method, url)
        try:
            response = await self._client.request(method, url)
        except httpx.HTTPError as exc:
            raise TransportError(f"{type(exc).__name__}: {exc}") from exc

        if response.is_success:
            if response.status_code == 204 or not response.content:
                return None
            payload = _json_or_none(response)
            if payload is None:
                raise TransportError("Invalid JSON in response", status=response.status_code)
            return payload

        raise error_from_response(response, guild_scoped=guild_scoped)

    async def get_current_identity(self) -> ApplicationIdentity:
        payload = await self._request("GET", "users/@me")
        try:
            return ApplicationIdentity.model_validate(payload)
        except ValidationError as exc:
            raise TransportError(f"Unexpected identity payload: {exc.error_count()} error(s)") from exc

    async def list_commands(
        self, application_id: str, guild_id: str | None = None
    ) -> list[CommandRecord]:
        payload = await self._request(
            "GET",
            commands_route(application_id, guild_id),
            guild_scoped=guild_id is not None,
        )
        if not isinstance(payload, list):
            raise TransportError("Unexpected command list payload")
        try:
            return [CommandRecord.model_validate(item) for item in payload]
        except ValidationError as exc:
            raise TransportError(f"Unexpected command payload: {exc.error_count()} error(s)") from exc

    async def delete_command(
        self, application_id: str, command_id: str, guild_id: str | None = None
    ) -> None:
        await self._request(
            "DELETE",
            f"{commands_route(application_id, guild_id)}/{command_id}",
            guild_scoped=guild_id is not None,
        )
