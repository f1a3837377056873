from __future__ import annotations

import asyncio

import httpx
import pytest

from adapters.discord_rest import DiscordRestAPI, commands_route
from core.config import AppSettings
from core.errors import AuthError, NotFoundError, RateLimited, TransportError


def make_api(handler) -> DiscordRestAPI:
    settings = AppSettings(_env_file=None, bot_token="tok")
    return DiscordRestAPI.from_settings(settings, transport=httpx.MockTransport(handler))


def run(api: DiscordRestAPI, coro_factory):
    async def scenario():
        try:
            return await coro_factory(api)
        finally:
            await api.aclose()

    return asyncio.run(scenario())


def test_routes():
    assert commands_route("1") == "applications/1/commands"
    assert commands_route("1", "2") == "applications/1/guilds/2/commands"


def test_get_current_identity_sends_bot_token():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("authorization")
        seen["ua"] = request.headers.get("user-agent")
        return httpx.Response(200, json={"id": "42", "username": "cleaner", "bot": True})

    identity = run(make_api(handler), lambda api: api.get_current_identity())

    assert identity.id == "42"
    assert identity.username == "cleaner"
    assert seen["url"] == "https://discord.com/api/v10/users/@me"
    assert seen["auth"] == "Bot tok"
    assert seen["ua"].startswith("DiscordBot")


def test_list_guild_commands_parses_records():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "GET"
        assert request.url.path == "/api/v10/applications/42/guilds/7/commands"
        return httpx.Response(
            200,
            json=[
                {"id": "1", "name": "ping", "description": "", "type": 1, "version": "9", "guild_id": "7"},
                {"id": "2", "name": "ban", "description": "Ban a user", "type": 1, "guild_id": "7"},
            ],
        )

    commands = run(make_api(handler), lambda api: api.list_commands("42", "7"))

    assert [(c.id, c.name) for c in commands] == [("1", "ping"), ("2", "ban")]
    assert commands[0].description is None
    assert commands[1].description == "Ban a user"
    assert commands[1].guild_id == "7"


def test_delete_global_command_accepts_no_content():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path))
        return httpx.Response(204)

    assert run(make_api(handler), lambda api: api.delete_command("42", "9")) is None
    assert seen == [("DELETE", "/api/v10/applications/42/commands/9")]


@pytest.mark.parametrize(
    "response, expected",
    [
        (httpx.Response(429, json={"message": "You are being rate limited.", "retry_after": 1.5, "global": False}), 1.5),
        (httpx.Response(429, headers={"Retry-After": "3"}), 3.0),
        (httpx.Response(429, json={"message": "You are being rate limited."}), None),
    ],
)
def test_rate_limit_carries_retry_after(response, expected):
    with pytest.raises(RateLimited) as excinfo:
        run(make_api(lambda request: response), lambda api: api.list_commands("42"))
    assert excinfo.value.retry_after == expected
    assert excinfo.value.status == 429


@pytest.mark.parametrize(
    "response, guild_id, error",
    [
        (httpx.Response(401, json={"message": "401: Unauthorized", "code": 0}), None, AuthError),
        (httpx.Response(404, json={"message": "Unknown Guild", "code": 10004}), "7", NotFoundError),
        (httpx.Response(403, json={"message": "Missing Access", "code": 50001}), "7", NotFoundError),
        (httpx.Response(403, json={"message": "Missing Access", "code": 50001}), None, TransportError),
        (httpx.Response(500, text="oops"), None, TransportError),
    ],
)
def test_error_mapping(response, guild_id, error):
    with pytest.raises(error) as excinfo:
        run(make_api(lambda request: response), lambda api: api.list_commands("42", guild_id))
    assert excinfo.value.status == response.status_code


def test_network_failure_is_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportError) as excinfo:
        run(make_api(handler), lambda api: api.get_current_identity())
    assert excinfo.value.status is None
    assert "ConnectError" in excinfo.value.message


def test_unexpected_list_payload_is_transport_error():
    with pytest.raises(TransportError):
        run(make_api(lambda request: httpx.Response(200, json={"id": "1"})), lambda api: api.list_commands("42"))
