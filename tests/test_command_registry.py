from __future__ import annotations

import asyncio

import pytest

from conftest import FakeRegistryAPI, RecordingSleep, command
from core.domain.models import CommandScope
from core.errors import AuthError, NotFoundError, RateLimited, TransportError
from core.services.command_registry import CommandRegistryClient, RateLimitMetrics, with_rate_limit_retry

GLOBAL = CommandScope.global_scope()


@pytest.mark.parametrize(
    "retry_afters, expected_waits",
    [
        ([], []),
        ([1.5], [1.5]),
        ([None], [5.0]),
        ([0.25, None, 2.0], [0.25, 5.0, 2.0]),
    ],
)
def test_resolve_identity_waits_out_rate_limits(make_client, sleep, retry_afters, expected_waits):
    api = FakeRegistryAPI()
    api.fail_next("identity", *(RateLimited(retry_after=r) for r in retry_afters))
    client = make_client(api)

    identity = asyncio.run(client.resolve_identity())

    assert identity.id == "app-1"
    assert sleep.waits == expected_waits
    assert api.count("identity") == len(retry_afters) + 1
    assert client.metrics.count == len(retry_afters)


def test_list_commands_retries_identical_request(make_client, sleep):
    api = FakeRegistryAPI({None: [command("1", "ping")]})
    api.fail_next("list", RateLimited(retry_after=3.0), RateLimited(retry_after=None))
    client = make_client(api)

    commands = asyncio.run(client.list_commands(GLOBAL))

    assert [c.name for c in commands] == ["ping"]
    assert sleep.waits == [3.0, 5.0]
    lists = [call for call in api.calls if call[0] == "list"]
    assert lists == [("list", "app-1", None)] * 3


def test_delete_command_retries_then_succeeds(make_client, sleep):
    api = FakeRegistryAPI({"42": [command("9", "ban")]})
    api.fail_next("delete", RateLimited(retry_after=None), RateLimited(retry_after=0.5))
    client = make_client(api, default_retry_after=7.0)

    ok = asyncio.run(client.delete_command(CommandScope.guild("42"), "9"))

    assert ok is True
    assert sleep.waits == [7.0, 0.5]
    assert api.commands["42"] == []


def test_rate_limit_metrics_are_recorded(make_client):
    api = FakeRegistryAPI()
    api.fail_next("identity", RateLimited(retry_after=2.0))
    client = make_client(api)

    asyncio.run(client.resolve_identity())

    assert client.metrics.count == 1
    assert client.metrics.last_retry_after == 2.0
    assert client.metrics.last_occurred_at is not None


def test_identity_is_resolved_once_per_client(make_client):
    api = FakeRegistryAPI({None: [], "7": []})
    client = make_client(api)

    async def scenario():
        await client.resolve_identity()
        await client.resolve_identity()
        await client.list_commands(GLOBAL)
        await client.list_commands(CommandScope.guild("7"))
        await client.delete_command(GLOBAL, "1")

    asyncio.run(scenario())

    assert api.count("identity") == 1
    assert client.identity is not None and client.identity.id == "app-1"


def test_resolve_identity_propagates_auth_error(make_client):
    api = FakeRegistryAPI()
    api.fail_next("identity", AuthError("401: Unauthorized", status=401))
    client = make_client(api)

    with pytest.raises(AuthError):
        asyncio.run(client.resolve_identity())
    assert client.identity is None


def test_list_raises_where_delete_reports_false(make_client):
    api = FakeRegistryAPI({None: [command("1", "ping")]})
    api.fail_next("list", TransportError("Internal Server Error", status=500))
    api.fail_next("delete", TransportError("Internal Server Error", status=500))
    client = make_client(api)

    with pytest.raises(TransportError):
        asyncio.run(client.list_commands(GLOBAL))
    assert asyncio.run(client.delete_command(GLOBAL, "1")) is False


def test_delete_reports_false_when_identity_fails(make_client):
    api = FakeRegistryAPI()
    api.fail_next("identity", AuthError("401: Unauthorized", status=401))
    client = make_client(api)

    assert asyncio.run(client.delete_command(GLOBAL, "1")) is False
    assert api.count("delete") == 0


def test_delete_reports_false_on_unexpected_error(make_client):
    api = FakeRegistryAPI({None: [command("1", "ping"), command("2", "ban")]})
    api.fail_next("delete", RuntimeError("unexpected"))
    client = make_client(api)

    assert asyncio.run(client.delete_command(GLOBAL, "1")) is False
    assert asyncio.run(client.delete_command(GLOBAL, "2")) is True


def test_rate_limits_surface_when_waiting_is_disabled(sleep):
    api = FakeRegistryAPI()
    api.fail_next("identity", RateLimited(retry_after=2.0))
    client = CommandRegistryClient(api, sleep=sleep, wait_out_rate_limits=False)

    with pytest.raises(RateLimited) as excinfo:
        asyncio.run(client.resolve_identity())
    assert excinfo.value.retry_after == 2.0
    assert sleep.waits == []
    assert client.metrics.count == 0
    assert api.count("identity") == 1


def test_unknown_guild_raises_not_found(make_client):
    client = make_client(FakeRegistryAPI({None: []}))

    with pytest.raises(NotFoundError) as excinfo:
        asyncio.run(client.list_commands(CommandScope.guild("123")))
    assert excinfo.value.code == 10004


def test_context_manager_closes_api(sleep):
    api = FakeRegistryAPI()

    async def scenario():
        async with CommandRegistryClient(api, sleep=sleep) as client:
            await client.resolve_identity()

    asyncio.run(scenario())
    assert api.closed is True


def test_with_rate_limit_retry_lets_other_errors_through():
    sleep = RecordingSleep()
    metrics = RateLimitMetrics()
    attempts = []

    async def call():
        attempts.append(1)
        if len(attempts) == 1:
            raise RateLimited(retry_after=None)
        raise TransportError("boom", status=502)

    with pytest.raises(TransportError):
        asyncio.run(with_rate_limit_retry(call, sleep=sleep, metrics=metrics, default_retry_after=1.0))
    assert sleep.waits == [1.0]
    assert metrics.count == 1
    assert len(attempts) == 2
