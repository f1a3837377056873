from __future__ import annotations

from collections import defaultdict
from typing import Sequence

import pytest
from rich.console import Console

from core.domain.models import ApplicationIdentity, CommandRecord
from core.errors import NotFoundError, TransportError
from core.services.command_registry import CommandRegistryClient


class FakeRegistryAPI:
    """In-memory `CommandRegistryAPI`.

    `commands` maps a guild id (or `None` for global) to its commands; guilds
    missing from the map answer like Discord's "Unknown Guild".
    """

    def __init__(
        self,
        commands: dict[str | None, list[CommandRecord]] | None = None,
        *,
        identity: ApplicationIdentity | None = None,
        failing_ids: set[str] | None = None,
    ) -> None:
        self.identity = identity or ApplicationIdentity(id="app-1", username="cleaner")
        self.commands = commands if commands is not None else {None: []}
        self.failing_ids = failing_ids or set()
        self.errors: dict[str, list[BaseException]] = defaultdict(list)
        self.calls: list[tuple] = []
        self.closed = False

    def fail_next(self, operation: str, *errors: BaseException) -> None:
        self.errors[operation].extend(errors)

    def count(self, operation: str) -> int:
        return sum(1 for call in self.calls if call[0] == operation)

    def _raise_scripted(self, operation: str) -> None:
        if self.errors[operation]:
            raise self.errors[operation].pop(0)

    async def get_current_identity(self) -> ApplicationIdentity:
        self.calls.append(("identity",))
        self._raise_scripted("identity")
        return self.identity

    async def list_commands(self, application_id: str, guild_id: str | None = None) -> list[CommandRecord]:
        self.calls.append(("list", application_id, guild_id))
        self._raise_scripted("list")
        if guild_id not in self.commands:
            raise NotFoundError("Unknown Guild", status=404, code=10004)
        return list(self.commands[guild_id])

    async def delete_command(self, application_id: str, command_id: str, guild_id: str | None = None) -> None:
        self.calls.append(("delete", application_id, command_id, guild_id))
        self._raise_scripted("delete")
        if command_id in self.failing_ids:
            raise TransportError("Missing Permissions", status=403, code=50013)
        self.commands[guild_id] = [c for c in self.commands.get(guild_id, []) if c.id != command_id]

    async def aclose(self) -> None:
        self.closed = True


class RecordingSleep:
    def __init__(self) -> None:
        self.waits: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.waits.append(seconds)


class ScriptedPrompter:
    def __init__(
        self,
        choices: Sequence[str] = (),
        guild_ids: Sequence[str] = (),
        confirms: Sequence[bool] = (),
    ) -> None:
        self.choices = list(choices)
        self.guild_ids = list(guild_ids)
        self.confirms = list(confirms)
        self.confirm_messages: list[str] = []
        self.pauses = 0

    def choose(self, options) -> str:
        return self.choices.pop(0)

    def ask_guild_id(self) -> str:
        return self.guild_ids.pop(0)

    def confirm(self, message: str) -> bool:
        self.confirm_messages.append(message)
        return self.confirms.pop(0)

    def pause(self) -> None:
        self.pauses += 1


def command(id: str, name: str, description: str | None = None) -> CommandRecord:
    return CommandRecord(id=id, name=name, description=description)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def console() -> Console:
    return Console(record=True, width=120, color_system=None, force_terminal=False)


@pytest.fixture
def make_client(sleep):
    def _make(api: FakeRegistryAPI, default_retry_after: float = 5.0) -> CommandRegistryClient:
        return CommandRegistryClient(api, sleep=sleep, default_retry_after=default_retry_after)

    return _make
