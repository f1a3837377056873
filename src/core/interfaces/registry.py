"""Contract of the remote command-registration API.

Why Protocol:
- Structural contract (duck typing) without rigid inheritance.
- The REST adapter and the in-memory fakes used by tests are interchangeable,
  and the retry policy in the services layer never touches HTTP.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import ApplicationIdentity, CommandRecord


@runtime_checkable
class CommandRegistryAPI(Protocol):
    """Raw remote operations, one request each, no retries.

    Design rules:
    - Every method is async because it performs I/O.
    - Failures are raised as `core.errors.CommandRegistryError` subclasses;
      a rate-limited call raises `RateLimited` and is not retried here.
    - `guild_id=None` targets the global command set.
    """

    async def get_current_identity(self) -> ApplicationIdentity:
        ...

    async def list_commands(
        self, application_id: str, guild_id: str | None = None
    ) -> list[CommandRecord]:
        ...

    async def delete_command(
        self, application_id: str, command_id: str, guild_id: str | None = None
    ) -> None:
        ...

    async def aclose(self) -> None:
        ...
