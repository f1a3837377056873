"""Batch deletion of a scope's commands.

The loop lives here instead of the CLI so the same tally is used by the
interactive shell and the non-interactive `purge` command. Printing stays in
the UI layer through `PurgeHooks`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Sequence

from core.domain.models import CommandRecord, CommandScope
from core.services.command_registry import CommandRegistryClient


class PurgeStatus(str, Enum):
    EMPTY = "empty"
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass
class PurgeHooks:
    """Optional callbacks for UI layers (per-item progress)."""

    deleting: Callable[[int, int, CommandRecord], None] | None = None
    finished: Callable[[int, int, CommandRecord, bool], None] | None = None


@dataclass
class PurgeResult:
    """Outcome of a batch deletion."""

    scope: CommandScope
    total: int = 0
    deleted: list[CommandRecord] = field(default_factory=list)
    failed: list[CommandRecord] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return len(self.deleted) + len(self.failed)

    @property
    def status(self) -> PurgeStatus:
        if self.total == 0:
            return PurgeStatus.EMPTY
        if len(self.deleted) == self.total:
            return PurgeStatus.SUCCESS
        if self.deleted:
            return PurgeStatus.PARTIAL
        return PurgeStatus.FAILED


async def purge_commands(
    client: CommandRegistryClient,
    scope: CommandScope,
    commands: Sequence[CommandRecord],
    hooks: PurgeHooks | None = None,
) -> PurgeResult:
    """Delete `commands` one by one, in order, and tally the outcome."""

    hooks = hooks or PurgeHooks()
    result = PurgeResult(scope=scope, total=len(commands))

    for index, command in enumerate(commands):
        if hooks.deleting:
            hooks.deleting(index, result.total, command)

        ok = await client.delete_command(scope, command.id)
        if ok:
            result.deleted.append(command)
        else:
            result.failed.append(command)

        if hooks.finished:
            hooks.finished(index, result.total, command, ok)

    return result
