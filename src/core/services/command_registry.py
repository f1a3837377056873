"""Command registry client.

Wraps the raw remote operations (`CommandRegistryAPI`) behind a single
rate-limit policy and caches the application identity. The CLI only talks to
`CommandRegistryClient`; it never sees `RateLimited` unless the client
was built with `wait_out_rate_limits=False` (one-shot diagnostics).

Rate-limit policy:
- Wait exactly what the server asks for (or the configured default when it
  does not say), then re-issue the identical request.
- No retry cap, no backoff, no jitter. A server that keeps answering 429
  stalls the caller forever; this is accepted and kept visible here rather
  than hidden behind an arbitrary cap.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable, TypeVar

from core.domain.models import ApplicationIdentity, CommandRecord, CommandScope
from core.errors import RateLimited
from core.interfaces.registry import CommandRegistryAPI
from core.logger import get_logger

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]

DEFAULT_RETRY_AFTER_SECONDS = 5.0

logger = get_logger(__name__)


@dataclass
class RateLimitMetrics:
    """Diagnostics about rate-limit occurrences. Written, never read back."""

    count: int = 0
    last_retry_after: float | None = None
    last_occurred_at: datetime | None = None


async def with_rate_limit_retry(
    call: Callable[[], Awaitable[T]],
    *,
    sleep: Sleep = asyncio.sleep,
    metrics: RateLimitMetrics | None = None,
    default_retry_after: float = DEFAULT_RETRY_AFTER_SECONDS,
    operation: str = "request",
) -> T:
    """Run `call` until it stops raising `RateLimited`.

    `call` must build a fresh request on every invocation. Any other
    exception propagates untouched.
    """

    while True:
        try:
            return await call()
        except RateLimited as exc:
            wait = exc.retry_after if exc.retry_after is not None else default_retry_after
            if metrics is not None:
                metrics.count += 1
                metrics.last_retry_after = wait
                metrics.last_occurred_at = datetime.now(timezone.utc)
            logger.warning("Rate limited during %s, waiting %.2fs before retrying", operation, wait)
            await sleep(wait)


class CommandRegistryClient:
    """Client for listing and deleting slash commands in one scope at a time.

    Holds the per-process state: the cached identity and the rate-limit
    metrics. Use as an async context manager to close the underlying API.
    """

    def __init__(
        self,
        api: CommandRegistryAPI,
        *,
        sleep: Sleep = asyncio.sleep,
        default_retry_after: float = DEFAULT_RETRY_AFTER_SECONDS,
        wait_out_rate_limits: bool = True,
    ) -> None:
        self._api = api
        self._sleep = sleep
        self._default_retry_after = default_retry_after
        self._wait_out_rate_limits = wait_out_rate_limits
        self._identity: ApplicationIdentity | None = None
        self.metrics = RateLimitMetrics()

    async def __aenter__(self) -> "CommandRegistryClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._api.aclose()

    @property
    def identity(self) -> ApplicationIdentity | None:
        return self._identity

    async def _retrying(self, operation: str, call: Callable[[], Awaitable[T]]) -> T:
        if not self._wait_out_rate_limits:
            return await call()
        return await with_rate_limit_retry(
            call,
            sleep=self._sleep,
            metrics=self.metrics,
            default_retry_after=self._default_retry_after,
            operation=operation,
        )

    async def resolve_identity(self) -> ApplicationIdentity:
        """Return the application identity, fetching it on first use only.

        Raises `AuthError` when the token is rejected.
        """

        if self._identity is not None:
            return self._identity

        identity = await self._retrying("resolve identity", self._api.get_current_identity)
        self._identity = identity
        logger.debug("Resolved application id %s", identity.id)
        return identity

    async def list_commands(self, scope: CommandScope) -> list[CommandRecord]:
        """List the commands registered in `scope`, in remote order.

        Raises `NotFoundError` for an unknown or inaccessible guild and
        `TransportError` for any other remote failure.
        """

        identity = await self.resolve_identity()
        commands = await self._retrying(
            f"list {scope.label} commands",
            lambda: self._api.list_commands(identity.id, scope.guild_id),
        )
        logger.debug("Retrieved %d %s commands", len(commands), scope.label)
        return commands

    async def delete_command(self, scope: CommandScope, command_id: str) -> bool:
        """Delete one command. Returns `False` instead of raising on failure.

        Deletion is best-effort so a batch can carry on past a bad item.
        """

        try:
            identity = await self.resolve_identity()
            await self._retrying(
                f"delete {scope.label} command {command_id}",
                lambda: self._api.delete_command(identity.id, command_id, scope.guild_id),
            )
        except Exception as exc:
            logger.warning(
                "Failed to delete %s command %s (status=%s): %s",
                scope.label,
                command_id,
                getattr(exc, "status", None) or "unknown",
                exc,
                exc_info=True,
            )
            return False

        logger.debug("Deleted %s command %s", scope.label, command_id)
        return True
