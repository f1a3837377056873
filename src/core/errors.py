"""Error taxonomy for command registry operations.

Adapters translate transport-level failures into these types so that the
services and the CLI never need to know about HTTP status codes.
"""

from __future__ import annotations


class CommandRegistryError(Exception):
    """Base class for every failure of a remote registry operation."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code


class AuthError(CommandRegistryError):
    """The bot token is missing, invalid or revoked."""


class NotFoundError(CommandRegistryError):
    """The guild is unknown to the bot or the bot cannot access it."""


class TransportError(CommandRegistryError):
    """Any other non-retryable remote failure (HTTP error, network, bad payload)."""


class RateLimited(CommandRegistryError):
    """The remote asked us to slow down.

    `retry_after` is the server-suggested wait in seconds, or `None` when the
    response did not carry one.
    """

    def __init__(
        self,
        message: str = "You are being rate limited.",
        *,
        retry_after: float | None = None,
        status: int | None = 429,
        code: int | None = None,
    ) -> None:
        super().__init__(message, status=status, code=code)
        self.retry_after = retry_after
