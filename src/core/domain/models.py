"""Domain models (Pydantic v2).

Why Pydantic in the domain:
- Strict validation at the edge where remote JSON becomes typed data, without
  coupling the Core to the HTTP library that fetched it.
- Remote payloads carry many fields we do not care about; `extra="ignore"`
  keeps the models small and stable across API versions.

Note:
- These models describe *what* a command registration is, not *how* it is fetched.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict


class ApplicationIdentity(BaseModel):
    """The bot application the token belongs to.

    Resolved once per client and cached for the rest of the process.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Opaque application (bot user) identifier.",
    )
    username: str | None = Field(
        default=None,
        description="Bot username, only used for display.",
    )


class CommandScope(BaseModel):
    """Where a command lives: the global set or exactly one guild."""

    model_config = ConfigDict(frozen=True)

    guild_id: str | None = Field(
        default=None,
        description="Guild identifier; `None` targets the global command set.",
    )

    @classmethod
    def global_scope(cls) -> "CommandScope":
        return cls()

    @classmethod
    def guild(cls, guild_id: str) -> "CommandScope":
        return cls(guild_id=guild_id)

    @property
    def is_global(self) -> bool:
        return self.guild_id is None

    @property
    def label(self) -> str:
        """Human readable label for prompts and logging."""

        return "global" if self.guild_id is None else f"guild {self.guild_id}"


class CommandRecord(BaseModel):
    """A slash command registration as returned by the remote API."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Opaque command identifier.",
    )
    name: str = Field(
        ...,
        min_length=1,
        description="Command name as typed by users (without the slash).",
    )
    description: str | None = Field(
        default=None,
        description="Command description; empty for user/message commands.",
    )
    type: int = Field(
        default=1,
        ge=1,
        description="Command type (1 chat input, 2 user, 3 message).",
    )
    guild_id: str | None = Field(
        default=None,
        description="Owning guild for guild commands, absent for global ones.",
    )

    @field_validator("description")
    @classmethod
    def _blank_description_is_none(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value
