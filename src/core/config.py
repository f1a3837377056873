"""Core configuration.

Environment variables win over `.env` files. The per-user `.env` (where
`doctor setup-token` stores the bot token) is read after the project `.env`
and overrides it.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_DIR_NAME = "discord-command-cleaner"


def user_env_file() -> Path:
    """`.env` in the per-user config dir (`$XDG_CONFIG_HOME` or the platform's)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA") or Path.home())
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config")
    return base / APP_DIR_NAME / ".env"


def save_user_setting(key: str, value: str) -> Path:
    """Set `key` in the per-user `.env`; other lines and comments stay as written."""

    env_path = user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    lines = env_path.read_text(encoding="utf-8").splitlines() if env_path.exists() else []
    kept = [line for line in lines if line.partition("=")[0].strip() != key]
    kept.append(f"{key}={value}")
    env_path.write_text("\n".join(kept) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Central application configuration.

    Why pydantic-settings:
    - Typing + validation at the edge (env vars) without leaking into the Core.
    - A single configuration contract for the CLI and the adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="DISCORD_",
        extra="ignore",
        case_sensitive=False,
        # Order: project first (dev), then the user's global config.
        env_file=(".env", str(user_env_file())),
        env_file_encoding="utf-8",
    )

    bot_token: str | None = Field(
        default=None,
        description="Bot token used as `Authorization: Bot <token>`.",
    )
    api_base_url: str = Field(
        default="https://discord.com/api/v10",
        min_length=8,
        description="Base URL of the Discord REST API (versioned).",
    )
    http_timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        description="Timeout per request (seconds).",
    )
    default_retry_after_seconds: float = Field(
        default=5.0,
        ge=0,
        description="Wait applied when a rate-limit response carries no retry_after.",
    )
    user_agent: str = Field(
        default="DiscordBot (https://github.com/discord-command-cleaner, 0.1.0)",
        min_length=1,
        description="User-Agent sent to the Discord API.",
    )
    log_level: str = Field(
        default="WARNING",
        description="Logging level for the console handler.",
    )
