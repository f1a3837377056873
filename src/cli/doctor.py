"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table
from rich.text import Text

from adapters.discord_rest import DiscordRestAPI
from core.config import AppSettings, save_user_setting
from core.errors import CommandRegistryError, RateLimited
from core.services.command_registry import CommandRegistryClient

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_identity(settings: AppSettings) -> tuple[bool, str]:
    """Resolve the application identity once, without waiting out rate limits."""

    api = DiscordRestAPI.from_settings(settings)
    async with CommandRegistryClient(api, wait_out_rate_limits=False) as client:
        try:
            identity = await client.resolve_identity()
        except RateLimited as exc:
            wait = f", retry in {exc.retry_after:g}s" if exc.retry_after is not None else ""
            return False, f"Rate limited by Discord{wait}"
        except CommandRegistryError as exc:
            status = f"HTTP {exc.status}: " if exc.status is not None else ""
            return False, f"{status}{exc.message}"
    name = f" ({identity.username})" if identity.username else ""
    return True, f"Application ID {identity.id}{name}"


def _mask_token(token: str) -> str:
    if len(token) <= 8:
        return "*" * len(token)
    return f"{token[:4]}…{token[-4:]}"


@app.command()
def run(ctx: typer.Context) -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings: AppSettings = ctx.obj

    table = Table(title="Discord Command Cleaner Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    if settings.bot_token:
        table.add_row("Bot token", "OK", Text(_mask_token(settings.bot_token)))
    else:
        table.add_row("Bot token", "MISSING", "Set DISCORD_BOT_TOKEN or run `doctor setup-token`")
    table.add_row("API base_url", "OK", Text(settings.api_base_url))
    table.add_row("HTTP timeout", "OK", f"{settings.http_timeout_seconds:g}s")

    # Connectivity + auth
    ok_identity = False
    if settings.bot_token:
        ok_identity, detail = asyncio.run(_check_identity(settings))
        table.add_row("Identity", "OK" if ok_identity else "FAIL", Text(detail))
    else:
        table.add_row("Identity", "SKIPPED", "No token configured")

    _console.print(table)

    if not ok_identity:
        raise typer.Exit(code=1)


@app.command(name="setup-token")
def setup_token() -> None:
    """Interactive token setup (stores it in the user config .env).

    Avoids manual .env editing for packaged installs.
    """

    token = typer.prompt("Bot token", hide_input=True, confirmation_prompt=False).strip()
    if not token:
        raise typer.BadParameter("token is required")

    env_path = save_user_setting("DISCORD_BOT_TOKEN", token)
    _console.print("[green]Saved bot token to:[/green]", Text(str(env_path)))
