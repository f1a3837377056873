"""Main CLI (Typer).

Why Typer:
- Declarative commands and options on top of click, with prompts included.
- The interactive shell is the default when no subcommand is given; `list`
  and `purge` cover scripted use.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from adapters.discord_rest import DiscordRestAPI
from cli.doctor import app as doctor_app
from cli.shell import InteractiveShell, validate_guild_id
from cli.ui_components import (
    build_purge_hooks,
    build_rate_limit_sleep,
    print_commands,
    print_delete_warning,
    print_error,
    print_purge_summary,
)
from core.config import AppSettings
from core.domain.models import CommandScope
from core.errors import CommandRegistryError
from core.logger import get_logger, setup_logging
from core.services.cleanup import PurgeStatus, purge_commands
from core.services.command_registry import CommandRegistryClient

app = typer.Typer(help="List and delete Discord slash commands (global and per guild).")
app.add_typer(doctor_app, name="doctor")

console = Console()
logger = get_logger(__name__)


def load_settings() -> AppSettings:
    return AppSettings()


def print_config_error(exc: ValidationError) -> None:
    """One line naming the first offending variable; no pydantic traceback."""

    error = exc.errors()[0]
    field = ".".join(str(part) for part in error["loc"])
    env_name = f"{AppSettings.model_config['env_prefix']}{field}".upper()
    more = f" (+{exc.error_count() - 1} more)" if exc.error_count() > 1 else ""
    console.print(f"[red]Invalid configuration: {escape(env_name)}: {escape(error['msg'])}{more}[/red]")


def require_token(settings: AppSettings) -> str:
    """Exit with status 1 before any remote call when no token is configured."""

    if settings.bot_token:
        return settings.bot_token

    console.print("[red]Error: DISCORD_BOT_TOKEN not found in environment variables.[/red]")
    console.print(
        "[yellow]Please create a .env file with your bot token, set it as an environment variable "
        "or run `discord-command-cleaner doctor setup-token`.[/yellow]"
    )
    console.print("[dim]Example .env file:[/dim]")
    console.print("[dim]DISCORD_BOT_TOKEN=your_bot_token_here[/dim]")
    raise typer.Exit(code=1)


def build_registry_client(settings: AppSettings) -> CommandRegistryClient:
    return CommandRegistryClient(
        DiscordRestAPI.from_settings(settings),
        sleep=build_rate_limit_sleep(console),
        default_retry_after=settings.default_retry_after_seconds,
    )


def _scope_from_option(guild: str | None) -> CommandScope:
    return CommandScope.global_scope() if guild is None else CommandScope.guild(guild)


def _guild_option_callback(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return validate_guild_id(value)


async def _interactive(settings: AppSettings) -> int:
    async with build_registry_client(settings) as client:
        return await InteractiveShell(client, console).run()


async def _list(settings: AppSettings, scope: CommandScope) -> int:
    async with build_registry_client(settings) as client:
        try:
            commands = await client.list_commands(scope)
        except CommandRegistryError as exc:
            print_error(console, f"Failed to list {scope.label} commands:", exc, scope=scope)
            return 1
    print_commands(console, commands, scope)
    return 0


async def _purge(settings: AppSettings, scope: CommandScope, assume_yes: bool) -> int:
    async with build_registry_client(settings) as client:
        try:
            commands = await client.list_commands(scope)
        except CommandRegistryError as exc:
            print_error(console, f"Failed to list {scope.label} commands:", exc, scope=scope)
            return 1

        print_commands(console, commands, scope)
        if not commands:
            return 0

        print_delete_warning(console, scope)
        if not assume_yes and not typer.confirm(f"Delete {len(commands)} {scope.label} commands?", default=False):
            console.print("[yellow]⚠️  Operation cancelled.[/yellow]")
            return 0

        result = await purge_commands(client, scope, commands, build_purge_hooks(console))

    print_purge_summary(console, result)
    return 0 if result.status in (PurgeStatus.SUCCESS, PurgeStatus.EMPTY) else 1


def _run_async(coro_factory) -> int:
    try:
        return asyncio.run(coro_factory())
    except (typer.Abort, typer.Exit):
        raise
    except Exception as exc:
        logger.exception("Fatal error")
        console.print(f"[red]Fatal error: {escape(str(exc))}[/red]")
        return 1


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Without a subcommand, start the interactive menu."""

    try:
        settings = load_settings()
    except ValidationError as exc:
        print_config_error(exc)
        raise typer.Exit(code=1)
    setup_logging("DEBUG" if verbose else settings.log_level)
    ctx.obj = settings

    if ctx.invoked_subcommand is not None:
        return

    require_token(settings)
    raise typer.Exit(code=_run_async(lambda: _interactive(settings)))


@app.command(name="list")
def list_commands(
    ctx: typer.Context,
    guild: Optional[str] = typer.Option(
        None, "--guild", "-g", help="Guild ID; omit for global commands.", callback=_guild_option_callback
    ),
) -> None:
    """List registered slash commands."""

    settings: AppSettings = ctx.obj
    require_token(settings)
    raise typer.Exit(code=_run_async(lambda: _list(settings, _scope_from_option(guild))))


@app.command()
def purge(
    ctx: typer.Context,
    guild: Optional[str] = typer.Option(
        None, "--guild", "-g", help="Guild ID; omit for global commands.", callback=_guild_option_callback
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """Delete every slash command of a scope."""

    settings: AppSettings = ctx.obj
    require_token(settings)
    raise typer.Exit(code=_run_async(lambda: _purge(settings, _scope_from_option(guild), yes)))


def run() -> None:
    app()
