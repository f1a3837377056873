"""Interactive menu loop.

The shell owns the prompts and the screen; every remote call goes through
`CommandRegistryClient`. Prompts are behind `Prompter` so the loop can be
driven by a script in tests.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Protocol, Sequence

import click
import typer
from rich.console import Console
from rich.markup import escape

from cli.ui_components import (
    build_purge_hooks,
    print_banner,
    print_commands,
    print_delete_warning,
    print_error,
    print_header,
    print_purge_summary,
)
from core.domain.models import CommandRecord, CommandScope
from core.errors import CommandRegistryError
from core.logger import get_logger
from core.services.cleanup import PurgeResult, purge_commands
from core.services.command_registry import CommandRegistryClient

logger = get_logger(__name__)

_GUILD_ID_RE = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class MenuOption:
    key: str
    label: str


LIST_GLOBAL = "1"
DELETE_GLOBAL = "2"
LIST_GUILD = "3"
DELETE_GUILD = "4"
EXIT = "5"

MENU: tuple[MenuOption, ...] = (
    MenuOption(LIST_GLOBAL, "List Global Commands"),
    MenuOption(DELETE_GLOBAL, "Delete All Global Commands"),
    MenuOption(LIST_GUILD, "List Guild Commands"),
    MenuOption(DELETE_GUILD, "Delete All Guild Commands"),
    MenuOption(EXIT, "Exit"),
)


def validate_guild_id(value: str) -> str:
    """Guild ids are snowflakes: digits only."""

    value = (value or "").strip()
    if not _GUILD_ID_RE.fullmatch(value):
        raise typer.BadParameter("Please enter a valid Guild ID (numbers only)")
    return value


class Prompter(Protocol):
    def choose(self, options: Sequence[MenuOption]) -> str:
        ...

    def ask_guild_id(self) -> str:
        ...

    def confirm(self, message: str) -> bool:
        ...

    def pause(self) -> None:
        ...


class TyperPrompter:
    """`Prompter` on top of `typer.prompt` / `typer.confirm`."""

    def __init__(self, console: Console) -> None:
        self._console = console

    def choose(self, options: Sequence[MenuOption]) -> str:
        for option in options:
            self._console.print(f"  [cyan]{option.key}.[/cyan] {option.label}")
        return typer.prompt(
            "Select an option",
            type=click.Choice([option.key for option in options]),
            show_choices=False,
        )

    def ask_guild_id(self) -> str:
        # value_proc errors are reported by click and the prompt is repeated.
        return typer.prompt("Enter Guild ID", value_proc=validate_guild_id)

    def confirm(self, message: str) -> bool:
        return typer.confirm(message, default=False)

    def pause(self) -> None:
        typer.prompt(
            "Press Enter to return to the main menu...",
            default="",
            show_default=False,
        )


class InteractiveShell:
    """Five-option menu over one `CommandRegistryClient`."""

    def __init__(
        self,
        client: CommandRegistryClient,
        console: Console,
        prompter: Prompter | None = None,
    ) -> None:
        self.client = client
        self.console = console
        self.prompter = prompter or TyperPrompter(console)

    async def run(self) -> int:
        """Loop until Exit is chosen. Returns the process exit status."""

        while True:
            try:
                self.console.clear()
                print_banner(self.console)
                choice = self.prompter.choose(MENU)
                if choice == EXIT:
                    self.console.print("[yellow]Exiting Discord Command Cleaner. Goodbye![/yellow]")
                    return 0
                await self.dispatch(choice)
            except (typer.Abort, typer.Exit):
                raise
            except Exception as exc:
                logger.exception("Unexpected error in menu loop")
                print_error(self.console, f"An unexpected error occurred: {exc}", exc)
                self.prompter.pause()

    async def dispatch(self, choice: str) -> None:
        self.console.clear()
        if choice == LIST_GLOBAL:
            print_header(self.console, "GLOBAL COMMANDS")
            await self.show_commands(CommandScope.global_scope())
        elif choice == DELETE_GLOBAL:
            print_header(self.console, "DELETE GLOBAL COMMANDS", style="white on red")
            await self.delete_all(CommandScope.global_scope())
        elif choice == LIST_GUILD:
            print_header(self.console, "GUILD COMMANDS")
            await self.show_commands(self.ask_guild_scope("list"))
        elif choice == DELETE_GUILD:
            print_header(self.console, "DELETE GUILD COMMANDS", style="white on red")
            await self.delete_all(self.ask_guild_scope("delete"))
        else:
            self.console.print(f"[red]Unknown option: {escape(choice)}[/red]")
        self.prompter.pause()

    def ask_guild_scope(self, action: str) -> CommandScope:
        self.console.print(
            f"[yellow]To {action} guild commands, you need to provide the Guild ID of your Discord server.[/yellow]"
        )
        self.console.print(
            "[dim]└─ You can find the Guild ID by enabling Developer Mode in Discord, "
            "then right-clicking on your server.[/dim]"
        )
        self.console.print()
        return CommandScope.guild(validate_guild_id(self.prompter.ask_guild_id()))

    async def show_commands(self, scope: CommandScope) -> list[CommandRecord] | None:
        """Fetch and render the listing. Returns `None` when fetching failed."""

        self.console.print(f"[yellow]Fetching {scope.label} commands...[/yellow]")
        try:
            commands = await self.client.list_commands(scope)
        except CommandRegistryError as exc:
            kind = "global" if scope.is_global else "guild"
            print_error(self.console, f"Failed to list {kind} commands:", exc, scope=scope)
            return None

        print_commands(self.console, commands, scope)
        return commands

    async def delete_all(self, scope: CommandScope) -> PurgeResult | None:
        """List, confirm and delete every command of `scope`.

        A failed or empty listing counts as nothing to delete. Returns `None`
        when the operator cancels.
        """

        commands = await self.show_commands(scope)
        if not commands:
            return PurgeResult(scope=scope)

        print_delete_warning(self.console, scope)
        target = "ALL global commands" if scope.is_global else f"ALL commands for Guild ID {scope.guild_id}"
        if not self.prompter.confirm(f"⚠️  Are you sure you want to delete {target}?"):
            self.console.print("[yellow]⚠️  Operation cancelled.[/yellow]")
            return None

        self.console.print()
        self.console.print("[yellow]Starting command deletion...[/yellow]")
        result = await purge_commands(self.client, scope, commands, build_purge_hooks(self.console))
        print_purge_summary(self.console, result)
        return result
