"""UI components for the CLI (Rich).

Why separate components:
- Keeps command logic apart from visual details.
- Lets the shell and the non-interactive commands share tables and panels.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Sequence

from rich.align import Align
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import BarColumn, Progress, TextColumn, TimeRemainingColumn
from rich.table import Table
from rich.text import Text

from core.domain.models import CommandRecord, CommandScope
from core.errors import CommandRegistryError, NotFoundError
from core.services.cleanup import PurgeHooks, PurgeResult, PurgeStatus

DESCRIPTION_MAX_CHARS = 50
RATE_LIMIT_BAR_STEPS = 30


def print_banner(console: Console) -> None:
    """Print the welcome banner."""

    title = Text("DISCORD COMMAND CLEANER", style="bold cyan")
    subtitle = Text("List and delete slash commands • Global • Guild", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def print_header(console: Console, title: str, *, style: str = "black on cyan") -> None:
    console.print(Text(f" {title} ", style=style))
    console.print()


def truncate_description(description: str, max_chars: int = DESCRIPTION_MAX_CHARS) -> str:
    if len(description) <= max_chars:
        return description
    return description[:max_chars] + "..."


def build_commands_table(commands: Sequence[CommandRecord], scope: CommandScope) -> Table:
    """Table of commands in input order; descriptions go under the name."""

    table = Table(title=f"{scope.label.capitalize()} commands", title_justify="left")
    table.add_column("#", style="white", justify="right", no_wrap=True)
    table.add_column("Name", style="green")
    table.add_column("Command ID", style="blue", no_wrap=True)

    for index, command in enumerate(commands, start=1):
        name = Text(command.name, style="green")
        if command.description:
            name.append("\n└─ " + truncate_description(command.description), style="dim")
        table.add_row(str(index), name, command.id)
    return table


def print_commands(console: Console, commands: Sequence[CommandRecord], scope: CommandScope) -> None:
    if not commands:
        print_no_commands(console, scope)
        return

    if scope.is_global:
        console.print(f"[green]✅ Found {len(commands)} global commands:[/green]")
    else:
        console.print(f"[green]✅ Found {len(commands)} commands for Guild ID {scope.guild_id}:[/green]")
    console.print()
    console.print(build_commands_table(commands, scope))
    console.print()
    if not scope.is_global:
        console.print(
            Text(" GUILD INFO ", style="white on blue"),
            f"Commands belong to Guild ID: [cyan]{scope.guild_id}[/cyan]",
        )


def print_no_commands(console: Console, scope: CommandScope) -> None:
    if scope.is_global:
        console.print("[yellow]⚠️  No global commands found.[/yellow]")
        console.print("[dim]└─ Your bot has no global slash commands registered.[/dim]")
    else:
        console.print(f"[yellow]⚠️  No commands found for Guild ID {scope.guild_id}.[/yellow]")
        console.print("[dim]└─ This guild has no slash commands registered for your bot.[/dim]")


def print_delete_warning(console: Console, scope: CommandScope) -> None:
    console.print(Text(" WARNING ", style="black on yellow"), "[yellow]Deleting commands is irreversible[/yellow]")
    if scope.is_global:
        console.print("[dim]└─ All slash commands will be removed from your bot[/dim]")
        console.print("[dim]└─ This will affect all users and servers immediately[/dim]")
    else:
        console.print("[dim]└─ Guild commands will be removed from this specific server[/dim]")
        console.print("[dim]└─ This will affect all users in this server immediately[/dim]")
    console.print()


def print_error(console: Console, title: str, exc: BaseException, *, scope: CommandScope | None = None) -> None:
    """Error block with status/message details and a fix hint for unknown guilds."""

    console.print()
    console.print(Text(" ERROR ", style="white on red"), f"[red]{escape(title)}[/red]")
    if isinstance(exc, CommandRegistryError):
        if exc.status is not None:
            console.print(f"[yellow]  └─ Status:[/yellow] [red]{exc.status}[/red]")
        console.print(f"[yellow]  └─ Message:[/yellow] [red]{escape(exc.message)}[/red]")
    else:
        console.print(f"[yellow]  └─ Message:[/yellow] [red]{escape(str(exc))}[/red]")
    if scope is not None and not scope.is_global:
        console.print(f"[yellow]  └─ Guild ID:[/yellow] [cyan]{scope.guild_id}[/cyan]")
    if isinstance(exc, NotFoundError):
        console.print(
            "[yellow]  └─ Cause:[/yellow] [red]The Guild ID you provided does not exist "
            "or the bot does not have access to it.[/red]"
        )
        console.print(
            "[yellow]  └─ Fix:[/yellow] Make sure the Guild ID is correct and the bot is a member of the guild."
        )


def build_purge_hooks(console: Console) -> PurgeHooks:
    """Per-item progress lines for a batch deletion."""

    deleted = 0

    def deleting(index: int, total: int, command: CommandRecord) -> None:
        percent = round(index / total * 100)
        console.print(f"[yellow]Deleting command {index + 1}/{total} ({percent}%)...[/yellow]", end="\r")

    def finished(index: int, total: int, command: CommandRecord, ok: bool) -> None:
        nonlocal deleted
        if ok:
            deleted += 1
            console.print(f"[green]✓ Successfully deleted command: [white]{escape(command.name)}[/white] ({deleted}/{total})[/green]")
        else:
            console.print(f"[red]✗ Failed to delete command: [white]{escape(command.name)}[/white] ({index + 1}/{total})[/red]")

    return PurgeHooks(deleting=deleting, finished=finished)


def print_purge_summary(console: Console, result: PurgeResult) -> None:
    kind = "global" if result.scope.is_global else "guild"
    deleted = len(result.deleted)
    console.print()
    if result.status is PurgeStatus.EMPTY:
        print_no_commands(console, result.scope)
    elif result.status is PurgeStatus.SUCCESS:
        console.print(Text(" SUCCESS ", style="black on green"), f"[green]Deleted all {deleted} {kind} commands.[/green]")
    elif result.status is PurgeStatus.PARTIAL:
        console.print(
            Text(" PARTIAL ", style="black on yellow"),
            f"[yellow]Deleted {deleted}/{result.total} {kind} commands.[/yellow]",
        )
        failed_names = ", ".join(escape(command.name) for command in result.failed)
        console.print(f"[dim]└─ {len(result.failed)} command(s) failed to delete: {failed_names}[/dim]")
    else:
        console.print(Text(" FAILED ", style="white on red"), f"[red]Failed to delete any {kind} commands.[/red]")


def build_rate_limit_sleep(console: Console) -> Callable[[float], Awaitable[None]]:
    """Async sleep that renders a progress bar for the whole rate-limit wait."""

    async def sleep(seconds: float) -> None:
        console.print(f"\n[yellow]⚠️  Rate limited by Discord API. Waiting {seconds:g} seconds...[/yellow]")
        step = seconds / RATE_LIMIT_BAR_STEPS
        with Progress(
            TextColumn("[blue]Rate limit"),
            BarColumn(),
            TextColumn("[green]{task.percentage:>3.0f}%"),
            TimeRemainingColumn(),
            console=console,
            transient=False,
        ) as progress:
            task = progress.add_task("wait", total=RATE_LIMIT_BAR_STEPS)
            for _ in range(RATE_LIMIT_BAR_STEPS):
                await asyncio.sleep(step)
                progress.advance(task)
        console.print("[cyan]Completed![/cyan]")

    return sleep
