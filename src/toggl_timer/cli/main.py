"""Main CLI application."""

import json
import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import NoReturn, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from toggl_timer import __version__
from toggl_timer.cli.config_commands import config
from toggl_timer.core.config import ConfigManager
from toggl_timer.core.errors import TogglError
from toggl_timer.core.gateway import EntryGateway
from toggl_timer.core.logs import setup_logging
from toggl_timer.core.models import TimeEntry

console = Console()
error_console = Console(stderr=True)

RECENT_DAYS = 9


def get_config(ctx: click.Context) -> ConfigManager:
    """Get ConfigManager for the path given on the command line."""
    config_path = ctx.obj.get("config_path")
    return ConfigManager(Path(config_path) if config_path else None)


def get_gateway(ctx: click.Context) -> EntryGateway:
    """Get EntryGateway configured from the config file."""
    config = get_config(ctx)
    if not ctx.obj.get("verbose"):
        log_file = config.get("advanced.log_file")
        setup_logging(
            config.get("advanced.log_level", "WARNING"),
            Path(log_file).expanduser() if log_file else None,
        )
    return EntryGateway.from_config(config)


def fail(message: object) -> NoReturn:
    error_console.print(f"[red]Error:[/red] {message}")
    sys.exit(1)


def format_duration(seconds: int) -> str:
    """Format duration in seconds to human-readable string."""
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60

    if hours > 0:
        return f"{hours}h {minutes}m"
    elif minutes > 0:
        return f"{minutes}m {secs}s"
    else:
        return f"{secs}s"


def entry_duration(entry: TimeEntry) -> int:
    """Tracked seconds, counting a running entry up to now."""
    if entry.is_running:
        return max(0, int(datetime.now().timestamp()) + entry.duration)
    return entry.duration


def format_datetime(dt: Optional[datetime]) -> str:
    """Format datetime for display in local time."""
    if dt is None:
        return "-"
    return dt.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def parse_time(time_str: str) -> datetime:
    """Parse 'YYYY-MM-DD HH:MM' or 'HH:MM' (today) as local time."""
    try:
        return datetime.strptime(time_str, "%Y-%m-%d %H:%M").astimezone()
    except ValueError:
        pass

    try:
        time_part = datetime.strptime(time_str, "%H:%M").time()
        return datetime.combine(datetime.now().date(), time_part).astimezone()
    except ValueError:
        raise ValueError(f"Invalid time format: {time_str}. Use 'HH:MM' or 'YYYY-MM-DD HH:MM'")


def resolve_entry(gateway: EntryGateway, entry_id: Optional[int]) -> TimeEntry:
    """Fetch the given entry, or the most recent one when no id is given."""
    if entry_id is not None:
        return gateway.get_time_entry(entry_id)

    now = datetime.now().astimezone()
    entries = gateway.get_time_entries(now - timedelta(days=RECENT_DAYS), now)
    if not entries:
        raise ValueError(f"No time entries in the last {RECENT_DAYS} days")
    return max(entries, key=lambda e: e.start_time)


def print_entry(entry: TimeEntry, verb: str) -> None:
    console.print(f"[green]✓[/green] {verb}: {entry.description or '(no description)'}")
    console.print(f"  Entry ID: {entry.id}")
    console.print(f"  Started: {format_datetime(entry.start)}")
    if not entry.is_running:
        console.print(f"  Duration: {format_duration(entry.duration)}")
    if entry.tags:
        console.print(f"  Tags: {', '.join(entry.tags)}")


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", help="Path to config file", type=click.Path())
@click.option("-v", "--verbose", is_flag=True, help="Log API calls to stderr")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], verbose: bool, no_color: bool) -> None:
    """toggl-timer - Manage Toggl time entries from the command line.

    Start, stop, continue and reopen time entries.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    if no_color:
        console.no_color = True

    if verbose:
        setup_logging("DEBUG")


@cli.command()
@click.argument("description")
@click.option("-p", "--project", "project_id", type=int, default=0, help="Project ID")
@click.option("-b", "--billable", is_flag=True, help="Mark the entry billable")
@click.option("-t", "--tags", help="Comma-separated tags")
@click.pass_context
def start(
    ctx: click.Context,
    description: str,
    project_id: int,
    billable: bool,
    tags: Optional[str],
) -> None:
    """Start a new time entry.

    Example:
        toggl-timer start "Writing documentation" -p 123 -t docs,writing
    """
    try:
        gateway = get_gateway(ctx)
        tag_list = [t.strip() for t in tags.split(",") if t.strip()] if tags else None
        entry = gateway.start_time_entry(description, project_id, billable, tag_list)
    except (TogglError, ValueError) as e:
        fail(e)

    print_entry(entry, "Started")


@cli.command()
@click.pass_context
def stop(ctx: click.Context) -> None:
    """Stop the running time entry.

    Example:
        toggl-timer stop
    """
    try:
        gateway = get_gateway(ctx)
        current = gateway.get_current_time_entry()
        if current is None:
            console.print("[yellow]No time entry is running[/yellow]")
            return
        entry = gateway.stop_time_entry(current)
    except (TogglError, ValueError) as e:
        fail(e)

    print_entry(entry, "Stopped")


@cli.command()
@click.option("-v", "--verbose", is_flag=True, help="Show detailed information")
@click.pass_context
def status(ctx: click.Context, verbose: bool) -> None:
    """Show the running time entry.

    Example:
        toggl-timer status
        toggl-timer status -v
    """
    try:
        entry = get_gateway(ctx).get_current_time_entry()
    except (TogglError, ValueError) as e:
        fail(e)

    if entry is None:
        console.print("[yellow]No time entry is running[/yellow]")
        console.print("\nStart one with: [cyan]toggl-timer start \"Description\"[/cyan]")
        return

    content = f"""[bold]{entry.description or '(no description)'}[/bold]

[dim]Started:[/dim] {format_datetime(entry.start)}
[dim]Duration:[/dim] {format_duration(entry_duration(entry))}"""

    if entry.project_id:
        content += f"\n[dim]Project:[/dim] {entry.project_id}"

    if verbose:
        if entry.tags:
            content += f"\n[dim]Tags:[/dim] {', '.join(entry.tags)}"
        if entry.duration_only:
            content += "\n[dim]Duration only:[/dim] yes"
        content += f"\n[dim]Entry ID:[/dim] {entry.id}"

    panel = Panel(content, title="Currently Tracking", border_style="green")
    console.print(panel)


@cli.command()
@click.option("-d", "--days", default=7, type=int, help="Number of days to show")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def log(ctx: click.Context, days: int, as_json: bool) -> None:
    """List recent time entries.

    Example:
        toggl-timer log
        toggl-timer log -d 30 --json
    """
    now = datetime.now().astimezone()
    try:
        entries = get_gateway(ctx).get_time_entries(now - timedelta(days=days), now)
    except (TogglError, ValueError) as e:
        fail(e)

    if not entries:
        console.print("[yellow]No entries found[/yellow]")
        return

    if as_json:
        print(json.dumps([entry.to_dict() for entry in entries], indent=2))
        return

    table = Table(title=f"Time Entries (showing {len(entries)})")
    table.add_column("ID", style="dim")
    table.add_column("Start", style="cyan")
    table.add_column("Duration", style="magenta")
    table.add_column("Description", style="bold")
    table.add_column("Tags", style="green")

    for entry in entries:
        status_icon = "▶" if entry.is_running else "■"
        table.add_row(
            str(entry.id),
            format_datetime(entry.start),
            format_duration(entry_duration(entry)),
            f"{status_icon} {entry.description}",
            ", ".join(entry.tags) or "-",
        )

    console.print(table)


@cli.command("continue")
@click.argument("entry_id", type=int, required=False)
@click.option("--duration-only", is_flag=True, help="Extend today's entry instead of starting a new one")
@click.pass_context
def continue_(ctx: click.Context, entry_id: Optional[int], duration_only: bool) -> None:
    """Continue a time entry (the most recent one by default).

    Example:
        toggl-timer continue
        toggl-timer continue 12345 --duration-only
    """
    try:
        gateway = get_gateway(ctx)
        entry = resolve_entry(gateway, entry_id)
        continued = gateway.continue_time_entry(entry, duration_only)
    except (TogglError, ValueError) as e:
        fail(e)

    print_entry(continued, "Continued")


@cli.command()
@click.argument("entry_id", type=int, required=False)
@click.pass_context
def unstop(ctx: click.Context, entry_id: Optional[int]) -> None:
    """Reopen a stopped time entry (the most recent one by default).

    A new entry with the original start time replaces the old one.

    Example:
        toggl-timer unstop 12345
    """
    try:
        gateway = get_gateway(ctx)
        entry = resolve_entry(gateway, entry_id)
        result = gateway.unstop_time_entry(entry)
    except (TogglError, ValueError) as e:
        fail(e)

    print_entry(result.entry, "Reopened")
    if not result.ok:
        error_console.print(f"[yellow]Warning:[/yellow] {result.error}")
        sys.exit(1)


@cli.command()
@click.argument("entry_id", type=int)
@click.argument("tag")
@click.option("-r", "--remove", is_flag=True, help="Remove the tag instead of adding it")
@click.pass_context
def tag(ctx: click.Context, entry_id: int, tag: str, remove: bool) -> None:
    """Add or remove a tag on a time entry.

    Example:
        toggl-timer tag 12345 meeting
        toggl-timer tag 12345 meeting --remove
    """
    try:
        entry = get_gateway(ctx).add_remove_tag(entry_id, tag, add=not remove)
    except (TogglError, ValueError) as e:
        fail(e)

    action = "Removed" if remove else "Added"
    console.print(f"[green]✓[/green] {action} tag '{tag}' on entry {entry.id}")
    console.print(f"  Tags: {', '.join(entry.tags) or '-'}")


@cli.command()
@click.argument("entry_id", type=int)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete(ctx: click.Context, entry_id: int, yes: bool) -> None:
    """Delete a time entry.

    Example:
        toggl-timer delete 12345 --yes
    """
    if not yes and not click.confirm(f"Delete time entry {entry_id}?"):
        console.print("Cancelled")
        return

    try:
        gateway = get_gateway(ctx)
        gateway.delete_time_entry(TimeEntry(id=entry_id))
    except (TogglError, ValueError) as e:
        fail(e)

    console.print(f"[green]✓[/green] Deleted time entry {entry_id}")


@cli.command()
@click.argument("entry_id", type=int)
@click.option("--duration", type=int, help="New duration in seconds")
@click.option("--start", "start_str", help="New start time (YYYY-MM-DD HH:MM or HH:MM for today)")
@click.option("--stop", "stop_str", help="New stop time (YYYY-MM-DD HH:MM or HH:MM for today)")
@click.option("--keep-duration", is_flag=True, help="Move the stop time with a new start time")
@click.option("-d", "--description", help="New description")
@click.pass_context
def edit(
    ctx: click.Context,
    entry_id: int,
    duration: Optional[int],
    start_str: Optional[str],
    stop_str: Optional[str],
    keep_duration: bool,
    description: Optional[str],
) -> None:
    """Edit a time entry.

    Changing the start time of a stopped entry recomputes its duration,
    or moves its stop time with --keep-duration.

    Example:
        toggl-timer edit 12345 --start 09:00
        toggl-timer edit 12345 --duration 5400
    """
    try:
        gateway = get_gateway(ctx)
        entry = gateway.get_time_entry(entry_id)

        if description is not None:
            entry.description = description
        if start_str:
            entry.set_start_time(parse_time(start_str), update_end=keep_duration)
        if stop_str:
            entry.set_stop_time(parse_time(stop_str))
        if duration is not None:
            entry.set_duration(duration)

        updated = gateway.update_time_entry(entry)
    except (TogglError, ValueError) as e:
        fail(e)

    print_entry(updated, "Updated")


cli.add_command(config)


if __name__ == "__main__":
    cli(obj={})
