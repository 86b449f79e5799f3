"""`toggl-timer config` subcommands."""

import json
import shutil
import sys
from collections.abc import Iterator
from pathlib import Path
from typing import Any, NoReturn

import click  # type: ignore[import-not-found]
from rich.console import Console  # type: ignore[import-not-found]
from rich.table import Table  # type: ignore[import-not-found]

from toggl_timer.core.config import ConfigManager

console = Console()
error_console = Console(stderr=True)

SECRET_KEYS = {"api.token"}
MASK = "********"


def _abort(message: object) -> NoReturn:
    error_console.print(f"[red]Error:[/red] {message}")
    sys.exit(1)


def _load(ctx: click.Context) -> ConfigManager:
    """Open the config file named by the root --config option."""
    config_path = (ctx.find_root().obj or {}).get("config_path")
    try:
        return ConfigManager(Path(config_path) if config_path else None)
    except ValueError as e:
        _abort(e)


def _coerce(key: str, raw: str) -> Any:
    """Turn a command-line string into a YAML-friendly value.

    Secrets are always kept verbatim so that a numeric-looking token is
    not turned into an integer.
    """
    if key in SECRET_KEYS:
        return raw
    lowered = raw.lower()
    if lowered in ("true", "yes"):
        return True
    if lowered in ("false", "no"):
        return False
    if lowered == "null":
        return None
    try:
        return int(raw)
    except ValueError:
        return raw


def _flatten(settings: dict[str, Any], prefix: str = "") -> Iterator[tuple[str, Any]]:
    for key, value in settings.items():
        dotted = f"{prefix}.{key}" if prefix else key
        if isinstance(value, dict):
            yield from _flatten(value, dotted)
        else:
            yield dotted, value


@click.group()  # type: ignore[misc]
def config() -> None:
    """View and change settings in ~/.toggl-timer/config.yml."""


@config.command("show")  # type: ignore[misc]
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_show(ctx: click.Context, as_json: bool) -> None:
    """Print every setting, with the API token masked.

    Example:
        toggl-timer config show --json
    """
    manager = _load(ctx)
    settings = manager.to_dict()
    for key in SECRET_KEYS:
        section, name = key.split(".")
        if settings.get(section, {}).get(name):
            settings[section][name] = MASK

    if as_json:
        print(json.dumps(settings, indent=2))
        return

    table = Table(title="toggl-timer settings")
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")
    for key, value in _flatten(settings):
        table.add_row(key, "-" if value is None else str(value))

    console.print(table)
    console.print(f"\n[dim]{manager.config_path}[/dim]")


@config.command("get")  # type: ignore[misc]
@click.argument("key")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_get(ctx: click.Context, key: str) -> None:
    """Print one setting.

    Example:
        toggl-timer config get api.base_url
    """
    value = _load(ctx).get(key)
    if value is None:
        _abort(f"Configuration key '{key}' not found")

    console.print(json.dumps(value, indent=2) if isinstance(value, dict) else str(value))


@config.command("set")  # type: ignore[misc]
@click.argument("key")  # type: ignore[misc]
@click.argument("value")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Change one setting.

    Example:
        toggl-timer config set api.token 1971800d4d82861d8f2c1651fea4d212
        toggl-timer config set advanced.log_level DEBUG
    """
    manager = _load(ctx)
    converted = _coerce(key, value)
    try:
        manager.set(key, converted)
    except ValueError as e:
        _abort(e)

    shown = MASK if key in SECRET_KEYS else converted
    console.print(f"[green]✓[/green] {key} = {shown}")


@config.command("reset")  # type: ignore[misc]
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_reset(ctx: click.Context, yes: bool) -> None:
    """Restore the default settings, keeping a backup of the old file."""
    manager = _load(ctx)
    if not yes and not click.confirm("Reset all settings to defaults?"):
        console.print("Cancelled")
        return

    backup_path = manager.config_path.with_suffix(".yml.backup")
    shutil.copy(manager.config_path, backup_path)
    manager.reset()
    console.print(f"[green]✓[/green] Settings reset (previous file saved to {backup_path})")


@config.command("validate")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_validate(ctx: click.Context) -> None:
    """Check the config file against the schema."""
    manager = _load(ctx)
    try:
        manager.validate()
    except ValueError as e:
        _abort(e)
    console.print("[green]✓[/green] Configuration is valid")


@config.command("path")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_path(ctx: click.Context) -> None:
    """Print the config file location."""
    console.print(str(_load(ctx).config_path))
