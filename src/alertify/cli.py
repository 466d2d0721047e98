"""Alertify CLI — entry point.

Commands:
    alertify run                      Watch metrics and devices, send alerts
    alertify rules                    Show the configured rules
    alertify render <template>        Preview template substitution
    alertify init-config              Write the example rule file
"""
from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import NoReturn

import click
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .alerts.rules import RuleKind
from .alerts.template import placeholders, render as render_template
from .config import LOG_LEVELS, settings
from .errors import AlertifyError
from .loader import RuleSet, ensure_config, load_rules

console = Console()
err_console = Console(stderr=True)

# ── Helpers ─────────────────────────────────────────────────────────────────


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def _fail(exc: AlertifyError) -> NoReturn:
    err_console.print(f"[red]Error:[/red] {escape(str(exc))}")
    sys.exit(1)


def _load(config_path: Path | None) -> RuleSet:
    path = config_path or settings.config_path
    try:
        return load_rules(path)
    except AlertifyError as exc:
        _fail(exc)


_URGENCY_COLOURS = {"low": "dim", "normal": "cyan", "critical": "bold red"}

config_option = click.option(
    "--config", "-c", "config_path", default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Rule file (default: $XDG_CONFIG_HOME/alertify/config.toml).",
)


# ── CLI root ─────────────────────────────────────────────────────────────────


@click.group()
@click.version_option(version="1.0.0", prog_name="alertify")
def main() -> None:
    """alertify — rule-driven desktop alerts for system metrics and devices."""


# ── run ──────────────────────────────────────────────────────────────────────


@main.command()
@config_option
@click.option("--dry-run", is_flag=True, help="Print notifications to the terminal and skip commands.")
@click.option("--no-events", is_flag=True, help="Do not listen for udev device events.")
@click.option(
    "--log-level", default=None, type=click.Choice(LOG_LEVELS, case_sensitive=False),
    help="Override ALERTIFY_LOG_LEVEL.",
)
def run(config_path: Path | None, dry_run: bool, no_events: bool, log_level: str | None) -> None:
    """Watch battery, CPU, memory, storage and devices until interrupted.

    \b
    Examples:
      alertify run
      alertify run --dry-run --log-level debug
      alertify run --config ./rules.toml --no-events
    """
    from . import app
    from .alerts.executor import NullExecutor, ShellExecutor
    from .alerts.notifier import ConsoleNotifier, NotifySendNotifier

    _setup_logging(log_level or settings.log_level)
    rules = _load(config_path)

    if dry_run:
        notifier = ConsoleNotifier(console)
        executor = NullExecutor()
    else:
        notifier = NotifySendNotifier(settings.notify_command)
        executor = ShellExecutor()

    try:
        asyncio.run(app.run(rules, settings, notifier, executor, listen_events=not no_events))
    except AlertifyError as exc:
        _fail(exc)
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped.[/dim]")


# ── rules ────────────────────────────────────────────────────────────────────


@main.command()
@config_option
def rules(config_path: Path | None) -> None:
    """List the configured rules and the alert keys they latch on.

    \b
    Examples:
      alertify rules
      alertify rules --config ./rules.toml
    """
    rule_set = _load(config_path)

    tbl = Table(title="alertify rules", box=box.ROUNDED)
    tbl.add_column("Category", style="bold")
    tbl.add_column("Trigger")
    tbl.add_column("Alert key", style="dim")
    tbl.add_column("Urgency")
    tbl.add_column("Summary", overflow="fold", max_width=50)
    tbl.add_column("Exec", overflow="fold", max_width=30)

    total = 0
    for kind, items in rule_set.items():
        for rule in items:
            if not rule.is_threshold:
                key = "(every event)"
            elif kind is RuleKind.STORAGE:
                key = rule.alert_key("{mount}")
            else:
                key = rule.alert_key()
            colour = _URGENCY_COLOURS.get(rule.message.urgency, "white")
            tbl.add_row(
                kind.value,
                escape(rule.describe()),
                escape(key),
                f"[{colour}]{rule.message.urgency}[/{colour}]",
                escape(rule.message.summary),
                escape(rule.message.exec or ""),
            )
            total += 1

    if not total:
        err_console.print("[yellow]No rules configured.[/yellow]")
        return
    console.print(tbl)


# ── render ───────────────────────────────────────────────────────────────────


@main.command()
@click.argument("template")
@click.option("--field", "-f", "field_args", multiple=True, metavar="KEY=VALUE", help="Field value (repeatable).")
def render(template: str, field_args: tuple[str, ...]) -> None:
    """Render TEMPLATE with the given fields, as a notification would.

    \b
    Examples:
      alertify render "Battery at {left_percent}%" -f left_percent=18
      alertify render "{mount} is {used_percent}% full" -f mount=/home
    """
    fields: dict[str, str] = {}
    for arg in field_args:
        key, sep, value = arg.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"Expected KEY=VALUE, got {arg!r}", param_hint="--field")
        fields[key] = value

    click.echo(render_template(template, fields))
    missing = [name for name in placeholders(template) if name not in fields]
    if missing:
        err_console.print(f"[yellow]Unresolved fields:[/yellow] {', '.join(dict.fromkeys(missing))}")


# ── init-config ──────────────────────────────────────────────────────────────


@main.command("init-config")
@config_option
@click.option("--force", is_flag=True, help="Overwrite an existing rule file.")
def init_config(config_path: Path | None, force: bool) -> None:
    """Write the example rule file.

    \b
    Examples:
      alertify init-config
      alertify init-config --config ./rules.toml --force
    """
    path = config_path or settings.config_path
    try:
        written = ensure_config(path, force=force)
    except AlertifyError as exc:
        _fail(exc)
    if written:
        console.print(f"[green]Wrote[/green] {path}")
    else:
        err_console.print(f"[yellow]{path} already exists.[/yellow] Use --force to overwrite.")


if __name__ == "__main__":
    main()
