"""
DirSync CLI Main Entry Point.

Acquires and validates the configuration, then runs the sync engine once
or on a schedule.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click
import humanize
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from dirsync import __version__
from dirsync.core.config import (
    ConfigValidationError,
    StoredConfig,
    SyncConfig,
    load_config,
    validate_config,
)
from dirsync.core.logging import FileSyncLogger, setup_logging
from dirsync.core.status import SyncReport
from dirsync.sync.engine import SyncEngine
from dirsync.sync.scheduler import SyncScheduler

console = Console()

EXIT_CONFIG_ERROR = 1
EXIT_SYNC_FAILED = 2

ARCHIVE_CHOICES = {"true": True, "false": False}


def sync_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by commands that build a sync configuration."""
    options = [
        click.option("--source", type=click.Path(path_type=Path), help="Source directory"),
        click.option("--replica", type=click.Path(path_type=Path), help="Replica directory"),
        click.option("--logs", type=click.Path(path_type=Path), help="Directory for logs and archive"),
        click.option("--interval", type=int, help="Sync interval in seconds (default 9000)"),
        click.option(
            "--archive/--no-archive",
            default=None,
            help="Keep removed or replaced replica content in the archive (default on)",
        ),
        click.option(
            "--case-sensitive/--case-insensitive",
            default=None,
            help="Whether path comparison is case sensitive (default sensitive)",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def build_stored_config(ctx: click.Context, **overrides: Any) -> StoredConfig:
    """Merge command line overrides over the stored configuration."""
    stored: StoredConfig = ctx.obj["stored"]
    return stored.merged(
        source_path=overrides.get("source"),
        replica_path=overrides.get("replica"),
        logs_path=overrides.get("logs"),
        interval_seconds=overrides.get("interval"),
        archive_enabled=overrides.get("archive"),
        case_sensitive=overrides.get("case_sensitive"),
    )


def print_problems(problems: list[str]) -> None:
    console.print("[red]Invalid configuration:[/red]")
    for problem in problems:
        console.print(f"  [red]>[/red] {problem}")


def config_table(stored: StoredConfig, title: str = "Current configuration") -> Table:
    table = Table(title=title, show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")

    interval = stored.interval_seconds
    interval_text = "not set"
    if interval is not None:
        interval_text = f"{interval} s"
        if interval > 0:
            interval_text += f" ({humanize.precisedelta(interval)})"

    table.add_row("Source directory", str(stored.source_path or "not set"))
    table.add_row("Replica directory", str(stored.replica_path or "not set"))
    table.add_row("Logs directory", str(stored.logs_path or "not set"))
    table.add_row("Sync interval", interval_text)
    table.add_row("Archiving enabled", str(stored.archive_enabled))
    table.add_row("Case sensitive paths", str(stored.case_sensitive))
    return table


def prompt_for_config(current: StoredConfig) -> StoredConfig:
    """Ask for every setting until the result passes validation."""
    directory = click.Path(exists=True, file_okay=False, path_type=Path)
    while True:
        console.print("Please provide data needed for the app to operate.")
        candidate = current.merged(
            source_path=click.prompt("Enter path to Source Directory", type=directory),
            replica_path=click.prompt("Enter path to Replica Directory", type=directory),
            logs_path=click.prompt("Enter path to Logs Directory", type=directory),
            interval_seconds=click.prompt(
                "Enter value for synchronization interval in seconds",
                type=click.IntRange(min=1),
            ),
            archive_enabled=click.confirm("Do you want to use archiving?", default=True),
        )
        problems = validate_config(candidate)
        if not problems:
            return candidate
        print_problems(problems)


def resolve_config(
    ctx: click.Context,
    interactive: bool,
    assume_yes: bool,
    **overrides: Any,
) -> SyncConfig:
    """
    Produce a validated configuration from the stored file, command line
    overrides and, in interactive mode, prompts.

    Exits with status 1 when the configuration is invalid in
    non-interactive mode and with status 0 when the user declines.
    """
    stored = build_stored_config(ctx, **overrides)
    json_output = ctx.obj.get("json_output", False)

    if interactive:
        if not validate_config(stored):
            console.print(config_table(stored))
            if not click.confirm("Do you want to continue with current settings?", default=True):
                stored = prompt_for_config(stored)
        else:
            stored = prompt_for_config(stored)
    else:
        try:
            SyncConfig.from_stored(stored)
        except ConfigValidationError as e:
            if json_output:
                click.echo(json.dumps({"success": False, "problems": e.problems}, indent=2))
            else:
                print_problems(e.problems)
                console.print("[red]Failed to create config. Exiting the application.[/red]")
            sys.exit(EXIT_CONFIG_ERROR)

        if not (json_output or ctx.obj.get("quiet")):
            console.print(config_table(stored))
        if not assume_yes and not click.confirm(
            "Do you want to proceed with this config?", default=True
        ):
            sys.exit(0)

    try:
        stored.save(ctx.obj.get("config_path"))
    except OSError as e:
        console.print(f"[red]Failed to save config file: {e}[/red]")
        sys.exit(EXIT_CONFIG_ERROR)

    return SyncConfig.from_stored(stored)


def build_engine(config: SyncConfig) -> tuple[SyncEngine, FileSyncLogger]:
    sync_logger = FileSyncLogger(config.layout)
    return SyncEngine(config, sync_logger), sync_logger


def print_report(report: SyncReport, json_output: bool) -> None:
    if json_output:
        click.echo(json.dumps(report.to_dict(), indent=2, default=str))
        return

    table = Table(title=f"Sync session {report.session_id}")
    table.add_column("Phase", style="cyan")
    table.add_column("Changes", style="green", justify="right")
    table.add_column("Failures", style="red", justify="right")
    for phase in report.phases:
        table.add_row(phase.name.replace("_", " "), str(phase.mutations), str(len(phase.failures)))
    console.print(table)

    status = "[green]Success[/green]" if report.success else "[red]Completed with errors[/red]"
    console.print(
        Panel(
            f"""[cyan]Status:[/cyan] {status}
[cyan]Changes:[/cyan] {report.total_mutations}
[cyan]Duration:[/cyan] {humanize.precisedelta(report.duration_seconds or 0, minimum_unit="milliseconds")}""",
            title="Sync Result",
        )
    )


@click.group()
@click.version_option(version=__version__, prog_name="DirSync")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to configuration file",
)
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Path | None,
    json_output: bool,
    quiet: bool,
) -> None:
    """
    DirSync - One-way directory mirroring.

    Keeps a replica directory identical to a source directory on a recurring
    schedule, optionally archiving replaced or removed replica content.
    """
    ctx.ensure_object(dict)

    stored = load_config(config_path)
    setup_logging(stored.logging)

    ctx.obj["config_path"] = config_path
    ctx.obj["stored"] = stored
    ctx.obj["json_output"] = json_output
    ctx.obj["quiet"] = quiet


@cli.command("run")
@sync_options
@click.option("--interactive", "-i", is_flag=True, help="Prompt for the configuration")
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def run_scheduled(
    ctx: click.Context,
    interactive: bool,
    assume_yes: bool,
    **overrides: Any,
) -> None:
    """Mirror the source into the replica every interval until interrupted."""
    config = resolve_config(ctx, interactive, assume_yes, **overrides)
    engine, sync_logger = build_engine(config)

    scheduler = SyncScheduler(engine, config.interval_seconds, sync_logger, console=console)
    try:
        scheduler.start()
    except KeyboardInterrupt:
        scheduler.stop()
        raise


@cli.command("sync")
@sync_options
@click.pass_context
def sync_once(ctx: click.Context, **overrides: Any) -> None:
    """Run a single sync session and exit."""
    config = resolve_config(ctx, interactive=False, assume_yes=True, **overrides)
    engine, _ = build_engine(config)

    report = engine.run()
    print_report(report, ctx.obj.get("json_output", False))

    if not report.success:
        sys.exit(EXIT_SYNC_FAILED)


@cli.command("show-config")
@click.pass_context
def show_config(ctx: click.Context) -> None:
    """Show the stored configuration."""
    stored: StoredConfig = ctx.obj["stored"]

    if ctx.obj.get("json_output", False):
        click.echo(json.dumps(stored.model_dump(mode="json"), indent=2, default=str))
        return

    console.print(config_table(stored, title="Stored configuration"))
    problems = validate_config(stored)
    if problems:
        print_problems(problems)


def main() -> None:
    """Main entry point."""
    try:
        # Ctrl+C surfaces as click.Abort when standalone mode is off.
        cli.main(obj={}, standalone_mode=False)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except (click.Abort, KeyboardInterrupt):
        console.print("\n[yellow]Synchronization stopped[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
