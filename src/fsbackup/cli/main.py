"""
fsbackup CLI Main Entry Point.

Provides the backup, list, delete and restore commands, plus standalone
entry points for each of them.
"""

from __future__ import annotations

import signal
import sys
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from fsbackup import __version__
from fsbackup.core.config import load_config
from fsbackup.core.errors import ExitCode, FsBackupError
from fsbackup.core.models import RestoreReport, RunReport, RunStatus
from fsbackup.core.prompts import Cancel
from fsbackup.core.session import Session

console = Console()
error_console = Console(stderr=True)

STATUS_STYLES = {
    RunStatus.COMPLETED: "green",
    RunStatus.PARTIAL: "yellow",
    RunStatus.FAILED: "red",
    RunStatus.CANCELLED: "yellow",
}


def get_session(ctx: click.Context) -> Session:
    """Get or create session from context."""
    if "session" not in ctx.obj:
        config = ctx.obj.get("config") or load_config()
        ctx.obj["session"] = Session(config=config)
    return ctx.obj["session"]


def exit_code_for(report: RunReport) -> int:
    """Cancelled and fully successful runs exit 0; anything with a failure exits 1."""
    if report.status in (RunStatus.COMPLETED, RunStatus.CANCELLED):
        return ExitCode.OK
    return ExitCode.FAILURE


def print_report(report: RunReport) -> None:
    """Render a run report as a results table and a summary panel."""
    if report.results:
        table = Table(title=f"{report.operation.capitalize()} results")
        table.add_column("Partition", style="cyan")
        table.add_column("Result")
        table.add_column("Details", style="white")
        table.add_column("Log", style="dim")
        for result in report.results:
            if result.success:
                outcome = "[green]OK[/green]"
            elif result.skipped:
                outcome = "[yellow]SKIPPED[/yellow]"
            else:
                outcome = "[red]FAILED[/red]"
            table.add_row(
                result.partition.device_path,
                outcome,
                result.message,
                str(result.log_path) if result.log_path else "",
            )
        console.print(table)

    lines = [report.summary()]
    backup_set = getattr(report, "backup_set", None)
    if backup_set is not None:
        lines.append(f"[cyan]Backup-set:[/cyan] {backup_set.name}")
        if backup_set.comment:
            lines.append(f"[cyan]Comment:[/cyan] {backup_set.comment}")
    if isinstance(report, RestoreReport) and not report.cancelled:
        lines.append(
            f"[cyan]Partition table restored:[/cyan] {'Yes' if report.table_restored else 'No'}"
        )

    style = STATUS_STYLES[report.status]
    console.print(Panel("\n".join(lines), title=report.status.name, border_style=style))


class FsBackupGroup(click.Group):
    """Command group that reports fsbackup errors with their exit code."""

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except FsBackupError as e:
            session = ctx.obj.get("session") if ctx.obj else None
            if session is not None:
                session.record_error(ctx.invoked_subcommand or self.name or "fsbackup", e)
            error_console.print(f"[red]Error: {e}[/red]")
            ctx.exit(e.exit_code)


@click.group(cls=FsBackupGroup)
@click.version_option(version=__version__, prog_name="fsbackup")
@click.option(
    "--config",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to the console")
@click.pass_context
def cli(ctx: click.Context, config: Path | None, verbose: bool) -> None:
    """
    fsbackup - Partition-level filesystem backup and restore.

    Saves the partition table and one fsarchiver archive per selected
    partition into a timestamped backup-set on a backup device, and
    rebuilds a disk from such a set.
    """
    ctx.ensure_object(dict)

    if "session" not in ctx.obj:
        ctx.obj["config"] = load_config(config)
        if verbose:
            ctx.obj["config"].logging.level = "DEBUG"

    def close_session() -> None:
        session = ctx.obj.get("session")
        if session is not None:
            session.close()

    ctx.call_on_close(close_session)


@cli.command("backup")
@click.argument("source_disk")
@click.argument("backup_device")
@click.option(
    "--include-active",
    "-a",
    is_flag=True,
    help="Offer the active root partition for backup",
)
@click.option("--comment", "-c", default=None, help="Comment stored with the backup-set")
@click.pass_context
def backup_command(
    ctx: click.Context,
    source_disk: str,
    backup_device: str,
    include_active: bool,
    comment: str | None,
) -> None:
    """Back up partitions of SOURCE_DISK to BACKUP_DEVICE."""
    session = get_session(ctx)
    session.preflight.enforce("backup")

    disk = session.resolver.resolve(source_disk)
    device = session.resolver.resolve(backup_device)

    with session.mounts.mounted(device) as root:
        candidates = session.discovery.discover(disk, include_active=include_active)
        selected = session.discovery.select(candidates)
        if not selected:
            session.prompter.notify("No partitions selected for backup. Exiting.", "warning")
            session.record_event("backup", disk=disk, selected=0)
            return

        if comment is None:
            comment = session.prompter.ask("Enter a comment for this backup (optional)")

        report = session.backup_engine.run(
            disk, root, selected, comment=comment, active_override=include_active
        )

    session.record(report)
    print_report(report)
    ctx.exit(exit_code_for(report))


@cli.command("list")
@click.argument("backup_device")
@click.pass_context
def list_command(ctx: click.Context, backup_device: str) -> None:
    """List the backup-sets stored on BACKUP_DEVICE."""
    session = get_session(ctx)
    session.preflight.enforce("list")

    device = session.resolver.resolve(backup_device)

    with session.mounts.mounted(device) as root:
        entries = session.catalog.list(root)

    session.record_event("list", device=device, backup_sets=len(entries))

    if not entries:
        console.print(f"[yellow]There are no backups in {root}[/yellow]")
        return

    table = Table(title=f"Backup-sets on {device}")
    table.add_column("#", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Comment", style="white")
    for index, entry in enumerate(entries, 1):
        table.add_row(str(index), entry.name, entry.comment)
    console.print(table)


@cli.command("delete")
@click.argument("backup_device")
@click.pass_context
def delete_command(ctx: click.Context, backup_device: str) -> None:
    """Interactively delete backup-sets from BACKUP_DEVICE."""
    session = get_session(ctx)
    session.preflight.enforce("delete")

    device = session.resolver.resolve(backup_device)
    deleted: list[str] = []

    with session.mounts.mounted(device) as root:
        catalog = session.catalog
        while True:
            choice = catalog.select(root)
            if isinstance(choice, Cancel):
                break
            if catalog.delete(root, choice.value.name):
                deleted.append(choice.value.name)

    session.record_event("delete", device=device, deleted=deleted)
    if deleted:
        console.print(f"[green]Deleted {len(deleted)} backup-set(s):[/green] {', '.join(deleted)}")


@cli.command("restore")
@click.argument("target_disk")
@click.argument("backup_device")
@click.argument("backup_name", required=False)
@click.option(
    "--include-active",
    "-a",
    is_flag=True,
    help="Allow restoring onto the active root partition",
)
@click.pass_context
def restore_command(
    ctx: click.Context,
    target_disk: str,
    backup_device: str,
    backup_name: str | None,
    include_active: bool,
) -> None:
    """Restore a backup-set from BACKUP_DEVICE onto TARGET_DISK."""
    session = get_session(ctx)
    session.preflight.enforce("restore")

    disk = session.resolver.resolve(target_disk)
    device = session.resolver.resolve(backup_device)

    with session.mounts.mounted(device) as root:
        choice = session.catalog.select(root, backup_name)
        if isinstance(choice, Cancel):
            session.prompter.notify("No backup-set selected. Exiting.")
            session.record_event("restore", disk=disk, cancelled=True)
            return

        entry = choice.value
        session.prompter.notify(f"Selected backup-set: {entry}")
        report = session.restore_engine.run(entry.path, disk, include_active=include_active)

    session.record(report)
    print_report(report)
    ctx.exit(exit_code_for(report))


def _raise_system_exit(signum: int, frame: Any) -> None:
    raise SystemExit(128 + signum)


def install_signal_handlers() -> None:
    """Turn termination signals into SystemExit so cleanup still runs."""
    for signum in (signal.SIGTERM, signal.SIGHUP):
        signal.signal(signum, _raise_system_exit)


def main(args: list[str] | None = None, prog_name: str | None = None) -> None:
    """Main entry point."""
    install_signal_handlers()
    try:
        rv = cli.main(args=args, prog_name=prog_name, obj={}, standalone_mode=False)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except (click.Abort, KeyboardInterrupt):
        error_console.print("[yellow]Operation interrupted[/yellow]")
        sys.exit(ExitCode.INTERRUPTED)
    except Exception as e:
        error_console.print(f"[red]Error: {e}[/red]")
        sys.exit(ExitCode.FAILURE)
    sys.exit(rv if isinstance(rv, int) else ExitCode.OK)


def _standalone(command: str, prog_name: str) -> None:
    main([command, *sys.argv[1:]], prog_name=prog_name)


def backup_main() -> None:
    _standalone("backup", "fs-backup")


def list_main() -> None:
    _standalone("list", "fs-list")


def delete_main() -> None:
    _standalone("delete", "fs-delete")


def restore_main() -> None:
    _standalone("restore", "fs-restore")


if __name__ == "__main__":
    main()
