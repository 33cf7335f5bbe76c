import argparse
import asyncio
import logging
import os
import signal
import subprocess
import sys
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from . import daemon, workspace
from .config import CONFIG_FILE, Config
from .constants import APP_NAME, LOG_FILE, REGISTRY_FILE
from .models import CycleSummary, SummaryKind, SyncStatus

logger = logging.getLogger(APP_NAME)
console = Console()

_OUTCOME_STYLES = {
    SyncStatus.UPDATED: "bold green",
    SyncStatus.UP_TO_DATE: "green",
    SyncStatus.SKIPPED: "yellow",
    SyncStatus.FAILED: "bold red",
}


def render_summary(summary: CycleSummary | None) -> None:
    """Prints the outcome of a cycle as a table followed by its summary line.

    Args:
        summary (CycleSummary | None): The cycle result; None when the cycle
                                       was skipped.
    """
    if summary is None:
        console.print("[yellow]A sync cycle is already running.[/yellow]")
        return

    if summary.outcomes:
        table = Table(title="Repositories", show_header=True)
        table.add_column("Repository", style="cyan")
        table.add_column("Path", style="dim")
        table.add_column("Result")
        for path, outcome in sorted(summary.outcomes.items()):
            table.add_row(
                path.name,
                str(path),
                Text(outcome.describe(), style=_OUTCOME_STYLES[outcome.status]),
            )
        console.print(table)

    style = {
        SummaryKind.UPDATED: "bold green",
        SummaryKind.UP_TO_DATE: "green",
        SummaryKind.CANCELLED: "yellow",
        SummaryKind.NONE_FOUND: "yellow",
        SummaryKind.ERROR: "bold red",
    }[summary.kind]
    console.print(Text(summary.label, style=style))
    if summary.kind == SummaryKind.ERROR and summary.tooltip:
        console.print(f"[red]{summary.tooltip}[/red]")


def run_now(paths: list[Path]) -> CycleSummary | None:
    """Runs one foreground cycle over the registered and given roots."""
    config = Config.load()
    daemon.setup_logging(interactive=True, config=config)
    summary = asyncio.run(daemon.run_once(paths, config))
    render_summary(summary)
    return summary


def send_cancel() -> bool:
    """Asks the running daemon to cancel its current cycle.

    Returns:
        bool: True if the signal was delivered.
    """
    pid = daemon.read_pid()
    if pid is None:
        console.print("[yellow]Daemon is not running.[/yellow]")
        return False
    try:
        os.kill(pid, signal.SIGUSR1)
    except (AttributeError, OSError) as e:
        console.print(f"[bold red]ERROR:[/bold red] Could not signal daemon: {e}")
        return False
    console.print(f"Cancellation requested (pid {pid}).", style="bold yellow")
    return True


def add_root(path: Path) -> None:
    """Registers a workspace root."""
    if not path.is_dir():
        console.print(f"[bold red]Not a directory:[/bold red] {path}")
        sys.exit(1)
    if workspace.register_root(path):
        console.print(f"[bold green]Added[/bold green] {path.resolve()}")
    else:
        console.print(f"[dim]{path.resolve()} is already registered.[/dim]")


def remove_root(path: Path) -> None:
    """Removes a workspace root from the registry."""
    if workspace.unregister_root(path):
        console.print(f"[bold green]Removed[/bold green] {path.resolve()}")
    else:
        console.print(f"[yellow]{path.resolve()} was not registered.[/yellow]")


def list_roots() -> None:
    """Lists the workspace roots the daemon will scan."""
    roots = workspace.resolve_roots(Config.load())
    if not roots:
        console.print(
            "[yellow]No workspace roots. Run 'git-autopull add <dir>'.[/yellow]"
        )
        return

    table = Table(title="Workspace Roots", show_header=True)
    table.add_column("Name", style="cyan")
    table.add_column("Path")
    table.add_column("Exists")
    for root in roots:
        exists = root.path.is_dir()
        table.add_row(
            root.name,
            str(root.path),
            Text("yes" if exists else "missing", style="green" if exists else "red"),
        )
    console.print(table)


def show_status() -> None:
    """Displays daemon liveness and configuration summary."""
    pid = daemon.read_pid()
    config = Config.load()

    content = Text()
    content.append("Daemon:   ", style="bold")
    if pid is not None:
        content.append(f"Running (pid {pid})\n", style="bold green")
    else:
        content.append("Stopped\n", style="bold red")

    content.append("Enabled:  ", style="bold")
    content.append(f"{config.enabled}\n")
    content.append("Interval: ", style="bold")
    if config.continuous_pull.enabled:
        content.append(f"every {config.continuous_pull.interval / 1000:g}s\n")
    else:
        content.append("single run\n", style="dim")
    content.append("Roots:    ", style="bold")
    content.append(str(len(workspace.resolve_roots(config))))

    console.print(Panel(content, title="git-autopull", expand=False))


def show_config() -> None:
    """Prints the effective configuration."""
    config = Config.load()
    table = Table(title=f"Configuration ({CONFIG_FILE})", show_header=True)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    table.add_row("enabled", str(config.enabled))
    table.add_row("continuous_pull.enabled", str(config.continuous_pull.enabled))
    table.add_row("continuous_pull.interval", f"{config.continuous_pull.interval} ms")
    table.add_row("workspace.folders", ", ".join(config.workspace.folders) or "-")
    table.add_row("limits.max_log_size", f"{config.limits.max_log_size} bytes")
    table.add_row("registry", str(REGISTRY_FILE))
    console.print(table)


def tail_log() -> None:
    """Follows the daemon log file in real-time."""
    if not LOG_FILE.exists():
        console.print(f"[red]No log file found yet at {LOG_FILE}.[/red]")
        return

    console.print(f"Tailing [bold cyan]{LOG_FILE}[/bold cyan] (Ctrl+C to stop)...")
    try:
        subprocess.run(["tail", "-n", "1000", "-f", str(LOG_FILE)])
    except KeyboardInterrupt:
        console.print("\nStopped.", style="dim")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="git-autopull",
        description="Keep every git repository under your workspaces pulled.",
    )
    subparsers = parser.add_subparsers(dest="command")

    now_parser = subparsers.add_parser("now", help="Run one sync cycle immediately")
    now_parser.add_argument("paths", nargs="*", type=Path, help="Extra workspace roots")

    run_parser = subparsers.add_parser("run", help="Run the daemon in the foreground")
    run_parser.add_argument("paths", nargs="*", type=Path, help="Extra workspace roots")

    subparsers.add_parser("cancel", help="Cancel the daemon's current cycle")

    add_parser = subparsers.add_parser("add", help="Register a workspace root")
    add_parser.add_argument("path", nargs="?", type=Path, default=Path("."))

    remove_parser = subparsers.add_parser("remove", help="Unregister a workspace root")
    remove_parser.add_argument("path", nargs="?", type=Path, default=Path("."))

    subparsers.add_parser("list", help="List workspace roots")
    subparsers.add_parser("status", help="Show daemon status")
    subparsers.add_parser("config", help="Show the effective configuration")
    subparsers.add_parser("log", help="Tail the daemon log file")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the git-autopull CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "now":
        summary = run_now(args.paths)
        if summary is not None and summary.kind == SummaryKind.ERROR:
            sys.exit(1)
    elif args.command == "run":
        daemon.main(interactive=False, paths=args.paths)
    elif args.command == "cancel":
        if not send_cancel():
            sys.exit(1)
    elif args.command == "add":
        add_root(args.path)
    elif args.command == "remove":
        remove_root(args.path)
    elif args.command == "list":
        list_roots()
    elif args.command == "status":
        show_status()
    elif args.command == "config":
        show_config()
    elif args.command == "log":
        tail_log()
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
