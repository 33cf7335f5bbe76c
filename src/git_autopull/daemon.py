import asyncio
import atexit
import logging
import os
import signal
import sys
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console

from .config import Config
from .constants import APP_NAME, LOG_FILE, PID_FILE
from .models import CycleSummary
from .orchestrator import SyncOrchestrator
from .scheduler import CycleScheduler
from .status import StatusBar
from .workspace import resolve_roots

logger = logging.getLogger(APP_NAME)
logger.setLevel(logging.INFO)

console = Console()
err_console = Console(stderr=True)

_LOGGING_CONFIGURED = False


def setup_logging(interactive: bool, config: Config | None = None) -> None:
    """Configures the logging subsystem. Subsequent calls are no-ops.

    Args:
        interactive (bool): If True, logs to stdout. If False, logs to stderr
                            and to a rotating log file.
        config (Config | None): Supplies the log rotation size.
    """
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return
    _LOGGING_CONFIGURED = True

    formatter = logging.Formatter(
        "[%(asctime)s] %(levelname)s: %(message)s", "%Y-%m-%d %H:%M:%S"
    )

    # Always log to a stream (stderr is captured by systemd/launchd).
    stream_handler = logging.StreamHandler(
        sys.stderr if not interactive else sys.stdout
    )
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if not interactive:
        max_bytes = (config or Config()).limits.max_log_size
        file_handler = RotatingFileHandler(
            LOG_FILE,
            maxBytes=max_bytes,
            backupCount=5,
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)


def build_orchestrator(
    config: Config, paths: list[Path] | None = None, status: StatusBar | None = None
) -> SyncOrchestrator:
    """Wires an orchestrator whose roots are re-resolved on every cycle.

    Args:
        config (Config): The effective configuration.
        paths (list[Path] | None): Workspace roots given on the command line.
        status (StatusBar | None): The status sink to publish to.

    Returns:
        SyncOrchestrator: A ready orchestrator with a fresh classification cache.
    """
    return SyncOrchestrator(
        roots_provider=lambda: resolve_roots(config, paths),
        status=status,
    )


async def run_once(
    paths: list[Path] | None = None, config: Config | None = None
) -> CycleSummary | None:
    """Runs a single cycle in the foreground.

    Args:
        paths (list[Path] | None): Extra workspace roots.
        config (Config | None): Defaults to `Config.load()`.

    Returns:
        CycleSummary | None: The cycle summary.
    """
    config = config or Config.load()
    orchestrator = build_orchestrator(config, paths, StatusBar(console))

    loop = asyncio.get_running_loop()
    with _signal_handler(loop, signal.SIGINT, orchestrator.cancel):
        return await orchestrator.run_cycle()


async def serve(paths: list[Path] | None = None, config: Config | None = None) -> None:
    """Runs the scheduler until SIGINT/SIGTERM, honouring SIGUSR1 as cancel.

    Without continuous mode the process exits once the first cycle finishes.

    Args:
        paths (list[Path] | None): Extra workspace roots.
        config (Config | None): Defaults to `Config.load()`.
    """
    config = config or Config.load()
    if not config.enabled:
        logger.info("Auto pull disabled by configuration. Exiting.")
        return

    orchestrator = build_orchestrator(config, paths)
    scheduler = CycleScheduler(orchestrator, config)
    stop = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        _add_handler(loop, sig, stop.set)
    if (usr1 := getattr(signal, "SIGUSR1", None)) is not None:
        _add_handler(loop, usr1, orchestrator.cancel)

    scheduler.start()
    if scheduler.running:
        await stop.wait()
        logger.info("Shutting down; waiting for in-flight cycles.")
        scheduler.stop()

    await scheduler.wait_idle()


def _add_handler(
    loop: asyncio.AbstractEventLoop, sig: int, callback: Callable[[], object]
) -> bool:
    try:
        loop.add_signal_handler(sig, callback)
        return True
    except (NotImplementedError, RuntimeError) as e:
        # Signal handlers are unavailable on Windows event loops.
        logger.debug(f"Cannot install handler for signal {sig}: {e}")
        return False


@contextmanager
def _signal_handler(
    loop: asyncio.AbstractEventLoop, sig: int, callback: Callable[[], object]
) -> Iterator[None]:
    """Installs a loop signal handler for the duration of a `with` block."""
    installed = _add_handler(loop, sig, callback)
    try:
        yield
    finally:
        if installed:
            loop.remove_signal_handler(sig)


def write_pid_file() -> None:
    """Records the daemon PID and removes it again at exit."""
    try:
        with open(PID_FILE, "w") as f:
            f.write(str(os.getpid()))

        # Ensure cleanup on exit.
        atexit.register(lambda: PID_FILE.unlink(missing_ok=True))
    except OSError as e:
        logger.warning(f"Could not write PID file: {e}")


def read_pid() -> int | None:
    """Returns the PID of a live daemon, or None if none is running."""
    if not PID_FILE.exists():
        return None
    try:
        pid = int(PID_FILE.read_text().strip())
        os.kill(pid, 0)
    except (ValueError, OSError):
        return None
    return pid


def main(interactive: bool = False, paths: list[Path] | None = None) -> None:
    """The daemon entry point.

    Args:
        interactive (bool, optional): Run a single cycle in the foreground
                                      (CLI 'now' command). Defaults to False.
        paths (list[Path] | None, optional): Extra workspace roots.
    """
    config = Config.load()
    setup_logging(interactive, config)

    if interactive:
        asyncio.run(run_once(paths, config))
        return

    write_pid_file()
    try:
        asyncio.run(serve(paths, config))
    except Exception:
        logger.exception("DAEMON ERROR")
        err_console.print("[bold red]Daemon stopped after an unexpected error.[/bold red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
