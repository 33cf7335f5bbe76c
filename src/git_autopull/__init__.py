"""git-autopull: Keep every git repository under a set of workspaces up to date.

This package discovers repositories under workspace roots, fetches and pulls
them concurrently on a fixed interval, and exposes a command-line interface
and background daemon to drive those cycles.
"""

from . import (
    cancellation,
    classifier,
    cli,
    config,
    constants,
    daemon,
    git_wrapper,
    models,
    orchestrator,
    scanner,
    scheduler,
    status,
    sync,
    workspace,
)

__all__ = [
    "cancellation",
    "classifier",
    "cli",
    "config",
    "constants",
    "daemon",
    "git_wrapper",
    "models",
    "orchestrator",
    "scanner",
    "scheduler",
    "status",
    "sync",
    "workspace",
]
