import os
from pathlib import Path

"""Global constants and path definitions for git-autopull.

This module defines the filesystem layout (adhering to XDG standards where
applicable), application identifiers, and the default timings used by the
sync cycle.
"""

# --- Identity ---
APP_NAME = "git-autopull"
"""str: The human-readable application name, also used as the logger name."""

# --- Paths ---
_XDG_STATE = os.environ.get("XDG_STATE_HOME")
_BASE_STATE = Path(_XDG_STATE) if _XDG_STATE else Path.home() / ".local/state"

STATE_DIR = _BASE_STATE / "git-autopull"
"""Path: The directory for runtime state data (logs, registry, pid)."""

# Ensure state directory exists immediately upon module import.
STATE_DIR.mkdir(parents=True, exist_ok=True)

REGISTRY_FILE = STATE_DIR / "workspaces"
"""Path: The file listing registered workspace roots, one per line."""

LOG_FILE = STATE_DIR / "daemon.log"
"""Path: The file path for the daemon process logs."""

PID_FILE = STATE_DIR / "daemon.pid"
"""Path: The file path storing the daemon's process ID."""

# --- Configuration Paths ---
CONFIG_DIR: Path = Path.home() / ".config/git-autopull"
"""Path: The directory for user configuration files."""

CONFIG_FILE: Path = CONFIG_DIR / "config.toml"
"""Path: The main configuration file path."""

# --- Git / Logic Constants ---
GIT_MARKER = ".git"
"""str: Directory (or gitfile) whose presence marks a repository root."""

DEFAULT_REMOTE = "origin"
"""str: Remote whose tracking branch is compared against HEAD."""

DEFAULT_INTERVAL_MS = 60000
"""int: Default period between continuous pull cycles, in milliseconds."""

STATUS_CLEAR_DELAY = 5.0
"""float: Seconds a terminal cycle status stays visible."""

CANCEL_CLEAR_DELAY = 3.0
"""float: Seconds the cancellation status stays visible."""

CANCELLED_REASON = "cancelled"
"""str: Skip reason recorded when a cancellation checkpoint trips."""
