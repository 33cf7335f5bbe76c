import logging
import os
from pathlib import Path

from .config import Config
from .constants import APP_NAME, REGISTRY_FILE
from .models import WorkspaceRoot

logger = logging.getLogger(APP_NAME)


def get_registered_roots(registry_file: Path | None = None) -> list[Path]:
    """Reads the registry file and returns the registered workspace roots."""
    registry_file = registry_file or REGISTRY_FILE
    if not registry_file.exists():
        return []
    with open(registry_file, "r") as f:
        return [Path(line.strip()) for line in f if line.strip()]


def _write_registry(paths: list[Path], registry_file: Path) -> None:
    tmp_file = registry_file.with_suffix(".tmp")
    try:
        with open(tmp_file, "w") as f:
            for p in paths:
                f.write(f"{p}\n")
            f.flush()
            os.fsync(f.fileno())  # Force write to disk.

        # Atomic Swap.
        os.replace(tmp_file, registry_file)
    except OSError:
        if tmp_file.exists():
            tmp_file.unlink()
        raise


def register_root(path: Path, registry_file: Path | None = None) -> bool:
    """Adds a workspace root to the registry.

    Args:
        path (Path): The folder to register; stored as an absolute path.
        registry_file (Path | None, optional): The registry location.
            Defaults to REGISTRY_FILE.

    Returns:
        bool: False if the root was already registered.
    """
    registry_file = registry_file or REGISTRY_FILE
    target = path.resolve()
    current = get_registered_roots(registry_file)
    if target in current:
        return False
    registry_file.parent.mkdir(parents=True, exist_ok=True)
    _write_registry([*current, target], registry_file)
    logger.info(f"REGISTERED: {target}")
    return True


def unregister_root(path: Path, registry_file: Path | None = None) -> bool:
    """Removes a workspace root from the registry.

    Args:
        path (Path): The folder to remove.
        registry_file (Path | None, optional): The registry location.
            Defaults to REGISTRY_FILE.

    Returns:
        bool: False if the root was not registered.
    """
    registry_file = registry_file or REGISTRY_FILE
    target = path.resolve()
    current = get_registered_roots(registry_file)
    if target not in current:
        return False
    _write_registry([p for p in current if p != target], registry_file)
    logger.info(f"UNREGISTERED: {target}")
    return True


def resolve_roots(
    config: Config,
    extra: list[Path] | None = None,
    registry_file: Path | None = None,
) -> list[WorkspaceRoot]:
    """Collects workspace roots from the command line, config and registry.

    Paths are made absolute and deduplicated; the first occurrence wins.

    Args:
        config (Config): Supplies `workspace.folders`.
        extra (list[Path] | None): Paths given explicitly by the caller.
        registry_file (Path | None, optional): The registry location.
            Defaults to REGISTRY_FILE.

    Returns:
        list[WorkspaceRoot]: The roots, in order.
    """
    candidates = [
        *(extra or []),
        *(Path(f).expanduser() for f in config.workspace.folders),
        *get_registered_roots(registry_file),
    ]
    unique = dict.fromkeys(p.resolve() for p in candidates)
    return [WorkspaceRoot(p) for p in unique]
