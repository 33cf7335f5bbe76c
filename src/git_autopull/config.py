import logging
import re
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from .constants import APP_NAME, CONFIG_FILE, DEFAULT_INTERVAL_MS

logger = logging.getLogger(APP_NAME)


def parse_size(value: int | str) -> int:
    """Converts human-readable size strings (e.g., '100MB') to bytes."""
    if isinstance(value, int):
        return value
    match = re.match(r"^(\d+(?:\.\d+)?)\s*([kmg]b?)$", str(value).strip().lower())
    if not match:
        raise ValueError(f"Invalid size format '{value}'")
    num, unit = float(match.group(1)), match.group(2)
    multiplier = {
        "k": 1024,
        "kb": 1024,
        "m": 1024**2,
        "mb": 1024**2,
        "g": 1024**3,
        "gb": 1024**3,
    }
    return int(num * multiplier[unit])


def parse_interval(value: int | str) -> int:
    """Converts an interval to milliseconds.

    Plain integers are already milliseconds. Strings accept a unit suffix
    (e.g., '500ms', '90s', '5 min', '1hr').
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid interval format '{value}'")
    if isinstance(value, int):
        if value <= 0:
            raise ValueError(f"Interval must be positive, got {value}")
        return value
    match = re.match(
        r"^(\d+(?:\.\d+)?)\s*(ms|s|sec|m|min|h|hr)s?$", str(value).strip().lower()
    )
    if not match:
        raise ValueError(f"Invalid interval format '{value}'")
    num, unit = float(match.group(1)), match.group(2)
    multiplier = {
        "ms": 1,
        "s": 1000,
        "sec": 1000,
        "m": 60000,
        "min": 60000,
        "h": 3600000,
        "hr": 3600000,
    }
    millis = int(num * multiplier[unit])
    if millis <= 0:
        raise ValueError(f"Interval must be positive, got '{value}'")
    return millis


@dataclass
class ContinuousPullConfig:
    """Periodic re-run settings.

    Attributes:
        enabled (bool): Whether cycles repeat after the initial one.
        interval (int): Milliseconds between cycle triggers.
    """

    enabled: bool = True
    interval: int = DEFAULT_INTERVAL_MS


@dataclass
class WorkspaceConfig:
    """Workspace root settings.

    Attributes:
        folders (list[str]): Extra workspace roots scanned on every cycle.
    """

    folders: list[str] = field(default_factory=list)


@dataclass
class LimitsConfig:
    """Resource limitation settings.

    Attributes:
        max_log_size (int): Max bytes for log files before rotation.
    """

    max_log_size: int = 5 * 1024 * 1024


@dataclass
class Config:
    """Global configuration aggregator.

    Attributes:
        enabled (bool): Master switch; when False no cycle is ever started.
        continuous_pull (ContinuousPullConfig): Periodic re-run settings.
        workspace (WorkspaceConfig): Configured workspace roots.
        limits (LimitsConfig): Resource limits.
    """

    enabled: bool = True
    continuous_pull: ContinuousPullConfig = field(
        default_factory=ContinuousPullConfig
    )
    workspace: WorkspaceConfig = field(default_factory=WorkspaceConfig)
    limits: LimitsConfig = field(default_factory=LimitsConfig)

    # Cache for the parsed global configuration
    _global_cache: "Config | None" = None

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """Loads configuration from defaults and the global config file.

        Args:
            path (Path | None): An explicit config file. When given, the global
                cache is bypassed.

        Returns:
            Config: The fully merged configuration object.
        """
        if path is not None:
            instance = cls()
            if path.exists():
                instance._merge_from_file(path)
            return instance

        if cls._global_cache is None:
            instance = cls()
            if CONFIG_FILE.exists():
                instance._merge_from_file(CONFIG_FILE)
            cls._global_cache = instance

        # Hand out a copy so callers can't mutate the cached sections
        cached = cls._global_cache
        return replace(
            cached,
            continuous_pull=replace(cached.continuous_pull),
            workspace=replace(
                cached.workspace, folders=list(cached.workspace.folders)
            ),
            limits=replace(cached.limits),
        )

    def _merge_from_file(self, path: Path) -> None:
        """Parses a TOML file and merges it into the current instance.

        Args:
            path (Path): Path to the TOML file.
        """
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)

            if not data:
                return

            if "enabled" in data:
                if isinstance(data["enabled"], bool):
                    self.enabled = data["enabled"]
                else:
                    logger.warning(
                        f"Config error in enabled: expected a boolean, "
                        f"got {data['enabled']!r}. Falling back to default."
                    )
            if "continuous_pull" in data:
                self.continuous_pull = self._update_dataclass(
                    "continuous_pull", self.continuous_pull, data["continuous_pull"]
                )
            if "limits" in data:
                self.limits = self._update_dataclass(
                    "limits", self.limits, data["limits"]
                )
            if "workspace" in data:
                # Folders accumulate instead of being replaced
                new_folders = data["workspace"].pop("folders", [])
                if not isinstance(new_folders, list) or not all(
                    isinstance(f, str) for f in new_folders
                ):
                    logger.warning(
                        f"Config error in [workspace].folders: expected a list "
                        f"of paths, got {new_folders!r}. Ignoring."
                    )
                    new_folders = []
                self.workspace = self._update_dataclass(
                    "workspace", self.workspace, data["workspace"]
                )
                if new_folders:
                    self.workspace.folders.extend(str(f) for f in new_folders)
                    self.workspace.folders = list(
                        dict.fromkeys(self.workspace.folders)
                    )

            unknown = set(data) - {
                "enabled",
                "continuous_pull",
                "limits",
                "workspace",
            }
            if unknown:
                logger.warning(
                    f"Unknown config keys: {', '.join(sorted(unknown))}. Ignoring."
                )

        except tomllib.TOMLDecodeError as e:
            logger.error(f"Config syntax error in {path}: {e}")
        except Exception as e:
            logger.warning(f"Failed to load config from {path}: {e}")

    @staticmethod
    def _update_dataclass(section_name: str, instance: Any, updates: dict) -> Any:
        """Updates a dataclass, warning on invalid keys and parsing human-readable formats."""
        valid_keys = instance.__dataclass_fields__.keys()
        filtered_updates = {}

        invalid_keys = set(updates.keys()) - set(valid_keys)
        if invalid_keys:
            logger.warning(
                f"Unknown config keys in [{section_name}]: "
                f"{', '.join(sorted(invalid_keys))}. Ignoring."
            )

        for k, v in updates.items():
            if k not in valid_keys:
                continue

            try:
                if k == "max_log_size":
                    filtered_updates[k] = parse_size(v)
                elif k == "interval":
                    filtered_updates[k] = parse_interval(v)
                elif k == "enabled" and not isinstance(v, bool):
                    raise ValueError(f"expected a boolean, got {v!r}")
                else:
                    filtered_updates[k] = v
            except ValueError as e:
                logger.warning(
                    f"Config error in [{section_name}].{k}: {e}. Falling back to default."
                )

        return replace(instance, **filtered_updates)
