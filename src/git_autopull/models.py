"""Data types exchanged between the scanner, the sync executor and the orchestrator."""

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from .cancellation import CancellationTokenSource


@dataclass(frozen=True)
class WorkspaceRoot:
    """A top-level folder supplied by the host environment.

    Attributes:
        path (Path): Absolute path of the folder.
        name (str): Display name; defaults to the folder's basename.
    """

    path: Path
    name: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            object.__setattr__(self, "name", self.path.name or str(self.path))


@dataclass(frozen=True)
class RepositoryDescriptor:
    """A repository discovered during one scan cycle.

    Attributes:
        path (Path): Absolute path of the repository root.
        display_name (str): Basename, or the workspace name for root repositories.
    """

    path: Path
    display_name: str


class SyncStatus(StrEnum):
    """Per-repository result of a sync attempt."""

    UPDATED = "updated"
    UP_TO_DATE = "up_to_date"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class SyncOutcome:
    """Result of syncing a single repository.

    Attributes:
        status (SyncStatus): Which of the four outcomes occurred.
        new_commits (int): Commits integrated by the pull (UPDATED only).
        reason (str): Why the repository was skipped (SKIPPED only).
        error (str): Description of the failure (FAILED only).
    """

    status: SyncStatus
    new_commits: int = 0
    reason: str = ""
    error: str = ""

    @classmethod
    def updated(cls, new_commits: int) -> "SyncOutcome":
        return cls(SyncStatus.UPDATED, new_commits=new_commits)

    @classmethod
    def up_to_date(cls) -> "SyncOutcome":
        return cls(SyncStatus.UP_TO_DATE)

    @classmethod
    def skipped(cls, reason: str) -> "SyncOutcome":
        return cls(SyncStatus.SKIPPED, reason=reason)

    @classmethod
    def failed(cls, error: str | BaseException) -> "SyncOutcome":
        return cls(SyncStatus.FAILED, error=str(error))

    def describe(self) -> str:
        """Returns a short human-readable description of the outcome."""
        if self.status == SyncStatus.UPDATED:
            noun = "commit" if self.new_commits == 1 else "commits"
            return f"Updated ({self.new_commits} new {noun})"
        if self.status == SyncStatus.UP_TO_DATE:
            return "Up to date"
        if self.status == SyncStatus.SKIPPED:
            return f"Skipped ({self.reason})"
        return f"Failed: {self.error}"


@dataclass
class CycleState:
    """Process-wide single-flight state owned by the orchestrator.

    Attributes:
        in_progress (bool): True while a cycle holds the single-flight flag.
        cancellation (CancellationTokenSource | None): The running cycle's
            token source, or None when idle.
    """

    in_progress: bool = False
    cancellation: CancellationTokenSource | None = None


class SummaryKind(StrEnum):
    """Terminal condition of a completed cycle."""

    CANCELLED = "cancelled"
    UPDATED = "updated"
    UP_TO_DATE = "up_to_date"
    NONE_FOUND = "none_found"
    ERROR = "error"


@dataclass
class CycleSummary:
    """Aggregated result of one orchestrator cycle.

    Attributes:
        kind (SummaryKind): Terminal condition.
        label (str): Short status text published to the status sink.
        tooltip (str): Longer status description.
        found (int): Number of repositories discovered.
        updated (int): Number of repositories with an UPDATED outcome.
        outcomes (dict[Path, SyncOutcome]): Per-repository outcomes.
    """

    kind: SummaryKind
    label: str
    tooltip: str = ""
    found: int = 0
    updated: int = 0
    outcomes: dict[Path, SyncOutcome] = field(default_factory=dict)
