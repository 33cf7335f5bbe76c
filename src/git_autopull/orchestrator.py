"""Single-flight sync cycles across every repository in the workspace.

A cycle scans the workspace roots, syncs every repository it finds
concurrently, and publishes one terminal status. Only one cycle may run at a
time; a cycle requested while another is active is dropped, not queued.
"""

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path

from . import scanner
from .cancellation import CancellationTokenSource
from .classifier import RepositoryClassifier
from .constants import APP_NAME, CANCEL_CLEAR_DELAY, STATUS_CLEAR_DELAY
from .git_wrapper import GitRepo
from .models import (
    CycleState,
    CycleSummary,
    RepositoryDescriptor,
    SummaryKind,
    SyncOutcome,
    SyncStatus,
    WorkspaceRoot,
)
from .status import StatusBar
from .sync import GitFactory, sync_repository

logger = logging.getLogger(APP_NAME)

RootsProvider = Callable[[], list[WorkspaceRoot]]

CANCELLED_LABEL = "Git Pull Cancelled"
ERROR_LABEL = "Git Pull Error"
NONE_FOUND_LABEL = "No Git repositories found"


def summarize(
    outcomes: dict[Path, SyncOutcome], found: int, cancelled: bool
) -> CycleSummary:
    """Folds per-repository outcomes into the cycle's terminal status.

    Args:
        outcomes (dict[Path, SyncOutcome]): Outcome per repository path.
        found (int): Number of repositories discovered.
        cancelled (bool): Whether the cycle's token was triggered.

    Returns:
        CycleSummary: The summary; cancellation takes precedence over counts.
    """
    updated = sum(1 for o in outcomes.values() if o.status == SyncStatus.UPDATED)

    if cancelled:
        kind, label, tooltip = SummaryKind.CANCELLED, CANCELLED_LABEL, ""
    elif updated > 0:
        kind = SummaryKind.UPDATED
        label = f"Updated {updated} of {found} repositories"
        tooltip = "Git pull completed"
    elif found > 0:
        kind = SummaryKind.UP_TO_DATE
        label = f"All {found} repositories up to date"
        tooltip = "No updates needed"
    else:
        kind, label, tooltip = SummaryKind.NONE_FOUND, NONE_FOUND_LABEL, ""

    return CycleSummary(
        kind=kind,
        label=label,
        tooltip=tooltip,
        found=found,
        updated=updated,
        outcomes=outcomes,
    )


class SyncOrchestrator:
    """Coordinates discovery and parallel sync for one process.

    The orchestrator owns the process-wide state: the classification cache
    (through its `RepositoryClassifier`) and the single-flight `CycleState`.

    Attributes:
        roots_provider (RootsProvider): Returns the current workspace roots.
        status (StatusBar): The status sink updated on every transition.
        classifier (RepositoryClassifier): Shared repository classifier.
        git_factory (GitFactory): Builds a git invoker for a repository path.
        state (CycleState): Single-flight flag and active cancellation source.
    """

    def __init__(
        self,
        roots_provider: RootsProvider,
        status: StatusBar | None = None,
        classifier: RepositoryClassifier | None = None,
        git_factory: GitFactory = GitRepo,
    ) -> None:
        self.roots_provider = roots_provider
        self.status = status or StatusBar()
        self.classifier = classifier or RepositoryClassifier()
        self.git_factory = git_factory
        self.state = CycleState()

    @property
    def in_progress(self) -> bool:
        return self.state.in_progress

    def cancel(self) -> bool:
        """Requests cancellation of the running cycle.

        Returns:
            bool: True if a running cycle was signalled, False if idle.
        """
        source = self.state.cancellation
        if not self.state.in_progress or source is None:
            return False
        source.cancel()
        self.status.update(CANCELLED_LABEL)
        self.status.hide_after(CANCEL_CLEAR_DELAY)
        return True

    async def run_cycle(self) -> CycleSummary | None:
        """Runs one discovery-and-sync cycle unless one is already running.

        Returns:
            CycleSummary | None: The cycle's summary, or None if it was skipped
                                 because another cycle held the flag.
        """
        if self.state.in_progress:
            logger.info("Git pull operation already in progress, skipping...")
            return None

        # No await between the check above and the claim below.
        self.state.in_progress = True
        source = CancellationTokenSource()
        source.token.on_cancelled(lambda: logger.info("CANCEL requested by user."))
        self.state.cancellation = source

        try:
            self.status.update("Git Pull in Progress", "Click to cancel")
            logger.info("Checking for Git updates...")

            roots = self.roots_provider()
            if not roots:
                logger.info("No workspace folders found.")
                summary = CycleSummary(
                    kind=SummaryKind.NONE_FOUND,
                    label=NONE_FOUND_LABEL,
                    tooltip="No workspace folders configured",
                )
                self._publish(summary)
                return summary

            repositories = _unique(
                await scanner.scan(roots, self.classifier, source.token)
            )
            # Keep "Git Pull Cancelled" visible if cancel arrived during discovery.
            if not source.token.is_cancellation_requested:
                self.status.update(
                    f"Processing {len(repositories)} Git repositories",
                    "Click to cancel",
                )

            outcomes = await self._sync_all(repositories, source)
            summary = summarize(
                outcomes, len(repositories), source.token.is_cancellation_requested
            )
            self._publish(summary)
            return summary

        except Exception as e:
            logger.exception(f"Error in git pull operation: {e}")
            summary = CycleSummary(
                kind=SummaryKind.ERROR,
                label=ERROR_LABEL,
                tooltip=str(e) or "Unknown error",
            )
            self._publish(summary)
            return summary

        finally:
            self.state.in_progress = False
            self.state.cancellation = None
            source.dispose()

    async def _sync_all(
        self,
        repositories: list[RepositoryDescriptor],
        source: CancellationTokenSource,
    ) -> dict[Path, SyncOutcome]:
        """Syncs every repository concurrently, settling all of them."""
        if not repositories:
            return {}

        # Launch everything before awaiting anything.
        tasks = [
            asyncio.create_task(
                sync_repository(repo, source.token, self.git_factory),
                name=f"sync:{repo.display_name}",
            )
            for repo in repositories
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        outcomes: dict[Path, SyncOutcome] = {}
        for repo, result in zip(repositories, results):
            if isinstance(result, BaseException):
                logger.error(f"Error processing {repo.display_name}: {result!r}")
                outcomes[repo.path] = SyncOutcome.failed(result)
            else:
                outcomes[repo.path] = result
        return outcomes

    def _publish(self, summary: CycleSummary) -> None:
        logger.info(f"CYCLE {summary.kind.value}: {summary.label}")
        self.status.update(summary.label, summary.tooltip)
        self.status.hide_after(STATUS_CLEAR_DELAY)


def _unique(repositories: list[RepositoryDescriptor]) -> list[RepositoryDescriptor]:
    # Overlapping roots may surface the same repository twice.
    seen: dict[Path, RepositoryDescriptor] = {}
    for repo in repositories:
        seen.setdefault(repo.path, repo)
    return list(seen.values())
