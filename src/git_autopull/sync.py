"""Fetch-and-pull for a single repository."""

import logging
from collections.abc import Callable
from pathlib import Path

from .cancellation import CancellationToken
from .constants import APP_NAME, CANCELLED_REASON
from .git_wrapper import GitRepo
from .models import RepositoryDescriptor, SyncOutcome

logger = logging.getLogger(APP_NAME)

GitFactory = Callable[[Path], GitRepo]


def _cancelled(token: CancellationToken | None) -> bool:
    return token is not None and token.is_cancellation_requested


async def sync_repository(
    repo: RepositoryDescriptor,
    token: CancellationToken | None = None,
    git_factory: GitFactory = GitRepo,
) -> SyncOutcome:
    """Brings one repository up to date with its remote tracking branch.

    Steps:
    1. Fetch from the remote.
    2. Resolve the current branch.
    3. Count commits on `origin/<branch>` missing from HEAD.
    4. Pull when that count is positive.

    Cancellation is checked before every step. Errors are reported in the
    returned outcome and never raised, so siblings are unaffected. Only
    `asyncio.CancelledError` propagates.

    Args:
        repo (RepositoryDescriptor): The repository to sync.
        token (CancellationToken | None): The cycle's cancellation token.
        git_factory (GitFactory, optional): Builds the git invoker for a path.

    Returns:
        SyncOutcome: UPDATED, UP_TO_DATE, SKIPPED or FAILED.
    """
    name = repo.display_name

    if _cancelled(token):
        return SyncOutcome.skipped(CANCELLED_REASON)

    # 1. Fetch.
    try:
        git = git_factory(repo.path)
        await git.fetch()
    except Exception as e:
        logger.error(f"FETCH ERROR {name}: {e}")
        return SyncOutcome.failed(e)

    if _cancelled(token):
        return SyncOutcome.skipped(CANCELLED_REASON)

    # 2. Branch.
    try:
        branch = await git.current_branch()
    except Exception as e:
        logger.warning(f"BRANCH ERROR {name}: {e}")
        branch = None
    if not branch:
        logger.warning(f"No current branch found for {name}.")
        return SyncOutcome.failed("no current branch")

    if _cancelled(token):
        return SyncOutcome.skipped(CANCELLED_REASON)

    # 3. Compare.
    try:
        new_commits = await git.ahead_count(branch)
    except Exception as e:
        logger.error(f"COMPARE ERROR {name} ({branch}): {e}")
        return SyncOutcome.failed(e)

    if _cancelled(token):
        return SyncOutcome.skipped(CANCELLED_REASON)

    if new_commits <= 0:
        logger.info(f"No new commits in {name} ({branch}).")
        return SyncOutcome.up_to_date()

    # 4. Pull.
    logger.info(f"New commits found in {name} ({branch}): {new_commits}")
    try:
        result = await git.pull()
    except Exception as e:
        logger.error(f"PULL ERROR {name} ({branch}): {e}")
        return SyncOutcome.failed(e)

    logger.info(f"UPDATED {name} ({branch}): {result.stdout}")
    if result.stderr:
        logger.info(f"Pull stderr in {name} ({branch}): {result.stderr}")
    return SyncOutcome.updated(new_commits)
