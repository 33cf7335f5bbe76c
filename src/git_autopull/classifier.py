import asyncio
import logging
from pathlib import Path

from .constants import APP_NAME, GIT_MARKER

logger = logging.getLogger(APP_NAME)


class RepositoryClassifier:
    """Decides whether a directory is a git repository, memoizing every answer.

    The cache is keyed by the path string exactly as supplied; callers must pass
    consistent absolute paths to share entries. Entries are never invalidated,
    so a directory that gains or loses its `.git` marker after the first query
    keeps its original classification for the life of the process.

    Attributes:
        cache (dict[str, bool]): Path string to "is a repository".
        probe_count (int): Number of filesystem probes performed (cache misses).
    """

    def __init__(self) -> None:
        self.cache: dict[str, bool] = {}
        self.probe_count = 0

    async def is_repository(self, path: Path | str) -> bool:
        """Returns True if `path` contains a git metadata marker.

        Never raises; a failed probe is cached as False.

        Args:
            path (Path | str): The directory to classify.

        Returns:
            bool: Whether the directory is a repository root.
        """
        key = str(path)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        self.probe_count += 1
        try:
            is_repo = await asyncio.to_thread(self._probe, Path(key))
        except Exception as e:
            logger.debug(f"Repository probe failed for {key}: {e}")
            is_repo = False

        self.cache[key] = is_repo
        return is_repo

    @staticmethod
    def _probe(path: Path) -> bool:
        # .git is a directory for normal clones and a file for worktrees/submodules
        return (path / GIT_MARKER).exists()
