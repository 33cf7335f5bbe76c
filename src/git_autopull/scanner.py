import asyncio
import logging
import os
from pathlib import Path

from .cancellation import CancellationToken
from .classifier import RepositoryClassifier
from .constants import APP_NAME
from .models import RepositoryDescriptor, WorkspaceRoot

logger = logging.getLogger(APP_NAME)


def _list_child_dirs(path: Path) -> list[Path]:
    with os.scandir(path) as entries:
        children = []
        for entry in entries:
            try:
                if entry.is_dir():
                    children.append(path / entry.name)
            except OSError:
                continue
        return children


async def get_subfolders(path: Path) -> list[Path]:
    """Lists the immediate child directories of `path`, without recursing.

    Args:
        path (Path): The folder to list.

    Returns:
        list[Path]: Child directories; empty if the folder cannot be read.
    """
    try:
        return await asyncio.to_thread(_list_child_dirs, path)
    except OSError as e:
        logger.warning(f"Error reading immediate subfolders in {path}: {e}")
        return []


async def scan(
    roots: list[WorkspaceRoot],
    classifier: RepositoryClassifier,
    token: CancellationToken | None = None,
) -> list[RepositoryDescriptor]:
    """Finds the repositories to synchronize under the given workspace roots.

    Roots are visited in order. A root that is itself a repository is taken
    as-is and its children are never inspected; otherwise its immediate
    subfolders are classified concurrently and the repositories among them are
    kept. The order of repositories found within one root is not guaranteed.

    Args:
        roots (list[WorkspaceRoot]): The workspace roots to scan.
        classifier (RepositoryClassifier): Shared, caching classifier.
        token (CancellationToken | None): Checked before each root.

    Returns:
        list[RepositoryDescriptor]: Repositories found before any cancellation.
    """
    repositories: list[RepositoryDescriptor] = []

    for root in roots:
        if token is not None and token.is_cancellation_requested:
            logger.info("Scan cancelled.")
            break

        if await classifier.is_repository(root.path):
            repositories.append(RepositoryDescriptor(root.path, root.name))
            continue

        logger.info(
            f"{root.name} is not a git repository. "
            "Checking immediate subfolders (one level deep)..."
        )
        subfolders = await get_subfolders(root.path)
        logger.info(f"Found {len(subfolders)} immediate subfolders to check.")

        checks = await asyncio.gather(
            *(classifier.is_repository(sub) for sub in subfolders)
        )
        found = [
            RepositoryDescriptor(sub, sub.name)
            for sub, is_repo in zip(subfolders, checks)
            if is_repo
        ]
        repositories.extend(found)
        logger.info(f"Found {len(found)} git repositories in {root.name}")

    return repositories
