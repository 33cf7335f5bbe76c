"""Tests for one-level workspace scanning."""

import logging
from collections.abc import Callable
from pathlib import Path

import pytest

from git_autopull import scanner
from git_autopull.cancellation import CancellationTokenSource
from git_autopull.classifier import RepositoryClassifier
from git_autopull.constants import APP_NAME
from git_autopull.models import RepositoryDescriptor, WorkspaceRoot


@pytest.mark.asyncio
async def test_root_repository_hides_children(
    tmp_path: Path, make_repo: Callable[[Path], Path]
) -> None:
    """When the root is a repository, its children are never inspected."""
    root = make_repo(tmp_path / "mono")
    make_repo(root / "vendored")

    classifier = RepositoryClassifier()
    result = await scanner.scan([WorkspaceRoot(root, "Mono")], classifier)

    assert result == [RepositoryDescriptor(root, "Mono")]
    assert str(root / "vendored") not in classifier.cache


@pytest.mark.asyncio
async def test_only_repository_subfolders_are_kept(
    tmp_path: Path, make_repo: Callable[[Path], Path]
) -> None:
    """Subfolders a and c are repositories, b is not; files are ignored."""
    make_repo(tmp_path / "a")
    (tmp_path / "b").mkdir()
    make_repo(tmp_path / "c")
    (tmp_path / "notes.txt").write_text("not a folder")

    result = await scanner.scan([WorkspaceRoot(tmp_path)], RepositoryClassifier())

    assert {r.path for r in result} == {tmp_path / "a", tmp_path / "c"}
    assert {r.display_name for r in result} == {"a", "c"}


@pytest.mark.asyncio
async def test_scan_is_one_level_deep(
    tmp_path: Path, make_repo: Callable[[Path], Path]
) -> None:
    """Repositories nested two levels down are not discovered."""
    make_repo(tmp_path / "group" / "nested")

    result = await scanner.scan([WorkspaceRoot(tmp_path)], RepositoryClassifier())

    assert result == []


@pytest.mark.asyncio
async def test_unreadable_root_is_treated_as_empty(
    tmp_path: Path,
    caplog: pytest.LogCaptureFixture,
    make_repo: Callable[[Path], Path],
) -> None:
    """A root that cannot be listed logs a warning and contributes nothing."""
    caplog.set_level(logging.WARNING, logger=APP_NAME)
    missing = tmp_path / "gone"
    present = make_repo(tmp_path / "present")

    result = await scanner.scan(
        [WorkspaceRoot(missing), WorkspaceRoot(present)], RepositoryClassifier()
    )

    assert result == [RepositoryDescriptor(present, "present")]
    assert "Error reading immediate subfolders" in caplog.text


@pytest.mark.asyncio
async def test_roots_processed_in_order(
    tmp_path: Path, make_repo: Callable[[Path], Path]
) -> None:
    """Roots that are repositories appear in input order."""
    first = make_repo(tmp_path / "zeta")
    second = make_repo(tmp_path / "alpha")

    result = await scanner.scan(
        [WorkspaceRoot(first), WorkspaceRoot(second)], RepositoryClassifier()
    )

    assert [r.path for r in result] == [first, second]


@pytest.mark.asyncio
async def test_cancelled_before_scan_returns_nothing(
    tmp_path: Path, make_repo: Callable[[Path], Path]
) -> None:
    """A token cancelled up front stops the scan before the first root."""
    make_repo(tmp_path / "a")
    source = CancellationTokenSource()
    source.cancel()
    classifier = RepositoryClassifier()

    result = await scanner.scan([WorkspaceRoot(tmp_path)], classifier, source.token)

    assert result == []
    assert classifier.cache == {}


@pytest.mark.asyncio
async def test_cancel_between_roots_keeps_partial_result(
    tmp_path: Path, make_repo: Callable[[Path], Path]
) -> None:
    """Roots already scanned are returned; remaining roots are skipped."""
    first = make_repo(tmp_path / "first")
    second = make_repo(tmp_path / "second")
    source = CancellationTokenSource()

    class CancellingClassifier(RepositoryClassifier):
        async def is_repository(self, path: Path | str) -> bool:
            result = await super().is_repository(path)
            source.cancel()
            return result

    result = await scanner.scan(
        [WorkspaceRoot(first), WorkspaceRoot(second)],
        CancellingClassifier(),
        source.token,
    )

    assert result == [RepositoryDescriptor(first, "first")]


@pytest.mark.asyncio
async def test_get_subfolders_lists_directories_only(tmp_path: Path) -> None:
    """Only immediate child directories are returned, including hidden ones."""
    (tmp_path / "one").mkdir()
    (tmp_path / ".hidden").mkdir()
    (tmp_path / "file.txt").touch()

    result = await scanner.get_subfolders(tmp_path)

    assert set(result) == {tmp_path / "one", tmp_path / ".hidden"}
