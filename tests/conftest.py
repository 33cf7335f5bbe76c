"""Shared fixtures: an in-memory stand-in for the git subprocess invoker."""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from git_autopull.git_wrapper import GitError, GitResult


@dataclass
class RemoteState:
    """Scripted behaviour of one repository's git commands."""

    branch: str | None = "main"
    ahead: int = 0
    fetch_error: Exception | None = None
    branch_error: Exception | None = None
    pull_error: Exception | None = None
    pull_stderr: str = ""
    fetch_gate: asyncio.Event | None = None
    on_fetch: Callable[[], None] | None = None
    calls: list[str] = field(default_factory=list)


class FakeGit:
    """Mimics `GitRepo` for one path using a `RemoteState`."""

    def __init__(self, path: Path, state: RemoteState) -> None:
        self.path = path
        self.state = state

    async def fetch(self) -> GitResult:
        self.state.calls.append("fetch")
        if self.state.fetch_gate is not None:
            await self.state.fetch_gate.wait()
        if self.state.on_fetch is not None:
            self.state.on_fetch()
        if self.state.fetch_error is not None:
            raise self.state.fetch_error
        return GitResult("", "")

    async def current_branch(self) -> str | None:
        self.state.calls.append("current_branch")
        if self.state.branch_error is not None:
            raise self.state.branch_error
        return self.state.branch

    async def ahead_count(self, branch: str) -> int:
        self.state.calls.append(f"ahead_count:{branch}")
        return self.state.ahead

    async def pull(self) -> GitResult:
        self.state.calls.append("pull")
        if self.state.pull_error is not None:
            raise self.state.pull_error
        return GitResult("Fast-forward", self.state.pull_stderr)


class FakeRemotes:
    """A git factory keyed by repository path."""

    def __init__(self) -> None:
        self.states: dict[Path, RemoteState] = {}

    def add(self, path: Path, **kwargs: object) -> RemoteState:
        state = RemoteState(**kwargs)
        self.states[path] = state
        return state

    def __call__(self, path: Path) -> FakeGit:
        if path not in self.states:
            raise GitError(["fetch"], 128, f"unknown repository {path}")
        return FakeGit(path, self.states[path])


@pytest.fixture
def remotes() -> FakeRemotes:
    """Provides an empty `FakeRemotes` factory."""
    return FakeRemotes()


@pytest.fixture
def make_repo() -> Callable[[Path], Path]:
    """Returns a helper that creates a folder with a `.git` marker."""

    def _make(path: Path) -> Path:
        (path / ".git").mkdir(parents=True)
        return path

    return _make
