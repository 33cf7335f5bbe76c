import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .constants import APP_NAME, DEFAULT_REMOTE, GIT_MARKER

logger = logging.getLogger(APP_NAME)


class GitError(RuntimeError):
    """Raised when a git command cannot be started or exits non-zero.

    Attributes:
        args_list (list[str]): The git arguments that were executed.
        returncode (int | None): The exit code, or None if git never ran.
        stderr (str): The captured diagnostic output.
    """

    def __init__(
        self, args_list: list[str], returncode: int | None, stderr: str
    ) -> None:
        self.args_list = args_list
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip() or f"exit code {returncode}"
        super().__init__(f"git {' '.join(args_list)} failed: {detail}")


@dataclass(frozen=True)
class GitResult:
    """Captured output of a successful git command."""

    stdout: str
    stderr: str


class GitRepo:
    """An asyncio wrapper around the Git command-line interface for one repository.

    Each method spawns a git subprocess with `asyncio.create_subprocess_exec`
    and suspends until it exits, so many repositories can be driven
    concurrently from a single event loop.

    Attributes:
        path (Path): The file system path to the repository root.
        remote (str): The remote whose tracking branches are compared.
    """

    def __init__(self, path: Path, remote: str = DEFAULT_REMOTE):
        """Initializes the GitRepo instance.

        Args:
            path (Path): The path to the repository root directory.
            remote (str, optional): The remote name. Defaults to 'origin'.

        Raises:
            ValueError: If the specified path does not contain a .git entry.
        """
        self.path = path
        self.remote = remote
        if not (self.path / GIT_MARKER).exists():
            raise ValueError(f"Not a git repository: {self.path}")

    async def _run(self, args: list[str]) -> GitResult:
        """Executes a Git command within the repository context.

        Args:
            args (list[str]): A list of arguments to pass to the git command.

        Returns:
            GitResult: The stripped stdout and stderr of the command.

        Raises:
            GitError: If git cannot be started or returns a non-zero exit code.
        """
        env = os.environ.copy()
        # Never block a background cycle on a credential prompt.
        env["GIT_TERMINAL_PROMPT"] = "0"
        env.setdefault("GIT_SSH_COMMAND", "ssh -o BatchMode=yes")
        try:
            proc = await asyncio.create_subprocess_exec(
                "git",
                *args,
                cwd=str(self.path),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
            )
        except OSError as e:
            raise GitError(args, None, str(e)) from e

        stdout, stderr = await proc.communicate()
        out = stdout.decode(errors="replace").strip()
        err = stderr.decode(errors="replace").strip()
        if proc.returncode != 0:
            raise GitError(args, proc.returncode, err)
        return GitResult(out, err)

    async def fetch(self) -> GitResult:
        """Downloads objects and refs from the remote.

        Returns:
            GitResult: The command output (git reports progress on stderr).
        """
        return await self._run(["fetch", self.remote])

    async def current_branch(self) -> str | None:
        """Retrieves the name of the currently checked-out branch.

        Returns:
            str | None: The branch name, or None when HEAD is detached or the
                        branch cannot be determined.
        """
        try:
            result = await self._run(["rev-parse", "--abbrev-ref", "HEAD"])
        except GitError as e:
            logger.debug(f"rev-parse failed in {self.path.name}: {e}")
            return None
        branch = result.stdout
        if not branch or branch == "HEAD":
            return None
        return branch

    async def ahead_count(self, branch: str) -> int:
        """Counts commits on the remote tracking branch that HEAD does not have.

        Args:
            branch (str): The local branch name; compared with `<remote>/<branch>`.

        Returns:
            int: The number of commits to integrate.

        Raises:
            GitError: If the tracking ref is missing or the output is not a number.
        """
        args = ["rev-list", "--count", f"HEAD..{self.remote}/{branch}"]
        result = await self._run(args)
        try:
            return int(result.stdout)
        except ValueError as e:
            raise GitError(
                args, 0, f"unexpected rev-list output {result.stdout!r}"
            ) from e

    async def pull(self) -> GitResult:
        """Integrates the remote tracking branch into the current branch.

        Returns:
            GitResult: The command output. Content on stderr does not mean failure.
        """
        return await self._run(["pull"])
