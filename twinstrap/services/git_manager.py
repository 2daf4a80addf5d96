"""Git operations on local working copies."""
import shutil
from pathlib import Path
from typing import Callable, Optional, Tuple, Type

from twinstrap.core.errors import (
    EXIT_PROVISION,
    EXIT_PUBLISH,
    CommandError,
    CommandTimeout,
    RepositoryError,
)
from twinstrap.core.logger import get_logger
from twinstrap.core.retry import retry_with_policy
from twinstrap.models.project import GitIdentity, RetryPolicy
from twinstrap.services.runner import CommandRunner

logger = get_logger(__name__)


class GitManager:
    """Clone, pull, commit and push whole-repository snapshots."""

    def __init__(
        self,
        runner: CommandRunner,
        retry_policy: Optional[RetryPolicy] = None,
        identity: Optional[GitIdentity] = None,
    ):
        self.runner = runner
        self.retry_policy = retry_policy or RetryPolicy()
        self.identity = identity or GitIdentity()

    def _retrying(
        self,
        func: Callable,
        description: str,
        exceptions: Tuple[Type[Exception], ...] = (CommandError,),
        on_failure: Optional[Callable[[Exception], None]] = None,
    ):
        return retry_with_policy(func, self.retry_policy, exceptions, description=description, on_failure=on_failure)

    def _git(self, path: Path, *args: str, check: bool = True):
        return self.runner.run(["git", *args], cwd=path, check=check)

    def is_working_copy(self, path: Path) -> bool:
        """Check if a git working copy exists at path."""
        return (Path(path) / ".git").exists()

    def clone_repo(self, url: str, path: Path, branch: str = "main") -> None:
        """Clone url into path, retrying transient failures.

        A failed attempt that left a partial checkout behind has it removed
        before the next attempt, and after the last one. A directory that
        existed before the clone is never removed.

        Raises:
            RepositoryError: Clone failed after all attempts
        """
        path = Path(path)
        existed = path.exists()
        if not self.runner.mock:
            path.parent.mkdir(parents=True, exist_ok=True)

        def clone():
            return self.runner.run(["git", "clone", "-b", branch, url, str(path)])

        def discard_partial(error: Exception) -> None:
            if not existed and path.exists():
                logger.warning(f"Removing partial clone at {path}")
                shutil.rmtree(path)

        logger.info(f"Cloning {url} (branch: {branch}) into {path}")
        try:
            self._retrying(clone, f"git clone {url}", on_failure=discard_partial)
        except CommandError as e:
            raise RepositoryError(f"Failed to clone {url}", context=str(e), exit_code=EXIT_PROVISION) from e
        logger.info(f"✓ Cloned repository to {path}")

    def pull_repo(self, path: Path) -> None:
        """Fast-forward the working copy to its remote tracking branch.

        Conflicts and non-fast-forward histories are reported, never resolved.
        Only timeouts are retried.

        Raises:
            RepositoryError: Pull failed
        """
        logger.info(f"Pulling latest changes in {path}")
        try:
            self._retrying(
                lambda: self._git(Path(path), "pull", "--ff-only"),
                f"git pull in {path}",
                exceptions=(CommandTimeout,),
            )
        except CommandError as e:
            raise RepositoryError(
                f"Failed to pull {path}",
                context=f"{e}. Resolve local changes or divergence manually and re-run.",
                exit_code=EXIT_PROVISION,
            ) from e
        logger.info(f"✓ Pulled latest changes")

    def add_all(self, path: Path) -> None:
        try:
            self._git(Path(path), "add", "-A")
        except CommandError as e:
            raise RepositoryError(f"Failed to stage changes in {path}", context=str(e), exit_code=EXIT_PUBLISH) from e

    def has_staged_changes(self, path: Path) -> bool:
        """True when the index differs from HEAD.

        Raises:
            RepositoryError: The index could not be inspected
        """
        if self.runner.mock:
            return True
        try:
            result = self._git(Path(path), "diff", "--cached", "--quiet", check=False)
        except CommandError as e:
            raise RepositoryError(
                f"Failed to inspect staged changes in {path}", context=str(e), exit_code=EXIT_PUBLISH
            ) from e
        return result.returncode != 0

    def commit(self, path: Path, message: str) -> Optional[str]:
        """Commit staged changes and return the new commit hash.

        Raises:
            RepositoryError: Commit failed
        """
        args = []
        if self.identity.name:
            args += ["-c", f"user.name={self.identity.name}"]
        if self.identity.email:
            args += ["-c", f"user.email={self.identity.email}"]
        try:
            self._git(Path(path), *args, "commit", "-m", message)
        except CommandError as e:
            raise RepositoryError(f"Failed to commit in {path}", context=str(e), exit_code=EXIT_PUBLISH) from e
        commit = self.get_current_commit(path)
        logger.info(f"✓ Committed {commit or ''} \"{message}\"")
        return commit

    def push(self, path: Path) -> None:
        """Push to the remote tracking branch, retrying transient failures.

        Raises:
            RepositoryError: Push failed after all attempts
        """
        logger.info(f"Pushing {path}")
        try:
            self._retrying(lambda: self._git(Path(path), "push"), f"git push in {path}")
        except CommandError as e:
            raise RepositoryError(f"Failed to push {path}", context=str(e), exit_code=EXIT_PUBLISH) from e
        logger.info(f"✓ Pushed changes")

    def get_current_commit(self, path: Path) -> Optional[str]:
        """Get current commit hash, or None if it cannot be read."""
        if self.runner.mock:
            return "mock-commit"
        try:
            result = self._git(Path(path), "rev-parse", "--short", "HEAD")
        except CommandError as e:
            logger.debug(f"Failed to get commit hash: {e}")
            return None
        return result.stdout.strip() or None
