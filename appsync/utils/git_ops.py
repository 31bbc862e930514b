"""Git operations: clone upstream, switch branches, commit and push results."""

from __future__ import annotations

import logging
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo

from appsync.errors import GitOperationError, PublishError, UpstreamFetchError

logger = logging.getLogger(__name__)


@dataclass
class UpstreamClone:
    """Tracks a fetched upstream checkout.

    Use as a context manager to ensure the clone is cleaned up::

        with git.clone(url, branch, dest) as clone:
            list_packages(clone.apps_dir)
        # clone directory is deleted here
    """

    local_path: Path
    """Filesystem path to the clone root."""

    source_url: str = ""
    branch: str = ""

    def __enter__(self) -> "UpstreamClone":
        return self

    def __exit__(self, *exc) -> None:
        self.cleanup()

    @property
    def apps_dir(self) -> Path:
        return self.local_path / "apps"

    def cleanup(self) -> None:
        """Remove the clone directory."""
        if self.local_path.exists():
            shutil.rmtree(self.local_path, ignore_errors=True)


class GitClient:
    """Runs the git operations a sync run needs against one working tree."""

    def __init__(self, repo_path: str | Path):
        self.repo_path = Path(repo_path)
        self._repo: Repo | None = None

    @property
    def repo(self) -> Repo:
        if self._repo is None:
            try:
                self._repo = Repo(self.repo_path)
            except (InvalidGitRepositoryError, NoSuchPathError):
                raise GitOperationError(
                    "open", f"{self.repo_path} is not a Git repository"
                ) from None
        return self._repo

    def clone(self, url: str, branch: str, dest: str | Path | None = None) -> UpstreamClone:
        """Shallow-clone ``branch`` of ``url``.

        Args:
            url: Upstream repository URL or local path.
            branch: Branch to check out.
            dest: Target directory; replaced if it already exists. A
                temporary directory is used when omitted.

        Raises:
            UpstreamFetchError: If the clone fails for any reason.
        """
        if dest is None:
            clone_dir = Path(tempfile.mkdtemp(prefix="appsync_"))
            clone_dir.rmdir()
        else:
            clone_dir = Path(dest)
            if clone_dir.exists():
                shutil.rmtree(clone_dir)
            clone_dir.parent.mkdir(parents=True, exist_ok=True)

        logger.debug("git clone --depth=1 --branch=%s %s %s", branch, url, clone_dir)
        try:
            Repo.clone_from(url, clone_dir, depth=1, branch=branch)
        except GitCommandError as e:
            shutil.rmtree(clone_dir, ignore_errors=True)
            raise UpstreamFetchError(url, branch, _stderr(e)) from e

        return UpstreamClone(local_path=clone_dir, source_url=url, branch=branch)

    def checkout(self, branch: str, create: bool = True) -> bool:
        """Switch to ``branch``, creating it when missing and ``create`` is set.

        Returns:
            True if the branch was newly created.

        Raises:
            GitOperationError: If the branch cannot be checked out or created.
        """
        try:
            self.repo.git.checkout(branch)
            logger.debug("Switched to branch %s", branch)
            return False
        except GitCommandError as e:
            if not create:
                raise GitOperationError(f"checkout {branch}", _stderr(e)) from e

        logger.info("Branch %s doesn't exist, creating it", branch)
        try:
            self.repo.git.checkout("-b", branch)
        except GitCommandError as e:
            raise GitOperationError(f"checkout -b {branch}", _stderr(e)) from e
        return True

    def has_changes(self, paths: list[str] | None = None) -> bool:
        """True if the working tree has uncommitted changes under ``paths``."""
        args = ["--porcelain"]
        if paths:
            args += ["--", *paths]
        return bool(self.repo.git.status(*args).strip())

    def commit(self, message: str, paths: list[str] | None = None) -> bool:
        """Stage ``paths`` (everything when omitted) and commit.

        Changes outside ``paths`` are left alone and never make a commit happen.

        Returns:
            False if there was nothing to commit.

        Raises:
            PublishError: If staging or committing fails.
        """
        branch = self.current_branch()
        try:
            if not self.has_changes(paths):
                return False
            if paths:
                self.repo.git.add("-A", "--", *paths)
            else:
                self.repo.git.add("-A")
            # Staged content can still match HEAD (e.g. a revert to the same bytes)
            if not self.repo.git.diff("--cached", "--name-only").strip():
                return False
            self.repo.git.commit("-m", message)
        except GitCommandError as e:
            raise PublishError(branch, _stderr(e)) from e
        logger.debug("Committed: %s", message)
        return True

    def push(self, branch: str, force: bool = True) -> None:
        """Push ``branch`` to origin.

        Raises:
            PublishError: If the push is rejected or the remote is unreachable.
        """
        args = ["origin", branch]
        if force:
            args.append("--force")
        try:
            self.repo.git.push(*args)
        except GitCommandError as e:
            raise PublishError(branch, _stderr(e)) from e

    def current_branch(self) -> str:
        if self.repo.head.is_detached:
            return "detached"
        return str(self.repo.active_branch)


def _stderr(error: GitCommandError) -> str:
    return (error.stderr or str(error)).strip()
