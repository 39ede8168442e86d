"""Git operations layer for commitsmith."""

from __future__ import annotations

from pathlib import Path

import structlog
from git import Repo
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from commitsmith.errors import CommitSmithError
from commitsmith.models import CommitOutcome

logger = structlog.get_logger(__name__)

PENDING_MESSAGE_FILENAME = "COMMIT_EDITMSG"


class GitError(CommitSmithError):
    """Custom exception for git operation errors."""
    pass


def get_repo(path: str | Path = ".") -> Repo:
    """Get the git repository at the given path.

    Args:
        path: Path inside the repository. Defaults to current directory.

    Returns:
        The git Repo object.

    Raises:
        GitError: If the path is not a valid git repository.
    """
    try:
        return Repo(path, search_parent_directories=True)
    except (InvalidGitRepositoryError, NoSuchPathError):
        raise GitError(f"Not a git repository: {path}")


def get_staged_files(repo: Repo) -> list[str]:
    """List paths with changes in the index.

    Works on a fresh repository with no commits as well.
    """
    try:
        output = repo.git.diff("--cached", "--name-only")
    except GitCommandError as e:
        raise GitError(f"Failed to list staged files: {e}")
    return [line for line in output.splitlines() if line.strip()]


def get_unstaged_files(repo: Repo) -> list[str]:
    """List modified, deleted and untracked paths not yet in the index.

    Args:
        repo: The git Repo object.

    Returns:
        Paths relative to the repository root, without duplicates.
    """
    files: list[str] = []
    try:
        for diff in repo.index.diff(None):
            path = diff.b_path or diff.a_path
            if path and path not in files:
                files.append(path)
        for untracked in repo.untracked_files:
            if untracked not in files:
                files.append(untracked)
    except GitCommandError as e:
        raise GitError(f"Failed to list unstaged files: {e}")
    return files


def stage_files(repo: Repo, file_paths: list[str]) -> None:
    """Stage specific files for commit.

    Args:
        repo: The git Repo object.
        file_paths: List of file paths to stage. Deleted paths stage their removal.

    Raises:
        GitError: If staging fails.
    """
    if not file_paths:
        return
    try:
        # Use git add command directly (handles deletions and empty files better than index.add)
        repo.git.add("--all", "--", *file_paths)
    except GitCommandError as e:
        raise GitError(f"Failed to stage files: {e}")


def get_staged_diff(repo: Repo) -> str:
    """Get the complete diff of staged changes, without path prefixes."""
    try:
        return repo.git.diff("--cached", "--no-prefix")
    except GitCommandError as e:
        raise GitError(f"Failed to get staged diff: {e}")


def write_pending_message(repo: Repo, message: str) -> Path:
    """Write the message to .git/COMMIT_EDITMSG so an editor can pick it up.

    Returns:
        Path of the written file.
    """
    path = Path(repo.git_dir) / PENDING_MESSAGE_FILENAME
    try:
        path.write_text(message, encoding="utf-8")
    except OSError as e:
        raise GitError(f"Failed to prepare commit message: {e}")
    return path


def create_commit(repo: Repo, message: str) -> str:
    """Create a commit with the staged changes.

    Args:
        repo: The git Repo object.
        message: The commit message.

    Returns:
        The short hash of the new commit.

    Raises:
        GitError: If the commit fails.
    """
    try:
        # Use git commit command directly (handles initial commits and hooks)
        repo.git.commit("-m", message)
        return repo.git.rev_parse("HEAD", short=7)
    except GitCommandError as e:
        raise GitError(f"Failed to commit: {e.stderr.strip() if e.stderr else e}")


class GitRepository:
    """Repository adapter used by the orchestrator.

    The Repo object is resolved on every call: the working tree may change
    between runs and the adapter must never answer from a stale handle.
    """

    def __init__(self, path: str | Path = "."):
        self.path = Path(path)

    def _repo(self) -> Repo:
        return get_repo(self.path)

    def is_repository(self) -> bool:
        try:
            self._repo()
        except GitError:
            return False
        return True

    def has_staged_changes(self) -> bool:
        return bool(get_staged_files(self._repo()))

    def list_staged_files(self) -> list[str]:
        return get_staged_files(self._repo())

    def list_unstaged_files(self) -> list[str]:
        return get_unstaged_files(self._repo())

    def stage(self, files: list[str]) -> None:
        stage_files(self._repo(), files)
        logger.debug("files_staged", count=len(files))

    def get_staged_diff_text(self) -> str:
        return get_staged_diff(self._repo())

    def persist_pending_message(self, text: str) -> None:
        path = write_pending_message(self._repo(), text)
        logger.debug("pending_message_written", path=str(path))

    def commit(self, text: str) -> CommitOutcome:
        try:
            sha = create_commit(self._repo(), text)
        except GitError as e:
            return CommitOutcome(success=False, error=e.message)
        return CommitOutcome(success=True, commit_sha=sha, message=f"Committed successfully: {sha}")
