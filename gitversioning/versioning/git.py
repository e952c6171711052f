"""
Git access for version computation.

This module wraps GitPython behind the small surface the versioning code
needs: the head commit, parent links, file contents at a commit and a dirty
check for the working copy. Every GitPython failure is re-raised as a
``RepositoryAccessError``.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional, Protocol, Sequence, Union

from git import Repo
from git.exc import BadName, GitError, InvalidGitRepositoryError, ODBError

from .exceptions import RepositoryAccessError

logger = logging.getLogger(__name__)


class Commit(Protocol):
    """What the versioning code needs from a commit."""

    @property
    def id(self) -> str: ...

    @property
    def parents(self) -> Sequence["Commit"]: ...

    def read_file(self, path: str) -> Optional[bytes]: ...


class GitCommit:
    """A GitPython commit exposed through the ``Commit`` protocol."""

    def __init__(self, commit, location: str = ""):
        self._commit = commit
        self._location = location

    @property
    def id(self) -> str:
        """The full hex sha."""
        return self._commit.hexsha

    @property
    def parents(self) -> Sequence["GitCommit"]:
        try:
            return [GitCommit(p, self._location) for p in self._commit.parents]
        except (GitError, ODBError, ValueError) as e:
            raise RepositoryAccessError(
                self._location, f"cannot read parents of {self.id}: {e}"
            ) from e

    def read_file(self, path: str) -> Optional[bytes]:
        """
        Read a file as of this commit.

        Returns:
            The blob content, or None if the path does not exist or is not a file
        """
        try:
            obj = self._commit.tree / path
        except KeyError:
            return None
        except (GitError, ODBError, ValueError) as e:
            raise RepositoryAccessError(
                self._location, f"cannot read {path} at {self.id}: {e}"
            ) from e
        if obj.type != "blob":
            return None
        try:
            return obj.data_stream.read()
        except (GitError, ODBError) as e:
            raise RepositoryAccessError(
                self._location, f"cannot read {path} at {self.id}: {e}"
            ) from e

    def __eq__(self, other) -> bool:
        if not isinstance(other, GitCommit):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f"GitCommit('{self.id[:10]}')"


class GitRepository:
    """
    A repository handle, used as a context manager.

    The underlying GitPython ``Repo`` is released when the context exits,
    whether or not the body raised.
    """

    def __init__(self, repo: Repo):
        self._repo = repo
        self.location = repo.working_tree_dir or repo.git_dir

    @classmethod
    def open(cls, path: Union[str, Path]) -> "GitRepository":
        """
        Open the repository containing ``path``.

        Raises:
            RepositoryAccessError: If no repository is found or it cannot be read
        """
        try:
            repo = Repo(str(path), search_parent_directories=True)
        except (GitError, ODBError) as e:
            raise RepositoryAccessError(str(path), str(e) or type(e).__name__) from e
        logger.debug(f"Opened git repository at {repo.working_tree_dir}")
        return cls(repo)

    @classmethod
    def discover(cls, path: Union[str, Path]) -> Optional["GitRepository"]:
        """
        Like ``open`` but returns None when ``path`` is not inside a repository.

        Raises:
            RepositoryAccessError: If a repository exists but cannot be read
        """
        try:
            return cls.open(path)
        except RepositoryAccessError as e:
            if isinstance(e.__cause__, InvalidGitRepositoryError):
                logger.debug(f"No git repository found at {path}")
                return None
            raise

    def __enter__(self) -> "GitRepository":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._repo.close()

    @property
    def working_dir(self) -> Optional[Path]:
        """Root of the working tree (None for bare repositories)."""
        if self._repo.working_tree_dir is None:
            return None
        return Path(self._repo.working_tree_dir)

    @property
    def head(self) -> Optional[GitCommit]:
        """The commit HEAD points at, or None in a repository without commits."""
        try:
            return GitCommit(self._repo.head.commit, self.location)
        except ValueError:
            # HEAD refers to an unborn branch
            return None
        except (GitError, ODBError) as e:
            raise RepositoryAccessError(self.location, f"cannot resolve HEAD: {e}") from e

    @property
    def head_ref(self) -> Optional[str]:
        """The canonical name of the checked out branch (None when detached)."""
        try:
            if self._repo.head.is_detached:
                return None
            return self._repo.head.reference.path
        except (TypeError, ValueError):
            return None

    def commit(self, rev: str) -> GitCommit:
        """
        Look up a commit by sha, short sha or ref name.

        Raises:
            RepositoryAccessError: If the revision does not exist
        """
        try:
            return GitCommit(self._repo.commit(rev), self.location)
        except (BadName, GitError, ODBError, ValueError) as e:
            raise RepositoryAccessError(
                self.location, f"unknown revision '{rev}': {e}"
            ) from e

    def is_dirty(self, paths: Iterable[str]) -> bool:
        """
        Whether any of ``paths`` differs from HEAD in the index or working tree.

        Untracked files count as changes.
        """
        try:
            for path in paths:
                if self._repo.is_dirty(untracked_files=True, path=path):
                    return True
        except (GitError, ODBError) as e:
            raise RepositoryAccessError(self.location, f"cannot compute status: {e}") from e
        return False
