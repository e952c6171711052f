"""
Version height calculation.

The version height of a commit is the number of commits on the longest path
from that commit back through the ancestry, following only commits that
still belong to the same version epoch (the same major.minor for the same
project directory). Commits outside the epoch act as walls: the walk stops at
them on that branch while other parents of a merge are still explored.

The walk uses an explicit stack and a memo table (``HeightCache``) keyed by
``(commit id, predicate signature)``. A cached height of 0 records a commit
that does not satisfy the predicate.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Hashable, Optional, Protocol, Tuple

from .git import Commit
from .version_file import VersionConfigResolver

logger = logging.getLogger(__name__)


class HeightPredicate(Protocol):
    """Decides whether an ancestor still belongs to the starting commit's epoch."""

    signature: Hashable

    def __call__(self, commit: Commit) -> bool: ...


@dataclass(frozen=True)
class _FunctionPredicate:
    function: Callable[[Commit], bool]
    signature: Hashable

    def __call__(self, commit: Commit) -> bool:
        return self.function(commit)


def predicate_from(
    function: Callable[[Commit], bool], signature: Hashable
) -> HeightPredicate:
    """Wrap a plain callable as a predicate with an explicit cache signature."""
    return _FunctionPredicate(function, signature)


class MajorMinorPredicate:
    """
    Matches commits whose version file, for a given project directory,
    declares the given major.minor version.
    """

    def __init__(
        self,
        resolver: VersionConfigResolver,
        major: int,
        minor: int,
        relative_directory: str = "",
    ):
        self.resolver = resolver
        self.major = major
        self.minor = minor
        self.relative_directory = relative_directory or ""

    @property
    def signature(self) -> Tuple[str, int, int, str]:
        return ("major.minor", self.major, self.minor, self.relative_directory)

    def __call__(self, commit: Commit) -> bool:
        options = self.resolver.get_version_at_commit(commit, self.relative_directory)
        if options is None:
            return False
        version = options.version.version
        return version.major == self.major and version.minor == self.minor

    def __repr__(self) -> str:
        return (
            f"MajorMinorPredicate({self.major}.{self.minor}, "
            f"'{self.relative_directory}')"
        )


class HeightCache:
    """Memo table of computed heights, keyed by (commit id, predicate signature)."""

    def __init__(self) -> None:
        self._heights: Dict[Tuple[str, Hashable], int] = {}

    def get(self, commit_id: str, signature: Hashable) -> Optional[int]:
        return self._heights.get((commit_id, signature))

    def set(self, commit_id: str, signature: Hashable, height: int) -> None:
        self._heights[(commit_id, signature)] = height

    def __contains__(self, key: Tuple[str, Hashable]) -> bool:
        return key in self._heights

    def __len__(self) -> int:
        return len(self._heights)

    def clear(self) -> None:
        self._heights.clear()


class CommitHeightCalculator:
    """
    Computes version heights, reusing a ``HeightCache`` across calls.

    A single calculator may serve several projects of one repository since
    the predicate signature is part of every cache key.
    """

    def __init__(self, cache: Optional[HeightCache] = None):
        self.cache = cache if cache is not None else HeightCache()

    def _matches(self, commit: Commit, predicate: HeightPredicate) -> bool:
        """Evaluate the predicate, recording walls in the cache."""
        cached = self.cache.get(commit.id, predicate.signature)
        if cached is not None:
            return cached > 0
        if predicate(commit):
            return True
        self.cache.set(commit.id, predicate.signature, 0)
        return False

    def height(self, commit: Commit, predicate: HeightPredicate) -> int:
        """
        Length of the longest ancestry path from ``commit`` within the epoch.

        Returns:
            0 if ``commit`` itself fails the predicate, otherwise at least 1
        """
        signature = predicate.signature
        if not self._matches(commit, predicate):
            return 0

        stack = [commit]
        while stack:
            current = stack[-1]
            if self.cache.get(current.id, signature) is not None:
                stack.pop()
                continue

            best = 0
            pending = []
            for parent in current.parents:
                known = self.cache.get(parent.id, signature)
                if known is not None:
                    best = max(best, known)
                elif self._matches(parent, predicate):
                    pending.append(parent)

            if pending:
                stack.extend(pending)
                continue

            self.cache.set(current.id, signature, best + 1)
            stack.pop()

        result = self.cache.get(commit.id, signature)
        logger.debug(
            f"Height of {commit.id[:10]} under {predicate!r} is {result} "
            f"({len(self.cache)} cached entries)"
        )
        return result
