"""
Version computation for a project in a git repository.

``VersionOracle`` combines the committed and working-copy version files of a
project with the version height of its commit and produces a
``VersionIdentity``. One oracle may compute several projects of the same
repository; they then share its height cache.
"""

import logging
import re
from pathlib import Path
from typing import Optional, Union

from .cloud import CloudBuild
from .exceptions import RepositoryAccessError, VersioningError
from .formatting import replace_macros
from .git import Commit, GitRepository
from .height import CommitHeightCalculator, HeightCache, MajorMinorPredicate
from .identity import VersionIdentity
from .options import VersionOptions, build_number_offset_or_default
from .version import VERSION_0, Version
from .version_file import VersionConfigResolver, candidate_paths

logger = logging.getLogger(__name__)

# Largest value allowed in the build and revision components (0xFFFF is reserved).
MAXIMUM_BUILD_NUMBER_OR_REVISION = 0xFFFE


def _major_minor(options: Optional[VersionOptions]) -> Version:
    if options is None:
        return VERSION_0
    version = options.version.version
    return Version(version.major, version.minor)


def is_version_file_changed(
    committed: Optional[VersionOptions], working: Optional[VersionOptions]
) -> bool:
    """Whether the working copy configuration differs from the committed one."""
    if working is not None:
        return working != committed
    # A missing working version is a change only if one was committed.
    return committed is not None


def truncated_commit_id(commit_id: str) -> int:
    """The first two bytes of a commit id as a little-endian 16-bit integer."""
    raw = bytes.fromhex(commit_id[:4])
    return raw[0] | (raw[1] << 8)


def version_from_height(
    commit: Optional[Commit], options: Optional[VersionOptions], height: int
) -> Version:
    """
    Fill in the commit-derived components of the configured version.

    The height (plus the build number offset) goes in the build component of
    a two-component version and in the revision of a three-component one.
    A two-component version also gets a revision derived from the commit id.

    Raises:
        VersioningError: If the adjusted height is negative or no longer fits
            in a version component
    """
    if options is None:
        return VERSION_0

    base = options.version.version
    build, revision = base.build, base.revision
    field_count = base.field_count

    if field_count < 4:
        offset = build_number_offset_or_default(options)
        adjusted_height = 0 if height == 0 else height + offset
        if adjusted_height < 0:
            raise VersioningError(
                f"Version height {height} plus offset {offset} is negative. "
                "Raise buildNumberOffset or remove it."
            )
        if adjusted_height > MAXIMUM_BUILD_NUMBER_OR_REVISION:
            raise VersioningError(
                f"Version height {height} plus offset {offset} exceeds the "
                f"maximum version component value {MAXIMUM_BUILD_NUMBER_OR_REVISION}. "
                "Bump the major or minor version or lower buildNumberOffset."
            )
        if field_count == 2:
            build = adjusted_height
        else:
            revision = adjusted_height

    if field_count == 2:
        revision = (
            min(MAXIMUM_BUILD_NUMBER_OR_REVISION, truncated_commit_id(commit.id))
            if commit is not None
            else 0
        )

    return Version(base.major, base.minor, build, revision)


class VersionOracle:
    """
    Computes ``VersionIdentity`` objects for projects of one repository.

    Args:
        repository: An open repository, or None to compute from version
            files on disk only
        cloud_build: The CI provider, if any, for the ref being built
        height_cache: Memo table to share with other oracles
        resolver: Version file resolver
    """

    def __init__(
        self,
        repository: Optional[GitRepository] = None,
        cloud_build: Optional[CloudBuild] = None,
        height_cache: Optional[HeightCache] = None,
        resolver: Optional[VersionConfigResolver] = None,
    ):
        self.repository = repository
        self.cloud_build = cloud_build
        self.resolver = resolver or VersionConfigResolver()
        self.calculator = CommitHeightCalculator(height_cache)

    def _relative_directory(
        self, project_directory: Path, override: Optional[str]
    ) -> str:
        if override is not None:
            return override.replace("\\", "/").strip("/")
        if self.repository is None or self.repository.working_dir is None:
            return ""
        root = self.repository.working_dir.resolve()
        try:
            relative = project_directory.relative_to(root)
        except ValueError:
            raise RepositoryAccessError(
                str(root),
                f"project directory {project_directory} is outside the working tree",
            )
        return "" if str(relative) == "." else relative.as_posix()

    def _resolve_commit(self, commit: Optional[Union[str, Commit]]) -> Optional[Commit]:
        if commit is None:
            return self.repository.head if self.repository is not None else None
        if isinstance(commit, str):
            if self.repository is None:
                raise RepositoryAccessError(
                    commit, "a commit was requested but no repository is available"
                )
            return self.repository.commit(commit)
        return commit

    def _working_options(
        self,
        project_directory: Path,
        commit: Optional[Commit],
        committed: Optional[VersionOptions],
        relative_directory: str,
        explicit_commit: bool,
    ) -> Optional[VersionOptions]:
        if explicit_commit:
            return committed
        if (
            self.repository is not None
            and commit is not None
            and committed is not None
            and not self.repository.is_dirty(candidate_paths(relative_directory))
        ):
            logger.debug("Version files are unchanged in the working copy")
            return committed
        return self.resolver.get_version(project_directory)

    def _version_height(
        self,
        commit: Optional[Commit],
        relative_directory: str,
        committed: Optional[VersionOptions],
        working: Optional[VersionOptions],
    ) -> int:
        if commit is None:
            return 0

        head_major_minor = _major_minor(committed)
        if is_version_file_changed(committed, working):
            if working is None or _major_minor(working) != head_major_minor:
                # No commit carries the new major.minor yet.
                logger.debug("Working copy changes major.minor; height is 0")
                return 0

        predicate = MajorMinorPredicate(
            self.resolver,
            head_major_minor.major,
            head_major_minor.minor,
            relative_directory,
        )
        return self.calculator.height(commit, predicate)

    def _is_public_release(
        self, options: Optional[VersionOptions], building_ref: Optional[str]
    ) -> bool:
        if not building_ref or options is None or not options.public_release_ref_spec:
            return False
        return any(
            re.search(expr, building_ref) for expr in options.public_release_ref_spec
        )

    def compute(
        self,
        project_directory: Union[str, Path],
        commit: Optional[Union[str, Commit]] = None,
        override_build_number_offset: Optional[int] = None,
        project_path_relative_to_repo_root: Optional[str] = None,
        public_release: Optional[bool] = None,
    ) -> VersionIdentity:
        """
        Compute the version of the project in ``project_directory``.

        Args:
            project_directory: Directory of the project
            commit: Commit (or revision) to compute for; defaults to HEAD, in
                which case uncommitted version file changes are honoured
            override_build_number_offset: Replaces ``buildNumberOffset``
            project_path_relative_to_repo_root: Repository-relative project
                directory, when it cannot be derived from ``project_directory``
            public_release: Forces the release mode instead of matching
                ``publicReleaseRefSpec`` against the building ref

        Raises:
            ConfigParseError: If any version file involved is malformed
            RepositoryAccessError: If the repository cannot be read
        """
        project_directory = Path(project_directory).resolve()
        relative_directory = self._relative_directory(
            project_directory, project_path_relative_to_repo_root
        )
        explicit_commit = commit is not None
        commit = self._resolve_commit(commit)

        committed = self.resolver.get_version_at_commit(commit, relative_directory)
        working = self._working_options(
            project_directory, commit, committed, relative_directory, explicit_commit
        )

        if override_build_number_offset is not None:
            if committed is not None:
                committed = committed.with_build_number_offset(
                    override_build_number_offset
                )
            if working is not None:
                working = working.with_build_number_offset(override_build_number_offset)

        options = committed if committed is not None else working
        changed = is_version_file_changed(committed, working)
        logger.debug(
            f"Project '{relative_directory}': committed={committed is not None}, "
            f"working={working is not None}, changed={changed}"
        )

        height = self._version_height(commit, relative_directory, committed, working)

        if self.repository is not None:
            version = version_from_height(
                commit, working if changed else committed, height
            )
        else:
            version = options.version.version if options is not None else VERSION_0

        offset = build_number_offset_or_default(options)
        prerelease = replace_macros(
            options.version.prerelease if options is not None else "", height + offset
        )
        build_metadata = tuple(
            replace_macros(identifier, height + offset)
            for identifier in (
                options.version.build_metadata_identifiers if options is not None else []
            )
        )

        cloud = self.cloud_build
        if commit is not None:
            commit_id = commit.id
        else:
            commit_id = cloud.git_commit_id if cloud is not None else None

        building_ref = None
        if cloud is not None:
            building_ref = cloud.building_tag or cloud.building_branch
        if building_ref is None and self.repository is not None:
            building_ref = self.repository.head_ref

        if public_release is None:
            public_release = self._is_public_release(options, building_ref)

        identity = VersionIdentity(
            version=version,
            version_height=height,
            version_height_offset=offset,
            prerelease_version=prerelease,
            build_metadata=build_metadata,
            git_commit_id=commit_id,
            public_release=public_release,
            options=options,
            building_ref=building_ref,
        )
        logger.debug(
            f"Computed version {identity.version} (height {height}) "
            f"for '{relative_directory}' at {commit_id}"
        )
        return identity


def get_version_identity(
    project_directory: Union[str, Path],
    git_repo_directory: Optional[Union[str, Path]] = None,
    commit: Optional[str] = None,
    cloud_build: Optional[CloudBuild] = None,
    override_build_number_offset: Optional[int] = None,
    project_path_relative_to_repo_root: Optional[str] = None,
    public_release: Optional[bool] = None,
) -> VersionIdentity:
    """
    Open the repository containing a project, compute its version and close it.

    Projects outside any git repository get a version computed from their
    version file alone, with a height of 0.
    """
    repository = GitRepository.discover(git_repo_directory or project_directory)
    if repository is None:
        logger.warning(
            f"No git repository found for {project_directory}; version height is 0"
        )
        return VersionOracle(None, cloud_build).compute(
            project_directory,
            commit=commit,
            override_build_number_offset=override_build_number_offset,
            project_path_relative_to_repo_root=project_path_relative_to_repo_root,
            public_release=public_release,
        )

    with repository:
        return VersionOracle(repository, cloud_build).compute(
            project_directory,
            commit=commit,
            override_build_number_offset=override_build_number_offset,
            project_path_relative_to_repo_root=project_path_relative_to_repo_root,
            public_release=public_release,
        )
