"""
Versioning module for gitversioning.

This module holds all of the version computation logic. A version is never
bumped by hand or by CI state: it is derived from a ``version.json`` file
committed next to the project and from the git history of that file.

ARCHITECTURAL LAYERS:
====================

1. **Version types** (version.py):
   - Version: numeric version with up to four components, where the build
     and revision may be undefined
   - SemanticVersion: the ``major.minor[.build][-prerelease][+metadata]``
     value of a version file, including the ``{height}`` macro

2. **Configuration** (options.py, version_file.py):
   - VersionOptions: immutable pydantic model of a version file, with one
     ``*_or_default`` resolver per optional field
   - VersionConfigResolver: finds the nearest version file for a directory,
     on disk or at a commit

3. **Git access** (git.py):
   - GitRepository / GitCommit: GitPython-backed access to commits, parent
     links, file contents and working copy status

4. **Version height** (height.py):
   - CommitHeightCalculator: longest path through the ancestry that stays in
     the same major.minor epoch, memoized in a HeightCache

5. **Aggregation and formatting** (oracle.py, identity.py, formatting.py):
   - VersionOracle: decides which configuration governs, computes the height
     and builds a VersionIdentity
   - VersionIdentity: immutable result exposing SemVer1, SemVer2, NuGet, npm,
     assembly and cloud build versions
   - formatting: pure string construction used by VersionIdentity

6. **CI integration** (cloud.py):
   - CloudBuild providers that report the ref being built and accept the
     build number and variables

7. **Exception hierarchy** (exceptions.py)

VERSION HEIGHT:
==============

The version height of a commit is the number of commits on the longest path
back through its ancestry whose version file declares the same major.minor
version. It only ever grows while the major.minor stays the same, which makes
it a suitable build number. An uncommitted change of major.minor in the
working copy yields a height of 0.
"""

from .cloud import CloudBuild, detect_cloud_build, get_cloud_build
from .exceptions import (
    ConfigParseError,
    InvariantViolation,
    RepositoryAccessError,
    UnsupportedConversionError,
    VersioningError,
)
from .git import GitCommit, GitRepository
from .height import (
    CommitHeightCalculator,
    HeightCache,
    MajorMinorPredicate,
    predicate_from,
)
from .identity import VersionIdentity
from .options import VersionOptions
from .oracle import VersionOracle, get_version_identity
from .version import SemanticVersion, Version
from .version_file import VersionConfigResolver

__all__ = [
    # Computation
    "VersionOracle",
    "VersionIdentity",
    "get_version_identity",
    "CommitHeightCalculator",
    "HeightCache",
    "MajorMinorPredicate",
    "predicate_from",
    # Configuration
    "VersionOptions",
    "VersionConfigResolver",
    # Version types
    "Version",
    "SemanticVersion",
    # Collaborators
    "GitRepository",
    "GitCommit",
    "CloudBuild",
    "detect_cloud_build",
    "get_cloud_build",
    # Exceptions
    "VersioningError",
    "ConfigParseError",
    "RepositoryAccessError",
    "UnsupportedConversionError",
    "InvariantViolation",
]
