"""
The computed version of one project at one commit.
"""

from dataclasses import dataclass, replace
from functools import cached_property
from typing import Dict, List, Optional, Tuple

from . import formatting
from .exceptions import InvariantViolation
from .options import (
    VersionOptions,
    cloud_build_number_enabled_or_default,
    semver1_numeric_identifier_padding_or_default,
    set_all_variables_or_default,
    set_version_variables_or_default,
)
from .version import Version


@dataclass(frozen=True)
class VersionIdentity:
    """
    Version information for a (project, commit, build context) triple.

    Instances are immutable and derived strings are cached on first access.
    To look at the same inputs in a different release mode, use
    ``with_public_release`` which builds a new identity.
    """

    version: Version
    version_height: int = 0
    version_height_offset: int = 0
    prerelease_version: str = ""
    build_metadata: Tuple[str, ...] = ()
    git_commit_id: Optional[str] = None
    public_release: bool = False
    options: Optional[VersionOptions] = None
    building_ref: Optional[str] = None

    def __post_init__(self) -> None:
        if self.version_height < 0:
            raise InvariantViolation(
                f"Version height must not be negative, got {self.version_height}"
            )
        if self.prerelease_version and not self.prerelease_version.startswith("-"):
            raise InvariantViolation(
                f"Prerelease '{self.prerelease_version}' does not start with '-'"
            )

    def with_public_release(self, public_release: bool) -> "VersionIdentity":
        """A new identity computed from the same inputs in another release mode."""
        return replace(self, public_release=public_release)

    @property
    def version_file_found(self) -> bool:
        return self.options is not None

    @property
    def version_height_with_offset(self) -> int:
        return self.version_height + self.version_height_offset

    @property
    def build_number(self) -> int:
        """The third version component (0 when undefined)."""
        return max(0, self.version.build)

    @property
    def major_minor_version(self) -> Version:
        return Version(self.version.major, self.version.minor)

    @property
    def assembly_file_version(self) -> Version:
        return self.version

    @property
    def git_commit_id_short(self) -> Optional[str]:
        return formatting.commit_id_short(self.git_commit_id)

    @property
    def semver1_numeric_identifier_padding(self) -> int:
        return semver1_numeric_identifier_padding_or_default(self.options)

    @property
    def cloud_build_number_enabled(self) -> bool:
        return cloud_build_number_enabled_or_default(self.options)

    @property
    def cloud_build_all_vars_enabled(self) -> bool:
        return set_all_variables_or_default(self.options)

    @property
    def cloud_build_version_vars_enabled(self) -> bool:
        return set_version_variables_or_default(self.options)

    @cached_property
    def simple_version(self) -> Version:
        return formatting.simple_version(self.version)

    @cached_property
    def assembly_version(self) -> Version:
        return formatting.assembly_version(self.version, self.options)

    @cached_property
    def build_metadata_with_commit_id(self) -> List[str]:
        return formatting.build_metadata_with_commit_id(self)

    @cached_property
    def build_metadata_fragment(self) -> str:
        return formatting.format_build_metadata(self.build_metadata_with_commit_id)

    @cached_property
    def assembly_informational_version(self) -> str:
        return formatting.assembly_informational_version(self)

    @cached_property
    def semver1(self) -> str:
        return formatting.semver1(self)

    @cached_property
    def semver2(self) -> str:
        return formatting.semver2(self)

    @cached_property
    def nuget_package_version(self) -> str:
        return formatting.nuget_package_version(self)

    @property
    def npm_package_version(self) -> str:
        return self.semver1

    @cached_property
    def cloud_build_number(self) -> str:
        return formatting.cloud_build_number(self)

    @cached_property
    def cloud_build_all_vars(self) -> Dict[str, str]:
        return formatting.cloud_build_all_vars(self)

    @cached_property
    def cloud_build_version_vars(self) -> Dict[str, str]:
        return formatting.cloud_build_version_vars(self)
