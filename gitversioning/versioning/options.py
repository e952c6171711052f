"""Pydantic models for version.json files.

All models are frozen: a parsed configuration is never mutated, and equality
is structural so that a working copy configuration can be compared against
the committed one. Defaults are not baked into the fields; each is applied by
one of the ``*_or_default`` functions at the bottom of this module.
"""

import re
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from .version import SemanticVersion, Version

DEFAULT_BUILD_NUMBER_OFFSET = 0
DEFAULT_SEMVER1_NUMERIC_IDENTIFIER_PADDING = 4
DEFAULT_NUGET_SEMVER = 1
DEFAULT_CLOUD_BUILD_NUMBER_ENABLED = False
DEFAULT_SET_VERSION_VARIABLES = True
DEFAULT_SET_ALL_VARIABLES = False


class VersionPrecision(str, Enum):
    """How many components of the assembly version are significant."""

    major = "major"
    minor = "minor"
    build = "build"
    revision = "revision"

    @property
    def rank(self) -> int:
        return _PRECISION_RANK[self]


_PRECISION_RANK = {
    VersionPrecision.major: 1,
    VersionPrecision.minor: 2,
    VersionPrecision.build: 3,
    VersionPrecision.revision: 4,
}


class CloudBuildNumberCommitWhen(str, Enum):
    """When to include the commit id in the cloud build number."""

    always = "always"
    non_public_release_only = "nonPublicReleaseOnly"
    never = "never"

    @classmethod
    def _missing_(cls, value):
        if value == "nonPublicOnly":
            return cls.non_public_release_only
        return None


class CloudBuildNumberCommitWhere(str, Enum):
    """Where to put the commit id in the cloud build number."""

    build_metadata = "buildMetadata"
    fourth_version_component = "fourthVersionComponent"

    @classmethod
    def _missing_(cls, value):
        if value == "fourthComponent":
            return cls.fourth_version_component
        return None


DEFAULT_ASSEMBLY_VERSION_PRECISION = VersionPrecision.minor
DEFAULT_COMMIT_ID_WHEN = CloudBuildNumberCommitWhen.non_public_release_only
DEFAULT_COMMIT_ID_WHERE = CloudBuildNumberCommitWhere.build_metadata


class _OptionsModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )


class AssemblyVersionOptions(_OptionsModel):
    """The assemblyVersion stanza."""

    version: Optional[Version] = Field(
        None, description="Explicit major.minor for the assembly version"
    )
    precision: Optional[VersionPrecision] = Field(
        None, description="Number of significant assembly version components"
    )

    @field_validator("version", mode="before")
    @classmethod
    def validate_version(cls, v):
        if v is None:
            return v
        return Version.convert(v)

    @field_serializer("version")
    def serialize_version(self, v: Optional[Version]) -> Optional[str]:
        return None if v is None else str(v)


class CloudBuildNumberCommitIdOptions(_OptionsModel):
    """The cloudBuild.buildNumber.includeCommitId stanza."""

    when: Optional[CloudBuildNumberCommitWhen] = None
    where: Optional[CloudBuildNumberCommitWhere] = None


class CloudBuildNumberOptions(_OptionsModel):
    """The cloudBuild.buildNumber stanza."""

    enabled: Optional[bool] = Field(
        None, description="Whether to set the cloud build number"
    )
    include_commit_id: Optional[CloudBuildNumberCommitIdOptions] = Field(
        None, alias="includeCommitId"
    )


class CloudBuildOptions(_OptionsModel):
    """The cloudBuild stanza."""

    set_version_variables: Optional[bool] = Field(None, alias="setVersionVariables")
    set_all_variables: Optional[bool] = Field(None, alias="setAllVariables")
    build_number: Optional[CloudBuildNumberOptions] = Field(None, alias="buildNumber")


class NuGetPackageVersionOptions(_OptionsModel):
    """The nugetPackageVersion stanza."""

    sem_ver: Optional[int] = Field(None, alias="semVer")

    @field_validator("sem_ver")
    @classmethod
    def validate_sem_ver(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v not in (1, 2):
            raise ValueError("semVer must be 1 or 2")
        return v


class VersionOptions(_OptionsModel):
    """A parsed version.json (or version.txt) file."""

    schema_: Optional[str] = Field(None, alias="$schema")
    version: SemanticVersion = Field(..., description="major.minor[.build][-prerelease]")
    assembly_version: Optional[AssemblyVersionOptions] = Field(
        None, alias="assemblyVersion"
    )
    build_number_offset: Optional[int] = Field(
        None,
        alias="buildNumberOffset",
        description="Added to the version height wherever it is used",
    )
    public_release_ref_spec: Tuple[str, ...] = Field(
        (),
        alias="publicReleaseRefSpec",
        description="Regular expressions matching refs that build public releases",
    )
    cloud_build: Optional[CloudBuildOptions] = Field(None, alias="cloudBuild")
    nuget_package_version: Optional[NuGetPackageVersionOptions] = Field(
        None, alias="nugetPackageVersion"
    )
    semver1_numeric_identifier_padding: Optional[int] = Field(
        None, alias="semVer1NumericIdentifierPadding"
    )

    @field_validator("version", mode="before")
    @classmethod
    def validate_version(cls, v) -> SemanticVersion:
        return SemanticVersion.convert(v)

    @field_serializer("version")
    def serialize_version(self, v: SemanticVersion) -> str:
        return SemanticVersion.to_json(v)

    @field_validator("public_release_ref_spec")
    @classmethod
    def validate_ref_specs(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        for expr in v:
            try:
                re.compile(expr)
            except re.error as e:
                raise ValueError(f"invalid regular expression '{expr}': {e}")
        return v

    @field_validator("semver1_numeric_identifier_padding")
    @classmethod
    def validate_padding(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and not 1 <= v <= 32:
            raise ValueError("semVer1NumericIdentifierPadding must be between 1 and 32")
        return v

    def with_build_number_offset(self, offset: int) -> "VersionOptions":
        """Return a copy with ``buildNumberOffset`` replaced."""
        return self.model_copy(update={"build_number_offset": offset})


# Default resolvers. Each accepts a possibly-absent VersionOptions.


def build_number_offset_or_default(options: Optional[VersionOptions]) -> int:
    if options is None or options.build_number_offset is None:
        return DEFAULT_BUILD_NUMBER_OFFSET
    return options.build_number_offset


def semver1_numeric_identifier_padding_or_default(
    options: Optional[VersionOptions],
) -> int:
    if options is None or options.semver1_numeric_identifier_padding is None:
        return DEFAULT_SEMVER1_NUMERIC_IDENTIFIER_PADDING
    return options.semver1_numeric_identifier_padding


def nuget_semver_or_default(options: Optional[VersionOptions]) -> int:
    if (
        options is None
        or options.nuget_package_version is None
        or options.nuget_package_version.sem_ver is None
    ):
        return DEFAULT_NUGET_SEMVER
    return options.nuget_package_version.sem_ver


def assembly_version_precision_or_default(
    options: Optional[VersionOptions],
) -> VersionPrecision:
    if (
        options is None
        or options.assembly_version is None
        or options.assembly_version.precision is None
    ):
        return DEFAULT_ASSEMBLY_VERSION_PRECISION
    return options.assembly_version.precision


def _build_number_options(
    options: Optional[VersionOptions],
) -> Optional[CloudBuildNumberOptions]:
    if options is None or options.cloud_build is None:
        return None
    return options.cloud_build.build_number


def cloud_build_number_enabled_or_default(options: Optional[VersionOptions]) -> bool:
    build_number = _build_number_options(options)
    if build_number is None or build_number.enabled is None:
        return DEFAULT_CLOUD_BUILD_NUMBER_ENABLED
    return build_number.enabled


def commit_id_when_or_default(
    options: Optional[VersionOptions],
) -> CloudBuildNumberCommitWhen:
    build_number = _build_number_options(options)
    if (
        build_number is None
        or build_number.include_commit_id is None
        or build_number.include_commit_id.when is None
    ):
        return DEFAULT_COMMIT_ID_WHEN
    return build_number.include_commit_id.when


def commit_id_where_or_default(
    options: Optional[VersionOptions],
) -> CloudBuildNumberCommitWhere:
    build_number = _build_number_options(options)
    if (
        build_number is None
        or build_number.include_commit_id is None
        or build_number.include_commit_id.where is None
    ):
        return DEFAULT_COMMIT_ID_WHERE
    return build_number.include_commit_id.where


def set_version_variables_or_default(options: Optional[VersionOptions]) -> bool:
    if (
        options is None
        or options.cloud_build is None
        or options.cloud_build.set_version_variables is None
    ):
        return DEFAULT_SET_VERSION_VARIABLES
    return options.cloud_build.set_version_variables


def set_all_variables_or_default(options: Optional[VersionOptions]) -> bool:
    if (
        options is None
        or options.cloud_build is None
        or options.cloud_build.set_all_variables is None
    ):
        return DEFAULT_SET_ALL_VARIABLES
    return options.cloud_build.set_all_variables
