"""
String formats derived from a computed version identity.

Everything here is a pure function of a ``VersionIdentity`` (and the
configuration it carries). Nothing is cached in this module; the identity
caches the results since it is immutable.
"""

import re
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Tuple

from .exceptions import InvariantViolation
from .options import (
    CloudBuildNumberCommitWhen,
    CloudBuildNumberCommitWhere,
    VersionOptions,
    VersionPrecision,
    assembly_version_precision_or_default,
    commit_id_when_or_default,
    commit_id_where_or_default,
    nuget_semver_or_default,
)
from .version import Version

if TYPE_CHECKING:
    from .identity import VersionIdentity

# Numeric identifiers of a prerelease or build metadata string.
NUMERIC_IDENTIFIER = re.compile(r"(?<![\w-])(\d+)(?![\w-])")

HEIGHT_MACRO = "{height}"
COMMIT_ID_SHORT_LENGTH = 10
VARIABLE_PREFIX = "GV_"


def replace_macros(text: str, height_with_offset: int) -> str:
    """Substitute ``{height}`` in a prerelease or build metadata template."""
    if not text:
        return text
    return text.replace(HEIGHT_MACRO, str(height_with_offset))


def format_build_metadata(identifiers: Iterable[str]) -> str:
    """``+a.b`` for SemVer 2, or an empty string when there are no identifiers."""
    identifiers = list(identifiers or ())
    return "+" + ".".join(identifiers) if identifiers else ""


def make_prerelease_semver1_compliant(prerelease: str, padding: int) -> str:
    """
    Convert a SemVer 2 prerelease tag such as ``-beta.5`` into a SemVer 1 one.

    Numeric identifiers are zero-padded to ``padding`` digits so that they
    still sort correctly as strings, and dots become hyphens.

    Args:
        prerelease: The prerelease tag, including its leading hyphen
        padding: Minimum number of digits for numeric identifiers

    Returns:
        A SemVer 1 compliant tag, e.g. ``-beta-0005``

    Raises:
        InvariantViolation: If a non-empty tag does not start with ``-``
    """
    if not prerelease:
        return prerelease
    if not prerelease.startswith("-"):
        raise InvariantViolation(
            f"Prerelease tag '{prerelease}' does not start with '-'"
        )
    padded = NUMERIC_IDENTIFIER.sub(
        lambda m: f"{int(m.group(1)):0{padding}d}", prerelease[1:]
    )
    return "-" + padded.replace(".", "-")


def commit_id_short(commit_id: Optional[str]) -> Optional[str]:
    if not commit_id:
        return None
    return commit_id[:COMMIT_ID_SHORT_LENGTH]


def simple_version(version: Version) -> Version:
    """The version without its revision component."""
    if version.build >= 0:
        return Version(version.major, version.minor, version.build)
    return Version(version.major, version.minor)


def assembly_version(version: Version, options: Optional[VersionOptions]) -> Version:
    """
    The version for assembly metadata.

    Components below the configured precision are zeroed. Major and minor
    come from ``assemblyVersion.version`` when one is configured.
    """
    version = version.ensure_non_negative_components()
    if options is not None and options.assembly_version and options.assembly_version.version:
        base = options.assembly_version.version
    else:
        base = Version(version.major, version.minor)
    rank = assembly_version_precision_or_default(options).rank

    return Version(
        base.major,
        base.minor if rank >= VersionPrecision.minor.rank else 0,
        version.build if rank >= VersionPrecision.build.rank else 0,
        version.revision if rank >= VersionPrecision.revision.rank else 0,
    ).ensure_non_negative_components(4)


def build_metadata_with_commit_id(identity: "VersionIdentity") -> List[str]:
    """Build metadata identifiers, led by ``g<commit>`` when a commit is known."""
    identifiers = []
    if identity.git_commit_id:
        identifiers.append(f"g{commit_id_short(identity.git_commit_id)}")
    identifiers.extend(identity.build_metadata)
    return identifiers


def semver1(identity: "VersionIdentity") -> str:
    """
    SemVer 1.0 string; includes ``-g<commit>`` unless this is a public release.

    SemVer 1 has no build metadata, so configured metadata is left out.
    """
    prerelease = make_prerelease_semver1_compliant(
        identity.prerelease_version, identity.semver1_numeric_identifier_padding
    )
    commit_tag = ""
    if not identity.public_release and identity.git_commit_id:
        commit_tag = f"-g{commit_id_short(identity.git_commit_id)}"
    return identity.version.to_string_safe(3) + prerelease + commit_tag


def semver2(identity: "VersionIdentity") -> str:
    """
    SemVer 2.0 string.

    For non-public releases the commit id is an extra prerelease identifier.
    Public releases leave it out entirely, since NuGet treats build metadata
    as part of the package identity in some places.
    """
    commit_tag = ""
    if not identity.public_release and identity.git_commit_id:
        separator = "." if identity.prerelease_version else "-"
        commit_tag = f"{separator}g{commit_id_short(identity.git_commit_id)}"
    return (
        identity.version.to_string_safe(3)
        + identity.prerelease_version
        + commit_tag
        + format_build_metadata(identity.build_metadata)
    )


def assembly_informational_version(identity: "VersionIdentity") -> str:
    return (
        identity.version.to_string_safe(3)
        + identity.prerelease_version
        + format_build_metadata(build_metadata_with_commit_id(identity))
    )


def nuget_package_version(identity: "VersionIdentity") -> str:
    if nuget_semver_or_default(identity.options) == 1:
        return semver1(identity)
    return semver2(identity)


def cloud_build_number(identity: "VersionIdentity") -> str:
    """
    The build number to hand to the CI system.

    Whether and where the commit id appears is controlled by
    ``cloudBuild.buildNumber.includeCommitId``.
    """
    when = commit_id_when_or_default(identity.options)
    where = commit_id_where_or_default(identity.options)
    include_commit = when == CloudBuildNumberCommitWhen.always or (
        when == CloudBuildNumberCommitWhen.non_public_release_only
        and not identity.public_release
    )
    in_revision = (
        include_commit and where == CloudBuildNumberCommitWhere.fourth_version_component
    )
    in_metadata = include_commit and where == CloudBuildNumberCommitWhere.build_metadata

    number_version = identity.version if in_revision else identity.simple_version
    metadata = (
        build_metadata_with_commit_id(identity)
        if in_metadata
        else list(identity.build_metadata)
    )
    return f"{number_version}{identity.prerelease_version}{format_build_metadata(metadata)}"


# Every public field of a VersionIdentity, by export name.
PUBLIC_PROPERTIES: Tuple[Tuple[str, str], ...] = (
    ("CloudBuildNumber", "cloud_build_number"),
    ("CloudBuildNumberEnabled", "cloud_build_number_enabled"),
    ("BuildMetadataWithCommitId", "build_metadata_with_commit_id"),
    ("VersionFileFound", "version_file_found"),
    ("AssemblyVersion", "assembly_version"),
    ("AssemblyFileVersion", "assembly_file_version"),
    ("AssemblyInformationalVersion", "assembly_informational_version"),
    ("PublicRelease", "public_release"),
    ("PrereleaseVersion", "prerelease_version"),
    ("SimpleVersion", "simple_version"),
    ("BuildNumber", "build_number"),
    ("MajorMinorVersion", "major_minor_version"),
    ("GitCommitId", "git_commit_id"),
    ("GitCommitIdShort", "git_commit_id_short"),
    ("VersionHeight", "version_height"),
    ("VersionHeightOffset", "version_height_offset"),
    ("Version", "version"),
    ("CloudBuildAllVarsEnabled", "cloud_build_all_vars_enabled"),
    ("CloudBuildAllVars", "cloud_build_all_vars"),
    ("CloudBuildVersionVarsEnabled", "cloud_build_version_vars_enabled"),
    ("CloudBuildVersionVars", "cloud_build_version_vars"),
    ("BuildMetadata", "build_metadata"),
    ("BuildMetadataFragment", "build_metadata_fragment"),
    ("NuGetPackageVersion", "nuget_package_version"),
    ("NpmPackageVersion", "npm_package_version"),
    ("SemVer1", "semver1"),
    ("SemVer2", "semver2"),
    ("SemVer1NumericIdentifierPadding", "semver1_numeric_identifier_padding"),
)

# Fields that only steer the build integration and are never exported.
INTERNAL_PROPERTIES = frozenset(
    {
        "CloudBuildNumberEnabled",
        "BuildMetadataWithCommitId",
        "CloudBuildAllVarsEnabled",
        "CloudBuildAllVars",
        "CloudBuildVersionVarsEnabled",
        "CloudBuildVersionVars",
        "BuildMetadata",
    }
)

EXPORTED_PROPERTIES: Tuple[Tuple[str, str], ...] = tuple(
    (name, attribute)
    for name, attribute in PUBLIC_PROPERTIES
    if name not in INTERNAL_PROPERTIES
)


def _format_value(value: object) -> str:
    if isinstance(value, bool):
        return "True" if value else "False"
    return str(value)


def exported_values(identity: "VersionIdentity") -> Dict[str, str]:
    """Every exported field by its unprefixed name; unset values are skipped."""
    values = {}
    for name, attribute in EXPORTED_PROPERTIES:
        value = getattr(identity, attribute)
        if value is not None:
            values[name] = _format_value(value)
    return values


def cloud_build_all_vars(identity: "VersionIdentity") -> Dict[str, str]:
    """All exported variables, prefixed with ``GV_``."""
    return {
        f"{VARIABLE_PREFIX}{name}": value
        for name, value in exported_values(identity).items()
    }


def cloud_build_version_vars(identity: "VersionIdentity") -> Dict[str, str]:
    """The narrower set of version-only variables."""
    return {
        "GitAssemblyInformationalVersion": identity.assembly_informational_version,
        "GitBuildVersion": str(identity.version),
        "GitBuildVersionSimple": str(identity.simple_version),
    }
