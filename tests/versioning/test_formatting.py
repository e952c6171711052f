"""
Tests for the version strings derived from a VersionIdentity.

All tests in this file are marked as 'short' since they don't require
external dependencies, containers, or network I/O.
"""

import pytest

from gitversioning.versioning import formatting
from gitversioning.versioning.exceptions import InvariantViolation
from gitversioning.versioning.identity import VersionIdentity
from gitversioning.versioning.options import VersionOptions
from gitversioning.versioning.version import Version

COMMIT = "abcdef0123456789abcdef0123456789abcdef01"


def make_identity(**kwargs):
    values = dict(
        version=Version(1, 2, 3, 4),
        version_height=3,
        prerelease_version="-beta.5",
        git_commit_id=COMMIT,
        public_release=False,
    )
    values.update(kwargs)
    return VersionIdentity(**values)


def make_options(**document):
    document.setdefault("version", "1.2")
    return VersionOptions.model_validate(document)


@pytest.mark.short
class TestHelpers:
    def test_replace_macros(self):
        """Test substituting the height macro."""
        assert formatting.replace_macros("-beta.{height}", 12) == "-beta.12"
        assert formatting.replace_macros("", 12) == ""
        # a single pass; the substituted value is never rescanned
        assert formatting.replace_macros("{height}{height}", 7) == "77"

    @pytest.mark.parametrize(
        "prerelease,padding,expected",
        [
            ("-beta.5", 4, "-beta-0005"),
            ("-rc.1.22", 3, "-rc-001-022"),
            ("-beta5", 4, "-beta5"),
            ("-alpha", 4, "-alpha"),
            ("-1", 2, "-01"),
            ("", 4, ""),
        ],
    )
    def test_make_prerelease_semver1_compliant(self, prerelease, padding, expected):
        """Test padding and separators of SemVer 1 prerelease tags."""
        assert (
            formatting.make_prerelease_semver1_compliant(prerelease, padding)
            == expected
        )

    def test_prerelease_without_hyphen_is_rejected(self):
        """Test that a prerelease tag must start with a hyphen."""
        with pytest.raises(InvariantViolation):
            formatting.make_prerelease_semver1_compliant("beta", 4)

    def test_build_metadata_fragments(self):
        """Test formatting build metadata identifiers."""
        assert formatting.format_build_metadata(["a", "b"]) == "+a.b"
        assert formatting.format_build_metadata([]) == ""

    def test_simple_version(self):
        """Test dropping the revision component."""
        assert formatting.simple_version(Version(1, 2, 3, 4)) == Version(1, 2, 3)
        assert formatting.simple_version(Version(1, 2)) == Version(1, 2)


@pytest.mark.short
class TestAssemblyVersion:
    def test_default_precision_is_minor(self):
        """Test that the assembly version keeps major.minor by default."""
        assert str(formatting.assembly_version(Version(1, 2, 3, 4), None)) == (
            "1.2.0.0"
        )

    def test_revision_precision(self):
        """Test the assembly version at revision precision."""
        options = make_options(assemblyVersion={"precision": "revision"})
        assert str(formatting.assembly_version(Version(1, 2, 3, 4), options)) == (
            "1.2.3.4"
        )

    def test_explicit_version_and_build_precision(self):
        """Test an explicit assembly version at build precision."""
        options = make_options(
            assemblyVersion={"version": "1.0", "precision": "build"}
        )
        assert str(formatting.assembly_version(Version(1, 2, 3, 4), options)) == (
            "1.0.3.0"
        )

    def test_major_precision(self):
        """Test the assembly version at major precision."""
        options = make_options(assemblyVersion={"precision": "major"})
        assert str(formatting.assembly_version(Version(7, 2, 3), options)) == (
            "7.0.0.0"
        )


@pytest.mark.short
class TestSemVer:
    def test_semver1_public_release_has_no_metadata(self):
        """Test that a public SemVer 1 string has no suffix."""
        identity = make_identity(public_release=True)
        assert identity.semver1 == "1.2.3-beta-0005"
        assert "+" not in identity.semver1

    def test_semver1_non_public_includes_commit(self):
        """Test that a non-public SemVer 1 string ends with the commit."""
        assert make_identity().semver1 == "1.2.3-beta-0005-gabcdef0123"

    def test_semver1_custom_padding(self):
        """Test a configured SemVer 1 numeric padding."""
        identity = make_identity(
            public_release=True, options=make_options(semVer1NumericIdentifierPadding=2)
        )
        assert identity.semver1 == "1.2.3-beta-05"

    def test_semver1_leaves_out_build_metadata(self):
        """Test that SemVer 1 strings leave out configured build metadata."""
        identity = make_identity(public_release=True, build_metadata=("build", "7"))
        assert identity.semver1 == "1.2.3-beta-0005"

    def test_semver1_numeric_identifiers_are_all_padded(self):
        """Test that numeric build metadata never appears unpadded in SemVer 1."""
        identity = make_identity(build_metadata=("build", "7"))
        assert identity.semver1 == "1.2.3-beta-0005-gabcdef0123"
        assert "+" not in identity.semver1
        assert "-7" not in identity.semver1

    def test_semver2_public_release(self):
        """Test a public SemVer 2 string."""
        identity = make_identity(public_release=True)
        assert identity.semver2 == "1.2.3-beta.5"

    def test_semver2_non_public_extends_prerelease(self):
        """Test that the commit extends an existing prerelease."""
        assert make_identity().semver2 == "1.2.3-beta.5.gabcdef0123"

    def test_semver2_non_public_without_prerelease(self):
        """Test that the commit becomes the prerelease when there is none."""
        assert make_identity(prerelease_version="").semver2 == "1.2.3-gabcdef0123"

    def test_semver2_keeps_build_metadata(self):
        """Test that SemVer 2 keeps configured build metadata."""
        identity = make_identity(public_release=True, build_metadata=("ci", "7"))
        assert identity.semver2 == "1.2.3-beta.5+ci.7"

    def test_no_commit_id_is_omitted(self):
        """Test the strings of an identity without a commit id."""
        identity = make_identity(git_commit_id=None)
        assert identity.semver1 == "1.2.3-beta-0005"
        assert identity.semver2 == "1.2.3-beta.5"
        assert identity.git_commit_id_short is None

    def test_nuget_and_npm(self):
        """Test the NuGet and npm package versions."""
        identity = make_identity(public_release=True)
        assert identity.nuget_package_version == identity.semver1
        assert identity.npm_package_version == identity.semver1

        semver2_identity = make_identity(
            public_release=True, options=make_options(nugetPackageVersion={"semVer": 2})
        )
        assert semver2_identity.nuget_package_version == "1.2.3-beta.5"

    def test_assembly_informational_version(self):
        """Test that the informational version leads metadata with the commit."""
        identity = make_identity(build_metadata=("ci",))
        assert identity.assembly_informational_version == (
            "1.2.3-beta.5+gabcdef0123.ci"
        )
        assert identity.build_metadata_fragment == "+gabcdef0123.ci"

    def test_semver_uses_three_components(self):
        """Test that semantic versions always have three components."""
        identity = make_identity(
            version=Version(2, 0), prerelease_version="", public_release=True
        )
        assert identity.semver2 == "2.0.0"


@pytest.mark.short
class TestCloudBuildNumber:
    def test_default_non_public(self):
        """Test the default cloud build number for a non-public release."""
        assert make_identity().cloud_build_number == "1.2.3-beta.5+gabcdef0123"

    def test_default_public(self):
        """Test the default cloud build number for a public release."""
        identity = make_identity(public_release=True)
        assert identity.cloud_build_number == "1.2.3-beta.5"

    def test_fourth_component_always(self):
        """Test putting the commit in the fourth version component."""
        options = make_options(
            cloudBuild={
                "buildNumber": {
                    "includeCommitId": {
                        "when": "always",
                        "where": "fourthVersionComponent",
                    }
                }
            }
        )
        identity = make_identity(public_release=True, options=options)
        assert identity.cloud_build_number == "1.2.3.4-beta.5"

    def test_never(self):
        """Test a cloud build number that never includes the commit."""
        options = make_options(
            cloudBuild={"buildNumber": {"includeCommitId": {"when": "never"}}}
        )
        identity = make_identity(options=options, build_metadata=("ci",))
        assert identity.cloud_build_number == "1.2.3-beta.5+ci"


@pytest.mark.short
class TestExportedVariables:
    def test_internal_properties_are_not_exported(self):
        """Test that internal properties are not exported."""
        values = formatting.exported_values(make_identity(options=make_options()))
        for name in formatting.INTERNAL_PROPERTIES:
            assert name not in values
        assert values["SemVer2"] == "1.2.3-beta.5.gabcdef0123"
        assert values["PublicRelease"] == "False"
        assert values["VersionFileFound"] == "True"
        assert values["VersionHeight"] == "3"
        assert values["GitCommitIdShort"] == "abcdef0123"

    def test_unset_values_are_skipped(self):
        """Test that unset values are not exported."""
        values = formatting.exported_values(make_identity(git_commit_id=None))
        assert "GitCommitId" not in values
        assert "GitCommitIdShort" not in values

    def test_all_vars_are_prefixed(self):
        """Test that every CI variable carries the prefix."""
        identity = make_identity()
        assert identity.cloud_build_all_vars["GV_SemVer1"] == identity.semver1
        assert all(name.startswith("GV_") for name in identity.cloud_build_all_vars)

    def test_version_vars(self):
        """Test the version-only CI variables."""
        identity = make_identity()
        assert identity.cloud_build_version_vars == {
            "GitAssemblyInformationalVersion": "1.2.3-beta.5+gabcdef0123",
            "GitBuildVersion": "1.2.3.4",
            "GitBuildVersionSimple": "1.2.3",
        }


@pytest.mark.short
class TestVersionIdentity:
    def test_negative_height_rejected(self):
        """Test that a negative height is rejected."""
        with pytest.raises(InvariantViolation):
            make_identity(version_height=-1)

    def test_prerelease_without_hyphen_rejected(self):
        """Test that the prerelease must start with a hyphen."""
        with pytest.raises(InvariantViolation):
            make_identity(prerelease_version="beta")

    def test_with_public_release_returns_new_identity(self):
        """Test that changing the release mode leaves the original alone."""
        identity = make_identity()
        public = identity.with_public_release(True)
        assert identity.public_release is False
        assert public.public_release is True
        assert identity.semver2 != public.semver2

    def test_accessors(self):
        """Test the derived accessors of an identity."""
        identity = make_identity(version_height_offset=10)
        assert identity.version_height_with_offset == 13
        assert identity.build_number == 3
        assert identity.major_minor_version == Version(1, 2)
        assert identity.assembly_file_version == Version(1, 2, 3, 4)
        assert identity.version_file_found is False
