"""
Tests for locating and parsing version files.
"""

import json

import pytest

from gitversioning.versioning.exceptions import ConfigParseError
from gitversioning.versioning.version import Version
from gitversioning.versioning.version_file import (
    VersionConfigResolver,
    candidate_paths,
    parse_json,
    parse_txt,
    repo_relative_directories,
)


class FakeCommit:
    """A commit holding a flat mapping of path to content."""

    def __init__(self, files, id="a" * 40):
        self.id = id
        self.parents = []
        self.files = files

    def read_file(self, path):
        return self.files.get(path)


@pytest.mark.short
class TestParsing:
    def test_parse_json(self):
        """Test parsing a version.json document."""
        options = parse_json(b'{"version": "1.2-beta"}', "version.json")
        assert options.version.version == Version(1, 2)
        assert options.version.prerelease == "-beta"

    def test_parse_json_with_bom(self):
        """Test parsing a version.json with a byte order mark."""
        content = "\ufeff" + json.dumps({"version": "3.0"})
        options = parse_json(content.encode("utf-8"), "version.json")
        assert options.version.version == Version(3, 0)

    def test_parse_json_syntax_error(self):
        """Test that a JSON syntax error raises ConfigParseError."""
        with pytest.raises(ConfigParseError, match="invalid JSON") as excinfo:
            parse_json(b'{"version": ', "sub/version.json")
        assert excinfo.value.source == "sub/version.json"

    def test_parse_json_not_an_object(self):
        """Test that a non-object document raises ConfigParseError."""
        with pytest.raises(ConfigParseError, match="JSON object"):
            parse_json(b'["1.0"]', "version.json")

    def test_parse_json_invalid_field(self):
        """Test that an invalid field raises ConfigParseError."""
        with pytest.raises(ConfigParseError, match="buildNumberOffset"):
            parse_json(
                b'{"version": "1.0", "buildNumberOffset": "many"}', "version.json"
            )

    def test_parse_txt(self):
        """Test parsing a version.txt file."""
        options = parse_txt(b"1.2.3\n", "version.txt")
        assert options.version.version == Version(1, 2, 3)
        assert options.version.prerelease == ""

    def test_parse_txt_prerelease_line(self):
        """Test the prerelease on the second line of version.txt."""
        assert parse_txt("1.2\nbeta\n", "version.txt").version.prerelease == "-beta"
        assert parse_txt("1.2\n-rc.1\n", "version.txt").version.prerelease == "-rc.1"

    def test_parse_txt_empty(self):
        """Test that an empty version.txt has no version."""
        with pytest.raises(ConfigParseError, match="empty"):
            parse_txt(b"\n\n", "version.txt")

    def test_parse_txt_invalid(self):
        """Test that an invalid version.txt raises ConfigParseError."""
        with pytest.raises(ConfigParseError, match="invalid version"):
            parse_txt(b"latest\n", "version.txt")


@pytest.mark.short
class TestCandidatePaths:
    def test_repo_relative_directories(self):
        """Test the directories searched for a project."""
        assert list(repo_relative_directories("a/b")) == ["a/b", "a", ""]
        assert list(repo_relative_directories("")) == [""]
        assert list(repo_relative_directories(None)) == [""]
        assert list(repo_relative_directories("./a\\b/")) == ["a/b", "a", ""]

    def test_candidate_paths_order(self):
        """Test the order of candidate version file paths."""
        assert candidate_paths("lib") == [
            "lib/version.txt",
            "lib/version.json",
            "version.txt",
            "version.json",
        ]


@pytest.mark.short
class TestResolverAtCommit:
    def test_nearest_ancestor_wins(self):
        """Test that the nearest version file at a commit wins."""
        commit = FakeCommit(
            {
                "version.json": b'{"version": "1.0"}',
                "lib/version.json": b'{"version": "2.0"}',
            }
        )
        resolver = VersionConfigResolver()
        assert resolver.get_version_at_commit(commit, "lib/sub").version.version == (
            Version(2, 0)
        )
        assert resolver.get_version_at_commit(commit, "app").version.version == (
            Version(1, 0)
        )

    def test_absent(self):
        """Test a commit without any version file."""
        resolver = VersionConfigResolver()
        assert resolver.get_version_at_commit(FakeCommit({}), "lib") is None
        assert resolver.get_version_at_commit(None, "lib") is None

    def test_malformed_file_does_not_fall_back(self):
        """Test that a malformed committed file is not skipped."""
        commit = FakeCommit(
            {
                "version.json": b'{"version": "1.0"}',
                "lib/version.json": b"{not json",
            }
        )
        with pytest.raises(ConfigParseError):
            VersionConfigResolver().get_version_at_commit(commit, "lib")


@pytest.mark.short
class TestResolverOnDisk:
    def test_walks_up(self, tmp_path):
        """Test finding a version file in a parent directory."""
        (tmp_path / "version.json").write_text('{"version": "4.1"}')
        project = tmp_path / "src" / "project"
        project.mkdir(parents=True)

        options = VersionConfigResolver().get_version(project)
        assert options.version.version == Version(4, 1)

    def test_txt_preferred_in_same_directory(self, tmp_path):
        """Test which file wins when both exist in one directory."""
        (tmp_path / "version.json").write_text('{"version": "4.1"}')
        (tmp_path / "version.txt").write_text("5.0\n")

        options = VersionConfigResolver().get_version(tmp_path)
        assert options.version.version == Version(5, 0)

    def test_malformed_file_does_not_fall_back(self, tmp_path):
        """Test that a malformed file on disk is not skipped."""
        (tmp_path / "version.json").write_text('{"version": "4.1"}')
        project = tmp_path / "project"
        project.mkdir()
        (project / "version.json").write_text('{"version": ')

        with pytest.raises(ConfigParseError):
            VersionConfigResolver().get_version(project)
