"""
Locating and parsing version files.

A project's version configuration lives in the nearest ``version.txt`` or
``version.json`` found by walking up from the project directory, either on
disk (the working copy) or inside a commit's tree.

Parsing is delegated to the ``VersionOptions`` model; any failure to parse is
reported as a ``ConfigParseError`` and never silently skipped in favour of an
ancestor directory's file.
"""

import json
import logging
from pathlib import Path, PurePosixPath
from typing import Iterator, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from .exceptions import ConfigParseError
from .git import Commit
from .options import VersionOptions
from .version import SemanticVersion

logger = logging.getLogger(__name__)

TXT_FILE_NAME = "version.txt"
JSON_FILE_NAME = "version.json"

# Checked in this order within each directory.
VERSION_FILE_NAMES = (TXT_FILE_NAME, JSON_FILE_NAME)


def _format_validation_error(error: PydanticValidationError) -> str:
    """Summarize the first pydantic error as ``field.path: message``."""
    if not error.errors():
        return str(error)
    first = error.errors()[0]
    loc = ".".join(str(part) for part in first.get("loc", ()))
    msg = first.get("msg", str(error))
    return f"{loc}: {msg}" if loc else msg


def parse_json(content: Union[bytes, str], source: str) -> VersionOptions:
    """
    Parse the content of a version.json file.

    Args:
        content: Raw file content
        source: Human readable origin, used in error messages

    Raises:
        ConfigParseError: If the content is not valid JSON or not a valid
            version configuration
    """
    try:
        if isinstance(content, bytes):
            content = content.decode("utf-8-sig")
        data = json.loads(content)
    except UnicodeDecodeError as e:
        raise ConfigParseError(source, f"not valid UTF-8 ({e})") from e
    except json.JSONDecodeError as e:
        raise ConfigParseError(source, f"invalid JSON ({e})") from e

    if not isinstance(data, dict):
        raise ConfigParseError(source, "expected a JSON object at the top level")

    try:
        return VersionOptions.model_validate(data)
    except PydanticValidationError as e:
        raise ConfigParseError(source, _format_validation_error(e)) from e


def parse_txt(content: Union[bytes, str], source: str) -> VersionOptions:
    """
    Parse the content of a legacy version.txt file.

    The first non-blank line holds ``major.minor[.build][-prerelease]``; an
    optional second line holds a prerelease tag, with or without its leading
    hyphen.

    Raises:
        ConfigParseError: If the content does not hold a valid version
    """
    try:
        if isinstance(content, bytes):
            content = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ConfigParseError(source, f"not valid UTF-8 ({e})") from e

    lines = [line.strip() for line in content.splitlines()]
    lines = [line for line in lines if line]
    if not lines:
        raise ConfigParseError(source, "file is empty")

    text = lines[0]
    if len(lines) > 1:
        prerelease = lines[1]
        if not prerelease.startswith("-"):
            prerelease = "-" + prerelease
        text += prerelease

    semantic_version = SemanticVersion.try_parse(text)
    if semantic_version is None:
        raise ConfigParseError(source, f"invalid version '{text}'")
    return VersionOptions(version=semantic_version)


def _parse(file_name: str, content: bytes, source: str) -> VersionOptions:
    if file_name == TXT_FILE_NAME:
        return parse_txt(content, source)
    return parse_json(content, source)


def _normalize_relative_directory(relative_directory: Optional[str]) -> str:
    if not relative_directory:
        return ""
    normalized = PurePosixPath(str(relative_directory).replace("\\", "/")).as_posix()
    return "" if normalized == "." else normalized.strip("/")


def repo_relative_directories(relative_directory: Optional[str]) -> Iterator[str]:
    """Yield ``relative_directory`` and each of its parents, ending with ``""``."""
    current = _normalize_relative_directory(relative_directory)
    while current:
        yield current
        parent = PurePosixPath(current).parent.as_posix()
        current = "" if parent == "." else parent
    yield ""


def candidate_paths(relative_directory: Optional[str]) -> List[str]:
    """All repository paths where a version file for this directory may live."""
    paths = []
    for directory in repo_relative_directories(relative_directory):
        for name in VERSION_FILE_NAMES:
            paths.append(f"{directory}/{name}" if directory else name)
    return paths


class VersionConfigResolver:
    """Finds the version configuration that applies to a directory."""

    def get_version(self, directory: Union[str, Path]) -> Optional[VersionOptions]:
        """
        Find the configuration for a working-copy directory.

        Walks from ``directory`` up to the filesystem root and returns the
        first version file found, or None.
        """
        current = Path(directory).resolve()
        for search_dir in [current, *current.parents]:
            for name in VERSION_FILE_NAMES:
                candidate = search_dir / name
                if candidate.is_file():
                    logger.debug(f"Using version file {candidate}")
                    return _parse(name, candidate.read_bytes(), str(candidate))
        return None

    def get_version_at_commit(
        self, commit: Optional[Commit], relative_directory: Optional[str] = None
    ) -> Optional[VersionOptions]:
        """
        Find the configuration for a repository-relative directory at a commit.

        Returns None when the commit is None or no version file exists in the
        directory or any of its parents up to the repository root.
        """
        if commit is None:
            return None
        for path in candidate_paths(relative_directory):
            content = commit.read_file(path)
            if content is not None:
                name = PurePosixPath(path).name
                return _parse(name, content, f"{path}@{commit.id[:10]}")
        return None
