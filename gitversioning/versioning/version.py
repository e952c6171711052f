"""
Version types used throughout gitversioning.

``Version`` is a numeric version of up to four components where the build and
revision components may be left undefined (``-1``), so that ``1.2`` and
``1.2.0`` remain distinguishable.

``SemanticVersion`` is the value of the ``version`` field of a version file:
a ``Version`` plus an optional prerelease tag and build metadata, each of which
may contain the ``{height}`` macro.
"""

import re
from typing import List, Optional

from .exceptions import UnsupportedConversionError

UNDEFINED = -1

_VERSION_PATTERN = re.compile(r"^(\d+)\.(\d+)(?:\.(\d+))?(?:\.(\d+))?$")

_IDENTIFIER = r"(?:[0-9A-Za-z\-]|\{height\})+"
_SEMANTIC_VERSION_PATTERN = re.compile(
    r"^(?P<version>\d+\.\d+(?:\.\d+){0,2})"
    rf"(?P<prerelease>-{_IDENTIFIER}(?:\.{_IDENTIFIER})*)?"
    rf"(?P<metadata>\+{_IDENTIFIER}(?:\.{_IDENTIFIER})*)?$"
)


class Version:
    """
    A numeric version with two to four components.

    Undefined build or revision components are stored as -1 and omitted
    from ``str()``.
    """

    def __init__(
        self,
        major: int,
        minor: int,
        build: int = UNDEFINED,
        revision: int = UNDEFINED,
    ):
        if major < 0 or minor < 0:
            raise ValueError(
                f"Invalid version format: major and minor must be non-negative, got {major}.{minor}"
            )
        if build < UNDEFINED or revision < UNDEFINED:
            raise ValueError(
                "Invalid version format: build and revision must be non-negative or undefined"
            )
        if build == UNDEFINED and revision != UNDEFINED:
            raise ValueError(
                "Invalid version format: a revision requires a build component"
            )
        self._components = (major, minor, build, revision)

    @classmethod
    def parse(cls, version_string: str) -> "Version":
        """
        Parse ``major.minor[.build[.revision]]``.

        Raises:
            ValueError: If the string is not a valid version
        """
        match = _VERSION_PATTERN.match(str(version_string).strip())
        if not match:
            raise ValueError(
                f"Invalid version format: '{version_string}'. "
                "Expected major.minor[.build[.revision]]"
            )
        parts = [int(g) if g is not None else UNDEFINED for g in match.groups()]
        return cls(*parts)

    @classmethod
    def convert(cls, value: object) -> "Version":
        """Convert a string or Version into a Version."""
        if isinstance(value, Version):
            return value
        if isinstance(value, str):
            try:
                return cls.parse(value)
            except ValueError as e:
                raise UnsupportedConversionError(value, "Version", str(e)) from e
        raise UnsupportedConversionError(value, "Version")

    @property
    def major(self) -> int:
        return self._components[0]

    @property
    def minor(self) -> int:
        return self._components[1]

    @property
    def build(self) -> int:
        """Build component (-1 when undefined)."""
        return self._components[2]

    @property
    def revision(self) -> int:
        """Revision component (-1 when undefined)."""
        return self._components[3]

    @property
    def field_count(self) -> int:
        """Number of defined components."""
        return sum(1 for c in self._components if c != UNDEFINED)

    def to_string_safe(self, field_count: int) -> str:
        """
        Render exactly ``field_count`` components, using 0 for undefined ones.

        Args:
            field_count: Number of components to render (1 to 4)
        """
        if not 1 <= field_count <= 4:
            raise ValueError(f"field_count must be between 1 and 4, got {field_count}")
        parts = [max(0, c) for c in self._components[:field_count]]
        return ".".join(str(p) for p in parts)

    def ensure_non_negative_components(self, field_count: int = 4) -> "Version":
        """Return a version with the first ``field_count`` components defined."""
        components = list(self._components)
        for i in range(field_count):
            components[i] = max(0, components[i])
        return Version(*components)

    def __str__(self) -> str:
        return ".".join(str(c) for c in self._components if c != UNDEFINED)

    def __repr__(self) -> str:
        return f"Version('{self}')"

    def __eq__(self, other) -> bool:
        if not isinstance(other, Version):
            return False
        return self._components == other._components

    def __hash__(self) -> int:
        return hash(self._components)


VERSION_0 = Version(0, 0)


class SemanticVersion:
    """
    A semantic version as written in a version file.

    Format: ``major.minor[.build[.revision]][-prerelease][+metadata]``.
    The prerelease keeps its leading ``-`` and the metadata its leading ``+``.
    """

    def __init__(
        self, version: Version, prerelease: str = "", build_metadata: str = ""
    ):
        prerelease = prerelease or ""
        build_metadata = build_metadata or ""
        if prerelease and not prerelease.startswith("-"):
            raise ValueError(f"Prerelease must start with '-': '{prerelease}'")
        if build_metadata and not build_metadata.startswith("+"):
            raise ValueError(
                f"Build metadata must start with '+': '{build_metadata}'"
            )
        self.version = version
        self.prerelease = prerelease
        self.build_metadata = build_metadata

    @classmethod
    def parse(cls, text: str) -> "SemanticVersion":
        """
        Parse a semantic version string.

        Raises:
            ValueError: If the string is not a valid semantic version
        """
        match = _SEMANTIC_VERSION_PATTERN.match(text.strip())
        if not match:
            raise ValueError(f"Invalid semantic version: '{text}'")
        return cls(
            Version.parse(match.group("version")),
            match.group("prerelease") or "",
            match.group("metadata") or "",
        )

    @classmethod
    def try_parse(cls, text: str) -> Optional["SemanticVersion"]:
        """Parse a semantic version, returning None when it is invalid."""
        try:
            return cls.parse(text)
        except ValueError:
            return None

    @classmethod
    def convert(cls, value: object) -> "SemanticVersion":
        """
        Convert a foreign value (as read from a version file) into a SemanticVersion.

        Raises:
            UnsupportedConversionError: If the value is not a string or is not
                a valid semantic version
        """
        if isinstance(value, SemanticVersion):
            return value
        if isinstance(value, str):
            parsed = cls.try_parse(value)
            if parsed is not None:
                return parsed
            raise UnsupportedConversionError(
                value, "SemanticVersion", "expected major.minor[.build][-prerelease]"
            )
        raise UnsupportedConversionError(value, "SemanticVersion")

    @staticmethod
    def to_json(value: object) -> str:
        """Serialize a SemanticVersion back to its string form."""
        if isinstance(value, SemanticVersion):
            return str(value)
        raise UnsupportedConversionError(value, "str", "only SemanticVersion is supported")

    @property
    def build_metadata_identifiers(self) -> List[str]:
        """The build metadata split into its dot-separated identifiers."""
        if not self.build_metadata:
            return []
        return self.build_metadata[1:].split(".")

    def __str__(self) -> str:
        return f"{self.version}{self.prerelease}{self.build_metadata}"

    def __repr__(self) -> str:
        return f"SemanticVersion('{self}')"

    def __eq__(self, other) -> bool:
        if not isinstance(other, SemanticVersion):
            return False
        return (self.version, self.prerelease, self.build_metadata) == (
            other.version,
            other.prerelease,
            other.build_metadata,
        )

    def __hash__(self) -> int:
        return hash((self.version, self.prerelease, self.build_metadata))
