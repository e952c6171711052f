"""
Exception classes for the versioning module.
"""

from typing import Optional


class VersioningError(Exception):
    """Base exception for all versioning-related errors."""

    pass


class ConfigParseError(VersioningError):
    """Raised when a version configuration file cannot be parsed."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Failed to parse version file {source}: {reason}")


class RepositoryAccessError(VersioningError):
    """Raised when the git repository cannot be opened or read."""

    def __init__(self, location: str, message: str = ""):
        self.location = location
        if message:
            super().__init__(f"Cannot access git repository at {location}: {message}")
        else:
            super().__init__(f"Cannot access git repository at {location}")


class UnsupportedConversionError(VersioningError, ValueError):
    """Raised when a value cannot be converted to or from a version type.

    This is also a ``ValueError`` so that pydantic reports it as a regular
    validation failure of the field being parsed.
    """

    def __init__(self, value: object, target: str, detail: Optional[str] = None):
        self.value = value
        self.target = target
        message = f"Cannot convert {value!r} to {target}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class InvariantViolation(VersioningError):
    """Raised when an internal precondition does not hold."""

    pass
