# Copyright 2026 Veritensor Security Apache 2.0
# Error types raised by the signature engine and the read collaborators.

from typing import Any, Optional


class MagicGateError(Exception):
    """Base class for every error raised by MagicGate."""
    pass


class InvalidArgument(MagicGateError, ValueError):
    """Raised for bad caller input (empty candidate set, malformed signature, bad config)."""
    pass


class UnknownFormat(InvalidArgument):
    """Raised when a format identifier is not present in the registry."""

    def __init__(self, format_id: str):
        self.format_id = format_id
        super().__init__(f"Unknown file format: '{format_id}'")


class ReadFailure(MagicGateError, IOError):
    """
    Raised when the leading bytes of a resource cannot be obtained.
    Never to be interpreted as 'no match'.
    """

    def __init__(self, resource: Any, reason: str):
        self.resource = resource
        self.reason = reason
        super().__init__(f"Failed to read '{describe_resource(resource)}': {reason}")


class MagicGateSecurityError(MagicGateError):
    """An exception that is thrown when a file is not on the allow-list."""

    def __init__(self, message: str, detected: Optional[str] = None):
        self.detected = detected
        super().__init__(message)


def describe_resource(resource: Any) -> str:
    if isinstance(resource, (bytes, bytearray, memoryview)):
        return f"<{len(resource)} bytes in memory>"
    name = getattr(resource, "name", None)
    if isinstance(name, str):
        return name
    return str(resource)
