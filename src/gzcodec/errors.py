"""Typed errors for gzcodec.

Policy:
- Errors are small and boring.
- Three kinds reach callers: bad input to a call, bad compressed payload,
  malformed envelope. Callers pick a recovery strategy per kind.
"""

from __future__ import annotations

TOO_SHORT_MESSAGE = "Too short."


class GzCodecError(Exception):
    """Base error for gzcodec."""


class InvalidArgument(GzCodecError, TypeError):
    """A required input is absent or of the wrong kind. Raised before any work."""

    def __init__(self, name: str, message: str | None = None):
        self.name = name
        super().__init__(message or f"{name}: argument required")


class CorruptData(GzCodecError):
    """The payload cannot be decoded (gzip, base64 or text layer)."""


class Malformed(GzCodecError, ValueError):
    """The envelope structure is invalid (prefix missing or declared length too small)."""

    def __init__(self, name: str, message: str = TOO_SHORT_MESSAGE):
        self.name = name
        super().__init__(message)


def require(value: object, name: str) -> None:
    if value is None:
        raise InvalidArgument(name)


def require_bytes_like(value: object, name: str) -> None:
    require(value, name)
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise InvalidArgument(name, f"{name}: bytes-like object required, got {type(value).__name__}")


def require_str(value: object, name: str) -> None:
    require(value, name)
    if not isinstance(value, str):
        raise InvalidArgument(name, f"{name}: str required, got {type(value).__name__}")


def require_readable(stream: object, name: str) -> None:
    require(stream, name)
    if not callable(getattr(stream, "read", None)):
        raise InvalidArgument(name, f"{name}: readable stream required")


def require_writable(stream: object, name: str) -> None:
    require(stream, name)
    if not callable(getattr(stream, "write", None)):
        raise InvalidArgument(name, f"{name}: writable stream required")
