"""
Error taxonomy for modelwire.

Transport failures are httpx's own exceptions and propagate unmodified;
TransportError is re-exported here so callers can catch it without
importing httpx themselves.
"""

from typing import Optional

import httpx

TransportError = httpx.TransportError


class ModelWireError(Exception):
    """Base exception for modelwire."""
    pass


class ResponseError(ModelWireError):
    """The server answered with an HTTP error status."""

    def __init__(self, error: str, status_code: int = -1):
        super().__init__(error)
        self.error = error
        self.status_code = status_code

    def __str__(self) -> str:
        return f"{self.error} (status code: {self.status_code})"


class DecodeError(ModelWireError):
    """A record is not valid JSON or does not match the expected shape."""
    pass


class ServerStreamError(ModelWireError):
    """The server embedded an error record inside a stream."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TruncationError(ModelWireError):
    """The stream ended in the middle of a record."""

    def __init__(self, partial: bytes):
        preview = partial[:80].decode("utf-8", errors="replace")
        super().__init__(f"stream ended with an incomplete record: {preview!r}")
        self.partial = partial


class ToolCallParseError(ModelWireError):
    """Accumulated tool-call arguments could not be parsed as a JSON object."""

    def __init__(self, index: int, arguments_text: str, reason: Optional[str] = None):
        message = f"tool call {index}: arguments are not a JSON object"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.index = index
        self.arguments_text = arguments_text


class LocalValidationError(ModelWireError, ValueError):
    """Caller-supplied parameters were rejected before any network call."""
    pass
