"""Error taxonomy for the jsonwire client.

Three failure families are kept apart so callers can tell them from each
other:

* ``TransportError``: the request never produced an HTTP response
  (connection refused, DNS failure, timeout, I/O error).
* ``MalformedResponseError``: the server answered successfully but the body
  is not a JSON Wire envelope, or its value has the wrong shape.
* ``ProtocolError``: the server rejected the command. The concrete subclass
  follows the HTTP status code (see ``classify``).
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Type


class ErrorKind(str, Enum):
    INVALID_PARAMETERS = "invalid-parameters"
    UNKNOWN_RESOURCE = "unknown-command-or-resource"
    INVALID_METHOD = "invalid-method"
    COMMAND_FAILED = "command-failed"
    UNIMPLEMENTED_COMMAND = "unimplemented-command"
    UNKNOWN_ERROR = "unknown-protocol-error"


_KINDS: Dict[int, ErrorKind] = {
    400: ErrorKind.INVALID_PARAMETERS,
    404: ErrorKind.UNKNOWN_RESOURCE,
    405: ErrorKind.INVALID_METHOD,
    500: ErrorKind.COMMAND_FAILED,
    501: ErrorKind.UNIMPLEMENTED_COMMAND,
}


def classify(http_status: int) -> ErrorKind:
    """Map an HTTP status code to the protocol error kind."""
    return _KINDS.get(http_status, ErrorKind.UNKNOWN_ERROR)


class WebDriverError(Exception):
    """Base exception for all jsonwire errors."""

    def __init__(self, message: str, method: Optional[str] = None, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.method = method
        self.url = url

    def __str__(self) -> str:
        parts = [self.message]
        if self.method and self.url:
            parts.append(f"{self.method} {self.url}")
        return " | ".join(parts)


class TransportError(WebDriverError):
    """Raised when the server could not be reached or the connection failed."""


class MalformedResponseError(WebDriverError):
    """Raised when a successful response does not carry a usable envelope."""


class ProtocolError(WebDriverError):
    """Raised when the server answers with an error status."""

    kind = ErrorKind.UNKNOWN_ERROR

    def __init__(
        self,
        message: str,
        http_status: int,
        status: int = 0,
        reason: str = "",
        **kwargs,
    ) -> None:
        super().__init__(message, **kwargs)
        self.http_status = http_status
        self.status = status
        self.reason = reason


class InvalidParametersError(ProtocolError):
    kind = ErrorKind.INVALID_PARAMETERS


class UnknownResourceError(ProtocolError):
    kind = ErrorKind.UNKNOWN_RESOURCE


class InvalidMethodError(ProtocolError):
    kind = ErrorKind.INVALID_METHOD


class CommandFailedError(ProtocolError):
    kind = ErrorKind.COMMAND_FAILED


class UnimplementedCommandError(ProtocolError):
    kind = ErrorKind.UNIMPLEMENTED_COMMAND


class UnknownProtocolError(ProtocolError):
    kind = ErrorKind.UNKNOWN_ERROR


_ERRORS: Dict[ErrorKind, Type[ProtocolError]] = {
    cls.kind: cls
    for cls in (
        InvalidParametersError,
        UnknownResourceError,
        InvalidMethodError,
        CommandFailedError,
        UnimplementedCommandError,
        UnknownProtocolError,
    )
}

_MESSAGES: Dict[ErrorKind, str] = {
    ErrorKind.INVALID_PARAMETERS: "Missing Command Parameters",
    ErrorKind.UNKNOWN_RESOURCE: "Unknown command/Resource Not Found",
    ErrorKind.INVALID_METHOD: "Invalid Command Method",
    ErrorKind.COMMAND_FAILED: "Failed Command",
    ErrorKind.UNIMPLEMENTED_COMMAND: "Unimplemented Command",
    ErrorKind.UNKNOWN_ERROR: "Unknown error",
}


def error_for(
    http_status: int,
    status: int = 0,
    reason: str = "",
    method: Optional[str] = None,
    url: Optional[str] = None,
) -> ProtocolError:
    """Build the ProtocolError subclass matching ``http_status``."""
    kind = classify(http_status)
    message = f"{http_status}: {_MESSAGES[kind]}"
    if status:
        message += f" (status {status})"
    return _ERRORS[kind](message, http_status, status=status, reason=reason, method=method, url=url)
