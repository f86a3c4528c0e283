"""Error taxonomy shared by the provider adapters and the request pipeline."""

from __future__ import annotations

from enum import Enum


class EloteError(RuntimeError):
    """Base class for every failure surfaced to the user."""

    title = "Error"


class MissingCredentialError(EloteError):
    title = "API Key Missing"

    def __init__(self, message: str = "Missing API key. Please set your key in the menu.") -> None:
        super().__init__(message)


class NoTextAvailableError(EloteError):
    title = "No Text Available"

    def __init__(self, message: str = "Copy text to your clipboard first, then try again.") -> None:
        super().__init__(message)


class NetworkUnavailableError(EloteError):
    title = "Network Unavailable"

    def __init__(self, message: str = "Please check your internet connection and try again.") -> None:
        super().__init__(message)


class TransportKind(str, Enum):
    HOST_UNREACHABLE = "host-unreachable"
    TIMED_OUT = "timed-out"
    CONNECTION_LOST = "connection-lost"
    OFFLINE = "offline"
    OTHER = "other"


class TransportError(EloteError):
    """The request never produced an HTTP response."""

    title = "Connection Error"

    def __init__(self, kind: TransportKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind


class HttpError(EloteError):
    """The provider answered with a status outside 200-299."""

    title = "API Error"

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class ApiPayloadError(EloteError):
    """The provider reported a logical error inside a parseable body."""

    title = "API Error"

    def __init__(self, message: str) -> None:
        super().__init__(f"API Error: {message}")
        self.message = message


class ResponseParseError(EloteError):
    title = "API Error"

    def __init__(self, message: str = "Failed to parse API response") -> None:
        super().__init__(message)


class ClipboardError(EloteError):
    """The enhanced text could not be written to the clipboard."""

    title = "Clipboard Error"

    def __init__(self, message: str = "Could not write the enhanced text to the clipboard.") -> None:
        super().__init__(message)
