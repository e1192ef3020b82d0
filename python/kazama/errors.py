"""
Exception hierarchy for the kazama client.

Every failure surfaced by the client is a KazamaError subclass carrying a
short ``kind`` tag, a human readable message and, where one exists, the
underlying transport exception as ``cause``.
"""

from __future__ import annotations

from typing import Optional


class KazamaError(Exception):
    """Base class for all client failures."""

    kind = "error"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.message = message
        self.cause = cause
        super().__init__(message)


class InvalidArgument(KazamaError, ValueError):
    """Caller input rejected before any network call was made."""

    kind = "invalid_argument"


class TransportError(KazamaError):
    """Connection, DNS, timeout or server-side (5xx) failure."""

    kind = "transport"

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        status_code: Optional[int] = None,
    ):
        self.status_code = status_code
        if status_code is not None:
            message = f"Server error {status_code}: {message}"
        super().__init__(message, cause)


class ClientError(KazamaError):
    """Request rejected by the server (4xx). Not worth retrying as-is."""

    kind = "client"

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        super().__init__(f"Client error {status_code}: {message}")


class DecodeError(KazamaError):
    """Response body could not be parsed into the expected result."""

    kind = "decode"

    def __init__(
        self,
        message: str,
        fragment: str = "",
        cause: Optional[BaseException] = None,
    ):
        self.fragment = fragment
        super().__init__(message, cause)


class Cancelled(KazamaError):
    """Call aborted by the caller's cancel event or deadline."""

    kind = "cancelled"


class StreamConsumed(KazamaError):
    """A single-use stream was iterated a second time."""

    kind = "stream_consumed"
