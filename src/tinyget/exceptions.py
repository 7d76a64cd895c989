"""
Custom exceptions for tinyget.

This module defines the exception hierarchy used throughout
the library. Every failure surfaced by ``Request.send()`` or by a
body view is an instance of ``TinygetError``.
"""

from typing import Optional


class TinygetError(Exception):
    """Base exception for all tinyget errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class ConnectionError(TinygetError):
    """Raised when reading from or writing to the transport fails."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"Connection error: {message}", cause)


class TLSError(ConnectionError):
    """Raised when the TLS handshake or certificate validation fails."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"TLS failure: {message}", cause)


class TimeoutError(TinygetError):
    """Raised when the request deadline is reached."""

    def __init__(self, message: str, timeout: Optional[float] = None) -> None:
        if timeout is not None:
            message = f"{message} (timeout: {timeout}s)"
        super().__init__(f"Timeout error: {message}")
        self.timeout = timeout


class InvalidURLError(TinygetError):
    """Raised when a URL cannot be parsed or uses an unsupported scheme."""

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        if url is not None:
            message = f"{message}: {url!r}"
        super().__init__(f"Invalid URL: {message}")
        self.url = url


class InvalidRequestError(TinygetError):
    """Raised when a request has an invalid method, target or header."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"Invalid request: {message}", cause)


class ProtocolError(TinygetError):
    """Raised when the server response violates HTTP/1.1 framing."""

    def __init__(
        self,
        message: str,
        line: Optional[bytes] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        if line is not None:
            message = f"{message}: {line!r}"
        super().__init__(f"Protocol error: {message}", cause)
        self.line = line


class StatusLineError(ProtocolError):
    """Raised when the status line is malformed."""


class HeaderError(ProtocolError):
    """Raised when a response header line is malformed."""


class ChunkSizeError(ProtocolError):
    """Raised when a chunk-size line of a chunked body is malformed."""


class ContentLengthError(ProtocolError):
    """Raised when Content-Length is not a usable non-negative integer."""


class BodyTooLargeError(ProtocolError):
    """Raised when a response body grows past the configured cap."""

    def __init__(self, limit: int) -> None:
        super().__init__(f"response body exceeds {limit} bytes")
        self.limit = limit


class InvalidUTF8Error(TinygetError):
    """Raised when a body view cannot decode the body as UTF-8."""

    def __init__(self, offset: int, cause: Optional[Exception] = None) -> None:
        super().__init__(f"Invalid UTF-8 in body at byte offset {offset}", cause)
        self.offset = offset


class RedirectError(TinygetError):
    """Base class for errors raised while following redirects."""


class TooManyRedirectsError(RedirectError):
    """Raised when the redirect hop limit is exceeded."""

    def __init__(self, redirects: int) -> None:
        super().__init__(f"Too many redirects (over the max of {redirects})")
        self.redirects = redirects


class RedirectLoopError(RedirectError):
    """Raised when a redirect points back at an already visited URL."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Infinite redirection loop detected at {url}")
        self.url = url


class RedirectLocationMissingError(RedirectError):
    """Raised when a redirect response carries no Location header."""

    def __init__(self, status_code: int) -> None:
        super().__init__(
            f"Redirect response {status_code} is missing the Location header"
        )
        self.status_code = status_code
