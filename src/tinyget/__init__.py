"""
tinyget - A small, synchronous HTTP/1.1 client

Build a request with ``tinyget.get(url)`` (or another method function),
refine it with the ``with_*`` methods and call ``send()`` to get the
complete response.
"""

__version__ = "0.1.0"
__author__ = "Developer"
__email__ = "dev@example.com"

from typing import Union

# Import main components for easy access
from .client import Client
from .exceptions import (
    BodyTooLargeError,
    ChunkSizeError,
    ConnectionError,
    ContentLengthError,
    HeaderError,
    InvalidRequestError,
    InvalidURLError,
    InvalidUTF8Error,
    ProtocolError,
    RedirectError,
    RedirectLocationMissingError,
    RedirectLoopError,
    StatusLineError,
    TimeoutError,
    TinygetError,
    TLSError,
    TooManyRedirectsError,
)
from .http_primitives import DEFAULT_MAX_REDIRECTS, Headers, Request, Response
from .timeouts import TIMEOUT_ENV_VAR
from .url import URL


def request(method: str, url: Union[str, URL]) -> Request:
    """
    Create a request with an arbitrary method.

    Raises:
        InvalidURLError: If ``url`` cannot be parsed
    """
    return Request.create(method, url)


def get(url: Union[str, URL]) -> Request:
    """Create a GET request."""
    return Request.create("GET", url)


def head(url: Union[str, URL]) -> Request:
    """Create a HEAD request."""
    return Request.create("HEAD", url)


def post(url: Union[str, URL]) -> Request:
    """Create a POST request."""
    return Request.create("POST", url)


def put(url: Union[str, URL]) -> Request:
    """Create a PUT request."""
    return Request.create("PUT", url)


def delete(url: Union[str, URL]) -> Request:
    """Create a DELETE request."""
    return Request.create("DELETE", url)


def patch(url: Union[str, URL]) -> Request:
    """Create a PATCH request."""
    return Request.create("PATCH", url)


def options(url: Union[str, URL]) -> Request:
    """Create an OPTIONS request."""
    return Request.create("OPTIONS", url)


__all__ = [
    "request",
    "get",
    "head",
    "post",
    "put",
    "delete",
    "patch",
    "options",
    "Client",
    "Headers",
    "Request",
    "Response",
    "URL",
    "DEFAULT_MAX_REDIRECTS",
    "TIMEOUT_ENV_VAR",
    "TinygetError",
    "ConnectionError",
    "TLSError",
    "TimeoutError",
    "InvalidURLError",
    "InvalidRequestError",
    "ProtocolError",
    "StatusLineError",
    "HeaderError",
    "ChunkSizeError",
    "ContentLengthError",
    "BodyTooLargeError",
    "InvalidUTF8Error",
    "RedirectError",
    "TooManyRedirectsError",
    "RedirectLoopError",
    "RedirectLocationMissingError",
]
