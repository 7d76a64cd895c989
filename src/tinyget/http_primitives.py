"""
HTTP primitives for tinyget.

This module defines the core data structures for HTTP requests and responses.
All classes are immutable: every ``with_*`` call on a Request builds a new
Request, and a Response is complete once the parser hands it out.
"""

import dataclasses
import json
import math
from dataclasses import dataclass, field
from typing import (
    Any,
    Iterable,
    Iterator,
    List,
    Optional,
    Tuple,
    Union,
    TYPE_CHECKING,
)

from .exceptions import InvalidUTF8Error
from .url import URL

if TYPE_CHECKING:
    from .network.backend import NetworkBackend  # Forward reference

DEFAULT_MAX_REDIRECTS = 10
REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})

StatusCode = int
HeaderItems = Iterable[Tuple[str, str]]


class Headers:
    """
    Ordered, case-insensitive header collection.

    Names keep the casing they were given and duplicates are kept in
    order; only lookups ignore case.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Optional[HeaderItems] = None) -> None:
        self._items: Tuple[Tuple[str, str], ...] = tuple(
            (str(name), str(value)) for name, value in (items or ())
        )

    def add(self, name: str, value: str) -> "Headers":
        """Return a copy with ``name: value`` appended."""
        return Headers(self._items + ((name, value),))

    def without(self, *names: str) -> "Headers":
        """Return a copy with every header named in ``names`` removed."""
        dropped = {name.lower() for name in names}
        return Headers(item for item in self._items if item[0].lower() not in dropped)

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get the first value of a header (case-insensitive)."""
        name_lower = name.lower()
        for header_name, header_value in self._items:
            if header_name.lower() == name_lower:
                return header_value
        return default

    def get_all(self, name: str) -> List[str]:
        """Get every value of a header, in order."""
        name_lower = name.lower()
        return [
            header_value
            for header_name, header_value in self._items
            if header_name.lower() == name_lower
        ]

    def items(self) -> List[Tuple[str, str]]:
        return list(self._items)

    def keys(self) -> List[str]:
        return [name for name, _ in self._items]

    def __getitem__(self, name: str) -> str:
        value = self.get(name)
        if value is None:
            raise KeyError(name)
        return value

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def __iter__(self) -> Iterator[Tuple[str, str]]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Headers):
            return self._items == other._items
        if isinstance(other, list):
            return list(self._items) == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._items)

    def __repr__(self) -> str:
        return f"Headers({list(self._items)!r})"


def iter_lines(body: bytes) -> Iterator[str]:
    """
    Lazily split a body into text lines.

    Lines are split on LF with a trailing CR removed. A final line
    without LF is yielded; nothing is yielded after a final LF.

    Raises:
        InvalidUTF8Error: If a line is not valid UTF-8. The offset is
            relative to the start of the body.
    """
    view = memoryview(body)
    length = len(body)
    start = 0
    while start < length:
        end = body.find(b"\n", start)
        if end == -1:
            end = length
        next_start = end + 1

        if end > start and body[end - 1] == 0x0D:
            end -= 1

        try:
            line = str(view[start:end], "utf-8")
        except UnicodeDecodeError as e:
            raise InvalidUTF8Error(start + e.start, cause=e) from e

        yield line
        start = next_start


@dataclass(frozen=True)
class Request:
    """
    Immutable HTTP request representation.

    This class represents an HTTP request with all its components.
    Once created, the request cannot be modified - the ``with_*``
    methods return a new Request instance.
    """

    method: str
    url: URL
    headers: Headers = field(default_factory=Headers)
    body: Optional[bytes] = None
    timeout: Optional[float] = None
    max_redirects: int = DEFAULT_MAX_REDIRECTS

    def __post_init__(self) -> None:
        """Validate request data after initialization."""
        if not isinstance(self.method, str) or not self.method:
            raise ValueError("method must be a non-empty string")

        if not isinstance(self.url, URL):
            raise ValueError("url must be a URL")

        if not isinstance(self.headers, Headers):
            raise ValueError("headers must be Headers")

        if self.body is not None and not isinstance(self.body, bytes):
            raise ValueError("body must be bytes")

        if self.timeout is not None and (
            isinstance(self.timeout, bool)
            or not isinstance(self.timeout, (int, float))
            or not math.isfinite(self.timeout)
            or self.timeout < 0
        ):
            raise ValueError("timeout must be a finite, non-negative number of seconds")

        if not isinstance(self.max_redirects, int) or self.max_redirects < 0:
            raise ValueError("max_redirects must be a non-negative int")

    @classmethod
    def create(
        cls,
        method: str,
        url: Union[str, URL],
        headers: Optional[HeaderItems] = None,
        body: Optional[Union[bytes, str]] = None,
    ) -> "Request":
        """
        Create a Request with proper type conversion.

        Args:
            method: HTTP method (GET, POST, etc.)
            url: URL string or URL
            headers: Optional iterable of (name, value) header tuples
            body: Optional request body; strings are UTF-8 encoded

        Returns:
            New Request instance

        Raises:
            InvalidURLError: If the URL string cannot be parsed
        """
        if isinstance(url, str):
            url = URL.parse(url)

        if isinstance(body, str):
            body = body.encode("utf-8")

        return cls(
            method=method.upper(),
            url=url,
            headers=headers if isinstance(headers, Headers) else Headers(headers),
            body=body,
        )

    def with_method(self, method: str) -> "Request":
        """Create a new request with a different method."""
        return dataclasses.replace(self, method=method.upper())

    def with_url(self, url: Union[str, URL]) -> "Request":
        """Create a new request with a different URL."""
        if isinstance(url, str):
            url = URL.parse(url)
        return dataclasses.replace(self, url=url)

    def with_header(self, name: str, value: str) -> "Request":
        """Append a header. Existing headers of the same name are kept."""
        return dataclasses.replace(self, headers=self.headers.add(name, value))

    def with_headers(self, headers: HeaderItems) -> "Request":
        """Create a new request with different headers."""
        if not isinstance(headers, Headers):
            headers = Headers(headers)
        return dataclasses.replace(self, headers=headers)

    def with_body(self, body: Optional[Union[bytes, str]]) -> "Request":
        """Create a new request with a body; strings are UTF-8 encoded."""
        if isinstance(body, str):
            body = body.encode("utf-8")
        return dataclasses.replace(self, body=body)

    def with_timeout(self, seconds: Optional[float]) -> "Request":
        """Bound the whole request, redirects included, to ``seconds``."""
        return dataclasses.replace(self, timeout=seconds)

    def with_query(self, key: str, value: str) -> "Request":
        """Append a percent-encoded query parameter to the URL."""
        return dataclasses.replace(self, url=self.url.with_query(key, value))

    def with_max_redirects(self, max_redirects: int) -> "Request":
        """Set how many redirects are followed before giving up."""
        return dataclasses.replace(self, max_redirects=max_redirects)

    def prepared_headers(self) -> Headers:
        """
        Get the headers as they go on the wire.

        Adds ``Host`` when missing and ``Content-Length`` when a body is
        present and neither Content-Length nor Transfer-Encoding was set.
        """
        headers = self.headers
        if "Host" not in headers:
            headers = Headers((("Host", self.url.host_header),) + tuple(headers))
        if (
            self.body is not None
            and "Content-Length" not in headers
            and "Transfer-Encoding" not in headers
        ):
            headers = headers.add("Content-Length", str(len(self.body)))
        return headers

    def to_bytes(self) -> bytes:
        """Serialize the request to HTTP/1.1 wire format."""
        from .http11 import serialize_request

        return serialize_request(self)

    def send(
        self,
        backend: Optional["NetworkBackend"] = None,
        max_body_size: Optional[int] = None,
    ) -> "Response":
        """
        Send the request and return the complete response.

        Blocks until the response (after any redirects) is fully read.

        Raises:
            TinygetError: On any failure; see ``tinyget.exceptions``
        """
        from .client import Client

        return Client(backend=backend, max_body_size=max_body_size).send(self)

    @property
    def scheme(self) -> str:
        return self.url.scheme

    @property
    def host(self) -> str:
        return self.url.host

    @property
    def port(self) -> int:
        return self.url.port

    @property
    def target(self) -> str:
        """The request-target sent on the request line."""
        return self.url.request_target


@dataclass(frozen=True)
class Response:
    """
    Immutable HTTP response representation.

    The body is fully read before a Response is created; the body views
    (``as_bytes``, ``as_str``, ``lines``) all read from that buffer.
    """

    status_code: StatusCode
    reason_phrase: str = ""
    headers: Headers = field(default_factory=Headers)
    body: bytes = b""
    http_version: str = "HTTP/1.1"
    url: Optional[URL] = None
    history: Tuple[URL, ...] = ()

    def __post_init__(self) -> None:
        """Validate response data after initialization."""
        if not isinstance(self.status_code, int) or not 100 <= self.status_code <= 599:
            raise ValueError("status_code must be an int between 100 and 599")

        if not isinstance(self.headers, Headers):
            raise ValueError("headers must be Headers")

        if not isinstance(self.body, bytes):
            raise ValueError("body must be bytes")

    def as_bytes(self) -> bytes:
        """Get the body unchanged."""
        return self.body

    def as_str(self) -> str:
        """
        Get the body as text.

        Raises:
            InvalidUTF8Error: If the body is not valid UTF-8
        """
        try:
            return self.body.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidUTF8Error(e.start, cause=e) from e

    def lines(self) -> Iterator[str]:
        """Get a lazy, single-pass iterator over the body's text lines."""
        return iter_lines(self.body)

    def json(self) -> Any:
        """Decode the body as JSON."""
        return json.loads(self.as_str())

    def get_header(self, name: str) -> Optional[str]:
        """Get a header value by name (case-insensitive)."""
        return self.headers.get(name)

    def has_header(self, name: str) -> bool:
        """Check if a header exists (case-insensitive)."""
        return name in self.headers

    @property
    def is_redirect(self) -> bool:
        return self.status_code in REDIRECT_STATUSES
