"""
URL handling for tinyget.

This module parses absolute ``http``/``https`` URLs into an immutable
``URL`` value and resolves redirect ``Location`` values against it.
Percent-encoding is passed through untouched.
"""

from typing import NamedTuple, Optional, Tuple
from urllib.parse import quote, urljoin, urlsplit

from .exceptions import InvalidURLError

DEFAULT_PORTS = {"http": 80, "https": 443}

_FORBIDDEN_CHARS = frozenset(" \t\r\n\x00")


class URL(NamedTuple):
    """Immutable representation of an absolute URL."""

    scheme: str
    host: str
    port: int
    path: str = "/"
    query: Optional[str] = None
    fragment: Optional[str] = None

    @classmethod
    def parse(cls, raw: str) -> "URL":
        """
        Parse an absolute URL of the form
        ``scheme://host[:port][/path][?query][#fragment]``.

        Args:
            raw: The URL string

        Returns:
            New URL instance

        Raises:
            InvalidURLError: If the scheme or host is missing, the scheme is
                not http/https, or the port is invalid
        """
        if not isinstance(raw, str):
            raise InvalidURLError("URL must be a string", repr(raw))

        if any(char in _FORBIDDEN_CHARS for char in raw):
            raise InvalidURLError("URL contains whitespace or control characters", raw)

        if "://" not in raw:
            raise InvalidURLError("missing scheme", raw)

        parts = urlsplit(raw)
        scheme = parts.scheme.lower()
        if scheme not in DEFAULT_PORTS:
            raise InvalidURLError(f"unsupported scheme {parts.scheme!r}", raw)

        host = parts.hostname
        if not host:
            raise InvalidURLError("missing host", raw)

        try:
            port = parts.port
        except ValueError as e:
            raise InvalidURLError(f"invalid port ({e})", raw) from e
        if port is None:
            port = DEFAULT_PORTS[scheme]
        elif port == 0:
            raise InvalidURLError("port must be between 1 and 65535", raw)

        return cls(
            scheme=scheme,
            host=host,
            port=port,
            path=parts.path or "/",
            query=parts.query or None,
            fragment=parts.fragment or None,
        )

    @property
    def is_secure(self) -> bool:
        """Whether the URL requires a TLS transport."""
        return self.scheme == "https"

    @property
    def origin(self) -> Tuple[str, str, int]:
        """The (scheme, host, port) triple identifying the server."""
        return (self.scheme, self.host, self.port)

    @property
    def request_target(self) -> str:
        """The path-and-query sent on the request line."""
        if self.query is None:
            return self.path
        return f"{self.path}?{self.query}"

    @property
    def host_header(self) -> str:
        """The value for the ``Host`` request header."""
        host = f"[{self.host}]" if ":" in self.host else self.host
        if self.port == DEFAULT_PORTS[self.scheme]:
            return host
        return f"{host}:{self.port}"

    def with_query(self, key: str, value: str) -> "URL":
        """Append a percent-encoded ``key=value`` pair to the query."""
        pair = f"{quote(key, safe='')}={quote(value, safe='')}"
        query = pair if not self.query else f"{self.query}&{pair}"
        return self._replace(query=query)

    def join(self, location: str) -> "URL":
        """
        Resolve a redirect ``Location`` value against this URL.

        Absolute locations replace the URL entirely; anything else is
        resolved relative to it. A fragment on this URL carries over when
        the location has none.
        """
        resolved = URL.parse(urljoin(str(self._replace(fragment=None)), location))
        if resolved.fragment is None and self.fragment is not None:
            resolved = resolved._replace(fragment=self.fragment)
        return resolved

    def __str__(self) -> str:
        url = f"{self.scheme}://{self.host_header}{self.request_target}"
        if self.fragment is not None:
            url += f"#{self.fragment}"
        return url
