"""
HTTP/1.1 implementation for tinyget.

This module serializes requests with h11 and parses responses with
``ResponseParser``, a strict status-line → headers → body state machine.
``HTTP11Connection`` runs one request/response exchange over a
NetworkStream.
"""

import logging
import re
import time
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import h11

from .exceptions import (
    BodyTooLargeError,
    ChunkSizeError,
    ConnectionError,
    ContentLengthError,
    HeaderError,
    InvalidRequestError,
    StatusLineError,
    TinygetError,
)
from .http_primitives import Headers, Request, Response
from .network.stream import NetworkStream
from .streams import StreamReader

logger = logging.getLogger(__name__)

# Printable ASCII is sent as-is; anything else in a target is UTF-8 percent-encoded
_TARGET_SAFE = "".join(chr(c) for c in range(0x21, 0x7F))
_CHUNK_SIZE_RE = re.compile(rb"[0-9A-Fa-f]+")
_DIGITS_RE = re.compile(r"[0-9]+")


def _encode_header(name: str, value: str) -> Tuple[bytes, bytes]:
    try:
        return name.encode("ascii"), value.encode("iso-8859-1")
    except UnicodeEncodeError as e:
        raise InvalidRequestError(
            f"header {name!r} cannot be encoded for the wire", cause=e
        ) from e


def serialize_request(request: Request) -> bytes:
    """
    Serialize a request to HTTP/1.1 wire format.

    Args:
        request: The request to serialize

    Returns:
        Request line, headers, blank line and body

    Raises:
        InvalidRequestError: If the method, target or a header is invalid
    """
    try:
        method = request.method.encode("ascii")
    except UnicodeEncodeError as e:
        raise InvalidRequestError(f"invalid method {request.method!r}", cause=e) from e

    target = quote(request.target, safe=_TARGET_SAFE).encode("ascii")
    headers = [
        _encode_header(name, value) for name, value in request.prepared_headers()
    ]

    # h11 writes Host before the other header lines, even when the caller
    # added it after them
    h11_connection = h11.Connection(h11.CLIENT)
    try:
        data = h11_connection.send(
            h11.Request(method=method, target=target, headers=headers)
        )
        if request.body:
            data += h11_connection.send(h11.Data(data=request.body))
        data += h11_connection.send(h11.EndOfMessage())
    except h11.LocalProtocolError as e:
        raise InvalidRequestError(str(e), cause=e) from e

    return data


class ParserState(Enum):
    """States of the response parser, in the only order they occur."""
    STATUS_LINE = 0
    HEADERS = 1
    BODY = 2
    DONE = 3


class BodyFraming(Enum):
    """How the end of a response body is determined."""
    NONE = "none"                        # HEAD, 1xx, 204, 304
    CHUNKED = "chunked"                  # Transfer-Encoding: chunked
    CONTENT_LENGTH = "content-length"    # exactly N bytes
    CLOSE_DELIMITED = "close-delimited"  # until the peer closes


class ResponseParser:
    """
    HTTP/1.1 response parser.

    Consumes a StreamReader and produces a Response. The parser moves
    strictly forward through ParserState and can only be used once.
    """

    MAX_HEADERS = 100
    MAX_SIZE = 2**63 - 1

    def __init__(
        self,
        reader: StreamReader,
        request_method: str = "GET",
        max_body_size: Optional[int] = None,
    ) -> None:
        """
        Initialize the parser.

        Args:
            reader: Cursor over the connection's bytes
            request_method: Method of the request being answered (HEAD
                responses never have a body)
            max_body_size: Optional cap on the body length in bytes
        """
        self._reader = reader
        self._request_method = request_method.upper()
        self._max_body_size = max_body_size
        self._state = ParserState.STATUS_LINE

    @property
    def state(self) -> ParserState:
        return self._state

    def _advance(self, state: ParserState) -> None:
        if state.value != self._state.value + 1:
            raise RuntimeError(f"invalid parser transition {self._state} -> {state}")
        self._state = state

    def parse(self) -> Response:
        """
        Parse a complete response.

        Raises:
            StatusLineError: If the status line is malformed
            HeaderError: If a header line is malformed
            ContentLengthError: If Content-Length is invalid or conflicting
            ChunkSizeError: If a chunk-size line is malformed
            BodyTooLargeError: If the body exceeds max_body_size
            ConnectionError: If the connection ends before the response does
        """
        if self._state is not ParserState.STATUS_LINE:
            raise RuntimeError("ResponseParser can only parse one response")

        http_version, status_code, reason_phrase = self._read_status_line()
        self._advance(ParserState.HEADERS)

        header_items = self._read_header_block()
        headers = Headers(header_items)
        self._advance(ParserState.BODY)

        framing, content_length = self.select_framing(status_code, headers)
        logger.debug(f"Response {status_code}: body framing {framing.value}")
        body, trailers = self._read_body(framing, content_length)
        if trailers:
            headers = Headers(header_items + trailers)
        self._advance(ParserState.DONE)

        return Response(
            status_code=status_code,
            reason_phrase=reason_phrase,
            headers=headers,
            body=body,
            http_version=http_version,
        )

    def _read_status_line(self) -> Tuple[str, int, str]:
        line = self._reader.read_line()
        if line is None:
            raise ConnectionError("connection closed before the status line")

        parts = line.split(b" ", 2)
        if len(parts) < 2 or not parts[0].startswith(b"HTTP/"):
            raise StatusLineError("malformed status line", line=line)

        version, code = parts[0], parts[1]
        if len(code) != 3 or not code.isdigit():
            raise StatusLineError("status code is not a 3-digit integer", line=line)

        status_code = int(code)
        if not 100 <= status_code <= 599:
            raise StatusLineError("status code out of range", line=line)

        reason = parts[2] if len(parts) == 3 else b""
        return (
            version.decode("ascii", "replace"),
            status_code,
            reason.strip().decode("iso-8859-1"),
        )

    def _read_header_block(self) -> List[Tuple[str, str]]:
        """Read ``Name: Value`` lines up to an empty line."""
        items: List[Tuple[str, str]] = []
        while True:
            line = self._reader.read_line()
            if line is None:
                raise ConnectionError("connection closed while reading headers")
            if not line:
                return items
            if len(items) >= self.MAX_HEADERS:
                raise HeaderError(f"more than {self.MAX_HEADERS} header lines")
            items.append(self.parse_header_line(line))

    def parse_header_line(self, line: bytes) -> Tuple[str, str]:
        """
        Split one header line into name and trimmed value.

        Raises:
            HeaderError: If the line has no colon, an invalid name, or is
                an obsolete folded continuation line
        """
        if line[:1] in (b" ", b"\t"):
            raise HeaderError("obsolete header line folding is not supported", line=line)

        name, sep, value = line.partition(b":")
        if not sep:
            raise HeaderError("header line has no colon", line=line)
        if not name or b" " in name or b"\t" in name:
            raise HeaderError("invalid header name", line=line)

        return name.decode("iso-8859-1"), value.strip().decode("iso-8859-1")

    def select_framing(
        self, status_code: int, headers: Headers
    ) -> Tuple[BodyFraming, Optional[int]]:
        """
        Choose how the body is delimited.

        Returns:
            The framing and, for CONTENT_LENGTH, the declared length
        """
        if (
            self._request_method == "HEAD"
            or 100 <= status_code < 200
            or status_code in (204, 304)
        ):
            return BodyFraming.NONE, None

        encodings = [
            token.strip().lower()
            for value in headers.get_all("Transfer-Encoding")
            for token in value.split(",")
        ]
        if "chunked" in encodings:
            return BodyFraming.CHUNKED, None

        lengths = headers.get_all("Content-Length")
        if lengths:
            return BodyFraming.CONTENT_LENGTH, self._parse_content_length(lengths)

        return BodyFraming.CLOSE_DELIMITED, None

    def _parse_content_length(self, values: List[str]) -> int:
        lengths = set()
        for value in values:
            for token in value.split(","):
                token = token.strip()
                if not _DIGITS_RE.fullmatch(token):
                    raise ContentLengthError(
                        "Content-Length is not a non-negative integer",
                        line=value.encode("iso-8859-1"),
                    )
                digits = token.lstrip("0") or "0"
                length = int(digits) if len(digits) <= 19 else self.MAX_SIZE + 1
                if length > self.MAX_SIZE:
                    raise ContentLengthError("Content-Length overflows")
                lengths.add(length)

        if len(lengths) > 1:
            raise ContentLengthError(
                f"conflicting Content-Length values {sorted(lengths)}"
            )
        return lengths.pop()

    def _read_body(
        self, framing: BodyFraming, content_length: Optional[int]
    ) -> Tuple[bytes, List[Tuple[str, str]]]:
        if framing is BodyFraming.NONE:
            return b"", []

        if framing is BodyFraming.CHUNKED:
            return self._read_chunked()

        if framing is BodyFraming.CONTENT_LENGTH:
            if self._max_body_size is not None and content_length > self._max_body_size:
                raise BodyTooLargeError(self._max_body_size)
            return self._reader.read_exact(content_length), []

        return self._reader.read_to_end(self._max_body_size), []

    def _read_chunked(self) -> Tuple[bytes, List[Tuple[str, str]]]:
        body = bytearray()
        while True:
            line = self._reader.read_line()
            if line is None:
                raise ConnectionError("connection closed before the next chunk")

            size = self.parse_chunk_size(line)
            if size == 0:
                break

            if (
                self._max_body_size is not None
                and len(body) + size > self._max_body_size
            ):
                raise BodyTooLargeError(self._max_body_size)

            body += self._reader.read_exact(size)

            terminator = self._reader.read_line()
            if terminator is None:
                raise ConnectionError("connection closed after chunk data")
            if terminator:
                raise ChunkSizeError("chunk data not followed by CRLF", line=terminator)

        trailers: List[Tuple[str, str]] = []
        while True:
            line = self._reader.read_line()
            # None: peer closed after the last chunk without the final CRLF
            if not line:
                return bytes(body), trailers
            if len(trailers) >= self.MAX_HEADERS:
                raise HeaderError(f"more than {self.MAX_HEADERS} trailer lines")
            trailers.append(self.parse_header_line(line))

    def parse_chunk_size(self, line: bytes) -> int:
        """
        Parse a chunk-size line, ignoring chunk extensions.

        Raises:
            ChunkSizeError: If the size is not hexadecimal or overflows
        """
        token = line.split(b";", 1)[0].strip()
        if not _CHUNK_SIZE_RE.fullmatch(token):
            raise ChunkSizeError("invalid chunk size", line=line)

        size = int(token, 16)
        if size > self.MAX_SIZE:
            raise ChunkSizeError("chunk size overflows", line=line)
        return size


class ConnectionState(Enum):
    """States of an HTTP/1.1 connection."""
    NEW = "new"           # Connection created, not yet used
    ACTIVE = "active"     # Connection handling its request
    CLOSED = "closed"     # Connection closed, cannot be reused


class HTTP11Connection:
    """
    HTTP/1.1 connection manager.

    This class runs a single request/response exchange over a
    NetworkStream. There is no keep-alive: the stream is closed as soon
    as the response has been read or an error occurs.
    """

    def __init__(
        self,
        stream: NetworkStream,
        max_body_size: Optional[int] = None,
    ):
        """
        Initialize HTTP/1.1 connection.

        Args:
            stream: The NetworkStream to use for communication
            max_body_size: Optional cap on the response body length
        """
        self._stream = stream
        self._max_body_size = max_body_size
        self._state = ConnectionState.NEW

        # Metrics
        self._bytes_sent = 0
        self._bytes_received = 0
        self._request_time = 0.0

        logger.debug("HTTP/1.1 connection initialized")

    def handle_request(self, request: Request, data: Optional[bytes] = None) -> Response:
        """
        Handle a complete HTTP request/response cycle.

        Args:
            request: The HTTP request to send
            data: Already serialized form of ``request``, if available

        Returns:
            The HTTP response received, with its body fully read

        Raises:
            ConnectionError: If the connection was already used or I/O fails
            ProtocolError: If the response is malformed
            TimeoutError: If the request deadline passes
        """
        if self._state is not ConnectionState.NEW:
            raise ConnectionError(f"Connection is {self._state.value}")
        self._state = ConnectionState.ACTIVE

        start_time = time.monotonic()
        reader = StreamReader(self._stream)
        try:
            self._send_request(request, data)

            parser = ResponseParser(
                reader,
                request_method=request.method,
                max_body_size=self._max_body_size,
            )
            response = parser.parse()

            self._request_time = time.monotonic() - start_time
            logger.debug(
                f"{request.method} {request.target} -> {response.status_code} "
                f"({self._request_time:.3f}s)"
            )
            return response

        except TinygetError as e:
            self._request_time = time.monotonic() - start_time
            logger.error(
                f"{request.method} {request.url} failed: {e} ({self._request_time:.3f}s)"
            )
            raise

        finally:
            self._bytes_received = reader.bytes_received
            self.close()

    def _send_request(self, request: Request, data: Optional[bytes] = None) -> None:
        if data is None:
            data = serialize_request(request)
        self._stream.write(data)
        self._bytes_sent += len(data)
        logger.debug(f"Sent {request.method} {request.target} ({len(data)} bytes)")

    def close(self) -> None:
        """Close the connection and cleanup resources."""
        if self._state is not ConnectionState.CLOSED:
            self._state = ConnectionState.CLOSED
            self._stream.close()

    @property
    def is_closed(self) -> bool:
        """Check if connection is closed."""
        return self._state is ConnectionState.CLOSED

    @property
    def metrics(self) -> Dict[str, Any]:
        """
        Get connection metrics.

        Returns:
            Dictionary with connection metrics
        """
        return {
            "bytes_sent": self._bytes_sent,
            "bytes_received": self._bytes_received,
            "request_time": self._request_time,
            "state": self._state.value,
        }
