"""
Buffered reading for tinyget.

``StreamReader`` is the cursor the response parser consumes: it pulls
bytes from a NetworkStream on demand and hands out lines, exact-length
slices, or everything up to end-of-data.
"""

from typing import Optional

from .exceptions import BodyTooLargeError, ConnectionError, ProtocolError
from .network.stream import NetworkStream


class StreamReader:
    """
    Buffered cursor over a NetworkStream.

    Reads are driven by consumption: the stream is only read when the
    buffer cannot satisfy the current request.
    """

    READ_SIZE = 65536
    MAX_LINE_SIZE = 65536

    def __init__(self, stream: NetworkStream, read_size: Optional[int] = None) -> None:
        self._stream = stream
        self._buffer = bytearray()
        self._eof = False
        self._read_size = read_size or self.READ_SIZE
        self._bytes_received = 0

    @property
    def bytes_received(self) -> int:
        """Total number of bytes read from the stream."""
        return self._bytes_received

    @property
    def at_eof(self) -> bool:
        """Whether the peer has closed and the buffer is drained."""
        return self._eof and not self._buffer

    def _fill(self) -> bool:
        """Read more data into the buffer. Returns False at end-of-data."""
        if self._eof:
            return False
        data = self._stream.read(self._read_size)
        if not data:
            self._eof = True
            return False
        self._bytes_received += len(data)
        self._buffer.extend(data)
        return True

    def read_line(self, limit: Optional[int] = None) -> Optional[bytes]:
        """
        Read one line, without its line ending.

        Lines end in CRLF; a bare LF is accepted too.

        Args:
            limit: Maximum line length (defaults to MAX_LINE_SIZE)

        Returns:
            The line, or None if the stream ended before any byte of it

        Raises:
            ProtocolError: If the line is too long
            ConnectionError: If the stream ends mid-line
        """
        limit = limit or self.MAX_LINE_SIZE
        searched = 0
        while True:
            index = self._buffer.find(b"\n", searched)
            if index != -1:
                break
            searched = len(self._buffer)
            if searched > limit:
                raise ProtocolError(f"line exceeds {limit} bytes")
            if not self._fill():
                if not self._buffer:
                    return None
                raise ConnectionError(
                    f"connection closed mid-line after {len(self._buffer)} bytes"
                )

        if index > limit:
            raise ProtocolError(f"line exceeds {limit} bytes")

        line = bytes(self._buffer[:index])
        del self._buffer[: index + 1]
        if line.endswith(b"\r"):
            line = line[:-1]
        return line

    def read_exact(self, size: int) -> bytes:
        """
        Read exactly ``size`` bytes.

        Raises:
            ConnectionError: If the stream ends first
        """
        while len(self._buffer) < size:
            if not self._fill():
                raise ConnectionError(
                    f"connection closed after {len(self._buffer)} of {size} bytes"
                )
        data = bytes(self._buffer[:size])
        del self._buffer[:size]
        return data

    def read_to_end(self, max_size: Optional[int] = None) -> bytes:
        """
        Read until the peer closes the connection.

        Raises:
            BodyTooLargeError: If more than ``max_size`` bytes arrive
        """
        while True:
            if max_size is not None and len(self._buffer) > max_size:
                raise BodyTooLargeError(max_size)
            if not self._fill():
                break
        data = bytes(self._buffer)
        self._buffer.clear()
        return data
