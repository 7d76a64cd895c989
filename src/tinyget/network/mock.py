"""
Mock network implementations for testing.

This module provides mock implementations of NetworkStream and NetworkBackend
that serve scripted response bytes from memory, so the request/response cycle
can be tested without real network connections.
"""

from collections import defaultdict, deque
from typing import Any, Deque, Dict, List, Optional, Set, Tuple

from ..exceptions import ConnectionError, TLSError
from ..timeouts import Deadline
from .backend import NetworkBackend
from .stream import NetworkStream


class MockNetworkStream(NetworkStream):
    """
    Mock network stream for testing.

    This implementation simulates a network stream in memory,
    allowing tests to verify network behavior without actual I/O.
    """

    def __init__(
        self,
        data: bytes = b"",
        deadline: Optional[Deadline] = None,
        max_chunk: Optional[int] = None,
        error: Optional[Exception] = None,
    ):
        """
        Initialize the mock stream.

        Args:
            data: Data to be available for reading.
            deadline: Deadline checked before every read and write.
            max_chunk: Upper bound on the bytes returned by a single read,
                      to exercise parsing across read boundaries.
            error: Exception raised once all data has been read,
                   instead of reporting end-of-data.
        """
        self._data = data
        self._position = 0
        self._closed = False
        self._deadline = deadline
        self._max_chunk = max_chunk
        self._error = error
        self._extra_info: Dict[str, Any] = {}
        self._write_buffer: List[bytes] = []
        self.read_calls = 0

    def read(self, max_bytes: int = 65536) -> bytes:
        if self._closed:
            raise RuntimeError("Stream is closed")

        if self._deadline is not None:
            self._deadline.remaining()

        self.read_calls += 1
        if self._position >= len(self._data):
            if self._error is not None:
                raise self._error
            return b""

        if self._max_chunk is not None:
            max_bytes = min(max_bytes, self._max_chunk)
        end = min(self._position + max_bytes, len(self._data))
        result = self._data[self._position:end]
        self._position = end
        return result

    def write(self, data: bytes) -> None:
        if self._closed:
            raise RuntimeError("Stream is closed")

        if self._deadline is not None:
            self._deadline.remaining()

        self._write_buffer.append(data)

    def close(self) -> None:
        """Close the mock stream."""
        self._closed = True

    def get_extra_info(self, name: str) -> Optional[Any]:
        return self._extra_info.get(name)

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def written_data(self) -> bytes:
        """Get all data that was written to the stream."""
        return b"".join(self._write_buffer)

    def set_extra_info(self, name: str, value: Any) -> None:
        self._extra_info[name] = value

    def set_deadline(self, deadline: Optional[Deadline]) -> None:
        self._deadline = deadline

    def add_data(self, data: bytes) -> None:
        """
        Add data to be available for reading.

        Args:
            data: The data to add.
        """
        self._data += data


class MockNetworkBackend(NetworkBackend):
    """
    Mock network backend for testing.

    Responses are queued per (host, port); every connection attempt takes
    the next queued stream. Attempts with nothing queued are refused.
    """

    def __init__(self):
        """Initialize the mock backend."""
        self._queued: Dict[Tuple[str, int], Deque[MockNetworkStream]] = defaultdict(
            deque
        )
        self._tls_failures: Set[str] = set()
        self.connection_attempts: List[Tuple[str, int]] = []
        self.tls_upgrades: List[str] = []
        self.streams: List[MockNetworkStream] = []

    def add_response(
        self,
        host: str,
        port: int,
        data: bytes,
        max_chunk: Optional[int] = None,
        error: Optional[Exception] = None,
    ) -> MockNetworkStream:
        """
        Queue the raw bytes served by the next connection to host:port.

        Returns:
            The stream that will be handed out, for later inspection.
        """
        stream = MockNetworkStream(data, max_chunk=max_chunk, error=error)
        stream.set_extra_info("peername", (host, port))
        stream.set_extra_info("sockname", ("127.0.0.1", 12345))
        self._queued[(host, port)].append(stream)
        return stream

    def fail_tls(self, host: str) -> None:
        """Make TLS upgrades for ``host`` fail certificate validation."""
        self._tls_failures.add(host)

    def connect_tcp(
        self, host: str, port: int, deadline: Deadline
    ) -> MockNetworkStream:
        deadline.remaining()
        self.connection_attempts.append((host, port))

        queued = self._queued.get((host, port))
        if not queued:
            raise ConnectionError(f"Failed to connect to {host}:{port}: refused")

        stream = queued.popleft()
        stream.set_deadline(deadline)
        self.streams.append(stream)
        return stream

    def connect_tls(
        self,
        stream: MockNetworkStream,
        host: str,
        deadline: Deadline,
    ) -> MockNetworkStream:
        deadline.remaining()
        self.tls_upgrades.append(host)

        if host in self._tls_failures:
            raise TLSError(f"certificate verify failed for {host}")

        stream.set_extra_info("ssl_object", True)
        stream.set_extra_info("selected_alpn_protocol", "http/1.1")
        return stream

    @property
    def connection_count(self) -> int:
        return len(self.connection_attempts)

    def reset(self) -> None:
        """Reset all mock connections."""
        self._queued.clear()
        self._tls_failures.clear()
        self.connection_attempts.clear()
        self.tls_upgrades.clear()
        self.streams.clear()
