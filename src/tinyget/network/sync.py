"""
Blocking socket backend for tinyget.

Implements NetworkStream and NetworkBackend on top of the ``socket`` and
``ssl`` modules. Before every blocking call the socket timeout is set to
the time remaining until the request deadline.
"""

import logging
import socket
import ssl
from typing import Any, Optional

from ..exceptions import ConnectionError, TimeoutError, TLSError
from ..timeouts import Deadline
from .backend import NetworkBackend
from .stream import NetworkStream
from .utils import configure_socket, create_ssl_context, get_socket_info

logger = logging.getLogger(__name__)

# poll() takes the timeout as a C int of milliseconds
MAX_SOCKET_TIMEOUT = (2**31 - 1) // 1000


def socket_timeout(deadline: Deadline) -> Optional[float]:
    """
    Get the socket timeout for the next blocking call.

    The time left is capped at MAX_SOCKET_TIMEOUT; a call blocked that
    long fails with TimeoutError even if the deadline is further away.
    """
    remaining = deadline.remaining()
    if remaining is None:
        return None
    return min(remaining, MAX_SOCKET_TIMEOUT)


class SyncNetworkStream(NetworkStream):
    """NetworkStream over a connected (optionally TLS-wrapped) socket."""

    def __init__(self, sock: socket.socket, deadline: Optional[Deadline] = None):
        self._sock = sock
        self._deadline = deadline or Deadline()
        self._closed = False

    @property
    def socket(self) -> socket.socket:
        """The underlying socket."""
        return self._sock

    @property
    def deadline(self) -> Deadline:
        return self._deadline

    def _apply_deadline(self) -> None:
        self._sock.settimeout(socket_timeout(self._deadline))

    def read(self, max_bytes: int = 65536) -> bytes:
        if self._closed:
            raise ConnectionError("Stream is closed")

        self._apply_deadline()
        try:
            return self._sock.recv(max_bytes)
        except ssl.SSLZeroReturnError:
            return b""
        except socket.timeout as e:
            raise TimeoutError("Read timed out", self._deadline.timeout) from e
        except ssl.SSLError as e:
            raise TLSError(str(e), cause=e) from e
        except OSError as e:
            raise ConnectionError(f"Read failed: {e}", cause=e) from e

    def write(self, data: bytes) -> None:
        if self._closed:
            raise ConnectionError("Stream is closed")

        self._apply_deadline()
        try:
            self._sock.sendall(data)
        except socket.timeout as e:
            raise TimeoutError("Write timed out", self._deadline.timeout) from e
        except ssl.SSLError as e:
            raise TLSError(str(e), cause=e) from e
        except OSError as e:
            raise ConnectionError(f"Write failed: {e}", cause=e) from e

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._sock.close()
        except OSError as e:
            logger.debug(f"Error closing socket: {e}")

    def get_extra_info(self, name: str) -> Optional[Any]:
        if name == "ssl_object":
            return isinstance(self._sock, ssl.SSLSocket)
        if name == "selected_alpn_protocol":
            if isinstance(self._sock, ssl.SSLSocket):
                return self._sock.selected_alpn_protocol()
            return None
        return get_socket_info(self._sock).get(name)

    @property
    def is_closed(self) -> bool:
        return self._closed


class SyncNetworkBackend(NetworkBackend):
    """
    Blocking network backend.

    Uses the operating system resolver through ``socket.create_connection``
    and the ``ssl`` module for the TLS upgrade.
    """

    def __init__(self, ssl_context: Optional[ssl.SSLContext] = None) -> None:
        self._ssl_context = ssl_context

    @property
    def ssl_context(self) -> ssl.SSLContext:
        if self._ssl_context is None:
            self._ssl_context = create_ssl_context()
        return self._ssl_context

    def connect_tcp(
        self, host: str, port: int, deadline: Deadline
    ) -> SyncNetworkStream:
        try:
            sock = socket.create_connection((host, port), timeout=socket_timeout(deadline))
        except socket.timeout as e:
            raise TimeoutError(
                f"Connecting to {host}:{port} timed out", deadline.timeout
            ) from e
        except OSError as e:
            raise ConnectionError(
                f"Failed to connect to {host}:{port}: {e}", cause=e
            ) from e

        return SyncNetworkStream(configure_socket(sock), deadline)

    def connect_tls(
        self,
        stream: NetworkStream,
        host: str,
        deadline: Deadline,
    ) -> SyncNetworkStream:
        if not isinstance(stream, SyncNetworkStream):
            raise TypeError("SyncNetworkBackend can only upgrade SyncNetworkStream")

        sock = stream.socket
        try:
            sock.settimeout(socket_timeout(deadline))
            tls_sock = self.ssl_context.wrap_socket(sock, server_hostname=host)
        except socket.timeout as e:
            raise TimeoutError(
                f"TLS handshake with {host} timed out", deadline.timeout
            ) from e
        except ssl.SSLError as e:
            raise TLSError(f"handshake with {host} failed: {e}", cause=e) from e
        except OSError as e:
            raise ConnectionError(
                f"TLS handshake with {host} failed: {e}", cause=e
            ) from e

        return SyncNetworkStream(tls_sock, deadline)
