"""
Network stream interface for tinyget.

This module defines the NetworkStream interface that all network stream
implementations must follow. A stream is bound to the deadline of the
request it serves; every read and write only waits for the time that
is left.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class NetworkStream(ABC):
    """
    Interface for blocking network streams.

    Implementations wrap one TCP or TLS connection used for exactly one
    request/response exchange.
    """

    @abstractmethod
    def read(self, max_bytes: int = 65536) -> bytes:
        """
        Read data from the stream.

        Args:
            max_bytes: Maximum number of bytes to read.

        Returns:
            The data read, or ``b""`` once the peer has closed the connection.

        Raises:
            TimeoutError: If the deadline is reached before data arrives.
            ConnectionError: If a network error occurs.
        """
        pass

    @abstractmethod
    def write(self, data: bytes) -> None:
        """
        Write all of ``data`` to the stream.

        Raises:
            TimeoutError: If the deadline is reached before the write completes.
            ConnectionError: If a network error occurs.
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """
        Close the stream and release the underlying socket.

        Closing an already closed stream does nothing.
        """
        pass

    @abstractmethod
    def get_extra_info(self, name: str) -> Optional[Any]:
        """
        Get extra information about the stream.

        Args:
            name: The name of the information to retrieve. Common values include:
                 - "peername": The remote endpoint address
                 - "sockname": The local endpoint address
                 - "ssl_object": Whether the stream is TLS encrypted
                 - "selected_alpn_protocol": The negotiated ALPN protocol

        Returns:
            The requested information or None if not available.
        """
        pass

    @property
    @abstractmethod
    def is_closed(self) -> bool:
        """Check if the stream is closed."""
        pass

    def __enter__(self) -> "NetworkStream":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
