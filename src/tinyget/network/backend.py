"""
Network backend interface for tinyget.

This module defines the NetworkBackend interface that opens the byte
stream for a request: a plain TCP connection, upgraded to TLS when the
URL scheme asks for it.
"""

import logging
from abc import ABC, abstractmethod

from ..timeouts import Deadline
from .stream import NetworkStream

logger = logging.getLogger(__name__)


class NetworkBackend(ABC):
    """
    Interface for network backend implementations.

    The transport is a closed choice between plain and secure: ``connect``
    always opens TCP first and performs the TLS upgrade on top of it when
    ``secure`` is set. A failed upgrade never falls back to plaintext.
    """

    @abstractmethod
    def connect_tcp(self, host: str, port: int, deadline: Deadline) -> NetworkStream:
        """
        Connect to a TCP endpoint.

        Args:
            host: The hostname or IP address to connect to.
            port: The port number to connect to.
            deadline: The request deadline bounding the connect.

        Returns:
            A NetworkStream representing the TCP connection.

        Raises:
            ConnectionError: If the connection fails.
            TimeoutError: If the deadline passes first.
        """
        pass

    @abstractmethod
    def connect_tls(
        self,
        stream: NetworkStream,
        host: str,
        deadline: Deadline,
    ) -> NetworkStream:
        """
        Upgrade a TCP stream to TLS.

        Args:
            stream: The existing TCP NetworkStream to upgrade.
            host: The hostname for TLS certificate verification.
            deadline: The request deadline bounding the handshake.

        Returns:
            A NetworkStream representing the TLS connection.

        Raises:
            TLSError: If the handshake or certificate validation fails.
            TimeoutError: If the deadline passes first.
        """
        pass

    def connect(
        self, host: str, port: int, secure: bool, deadline: Deadline
    ) -> NetworkStream:
        """
        Open the stream for one request.

        Args:
            host: Target host
            port: Target port
            secure: Whether to upgrade the connection to TLS
            deadline: The request deadline

        Returns:
            A connected (and, if requested, encrypted) NetworkStream
        """
        deadline.remaining()

        stream = self.connect_tcp(host, port, deadline)
        logger.debug(f"Connected to {host}:{port}")
        if not secure:
            return stream

        try:
            tls_stream = self.connect_tls(stream, host, deadline)
        except Exception:
            stream.close()
            raise
        logger.debug(f"TLS established with {host}:{port}")
        return tls_stream
