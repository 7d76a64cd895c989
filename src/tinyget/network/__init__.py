"""
Network backend components for tinyget.

This module provides the transport abstractions: the blocking socket
backend used for real requests and the in-memory mock used in tests.
"""

from .backend import NetworkBackend
from .stream import NetworkStream
from .sync import SyncNetworkBackend, SyncNetworkStream
from .mock import MockNetworkBackend, MockNetworkStream
from .utils import configure_socket, create_ssl_context, get_socket_info

__all__ = [
    "NetworkBackend",
    "NetworkStream",
    "SyncNetworkBackend",
    "SyncNetworkStream",
    "MockNetworkBackend",
    "MockNetworkStream",
    "configure_socket",
    "create_ssl_context",
    "get_socket_info",
]
