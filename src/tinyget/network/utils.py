"""
Network utilities for tinyget.

This module provides helpers for socket configuration and SSL context
setup used by the blocking socket backend.
"""

import socket
import ssl
from typing import List, Optional


def configure_socket(sock: socket.socket) -> socket.socket:
    """Apply client socket options (TCP_NODELAY)."""
    try:
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
    except OSError:
        # not a TCP socket
        pass
    return sock


def create_ssl_context(
    alpn_protocols: Optional[List[str]] = None,
    verify_mode: int = ssl.CERT_REQUIRED,
    check_hostname: bool = True,
    cafile: Optional[str] = None,
    cert_file: Optional[str] = None,
    key_file: Optional[str] = None,
) -> ssl.SSLContext:
    """
    Create an SSL context for client connections.

    Args:
        alpn_protocols: ALPN protocols to offer (defaults to ``["http/1.1"]``)
        verify_mode: SSL verification mode
        check_hostname: Whether to verify the hostname against the certificate
        cafile: Extra CA bundle to trust
        cert_file: Path to certificate file (for client auth)
        key_file: Path to private key file (for client auth)

    Returns:
        Configured SSL context

    Raises:
        ssl.SSLError: If SSL context creation fails
    """
    context = ssl.create_default_context(cafile=cafile)
    context.check_hostname = check_hostname
    context.verify_mode = verify_mode

    context.set_alpn_protocols(alpn_protocols or ["http/1.1"])

    context.options |= ssl.OP_NO_COMPRESSION
    context.minimum_version = ssl.TLSVersion.TLSv1_2

    if cert_file and key_file:
        context.load_cert_chain(cert_file, key_file)

    return context


def get_socket_info(sock: socket.socket) -> dict:
    """
    Get information about a socket.

    Args:
        sock: Socket object

    Returns:
        Dictionary with socket information
    """
    info = {}

    try:
        info["peername"] = sock.getpeername()
    except OSError:
        info["peername"] = None

    try:
        info["sockname"] = sock.getsockname()
    except OSError:
        info["sockname"] = None

    return info
