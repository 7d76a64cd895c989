"""
Pytest configuration for tinyget tests.

This file contains shared fixtures and configuration
for all tests in the project.
"""

import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Iterable, Optional, Tuple

import pytest

from tinyget.network import MockNetworkBackend
from tinyget.timeouts import TIMEOUT_ENV_VAR, reset_default_timeout


def build_response(
    status: int = 200,
    reason: str = "OK",
    headers: Iterable[Tuple[str, str]] = (),
    body: bytes = b"",
    content_length: bool = True,
) -> bytes:
    """Build raw HTTP/1.1 response bytes."""
    lines = [f"HTTP/1.1 {status} {reason}".encode("ascii")]
    for name, value in headers:
        lines.append(f"{name}: {value}".encode("latin-1"))
    if content_length:
        lines.append(f"Content-Length: {len(body)}".encode("ascii"))
    return b"\r\n".join(lines) + b"\r\n\r\n" + body


def build_redirect(status: int, location: Optional[str]) -> bytes:
    """Build a body-less redirect response."""
    headers = [("Location", location)] if location is not None else []
    return build_response(status, "Redirect", headers)


def encode_chunked(data: bytes, chunk_size: int) -> bytes:
    """Encode ``data`` with chunked transfer coding."""
    out = bytearray()
    for start in range(0, len(data), chunk_size):
        chunk = data[start:start + chunk_size]
        out += f"{len(chunk):x}\r\n".encode("ascii") + chunk + b"\r\n"
    out += b"0\r\n\r\n"
    return bytes(out)


@pytest.fixture(autouse=True)
def clean_default_timeout(monkeypatch):
    """Keep the environment default timeout out of every test."""
    monkeypatch.delenv(TIMEOUT_ENV_VAR, raising=False)
    reset_default_timeout()
    yield
    reset_default_timeout()


@pytest.fixture
def mock_backend():
    """Create a mock network backend."""
    return MockNetworkBackend()


@pytest.fixture
def response_bytes():
    """Factory for raw response bytes."""
    return build_response


class _Handler(BaseHTTPRequestHandler):
    """Routes for the local test server."""

    def log_message(self, format, *args):
        pass

    def _reply(self, status: int, body: bytes = b"", headers=()) -> None:
        self.send_response(status)
        for name, value in headers:
            self.send_header(name, value)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(body)

    def _redirect(self, status: int, location: str) -> None:
        self._reply(status, headers=[("Location", location)])

    def _base(self) -> str:
        host, port = self.server.server_address[:2]
        return f"http://{host}:{port}"

    def do_GET(self):
        path = self.path
        if path == "/a":
            self._reply(200, b"j: Q")
        elif path == "/header_pong":
            self._reply(200, self.headers.get("Ping", "No header!").encode())
        elif path == "/redirect":
            self._redirect(301, f"{self._base()}/a")
        elif path == "/relativeredirect":
            self._redirect(303, "/a")
        elif path == "/infiniteredirect":
            self._redirect(301, f"{self._base()}/redirectpong")
        elif path == "/redirectpong":
            self._redirect(301, f"{self._base()}/infiniteredirect")
        elif path == "/slow":
            time.sleep(1.0)
            self._reply(200, b"slow")
        elif path == "/chunked":
            self.wfile.write(
                b"HTTP/1.1 200 OK\r\n"
                b"Transfer-Encoding: chunked\r\n"
                b"\r\n"
                b"5\r\nhello\r\n"
                b"7\r\n, world\r\n"
                b"0\r\n\r\n"
            )
        elif path == "/until-close":
            self.wfile.write(b"HTTP/1.0 200 OK\r\nContent-Type: text/plain\r\n\r\n")
            self.wfile.write(b"line one\nline two\n")
        elif path == "/method":
            self._reply(200, b"GET")
        elif path.startswith("/echo-query"):
            self._reply(200, path.encode())
        else:
            self._reply(404, b"Not Found")

    def do_HEAD(self):
        self.do_GET()

    def do_POST(self):
        length = int(self.headers.get("Content-Length", "0"))
        body = self.rfile.read(length)
        if self.path == "/post-redirect":
            self._redirect(301, "/method")
        elif self.path == "/post-redirect-307":
            self._redirect(307, "/method")
        elif self.path == "/method":
            self._reply(200, b"POST " + body)
        else:
            self._reply(200, body)

    def do_PUT(self):
        self.do_POST()


class _Server(ThreadingHTTPServer):
    daemon_threads = True

    def handle_error(self, request, client_address):
        # clients that time out leave broken pipes behind
        pass


@pytest.fixture(scope="session")
def local_server():
    """Run a local HTTP server and yield its base URL."""
    server = _Server(("127.0.0.1", 0), _Handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    host, port = server.server_address[:2]
    yield f"http://{host}:{port}"
    server.shutdown()
    server.server_close()
