"""
Request execution for tinyget.

``Client`` runs the full lifecycle of one ``send`` call: derive the
deadline, open a fresh transport per hop, exchange the request and
response, and follow redirects until a final response arrives.
"""

import dataclasses
import logging
from typing import Optional

from .http11 import HTTP11Connection, serialize_request
from .http_primitives import Request, Response
from .network.backend import NetworkBackend
from .network.sync import SyncNetworkBackend
from .redirects import RedirectController
from . import timeouts
from .timeouts import Deadline

logger = logging.getLogger(__name__)


class Client:
    """
    Blocking HTTP/1.1 client.

    A Client holds no per-request state and may be shared between
    threads; every ``send`` opens its own connections and closes them
    before returning.
    """

    def __init__(
        self,
        backend: Optional[NetworkBackend] = None,
        max_body_size: Optional[int] = None,
        default_timeout: Optional[float] = None,
    ):
        """
        Initialize the client.

        Args:
            backend: Network backend to use (defaults to blocking sockets)
            max_body_size: Optional cap on response body length in bytes
            default_timeout: Timeout for requests that set none; when not
                given, the TINYGET_TIMEOUT environment setting is used
        """
        self._backend = backend if backend is not None else SyncNetworkBackend()
        self._max_body_size = max_body_size
        self._default_timeout = (
            default_timeout
            if default_timeout is not None
            else timeouts.default_timeout()
        )

    @property
    def default_timeout(self) -> Optional[float]:
        return self._default_timeout

    def send(self, request: Request) -> Response:
        """
        Send a request, following redirects.

        Args:
            request: The request to send

        Returns:
            The final response, with ``url`` and ``history`` filled in

        Raises:
            TinygetError: On any failure; nothing is retried
        """
        deadline = Deadline.for_request(request.timeout, self._default_timeout)
        redirects = RedirectController(request)

        current = request
        while True:
            response = self._exchange(current, deadline)
            next_request = redirects.next_request(current, response)
            if next_request is None:
                return dataclasses.replace(
                    response, url=current.url, history=tuple(redirects.history)
                )
            current = next_request

    def _exchange(self, request: Request, deadline: Deadline) -> Response:
        """Run one request/response exchange on a new connection."""
        data = serialize_request(request)

        url = request.url
        logger.debug(f"{request.method} {url} (deadline: {deadline.timeout})")
        stream = self._backend.connect(url.host, url.port, url.is_secure, deadline)

        connection = HTTP11Connection(stream, max_body_size=self._max_body_size)
        return connection.handle_request(request, data)