"""
Redirect handling for tinyget.

Decides whether a response is a redirect and derives the Request for
the next hop. Each hop becomes a new Request; the previous one is left
untouched.
"""

import dataclasses
import logging
from typing import List, Optional, Set, Tuple

from .exceptions import (
    RedirectLocationMissingError,
    RedirectLoopError,
    TooManyRedirectsError,
)
from .http_primitives import REDIRECT_STATUSES, Request, Response
from .url import URL

logger = logging.getLogger(__name__)

# Statuses that turn a non-GET/HEAD request into a body-less GET
METHOD_CHANGING_STATUSES = frozenset({301, 302, 303})

BODY_HEADERS = ("Content-Length", "Content-Type", "Transfer-Encoding")
ORIGIN_BOUND_HEADERS = ("Host", "Authorization")


def redirect_request(request: Request, status_code: int, url: URL) -> Request:
    """
    Build the request for one redirect hop.

    307 and 308 keep method and body. 301, 302 and 303 turn any method
    other than GET and HEAD into GET and drop the body together with its
    headers. Host and Authorization are dropped when the origin changes.
    """
    method = request.method
    body = request.body
    headers = request.headers

    if status_code in METHOD_CHANGING_STATUSES and method not in ("GET", "HEAD"):
        method = "GET"
        body = None
        headers = headers.without(*BODY_HEADERS)

    if url.origin != request.url.origin:
        headers = headers.without(*ORIGIN_BOUND_HEADERS)

    return dataclasses.replace(
        request, method=method, url=url, headers=headers, body=body
    )


class RedirectController:
    """
    Follows the redirect chain of one ``send`` call.

    Counts hops against the request's ``max_redirects`` and refuses to
    revisit a (method, URL) pair already requested in the chain.
    """

    def __init__(self, request: Request) -> None:
        self._max_redirects = request.max_redirects
        self._hops = 0
        self._history: List[URL] = []
        self._visited: Set[Tuple[str, Tuple[str, str, int], str]] = {
            self._visit_key(request.method, request.url)
        }

    @staticmethod
    def _visit_key(method: str, url: URL) -> Tuple[str, Tuple[str, str, int], str]:
        return (method, url.origin, url.request_target)

    @property
    def hops(self) -> int:
        """Number of redirects followed so far."""
        return self._hops

    @property
    def history(self) -> List[URL]:
        """URLs that answered with a redirect, in order."""
        return list(self._history)

    def next_request(self, request: Request, response: Response) -> Optional[Request]:
        """
        Get the request for the next hop.

        Args:
            request: The request that produced ``response``
            response: The response just parsed

        Returns:
            The next Request, or None if ``response`` is not a redirect

        Raises:
            RedirectLocationMissingError: If a redirect has no Location
            TooManyRedirectsError: If the hop limit is already reached
            RedirectLoopError: If the target was already requested
            InvalidURLError: If Location cannot be resolved to an http(s) URL
        """
        if response.status_code not in REDIRECT_STATUSES:
            return None

        location = response.headers.get("Location")
        if location is None:
            raise RedirectLocationMissingError(response.status_code)

        if self._hops >= self._max_redirects:
            raise TooManyRedirectsError(self._max_redirects)

        url = request.url.join(location)
        next_request = redirect_request(request, response.status_code, url)

        key = self._visit_key(next_request.method, url)
        if key in self._visited:
            raise RedirectLoopError(str(url))
        self._visited.add(key)

        self._hops += 1
        self._history.append(request.url)
        logger.debug(
            f"Redirect {self._hops}/{self._max_redirects}: "
            f"{response.status_code} {request.url} -> {url}"
        )
        return next_request
