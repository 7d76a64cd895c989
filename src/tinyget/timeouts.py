"""
Deadline handling for tinyget.

A request gets a single ``Deadline`` when ``send`` starts. Connect,
TLS handshake, every write and every read receive whatever time is
left until that instant; redirects do not reset it.
"""

import logging
import math
import os
import threading
import time
from typing import Optional

from .exceptions import TimeoutError

logger = logging.getLogger(__name__)

TIMEOUT_ENV_VAR = "TINYGET_TIMEOUT"

_UNSET = object()
_default_timeout = _UNSET
_default_timeout_lock = threading.Lock()


def parse_timeout(value: Optional[str]) -> Optional[float]:
    """
    Parse a timeout setting in seconds.

    Absent, unparsable, negative or non-finite values mean "no timeout".
    """
    if value is None:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        logger.debug(f"Ignoring unparsable {TIMEOUT_ENV_VAR}={value!r}")
        return None
    if not math.isfinite(seconds) or seconds < 0:
        logger.debug(f"Ignoring out of range {TIMEOUT_ENV_VAR}={value!r}")
        return None
    return seconds


def default_timeout() -> Optional[float]:
    """
    Get the process-wide default timeout.

    The environment is read once, on first use; later calls return the
    same value.
    """
    global _default_timeout
    if _default_timeout is _UNSET:
        with _default_timeout_lock:
            if _default_timeout is _UNSET:
                _default_timeout = parse_timeout(os.environ.get(TIMEOUT_ENV_VAR))
    return _default_timeout


def reset_default_timeout() -> None:
    """Forget the cached default so the environment is read again."""
    global _default_timeout
    with _default_timeout_lock:
        _default_timeout = _UNSET


def effective_timeout(
    timeout: Optional[float], default: Optional[float] = None
) -> Optional[float]:
    """Pick the per-request timeout if set, else the default."""
    if timeout is not None:
        return timeout
    return default


class Deadline:
    """
    An absolute point in time after which I/O must stop.

    A deadline created without a timeout never expires.
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        if timeout is not None and (not math.isfinite(timeout) or timeout < 0):
            raise ValueError(f"timeout must be a finite, non-negative number: {timeout!r}")
        self._timeout = timeout
        self._expires_at: Optional[float] = None
        if timeout is not None:
            self._expires_at = time.monotonic() + timeout

    @classmethod
    def for_request(
        cls, timeout: Optional[float], default: Optional[float] = None
    ) -> "Deadline":
        """Create the deadline for one ``send`` call."""
        return cls(effective_timeout(timeout, default))

    @property
    def timeout(self) -> Optional[float]:
        """The timeout this deadline was created with."""
        return self._timeout

    @property
    def expired(self) -> bool:
        """Whether the deadline has passed."""
        return self._expires_at is not None and time.monotonic() >= self._expires_at

    def remaining(self) -> Optional[float]:
        """
        Get the time left until the deadline.

        Returns:
            Seconds left, or None if there is no deadline

        Raises:
            TimeoutError: If the deadline has already passed
        """
        if self._expires_at is None:
            return None
        left = self._expires_at - time.monotonic()
        if left <= 0:
            raise TimeoutError("The request's timeout was reached", self._timeout)
        return left

    def __repr__(self) -> str:
        return f"Deadline(timeout={self._timeout!r})"
