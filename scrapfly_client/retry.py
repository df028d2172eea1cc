from __future__ import annotations

import logging
import time
from typing import Optional, Protocol, Union

import requests

from .errors import APIError, APIServerError, TransportError

DEFAULT_RETRIES = 3

logger = logging.getLogger("scrapfly_client")


class Backoff(Protocol):
    def get_sleep(self, attempt: int, error_type: Optional[str] = None) -> float:
        ...


def fetch_with_retry(
    session: requests.Session,
    request: requests.PreparedRequest,
    backoff: Backoff,
    retries: int = DEFAULT_RETRIES,
    timeout: Optional[float] = None,
    log: Optional[logging.Logger] = None,
) -> requests.Response:
    """Send ``request``, retrying transport failures and 5xx answers.

    Every attempt sends a fresh copy of the prepared request, so the body
    is the same bytes each time. Any answer below 500 is returned as-is,
    4xx included. After ``retries`` failed attempts the last error is
    raised: ``TransportError`` for a connection/timeout failure,
    ``APIServerError`` for a 5xx.
    """
    log = log or logger
    body = request.body
    if body is not None and not isinstance(body, (bytes, str)):
        raise ValueError("request body cannot be re-read between attempts; pass bytes or str")

    attempts = max(1, retries)
    last_error: Union[requests.RequestException, APIError, None] = None

    for attempt in range(1, attempts + 1):
        try:
            response = session.send(request.copy(), timeout=timeout)
        except requests.RequestException as exc:
            last_error = exc
            log.debug("request failed (attempt %d/%d): %s, retrying...", attempt, attempts, exc)
            _sleep(backoff, attempt, type(exc).__name__, attempt < attempts)
            continue

        if 500 <= response.status_code < 600:
            response.close()
            last_error = APIServerError("server error", http_status_code=response.status_code)
            log.debug(
                "request failed with status %d (attempt %d/%d), retrying...",
                response.status_code,
                attempt,
                attempts,
            )
            _sleep(backoff, attempt, f"HTTP_{response.status_code}", attempt < attempts)
            continue

        return response

    log.warning("giving up on %s %s after %d attempts", request.method, _safe_url(request), attempts)
    if isinstance(last_error, requests.RequestException):
        raise TransportError(str(last_error) or type(last_error).__name__) from last_error
    raise last_error


def _sleep(backoff: Backoff, attempt: int, error_type: str, more_attempts: bool) -> None:
    if more_attempts:
        time.sleep(backoff.get_sleep(attempt, error_type))


def _safe_url(request: requests.PreparedRequest) -> str:
    """Request URL without its query string, which carries the API key."""
    return (request.url or "").split("?", 1)[0]
