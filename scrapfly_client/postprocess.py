from __future__ import annotations

import logging
from typing import Optional, Tuple, Union
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import requests

from .errors import LargeObjectError
from .models import ScrapeResult

LARGE_OBJECT_FORMATS = ("clob", "blob")


def with_key(url: str, key: str) -> str:
    """Return ``url`` with its ``key`` query parameter set to ``key``.

    An existing ``key`` is replaced, never repeated."""
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != "key"]
    query.append(("key", key))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))


def attach_credentials(result: ScrapeResult, key: str) -> ScrapeResult:
    """Add the API key to every screenshot and attachment download URL of ``result``.

    Pure data transform, nothing is downloaded here. Safe to run more than
    once on the same result."""
    for screenshot in result.result.screenshots.values():
        if screenshot.url:
            screenshot.url = with_key(screenshot.url, key)
    for attachment in result.result.browser_data.attachments:
        if attachment.content:
            attachment.content = with_key(attachment.content, key)
    return result


def bind_session(result: ScrapeResult, session: requests.Session) -> None:
    """Make lazy screenshot/attachment downloads go through ``session``."""
    for screenshot in result.result.screenshots.values():
        screenshot.bind_session(session)
    for attachment in result.result.browser_data.attachments:
        attachment.bind_session(session)


def fetch_large_object(
    session: requests.Session,
    content_url: str,
    content_format: str,
    key: str,
    headers: Optional[dict] = None,
    timeout: Optional[float] = None,
    log: Optional[logging.Logger] = None,
) -> Tuple[Union[str, bytes], str]:
    """Download the payload of a clob/blob result.

    Returns ``(content, format)``: text and ``"text"`` for a clob, bytes
    and ``"binary"`` for a blob. Raises ``LargeObjectError``."""
    if content_format not in LARGE_OBJECT_FORMATS:
        raise LargeObjectError(f"unsupported format: {content_format}")

    request_headers = {"Accept-Encoding": "gzip, deflate, br", "Accept": "application/json"}
    request_headers.update(headers or {})
    try:
        response = session.get(with_key(content_url, key), headers=request_headers, timeout=timeout)
    except requests.RequestException as exc:
        if log:
            log.error("failed to fetch large object: %s", exc)
        raise LargeObjectError(f"failed to fetch large object: {exc}") from exc

    try:
        if response.status_code != 200:
            raise LargeObjectError(
                f"failed to fetch large object: status {response.status_code}, body: {response.text}"
            )
        if content_format == "clob":
            return response.text, "text"
        return response.content, "binary"
    finally:
        response.close()
