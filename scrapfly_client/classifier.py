from __future__ import annotations

import time
from email.utils import parsedate_to_datetime
from typing import Dict, Optional, Type

import requests

from .errors import (
    APIClientError,
    APIError,
    APIServerError,
    ASPBypassError,
    ProxyError,
    ScheduleError,
    ScrapeFailedError,
    SessionError,
    TooManyRequestsError,
    UnhandledAPIResponseError,
    UpstreamClientError,
    UpstreamServerError,
    WebhookError,
)
from .models import ScrapeResult

SUBSYSTEM_ERRORS: Dict[str, Type[APIError]] = {
    "SCRAPE": ScrapeFailedError,
    "PROXY": ProxyError,
    "ASP": ASPBypassError,
    "SCHEDULE": ScheduleError,
    "WEBHOOK": WebhookError,
    "SESSION": SessionError,
}

HINT_UNAUTHORIZED = "Provide a valid API key via ?key=... or Bearer token (cloud mode)."
HINT_TOO_MANY_REQUESTS = "Back off and retry after the indicated delay, or reduce concurrency/scope."
HINT_SCREENSHOT = "Check screenshot parameters (format/capture/resolution) and upstream site readiness."
HINT_EXTRACTION = "Check content_type, body encoding, and template/prompt validity."


def is_success(result: ScrapeResult) -> bool:
    return result.result.success and result.result.status == "DONE"


def parse_retry_after(value: Optional[str], now: Optional[float] = None) -> int:
    """Convert a Retry-After header (seconds or HTTP-date) to milliseconds.

    Unparseable values give 0, and so does a date in the past."""
    if not value:
        return 0
    value = value.strip()
    # str.isdigit() also accepts non-ASCII digits such as "²"
    if value.isascii() and value.isdigit():
        return int(value) * 1000
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return 0
    if when is None:
        return 0
    now = time.time() if now is None else now
    return max(0, int((when.timestamp() - now) * 1000))


def hint_for(status_code: int, body: str) -> str:
    if status_code == 401:
        return HINT_UNAUTHORIZED
    if status_code == 429:
        return HINT_TOO_MANY_REQUESTS
    if status_code == 422:
        if "EXTRACTION" in body:
            return HINT_EXTRACTION
        if "SCREENSHOT" in body:
            return HINT_SCREENSHOT
    return ""


def _http_error_class(status_code: int) -> Type[APIError]:
    if status_code == 429:
        return TooManyRequestsError
    if 400 <= status_code < 500:
        return APIClientError
    if status_code >= 500:
        return APIServerError
    return UnhandledAPIResponseError


def error_from_response(response: requests.Response) -> APIError:
    """Build the error for a non-2xx answer of the API.

    Error details embedded in a scrape result win over the generic
    ``{message, code}`` envelope, which wins over a synthesized message.
    """
    status_code = response.status_code
    body = response.text or ""
    error_class = _http_error_class(status_code)
    retry_after_ms = parse_retry_after(response.headers.get("Retry-After"))
    hint = hint_for(status_code, body)

    try:
        payload = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict) and isinstance(payload.get("result"), dict):
        result = ScrapeResult.from_dict(payload)
        details = result.result.error
        if details is not None:
            return error_class(
                details.message or f"API returned status {status_code}",
                code=details.code,
                http_status_code=status_code,
                documentation_url=details.doc_url,
                api_response=result,
                retry_after_ms=retry_after_ms,
                hint=hint,
            )

    message = ""
    code = ""
    if isinstance(payload, dict):
        message = payload.get("message") or ""
        code = payload.get("code") or ""
    return error_class(
        message or f"API returned status {status_code}",
        code=code,
        http_status_code=status_code,
        retry_after_ms=retry_after_ms,
        hint=hint,
    )


def error_from_result(result: ScrapeResult) -> APIError:
    """Build the error for a 2xx scrape whose embedded result failed.

    The upstream status code is checked first: a failed scrape of a page
    that answered 4xx/5xx is an upstream error whatever the status tag
    says. Otherwise the subsystem in ``ERR::<SUBSYSTEM>::...`` picks the
    error class.
    """
    data = result.result
    if data.error is not None:
        message = data.error.message
        code = data.error.code
        documentation_url = data.error.doc_url
    else:
        message = f"scrape failed with status: {data.status}"
        code = data.status
        documentation_url = ""

    error_class: Type[APIError] = UnhandledAPIResponseError
    if not data.success and 400 <= data.status_code < 500:
        error_class = UpstreamClientError
    elif not data.success and data.status_code >= 500:
        error_class = UpstreamServerError
    else:
        parts = data.status.split("::")
        if len(parts) > 1:
            error_class = SUBSYSTEM_ERRORS.get(parts[1], UnhandledAPIResponseError)

    return error_class(
        message,
        code=code,
        http_status_code=data.status_code,
        documentation_url=documentation_url,
        api_response=result,
    )
