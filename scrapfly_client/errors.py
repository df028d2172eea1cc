from __future__ import annotations

from typing import TYPE_CHECKING, Any, List, Optional

if TYPE_CHECKING:
    from .models import ScrapeResult


class ScrapflyError(Exception):
    """Base exception for every error raised by the client."""


class BadAPIKeyError(ScrapflyError):
    def __init__(self) -> None:
        super().__init__("invalid key, must be a non-empty string")


class ConfigError(ScrapflyError):
    """A configuration failed local validation; nothing was sent.

    ``violations`` lists every problem found, in validation order."""

    label = "invalid config"

    def __init__(self, violations: List[str]) -> None:
        self.violations = list(violations)
        super().__init__(f"{self.label}: " + "; ".join(self.violations))


class ScrapeConfigError(ConfigError):
    label = "invalid scrape config"


class ScreenshotConfigError(ConfigError):
    label = "invalid screenshot config"


class ExtractionConfigError(ConfigError):
    label = "invalid extraction config"


class ScenarioError(ScrapflyError):
    """A JS scenario does not match the scenario schema."""


class ContentTypeError(ScrapflyError):
    """The operation is not available for the content type of the result."""


class LargeObjectError(ScrapflyError):
    """Fetching the separate clob/blob payload of a successful scrape failed."""


class PayloadDownloadError(ScrapflyError):
    """Downloading a screenshot or attachment of a scrape result failed."""


class ConcurrencyLimitError(ScrapflyError):
    def __init__(self, message: str = "failed to get concurrency limit") -> None:
        super().__init__(message)


class APIError(ScrapflyError):
    """Error returned by the API, or raised while talking to it.

    Subclasses tell what failed; the attributes carry the diagnostic
    details the API gave us (message, code, documentation link, the
    decoded scrape result when there is one) plus the retry-after delay
    and a remediation hint when the HTTP status calls for one."""

    kind = "api_error"

    def __init__(
        self,
        message: str,
        code: str = "",
        http_status_code: int = 0,
        documentation_url: str = "",
        api_response: Optional["ScrapeResult"] = None,
        retry_after_ms: int = 0,
        hint: str = "",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.http_status_code = http_status_code
        self.documentation_url = documentation_url
        self.api_response = api_response
        self.retry_after_ms = retry_after_ms
        self.hint = hint

    def __str__(self) -> str:
        base = (
            f"API Error: {self.message} (code: {self.code}, status: {self.http_status_code}, "
            f"docs: {self.documentation_url})"
        )
        if self.retry_after_ms > 0:
            base += f", retry_after_ms: {self.retry_after_ms}"
        if self.hint:
            base += f", hint: {self.hint}"
        return base

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "message": self.message,
            "code": self.code,
            "http_status_code": self.http_status_code,
            "documentation_url": self.documentation_url,
            "retry_after_ms": self.retry_after_ms,
            "hint": self.hint,
        }


class TransportError(APIError):
    """Connection, DNS or timeout failure that outlived every retry."""

    kind = "transport"


class APIClientError(APIError):
    kind = "api_client"


class TooManyRequestsError(APIClientError):
    kind = "too_many_requests"


class APIServerError(APIError):
    kind = "api_server"


class UpstreamClientError(APIError):
    """The scraped website answered with a 4xx status."""

    kind = "upstream_client"


class UpstreamServerError(APIError):
    """The scraped website answered with a 5xx status."""

    kind = "upstream_server"


class ScrapeFailedError(APIError):
    kind = "scrape_failed"


class ProxyError(APIError):
    kind = "proxy_failed"


class ASPBypassError(APIError):
    kind = "asp_bypass_failed"


class ScheduleError(APIError):
    kind = "schedule_failed"


class WebhookError(APIError):
    kind = "webhook_failed"


class SessionError(APIError):
    kind = "session_failed"


class UnhandledAPIResponseError(APIError):
    kind = "unhandled_api_response"
