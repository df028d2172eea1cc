"""Scrapfly API client package.

Wraps the Scrapfly scrape, screenshot and extraction endpoints: request
configs are validated and encoded to query parameters, calls are retried
on transport failures and 5xx answers, failures are classified into typed
errors, and batches of scrapes run on a bounded thread pool.

Key modules:
    client            -- ScrapflyClient facade
    scrape_config     -- ScrapeConfig and its query parameter encoding
    screenshot_config -- ScreenshotConfig
    extraction_config -- ExtractionConfig and client-side document compression
    scenario          -- ScenarioBuilder and JS scenario validation
    retry             -- fetch_with_retry dispatcher
    classifier        -- API response to error classification
    postprocess       -- credential rewriting and large object download
    controller        -- ConcurrentScrapeController for batch scrapes
    models            -- ScrapeResult, ScreenshotResult, AccountData, ...
    errors            -- ScrapflyError hierarchy
    backoff           -- FixedBackoff, ExponentialBackoff and make_backoff
    settings          -- ClientSettings loaded from the environment
    storage           -- helpers to save payloads to disk
"""
from .backoff import ExponentialBackoff, FixedBackoff, make_backoff
from .client import ScrapflyClient
from .enums import (
    CompressionFormat,
    ExtractionModel,
    Format,
    FormatOption,
    HttpMethod,
    ProxyPool,
    ScreenshotFlag,
    ScreenshotFormat,
    ScreenshotOption,
)
from .errors import (
    APIClientError,
    APIError,
    APIServerError,
    ASPBypassError,
    BadAPIKeyError,
    ConcurrencyLimitError,
    ConfigError,
    ContentTypeError,
    ExtractionConfigError,
    LargeObjectError,
    PayloadDownloadError,
    ProxyError,
    ScenarioError,
    ScheduleError,
    ScrapeConfigError,
    ScrapeFailedError,
    ScrapflyError,
    ScreenshotConfigError,
    SessionError,
    TooManyRequestsError,
    TransportError,
    UnhandledAPIResponseError,
    UpstreamClientError,
    UpstreamServerError,
    WebhookError,
)
from .extraction_config import ExtractionConfig
from .models import AccountData, ExtractionResult, ScrapeOutcome, ScrapeResult, ScreenshotResult
from .scenario import ScenarioBuilder
from .scrape_config import ScrapeConfig
from .screenshot_config import ScreenshotConfig
from .settings import ClientSettings

__version__ = "0.1.0"
