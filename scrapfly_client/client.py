from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Iterator, Optional

import requests

from .backoff import FixedBackoff, make_backoff
from .classifier import error_from_response, error_from_result, is_success
from .controller import ConcurrentScrapeController
from .errors import BadAPIKeyError, ConcurrencyLimitError, ScrapflyError
from .extraction_config import ExtractionConfig
from .models import AccountData, ExtractionResult, ScrapeOutcome, ScrapeResult, ScreenshotResult
from .postprocess import LARGE_OBJECT_FORMATS, attach_credentials, bind_session, fetch_large_object
from .retry import Backoff, fetch_with_retry
from .scrape_config import ScrapeConfig
from .screenshot_config import ScreenshotConfig
from .settings import DEFAULT_HOST, DEFAULT_RETRIES, DEFAULT_TIMEOUT, ClientSettings

SDK_USER_AGENT = "Scrapfly-Python-SDK"


class ScrapflyClient:
    """Client of the Scrapfly scraping, screenshot and extraction APIs.

    One client can be shared between threads: the underlying
    ``requests.Session`` is used for every call, the key is only read.

    Example::

        with ScrapflyClient("YOUR_API_KEY") as client:
            result = client.scrape(ScrapeConfig(url="https://example.com", asp=True))
            print(result.result.content)
    """

    def __init__(
        self,
        key: str,
        host: str = DEFAULT_HOST,
        timeout: float = DEFAULT_TIMEOUT,
        retries: int = DEFAULT_RETRIES,
        backoff: Optional[Backoff] = None,
        verify_ssl: bool = True,
        logger: Optional[logging.Logger] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not key:
            raise BadAPIKeyError()
        self._key = key
        self.host = host.rstrip("/")
        self.timeout = timeout
        self.retries = retries
        self.backoff = backoff or FixedBackoff()
        self.logger = logger or logging.getLogger("scrapfly_client")
        self._owns_session = session is None
        self._session = session or requests.Session()
        if not verify_ssl:
            self._session.verify = False

    @classmethod
    def from_settings(cls, settings: ClientSettings, logger: Optional[logging.Logger] = None) -> "ScrapflyClient":
        return cls(
            key=settings.key,
            host=settings.host,
            timeout=settings.timeout,
            retries=settings.retries,
            backoff=make_backoff(settings.retry_policy, settings.retry_delay, settings.retry_max_delay),
            verify_ssl=settings.verify_ssl,
            logger=logger,
        )

    @classmethod
    def from_env(cls, logger: Optional[logging.Logger] = None) -> "ScrapflyClient":
        return cls.from_settings(ClientSettings.from_env(), logger=logger)

    @property
    def api_key(self) -> str:
        return self._key

    @api_key.setter
    def api_key(self, key: str) -> None:
        if not key:
            raise BadAPIKeyError()
        self._key = key

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> "ScrapflyClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    # ========== API calls ==========

    def scrape(self, config: ScrapeConfig) -> ScrapeResult:
        """Scrape ``config.url`` and return the decoded result.

        Raises ``ScrapeConfigError`` before any network activity when the
        config is invalid, an ``APIError`` subclass when the API or the
        upstream website failed, ``LargeObjectError`` when the clob/blob
        payload of a successful scrape cannot be downloaded.
        """
        self.logger.debug("scraping %s", config.url)
        params = config.to_api_params()
        headers = {"Accept": "application/json"}
        if config.content_type:
            headers["Content-Type"] = config.content_type
        request = self._prepare(
            config.http_method.value,
            "/scrape",
            params,
            headers=headers,
            data=config.body.encode("utf-8") if config.body else None,
        )
        response = self._dispatch(request)
        payload = self._decode_json(response, "scrape result")

        result = ScrapeResult.from_dict(payload)
        if not is_success(result):
            raise error_from_result(result)

        self.logger.debug("scrape log url: %s", result.result.log_url)
        if result.result.format in LARGE_OBJECT_FORMATS:
            content, content_format = fetch_large_object(
                self._session,
                result.result.content,
                result.result.format,
                self._key,
                headers={"User-Agent": SDK_USER_AGENT},
                timeout=self.timeout,
                log=self.logger,
            )
            result.result.content = content
            result.result.format = content_format

        attach_credentials(result, self._key)
        bind_session(result, self._session)
        return result

    def screenshot(self, config: ScreenshotConfig) -> ScreenshotResult:
        params = config.to_api_params()
        request = self._prepare("GET", "/screenshot", params)
        response = self._dispatch(request)
        return ScreenshotResult.from_response(response)

    def extract(self, config: ExtractionConfig) -> ExtractionResult:
        """Run an AI/template extraction over ``config.body``."""
        params = config.to_api_params()
        headers = {"Content-Type": config.content_type, "Accept": "application/json"}
        if config.content_encoding:
            headers["Content-Encoding"] = config.content_encoding
        request = self._prepare("POST", "/extraction", params, headers=headers, data=config.document())
        response = self._dispatch(request)
        return ExtractionResult.from_dict(self._decode_json(response, "extraction result"))

    def account(self) -> AccountData:
        request = self._prepare("GET", "/account", {})
        response = self._session.send(request, timeout=self.timeout)
        if not 200 <= response.status_code < 300:
            raise error_from_response(response)
        return AccountData.from_dict(self._decode_json(response, "account data"))

    def verify_api_key(self) -> bool:
        request = self._prepare("GET", "/account", {})
        response = self._session.send(request, timeout=self.timeout)
        response.close()
        return response.status_code == 200

    def concurrent_scrape(
        self, configs: Iterable[ScrapeConfig], concurrency_limit: int = 0
    ) -> Iterator[ScrapeOutcome]:
        """Scrape every config with at most ``concurrency_limit`` calls in flight.

        Outcomes are yielded as they complete, one per config, successes and
        failures alike. With a limit of 0 or less the account's plan
        concurrency is used; if it cannot be looked up, a single failed
        outcome is yielded and nothing is scraped.
        """
        configs = list(configs)
        if concurrency_limit <= 0:
            try:
                concurrency_limit = self.account().concurrent_limit
            except (ScrapflyError, requests.RequestException) as exc:
                self.logger.warning("failed to get account for concurrency limit: %s", exc)
                error = ConcurrencyLimitError()
                error.__cause__ = exc
                yield ScrapeOutcome(config=None, error=error)
                return
            if concurrency_limit <= 0:
                yield ScrapeOutcome(config=None, error=ConcurrencyLimitError())
                return
            self.logger.info("concurrency not provided - setting it to %d from account info", concurrency_limit)

        controller = ConcurrentScrapeController(self.scrape, concurrency_limit, log=self.logger)
        yield from controller.run(configs)

    # ========== Plumbing ==========

    def _prepare(
        self,
        method: str,
        path: str,
        params: Dict[str, str],
        headers: Optional[Dict[str, str]] = None,
        data: Optional[bytes] = None,
    ) -> requests.PreparedRequest:
        params = dict(params)
        params["key"] = self._key
        request_headers = {"User-Agent": SDK_USER_AGENT}
        request_headers.update(headers or {})
        request = requests.Request(method, self.host + path, params=params, headers=request_headers, data=data)
        return self._session.prepare_request(request)

    def _dispatch(self, request: requests.PreparedRequest) -> requests.Response:
        response = fetch_with_retry(
            self._session,
            request,
            self.backoff,
            retries=self.retries,
            timeout=self.timeout,
            log=self.logger,
        )
        if not 200 <= response.status_code < 300:
            raise error_from_response(response)
        return response

    @staticmethod
    def _decode_json(response: requests.Response, what: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise ScrapflyError(f"failed to decode {what}: {exc}") from exc
