from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

import requests
from bs4 import BeautifulSoup

from .errors import ContentTypeError, PayloadDownloadError, ScrapflyError
from .storage import save_bytes

LAZY_FETCH_TIMEOUT = 60


def _get(data: Optional[Dict[str, Any]], key: str, default: Any = None) -> Any:
    """dict.get that also maps an explicit JSON null to ``default``."""
    if not data:
        return default
    value = data.get(key)
    return default if value is None else value


def _strip_query(url: str) -> str:
    return url.split("?", 1)[0]


class _LazyPayload:
    """Bytes behind a URL, fetched on first access and memoized.

    The first fetch runs under a lock so concurrent callers share a
    single download."""

    def _init_payload(self) -> None:
        self._payload: Optional[bytes] = None
        self._payload_lock = threading.Lock()
        self._session: Optional[requests.Session] = None

    def bind_session(self, session: requests.Session) -> None:
        self._session = session

    def _fetch(self, url: str) -> bytes:
        with self._payload_lock:
            if self._payload is None:
                getter = self._session.get if self._session is not None else requests.get
                try:
                    response = getter(url, timeout=LAZY_FETCH_TIMEOUT)
                    try:
                        response.raise_for_status()
                        self._payload = response.content
                    finally:
                        response.close()
                except requests.RequestException as exc:
                    # str(exc) may echo the signed url, which carries the key
                    if exc.response is not None:
                        detail = f"status {exc.response.status_code}"
                    else:
                        detail = type(exc).__name__
                    raise PayloadDownloadError(f"failed to download {_strip_query(url)}: {detail}") from exc
            return self._payload


class Screenshot(_LazyPayload):
    """A screenshot taken during a scrape, downloadable from ``url``."""

    def __init__(
        self,
        name: str,
        url: str,
        extension: str = "jpg",
        format: str = "",
        size: int = 0,
        css_selector: Optional[str] = None,
    ) -> None:
        self.name = name
        self.url = url
        self.extension = extension
        self.format = format
        self.size = size
        self.css_selector = css_selector
        self._init_payload()

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> "Screenshot":
        return cls(
            name=name,
            url=_get(data, "url", ""),
            extension=_get(data, "extension", "jpg"),
            format=_get(data, "format", ""),
            size=_get(data, "size", 0),
            css_selector=_get(data, "css_selector"),
        )

    def image(self) -> bytes:
        return self._fetch(self.url)

    def save(self, directory: str = ".") -> str:
        return save_bytes(self.image(), directory, f"{self.name}.{self.extension}")

    def __repr__(self) -> str:
        return f"Screenshot(name={self.name!r}, url={self.url!r}, format={self.format!r})"


class Attachment(_LazyPayload):
    """A file downloaded by the browser during a scrape; ``content`` is its download URL."""

    def __init__(
        self,
        content: str,
        filename: str = "",
        content_type: str = "",
        id: str = "",
        size: int = 0,
        state: str = "",
        suggested_filename: str = "",
        url: str = "",
    ) -> None:
        self.content = content
        self.filename = filename
        self.content_type = content_type
        self.id = id
        self.size = size
        self.state = state
        self.suggested_filename = suggested_filename
        self.url = url
        self._init_payload()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Attachment":
        return cls(
            content=_get(data, "content", ""),
            filename=_get(data, "filename", ""),
            content_type=_get(data, "content_type", ""),
            id=_get(data, "id", ""),
            size=_get(data, "size", 0),
            state=_get(data, "state", ""),
            suggested_filename=_get(data, "suggested_filename", ""),
            url=_get(data, "url", ""),
        )

    def data(self) -> bytes:
        return self._fetch(self.content)

    def save(self, directory: str = ".") -> str:
        return save_bytes(self.data(), directory, self.filename or self.suggested_filename or self.id)

    def __repr__(self) -> str:
        return f"Attachment(filename={self.filename!r}, content={self.content!r})"


@dataclass(frozen=True)
class ErrorDetails:
    code: str = ""
    http_code: int = 0
    message: str = ""
    retryable: bool = False
    doc_url: str = ""
    links: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ErrorDetails":
        return cls(
            code=_get(data, "code", ""),
            http_code=_get(data, "http_code", 0),
            message=_get(data, "message", ""),
            retryable=_get(data, "retryable", False),
            doc_url=_get(data, "doc_url", ""),
            links=_get(data, "links", {}),
        )


@dataclass
class BrowserData:
    attachments: List[Attachment] = field(default_factory=list)
    javascript_evaluation_result: Optional[str] = None
    js_scenario: Any = None
    local_storage_data: Dict[str, Any] = field(default_factory=dict)
    session_storage_data: Dict[str, Any] = field(default_factory=dict)
    websockets: List[Any] = field(default_factory=list)
    xhr_call: List[Any] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "BrowserData":
        return cls(
            attachments=[Attachment.from_dict(a) for a in _get(data, "attachments", [])],
            javascript_evaluation_result=_get(data, "javascript_evaluation_result"),
            js_scenario=_get(data, "js_scenario"),
            local_storage_data=_get(data, "local_storage_data", {}),
            session_storage_data=_get(data, "session_storage_data", {}),
            websockets=_get(data, "websockets", []),
            xhr_call=_get(data, "xhr_call", []),
        )


@dataclass
class ResultData:
    """The ``result`` object of a scrape response: content and upstream response details."""

    content: Union[str, bytes] = ""
    content_type: str = ""
    content_encoding: str = ""
    format: str = ""
    status: str = ""
    status_code: int = 0
    success: bool = False
    url: str = ""
    reason: str = ""
    log_url: str = ""
    duration: float = 0.0
    size: int = 0
    error: Optional[ErrorDetails] = None
    screenshots: Dict[str, Screenshot] = field(default_factory=dict)
    browser_data: BrowserData = field(default_factory=BrowserData)
    cookies: List[Dict[str, Any]] = field(default_factory=list)
    request_headers: Dict[str, str] = field(default_factory=dict)
    response_headers: Dict[str, Any] = field(default_factory=dict)
    iframes: List[Dict[str, Any]] = field(default_factory=list)
    extracted_data: Optional["ExtractionResult"] = None
    data: Any = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ResultData":
        error = _get(data, "error")
        extracted = _get(data, "extracted_data")
        return cls(
            content=_get(data, "content", ""),
            content_type=_get(data, "content_type", ""),
            content_encoding=_get(data, "content_encoding", ""),
            format=_get(data, "format", ""),
            status=_get(data, "status", ""),
            status_code=_get(data, "status_code", 0),
            success=_get(data, "success", False),
            url=_get(data, "url", ""),
            reason=_get(data, "reason", ""),
            log_url=_get(data, "log_url", ""),
            duration=_get(data, "duration", 0.0),
            size=_get(data, "size", 0),
            error=ErrorDetails.from_dict(error) if isinstance(error, dict) else None,
            screenshots={
                name: Screenshot.from_dict(name, shot) for name, shot in _get(data, "screenshots", {}).items()
            },
            browser_data=BrowserData.from_dict(_get(data, "browser_data")),
            cookies=_get(data, "cookies", []),
            request_headers=_get(data, "request_headers", {}),
            response_headers=_get(data, "response_headers", {}),
            iframes=_get(data, "iframes", []),
            extracted_data=ExtractionResult.from_dict(extracted) if isinstance(extracted, dict) else None,
            data=_get(data, "data"),
        )


@dataclass(frozen=True)
class ProxyContext:
    country: str = ""
    identity: str = ""
    network: str = ""
    pool: str = ""


@dataclass(frozen=True)
class CostContext:
    total: int = 0
    details: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class CacheContext:
    state: str = ""
    entry: Any = None


@dataclass
class ContextData:
    """Execution context of a scrape: proxy used, cost, cache state, retries."""

    proxy: ProxyContext = field(default_factory=ProxyContext)
    cost: CostContext = field(default_factory=CostContext)
    cache: CacheContext = field(default_factory=CacheContext)
    asp: Any = None
    bandwidth_consumed: int = 0
    created_at: str = ""
    env: str = ""
    project: str = ""
    retry: int = 0
    url: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    cookies: List[Dict[str, Any]] = field(default_factory=list)
    session: Any = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ContextData":
        proxy = _get(data, "proxy", {})
        cost = _get(data, "cost", {})
        cache = _get(data, "cache", {})
        return cls(
            proxy=ProxyContext(
                country=_get(proxy, "country", ""),
                identity=_get(proxy, "identity", ""),
                network=_get(proxy, "network", ""),
                pool=_get(proxy, "pool", ""),
            ),
            cost=CostContext(total=_get(cost, "total", 0), details=_get(cost, "details", [])),
            cache=CacheContext(state=_get(cache, "state", ""), entry=_get(cache, "entry")),
            asp=_get(data, "asp"),
            bandwidth_consumed=_get(data, "bandwidth_consumed", 0),
            created_at=_get(data, "created_at", ""),
            env=_get(data, "env", ""),
            project=_get(data, "project", ""),
            retry=_get(data, "retry", 0),
            url=_get(data, "url", ""),
            headers=_get(data, "headers", {}),
            cookies=_get(data, "cookies", []),
            session=_get(data, "session"),
        )


@dataclass
class ConfigData:
    """Echo of the configuration the API applied to the scrape."""

    url: str = ""
    method: str = ""
    country: Optional[str] = None
    render_js: bool = False
    asp: bool = False
    cache: bool = False
    proxy_pool: str = ""
    session: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    headers: Dict[str, str] = field(default_factory=dict)
    timeout: int = 0
    uuid: str = ""
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ConfigData":
        return cls(
            url=_get(data, "url", ""),
            method=_get(data, "method", ""),
            country=_get(data, "country"),
            render_js=_get(data, "render_js", False),
            asp=_get(data, "asp", False),
            cache=_get(data, "cache", False),
            proxy_pool=_get(data, "proxy_pool", ""),
            session=_get(data, "session"),
            tags=_get(data, "tags", []),
            headers=_get(data, "headers", {}),
            timeout=_get(data, "timeout", 0),
            uuid=_get(data, "uuid", ""),
            raw=dict(data or {}),
        )


@dataclass
class ScrapeResult:
    """Decoded response of the scrape endpoint."""

    config: ConfigData
    context: ContextData
    result: ResultData
    uuid: str = ""
    _selector: Optional[BeautifulSoup] = field(default=None, init=False, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScrapeResult":
        if not isinstance(data, dict):
            raise ScrapflyError(f"unexpected scrape response payload: {type(data).__name__}")
        return cls(
            config=ConfigData.from_dict(_get(data, "config")),
            context=ContextData.from_dict(_get(data, "context")),
            result=ResultData.from_dict(_get(data, "result")),
            uuid=_get(data, "uuid", ""),
        )

    @property
    def selector(self) -> BeautifulSoup:
        """BeautifulSoup document of the HTML content, built once and cached."""
        if self._selector is None:
            if "text/html" not in self.result.content_type:
                raise ContentTypeError(
                    f"cannot use selector on non-html content-type, got {self.result.content_type!r}"
                )
            self._selector = BeautifulSoup(self.result.content, "html.parser")
        return self._selector

    def save_screenshots(self, directory: str = ".") -> List[str]:
        return [shot.save(directory) for shot in self.result.screenshots.values()]

    def save_attachments(self, directory: str = ".") -> List[str]:
        return [attachment.save(directory) for attachment in self.result.browser_data.attachments]


@dataclass(frozen=True)
class ScreenshotMetadata:
    extension_name: str
    upstream_status_code: int
    upstream_url: str


@dataclass(frozen=True)
class ScreenshotResult:
    """Image returned by the screenshot endpoint."""

    image: bytes
    metadata: ScreenshotMetadata

    @classmethod
    def from_response(cls, response: requests.Response) -> "ScreenshotResult":
        content_type = response.headers.get("Content-Type", "")
        extension = "bin"
        parts = content_type.split("/")
        if len(parts) == 2:
            extension = parts[1].split(";")[0].strip()
        try:
            upstream_status = int(response.headers.get("x-scrapfly-upstream-http-code", ""))
        except ValueError:
            upstream_status = 0
        return cls(
            image=response.content,
            metadata=ScreenshotMetadata(
                extension_name=extension,
                upstream_status_code=upstream_status,
                upstream_url=response.headers.get("x-scrapfly-upstream-url", ""),
            ),
        )

    def save(self, name: str, directory: str = ".") -> str:
        if not self.image:
            raise ScrapflyError("screenshot image is empty")
        return save_bytes(self.image, directory, f"{name}.{self.metadata.extension_name}")


@dataclass(frozen=True)
class ExtractionResult:
    data: Any
    content_type: str = ""
    data_quality: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExtractionResult":
        return cls(
            data=_get(data, "data"),
            content_type=_get(data, "content_type", ""),
            data_quality=_get(data, "data_quality", ""),
        )


@dataclass(frozen=True)
class AccountData:
    """Decoded ``/account`` payload."""

    account: Dict[str, Any] = field(default_factory=dict)
    project: Dict[str, Any] = field(default_factory=dict)
    subscription: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AccountData":
        return cls(
            account=_get(data, "account", {}),
            project=_get(data, "project", {}),
            subscription=_get(data, "subscription", {}),
        )

    @property
    def concurrent_limit(self) -> int:
        usage = _get(self.subscription, "usage", {})
        return int(_get(_get(usage, "scrape", {}), "concurrent_limit", 0))

    @property
    def plan_name(self) -> str:
        return _get(self.subscription, "plan_name", "")


@dataclass(frozen=True)
class ScrapeOutcome:
    """One item of a concurrent scrape: the config and either its result or its error."""

    config: Any
    result: Optional[ScrapeResult] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None
