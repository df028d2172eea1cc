from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urlencode

from .base import (
    BaseConfig,
    _enum_value,
    check_extraction_strategies,
    encode_extraction_strategies,
    urlsafe_b64encode,
)
from .enums import (
    ExtractionModel,
    Format,
    FormatOption,
    HttpMethod,
    ProxyPool,
    ScreenshotFlag,
    coerce_enum,
    coerce_enum_list,
)
from .errors import ScrapeConfigError
from .scenario import ScenarioStep, scenario_errors

BODY_METHODS = (HttpMethod.POST, HttpMethod.PUT, HttpMethod.PATCH)
JSON_CONTENT_TYPE = "application/json"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


@dataclass
class ScrapeConfig(BaseConfig):
    """Configuration of one call to the scrape endpoint.

    Browser options (``wait_for_selector``, ``rendering_wait``,
    ``auto_scroll``, ``js``, ``js_scenario``, ``screenshots``,
    ``screenshot_flags``) only take effect with ``render_js=True``.
    ``data`` is encoded into ``body`` for POST, PUT and PATCH requests
    according to the ``content-type`` header (form encoding by default).
    """

    url: str
    method: Union[HttpMethod, str] = HttpMethod.GET
    body: str = ""
    data: Optional[Dict[str, Any]] = None
    headers: Dict[str, str] = field(default_factory=dict)
    cookies: Dict[str, str] = field(default_factory=dict)
    country: str = ""
    proxy_pool: Union[ProxyPool, str, None] = None
    render_js: bool = False
    asp: bool = False
    cache: bool = False
    cache_ttl: int = 0
    cache_clear: bool = False
    timeout: int = 0
    retry: bool = True
    session: str = ""
    session_sticky_proxy: bool = False
    tags: List[str] = field(default_factory=list)
    webhook: str = ""
    debug: bool = False
    ssl: bool = False
    dns: bool = False
    correlation_id: str = ""
    format: Union[Format, str, None] = None
    format_options: List[Union[FormatOption, str]] = field(default_factory=list)
    extraction_template: str = ""
    extraction_ephemeral_template: Optional[Dict[str, Any]] = None
    extraction_prompt: str = ""
    extraction_model: Union[ExtractionModel, str, None] = None
    wait_for_selector: str = ""
    rendering_wait: int = 0
    auto_scroll: bool = False
    screenshots: Dict[str, str] = field(default_factory=dict)
    screenshot_flags: List[Union[ScreenshotFlag, str]] = field(default_factory=list)
    js: str = ""
    js_scenario: List[ScenarioStep] = field(default_factory=list)
    os: str = ""
    lang: List[str] = field(default_factory=list)

    error_class = ScrapeConfigError

    @property
    def http_method(self) -> HttpMethod:
        method = self.method.upper() if isinstance(self.method, str) else self.method
        try:
            return HttpMethod(method)
        except ValueError:
            return HttpMethod.GET

    @property
    def content_type(self) -> Optional[str]:
        for key, value in self.headers.items():
            if key.lower() == "content-type":
                return value
        return None

    def validate(self) -> List[str]:
        violations: List[str] = []
        if not self.url:
            violations.append("url is required")

        check_extraction_strategies(self, violations)
        self._check_body(violations)

        for key, value in self.headers.items():
            if not key or not value:
                violations.append(f"headers key and value cannot be empty, found key: {key!r}, value: {value!r}")
        for name, value in self.cookies.items():
            if not name or not value:
                violations.append(f"cookies name and value cannot be empty, found name: {name!r}, value: {value!r}")

        method = self.method.upper() if isinstance(self.method, str) else self.method
        coerce_enum(HttpMethod, method, "method", violations)
        if self.format:
            coerce_enum(Format, self.format, "format", violations)
        coerce_enum_list(FormatOption, self.format_options, "format option", violations)
        if self.proxy_pool:
            coerce_enum(ProxyPool, self.proxy_pool, "proxy_pool", violations)
        if self.extraction_model:
            coerce_enum(ExtractionModel, self.extraction_model, "extraction_model", violations)
        coerce_enum_list(ScreenshotFlag, self.screenshot_flags, "screenshot flag", violations)

        for name, selector in self.screenshots.items():
            if not selector:
                violations.append(f"screenshots[{name}] require either a selector or fullpage")
        if self.js_scenario:
            violations.extend(scenario_errors(self.js_scenario))
        return violations

    def _check_body(self, violations: List[str]) -> None:
        if self.body and self.data is not None:
            violations.append("cannot set both body and data")
            return
        if self.data is not None and self.http_method in BODY_METHODS:
            content_type = self.content_type
            if content_type and JSON_CONTENT_TYPE not in content_type and FORM_CONTENT_TYPE not in content_type:
                violations.append(
                    f"unsupported content-type for data: {content_type}, use body instead"
                )

    def process_body(self) -> None:
        """Encode ``data`` into ``body`` and default the ``content-type`` header.

        This is the only mutation a configuration goes through."""
        if self.http_method not in BODY_METHODS:
            return
        if self.data is not None:
            content_type = self.content_type
            if content_type is None:
                content_type = FORM_CONTENT_TYPE
                self.headers["content-type"] = content_type
            if JSON_CONTENT_TYPE in content_type:
                self.body = json.dumps(self.data)
            elif FORM_CONTENT_TYPE in content_type:
                self.body = urlencode({k: str(v) for k, v in self.data.items()})
            else:
                raise ScrapeConfigError([f"unsupported content-type for data: {content_type}, use body instead"])
        if self.body and self.content_type is None:
            self.headers["content-type"] = "text/plain"

    def to_api_params(self) -> Dict[str, str]:
        violations = self.validate()
        if violations:
            raise self.error_class(violations)
        self.process_body()
        return self.encode()

    def encode(self) -> Dict[str, str]:
        params: Dict[str, str] = {"url": self.url}

        if self.country:
            params["country"] = self.country
        if self.proxy_pool:
            params["proxy_pool"] = _enum_value(self.proxy_pool)

        if self.render_js:
            params["render_js"] = "true"
            if self.wait_for_selector:
                params["wait_for_selector"] = self.wait_for_selector
            if self.rendering_wait > 0:
                params["rendering_wait"] = str(self.rendering_wait)
            if self.auto_scroll:
                params["auto_scroll"] = "true"
            if self.js:
                params["js"] = urlsafe_b64encode(self.js)
            if self.js_scenario:
                params["js_scenario"] = urlsafe_b64encode(json.dumps(self.js_scenario, separators=(",", ":")))
            for name, selector in self.screenshots.items():
                params[f"screenshots[{name}]"] = selector
            if self.screenshot_flags:
                params["screenshot_flags"] = ",".join(_enum_value(flag) for flag in self.screenshot_flags)

        if self.asp:
            params["asp"] = "true"
        if not self.retry:
            params["retry"] = "false"
        if self.cache:
            params["cache"] = "true"
            if self.cache_ttl > 0:
                params["cache_ttl"] = str(self.cache_ttl)
            if self.cache_clear:
                params["cache_clear"] = "true"
        if self.timeout > 0:
            params["timeout"] = str(self.timeout)
        if self.debug:
            params["debug"] = "true"
        if self.ssl:
            params["ssl"] = "true"
        if self.dns:
            params["dns"] = "true"
        if self.correlation_id:
            params["correlation_id"] = self.correlation_id
        if self.tags:
            params["tags"] = ",".join(self.tags)
        if self.webhook:
            params["webhook_name"] = self.webhook
        if self.session:
            params["session"] = self.session
            if self.session_sticky_proxy:
                params["session_sticky_proxy"] = "true"
        if self.os:
            params["os"] = self.os
        if self.lang:
            params["lang"] = ",".join(self.lang)

        if self.format:
            value = _enum_value(self.format)
            if self.format_options:
                value += ":" + ",".join(_enum_value(opt) for opt in self.format_options)
            params["format"] = value

        encode_extraction_strategies(self, params)

        explicit_cookie = ""
        for key, value in self.headers.items():
            params[f"headers[{key.lower()}]"] = value
            if key.lower() == "cookie":
                explicit_cookie = value
        if self.cookies:
            cookie_header = "; ".join(f"{name}={value}" for name, value in self.cookies.items())
            if explicit_cookie:
                cookie_header = f"{explicit_cookie}; {cookie_header}"
            params["headers[cookie]"] = cookie_header

        return params
