from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Union

from .base import BaseConfig, _enum_value, urlsafe_b64encode
from .enums import ScreenshotFormat, ScreenshotOption, coerce_enum, coerce_enum_list
from .errors import ScreenshotConfigError


@dataclass
class ScreenshotConfig(BaseConfig):
    """Configuration of one call to the screenshot endpoint.

    ``capture`` is ``"fullpage"`` or a CSS selector, ``resolution`` is
    ``"<width>x<height>"``."""

    url: str
    format: Union[ScreenshotFormat, str, None] = None
    capture: str = ""
    resolution: str = ""
    country: str = ""
    timeout: int = 0
    rendering_wait: int = 0
    wait_for_selector: str = ""
    options: List[Union[ScreenshotOption, str]] = field(default_factory=list)
    auto_scroll: bool = False
    js: str = ""
    cache: bool = False
    cache_ttl: int = 0
    cache_clear: bool = False
    webhook: str = ""

    error_class = ScreenshotConfigError

    def validate(self) -> List[str]:
        violations: List[str] = []
        if not self.url:
            violations.append("url is required")
        if self.format:
            coerce_enum(ScreenshotFormat, self.format, "format", violations)
        coerce_enum_list(ScreenshotOption, self.options, "option", violations)
        return violations

    def encode(self) -> Dict[str, str]:
        params: Dict[str, str] = {"url": self.url}
        if self.format:
            params["format"] = _enum_value(self.format)
        if self.capture:
            params["capture"] = self.capture
        if self.resolution:
            params["resolution"] = self.resolution
        if self.country:
            params["country"] = self.country
        if self.timeout > 0:
            params["timeout"] = str(self.timeout)
        if self.rendering_wait > 0:
            params["rendering_wait"] = str(self.rendering_wait)
        if self.wait_for_selector:
            params["wait_for_selector"] = self.wait_for_selector
        if self.auto_scroll:
            params["auto_scroll"] = "true"
        if self.js:
            params["js"] = urlsafe_b64encode(self.js)
        if self.options:
            params["options"] = ",".join(_enum_value(opt) for opt in self.options)
        if self.cache:
            params["cache"] = "true"
            if self.cache_ttl > 0:
                params["cache_ttl"] = str(self.cache_ttl)
            if self.cache_clear:
                params["cache_clear"] = "true"
        if self.webhook:
            params["webhook_name"] = self.webhook
        return params
