from __future__ import annotations

import base64
import json
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Type

from .errors import ConfigError


def urlsafe_b64encode(data: str) -> str:
    """Encode ``data`` as URL-safe base64 without padding."""
    return base64.urlsafe_b64encode(data.encode("utf-8")).decode("ascii").rstrip("=")


def urlsafe_b64decode(data: str) -> str:
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding).decode("utf-8")


class BaseConfig(ABC):
    """Abstract base class for API call configurations.

    ``to_api_params()`` runs ``validate()`` first and only encodes a
    configuration with no violations, so an invalid configuration never
    reaches the network.
    """

    error_class: Type[ConfigError] = ConfigError

    def to_api_params(self) -> Dict[str, str]:
        violations = self.validate()
        if violations:
            raise self.error_class(violations)
        return self.encode()

    @abstractmethod
    def validate(self) -> List[str]:
        """Return every violation of the configuration, in check order."""

    @abstractmethod
    def encode(self) -> Dict[str, str]:
        """Serialize an already validated configuration to wire parameters."""


def check_extraction_strategies(config: Any, violations: List[str]) -> None:
    """At most one of the extraction template, inline template, prompt and model may be set."""
    is_set = {
        "extraction_template": bool(config.extraction_template),
        # an empty inline template is still a template
        "extraction_ephemeral_template": config.extraction_ephemeral_template is not None,
        "extraction_prompt": bool(config.extraction_prompt),
        "extraction_model": bool(config.extraction_model),
    }
    chosen = [name for name, value in is_set.items() if value]
    if len(chosen) > 1:
        violations.append(f"{' and '.join(chosen)} are mutually exclusive")


def encode_extraction_strategies(config: Any, params: Dict[str, str]) -> None:
    if config.extraction_template:
        params["extraction_template"] = config.extraction_template
    if config.extraction_ephemeral_template is not None:
        template = json.dumps(config.extraction_ephemeral_template, separators=(",", ":"))
        params["extraction_template"] = "ephemeral:" + urlsafe_b64encode(template)
    if config.extraction_prompt:
        params["extraction_prompt"] = config.extraction_prompt
    if config.extraction_model:
        params["extraction_model"] = _enum_value(config.extraction_model)


def _enum_value(value: Any) -> str:
    return getattr(value, "value", value)
