from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_HOST = "https://api.scrapfly.io"
DEFAULT_TIMEOUT = 150.0
DEFAULT_RETRIES = 3
DEFAULT_RETRY_DELAY = 1.0
DEFAULT_RETRY_MAX_DELAY = 30.0
DEFAULT_RETRY_POLICY = "fixed"


@dataclass(frozen=True)
class ClientSettings:
    key: str
    host: str = DEFAULT_HOST
    timeout: float = DEFAULT_TIMEOUT
    retries: int = DEFAULT_RETRIES
    retry_delay: float = DEFAULT_RETRY_DELAY
    retry_policy: str = DEFAULT_RETRY_POLICY
    retry_max_delay: float = DEFAULT_RETRY_MAX_DELAY
    verify_ssl: bool = True

    @classmethod
    def from_env(cls) -> "ClientSettings":
        """Read settings from the environment, after loading a ``.env`` file if present.

        ``SCRAPFLY_API_KEY`` is required; ``SCRAPFLY_HOST``,
        ``SCRAPFLY_TIMEOUT``, ``SCRAPFLY_RETRIES``, ``SCRAPFLY_RETRY_DELAY``,
        ``SCRAPFLY_RETRY_POLICY`` (fixed or exponential),
        ``SCRAPFLY_RETRY_MAX_DELAY`` and ``SCRAPFLY_VERIFY_SSL`` are optional.
        """
        load_dotenv()
        return cls(
            key=get_or_throw("SCRAPFLY_API_KEY"),
            host=get("SCRAPFLY_HOST", DEFAULT_HOST),
            timeout=float(get("SCRAPFLY_TIMEOUT", str(DEFAULT_TIMEOUT))),
            retries=int(get("SCRAPFLY_RETRIES", str(DEFAULT_RETRIES))),
            retry_delay=float(get("SCRAPFLY_RETRY_DELAY", str(DEFAULT_RETRY_DELAY))),
            retry_policy=get("SCRAPFLY_RETRY_POLICY", DEFAULT_RETRY_POLICY).lower(),
            retry_max_delay=float(get("SCRAPFLY_RETRY_MAX_DELAY", str(DEFAULT_RETRY_MAX_DELAY))),
            verify_ssl=get("SCRAPFLY_VERIFY_SSL", "true").lower() != "false",
        )


def get(key: str, default: str = "") -> str:
    return os.getenv(key, default)


def get_or_throw(key: str) -> str:
    value = get(key)
    if not value:
        raise ValueError(f"{key} is not set")
    return value
