from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from tradedesk.data.providers import DEFAULT_BASE_URL


@dataclass(frozen=True)
class AppSettings:
    """Runtime configuration read from the environment.

    Attributes:
        api_url: Base URL of the dashboard backend (TRADEDESK_API_URL)
        api_token: Bearer token for the backend, if any (TRADEDESK_API_TOKEN)
        timeout_s: HTTP timeout in seconds (TRADEDESK_TIMEOUT_S)
        log_level: Logging level name (TRADEDESK_LOG_LEVEL)
    """
    api_url: str = DEFAULT_BASE_URL
    api_token: Optional[str] = None
    timeout_s: float = 10.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppSettings":
        """Build settings from environment variables, falling back to defaults.

        Raises:
            ValueError: If TRADEDESK_TIMEOUT_S is not a positive number
        """
        env = os.environ if environ is None else environ

        raw_timeout = env.get("TRADEDESK_TIMEOUT_S")
        timeout_s = cls.timeout_s
        if raw_timeout:
            try:
                timeout_s = float(raw_timeout)
            except ValueError:
                raise ValueError(f"TRADEDESK_TIMEOUT_S must be a number, got {raw_timeout!r}")
            if timeout_s <= 0:
                raise ValueError(f"TRADEDESK_TIMEOUT_S must be positive, got {raw_timeout!r}")

        return cls(
            api_url=env.get("TRADEDESK_API_URL") or DEFAULT_BASE_URL,
            api_token=env.get("TRADEDESK_API_TOKEN") or None,
            timeout_s=timeout_s,
            log_level=(env.get("TRADEDESK_LOG_LEVEL") or "INFO").upper(),
        )
