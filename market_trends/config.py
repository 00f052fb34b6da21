"""Runtime configuration for the market trends store and scraper."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_MARKET_URL = "https://www.futbolfantasy.com/analytics/laliga-fantasy/mercado"
DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:91.0) Gecko/20100101 Firefox/91.0"
DEFAULT_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8"
DEFAULT_ACCEPT_LANGUAGE = "es-ES,es;q=0.8,en-US;q=0.5,en;q=0.3"


@dataclass
class TrendsConfig:
    market_url: str = DEFAULT_MARKET_URL
    cache_dir: str = "data/cache"
    cache_duration_hours: float = 24.0
    request_timeout: float = 30.0

    # Prefix for a local CORS/dev proxy; the market URL is appended url-encoded.
    proxy_url: Optional[str] = None

    user_agent: str = DEFAULT_USER_AGENT
    accept_language: str = DEFAULT_ACCEPT_LANGUAGE

    @classmethod
    def from_env(cls, **overrides) -> "TrendsConfig":
        """Build a config from ``MARKET_TRENDS_*`` environment variables.

        Keyword overrides that are not ``None`` win over the environment.
        """
        config = cls(
            market_url=os.getenv("MARKET_TRENDS_URL") or DEFAULT_MARKET_URL,
            cache_dir=os.getenv("MARKET_TRENDS_CACHE_DIR") or "data/cache",
            cache_duration_hours=_safe_float(os.getenv("MARKET_TRENDS_CACHE_HOURS"), 24.0),
            request_timeout=_safe_float(os.getenv("MARKET_TRENDS_TIMEOUT"), 30.0),
            proxy_url=os.getenv("MARKET_TRENDS_PROXY_URL") or None,
        )
        for name, value in overrides.items():
            if value is not None:
                setattr(config, name, value)
        return config


def _safe_float(value, default: float) -> float:
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default
