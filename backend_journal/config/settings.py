"""
Application settings.

Typed, cached view over the environment getters in config.env, for the
API server, market data client and CLI tools.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass

from backend_journal.config import env


@dataclass(frozen=True)
class Settings:
    database_url: str
    alpha_vantage_api_key: str | None
    alpha_vantage_url: str
    market_data_timeout_sec: float
    api_host: str
    api_port: int

    @property
    def market_data_enabled(self) -> bool:
        return self.alpha_vantage_api_key is not None


@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Return the current application settings.

    Cached for the process lifetime; tests call get_settings.cache_clear()
    after changing the environment.
    """
    return Settings(
        database_url=env.get_database_url(),
        alpha_vantage_api_key=env.get_alpha_vantage_api_key(),
        alpha_vantage_url=env.get_alpha_vantage_url(),
        market_data_timeout_sec=env.get_market_data_timeout(),
        api_host=env.get_api_host(),
        api_port=env.get_api_port(),
    )
