"""
Application settings.

Bundles the environment-derived values from config.env into one typed
object for the catalog client, ledger store and API server.
"""

from __future__ import annotations

from dataclasses import dataclass

from lumina.config.env import (
    get_api_bind,
    get_audius_api_key,
    get_audius_api_url,
    get_database_url,
    get_request_timeout_sec,
)


@dataclass(frozen=True)
class Settings:
    audius_api_url: str
    audius_api_key: str | None
    request_timeout_sec: float
    database_url: str
    api_host: str
    api_port: int


def get_settings() -> Settings:
    """
    Return the current application settings.

    Read from the environment on every call so tests can monkeypatch
    variables without resetting a cache.
    """
    host, port = get_api_bind()
    return Settings(
        audius_api_url=get_audius_api_url(),
        audius_api_key=get_audius_api_key(),
        request_timeout_sec=get_request_timeout_sec(),
        database_url=get_database_url(),
        api_host=host,
        api_port=port,
    )
