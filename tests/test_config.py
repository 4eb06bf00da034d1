"""
Tests for environment-driven configuration.
"""

from __future__ import annotations


def _clear(monkeypatch, *names):
    for name in names:
        monkeypatch.delenv(name, raising=False)


def test_database_url_prefers_explicit_url(monkeypatch, tmp_path):
    from lumina.config.env import get_database_url

    _clear(monkeypatch, "LUMINA_DB_URL", "DATABASE_URL")
    monkeypatch.setenv("LEDGER_DB_PATH", str(tmp_path / "x.db"))
    assert get_database_url() == f"sqlite:///{tmp_path / 'x.db'}"

    monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@db/lumina")
    assert get_database_url() == "postgresql://u:p@db/lumina"

    monkeypatch.setenv("LUMINA_DB_URL", "sqlite:///other.db")
    assert get_database_url() == "sqlite:///other.db"


def test_database_url_default_path(monkeypatch):
    from lumina.config.env import get_database_url

    _clear(monkeypatch, "LUMINA_DB_URL", "DATABASE_URL", "LEDGER_DB_PATH")
    assert get_database_url() == "sqlite:///lumina.db"


def test_api_key_fallback(monkeypatch):
    """AUDIUS_API_KEY wins; NEXT_PUBLIC_AUDIUS_API_KEY is accepted; blank means None."""
    from lumina.config.env import get_audius_api_key

    _clear(monkeypatch, "AUDIUS_API_KEY", "NEXT_PUBLIC_AUDIUS_API_KEY")
    monkeypatch.setenv("AUDIUS_API_KEY", "   ")
    assert get_audius_api_key() is None

    monkeypatch.setenv("NEXT_PUBLIC_AUDIUS_API_KEY", "public-key")
    monkeypatch.delenv("AUDIUS_API_KEY")
    assert get_audius_api_key() == "public-key"

    monkeypatch.setenv("AUDIUS_API_KEY", "server-key")
    assert get_audius_api_key() == "server-key"


def test_timeout_falls_back_on_bad_values(monkeypatch):
    from lumina.config.env import DEFAULT_REQUEST_TIMEOUT_SEC, get_request_timeout_sec

    monkeypatch.setenv("AUDIUS_REQUEST_TIMEOUT_SEC", "abc")
    assert get_request_timeout_sec() == DEFAULT_REQUEST_TIMEOUT_SEC
    monkeypatch.setenv("AUDIUS_REQUEST_TIMEOUT_SEC", "-1")
    assert get_request_timeout_sec() == DEFAULT_REQUEST_TIMEOUT_SEC
    monkeypatch.setenv("AUDIUS_REQUEST_TIMEOUT_SEC", "4.5")
    assert get_request_timeout_sec() == 4.5


def test_settings_bundle(monkeypatch):
    from lumina.config import get_settings

    monkeypatch.setenv("AUDIUS_API_URL", "https://catalog.test/v1/")
    monkeypatch.setenv("API_HOST", "127.0.0.1")
    monkeypatch.setenv("API_PORT", "9100")
    settings = get_settings()
    assert settings.audius_api_url == "https://catalog.test/v1"
    assert (settings.api_host, settings.api_port) == ("127.0.0.1", 9100)
