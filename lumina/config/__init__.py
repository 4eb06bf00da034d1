"""
Configuration management for Lumina.

Loads settings from environment variables and an optional .env file.
Exposes a single source of truth for catalog, ledger and API configuration.
"""

from lumina.config.settings import Settings, get_settings  # noqa: F401

__all__ = ["Settings", "get_settings"]
