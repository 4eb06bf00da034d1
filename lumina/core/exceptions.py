"""
Application-level exceptions.

CatalogError covers upstream fetch failures (network errors, non-2xx
responses, malformed payloads). LedgerError covers the interaction ledger.
The API server maps these to HTTP status codes.
"""

from __future__ import annotations


class LuminaError(Exception):
    """Base class for all Lumina errors."""


class CatalogError(LuminaError):
    """Raised when the streaming-catalog API call fails."""

    def __init__(self, message: str, status_code: int | None = None, endpoint: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.endpoint = endpoint


class CatalogNotFoundError(CatalogError):
    """Raised when the catalog has no record for the requested id."""


class LedgerError(LuminaError):
    """Raised when the interaction ledger cannot be read or written."""


class InvalidActivityError(LedgerError, ValueError):
    """Raised for an unknown action kind, invalid wallet, or malformed activity metadata."""
