"""
Catalog adapter — streaming-catalog (Audius) records and REST client.
"""

from lumina.catalog.client import AudiusClient, CatalogSource
from lumina.catalog.models import Playlist, Track, User

__all__ = [
    "AudiusClient",
    "CatalogSource",
    "Playlist",
    "Track",
    "User",
]
