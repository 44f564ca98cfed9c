"""Connectors for external music catalogs."""

from tunelink.infrastructure.connectors.spotify import (
    CatalogTokenCache,
    SpotifyCatalogConnector,
    convert_spotify_track,
    get_token_cache,
)

__all__ = [
    "CatalogTokenCache",
    "SpotifyCatalogConnector",
    "convert_spotify_track",
    "get_token_cache",
]
