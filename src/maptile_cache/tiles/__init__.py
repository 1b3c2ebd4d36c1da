"""
Tile Pipeline

Key derivation, format detection, upstream fetching, background persistence
and the resolver that ties them together.
"""

from .formats import ImageFormat, classify
from .keys import derive_key
from .persistence import TilePersister
from .resolver import TileResolver, TileResponse
from .upstream import UpstreamClient, UpstreamTile, build_tile_url, select_subdomain

__all__ = [
    "ImageFormat",
    "classify",
    "derive_key",
    "TilePersister",
    "TileResolver",
    "TileResponse",
    "UpstreamClient",
    "UpstreamTile",
    "build_tile_url",
    "select_subdomain",
]
