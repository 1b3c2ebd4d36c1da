"""
Tile Storage

Object store gateways used as the persistent tile cache: S3-compatible
storage for production and a local directory for development.
"""

from ..config import StorageConfig
from ..exceptions import ConfigurationError
from .base import TileStore
from .filesystem import FileSystemTileStore
from .s3 import S3TileStore


def create_tile_store(config: StorageConfig) -> TileStore:
    """Create the tile store selected by the storage configuration."""
    if config.backend == "s3":
        return S3TileStore.from_config(config)
    if config.backend == "filesystem":
        return FileSystemTileStore(config.tile_dir)
    raise ConfigurationError(f"Unknown storage backend: {config.backend}")


__all__ = [
    "TileStore",
    "S3TileStore",
    "FileSystemTileStore",
    "create_tile_store",
]
