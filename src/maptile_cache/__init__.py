"""
Map Tile Cache

A read-through cache for raster map tiles. Tiles are served from object
storage when present and otherwise fetched from the configured upstream
provider, classified, returned to the client and persisted in the background.

Author: Map Tile Cache maintainers
Project: Map Tile Cache
"""

__version__ = "1.0.0"
__author__ = "Map Tile Cache maintainers"

# Core modules
from . import monitoring
from . import providers
from . import storage
from . import tiles

__all__ = [
    "monitoring",
    "providers",
    "storage",
    "tiles",
]
