"""
Tile Resolver

The cache-aside pipeline behind the tile endpoint:

    validate -> resolve provider -> check zoom -> probe cache
        hit:  classify stored bytes and return
        miss: build upstream URL -> fetch -> classify -> return,
              then persist in the background

Every request passes through the pipeline once; there is no retry state.
"""

import re
from dataclasses import dataclass
from typing import Optional, Tuple

import structlog

from ..exceptions import BadRequest, NotFound, StorageFailure, TileCacheError
from ..monitoring import TileMetrics
from ..providers import Provider, ProviderRegistry
from ..storage import TileStore
from .formats import ImageFormat, classify
from .keys import PROBE_EXTENSION, Token, derive_key
from .persistence import TilePersister
from .upstream import UpstreamClient, build_tile_url

logger = structlog.get_logger(__name__)

# No whitespace, underscores or non-ASCII digits: the raw token goes into URLs and keys
_INTEGER_TOKEN = re.compile(r"-?\d+", re.ASCII)

UNKNOWN_SOURCE = "unknown"

CACHE_HIT = "HIT"
CACHE_MISS = "MISS"


@dataclass
class TileResponse:
    """A resolved tile ready to be sent to the client."""
    content: bytes
    image_format: ImageFormat
    cache_status: str
    key: str

    @property
    def content_type(self) -> str:
        return self.image_format.content_type


class TileResolver:
    """Serves tiles from the store, falling back to the upstream provider."""

    def __init__(
        self,
        registry: ProviderRegistry,
        store: TileStore,
        upstream: UpstreamClient,
        persister: TilePersister,
        metrics: Optional[TileMetrics] = None
    ):
        self.registry = registry
        self.store = store
        self.upstream = upstream
        self.persister = persister
        self.metrics = metrics

    async def resolve(
        self,
        source: Optional[str],
        z: Optional[Token],
        x: Optional[Token],
        y: Optional[Token]
    ) -> TileResponse:
        """
        Resolve a tile request.

        Args:
            source: Provider id
            z: Zoom level token
            x: Column token
            y: Row token

        Returns:
            The tile bytes with their format and cache status

        Raises:
            BadRequest: Missing or non-integer parameters, zoom out of range
            NotFound: Unknown provider
            UpstreamFailure: The upstream fetch failed
        """
        try:
            provider, (zoom, column, row) = self._validate(source, z, x, y)

            tile = await self._lookup_cache(provider, z, x, y)
            if tile is None:
                tile = await self._fetch_and_persist(provider, z, x, y, zoom, column, row)
        except TileCacheError as e:
            if self.metrics:
                # Only configured ids become label values; client input is unbounded
                label = source if isinstance(source, str) and self.registry.exists(source) else UNKNOWN_SOURCE
                self.metrics.record_request_error(label, type(e).__name__)
            raise

        if self.metrics:
            self.metrics.record_tile_served(provider.id, tile.cache_status)
        return tile

    def _validate(
        self,
        source: Optional[str],
        z: Optional[Token],
        x: Optional[Token],
        y: Optional[Token]
    ) -> Tuple[Provider, Tuple[int, int, int]]:
        if any(_is_missing(value) for value in (source, z, x, y)):
            message = "Missing required query parameters: source, x, y, z"
            logger.warning(message)
            raise BadRequest(message)

        try:
            zoom, column, row = _parse_coordinate(z), _parse_coordinate(x), _parse_coordinate(y)
        except ValueError:
            message = "Invalid coordinate format"
            logger.warning(message, z=z, x=x, y=y)
            raise BadRequest(message) from None

        provider = self.registry.get(source)
        if provider is None:
            message = f"Map source not found: {source}"
            logger.warning(message)
            raise NotFound(message)

        if zoom < 0 or zoom > provider.max_zoom:
            message = f"Zoom level out of range. Max zoom: {provider.max_zoom}"
            logger.warning(message, source=source, zoom=zoom)
            raise BadRequest(message)

        return provider, (zoom, column, row)

    async def _lookup_cache(
        self,
        provider: Provider,
        z: Token,
        x: Token,
        y: Token
    ) -> Optional[TileResponse]:
        # Always probed under the PNG key, whatever format was stored
        key = derive_key(provider.cache_namespace, z, x, y, PROBE_EXTENSION)
        logger.info("Checking cache for tile", key=key)

        try:
            if not await self.store.exists(key):
                logger.info("Cache miss for tile", key=key)
                return None
            data = await self.store.read(key)
        except StorageFailure as e:
            logger.warning("Error reading from cache", key=key, error=str(e))
            if self.metrics:
                self.metrics.record_storage_error("read")
            return None

        if data is None:
            logger.info("Cache miss for tile", key=key)
            return None

        logger.info("Cache hit for tile", key=key)
        return TileResponse(
            content=data,
            image_format=classify(data),
            cache_status=CACHE_HIT,
            key=key,
        )

    async def _fetch_and_persist(
        self,
        provider: Provider,
        z: Token,
        x: Token,
        y: Token,
        zoom: int,
        column: int,
        row: int
    ) -> TileResponse:
        url = build_tile_url(provider, z, x, y, zoom, column, row)
        logger.info("Cache miss, fetching tile", source=provider.id, z=z, x=x, y=y, url=url)

        if self.metrics:
            with self.metrics.time_upstream_fetch(provider.id):
                upstream_tile = await self.upstream.fetch(provider, url)
        else:
            upstream_tile = await self.upstream.fetch(provider, url)

        image_format = classify(upstream_tile.content, upstream_tile.content_type)
        key = derive_key(provider.cache_namespace, z, x, y, image_format.extension)

        self.persister.schedule(key, upstream_tile.content, image_format)

        logger.info(
            "Tile fetched",
            source=provider.id,
            key=key,
            format=image_format.name,
            size_bytes=len(upstream_tile.content)
        )
        return TileResponse(
            content=upstream_tile.content,
            image_format=image_format,
            cache_status=CACHE_MISS,
            key=key,
        )


def _is_missing(value: Optional[Token]) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_coordinate(value: Token) -> int:
    """Parse a plain ASCII integer token; raises ValueError otherwise."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and _INTEGER_TOKEN.fullmatch(value):
        return int(value)
    raise ValueError(f"Not a plain integer: {value!r}")
