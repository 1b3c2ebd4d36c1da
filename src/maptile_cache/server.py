"""
Map Tile Cache Server

A FastAPI-based read-through cache for map tiles. Tiles are looked up in
object storage first and fetched from the configured upstream provider on a
miss, then written back to storage in the background.
"""

from datetime import datetime, timezone
from typing import Optional

import httpx
import structlog
import uvicorn
from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, Response

from . import __version__
from .config import Config
from .exceptions import TileCacheError
from .monitoring import TileMetrics, configure_logging
from .providers import ProviderRegistry, load_provider_registry
from .storage import TileStore, create_tile_store
from .tiles import TilePersister, TileResolver, UpstreamClient

logger = structlog.get_logger(__name__)

SERVICE_NAME = "maptile-cache"


def create_app(
    config: Optional[Config] = None,
    registry: Optional[ProviderRegistry] = None,
    store: Optional[TileStore] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    metrics: Optional[TileMetrics] = None
) -> FastAPI:
    """
    Create the tile cache application.

    Collaborators that are not supplied are built from ``config`` during the
    startup phase, before the first request is accepted.

    Args:
        config: Service configuration, read from the environment by default
        registry: Pre-built provider registry
        store: Tile store to use as the cache backend
        http_client: Shared client for upstream requests
        metrics: Metrics collector

    Returns:
        Configured FastAPI application
    """
    config = config or Config.from_env()
    metrics = metrics or TileMetrics()

    app = FastAPI(
        title="Map Tile Cache",
        description="Read-through cache for map tiles backed by object storage",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.config = config
    app.state.metrics = metrics

    @app.on_event("startup")
    async def startup_event():
        """Load providers and open shared clients."""
        logger.info(
            "Starting map tile cache",
            providers_file=config.providers_file,
            storage_backend=config.storage.backend
        )

        app.state.registry = registry or await load_provider_registry(config.providers_file)
        app.state.store = store or create_tile_store(config.storage)

        app.state.owns_http_client = http_client is None
        app.state.http_client = http_client or httpx.AsyncClient(
            timeout=config.upstream_timeout,
            follow_redirects=True
        )

        app.state.persister = TilePersister(app.state.store, metrics=metrics)
        app.state.resolver = TileResolver(
            registry=app.state.registry,
            store=app.state.store,
            upstream=UpstreamClient(app.state.http_client, user_agent=config.user_agent),
            persister=app.state.persister,
            metrics=metrics
        )

        logger.info("Tile cache initialized", sources=app.state.registry.ids())

    @app.on_event("shutdown")
    async def shutdown_event():
        """Finish pending cache writes and close shared clients."""
        logger.info("Shutting down map tile cache", pending_writes=app.state.persister.pending)
        await app.state.persister.drain()
        if app.state.owns_http_client:
            await app.state.http_client.aclose()

    @app.exception_handler(TileCacheError)
    async def tile_cache_error_handler(request: Request, exc: TileCacheError):
        return PlainTextResponse(str(exc), status_code=exc.status_code)

    @app.get("/maps")
    async def list_maps(request: Request):
        """List available map sources with their metadata."""
        registry = request.app.state.registry
        return {
            "maps": {
                provider_id: provider.summary()
                for provider_id, provider in registry.list()
            }
        }

    @app.get("/tiles")
    async def get_tile(
        request: Request,
        source: Optional[str] = Query(None, description="Map source identifier"),
        z: Optional[str] = Query(None, description="Zoom level"),
        x: Optional[str] = Query(None, description="Tile column"),
        y: Optional[str] = Query(None, description="Tile row")
    ):
        """
        Serve a map tile.

        Args:
            source: Map source identifier
            z: Zoom level
            x: Tile X coordinate
            y: Tile Y coordinate
        """
        tile = await request.app.state.resolver.resolve(source, z, x, y)

        return Response(
            content=tile.content,
            media_type=tile.content_type,
            headers={
                "Cache-Control": f"public, max-age={config.cache_max_age}",
                "X-Cache": tile.cache_status,
                "Content-Disposition": "inline",
            }
        )

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint."""
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": SERVICE_NAME,
            "version": __version__,
            "availableSources": request.app.state.registry.ids(),
        }

    @app.get("/metrics")
    async def get_metrics():
        """Prometheus metrics."""
        return Response(content=metrics.export(), media_type=metrics.content_type)

    return app


def main() -> None:
    """Run the tile cache with uvicorn."""
    config = Config.from_env()
    configure_logging(config.log_level, config.log_format)

    logger.info("Server starting", host=config.server.host, port=config.server.port)

    uvicorn.run(
        create_app(config),
        host=config.server.host,
        port=config.server.port,
        log_level=config.log_level.lower(),
        access_log=True
    )


if __name__ == "__main__":
    main()
