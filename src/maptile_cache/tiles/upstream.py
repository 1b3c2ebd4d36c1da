"""
Upstream Tile Fetching

URL construction for provider templates and a thin async HTTP client that
performs a single GET per tile. There is no retry: a failed fetch is reported
to the caller as-is.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Sequence

import httpx
import structlog

from ..exceptions import UpstreamFailure
from ..providers import Provider
from .keys import Token

logger = structlog.get_logger(__name__)


@dataclass
class UpstreamTile:
    """Payload returned by an upstream provider."""
    content: bytes
    content_type: Optional[str]
    status_code: int


def select_subdomain(subdomains: Sequence[str], zoom: int, column: int, row: int) -> Optional[str]:
    """
    Pick the subdomain for a tile.

    The same tile always maps to the same host:
    ``subdomains[(column + row + zoom) % len(subdomains)]``.
    """
    if not subdomains:
        return None
    return subdomains[(column + row + zoom) % len(subdomains)]


def build_tile_url(
    provider: Provider,
    z: Token,
    x: Token,
    y: Token,
    zoom: int,
    column: int,
    row: int
) -> str:
    """
    Fill in a provider URL template.

    ``{z}``, ``{x}`` and ``{y}`` receive the raw request tokens so any client
    formatting is preserved; the parsed integers only drive subdomain choice.
    """
    url = provider.url_template
    url = url.replace("{z}", str(z))
    url = url.replace("{x}", str(x))
    url = url.replace("{y}", str(y))

    subdomain = select_subdomain(provider.subdomains, zoom, column, row)
    if subdomain is not None:
        url = url.replace("{s}", subdomain)

    return url


class UpstreamClient:
    """Fetches tiles from upstream providers over a shared httpx client."""

    def __init__(self, http_client: httpx.AsyncClient, user_agent: str = "MapTileCache/1.0"):
        self.http_client = http_client
        self.user_agent = user_agent

    def request_headers(self, provider: Provider) -> Dict[str, str]:
        """Default User-Agent overridden by the provider's own headers."""
        return {"User-Agent": self.user_agent, **provider.extra_headers}

    async def fetch(self, provider: Provider, url: str) -> UpstreamTile:
        """
        Fetch a tile.

        Raises:
            UpstreamFailure: On a non-success status (message carries the
                status text) or a network error (generic message, details
                logged)
        """
        try:
            response = await self.http_client.get(url, headers=self.request_headers(provider))
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(
                "Error fetching tile",
                provider=provider.id,
                url=url,
                error=repr(e),
                exc_info=True
            )
            raise UpstreamFailure("Internal server error") from e

        if not response.is_success:
            reason = response.reason_phrase or str(response.status_code)
            logger.error(
                "Upstream returned an error status",
                provider=provider.id,
                url=url,
                status_code=response.status_code,
                reason=reason
            )
            raise UpstreamFailure(f"Failed to fetch tile from source: {reason}")

        return UpstreamTile(
            content=response.content,
            content_type=response.headers.get("content-type"),
            status_code=response.status_code,
        )
