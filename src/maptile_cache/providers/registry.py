"""
Provider Registry

Holds the configured upstream tile providers. The registry is built once
during application startup and is read-only afterwards, so request handlers
can share it without locking.
"""

import json
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

import aiofiles
import structlog

from ..exceptions import ConfigurationError
from .models import Provider

logger = structlog.get_logger(__name__)


class ProviderRegistry:
    """Immutable, ordered collection of tile providers keyed by id."""

    def __init__(self, providers: Iterable[Provider] = ()):
        entries: Dict[str, Provider] = {}
        for provider in providers:
            if provider.id in entries:
                raise ConfigurationError(f"Duplicate provider id: {provider.id}")
            if provider.uses_subdomains and not provider.subdomains:
                logger.warning(
                    "Provider template uses {s} but declares no subdomains",
                    provider=provider.id
                )
            entries[provider.id] = provider
        self._providers = entries

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> "ProviderRegistry":
        """
        Build a registry from a pre-parsed configuration mapping.

        Args:
            config: Either the whole document (``{"maps": {...}}``) or the
                inner mapping of provider id to provider record

        Returns:
            Populated registry, in configuration order
        """
        if not isinstance(config, Mapping):
            raise ConfigurationError("Provider configuration must be an object")

        maps = config.get("maps", config)
        if not isinstance(maps, Mapping):
            raise ConfigurationError("'maps' must be an object of provider records")

        return cls(Provider.from_dict(provider_id, data) for provider_id, data in maps.items())

    def get(self, provider_id: str) -> Optional[Provider]:
        return self._providers.get(provider_id)

    def exists(self, provider_id: str) -> bool:
        return provider_id in self._providers

    def list(self) -> List[Tuple[str, Provider]]:
        return list(self._providers.items())

    def ids(self) -> List[str]:
        return list(self._providers)

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._providers

    def __iter__(self) -> Iterator[Provider]:
        return iter(self._providers.values())

    def __len__(self) -> int:
        return len(self._providers)


async def load_provider_registry(config_path: Union[str, Path]) -> ProviderRegistry:
    """
    Load the provider registry from a JSON configuration file.

    Args:
        config_path: Path to the providers file

    Returns:
        Populated provider registry

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        async with aiofiles.open(config_path, 'r', encoding='utf-8') as f:
            content = await f.read()
        config = json.loads(content)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Error reading {config_path}: {e}") from e

    registry = ProviderRegistry.from_mapping(config)
    logger.info("Loaded map sources", count=len(registry), path=str(config_path))
    return registry
