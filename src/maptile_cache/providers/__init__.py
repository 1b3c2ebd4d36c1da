"""
Tile Providers

Upstream tile provider definitions and the registry that serves them to the
request pipeline.
"""

from .models import Provider
from .registry import ProviderRegistry, load_provider_registry

__all__ = [
    "Provider",
    "ProviderRegistry",
    "load_provider_registry",
]
