"""
Monitoring and Observability

Structured logging configuration and Prometheus metrics for the tile cache.
"""

from .logging_config import configure_logging
from .metrics import TileMetrics

__all__ = [
    "configure_logging",
    "TileMetrics",
]
