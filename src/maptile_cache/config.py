"""
Service Configuration

Settings are read from the environment once, at process start, and passed
explicitly to the components that need them. S3 settings accept both the
``S3_*`` and the ``AWS_*`` variable names so the service can share a
deployment environment with other AWS tooling.
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional


def _first_env(env: Mapping[str, str], *names: str, default: Optional[str] = None) -> Optional[str]:
    """Return the first non-empty value among the given variable names."""
    for name in names:
        value = env.get(name)
        if value:
            return value
    return default


@dataclass
class StorageConfig:
    """Object store settings."""
    backend: str = "s3"  # 's3' or 'filesystem'
    bucket: Optional[str] = None
    endpoint_url: Optional[str] = None
    region: str = "us-east-1"
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    tile_dir: str = "tiles"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "StorageConfig":
        env = os.environ if env is None else env
        return cls(
            backend=env.get("STORAGE_BACKEND", "s3").lower(),
            bucket=_first_env(env, "S3_BUCKET", "AWS_BUCKET"),
            endpoint_url=_first_env(env, "S3_ENDPOINT", "AWS_ENDPOINT"),
            region=_first_env(env, "S3_REGION", "AWS_REGION", default="us-east-1"),
            access_key_id=_first_env(env, "S3_ACCESS_KEY_ID", "AWS_ACCESS_KEY_ID"),
            secret_access_key=_first_env(env, "S3_SECRET_ACCESS_KEY", "AWS_SECRET_ACCESS_KEY"),
            tile_dir=env.get("TILE_DIR", "tiles"),
        )


@dataclass
class ServerConfig:
    """HTTP listener settings."""
    host: str = "0.0.0.0"
    port: int = 5000

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "ServerConfig":
        env = os.environ if env is None else env
        return cls(
            host=env.get("HOST", "0.0.0.0"),
            port=int(env.get("PORT", "5000")),
        )


@dataclass
class Config:
    """Top-level service configuration."""
    providers_file: str = "config/maps.json"
    user_agent: str = "MapTileCache/1.0"
    upstream_timeout: float = 30.0
    cache_max_age: int = 86400
    log_level: str = "INFO"
    log_format: str = "json"
    server: ServerConfig = field(default_factory=ServerConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Config":
        """
        Build the configuration from environment variables.

        Args:
            env: Mapping to read from, defaults to ``os.environ``

        Returns:
            Populated configuration object
        """
        env = os.environ if env is None else env
        return cls(
            providers_file=env.get("PROVIDERS_FILE", "config/maps.json"),
            user_agent=env.get("USER_AGENT", "MapTileCache/1.0"),
            upstream_timeout=float(env.get("UPSTREAM_TIMEOUT", "30")),
            cache_max_age=int(env.get("CACHE_MAX_AGE", "86400")),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
            log_format=env.get("LOG_FORMAT", "json").lower(),
            server=ServerConfig.from_env(env),
            storage=StorageConfig.from_env(env),
        )
