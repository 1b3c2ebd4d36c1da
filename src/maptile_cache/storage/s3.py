"""
S3 Tile Store

Object store gateway backed by any S3-compatible service. boto3 is blocking,
so each call runs in a worker thread to keep the event loop free while the
remote request is in flight.
"""

import asyncio
from typing import Any, Optional

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from ..config import StorageConfig
from ..exceptions import ConfigurationError, StorageFailure
from .base import TileStore

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


def _is_missing(error: ClientError) -> bool:
    code = str(error.response.get("Error", {}).get("Code", ""))
    return code in _MISSING_CODES


class S3TileStore(TileStore):
    """Tile store that keeps each tile as one object in an S3 bucket."""

    def __init__(self, bucket: str, client: Any):
        """
        Initialize the store.

        Args:
            bucket: Bucket holding the tiles
            client: boto3 S3 client
        """
        self.bucket = bucket
        self.client = client
        self.logger = structlog.get_logger(store_type="S3TileStore", bucket=bucket)

    @classmethod
    def from_config(cls, config: StorageConfig) -> "S3TileStore":
        """Create the store and its boto3 client from storage settings."""
        if not config.bucket:
            raise ConfigurationError("S3 bucket is not configured (S3_BUCKET or AWS_BUCKET)")

        try:
            client = boto3.client(
                's3',
                region_name=config.region,
                endpoint_url=config.endpoint_url,
                aws_access_key_id=config.access_key_id,
                aws_secret_access_key=config.secret_access_key
            )
        except BotoCoreError as e:
            raise ConfigurationError(f"Failed to initialize S3 client: {e}") from e

        return cls(config.bucket, client)

    async def exists(self, key: str) -> bool:
        try:
            await asyncio.to_thread(self.client.head_object, Bucket=self.bucket, Key=key)
            return True
        except ClientError as e:
            if _is_missing(e):
                return False
            self.logger.warning("Error checking cache", key=key, error=str(e))
            return False
        except BotoCoreError as e:
            self.logger.warning("Error checking cache", key=key, error=str(e))
            return False

    async def read(self, key: str) -> Optional[bytes]:
        try:
            return await asyncio.to_thread(self._get_object_body, key)
        except ClientError as e:
            if _is_missing(e):
                return None
            raise StorageFailure(f"Error reading {key} from S3: {e}") from e
        except BotoCoreError as e:
            raise StorageFailure(f"Error reading {key} from S3: {e}") from e

    def _get_object_body(self, key: str) -> bytes:
        response = self.client.get_object(Bucket=self.bucket, Key=key)
        return response["Body"].read()

    async def write(self, key: str, data: bytes, content_type: str) -> None:
        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageFailure(f"Error writing {key} to S3: {e}") from e
