"""
Filesystem Tile Store

Keeps tiles as plain files under a root directory using the same key layout
as the S3 store. Useful for local development and single-node deployments.
The content type is not stored; it follows from the key's extension.
"""

import contextlib
import uuid
from pathlib import Path
from typing import Optional, Union

import aiofiles
import aiofiles.os
import structlog

from ..exceptions import StorageFailure
from .base import TileStore


class FileSystemTileStore(TileStore):
    """Tile store rooted at a local directory."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).resolve()
        self.logger = structlog.get_logger(store_type="FileSystemTileStore", root=str(self.root))

    def _path_for(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if path != self.root and self.root not in path.parents:
            raise StorageFailure(f"Key escapes the tile directory: {key}")
        return path

    async def exists(self, key: str) -> bool:
        try:
            return await aiofiles.os.path.isfile(self._path_for(key))
        except (OSError, StorageFailure) as e:
            self.logger.warning("Error checking cache", key=key, error=str(e))
            return False

    async def read(self, key: str) -> Optional[bytes]:
        path = self._path_for(key)
        try:
            async with aiofiles.open(path, 'rb') as f:
                return await f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageFailure(f"Error reading {key}: {e}") from e

    async def write(self, key: str, data: bytes, content_type: str) -> None:
        path = self._path_for(key)
        # Unique temp name so concurrent writers of the same key never share a file
        tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
        try:
            await aiofiles.os.makedirs(path.parent, exist_ok=True)
            async with aiofiles.open(tmp_path, 'wb') as f:
                await f.write(data)
            await aiofiles.os.replace(tmp_path, path)
        except OSError as e:
            with contextlib.suppress(OSError):
                await aiofiles.os.remove(tmp_path)
            raise StorageFailure(f"Error writing {key}: {e}") from e

        self.logger.debug("Tile written", key=key, content_type=content_type, size_bytes=len(data))
