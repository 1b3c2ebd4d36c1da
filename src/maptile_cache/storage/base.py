from abc import ABC, abstractmethod
from typing import Optional


class TileStore(ABC):
    """Async key/object store used as the tile cache backend."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """
        Check whether an object exists.

        Storage errors are logged and reported as ``False`` so an unavailable
        store degrades to a cache miss.
        """
        pass

    @abstractmethod
    async def read(self, key: str) -> Optional[bytes]:
        """
        Read an object.

        Returns:
            The object bytes, or ``None`` if the key does not exist

        Raises:
            StorageFailure: On any other storage error
        """
        pass

    @abstractmethod
    async def write(self, key: str, data: bytes, content_type: str) -> None:
        """
        Write an object, replacing any existing one under the same key.

        Raises:
            StorageFailure: If the object could not be stored
        """
        pass
