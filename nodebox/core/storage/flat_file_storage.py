"""
Flat-file storage provider.

Stores binary content on the local filesystem using aiofiles for
non-blocking I/O.
"""
from pathlib import Path
from typing import Optional, Union

import aiofiles
import aiofiles.os

from ..events import Event, NodeDeletedEvent
from ..exceptions import BadRequestError, NodeNotFoundError, UnknownError
from ..logging import get_logger
from .models import WriteFileOpts
from .protocols import StorageProvider, Subscribe

logger = get_logger(__name__)


class FlatFileStorageProvider(StorageProvider):
    """
    Local filesystem storage.

    Files are sharded as ``<base>/<uuid[0:2]>/<uuid[2:4]>/<uuid>`` to keep
    directories small.

    Example:
        >>> storage = FlatFileStorageProvider("/var/lib/nodebox")
        >>> await storage.write(node.uuid, b"content")
    """

    def __init__(self, base_path: Union[str, Path]):
        """
        Initialize flat-file storage.

        Args:
            base_path: Root directory for stored content
        """
        self._base = Path(base_path)

    @property
    def base_path(self) -> Path:
        return self._base

    def path_for(self, uuid: str) -> Path:
        """
        Sharded location of a uuid.

        Raises:
            BadRequestError: If the uuid would resolve outside the base path
        """
        path = self._base / uuid[0:2] / uuid[2:4] / uuid
        base = self._base.resolve()
        if base not in path.resolve().parents:
            raise BadRequestError(f"uuid {uuid!r} escapes the storage root")
        return path

    async def write(self, uuid: str, content: bytes, opts: Optional[WriteFileOpts] = None) -> None:
        path = self.path_for(uuid)
        try:
            await aiofiles.os.makedirs(path.parent, exist_ok=True)
            async with aiofiles.open(path, 'wb') as f:
                await f.write(content)
        except OSError as e:
            raise UnknownError(f"Failed to write {uuid}: {e}", cause=e) from e

        logger.debug(f"Stored {len(content)} bytes for {uuid}")

    async def read(self, uuid: str) -> bytes:
        path = self.path_for(uuid)
        try:
            async with aiofiles.open(path, 'rb') as f:
                return await f.read()
        except FileNotFoundError as e:
            raise NodeNotFoundError(uuid) from e
        except OSError as e:
            raise UnknownError(f"Failed to read {uuid}: {e}", cause=e) from e

    async def delete(self, uuid: str) -> None:
        path = self.path_for(uuid)
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            logger.debug(f"Nothing stored for {uuid}")
        except OSError as e:
            raise UnknownError(f"Failed to delete {uuid}: {e}", cause=e) from e

    def start_listeners(self, subscribe: Subscribe) -> None:
        subscribe(NodeDeletedEvent.EVENT_ID, self._prune_shards)

    async def _prune_shards(self, event: Event) -> None:
        """Remove shard directories left empty by a deletion."""
        shard = self.path_for(event.payload.uuid).parent
        for directory in (shard, shard.parent):
            if directory == self._base or not await aiofiles.os.path.isdir(directory):
                return
            if await aiofiles.os.listdir(directory):
                return
            await aiofiles.os.rmdir(directory)
            logger.debug(f"Pruned empty shard {directory}")
