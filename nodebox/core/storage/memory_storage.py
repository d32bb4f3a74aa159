"""In-memory binary content storage."""
from typing import Dict, Optional

from ..exceptions import NodeNotFoundError
from .models import WriteFileOpts
from .protocols import StorageProvider, Subscribe


class InMemoryStorageProvider(StorageProvider):
    """
    In-memory storage provider.

    Data is lost when the object is destroyed. Useful for unit tests and
    sandboxes.
    """

    def __init__(self):
        self._files: Dict[str, bytes] = {}

    @property
    def files(self) -> Dict[str, bytes]:
        return self._files

    async def write(self, uuid: str, content: bytes, opts: Optional[WriteFileOpts] = None) -> None:
        self._files[uuid] = bytes(content)

    async def read(self, uuid: str) -> bytes:
        if uuid not in self._files:
            raise NodeNotFoundError(uuid)
        return self._files[uuid]

    async def delete(self, uuid: str) -> None:
        self._files.pop(uuid, None)

    def start_listeners(self, subscribe: Subscribe) -> None:
        """No listeners needed for memory storage."""
        pass
