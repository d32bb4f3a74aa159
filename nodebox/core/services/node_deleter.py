"""Variant specific node deletion using Strategy Pattern."""
from abc import ABC, abstractmethod
import sys
from typing import TYPE_CHECKING, List

from ..logging import get_logger
from ..nodes import Node

if TYPE_CHECKING:
    from .node_service import NodeService

logger = get_logger(__name__)


class NodeDeleter(ABC):
    """Removes one node, and whatever it owns, from the repository."""

    def __init__(self, node: Node, service: 'NodeService'):
        self._node = node
        self._service = service

    @abstractmethod
    async def delete(self) -> List[Node]:
        """Delete the node; returns every removed node, the node itself last."""
        ...

    @staticmethod
    def for_node(node: Node, service: 'NodeService') -> 'NodeDeleter':
        if node.is_folder():
            return FolderNodeDeleter(node, service)
        if node.is_file() or node.is_action():
            return FileNodeDeleter(node, service)
        return MetaNodeDeleter(node, service)


class FileNodeDeleter(NodeDeleter):
    """Deletes stored content, then metadata."""

    async def delete(self) -> List[Node]:
        await self._service.storage.delete(self._node.uuid)
        await self._service.repository.delete(self._node.uuid)
        logger.debug(f"Deleted file {self._node.uuid}")
        return [self._node]


class MetaNodeDeleter(NodeDeleter):
    """Deletes metadata of variants without content."""

    async def delete(self) -> List[Node]:
        await self._service.repository.delete(self._node.uuid)
        logger.debug(f"Deleted {self._node.mimetype} {self._node.uuid}")
        return [self._node]


class FolderNodeDeleter(NodeDeleter):
    """Deletes every descendant depth-first, then the folder itself."""

    async def delete(self) -> List[Node]:
        result = await self._service.repository.filter(
            [['parent', '==', self._node.uuid]], sys.maxsize, 1
        )
        deleted: List[Node] = []
        for child in result.nodes:
            deleted.extend(await NodeDeleter.for_node(child, self._service).delete())

        await self._service.repository.delete(self._node.uuid)
        logger.debug(f"Deleted folder {self._node.uuid} and {len(deleted)} descendants")

        deleted.append(self._node)
        return deleted
