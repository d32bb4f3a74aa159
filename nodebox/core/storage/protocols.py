"""
Repository and storage protocols.

Persistence backends are external collaborators; the core only depends on
these interfaces.
"""
from typing import Callable, Optional, Protocol, Sequence, runtime_checkable

from ..nodes import Node, NodeFilter
from ..events import EventHandler
from .models import NodeFilterResult, WriteFileOpts

Subscribe = Callable[[str, EventHandler], object]


@runtime_checkable
class NodeRepository(Protocol):
    """
    Protocol for node metadata persistence.

    Implementations translate the filter operator set
    (==, !=, <, <=, >, >=, in, not-in, contains, contains-all, match)
    into their native query form.
    """

    async def add(self, node: Node) -> None:
        """Persist a new node."""
        ...

    async def update(self, node: Node) -> None:
        """
        Replace a stored node.

        Raises:
            NodeNotFoundError: If the node is not stored
        """
        ...

    async def delete(self, uuid: str) -> None:
        """
        Remove a stored node.

        Raises:
            NodeNotFoundError: If the node is not stored
        """
        ...

    async def get_by_id(self, uuid: str) -> Node:
        """
        Raises:
            NodeNotFoundError: If no node has this uuid
        """
        ...

    async def get_by_fid(self, fid: str) -> Node:
        """
        Raises:
            NodeNotFoundError: If no node has this fid
        """
        ...

    async def filter(
        self,
        filters: Sequence[NodeFilter],
        page_size: int,
        page_token: int
    ) -> NodeFilterResult:
        """
        Return one page of nodes matching every filter.

        Args:
            filters: Conjunction of (field, operator, value) triples
            page_size: Nodes per page
            page_token: 1-based page number
        """
        ...


@runtime_checkable
class StorageProvider(Protocol):
    """
    Protocol for binary content storage, keyed by node uuid.

    Backend failures surface as UnknownError.
    """

    async def write(self, uuid: str, content: bytes, opts: Optional[WriteFileOpts] = None) -> None:
        ...

    async def read(self, uuid: str) -> bytes:
        """
        Raises:
            NodeNotFoundError: If nothing is stored under uuid
        """
        ...

    async def delete(self, uuid: str) -> None:
        ...

    def start_listeners(self, subscribe: Subscribe) -> None:
        """Attach backend specific handlers to the event bus at startup."""
        ...
