"""
In-memory node repository.

Provides non-persistent metadata storage for tests and sandboxes.
"""
import math
from typing import Dict, Any, Sequence

from ..exceptions import NodeNotFoundError
from ..nodes import Node, NodeFactory, NodeFilter
from ..nodes.filters import matches
from .models import NodeFilterResult
from .protocols import NodeRepository


class InMemoryNodeRepository(NodeRepository):
    """
    In-memory node repository.

    Nodes are stored as records, so callers never share mutable state with
    the repository.

    Example:
        >>> repo = InMemoryNodeRepository()
        >>> await repo.add(node)
        >>> stored = await repo.get_by_id(node.uuid)
    """

    def __init__(self):
        """Initialize memory repository."""
        self._records: Dict[str, Dict[str, Any]] = {}

    @property
    def records(self) -> Dict[str, Dict[str, Any]]:
        return self._records

    async def add(self, node: Node) -> None:
        self._records[node.uuid] = node.to_dict()

    async def update(self, node: Node) -> None:
        if node.uuid not in self._records:
            raise NodeNotFoundError(node.uuid)
        self._records[node.uuid] = node.to_dict()

    async def delete(self, uuid: str) -> None:
        if uuid not in self._records:
            raise NodeNotFoundError(uuid)
        del self._records[uuid]

    async def get_by_id(self, uuid: str) -> Node:
        record = self._records.get(uuid)
        if record is None:
            raise NodeNotFoundError(uuid)
        return NodeFactory.from_dict(record)

    async def get_by_fid(self, fid: str) -> Node:
        for record in self._records.values():
            if record.get('fid') == fid:
                return NodeFactory.from_dict(record)
        raise NodeNotFoundError(Node.fid_to_uuid(fid))

    async def filter(
        self,
        filters: Sequence[NodeFilter],
        page_size: int,
        page_token: int
    ) -> NodeFilterResult:
        found = [r for r in self._records.values() if matches(r, filters)]

        page_size = max(1, page_size)
        page_token = max(1, page_token)
        page_count = max(1, math.ceil(len(found) / page_size))
        start = (page_token - 1) * page_size

        nodes = [NodeFactory.from_dict(r) for r in found[start:start + page_size]]
        return NodeFilterResult(
            nodes=nodes,
            page_count=page_count,
            page_size=page_size,
            page_token=page_token,
        )
