"""Aspect service: property schemas attachable to nodes."""
import json
from typing import List

from ..exceptions import BadRequestError, NodeNotFoundError, ValidationError
from ..logging import get_logger
from ..nodes import AspectNode, Node, NodeFactory, ASPECT_MIMETYPE, ASPECTS_FOLDER_UUID
from ..nodes.aspect_node import check_properties
from ..nodes.node import now
from ..nodes.node_factory import NodeData
from ..storage import NodeFile
from .builtin_aspects import find_builtin_aspect
from .node_service import NodeService

logger = get_logger(__name__)


class AspectService:
    """
    Manages aspects stored under the aspects folder.

    Built-in aspects (user, group) are synthesized and read-only.
    """

    def __init__(self, node_service: NodeService):
        self._nodes = node_service

    async def create_or_replace(self, metadata: NodeData) -> AspectNode:
        """
        Persist an aspect, replacing any stored aspect with the same uuid.

        Raises:
            BadRequestError: If uuid names a built-in aspect
            ValidationError: If the aspect is malformed
        """
        record = NodeFactory.normalize(metadata)
        uuid = record.get('uuid') or self._nodes.fid_generator.generate(record.get('title', ''))
        if find_builtin_aspect(uuid) is not None:
            raise BadRequestError(f"Built-in aspect {uuid} cannot be replaced")

        record.update(uuid=uuid, mimetype=ASPECT_MIMETYPE, parent=ASPECTS_FOLDER_UUID)
        record.pop('builtin', None)

        try:
            existing = await self._nodes.repository.get_by_id(uuid)
        except NodeNotFoundError:
            record.setdefault('fid', uuid)
            node = await self._nodes.create(record)
            logger.debug(f"Created aspect {uuid}")
            return node

        record.pop('fid', None)
        record.pop('created_time', None)
        node = NodeFactory.compose(existing, record)
        node.modified_time = now()
        NodeFactory.validate(node)
        await self._nodes.repository.update(node)

        logger.debug(f"Replaced aspect {uuid}")
        return node

    async def get(self, uuid: str) -> AspectNode:
        """
        Raises:
            NodeNotFoundError: If uuid is not an aspect
        """
        node = await self._nodes.get(uuid)
        if not isinstance(node, AspectNode):
            raise NodeNotFoundError(uuid)
        return node

    async def list(self) -> List[AspectNode]:
        nodes = await self._nodes.list(ASPECTS_FOLDER_UUID)
        return [n for n in nodes if isinstance(n, AspectNode)]

    async def delete(self, uuid: str) -> None:
        if find_builtin_aspect(uuid) is not None:
            raise BadRequestError(f"Built-in aspect {uuid} cannot be deleted")
        await self.get(uuid)
        await self._nodes.delete(uuid)

    async def export(self, uuid: str) -> NodeFile:
        aspect = await self.get(uuid)
        content = json.dumps(aspect.to_dict(), indent=2, ensure_ascii=False)
        return NodeFile(f"{aspect.uuid}.json", 'application/json', content.encode('utf-8'))

    async def validate_properties(self, node: Node) -> None:
        """
        Check node properties against every attached aspect.

        Raises:
            ValidationError: Listing all violations together
        """
        aspects = [await self.get(uuid) for uuid in node.aspects]
        errors = check_properties(node, aspects)
        if errors:
            raise ValidationError(errors)
