"""API key service."""
from typing import List

from Crypto.Random import get_random_bytes

from ..exceptions import NodeNotFoundError
from ..logging import get_logger
from ..nodes import ApiKeyNode, API_KEY_MIMETYPE, API_KEYS_FOLDER_UUID
from ..nodes.api_key_node import mask_secret
from .node_service import NodeService

logger = get_logger(__name__)

SECRET_BYTES = 16


def generate_secret() -> str:
    """Random hex secret from the system CSPRNG."""
    return get_random_bytes(SECRET_BYTES).hex()


class ApiKeyService:
    """
    Issues and resolves API keys stored under the API keys folder.

    Keys returned by get() and list() have their secret masked; only
    create() and get_by_secret() expose it.
    """

    def __init__(self, node_service: NodeService):
        self._nodes = node_service

    async def create(self, group: str, owner: str) -> ApiKeyNode:
        secret = generate_secret()
        node = await self._nodes.create({
            'title': mask_secret(secret),
            'mimetype': API_KEY_MIMETYPE,
            'parent': API_KEYS_FOLDER_UUID,
            'group': group,
            'owner': owner,
            'secret': secret,
        })
        logger.debug(f"Issued API key {node.uuid} for group {group}")
        return node

    async def get(self, uuid: str) -> ApiKeyNode:
        return (await self._get(uuid)).censor()

    async def get_by_secret(self, secret: str) -> ApiKeyNode:
        """
        Raises:
            NodeNotFoundError: If no key has this secret
        """
        result = await self._nodes.repository.filter(
            [['mimetype', '==', API_KEY_MIMETYPE], ['secret', '==', secret]], 1, 1
        )
        if not result.nodes:
            raise NodeNotFoundError(mask_secret(secret))
        return result.nodes[0]

    async def list(self) -> List[ApiKeyNode]:
        nodes = await self._nodes.list(API_KEYS_FOLDER_UUID)
        return [n.censor() for n in nodes if isinstance(n, ApiKeyNode)]

    async def delete(self, uuid: str) -> None:
        await self._get(uuid)
        await self._nodes.delete(uuid)

    async def _get(self, uuid: str) -> ApiKeyNode:
        node = await self._nodes.get(uuid)
        if not isinstance(node, ApiKeyNode):
            raise NodeNotFoundError(uuid)
        return node
