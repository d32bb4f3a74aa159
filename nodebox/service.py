"""
Nodebox service.

Caller facing façade over the node, action, aspect and API key services.
Every method takes the acting principal first, applies folder permissions
and structural rules, delegates, then publishes domain events.
"""
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .core.auth import PermissionEngine, UserPrincipal
from .core.config import NodeboxConfig
from .core.events import (
    DomainEventBus,
    NodeContentUpdatedEvent,
    NodeCreatedEvent,
    NodeDeletedEvent,
    NodeUpdatedEvent,
)
from .core.exceptions import (
    BadRequestError,
    FolderNotFoundError,
    ForbiddenError,
    NodeNotFoundError,
    SmartFolderNodeNotFoundError,
)
from .core.logging import get_logger, setup_logging
from .core.nodes import (
    ActionNode,
    ApiKeyNode,
    AspectNode,
    FolderNode,
    Node,
    NodeFactory,
    NodeFilter,
    Permission,
    FOLDER_MIMETYPE,
    ROOT_FOLDER_UUID,
    SYSTEM_MIMETYPES,
    is_system_folder,
)
from .core.nodes.filters import is_valid_filter
from .core.nodes.node_factory import NodeData
from .core.services import (
    ActionService,
    ApiKeyService,
    AspectService,
    NodeService,
    NodeServiceContext,
    SmartFolderNodeEvaluation,
)
from .core.services.node_service import IMMUTABLE_FIELDS
from .core.storage import (
    NodeFile,
    NodeFilterResult,
    NodeRepository,
    FlatFileStorageProvider,
    InMemoryNodeRepository,
    InMemoryStorageProvider,
)

logger = get_logger(__name__)


class NodeboxService:
    """
    Main entry point of a nodebox repository.

    Example:
        >>> context = NodeServiceContext(InMemoryNodeRepository(), InMemoryStorageProvider())
        >>> nodebox = NodeboxService(context)
        >>> await nodebox.start()
        >>> folder = await nodebox.create(principal, {"title": "Docs", "mimetype": FOLDER_MIMETYPE})
    """

    def __init__(
        self,
        context: NodeServiceContext,
        bus: Optional[DomainEventBus] = None,
        config: Optional[NodeboxConfig] = None
    ):
        """
        Wire the services and subscribe automation handlers.

        Args:
            context: Repository, storage and identity generators
            bus: Event bus, a private one is created when omitted
            config: Repository configuration
        """
        self._config = config or NodeboxConfig.default()
        self._bus = bus or DomainEventBus()
        self._permissions = PermissionEngine()

        self._nodes = NodeService(context)
        self._aspects = AspectService(self._nodes)
        self._api_keys = ApiKeyService(self._nodes)
        self._actions = ActionService(
            self._nodes,
            self._aspects,
            self,
            UserPrincipal.root(self._config.system_user_email),
            scripts_path=self._config.actions_path,
        )

        self._actions.subscribe(self._bus)
        context.storage.start_listeners(self._bus.subscribe)

    @classmethod
    def from_config(
        cls,
        config: NodeboxConfig,
        repository: Optional[NodeRepository] = None,
        bus: Optional[DomainEventBus] = None
    ) -> 'NodeboxService':
        """
        Build a service with adapters chosen from configuration.

        Content goes to a FlatFileStorageProvider when storage.base_path is
        set, otherwise to memory. Metadata defaults to an in-memory repository.
        """
        setup_logging(config.log_level)

        if config.storage.base_path:
            storage = FlatFileStorageProvider(config.storage.base_path)
        else:
            storage = InMemoryStorageProvider()

        context = NodeServiceContext(repository or InMemoryNodeRepository(), storage)
        logger.debug(f"Storage: {type(storage).__name__}")
        return cls(context, bus=bus, config=config)

    @property
    def bus(self) -> DomainEventBus:
        return self._bus

    @property
    def config(self) -> NodeboxConfig:
        return self._config

    @property
    def node_service(self) -> NodeService:
        return self._nodes

    @property
    def action_service(self) -> ActionService:
        return self._actions

    @property
    def aspect_service(self) -> AspectService:
        return self._aspects

    @property
    def api_key_service(self) -> ApiKeyService:
        return self._api_keys

    async def start(self) -> None:
        """Load action scripts from the configured directory."""
        if self._config.actions_path:
            await self._actions.load_actions(self._config.actions_path)

    # =========================================================================
    # Nodes
    # =========================================================================

    async def create(self, principal: UserPrincipal, metadata: NodeData) -> Node:
        """
        Create a content-less node (folder, smart folder or metadata node).

        Raises:
            BadRequestError: Under system folders, or a non-folder under root
            ForbiddenError: Without Write on the parent folder
        """
        record = self._prepare_create(metadata)
        parent = await self._get_folder_with_permission(principal, record['parent'], Permission.WRITE)
        self._inherit(principal, parent, record)

        node = await self._nodes.create(record)
        await self._bus.notify(NodeCreatedEvent.of(principal.email, node))
        return node

    async def create_file(self, principal: UserPrincipal, file: NodeFile, metadata: NodeData) -> Node:
        """Create a file node, or a smart folder from a JSON definition."""
        record = self._prepare_create(metadata, file.mimetype)
        parent = await self._get_folder_with_permission(principal, record['parent'], Permission.WRITE)
        self._inherit(principal, parent, record)

        node = await self._nodes.create_file(file, record)
        await self._bus.notify(NodeCreatedEvent.of(principal.email, node))
        return node

    async def list(self, principal: UserPrincipal, parent: str = ROOT_FOLDER_UUID) -> List[Node]:
        """List a folder's children, hiding folders the principal cannot read."""
        if is_system_folder(parent) and not principal.is_admin:
            raise ForbiddenError(f"{parent} is a system folder")

        folder = await self._get_folder_with_permission(principal, parent, Permission.READ)
        nodes = await self._nodes.list(folder.uuid)
        return [n for n in nodes if not n.is_folder() or self._permissions.can_read(principal, n)]

    async def get(self, principal: UserPrincipal, uuid: str) -> Node:
        """
        Raises:
            NodeNotFoundError: If nothing matches uuid or fid
            ForbiddenError: Without Read on the node's folder
        """
        node = await self._nodes.get(uuid)
        self._assert_not_system(principal, node)

        if node.is_folder():
            self._permissions.assert_permission(principal, node, Permission.READ)
        else:
            await self._get_folder_with_permission(principal, node.parent, Permission.READ)
        return node

    async def query(
        self,
        principal: UserPrincipal,
        filters: Sequence[NodeFilter],
        page_size: Optional[int] = None,
        page_token: int = 1
    ) -> NodeFilterResult:
        """
        Filter the repository.

        System mimetypes are excluded unless an administrator explicitly
        asks for them with == or in on mimetype.
        """
        for node_filter in filters:
            if not is_valid_filter(node_filter):
                raise BadRequestError(f"Malformed filter: {node_filter!r}")

        filters = self._remove_system_nodes_unless_requested(principal, filters)
        return await self._nodes.query(filters, self._config.query.clamp(page_size), page_token)

    async def update(
        self,
        principal: UserPrincipal,
        uuid: str,
        metadata: NodeData,
        merge: bool = False
    ) -> Node:
        """
        Update a node's metadata and publish the applied diff.

        Args:
            merge: Deep-merge instead of replace-assigning the given keys
        """
        node = await self.get(principal, uuid)
        self._assert_regular(node)
        await self._assert_writable(principal, node)

        record = NodeFactory.normalize(metadata)
        for name in IMMUTABLE_FIELDS:
            record.pop(name, None)

        diff = self._get_diff(node, record, merge)
        if not diff:
            return node

        target = diff.get('parent')
        if target and target != node.parent:
            if is_system_folder(target):
                raise BadRequestError(f"Cannot move {uuid} into a system folder")
            if target == ROOT_FOLDER_UUID and not node.is_folder():
                raise BadRequestError("Only folders can live under root")
            await self._get_folder_with_permission(principal, target, Permission.WRITE)

        updated = await self._nodes.update(node.uuid, diff, merge)
        await self._bus.notify(NodeUpdatedEvent.of(principal.email, node.uuid, diff))
        return updated

    async def update_file(self, principal: UserPrincipal, uuid: str, file: NodeFile) -> Node:
        node = await self.get(principal, uuid)
        self._assert_regular(node)
        await self._assert_writable(principal, node)

        updated = await self._nodes.update_file(node.uuid, file)
        await self._bus.notify(NodeContentUpdatedEvent.of(principal.email, node.uuid))
        return updated

    async def copy(self, principal: UserPrincipal, uuid: str, parent: str) -> Node:
        node = await self.get(principal, uuid)
        self._assert_regular(node)
        if is_system_folder(parent) or parent == ROOT_FOLDER_UUID:
            raise BadRequestError(f"Cannot copy into {parent}")
        await self._get_folder_with_permission(principal, parent, Permission.WRITE)

        copied = await self._nodes.copy(node.uuid, parent)
        await self._bus.notify(NodeCreatedEvent.of(principal.email, copied))
        return copied

    async def duplicate(self, principal: UserPrincipal, uuid: str) -> Node:
        node = await self.get(principal, uuid)
        self._assert_regular(node)
        await self._get_folder_with_permission(principal, node.parent, Permission.WRITE)

        duplicated = await self._nodes.duplicate(node.uuid)
        await self._bus.notify(NodeCreatedEvent.of(principal.email, duplicated))
        return duplicated

    async def export(self, principal: UserPrincipal, uuid: str) -> NodeFile:
        """
        Raises:
            ForbiddenError: Without Export on the node's folder
        """
        node = await self.get(principal, uuid)
        self._assert_regular(node)
        await self._get_folder_with_permission(principal, node.parent, Permission.EXPORT)
        return await self._nodes.export(node.uuid)

    async def evaluate(self, principal: UserPrincipal, uuid: str) -> SmartFolderNodeEvaluation:
        """Evaluate a smart folder. Non-admins never see system nodes in the result."""
        try:
            node = await self.get(principal, uuid)
        except NodeNotFoundError:
            raise SmartFolderNodeNotFoundError(uuid) from None

        extra: List[NodeFilter] = []
        if not principal.is_admin:
            extra.append(['mimetype', 'not-in', list(SYSTEM_MIMETYPES)])
        return await self._nodes.evaluate(node.uuid, extra)

    async def delete(self, principal: UserPrincipal, uuid: str) -> None:
        """Delete a node; folders are removed with all their descendants."""
        node = await self.get(principal, uuid)
        self._assert_regular(node)
        await self._assert_writable(principal, node)

        for deleted in await self._nodes.delete(node.uuid):
            await self._bus.notify(NodeDeletedEvent.of(principal.email, deleted))

    # =========================================================================
    # Actions
    # =========================================================================

    async def create_or_replace_action(self, principal: UserPrincipal, file: NodeFile) -> ActionNode:
        self._assert_admin(principal)
        return await self._actions.create_or_replace(file)

    async def get_action(self, principal: UserPrincipal, uuid: str) -> ActionNode:
        return await self._actions.get_node(uuid)

    async def list_actions(self, principal: UserPrincipal) -> List[ActionNode]:
        return await self._actions.list()

    async def delete_action(self, principal: UserPrincipal, uuid: str) -> None:
        self._assert_admin(principal)
        await self._actions.delete(uuid)

    async def export_action(self, principal: UserPrincipal, uuid: str) -> NodeFile:
        self._assert_admin(principal)
        return await self._actions.export(uuid)

    async def run_action(
        self,
        principal: UserPrincipal,
        uuid: str,
        uuids: Iterable[str],
        params: Optional[Dict[str, str]] = None
    ) -> None:
        """
        Run an action manually.

        Raises:
            BadRequestError: If the action cannot be run manually
        """
        action = await self._actions.get_node(uuid)
        if not action.run_manually and not principal.is_admin:
            raise BadRequestError(f"Action {uuid} cannot be run manually")
        await self._actions.run(principal, uuid, uuids, params)

    # =========================================================================
    # Aspects
    # =========================================================================

    async def create_or_replace_aspect(self, principal: UserPrincipal, metadata: NodeData) -> AspectNode:
        self._assert_admin(principal)
        return await self._aspects.create_or_replace(metadata)

    async def get_aspect(self, principal: UserPrincipal, uuid: str) -> AspectNode:
        return await self._aspects.get(uuid)

    async def list_aspects(self, principal: UserPrincipal) -> List[AspectNode]:
        return await self._aspects.list()

    async def export_aspect(self, principal: UserPrincipal, uuid: str) -> NodeFile:
        self._assert_admin(principal)
        return await self._aspects.export(uuid)

    async def delete_aspect(self, principal: UserPrincipal, uuid: str) -> None:
        self._assert_admin(principal)
        await self._aspects.delete(uuid)

    # =========================================================================
    # API keys
    # =========================================================================

    async def create_api_key(self, principal: UserPrincipal, group: str) -> ApiKeyNode:
        self._assert_admin(principal)
        return await self._api_keys.create(group, principal.email)

    async def get_api_key(self, principal: UserPrincipal, uuid: str) -> ApiKeyNode:
        self._assert_admin(principal)
        return await self._api_keys.get(uuid)

    async def list_api_keys(self, principal: UserPrincipal) -> List[ApiKeyNode]:
        self._assert_admin(principal)
        return await self._api_keys.list()

    async def delete_api_key(self, principal: UserPrincipal, uuid: str) -> None:
        self._assert_admin(principal)
        await self._api_keys.delete(uuid)

    # =========================================================================
    # Rules
    # =========================================================================

    def _prepare_create(self, metadata: NodeData, mimetype: Optional[str] = None) -> Dict[str, Any]:
        record = NodeFactory.normalize(metadata)
        record['parent'] = record.get('parent') or ROOT_FOLDER_UUID
        mimetype = mimetype or record.get('mimetype')

        if is_system_folder(record['parent']):
            raise BadRequestError("Nodes cannot be created under system folders")
        if mimetype in SYSTEM_MIMETYPES:
            raise BadRequestError(f"{mimetype} nodes have their own services")
        if record['parent'] == ROOT_FOLDER_UUID and mimetype != FOLDER_MIMETYPE:
            raise BadRequestError("Only folders can be created under root")
        return record

    def _inherit(self, principal: UserPrincipal, parent: FolderNode, record: Dict[str, Any]) -> None:
        """New nodes are owned by the principal and take the folder's permissions."""
        record['owner'] = principal.email
        if not record.get('permissions'):
            record['permissions'] = parent.permissions.to_dict()
        if record.get('mimetype') == FOLDER_MIMETYPE:
            record['group'] = principal.group
        elif not record.get('group'):
            record['group'] = parent.group

    async def _get_folder_with_permission(
        self,
        principal: UserPrincipal,
        uuid: Optional[str],
        permission: str
    ) -> FolderNode:
        """
        Raises:
            FolderNotFoundError: If uuid is not a folder
            ForbiddenError: If the principal lacks permission on it
        """
        try:
            folder = await self._nodes.get(uuid or ROOT_FOLDER_UUID)
        except NodeNotFoundError:
            raise FolderNotFoundError(uuid) from None

        if not folder.is_folder():
            raise FolderNotFoundError(uuid)

        self._permissions.assert_permission(principal, folder, permission)
        return folder

    async def _assert_writable(self, principal: UserPrincipal, node: Node) -> None:
        if node.is_folder():
            self._permissions.assert_permission(principal, node, Permission.WRITE)
        await self._get_folder_with_permission(principal, node.parent, Permission.WRITE)

    def _assert_not_system(self, principal: UserPrincipal, node: Node) -> None:
        if principal.is_admin:
            return
        if node.is_system_folder() or (node.parent and is_system_folder(node.parent)):
            raise ForbiddenError(f"{node.uuid} is a system node")

    def _assert_regular(self, node: Node) -> None:
        """Root, system folders and their contents have dedicated APIs."""
        if node.is_root_folder() or node.is_system_folder():
            raise BadRequestError(f"{node.uuid} is a reserved folder")
        if node.parent and is_system_folder(node.parent):
            raise BadRequestError(f"{node.uuid} is managed by its own service")

    def _assert_admin(self, principal: UserPrincipal) -> None:
        if not principal.is_admin:
            raise ForbiddenError("Administrator privileges required")

    def _get_diff(self, node: Node, record: Dict[str, Any], merge: bool) -> Dict[str, Any]:
        """
        Keys of record whose value differs from the node.

        In replace mode properties are merged shallowly onto the existing
        ones, so a partial properties update keeps untouched keys.
        """
        current = NodeFactory.normalize(node)
        diff = {k: v for k, v in record.items() if current.get(k) != v}

        if not merge and isinstance(diff.get('properties'), dict):
            diff['properties'] = {**node.properties, **diff['properties']}
        return diff

    def _remove_system_nodes_unless_requested(
        self,
        principal: UserPrincipal,
        filters: Sequence[NodeFilter]
    ) -> List[NodeFilter]:
        hidden = list(SYSTEM_MIMETYPES)

        if principal.is_admin:
            for field_name, operator, value in filters:
                if field_name != 'mimetype':
                    continue
                if operator == '==':
                    hidden = [m for m in hidden if m != value]
                elif operator == 'in' and isinstance(value, (list, tuple)):
                    hidden = [m for m in hidden if m not in value]

        result = [list(f) for f in filters]
        if hidden:
            result.append(['mimetype', 'not-in', hidden])
        return result
