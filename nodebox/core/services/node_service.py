"""
Node service.

Principal-agnostic node operations over the repository and storage ports.
Permission checks and event publishing belong to NodeboxService.
"""
from dataclasses import dataclass, field
import json
import sys
from typing import Any, Dict, List, Optional, Sequence

from ..actions import SCRIPT_MIMETYPE, find_builtin_action, BUILTIN_ACTIONS
from ..exceptions import (
    BadRequestError,
    FolderNotFoundError,
    NodeNotFoundError,
    SmartFolderNodeNotFoundError,
    ValidationError,
)
from ..logging import get_logger
from ..nodes import (
    Node,
    FileNode,
    NodeFactory,
    NodeFilter,
    FolderNode,
    SmartFolderNode,
    AspectNode,
    UuidGenerator,
    FidGenerator,
    DefaultUuidGenerator,
    DefaultFidGenerator,
    ROOT_FOLDER_UUID,
    SYSTEM_FOLDER_UUID,
    ACTIONS_FOLDER_UUID,
    ASPECTS_FOLDER_UUID,
    META_NODE_MIMETYPE,
    SMART_FOLDER_MIMETYPE,
    is_safe_uuid,
    is_system_folder,
    system_folders,
)
from ..nodes.aspect_node import check_properties
from ..nodes.filters import is_valid_filter
from ..nodes.folder_node import synthesized_folder
from ..nodes.node import now
from ..nodes.node_factory import NodeData
from ..storage import NodeFile, NodeFilterResult, NodeRepository, StorageProvider, WriteFileOpts
from .builtin_aspects import builtin_aspects, find_builtin_aspect
from .node_deleter import NodeDeleter
from .smart_folder_evaluation import SmartFolderNodeEvaluation, compute_aggregations

logger = get_logger(__name__)

# Keys an update may never change
IMMUTABLE_FIELDS = ('uuid', 'fid', 'mimetype', 'created_time')

# Fields reset on a copy
_COPY_RESET_FIELDS = ('uuid', 'fid', 'created_time', 'modified_time')


def _is_reserved(mimetype: str) -> bool:
    """Reserved mimetypes select a non-file variant."""
    return NodeFactory.class_for(mimetype) is not FileNode


@dataclass
class NodeServiceContext:
    """Collaborators of a NodeService."""
    repository: NodeRepository
    storage: StorageProvider
    uuid_generator: UuidGenerator = field(default_factory=DefaultUuidGenerator)
    fid_generator: FidGenerator = field(default_factory=DefaultFidGenerator)


class NodeService:
    """
    Node lifecycle over the repository and storage ports.

    Responsibilities:
    - Identity assignment (uuid and unique fid)
    - Structural and aspect validation
    - Resolution of synthesized folders and built-in nodes
    - Content handling for files and smart folder definitions
    """

    def __init__(self, context: NodeServiceContext):
        self._context = context

    @property
    def repository(self) -> NodeRepository:
        return self._context.repository

    @property
    def storage(self) -> StorageProvider:
        return self._context.storage

    @property
    def fid_generator(self) -> FidGenerator:
        return self._context.fid_generator

    # =========================================================================
    # Create
    # =========================================================================

    async def create(self, metadata: NodeData) -> Node:
        """
        Create a content-less node.

        Args:
            metadata: Node record; mimetype defaults to a metadata node

        Returns:
            Persisted node

        Raises:
            ValidationError: If the node is invalid
            FolderNotFoundError: If parent is not a folder
            BadRequestError: If a given uuid is malformed or taken
        """
        record = NodeFactory.normalize(metadata)
        await self._verify_title_and_parent(record)

        node = NodeFactory.create(
            record,
            uuid=await self._assign_uuid(record),
            fid=await self._assign_fid(record),
            mimetype=record.get('mimetype') or META_NODE_MIMETYPE,
            size=0,
        )

        await self._validate(node)
        await self.repository.add(node)

        logger.debug(f"Created {node.mimetype} {node.uuid} under {node.parent}")
        return node

    async def create_file(self, file: NodeFile, metadata: NodeData) -> Node:
        """
        Create a node from uploaded content.

        A JSON smart folder definition becomes a SmartFolderNode and is not
        stored as content. Anything else is written to storage.

        Args:
            file: Uploaded payload
            metadata: Node record; title defaults to the file name
        """
        record = NodeFactory.normalize(metadata)
        if not record.get('title'):
            record['title'] = file.name
        await self._verify_title_and_parent(record)

        if _is_reserved(file.mimetype):
            raise BadRequestError(f"Reserved mimetype {file.mimetype} cannot be uploaded")

        uuid = await self._assign_uuid(record)
        fid = await self._assign_fid(record)

        node: Optional[Node] = None
        if file.mimetype == 'application/json':
            node = self._parse_smart_folder(file, record, uuid, fid)

        if node is None:
            node = NodeFactory.create(
                NodeFactory.extract_metadata_fields(record),
                uuid=uuid,
                fid=fid,
                mimetype=file.mimetype,
                size=file.size,
            )

        await self._validate(node)

        if not node.is_smart_folder():
            await self.storage.write(
                node.uuid,
                file.content,
                WriteFileOpts(title=node.title, parent=node.parent, mimetype=node.mimetype),
            )

        await self.repository.add(node)

        logger.debug(f"Created {node.mimetype} {node.uuid} ({node.size} bytes)")
        return node

    def _parse_smart_folder(
        self,
        file: NodeFile,
        record: Dict[str, Any],
        uuid: str,
        fid: str
    ) -> Optional[SmartFolderNode]:
        try:
            definition = json.loads(file.text())
        except (UnicodeDecodeError, json.JSONDecodeError):
            return None

        if not isinstance(definition, dict) or definition.get('mimetype') != SMART_FOLDER_MIMETYPE:
            return None

        composed = NodeFactory.extract_metadata_fields(record)
        composed['title'] = definition.get('title') or record['title']
        for name in ('description', 'filters', 'aggregations'):
            if definition.get(name) is not None:
                composed[name] = definition[name]

        return NodeFactory.create(composed, uuid=uuid, fid=fid, mimetype=SMART_FOLDER_MIMETYPE)

    async def _verify_title_and_parent(self, record: Dict[str, Any]) -> None:
        title = record.get('title')
        if not isinstance(title, str) or not title.strip():
            raise ValidationError({'title': ['title is required']})

        record['parent'] = record.get('parent') or ROOT_FOLDER_UUID
        await self.get_folder(record['parent'])

    async def _assign_uuid(self, record: Dict[str, Any]) -> str:
        uuid = record.get('uuid')
        if not uuid:
            return self._context.uuid_generator.generate()

        if not is_safe_uuid(uuid):
            raise BadRequestError(f"Invalid uuid: {uuid!r}")
        if await self._uuid_taken(uuid):
            raise BadRequestError(f"uuid already in use: {uuid}")
        return uuid

    async def _assign_fid(self, record: Dict[str, Any]) -> str:
        """Use the given fid, or derive one from the title, suffixing -2, -3... on clash."""
        fid = record.get('fid')
        if fid:
            if await self._fid_taken(fid):
                raise BadRequestError(f"fid already in use: {fid}")
            return fid

        base = self._context.fid_generator.generate(record.get('title', ''))
        candidate = base
        suffix = 2
        while await self._fid_taken(candidate):
            candidate = f"{base}-{suffix}"
            suffix += 1
        return candidate

    async def _uuid_taken(self, uuid: str) -> bool:
        if self._is_synthesized(uuid):
            return True
        try:
            await self.repository.get_by_id(uuid)
        except NodeNotFoundError:
            return False
        return True

    async def _fid_taken(self, fid: str) -> bool:
        try:
            await self.repository.get_by_fid(fid)
        except NodeNotFoundError:
            return False
        return True

    # =========================================================================
    # Read
    # =========================================================================

    async def get(self, key: str) -> Node:
        """
        Resolve a node by uuid or fid.

        Order: explicit fid key, synthesized folders, built-ins, then the
        repository by uuid falling back to fid.

        Raises:
            NodeNotFoundError: If nothing matches
        """
        if Node.is_fid(key):
            return await self.repository.get_by_fid(Node.uuid_to_fid(key))

        if key == ROOT_FOLDER_UUID or is_system_folder(key):
            return synthesized_folder(key)

        builtin = self._get_builtin(key)
        if builtin is not None:
            return builtin

        try:
            return await self.repository.get_by_id(key)
        except NodeNotFoundError:
            pass

        try:
            return await self.repository.get_by_fid(key)
        except NodeNotFoundError:
            raise NodeNotFoundError(key) from None

    async def get_folder(self, uuid: str) -> FolderNode:
        """
        Raises:
            FolderNotFoundError: If uuid is missing or not a folder
        """
        try:
            node = await self.get(uuid)
        except NodeNotFoundError:
            raise FolderNotFoundError(uuid) from None

        if not node.is_folder():
            raise FolderNotFoundError(uuid)
        return node

    async def list(self, parent: str = ROOT_FOLDER_UUID) -> List[Node]:
        """
        List the direct children of a folder.

        The actions and aspects folders also list their built-ins.
        """
        folder = await self.get_folder(parent)

        if folder.uuid == SYSTEM_FOLDER_UUID:
            return list(system_folders())

        result = await self.repository.filter([['parent', '==', folder.uuid]], sys.maxsize, 1)
        nodes = list(result.nodes)

        if folder.uuid == ACTIONS_FOLDER_UUID:
            nodes = [a.to_node() for a in BUILTIN_ACTIONS.values()] + nodes
        elif folder.uuid == ASPECTS_FOLDER_UUID:
            nodes = builtin_aspects() + nodes

        return nodes

    async def query(
        self,
        filters: Sequence[NodeFilter],
        page_size: int,
        page_token: int = 1
    ) -> NodeFilterResult:
        """
        Raises:
            BadRequestError: If a filter is malformed
        """
        for node_filter in filters:
            if not is_valid_filter(node_filter):
                raise BadRequestError(f"Malformed filter: {node_filter!r}")
        return await self.repository.filter(filters, page_size, page_token)

    # =========================================================================
    # Update
    # =========================================================================

    async def update(self, uuid: str, data: NodeData, merge: bool = False) -> Node:
        """
        Update a node's metadata.

        Args:
            uuid: Node to update
            data: Partial record
            merge: Deep-merge instead of replace-assigning the given keys

        Returns:
            Updated node

        Raises:
            BadRequestError: For built-in and synthesized nodes
            ValidationError: If the result is invalid
        """
        node = await self.get(uuid)
        if self._is_synthesized(node.uuid):
            raise BadRequestError(f"{uuid} is read-only")

        record = NodeFactory.normalize(data)
        for name in IMMUTABLE_FIELDS:
            if name in record:
                logger.debug(f"Ignoring immutable field '{name}' on {uuid}")
                record.pop(name)

        if record.get('parent') and record['parent'] != node.parent:
            await self._verify_move(node, record['parent'])

        updated = NodeFactory.merge(node, record) if merge else NodeFactory.assign(node, record)
        updated.modified_time = now()

        await self._validate(updated)
        await self.repository.update(updated)

        logger.debug(f"Updated {uuid}: {sorted(record)}")
        return updated

    async def update_file(self, uuid: str, file: NodeFile) -> Node:
        """Rewrite a file's content, then its size, mimetype and modification time."""
        node = await self.get(uuid)
        if not node.is_file():
            raise BadRequestError(f"{uuid} is not a file")
        if _is_reserved(file.mimetype):
            raise BadRequestError(f"Reserved mimetype {file.mimetype} cannot be uploaded")

        await self.storage.write(
            uuid,
            file.content,
            WriteFileOpts(title=node.title, parent=node.parent, mimetype=file.mimetype),
        )

        node.size = file.size
        node.mimetype = file.mimetype
        node.modified_time = now()
        await self.repository.update(node)
        return node

    async def _verify_move(self, node: Node, parent: str) -> None:
        target = await self.get_folder(parent)
        if not node.is_folder():
            return

        # A folder cannot move below itself
        current: Optional[Node] = target
        while current is not None and current.uuid != ROOT_FOLDER_UUID:
            if current.uuid == node.uuid:
                raise BadRequestError(f"Cannot move {node.uuid} into its own subtree")
            current = await self.get(current.parent) if current.parent else None

    # =========================================================================
    # Copy / delete
    # =========================================================================

    async def copy(self, uuid: str, parent: str) -> Node:
        """
        Clone a node, and its content, under parent.

        Raises:
            BadRequestError: If uuid is a folder or built-in
        """
        node = await self.get(uuid)
        if node.is_folder() or self._is_synthesized(node.uuid):
            raise BadRequestError(f"{uuid} cannot be copied")
        await self.get_folder(parent)

        record = NodeFactory.normalize(node)
        for name in _COPY_RESET_FIELDS:
            record.pop(name, None)
        record['parent'] = parent

        copied = NodeFactory.create(
            record,
            uuid=self._context.uuid_generator.generate(),
            fid=await self._assign_fid({'title': node.title}),
        )

        if node.is_file():
            content = await self.storage.read(node.uuid)
            await self.storage.write(
                copied.uuid,
                content,
                WriteFileOpts(title=copied.title, parent=parent, mimetype=copied.mimetype),
            )

        await self.repository.add(copied)
        logger.debug(f"Copied {uuid} to {copied.uuid} under {parent}")
        return copied

    async def duplicate(self, uuid: str) -> Node:
        node = await self.get(uuid)
        return await self.copy(uuid, node.parent or ROOT_FOLDER_UUID)

    async def delete(self, uuid: str) -> List[Node]:
        """
        Delete a node and everything it owns.

        Returns:
            Every removed node, descendants first and the node itself last
        """
        node = await self.get(uuid)
        if self._is_synthesized(node.uuid):
            raise BadRequestError(f"{uuid} cannot be deleted")

        return await NodeDeleter.for_node(node, self).delete()

    # =========================================================================
    # Smart folders / export
    # =========================================================================

    async def evaluate(
        self,
        uuid: str,
        extra_filters: Optional[Sequence[NodeFilter]] = None
    ) -> SmartFolderNodeEvaluation:
        """
        Evaluate a smart folder.

        Args:
            uuid: Smart folder uuid
            extra_filters: Conjoined with the folder's own filters

        Raises:
            SmartFolderNodeNotFoundError: If uuid is not a smart folder
            AggregationFormulaError: If an aggregation formula is unknown
        """
        try:
            node = await self.get(uuid)
        except NodeNotFoundError:
            raise SmartFolderNodeNotFoundError(uuid) from None

        if not isinstance(node, SmartFolderNode):
            raise SmartFolderNodeNotFoundError(uuid)

        filters = list(node.filters) + list(extra_filters or [])
        result = await self.repository.filter(filters, sys.maxsize, 1)

        evaluation = SmartFolderNodeEvaluation(records=result.nodes)
        if node.has_aggregations():
            evaluation.aggregations = compute_aggregations(result.nodes, node.aggregations)
        return evaluation

    async def export(self, uuid: str) -> NodeFile:
        """
        Export a node as a file.

        Files and registered actions export their stored content; smart
        folders, aspects and metadata nodes their JSON record.
        """
        action = find_builtin_action(uuid)
        if action is not None:
            return NodeFile(f"{uuid}.py", SCRIPT_MIMETYPE, action.source().encode('utf-8'))

        node = await self.get(uuid)

        if node.is_action():
            return NodeFile(f"{uuid}.py", SCRIPT_MIMETYPE, await self.storage.read(uuid))

        if node.is_file():
            return NodeFile(node.title, node.mimetype, await self.storage.read(uuid))

        if node.is_folder() or node.is_api_key():
            raise BadRequestError(f"{uuid} cannot be exported")

        name = f"{node.uuid if node.is_aspect() else node.title}.json"
        content = json.dumps(node.to_dict(), indent=2, ensure_ascii=False)
        return NodeFile(name, 'application/json', content.encode('utf-8'))

    # =========================================================================
    # Internals
    # =========================================================================

    def _get_builtin(self, uuid: str) -> Optional[Node]:
        action = find_builtin_action(uuid)
        if action is not None:
            return action.to_node()
        return find_builtin_aspect(uuid)

    def _is_synthesized(self, uuid: str) -> bool:
        return (
            uuid == ROOT_FOLDER_UUID
            or is_system_folder(uuid)
            or self._get_builtin(uuid) is not None
        )

    async def _validate(self, node: Node) -> None:
        """
        Raises:
            ValidationError: With structural and aspect violations
        """
        NodeFactory.validate(node)

        if not node.has_aspects():
            return

        aspects: List[AspectNode] = []
        errors: Dict[str, List[str]] = {}
        for aspect_uuid in node.aspects:
            try:
                aspect = await self.get(aspect_uuid)
            except NodeNotFoundError:
                aspect = None
            if not isinstance(aspect, AspectNode):
                errors.setdefault('aspects', []).append(f'unknown aspect {aspect_uuid}')
                continue
            aspects.append(aspect)

        errors.update(check_properties(node, aspects))
        if errors:
            raise ValidationError(errors)
