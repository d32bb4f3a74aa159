"""
Action service.

Registers action scripts, runs actions and drives folder automation from
domain events.
"""
from pathlib import Path
import tempfile
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Set, Tuple, Union

import aiofiles
import aiofiles.os

from ..actions import (
    Action,
    ActionContext,
    AutomationDirective,
    ScriptAction,
    SCRIPT_MIMETYPE,
    load_script,
    find_builtin_action,
)
from ..auth import UserPrincipal
from ..events import DomainEventBus, NodeCreatedEvent, NodeUpdatedEvent
from ..exceptions import BadRequestError, NodeNotFoundError
from ..logging import get_logger
from ..nodes import ActionNode, FolderNode, Node, ACTIONS_FOLDER_UUID, ROOT_FOLDER_UUID, is_safe_uuid
from ..nodes.filters import is_valid_filter, matches
from ..nodes.node import now
from ..storage import NodeFile, WriteFileOpts
from .aspect_service import AspectService
from .node_service import NodeService

if TYPE_CHECKING:
    from ...service import NodeboxService

logger = get_logger(__name__)


class ActionService:
    """
    Action registry and automation engine.

    Example:
        >>> actions = ActionService(node_service, aspect_service, nodebox, root)
        >>> await actions.create_or_replace(NodeFile("tag.py", "text/x-python", source))
        >>> await actions.run(principal, "tag", [node.uuid], {"label": "x"})
    """

    def __init__(
        self,
        node_service: NodeService,
        aspect_service: AspectService,
        service: 'NodeboxService',
        system_principal: UserPrincipal,
        scripts_path: Optional[Union[str, Path]] = None
    ):
        """
        Initialize action service.

        Args:
            node_service: Node persistence
            aspect_service: Handed to running actions
            service: Façade handed to running actions
            system_principal: Identity folder automation runs as
            scripts_path: Directory action modules are imported from,
                a private temporary one when omitted
        """
        self._nodes = node_service
        self._aspects = aspect_service
        self._service = service
        self._system_principal = system_principal

        if scripts_path is None:
            scripts_path = tempfile.mkdtemp(prefix="nodebox-actions-")
        self._scripts_path = Path(scripts_path)

        # uuid -> (modified_time, loaded action)
        self._scripts: Dict[str, Tuple[str, ScriptAction]] = {}

        # (trigger, node uuid) pairs with automation in flight
        self._running: Set[Tuple[str, str]] = set()

    @property
    def scripts_path(self) -> Path:
        return self._scripts_path

    def subscribe(self, bus: DomainEventBus) -> None:
        """Attach folder automation and automatic actions to the bus."""
        bus.subscribe(NodeCreatedEvent.EVENT_ID, self.run_on_create_scripts)
        bus.subscribe(NodeUpdatedEvent.EVENT_ID, self.run_on_update_scripts)
        bus.subscribe(NodeCreatedEvent.EVENT_ID, self.run_automatic_actions_for_creates)
        bus.subscribe(NodeUpdatedEvent.EVENT_ID, self.run_automatic_actions_for_updates)

    # =========================================================================
    # Registry
    # =========================================================================

    async def create_or_replace(self, file: NodeFile) -> ActionNode:
        """
        Register an action script.

        The action uuid is the file name without extension. The script is
        written to the scripts directory and imported from there.

        Raises:
            BadRequestError: If the uuid is a built-in or the script is invalid
        """
        uuid = Path(file.name).stem
        if not is_safe_uuid(uuid):
            raise BadRequestError(f"Cannot derive an action id from {file.name!r}")
        if find_builtin_action(uuid) is not None:
            raise BadRequestError(f"Built-in action {uuid} cannot be replaced")

        try:
            existing = await self._nodes.repository.get_by_id(uuid)
        except NodeNotFoundError:
            existing = None

        if existing is not None and not existing.is_action():
            raise BadRequestError(f"{uuid} is already used by a non-action node")

        action = await self._install(uuid, file.content)
        node = action.to_node()
        node.owner = self._system_principal.email

        await self._nodes.storage.write(
            uuid,
            file.content,
            WriteFileOpts(title=node.title, parent=ACTIONS_FOLDER_UUID, mimetype=SCRIPT_MIMETYPE),
        )

        if existing is None:
            await self._nodes.repository.add(node)
            logger.debug(f"Registered action {uuid}")
        else:
            node.created_time = existing.created_time
            node.modified_time = now()
            await self._nodes.repository.update(node)
            logger.debug(f"Replaced action {uuid}")

        self._scripts[uuid] = (node.modified_time, action)
        return node

    async def _install(self, uuid: str, content: bytes) -> ScriptAction:
        """
        Write a script into the scripts directory and import it.

        A script that fails to import leaves the directory as it was.
        """
        path = self._scripts_path / f"{uuid}.py"

        previous: Optional[bytes] = None
        if await aiofiles.os.path.isfile(path):
            async with aiofiles.open(path, 'rb') as f:
                previous = await f.read()

        await aiofiles.os.makedirs(self._scripts_path, exist_ok=True)
        async with aiofiles.open(path, 'wb') as f:
            await f.write(content)

        try:
            action = load_script(uuid, path)
            for node_filter in action.filters:
                if not is_valid_filter(node_filter):
                    raise BadRequestError(f"Action {uuid} has a malformed filter: {node_filter!r}")
        except BadRequestError:
            if previous is None:
                await aiofiles.os.remove(path)
            else:
                async with aiofiles.open(path, 'wb') as f:
                    await f.write(previous)
            raise

        return action

    async def load_actions(self, directory: Union[str, Path]) -> List[ActionNode]:
        """
        Register every *.py script found in directory.

        A script that fails to load is logged and skipped.
        """
        nodes = []
        for path in sorted(Path(directory).glob('*.py')):
            async with aiofiles.open(path, 'rb') as f:
                content = await f.read()
            try:
                nodes.append(await self.create_or_replace(NodeFile(path.name, SCRIPT_MIMETYPE, content)))
            except BadRequestError as e:
                logger.warning(f"Skipping action {path.name}: {e.message}")

        logger.info(f"Loaded {len(nodes)} actions from {directory}")
        return nodes

    async def get(self, uuid: str) -> Action:
        """
        Resolve a runnable action.

        Raises:
            NodeNotFoundError: If no action has this uuid
        """
        builtin = find_builtin_action(uuid)
        if builtin is not None:
            return builtin

        node = await self.get_node(uuid)

        cached = self._scripts.get(uuid)
        if cached is not None and cached[0] == node.modified_time:
            return cached[1]

        # Stored source is authoritative, the scripts directory is refreshed from it
        action = await self._install(uuid, await self._nodes.storage.read(uuid))
        self._scripts[uuid] = (node.modified_time, action)
        return action

    async def get_node(self, uuid: str) -> ActionNode:
        node = await self._nodes.get(uuid)
        if not isinstance(node, ActionNode):
            raise NodeNotFoundError(uuid)
        return node

    async def list(self) -> List[ActionNode]:
        nodes = await self._nodes.list(ACTIONS_FOLDER_UUID)
        return [n for n in nodes if isinstance(n, ActionNode)]

    async def delete(self, uuid: str) -> None:
        if find_builtin_action(uuid) is not None:
            raise BadRequestError(f"Built-in action {uuid} cannot be deleted")

        await self.get_node(uuid)
        await self._nodes.delete(uuid)
        self._scripts.pop(uuid, None)

        path = self._scripts_path / f"{uuid}.py"
        if await aiofiles.os.path.isfile(path):
            await aiofiles.os.remove(path)

    async def export(self, uuid: str) -> NodeFile:
        await self.get_node(uuid)
        return await self._nodes.export(uuid)

    # =========================================================================
    # Execution
    # =========================================================================

    async def run(
        self,
        principal: UserPrincipal,
        uuid: str,
        uuids: Iterable[str],
        params: Optional[Dict[str, str]] = None
    ) -> None:
        """
        Run an action against nodes.

        Raises:
            NodeNotFoundError: If the action does not exist
            Exception: Whatever error the action returns
        """
        action = await self.get(uuid)
        ctx = ActionContext(
            service=self._service,
            node_service=self._nodes,
            aspect_service=self._aspects,
            principal=principal,
        )

        uuids = list(uuids)
        logger.debug(f"Running {uuid} as {principal.email} on {uuids}")

        error = await action.run(ctx, uuids, dict(params or {}))
        if error is not None:
            raise error

    async def run_on_create_scripts(self, event: NodeCreatedEvent) -> None:
        """Run the on_create directives of the new node's folder."""
        node: Node = event.payload
        if not node.parent or node.parent == ROOT_FOLDER_UUID:
            return

        parent = await self._get_parent_folder(node.parent)
        if parent is None:
            return

        await self._run_directives('on_create', parent.on_create, node.uuid)

    async def run_on_update_scripts(self, event: NodeUpdatedEvent) -> None:
        """Run the on_update directives of the updated node's current folder."""
        try:
            node = await self._nodes.get(event.payload.uuid)
        except NodeNotFoundError:
            logger.debug(f"Updated node {event.payload.uuid} no longer exists")
            return

        if not node.parent or node.parent == ROOT_FOLDER_UUID:
            return

        parent = await self._get_parent_folder(node.parent)
        if parent is None:
            return

        await self._run_directives('on_update', parent.on_update, node.uuid)

    async def run_automatic_actions_for_creates(self, event: NodeCreatedEvent) -> None:
        node: Node = event.payload
        await self._run_automatic('run_on_creates', node)

    async def run_automatic_actions_for_updates(self, event: NodeUpdatedEvent) -> None:
        try:
            node = await self._nodes.get(event.payload.uuid)
        except NodeNotFoundError:
            return
        await self._run_automatic('run_on_updates', node)

    async def _get_parent_folder(self, uuid: str) -> Optional[FolderNode]:
        try:
            parent = await self._nodes.get(uuid)
        except NodeNotFoundError:
            logger.warning(f"Parent folder {uuid} not found, skipping automation")
            return None

        if not parent.is_folder():
            logger.warning(f"Parent {uuid} is not a folder, skipping automation")
            return None
        return parent

    async def _run_directives(self, trigger: str, entries: List[Any], uuid: str) -> None:
        key = (trigger, uuid)
        if key in self._running:
            logger.debug(f"Skipping re-entrant {trigger} automation for {uuid}")
            return

        self._running.add(key)
        try:
            for entry in entries:
                try:
                    directive = AutomationDirective.parse(entry)
                except ValueError as e:
                    logger.warning(f"Skipping {trigger} directive: {e}")
                    continue

                await self._run_contained(directive.action_uuid, uuid, directive.params)
        finally:
            self._running.discard(key)

    async def _run_automatic(self, flag: str, node: Node) -> None:
        key = (flag, node.uuid)
        if key in self._running:
            return

        actions = [
            a for a in await self.list()
            if getattr(a, flag) and a.filters and matches(node.to_dict(), a.filters)
        ]
        if not actions:
            return

        self._running.add(key)
        try:
            for action in actions:
                await self._run_contained(action.uuid, node.uuid, {})
        finally:
            self._running.discard(key)

    async def _run_contained(self, action_uuid: str, uuid: str, params: Dict[str, str]) -> None:
        try:
            await self.run(self._system_principal, action_uuid, [uuid], params)
        except Exception:
            logger.exception(f"Automation {action_uuid} failed for {uuid}")
