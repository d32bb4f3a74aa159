"""
Action model.

An action is runnable automation. Built-in actions are Action subclasses;
user actions are Python script files imported as a ScriptAction.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
import importlib.machinery
import importlib.util
import inspect
from pathlib import Path
import types
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Union

from ..auth import UserPrincipal
from ..exceptions import BadRequestError
from ..logging import get_logger
from ..nodes import ActionNode, NodeFilter, ADMINS_GROUP_UUID, ROOT_USER_EMAIL
from ..nodes.node import Permissions, Permission

if TYPE_CHECKING:
    from ...service import NodeboxService
    from ..services.node_service import NodeService
    from ..services.aspect_service import AspectService

logger = get_logger(__name__)

SCRIPT_MIMETYPE = "text/x-python"


@dataclass
class ActionContext:
    """Collaborators handed to a running action."""
    service: 'NodeboxService'
    node_service: 'NodeService'
    aspect_service: 'AspectService'
    principal: UserPrincipal


class Action(ABC):
    """
    Base class for runnable actions.

    Subclasses declare their metadata as class attributes and implement
    run(). run() returns an exception instead of raising it when the
    action fails.
    """

    uuid: str = ""
    title: str = ""
    description: str = ""
    builtin: bool = False
    run_on_creates: bool = False
    run_on_updates: bool = False
    run_manually: bool = True
    params: Sequence[str] = ()
    filters: Sequence[NodeFilter] = ()

    @abstractmethod
    async def run(
        self,
        ctx: ActionContext,
        uuids: List[str],
        params: Dict[str, str]
    ) -> Optional[Exception]:
        ...

    def source(self) -> str:
        return inspect.getsource(type(self))

    def to_node(self) -> ActionNode:
        """Describe this action as an ActionNode under the actions folder."""
        return ActionNode(
            uuid=self.uuid,
            fid=self.uuid,
            title=self.title or self.uuid,
            description=self.description,
            owner=ROOT_USER_EMAIL,
            group=ADMINS_GROUP_UUID,
            permissions=Permissions(anonymous=[], group=[Permission.READ], authenticated=[Permission.READ]),
            builtin=self.builtin,
            run_on_creates=self.run_on_creates,
            run_on_updates=self.run_on_updates,
            run_manually=self.run_manually,
            params=list(self.params),
            filters=[list(f) for f in self.filters],
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.uuid}>"


class ScriptAction(Action):
    """Action backed by an imported user script module."""

    def __init__(self, uuid: str, module: types.ModuleType, source: str):
        self.uuid = uuid
        self._module = module
        self._source = source

        self.title = getattr(module, 'title', uuid)
        self.description = getattr(module, 'description', "")
        self.run_on_creates = bool(getattr(module, 'run_on_creates', False))
        self.run_on_updates = bool(getattr(module, 'run_on_updates', False))
        self.run_manually = bool(getattr(module, 'run_manually', True))
        self.params = tuple(getattr(module, 'params', ()))
        self.filters = tuple(list(f) for f in getattr(module, 'filters', ()))

    @property
    def module(self) -> types.ModuleType:
        return self._module

    async def run(
        self,
        ctx: ActionContext,
        uuids: List[str],
        params: Dict[str, str]
    ) -> Optional[Exception]:
        result: Any = self._module.run(ctx, uuids, params)
        if inspect.isawaitable(result):
            result = await result
        return result if isinstance(result, Exception) else None

    def source(self) -> str:
        return self._source


class _ScriptLoader(importlib.machinery.SourceFileLoader):
    """Compiles straight from source so a replaced script never runs stale bytecode."""

    def get_code(self, fullname: str) -> types.CodeType:
        path = self.get_filename(fullname)
        return self.source_to_code(self.get_data(path), path)


def load_script(uuid: str, path: Union[str, Path]) -> ScriptAction:
    """
    Import an action script file as a ScriptAction.

    Args:
        uuid: Identity the action is registered under
        path: Python module exposing run(ctx, uuids, params)

    Raises:
        BadRequestError: If the module fails to import or lacks run
    """
    path = Path(path)
    name = f"nodebox_actions.{uuid}"
    spec = importlib.util.spec_from_file_location(name, path, loader=_ScriptLoader(name, str(path)))
    module = importlib.util.module_from_spec(spec)

    try:
        source = path.read_text(encoding='utf-8')
        spec.loader.exec_module(module)
    except Exception as e:
        logger.debug(f"Action {uuid} failed to load: {e}")
        raise BadRequestError(f"Invalid action script {uuid}: {e}") from e

    if not callable(getattr(module, 'run', None)):
        raise BadRequestError(f"Action script {uuid} does not define run()")

    try:
        return ScriptAction(uuid, module, source)
    except TypeError as e:
        raise BadRequestError(f"Action script {uuid} has malformed params or filters: {e}") from e
