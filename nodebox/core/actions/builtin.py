"""Built-in actions, registered in a static table."""
from typing import Dict, List, Optional

from ..exceptions import BadRequestError, NodeboxError
from ..nodes import ROOT_FOLDER_UUID
from .action import Action, ActionContext


class MoveUpAction(Action):
    """Moves nodes one level up, next to their current parent."""

    uuid = "move_up"
    title = "Move up"
    description = "Move nodes to the parent of their folder"
    builtin = True

    async def run(self, ctx: ActionContext, uuids: List[str], params: Dict[str, str]) -> Optional[Exception]:
        for uuid in uuids:
            try:
                node = await ctx.service.get(ctx.principal, uuid)
                if node.parent == ROOT_FOLDER_UUID:
                    return BadRequestError(f"{uuid} is already at the top level")
                parent = await ctx.service.get(ctx.principal, node.parent)
                await ctx.service.update(ctx.principal, uuid, {'parent': parent.parent})
            except NodeboxError as e:
                return e
        return None


class MoveToFolderAction(Action):
    uuid = "move_to_folder"
    title = "Move to folder"
    description = "Move nodes into the folder given by 'to'"
    builtin = True
    params = ("to",)

    async def run(self, ctx: ActionContext, uuids: List[str], params: Dict[str, str]) -> Optional[Exception]:
        target = params.get('to')
        if not target:
            return BadRequestError("Parameter 'to' is required")

        for uuid in uuids:
            try:
                await ctx.service.update(ctx.principal, uuid, {'parent': target})
            except NodeboxError as e:
                return e
        return None


class CopyToFolderAction(Action):
    uuid = "copy_to_folder"
    title = "Copy to folder"
    description = "Copy nodes into the folder given by 'to'"
    builtin = True
    params = ("to",)

    async def run(self, ctx: ActionContext, uuids: List[str], params: Dict[str, str]) -> Optional[Exception]:
        target = params.get('to')
        if not target:
            return BadRequestError("Parameter 'to' is required")

        for uuid in uuids:
            try:
                await ctx.service.copy(ctx.principal, uuid, target)
            except NodeboxError as e:
                return e
        return None


class DeleteAllAction(Action):
    uuid = "delete_all"
    title = "Delete all"
    description = "Delete every given node"
    builtin = True

    async def run(self, ctx: ActionContext, uuids: List[str], params: Dict[str, str]) -> Optional[Exception]:
        for uuid in uuids:
            try:
                await ctx.service.delete(ctx.principal, uuid)
            except NodeboxError as e:
                return e
        return None


BUILTIN_ACTIONS: Dict[str, Action] = {
    action.uuid: action
    for action in (MoveUpAction(), CopyToFolderAction(), MoveToFolderAction(), DeleteAllAction())
}


def find_builtin_action(uuid: str) -> Optional[Action]:
    return BUILTIN_ACTIONS.get(uuid)
