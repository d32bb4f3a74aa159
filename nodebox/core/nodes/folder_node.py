"""Folder node and the synthesized root and system folders."""
from dataclasses import dataclass, field
from typing import Any, List, Dict

from .node import (
    Node,
    Permissions,
    Permission,
    FOLDER_MIMETYPE,
    ROOT_FOLDER_UUID,
    SYSTEM_FOLDER_UUID,
    ACTIONS_FOLDER_UUID,
    ASPECTS_FOLDER_UUID,
    USERS_FOLDER_UUID,
    GROUPS_FOLDER_UUID,
    API_KEYS_FOLDER_UUID,
)

ADMINS_GROUP_UUID = "--admins--"
ROOT_USER_EMAIL = "root@nodebox.io"


@dataclass
class FolderNode(Node):
    """
    Folder node.

    on_create / on_update hold automation directives, either compact
    strings ("action_uuid key=value ...") or mappings
    ({"action": uuid, "params": {...}}).
    """
    mimetype: str = FOLDER_MIMETYPE
    on_create: List[Any] = field(default_factory=list)
    on_update: List[Any] = field(default_factory=list)


def _system_folder(uuid: str, title: str, parent: str) -> FolderNode:
    return FolderNode(
        uuid=uuid,
        fid=uuid,
        title=title,
        parent=parent,
        owner=ROOT_USER_EMAIL,
        group=ADMINS_GROUP_UUID,
        permissions=Permissions(anonymous=[], group=[Permission.READ], authenticated=[]),
    )


def root_folder() -> FolderNode:
    """Build the root folder record, never persisted."""
    return FolderNode(
        uuid=ROOT_FOLDER_UUID,
        fid=ROOT_FOLDER_UUID,
        title="",
        parent=None,
        owner=ROOT_USER_EMAIL,
        group=ADMINS_GROUP_UUID,
        permissions=Permissions(
            anonymous=[Permission.READ],
            group=[Permission.READ],
            authenticated=[Permission.READ],
        ),
    )


def system_root_folder() -> FolderNode:
    return _system_folder(SYSTEM_FOLDER_UUID, "__System__", ROOT_FOLDER_UUID)


_SYSTEM_FOLDER_TITLES: Dict[str, str] = {
    ACTIONS_FOLDER_UUID: "Actions",
    ASPECTS_FOLDER_UUID: "Aspects",
    USERS_FOLDER_UUID: "Users",
    GROUPS_FOLDER_UUID: "Groups",
    API_KEYS_FOLDER_UUID: "API Keys",
}


def system_folders() -> List[FolderNode]:
    """Build the reserved folders living under the system root."""
    return [
        _system_folder(uuid, title, SYSTEM_FOLDER_UUID)
        for uuid, title in _SYSTEM_FOLDER_TITLES.items()
    ]


def is_system_folder(uuid: str) -> bool:
    return uuid == SYSTEM_FOLDER_UUID or uuid in _SYSTEM_FOLDER_TITLES


def synthesized_folder(uuid: str) -> FolderNode:
    """Return the synthesized root or system folder for uuid."""
    if uuid == ROOT_FOLDER_UUID:
        return root_folder()
    if uuid == SYSTEM_FOLDER_UUID:
        return system_root_folder()
    return _system_folder(uuid, _SYSTEM_FOLDER_TITLES[uuid], SYSTEM_FOLDER_UUID)
