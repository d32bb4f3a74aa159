"""
Base node model.

A node is the universal entity of the repository. Variants are selected by
mimetype (see NodeFactory); each variant is a dataclass that adds its own
fields on top of Node.
"""
from __future__ import annotations
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Dict, Any, Optional, List
import re


ROOT_FOLDER_UUID = "--root--"
SYSTEM_FOLDER_UUID = "--system--"
ACTIONS_FOLDER_UUID = "--actions--"
ASPECTS_FOLDER_UUID = "--aspects--"
USERS_FOLDER_UUID = "--users--"
GROUPS_FOLDER_UUID = "--groups--"
API_KEYS_FOLDER_UUID = "--api-keys--"

FID_PREFIX = "--fid--"

FOLDER_MIMETYPE = "application/vnd.nodebox.folder"
SMART_FOLDER_MIMETYPE = "application/vnd.nodebox.smartfolder"
META_NODE_MIMETYPE = "application/vnd.nodebox.metanode"
ASPECT_MIMETYPE = "application/vnd.nodebox.aspect"
ACTION_MIMETYPE = "application/vnd.nodebox.action"
API_KEY_MIMETYPE = "application/vnd.nodebox.apikey"
USER_MIMETYPE = "application/vnd.nodebox.user"
GROUP_MIMETYPE = "application/vnd.nodebox.group"

# Hidden from non-admin queries
SYSTEM_MIMETYPES = (
    ASPECT_MIMETYPE,
    ACTION_MIMETYPE,
    API_KEY_MIMETYPE,
    USER_MIMETYPE,
    GROUP_MIMETYPE,
)


class Permission:
    """Permission names granted by a permission set."""

    READ = "Read"
    WRITE = "Write"
    EXPORT = "Export"

    ALL = (READ, WRITE, EXPORT)


def now() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


_CAMEL_RE = re.compile(r'_([a-z])')
_SNAKE_RE = re.compile(r'(?<!^)(?=[A-Z])')


def to_camel(name: str) -> str:
    """Convert a snake_case attribute name to its record key."""
    return _CAMEL_RE.sub(lambda m: m.group(1).upper(), name)


def to_snake(name: str) -> str:
    """Convert a camelCase record key to its attribute name."""
    return _SNAKE_RE.sub('_', name).lower()


@dataclass
class Permissions:
    """Three independent permission sets carried by every node."""
    anonymous: List[str] = field(default_factory=list)
    group: List[str] = field(default_factory=lambda: list(Permission.ALL))
    authenticated: List[str] = field(default_factory=lambda: [Permission.READ])

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            'anonymous': list(self.anonymous),
            'group': list(self.group),
            'authenticated': list(self.authenticated),
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'Permissions':
        if data is None:
            return cls()
        if isinstance(data, Permissions):
            return cls(**data.to_dict())
        return cls(
            anonymous=list(data.get('anonymous') or []),
            group=list(data.get('group') or []),
            authenticated=list(data.get('authenticated') or []),
        )

    def copy(self) -> 'Permissions':
        return Permissions.from_dict(self.to_dict())


@dataclass
class Node:
    """
    Universal repository entity.

    Attributes:
        uuid: Primary identity, never reassigned
        fid: Friendly identity derived from the title
        title: Display title
        mimetype: Variant discriminator
        parent: uuid of the parent folder (None only for root)
        owner: E-mail of the owner
        group: Group the group permission set applies to
        permissions: anonymous / group / authenticated permission sets
        aspects: uuids of attached aspects
        properties: Open key-value bag, keyed "<aspect>:<property>"
    """
    uuid: str = ""
    fid: str = ""
    title: str = ""
    description: str = ""
    mimetype: str = ""
    parent: Optional[str] = None
    owner: str = ""
    group: str = ""
    permissions: Permissions = field(default_factory=Permissions)
    aspects: List[str] = field(default_factory=list)
    properties: Dict[str, Any] = field(default_factory=dict)
    size: int = 0
    created_time: str = field(default_factory=now)
    modified_time: str = field(default_factory=now)

    # =========================================================================
    # Identity helpers
    # =========================================================================

    @staticmethod
    def is_fid(key: str) -> bool:
        return bool(key) and key.startswith(FID_PREFIX)

    @staticmethod
    def fid_to_uuid(fid: str) -> str:
        return f"{FID_PREFIX}{fid}"

    @staticmethod
    def uuid_to_fid(key: str) -> str:
        return key[len(FID_PREFIX):] if Node.is_fid(key) else key

    # =========================================================================
    # Variant predicates
    # =========================================================================

    def is_folder(self) -> bool:
        return self.mimetype == FOLDER_MIMETYPE

    def is_root_folder(self) -> bool:
        return self.uuid == ROOT_FOLDER_UUID

    def is_system_folder(self) -> bool:
        from .folder_node import is_system_folder
        return is_system_folder(self.uuid)

    def is_smart_folder(self) -> bool:
        return self.mimetype == SMART_FOLDER_MIMETYPE

    def is_meta_node(self) -> bool:
        return self.mimetype == META_NODE_MIMETYPE

    def is_aspect(self) -> bool:
        return self.mimetype == ASPECT_MIMETYPE

    def is_action(self) -> bool:
        return self.mimetype == ACTION_MIMETYPE

    def is_api_key(self) -> bool:
        return self.mimetype == API_KEY_MIMETYPE

    def is_file(self) -> bool:
        return self.mimetype not in (
            FOLDER_MIMETYPE, SMART_FOLDER_MIMETYPE, META_NODE_MIMETYPE,
            ASPECT_MIMETYPE, ACTION_MIMETYPE, API_KEY_MIMETYPE,
            USER_MIMETYPE, GROUP_MIMETYPE,
        )

    def has_aspects(self) -> bool:
        return len(self.aspects) > 0

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> Dict[str, Any]:
        """Converts node to its flat camelCase record."""
        return {to_camel(f.name): _serialize(getattr(self, f.name)) for f in fields(self)}


@dataclass
class FileNode(Node):
    """Node whose binary content is held by the storage provider."""


@dataclass
class MetaNode(Node):
    """Metadata-only node, no binary content."""
    mimetype: str = META_NODE_MIMETYPE


def _serialize(value: Any) -> Any:
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    if isinstance(value, dict):
        return {k: _serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_serialize(v) for v in value]
    return value
