"""Node domain model."""
from .node import (
    Node,
    FileNode,
    MetaNode,
    Permission,
    Permissions,
    ROOT_FOLDER_UUID,
    SYSTEM_FOLDER_UUID,
    ACTIONS_FOLDER_UUID,
    ASPECTS_FOLDER_UUID,
    USERS_FOLDER_UUID,
    GROUPS_FOLDER_UUID,
    API_KEYS_FOLDER_UUID,
    FOLDER_MIMETYPE,
    SMART_FOLDER_MIMETYPE,
    META_NODE_MIMETYPE,
    ASPECT_MIMETYPE,
    ACTION_MIMETYPE,
    API_KEY_MIMETYPE,
    USER_MIMETYPE,
    GROUP_MIMETYPE,
    SYSTEM_MIMETYPES,
)
from .folder_node import (
    FolderNode,
    ADMINS_GROUP_UUID,
    ROOT_USER_EMAIL,
    is_system_folder,
    root_folder,
    system_folders,
)
from .smart_folder_node import SmartFolderNode, Aggregation
from .aspect_node import AspectNode, AspectProperty
from .action_node import ActionNode
from .api_key_node import ApiKeyNode
from .node_factory import NodeFactory, merge_records
from .identity import UuidGenerator, FidGenerator, DefaultUuidGenerator, DefaultFidGenerator, is_safe_uuid
from .filters import NodeFilter

__all__ = [
    'Node',
    'FileNode',
    'MetaNode',
    'FolderNode',
    'SmartFolderNode',
    'Aggregation',
    'AspectNode',
    'AspectProperty',
    'ActionNode',
    'ApiKeyNode',
    'Permission',
    'Permissions',
    'NodeFactory',
    'NodeFilter',
    'merge_records',
    'UuidGenerator',
    'FidGenerator',
    'DefaultUuidGenerator',
    'DefaultFidGenerator',
    'is_safe_uuid',
    'is_system_folder',
    'root_folder',
    'system_folders',
    'ROOT_FOLDER_UUID',
    'SYSTEM_FOLDER_UUID',
    'ACTIONS_FOLDER_UUID',
    'ASPECTS_FOLDER_UUID',
    'USERS_FOLDER_UUID',
    'GROUPS_FOLDER_UUID',
    'API_KEYS_FOLDER_UUID',
    'ADMINS_GROUP_UUID',
    'ROOT_USER_EMAIL',
    'FOLDER_MIMETYPE',
    'SMART_FOLDER_MIMETYPE',
    'META_NODE_MIMETYPE',
    'ASPECT_MIMETYPE',
    'ACTION_MIMETYPE',
    'API_KEY_MIMETYPE',
    'USER_MIMETYPE',
    'GROUP_MIMETYPE',
    'SYSTEM_MIMETYPES',
]
