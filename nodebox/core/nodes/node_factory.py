"""Node factory using Factory Pattern."""
from copy import deepcopy
from dataclasses import fields
from typing import Any, Dict, List, Optional, Type, Union

from ..exceptions import ValidationError
from ..logging import get_logger
from .node import (
    Node,
    FileNode,
    MetaNode,
    Permissions,
    now,
    to_snake,
    ROOT_FOLDER_UUID,
    FOLDER_MIMETYPE,
    SMART_FOLDER_MIMETYPE,
    META_NODE_MIMETYPE,
    ASPECT_MIMETYPE,
    ACTION_MIMETYPE,
    API_KEY_MIMETYPE,
    USER_MIMETYPE,
    GROUP_MIMETYPE,
)
from .folder_node import FolderNode
from .smart_folder_node import SmartFolderNode, Aggregation
from .aspect_node import AspectNode, AspectProperty, PROPERTY_TYPES
from .action_node import ActionNode
from .api_key_node import ApiKeyNode
from .filters import is_valid_filter

logger = get_logger(__name__)

NodeData = Union[Node, Dict[str, Any]]

# Fields a caller may set on create
METADATA_FIELDS = (
    'title', 'description', 'parent', 'owner', 'group', 'permissions',
    'aspects', 'properties', 'on_create', 'on_update',
)


def is_empty(value: Any) -> bool:
    """Empty values remove a key during merge. 0 and False are values."""
    if value is None:
        return True
    if isinstance(value, bool):
        return False
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def merge_records(dst: Dict[str, Any], src: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merge src into a copy of dst.

    Dicts merge key by key, any other value replaces. An empty or absent
    incoming value (None, "", [], {}) removes the key; literal 0 and False
    are kept.

    Args:
        dst: Existing record
        src: Partial update

    Returns:
        New merged record, inputs are left untouched
    """
    result = deepcopy(dst)

    for key, value in src.items():
        if is_empty(value):
            result.pop(key, None)
            continue

        if isinstance(value, dict):
            current = result.get(key)
            result[key] = merge_records(current if isinstance(current, dict) else {}, value)
            continue

        result[key] = deepcopy(value)

    return result


class NodeFactory:
    """Factory for creating node variants from raw records."""

    VARIANTS: Dict[str, Type[Node]] = {
        FOLDER_MIMETYPE: FolderNode,
        SMART_FOLDER_MIMETYPE: SmartFolderNode,
        META_NODE_MIMETYPE: MetaNode,
        ASPECT_MIMETYPE: AspectNode,
        ACTION_MIMETYPE: ActionNode,
        API_KEY_MIMETYPE: ApiKeyNode,
        USER_MIMETYPE: MetaNode,
        GROUP_MIMETYPE: MetaNode,
    }

    @classmethod
    def class_for(cls, mimetype: Optional[str]) -> Type[Node]:
        """Variant class for a mimetype; unknown mimetypes are files."""
        return cls.VARIANTS.get(mimetype or "", FileNode)

    @staticmethod
    def normalize(data: NodeData) -> Dict[str, Any]:
        """Return a snake_case copy of a node or record."""
        record = data.to_dict() if isinstance(data, Node) else data
        return {to_snake(key): value for key, value in record.items()}

    @classmethod
    def from_dict(cls, data: NodeData) -> Node:
        """
        Create a concrete node variant from a record.

        The variant is selected by mimetype. Keys outside the variant's
        schema are dropped.

        Args:
            data: Node record (camelCase or snake_case keys) or Node

        Returns:
            Node variant instance
        """
        record = cls.normalize(data)
        node_cls = cls.class_for(record.get('mimetype'))
        allowed = {f.name for f in fields(node_cls)}

        kwargs: Dict[str, Any] = {}
        for name, value in record.items():
            if name not in allowed:
                logger.debug(f"Dropping unknown field '{name}' for {node_cls.__name__}")
                continue
            if value is None and name != 'parent':
                continue
            kwargs[name] = cls._coerce(name, value)

        if not kwargs.get('mimetype'):
            kwargs.pop('mimetype', None)

        return node_cls(**kwargs)

    @staticmethod
    def _coerce(name: str, value: Any) -> Any:
        if name == 'permissions':
            return Permissions.from_dict(value)
        if name == 'aggregations':
            return [Aggregation.from_dict(a) for a in value]
        if name == 'properties_spec':
            return [AspectProperty.from_dict(p) for p in value]
        if name == 'filters':
            return [list(f) if isinstance(f, (list, tuple)) else f for f in value]
        return deepcopy(value)

    @classmethod
    def create(cls, metadata: NodeData, **overrides: Any) -> Node:
        """
        Build a fresh node from caller metadata.

        Args:
            metadata: Caller supplied record
            **overrides: Values that win over metadata (uuid, fid, mimetype...)

        Returns:
            Node variant with timestamps set to now
        """
        record = cls.normalize(metadata)
        record.update({k: v for k, v in overrides.items() if v is not None})
        timestamp = now()
        record['created_time'] = timestamp
        record['modified_time'] = timestamp
        return cls.from_dict(record)

    @classmethod
    def compose(cls, *records: Optional[NodeData]) -> Node:
        """Overlay records left to right, ignoring unspecified values."""
        composed: Dict[str, Any] = {}
        for data in records:
            if not data:
                continue
            composed.update({k: v for k, v in cls.normalize(data).items() if v is not None})
        return cls.from_dict(composed)

    @classmethod
    def merge(cls, dst: Node, src: Dict[str, Any]) -> Node:
        """Deep-merge a partial update into a node, see merge_records."""
        return cls.from_dict(merge_records(cls.normalize(dst), cls.normalize(src)))

    @classmethod
    def assign(cls, dst: Node, src: Dict[str, Any]) -> Node:
        """Replace-assign the given keys onto a node."""
        record = cls.normalize(dst)
        record.update(deepcopy(cls.normalize(src)))
        return cls.from_dict(record)

    @classmethod
    def extract_metadata_fields(cls, metadata: NodeData) -> Dict[str, Any]:
        record = cls.normalize(metadata)
        return {k: v for k, v in record.items() if k in METADATA_FIELDS}

    @staticmethod
    def validate(node: Node) -> None:
        """
        Validate the structural rules of a node.

        Raises:
            ValidationError: Listing every violated field
        """
        errors: Dict[str, List[str]] = {}

        def fail(field_name: str, message: str) -> None:
            errors.setdefault(field_name, []).append(message)

        if not node.uuid:
            fail('uuid', 'uuid is required')

        if not isinstance(node.title, str) or not node.title.strip():
            fail('title', 'title is required')

        if node.uuid != ROOT_FOLDER_UUID:
            if not isinstance(node.parent, str) or not node.parent:
                fail('parent', 'parent must be a folder uuid')

        if isinstance(node, SmartFolderNode):
            if not isinstance(node.filters, list) or not node.filters:
                fail('filters', 'smart folders require a filter list')
            else:
                for idx, node_filter in enumerate(node.filters):
                    if not is_valid_filter(node_filter):
                        fail('filters', f'filter #{idx} is malformed: {node_filter!r}')
            for idx, aggregation in enumerate(node.aggregations or []):
                if not aggregation.title or not aggregation.formula:
                    fail('aggregations', f'aggregation #{idx} needs a formula')
                if not aggregation.field_name and aggregation.formula != 'count':
                    fail('aggregations', f'aggregation #{idx} needs a fieldName')

        if isinstance(node, AspectNode):
            for idx, prop in enumerate(node.properties_spec):
                if not prop.name:
                    fail('propertiesSpec', f'property #{idx} needs a name')
                if prop.type not in PROPERTY_TYPES:
                    fail('propertiesSpec', f'property #{idx} has unknown type {prop.type!r}')

        if isinstance(node, FolderNode):
            for name in ('on_create', 'on_update'):
                for entry in getattr(node, name):
                    if not isinstance(entry, (str, dict)):
                        fail(name, f'invalid directive {entry!r}')

        if errors:
            raise ValidationError(errors)
