"""Aspect node: a named property schema attachable to other nodes."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .node import Node, ASPECT_MIMETYPE, ASPECTS_FOLDER_UUID

PROPERTY_TYPES = ('string', 'number', 'boolean', 'date', 'uuid', 'array', 'object')


@dataclass
class AspectProperty:
    """
    Definition of one aspect property.

    Attributes:
        name: Key inside the aspect, stored as "<aspect>:<name>"
        type: One of PROPERTY_TYPES
        required: Whether the property must be present
        validation_list: Allowed values, if restricted
    """
    name: str
    title: str = ""
    type: str = "string"
    required: bool = False
    validation_list: Optional[List[Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'name': self.name,
            'title': self.title,
            'type': self.type,
            'required': self.required,
        }
        if self.validation_list is not None:
            data['validationList'] = list(self.validation_list)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AspectProperty':
        if isinstance(data, AspectProperty):
            return data
        return cls(
            name=data.get('name', ''),
            title=data.get('title', ''),
            type=data.get('type', 'string'),
            required=bool(data.get('required', False)),
            validation_list=data.get('validationList', data.get('validation_list')),
        )


@dataclass
class AspectNode(Node):
    """Schema definition persisted under the aspects folder."""
    mimetype: str = ASPECT_MIMETYPE
    parent: Optional[str] = ASPECTS_FOLDER_UUID
    builtin: bool = False
    properties_spec: List[AspectProperty] = field(default_factory=list)

    def property_key(self, prop: AspectProperty) -> str:
        return f"{self.uuid}:{prop.name}"


def _matches_type(value: Any, prop_type: str) -> bool:
    if prop_type == 'string' or prop_type == 'uuid':
        return isinstance(value, str)
    if prop_type == 'number':
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if prop_type == 'boolean':
        return isinstance(value, bool)
    if prop_type == 'date':
        if not isinstance(value, str):
            return False
        try:
            datetime.fromisoformat(value)
        except ValueError:
            return False
        return True
    if prop_type == 'array':
        return isinstance(value, list)
    if prop_type == 'object':
        return isinstance(value, dict)
    return False


def check_properties(node: Node, aspects: List[AspectNode]) -> Dict[str, List[str]]:
    """
    Check a node's properties against the aspects attached to it.

    Returns:
        Mapping of property key to violations, empty when valid
    """
    errors: Dict[str, List[str]] = {}

    for aspect in aspects:
        for prop in aspect.properties_spec:
            key = aspect.property_key(prop)
            if key not in node.properties or node.properties[key] is None:
                if prop.required:
                    errors.setdefault(key, []).append('property is required')
                continue

            value = node.properties[key]
            if not _matches_type(value, prop.type):
                errors.setdefault(key, []).append(f'expected {prop.type}')
            elif prop.validation_list and value not in prop.validation_list:
                errors.setdefault(key, []).append('value not in validation list')

    return errors
