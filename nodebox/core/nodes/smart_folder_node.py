"""Smart folder node: a saved query with optional aggregations."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .node import Node, SMART_FOLDER_MIMETYPE
from .filters import NodeFilter


@dataclass
class Aggregation:
    """Named reduction of one field across an evaluation result."""
    title: str
    field_name: str
    formula: str

    def to_dict(self) -> Dict[str, Any]:
        return {'title': self.title, 'fieldName': self.field_name, 'formula': self.formula}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Aggregation':
        if isinstance(data, Aggregation):
            return data
        return cls(
            title=data.get('title') or data.get('formula', ''),
            field_name=data.get('fieldName', data.get('field_name', '')),
            formula=data.get('formula', ''),
        )


@dataclass
class SmartFolderNode(Node):
    """
    Virtual folder whose contents are computed on demand.

    Never holds persisted children.
    """
    mimetype: str = SMART_FOLDER_MIMETYPE
    filters: List[NodeFilter] = field(default_factory=list)
    aggregations: Optional[List[Aggregation]] = None

    def has_aggregations(self) -> bool:
        return bool(self.aggregations)
