"""
Storage data models.

Plain dataclasses exchanged with repository and storage providers.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from ..nodes import Node


@dataclass
class NodeFile:
    """
    Binary payload with its name and mimetype.

    Used for uploads (create_file, update_file) and for exports.
    """
    name: str
    mimetype: str
    content: bytes = b""

    @property
    def size(self) -> int:
        return len(self.content)

    def text(self, encoding: str = 'utf-8') -> str:
        return self.content.decode(encoding)


@dataclass
class WriteFileOpts:
    """Hints passed to the storage provider alongside content."""
    title: str
    parent: Optional[str] = None
    mimetype: Optional[str] = None


@dataclass
class NodeFilterResult:
    """One page of a repository filter."""
    nodes: List[Node] = field(default_factory=list)
    page_count: int = 1
    page_size: int = 0
    page_token: int = 1
