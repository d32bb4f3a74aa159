"""Action node: metadata record of a registered automation script."""
from dataclasses import dataclass, field
from typing import List, Optional

from .node import Node, ACTION_MIMETYPE, ACTIONS_FOLDER_UUID
from .filters import NodeFilter


@dataclass
class ActionNode(Node):
    """Registered action. The script source lives in storage under uuid."""
    mimetype: str = ACTION_MIMETYPE
    parent: Optional[str] = ACTIONS_FOLDER_UUID
    builtin: bool = False
    run_on_creates: bool = False
    run_on_updates: bool = False
    run_manually: bool = True
    params: List[str] = field(default_factory=list)
    filters: List[NodeFilter] = field(default_factory=list)
