"""
Nodebox - permission-aware content repository core.

Usage:
    >>> from nodebox import NodeboxService, NodeServiceContext, UserPrincipal
    >>> from nodebox import InMemoryNodeRepository, InMemoryStorageProvider
    >>>
    >>> context = NodeServiceContext(InMemoryNodeRepository(), InMemoryStorageProvider())
    >>> nodebox = NodeboxService(context)
    >>> await nodebox.start()
    >>> folder = await nodebox.create(principal, {"title": "Docs", "mimetype": FOLDER_MIMETYPE})
"""
from .service import NodeboxService
from .core.logging import setup_logging

# Configuration
from .core.config import NodeboxConfig, QueryConfig, StorageConfig

# Domain
from .core.auth import UserPrincipal, PermissionEngine
from .core.events import DomainEventBus
from .core.exceptions import (
    NodeboxError,
    NodeNotFoundError,
    FolderNotFoundError,
    SmartFolderNodeNotFoundError,
    ValidationError,
    AggregationFormulaError,
    ForbiddenError,
    BadRequestError,
    UnknownError,
)
from .core.nodes import (
    Node,
    NodeFactory,
    FOLDER_MIMETYPE,
    SMART_FOLDER_MIMETYPE,
    META_NODE_MIMETYPE,
    ROOT_FOLDER_UUID,
)
from .core.services import NodeServiceContext, SmartFolderNodeEvaluation

# Adapters
from .core.storage import (
    NodeFile,
    InMemoryNodeRepository,
    InMemoryStorageProvider,
    FlatFileStorageProvider,
)

__version__ = '1.0.0'

__all__ = [
    'NodeboxService',
    'NodeServiceContext',
    'NodeboxConfig',
    'QueryConfig',
    'StorageConfig',
    'UserPrincipal',
    'PermissionEngine',
    'DomainEventBus',
    'Node',
    'NodeFactory',
    'NodeFile',
    'SmartFolderNodeEvaluation',
    'InMemoryNodeRepository',
    'InMemoryStorageProvider',
    'FlatFileStorageProvider',
    'FOLDER_MIMETYPE',
    'SMART_FOLDER_MIMETYPE',
    'META_NODE_MIMETYPE',
    'ROOT_FOLDER_UUID',
    'NodeboxError',
    'NodeNotFoundError',
    'FolderNotFoundError',
    'SmartFolderNodeNotFoundError',
    'ValidationError',
    'AggregationFormulaError',
    'ForbiddenError',
    'BadRequestError',
    'UnknownError',
    'setup_logging',
]
