"""
Services module.

Node, aspect, action and API key services plus smart folder evaluation.
"""
from .node_service import NodeService, NodeServiceContext
from .node_deleter import NodeDeleter, FileNodeDeleter, FolderNodeDeleter, MetaNodeDeleter
from .smart_folder_evaluation import (
    SmartFolderNodeEvaluation,
    AggregationResult,
    REDUCERS,
    compute_aggregations,
)
from .aspect_service import AspectService
from .api_key_service import ApiKeyService
from .action_service import ActionService
from .builtin_aspects import builtin_aspects, find_builtin_aspect

__all__ = [
    'NodeService',
    'NodeServiceContext',
    'NodeDeleter',
    'FileNodeDeleter',
    'FolderNodeDeleter',
    'MetaNodeDeleter',
    'SmartFolderNodeEvaluation',
    'AggregationResult',
    'REDUCERS',
    'compute_aggregations',
    'AspectService',
    'ApiKeyService',
    'ActionService',
    'builtin_aspects',
    'find_builtin_aspect',
]
