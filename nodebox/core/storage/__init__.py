"""
Storage module.

Repository and storage protocols plus reference adapters.
"""
from .models import NodeFile, WriteFileOpts, NodeFilterResult
from .protocols import NodeRepository, StorageProvider, Subscribe
from .memory_repository import InMemoryNodeRepository
from .memory_storage import InMemoryStorageProvider
from .flat_file_storage import FlatFileStorageProvider

__all__ = [
    'NodeFile',
    'WriteFileOpts',
    'NodeFilterResult',
    'NodeRepository',
    'StorageProvider',
    'Subscribe',
    'InMemoryNodeRepository',
    'InMemoryStorageProvider',
    'FlatFileStorageProvider',
]
