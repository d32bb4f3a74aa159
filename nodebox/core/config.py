"""
Repository configuration module.

Dataclass based configuration for the nodebox façade and its adapters.
"""
from dataclasses import dataclass, field
from typing import Optional, Dict, Any
import logging


@dataclass
class QueryConfig:
    """
    Query configuration.

    Controls paging defaults for repository filters.
    """
    default_page_size: int = 25
    max_page_size: int = 1000

    def clamp(self, page_size: Optional[int]) -> int:
        """Return a page size within the configured bounds."""
        if not page_size or page_size < 1:
            return self.default_page_size
        return min(page_size, self.max_page_size)


@dataclass
class StorageConfig:
    """
    Binary content storage configuration.

    When base_path is unset the in-memory storage provider is used.
    """
    base_path: Optional[str] = None


@dataclass
class NodeboxConfig:
    """
    Complete repository configuration.

    Centralizes the settings consumed by NodeboxService.
    """
    query: QueryConfig = field(default_factory=QueryConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)

    # Directory scanned for action scripts on start()
    actions_path: Optional[str] = None

    # Identity automation runs as
    system_user_email: str = 'root@nodebox.io'

    log_level: int = logging.INFO

    @classmethod
    def default(cls) -> 'NodeboxConfig':
        """Create default configuration."""
        return cls()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'NodeboxConfig':
        """
        Create configuration from a plain dictionary.

        Args:
            data: Mapping as loaded from a JSON or TOML document

        Returns:
            NodeboxConfig instance
        """
        query = data.get('query') or {}
        storage = data.get('storage') or {}
        defaults = cls()
        return cls(
            query=QueryConfig(**query),
            storage=StorageConfig(**storage),
            actions_path=data.get('actions_path'),
            system_user_email=data.get('system_user_email', defaults.system_user_email),
            log_level=data.get('log_level', defaults.log_level),
        )
