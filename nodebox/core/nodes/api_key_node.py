"""API key node."""
from dataclasses import dataclass, replace
from typing import Optional

from .node import Node, API_KEY_MIMETYPE, API_KEYS_FOLDER_UUID


@dataclass
class ApiKeyNode(Node):
    """Access credential bound to a group."""
    mimetype: str = API_KEY_MIMETYPE
    parent: Optional[str] = API_KEYS_FOLDER_UUID
    secret: str = ""

    def censor(self) -> 'ApiKeyNode':
        """Return a copy with the secret masked."""
        return replace(self, secret=mask_secret(self.secret))


def mask_secret(secret: str) -> str:
    if len(secret) <= 4:
        return "*" * len(secret)
    return secret[:4] + "*" * (len(secret) - 4)
