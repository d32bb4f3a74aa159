"""
Identity generation strategies.

Pluggable through the UuidGenerator / FidGenerator protocols.
"""
from typing import Protocol
import re
import unicodedata
import uuid as uuidlib

from .node import FID_PREFIX


class UuidGenerator(Protocol):
    """Protocol for primary identity generation."""

    def generate(self) -> str:
        ...


class FidGenerator(Protocol):
    """Protocol for friendly identity generation."""

    def generate(self, title: str) -> str:
        ...


class DefaultUuidGenerator:
    """Random uuid4 identities."""

    def generate(self) -> str:
        return str(uuidlib.uuid4())


class DefaultFidGenerator:
    """
    Deterministic slug derived from the title.

    Example:
        >>> DefaultFidGenerator().generate("Relatório Anual 2024")
        'relatorio-anual-2024'
    """

    def generate(self, title: str) -> str:
        normalized = unicodedata.normalize('NFD', title or '')
        ascii_only = ''.join(c for c in normalized if not unicodedata.combining(c))
        slug = re.sub(r'[^a-zA-Z0-9]+', '-', ascii_only).strip('-').lower()
        return slug or 'node'


_SAFE_UUID = re.compile(r'^[A-Za-z0-9_-]+$')


def is_safe_uuid(uuid: str) -> bool:
    """
    Check that a caller-chosen uuid is a plain token.

    Letters, digits, '-' and '_' only, and never shaped like a fid key.

    Example:
        >>> is_safe_uuid("invoice-2024")
        True
        >>> is_safe_uuid("../etc")
        False
    """
    return (
        isinstance(uuid, str)
        and bool(_SAFE_UUID.match(uuid))
        and not uuid.startswith(FID_PREFIX)
    )
