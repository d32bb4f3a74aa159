"""
Domain events.

Immutable records of committed mutations, published on the DomainEventBus.
"""
from copy import deepcopy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, ClassVar, Mapping

from ..nodes import Node


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Event:
    """Base domain event."""
    EVENT_ID: ClassVar[str] = "Event"

    userid: str
    payload: Any
    occurred_on: datetime = field(default_factory=_utcnow)

    @property
    def event_id(self) -> str:
        return self.EVENT_ID


@dataclass(frozen=True)
class NodeUpdatedPayload:
    uuid: str
    diff: Mapping[str, Any]


@dataclass(frozen=True)
class NodeContentUpdatedPayload:
    uuid: str


@dataclass(frozen=True)
class NodeCreatedEvent(Event):
    """A node was created. Payload is a snapshot of the new node."""
    EVENT_ID: ClassVar[str] = "NodeCreatedEvent"

    @classmethod
    def of(cls, userid: str, node: Node) -> 'NodeCreatedEvent':
        return cls(userid=userid, payload=deepcopy(node))


@dataclass(frozen=True)
class NodeUpdatedEvent(Event):
    """A node's metadata changed. Payload carries the applied diff."""
    EVENT_ID: ClassVar[str] = "NodeUpdatedEvent"

    @classmethod
    def of(cls, userid: str, uuid: str, diff: Mapping[str, Any]) -> 'NodeUpdatedEvent':
        payload = NodeUpdatedPayload(uuid=uuid, diff=MappingProxyType(deepcopy(dict(diff))))
        return cls(userid=userid, payload=payload)


@dataclass(frozen=True)
class NodeDeletedEvent(Event):
    """A node was removed. Payload is the node as it was before deletion."""
    EVENT_ID: ClassVar[str] = "NodeDeletedEvent"

    @classmethod
    def of(cls, userid: str, node: Node) -> 'NodeDeletedEvent':
        return cls(userid=userid, payload=deepcopy(node))


@dataclass(frozen=True)
class NodeContentUpdatedEvent(Event):
    """A file node's binary content was rewritten."""
    EVENT_ID: ClassVar[str] = "NodeContentUpdatedEvent"

    @classmethod
    def of(cls, userid: str, uuid: str) -> 'NodeContentUpdatedEvent':
        return cls(userid=userid, payload=NodeContentUpdatedPayload(uuid=uuid))
