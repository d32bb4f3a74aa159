"""Domain events and the event bus."""
from .event_bus import DomainEventBus, EventHandler
from .events import (
    Event,
    NodeCreatedEvent,
    NodeUpdatedEvent,
    NodeDeletedEvent,
    NodeContentUpdatedEvent,
    NodeUpdatedPayload,
    NodeContentUpdatedPayload,
)

__all__ = [
    'DomainEventBus',
    'EventHandler',
    'Event',
    'NodeCreatedEvent',
    'NodeUpdatedEvent',
    'NodeDeletedEvent',
    'NodeContentUpdatedEvent',
    'NodeUpdatedPayload',
    'NodeContentUpdatedPayload',
]
