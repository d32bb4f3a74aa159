"""Domain event bus using Observer Pattern."""
import inspect
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from ..logging import get_logger
from .events import Event

logger = get_logger(__name__)

EventHandler = Callable[[Event], Union[None, Awaitable[None]]]


class DomainEventBus:
    """
    Publish/subscribe registry for domain events.

    Constructed explicitly and injected into every component that publishes
    or reacts to events. Handlers run in subscription order; a failing
    handler is logged and does not affect the others or the publisher.
    """

    def __init__(self):
        """Initializes event bus."""
        self._handlers: Dict[str, List[EventHandler]] = {}

    def subscribe(self, event_id: str, handler: EventHandler) -> 'DomainEventBus':
        """Registers an event handler."""
        if event_id not in self._handlers:
            self._handlers[event_id] = []
        self._handlers[event_id].append(handler)
        return self

    def unsubscribe(self, event_id: str, handler: Optional[EventHandler] = None) -> 'DomainEventBus':
        """Removes an event handler, or all handlers for event_id."""
        if event_id not in self._handlers:
            return self

        if handler is None:
            del self._handlers[event_id]
        else:
            self._handlers[event_id] = [h for h in self._handlers[event_id] if h != handler]

        return self

    def handlers(self, event_id: str) -> List[EventHandler]:
        return list(self._handlers.get(event_id, []))

    async def notify(self, event: Event) -> None:
        """
        Deliver an event to its subscribers.

        Awaits each handler in order before returning, so side effects of
        a mutation complete before the mutating call resolves.
        """
        for handler in self.handlers(event.event_id):
            try:
                result: Any = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(f"Handler {handler!r} failed for {event.event_id}")

    def clear_handlers(self) -> None:
        """Drop every subscription."""
        self._handlers.clear()
