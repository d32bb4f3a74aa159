"""Tests for the domain event bus and events."""
import logging

import pytest

from nodebox.core.events import (
    DomainEventBus,
    NodeCreatedEvent,
    NodeUpdatedEvent,
    NodeDeletedEvent,
    NodeContentUpdatedEvent,
)
from nodebox.core.nodes import MetaNode


@pytest.fixture
def node():
    return MetaNode(uuid='m1', title='Meta', parent='f1')


class TestEvents:
    """Tests for event construction."""

    def test_created_event_snapshots_node(self, node):
        """Test later changes to the node do not leak into the event."""
        event = NodeCreatedEvent.of('alice@example.com', node)
        node.title = 'Changed'

        assert event.payload.title == 'Meta'
        assert event.userid == 'alice@example.com'
        assert event.event_id == NodeCreatedEvent.EVENT_ID

    def test_updated_event_diff_is_read_only(self):
        event = NodeUpdatedEvent.of('alice@example.com', 'm1', {'title': 'New'})

        assert event.payload.uuid == 'm1'
        assert event.payload.diff['title'] == 'New'
        with pytest.raises(TypeError):
            event.payload.diff['title'] = 'Other'

    def test_events_are_frozen(self, node):
        event = NodeDeletedEvent.of('alice@example.com', node)

        with pytest.raises(AttributeError):
            event.userid = 'mallory@example.com'

    def test_content_updated_payload(self):
        event = NodeContentUpdatedEvent.of('alice@example.com', 'm1')

        assert event.payload.uuid == 'm1'


class TestDomainEventBus:
    """Test suite for DomainEventBus."""

    @pytest.fixture
    def bus(self):
        return DomainEventBus()

    @pytest.mark.asyncio
    async def test_handlers_run_in_subscription_order(self, bus, node):
        calls = []

        async def first(event):
            calls.append('first')

        def second(event):
            calls.append('second')

        bus.subscribe(NodeCreatedEvent.EVENT_ID, first).subscribe(NodeCreatedEvent.EVENT_ID, second)
        await bus.notify(NodeCreatedEvent.of('u', node))

        assert calls == ['first', 'second']

    @pytest.mark.asyncio
    async def test_only_matching_handlers_run(self, bus, node):
        calls = []
        bus.subscribe(NodeDeletedEvent.EVENT_ID, lambda e: calls.append(e))

        await bus.notify(NodeCreatedEvent.of('u', node))

        assert calls == []

    @pytest.mark.asyncio
    async def test_failing_handler_is_contained(self, bus, node, caplog):
        """Test a handler exception does not stop later handlers or the publisher."""
        calls = []

        async def broken(event):
            raise RuntimeError("boom")

        bus.subscribe(NodeCreatedEvent.EVENT_ID, broken)
        bus.subscribe(NodeCreatedEvent.EVENT_ID, lambda e: calls.append(e.payload.uuid))

        with caplog.at_level(logging.ERROR):
            await bus.notify(NodeCreatedEvent.of('u', node))

        assert calls == ['m1']
        assert 'boom' in caplog.text

    @pytest.mark.asyncio
    async def test_unsubscribe_one_handler(self, bus, node):
        calls = []
        keep = lambda e: calls.append('keep')
        drop = lambda e: calls.append('drop')
        bus.subscribe(NodeCreatedEvent.EVENT_ID, keep).subscribe(NodeCreatedEvent.EVENT_ID, drop)

        bus.unsubscribe(NodeCreatedEvent.EVENT_ID, drop)
        await bus.notify(NodeCreatedEvent.of('u', node))

        assert calls == ['keep']

    def test_unsubscribe_all_handlers(self, bus):
        bus.subscribe(NodeCreatedEvent.EVENT_ID, print)
        bus.subscribe(NodeCreatedEvent.EVENT_ID, repr)

        bus.unsubscribe(NodeCreatedEvent.EVENT_ID)

        assert bus.handlers(NodeCreatedEvent.EVENT_ID) == []

    def test_clear_handlers(self, bus):
        bus.subscribe(NodeCreatedEvent.EVENT_ID, print)
        bus.subscribe(NodeUpdatedEvent.EVENT_ID, print)

        bus.clear_handlers()

        assert bus.handlers(NodeCreatedEvent.EVENT_ID) == []
        assert bus.handlers(NodeUpdatedEvent.EVENT_ID) == []

    def test_buses_are_independent(self):
        first, second = DomainEventBus(), DomainEventBus()
        first.subscribe(NodeCreatedEvent.EVENT_ID, print)

        assert second.handlers(NodeCreatedEvent.EVENT_ID) == []
