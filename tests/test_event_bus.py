"""
事件总线与事件处理器单元测试
"""
import pytest
from datetime import datetime, timezone
from decimal import Decimal

from frontdesk.models.events import EventType, BookingCreatedData, RoomStatusChangedData
from frontdesk.services.event_bus import EventBus, Event
from frontdesk.services.event_handlers import EventHandlers


@pytest.fixture
def event_bus():
    """独立的事件总线实例"""
    return EventBus()


@pytest.fixture
def sample_event():
    return Event(
        event_type="test.event",
        timestamp=datetime.now(timezone.utc),
        data={"key": "value"},
        source="test"
    )


class TestEventBus:
    """事件总线测试"""

    def test_history_size_bounded(self, sample_event):
        bus = EventBus(history_size=2)
        for _ in range(3):
            bus.publish(sample_event)
        assert len(bus.get_history()) == 2

    def test_subscribe_and_publish(self, event_bus, sample_event):
        received_events = []

        def handler(event):
            received_events.append(event)

        event_bus.subscribe("test.event", handler)
        event_bus.publish(sample_event)

        assert len(received_events) == 1
        assert received_events[0].data["key"] == "value"

    def test_duplicate_subscription_ignored(self, event_bus, sample_event):
        calls = []

        def handler(event):
            calls.append(event)

        event_bus.subscribe("test.event", handler)
        event_bus.subscribe("test.event", handler)
        event_bus.publish(sample_event)

        assert len(calls) == 1

    def test_unsubscribe(self, event_bus, sample_event):
        received_events = []

        def handler(event):
            received_events.append(event)

        event_bus.subscribe("test.event", handler)
        event_bus.unsubscribe("test.event", handler)
        event_bus.publish(sample_event)

        assert received_events == []

    def test_handler_exception_isolation(self, event_bus, sample_event):
        """一个处理器失败不影响其他处理器，也不抛给发布方"""
        successful_calls = []

        def failing_handler(event):
            raise RuntimeError("boom")

        def ok_handler(event):
            successful_calls.append(event)

        event_bus.subscribe("test.event", failing_handler)
        event_bus.subscribe("test.event", ok_handler)
        event_bus.publish(sample_event)

        assert len(successful_calls) == 1

    def test_history(self, event_bus, sample_event):
        other = Event(event_type="other.event", timestamp=datetime.now(timezone.utc),
                      data={}, source="test")
        event_bus.publish(sample_event)
        event_bus.publish(other)

        assert [e.event_type for e in event_bus.get_history()] == ["other.event", "test.event"]
        assert event_bus.get_history("test.event")[0].event_id == sample_event.event_id
        assert len(event_bus.get_history(limit=1)) == 1

    def test_enum_event_type_matches_string_subscription(self, event_bus):
        received = []
        event_bus.subscribe("booking.created", received.append)
        event_bus.publish(Event(event_type=EventType.BOOKING_CREATED,
                                timestamp=datetime.now(timezone.utc), data={}, source="test"))
        assert len(received) == 1
        assert event_bus.get_history(EventType.BOOKING_CREATED)[0].event_type == EventType.BOOKING_CREATED


class TestEventData:

    def test_to_dict_serializes_values(self):
        data = BookingCreatedData(
            booking_id=1,
            check_in_date=datetime(2024, 6, 1, tzinfo=timezone.utc),
            total_price=Decimal("400.00")
        ).to_dict()

        assert data["check_in_date"] == "2024-06-01T00:00:00+00:00"
        assert data["total_price"] == "400.00"
        assert isinstance(data["timestamp"], str)


class TestEventHandlers:

    def test_cleaning_notice_tracked(self, event_bus):
        handlers = EventHandlers()
        handlers.register_handlers(event_bus)

        def room_event(new_status):
            return Event(
                event_type=EventType.ROOM_STATUS_CHANGED,
                timestamp=datetime.now(timezone.utc),
                data=RoomStatusChangedData(room_id=1, room_number="101",
                                           old_status="occupied", new_status=new_status).to_dict(),
                source="test"
            )

        event_bus.publish(room_event("cleaning"))
        assert handlers.pending_cleaning == {"101"}

        event_bus.publish(room_event("available"))
        assert handlers.pending_cleaning == set()

        handlers.unregister_handlers(event_bus)
        event_bus.publish(room_event("cleaning"))
        assert handlers.pending_cleaning == set()

    def test_register_once(self, event_bus):
        handlers = EventHandlers()
        handlers.register_handlers(event_bus)
        handlers.register_handlers(event_bus)

        assert event_bus.subscribers(EventType.ROOM_STATUS_CHANGED) == ["handle_room_status_changed"]
