"""
事件处理器
订阅预订与房态事件，输出前台/客房部关注的运营日志
"""
import logging

from frontdesk.models.entities import RoomStatus
from frontdesk.models.events import EventType
from frontdesk.services.event_bus import event_bus, Event

logger = logging.getLogger(__name__)


class EventHandlers:
    """事件处理器集合"""

    def __init__(self):
        self._registered = False
        self.pending_cleaning = set()

    def handle_room_status_changed(self, event: Event) -> None:
        """房间进入待清洁状态时记录清洁提醒，离开时移除"""
        data = event.data
        room_number = data.get("room_number", "")
        new_status = data.get("new_status")

        if new_status == RoomStatus.CLEANING.value:
            self.pending_cleaning.add(room_number)
            logger.info(f"房间 {room_number} 待清洁，请安排客房部处理")
        else:
            self.pending_cleaning.discard(room_number)

    def handle_booking_event(self, event: Event) -> None:
        data = event.data
        logger.info(
            f"{event.event_type}: booking={data.get('booking_id')} "
            f"room={data.get('room_number')} operator={data.get('operator_id')}"
        )

    def register_handlers(self, event_bus_instance=None) -> None:
        """注册所有事件处理器"""
        if self._registered:
            return
        bus = event_bus_instance or event_bus

        bus.subscribe(EventType.ROOM_STATUS_CHANGED, self.handle_room_status_changed)
        bus.subscribe(EventType.BOOKING_CREATED, self.handle_booking_event)
        bus.subscribe(EventType.BOOKING_CHECKED_OUT, self.handle_booking_event)
        bus.subscribe(EventType.BOOKING_CANCELLED, self.handle_booking_event)

        self._registered = True
        logger.info("Event handlers registered successfully")

    def unregister_handlers(self, event_bus_instance=None) -> None:
        """取消注册所有事件处理器（用于测试）"""
        bus = event_bus_instance or event_bus

        bus.unsubscribe(EventType.ROOM_STATUS_CHANGED, self.handle_room_status_changed)
        bus.unsubscribe(EventType.BOOKING_CREATED, self.handle_booking_event)
        bus.unsubscribe(EventType.BOOKING_CHECKED_OUT, self.handle_booking_event)
        bus.unsubscribe(EventType.BOOKING_CANCELLED, self.handle_booking_event)

        self._registered = False


# 全局事件处理器实例
event_handlers = EventHandlers()


def register_event_handlers():
    """注册所有事件处理器（应用启动时调用）"""
    event_handlers.register_handlers()
