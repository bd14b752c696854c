"""
领域事件定义 (Domain Events)
预订生命周期和房态变更在事务提交后发布的事件
"""
from enum import Enum
from dataclasses import dataclass, field, asdict
from datetime import datetime
from decimal import Decimal
from typing import Optional, Dict, Any

from frontdesk.models.types import utcnow


class EventType(str, Enum):
    """事件类型枚举"""
    # 房间相关
    ROOM_STATUS_CHANGED = "room.status_changed"

    # 预订相关
    BOOKING_CREATED = "booking.created"
    BOOKING_CHECKED_OUT = "booking.checked_out"
    BOOKING_CANCELLED = "booking.cancelled"


@dataclass
class BaseEventData:
    """事件数据基类"""
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        result = asdict(self)
        for key, value in result.items():
            if isinstance(value, datetime):
                result[key] = value.isoformat()
            elif isinstance(value, Decimal):
                result[key] = str(value)
        return result


@dataclass
class RoomStatusChangedData(BaseEventData):
    """房间状态变更事件数据"""
    room_id: int = 0
    room_number: str = ""
    old_status: str = ""
    new_status: str = ""
    changed_by: Optional[int] = None
    reason: str = ""


@dataclass
class BookingCreatedData(BaseEventData):
    """预订创建事件数据"""
    booking_id: int = 0
    guest_id: int = 0
    room_id: int = 0
    room_number: str = ""
    check_in_date: Optional[datetime] = None
    check_out_date: Optional[datetime] = None
    total_price: Decimal = Decimal("0")
    operator_id: Optional[int] = None


@dataclass
class BookingClosedData(BaseEventData):
    """预订结束（退房或取消）事件数据"""
    booking_id: int = 0
    guest_id: int = 0
    room_id: int = 0
    room_number: str = ""
    status: str = ""
    actual_check_out: Optional[datetime] = None
    reason: str = ""
    operator_id: Optional[int] = None
