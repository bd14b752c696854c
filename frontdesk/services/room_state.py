"""
房态流转规则

房间状态的唯一决策点：预订生命周期和人工操作都通过 next_room_status 计算目标状态。
- 占用（occupied）只能由预订产生，不能人工设置
- 入住中（occupied 且有生效预订）的房间不能被人工改离占用状态
- 维修/清洁/空闲之间可以人工切换，房间有未来预订时也一样
"""
from enum import Enum
from typing import Optional

from frontdesk.exceptions import InvalidStateError, ValidationError
from frontdesk.models.entities import RoomStatus


class RoomTrigger(str, Enum):
    """房态变更触发来源"""
    BOOKING_CREATED = "booking_created"
    BOOKING_CHECKED_OUT = "booking_checked_out"
    BOOKING_CANCELLED = "booking_cancelled"
    MANUAL = "manual"


MANUAL_STATUSES = frozenset({
    RoomStatus.AVAILABLE, RoomStatus.MAINTENANCE, RoomStatus.CLEANING
})


def next_room_status(current: RoomStatus, trigger: RoomTrigger,
                     has_other_active: bool = False,
                     target: Optional[RoomStatus] = None) -> RoomStatus:
    """
    计算房间的下一个状态

    Args:
        current: 当前房态
        trigger: 触发来源
        has_other_active: 除本次涉及的预订外，房间是否还有其他生效预订（人工操作时为房间是否有生效预订）
        target: 人工操作时的目标状态

    Returns:
        目标房态（可能与当前相同）
    """
    if trigger == RoomTrigger.BOOKING_CREATED:
        return RoomStatus.OCCUPIED

    if trigger == RoomTrigger.BOOKING_CHECKED_OUT:
        return RoomStatus.CLEANING

    if trigger == RoomTrigger.BOOKING_CANCELLED:
        if current == RoomStatus.OCCUPIED and not has_other_active:
            return RoomStatus.AVAILABLE
        return current

    if trigger == RoomTrigger.MANUAL:
        if target is None:
            raise ValidationError("请指定目标房态")
        if target not in MANUAL_STATUSES:
            raise ValidationError("占用状态由预订自动维护，不能手动设置")
        if current == RoomStatus.OCCUPIED and has_other_active and target != current:
            raise InvalidStateError("房间存在生效中的预订，不能手动更改状态，请通过退房或取消操作")
        return target

    raise ValidationError(f"未知的房态触发来源: {trigger}")
