"""
房态可用性服务
判断房间在给定时间区间内是否存在生效中的重叠预订

重叠判定（默认闭区间，与现有规则一致）：
    existing.check_in_date <= check_out AND existing.check_out_date >= check_in
即前一单的退房时间恰好等于后一单的入住时间也视为冲突。
已退房和已取消的预订不占用房态。
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple, Union
import logging

from sqlalchemy import and_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from frontdesk.config import settings
from frontdesk.exceptions import StorageError, ValidationError
from frontdesk.models.entities import Booking, BookingStatus, Room, RoomStatus
from frontdesk.models.types import to_utc

logger = logging.getLogger(__name__)

DateLike = Union[datetime, date]


@dataclass(frozen=True)
class OverlapPolicy:
    """
    重叠判定策略

    Attributes:
        inclusive: True 为闭区间判定（<= / >=），首尾相接视为冲突；
                   False 为半开区间判定（< / >），允许同一时刻衔接
        buffer: 清洁缓冲时长，请求区间两侧各扩展该时长后再判定
    """

    inclusive: bool = True
    buffer: timedelta = timedelta(0)

    @classmethod
    def from_settings(cls, config=None) -> "OverlapPolicy":
        config = config or settings
        return cls(inclusive=config.OVERLAP_INCLUSIVE, buffer=config.turnover_buffer)

    def window(self, check_in: datetime, check_out: datetime) -> Tuple[datetime, datetime]:
        """加上缓冲后的判定区间"""
        return check_in - self.buffer, check_out + self.buffer

    def overlaps(self, existing_in: datetime, existing_out: datetime,
                 check_in: datetime, check_out: datetime) -> bool:
        """内存中判定两个区间是否冲突"""
        start, end = self.window(to_utc(check_in), to_utc(check_out))
        existing_in, existing_out = to_utc(existing_in), to_utc(existing_out)
        if self.inclusive:
            return existing_in <= end and existing_out >= start
        return existing_in < end and existing_out > start

    def condition(self, check_in: datetime, check_out: datetime):
        """生成等价的 SQL 过滤条件"""
        start, end = self.window(check_in, check_out)
        if self.inclusive:
            return and_(Booking.check_in_date <= end, Booking.check_out_date >= start)
        return and_(Booking.check_in_date < end, Booking.check_out_date > start)


class AvailabilityService:
    """房态可用性服务（只读）"""

    def __init__(self, db: Session, policy: Optional[OverlapPolicy] = None):
        self.db = db
        self.policy = policy or OverlapPolicy.from_settings()

    def _normalize(self, check_in: Optional[DateLike],
                   check_out: Optional[DateLike]) -> Tuple[datetime, datetime]:
        if check_in is None or check_out is None:
            raise ValidationError("入住和退房时间不能为空")
        check_in, check_out = to_utc(check_in), to_utc(check_out)
        if check_out <= check_in:
            raise ValidationError("退房时间必须晚于入住时间")
        return check_in, check_out

    def _conflict_query(self, room_id: int, check_in: datetime, check_out: datetime,
                        exclude_booking_id: Optional[int] = None):
        query = self.db.query(Booking).filter(
            Booking.room_id == room_id,
            Booking.status == BookingStatus.ACTIVE,
            self.policy.condition(check_in, check_out)
        )
        if exclude_booking_id is not None:
            query = query.filter(Booking.id != exclude_booking_id)
        return query

    def find_conflicts(self, room_id: int, check_in: DateLike, check_out: DateLike,
                       exclude_booking_id: Optional[int] = None) -> List[Booking]:
        """返回与请求区间冲突的生效预订"""
        check_in, check_out = self._normalize(check_in, check_out)
        try:
            return self._conflict_query(
                room_id, check_in, check_out, exclude_booking_id
            ).order_by(Booking.check_in_date).all()
        except SQLAlchemyError as e:
            logger.error(f"Availability check failed for room {room_id}: {e}", exc_info=True)
            raise StorageError("房态查询失败，请稍后重试") from e

    def is_available(self, room_id: int, check_in: DateLike, check_out: DateLike,
                     exclude_booking_id: Optional[int] = None) -> bool:
        """
        判断房间在 [check_in, check_out) 是否可预订

        存储故障抛出 StorageError，绝不当作"可用"返回。
        """
        check_in, check_out = self._normalize(check_in, check_out)
        try:
            conflict = self._conflict_query(
                room_id, check_in, check_out, exclude_booking_id
            ).first()
        except SQLAlchemyError as e:
            logger.error(f"Availability check failed for room {room_id}: {e}", exc_info=True)
            raise StorageError("房态查询失败，请稍后重试") from e
        return conflict is None

    def get_available_rooms(self, check_in: DateLike, check_out: DateLike) -> List[Room]:
        """获取指定区间内没有冲突预订、且不在维修中的房间"""
        check_in, check_out = self._normalize(check_in, check_out)
        try:
            blocked = select(Booking.room_id).where(
                Booking.status == BookingStatus.ACTIVE,
                self.policy.condition(check_in, check_out)
            )
            return self.db.query(Room).filter(
                Room.status != RoomStatus.MAINTENANCE,
                ~Room.id.in_(blocked)
            ).order_by(Room.floor, Room.room_number).all()
        except SQLAlchemyError as e:
            logger.error(f"Available room lookup failed: {e}", exc_info=True)
            raise StorageError("房态查询失败，请稍后重试") from e
