"""
价格服务
按晚计费：晚数 = 入住到退房的天数向上取整，不足一天按一晚计算
"""
from datetime import date, datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Optional, Union
import logging
import math

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from frontdesk.exceptions import StorageError
from frontdesk.models.entities import Room
from frontdesk.models.types import to_utc

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)
CENT = Decimal("0.01")

DateLike = Union[datetime, date]


def calculate_nights(check_in: Optional[DateLike], check_out: Optional[DateLike]) -> int:
    """
    计算计费晚数

    Returns:
        向上取整后的晚数；任一日期缺失或区间不为正时返回 0
    """
    if check_in is None or check_out is None:
        return 0
    span = to_utc(check_out) - to_utc(check_in)
    if span <= timedelta(0):
        return 0
    return math.ceil(span / ONE_DAY)


class PriceService:
    """价格服务"""

    def __init__(self, db: Session):
        self.db = db

    def _get_room(self, room_id: Optional[int]) -> Optional[Room]:
        if room_id is None:
            return None
        try:
            return self.db.query(Room).filter(Room.id == room_id).first()
        except SQLAlchemyError as e:
            logger.error(f"Room lookup failed for pricing: {e}", exc_info=True)
            raise StorageError("价格计算失败，请稍后重试") from e

    @staticmethod
    def price_for(room: Room, check_in: Optional[DateLike],
                  check_out: Optional[DateLike]) -> Decimal:
        """按房间每晚价格计算总价"""
        nights = calculate_nights(check_in, check_out)
        total = Decimal(nights) * Decimal(room.price_per_night)
        return total.quantize(CENT, rounding=ROUND_HALF_UP)

    def calculate_price(self, room_id: Optional[int], check_in: Optional[DateLike],
                        check_out: Optional[DateLike]) -> Decimal:
        """
        计算住宿总价

        房间不存在或日期不完整时返回 0（用于表单实时预览）；
        正式创建预订前必须先完成输入校验，不能依赖这里的 0 默认值。
        """
        room = self._get_room(room_id)
        if room is None or check_in is None or check_out is None:
            return Decimal("0.00")
        return self.price_for(room, check_in, check_out)

    def quote(self, room_id: Optional[int], check_in: Optional[DateLike],
              check_out: Optional[DateLike]) -> Dict:
        """报价明细：晚数、每晚价格、总价"""
        room = self._get_room(room_id)
        if room is None:
            return {
                'room_id': room_id,
                'nights': 0,
                'price_per_night': Decimal("0.00"),
                'total_price': Decimal("0.00"),
            }
        return {
            'room_id': room_id,
            'nights': calculate_nights(check_in, check_out),
            'price_per_night': Decimal(room.price_per_night).quantize(CENT),
            'total_price': self.price_for(room, check_in, check_out),
        }
