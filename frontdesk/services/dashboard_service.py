"""
概览统计服务
"""
from typing import Dict
from sqlalchemy.orm import Session

from frontdesk.models.entities import Booking, BookingStatus, Guest, Room, RoomStatus
from frontdesk.services.room_service import RoomService


class DashboardService:
    """首页概览统计"""

    def __init__(self, db: Session):
        self.db = db

    def get_stats(self) -> Dict:
        room_status = RoomService(self.db).get_room_status_summary()
        return {
            'total_guests': self.db.query(Guest).count(),
            'total_rooms': room_status['total'],
            'available_rooms': room_status[RoomStatus.AVAILABLE.value],
            'active_bookings': self.db.query(Booking).filter(
                Booking.status == BookingStatus.ACTIVE
            ).count(),
            'room_status': room_status,
        }
