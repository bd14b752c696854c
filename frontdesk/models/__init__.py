# Entity Models
from frontdesk.models.entities import (
    Staff, UserRole, Guest, Room, Booking, SystemLog,
    RoomStatus, BookingStatus, StaffRole
)

__all__ = [
    'Staff', 'UserRole', 'Guest', 'Room', 'Booking', 'SystemLog',
    'RoomStatus', 'BookingStatus', 'StaffRole'
]
