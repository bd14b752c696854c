# Business Services
from frontdesk.services.availability_service import AvailabilityService, OverlapPolicy
from frontdesk.services.price_service import PriceService, calculate_nights
from frontdesk.services.booking_service import BookingService
from frontdesk.services.room_service import RoomService
from frontdesk.services.guest_service import GuestService
from frontdesk.services.dashboard_service import DashboardService

__all__ = [
    'AvailabilityService', 'OverlapPolicy', 'PriceService', 'calculate_nights',
    'BookingService', 'RoomService', 'GuestService', 'DashboardService'
]
