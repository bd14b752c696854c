# API Routers
from frontdesk.routers import auth, bookings, rooms, guests, dashboard

__all__ = ['auth', 'bookings', 'rooms', 'guests', 'dashboard']
