# API Routers
from app.routers import auth, rooms, guests, bookings, staff, reports

__all__ = ['auth', 'rooms', 'guests', 'bookings', 'staff', 'reports']
