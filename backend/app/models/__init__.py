# Business Models
from app.models.ontology import (
    Room, Guest, Booking, User, StaffProfile, UserRole
)
from app.models.ontology import (
    RoomStatus, RoomType, BookingStatus, GuestType, IdType, DepartmentRole
)

__all__ = [
    'Room', 'Guest', 'Booking', 'User', 'StaffProfile', 'UserRole',
    'RoomStatus', 'RoomType', 'BookingStatus', 'GuestType', 'IdType', 'DepartmentRole'
]
