# Business Services
from app.services.room_service import RoomService
from app.services.guest_service import GuestService
from app.services.reservation_service import ReservationService
from app.services.checkin_service import CheckInService
from app.services.checkout_service import CheckOutService
from app.services.staff_service import StaffService
from app.services.report_service import ReportService

__all__ = [
    'RoomService', 'GuestService', 'ReservationService', 'CheckInService',
    'CheckOutService', 'StaffService', 'ReportService'
]
