"""
报表服务
看板统计：房态分布、入住率、今日预抵/预离、在住数、未结金额
"""
from typing import Optional
from datetime import date
from decimal import Decimal
from sqlalchemy.orm import Session
from app.models.ontology import Room, RoomStatus, Booking, BookingStatus


class ReportService:
    """报表服务"""

    def __init__(self, db: Session):
        self.db = db

    def get_dashboard_summary(self, today: Optional[date] = None) -> dict:
        """获取看板统计数据"""
        today = today or date.today()

        rooms = self.db.query(Room).all()
        room_status = {s.value: 0 for s in RoomStatus}
        for room in rooms:
            room_status[RoomStatus(room.status).value] += 1

        total_rooms = len(rooms)
        sellable_rooms = total_rooms - room_status[RoomStatus.MAINTENANCE.value]
        occupied = room_status[RoomStatus.OCCUPIED.value]
        occupancy_rate = (occupied / sellable_rooms * 100) if sellable_rooms > 0 else 0

        arrivals_today = self.db.query(Booking).filter(
            Booking.check_in_date == today,
            Booking.status.in_([BookingStatus.PENDING, BookingStatus.CONFIRMED]),
        ).count()

        departures_today = self.db.query(Booking).filter(
            Booking.check_out_date == today,
            Booking.status == BookingStatus.CHECKED_IN,
        ).count()

        in_house = self.db.query(Booking).filter(Booking.status == BookingStatus.CHECKED_IN).count()

        # 未结金额：在住与已退房预订的余额合计
        open_bookings = self.db.query(Booking).filter(
            Booking.status.in_([BookingStatus.CHECKED_IN, BookingStatus.CHECKED_OUT])
        ).all()
        outstanding = sum((b.balance for b in open_bookings if b.balance > 0), Decimal("0"))

        return {
            'total_rooms': total_rooms,
            'room_status': room_status,
            'occupancy_rate': round(occupancy_rate, 1),
            'arrivals_today': arrivals_today,
            'departures_today': departures_today,
            'in_house': in_house,
            'outstanding_balance': outstanding,
        }
