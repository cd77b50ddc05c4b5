"""
入住服务
散客直接入住（walk-in）与预订到店入住
"""
from typing import Optional, Callable
from datetime import date, datetime
from decimal import Decimal
import logging
from sqlalchemy.orm import Session
from app.errors import TransitionError
from app.domain.lifecycle import BookingTrigger, RoomTrigger, next_booking_status
from app.domain.booking_rules import WALK_IN_ROOM_STATUSES, count_nights, compute_total
from app.models.ontology import Booking, BookingStatus, RoomStatus
from app.models.schemas import WalkInCheckIn
from app.services.event_bus import event_bus, Event, make_event
from app.services.guest_service import GuestService
from app.services.operation import Operation
from app.services.reservation_service import ReservationService, allocate_booking_ref, booking_event_data
from app.services.room_service import RoomService, apply_room_trigger
from app.models.events import EventType

logger = logging.getLogger(__name__)


class CheckInService:
    """入住服务"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None,
                 clock: Callable[[], datetime] = None):
        self.db = db
        # 支持依赖注入事件发布器和时钟，便于测试
        self._publish_event = event_publisher or event_bus.publish
        self._now = clock or datetime.now
        self.rooms = RoomService(db, self._publish_event)
        self.guests = GuestService(db, self._publish_event)

    def walk_in_check_in(self, data: WalkInCheckIn, operator_id: Optional[int] = None) -> Booking:
        """
        散客入住

        业务规则：
        1. 入住日期为当天，晚数从当前时间算到离店日（向上取整，至少 1 晚）
        2. 房间必须空闲
        3. 依次写入：客人 -> 预订(checked_in) -> 房态(occupied)
        """
        now = self._now()
        room = self.rooms.require_room(data.room_id)
        room_status = RoomStatus(room.status)
        if room_status not in WALK_IN_ROOM_STATUSES:
            raise TransitionError(
                "room", room_status.value, RoomTrigger.CHECK_IN,
                f"Room {room.room_number} is {room_status.value} and cannot take a walk-in guest",
            )

        nights = count_nights(now, data.check_out_date)
        total_amount = compute_total(nights, room.base_rate)
        created = {}

        def _create_guest():
            created["guest"] = self.guests.build_guest(data.guest)

        def _create_booking():
            booking = Booking(
                booking_ref=allocate_booking_ref(self.db),
                room_id=room.id,
                guest_id=created["guest"].id,
                check_in_date=now.date(),
                check_out_date=data.check_out_date,
                status=BookingStatus.CHECKED_IN,
                total_amount=total_amount,
                amount_paid=Decimal("0"),
                adults=data.adults,
                children=data.children,
                special_requests=data.special_requests,
                created_by=operator_id,
            )
            self.db.add(booking)
            created["booking"] = booking

        op = Operation(self.db, "walk_in_check_in", event_publisher=self._publish_event)
        op.step("create_guest", _create_guest)
        op.step("create_booking", _create_booking)
        op.step("occupy_room", lambda: apply_room_trigger(self.db, room, RoomTrigger.CHECK_IN))
        op.run()

        booking = created["booking"]
        self.db.refresh(booking)
        logger.info(
            f"Walk-in {booking.booking_ref} checked into room {room.room_number}: "
            f"{nights} nights, total {total_amount}"
        )
        self._publish_event(make_event(
            EventType.GUEST_CHECKED_IN, booking_event_data(booking, operator_id), "checkin_service"
        ))
        return booking

    def check_in_reservation(self, booking_id: int, operator_id: Optional[int] = None) -> Booking:
        """预订到店入住：confirmed -> checked_in，房态 reserved -> occupied"""
        booking = ReservationService(self.db, self._publish_event).require_booking(booking_id)
        new_status = next_booking_status(booking.status, BookingTrigger.CHECK_IN)
        room = booking.room
        room_status = RoomStatus(room.status)
        if room_status != RoomStatus.RESERVED:
            raise TransitionError(
                "room", room_status.value, RoomTrigger.CHECK_IN,
                f"Room {room.room_number} is {room_status.value}, expected reserved",
            )

        def _update_booking():
            booking.status = new_status

        op = Operation(self.db, "check_in_reservation", event_publisher=self._publish_event)
        op.step("update_booking", _update_booking)
        op.step("occupy_room", lambda: apply_room_trigger(self.db, room, RoomTrigger.CHECK_IN))
        op.run()
        self.db.refresh(booking)

        logger.info(f"Reservation {booking.booking_ref} checked into room {room.room_number}")
        self._publish_event(make_event(
            EventType.GUEST_CHECKED_IN, booking_event_data(booking, operator_id), "checkin_service"
        ))
        return booking

    def get_today_arrivals(self) -> list:
        """今日预抵（已确认、入住日期为今天）"""
        today: date = self._now().date()
        return self.db.query(Booking).filter(
            Booking.check_in_date == today,
            Booking.status == BookingStatus.CONFIRMED,
        ).all()
