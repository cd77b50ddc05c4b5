"""
退房服务
预订 checked_in -> checked_out，房间 occupied -> cleaning，两步按顺序写入
非原子模式下第二步失败会抛出 PartialOperationError，需要人工对账
"""
from typing import Optional, Callable, List
from datetime import date
import logging
from sqlalchemy.orm import Session
from app.errors import TransitionError
from app.domain.lifecycle import BookingTrigger, RoomTrigger, next_booking_status
from app.models.ontology import Booking, BookingStatus, RoomStatus
from app.services.event_bus import event_bus, Event, make_event
from app.services.operation import Operation
from app.services.reservation_service import ReservationService, booking_event_data
from app.services.room_service import apply_room_trigger
from app.models.events import EventType

logger = logging.getLogger(__name__)


class CheckOutService:
    """退房服务"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None,
                 atomic: Optional[bool] = None):
        self.db = db
        # 支持依赖注入事件发布器，便于测试
        self._publish_event = event_publisher or event_bus.publish
        self._atomic = atomic

    def check_out(self, booking_id: int, operator_id: Optional[int] = None) -> Booking:
        """
        退房操作
        1. 预订必须是 checked_in
        2. 更新预订状态为 checked_out
        3. 更新房态为 cleaning
        """
        booking = ReservationService(self.db, self._publish_event).require_booking(booking_id)
        new_status = next_booking_status(booking.status, BookingTrigger.CHECK_OUT)
        room = booking.room
        room_status = RoomStatus(room.status)
        if room_status != RoomStatus.OCCUPIED:
            raise TransitionError(
                "room", room_status.value, RoomTrigger.CHECK_OUT,
                f"Room {room.room_number} is {room_status.value}, expected occupied",
            )

        def _update_booking():
            booking.status = new_status

        op = Operation(self.db, "check_out", atomic=self._atomic, event_publisher=self._publish_event)
        op.step("update_booking", _update_booking)
        op.step("release_room_for_cleaning", lambda: apply_room_trigger(self.db, room, RoomTrigger.CHECK_OUT))
        op.run()
        self.db.refresh(booking)

        if booking.balance > 0:
            logger.warning(f"Booking {booking.booking_ref} checked out with balance {booking.balance}")
        logger.info(f"Booking {booking.booking_ref} checked out of room {room.room_number}")

        self._publish_event(make_event(
            EventType.GUEST_CHECKED_OUT, booking_event_data(booking, operator_id), "checkout_service"
        ))
        return booking

    def get_today_departures(self, today: Optional[date] = None) -> List[Booking]:
        """今日预离（在住且离店日期不晚于今天）"""
        today = today or date.today()
        return self.db.query(Booking).filter(
            Booking.status == BookingStatus.CHECKED_IN,
            Booking.check_out_date <= today,
        ).order_by(Booking.check_out_date).all()
