"""
预订服务
管理 Booking 对象的预订阶段：创建预订、确认、取消、收款、查询
"""
from typing import List, Optional, Callable, Iterable
from datetime import datetime
from decimal import Decimal
import logging
import random
from sqlalchemy.orm import Session, joinedload
from app.config import settings
from app.errors import NotFoundError, PersistenceError, TransitionError, ValidationError
from app.domain.lifecycle import BookingTrigger, RoomTrigger, next_booking_status
from app.domain.booking_rules import (
    RESERVABLE_ROOM_STATUSES, count_nights, compute_total, generate_booking_ref,
)
from app.models.ontology import Booking, BookingStatus, Guest, RoomStatus
from app.models.schemas import ReservationCreate
from app.services.event_bus import event_bus, Event, make_event
from app.services.guest_service import GuestService
from app.services.operation import Operation
from app.services.room_service import RoomService, apply_room_trigger
from app.models.events import EventType, BookingEventData

logger = logging.getLogger(__name__)

# 仍占用房间的预订状态
HOLDING_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)


def allocate_booking_ref(db: Session, now: Optional[datetime] = None,
                         rng: Optional[random.Random] = None,
                         max_attempts: Optional[int] = None) -> str:
    """
    生成未被占用的预订号

    随机后缀与已有预订号重复时重新生成，超过最大次数抛出 PersistenceError。
    并发插入造成的重复由唯一约束兜底（同样转换为 PersistenceError）
    """
    attempts = max_attempts or settings.BOOKING_REF_MAX_ATTEMPTS
    for attempt in range(1, attempts + 1):
        ref = generate_booking_ref(now, rng)
        if db.query(Booking.id).filter(Booking.booking_ref == ref).first() is None:
            return ref
        logger.warning(f"Booking reference {ref} already taken (attempt {attempt}/{attempts})")
    raise PersistenceError(
        "Could not allocate a unique booking reference",
        {"attempts": attempts},
    )


def booking_event_data(booking: Booking, operator_id: Optional[int] = None) -> dict:
    return BookingEventData(
        booking_id=booking.id,
        booking_ref=booking.booking_ref,
        room_id=booking.room_id,
        guest_id=booking.guest_id,
        status=BookingStatus(booking.status).value,
        operator_id=operator_id,
    ).to_dict()


class ReservationService:
    """预订服务"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None):
        self.db = db
        self._publish_event = event_publisher or event_bus.publish
        self.rooms = RoomService(db, self._publish_event)
        self.guests = GuestService(db, self._publish_event)

    # ============== 查询 ==============

    def get_bookings(self, statuses: Optional[Iterable[BookingStatus]] = None,
                     room_id: Optional[int] = None,
                     guest_name: Optional[str] = None) -> List[Booking]:
        """获取预订列表（按入住日期倒序）"""
        query = self.db.query(Booking).options(joinedload(Booking.room), joinedload(Booking.guest))

        statuses = list(statuses or [])
        if statuses:
            query = query.filter(Booking.status.in_(statuses))
        if room_id is not None:
            query = query.filter(Booking.room_id == room_id)
        if guest_name:
            query = query.join(Guest).filter(Guest.full_name.contains(guest_name))

        return query.order_by(Booking.check_in_date.desc(), Booking.id.desc()).all()

    def get_booking(self, booking_id: int) -> Optional[Booking]:
        """获取单个预订"""
        return self.db.query(Booking).filter(Booking.id == booking_id).first()

    def require_booking(self, booking_id: int) -> Booking:
        booking = self.get_booking(booking_id)
        if not booking:
            raise NotFoundError("Booking", booking_id)
        return booking

    def get_booking_by_ref(self, booking_ref: str) -> Optional[Booking]:
        """根据预订号获取预订"""
        return self.db.query(Booking).filter(Booking.booking_ref == booking_ref).first()

    def get_booking_detail(self, booking: Booking) -> dict:
        """预订详情（含房间号、客人姓名）"""
        return {
            "id": booking.id,
            "booking_ref": booking.booking_ref,
            "room_id": booking.room_id,
            "room_number": booking.room.room_number,
            "guest_id": booking.guest_id,
            "guest_name": booking.guest.full_name,
            "check_in_date": booking.check_in_date,
            "check_out_date": booking.check_out_date,
            "nights": booking.nights,
            "status": booking.status,
            "total_amount": booking.total_amount,
            "amount_paid": booking.amount_paid,
            "balance": booking.balance,
            "adults": booking.adults,
            "children": booking.children,
            "special_requests": booking.special_requests,
            "created_by": booking.created_by,
            "created_at": booking.created_at,
        }

    # ============== 创建预订 ==============

    def create_reservation(self, data: ReservationCreate, created_by: Optional[int] = None) -> Booking:
        """
        创建预订

        业务规则：
        1. 离店日期必须晚于入住日期
        2. 房间必须是 available 或 cleaning（在任何写入之前检查）
        3. 依次写入：客人 -> 预订(confirmed) -> 房态(reserved)
        """
        if data.check_out_date <= data.check_in_date:
            raise ValidationError.for_field("check_out_date", "Check-out must be after check-in")

        room = self.rooms.require_room(data.room_id)
        room_status = RoomStatus(room.status)
        if room_status not in RESERVABLE_ROOM_STATUSES:
            raise TransitionError(
                "room", room_status.value, RoomTrigger.RESERVE,
                f"Room {room.room_number} is {room_status.value} and cannot be reserved",
            )

        nights = count_nights(data.check_in_date, data.check_out_date)
        total_amount = compute_total(nights, room.base_rate)
        created = {}

        def _create_guest():
            created["guest"] = self.guests.build_guest(data.guest)

        def _create_booking():
            booking = Booking(
                booking_ref=allocate_booking_ref(self.db),
                room_id=room.id,
                guest_id=created["guest"].id,
                check_in_date=data.check_in_date,
                check_out_date=data.check_out_date,
                status=BookingStatus.CONFIRMED,
                total_amount=total_amount,
                amount_paid=Decimal("0"),
                adults=data.adults,
                children=data.children,
                special_requests=data.special_requests,
                created_by=created_by,
            )
            self.db.add(booking)
            created["booking"] = booking

        op = Operation(self.db, "create_reservation", event_publisher=self._publish_event)
        op.step("create_guest", _create_guest)
        op.step("create_booking", _create_booking)
        op.step("reserve_room", lambda: apply_room_trigger(self.db, room, RoomTrigger.RESERVE))
        op.run()

        booking = created["booking"]
        self.db.refresh(booking)
        logger.info(
            f"Reservation {booking.booking_ref} created for room {room.room_number}: "
            f"{nights} nights, total {total_amount}"
        )
        self._publish_event(make_event(
            EventType.RESERVATION_CREATED, booking_event_data(booking, created_by), "reservation_service"
        ))
        return booking

    # ============== 状态变更 ==============

    def confirm_booking(self, booking_id: int, operator_id: Optional[int] = None) -> Booking:
        """确认待确认的预订"""
        booking = self.require_booking(booking_id)
        new_status = next_booking_status(booking.status, BookingTrigger.CONFIRM)

        def _confirm():
            booking.status = new_status

        Operation(self.db, "confirm_booking").step("update_booking", _confirm).run()
        self.db.refresh(booking)

        self._publish_event(make_event(
            EventType.RESERVATION_CONFIRMED, booking_event_data(booking, operator_id), "reservation_service"
        ))
        return booking

    def cancel_booking(self, booking_id: int, operator_id: Optional[int] = None) -> Booking:
        """
        取消预订（pending / confirmed）

        如果房间没有其他仍有效的预订，房态 reserved -> available
        """
        booking = self.require_booking(booking_id)
        new_status = next_booking_status(booking.status, BookingTrigger.CANCEL)
        room = booking.room

        other_holds = self.db.query(Booking.id).filter(
            Booking.room_id == room.id,
            Booking.id != booking.id,
            Booking.status.in_(HOLDING_STATUSES),
        ).count()
        release_room = RoomStatus(room.status) == RoomStatus.RESERVED and other_holds == 0

        def _cancel():
            booking.status = new_status

        op = Operation(self.db, "cancel_booking", event_publisher=self._publish_event)
        op.step("update_booking", _cancel)
        if release_room:
            op.step("release_room", lambda: apply_room_trigger(self.db, room, RoomTrigger.RELEASE))
        op.run()
        self.db.refresh(booking)

        self._publish_event(make_event(
            EventType.RESERVATION_CANCELLED, booking_event_data(booking, operator_id), "reservation_service"
        ))
        return booking

    def record_payment(self, booking_id: int, amount: Decimal, operator_id: Optional[int] = None) -> Booking:
        """
        登记收款（只记录，不处理支付）

        收款只增加 amount_paid，不改变 total_amount，且累计不超过总价
        """
        booking = self.require_booking(booking_id)
        amount = Decimal(str(amount))

        if BookingStatus(booking.status) == BookingStatus.CANCELLED:
            raise TransitionError("booking", BookingStatus.CANCELLED.value, "record_payment",
                                  "Cannot record a payment on a cancelled booking")
        if amount <= 0:
            raise ValidationError.for_field("amount", "Payment amount must be greater than zero")
        if amount > booking.balance:
            raise ValidationError.for_field(
                "amount", f"Payment exceeds the outstanding balance of {booking.balance}"
            )

        def _pay():
            booking.amount_paid = Decimal(booking.amount_paid or 0) + amount

        Operation(self.db, "record_payment").step("update_booking", _pay).run()
        self.db.refresh(booking)

        data = booking_event_data(booking, operator_id)
        data["amount"] = str(amount)
        self._publish_event(make_event(EventType.PAYMENT_RECEIVED, data, "reservation_service"))
        return booking
