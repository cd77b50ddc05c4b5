"""
预订与入住/退房路由
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.database import get_db
from app.errors import NotFoundError
from app.models.ontology import BookingStatus
from app.models.schemas import (
    ReservationCreate, WalkInCheckIn, PaymentCreate, BookingResponse
)
from app.services.reservation_service import ReservationService
from app.services.checkin_service import CheckInService
from app.services.checkout_service import CheckOutService
from app.services.view_cache import view_cache, BOOKINGS
from app.security.auth import current_user_id, require_reception, require_roles
from core.security.context import AuthSession

router = APIRouter(prefix="/bookings", tags=["预订管理"])

require_cashier = require_roles("reception", "accounts")


def _detail(db: Session, booking) -> BookingResponse:
    return BookingResponse(**ReservationService(db).get_booking_detail(booking))


@router.get("", response_model=List[BookingResponse])
def list_bookings(
    status: Optional[List[BookingStatus]] = Query(None),
    room_id: Optional[int] = None,
    guest_name: Optional[str] = None,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_reception)
):
    """获取预订列表（status 可传多个，按入住日期倒序）"""
    statuses = sorted({s.value for s in status or []})
    service = ReservationService(db)
    return view_cache.get_or_load(
        BOOKINGS,
        (tuple(statuses), room_id, guest_name or ""),
        lambda: [
            BookingResponse(**service.get_booking_detail(b))
            for b in service.get_bookings([BookingStatus(s) for s in statuses], room_id, guest_name)
        ],
    )


@router.get("/{booking_id}", response_model=BookingResponse)
def get_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_reception)
):
    """获取预订详情"""
    booking = ReservationService(db).get_booking(booking_id)
    if not booking:
        raise NotFoundError("Booking", booking_id)
    return _detail(db, booking)


@router.post("/reservations", response_model=BookingResponse, status_code=201)
def create_reservation(
    data: ReservationCreate,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_reception)
):
    """创建预订"""
    booking = ReservationService(db).create_reservation(data, current_user_id(session))
    return _detail(db, booking)


@router.post("/walk-in", response_model=BookingResponse, status_code=201)
def walk_in_check_in(
    data: WalkInCheckIn,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_reception)
):
    """散客直接入住"""
    booking = CheckInService(db).walk_in_check_in(data, current_user_id(session))
    return _detail(db, booking)


@router.post("/{booking_id}/confirm", response_model=BookingResponse)
def confirm_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_reception)
):
    """确认预订"""
    booking = ReservationService(db).confirm_booking(booking_id, current_user_id(session))
    return _detail(db, booking)


@router.post("/{booking_id}/check-in", response_model=BookingResponse)
def check_in_reservation(
    booking_id: int,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_reception)
):
    """预订到店入住"""
    booking = CheckInService(db).check_in_reservation(booking_id, current_user_id(session))
    return _detail(db, booking)


@router.post("/{booking_id}/check-out", response_model=BookingResponse)
def check_out(
    booking_id: int,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_reception)
):
    """退房"""
    booking = CheckOutService(db).check_out(booking_id, current_user_id(session))
    return _detail(db, booking)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
def cancel_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_reception)
):
    """取消预订"""
    booking = ReservationService(db).cancel_booking(booking_id, current_user_id(session))
    return _detail(db, booking)


@router.post("/{booking_id}/payments", response_model=BookingResponse)
def record_payment(
    booking_id: int,
    data: PaymentCreate,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_cashier)
):
    """登记收款"""
    booking = ReservationService(db).record_payment(booking_id, data.amount, current_user_id(session))
    return _detail(db, booking)
