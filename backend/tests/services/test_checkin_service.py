"""
Tests for app/services/checkin_service.py
Covers: walk_in_check_in, check_in_reservation, get_today_arrivals
"""
import pytest
from datetime import date, datetime, time, timedelta
from decimal import Decimal

from app.errors import NotFoundError, TransitionError
from app.models.ontology import Booking, BookingStatus, Guest, Room, RoomStatus, RoomType
from app.models.schemas import WalkInCheckIn
from app.services.checkin_service import CheckInService


# ── helpers ──────────────────────────────────────────────────────────

def _room(db, number="105", status=RoomStatus.AVAILABLE, rate=Decimal("100000")):
    r = Room(room_number=number, floor=1, room_type=RoomType.DELUXE, base_rate=rate, status=status)
    db.add(r)
    db.commit()
    return r


def _afternoon(day=None):
    return datetime.combine(day or date.today(), time(14, 0))


def _service(db, clock=None):
    events = []
    return CheckInService(db, events.append, clock=clock or _afternoon), events


def _walk_in(room, nights=3, **overrides):
    data = {
        "room_id": room.id,
        "guest": {"full_name": "Chinedu Okafor", "phone": "+234 803 555 0101", "id_type": "passport"},
        "check_out_date": date.today() + timedelta(days=nights),
        "adults": 2,
    }
    data.update(overrides)
    return WalkInCheckIn(**data)


def _reservation(db, room, status=BookingStatus.CONFIRMED, check_in=None):
    guest = Guest(full_name="Halima Yusuf")
    db.add(guest)
    db.flush()
    check_in = check_in or date.today()
    booking = Booking(
        booking_ref="VPH-250301-0007", room_id=room.id, guest_id=guest.id,
        check_in_date=check_in, check_out_date=check_in + timedelta(days=2),
        status=status, total_amount=Decimal("200000"),
    )
    db.add(booking)
    db.commit()
    return booking


# ── walk-in ──────────────────────────────────────────────────────────

class TestWalkIn:

    def test_three_night_walk_in(self, db_session):
        room = _room(db_session)
        service, events = _service(db_session)

        booking = service.walk_in_check_in(_walk_in(room))

        assert booking.status == BookingStatus.CHECKED_IN
        assert booking.check_in_date == date.today()
        assert booking.nights == 3
        assert booking.total_amount == Decimal("300000.00")
        assert booking.amount_paid == Decimal("0")
        assert booking.adults == 2
        assert booking.guest.full_name == "Chinedu Okafor"

        db_session.refresh(room)
        assert room.status == RoomStatus.OCCUPIED
        assert [e.event_type for e in events] == ["guest.checked_in"]

    def test_day_use_bills_one_night(self, db_session):
        room = _room(db_session)
        service, _ = _service(db_session)
        booking = service.walk_in_check_in(_walk_in(room, nights=0))
        assert booking.total_amount == Decimal("100000.00")

    def test_late_night_arrival_rounds_up(self, db_session):
        room = _room(db_session)
        # 23:00 入住，次日离店：不足一天按一晚
        service, _ = _service(db_session, clock=lambda: datetime.combine(date.today(), time(23, 0)))
        booking = service.walk_in_check_in(_walk_in(room, nights=1))
        assert booking.total_amount == Decimal("100000.00")

    @pytest.mark.parametrize("status", [
        RoomStatus.OCCUPIED, RoomStatus.RESERVED, RoomStatus.CLEANING, RoomStatus.MAINTENANCE,
    ])
    def test_room_must_be_available(self, db_session, status):
        room = _room(db_session, status=status)
        service, events = _service(db_session)

        with pytest.raises(TransitionError):
            service.walk_in_check_in(_walk_in(room))

        assert db_session.query(Guest).count() == 0
        assert db_session.query(Booking).count() == 0
        assert events == []

    def test_unknown_room(self, db_session):
        room = _room(db_session)
        service, _ = _service(db_session)
        with pytest.raises(NotFoundError):
            service.walk_in_check_in(_walk_in(room, room_id=room.id + 1))


# ── arrival of a reservation ─────────────────────────────────────────

class TestReservationArrival:

    def test_confirmed_reservation_checks_in(self, db_session):
        room = _room(db_session, status=RoomStatus.RESERVED)
        booking = _reservation(db_session, room)
        service, events = _service(db_session)

        result = service.check_in_reservation(booking.id, operator_id=None)

        assert result.status == BookingStatus.CHECKED_IN
        db_session.refresh(room)
        assert room.status == RoomStatus.OCCUPIED
        assert events[0].data["booking_ref"] == "VPH-250301-0007"

    def test_pending_reservation_must_be_confirmed(self, db_session):
        room = _room(db_session, status=RoomStatus.RESERVED)
        booking = _reservation(db_session, room, status=BookingStatus.PENDING)
        service, _ = _service(db_session)
        with pytest.raises(TransitionError):
            service.check_in_reservation(booking.id)

    def test_room_not_reserved_rejected(self, db_session):
        room = _room(db_session, status=RoomStatus.MAINTENANCE)
        booking = _reservation(db_session, room)
        service, _ = _service(db_session)

        with pytest.raises(TransitionError) as exc:
            service.check_in_reservation(booking.id)

        assert exc.value.details["entity"] == "room"
        db_session.refresh(booking)
        assert booking.status == BookingStatus.CONFIRMED

    def test_today_arrivals(self, db_session):
        room = _room(db_session, status=RoomStatus.RESERVED)
        booking = _reservation(db_session, room)
        service, _ = _service(db_session)
        assert [b.id for b in service.get_today_arrivals()] == [booking.id]

        tomorrow, _ = _service(db_session, clock=lambda: _afternoon(date.today() + timedelta(days=1)))
        assert tomorrow.get_today_arrivals() == []
