"""
Tests for app/services/guest_service.py
"""
import pytest
from datetime import date, timedelta
from decimal import Decimal

from app.errors import NotFoundError, ValidationError
from app.models.ontology import Booking, BookingStatus, Guest, GuestType, Room, RoomStatus
from app.models.schemas import GuestUpdate
from app.services.guest_service import GuestService


def _guest(db, name="Funke Adeyemi", guest_type=GuestType.INDIVIDUAL):
    g = Guest(full_name=name, email="funke@example.com", phone="0802 000 1111", guest_type=guest_type)
    db.add(g)
    db.commit()
    return g


def _stay(db, guest, status, total=Decimal("50000"), paid=Decimal("50000")):
    room = Room(room_number=f"3{guest.id:02d}", floor=3, base_rate=total, status=RoomStatus.CLEANING)
    db.add(room)
    db.flush()
    db.add(Booking(
        booking_ref=f"VPH-250501-{guest.id:04d}", room_id=room.id, guest_id=guest.id,
        check_in_date=date.today() - timedelta(days=1), check_out_date=date.today(),
        status=status, total_amount=total, amount_paid=paid,
    ))
    db.commit()


class TestQueries:

    def test_search_by_name_phone_or_email(self, db_session):
        _guest(db_session)
        _guest(db_session, name="Acme Travel", guest_type=GuestType.CORPORATE)
        service = GuestService(db_session)

        assert len(service.get_guests()) == 2
        assert [g.full_name for g in service.get_guests(search="Acme")] == ["Acme Travel"]
        assert [g.full_name for g in service.get_guests(guest_type=GuestType.CORPORATE)] == ["Acme Travel"]


class TestUpdateGuest:

    def test_update_open_guest(self, db_session):
        guest = _guest(db_session)
        events = []
        updated = GuestService(db_session, events.append).update_guest(
            guest.id, GuestUpdate(full_name="Funke A. Adeyemi", id_number="B7654321")
        )
        assert updated.full_name == "Funke A. Adeyemi"
        assert updated.id_number == "B7654321"
        assert events[0].event_type == "guest.updated"

    def test_unknown_guest(self, db_session):
        with pytest.raises(NotFoundError):
            GuestService(db_session).update_guest(77, GuestUpdate(phone="123 456"))

    def test_settled_guest_only_contact_changes(self, db_session):
        guest = _guest(db_session)
        _stay(db_session, guest, BookingStatus.CHECKED_OUT)
        service = GuestService(db_session, lambda e: None)
        assert service.is_locked(guest.id)

        updated = service.update_guest(guest.id, GuestUpdate(phone="0809 999 0000"))
        assert updated.phone == "0809 999 0000"

        with pytest.raises(ValidationError) as exc:
            service.update_guest(guest.id, GuestUpdate(full_name="Someone Else"))
        assert set(exc.value.fields) == {"full_name"}
        db_session.refresh(guest)
        assert guest.full_name == "Funke Adeyemi"

    def test_unchanged_values_allowed_when_locked(self, db_session):
        guest = _guest(db_session)
        _stay(db_session, guest, BookingStatus.CHECKED_OUT)
        updated = GuestService(db_session, lambda e: None).update_guest(
            guest.id, GuestUpdate(full_name="Funke Adeyemi", email="new@example.com")
        )
        assert updated.email == "new@example.com"

    def test_unpaid_checkout_does_not_lock(self, db_session):
        guest = _guest(db_session)
        _stay(db_session, guest, BookingStatus.CHECKED_OUT, paid=Decimal("20000"))
        assert not GuestService(db_session).is_locked(guest.id)

    def test_in_house_guest_not_locked(self, db_session):
        guest = _guest(db_session)
        _stay(db_session, guest, BookingStatus.CHECKED_IN)
        assert not GuestService(db_session).is_locked(guest.id)
