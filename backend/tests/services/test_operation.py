"""
Tests for app/services/operation.py
Covers: atomic rollback, per-step commit, partial failure reporting, storage error mapping
"""
import pytest
from decimal import Decimal
from sqlalchemy.exc import OperationalError

from app.errors import NotFoundError, PartialOperationError, PersistenceError
from app.models.ontology import Guest, Room, RoomStatus, RoomType
from app.services.operation import Operation


def _add_guest(db, name):
    def step():
        guest = Guest(full_name=name)
        db.add(guest)
        return guest
    return step


def _fail(exc):
    def step():
        raise exc
    return step


def _db_down():
    return OperationalError("INSERT", {}, Exception("database is locked"))


class TestAtomic:

    def test_all_steps_saved(self, db_session):
        results = (
            Operation(db_session, "add_guests", atomic=True)
            .step("first", _add_guest(db_session, "Ada Eze"))
            .step("second", _add_guest(db_session, "Bola Ade"))
            .run()
        )
        assert [g.full_name for g in results] == ["Ada Eze", "Bola Ade"]
        assert db_session.query(Guest).count() == 2

    def test_failure_rolls_back_everything(self, db_session):
        op = (
            Operation(db_session, "add_guests", atomic=True)
            .step("first", _add_guest(db_session, "Ada Eze"))
            .step("second", _fail(_db_down()))
        )
        with pytest.raises(PersistenceError) as exc:
            op.run()
        assert exc.value.details["step"] == "second"
        assert db_session.query(Guest).count() == 0

    def test_business_error_passes_through(self, db_session):
        op = Operation(db_session, "lookup", atomic=True).step("find", _fail(NotFoundError("Room", 9)))
        with pytest.raises(NotFoundError):
            op.run()

    def test_integrity_error_is_persistence_error(self, db_session):
        def duplicate_room():
            for _ in range(2):
                db_session.add(Room(room_number="201", floor=2, room_type=RoomType.STANDARD,
                                    base_rate=Decimal("50000"), status=RoomStatus.AVAILABLE))

        with pytest.raises(PersistenceError) as exc:
            Operation(db_session, "add_rooms", atomic=True).step("insert", duplicate_room).run()
        assert "conflicts" in exc.value.message
        assert db_session.query(Room).count() == 0


class TestNonAtomic:

    def test_each_step_committed(self, db_session):
        Operation(db_session, "add_guests", atomic=False).step("first", _add_guest(db_session, "Ada Eze")).run()
        assert db_session.query(Guest).count() == 1

    def test_first_step_failure_is_not_partial(self, db_session):
        events = []
        op = Operation(db_session, "add_guests", atomic=False, event_publisher=events.append)
        op.step("first", _fail(_db_down()))
        with pytest.raises(PersistenceError):
            op.run()
        assert events == []

    def test_later_failure_reports_partial_state(self, db_session):
        events = []
        op = (
            Operation(db_session, "add_guests", atomic=False, event_publisher=events.append)
            .step("first", _add_guest(db_session, "Ada Eze"))
            .step("second", _fail(_db_down()))
        )
        with pytest.raises(PartialOperationError) as exc:
            op.run()

        error = exc.value
        assert error.completed_steps == ["first"]
        assert error.failed_step == "second"
        assert error.to_dict()["error"]["details"]["operation"] == "add_guests"
        # 已提交的步骤不会回滚
        assert db_session.query(Guest).count() == 1

        # 发布 operation.partial，缓存视图据此失效
        assert [e.event_type for e in events] == ["operation.partial"]
        assert events[0].data["failed_step"] == "second"
