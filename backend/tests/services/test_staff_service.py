"""
Tests for app/services/staff_service.py
Covers: authenticate, load_identity, get_staff, update_profile, replace_roles
"""
import pytest
from datetime import date
from sqlalchemy.exc import OperationalError

from app.errors import NotFoundError, PartialOperationError, PersistenceError
from app.models.ontology import User, StaffProfile, UserRole, DepartmentRole
from app.models.schemas import StaffProfileUpdate
from app.security.auth import get_password_hash
from app.services.staff_service import StaffService
from core.security.access import AccessOutcome, evaluate_path
from core.security.context import AuthSession


# ── helpers ──────────────────────────────────────────────────────────

def _staff(db, email="ada@vph.test", roles=(DepartmentRole.RECEPTION,), name="Ada Lovelace", active=True):
    user = User(email=email, password_hash=get_password_hash("secret1"), is_active=active)
    db.add(user)
    db.flush()
    db.add(StaffProfile(user_id=user.id, full_name=name, hire_date=date(2023, 5, 1), is_active=active))
    for role in roles:
        db.add(UserRole(user_id=user.id, role=role))
    db.commit()
    return user


def _fail_on_call(real, nth):
    """第 nth 次调用时模拟存储故障"""
    calls = []

    def wrapper(*args, **kwargs):
        calls.append(1)
        if len(calls) == nth:
            raise OperationalError("INSERT INTO user_roles", {}, Exception("database is locked"))
        return real(*args, **kwargs)

    return wrapper


class TestAuthentication:

    def test_valid_credentials(self, db_session):
        user = _staff(db_session)
        assert StaffService(db_session).authenticate("ADA@vph.test", "secret1").id == user.id

    def test_wrong_password(self, db_session):
        _staff(db_session)
        assert StaffService(db_session).authenticate("ada@vph.test", "wrong") is None

    def test_inactive_user(self, db_session):
        _staff(db_session, active=False)
        assert StaffService(db_session).authenticate("ada@vph.test", "secret1") is None

    def test_load_identity(self, db_session):
        user = _staff(db_session, roles=(DepartmentRole.BAR, DepartmentRole.RESTAURANT))
        identity = StaffService(db_session).load_identity(user.id)
        assert identity.roles == frozenset({"bar", "restaurant"})
        assert identity.full_name == "Ada Lovelace"

    def test_load_identity_unknown_user(self, db_session):
        assert StaffService(db_session).load_identity(999) is None


class TestProfiles:

    def test_list_and_search(self, db_session):
        _staff(db_session)
        _staff(db_session, email="tunde@vph.test", name="Tunde Bakare", active=False)
        service = StaffService(db_session)

        assert [p.full_name for p in service.get_staff()] == ["Ada Lovelace", "Tunde Bakare"]
        assert [p.full_name for p in service.get_staff(search="tunde")] == ["Tunde Bakare"]
        assert [p.full_name for p in service.get_staff(active_only=True)] == ["Ada Lovelace"]

    def test_update_profile(self, db_session):
        user = _staff(db_session)
        events = []
        service = StaffService(db_session, events.append)

        profile = service.update_profile(user.profile.id, StaffProfileUpdate(phone="0803 111 2222"))

        assert profile.phone == "0803 111 2222"
        assert profile.full_name == "Ada Lovelace"
        assert service.get_staff_detail(profile)["roles"] == ["reception"]
        assert events[0].event_type == "staff.updated"

    def test_deactivating_profile_disables_account(self, db_session):
        user = _staff(db_session)
        service = StaffService(db_session, lambda e: None)

        service.update_profile(user.profile.id, StaffProfileUpdate(is_active=False))

        assert service.authenticate("ada@vph.test", "secret1") is None
        assert service.load_identity(user.id) is None

        service.update_profile(user.profile.id, StaffProfileUpdate(is_active=True))
        assert service.load_identity(user.id).email == "ada@vph.test"

    def test_unknown_profile(self, db_session):
        with pytest.raises(NotFoundError):
            StaffService(db_session).update_profile(42, StaffProfileUpdate(phone="123"))


class TestReplaceRoles:

    def test_replace_set(self, db_session):
        user = _staff(db_session)
        events = []
        saved = StaffService(db_session, events.append).replace_roles(
            user.id, [DepartmentRole.BAR, DepartmentRole.ACCOUNTS]
        )
        assert saved == ["accounts", "bar"]
        assert events[0].data["roles"] == ["accounts", "bar"]

    def test_empty_set_removes_all_access(self, db_session):
        user = _staff(db_session, roles=(DepartmentRole.MANAGER,))
        service = StaffService(db_session, lambda e: None)

        assert service.replace_roles(user.id, []) == []
        assert db_session.query(UserRole).filter(UserRole.user_id == user.id).count() == 0

        session = AuthSession().load(lambda: service.load_identity(user.id))
        assert evaluate_path(session, "/staff").outcome == AccessOutcome.UNAUTHORIZED
        assert evaluate_path(session, "/reception").outcome == AccessOutcome.UNAUTHORIZED
        assert evaluate_path(session, "/").allowed

    def test_unknown_user(self, db_session):
        with pytest.raises(NotFoundError):
            StaffService(db_session).replace_roles(404, [DepartmentRole.BAR])

    def test_atomic_insert_failure_keeps_old_roles(self, db_session, monkeypatch):
        user = _staff(db_session)
        service = StaffService(db_session, lambda e: None, atomic=True)

        # 第二次 flush 是插入新角色
        monkeypatch.setattr(db_session, "flush", _fail_on_call(db_session.flush, 2))
        with pytest.raises(PersistenceError):
            service.replace_roles(user.id, [DepartmentRole.BAR])
        monkeypatch.undo()

        assert service.get_roles(user.id) == ["reception"]

    def test_step_by_step_insert_failure_leaves_user_without_roles(self, db_session, monkeypatch):
        user = _staff(db_session)
        events = []
        service = StaffService(db_session, events.append, atomic=False)

        monkeypatch.setattr(db_session, "commit", _fail_on_call(db_session.commit, 2))
        with pytest.raises(PartialOperationError) as exc:
            service.replace_roles(user.id, [DepartmentRole.BAR])
        monkeypatch.undo()

        assert exc.value.completed_steps == ["delete_roles"]
        assert exc.value.failed_step == "insert_roles"
        assert service.get_roles(user.id) == []
        assert [e.event_type for e in events] == ["operation.partial"]
