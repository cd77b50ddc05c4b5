"""
Pytest 配置和共享 fixtures
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from datetime import date
from decimal import Decimal
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from app.database import Base, get_db
from app.models import ontology  # noqa
from app.models.ontology import (
    Room, RoomType, RoomStatus, User, StaffProfile, UserRole, DepartmentRole
)
from app.security.auth import get_password_hash, create_access_token
from app.services.event_bus import event_bus
from app.services.view_cache import view_cache
from app.main import app


@pytest.fixture(scope="function")
def db_engine():
    """创建内存数据库引擎"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """创建数据库会话"""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def _reset_shared_state():
    """缓存视图和事件总线是进程级单例，每个测试前后清空"""
    view_cache.clear()
    event_bus.clear_history()
    yield
    view_cache.clear()
    event_bus.clear_subscribers()
    event_bus.clear_history()


@pytest.fixture(scope="function")
def client(db_session):
    """创建测试客户端"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ============== 员工与认证 ==============

def make_staff(db, email, roles, full_name="Test Staff", password="123456", is_active=True):
    """创建账号 + 档案 + 角色"""
    user = User(email=email, password_hash=get_password_hash(password), is_active=is_active)
    db.add(user)
    db.flush()
    db.add(StaffProfile(user_id=user.id, full_name=full_name, hire_date=date(2024, 1, 15), is_active=is_active))
    for role in roles:
        db.add(UserRole(user_id=user.id, role=role))
    db.commit()
    db.refresh(user)
    return user


def token_for(user):
    return create_access_token(user.id, user.role_names)


@pytest.fixture
def staff_factory(db_session):
    """按需创建员工：staff_factory(email, roles, **kwargs)"""
    def factory(email, roles, **kwargs):
        return make_staff(db_session, email, roles, **kwargs)
    return factory


@pytest.fixture
def manager_user(db_session):
    return make_staff(db_session, "manager@vph.test", [DepartmentRole.MANAGER], "Grace Manager")


@pytest.fixture
def reception_user(db_session):
    return make_staff(db_session, "front@vph.test", [DepartmentRole.RECEPTION], "Ade Reception")


@pytest.fixture
def bar_user(db_session):
    return make_staff(db_session, "bar@vph.test", [DepartmentRole.BAR], "Tolu Bar")


@pytest.fixture
def accounts_user(db_session):
    return make_staff(db_session, "accounts@vph.test", [DepartmentRole.ACCOUNTS], "Kemi Accounts")


@pytest.fixture
def manager_auth_headers(manager_user):
    return {"Authorization": f"Bearer {token_for(manager_user)}"}


@pytest.fixture
def reception_auth_headers(reception_user):
    return {"Authorization": f"Bearer {token_for(reception_user)}"}


@pytest.fixture
def bar_auth_headers(bar_user):
    return {"Authorization": f"Bearer {token_for(bar_user)}"}


@pytest.fixture
def accounts_auth_headers(accounts_user):
    return {"Authorization": f"Bearer {token_for(accounts_user)}"}


# ============== 房间 ==============

def make_room(db, number="101", status=RoomStatus.AVAILABLE, base_rate=Decimal("80000"),
              room_type=RoomType.STANDARD, floor=1):
    room = Room(
        room_number=number, floor=floor, room_type=room_type,
        base_rate=base_rate, status=status, amenities=["wifi"]
    )
    db.add(room)
    db.commit()
    db.refresh(room)
    return room


@pytest.fixture
def room_factory(db_session):
    """按需创建房间：room_factory(number, status=..., **kwargs)"""
    def factory(number, **kwargs):
        return make_room(db_session, number, **kwargs)
    return factory


@pytest.fixture
def room_105(db_session):
    """105 房：空闲，房价 100000"""
    return make_room(db_session, "105", base_rate=Decimal("100000"), room_type=RoomType.DELUXE)


@pytest.fixture
def sample_room(db_session):
    return make_room(db_session, "101")


@pytest.fixture
def guest_payload():
    return {
        "full_name": "Chinedu Okafor",
        "email": "chinedu@example.com",
        "phone": "+234 803 555 0101",
        "id_type": "passport",
        "id_number": "A01234567",
        "guest_type": "individual",
    }
