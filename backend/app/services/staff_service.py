"""
员工服务
员工档案维护、部门角色分配、登录认证
"""
from typing import List, Optional, Callable, Iterable
import logging
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import or_
from app.errors import NotFoundError
from app.models.ontology import User, StaffProfile, UserRole, DepartmentRole
from app.models.schemas import StaffProfileUpdate
from app.security.auth import verify_password
from app.services.event_bus import event_bus, Event, make_event
from app.services.operation import Operation
from app.models.events import EventType, StaffRolesChangedData
from core.security.context import Identity

logger = logging.getLogger(__name__)


class StaffService:
    """员工服务"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None,
                 atomic: Optional[bool] = None):
        self.db = db
        self._publish_event = event_publisher or event_bus.publish
        self._atomic = atomic

    # ============== 认证 ==============

    def authenticate(self, email: str, password: str) -> Optional[User]:
        """验证登录；账号不存在、已停用或密码错误都返回 None"""
        user = self.db.query(User).filter(User.email == email.lower()).first()
        if not user or not user.is_active:
            return None
        if not verify_password(password, user.password_hash):
            return None
        return user

    def get_user(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_roles(self, user_id: int) -> List[str]:
        """用户当前的部门角色"""
        rows = self.db.query(UserRole.role).filter(UserRole.user_id == user_id).all()
        return sorted(DepartmentRole(row[0]).value for row in rows)

    def load_identity(self, user_id: int) -> Optional[Identity]:
        """加载身份和角色；账号不存在或已停用返回 None"""
        user = self.get_user(user_id)
        if not user or not user.is_active:
            return None
        return Identity(
            user_id=user.id,
            email=user.email,
            roles=frozenset(self.get_roles(user.id)),
            full_name=user.profile.full_name if user.profile else None,
        )

    # ============== 员工档案 ==============

    def get_staff(self, search: Optional[str] = None, active_only: bool = False) -> List[StaffProfile]:
        """员工列表（含账号与角色）"""
        query = self.db.query(StaffProfile).options(
            joinedload(StaffProfile.user).joinedload(User.roles)
        )
        if search:
            pattern = f"%{search}%"
            query = query.join(User).filter(or_(StaffProfile.full_name.like(pattern), User.email.like(pattern)))
        if active_only:
            query = query.filter(StaffProfile.is_active.is_(True))
        return query.order_by(StaffProfile.full_name).all()

    def get_profile(self, profile_id: int) -> StaffProfile:
        profile = self.db.query(StaffProfile).filter(StaffProfile.id == profile_id).first()
        if not profile:
            raise NotFoundError("StaffProfile", profile_id)
        return profile

    def get_staff_detail(self, profile: StaffProfile) -> dict:
        return {
            "id": profile.id,
            "user_id": profile.user_id,
            "email": profile.user.email,
            "full_name": profile.full_name,
            "phone": profile.phone,
            "hire_date": profile.hire_date,
            "is_active": bool(profile.is_active),
            "avatar_url": profile.avatar_url,
            "roles": profile.user.role_names,
        }

    def update_profile(self, profile_id: int, data: StaffProfileUpdate,
                       changed_by: Optional[int] = None) -> StaffProfile:
        """更新员工档案（姓名、电话、入职日期、在职状态）"""
        profile = self.get_profile(profile_id)
        update_data = data.model_dump(exclude_unset=True)

        def _apply():
            for key, value in update_data.items():
                if value is None and key in ("full_name", "is_active"):
                    continue
                setattr(profile, key, value)
            # 档案停用即账号停用：登录和已签发的 token 都随之失效
            if update_data.get("is_active") is not None:
                profile.user.is_active = update_data["is_active"]

        Operation(self.db, "update_staff_profile", atomic=self._atomic).step("update_profile", _apply).run()
        self.db.refresh(profile)

        self._publish_event(make_event(
            EventType.STAFF_UPDATED, {"profile_id": profile.id, "changed_by": changed_by}, "staff_service"
        ))
        return profile

    # ============== 角色分配 ==============

    def replace_roles(self, user_id: int, roles: Iterable[DepartmentRole],
                      changed_by: Optional[int] = None) -> List[str]:
        """
        整体替换用户角色：先删除全部，再插入新集合（可为空）

        非原子模式下插入失败时，用户会暂时没有任何角色（PartialOperationError）
        """
        user = self.get_user(user_id)
        if not user:
            raise NotFoundError("User", user_id)

        new_roles = list(dict.fromkeys(DepartmentRole(r) for r in roles))

        def _delete_roles():
            return self.db.query(UserRole).filter(UserRole.user_id == user_id).delete(
                synchronize_session=False
            )

        def _insert_roles():
            for role in new_roles:
                self.db.add(UserRole(user_id=user_id, role=role))

        op = Operation(self.db, "replace_roles", atomic=self._atomic, event_publisher=self._publish_event)
        op.step("delete_roles", _delete_roles)
        if new_roles:
            op.step("insert_roles", _insert_roles)
        op.run()
        self.db.expire(user, ["roles"])

        saved = self.get_roles(user_id)
        logger.info(f"Roles for user {user_id} replaced with {saved or 'none'} by {changed_by}")
        self._publish_event(make_event(
            EventType.STAFF_ROLES_CHANGED,
            StaffRolesChangedData(user_id=user_id, roles=saved, changed_by=changed_by).to_dict(),
            "staff_service",
        ))
        return saved
