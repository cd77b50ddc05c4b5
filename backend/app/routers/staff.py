"""
员工管理路由（仅经理）
"""
from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.schemas import StaffProfileUpdate, StaffResponse, RoleReplace
from app.services.staff_service import StaffService
from app.services.view_cache import view_cache, STAFF
from app.security.auth import current_user_id, require_manager
from core.security.context import AuthSession

router = APIRouter(prefix="/staff", tags=["员工管理"])


@router.get("", response_model=List[StaffResponse])
def list_staff(
    search: Optional[str] = None,
    active_only: bool = False,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_manager)
):
    """员工列表（含角色）"""
    service = StaffService(db)
    return view_cache.get_or_load(
        STAFF,
        (search or "", active_only),
        lambda: [StaffResponse(**service.get_staff_detail(p)) for p in service.get_staff(search, active_only)],
    )


@router.put("/{profile_id}", response_model=StaffResponse)
def update_staff(
    profile_id: int,
    data: StaffProfileUpdate,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_manager)
):
    """更新员工档案"""
    service = StaffService(db)
    profile = service.update_profile(profile_id, data, current_user_id(session))
    return StaffResponse(**service.get_staff_detail(profile))


@router.put("/{user_id}/roles")
def replace_roles(
    user_id: int,
    data: RoleReplace,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_manager)
):
    """整体替换员工角色（可为空）"""
    roles = StaffService(db).replace_roles(user_id, data.roles, current_user_id(session))
    return {"user_id": user_id, "roles": roles}
