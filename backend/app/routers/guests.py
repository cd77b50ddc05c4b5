"""
客人管理路由
"""
from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.errors import NotFoundError
from app.models.ontology import GuestType
from app.models.schemas import GuestUpdate, GuestResponse
from app.services.guest_service import GuestService
from app.services.view_cache import view_cache, GUESTS
from app.security.auth import require_reception
from core.security.context import AuthSession

router = APIRouter(prefix="/guests", tags=["客人管理"])


@router.get("", response_model=List[GuestResponse])
def list_guests(
    search: Optional[str] = None,
    guest_type: Optional[GuestType] = None,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_reception)
):
    """获取客人列表"""
    service = GuestService(db)
    return view_cache.get_or_load(
        GUESTS,
        (search or "", guest_type.value if guest_type else None),
        lambda: [GuestResponse.model_validate(g) for g in service.get_guests(search, guest_type)],
    )


@router.get("/{guest_id}", response_model=GuestResponse)
def get_guest(
    guest_id: int,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_reception)
):
    """获取客人详情"""
    guest = GuestService(db).get_guest(guest_id)
    if not guest:
        raise NotFoundError("Guest", guest_id)
    return guest


@router.put("/{guest_id}", response_model=GuestResponse)
def update_guest(
    guest_id: int,
    data: GuestUpdate,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_reception)
):
    """更新客人信息（已结清预订的客人只能改联系方式）"""
    return GuestService(db).update_guest(guest_id, data)
