"""
房间管理路由
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.database import get_db
from app.errors import NotFoundError
from app.models.ontology import RoomStatus
from app.models.schemas import (
    RoomCreate, RoomUpdate, RoomStatusUpdate, RoomResponse, RoomClickResponse
)
from app.services.room_service import RoomService
from app.services.view_cache import view_cache, ROOMS
from app.security.auth import current_user_id, require_login, require_manager, require_reception
from core.security.context import AuthSession

router = APIRouter(prefix="/rooms", tags=["房间管理"])


@router.get("", response_model=List[RoomResponse])
def list_rooms(
    status: Optional[List[RoomStatus]] = Query(None),
    floor: Optional[int] = None,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_login)
):
    """获取房间列表（status 可传多个）"""
    statuses = sorted({s.value for s in status or []})
    service = RoomService(db)
    return view_cache.get_or_load(
        ROOMS,
        (tuple(statuses), floor),
        lambda: [RoomResponse.model_validate(r) for r in service.get_rooms([RoomStatus(s) for s in statuses], floor)],
    )


@router.get("/{room_id}", response_model=RoomResponse)
def get_room(
    room_id: int,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_login)
):
    """获取房间详情"""
    room = RoomService(db).get_room(room_id)
    if not room:
        raise NotFoundError("Room", room_id)
    return room


@router.post("", response_model=RoomResponse, status_code=201)
def create_room(
    data: RoomCreate,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_manager)
):
    """创建房间"""
    return RoomService(db).create_room(data)


@router.put("/{room_id}", response_model=RoomResponse)
def update_room(
    room_id: int,
    data: RoomUpdate,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_manager)
):
    """更新房间信息"""
    return RoomService(db).update_room(room_id, data)


@router.put("/{room_id}/status", response_model=RoomResponse)
def update_room_status(
    room_id: int,
    data: RoomStatusUpdate,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_reception)
):
    """维修/清洁房态变更"""
    return RoomService(db).change_status(room_id, data.status, current_user_id(session))


@router.post("/{room_id}/click", response_model=RoomClickResponse)
def click_room(
    room_id: int,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_reception)
):
    """点击房态图中的房间：空闲房间返回 check_in，其余无动作"""
    return RoomService(db).click_room(room_id)
