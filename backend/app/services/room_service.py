"""
房间服务
管理 Room 对象：房间目录维护、维修/清洁房态变更
房态变更统一走生命周期状态机，并以条件更新写入（状态被并发修改时报冲突）
"""
from typing import List, Optional, Callable, Iterable
from datetime import datetime, UTC
import logging
from sqlalchemy.orm import Session
from app.errors import NotFoundError, RoomConflictError, TransitionError, ValidationError
from app.domain.lifecycle import next_room_status, servicing_trigger
from app.domain.booking_rules import action_for_room_click
from app.models.ontology import Room, RoomStatus
from app.models.schemas import RoomCreate, RoomUpdate
from app.services.event_bus import event_bus, Event, make_event
from app.services.operation import Operation
from app.models.events import EventType, RoomStatusChangedData

logger = logging.getLogger(__name__)


def apply_room_trigger(db: Session, room: Room, trigger: str) -> RoomStatus:
    """
    按触发动作修改房态（不提交）

    以当前读到的状态做条件更新；如果房态已被其他操作改动，
    更新命中 0 行，抛出 RoomConflictError

    Returns:
        新房态
    """
    old_status = RoomStatus(room.status)
    new_status = next_room_status(old_status, trigger)

    updated = db.query(Room).filter(
        Room.id == room.id,
        Room.status == old_status,
    ).update(
        {Room.status: new_status, Room.updated_at: datetime.now(UTC).replace(tzinfo=None)},
        synchronize_session=False,
    )
    if updated == 0:
        raise RoomConflictError(
            f"Room {room.room_number} is no longer {old_status.value}",
            {"room_id": room.id, "expected_status": old_status.value, "trigger": trigger},
        )

    db.expire(room, ["status", "updated_at"])
    logger.debug(f"Room {room.room_number}: {old_status.value} -> {new_status.value} ({trigger})")
    return new_status


class RoomService:
    """房间服务"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None):
        self.db = db
        # 支持依赖注入事件发布器，便于测试
        self._publish_event = event_publisher or event_bus.publish

    def get_rooms(self, statuses: Optional[Iterable[RoomStatus]] = None,
                  floor: Optional[int] = None) -> List[Room]:
        """获取房间列表（可按状态集合、楼层过滤）"""
        query = self.db.query(Room)
        statuses = list(statuses or [])
        if statuses:
            query = query.filter(Room.status.in_(statuses))
        if floor is not None:
            query = query.filter(Room.floor == floor)
        return query.order_by(Room.room_number).all()

    def get_room(self, room_id: int) -> Optional[Room]:
        """获取单个房间"""
        return self.db.query(Room).filter(Room.id == room_id).first()

    def require_room(self, room_id: int) -> Room:
        room = self.get_room(room_id)
        if not room:
            raise NotFoundError("Room", room_id)
        return room

    def get_room_by_number(self, room_number: str) -> Optional[Room]:
        """根据房间号获取房间"""
        return self.db.query(Room).filter(Room.room_number == room_number).first()

    def create_room(self, data: RoomCreate) -> Room:
        """创建房间"""
        if self.get_room_by_number(data.room_number):
            raise ValidationError.for_field("room_number", f"Room {data.room_number} already exists")

        room = Room(**data.model_dump(), status=RoomStatus.AVAILABLE)
        Operation(self.db, "create_room").step("insert_room", lambda: self.db.add(room)).run()
        self.db.refresh(room)

        self._publish_event(make_event(
            EventType.ROOM_CREATED, {"room_id": room.id, "room_number": room.room_number}, "room_service"
        ))
        return room

    def update_room(self, room_id: int, data: RoomUpdate) -> Room:
        """更新房间信息（房态不在这里修改）"""
        room = self.require_room(room_id)

        def _apply():
            for key, value in data.model_dump(exclude_unset=True).items():
                if value is None and key in ("room_type", "floor", "base_rate"):
                    continue
                setattr(room, key, list(value or []) if key == "amenities" else value)

        Operation(self.db, "update_room").step("update_room", _apply).run()
        self.db.refresh(room)

        self._publish_event(make_event(EventType.ROOM_UPDATED, {"room_id": room.id}, "room_service"))
        return room

    def change_status(self, room_id: int, target: RoomStatus, operator_id: Optional[int] = None) -> Room:
        """
        手动修改房态：开始维修、开始清洁、完成维修/清洁

        入住、预留由预订操作产生，这里不允许直接设置
        """
        room = self.require_room(room_id)
        old_status = RoomStatus(room.status)
        trigger = servicing_trigger(old_status, target)
        if trigger is None:
            raise TransitionError(
                "room", old_status.value, f"set_{RoomStatus(target).value}",
                f"Room {room.room_number} cannot change from {old_status.value} to {RoomStatus(target).value}",
            )

        Operation(self.db, "change_room_status").step(
            "update_room", lambda: apply_room_trigger(self.db, room, trigger)
        ).run()
        self.db.refresh(room)

        self._publish_event(make_event(
            EventType.ROOM_STATUS_CHANGED,
            RoomStatusChangedData(
                room_id=room.id,
                room_number=room.room_number,
                old_status=old_status.value,
                new_status=RoomStatus(room.status).value,
                trigger=trigger,
                changed_by=operator_id,
            ).to_dict(),
            "room_service",
        ))
        return room

    def click_room(self, room_id: int) -> dict:
        """点击房间：返回前端应打开的流程（只有空闲房间打开入住）"""
        room = self.require_room(room_id)
        return {
            "room_id": room.id,
            "status": room.status,
            "action": action_for_room_click(room.status),
        }

    def get_room_status_summary(self) -> dict:
        """各房态房间数"""
        summary = {status.value: 0 for status in RoomStatus}
        for room in self.db.query(Room).all():
            summary[RoomStatus(room.status).value] += 1
        return summary
