"""
客人服务
管理 Guest 对象；关联已结清预订的客人只允许更正联系方式
"""
from typing import List, Optional, Callable
from sqlalchemy.orm import Session
from sqlalchemy import or_, desc
from app.errors import NotFoundError, ValidationError
from app.models.ontology import Guest, Booking, BookingStatus, GuestType
from app.models.schemas import GuestInput, GuestUpdate
from app.services.event_bus import event_bus, Event, make_event
from app.services.operation import Operation
from app.models.events import EventType

# 客人被锁定后仍可修改的字段
CONTACT_FIELDS = frozenset({"email", "phone"})


class GuestService:
    """客人服务"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None):
        self.db = db
        self._publish_event = event_publisher or event_bus.publish

    def get_guests(
        self,
        search: Optional[str] = None,
        guest_type: Optional[GuestType] = None,
        limit: int = 100
    ) -> List[Guest]:
        """获取客人列表"""
        query = self.db.query(Guest)

        if search:
            search_pattern = f"%{search}%"
            query = query.filter(
                or_(
                    Guest.full_name.like(search_pattern),
                    Guest.phone.like(search_pattern),
                    Guest.email.like(search_pattern)
                )
            )

        if guest_type:
            query = query.filter(Guest.guest_type == guest_type)

        return query.order_by(desc(Guest.created_at), desc(Guest.id)).limit(limit).all()

    def get_guest(self, guest_id: int) -> Optional[Guest]:
        """获取单个客人"""
        return self.db.query(Guest).filter(Guest.id == guest_id).first()

    def build_guest(self, data: GuestInput) -> Guest:
        """根据已校验的输入创建客人（只 add，不提交）"""
        guest = Guest(**data.model_dump())
        self.db.add(guest)
        return guest

    def is_locked(self, guest_id: int) -> bool:
        """客人是否关联了已结清的预订"""
        bookings = self.db.query(Booking).filter(
            Booking.guest_id == guest_id,
            Booking.status == BookingStatus.CHECKED_OUT,
        ).all()
        return any(b.is_settled for b in bookings)

    def update_guest(self, guest_id: int, data: GuestUpdate) -> Guest:
        """更新客人信息"""
        guest = self.get_guest(guest_id)
        if not guest:
            raise NotFoundError("Guest", guest_id)

        update_data = data.model_dump(exclude_unset=True)
        if "full_name" in update_data and update_data["full_name"] is None:
            raise ValidationError.for_field("full_name", "Name is required")

        if self.is_locked(guest_id):
            blocked = sorted(
                key for key, value in update_data.items()
                if key not in CONTACT_FIELDS and value != getattr(guest, key)
            )
            if blocked:
                raise ValidationError(
                    "Guest is linked to a settled booking; only contact details can be corrected",
                    {key: "Read-only after settlement" for key in blocked},
                )

        def _apply():
            for key, value in update_data.items():
                setattr(guest, key, value)

        Operation(self.db, "update_guest").step("update_guest", _apply).run()
        self.db.refresh(guest)

        self._publish_event(make_event(EventType.GUEST_UPDATED, {"guest_id": guest.id}, "guest_service"))
        return guest
