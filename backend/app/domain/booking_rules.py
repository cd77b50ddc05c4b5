"""
app/domain/booking_rules.py

预订计算规则：晚数、总价、预订号、房态点击动作
"""
import math
import random
from datetime import date, datetime, time, UTC
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

from app.models.ontology import RoomStatus

# 可以接受新预订的房态
RESERVABLE_ROOM_STATUSES = (RoomStatus.AVAILABLE, RoomStatus.CLEANING)

# 可以办理散客入住的房态
WALK_IN_ROOM_STATUSES = (RoomStatus.AVAILABLE,)

BOOKING_REF_PREFIX = "VPH"

SECONDS_PER_DAY = 24 * 60 * 60


def _as_datetime(value: Union[date, datetime]) -> datetime:
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    return datetime.combine(value, time.min)


def count_nights(start: Union[date, datetime], end: Union[date, datetime]) -> int:
    """
    晚数 = 相差天数向上取整，最少 1 晚

    >>> count_nights(date(2024, 1, 1), date(2024, 1, 4))
    3
    >>> count_nights(datetime(2024, 1, 1, 15, 0), date(2024, 1, 4))
    3
    """
    delta = _as_datetime(end) - _as_datetime(start)
    return max(1, math.ceil(delta.total_seconds() / SECONDS_PER_DAY))


def compute_total(nights: int, base_rate) -> Decimal:
    """总价 = 晚数 × 房价"""
    amount = Decimal(nights) * Decimal(str(base_rate))
    return amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def generate_booking_ref(now: Optional[datetime] = None, rng: Optional[random.Random] = None) -> str:
    """预订号：VPH-YYMMDD-NNNN（UTC 日期 + 4 位随机数）"""
    now = now or datetime.now(UTC)
    rng = rng or random
    return f"{BOOKING_REF_PREFIX}-{now.strftime('%y%m%d')}-{rng.randint(0, 9999):04d}"


def action_for_room_click(status) -> Optional[str]:
    """点击房间：只有空闲房间会打开入住流程，其余状态不做处理"""
    if RoomStatus(status) == RoomStatus.AVAILABLE:
        return "check_in"
    return None
