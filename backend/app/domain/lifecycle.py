"""
app/domain/lifecycle.py

房间与预订的生命周期状态机

房间：
    available -> reserved | occupied | maintenance | cleaning
    cleaning  -> available | reserved
    maintenance -> available
    occupied  -> cleaning           (退房)
    reserved  -> occupied | available

预订：
    pending -> confirmed -> checked_in -> checked_out
    pending | confirmed -> cancelled
"""
from typing import List, Optional

from core.engine.state_machine import (
    InvalidTransition, StateMachine, StateMachineConfig, StateTransition, triggers_between,
)
from app.errors import TransitionError
from app.models.ontology import BookingStatus, RoomStatus


class RoomTrigger:
    RESERVE = "reserve"
    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"
    RELEASE = "release"
    START_MAINTENANCE = "start_maintenance"
    START_CLEANING = "start_cleaning"
    FINISH_SERVICING = "finish_servicing"


class BookingTrigger:
    CONFIRM = "confirm"
    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"
    CANCEL = "cancel"


# 前台手动改房态只允许这些动作；占用与预留只能通过预订操作产生
SERVICING_TRIGGERS = (
    RoomTrigger.START_MAINTENANCE,
    RoomTrigger.START_CLEANING,
    RoomTrigger.FINISH_SERVICING,
)

_A = RoomStatus.AVAILABLE.value
_O = RoomStatus.OCCUPIED.value
_R = RoomStatus.RESERVED.value
_M = RoomStatus.MAINTENANCE.value
_C = RoomStatus.CLEANING.value

ROOM_LIFECYCLE = StateMachineConfig(
    name="Room",
    states=[s.value for s in RoomStatus],
    initial_state=_A,
    transitions=[
        StateTransition(_A, _R, RoomTrigger.RESERVE),
        StateTransition(_C, _R, RoomTrigger.RESERVE),
        StateTransition(_A, _O, RoomTrigger.CHECK_IN),
        StateTransition(_R, _O, RoomTrigger.CHECK_IN),
        StateTransition(_R, _A, RoomTrigger.RELEASE),
        StateTransition(_O, _C, RoomTrigger.CHECK_OUT),
        StateTransition(_A, _M, RoomTrigger.START_MAINTENANCE),
        StateTransition(_A, _C, RoomTrigger.START_CLEANING),
        StateTransition(_C, _A, RoomTrigger.FINISH_SERVICING),
        StateTransition(_M, _A, RoomTrigger.FINISH_SERVICING),
    ],
)

BOOKING_LIFECYCLE = StateMachineConfig(
    name="Booking",
    states=[s.value for s in BookingStatus],
    initial_state=BookingStatus.PENDING.value,
    final_states=[BookingStatus.CHECKED_OUT.value, BookingStatus.CANCELLED.value],
    transitions=[
        StateTransition("pending", "confirmed", BookingTrigger.CONFIRM),
        StateTransition("confirmed", "checked_in", BookingTrigger.CHECK_IN),
        StateTransition("checked_in", "checked_out", BookingTrigger.CHECK_OUT),
        StateTransition("pending", "cancelled", BookingTrigger.CANCEL),
        StateTransition("confirmed", "cancelled", BookingTrigger.CANCEL),
    ],
)


def _value(status) -> str:
    return status.value if hasattr(status, "value") else str(status)


def room_sources(trigger: str) -> List[RoomStatus]:
    """能执行 trigger 的房间状态（用于条件更新）"""
    return [RoomStatus(t.from_state) for t in ROOM_LIFECYCLE.transitions if t.trigger == trigger]


def next_room_status(current, trigger: str) -> RoomStatus:
    """
    计算房间执行 trigger 后的状态

    Raises:
        TransitionError: 当前状态下不允许该动作
    """
    machine = StateMachine(ROOM_LIFECYCLE, state=_value(current))
    try:
        return RoomStatus(machine.fire(trigger))
    except InvalidTransition:
        raise TransitionError("room", _value(current), trigger)


def next_booking_status(current, trigger: str) -> BookingStatus:
    """
    计算预订执行 trigger 后的状态

    Raises:
        TransitionError: 当前状态下不允许该动作
    """
    machine = StateMachine(BOOKING_LIFECYCLE, state=_value(current))
    try:
        return BookingStatus(machine.fire(trigger))
    except InvalidTransition:
        raise TransitionError("booking", _value(current), trigger)


def servicing_trigger(current, target) -> Optional[str]:
    """手动改房态时，从 current 到 target 对应的维修/清洁动作"""
    triggers = triggers_between(ROOM_LIFECYCLE, _value(current), _value(target), SERVICING_TRIGGERS)
    return triggers[0] if triggers else None
