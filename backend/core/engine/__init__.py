"""
core/engine - 核心引擎模块

- state_machine: 状态机引擎（状态转换）
"""
from core.engine.state_machine import (
    InvalidTransition,
    StateTransition,
    StateMachineConfig,
    StateMachineSnapshot,
    StateMachine,
    triggers_between,
)

__all__ = [
    "InvalidTransition",
    "StateTransition",
    "StateMachineConfig",
    "StateMachineSnapshot",
    "StateMachine",
    "triggers_between",
]
