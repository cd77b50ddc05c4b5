"""
core/engine/state_machine.py

状态机引擎 - 状态转换表与转换校验
"""
from typing import Dict, List, Any, Optional, Callable, Iterable
from dataclasses import dataclass, field
import logging
import time

logger = logging.getLogger(__name__)


class InvalidTransition(Exception):
    """当前状态下不存在该触发动作的转换"""

    def __init__(self, machine: str, state: str, trigger: str):
        self.machine = machine
        self.state = state
        self.trigger = trigger
        super().__init__(f"{machine}: no '{trigger}' transition from '{state}'")


@dataclass
class StateTransition:
    """
    状态转换定义

    Attributes:
        from_state: 源状态
        to_state: 目标状态
        trigger: 触发动作
        condition: 可选的转换条件
    """

    from_state: str
    to_state: str
    trigger: str
    condition: Optional[Callable[[Dict[str, Any]], bool]] = None

    def is_allowed(self, context: Dict[str, Any]) -> bool:
        """检查转换是否被允许"""
        if self.condition is None:
            return True
        try:
            return self.condition(context)
        except Exception as e:
            logger.error(f"Error checking transition condition: {e}")
            return False


@dataclass
class StateMachineConfig:
    """
    状态机配置

    Attributes:
        name: 状态机名称
        states: 所有状态的列表
        transitions: 转换列表
        initial_state: 初始状态
        final_states: 终止状态（没有出边）
    """

    name: str
    states: List[str]
    transitions: List[StateTransition]
    initial_state: str
    final_states: List[str] = field(default_factory=list)

    def __post_init__(self):
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(f"{self.name}: transition {t.from_state} -> {t.to_state} uses unknown state")
        if self.initial_state not in self.states:
            raise ValueError(f"{self.name}: unknown initial state {self.initial_state}")


@dataclass
class StateMachineSnapshot:
    """
    状态机快照

    Attributes:
        current_state: 转换后的状态
        previous_state: 转换前的状态
        transition: 触发的转换
        timestamp: 快照时间
    """

    current_state: str
    previous_state: str
    transition: Optional[StateTransition]
    timestamp: float


class StateMachine:
    """
    状态机引擎

    特性：
    - 状态转换验证
    - 按触发动作执行转换
    - 历史记录

    Example:
        >>> machine = StateMachine(ROOM_LIFECYCLE, state="available")
        >>> if machine.can_transition_to("occupied", "check_in"):
        ...     machine.fire("check_in")
    """

    def __init__(self, config: StateMachineConfig, state: Optional[str] = None):
        self._config = config
        self._current_state = state if state is not None else config.initial_state
        if self._current_state not in config.states:
            raise ValueError(f"{config.name}: unknown state {self._current_state}")
        self._history: List[StateMachineSnapshot] = []
        self._transition_map: Dict[str, Dict[str, StateTransition]] = {}

        # 构建转换映射: (from_state, trigger) -> transition
        for t in config.transitions:
            if t.from_state not in self._transition_map:
                self._transition_map[t.from_state] = {}
            self._transition_map[t.from_state][t.trigger] = t

    @property
    def current_state(self) -> str:
        """获取当前状态"""
        return self._current_state

    @property
    def config(self) -> StateMachineConfig:
        """获取状态机配置"""
        return self._config

    @property
    def is_final(self) -> bool:
        return self._current_state in self._config.final_states

    def available_triggers(self, context: Optional[Dict[str, Any]] = None) -> List[str]:
        """当前状态下可用的触发动作"""
        transitions = self._transition_map.get(self._current_state, {})
        return [trigger for trigger, t in transitions.items() if t.is_allowed(context or {})]

    def target_of(self, trigger: str) -> Optional[str]:
        """触发动作对应的目标状态，不存在时返回 None"""
        transition = self._transition_map.get(self._current_state, {}).get(trigger)
        return transition.to_state if transition else None

    def can_transition_to(self, target_state: str, trigger: str, context: Optional[Dict[str, Any]] = None) -> bool:
        """
        检查是否可以转换到目标状态

        Args:
            target_state: 目标状态
            trigger: 触发动作
            context: 可选的上下文数据

        Returns:
            True 如果转换被允许
        """
        if target_state not in self._config.states:
            return False

        transitions = self._transition_map.get(self._current_state, {})
        transition = transitions.get(trigger)

        if transition is None or transition.to_state != target_state:
            return False

        return transition.is_allowed(context or {})

    def fire(self, trigger: str, context: Optional[Dict[str, Any]] = None) -> str:
        """
        按触发动作执行转换

        Returns:
            转换后的状态

        Raises:
            InvalidTransition: 当前状态下没有该触发动作，或条件不满足
        """
        target = self.target_of(trigger)
        if target is None or not self.can_transition_to(target, trigger, context):
            logger.warning(
                f"Invalid transition: {self._config.name} {self._current_state} (trigger: {trigger})"
            )
            raise InvalidTransition(self._config.name, self._current_state, trigger)

        transition = self._transition_map[self._current_state][trigger]
        previous_state = self._current_state
        self._current_state = target
        self._history.append(StateMachineSnapshot(
            current_state=target,
            previous_state=previous_state,
            transition=transition,
            timestamp=time.time(),
        ))

        logger.debug(f"State transition: {self._config.name} {previous_state} -> {target} (trigger: {trigger})")
        return target

    def transition_to(self, target_state: str, trigger: str, context: Optional[Dict[str, Any]] = None) -> bool:
        """
        执行状态转换

        Returns:
            True 如果转换成功
        """
        if not self.can_transition_to(target_state, trigger, context):
            logger.warning(
                f"Invalid transition: {self._current_state} -> {target_state} (trigger: {trigger})"
            )
            return False
        self.fire(trigger, context)
        return True

    def get_history(self) -> List[StateMachineSnapshot]:
        """获取转换历史"""
        return list(self._history)

    def reset(self, state: Optional[str] = None) -> None:
        """
        重置状态机

        Args:
            state: 要重置到的状态，如果为 None 则使用初始状态
        """
        self._current_state = state if state is not None else self._config.initial_state
        self._history.clear()


def triggers_between(config: StateMachineConfig, from_state: str, to_state: str,
                     allowed: Optional[Iterable[str]] = None) -> List[str]:
    """查找从 from_state 到 to_state 的触发动作（可限定在 allowed 范围内）"""
    allowed_set = set(allowed) if allowed is not None else None
    return [
        t.trigger for t in config.transitions
        if t.from_state == from_state and t.to_state == to_state
        and (allowed_set is None or t.trigger in allowed_set)
    ]


# 导出
__all__ = [
    "InvalidTransition",
    "StateTransition",
    "StateMachineConfig",
    "StateMachineSnapshot",
    "StateMachine",
    "triggers_between",
]
