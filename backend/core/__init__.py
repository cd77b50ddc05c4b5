"""
core - 领域无关的框架层

包含：
- engine: 状态机引擎（状态转换表与校验）
- security: 认证会话上下文与访问控制判定

使用方式:
    >>> from core.engine.state_machine import StateMachine, StateMachineConfig
    >>> from core.security import AuthSession, evaluate_access
"""
