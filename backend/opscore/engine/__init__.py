"""
opscore/engine - 核心引擎模块

包含框架的核心引擎组件：
- event_bus: 事件总线（发布/订阅，处理器异步隔离执行）
- state_machine: 状态转换规则引擎（无状态规则表评估）

使用方式:
    >>> from opscore.engine import EventBus, Event
    >>> from opscore.engine import TransitionEngine, TransitionRule
"""

# 事件总线
from opscore.engine.event_bus import (
    EventId,
    CorrelationId,
    EventHandler,
    Event,
    PublishResult,
    EventBusStatistics,
    EventBus,
)

# 状态转换引擎
from opscore.engine.state_machine import (
    NO_CHANGE_REASON,
    TransitionRule,
    TransitionCheck,
    TransitionEngine,
)

__all__ = [
    "EventId",
    "CorrelationId",
    "EventHandler",
    "Event",
    "PublishResult",
    "EventBusStatistics",
    "EventBus",
    "NO_CHANGE_REASON",
    "TransitionRule",
    "TransitionCheck",
    "TransitionEngine",
]
