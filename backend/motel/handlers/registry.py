"""
事件处理器注册

启动时按显式的注册表逐条 subscribe，不使用装饰器或反射。
"""
from typing import Callable, Iterable, List, Protocol, Tuple
import logging

from opscore.engine.event_bus import Event, EventBus
from motel.models.events import EventType

logger = logging.getLogger(__name__)

HandlerEntry = Tuple[str, Callable[[Event], None]]


class HandlerGroup(Protocol):
    def handler_table(self) -> List[Tuple[EventType, Callable[[Event], None]]]:
        ...


def build_handler_table(groups: Iterable[HandlerGroup]) -> List[HandlerEntry]:
    """汇总各处理器组的注册表（事件名使用字符串值）"""
    table: List[HandlerEntry] = []
    for group in groups:
        for event_type, handler in group.handler_table():
            table.append((EventType(event_type).value, handler))
    return table


def register_event_handlers(bus: EventBus, groups: Iterable[HandlerGroup]) -> List[HandlerEntry]:
    """
    注册所有事件处理器

    Returns:
        已注册的 (事件名, 处理器) 列表，用于 unregister_event_handlers
    """
    table = build_handler_table(groups)
    for event_name, handler in table:
        bus.subscribe(event_name, handler)

    orphaned = [et.value for et in EventType if not any(name == et.value for name, _ in table)]
    if orphaned:
        logger.warning(f"Events without handlers: {', '.join(orphaned)}")
    logger.info(f"Registered {len(table)} event handlers")
    return table


def unregister_event_handlers(bus: EventBus, table: Iterable[HandlerEntry]) -> None:
    """注销 register_event_handlers 注册的处理器"""
    for event_name, handler in table:
        bus.unsubscribe(event_name, handler)
    logger.info("Event handlers unregistered")
