"""
opscore/engine/event_bus.py

框架级事件总线 - 内存级发布/订阅模式
发布方“发出即忘”：处理器在线程池中异步执行，彼此隔离，异常只记录不传播
"""
from typing import Any, Callable, Dict, List, Optional, Protocol, Set, Tuple
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field, replace
from datetime import datetime
from collections import deque
import logging
import threading
import uuid

logger = logging.getLogger(__name__)

# 类型别名
EventId = str
CorrelationId = str


def _generate_event_id() -> EventId:
    """生成唯一事件ID"""
    return f"{datetime.now().strftime('%Y%m%d%H%M%S')}_{uuid.uuid4().hex[:8]}"


def _handler_name(handler: Callable) -> str:
    return getattr(handler, "__qualname__", None) or getattr(handler, "__name__", None) or repr(handler)


class EventHandler(Protocol):
    """事件处理器协议"""

    def __call__(self, event: "Event") -> None:
        """处理事件"""
        ...


@dataclass(frozen=True)
class Event:
    """
    事件信封（不可变）

    Attributes:
        event_type: 事件类型（如 "suite.status.changed"）
        timestamp: 事件时间戳
        data: 事件数据（领域层的不可变载荷对象）
        source: 触发来源（服务名）
        event_id: 唯一事件ID
        correlation_id: 关联ID（用于事件链追踪）
    """

    event_type: str
    timestamp: datetime
    data: Any
    source: str = ""
    event_id: EventId = field(default_factory=_generate_event_id)
    correlation_id: Optional[CorrelationId] = None

    def with_correlation(self, parent_id: EventId) -> "Event":
        """
        创建带关联ID的新事件

        Args:
            parent_id: 父事件ID

        Returns:
            新的事件对象，correlation_id 设置为 parent_id
        """
        return replace(self, correlation_id=parent_id)


@dataclass
class PublishResult:
    """
    事件发布结果

    异步模式下计数会随处理器完成而更新，可用 wait() 等待全部处理器结束。

    Attributes:
        event_type: 事件类型
        event_id: 事件ID
        subscriber_count: 订阅者数量
        success_count: 成功处理的处理器数量
        failure_count: 失败的处理器数量
        errors: 处理器错误列表 (handler, exception) 元组
    """

    event_type: str
    event_id: EventId
    subscriber_count: int
    success_count: int = 0
    failure_count: int = 0
    errors: List[Tuple[Callable, Exception]] = field(default_factory=list)
    _futures: List[Future] = field(default_factory=list, repr=False, compare=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record_success(self) -> None:
        with self._lock:
            self.success_count += 1

    def record_failure(self, handler: Callable, error: Exception) -> None:
        with self._lock:
            self.failure_count += 1
            self.errors.append((handler, error))

    @property
    def done(self) -> bool:
        """所有处理器是否已结束"""
        return all(f.done() for f in self._futures)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        等待所有处理器结束

        Returns:
            True 如果在超时前全部完成
        """
        if not self._futures:
            return True
        _, not_done = wait(self._futures, timeout=timeout)
        return not not_done


@dataclass
class EventBusStatistics:
    """
    事件总线统计

    Attributes:
        total_published: 总发布事件数
        total_processed: 总处理成功数
        total_failed: 总处理失败数
        subscriber_count: 各事件类型的订阅者数量
    """

    total_published: int = 0
    total_processed: int = 0
    total_failed: int = 0
    subscriber_count: Dict[str, int] = field(default_factory=dict)


class EventBus:
    """
    框架级事件总线

    特性：
    - 内存级发布/订阅模式
    - 处理器按订阅顺序提交到线程池，各自独立运行
    - 处理器异常隔离（记录日志，不传播给发布方和其他处理器）
    - 同步模式：在 publish 内按订阅顺序直接执行（测试、脚本）
    - 事件历史记录（可配置大小）与统计信息

    Example:
        >>> bus = EventBus(synchronous=True)
        >>> def handler(event):
        ...     print(f"Received: {event.event_type}")
        >>> bus.subscribe("test.event", handler)
        >>> bus.publish(Event(event_type="test.event", timestamp=datetime.now(), data={}))

    Thread Safety:
        所有公共方法都是线程安全的。
    """

    def __init__(
        self,
        history_size: int = 100,
        max_workers: int = 4,
        synchronous: bool = False,
    ):
        """
        初始化事件总线

        Args:
            history_size: 事件历史记录最大条数
            max_workers: 异步模式下的处理线程数
            synchronous: True 时在 publish 调用线程内执行处理器
        """
        self._subscribers: Dict[str, List[EventHandler]] = {}
        self._event_history: deque[Event] = deque(maxlen=history_size)
        self._subscriber_lock = threading.RLock()

        # 统计信息
        self._stats = EventBusStatistics()
        self._stats_lock = threading.Lock()

        self._max_workers = max_workers
        self._synchronous = synchronous
        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()
        self._pending: Set[Future] = set()
        self._pending_lock = threading.Lock()

        self._history_size = history_size
        logger.info(f"EventBus initialized (synchronous={synchronous}, max_workers={max_workers})")

    @property
    def synchronous(self) -> bool:
        return self._synchronous

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers,
                    thread_name_prefix="event-bus",
                )
            return self._executor

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """
        订阅事件

        同一事件的多个处理器按订阅顺序分发；重复订阅同一处理器会被忽略。

        Args:
            event_type: 事件类型（如 "suite.status.changed"）
            handler: 处理函数，接收 Event 对象作为参数
        """
        with self._subscriber_lock:
            handlers = self._subscribers.setdefault(event_type, [])
            if handler not in handlers:
                handlers.append(handler)
                logger.info(f"Handler {_handler_name(handler)} subscribed to {event_type}")

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        """
        取消订阅

        Args:
            event_type: 事件类型
            handler: 要取消的处理函数
        """
        with self._subscriber_lock:
            if event_type in self._subscribers and handler in self._subscribers[event_type]:
                self._subscribers[event_type].remove(handler)
                logger.info(f"Handler {_handler_name(handler)} unsubscribed from {event_type}")

    def _dispatch(self, handler: EventHandler, event: Event, result: PublishResult) -> None:
        """执行单个处理器并隔离异常"""
        try:
            handler(event)
        except Exception as e:
            result.record_failure(handler, e)
            with self._stats_lock:
                self._stats.total_failed += 1
            logger.error(
                f"Event handler {_handler_name(handler)} error for {event.event_type}: {e}",
                exc_info=True,
            )
        else:
            result.record_success()
            with self._stats_lock:
                self._stats.total_processed += 1

    def _track(self, future: Future) -> None:
        with self._pending_lock:
            self._pending.add(future)
        future.add_done_callback(self._untrack)

    def _untrack(self, future: Future) -> None:
        with self._pending_lock:
            self._pending.discard(future)

    def publish(self, event: Event) -> PublishResult:
        """
        发布事件（发出即忘）

        处理器异常不会影响发布方和其他处理器。

        Args:
            event: 要发布的事件对象

        Returns:
            PublishResult 对象；异步模式下计数随处理器完成更新
        """
        self._event_history.append(event)

        # 在锁内复制处理器列表，避免长时间持锁
        with self._subscriber_lock:
            handlers = list(self._subscribers.get(event.event_type, []))

        with self._stats_lock:
            self._stats.total_published += 1

        result = PublishResult(
            event_type=event.event_type,
            event_id=event.event_id,
            subscriber_count=len(handlers),
        )

        if not handlers:
            logger.debug(f"No handlers for {event.event_type}")
            return result

        logger.info(f"Publishing {event.event_type} to {len(handlers)} handlers")

        if self._synchronous:
            for handler in handlers:
                self._dispatch(handler, event, result)
            return result

        executor = self._get_executor()
        for handler in handlers:
            future = executor.submit(self._dispatch, handler, event, result)
            result._futures.append(future)
            self._track(future)
        return result

    def publish_many(self, events: List[Event]) -> List[PublishResult]:
        """
        批量发布事件

        Args:
            events: 事件列表

        Returns:
            每个事件的 PublishResult 列表
        """
        return [self.publish(event) for event in events]

    def drain(self, timeout: Optional[float] = None) -> bool:
        """
        等待所有在途处理器结束

        Returns:
            True 如果在超时前全部完成
        """
        with self._pending_lock:
            pending = list(self._pending)
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def shutdown(self, wait_for_handlers: bool = True) -> None:
        """关闭处理线程池（再次发布时会重新创建）"""
        with self._executor_lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait_for_handlers)
            logger.info("EventBus executor shut down")

    def get_history(
        self, event_type: Optional[str] = None, limit: int = 50
    ) -> List[Event]:
        """
        获取事件历史（用于调试）

        Args:
            event_type: 可选，筛选特定类型的事件
            limit: 返回数量限制

        Returns:
            事件列表（最新的在前）
        """
        history = list(self._event_history)
        if event_type:
            history = [e for e in history if e.event_type == event_type]
        return list(reversed(history))[:limit]

    def get_subscribers(
        self, event_type: Optional[str] = None
    ) -> Dict[str, List[str]]:
        """
        获取订阅者信息（用于调试）

        Args:
            event_type: 可选，筛选特定类型

        Returns:
            事件类型到处理器名称列表的映射
        """
        with self._subscriber_lock:
            if event_type:
                handlers = self._subscribers.get(event_type, [])
                return {event_type: [_handler_name(h) for h in handlers]}
            return {
                et: [_handler_name(h) for h in handlers]
                for et, handlers in self._subscribers.items()
                if handlers
            }

    def get_statistics(self) -> EventBusStatistics:
        """
        获取事件总线统计

        Returns:
            EventBusStatistics 对象的副本
        """
        with self._stats_lock:
            stats = EventBusStatistics(
                total_published=self._stats.total_published,
                total_processed=self._stats.total_processed,
                total_failed=self._stats.total_failed,
            )

        with self._subscriber_lock:
            stats.subscriber_count = {
                et: len(handlers) for et, handlers in self._subscribers.items()
            }

        return stats

    def clear_subscribers(self) -> None:
        """
        清空所有订阅（用于测试）

        Warning:
            此方法会清空所有订阅，仅应在测试环境中使用。
        """
        with self._subscriber_lock:
            self._subscribers.clear()
        logger.info("All subscribers cleared")

    def clear_history(self) -> None:
        """清空事件历史"""
        self._event_history.clear()

    def reset_statistics(self) -> None:
        """重置统计信息（用于测试）"""
        with self._stats_lock:
            self._stats = EventBusStatistics()

    def clear(self) -> None:
        """
        完全清空事件总线（用于测试）

        Warning:
            此方法会清空所有数据，仅应在测试环境中使用。
        """
        self.clear_subscribers()
        self.clear_history()
        self.reset_statistics()


# 导出
__all__ = [
    "EventId",
    "CorrelationId",
    "EventHandler",
    "Event",
    "PublishResult",
    "EventBusStatistics",
    "EventBus",
]
