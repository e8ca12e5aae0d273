"""
活动日志处理器

订阅全部事件类型，保留最近的活动记录，便于排查和运营查看。
"""
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple
import logging
import threading

from opscore.engine.event_bus import Event
from motel.models.events import EventType

logger = logging.getLogger(__name__)


class ActivityLogHandlers:
    """活动日志"""

    def __init__(self, max_entries: int = 500):
        self._entries: Deque[Dict[str, Any]] = deque(maxlen=max_entries)
        self._lock = threading.Lock()

    def record(self, event: Event) -> None:
        payload = event.data.to_dict() if hasattr(event.data, "to_dict") else event.data
        entry = {
            "event_id": event.event_id,
            "event_type": event.event_type,
            "timestamp": event.timestamp.isoformat(),
            "source": event.source,
            "correlation_id": event.correlation_id,
            "data": payload,
        }
        with self._lock:
            self._entries.append(entry)
        logger.info(f"[activity] {event.event_type} {event.event_id}")

    def recent(self, event_type: Optional[str] = None, limit: int = 50) -> List[Dict[str, Any]]:
        """最近的活动（新的在前）"""
        with self._lock:
            entries = list(self._entries)
        if event_type:
            entries = [e for e in entries if e["event_type"] == event_type]
        return list(reversed(entries))[:limit]

    def handler_table(self) -> List[Tuple[EventType, Callable[[Event], None]]]:
        return [(event_type, self.record) for event_type in EventType]
