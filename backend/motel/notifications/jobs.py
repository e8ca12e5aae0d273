"""
通知作业数据

作业数据以 JSON 字典形式存入队列，枚举存其 value。
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from motel.models.enums import NotificationPriority, NotificationType

QUEUE_NAME = "notifications"

# 作业名
JOB_SEND = "send"
JOB_SEND_BULK = "send-bulk"
JOB_CLEANUP = "cleanup"


@dataclass(frozen=True)
class NotificationJobData:
    """单条通知作业"""
    recipient_id: int
    type: NotificationType
    title: str
    message: str
    priority: Optional[NotificationPriority] = None  # 为空时按 NORMAL 处理
    related_entity_type: Optional[str] = None
    related_entity_id: Optional[int] = None
    action_url: Optional[str] = None
    action_required: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recipient_id": self.recipient_id,
            "type": self.type.value,
            "title": self.title,
            "message": self.message,
            "priority": self.priority.value if self.priority else None,
            "related_entity_type": self.related_entity_type,
            "related_entity_id": self.related_entity_id,
            "action_url": self.action_url,
            "action_required": self.action_required,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NotificationJobData":
        return cls(
            recipient_id=data["recipient_id"],
            type=NotificationType(data["type"]),
            title=data["title"],
            message=data["message"],
            priority=NotificationPriority(data["priority"]) if data.get("priority") else None,
            related_entity_type=data.get("related_entity_type"),
            related_entity_id=data.get("related_entity_id"),
            action_url=data.get("action_url"),
            action_required=bool(data.get("action_required", False)),
        )

    def notification_fields(self, recipient_id: int) -> Dict[str, Any]:
        """生成通知记录字段"""
        return {
            "recipient_id": recipient_id,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "priority": self.priority or NotificationPriority.NORMAL,
            "related_entity_type": self.related_entity_type,
            "related_entity_id": self.related_entity_id,
            "action_url": self.action_url,
            "action_required": self.action_required,
        }


@dataclass(frozen=True)
class BulkNotificationJobData:
    """批量通知作业：一个作业生成 N 条通知"""
    recipient_ids: Tuple[int, ...] = field(default_factory=tuple)
    type: NotificationType = NotificationType.SYSTEM_ALERT
    title: str = ""
    message: str = ""
    priority: Optional[NotificationPriority] = None
    related_entity_type: Optional[str] = None
    related_entity_id: Optional[int] = None
    action_url: Optional[str] = None
    action_required: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recipient_ids": list(self.recipient_ids),
            "type": self.type.value,
            "title": self.title,
            "message": self.message,
            "priority": self.priority.value if self.priority else None,
            "related_entity_type": self.related_entity_type,
            "related_entity_id": self.related_entity_id,
            "action_url": self.action_url,
            "action_required": self.action_required,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BulkNotificationJobData":
        return cls(
            recipient_ids=tuple(data.get("recipient_ids") or ()),
            type=NotificationType(data["type"]),
            title=data["title"],
            message=data["message"],
            priority=NotificationPriority(data["priority"]) if data.get("priority") else None,
            related_entity_type=data.get("related_entity_type"),
            related_entity_id=data.get("related_entity_id"),
            action_url=data.get("action_url"),
            action_required=bool(data.get("action_required", False)),
        )

    def for_recipient(self, recipient_id: int) -> NotificationJobData:
        return NotificationJobData(
            recipient_id=recipient_id,
            type=self.type,
            title=self.title,
            message=self.message,
            priority=self.priority,
            related_entity_type=self.related_entity_type,
            related_entity_id=self.related_entity_id,
            action_url=self.action_url,
            action_required=self.action_required,
        )
