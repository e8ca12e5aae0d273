"""
仓储返回的记录对象
与 ORM 会话解耦，可在线程之间传递
"""
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from motel.models.enums import (
    Department, EmployeeRole, EmployeeStatus,
    NotificationPriority, NotificationType,
    SuiteStatus, TaskPriority, TaskStatus, TaskType,
)


@dataclass
class SuiteRecord:
    id: int
    suite_number: str
    status: SuiteStatus
    floor: int = 1
    current_guest: Optional[str] = None
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    last_cleaned: Optional[datetime] = None


@dataclass
class TaskRecord:
    id: int
    type: TaskType
    title: str
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.NORMAL
    description: Optional[str] = None
    suite_id: Optional[int] = None
    assigned_to_id: Optional[int] = None
    created_by_id: Optional[int] = None
    verified_by_id: Optional[int] = None
    estimated_duration: Optional[int] = None
    scheduled_end: Optional[datetime] = None
    actual_start: Optional[datetime] = None
    actual_end: Optional[datetime] = None


@dataclass
class EmployeeRecord:
    id: int
    name: str
    role: EmployeeRole
    department: Department
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    is_on_duty: bool = False
    tasks_completed: int = 0
    last_active: Optional[datetime] = None

    @property
    def is_eligible(self) -> bool:
        """能否接收通知"""
        return self.status != EmployeeStatus.INACTIVE


@dataclass
class NotificationRecord:
    id: int
    recipient_id: int
    type: NotificationType
    title: str
    message: str
    priority: NotificationPriority = NotificationPriority.NORMAL
    related_entity_type: Optional[str] = None
    related_entity_id: Optional[int] = None
    action_url: Optional[str] = None
    action_required: bool = False
    read: bool = False
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
