"""
领域事件定义 (Domain Events)
事件名是对外稳定的契约；事件数据为不可变对象，在状态变更确认后创建
"""
from enum import Enum
from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from typing import Any, ClassVar, Dict, Optional, Tuple

from opscore.engine.event_bus import Event
from motel.models.enums import SuiteStatus, TaskPriority, TaskStatus, TaskType


class EventType(str, Enum):
    """事件类型枚举"""
    # 客房相关
    SUITE_STATUS_CHANGED = "suite.status.changed"
    SUITE_CHECKED_IN = "suite.checked.in"
    SUITE_CHECKED_OUT = "suite.checked.out"
    SUITE_OUT_OF_ORDER = "suite.out.of.order"

    # 任务相关
    TASK_CREATED = "task.created"
    TASK_ASSIGNED = "task.assigned"
    TASK_STATUS_CHANGED = "task.status.changed"
    TASK_COMPLETED = "task.completed"
    TASK_VERIFIED = "task.verified"
    TASK_EMERGENCY_CREATED = "task.emergency.created"
    TASK_OVERDUE = "task.overdue"

    # 员工相关
    EMPLOYEE_CLOCK_IN = "employee.clock.in"
    EMPLOYEE_CLOCK_OUT = "employee.clock.out"

    # 备注相关
    NOTE_INCIDENT_CREATED = "note.incident.created"
    NOTE_FOLLOWUP_DUE = "note.followup.due"


@dataclass(frozen=True)
class BaseEventData:
    """事件数据基类"""
    event_type: ClassVar[EventType]

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        result = asdict(self)
        for key, value in result.items():
            if isinstance(value, (datetime, date)):
                result[key] = value.isoformat()
            elif isinstance(value, Enum):
                result[key] = value.value
            elif isinstance(value, tuple):
                result[key] = list(value)
        return result

    def to_event(self, source: str = "", correlation_id: Optional[str] = None) -> Event:
        """包装为事件信封"""
        return Event(
            event_type=self.event_type.value,
            timestamp=datetime.now(),
            data=self,
            source=source,
            correlation_id=correlation_id,
        )


# ============== 客房事件 ==============

@dataclass(frozen=True)
class SuiteStatusChangedData(BaseEventData):
    """客房状态变更事件数据"""
    event_type: ClassVar[EventType] = EventType.SUITE_STATUS_CHANGED
    suite_id: int = 0
    suite_number: str = ""
    previous_status: SuiteStatus = SuiteStatus.VACANT_CLEAN
    new_status: SuiteStatus = SuiteStatus.VACANT_CLEAN
    changed_by: Optional[int] = None


@dataclass(frozen=True)
class SuiteCheckedInData(BaseEventData):
    """入住事件数据"""
    event_type: ClassVar[EventType] = EventType.SUITE_CHECKED_IN
    suite_id: int = 0
    suite_number: str = ""
    guest_name: Optional[str] = None
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None


@dataclass(frozen=True)
class SuiteCheckedOutData(BaseEventData):
    """退房事件数据"""
    event_type: ClassVar[EventType] = EventType.SUITE_CHECKED_OUT
    suite_id: int = 0
    suite_number: str = ""


@dataclass(frozen=True)
class SuiteOutOfOrderData(BaseEventData):
    """客房停用（维修）事件数据"""
    event_type: ClassVar[EventType] = EventType.SUITE_OUT_OF_ORDER
    suite_id: int = 0
    suite_number: str = ""
    reason: Optional[str] = None


# ============== 任务事件 ==============

@dataclass(frozen=True)
class TaskCreatedData(BaseEventData):
    """任务创建事件数据"""
    event_type: ClassVar[EventType] = EventType.TASK_CREATED
    task_id: int = 0
    title: str = ""
    type: TaskType = TaskType.CLEANING
    priority: TaskPriority = TaskPriority.NORMAL
    suite_id: Optional[int] = None
    suite_number: Optional[str] = None
    assigned_to_id: Optional[int] = None
    created_by_id: Optional[int] = None


@dataclass(frozen=True)
class TaskAssignedData(BaseEventData):
    """任务分配事件数据"""
    event_type: ClassVar[EventType] = EventType.TASK_ASSIGNED
    task_id: int = 0
    title: str = ""
    assigned_to_id: int = 0
    assigned_to_name: str = ""
    assigned_by_id: Optional[int] = None
    previous_assignee_id: Optional[int] = None


@dataclass(frozen=True)
class TaskStatusChangedData(BaseEventData):
    """任务状态变更事件数据"""
    event_type: ClassVar[EventType] = EventType.TASK_STATUS_CHANGED
    task_id: int = 0
    title: str = ""
    previous_status: TaskStatus = TaskStatus.PENDING
    new_status: TaskStatus = TaskStatus.PENDING
    suite_id: Optional[int] = None
    changed_by_id: Optional[int] = None


@dataclass(frozen=True)
class TaskCompletedData(BaseEventData):
    """任务完成事件数据"""
    event_type: ClassVar[EventType] = EventType.TASK_COMPLETED
    task_id: int = 0
    title: str = ""
    type: TaskType = TaskType.CLEANING
    suite_id: Optional[int] = None
    suite_number: Optional[str] = None
    completed_by_id: Optional[int] = None
    duration: Optional[int] = None  # 分钟


@dataclass(frozen=True)
class TaskVerifiedData(BaseEventData):
    """任务验收事件数据"""
    event_type: ClassVar[EventType] = EventType.TASK_VERIFIED
    task_id: int = 0
    title: str = ""
    verified_by_id: int = 0


@dataclass(frozen=True)
class EmergencyTaskCreatedData(BaseEventData):
    """紧急任务事件数据"""
    event_type: ClassVar[EventType] = EventType.TASK_EMERGENCY_CREATED
    task_id: int = 0
    title: str = ""
    suite_id: Optional[int] = None
    suite_number: Optional[str] = None
    description: Optional[str] = None
    created_by_id: Optional[int] = None


@dataclass(frozen=True)
class TaskOverdueData(BaseEventData):
    """任务超时事件数据"""
    event_type: ClassVar[EventType] = EventType.TASK_OVERDUE
    task_id: int = 0
    title: str = ""
    scheduled_end: Optional[datetime] = None
    assigned_to_id: Optional[int] = None


# ============== 员工事件 ==============

@dataclass(frozen=True)
class EmployeeClockInData(BaseEventData):
    """上班打卡事件数据"""
    event_type: ClassVar[EventType] = EventType.EMPLOYEE_CLOCK_IN
    employee_id: int = 0
    employee_name: str = ""


@dataclass(frozen=True)
class EmployeeClockOutData(BaseEventData):
    """下班打卡事件数据"""
    event_type: ClassVar[EventType] = EventType.EMPLOYEE_CLOCK_OUT
    employee_id: int = 0
    employee_name: str = ""
    active_task_ids: Tuple[int, ...] = field(default_factory=tuple)


# ============== 备注事件 ==============

@dataclass(frozen=True)
class IncidentNoteCreatedData(BaseEventData):
    """事故备注事件数据"""
    event_type: ClassVar[EventType] = EventType.NOTE_INCIDENT_CREATED
    note_id: int = 0
    title: Optional[str] = None
    content: str = ""
    created_by_id: Optional[int] = None
    suite_id: Optional[int] = None


@dataclass(frozen=True)
class NoteFollowUpDueData(BaseEventData):
    """备注跟进到期事件数据"""
    event_type: ClassVar[EventType] = EventType.NOTE_FOLLOWUP_DUE
    note_id: int = 0
    title: Optional[str] = None
    follow_up_date: Optional[datetime] = None
    assigned_to_id: Optional[int] = None


# 事件类型到数据类的映射
EVENT_DATA_CLASSES = {
    EventType.SUITE_STATUS_CHANGED: SuiteStatusChangedData,
    EventType.SUITE_CHECKED_IN: SuiteCheckedInData,
    EventType.SUITE_CHECKED_OUT: SuiteCheckedOutData,
    EventType.SUITE_OUT_OF_ORDER: SuiteOutOfOrderData,
    EventType.TASK_CREATED: TaskCreatedData,
    EventType.TASK_ASSIGNED: TaskAssignedData,
    EventType.TASK_STATUS_CHANGED: TaskStatusChangedData,
    EventType.TASK_COMPLETED: TaskCompletedData,
    EventType.TASK_VERIFIED: TaskVerifiedData,
    EventType.TASK_EMERGENCY_CREATED: EmergencyTaskCreatedData,
    EventType.TASK_OVERDUE: TaskOverdueData,
    EventType.EMPLOYEE_CLOCK_IN: EmployeeClockInData,
    EventType.EMPLOYEE_CLOCK_OUT: EmployeeClockOutData,
    EventType.NOTE_INCIDENT_CREATED: IncidentNoteCreatedData,
    EventType.NOTE_FOLLOWUP_DUE: NoteFollowUpDueData,
}
