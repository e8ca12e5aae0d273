"""
仓储接口

事件处理器与通知处理器只依赖这些窄接口；每个方法都是单记录（或单条件批量）
原子操作，不假设跨实体事务。
"""
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any, Collection, Dict, List, Optional, Sequence

from motel.models.enums import (
    Department, EmployeeRole, EmployeeStatus,
    NotificationPriority, NotificationType,
    SuiteStatus, TaskPriority, TaskStatus, TaskType,
)
from motel.repositories.records import (
    EmployeeRecord, NotificationRecord, SuiteRecord, TaskRecord,
)


class SuiteRepository(ABC):
    """客房仓储"""

    @abstractmethod
    def get(self, suite_id: int) -> Optional[SuiteRecord]:
        """按 ID 获取客房"""

    @abstractmethod
    def add(self, suite_number: str, status: SuiteStatus = SuiteStatus.VACANT_CLEAN, floor: int = 1) -> SuiteRecord:
        """新增客房"""

    @abstractmethod
    def update_status(
        self,
        suite_id: int,
        status: SuiteStatus,
        last_cleaned: Optional[datetime] = None,
    ) -> Optional[SuiteRecord]:
        """更新状态（last_cleaned 非空时一并更新）"""

    @abstractmethod
    def record_check_in(
        self,
        suite_id: int,
        guest_name: Optional[str],
        check_in_date: Optional[date],
        check_out_date: Optional[date],
    ) -> Optional[SuiteRecord]:
        """记录在住客人信息"""

    @abstractmethod
    def mark_checked_out(self, suite_id: int) -> Optional[SuiteRecord]:
        """退房：置为 VACANT_DIRTY 并清空在住客人信息"""


class TaskRepository(ABC):
    """任务仓储"""

    @abstractmethod
    def get(self, task_id: int) -> Optional[TaskRecord]:
        """按 ID 获取任务"""

    @abstractmethod
    def create(
        self,
        type: TaskType,
        title: str,
        priority: TaskPriority = TaskPriority.NORMAL,
        status: TaskStatus = TaskStatus.PENDING,
        description: Optional[str] = None,
        suite_id: Optional[int] = None,
        assigned_to_id: Optional[int] = None,
        estimated_duration: Optional[int] = None,
    ) -> TaskRecord:
        """创建任务"""

    @abstractmethod
    def find_open(
        self,
        suite_id: int,
        type: TaskType,
        statuses: Collection[TaskStatus],
    ) -> Optional[TaskRecord]:
        """查找客房下指定类型、状态在 statuses 中的任务"""

    @abstractmethod
    def list_for_suite(self, suite_id: int) -> List[TaskRecord]:
        """客房的全部任务"""

    @abstractmethod
    def pause_in_progress(
        self,
        assigned_to_id: int,
        task_ids: Optional[Collection[int]] = None,
    ) -> List[int]:
        """将员工名下 IN_PROGRESS 的任务置为 PAUSED（task_ids 非空时只处理这些任务）

        Returns:
            被暂停的任务 ID
        """


class EmployeeRepository(ABC):
    """员工仓储"""

    @abstractmethod
    def get(self, employee_id: int) -> Optional[EmployeeRecord]:
        """按 ID 获取员工"""

    @abstractmethod
    def add(
        self,
        name: str,
        role: EmployeeRole,
        department: Department,
        status: EmployeeStatus = EmployeeStatus.ACTIVE,
        is_on_duty: bool = False,
    ) -> EmployeeRecord:
        """新增员工"""

    @abstractmethod
    def find(
        self,
        roles: Collection[EmployeeRole],
        department: Optional[Department] = None,
        exclude_inactive: bool = True,
        on_duty: Optional[bool] = None,
    ) -> List[EmployeeRecord]:
        """按角色（及可选部门、在岗状态）筛选员工"""

    @abstractmethod
    def set_status(self, employee_id: int, status: EmployeeStatus) -> Optional[EmployeeRecord]:
        """更新员工状态"""

    @abstractmethod
    def record_task_completion(self, employee_id: int, when: datetime) -> Optional[EmployeeRecord]:
        """完成任务计数加一，并更新最近活跃时间"""


class NotificationRepository(ABC):
    """通知仓储"""

    @abstractmethod
    def create(
        self,
        recipient_id: int,
        type: NotificationType,
        title: str,
        message: str,
        priority: NotificationPriority = NotificationPriority.NORMAL,
        related_entity_type: Optional[str] = None,
        related_entity_id: Optional[int] = None,
        action_url: Optional[str] = None,
        action_required: bool = False,
    ) -> NotificationRecord:
        """创建一条通知"""

    @abstractmethod
    def create_many(self, rows: Sequence[Dict[str, Any]]) -> int:
        """批量创建（一次写入），返回条数；rows 的键同 create 的参数"""

    @abstractmethod
    def list_for_recipient(self, recipient_id: int) -> List[NotificationRecord]:
        """某员工的通知（新的在前）"""

    @abstractmethod
    def mark_read(self, notification_id: int, when: Optional[datetime] = None) -> bool:
        """标记已读"""

    @abstractmethod
    def delete_read_older_than(self, cutoff: datetime) -> int:
        """删除 cutoff 之前创建且已读的通知，返回删除条数"""

    @abstractmethod
    def count(self) -> int:
        """通知总数"""
