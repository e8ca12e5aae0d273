"""
内存仓储实现（测试与单进程演示用）
每个操作在锁内完成，语义与 SQL 实现一致
"""
from dataclasses import replace
from datetime import date, datetime
from itertools import count
from typing import Any, Callable, Collection, Dict, List, Optional, Sequence
import threading

from motel.models.enums import (
    Department, EmployeeRole, EmployeeStatus,
    NotificationPriority, NotificationType,
    SuiteStatus, TaskPriority, TaskStatus, TaskType,
)
from motel.repositories.interfaces import (
    EmployeeRepository, NotificationRepository, SuiteRepository, TaskRepository,
)
from motel.repositories.records import (
    EmployeeRecord, NotificationRecord, SuiteRecord, TaskRecord,
)


class _MemoryStore:
    def __init__(self):
        self._rows: Dict[int, Any] = {}
        self._ids = count(1)
        self._lock = threading.Lock()

    def _next_id(self) -> int:
        return next(self._ids)

    def _copy(self, row):
        return replace(row) if row is not None else None


class InMemorySuiteRepository(_MemoryStore, SuiteRepository):

    def get(self, suite_id: int) -> Optional[SuiteRecord]:
        with self._lock:
            return self._copy(self._rows.get(suite_id))

    def add(self, suite_number: str, status: SuiteStatus = SuiteStatus.VACANT_CLEAN, floor: int = 1) -> SuiteRecord:
        with self._lock:
            suite = SuiteRecord(id=self._next_id(), suite_number=suite_number, status=status, floor=floor)
            self._rows[suite.id] = suite
            return self._copy(suite)

    def update_status(
        self,
        suite_id: int,
        status: SuiteStatus,
        last_cleaned: Optional[datetime] = None,
    ) -> Optional[SuiteRecord]:
        with self._lock:
            suite = self._rows.get(suite_id)
            if suite is None:
                return None
            suite.status = status
            if last_cleaned is not None:
                suite.last_cleaned = last_cleaned
            return self._copy(suite)

    def record_check_in(
        self,
        suite_id: int,
        guest_name: Optional[str],
        check_in_date: Optional[date],
        check_out_date: Optional[date],
    ) -> Optional[SuiteRecord]:
        with self._lock:
            suite = self._rows.get(suite_id)
            if suite is None:
                return None
            suite.current_guest = guest_name
            suite.check_in_date = check_in_date
            suite.check_out_date = check_out_date
            return self._copy(suite)

    def mark_checked_out(self, suite_id: int) -> Optional[SuiteRecord]:
        with self._lock:
            suite = self._rows.get(suite_id)
            if suite is None:
                return None
            suite.status = SuiteStatus.VACANT_DIRTY
            suite.current_guest = None
            suite.check_in_date = None
            suite.check_out_date = None
            return self._copy(suite)


class InMemoryTaskRepository(_MemoryStore, TaskRepository):

    def get(self, task_id: int) -> Optional[TaskRecord]:
        with self._lock:
            return self._copy(self._rows.get(task_id))

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
        with self._lock:
            task = TaskRecord(
                id=self._next_id(),
                type=type,
                title=title,
                priority=priority,
                status=status,
                description=description,
                suite_id=suite_id,
                assigned_to_id=assigned_to_id,
                estimated_duration=estimated_duration,
            )
            self._rows[task.id] = task
            return self._copy(task)

    def find_open(
        self,
        suite_id: int,
        type: TaskType,
        statuses: Collection[TaskStatus],
    ) -> Optional[TaskRecord]:
        with self._lock:
            for task in self._rows.values():
                if task.suite_id == suite_id and task.type == type and task.status in statuses:
                    return self._copy(task)
            return None

    def list_for_suite(self, suite_id: int) -> List[TaskRecord]:
        with self._lock:
            return [self._copy(t) for t in self._rows.values() if t.suite_id == suite_id]

    def pause_in_progress(
        self,
        assigned_to_id: int,
        task_ids: Optional[Collection[int]] = None,
    ) -> List[int]:
        with self._lock:
            paused = []
            for task in self._rows.values():
                if task.assigned_to_id != assigned_to_id or task.status != TaskStatus.IN_PROGRESS:
                    continue
                if task_ids and task.id not in task_ids:
                    continue
                task.status = TaskStatus.PAUSED
                paused.append(task.id)
            return paused

    def set_status(self, task_id: int, status: TaskStatus, **fields) -> Optional[TaskRecord]:
        """测试辅助：直接写状态和字段"""
        with self._lock:
            task = self._rows.get(task_id)
            if task is None:
                return None
            task.status = status
            for key, value in fields.items():
                setattr(task, key, value)
            return self._copy(task)


class InMemoryEmployeeRepository(_MemoryStore, EmployeeRepository):

    def get(self, employee_id: int) -> Optional[EmployeeRecord]:
        with self._lock:
            return self._copy(self._rows.get(employee_id))

    def add(
        self,
        name: str,
        role: EmployeeRole,
        department: Department,
        status: EmployeeStatus = EmployeeStatus.ACTIVE,
        is_on_duty: bool = False,
    ) -> EmployeeRecord:
        with self._lock:
            employee = EmployeeRecord(
                id=self._next_id(),
                name=name,
                role=role,
                department=department,
                status=status,
                is_on_duty=is_on_duty,
            )
            self._rows[employee.id] = employee
            return self._copy(employee)

    def find(
        self,
        roles: Collection[EmployeeRole],
        department: Optional[Department] = None,
        exclude_inactive: bool = True,
        on_duty: Optional[bool] = None,
    ) -> List[EmployeeRecord]:
        with self._lock:
            result = []
            for e in self._rows.values():
                if e.role not in roles:
                    continue
                if department is not None and e.department != department:
                    continue
                if exclude_inactive and e.status == EmployeeStatus.INACTIVE:
                    continue
                if on_duty is not None and e.is_on_duty != on_duty:
                    continue
                result.append(self._copy(e))
            return result

    def set_status(self, employee_id: int, status: EmployeeStatus) -> Optional[EmployeeRecord]:
        with self._lock:
            employee = self._rows.get(employee_id)
            if employee is None:
                return None
            employee.status = status
            return self._copy(employee)

    def record_task_completion(self, employee_id: int, when: datetime) -> Optional[EmployeeRecord]:
        with self._lock:
            employee = self._rows.get(employee_id)
            if employee is None:
                return None
            employee.tasks_completed += 1
            employee.last_active = when
            return self._copy(employee)


class InMemoryNotificationRepository(_MemoryStore, NotificationRepository):

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        super().__init__()
        self._clock = clock or datetime.utcnow

    def _build(self, **fields) -> NotificationRecord:
        fields.setdefault("priority", NotificationPriority.NORMAL)
        return NotificationRecord(id=self._next_id(), created_at=self._clock(), **fields)

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
        with self._lock:
            notification = self._build(
                recipient_id=recipient_id,
                type=type,
                title=title,
                message=message,
                priority=priority,
                related_entity_type=related_entity_type,
                related_entity_id=related_entity_id,
                action_url=action_url,
                action_required=action_required,
            )
            self._rows[notification.id] = notification
            return self._copy(notification)

    def create_many(self, rows: Sequence[Dict[str, Any]]) -> int:
        with self._lock:
            for row in rows:
                notification = self._build(**row)
                self._rows[notification.id] = notification
            return len(rows)

    def list_for_recipient(self, recipient_id: int) -> List[NotificationRecord]:
        with self._lock:
            rows = [self._copy(n) for n in self._rows.values() if n.recipient_id == recipient_id]
        return sorted(rows, key=lambda n: (n.created_at, n.id), reverse=True)

    def list_all(self) -> List[NotificationRecord]:
        with self._lock:
            return [self._copy(n) for n in self._rows.values()]

    def mark_read(self, notification_id: int, when: Optional[datetime] = None) -> bool:
        with self._lock:
            notification = self._rows.get(notification_id)
            if notification is None:
                return False
            notification.read = True
            notification.read_at = when or self._clock()
            return True

    def delete_read_older_than(self, cutoff: datetime) -> int:
        with self._lock:
            stale = [
                nid for nid, n in self._rows.items()
                if n.read and n.created_at is not None and n.created_at < cutoff
            ]
            for nid in stale:
                del self._rows[nid]
            return len(stale)

    def count(self) -> int:
        with self._lock:
            return len(self._rows)
