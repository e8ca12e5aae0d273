"""
SQLAlchemy 仓储实现

每个方法使用独立会话：提交成功后关闭，异常时回滚并向上抛出，
事件处理线程与 worker 可以并发调用。
"""
from contextlib import contextmanager
from datetime import date, datetime
from typing import Any, Callable, Collection, Dict, Iterator, List, Optional, Sequence

from sqlalchemy.orm import Session

from motel.models.enums import (
    Department, EmployeeRole, EmployeeStatus,
    NotificationPriority, NotificationType,
    SuiteStatus, TaskPriority, TaskStatus, TaskType,
)
from motel.models.ontology import Employee, Notification, Suite, Task
from motel.repositories.interfaces import (
    EmployeeRepository, NotificationRepository, SuiteRepository, TaskRepository,
)
from motel.repositories.records import (
    EmployeeRecord, NotificationRecord, SuiteRecord, TaskRecord,
)


class _SqlRepository:
    """会话管理基类"""

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


def _suite_record(suite: Suite) -> SuiteRecord:
    return SuiteRecord(
        id=suite.id,
        suite_number=suite.suite_number,
        status=suite.status,
        floor=suite.floor,
        current_guest=suite.current_guest,
        check_in_date=suite.check_in_date,
        check_out_date=suite.check_out_date,
        last_cleaned=suite.last_cleaned,
    )


def _task_record(task: Task) -> TaskRecord:
    return TaskRecord(
        id=task.id,
        type=task.type,
        title=task.title,
        status=task.status,
        priority=task.priority,
        description=task.description,
        suite_id=task.suite_id,
        assigned_to_id=task.assigned_to_id,
        created_by_id=task.created_by_id,
        verified_by_id=task.verified_by_id,
        estimated_duration=task.estimated_duration,
        scheduled_end=task.scheduled_end,
        actual_start=task.actual_start,
        actual_end=task.actual_end,
    )


def _employee_record(employee: Employee) -> EmployeeRecord:
    return EmployeeRecord(
        id=employee.id,
        name=employee.name,
        role=employee.role,
        department=employee.department,
        status=employee.status,
        is_on_duty=bool(employee.is_on_duty),
        tasks_completed=employee.tasks_completed or 0,
        last_active=employee.last_active,
    )


def _notification_record(n: Notification) -> NotificationRecord:
    return NotificationRecord(
        id=n.id,
        recipient_id=n.recipient_id,
        type=n.type,
        title=n.title,
        message=n.message,
        priority=n.priority,
        related_entity_type=n.related_entity_type,
        related_entity_id=n.related_entity_id,
        action_url=n.action_url,
        action_required=bool(n.action_required),
        read=bool(n.read),
        read_at=n.read_at,
        created_at=n.created_at,
    )


class SqlSuiteRepository(_SqlRepository, SuiteRepository):

    def get(self, suite_id: int) -> Optional[SuiteRecord]:
        with self._session() as db:
            suite = db.get(Suite, suite_id)
            return _suite_record(suite) if suite else None

    def add(self, suite_number: str, status: SuiteStatus = SuiteStatus.VACANT_CLEAN, floor: int = 1) -> SuiteRecord:
        with self._session() as db:
            suite = Suite(suite_number=suite_number, status=status, floor=floor)
            db.add(suite)
            db.flush()
            return _suite_record(suite)

    def update_status(
        self,
        suite_id: int,
        status: SuiteStatus,
        last_cleaned: Optional[datetime] = None,
    ) -> Optional[SuiteRecord]:
        with self._session() as db:
            suite = db.get(Suite, suite_id)
            if suite is None:
                return None
            suite.status = status
            if last_cleaned is not None:
                suite.last_cleaned = last_cleaned
            db.flush()
            return _suite_record(suite)

    def record_check_in(
        self,
        suite_id: int,
        guest_name: Optional[str],
        check_in_date: Optional[date],
        check_out_date: Optional[date],
    ) -> Optional[SuiteRecord]:
        with self._session() as db:
            suite = db.get(Suite, suite_id)
            if suite is None:
                return None
            suite.current_guest = guest_name
            suite.check_in_date = check_in_date
            suite.check_out_date = check_out_date
            db.flush()
            return _suite_record(suite)

    def mark_checked_out(self, suite_id: int) -> Optional[SuiteRecord]:
        with self._session() as db:
            suite = db.get(Suite, suite_id)
            if suite is None:
                return None
            suite.status = SuiteStatus.VACANT_DIRTY
            suite.current_guest = None
            suite.check_in_date = None
            suite.check_out_date = None
            db.flush()
            return _suite_record(suite)


class SqlTaskRepository(_SqlRepository, TaskRepository):

    def get(self, task_id: int) -> Optional[TaskRecord]:
        with self._session() as db:
            task = db.get(Task, task_id)
            return _task_record(task) if task else None

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
        with self._session() as db:
            task = Task(
                type=type,
                title=title,
                priority=priority,
                status=status,
                description=description,
                suite_id=suite_id,
                assigned_to_id=assigned_to_id,
                estimated_duration=estimated_duration,
            )
            db.add(task)
            db.flush()
            return _task_record(task)

    def find_open(
        self,
        suite_id: int,
        type: TaskType,
        statuses: Collection[TaskStatus],
    ) -> Optional[TaskRecord]:
        with self._session() as db:
            task = db.query(Task).filter(
                Task.suite_id == suite_id,
                Task.type == type,
                Task.status.in_(list(statuses)),
            ).first()
            return _task_record(task) if task else None

    def list_for_suite(self, suite_id: int) -> List[TaskRecord]:
        with self._session() as db:
            tasks = db.query(Task).filter(Task.suite_id == suite_id).order_by(Task.id).all()
            return [_task_record(t) for t in tasks]

    def pause_in_progress(
        self,
        assigned_to_id: int,
        task_ids: Optional[Collection[int]] = None,
    ) -> List[int]:
        with self._session() as db:
            query = db.query(Task).filter(
                Task.assigned_to_id == assigned_to_id,
                Task.status == TaskStatus.IN_PROGRESS,
            )
            if task_ids:
                query = query.filter(Task.id.in_(list(task_ids)))
            ids = [t.id for t in query.with_entities(Task.id).all()]
            if ids:
                # 条件更新：期间已被改为其他状态的任务不受影响
                db.query(Task).filter(
                    Task.id.in_(ids),
                    Task.status == TaskStatus.IN_PROGRESS,
                ).update({Task.status: TaskStatus.PAUSED}, synchronize_session=False)
            return ids


class SqlEmployeeRepository(_SqlRepository, EmployeeRepository):

    def get(self, employee_id: int) -> Optional[EmployeeRecord]:
        with self._session() as db:
            employee = db.get(Employee, employee_id)
            return _employee_record(employee) if employee else None

    def add(
        self,
        name: str,
        role: EmployeeRole,
        department: Department,
        status: EmployeeStatus = EmployeeStatus.ACTIVE,
        is_on_duty: bool = False,
    ) -> EmployeeRecord:
        with self._session() as db:
            employee = Employee(
                name=name,
                role=role,
                department=department,
                status=status,
                is_on_duty=is_on_duty,
                tasks_completed=0,
            )
            db.add(employee)
            db.flush()
            return _employee_record(employee)

    def find(
        self,
        roles: Collection[EmployeeRole],
        department: Optional[Department] = None,
        exclude_inactive: bool = True,
        on_duty: Optional[bool] = None,
    ) -> List[EmployeeRecord]:
        with self._session() as db:
            query = db.query(Employee).filter(Employee.role.in_(list(roles)))
            if department is not None:
                query = query.filter(Employee.department == department)
            if exclude_inactive:
                query = query.filter(Employee.status != EmployeeStatus.INACTIVE)
            if on_duty is not None:
                query = query.filter(Employee.is_on_duty == on_duty)
            return [_employee_record(e) for e in query.order_by(Employee.id).all()]

    def set_status(self, employee_id: int, status: EmployeeStatus) -> Optional[EmployeeRecord]:
        with self._session() as db:
            employee = db.get(Employee, employee_id)
            if employee is None:
                return None
            employee.status = status
            db.flush()
            return _employee_record(employee)

    def record_task_completion(self, employee_id: int, when: datetime) -> Optional[EmployeeRecord]:
        with self._session() as db:
            updated = db.query(Employee).filter(Employee.id == employee_id).update(
                {
                    Employee.tasks_completed: Employee.tasks_completed + 1,
                    Employee.last_active: when,
                },
                synchronize_session=False,
            )
            if not updated:
                return None
            return _employee_record(db.get(Employee, employee_id))


class SqlNotificationRepository(_SqlRepository, NotificationRepository):

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
        with self._session() as db:
            notification = Notification(
                recipient_id=recipient_id,
                type=type,
                title=title,
                message=message,
                priority=priority,
                related_entity_type=related_entity_type,
                related_entity_id=related_entity_id,
                action_url=action_url,
                action_required=action_required,
                read=False,
            )
            db.add(notification)
            db.flush()
            return _notification_record(notification)

    def create_many(self, rows: Sequence[Dict[str, Any]]) -> int:
        if not rows:
            return 0
        with self._session() as db:
            db.add_all([Notification(read=False, **row) for row in rows])
        return len(rows)

    def list_for_recipient(self, recipient_id: int) -> List[NotificationRecord]:
        with self._session() as db:
            rows = db.query(Notification).filter(
                Notification.recipient_id == recipient_id
            ).order_by(Notification.created_at.desc(), Notification.id.desc()).all()
            return [_notification_record(n) for n in rows]

    def mark_read(self, notification_id: int, when: Optional[datetime] = None) -> bool:
        with self._session() as db:
            notification = db.get(Notification, notification_id)
            if notification is None:
                return False
            notification.read = True
            notification.read_at = when or datetime.utcnow()
            return True

    def delete_read_older_than(self, cutoff: datetime) -> int:
        with self._session() as db:
            return db.query(Notification).filter(
                Notification.created_at < cutoff,
                Notification.read.is_(True),
            ).delete(synchronize_session=False)

    def count(self) -> int:
        with self._session() as db:
            return db.query(Notification).count()
