"""
任务事件处理器
"""
from datetime import datetime
from typing import Callable, List, Optional, Tuple
import logging

from opscore.engine.event_bus import Event
from motel.domain.suite_status import suite_status_engine
from motel.models.enums import (
    EmployeeRole, NotificationPriority, NotificationType, TaskType,
)
from motel.models.events import (
    EmergencyTaskCreatedData, EventType, TaskAssignedData,
    TaskCompletedData, TaskOverdueData, TaskVerifiedData,
)
from motel.notifications.jobs import NotificationJobData
from motel.notifications.queue_service import NotificationQueueService
from motel.repositories.interfaces import (
    EmployeeRepository, SuiteRepository, TaskRepository,
)

logger = logging.getLogger(__name__)

EMERGENCY_RECIPIENT_ROLES = (EmployeeRole.SUPERVISOR, EmployeeRole.MANAGER, EmployeeRole.ADMIN)


class TaskEventHandlers:
    """任务事件处理器集合"""

    def __init__(
        self,
        suites: SuiteRepository,
        tasks: TaskRepository,
        employees: EmployeeRepository,
        notifications: NotificationQueueService,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.suites = suites
        self.tasks = tasks
        self.employees = employees
        self.notifications = notifications
        self._clock = clock or datetime.utcnow

    def handle_task_completed(self, event: Event) -> None:
        """
        任务完成：推进客房状态，累计员工完成数

        两个步骤互不依赖，一个失败只记录日志，不影响另一个。
        """
        data: TaskCompletedData = event.data
        logger.info(f"Task completed: {data.title} ({data.task_id}) - Type: {data.type.value}")
        now = self._clock()

        if data.suite_id is not None:
            try:
                self._advance_suite(data, now)
            except Exception as e:
                logger.error(
                    f"Failed to update suite {data.suite_id} after task {data.task_id}: {e}",
                    exc_info=True,
                )

        if data.completed_by_id is not None:
            try:
                if self.employees.record_task_completion(data.completed_by_id, now) is None:
                    logger.warning(f"Completing employee {data.completed_by_id} not found")
            except Exception as e:
                logger.error(
                    f"Failed to update stats for employee {data.completed_by_id}: {e}",
                    exc_info=True,
                )

    def _advance_suite(self, data: TaskCompletedData, now: datetime) -> None:
        suite = self.suites.get(data.suite_id)
        if suite is None:
            logger.warning(f"Suite {data.suite_id} for task {data.task_id} not found")
            return

        new_status = suite_status_engine.status_after_task_completion(suite.status, data.type)
        if new_status is None or new_status == suite.status:
            return

        last_cleaned = now if data.type == TaskType.CLEANING else None
        self.suites.update_status(suite.id, new_status, last_cleaned=last_cleaned)
        logger.info(
            f"Suite {suite.suite_number} status updated: {suite.status.value} -> {new_status.value}"
        )

    def handle_task_assigned(self, event: Event) -> None:
        data: TaskAssignedData = event.data
        logger.info(f"Task assigned: {data.title} to {data.assigned_to_name}")
        self.notifications.queue_task_assigned_notification(
            data.assigned_to_id, data.task_id, data.title
        )

    def handle_emergency_task(self, event: Event) -> None:
        data: EmergencyTaskCreatedData = event.data
        logger.warning(f"EMERGENCY TASK: {data.title} - Suite: {data.suite_number or 'N/A'}")

        supervisors = self.employees.find(EMERGENCY_RECIPIENT_ROLES)
        if not supervisors:
            logger.warning(f"No supervisors to notify for emergency task {data.task_id}")
            return

        self.notifications.queue_emergency_notification(
            [s.id for s in supervisors], data.task_id, data.title, data.suite_number
        )
        logger.info(f"Emergency notifications queued for {len(supervisors)} supervisors")

    def handle_task_overdue(self, event: Event) -> None:
        data: TaskOverdueData = event.data
        logger.warning(f"Task overdue: {data.title} ({data.task_id})")
        if data.assigned_to_id is None:
            return

        due = f" (due {data.scheduled_end:%Y-%m-%d %H:%M})" if data.scheduled_end else ""
        self.notifications.queue_notification(NotificationJobData(
            recipient_id=data.assigned_to_id,
            type=NotificationType.TASK_OVERDUE,
            title="Task Overdue",
            message=f"{data.title}{due}",
            priority=NotificationPriority.HIGH,
            related_entity_type="Task",
            related_entity_id=data.task_id,
            action_url=f"/tasks/{data.task_id}",
        ))

    def handle_task_verified(self, event: Event) -> None:
        """验收通过：通知任务执行人"""
        data: TaskVerifiedData = event.data
        logger.info(f"Task verified: {data.title} ({data.task_id}) by {data.verified_by_id}")

        task = self.tasks.get(data.task_id)
        if task is None or task.assigned_to_id is None:
            return

        self.notifications.queue_notification(NotificationJobData(
            recipient_id=task.assigned_to_id,
            type=NotificationType.SYSTEM_ALERT,
            title="Task Verified",
            message=f"Your task was verified: {data.title}",
            priority=NotificationPriority.LOW,
            related_entity_type="Task",
            related_entity_id=data.task_id,
            action_url=f"/tasks/{data.task_id}",
        ))

    def handler_table(self) -> List[Tuple[EventType, Callable[[Event], None]]]:
        return [
            (EventType.TASK_COMPLETED, self.handle_task_completed),
            (EventType.TASK_ASSIGNED, self.handle_task_assigned),
            (EventType.TASK_EMERGENCY_CREATED, self.handle_emergency_task),
            (EventType.TASK_OVERDUE, self.handle_task_overdue),
            (EventType.TASK_VERIFIED, self.handle_task_verified),
        ]
