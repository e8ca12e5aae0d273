"""
员工事件处理器
"""
from typing import Callable, List, Tuple
import logging

from opscore.engine.event_bus import Event
from motel.models.enums import EmployeeRole, NotificationPriority, NotificationType
from motel.models.events import EmployeeClockInData, EmployeeClockOutData, EventType
from motel.notifications.jobs import BulkNotificationJobData
from motel.notifications.queue_service import NotificationQueueService
from motel.repositories.interfaces import EmployeeRepository, TaskRepository

logger = logging.getLogger(__name__)

ON_DUTY_SUPERVISOR_ROLES = (EmployeeRole.SUPERVISOR, EmployeeRole.MANAGER)


class EmployeeEventHandlers:
    """员工事件处理器集合"""

    def __init__(
        self,
        tasks: TaskRepository,
        employees: EmployeeRepository,
        notifications: NotificationQueueService,
    ):
        self.tasks = tasks
        self.employees = employees
        self.notifications = notifications

    def handle_clock_in(self, event: Event) -> None:
        data: EmployeeClockInData = event.data
        logger.info(f"Employee clocked in: {data.employee_name}")

    def handle_clock_out(self, event: Event) -> None:
        """
        下班打卡时仍有进行中的任务：暂停这些任务并通知在岗主管

        暂停与通知不是一个事务；暂停成功而入队失败时由总线记录错误。
        """
        data: EmployeeClockOutData = event.data
        logger.info(f"Employee clocked out: {data.employee_name}")
        if not data.active_task_ids:
            return

        active_count = len(data.active_task_ids)
        logger.warning(
            f"Employee {data.employee_name} clocked out with {active_count} active tasks"
        )
        paused = self.tasks.pause_in_progress(data.employee_id, data.active_task_ids)
        logger.info(f"Paused {len(paused)} task(s) for {data.employee_name}: {paused}")

        supervisors = self.employees.find(ON_DUTY_SUPERVISOR_ROLES, on_duty=True)
        if not supervisors:
            return

        self.notifications.queue_bulk_notification(BulkNotificationJobData(
            recipient_ids=tuple(s.id for s in supervisors),
            type=NotificationType.SYSTEM_ALERT,
            title="Tasks Paused - Employee Clocked Out",
            message=f"{data.employee_name} clocked out with {active_count} active task(s)",
            priority=NotificationPriority.HIGH,
        ))

    def handler_table(self) -> List[Tuple[EventType, Callable[[Event], None]]]:
        return [
            (EventType.EMPLOYEE_CLOCK_IN, self.handle_clock_in),
            (EventType.EMPLOYEE_CLOCK_OUT, self.handle_clock_out),
        ]
