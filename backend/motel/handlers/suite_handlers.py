"""
客房事件处理器

- 变脏：没有未结束的清洁任务时自动创建（空房为退房后清洁，在住为日常清扫）
- 退房：置为 VACANT_DIRTY，清空在住信息，无条件创建退房清洁任务
- 入住：记录在住客人
- 停用：通知维修部门
"""
from typing import Callable, List, Tuple
import logging

from opscore.engine.event_bus import Event
from motel.domain.suite_status import suite_status_engine
from motel.domain.task_status import OPEN_STATUSES
from motel.models.enums import (
    Department, EmployeeRole, NotificationPriority, SuiteStatus, TaskPriority, TaskType,
)
from motel.models.events import (
    EventType, SuiteCheckedInData, SuiteCheckedOutData,
    SuiteOutOfOrderData, SuiteStatusChangedData,
)
from motel.notifications.queue_service import NotificationQueueService
from motel.repositories.interfaces import EmployeeRepository, SuiteRepository, TaskRepository

logger = logging.getLogger(__name__)

MAINTENANCE_ROLES = (EmployeeRole.MAINTENANCE, EmployeeRole.SUPERVISOR, EmployeeRole.MANAGER)


class SuiteEventHandlers:
    """客房事件处理器集合"""

    def __init__(
        self,
        suites: SuiteRepository,
        tasks: TaskRepository,
        employees: EmployeeRepository,
        notifications: NotificationQueueService,
    ):
        self.suites = suites
        self.tasks = tasks
        self.employees = employees
        self.notifications = notifications

    def handle_status_changed(self, event: Event) -> None:
        """
        客房状态变更：变为脏房时自动创建清洁任务

        已有 PENDING/ASSIGNED/IN_PROGRESS 的清洁任务时不再创建，
        同一事件重复投递也不会产生重复任务。
        """
        data: SuiteStatusChangedData = event.data
        logger.info(
            f"Suite {data.suite_number} status: {data.previous_status.value} -> {data.new_status.value}"
        )
        if not suite_status_engine.is_dirty(data.new_status):
            return

        existing = self.tasks.find_open(data.suite_id, TaskType.CLEANING, OPEN_STATUSES)
        if existing is not None:
            logger.debug(
                f"Suite {data.suite_number} already has open cleaning task {existing.id}"
            )
            return

        if data.new_status == SuiteStatus.OCCUPIED_DIRTY:
            title = f"Daily Clean - Suite {data.suite_number}"
            description = "Daily cleaning for occupied suite"
        else:
            title = f"Clean Suite {data.suite_number}"
            description = "Standard cleaning after checkout"
        task = self.tasks.create(
            type=TaskType.CLEANING,
            title=title,
            priority=TaskPriority.NORMAL,
            description=description,
            suite_id=data.suite_id,
            estimated_duration=45,
        )
        logger.info(f"Auto-created cleaning task {task.id} for Suite {data.suite_number}")

    def handle_checked_in(self, event: Event) -> None:
        data: SuiteCheckedInData = event.data
        logger.info(f"Suite {data.suite_number} checked in: {data.guest_name or 'guest'}")
        suite = self.suites.record_check_in(
            data.suite_id, data.guest_name, data.check_in_date, data.check_out_date
        )
        if suite is None:
            logger.warning(f"Check-in for unknown suite {data.suite_id}")

    def handle_checked_out(self, event: Event) -> None:
        """退房：客房变脏并创建高优先级退房清洁任务（不检查已有任务）"""
        data: SuiteCheckedOutData = event.data
        logger.info(f"Suite {data.suite_number} checked out")

        if self.suites.mark_checked_out(data.suite_id) is None:
            logger.warning(f"Checkout for unknown suite {data.suite_id}")
            return

        task = self.tasks.create(
            type=TaskType.CLEANING,
            title=f"Checkout Clean - Suite {data.suite_number}",
            priority=TaskPriority.HIGH,
            description="Full checkout cleaning required",
            suite_id=data.suite_id,
            estimated_duration=60,
        )
        logger.info(f"Created checkout cleaning task {task.id} for Suite {data.suite_number}")

    def handle_out_of_order(self, event: Event) -> None:
        data: SuiteOutOfOrderData = event.data
        logger.warning(
            f"Suite {data.suite_number} marked OUT OF ORDER: {data.reason or 'No reason provided'}"
        )
        staff = self.employees.find(MAINTENANCE_ROLES, department=Department.MAINTENANCE)
        if not staff:
            logger.warning(f"No maintenance staff to notify for Suite {data.suite_number}")
            return

        message = f"Suite {data.suite_number} requires maintenance"
        if data.reason:
            message = f"{message}: {data.reason}"
        self.notifications.queue_suite_status_notification(
            [e.id for e in staff],
            data.suite_id,
            message,
            title="Suite Out of Order",
            priority=NotificationPriority.HIGH,
        )

    def handler_table(self) -> List[Tuple[EventType, Callable[[Event], None]]]:
        return [
            (EventType.SUITE_STATUS_CHANGED, self.handle_status_changed),
            (EventType.SUITE_CHECKED_IN, self.handle_checked_in),
            (EventType.SUITE_CHECKED_OUT, self.handle_checked_out),
            (EventType.SUITE_OUT_OF_ORDER, self.handle_out_of_order),
        ]
