"""
任务事件处理器测试
"""
from datetime import datetime
from unittest.mock import MagicMock

import pytest

from motel.handlers import TaskEventHandlers
from motel.models.enums import (
    NotificationPriority, NotificationType, SuiteStatus, TaskStatus, TaskType,
)
from motel.models.events import (
    EmergencyTaskCreatedData, TaskAssignedData, TaskCompletedData,
    TaskOverdueData, TaskVerifiedData,
)
from motel.notifications import (
    JOB_SEND, JOB_SEND_BULK, BulkNotificationJobData, NotificationJobData,
)


@pytest.fixture
def handlers(repos, notification_service, clock):
    return TaskEventHandlers(
        repos.suites, repos.tasks, repos.employees, notification_service, clock=clock
    )


def completed(task_type, suite=None, completed_by_id=None, task_id=1):
    return TaskCompletedData(
        task_id=task_id,
        title="Task",
        type=task_type,
        suite_id=suite.id if suite else None,
        suite_number=suite.suite_number if suite else None,
        completed_by_id=completed_by_id,
        duration=30,
    ).to_event(source="task_service")


class TestTaskCompleted:

    @pytest.mark.parametrize("start,task_type,expected", [
        (SuiteStatus.VACANT_DIRTY, TaskType.CLEANING, SuiteStatus.VACANT_CLEAN),
        (SuiteStatus.OCCUPIED_DIRTY, TaskType.CLEANING, SuiteStatus.OCCUPIED_CLEAN),
        (SuiteStatus.OUT_OF_ORDER, TaskType.MAINTENANCE, SuiteStatus.VACANT_DIRTY),
    ])
    def test_advances_suite(self, handlers, repos, start, task_type, expected):
        suite = repos.suites.add("201", start)
        handlers.handle_task_completed(completed(task_type, suite))
        assert repos.suites.get(suite.id).status == expected

    def test_cleaning_sets_last_cleaned(self, handlers, repos, clock):
        suite = repos.suites.add("202", SuiteStatus.VACANT_DIRTY)
        handlers.handle_task_completed(completed(TaskType.CLEANING, suite))
        assert repos.suites.get(suite.id).last_cleaned == clock.now

    def test_maintenance_does_not_set_last_cleaned(self, handlers, repos):
        suite = repos.suites.add("203", SuiteStatus.OUT_OF_ORDER)
        handlers.handle_task_completed(completed(TaskType.MAINTENANCE, suite))
        assert repos.suites.get(suite.id).last_cleaned is None

    @pytest.mark.parametrize("start,task_type", [
        (SuiteStatus.VACANT_CLEAN, TaskType.CLEANING),
        (SuiteStatus.VACANT_DIRTY, TaskType.MAINTENANCE),
        (SuiteStatus.OUT_OF_ORDER, TaskType.CLEANING),
        (SuiteStatus.VACANT_DIRTY, TaskType.INSPECTION),
    ])
    def test_unrelated_completion_leaves_suite(self, handlers, repos, start, task_type):
        suite = repos.suites.add("204", start)
        handlers.handle_task_completed(completed(task_type, suite))
        assert repos.suites.get(suite.id).status == start

    def test_increments_employee_stats(self, handlers, repos, staff, clock):
        housekeeper = staff["housekeeper"]
        handlers.handle_task_completed(completed(TaskType.CLEANING, completed_by_id=housekeeper.id))
        handlers.handle_task_completed(completed(TaskType.CLEANING, completed_by_id=housekeeper.id, task_id=2))

        stored = repos.employees.get(housekeeper.id)
        assert stored.tasks_completed == 2
        assert stored.last_active == clock.now

    def test_employee_update_runs_when_suite_update_fails(self, repos, notification_service, staff):
        """客房更新失败不影响员工统计"""
        suites = MagicMock()
        suites.get.side_effect = RuntimeError("suite table locked")
        handlers = TaskEventHandlers(suites, repos.tasks, repos.employees, notification_service)
        housekeeper = staff["housekeeper"]

        event = TaskCompletedData(
            task_id=1, title="t", type=TaskType.CLEANING, suite_id=5, completed_by_id=housekeeper.id,
        ).to_event()
        handlers.handle_task_completed(event)

        assert repos.employees.get(housekeeper.id).tasks_completed == 1

    def test_suite_update_runs_when_employee_update_fails(self, repos, notification_service):
        employees = MagicMock()
        employees.record_task_completion.side_effect = RuntimeError("boom")
        handlers = TaskEventHandlers(repos.suites, repos.tasks, employees, notification_service)
        suite = repos.suites.add("205", SuiteStatus.VACANT_DIRTY)

        handlers.handle_task_completed(completed(TaskType.CLEANING, suite, completed_by_id=9))

        assert repos.suites.get(suite.id).status == SuiteStatus.VACANT_CLEAN

    def test_missing_suite_and_employee(self, handlers, repos):
        event = TaskCompletedData(task_id=1, title="t", type=TaskType.CLEANING, suite_id=999, completed_by_id=999).to_event()
        handlers.handle_task_completed(event)


class TestNotifications:

    def test_task_assigned_queues_single_send(self, handlers, queue, staff):
        housekeeper = staff["housekeeper"]
        handlers.handle_task_assigned(TaskAssignedData(
            task_id=12, title="Clean Suite 101",
            assigned_to_id=housekeeper.id, assigned_to_name=housekeeper.name,
        ).to_event())

        [job] = queue.list_jobs()
        assert job.name == JOB_SEND
        data = NotificationJobData.from_dict(job.data)
        assert data.recipient_id == housekeeper.id
        assert data.title == "New Task Assigned"
        assert data.action_url == "/tasks/12"

    def test_emergency_task_notifies_supervisors_in_one_job(self, handlers, queue, staff):
        handlers.handle_emergency_task(EmergencyTaskCreatedData(
            task_id=3, title="Water leak", suite_id=1, suite_number="101",
        ).to_event())

        [job] = queue.list_jobs()
        assert job.name == JOB_SEND_BULK
        data = BulkNotificationJobData.from_dict(job.data)
        assert set(data.recipient_ids) == {staff["supervisor"].id, staff["manager"].id, staff["admin"].id}
        assert data.message == "Water leak - Suite 101"
        assert data.type == NotificationType.EMERGENCY_TASK

    def test_emergency_without_supervisors(self, repos, notification_service, queue):
        handlers = TaskEventHandlers(repos.suites, repos.tasks, repos.employees, notification_service)
        handlers.handle_emergency_task(EmergencyTaskCreatedData(task_id=3, title="Leak").to_event())
        assert queue.list_jobs() == []

    def test_overdue_notifies_assignee(self, handlers, queue, staff):
        handlers.handle_task_overdue(TaskOverdueData(
            task_id=8, title="Clean Suite 101",
            scheduled_end=datetime(2024, 1, 15, 11, 30),
            assigned_to_id=staff["housekeeper"].id,
        ).to_event())

        data = NotificationJobData.from_dict(queue.list_jobs()[0].data)
        assert data.type == NotificationType.TASK_OVERDUE
        assert data.title == "Task Overdue"
        assert data.message == "Clean Suite 101 (due 2024-01-15 11:30)"
        assert data.priority == NotificationPriority.HIGH

    def test_overdue_unassigned_task(self, handlers, queue):
        handlers.handle_task_overdue(TaskOverdueData(task_id=8, title="t").to_event())
        assert queue.list_jobs() == []

    def test_verified_notifies_assignee(self, handlers, queue, repos, staff):
        housekeeper = staff["housekeeper"]
        task = repos.tasks.create(
            TaskType.CLEANING, "Clean Suite 101", status=TaskStatus.VERIFIED, assigned_to_id=housekeeper.id,
        )

        handlers.handle_task_verified(TaskVerifiedData(
            task_id=task.id, title=task.title, verified_by_id=staff["supervisor"].id,
        ).to_event())

        data = NotificationJobData.from_dict(queue.list_jobs()[0].data)
        assert data.recipient_id == housekeeper.id
        assert data.title == "Task Verified"
        assert data.priority == NotificationPriority.LOW

    def test_verified_unassigned_task(self, handlers, queue, repos):
        task = repos.tasks.create(TaskType.INSPECTION, "Inspect lobby", status=TaskStatus.VERIFIED)
        handlers.handle_task_verified(TaskVerifiedData(task_id=task.id, title=task.title).to_event())
        assert queue.list_jobs() == []
