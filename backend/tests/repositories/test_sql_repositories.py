"""
SQLAlchemy 仓储测试
"""
from datetime import date, datetime, timedelta

import pytest

from motel.bootstrap import Repositories
from motel.models.enums import (
    Department, EmployeeRole, EmployeeStatus, NotificationPriority,
    NotificationType, SuiteStatus, TaskPriority, TaskStatus, TaskType,
)
from motel.models.ontology import Notification


@pytest.fixture
def sql_repos(session_factory):
    return Repositories.sql(session_factory)


class TestSuites:

    def test_add_and_get(self, sql_repos):
        suite = sql_repos.suites.add("101", SuiteStatus.OCCUPIED_CLEAN, floor=1)
        stored = sql_repos.suites.get(suite.id)
        assert stored.suite_number == "101"
        assert stored.status == SuiteStatus.OCCUPIED_CLEAN

    def test_get_missing(self, sql_repos):
        assert sql_repos.suites.get(404) is None
        assert sql_repos.suites.update_status(404, SuiteStatus.VACANT_DIRTY) is None

    def test_update_status_keeps_last_cleaned_when_not_given(self, sql_repos):
        suite = sql_repos.suites.add("102", SuiteStatus.VACANT_DIRTY)
        cleaned_at = datetime(2024, 1, 15, 10, 0)
        sql_repos.suites.update_status(suite.id, SuiteStatus.VACANT_CLEAN, last_cleaned=cleaned_at)
        sql_repos.suites.update_status(suite.id, SuiteStatus.OCCUPIED_CLEAN)

        stored = sql_repos.suites.get(suite.id)
        assert stored.status == SuiteStatus.OCCUPIED_CLEAN
        assert stored.last_cleaned == cleaned_at

    def test_check_in_then_out(self, sql_repos):
        suite = sql_repos.suites.add("103", SuiteStatus.OCCUPIED_CLEAN)
        sql_repos.suites.record_check_in(suite.id, "Grace", date(2024, 1, 14), date(2024, 1, 16))
        assert sql_repos.suites.get(suite.id).current_guest == "Grace"

        sql_repos.suites.mark_checked_out(suite.id)

        stored = sql_repos.suites.get(suite.id)
        assert stored.status == SuiteStatus.VACANT_DIRTY
        assert stored.current_guest is None
        assert stored.check_out_date is None


class TestTasks:

    def test_create_defaults(self, sql_repos):
        task = sql_repos.tasks.create(TaskType.CLEANING, "Clean Suite 101", estimated_duration=45)
        stored = sql_repos.tasks.get(task.id)
        assert stored.status == TaskStatus.PENDING
        assert stored.priority == TaskPriority.NORMAL
        assert stored.estimated_duration == 45

    def test_find_open_filters_type_and_status(self, sql_repos):
        suite = sql_repos.suites.add("201")
        sql_repos.tasks.create(TaskType.CLEANING, "done", status=TaskStatus.COMPLETED, suite_id=suite.id)
        sql_repos.tasks.create(TaskType.MAINTENANCE, "fix", suite_id=suite.id)
        open_statuses = (TaskStatus.PENDING, TaskStatus.ASSIGNED, TaskStatus.IN_PROGRESS)

        assert sql_repos.tasks.find_open(suite.id, TaskType.CLEANING, open_statuses) is None

        created = sql_repos.tasks.create(TaskType.CLEANING, "clean", status=TaskStatus.ASSIGNED, suite_id=suite.id)
        assert sql_repos.tasks.find_open(suite.id, TaskType.CLEANING, open_statuses).id == created.id

    def test_list_for_suite_in_creation_order(self, sql_repos):
        suite = sql_repos.suites.add("202")
        first = sql_repos.tasks.create(TaskType.CLEANING, "a", suite_id=suite.id)
        second = sql_repos.tasks.create(TaskType.INSPECTION, "b", suite_id=suite.id)
        sql_repos.tasks.create(TaskType.CLEANING, "elsewhere")

        assert [t.id for t in sql_repos.tasks.list_for_suite(suite.id)] == [first.id, second.id]

    def test_pause_in_progress(self, sql_repos):
        employee = sql_repos.employees.add("Hannah", EmployeeRole.HOUSEKEEPER, Department.HOUSEKEEPING)
        running = sql_repos.tasks.create(
            TaskType.CLEANING, "a", status=TaskStatus.IN_PROGRESS, assigned_to_id=employee.id,
        )
        assigned = sql_repos.tasks.create(
            TaskType.CLEANING, "b", status=TaskStatus.ASSIGNED, assigned_to_id=employee.id,
        )

        paused = sql_repos.tasks.pause_in_progress(employee.id)

        assert paused == [running.id]
        assert sql_repos.tasks.get(running.id).status == TaskStatus.PAUSED
        assert sql_repos.tasks.get(assigned.id).status == TaskStatus.ASSIGNED

    def test_pause_restricted_to_given_ids(self, sql_repos):
        employee = sql_repos.employees.add("Hannah", EmployeeRole.HOUSEKEEPER, Department.HOUSEKEEPING)
        first = sql_repos.tasks.create(TaskType.CLEANING, "a", status=TaskStatus.IN_PROGRESS, assigned_to_id=employee.id)
        second = sql_repos.tasks.create(TaskType.CLEANING, "b", status=TaskStatus.IN_PROGRESS, assigned_to_id=employee.id)

        assert sql_repos.tasks.pause_in_progress(employee.id, [second.id]) == [second.id]
        assert sql_repos.tasks.get(first.id).status == TaskStatus.IN_PROGRESS


class TestEmployees:

    @pytest.fixture
    def team(self, sql_repos):
        employees = sql_repos.employees
        return {
            "on_duty": employees.add("Sam", EmployeeRole.SUPERVISOR, Department.HOUSEKEEPING, is_on_duty=True),
            "off_duty": employees.add("Maria", EmployeeRole.MANAGER, Department.MANAGEMENT),
            "inactive": employees.add(
                "Ivan", EmployeeRole.SUPERVISOR, Department.HOUSEKEEPING, status=EmployeeStatus.INACTIVE,
            ),
            "tech": employees.add("Mike", EmployeeRole.MAINTENANCE, Department.MAINTENANCE),
        }

    def test_find_by_roles_excludes_inactive(self, sql_repos, team):
        found = sql_repos.employees.find([EmployeeRole.SUPERVISOR, EmployeeRole.MANAGER])
        assert [e.id for e in found] == [team["on_duty"].id, team["off_duty"].id]

    def test_find_including_inactive(self, sql_repos, team):
        found = sql_repos.employees.find([EmployeeRole.SUPERVISOR], exclude_inactive=False)
        assert {e.id for e in found} == {team["on_duty"].id, team["inactive"].id}

    def test_find_on_duty_and_department(self, sql_repos, team):
        on_duty = sql_repos.employees.find([EmployeeRole.SUPERVISOR, EmployeeRole.MANAGER], on_duty=True)
        assert [e.name for e in on_duty] == ["Sam"]

        maintenance = sql_repos.employees.find([EmployeeRole.MAINTENANCE], department=Department.MAINTENANCE)
        assert [e.name for e in maintenance] == ["Mike"]

    def test_set_status(self, sql_repos, team):
        updated = sql_repos.employees.set_status(team["tech"].id, EmployeeStatus.INACTIVE)
        assert updated.is_eligible is False
        assert sql_repos.employees.set_status(999, EmployeeStatus.ACTIVE) is None

    def test_record_task_completion(self, sql_repos, team):
        when = datetime(2024, 1, 15, 12, 0)
        sql_repos.employees.record_task_completion(team["tech"].id, when)
        stored = sql_repos.employees.record_task_completion(team["tech"].id, when)

        assert stored.tasks_completed == 2
        assert stored.last_active == when

    def test_record_task_completion_unknown(self, sql_repos):
        assert sql_repos.employees.record_task_completion(999, datetime.utcnow()) is None


class TestNotifications:

    def test_create_and_list(self, sql_repos):
        created = sql_repos.notifications.create(
            7, NotificationType.TASK_ASSIGNED, "New Task Assigned", "Clean Suite 101",
            priority=NotificationPriority.HIGH, action_url="/tasks/1",
        )

        [row] = sql_repos.notifications.list_for_recipient(7)
        assert row.id == created.id
        assert row.priority == NotificationPriority.HIGH
        assert row.read is False
        assert row.created_at is not None

    def test_create_many_single_write(self, sql_repos):
        rows = [
            {"recipient_id": rid, "type": NotificationType.EMERGENCY_TASK, "title": "t", "message": "m"}
            for rid in (1, 2, 3)
        ]
        assert sql_repos.notifications.create_many(rows) == 3
        assert sql_repos.notifications.count() == 3
        assert sql_repos.notifications.create_many([]) == 0

    def test_mark_read(self, sql_repos):
        row = sql_repos.notifications.create(1, NotificationType.SYSTEM_ALERT, "t", "m")
        when = datetime(2024, 1, 15, 9, 30)

        assert sql_repos.notifications.mark_read(row.id, when) is True
        assert sql_repos.notifications.mark_read(999) is False
        stored = sql_repos.notifications.list_for_recipient(1)[0]
        assert stored.read is True
        assert stored.read_at == when

    def test_delete_read_older_than(self, sql_repos, session_factory):
        notifications = sql_repos.notifications
        old_read = notifications.create(1, NotificationType.SYSTEM_ALERT, "old read", "m")
        old_unread = notifications.create(1, NotificationType.SYSTEM_ALERT, "old unread", "m")
        fresh_read = notifications.create(1, NotificationType.SYSTEM_ALERT, "fresh read", "m")
        for row in (old_read, fresh_read):
            notifications.mark_read(row.id)

        old = datetime.utcnow() - timedelta(days=40)
        with session_factory() as db:
            db.query(Notification).filter(
                Notification.id.in_([old_read.id, old_unread.id])
            ).update({Notification.created_at: old}, synchronize_session=False)
            db.commit()

        deleted = notifications.delete_read_older_than(datetime.utcnow() - timedelta(days=30))

        assert deleted == 1
        assert {n.title for n in notifications.list_for_recipient(1)} == {"old unread", "fresh read"}
