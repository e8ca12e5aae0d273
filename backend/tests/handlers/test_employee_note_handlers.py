"""
员工与备注事件处理器测试
"""
from datetime import datetime

import pytest

from motel.handlers import EmployeeEventHandlers, NoteEventHandlers
from motel.models.enums import Department, EmployeeRole, NotificationPriority, TaskStatus, TaskType
from motel.models.events import (
    EmployeeClockInData, EmployeeClockOutData, IncidentNoteCreatedData, NoteFollowUpDueData,
)
from motel.notifications import JOB_SEND, JOB_SEND_BULK, BulkNotificationJobData, NotificationJobData


@pytest.fixture
def employee_handlers(repos, notification_service):
    return EmployeeEventHandlers(repos.tasks, repos.employees, notification_service)


@pytest.fixture
def note_handlers(repos, notification_service):
    return NoteEventHandlers(repos.employees, notification_service)


class TestClockOut:

    def test_pauses_active_tasks_and_notifies_on_duty_supervisors(self, employee_handlers, repos, queue, staff):
        housekeeper = staff["housekeeper"]
        first = repos.tasks.create(TaskType.CLEANING, "A", status=TaskStatus.IN_PROGRESS, assigned_to_id=housekeeper.id)
        second = repos.tasks.create(TaskType.CLEANING, "B", status=TaskStatus.IN_PROGRESS, assigned_to_id=housekeeper.id)
        other = repos.tasks.create(TaskType.CLEANING, "C", status=TaskStatus.IN_PROGRESS, assigned_to_id=staff["maintenance"].id)

        employee_handlers.handle_clock_out(EmployeeClockOutData(
            employee_id=housekeeper.id,
            employee_name=housekeeper.name,
            active_task_ids=(first.id, second.id),
        ).to_event())

        assert repos.tasks.get(first.id).status == TaskStatus.PAUSED
        assert repos.tasks.get(second.id).status == TaskStatus.PAUSED
        assert repos.tasks.get(other.id).status == TaskStatus.IN_PROGRESS

        [job] = queue.list_jobs()
        assert job.name == JOB_SEND_BULK
        data = BulkNotificationJobData.from_dict(job.data)
        # 经理不在岗，只通知在岗主管
        assert data.recipient_ids == (staff["supervisor"].id,)
        assert data.title == "Tasks Paused - Employee Clocked Out"
        assert data.message == "Hannah clocked out with 2 active task(s)"
        assert data.priority == NotificationPriority.HIGH

    def test_only_listed_tasks_are_paused(self, employee_handlers, repos, staff):
        housekeeper = staff["housekeeper"]
        listed = repos.tasks.create(TaskType.CLEANING, "A", status=TaskStatus.IN_PROGRESS, assigned_to_id=housekeeper.id)
        unlisted = repos.tasks.create(TaskType.CLEANING, "B", status=TaskStatus.IN_PROGRESS, assigned_to_id=housekeeper.id)

        employee_handlers.handle_clock_out(EmployeeClockOutData(
            employee_id=housekeeper.id, employee_name=housekeeper.name, active_task_ids=(listed.id,),
        ).to_event())

        assert repos.tasks.get(listed.id).status == TaskStatus.PAUSED
        assert repos.tasks.get(unlisted.id).status == TaskStatus.IN_PROGRESS

    def test_no_active_tasks_does_nothing(self, employee_handlers, repos, queue, staff):
        housekeeper = staff["housekeeper"]
        task = repos.tasks.create(TaskType.CLEANING, "A", status=TaskStatus.IN_PROGRESS, assigned_to_id=housekeeper.id)

        employee_handlers.handle_clock_out(EmployeeClockOutData(
            employee_id=housekeeper.id, employee_name=housekeeper.name,
        ).to_event())

        assert repos.tasks.get(task.id).status == TaskStatus.IN_PROGRESS
        assert queue.list_jobs() == []

    def test_no_on_duty_supervisors_still_pauses(self, employee_handlers, repos, queue):
        worker = repos.employees.add("Solo", EmployeeRole.HOUSEKEEPER, Department.HOUSEKEEPING)
        task = repos.tasks.create(TaskType.CLEANING, "A", status=TaskStatus.IN_PROGRESS, assigned_to_id=worker.id)

        employee_handlers.handle_clock_out(EmployeeClockOutData(
            employee_id=worker.id, employee_name="Solo", active_task_ids=(task.id,),
        ).to_event())

        assert repos.tasks.get(task.id).status == TaskStatus.PAUSED
        assert queue.list_jobs() == []

    def test_clock_in_only_logs(self, employee_handlers, queue, staff):
        employee_handlers.handle_clock_in(EmployeeClockInData(employee_id=1, employee_name="Hannah").to_event())
        assert queue.list_jobs() == []


class TestNotes:

    def test_incident_notifies_managers_and_admins(self, note_handlers, queue, staff):
        note_handlers.handle_incident_note(IncidentNoteCreatedData(
            note_id=5, title="Guest slipped in lobby", content="Details...", suite_id=1,
        ).to_event())

        [job] = queue.list_jobs()
        assert job.name == JOB_SEND_BULK
        data = BulkNotificationJobData.from_dict(job.data)
        assert set(data.recipient_ids) == {staff["manager"].id, staff["admin"].id}
        assert data.title == "⚠️ Incident Report"
        assert data.message == "Guest slipped in lobby"
        assert data.priority == NotificationPriority.URGENT
        assert data.action_url == "/notes/5"

    def test_incident_without_title_uses_content_prefix(self, note_handlers, queue, staff):
        content = "x" * 150
        note_handlers.handle_incident_note(IncidentNoteCreatedData(note_id=6, content=content).to_event())
        assert queue.list_jobs()[0].data["message"] == "x" * 100

    def test_followup_notifies_assignee(self, note_handlers, queue, staff):
        note_handlers.handle_followup_due(NoteFollowUpDueData(
            note_id=9, title="Call plumber", follow_up_date=datetime(2024, 1, 16),
            assigned_to_id=staff["maintenance"].id,
        ).to_event())

        [job] = queue.list_jobs()
        assert job.name == JOB_SEND
        data = NotificationJobData.from_dict(job.data)
        assert data.recipient_id == staff["maintenance"].id
        assert data.title == "Follow-up Required"
        assert data.message == "Follow-up due for: Call plumber"
        assert data.priority == NotificationPriority.HIGH
        assert data.action_required is True

    def test_followup_without_assignee(self, note_handlers, queue):
        note_handlers.handle_followup_due(NoteFollowUpDueData(note_id=9).to_event())
        assert queue.list_jobs() == []
