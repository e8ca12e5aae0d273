"""
备注事件处理器
"""
from typing import Callable, List, Tuple
import logging

from opscore.engine.event_bus import Event
from motel.models.enums import EmployeeRole, NotificationPriority, NotificationType
from motel.models.events import EventType, IncidentNoteCreatedData, NoteFollowUpDueData
from motel.notifications.jobs import BulkNotificationJobData, NotificationJobData
from motel.notifications.queue_service import NotificationQueueService
from motel.repositories.interfaces import EmployeeRepository

logger = logging.getLogger(__name__)

INCIDENT_RECIPIENT_ROLES = (EmployeeRole.MANAGER, EmployeeRole.ADMIN)


class NoteEventHandlers:
    """备注事件处理器集合"""

    def __init__(self, employees: EmployeeRepository, notifications: NotificationQueueService):
        self.employees = employees
        self.notifications = notifications

    def handle_incident_note(self, event: Event) -> None:
        data: IncidentNoteCreatedData = event.data
        logger.warning(f"INCIDENT NOTE: {data.title or 'Untitled'}")

        managers = self.employees.find(INCIDENT_RECIPIENT_ROLES)
        if not managers:
            return

        self.notifications.queue_bulk_notification(BulkNotificationJobData(
            recipient_ids=tuple(m.id for m in managers),
            type=NotificationType.SYSTEM_ALERT,
            title="⚠️ Incident Report",
            message=data.title or data.content[:100],
            priority=NotificationPriority.URGENT,
            related_entity_type="Note",
            related_entity_id=data.note_id,
            action_url=f"/notes/{data.note_id}",
        ))
        logger.info(f"Incident notifications queued for {len(managers)} managers")

    def handle_followup_due(self, event: Event) -> None:
        data: NoteFollowUpDueData = event.data
        logger.info(f"Follow-up due: {data.title or 'Note'}")
        if data.assigned_to_id is None:
            return

        self.notifications.queue_notification(NotificationJobData(
            recipient_id=data.assigned_to_id,
            type=NotificationType.SYSTEM_ALERT,
            title="Follow-up Required",
            message=f"Follow-up due for: {data.title or 'Note'}",
            priority=NotificationPriority.HIGH,
            related_entity_type="Note",
            related_entity_id=data.note_id,
            action_url=f"/notes/{data.note_id}",
            action_required=True,
        ))

    def handler_table(self) -> List[Tuple[EventType, Callable[[Event], None]]]:
        return [
            (EventType.NOTE_INCIDENT_CREATED, self.handle_incident_note),
            (EventType.NOTE_FOLLOWUP_DUE, self.handle_followup_due),
        ]
