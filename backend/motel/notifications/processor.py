"""
通知作业处理器

- send: 消费时重新校验接收人（存在且非 INACTIVE），不合格则跳过（视为成功，不重试）
- send-bulk: 一次批量写入，不逐个校验接收人
- cleanup: 删除超过 days_old 天且已读的通知

写库异常包装为 TransientDeliveryError 抛出，由 worker 按退避策略重试。
"""
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional
import logging

from opscore.errors import TransientDeliveryError
from opscore.queue import Job, JobProcessor
from motel.notifications.jobs import (
    JOB_CLEANUP,
    JOB_SEND,
    JOB_SEND_BULK,
    BulkNotificationJobData,
    NotificationJobData,
)
from motel.repositories.interfaces import EmployeeRepository, NotificationRepository

logger = logging.getLogger(__name__)

SKIPPED_REASON = "Recipient not found or inactive"


class NotificationProcessor:
    """通知作业处理器"""

    def __init__(
        self,
        employees: EmployeeRepository,
        notifications: NotificationRepository,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.employees = employees
        self.notifications = notifications
        self._clock = clock or datetime.utcnow

    def handle_send(self, job: Job) -> Dict[str, Any]:
        data = NotificationJobData.from_dict(job.data)
        logger.debug(f"Processing notification job {job.id}")

        recipient = self.employees.get(data.recipient_id)
        if recipient is None or not recipient.is_eligible:
            logger.warning(
                f"Skipping notification for inactive/missing recipient: {data.recipient_id}"
            )
            return {"skipped": True, "reason": SKIPPED_REASON}

        try:
            notification = self.notifications.create(**data.notification_fields(data.recipient_id))
        except Exception as e:
            raise TransientDeliveryError(
                f"Failed to create notification for {data.recipient_id}: {e}"
            ) from e
        logger.info(f"Notification created: {notification.id} for {data.recipient_id}")
        return {"success": True, "notification_id": notification.id}

    def handle_send_bulk(self, job: Job) -> Dict[str, Any]:
        data = BulkNotificationJobData.from_dict(job.data)
        logger.debug(
            f"Processing bulk notification job {job.id} for {len(data.recipient_ids)} recipients"
        )
        rows = [
            data.for_recipient(rid).notification_fields(rid)
            for rid in data.recipient_ids
        ]
        try:
            count = self.notifications.create_many(rows)
        except Exception as e:
            raise TransientDeliveryError(f"Failed to create bulk notifications: {e}") from e
        logger.info(f"Bulk notifications created: {count} notifications")
        return {"success": True, "count": count}

    def handle_cleanup(self, job: Job) -> Dict[str, Any]:
        days_old = int(job.data.get("days_old", 30))
        cutoff = self._clock() - timedelta(days=days_old)
        logger.debug(f"Cleaning up notifications older than {days_old} days")
        count = self.notifications.delete_read_older_than(cutoff)
        logger.info(f"Cleaned up {count} old notifications")
        return {"success": True, "count": count}

    def processors(self) -> Dict[str, JobProcessor]:
        """作业名 -> 处理函数，交给 WorkerPool"""
        return {
            JOB_SEND: self.handle_send,
            JOB_SEND_BULK: self.handle_send_bulk,
            JOB_CLEANUP: self.handle_cleanup,
        }
