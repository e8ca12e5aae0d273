"""
motel/notifications - 通知队列（生产者、处理器、作业数据）
"""
from motel.notifications.jobs import (
    JOB_CLEANUP,
    JOB_SEND,
    JOB_SEND_BULK,
    QUEUE_NAME,
    BulkNotificationJobData,
    NotificationJobData,
)
from motel.notifications.processor import NotificationProcessor
from motel.notifications.queue_service import NotificationQueueService

__all__ = [
    "JOB_CLEANUP",
    "JOB_SEND",
    "JOB_SEND_BULK",
    "QUEUE_NAME",
    "BulkNotificationJobData",
    "NotificationJobData",
    "NotificationProcessor",
    "NotificationQueueService",
]
