"""
通知队列生产者

事件处理器只负责"决定通知谁"，投递交给队列异步完成。
默认重试策略：3 次，指数退避（1s 起），成功后删除，失败后保留。
"""
from typing import Dict, Optional, Sequence
import logging

from opscore.queue import DEFAULT_JOB_OPTIONS, IJobQueue, Job, JobOptions
from opscore.scheduler import ISchedulerBackend
from motel.models.enums import NotificationPriority, NotificationType
from motel.notifications.jobs import (
    JOB_CLEANUP,
    JOB_SEND,
    JOB_SEND_BULK,
    BulkNotificationJobData,
    NotificationJobData,
)

logger = logging.getLogger(__name__)

CLEANUP_SCHEDULE_ID = "notifications-cleanup"
DEFAULT_CLEANUP_CRON = "0 3 * * *"  # 每天凌晨 3 点


class NotificationQueueService:
    """
    通知队列服务

    Args:
        queue: 作业队列
        scheduler: 调度后端（周期性清理用，可选）
        job_options: 通知作业的默认选项
    """

    def __init__(
        self,
        queue: IJobQueue,
        scheduler: Optional[ISchedulerBackend] = None,
        job_options: JobOptions = DEFAULT_JOB_OPTIONS,
    ):
        self.queue = queue
        self.scheduler = scheduler
        self.job_options = job_options

    def queue_notification(self, data: NotificationJobData) -> Job:
        """入队单条通知"""
        job = self.queue.enqueue(JOB_SEND, data.to_dict(), self.job_options)
        logger.debug(f"Queued notification job: {job.id}")
        return job

    def queue_bulk_notification(self, data: BulkNotificationJobData) -> Job:
        """入队批量通知（一个作业，N 条记录）"""
        job = self.queue.enqueue(JOB_SEND_BULK, data.to_dict(), self.job_options)
        logger.debug(
            f"Queued bulk notification job: {job.id} for {len(data.recipient_ids)} recipients"
        )
        return job

    def queue_task_assigned_notification(self, recipient_id: int, task_id: int, task_title: str) -> Job:
        return self.queue_notification(NotificationJobData(
            recipient_id=recipient_id,
            type=NotificationType.TASK_ASSIGNED,
            title="New Task Assigned",
            message=task_title,
            priority=NotificationPriority.NORMAL,
            related_entity_type="Task",
            related_entity_id=task_id,
            action_url=f"/tasks/{task_id}",
        ))

    def queue_emergency_notification(
        self,
        recipient_ids: Sequence[int],
        task_id: int,
        task_title: str,
        suite_number: Optional[str] = None,
    ) -> Job:
        message = f"{task_title} - Suite {suite_number}" if suite_number else task_title
        return self.queue_bulk_notification(BulkNotificationJobData(
            recipient_ids=tuple(recipient_ids),
            type=NotificationType.EMERGENCY_TASK,
            title="🚨 EMERGENCY TASK",
            message=message,
            priority=NotificationPriority.URGENT,
            related_entity_type="Task",
            related_entity_id=task_id,
            action_url=f"/tasks/{task_id}",
            action_required=True,
        ))

    def queue_suite_status_notification(
        self,
        recipient_ids: Sequence[int],
        suite_id: int,
        message: str,
        title: str = "Suite Status Change",
        priority: NotificationPriority = NotificationPriority.NORMAL,
    ) -> Job:
        return self.queue_bulk_notification(BulkNotificationJobData(
            recipient_ids=tuple(recipient_ids),
            type=NotificationType.SUITE_STATUS_CHANGE,
            title=title,
            message=message,
            priority=priority,
            related_entity_type="Suite",
            related_entity_id=suite_id,
            action_url=f"/suites/{suite_id}",
        ))

    def enqueue_cleanup(self, days_old: int = 30) -> Job:
        """入队一次清理作业（由调度器周期调用）"""
        options = JobOptions(
            attempts=self.job_options.attempts,
            backoff=self.job_options.backoff,
            remove_on_complete=True,
        )
        return self.queue.enqueue(JOB_CLEANUP, {"days_old": days_old}, options)

    def schedule_cleanup(self, days_old: int = 30, cron: str = DEFAULT_CLEANUP_CRON) -> str:
        """
        注册周期性清理

        Returns:
            调度任务 ID

        Raises:
            RuntimeError: 未配置调度后端
        """
        if self.scheduler is None:
            raise RuntimeError("No scheduler backend configured for notification cleanup")
        self.scheduler.add_cron_job(
            CLEANUP_SCHEDULE_ID,
            self.enqueue_cleanup,
            cron,
            kwargs={"days_old": days_old},
        )
        logger.info(f"Scheduled notification cleanup job: {CLEANUP_SCHEDULE_ID} ({cron})")
        return CLEANUP_SCHEDULE_ID

    def get_queue_stats(self) -> Dict[str, int]:
        """队列统计：waiting / active / completed / failed / delayed"""
        return self.queue.get_stats().to_dict()
