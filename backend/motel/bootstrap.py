"""
运行时装配

根据 Settings 构建事件总线、仓储、通知队列、worker、调度器，
并注册全部事件处理器。FastAPI lifespan 与脚本共用。
"""
from dataclasses import dataclass, field
from typing import Callable, List, Optional
import logging

from sqlalchemy.orm import Session

from opscore.engine.event_bus import EventBus
from opscore.queue import BackoffOptions, IJobQueue, InMemoryJobQueue, JobOptions, WorkerPool
from motel.config import Settings
from motel.handlers import (
    ActivityLogHandlers,
    EmployeeEventHandlers,
    NoteEventHandlers,
    SuiteEventHandlers,
    TaskEventHandlers,
    register_event_handlers,
    unregister_event_handlers,
)
from motel.handlers.registry import HandlerEntry
from motel.logging_config import configure_logging
from motel.notifications import QUEUE_NAME, NotificationProcessor, NotificationQueueService
from motel.repositories.interfaces import (
    EmployeeRepository, NotificationRepository, SuiteRepository, TaskRepository,
)
from motel.services.scheduler_backend import APSchedulerBackend
from motel.services.sql_job_queue import SqlJobQueue

logger = logging.getLogger(__name__)


@dataclass
class Repositories:
    """仓储集合"""
    suites: SuiteRepository
    tasks: TaskRepository
    employees: EmployeeRepository
    notifications: NotificationRepository

    @classmethod
    def sql(cls, session_factory: Callable[[], Session]) -> "Repositories":
        from motel.repositories.sql import (
            SqlEmployeeRepository, SqlNotificationRepository,
            SqlSuiteRepository, SqlTaskRepository,
        )
        return cls(
            suites=SqlSuiteRepository(session_factory),
            tasks=SqlTaskRepository(session_factory),
            employees=SqlEmployeeRepository(session_factory),
            notifications=SqlNotificationRepository(session_factory),
        )

    @classmethod
    def in_memory(cls) -> "Repositories":
        from motel.repositories.memory import (
            InMemoryEmployeeRepository, InMemoryNotificationRepository,
            InMemorySuiteRepository, InMemoryTaskRepository,
        )
        return cls(
            suites=InMemorySuiteRepository(),
            tasks=InMemoryTaskRepository(),
            employees=InMemoryEmployeeRepository(),
            notifications=InMemoryNotificationRepository(),
        )


@dataclass
class Runtime:
    """装配好的运行时"""
    settings: Settings
    bus: EventBus
    repositories: Repositories
    queue: IJobQueue
    notifications: NotificationQueueService
    processor: NotificationProcessor
    workers: WorkerPool
    scheduler: Optional[APSchedulerBackend]
    activity: ActivityLogHandlers
    handler_table: List[HandlerEntry] = field(default_factory=list)
    started: bool = False

    def start(self) -> None:
        """注册处理器，启动 worker 与调度器"""
        if self.started:
            return
        configure_logging(self.settings.LOG_LEVEL)
        self.handler_table = register_event_handlers(self.bus, self._handler_groups())
        self.workers.start()
        if self.scheduler is not None:
            self.notifications.schedule_cleanup(
                days_old=self.settings.CLEANUP_DAYS_OLD,
                cron=self.settings.CLEANUP_CRON,
            )
            self.scheduler.start()
        self.started = True
        logger.info(f"{self.settings.APP_NAME} runtime started")

    def stop(self, timeout: float = 5.0) -> None:
        """注销处理器，等待在途处理器结束，停止 worker 与调度器"""
        if not self.started:
            return
        unregister_event_handlers(self.bus, self.handler_table)
        self.handler_table = []
        if not self.bus.drain(timeout):
            logger.warning("Event handlers still running at shutdown")
        self.bus.shutdown(wait_for_handlers=False)
        if self.scheduler is not None:
            self.scheduler.shutdown()
        self.workers.stop(timeout)
        self.started = False
        logger.info(f"{self.settings.APP_NAME} runtime stopped")

    def _handler_groups(self):
        repos = self.repositories
        return [
            SuiteEventHandlers(repos.suites, repos.tasks, repos.employees, self.notifications),
            TaskEventHandlers(repos.suites, repos.tasks, repos.employees, self.notifications),
            EmployeeEventHandlers(repos.tasks, repos.employees, self.notifications),
            NoteEventHandlers(repos.employees, self.notifications),
            self.activity,
        ]


def build_runtime(
    settings: Settings,
    session_factory: Optional[Callable[[], Session]] = None,
    repositories: Optional[Repositories] = None,
) -> Runtime:
    """
    按配置构建运行时（不启动）

    Args:
        settings: 应用配置
        session_factory: SQL 仓储与 SQL 队列使用的会话工厂
        repositories: 直接指定仓储（测试用）；为空时使用 SQL 仓储
    """
    if repositories is None or settings.NOTIFICATION_QUEUE_BACKEND == "sql":
        if session_factory is None:
            from motel.database import SessionLocal
            session_factory = SessionLocal
    if repositories is None:
        repositories = Repositories.sql(session_factory)

    bus = EventBus(
        history_size=settings.EVENT_HISTORY_SIZE,
        max_workers=settings.EVENT_BUS_MAX_WORKERS,
        synchronous=settings.EVENT_BUS_SYNC,
    )

    if settings.NOTIFICATION_QUEUE_BACKEND == "memory":
        queue: IJobQueue = InMemoryJobQueue(QUEUE_NAME)
    else:
        queue = SqlJobQueue(session_factory, QUEUE_NAME)

    scheduler = APSchedulerBackend() if settings.SCHEDULER_ENABLED else None
    job_options = JobOptions(
        attempts=settings.NOTIFICATION_ATTEMPTS,
        backoff=BackoffOptions(delay=settings.NOTIFICATION_BACKOFF_DELAY),
    )
    notifications = NotificationQueueService(queue, scheduler=scheduler, job_options=job_options)
    processor = NotificationProcessor(repositories.employees, repositories.notifications)
    workers = WorkerPool(
        queue,
        processor.processors(),
        concurrency=settings.NOTIFICATION_WORKERS,
        job_timeout=settings.JOB_TIMEOUT_SECONDS,
        lease_seconds=settings.JOB_LEASE_SECONDS,
        poll_interval=settings.QUEUE_POLL_INTERVAL,
    )

    return Runtime(
        settings=settings,
        bus=bus,
        repositories=repositories,
        queue=queue,
        notifications=notifications,
        processor=processor,
        workers=workers,
        scheduler=scheduler,
        activity=ActivityLogHandlers(),
    )
