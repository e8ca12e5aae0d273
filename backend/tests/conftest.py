"""
Pytest 配置和共享 fixtures
"""
import pytest
from datetime import datetime, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from opscore.engine.event_bus import EventBus
from opscore.queue import InMemoryJobQueue, JobWorker
from motel.bootstrap import Repositories
from motel.database import Base, init_db
from motel.models.enums import Department, EmployeeRole, EmployeeStatus
from motel.notifications import QUEUE_NAME, NotificationProcessor, NotificationQueueService
from motel.repositories.memory import InMemoryNotificationRepository


class FakeClock:
    """可控时钟"""

    def __init__(self, start: datetime = datetime(2024, 1, 15, 9, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


# ============== 数据库 ==============

@pytest.fixture(scope="function")
def db_engine():
    """创建内存数据库引擎"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """会话工厂（仓储与 SQL 队列各自开关会话）"""
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


# ============== 运行时组件 ==============

@pytest.fixture
def repos(clock):
    """内存仓储"""
    repositories = Repositories.in_memory()
    repositories.notifications = InMemoryNotificationRepository(clock=clock)
    return repositories


@pytest.fixture
def bus():
    """同步事件总线：publish 返回时处理器已执行完毕"""
    event_bus = EventBus(synchronous=True)
    yield event_bus
    event_bus.clear()


@pytest.fixture
def queue(clock):
    return InMemoryJobQueue(QUEUE_NAME, clock=clock)


@pytest.fixture
def notification_service(queue):
    return NotificationQueueService(queue)


@pytest.fixture
def processor(repos, clock):
    return NotificationProcessor(repos.employees, repos.notifications, clock=clock)


@pytest.fixture
def worker(queue, processor):
    job_worker = JobWorker(queue, processor.processors(), job_timeout=5, lease_seconds=60)
    yield job_worker
    job_worker.stop()


# ============== 员工 ==============

@pytest.fixture
def staff(repos):
    """常用员工：每个角色一名"""
    employees = repos.employees
    return {
        "housekeeper": employees.add("Hannah", EmployeeRole.HOUSEKEEPER, Department.HOUSEKEEPING, is_on_duty=True),
        "maintenance": employees.add("Mike", EmployeeRole.MAINTENANCE, Department.MAINTENANCE, is_on_duty=True),
        "front_desk": employees.add("Fiona", EmployeeRole.FRONT_DESK, Department.FRONT_OFFICE),
        "supervisor": employees.add("Sam", EmployeeRole.SUPERVISOR, Department.HOUSEKEEPING, is_on_duty=True),
        "manager": employees.add("Maria", EmployeeRole.MANAGER, Department.MANAGEMENT, is_on_duty=False),
        "admin": employees.add("Alex", EmployeeRole.ADMIN, Department.MANAGEMENT),
        "inactive_supervisor": employees.add(
            "Ivan", EmployeeRole.SUPERVISOR, Department.HOUSEKEEPING, status=EmployeeStatus.INACTIVE
        ),
    }
