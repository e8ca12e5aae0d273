"""
ORM 对象定义
客房、任务、员工、通知，以及通知队列的作业表
"""
from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Float, DateTime, Date,
    ForeignKey, Text, Enum as SQLEnum, Boolean, JSON
)
from motel.database import Base
from motel.models.enums import (
    SuiteStatus, TaskStatus, TaskType, TaskPriority,
    EmployeeRole, Department, EmployeeStatus,
    NotificationType, NotificationPriority,
)


class Suite(Base):
    """
    客房对象
    状态只能经 SuiteTransitionEngine 校验后变更
    """
    __tablename__ = "suites"

    id = Column(Integer, primary_key=True, index=True)
    suite_number = Column(String(10), unique=True, nullable=False)  # 房号
    floor = Column(Integer, default=1)
    status = Column(SQLEnum(SuiteStatus), default=SuiteStatus.VACANT_CLEAN, nullable=False)
    current_guest = Column(String(100))                            # 在住客人姓名
    check_in_date = Column(Date)
    check_out_date = Column(Date)
    last_cleaned = Column(DateTime)                                # 最近清洁时间
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Employee(Base):
    """员工对象"""
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    role = Column(SQLEnum(EmployeeRole), nullable=False)
    department = Column(SQLEnum(Department), nullable=False)
    status = Column(SQLEnum(EmployeeStatus), default=EmployeeStatus.ACTIVE, nullable=False)
    is_on_duty = Column(Boolean, default=False)                    # 是否在岗（打卡）
    tasks_completed = Column(Integer, default=0)                   # 累计完成任务数
    last_active = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)


class Task(Base):
    """
    任务对象
    清洁、维修、巡检等
    """
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    suite_id = Column(Integer, ForeignKey("suites.id"), nullable=True, index=True)
    type = Column(SQLEnum(TaskType), nullable=False)
    priority = Column(SQLEnum(TaskPriority), default=TaskPriority.NORMAL, nullable=False)
    status = Column(SQLEnum(TaskStatus), default=TaskStatus.PENDING, nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text)
    assigned_to_id = Column(Integer, ForeignKey("employees.id"), nullable=True, index=True)
    created_by_id = Column(Integer, ForeignKey("employees.id"), nullable=True)
    verified_by_id = Column(Integer, ForeignKey("employees.id"), nullable=True)
    estimated_duration = Column(Integer)                           # 预计用时（分钟）
    scheduled_end = Column(DateTime)
    actual_start = Column(DateTime)
    actual_end = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Notification(Base):
    """站内通知"""
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    recipient_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    type = Column(SQLEnum(NotificationType), nullable=False)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    priority = Column(SQLEnum(NotificationPriority), default=NotificationPriority.NORMAL, nullable=False)
    related_entity_type = Column(String(50))
    related_entity_id = Column(Integer)
    action_url = Column(String(255))
    action_required = Column(Boolean, default=False)
    read = Column(Boolean, default=False)
    read_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)


class QueueJob(Base):
    """
    作业队列表
    worker 通过条件 UPDATE 抢占作业，lease_expires_at 过期后可被重新领取
    """
    __tablename__ = "queue_jobs"

    id = Column(String(32), primary_key=True)
    queue = Column(String(50), nullable=False, index=True)
    name = Column(String(50), nullable=False)
    data = Column(JSON, nullable=False)
    status = Column(String(20), nullable=False, index=True)
    attempts_made = Column(Integer, default=0, nullable=False)
    max_attempts = Column(Integer, default=3, nullable=False)
    backoff_type = Column(String(20), default="exponential", nullable=False)
    backoff_delay = Column(Float, default=1.0, nullable=False)
    remove_on_complete = Column(Boolean, default=True)
    remove_on_fail = Column(Boolean, default=False)
    run_at = Column(DateTime, nullable=False, index=True)
    lease_expires_at = Column(DateTime)
    last_error = Column(Text)
    result = Column(JSON)
    created_at = Column(DateTime, default=datetime.utcnow)
    finished_at = Column(DateTime)
