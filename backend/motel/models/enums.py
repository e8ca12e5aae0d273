"""
领域枚举定义
"""
from enum import Enum


class SuiteStatus(str, Enum):
    """客房状态"""
    VACANT_CLEAN = "VACANT_CLEAN"      # 空闲-已清洁
    VACANT_DIRTY = "VACANT_DIRTY"      # 空闲-待清洁
    OCCUPIED_CLEAN = "OCCUPIED_CLEAN"  # 入住-已清洁
    OCCUPIED_DIRTY = "OCCUPIED_DIRTY"  # 入住-待清洁
    OUT_OF_ORDER = "OUT_OF_ORDER"      # 维修中
    BLOCKED = "BLOCKED"                # 锁房


class TaskStatus(str, Enum):
    """任务状态"""
    PENDING = "PENDING"          # 待分配
    ASSIGNED = "ASSIGNED"        # 已分配
    IN_PROGRESS = "IN_PROGRESS"  # 进行中
    PAUSED = "PAUSED"            # 暂停
    COMPLETED = "COMPLETED"      # 已完成
    VERIFIED = "VERIFIED"        # 已验收
    CANCELLED = "CANCELLED"      # 已取消


class TaskType(str, Enum):
    """任务类型"""
    CLEANING = "CLEANING"
    MAINTENANCE = "MAINTENANCE"
    INSPECTION = "INSPECTION"
    LINEN_CHANGE = "LINEN_CHANGE"
    DEEP_CLEAN = "DEEP_CLEAN"
    EMERGENCY = "EMERGENCY"
    CUSTOM = "CUSTOM"


class TaskPriority(str, Enum):
    """任务优先级"""
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"
    EMERGENCY = "EMERGENCY"


class EmployeeRole(str, Enum):
    """员工角色"""
    HOUSEKEEPER = "HOUSEKEEPER"
    MAINTENANCE = "MAINTENANCE"
    FRONT_DESK = "FRONT_DESK"
    SUPERVISOR = "SUPERVISOR"
    MANAGER = "MANAGER"
    ADMIN = "ADMIN"


class Department(str, Enum):
    """部门"""
    HOUSEKEEPING = "HOUSEKEEPING"
    MAINTENANCE = "MAINTENANCE"
    FRONT_OFFICE = "FRONT_OFFICE"
    MANAGEMENT = "MANAGEMENT"


class EmployeeStatus(str, Enum):
    """员工状态"""
    ACTIVE = "ACTIVE"
    ON_BREAK = "ON_BREAK"
    OFF_DUTY = "OFF_DUTY"
    ON_LEAVE = "ON_LEAVE"
    INACTIVE = "INACTIVE"


class NotificationType(str, Enum):
    """通知类型"""
    TASK_ASSIGNED = "TASK_ASSIGNED"
    TASK_OVERDUE = "TASK_OVERDUE"
    SUITE_STATUS_CHANGE = "SUITE_STATUS_CHANGE"
    EMERGENCY_TASK = "EMERGENCY_TASK"
    SHIFT_REMINDER = "SHIFT_REMINDER"
    NOTE_MENTION = "NOTE_MENTION"
    SYSTEM_ALERT = "SYSTEM_ALERT"


class NotificationPriority(str, Enum):
    """通知优先级"""
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"
