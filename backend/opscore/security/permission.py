"""
opscore/security/permission.py：权限评估器

对“操作者权限集合”与“所需权限”做纯函数判断，不做 I/O。
通配符 "*" 满足任意权限要求。
"""
from enum import Enum
from typing import Iterable, Union

WILDCARD = "*"


class PermissionsMode(str, Enum):
    """多权限要求的判定模式"""
    ANY = "any"  # 满足任一即可
    ALL = "all"  # 必须全部满足


def has_permission(user_permissions: Iterable[str], required: str) -> bool:
    """检查权限集合是否包含指定权限（通配符视为包含）"""
    perms = set(user_permissions)
    if WILDCARD in perms:
        return True
    return required in perms


def has_any_permission(user_permissions: Iterable[str], required: Iterable[str]) -> bool:
    """检查权限集合是否包含任一所需权限"""
    perms = set(user_permissions)
    if WILDCARD in perms:
        return True
    return any(p in perms for p in required)


def has_all_permissions(user_permissions: Iterable[str], required: Iterable[str]) -> bool:
    """检查权限集合是否包含全部所需权限"""
    perms = set(user_permissions)
    if WILDCARD in perms:
        return True
    return all(p in perms for p in required)


def evaluate(
    user_permissions: Iterable[str],
    required: Iterable[str],
    mode: Union[PermissionsMode, str] = PermissionsMode.ANY,
) -> bool:
    """
    按模式评估权限

    Args:
        user_permissions: 操作者拥有的权限
        required: 所需权限列表
        mode: "any"（默认）或 "all"

    Returns:
        是否满足要求
    """
    if PermissionsMode(mode) is PermissionsMode.ALL:
        return has_all_permissions(user_permissions, required)
    return has_any_permission(user_permissions, required)


__all__ = [
    "WILDCARD",
    "PermissionsMode",
    "has_permission",
    "has_any_permission",
    "has_all_permissions",
    "evaluate",
]
