"""
授权检查

认证由上游完成：中间件或依赖把解析好的 Actor 放到 request.state.actor，
这里只消费其角色与权限集合。
"""
from dataclasses import dataclass, field
from typing import Callable, FrozenSet, Iterable, Optional, Sequence, Union
import logging

from fastapi import Request

from opscore.errors import ForbiddenError, UnauthorizedError
from opscore.security.permission import PermissionsMode, evaluate
from motel.models.enums import EmployeeRole
from motel.security.permissions import get_default_permissions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Actor:
    """已认证的操作者"""
    id: int
    role: EmployeeRole
    permissions: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def for_role(cls, actor_id: int, role: EmployeeRole) -> "Actor":
        """按角色默认权限构造"""
        return cls(id=actor_id, role=role, permissions=get_default_permissions(role))


def authorize(
    actor: Optional[Actor],
    required: Sequence[str],
    mode: Union[PermissionsMode, str] = PermissionsMode.ANY,
) -> None:
    """
    检查操作者是否满足权限要求

    Raises:
        UnauthorizedError: 没有已认证的操作者
        ForbiddenError: 权限不足，消息列出可满足要求的权限
    """
    if not required:
        return
    if actor is None:
        raise UnauthorizedError()
    if not evaluate(actor.permissions, required, mode):
        logger.warning(f"Actor {actor.id} ({actor.role.value}) denied, required: {list(required)}")
        raise ForbiddenError(
            f"Insufficient permissions. Required: {', '.join(required)}",
            required=required,
        )


def authorize_roles(actor: Optional[Actor], roles: Iterable[EmployeeRole]) -> None:
    """按角色检查（任一角色匹配即通过）"""
    allowed = [EmployeeRole(r) for r in roles]
    if not allowed:
        return
    if actor is None:
        raise UnauthorizedError()
    if actor.role not in allowed:
        raise ForbiddenError(
            f"Insufficient role. Required: {' or '.join(r.value for r in allowed)}",
            required=[r.value for r in allowed],
        )


def get_actor(request: Request) -> Optional[Actor]:
    """从请求中取已解析的操作者"""
    return getattr(request.state, "actor", None)


def require_permissions(*permissions: str, mode: Union[PermissionsMode, str] = PermissionsMode.ANY) -> Callable:
    """权限检查依赖：默认满足任一权限即可（mode="all" 时需全部满足）"""
    def permission_checker(request: Request) -> Optional[Actor]:
        actor = get_actor(request)
        authorize(actor, permissions, mode)
        return actor
    return permission_checker


def require_roles(*roles: EmployeeRole) -> Callable:
    """角色检查依赖"""
    def role_checker(request: Request) -> Optional[Actor]:
        actor = get_actor(request)
        authorize_roles(actor, roles)
        return actor
    return role_checker
