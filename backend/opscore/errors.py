"""
opscore/errors.py

框架级异常定义

分类：
- TransitionError: 状态转换被拒绝（无匹配规则 / 前置条件缺失），调用方应作为客户端错误返回
- AuthorizationError: 授权失败（未认证 / 权限不足）
- TransientDeliveryError: 通知作业处理失败，由 worker 按退避策略重试
"""
from typing import Iterable, List, Optional


class TransitionError(Exception):
    """状态转换异常基类

    Attributes:
        from_state: 源状态
        to_state: 目标状态
        reason: 引擎给出的原因（调用方应原样返回给客户端）
    """

    def __init__(self, reason: str, from_state=None, to_state=None):
        super().__init__(reason)
        self.reason = reason
        self.from_state = from_state
        self.to_state = to_state


class InvalidTransitionError(TransitionError):
    """请求的 (from, to) 没有匹配的转换规则，不可重试"""


class MissingPreconditionError(TransitionError):
    """规则匹配但缺少必需的前置事实"""

    def __init__(
        self,
        reason: str,
        missing_facts: Iterable[str],
        from_state=None,
        to_state=None,
    ):
        super().__init__(reason, from_state=from_state, to_state=to_state)
        self.missing_facts: List[str] = list(missing_facts)


class AuthorizationError(Exception):
    """授权异常基类"""


class UnauthorizedError(AuthorizationError):
    """需要权限检查的位置没有附带已认证的操作者"""

    def __init__(self, message: str = "User not authenticated"):
        super().__init__(message)


class ForbiddenError(AuthorizationError):
    """操作者存在但缺少所需权限

    Attributes:
        required: 本可满足要求的权限列表
    """

    def __init__(self, message: str, required: Optional[Iterable[str]] = None):
        super().__init__(message)
        self.required: List[str] = list(required or [])


class TransientDeliveryError(Exception):
    """作业处理中的可重试错误（写库失败等）"""


__all__ = [
    "TransitionError",
    "InvalidTransitionError",
    "MissingPreconditionError",
    "AuthorizationError",
    "UnauthorizedError",
    "ForbiddenError",
    "TransientDeliveryError",
]
