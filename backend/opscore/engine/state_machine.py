"""
opscore/engine/state_machine.py

状态转换规则引擎 - 无状态的规则表评估器

规则表是声明式的不可变数据，引擎只根据 (当前状态, 目标状态, 上下文事实)
判断转换是否合法以及缺少哪些前置条件，不做任何 I/O。
"""
from typing import Any, Dict, FrozenSet, Generic, Hashable, List, Mapping, Optional, Sequence, Tuple, TypeVar
from dataclasses import dataclass, field
import logging

from opscore.errors import InvalidTransitionError, MissingPreconditionError

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=Hashable)

NO_CHANGE_REASON = "No change"


def _state_label(state: Any) -> str:
    """状态的可读名称（枚举取 value）"""
    return str(getattr(state, "value", state))


@dataclass(frozen=True)
class TransitionRule(Generic[S]):
    """
    状态转换规则

    Attributes:
        from_states: 允许的源状态集合
        to_state: 目标状态
        required_facts: 必需的上下文事实（按声明顺序报告缺失项）
        description: 规则说明
        failure_reason: 可选，缺少事实时使用的原因文本
    """

    from_states: FrozenSet[S]
    to_state: S
    required_facts: Tuple[str, ...] = ()
    description: str = ""
    failure_reason: Optional[str] = None

    def matches(self, from_state: S, to_state: S) -> bool:
        """规则是否覆盖 (from_state, to_state)"""
        return from_state in self.from_states and self.to_state == to_state

    def missing_facts(self, context: Optional[Mapping[str, Any]]) -> List[str]:
        """返回上下文中缺失（或为假值）的事实名"""
        context = context or {}
        return [name for name in self.required_facts if not context.get(name)]


@dataclass(frozen=True)
class TransitionCheck(Generic[S]):
    """
    转换检查结果

    Attributes:
        valid: 是否允许
        rule: 匹配到的规则（no-op 或不合法时为 None）
        reason: 原因说明
        missing_facts: 缺失的前置事实
    """

    valid: bool
    rule: Optional[TransitionRule[S]] = None
    reason: Optional[str] = None
    missing_facts: Tuple[str, ...] = field(default_factory=tuple)


class TransitionEngine(Generic[S]):
    """
    状态转换引擎

    特性：
    - 线性扫描规则表，第一条匹配的规则生效
    - from == to 视为无变化，直接通过
    - 缺失的前置事实全部列出，而不只是第一个
    - 纯函数，线程安全

    Example:
        >>> engine = TransitionEngine("Door", [
        ...     TransitionRule(frozenset({"closed"}), "open", ("has_key",)),
        ... ])
        >>> engine.validate("closed", "open", {"has_key": True}).valid
        True
    """

    def __init__(self, name: str, rules: Sequence[TransitionRule[S]]):
        self._name = name
        self._rules: Tuple[TransitionRule[S], ...] = tuple(rules)

    @property
    def name(self) -> str:
        return self._name

    @property
    def rules(self) -> Tuple[TransitionRule[S], ...]:
        """规则表（不可变）"""
        return self._rules

    def find_rule(self, from_state: S, to_state: S) -> Optional[TransitionRule[S]]:
        """按声明顺序查找第一条匹配规则"""
        for rule in self._rules:
            if rule.matches(from_state, to_state):
                return rule
        return None

    def can_transition(self, from_state: S, to_state: S) -> TransitionCheck[S]:
        """
        检查转换在规则表层面是否存在（不检查前置事实）

        Args:
            from_state: 当前状态
            to_state: 目标状态

        Returns:
            TransitionCheck，valid=True 时 rule 为匹配规则
        """
        if from_state == to_state:
            return TransitionCheck(valid=True, reason=NO_CHANGE_REASON)

        rule = self.find_rule(from_state, to_state)
        if rule is None:
            return TransitionCheck(
                valid=False,
                reason=f"Invalid transition from {_state_label(from_state)} to {_state_label(to_state)}",
            )
        return TransitionCheck(valid=True, rule=rule)

    def validate(
        self,
        from_state: S,
        to_state: S,
        context: Optional[Mapping[str, Any]] = None,
    ) -> TransitionCheck[S]:
        """
        结合上下文事实校验转换

        Args:
            from_state: 当前状态
            to_state: 目标状态
            context: 事实字典，如 {"assigned_to": 7}

        Returns:
            TransitionCheck，失败时带 reason 和 missing_facts
        """
        result = self.can_transition(from_state, to_state)
        if not result.valid or result.rule is None:
            return result

        rule = result.rule
        missing = rule.missing_facts(context)
        if missing:
            reason = rule.failure_reason or f"Missing required fields: {', '.join(missing)}"
            return TransitionCheck(
                valid=False,
                rule=rule,
                reason=reason,
                missing_facts=tuple(missing),
            )
        return TransitionCheck(valid=True, rule=rule)

    def valid_transitions(self, from_state: S) -> FrozenSet[S]:
        """获取从当前状态出发的所有目标状态"""
        return frozenset(rule.to_state for rule in self._rules if from_state in rule.from_states)

    def assert_valid(
        self,
        from_state: S,
        to_state: S,
        context: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """
        校验转换，不合法时抛出异常

        Raises:
            InvalidTransitionError: 没有匹配规则
            MissingPreconditionError: 缺少前置事实
        """
        result = self.validate(from_state, to_state, context)
        if result.valid:
            return

        logger.warning(
            f"{self._name} transition rejected: {_state_label(from_state)} -> "
            f"{_state_label(to_state)} ({result.reason})"
        )
        if result.rule is None:
            raise InvalidTransitionError(result.reason, from_state=from_state, to_state=to_state)
        raise MissingPreconditionError(
            result.reason,
            missing_facts=result.missing_facts,
            from_state=from_state,
            to_state=to_state,
        )

    def describe(self) -> List[Dict[str, Any]]:
        """导出规则表（用于调试与文档）"""
        return [
            {
                "from": sorted(_state_label(s) for s in rule.from_states),
                "to": _state_label(rule.to_state),
                "requires": list(rule.required_facts),
                "description": rule.description,
            }
            for rule in self._rules
        ]


# 导出
__all__ = [
    "NO_CHANGE_REASON",
    "TransitionRule",
    "TransitionCheck",
    "TransitionEngine",
]
