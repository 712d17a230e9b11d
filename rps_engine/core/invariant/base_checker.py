"""
不变量检查器基础类
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
import time
import uuid

from ..types import Game
from .types import InvariantType, InvariantViolation, InvariantCheckResult

__all__ = ['BaseInvariantChecker']


class BaseInvariantChecker(ABC):
    """不变量检查器基础抽象类"""

    def __init__(self, invariant_type: InvariantType):
        self.invariant_type = invariant_type
        self._violations: List[InvariantViolation] = []

    @abstractmethod
    def _perform_check(self, game: Game) -> None:
        """执行具体检查，发现问题时调用 _create_violation"""
        pass

    def check(self, game: Game) -> InvariantCheckResult:
        """
        执行不变量检查

        Args:
            game: 对局记录

        Returns:
            InvariantCheckResult: 检查结果
        """
        self._violations.clear()
        self._perform_check(game)
        return InvariantCheckResult.create(self.invariant_type, self._violations)

    def _create_violation(self, description: str, severity: str = 'CRITICAL',
                          context: Optional[Dict[str, Any]] = None) -> InvariantViolation:
        violation = InvariantViolation(
            invariant_type=self.invariant_type,
            violation_id=f"{self.invariant_type.name.lower()}_{uuid.uuid4().hex[:8]}",
            description=description,
            severity=severity,
            timestamp=time.time(),
            context=context or {}
        )
        self._violations.append(violation)
        return violation
