"""
状态机类型定义

定义阶段转换表、操作上下文以及内部转换错误。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional

from ..events import DomainEvent, EventType
from ..ledger import TransferRequest
from ..types import Game, GamePhase

__all__ = [
    'VALID_TRANSITIONS',
    'PhaseTransitionError',
    'OperationContext',
]

# 合法阶段转换表，取消路径(-> FINISHED)只由超时处理使用
VALID_TRANSITIONS: Dict[GamePhase, FrozenSet[GamePhase]] = {
    GamePhase.WAITING_FOR_PLAYERS: frozenset({GamePhase.COMMIT_PHASE, GamePhase.FINISHED}),
    GamePhase.COMMIT_PHASE: frozenset({GamePhase.REVEAL_PHASE, GamePhase.FINISHED}),
    GamePhase.REVEAL_PHASE: frozenset({GamePhase.COMMIT_PHASE, GamePhase.FINISHED}),
    GamePhase.FINISHED: frozenset({GamePhase.COMMIT_PHASE}),
}


class PhaseTransitionError(RuntimeError):
    """非法阶段转换，属于引擎内部错误"""
    pass


@dataclass
class OperationContext:
    """
    单次操作的上下文

    Attributes:
        caller: 调用者身份
        now: 宿主时钟（秒）
        game: 目标对局记录（创建操作开始时为None）
        transfers: 操作产生的价值转移请求
        events: 操作产生的领域事件
    """
    caller: str
    now: int
    game: Optional[Game] = None
    transfers: List[TransferRequest] = field(default_factory=list)
    events: List[DomainEvent] = field(default_factory=list)

    def __post_init__(self):
        if self.now < 0:
            raise ValueError(f"now不能为负数: {self.now}")

    def require_game(self) -> Game:
        if self.game is None:
            raise RuntimeError("操作上下文缺少对局记录")
        return self.game

    def emit(self, event_type: EventType, data: Optional[Dict[str, Any]] = None,
             aggregate_id: Optional[str] = None) -> DomainEvent:
        """记录一个领域事件"""
        if aggregate_id is None:
            aggregate_id = self.require_game().game_id
        event = DomainEvent.create(event_type, aggregate_id, self.now, data)
        self.events.append(event)
        return event

    def stamp(self) -> None:
        """记录最近一次操作时间"""
        self.require_game().last_action_timestamp = self.now
