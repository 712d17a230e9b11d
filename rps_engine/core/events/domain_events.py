"""
Domain Events - 领域事件定义

每个成功的操作都会产生一组领域事件，随操作结果返回并发布到事件总线。
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional
import uuid

__all__ = ['EventType', 'DomainEvent']


class EventType(Enum):
    """事件类型枚举"""
    # 对局生命周期
    GAME_CREATED = auto()
    GAME_FINISHED = auto()
    GAME_RESET = auto()
    PHASE_CHANGED = auto()

    # 名单
    PLAYER_JOINED = auto()
    BOT_ADDED = auto()
    PLAYER_REJOINED = auto()
    PLAYER_DROPPED = auto()

    # 承诺-揭示
    CHOICE_COMMITTED = auto()
    CHOICE_REVEALED = auto()
    CHOICE_DEFAULTED = auto()
    ROUND_RESOLVED = auto()

    # 资金
    WINNINGS_CLAIMED = auto()
    FEES_COLLECTED = auto()

    # 超时
    TIMEOUT_RESOLVED = auto()

    # 锦标赛
    TOURNAMENT_CREATED = auto()
    TOURNAMENT_JOINED = auto()


@dataclass(frozen=True)
class DomainEvent:
    """
    领域事件

    Attributes:
        event_id: 事件唯一标识符
        event_type: 事件类型
        aggregate_id: 聚合根ID（对局或锦标赛ID）
        timestamp: 宿主时钟时间
        data: 事件数据
    """
    event_id: str
    event_type: EventType
    aggregate_id: str
    timestamp: int
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create(cls, event_type: EventType, aggregate_id: str, timestamp: int,
               data: Optional[Dict[str, Any]] = None) -> DomainEvent:
        """创建领域事件的工厂方法"""
        return cls(
            event_id=str(uuid.uuid4()),
            event_type=event_type,
            aggregate_id=aggregate_id,
            timestamp=timestamp,
            data=data or {},
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'event_id': self.event_id,
            'event_type': self.event_type.name,
            'aggregate_id': self.aggregate_id,
            'timestamp': self.timestamp,
            'data': self.data,
        }
