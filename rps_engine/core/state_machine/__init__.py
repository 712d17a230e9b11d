"""
State Machine Module - 对局状态机

阶段转换表、操作上下文和对局状态机。
"""

from .types import VALID_TRANSITIONS, OperationContext, PhaseTransitionError
from .game_state_machine import (
    GameStateMachine,
    PlayerCountPicker,
    pick_player_count_by_timestamp,
    MIN_PLAYER_BOUND,
    MAX_PLAYER_BOUND,
    MAX_TOTAL_ROUNDS,
)

__all__ = [
    'VALID_TRANSITIONS',
    'OperationContext',
    'PhaseTransitionError',
    'GameStateMachine',
    'PlayerCountPicker',
    'pick_player_count_by_timestamp',
    'MIN_PLAYER_BOUND',
    'MAX_PLAYER_BOUND',
    'MAX_TOTAL_ROUNDS',
]
