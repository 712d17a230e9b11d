"""
Invariant Module - 不变量检查
"""

from .types import InvariantType, InvariantViolation, InvariantCheckResult, InvariantError
from .base_checker import BaseInvariantChecker
from .pot_conservation_checker import PotConservationChecker
from .player_state_checker import PlayerStateChecker, PhaseConsistencyChecker
from .game_invariants import GameInvariants

__all__ = [
    'InvariantType',
    'InvariantViolation',
    'InvariantCheckResult',
    'InvariantError',
    'BaseInvariantChecker',
    'PotConservationChecker',
    'PlayerStateChecker',
    'PhaseConsistencyChecker',
    'GameInvariants',
]
