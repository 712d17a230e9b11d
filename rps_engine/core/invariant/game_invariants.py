"""
对局不变量检查器

整合所有不变量检查器，提供统一的检查接口。
"""

import logging
from typing import Dict

from ..types import Game
from .types import InvariantType, InvariantCheckResult, InvariantError
from .pot_conservation_checker import PotConservationChecker
from .player_state_checker import PlayerStateChecker, PhaseConsistencyChecker

__all__ = ['GameInvariants']

logger = logging.getLogger(__name__)


class GameInvariants:
    """对局不变量检查器"""

    def __init__(self):
        self.pot_checker = PotConservationChecker()
        self.player_checker = PlayerStateChecker()
        self.phase_checker = PhaseConsistencyChecker()

        self._checkers = {
            InvariantType.POT_CONSERVATION: self.pot_checker,
            InvariantType.PLAYER_STATE: self.player_checker,
            InvariantType.PHASE_CONSISTENCY: self.phase_checker,
        }

    def check_all(self, game: Game,
                  raise_on_violation: bool = False) -> Dict[InvariantType, InvariantCheckResult]:
        """
        检查所有不变量

        Raises:
            InvariantError: 当raise_on_violation=True且存在严重违反时
        """
        results = {}
        all_violations = []

        for invariant_type, checker in self._checkers.items():
            result = checker.check(game)
            results[invariant_type] = result
            if not result.is_valid:
                all_violations.extend(result.violations)

        if all_violations:
            logger.error(f"对局 {game.game_id} 不变量违反: "
                         f"{[v.description for v in all_violations]}")

        if raise_on_violation:
            critical = [v for v in all_violations if v.severity == 'CRITICAL']
            if critical:
                raise InvariantError(f"发现{len(critical)}个严重不变量违反", all_violations)

        return results

    def validate_and_raise(self, game: Game) -> None:
        self.check_all(game, raise_on_violation=True)
