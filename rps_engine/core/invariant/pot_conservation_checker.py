"""
奖池守恒检查器

验证以下规则：
1. game_pot + fee_collected == total_deposited - total_paid_out
2. 所有金额非负
3. 结算份额乘以未领奖赢家人数不超过奖池
"""

from ..types import Game, GamePhase
from .base_checker import BaseInvariantChecker
from .types import InvariantType

__all__ = ['PotConservationChecker']


class PotConservationChecker(BaseInvariantChecker):
    """奖池守恒检查器"""

    def __init__(self):
        super().__init__(InvariantType.POT_CONSERVATION)

    def _perform_check(self, game: Game) -> None:
        for name in ('game_pot', 'fee_collected', 'total_deposited', 'total_paid_out'):
            value = getattr(game, name)
            if value < 0:
                self._create_violation(f"{name} 为负数: {value}", context={name: value})

        held = game.game_pot + game.fee_collected
        net_in = game.total_deposited - game.total_paid_out
        if held != net_in:
            self._create_violation(
                f"资金不守恒: 奖池 {game.game_pot} + 协议费 {game.fee_collected} != "
                f"入金 {game.total_deposited} - 出金 {game.total_paid_out}",
                context={
                    'game_pot': game.game_pot,
                    'fee_collected': game.fee_collected,
                    'total_deposited': game.total_deposited,
                    'total_paid_out': game.total_paid_out,
                    'difference': held - net_in,
                }
            )

        if game.state == GamePhase.FINISHED and game.is_settled():
            unclaimed = sum(1 for p in game.players
                            if not p.claimed and p.score == game.winning_score)
            owed = unclaimed * game.payout_share
            if owed > game.game_pot:
                self._create_violation(
                    f"未领取奖金 {owed} 超过奖池 {game.game_pot}",
                    context={'unclaimed_winners': unclaimed, 'payout_share': game.payout_share}
                )
