"""
玩家状态与阶段一致性检查器
"""

from ..types import Choice, Game, GamePhase
from .base_checker import BaseInvariantChecker
from .types import InvariantType

__all__ = ['PlayerStateChecker', 'PhaseConsistencyChecker']


class PlayerStateChecker(BaseInvariantChecker):
    """
    玩家状态检查器

    - 名单身份唯一且人数不超过容量
    - 持有承诺的玩家尚未揭示
    - 出拳非NONE的玩家已揭示
    - 已领奖标记只出现在结束阶段
    """

    def __init__(self):
        super().__init__(InvariantType.PLAYER_STATE)

    def _perform_check(self, game: Game) -> None:
        ids = game.player_ids
        if len(set(ids)) != len(ids):
            self._create_violation("名单中存在重复身份", context={'players': ids})
        if len(ids) > game.max_players:
            self._create_violation(
                f"名单人数 {len(ids)} 超过容量 {game.max_players}",
                context={'players': ids})

        for player in game.players:
            if player.has_committed() and player.revealed:
                self._create_violation(f"玩家 {player.identity} 已揭示但仍持有承诺")
            if player.choice != Choice.NONE and not player.revealed:
                self._create_violation(f"玩家 {player.identity} 未揭示但已有出拳")
            if player.claimed and game.state != GamePhase.FINISHED:
                self._create_violation(f"玩家 {player.identity} 在比赛进行中带有领奖标记")
            if game.state == GamePhase.WAITING_FOR_PLAYERS and (player.has_committed() or player.revealed):
                self._create_violation(f"等待阶段玩家 {player.identity} 带有回合数据")
            if game.state == GamePhase.COMMIT_PHASE and player.revealed:
                self._create_violation(f"承诺阶段玩家 {player.identity} 已揭示")


class PhaseConsistencyChecker(BaseInvariantChecker):
    """阶段一致性检查器: 回合范围与结算信息"""

    def __init__(self):
        super().__init__(InvariantType.PHASE_CONSISTENCY)

    def _perform_check(self, game: Game) -> None:
        if not 1 <= game.current_round <= game.total_rounds:
            self._create_violation(
                f"当前回合 {game.current_round} 不在 1-{game.total_rounds} 之间")
        if game.is_settled() != (game.state == GamePhase.FINISHED):
            self._create_violation(
                f"结算信息与阶段不一致: 阶段 {game.state.name}, 已结算 {game.is_settled()}")
        if game.current_auto_round > game.max_auto_rounds:
            self._create_violation(
                f"自动回合 {game.current_auto_round} 超过上限 {game.max_auto_rounds}")
