"""
超时处理

任意签名者可以在超时后推动停滞的对局：
等待阶段人数足够则开局否则取消；承诺阶段剔除未承诺者；揭示阶段把未揭示者按NONE结算。
"""

import logging
from typing import Optional

from ..events import EventType
from ..exceptions import InvalidGameState, TimeoutNotReached
from ..rules import RoundResult
from ..state_machine import GameStateMachine, OperationContext
from ..types import Choice, GamePhase, EMPTY_COMMITMENT, EMPTY_SALT

__all__ = ['TimeoutResolver']

logger = logging.getLogger(__name__)


class TimeoutResolver:
    """超时处理器"""

    def __init__(self, state_machine: GameStateMachine):
        self._machine = state_machine

    @staticmethod
    def is_timed_out(game, now: int) -> bool:
        return now - game.last_action_timestamp >= game.required_timeout

    def resolve(self, ctx: OperationContext) -> Optional[RoundResult]:
        """
        按当前阶段推进超时对局

        Returns:
            揭示阶段超时结算出的回合结果，其余情况None

        Raises:
            InvalidGameState: 对局已结束
            TimeoutNotReached: 距最近一次操作不足required_timeout秒
        """
        game = ctx.require_game()
        if game.state == GamePhase.FINISHED:
            raise InvalidGameState(f"对局 {game.game_id} 已结束，无需超时处理")
        if not self.is_timed_out(game, ctx.now):
            elapsed = ctx.now - game.last_action_timestamp
            raise TimeoutNotReached(
                f"对局 {game.game_id} 距最近操作 {elapsed} 秒，未达到超时 {game.required_timeout} 秒")

        phase = game.state
        logger.warning(f"对局 {game.game_id} 在 {phase.name} 阶段超时，由 {ctx.caller} 处理")

        result = None
        if phase == GamePhase.WAITING_FOR_PLAYERS:
            self._resolve_waiting(ctx)
        elif phase == GamePhase.COMMIT_PHASE:
            self._resolve_commit(ctx)
        else:
            result = self._resolve_reveal(ctx)

        ctx.emit(EventType.TIMEOUT_RESOLVED, {
            'phase': phase.name,
            'resolved_by': ctx.caller,
            'new_state': game.state.name,
        })
        ctx.stamp()
        return result

    def _resolve_waiting(self, ctx: OperationContext) -> None:
        game = ctx.require_game()
        roster_size = len(game.players)
        if roster_size > 1 and roster_size >= game.min_players:
            self._machine.transition_to(ctx, GamePhase.COMMIT_PHASE, f"超时开局 ({roster_size}人)")
        else:
            self._machine.transition_to(ctx, GamePhase.FINISHED, f"超时取消 ({roster_size}人)")

    def _resolve_commit(self, ctx: OperationContext) -> None:
        game = ctx.require_game()
        for identity in self._machine.roster.drop_uncommitted(game):
            ctx.emit(EventType.PLAYER_DROPPED, {'player': identity, 'reason': 'no_commitment'})

        if len(game.players) >= game.min_players:
            self._machine.transition_to(ctx, GamePhase.REVEAL_PHASE, "超时进入揭示阶段")
        else:
            self._machine.transition_to(ctx, GamePhase.FINISHED, "超时后人数不足")

    def _resolve_reveal(self, ctx: OperationContext) -> RoundResult:
        game = ctx.require_game()
        for player in game.players:
            if not player.revealed:
                player.choice = Choice.NONE
                player.revealed = True
                player.commitment = EMPTY_COMMITMENT
                player.salt = EMPTY_SALT
                ctx.emit(EventType.CHOICE_DEFAULTED, {'player': player.identity})
        return self._machine.complete_round(ctx)
