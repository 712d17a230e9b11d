"""
玩家名单管理

负责加入、合成玩家补位、败者重新报名以及超时时剔除未承诺玩家。
每次收取报名费都与名单修改在同一操作内完成。
"""

import logging
from typing import List

from ..exceptions import (
    GameFull, InvalidGameState, InvalidPlayerState, PlayerAlreadyJoined
)
from ..identity import derive_bot_identity, validate_identity
from ..ledger import FeeLedger, TransferRequest
from ..types import Game, GamePhase, Player
from ..validation import validate_int

__all__ = ['PlayerRoster']

logger = logging.getLogger(__name__)


class PlayerRoster:
    """玩家名单"""

    def __init__(self, ledger: FeeLedger):
        self._ledger = ledger

    @staticmethod
    def remaining_capacity(game: Game) -> int:
        return max(0, game.required_player_count - len(game.players))

    @staticmethod
    def is_full(game: Game) -> bool:
        return len(game.players) >= game.required_player_count

    def add_player(self, game: Game, identity: str, transfers: List[TransferRequest]) -> Player:
        """
        人类玩家加入

        Raises:
            InvalidGameState: 对局不在等待玩家阶段
            PlayerAlreadyJoined: 已在名单中
            GameFull: 名单已达所需人数
        """
        validate_identity(identity)
        if game.state != GamePhase.WAITING_FOR_PLAYERS:
            raise InvalidGameState(f"对局 {game.game_id} 不在等待玩家阶段")
        if game.find_player(identity) is not None:
            raise PlayerAlreadyJoined(f"玩家 {identity} 已加入对局 {game.game_id}")
        if self.is_full(game):
            raise GameFull(f"对局 {game.game_id} 已满 ({game.required_player_count}人)")

        self._ledger.credit_entry_fee(game, identity, transfers)
        player = Player(identity=identity)
        game.players.append(player)
        logger.info(f"玩家 {identity} 加入对局 {game.game_id} "
                    f"({len(game.players)}/{game.required_player_count})")
        return player

    def add_bots(self, game: Game, payer: str, count: int,
                 transfers: List[TransferRequest]) -> List[str]:
        """
        添加合成玩家补足名单

        合成玩家的报名费由发起者支付，数量按剩余名额截断。

        Returns:
            新增的合成玩家身份列表
        """
        validate_int(count, "合成玩家数量", low=1)
        if game.state != GamePhase.WAITING_FOR_PLAYERS:
            raise InvalidGameState(f"对局 {game.game_id} 不在等待玩家阶段")

        bot_count = min(count, self.remaining_capacity(game))
        if bot_count == 0:
            raise GameFull(f"对局 {game.game_id} 没有空位添加合成玩家")

        added = []
        for index in range(bot_count):
            identity = derive_bot_identity(game.game_id, len(game.players), index)
            if game.find_player(identity) is not None:
                raise PlayerAlreadyJoined(f"合成玩家身份冲突: {identity}")
            self._ledger.credit_entry_fee(game, payer, transfers, description=f"合成玩家 {identity} 报名费")
            game.players.append(Player(identity=identity, is_bot=True))
            added.append(identity)
            logger.info(f"对局 {game.game_id} 添加合成玩家 {identity}")

        return added

    def rejoin(self, game: Game, identity: str, transfers: List[TransferRequest]) -> Player:
        """
        败者重新报名

        Raises:
            InvalidGameState: 对局未结束或不允许败者重新报名
            InvalidPlayerState: 调用者不是本场败者
        """
        if game.state != GamePhase.FINISHED or not game.losers_can_rejoin:
            raise InvalidGameState(f"对局 {game.game_id} 未结束或不允许败者重新报名")

        player = game.find_player(identity)
        if player is None or not self._ledger.is_loser(game, player):
            raise InvalidPlayerState(f"{identity} 不是对局 {game.game_id} 的败者")

        self._ledger.credit_entry_fee(game, identity, transfers, description="重新报名费")
        player.clear_round_fields()
        logger.info(f"玩家 {identity} 重新报名对局 {game.game_id}")
        return player

    @staticmethod
    def drop_uncommitted(game: Game) -> List[str]:
        """剔除本回合未提交承诺的玩家，返回被剔除的身份"""
        dropped = [p.identity for p in game.players if not p.has_committed()]
        game.players = [p for p in game.players if p.has_committed()]
        if dropped:
            logger.info(f"对局 {game.game_id} 剔除未承诺玩家: {dropped}")
        return dropped
