"""
费用/奖池账本

负责报名费拆分、协议费累计、比赛结算与奖金/费用支付。
守恒关系: game_pot + fee_collected == total_deposited - total_paid_out
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from ..exceptions import FeeCalculationError, InsufficientFunds, NotAuthorized, NotWinner
from ..types import Game, GamePhase, Player, MAX_U64
from .transfer_request import TransferRequest

__all__ = ['FeeSplit', 'FeeLedger', 'DEFAULT_FEE_NUMERATOR', 'DEFAULT_FEE_DENOMINATOR']

logger = logging.getLogger(__name__)

DEFAULT_FEE_NUMERATOR = 10
DEFAULT_FEE_DENOMINATOR = 1000


@dataclass(frozen=True)
class FeeSplit:
    """报名费拆分结果"""
    gross: int
    fee: int
    net: int

    def __post_init__(self):
        if self.fee + self.net != self.gross:
            raise ValueError(f"拆分不守恒: {self.fee} + {self.net} != {self.gross}")


class FeeLedger:
    """
    费用/奖池账本

    所有金额均为非负整数且不超过64位无符号上限。
    """

    def __init__(self, fee_numerator: int = DEFAULT_FEE_NUMERATOR,
                 fee_denominator: int = DEFAULT_FEE_DENOMINATOR):
        if fee_denominator <= 0:
            raise ValueError(f"费率分母必须为正数: {fee_denominator}")
        if fee_numerator < 0 or fee_numerator > fee_denominator:
            raise ValueError(f"费率分子必须在0到{fee_denominator}之间: {fee_numerator}")
        self.fee_numerator = fee_numerator
        self.fee_denominator = fee_denominator

    def calculate_fee(self, amount: int) -> int:
        """
        计算协议费 floor(amount * numerator / denominator)

        Raises:
            FeeCalculationError: 金额为负或超过64位上限
        """
        if amount < 0 or amount > MAX_U64:
            raise FeeCalculationError(f"金额超出范围: {amount}")
        return amount * self.fee_numerator // self.fee_denominator

    def split(self, amount: int) -> FeeSplit:
        """拆分一笔报名费为协议费与净入池金额"""
        fee = self.calculate_fee(amount)
        return FeeSplit(gross=amount, fee=fee, net=amount - fee)

    def credit_entry_fee(self, game: Game, payer: str, transfers: List[TransferRequest],
                         description: str = "报名费") -> FeeSplit:
        """
        收取一笔报名费并入账

        报名费为0时不产生转移请求。

        Args:
            game: 对局记录
            payer: 付款身份
            transfers: 转移请求收集列表
            description: 转移描述

        Returns:
            FeeSplit
        """
        fee_split = self.split(game.entry_fee)
        if fee_split.gross == 0:
            return fee_split

        new_pot = game.game_pot + fee_split.net
        new_fee = game.fee_collected + fee_split.fee
        new_deposited = game.total_deposited + fee_split.gross
        if new_pot > MAX_U64 or new_fee > MAX_U64 or new_deposited > MAX_U64:
            raise FeeCalculationError("奖池或费用累计溢出")

        game.game_pot = new_pot
        game.fee_collected = new_fee
        game.total_deposited = new_deposited
        transfers.append(TransferRequest.deposit(payer, fee_split.gross, description))

        logger.debug(f"对局 {game.game_id} 收取 {payer} 报名费 {fee_split.gross}: "
                     f"入池 {fee_split.net}, 协议费 {fee_split.fee}")
        return fee_split

    def settle(self, game: Game) -> int:
        """
        比赛结束时冻结结算信息

        最高分的所有玩家为赢家，奖池按人数整除平分，余数留在奖池中。
        名单为空时奖池无人可领，整体转入协议费。

        Returns:
            转入协议费的奖池金额
        """
        if game.players:
            winning_score = max(p.score for p in game.players)
            winner_count = sum(1 for p in game.players if p.score == winning_score)
        else:
            winning_score = 0
            winner_count = 0

        game.winning_score = winning_score
        game.winner_count = winner_count
        game.payout_share = game.game_pot // winner_count if winner_count else 0

        logger.info(f"对局 {game.game_id} 结算: 最高分 {winning_score}, "
                    f"赢家 {winner_count} 人, 每人 {game.payout_share}")

        forfeited = 0
        if winner_count == 0 and game.game_pot > 0:
            forfeited = game.game_pot
            game.fee_collected += forfeited
            game.game_pot = 0
            logger.warning(f"对局 {game.game_id} 名单为空，奖池 {forfeited} 转入协议费")
        return forfeited

    def winners(self, game: Game) -> List[Player]:
        """尚未领奖的赢家"""
        if not game.is_settled():
            return []
        return [p for p in game.players if not p.claimed and p.score == game.winning_score]

    def is_loser(self, game: Game, player: Player) -> bool:
        """最终得分严格低于最高分且未领奖"""
        return game.is_settled() and not player.claimed and player.score < game.winning_score

    def pay_winner(self, game: Game, identity: str, transfers: List[TransferRequest]) -> int:
        """
        向一名赢家支付其份额

        领奖后该玩家得分清零并标记已领奖，防止重复领取。

        Raises:
            NotWinner: 调用者不是未领奖的赢家
            InsufficientFunds: 份额为0
        """
        player: Optional[Player] = game.find_player(identity)
        if player is None or all(w.identity != identity for w in self.winners(game)):
            raise NotWinner(f"{identity} 不是对局 {game.game_id} 的可领奖赢家")

        share = game.payout_share
        if share == 0 or share > game.game_pot:
            raise InsufficientFunds(f"对局 {game.game_id} 没有可领取的奖金")

        game.game_pot -= share
        game.total_paid_out += share
        player.score = 0
        player.claimed = True
        transfers.append(TransferRequest.payout(identity, share, "赢家奖金"))

        logger.info(f"玩家 {identity} 领取奖金 {share}, 奖池剩余 {game.game_pot}")
        return share

    def withdraw_fees(self, game: Game, caller: str, fee_collector: Optional[str],
                      transfers: List[TransferRequest]) -> int:
        """
        提取全部协议费

        Raises:
            InsufficientFunds: 没有可提取的协议费
            NotAuthorized: 对局未结束且调用者不是费用收取方
        """
        if game.fee_collected == 0:
            raise InsufficientFunds(f"对局 {game.game_id} 没有可提取的协议费")

        is_collector = fee_collector is not None and caller == fee_collector
        if game.state != GamePhase.FINISHED and not is_collector:
            raise NotAuthorized("对局未结束且调用者不是费用收取方")

        amount = game.fee_collected
        game.fee_collected = 0
        game.total_paid_out += amount
        transfers.append(TransferRequest.payout(caller, amount, "协议费提取"))

        logger.info(f"对局 {game.game_id} 协议费 {amount} 由 {caller} 提取")
        return amount
