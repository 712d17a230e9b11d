"""
锦标赛登记

只支持创建大厅和报名，对阵与晋级不在本模块范围内。
原生资产模式下报名费全额进入奖金池，不抽取协议费。
"""

import logging
from typing import Optional, Union

from ..events import EventType
from ..exceptions import GameFull, InvalidGameState, InvalidParameter, PlayerAlreadyJoined
from ..identity import validate_identity
from ..ledger import TransferRequest
from ..state_machine import OperationContext
from ..types import CurrencyMode, Tournament, MAX_U64
from ..validation import coerce_enum, validate_int

__all__ = ['TournamentRegistry', 'MIN_TOURNAMENT_PLAYERS', 'MAX_TOURNAMENT_PLAYERS']

logger = logging.getLogger(__name__)

MIN_TOURNAMENT_PLAYERS = 2
MAX_TOURNAMENT_PLAYERS = 32


class TournamentRegistry:
    """锦标赛登记处"""

    def __init__(self, min_players: int = MIN_TOURNAMENT_PLAYERS,
                 max_players: int = MAX_TOURNAMENT_PLAYERS):
        self.min_players = min_players
        self.max_players = max_players

    def create(self, ctx: OperationContext, tournament_id: str, max_players: int, entry_fee: int,
               currency_mode: Union[CurrencyMode, int] = CurrencyMode.NATIVE,
               token_id: Optional[str] = None) -> Tournament:
        """
        创建锦标赛大厅

        Raises:
            InvalidParameter: 容量不在允许范围内或参数格式错误
        """
        validate_identity(ctx.caller, "房主身份")
        validate_identity(tournament_id, "tournament_id")
        validate_int(max_players, "锦标赛人数", self.min_players, self.max_players)
        validate_int(entry_fee, "报名费")
        currency_mode = coerce_enum(CurrencyMode, currency_mode, "货币模式")
        if currency_mode == CurrencyMode.TOKEN:
            if not token_id:
                raise InvalidParameter("代币锦标赛必须提供代币标识")
            validate_identity(token_id, "代币标识")
        else:
            token_id = None

        tournament = Tournament(
            tournament_id=tournament_id,
            host=ctx.caller,
            max_players=max_players,
            entry_fee=entry_fee,
            currency_mode=currency_mode,
            token_id=token_id,
        )
        logger.info(f"锦标赛 {tournament_id} 创建: 房主 {ctx.caller}, 容量 {max_players}, 报名费 {entry_fee}")
        ctx.emit(EventType.TOURNAMENT_CREATED, {
            'host': ctx.caller,
            'max_players': max_players,
            'entry_fee': entry_fee,
        }, aggregate_id=tournament_id)
        return tournament

    def join(self, ctx: OperationContext, tournament: Tournament) -> None:
        """
        报名锦标赛

        Raises:
            InvalidGameState: 锦标赛已开始
            GameFull: 名额已满
            PlayerAlreadyJoined: 重复报名
        """
        validate_identity(ctx.caller)
        if tournament.is_started:
            raise InvalidGameState(f"锦标赛 {tournament.tournament_id} 已开始")
        if len(tournament.players) >= tournament.max_players:
            raise GameFull(f"锦标赛 {tournament.tournament_id} 已满 ({tournament.max_players}人)")
        if ctx.caller in tournament.players:
            raise PlayerAlreadyJoined(f"玩家 {ctx.caller} 已报名锦标赛 {tournament.tournament_id}")

        deposited = 0
        if tournament.entry_fee > 0 and tournament.currency_mode == CurrencyMode.NATIVE:
            if tournament.prize_pool + tournament.entry_fee > MAX_U64:
                raise InvalidParameter("奖金池溢出")
            tournament.prize_pool += tournament.entry_fee
            deposited = tournament.entry_fee
            ctx.transfers.append(TransferRequest.deposit(ctx.caller, deposited, "锦标赛报名费"))

        tournament.players.append(ctx.caller)
        logger.info(f"玩家 {ctx.caller} 报名锦标赛 {tournament.tournament_id} "
                    f"({len(tournament.players)}/{tournament.max_players})")
        ctx.emit(EventType.TOURNAMENT_JOINED, {
            'player': ctx.caller,
            'deposited': deposited,
            'prize_pool': tournament.prize_pool,
        }, aggregate_id=tournament.tournament_id)
