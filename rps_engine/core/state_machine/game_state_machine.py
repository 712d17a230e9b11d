"""
对局状态机

WAITING_FOR_PLAYERS -> COMMIT_PHASE -> REVEAL_PHASE -> FINISHED，
REVEAL_PHASE -> COMMIT_PHASE 进入下一回合，FINISHED -> COMMIT_PHASE 复用记录开始新比赛。
状态机校验每个操作所需的阶段，调用名单、承诺校验、回合结算和账本组件完成修改。
"""

import logging
from typing import Callable, List, Optional, Union

from ..commitment import CommitmentVerifier
from ..events import EventType
from ..exceptions import (
    InvalidGameState, InvalidParameter, InvalidPlayerState, NotAuthorized, TimeoutNotReached
)
from ..identity import validate_identity
from ..ledger import FeeLedger
from ..roster import PlayerRoster
from ..rules import RoundResolver, RoundResult
from ..types import (
    Choice, CurrencyMode, Game, GameMode, GamePhase, Player, EMPTY_COMMITMENT, EMPTY_SALT
)
from ..validation import coerce_enum, validate_flag, validate_int
from .types import OperationContext, PhaseTransitionError, VALID_TRANSITIONS

__all__ = [
    'GameStateMachine',
    'PlayerCountPicker',
    'pick_player_count_by_timestamp',
    'MIN_PLAYER_BOUND',
    'MAX_PLAYER_BOUND',
    'MAX_TOTAL_ROUNDS',
]

logger = logging.getLogger(__name__)

MIN_PLAYER_BOUND = 3
MAX_PLAYER_BOUND = 4
MAX_TOTAL_ROUNDS = 255

PlayerCountPicker = Callable[[int, int, int], int]


def pick_player_count_by_timestamp(min_players: int, max_players: int, now: int) -> int:
    """
    按时间戳最低位在上下界之间二选一

    调用者可以选择提交时间，因此这不是抗操纵的随机源。
    """
    if min_players == max_players:
        return min_players
    return min_players if now & 1 == 0 else max_players


class GameStateMachine:
    """对局状态机"""

    def __init__(self, ledger: Optional[FeeLedger] = None,
                 roster: Optional[PlayerRoster] = None,
                 resolver: Optional[RoundResolver] = None,
                 player_count_picker: PlayerCountPicker = pick_player_count_by_timestamp,
                 fee_collector: Optional[str] = None,
                 min_player_bound: int = MIN_PLAYER_BOUND,
                 max_player_bound: int = MAX_PLAYER_BOUND):
        """
        Args:
            ledger: 费用/奖池账本
            roster: 名单管理，默认基于同一账本创建
            resolver: 回合结算器
            player_count_picker: 所需人数选择函数 (min, max, now) -> count
            fee_collector: 可在任意阶段提取协议费的身份
            min_player_bound: 允许的最小人数下界
            max_player_bound: 允许的最大人数上界
        """
        self.ledger = ledger or FeeLedger()
        self.roster = roster or PlayerRoster(self.ledger)
        self.resolver = resolver or RoundResolver()
        self.verifier = CommitmentVerifier()
        self._pick_player_count = player_count_picker
        self.fee_collector = fee_collector
        self.min_player_bound = min_player_bound
        self.max_player_bound = max_player_bound

    # ------------------------------------------------------------------
    # 阶段转换
    # ------------------------------------------------------------------

    def transition_to(self, ctx: OperationContext, target: GamePhase, reason: str = "") -> None:
        """
        执行阶段转换

        进入FINISHED时冻结结算信息。

        Raises:
            PhaseTransitionError: 转换不在合法转换表中
        """
        game = ctx.require_game()
        source = game.state
        if target not in VALID_TRANSITIONS[source]:
            raise PhaseTransitionError(f"不能从 {source.name} 转换到 {target.name}")

        game.state = target
        logger.info(f"[对局 {game.game_id}] {source.name} -> {target.name} {reason}".rstrip())
        ctx.emit(EventType.PHASE_CHANGED, {'from': source.name, 'to': target.name, 'reason': reason})

        if target == GamePhase.FINISHED:
            forfeited = self.ledger.settle(game)
            ctx.emit(EventType.GAME_FINISHED, {
                'winning_score': game.winning_score,
                'winner_count': game.winner_count,
                'payout_share': game.payout_share,
                'forfeited_pot': forfeited,
            })

    def require_phase(self, game: Game, phase: GamePhase) -> None:
        if game.state != phase:
            raise InvalidGameState(
                f"对局 {game.game_id} 处于 {game.state.name}，此操作需要 {phase.name}")

    def complete_round(self, ctx: OperationContext) -> RoundResult:
        """
        所有玩家揭示后结算回合，并进入下一回合或结束比赛
        """
        game = ctx.require_game()
        result = self.resolver.resolve_round(game.players, game.current_round)
        ctx.emit(EventType.ROUND_RESOLVED, {
            'round': result.round_number,
            'points': dict(result.points),
            'scores': {p.identity: p.score for p in game.players},
        })

        if game.current_round >= game.total_rounds:
            self.transition_to(ctx, GamePhase.FINISHED, f"共 {game.total_rounds} 回合结束")
        else:
            game.current_round += 1
            for player in game.players:
                player.clear_round_fields()
            self.transition_to(ctx, GamePhase.COMMIT_PHASE, f"开始第 {game.current_round} 回合")
        return result

    # ------------------------------------------------------------------
    # 操作
    # ------------------------------------------------------------------

    def create_game(self, ctx: OperationContext, game_id: str, min_players: int, max_players: int,
                    total_rounds: int, entry_fee: int, timeout_seconds: int,
                    losers_can_rejoin: bool = False,
                    game_mode: Union[GameMode, int] = GameMode.MANUAL,
                    currency_mode: Union[CurrencyMode, int] = CurrencyMode.NATIVE,
                    auto_round_delay: int = 0, max_auto_rounds: int = 0,
                    token_id: Optional[str] = None) -> Game:
        """
        创建对局，房主作为0号玩家加入并支付报名费
        """
        validate_identity(ctx.caller, "房主身份")
        validate_identity(game_id, "game_id")

        validate_int(min_players, "最小人数", self.min_player_bound, self.max_player_bound)
        validate_int(max_players, "最大人数", self.min_player_bound, self.max_player_bound)
        if min_players > max_players:
            raise InvalidParameter(f"最小人数不能大于最大人数: {min_players}-{max_players}")
        validate_int(total_rounds, "回合数", 1, MAX_TOTAL_ROUNDS)
        validate_int(entry_fee, "报名费")
        validate_int(timeout_seconds, "超时时间")
        validate_int(auto_round_delay, "自动回合间隔")
        validate_int(max_auto_rounds, "自动回合上限")
        validate_flag(losers_can_rejoin, "败者重新报名")

        game_mode = coerce_enum(GameMode, game_mode, "对局模式")
        currency_mode = coerce_enum(CurrencyMode, currency_mode, "货币模式")
        if currency_mode == CurrencyMode.TOKEN:
            if not token_id:
                raise InvalidParameter("代币对局必须提供代币标识")
            validate_identity(token_id, "代币标识")
        else:
            token_id = None

        required = self._pick_player_count(min_players, max_players, ctx.now)
        game = Game(
            game_id=game_id,
            host=ctx.caller,
            min_players=min_players,
            max_players=max_players,
            required_player_count=required,
            total_rounds=total_rounds,
            entry_fee=entry_fee,
            required_timeout=timeout_seconds,
            last_action_timestamp=ctx.now,
            losers_can_rejoin=bool(losers_can_rejoin),
            game_mode=game_mode,
            auto_round_delay=auto_round_delay,
            max_auto_rounds=max_auto_rounds,
            currency_mode=currency_mode,
            token_id=token_id,
        )
        ctx.game = game

        self.ledger.credit_entry_fee(game, ctx.caller, ctx.transfers)
        game.players.append(Player(identity=ctx.caller))

        logger.info(f"对局 {game_id} 创建: 房主 {ctx.caller}, 需要 {required} 名玩家, "
                    f"{total_rounds} 回合, 报名费 {entry_fee}")
        ctx.emit(EventType.GAME_CREATED, {
            'host': ctx.caller,
            'required_player_count': required,
            'total_rounds': total_rounds,
            'entry_fee': entry_fee,
        })
        return game

    def join(self, ctx: OperationContext) -> Player:
        """玩家加入，达到所需人数时自动进入承诺阶段"""
        game = ctx.require_game()
        player = self.roster.add_player(game, ctx.caller, ctx.transfers)
        ctx.emit(EventType.PLAYER_JOINED, {'player': ctx.caller, 'roster_size': len(game.players)})
        self._start_if_full(ctx)
        ctx.stamp()
        return player

    def add_bots(self, ctx: OperationContext, count: int) -> List[str]:
        """房主或玩家添加合成玩家"""
        game = ctx.require_game()
        if game.state == GamePhase.WAITING_FOR_PLAYERS and not game.is_participant(ctx.caller):
            raise NotAuthorized(f"{ctx.caller} 不是对局 {game.game_id} 的参与者")
        added = self.roster.add_bots(game, ctx.caller, count, ctx.transfers)
        for identity in added:
            ctx.emit(EventType.BOT_ADDED, {'player': identity, 'funded_by': ctx.caller})
        self._start_if_full(ctx)
        ctx.stamp()
        return added

    def _start_if_full(self, ctx: OperationContext) -> None:
        game = ctx.require_game()
        if self.roster.is_full(game):
            self.transition_to(ctx, GamePhase.COMMIT_PHASE, f"达到所需人数 {game.required_player_count}")

    def commit(self, ctx: OperationContext, commitment: bytes, salt: bytes) -> None:
        """提交（或覆盖）承诺，所有人提交后自动进入揭示阶段"""
        game = ctx.require_game()
        self.require_phase(game, GamePhase.COMMIT_PHASE)
        self.verifier.validate_commit_payload(commitment, salt)
        player = game.get_player(ctx.caller)

        player.commitment = bytes(commitment)
        player.salt = bytes(salt)
        ctx.emit(EventType.CHOICE_COMMITTED, {'player': ctx.caller})

        if game.all_committed():
            self.transition_to(ctx, GamePhase.REVEAL_PHASE, "所有玩家已提交承诺")
        ctx.stamp()

    def reveal(self, ctx: OperationContext, choice: Union[Choice, int]) -> Optional[RoundResult]:
        """
        揭示出拳

        Returns:
            所有玩家揭示后返回回合结果，否则None
        """
        game = ctx.require_game()
        self.require_phase(game, GamePhase.REVEAL_PHASE)
        choice = coerce_enum(Choice, choice, "出拳")
        player = game.get_player(ctx.caller)
        if player.revealed:
            raise InvalidPlayerState(f"玩家 {ctx.caller} 本回合已揭示")

        self.verifier.verify(choice, player.salt, player.commitment)
        player.choice = choice
        player.revealed = True
        player.commitment = EMPTY_COMMITMENT
        player.salt = EMPTY_SALT
        ctx.emit(EventType.CHOICE_REVEALED, {'player': ctx.caller, 'choice': choice.name})

        result = None
        if game.all_revealed():
            result = self.complete_round(ctx)
        ctx.stamp()
        return result

    def claim_winnings(self, ctx: OperationContext) -> int:
        """赢家领取奖金"""
        game = ctx.require_game()
        self.require_phase(game, GamePhase.FINISHED)
        amount = self.ledger.pay_winner(game, ctx.caller, ctx.transfers)
        ctx.emit(EventType.WINNINGS_CLAIMED, {'player': ctx.caller, 'amount': amount})
        ctx.stamp()
        return amount

    def rejoin(self, ctx: OperationContext) -> Player:
        """败者重新报名"""
        game = ctx.require_game()
        player = self.roster.rejoin(game, ctx.caller, ctx.transfers)
        ctx.emit(EventType.PLAYER_REJOINED, {'player': ctx.caller})
        ctx.stamp()
        return player

    def collect_fees(self, ctx: OperationContext) -> int:
        """提取协议费"""
        game = ctx.require_game()
        amount = self.ledger.withdraw_fees(game, ctx.caller, self.fee_collector, ctx.transfers)
        ctx.emit(EventType.FEES_COLLECTED, {'collector': ctx.caller, 'amount': amount})
        ctx.stamp()
        return amount

    def start_new_game_round(self, ctx: OperationContext) -> None:
        """用同一名单开始新比赛"""
        game = ctx.require_game()
        self.require_phase(game, GamePhase.FINISHED)
        self._require_participant(game, ctx.caller)
        self._reset_for_new_match(ctx, automated=False)

    def auto_play_next_round(self, ctx: OperationContext) -> None:
        """自动模式下开始下一场比赛"""
        game = ctx.require_game()
        if game.game_mode != GameMode.AUTOMATED:
            raise InvalidGameState(f"对局 {game.game_id} 不是自动模式")
        self.require_phase(game, GamePhase.FINISHED)
        if game.current_auto_round >= game.max_auto_rounds:
            raise InvalidGameState(f"对局 {game.game_id} 已达到自动回合上限 {game.max_auto_rounds}")
        self._require_participant(game, ctx.caller)
        if ctx.now - game.last_action_timestamp < game.auto_round_delay:
            raise TimeoutNotReached(f"自动回合间隔 {game.auto_round_delay} 秒尚未到达")
        self._reset_for_new_match(ctx, automated=True)

    @staticmethod
    def _require_participant(game: Game, identity: str) -> None:
        if not game.is_participant(identity):
            raise NotAuthorized(f"{identity} 不是对局 {game.game_id} 的参与者")

    def _reset_for_new_match(self, ctx: OperationContext, automated: bool) -> None:
        """
        复用记录开始新比赛

        只清理单场比赛字段: 回合、得分、承诺、领奖标记和结算信息；奖池与协议费保留。
        """
        game = ctx.require_game()
        if len(game.players) < game.min_players:
            raise InvalidPlayerState(
                f"对局 {game.game_id} 只有 {len(game.players)} 名玩家，少于最小人数 {game.min_players}")

        game.required_player_count = self._pick_player_count(game.min_players, game.max_players, ctx.now)
        game.current_round = 1
        for player in game.players:
            player.reset_for_new_match()
        game.clear_settlement()
        if automated:
            game.current_auto_round += 1

        self.transition_to(ctx, GamePhase.COMMIT_PHASE, "新比赛")
        ctx.emit(EventType.GAME_RESET, {
            'automated': automated,
            'current_auto_round': game.current_auto_round,
            'required_player_count': game.required_player_count,
        })
        ctx.stamp()
