"""
Game Engine - 操作分发与原子提交

每个操作的处理流程：
1. 校验签名与调用者身份
2. 从存储解码目标记录的新副本并校验版本
3. 由状态机或锦标赛登记处修改副本，收集转移请求与领域事件
4. 版本加一、检查不变量、编码
5. 执行价值转移，失败时退还已执行的转移
6. 写回存储并发布事件

任何一步失败，存储中的字节保持不变。
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..core.events import DomainEvent, EventBus, get_event_bus
from ..core.exceptions import (
    InvalidParameter, NotAuthorized, RPSEngineError, VersionConflict
)
from ..core.identity import (
    GAME_DOMAIN_TAG, TOURNAMENT_DOMAIN_TAG, derive_custody_address, validate_identity
)
from ..core.invariant import GameInvariants, InvariantError
from ..core.ledger import FeeLedger, TransferKind, TransferRequest
from ..core.snapshot import DeserializationError, RecordCodec, RecordKind, SerializationError
from ..core.state_machine import (
    GameStateMachine, OperationContext, PhaseTransitionError, PlayerCountPicker,
    pick_player_count_by_timestamp
)
from ..core.timeout import TimeoutResolver
from ..core.tournament import TournamentRegistry
from ..core.types import CurrencyMode, Game, Tournament, MAX_TIMESTAMP
from ..core.validation import validate_int
from .config_service import EngineConfig, get_config_service
from .decorators import logged_action
from .operations import (
    OPERATION_TYPES, AddBotPlayers, AutoPlayNextRound, ClaimWinnings, CollectFees, CommitChoice,
    CreateGame, CreateTournament, JoinGame, JoinTournament, OperationRequest, RejoinGame,
    ResolveTimeout, RevealChoice, StartNewGameRound
)
from .record_store import InMemoryRecordStore
from .types import CommandResult
from .value_transfer import InMemoryValueTransferService, TransferReceipt, ValueTransferService

__all__ = ['GameEngine', 'OperationOutcome']


@dataclass(frozen=True)
class OperationOutcome:
    """成功操作的结果"""
    record_id: str
    version: int
    value: Any = None
    events: List[DomainEvent] = field(default_factory=list)
    receipts: List[TransferReceipt] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'record_id': self.record_id,
            'version': self.version,
            'value': self.value,
            'events': [e.to_dict() for e in self.events],
            'transfers': [r.to_dict() for r in self.receipts],
        }


class GameEngine:
    """对局引擎"""

    def __init__(self, config: Optional[EngineConfig] = None,
                 store: Optional[InMemoryRecordStore] = None,
                 transfer_service: Optional[ValueTransferService] = None,
                 event_bus: Optional[EventBus] = None,
                 player_count_picker: PlayerCountPicker = pick_player_count_by_timestamp):
        """
        Args:
            config: 引擎策略配置，默认使用配置服务的default配置档
            store: 记录存储
            transfer_service: 价值转移服务
            event_bus: 事件总线，默认使用全局事件总线
            player_count_picker: 所需人数选择函数
        """
        self.config = config or get_config_service().get_engine_config().data
        self.ledger = FeeLedger(self.config.fee_numerator, self.config.fee_denominator)
        self.state_machine = GameStateMachine(
            ledger=self.ledger,
            player_count_picker=player_count_picker,
            fee_collector=self.config.fee_collector,
            min_player_bound=self.config.min_player_bound,
            max_player_bound=self.config.max_player_bound,
        )
        self.timeout_resolver = TimeoutResolver(self.state_machine)
        self.tournaments = TournamentRegistry(
            self.config.min_tournament_players, self.config.max_tournament_players)
        self.invariants = GameInvariants() if self.config.enable_invariant_checks else None

        self.store = store or InMemoryRecordStore()
        self.transfer_service = transfer_service or InMemoryValueTransferService()
        self._event_bus = event_bus or get_event_bus()
        self._logger = logging.getLogger(__name__)

        self._game_handlers: Dict[type, Callable[[OperationContext, Any], Any]] = {
            JoinGame: self._on_join_game,
            CommitChoice: self._on_commit_choice,
            RevealChoice: self._on_reveal_choice,
            ResolveTimeout: self._on_resolve_timeout,
            ClaimWinnings: self._on_claim_winnings,
            RejoinGame: self._on_rejoin_game,
            StartNewGameRound: self._on_start_new_game_round,
            AutoPlayNextRound: self._on_auto_play_next_round,
            AddBotPlayers: self._on_add_bot_players,
            CollectFees: self._on_collect_fees,
        }
        self._tournament_handlers: Dict[type, Callable[[OperationContext, Tournament, Any], Any]] = {
            JoinTournament: self._on_join_tournament,
        }
        self._creators: Dict[type, Callable[[OperationContext, str, Any], Any]] = {
            CreateGame: self._on_create_game,
            CreateTournament: self._on_create_tournament,
        }
        self._validate_handler_table()

    def _validate_handler_table(self) -> None:
        """确保每种操作类型都有且只有一个处理器"""
        tables = [self._game_handlers, self._tournament_handlers, self._creators]
        handled = [op_type for table in tables for op_type in table]
        missing = [t.__name__ for t in OPERATION_TYPES if t not in handled]
        if missing:
            raise RuntimeError(f"以下操作缺少处理器: {missing}")
        duplicated = {t.__name__ for t in handled if handled.count(t) > 1}
        if duplicated:
            raise RuntimeError(f"以下操作存在多个处理器: {sorted(duplicated)}")

    # ------------------------------------------------------------------
    # 入口
    # ------------------------------------------------------------------

    def execute(self, request: OperationRequest) -> OperationOutcome:
        """
        执行一个操作

        Returns:
            OperationOutcome

        Raises:
            RPSEngineError: 操作被拒绝，存储不变
            InvariantError: 操作结果违反不变量，存储不变
        """
        if not request.signed:
            raise NotAuthorized(f"调用者 {request.caller} 未签名")
        validate_identity(request.caller, "调用者身份")
        validate_int(request.now, "时间戳", high=MAX_TIMESTAMP)
        if request.expected_version is not None:
            validate_int(request.expected_version, "期望版本")

        op_type = type(request.operation)
        with self.store.lock:
            if op_type in self._creators:
                return self._execute_create(request)
            if op_type in self._game_handlers:
                return self._execute_game(request)
            if op_type in self._tournament_handlers:
                return self._execute_tournament(request)
        raise InvalidParameter(f"未知操作类型: {op_type.__name__}")

    def submit(self, request: OperationRequest) -> CommandResult:
        """执行操作并把结果或错误包装为 CommandResult"""
        name = type(request.operation).__name__
        try:
            outcome = self.execute(request)
            return CommandResult.from_outcome(name, outcome)
        except RPSEngineError as e:
            return CommandResult.from_error(e)
        except InvariantError as e:
            return CommandResult.system_error(f"不变量检查失败: {e}", "INVARIANT_VIOLATION")
        except (PhaseTransitionError, SerializationError, DeserializationError) as e:
            self._logger.error(f"{name} 内部错误: {e}")
            return CommandResult.system_error(str(e), "INTERNAL_ERROR")

    # ------------------------------------------------------------------
    # 查询
    # ------------------------------------------------------------------

    def get_game(self, game_id: str) -> Game:
        """返回对局记录的解码副本"""
        return RecordCodec.decode_game(self.store.get(game_id))

    def get_tournament(self, tournament_id: str) -> Tournament:
        return RecordCodec.decode_tournament(self.store.get(tournament_id))

    @staticmethod
    def game_custody_address(game_id: str) -> str:
        return derive_custody_address(GAME_DOMAIN_TAG, game_id)

    @staticmethod
    def tournament_custody_address(tournament_id: str) -> str:
        return derive_custody_address(TOURNAMENT_DOMAIN_TAG, tournament_id)

    # ------------------------------------------------------------------
    # 执行流程
    # ------------------------------------------------------------------

    @staticmethod
    def _check_version(request: OperationRequest, actual: int) -> None:
        if request.expected_version is not None and request.expected_version != actual:
            raise VersionConflict(request.expected_version, actual)

    def _load(self, record_id: str, kind: int) -> bytes:
        data = self.store.get(record_id)
        if RecordCodec.record_kind(data) != kind:
            raise InvalidParameter(f"记录 {record_id} 的类型与操作不符")
        return data

    def _execute_create(self, request: OperationRequest) -> OperationOutcome:
        validate_identity(request.target_id, "记录ID")
        if self.store.exists(request.target_id):
            raise InvalidParameter(f"记录 {request.target_id} 已存在")
        self._check_version(request, 0)

        ctx = OperationContext(caller=request.caller, now=request.now)
        value, record = self._creators[type(request.operation)](ctx, request.target_id, request.operation)
        return self._commit(request, ctx, record, value, is_new=True)

    def _execute_game(self, request: OperationRequest) -> OperationOutcome:
        game = RecordCodec.decode_game(self._load(request.target_id, RecordKind.GAME))
        self._check_version(request, game.version)

        ctx = OperationContext(caller=request.caller, now=request.now, game=game)
        value = self._game_handlers[type(request.operation)](ctx, request.operation)
        return self._commit(request, ctx, game, value, is_new=False)

    def _execute_tournament(self, request: OperationRequest) -> OperationOutcome:
        tournament = RecordCodec.decode_tournament(self._load(request.target_id, RecordKind.TOURNAMENT))
        self._check_version(request, tournament.version)

        ctx = OperationContext(caller=request.caller, now=request.now)
        value = self._tournament_handlers[type(request.operation)](ctx, tournament, request.operation)
        return self._commit(request, ctx, tournament, value, is_new=False)

    def _commit(self, request: OperationRequest, ctx: OperationContext, record, value,
                is_new: bool) -> OperationOutcome:
        """版本加一、检查不变量、执行转移并写回"""
        record.version += 1
        if isinstance(record, Game):
            if self.invariants is not None:
                self.invariants.validate_and_raise(record)
            data = RecordCodec.encode_game(record)
            record_id = record.game_id
            custody = self.game_custody_address(record_id)
        else:
            data = RecordCodec.encode_tournament(record)
            record_id = record.tournament_id
            custody = self.tournament_custody_address(record_id)

        receipts = self._execute_transfers(ctx.transfers, custody, record.currency_mode, record.token_id)
        try:
            if is_new:
                self.store.create(record_id, data)
            else:
                self.store.put(record_id, data)
        except Exception:
            self._refund(receipts)
            raise

        for event in ctx.events:
            self._event_bus.publish(event)

        return OperationOutcome(
            record_id=record_id,
            version=record.version,
            value=value,
            events=list(ctx.events),
            receipts=receipts,
        )

    def _execute_transfers(self, requests: List[TransferRequest], custody: str,
                           currency_mode: CurrencyMode,
                           token_id: Optional[str]) -> List[TransferReceipt]:
        """按顺序执行转移请求，任一失败则退还已执行的部分"""
        receipts: List[TransferReceipt] = []
        try:
            for req in requests:
                if req.kind == TransferKind.DEPOSIT:
                    receipt = self.transfer_service.deposit(
                        req.account, custody, req.amount, currency_mode, token_id, req.description)
                else:
                    receipt = self.transfer_service.payout(
                        custody, req.account, req.amount, currency_mode, token_id, req.description)
                receipts.append(receipt)
        except Exception:
            self._refund(receipts)
            raise
        return receipts

    def _refund(self, receipts: List[TransferReceipt]) -> None:
        for receipt in reversed(receipts):
            try:
                self.transfer_service.refund(receipt)
            except RPSEngineError as e:
                self._logger.critical(f"退款失败 {receipt.receipt_id}: {e.message}")

    # ------------------------------------------------------------------
    # 操作处理器
    # ------------------------------------------------------------------

    @logged_action("创建对局")
    def _on_create_game(self, ctx: OperationContext, game_id: str, op: CreateGame):
        game = self.state_machine.create_game(
            ctx, game_id,
            min_players=op.min_players,
            max_players=op.max_players,
            total_rounds=op.total_rounds,
            entry_fee=op.entry_fee,
            timeout_seconds=op.timeout_seconds,
            losers_can_rejoin=op.losers_can_rejoin,
            game_mode=op.game_mode,
            currency_mode=op.currency_mode,
            auto_round_delay=op.auto_round_delay,
            max_auto_rounds=op.max_auto_rounds,
            token_id=op.token_id,
        )
        return {'required_player_count': game.required_player_count}, game

    @logged_action("创建锦标赛")
    def _on_create_tournament(self, ctx: OperationContext, tournament_id: str, op: CreateTournament):
        tournament = self.tournaments.create(
            ctx, tournament_id, op.max_players, op.entry_fee, op.currency_mode, op.token_id)
        return None, tournament

    @logged_action("加入对局")
    def _on_join_game(self, ctx: OperationContext, op: JoinGame):
        return self.state_machine.join(ctx).identity

    @logged_action("提交承诺")
    def _on_commit_choice(self, ctx: OperationContext, op: CommitChoice):
        self.state_machine.commit(ctx, op.commitment, op.salt)

    @logged_action("揭示出拳")
    def _on_reveal_choice(self, ctx: OperationContext, op: RevealChoice):
        result = self.state_machine.reveal(ctx, op.choice)
        if result is None:
            return None
        return {'round': result.round_number, 'points': dict(result.points)}

    @logged_action("超时处理")
    def _on_resolve_timeout(self, ctx: OperationContext, op: ResolveTimeout):
        result = self.timeout_resolver.resolve(ctx)
        if result is None:
            return None
        return {'round': result.round_number, 'points': dict(result.points)}

    @logged_action("领取奖金")
    def _on_claim_winnings(self, ctx: OperationContext, op: ClaimWinnings):
        return self.state_machine.claim_winnings(ctx)

    @logged_action("败者重新报名")
    def _on_rejoin_game(self, ctx: OperationContext, op: RejoinGame):
        return self.state_machine.rejoin(ctx).identity

    @logged_action("开始新比赛")
    def _on_start_new_game_round(self, ctx: OperationContext, op: StartNewGameRound):
        self.state_machine.start_new_game_round(ctx)
        return ctx.require_game().required_player_count

    @logged_action("自动开始下一场")
    def _on_auto_play_next_round(self, ctx: OperationContext, op: AutoPlayNextRound):
        self.state_machine.auto_play_next_round(ctx)
        return ctx.require_game().current_auto_round

    @logged_action("添加合成玩家")
    def _on_add_bot_players(self, ctx: OperationContext, op: AddBotPlayers):
        return self.state_machine.add_bots(ctx, op.count)

    @logged_action("提取协议费")
    def _on_collect_fees(self, ctx: OperationContext, op: CollectFees):
        return self.state_machine.collect_fees(ctx)

    @logged_action("报名锦标赛")
    def _on_join_tournament(self, ctx: OperationContext, tournament: Tournament, op: JoinTournament):
        self.tournaments.join(ctx, tournament)
        return len(tournament.players)
