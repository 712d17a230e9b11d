"""
操作定义

所有对外操作组成一个封闭联合类型 Operation，由 OperationRequest 信封携带。
引擎的处理器表在构造时校验是否覆盖了联合中的每个操作类型。
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Type, Union, get_args

from ..core.types import Choice, CurrencyMode, GameMode

__all__ = [
    'CreateGame',
    'JoinGame',
    'CommitChoice',
    'RevealChoice',
    'ResolveTimeout',
    'ClaimWinnings',
    'RejoinGame',
    'StartNewGameRound',
    'AutoPlayNextRound',
    'AddBotPlayers',
    'CollectFees',
    'CreateTournament',
    'JoinTournament',
    'Operation',
    'OPERATION_TYPES',
    'OperationRequest',
]


@dataclass(frozen=True)
class CreateGame:
    """创建对局，target_id 即新对局ID"""
    min_players: int
    max_players: int
    total_rounds: int
    entry_fee: int
    timeout_seconds: int
    losers_can_rejoin: bool = False
    game_mode: GameMode = GameMode.MANUAL
    currency_mode: CurrencyMode = CurrencyMode.NATIVE
    auto_round_delay: int = 0
    max_auto_rounds: int = 0
    token_id: Optional[str] = None


@dataclass(frozen=True)
class JoinGame:
    pass


@dataclass(frozen=True)
class CommitChoice:
    commitment: bytes
    salt: bytes


@dataclass(frozen=True)
class RevealChoice:
    choice: Choice


@dataclass(frozen=True)
class ResolveTimeout:
    pass


@dataclass(frozen=True)
class ClaimWinnings:
    pass


@dataclass(frozen=True)
class RejoinGame:
    pass


@dataclass(frozen=True)
class StartNewGameRound:
    pass


@dataclass(frozen=True)
class AutoPlayNextRound:
    pass


@dataclass(frozen=True)
class AddBotPlayers:
    count: int


@dataclass(frozen=True)
class CollectFees:
    pass


@dataclass(frozen=True)
class CreateTournament:
    """创建锦标赛，target_id 即新锦标赛ID"""
    max_players: int
    entry_fee: int
    currency_mode: CurrencyMode = CurrencyMode.NATIVE
    token_id: Optional[str] = None


@dataclass(frozen=True)
class JoinTournament:
    pass


Operation = Union[
    CreateGame,
    JoinGame,
    CommitChoice,
    RevealChoice,
    ResolveTimeout,
    ClaimWinnings,
    RejoinGame,
    StartNewGameRound,
    AutoPlayNextRound,
    AddBotPlayers,
    CollectFees,
    CreateTournament,
    JoinTournament,
]

OPERATION_TYPES: Tuple[Type, ...] = get_args(Operation)


@dataclass(frozen=True)
class OperationRequest:
    """
    操作信封

    Attributes:
        target_id: 目标记录ID（创建操作为新记录ID）
        caller: 调用者身份
        operation: 操作
        now: 宿主时钟（秒）
        signed: 宿主是否已校验调用者签名
        expected_version: 调用者读取到的记录版本，不一致时拒绝
    """
    target_id: str
    caller: str
    operation: Operation
    now: int
    signed: bool = True
    expected_version: Optional[int] = None
