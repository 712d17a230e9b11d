"""
核心领域类型定义

定义出拳、对局阶段、模式枚举，以及对局(Game)、玩家(Player)、锦标赛(Tournament)记录。
枚举值即持久化布局中的编码值，不能随意调整。
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Optional

from .exceptions import PlayerNotFound

__all__ = [
    'Choice',
    'GamePhase',
    'GameMode',
    'CurrencyMode',
    'Player',
    'Game',
    'Tournament',
    'COMMITMENT_SIZE',
    'SALT_SIZE',
    'IDENTITY_SIZE',
    'EMPTY_COMMITMENT',
    'EMPTY_SALT',
    'MAX_U64',
    'MAX_TIMESTAMP',
]

COMMITMENT_SIZE = 64
SALT_SIZE = 32
IDENTITY_SIZE = 32
EMPTY_COMMITMENT = bytes(COMMITMENT_SIZE)
EMPTY_SALT = bytes(SALT_SIZE)
MAX_U64 = 2 ** 64 - 1
MAX_TIMESTAMP = 2 ** 63 - 1


class Choice(IntEnum):
    """
    出拳枚举.

    数值同时是承诺哈希时使用的单字节编码.
    """

    NONE = 0
    ROCK = 1
    PAPER = 2
    SCISSORS = 3


class GamePhase(IntEnum):
    """对局阶段枚举"""

    WAITING_FOR_PLAYERS = 0
    COMMIT_PHASE = 1
    REVEAL_PHASE = 2
    FINISHED = 3


class GameMode(IntEnum):
    """对局模式: 手动 / 自动连续对局"""

    MANUAL = 0
    AUTOMATED = 1


class CurrencyMode(IntEnum):
    """结算货币: 原生资产 / 同质化代币"""

    NATIVE = 0
    TOKEN = 1


@dataclass
class Player:
    """
    对局中的一名玩家.

    Attributes:
        identity: 玩家身份
        choice: 当前回合揭示的出拳
        commitment: 64字节承诺槽，全零表示尚未承诺
        salt: 32字节盐值槽
        revealed: 本回合是否已揭示
        score: 本场累计得分
        claimed: 本场结束后是否已领取奖金
        is_bot: 是否为合成玩家
    """

    identity: str
    choice: Choice = Choice.NONE
    commitment: bytes = EMPTY_COMMITMENT
    salt: bytes = EMPTY_SALT
    revealed: bool = False
    score: int = 0
    claimed: bool = False
    is_bot: bool = False

    def __post_init__(self) -> None:
        if not self.identity:
            raise ValueError("identity不能为空")
        if self.score < 0:
            raise ValueError(f"得分不能为负数: {self.score}")
        if len(self.commitment) != COMMITMENT_SIZE:
            raise ValueError(f"承诺槽必须为{COMMITMENT_SIZE}字节: {len(self.commitment)}")
        if len(self.salt) != SALT_SIZE:
            raise ValueError(f"盐值槽必须为{SALT_SIZE}字节: {len(self.salt)}")

    def has_committed(self) -> bool:
        """承诺槽非空即视为本回合已承诺"""
        return self.commitment != EMPTY_COMMITMENT

    def clear_round_fields(self) -> None:
        """清理单回合字段: 出拳、承诺、盐值、揭示标记"""
        self.choice = Choice.NONE
        self.commitment = EMPTY_COMMITMENT
        self.salt = EMPTY_SALT
        self.revealed = False

    def reset_for_new_match(self) -> None:
        """为复用记录的新一场比赛重置，得分与领奖标记一并清零"""
        self.clear_round_fields()
        self.score = 0
        self.claimed = False


@dataclass
class Game:
    """
    一场比赛的完整记录.

    记录被每个操作原地修改；结束后可通过重置操作复用同一存储槽.
    """

    game_id: str
    host: str
    min_players: int
    max_players: int
    required_player_count: int
    total_rounds: int
    entry_fee: int
    required_timeout: int
    last_action_timestamp: int
    players: List[Player] = field(default_factory=list)
    state: GamePhase = GamePhase.WAITING_FOR_PLAYERS
    current_round: int = 1
    game_pot: int = 0
    fee_collected: int = 0
    losers_can_rejoin: bool = False
    game_mode: GameMode = GameMode.MANUAL
    auto_round_delay: int = 0
    max_auto_rounds: int = 0
    current_auto_round: int = 0
    currency_mode: CurrencyMode = CurrencyMode.NATIVE
    token_id: Optional[str] = None
    version: int = 0
    total_deposited: int = 0
    total_paid_out: int = 0
    winning_score: Optional[int] = None
    winner_count: int = 0
    payout_share: int = 0

    def __post_init__(self) -> None:
        if not self.game_id:
            raise ValueError("game_id不能为空")
        for name in ('entry_fee', 'game_pot', 'fee_collected', 'required_timeout',
                     'total_deposited', 'total_paid_out', 'payout_share'):
            if getattr(self, name) < 0:
                raise ValueError(f"{name}不能为负数: {getattr(self, name)}")

    @property
    def player_ids(self) -> List[str]:
        return [p.identity for p in self.players]

    def find_player(self, identity: str) -> Optional[Player]:
        """按身份查找玩家，不存在时返回None"""
        for player in self.players:
            if player.identity == identity:
                return player
        return None

    def get_player(self, identity: str) -> Player:
        """按身份查找玩家，不存在时抛出PlayerNotFound"""
        player = self.find_player(identity)
        if player is None:
            raise PlayerNotFound(f"玩家 {identity} 不在对局 {self.game_id} 中")
        return player

    def is_participant(self, identity: str) -> bool:
        """房主或名单中的玩家"""
        return identity == self.host or self.find_player(identity) is not None

    def all_committed(self) -> bool:
        return bool(self.players) and all(p.has_committed() for p in self.players)

    def all_revealed(self) -> bool:
        return bool(self.players) and all(p.revealed for p in self.players)

    def is_settled(self) -> bool:
        return self.winning_score is not None

    def clear_settlement(self) -> None:
        self.winning_score = None
        self.winner_count = 0
        self.payout_share = 0


@dataclass
class Tournament:
    """锦标赛大厅记录（仅创建与报名）"""

    tournament_id: str
    host: str
    max_players: int
    entry_fee: int
    currency_mode: CurrencyMode = CurrencyMode.NATIVE
    token_id: Optional[str] = None
    players: List[str] = field(default_factory=list)
    prize_pool: int = 0
    is_started: bool = False
    version: int = 0

    def __post_init__(self) -> None:
        if not self.tournament_id:
            raise ValueError("tournament_id不能为空")
        if self.entry_fee < 0:
            raise ValueError(f"entry_fee不能为负数: {self.entry_fee}")
        if self.prize_pool < 0:
            raise ValueError(f"prize_pool不能为负数: {self.prize_pool}")
