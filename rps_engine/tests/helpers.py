"""
测试辅助工具

EngineDriver 通过引擎公开的操作接口驱动完整对局，自动维护时钟与盐值。
"""

from typing import Dict, List, Optional

from rps_engine.application import (
    ClaimWinnings, CommitChoice, CreateGame, GameEngine, JoinGame, OperationRequest,
    RevealChoice,
)
from rps_engine.application.engine import OperationOutcome
from rps_engine.core.commitment import create_commitment, generate_salt
from rps_engine.core.state_machine import OperationContext
from rps_engine.core.types import Choice, Game

FEE_COLLECTOR = "fee_collector"
GAME_ID = "game_1"
START_TIME = 1_000_000
DEFAULT_BALANCE = 10 ** 9


def new_game(machine, host: str = "host", required: int = 3, total_rounds: int = 1,
             entry_fee: int = 1000, timeout: int = 60, now: int = START_TIME, **kwargs) -> Game:
    """用状态机直接创建一个对局（人数上下界相同，所需人数确定）"""
    ctx = OperationContext(caller=host, now=now)
    return machine.create_game(
        ctx, GAME_ID, min_players=required, max_players=required, total_rounds=total_rounds,
        entry_fee=entry_fee, timeout_seconds=timeout, **kwargs)


def ctx_for(game: Game, caller: str, now: Optional[int] = None) -> OperationContext:
    return OperationContext(caller=caller, now=game.last_action_timestamp if now is None else now,
                            game=game)


class EngineDriver:
    """引擎测试驱动"""

    def __init__(self, engine: GameEngine, game_id: str = GAME_ID):
        self.engine = engine
        self.game_id = game_id
        self.clock = START_TIME
        self._salts: Dict[str, bytes] = {}
        self._choices: Dict[str, Choice] = {}

    @property
    def transfers(self):
        return self.engine.transfer_service

    def fund(self, *accounts: str, amount: int = DEFAULT_BALANCE) -> None:
        for account in accounts:
            self.transfers.credit(account, amount)

    def tick(self, seconds: int = 1) -> int:
        self.clock += seconds
        return self.clock

    def run(self, caller: str, operation, target: Optional[str] = None, now: Optional[int] = None,
            **kwargs) -> OperationOutcome:
        """执行一个操作，默认时钟前进1秒"""
        request = OperationRequest(
            target_id=target or self.game_id,
            caller=caller,
            operation=operation,
            now=self.tick() if now is None else now,
            **kwargs
        )
        return self.engine.execute(request)

    def game(self) -> Game:
        return self.engine.get_game(self.game_id)

    def create_game(self, host: str = "host", required: int = 3, total_rounds: int = 1,
                    entry_fee: int = 1000, timeout: int = 60, **kwargs) -> OperationOutcome:
        self.fund(host)
        return self.run(host, CreateGame(
            min_players=required, max_players=required, total_rounds=total_rounds,
            entry_fee=entry_fee, timeout_seconds=timeout, **kwargs))

    def join(self, *players: str) -> List[OperationOutcome]:
        outcomes = []
        for player in players:
            self.fund(player)
            outcomes.append(self.run(player, JoinGame()))
        return outcomes

    def commit(self, player: str, choice: Choice) -> OperationOutcome:
        salt = generate_salt()
        self._salts[player] = salt
        self._choices[player] = choice
        return self.run(player, CommitChoice(create_commitment(choice, salt), salt))

    def reveal(self, player: str, choice: Optional[Choice] = None) -> OperationOutcome:
        return self.run(player, RevealChoice(choice or self._choices[player]))

    def play_round(self, choices: Dict[str, Choice]) -> None:
        for player, choice in choices.items():
            self.commit(player, choice)
        for player in choices:
            self.reveal(player)

    def claim(self, player: str) -> int:
        return self.run(player, ClaimWinnings()).value

    def custody_balance(self) -> int:
        return self.transfers.get_balance(self.engine.game_custody_address(self.game_id))
