"""
超时处理单元测试
"""

import pytest

from rps_engine.core.commitment import create_commitment, generate_salt
from rps_engine.core.events import EventType
from rps_engine.core.exceptions import InvalidGameState, TimeoutNotReached
from rps_engine.core.timeout import TimeoutResolver
from rps_engine.core.types import Choice, GamePhase
from rps_engine.tests.helpers import ctx_for, new_game

TIMEOUT = 60


class TestTimeoutResolver:
    """测试各阶段的超时处理"""

    @pytest.fixture(autouse=True)
    def setup(self, machine):
        self.machine = machine
        self.resolver = TimeoutResolver(machine)
        self.game = new_game(machine, required=3, timeout=TIMEOUT)
        self.choices = {}

    def later(self, caller="anyone", seconds=TIMEOUT):
        return ctx_for(self.game, caller, self.game.last_action_timestamp + seconds)

    def join(self, *players):
        for player in players:
            self.machine.join(ctx_for(self.game, player))

    def commit(self, player, choice):
        salt = generate_salt()
        self.choices[player] = (choice, salt)
        self.machine.commit(ctx_for(self.game, player), create_commitment(choice, salt), salt)

    def test_not_reached(self):
        with pytest.raises(TimeoutNotReached):
            self.resolver.resolve(self.later(seconds=TIMEOUT - 1))

    def test_finished_game(self):
        self.join("alice", "bob")
        self.game.state = GamePhase.FINISHED
        with pytest.raises(InvalidGameState):
            self.resolver.resolve(self.later())

    def test_waiting_with_only_host_cancels(self):
        ctx = self.later()
        self.resolver.resolve(ctx)
        assert self.game.state == GamePhase.FINISHED
        assert self.game.winner_count == 1
        assert EventType.TIMEOUT_RESOLVED in [e.event_type for e in ctx.events]

    def test_waiting_below_min_cancels(self):
        self.join("alice")
        self.resolver.resolve(self.later())
        assert self.game.state == GamePhase.FINISHED
        # 全员0分，每人可取回各自份额
        assert self.game.winner_count == 2

    def test_waiting_at_min_starts(self, machine):
        self.game = new_game(machine, required=4, timeout=TIMEOUT)
        self.game.min_players = 3
        self.join("alice", "bob")
        self.resolver.resolve(self.later())
        assert self.game.state == GamePhase.COMMIT_PHASE

    def test_commit_phase_drops_non_committer_and_finishes(self):
        self.join("alice", "bob")
        self.commit("host", Choice.ROCK)
        self.commit("alice", Choice.PAPER)

        ctx = self.later()
        self.resolver.resolve(ctx)

        assert self.game.player_ids == ["host", "alice"]
        assert self.game.state == GamePhase.FINISHED
        dropped = [e.data['player'] for e in ctx.events if e.event_type == EventType.PLAYER_DROPPED]
        assert dropped == ["bob"]

    def test_commit_phase_with_no_commitments_cancels(self):
        self.join("alice", "bob")
        pot, fees = self.game.game_pot, self.game.fee_collected

        ctx = self.later()
        self.resolver.resolve(ctx)

        assert self.game.players == []
        assert self.game.state == GamePhase.FINISHED
        assert self.game.winner_count == 0
        # 无人可领的奖池转入协议费
        assert self.game.game_pot == 0
        assert self.game.fee_collected == pot + fees
        finished = [e for e in ctx.events if e.event_type == EventType.GAME_FINISHED]
        assert finished[0].data["forfeited_pot"] == pot

    def test_commit_phase_all_committed_at_min_reveals(self, machine):
        self.game = new_game(machine, required=4, timeout=TIMEOUT)
        self.game.min_players = 3
        self.join("alice", "bob", "carol")
        for player in ("host", "alice", "bob"):
            self.commit(player, Choice.ROCK)

        self.resolver.resolve(self.later())

        assert self.game.player_ids == ["host", "alice", "bob"]
        assert self.game.state == GamePhase.REVEAL_PHASE

    def test_reveal_phase_defaults_missing_reveals(self):
        self.join("alice", "bob")
        for player, choice in (("host", Choice.ROCK), ("alice", Choice.SCISSORS), ("bob", Choice.PAPER)):
            self.commit(player, choice)
        self.machine.reveal(ctx_for(self.game, "host"), Choice.ROCK)
        self.machine.reveal(ctx_for(self.game, "alice"), Choice.SCISSORS)

        ctx = self.later()
        result = self.resolver.resolve(ctx)

        bob = self.game.get_player("bob")
        assert bob.choice == Choice.NONE
        assert bob.revealed
        assert result.points == {"host": 1, "alice": 0, "bob": 0}
        assert self.game.state == GamePhase.FINISHED
        assert EventType.CHOICE_DEFAULTED in [e.event_type for e in ctx.events]

    def test_timeout_stamps_clock(self):
        ctx = self.later(seconds=TIMEOUT + 5)
        self.resolver.resolve(ctx)
        assert self.game.last_action_timestamp == ctx.now
