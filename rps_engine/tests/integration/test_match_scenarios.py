"""
完整对局场景集成测试

通过引擎公开操作驱动对局，验证报名费拆分、平分奖金、超时推进、
败者重新报名、同名单新比赛、自动连续对局和合成玩家。
"""

import pytest

from rps_engine.application import (
    AddBotPlayers, AutoPlayNextRound, ClaimWinnings, CollectFees, CommitChoice, RejoinGame,
    ResolveTimeout, RevealChoice, StartNewGameRound,
)
from rps_engine.core.commitment import create_commitment, generate_salt
from rps_engine.core.exceptions import (
    InvalidGameState, InvalidPlayerState, NotAuthorized, NotWinner, TimeoutNotReached,
)
from rps_engine.core.types import Choice, GameMode, GamePhase

pytestmark = pytest.mark.integration

PLAYERS = ["host", "alice", "bob"]


class TestEntryFeeSplit:

    def test_host_fee_is_split_on_create(self, driver):
        driver.create_game(entry_fee=1000)

        game = driver.game()
        assert game.game_pot == 990
        assert game.fee_collected == 10
        assert driver.custody_balance() == 1000

    def test_full_roster_starts_commit_phase(self, driver):
        driver.create_game()
        driver.join("alice", "bob")

        game = driver.game()
        assert game.state == GamePhase.COMMIT_PHASE
        assert game.game_pot == 2970
        assert game.fee_collected == 30


class TestThreeWayTie:
    """石头、布、剪刀各一人: 每人1分，三人平分奖池"""

    @pytest.fixture
    def finished(self, driver):
        driver.create_game()
        driver.join("alice", "bob")
        driver.play_round({"host": Choice.ROCK, "alice": Choice.PAPER, "bob": Choice.SCISSORS})
        return driver

    def test_everyone_wins(self, finished):
        game = finished.game()
        assert game.state == GamePhase.FINISHED
        assert [p.score for p in game.players] == [1, 1, 1]
        assert game.winner_count == 3
        assert game.payout_share == 990

    def test_each_winner_claims_once(self, finished):
        before = finished.transfers.get_balance("alice")

        for player in PLAYERS:
            assert finished.claim(player) == 990

        assert finished.transfers.get_balance("alice") == before + 990
        game = finished.game()
        assert game.game_pot == 0
        assert all(p.claimed for p in game.players)

    def test_second_claim_rejected(self, finished):
        finished.claim("host")
        with pytest.raises(NotWinner):
            finished.claim("host")

    def test_outsider_cannot_claim(self, finished):
        with pytest.raises(NotWinner):
            finished.run("mallory", ClaimWinnings())

    def test_fees_collected_after_payouts(self, finished):
        for player in PLAYERS:
            finished.claim(player)

        assert finished.run("fee_collector", CollectFees()).value == 30
        assert finished.custody_balance() == 0
        assert finished.transfers.get_balance("fee_collector") == 30


class TestCommitTimeout:

    def test_non_committer_dropped_and_match_finishes(self, driver):
        driver.create_game(timeout=60)
        driver.join("alice", "bob")
        driver.commit("host", Choice.ROCK)
        driver.commit("alice", Choice.PAPER)

        driver.tick(60)
        driver.run("host", ResolveTimeout())

        game = driver.game()
        assert game.player_ids == ["host", "alice"]
        assert game.state == GamePhase.FINISHED
        # 无人得分，剩余两人平分奖池
        assert game.winner_count == 2
        assert game.payout_share == 2970 // 2
        assert driver.claim("alice") == 1485

    def test_no_commitments_cancels_match(self, driver):
        driver.create_game(timeout=60)
        driver.join("alice", "bob")

        driver.tick(100)
        driver.run("bob", ResolveTimeout())

        game = driver.game()
        assert game.state == GamePhase.FINISHED
        assert game.players == []
        assert game.game_pot == 0
        assert game.fee_collected == 3000
        with pytest.raises(NotWinner):
            driver.claim("alice")

        assert driver.run("fee_collector", CollectFees()).value == 3000
        assert driver.custody_balance() == 0

    def test_timeout_not_reached(self, driver):
        driver.create_game(timeout=60)
        driver.join("alice", "bob")
        driver.commit("host", Choice.ROCK)

        with pytest.raises(TimeoutNotReached):
            driver.run("bob", ResolveTimeout())

    def test_reveal_timeout_defaults_missing_choice(self, driver):
        driver.create_game(timeout=60)
        driver.join("alice", "bob")
        for player, choice in zip(PLAYERS, [Choice.ROCK, Choice.SCISSORS, Choice.SCISSORS]):
            driver.commit(player, choice)
        driver.reveal("host")
        driver.reveal("alice")

        driver.tick(60)
        outcome = driver.run("host", ResolveTimeout())

        assert outcome.value['points'] == {"host": 1, "alice": 0, "bob": 0}
        game = driver.game()
        assert game.state == GamePhase.FINISHED
        assert game.winner_count == 1
        assert driver.claim("host") == 2970


class TestPhaseGuards:

    def test_commit_before_roster_full(self, driver):
        driver.create_game()
        salt = generate_salt()
        with pytest.raises(InvalidGameState):
            driver.run("host", CommitChoice(create_commitment(Choice.ROCK, salt), salt))

    def test_reveal_during_commit_phase(self, driver):
        driver.create_game()
        driver.join("alice", "bob")
        driver.commit("host", Choice.ROCK)
        with pytest.raises(InvalidGameState):
            driver.run("host", RevealChoice(Choice.ROCK))

    def test_claim_before_finish(self, driver):
        driver.create_game()
        driver.join("alice", "bob")
        with pytest.raises(InvalidGameState):
            driver.claim("host")

    def test_timeout_on_finished_match(self, driver):
        driver.create_game()
        driver.join("alice", "bob")
        driver.play_round({"host": Choice.ROCK, "alice": Choice.PAPER, "bob": Choice.SCISSORS})
        driver.tick(3600)
        with pytest.raises(InvalidGameState):
            driver.run("host", ResolveTimeout())


class TestRejoinAndNewMatch:

    @pytest.fixture
    def finished(self, driver):
        driver.create_game(losers_can_rejoin=True)
        driver.join("alice", "bob")
        driver.play_round({"host": Choice.ROCK, "alice": Choice.ROCK, "bob": Choice.SCISSORS})
        return driver

    def test_loser_rejoins_and_adds_to_pot(self, finished):
        finished.run("bob", RejoinGame())

        game = finished.game()
        assert game.game_pot == 2970 + 990
        # 结算份额已冻结，不受重新报名影响
        assert game.payout_share == 1485

    def test_winner_cannot_rejoin(self, finished):
        with pytest.raises(InvalidPlayerState):
            finished.run("host", RejoinGame())

    def test_new_match_keeps_unclaimed_pot(self, finished):
        finished.run("bob", RejoinGame())
        finished.claim("host")
        finished.claim("alice")
        finished.run("host", StartNewGameRound())

        game = finished.game()
        assert game.state == GamePhase.COMMIT_PHASE
        assert game.current_round == 1
        assert all(p.score == 0 and not p.claimed for p in game.players)
        assert game.game_pot == 990
        assert game.fee_collected == 40

    def test_outsider_cannot_start_new_match(self, finished):
        with pytest.raises(NotAuthorized):
            finished.run("mallory", StartNewGameRound())


class TestAutomatedMode:

    @pytest.fixture
    def auto_driver(self, driver):
        driver.create_game(game_mode=GameMode.AUTOMATED, auto_round_delay=30, max_auto_rounds=1)
        driver.join("alice", "bob")
        driver.play_round({"host": Choice.ROCK, "alice": Choice.PAPER, "bob": Choice.SCISSORS})
        return driver

    def test_delay_enforced(self, auto_driver):
        with pytest.raises(TimeoutNotReached):
            auto_driver.run("host", AutoPlayNextRound())

    def test_auto_round_cap(self, auto_driver):
        auto_driver.tick(29)
        assert auto_driver.run("alice", AutoPlayNextRound()).value == 1
        assert auto_driver.game().state == GamePhase.COMMIT_PHASE

        auto_driver.play_round({"host": Choice.ROCK, "alice": Choice.ROCK, "bob": Choice.ROCK})
        auto_driver.tick(60)
        with pytest.raises(InvalidGameState):
            auto_driver.run("alice", AutoPlayNextRound())

    def test_manual_match_cannot_auto_play(self, driver):
        driver.create_game()
        driver.join("alice", "bob")
        driver.play_round({"host": Choice.ROCK, "alice": Choice.PAPER, "bob": Choice.SCISSORS})
        driver.tick(60)
        with pytest.raises(InvalidGameState):
            driver.run("host", AutoPlayNextRound())


class TestBotPlayers:

    def test_host_funds_bots_and_wins_by_timeout(self, driver):
        driver.create_game(timeout=60)
        before = driver.transfers.get_balance("host")

        bots = driver.run("host", AddBotPlayers(5)).value

        assert len(bots) == 2
        assert all(bot.startswith("bot_") and len(bot) <= 32 for bot in bots)
        assert driver.transfers.get_balance("host") == before - 2000
        assert driver.game().state == GamePhase.COMMIT_PHASE

        driver.commit("host", Choice.ROCK)
        driver.tick(60)
        driver.run("host", ResolveTimeout())

        game = driver.game()
        assert game.player_ids == ["host"]
        assert game.state == GamePhase.FINISHED
        assert driver.claim("host") == 2970

    def test_outsider_cannot_add_bots(self, driver):
        driver.create_game()
        driver.fund("mallory")
        with pytest.raises(NotAuthorized):
            driver.run("mallory", AddBotPlayers(1))
