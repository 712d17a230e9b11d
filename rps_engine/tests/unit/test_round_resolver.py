"""
回合结算单元测试
"""

import pytest

from rps_engine.core.rules import BEATS, RoundResolver, compare
from rps_engine.core.types import Choice, Player

R, P, S, N = Choice.ROCK, Choice.PAPER, Choice.SCISSORS, Choice.NONE


def players_with(*choices):
    return [Player(identity=f"p{i}", choice=c, revealed=True) for i, c in enumerate(choices)]


class TestCompare:
    """测试两两比较"""

    @pytest.mark.parametrize("winner,loser", [(R, S), (P, R), (S, P)])
    def test_cycle(self, winner, loser):
        assert compare(winner, loser) == 1
        assert compare(loser, winner) == -1

    @pytest.mark.parametrize("choice", [R, P, S, N])
    def test_same_choice_is_draw(self, choice):
        assert compare(choice, choice) == 0

    @pytest.mark.parametrize("choice", [R, P, S])
    def test_none_never_scores(self, choice):
        assert compare(choice, N) == 0
        assert compare(N, choice) == 0

    def test_beats_table_is_a_cycle(self):
        for c in (R, P, S):
            assert BEATS[BEATS[BEATS[c]]] == c


class TestRoundResolver:
    """测试循环赛计分"""

    def setup_method(self):
        self.resolver = RoundResolver()

    def test_rock_paper_scissors_each_score_one(self):
        players = players_with(R, P, S)
        result = self.resolver.resolve_round(players, round_number=1)

        assert [p.score for p in players] == [1, 1, 1]
        assert result.comparisons == 3
        assert result.total_points == 3

    def test_four_players(self):
        players = players_with(R, R, S, P)
        result = self.resolver.resolve_round(players, round_number=1)
        # R,R 各胜S负P; S胜P; P胜两个R
        assert result.points == {'p0': 1, 'p1': 1, 'p2': 1, 'p3': 2}
        assert result.comparisons == 6

    def test_all_same_choice_scores_nothing(self):
        players = players_with(P, P, P)
        result = self.resolver.resolve_round(players, round_number=1)
        assert result.total_points == 0

    def test_defaulted_player_scores_nothing(self):
        players = players_with(R, S, N)
        self.resolver.resolve_round(players, round_number=2)
        assert [p.score for p in players] == [1, 0, 0]

    def test_scores_accumulate_across_rounds(self):
        players = players_with(R, S, S)
        self.resolver.resolve_round(players, round_number=1)
        self.resolver.resolve_round(players, round_number=2)
        assert players[0].score == 4

    def test_score_choices_matches_resolve_round(self):
        choices = [S, P, R, R]
        players = players_with(*choices)
        self.resolver.resolve_round(players, round_number=1)
        assert RoundResolver.score_choices(choices) == [p.score for p in players]

    def test_pair_outcomes_are_ordered_pairs(self):
        result = self.resolver.resolve_round(players_with(R, P, S), round_number=1)
        assert [(a, b) for a, b, _ in result.pair_outcomes] == [
            ('p0', 'p1'), ('p0', 'p2'), ('p1', 'p2')]
