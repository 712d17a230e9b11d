"""
回合结算

对所有无序玩家对进行两两比较（循环赛计分）：
石头胜剪刀，布胜石头，剪刀胜布；胜者得1分，平局或任一方为NONE均不得分。
N名玩家每回合恰好 N*(N-1)/2 次比较。
"""

import logging
from dataclasses import dataclass, field
from itertools import combinations
from typing import Dict, List, Sequence, Tuple

from ..types import Choice, Player

__all__ = ['RoundResult', 'RoundResolver', 'compare', 'BEATS']

logger = logging.getLogger(__name__)

# 键胜值
BEATS: Dict[Choice, Choice] = {
    Choice.ROCK: Choice.SCISSORS,
    Choice.PAPER: Choice.ROCK,
    Choice.SCISSORS: Choice.PAPER,
}


def compare(a: Choice, b: Choice) -> int:
    """
    比较两个出拳

    Returns:
        1 表示a胜，-1 表示b胜，0 表示平局或存在NONE
    """
    if a == Choice.NONE or b == Choice.NONE or a == b:
        return 0
    if BEATS[a] == b:
        return 1
    return -1


@dataclass(frozen=True)
class RoundResult:
    """
    单回合结算结果.

    Attributes:
        round_number: 回合序号
        points: 本回合每名玩家获得的分数
        comparisons: 比较次数
        pair_outcomes: 每对玩家的比较结果 (i身份, j身份, compare值)
    """

    round_number: int
    points: Dict[str, int]
    comparisons: int
    pair_outcomes: List[Tuple[str, str, int]] = field(default_factory=list)

    @property
    def total_points(self) -> int:
        return sum(self.points.values())


class RoundResolver:
    """回合结算器"""

    @staticmethod
    def score_choices(choices: Sequence[Choice]) -> List[int]:
        """按位置返回每个出拳在循环赛中的得分"""
        points = [0] * len(choices)
        for i, j in combinations(range(len(choices)), 2):
            outcome = compare(choices[i], choices[j])
            if outcome > 0:
                points[i] += 1
            elif outcome < 0:
                points[j] += 1
        return points

    def resolve_round(self, players: Sequence[Player], round_number: int) -> RoundResult:
        """
        结算一个回合并把分数累加到玩家身上

        Args:
            players: 本回合的玩家（按加入顺序）
            round_number: 回合序号

        Returns:
            RoundResult
        """
        pair_outcomes = []
        points = {p.identity: 0 for p in players}

        for first, second in combinations(players, 2):
            outcome = compare(first.choice, second.choice)
            pair_outcomes.append((first.identity, second.identity, outcome))
            if outcome > 0:
                points[first.identity] += 1
            elif outcome < 0:
                points[second.identity] += 1

        for player in players:
            player.score += points[player.identity]
            logger.info(f"[回合{round_number}] 玩家 {player.identity} 出 {player.choice.name}, "
                        f"本回合得分 {points[player.identity]}, 累计 {player.score}")

        return RoundResult(
            round_number=round_number,
            points=points,
            comparisons=len(pair_outcomes),
            pair_outcomes=pair_outcomes,
        )
