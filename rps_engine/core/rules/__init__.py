"""
规则模块

出拳胜负关系与回合循环赛计分。
"""

from .round_resolver import RoundResolver, RoundResult, compare, BEATS

__all__ = [
    'RoundResolver',
    'RoundResult',
    'compare',
    'BEATS',
]
