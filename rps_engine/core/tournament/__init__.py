"""
锦标赛模块
"""

from .tournament_registry import TournamentRegistry, MIN_TOURNAMENT_PLAYERS, MAX_TOURNAMENT_PLAYERS

__all__ = ['TournamentRegistry', 'MIN_TOURNAMENT_PLAYERS', 'MAX_TOURNAMENT_PLAYERS']
