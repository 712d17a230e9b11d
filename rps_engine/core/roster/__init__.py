"""
名单模块
"""

from .player_roster import PlayerRoster

__all__ = ['PlayerRoster']
