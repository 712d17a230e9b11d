"""
Core Module - 纯领域逻辑层

核心模块只能依赖其他核心模块，不能依赖应用层；不直接进行价值转移和存储。

Modules:
    commitment: 承诺生成与揭示校验
    rules: 出拳胜负与回合结算
    ledger: 报名费拆分、结算、奖金与协议费
    roster: 玩家名单
    state_machine: 对局状态机
    timeout: 超时处理
    tournament: 锦标赛登记
    invariant: 不变量检查
    events: 领域事件系统
    snapshot: 记录编解码
"""

from .types import Choice, GamePhase, GameMode, CurrencyMode, Player, Game, Tournament

__all__ = [
    'Choice',
    'GamePhase',
    'GameMode',
    'CurrencyMode',
    'Player',
    'Game',
    'Tournament',
]
