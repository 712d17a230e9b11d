"""
RPS Engine - 多人石头剪刀布承诺-揭示对局引擎

Layers:
    core: 纯领域逻辑
    application: 操作分发、价值转移与存储
"""

__version__ = "1.0.0"
