"""
Application Layer - 应用服务层

应用层可以访问核心层，但不能被核心层访问。

Services:
    GameEngine: 操作分发、原子提交与事件发布
    ConfigService: 配置管理
    InMemoryValueTransferService: 内存价值转移服务
    InMemoryRecordStore: 内存记录存储
"""

from .types import ResultStatus, CommandResult, QueryResult
from .operations import (
    CreateGame,
    JoinGame,
    CommitChoice,
    RevealChoice,
    ResolveTimeout,
    ClaimWinnings,
    RejoinGame,
    StartNewGameRound,
    AutoPlayNextRound,
    AddBotPlayers,
    CollectFees,
    CreateTournament,
    JoinTournament,
    Operation,
    OperationRequest,
)
from .config_service import (
    ConfigType, EngineConfig, LoggingConfig, ConfigService, get_config_service, setup_logging
)
from .value_transfer import TransferReceipt, ValueTransferService, InMemoryValueTransferService
from .record_store import InMemoryRecordStore
from .engine import GameEngine, OperationOutcome

__all__ = [
    # 类型
    "ResultStatus",
    "CommandResult",
    "QueryResult",
    # 操作
    "CreateGame",
    "JoinGame",
    "CommitChoice",
    "RevealChoice",
    "ResolveTimeout",
    "ClaimWinnings",
    "RejoinGame",
    "StartNewGameRound",
    "AutoPlayNextRound",
    "AddBotPlayers",
    "CollectFees",
    "CreateTournament",
    "JoinTournament",
    "Operation",
    "OperationRequest",
    # 配置
    "ConfigType",
    "EngineConfig",
    "LoggingConfig",
    "ConfigService",
    "get_config_service",
    "setup_logging",
    # 服务
    "TransferReceipt",
    "ValueTransferService",
    "InMemoryValueTransferService",
    "InMemoryRecordStore",
    "GameEngine",
    "OperationOutcome",
]
