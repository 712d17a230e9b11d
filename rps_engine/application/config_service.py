"""
ConfigService - 配置管理服务

集中管理引擎策略配置与日志配置，按命名配置档提供。
"""

import logging
from typing import List, Optional
from dataclasses import dataclass
from enum import Enum

from ..core.ledger import DEFAULT_FEE_NUMERATOR, DEFAULT_FEE_DENOMINATOR
from ..core.state_machine import MIN_PLAYER_BOUND, MAX_PLAYER_BOUND
from ..core.tournament import MIN_TOURNAMENT_PLAYERS, MAX_TOURNAMENT_PLAYERS
from .types import QueryResult


class ConfigType(Enum):
    """配置类型枚举"""
    ENGINE = "engine"
    LOGGING = "logging"


@dataclass
class EngineConfig:
    """引擎策略配置"""
    fee_numerator: int = DEFAULT_FEE_NUMERATOR
    fee_denominator: int = DEFAULT_FEE_DENOMINATOR
    fee_collector: Optional[str] = None
    min_player_bound: int = MIN_PLAYER_BOUND
    max_player_bound: int = MAX_PLAYER_BOUND
    min_tournament_players: int = MIN_TOURNAMENT_PLAYERS
    max_tournament_players: int = MAX_TOURNAMENT_PLAYERS
    enable_invariant_checks: bool = True

    def __post_init__(self):
        if self.fee_denominator <= 0:
            raise ValueError(f"费率分母必须为正数: {self.fee_denominator}")
        if not 0 <= self.fee_numerator <= self.fee_denominator:
            raise ValueError(f"费率分子必须在0到{self.fee_denominator}之间: {self.fee_numerator}")
        if not 1 <= self.min_player_bound <= self.max_player_bound:
            raise ValueError(f"人数上下界无效: {self.min_player_bound}-{self.max_player_bound}")
        if not 1 <= self.min_tournament_players <= self.max_tournament_players:
            raise ValueError(
                f"锦标赛人数上下界无效: {self.min_tournament_players}-{self.max_tournament_players}")


@dataclass
class LoggingConfig:
    """日志配置"""
    log_level: str = 'INFO'
    enable_console_logging: bool = True
    enable_file_logging: bool = False
    log_file_path: str = "rps_engine.log"
    log_format: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(config: Optional[LoggingConfig] = None) -> logging.Logger:
    """
    按配置初始化 rps_engine 根日志器

    Args:
        config: 日志配置，默认使用配置服务的default日志配置档

    Returns:
        rps_engine 根日志器
    """
    config = config or get_config_service().get_logging_config().data
    root = logging.getLogger('rps_engine')
    root.setLevel(getattr(logging, config.log_level.upper(), logging.INFO))
    for handler in list(root.handlers):
        root.removeHandler(handler)

    formatter = logging.Formatter(config.log_format)
    if config.enable_console_logging:
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        root.addHandler(console)
    if config.enable_file_logging:
        file_handler = logging.FileHandler(config.log_file_path, encoding='utf-8')
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
    return root


class ConfigService:
    """配置管理服务"""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._configs = {}
        self._load_default_configs()

    def _load_default_configs(self):
        """加载默认配置"""
        self._configs[ConfigType.ENGINE] = {
            'default': EngineConfig(),
            'no_fee': EngineConfig(fee_numerator=0),
            'testing': EngineConfig(fee_collector='fee_collector'),
        }
        self._configs[ConfigType.LOGGING] = {
            'default': LoggingConfig(),
            'debug': LoggingConfig(log_level='DEBUG'),
            'production': LoggingConfig(
                log_level='WARNING',
                enable_console_logging=False,
                enable_file_logging=True
            ),
        }
        self.logger.info("默认配置加载完成")

    def get_engine_config(self, profile: str = "default") -> QueryResult[EngineConfig]:
        """
        获取引擎策略配置

        Args:
            profile: 配置档名称 (default, no_fee, testing)
        """
        config_profiles = self._configs[ConfigType.ENGINE]
        if profile not in config_profiles:
            self.logger.warning(f"未找到引擎配置 '{profile}'，使用默认配置")
            profile = "default"
        return QueryResult.success_result(config_profiles[profile])

    def get_logging_config(self, profile: str = "default") -> QueryResult[LoggingConfig]:
        config_profiles = self._configs[ConfigType.LOGGING]
        if profile not in config_profiles:
            self.logger.warning(f"未找到日志配置 '{profile}'，使用默认配置")
            profile = "default"
        return QueryResult.success_result(config_profiles[profile])

    def register_profile(self, config_type: ConfigType, profile: str, config) -> QueryResult[bool]:
        """注册或覆盖一个配置档"""
        expected = EngineConfig if config_type == ConfigType.ENGINE else LoggingConfig
        if not isinstance(config, expected):
            return QueryResult.failure_result(
                f"配置类型不匹配: 需要 {expected.__name__}",
                error_code="CONFIG_TYPE_MISMATCH"
            )
        self._configs[config_type][profile] = config
        self.logger.info(f"配置 {config_type.value}.{profile} 已注册")
        return QueryResult.success_result(True)

    def list_available_profiles(self, config_type: ConfigType) -> QueryResult[List[str]]:
        return QueryResult.success_result(list(self._configs[config_type].keys()))


# 全局单例
_config_service_instance: Optional[ConfigService] = None


def get_config_service() -> ConfigService:
    """获取配置服务的全局单例"""
    global _config_service_instance
    if _config_service_instance is None:
        _config_service_instance = ConfigService()
    return _config_service_instance
