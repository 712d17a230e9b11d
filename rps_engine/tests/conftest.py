"""
Test Configuration - pytest配置文件

提供引擎测试的通用fixture与测试标记。
"""

import pytest

from rps_engine.application import EngineConfig, GameEngine, InMemoryValueTransferService
from rps_engine.core.events import EventBus
from rps_engine.core.ledger import FeeLedger
from rps_engine.core.state_machine import GameStateMachine
from rps_engine.tests.helpers import FEE_COLLECTOR, EngineDriver


@pytest.fixture
def event_bus():
    """每个测试独立的事件总线"""
    return EventBus()


@pytest.fixture
def transfer_service():
    return InMemoryValueTransferService()


@pytest.fixture
def engine(event_bus, transfer_service):
    """使用测试费用收取方的引擎"""
    return GameEngine(
        config=EngineConfig(fee_collector=FEE_COLLECTOR),
        transfer_service=transfer_service,
        event_bus=event_bus,
    )


@pytest.fixture
def driver(engine):
    """驱动引擎执行操作的测试辅助对象"""
    return EngineDriver(engine)


@pytest.fixture
def machine():
    """不经过引擎的对局状态机"""
    return GameStateMachine(ledger=FeeLedger(), fee_collector=FEE_COLLECTOR)


# 测试标记定义
def pytest_configure(config):
    """pytest配置"""
    config.addinivalue_line(
        "markers", "property_test: 标记基于属性的测试"
    )
    config.addinivalue_line(
        "markers", "integration: 标记集成测试"
    )
