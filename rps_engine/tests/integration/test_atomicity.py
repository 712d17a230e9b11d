"""
操作原子性集成测试

被拒绝的操作不得改变存储中的记录字节，已执行的转移必须逆序退还。
"""

import pytest

from rps_engine.application import (
    AddBotPlayers, EngineConfig, GameEngine, InMemoryRecordStore, InMemoryValueTransferService,
    JoinGame,
)
from rps_engine.core.events import EventBus
from rps_engine.core.exceptions import (
    InvalidGameState, InvalidHash, TokenTransferError, VersionConflict,
)
from rps_engine.core.types import Choice, CurrencyMode
from rps_engine.tests.helpers import FEE_COLLECTOR, EngineDriver

pytestmark = pytest.mark.integration


class FailingTransferService(InMemoryValueTransferService):
    """可按需让出金或第N笔入金失败"""

    def __init__(self):
        super().__init__()
        self.fail_payouts = False
        self.fail_on_deposit = None
        self.deposit_count = 0

    def deposit(self, source, custody, amount,
                currency_mode=CurrencyMode.NATIVE, token_id=None, description=""):
        self.deposit_count += 1
        if self.fail_on_deposit is not None and self.deposit_count == self.fail_on_deposit:
            raise TokenTransferError(f"第{self.deposit_count}笔入金失败")
        return super().deposit(source, custody, amount, currency_mode, token_id, description)

    def payout(self, custody, destination, amount,
               currency_mode=CurrencyMode.NATIVE, token_id=None, description=""):
        if self.fail_payouts:
            raise TokenTransferError("出金失败")
        return super().payout(custody, destination, amount, currency_mode, token_id, description)


class FailingRecordStore(InMemoryRecordStore):
    """写回失败的存储"""

    def __init__(self):
        super().__init__()
        self.fail_puts = False

    def put(self, record_id, data):
        if self.fail_puts:
            raise OSError("存储不可用")
        super().put(record_id, data)


@pytest.fixture
def failing_transfers():
    return FailingTransferService()


@pytest.fixture
def failing_store():
    return FailingRecordStore()


@pytest.fixture
def fragile_driver(failing_transfers, failing_store):
    engine = GameEngine(
        config=EngineConfig(fee_collector=FEE_COLLECTOR),
        store=failing_store,
        transfer_service=failing_transfers,
        event_bus=EventBus(),
    )
    return EngineDriver(engine)


def stored_bytes(driver: EngineDriver) -> bytes:
    return driver.engine.store.get(driver.game_id)


class TestRejectedOperations:

    def test_business_rule_violation_leaves_record(self, driver):
        driver.create_game()
        driver.join("alice", "bob")
        before = stored_bytes(driver)

        driver.fund("carol")
        with pytest.raises(InvalidGameState):
            driver.run("carol", JoinGame())

        assert stored_bytes(driver) == before
        assert driver.transfers.get_balance("carol") == 10 ** 9

    def test_bad_reveal_leaves_record(self, driver):
        driver.create_game()
        driver.join("alice", "bob")
        for player in ("host", "alice", "bob"):
            driver.commit(player, Choice.ROCK)
        before = stored_bytes(driver)

        with pytest.raises(InvalidHash):
            driver.reveal("host", Choice.PAPER)

        assert stored_bytes(driver) == before

    def test_version_conflict_leaves_record(self, driver):
        driver.create_game()
        before = stored_bytes(driver)

        driver.fund("alice")
        with pytest.raises(VersionConflict):
            driver.run("alice", JoinGame(), expected_version=0)

        assert stored_bytes(driver) == before

    def test_unfunded_join_leaves_record(self, driver):
        driver.create_game()
        before = stored_bytes(driver)

        with pytest.raises(TokenTransferError):
            driver.run("alice", JoinGame())

        assert stored_bytes(driver) == before
        assert driver.custody_balance() == 1000


class TestTransferFailures:

    def test_failed_payout_leaves_record(self, fragile_driver, failing_transfers):
        fragile_driver.create_game()
        fragile_driver.join("alice", "bob")
        fragile_driver.play_round({"host": Choice.ROCK, "alice": Choice.PAPER, "bob": Choice.SCISSORS})
        before = stored_bytes(fragile_driver)

        failing_transfers.fail_payouts = True
        with pytest.raises(TokenTransferError):
            fragile_driver.claim("alice")

        assert stored_bytes(fragile_driver) == before
        assert fragile_driver.custody_balance() == 3000

        failing_transfers.fail_payouts = False
        assert fragile_driver.claim("alice") == 990

    def test_partial_deposits_refunded(self, fragile_driver, failing_transfers):
        fragile_driver.create_game()
        before = stored_bytes(fragile_driver)
        host_balance = failing_transfers.get_balance("host")

        # 第二个合成玩家的报名费入金失败
        failing_transfers.fail_on_deposit = failing_transfers.deposit_count + 2
        with pytest.raises(TokenTransferError):
            fragile_driver.run("host", AddBotPlayers(2))

        assert stored_bytes(fragile_driver) == before
        assert failing_transfers.get_balance("host") == host_balance
        assert fragile_driver.custody_balance() == 1000
        refunds = [r for r in failing_transfers.get_history() if r.refund_of is not None]
        assert len(refunds) == 1
        assert refunds[0].destination == "host"

    def test_store_failure_refunds_transfers(self, fragile_driver, failing_transfers, failing_store):
        fragile_driver.create_game()
        before = stored_bytes(fragile_driver)
        fragile_driver.fund("alice")

        failing_store.fail_puts = True
        with pytest.raises(OSError):
            fragile_driver.run("alice", JoinGame())

        assert stored_bytes(fragile_driver) == before
        assert failing_transfers.get_balance("alice") == 10 ** 9
        assert fragile_driver.custody_balance() == 1000
