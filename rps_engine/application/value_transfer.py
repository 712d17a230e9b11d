"""
价值转移服务

引擎通过抽象服务完成入金、出金与退款，具体的资产后端（原生资产、代币）由宿主实现。
内存实现按 (账户, 货币模式, 代币) 记录余额并保留完整交易历史。
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
import logging
import threading
import time
import uuid

from ..core.exceptions import TokenTransferError
from ..core.types import CurrencyMode

__all__ = ['TransferReceipt', 'ValueTransferService', 'InMemoryValueTransferService']


@dataclass(frozen=True)
class TransferReceipt:
    """已执行转移的回执，可用于退款"""
    receipt_id: str
    source: str
    destination: str
    amount: int
    currency_mode: CurrencyMode
    token_id: Optional[str]
    description: str
    timestamp: float
    refund_of: Optional[str] = None

    def __post_init__(self):
        if not self.receipt_id:
            raise ValueError("receipt_id不能为空")
        if self.amount <= 0:
            raise ValueError("转移金额必须为正数")

    def to_dict(self):
        return {
            'receipt_id': self.receipt_id,
            'source': self.source,
            'destination': self.destination,
            'amount': self.amount,
            'currency_mode': self.currency_mode.name,
            'token_id': self.token_id,
            'description': self.description,
            'refund_of': self.refund_of,
        }


class ValueTransferService(ABC):
    """价值转移服务接口，失败时抛出 TokenTransferError"""

    @abstractmethod
    def deposit(self, source: str, custody: str, amount: int,
                currency_mode: CurrencyMode = CurrencyMode.NATIVE,
                token_id: Optional[str] = None, description: str = "") -> TransferReceipt:
        """外部账户 -> 托管账户"""
        pass

    @abstractmethod
    def payout(self, custody: str, destination: str, amount: int,
               currency_mode: CurrencyMode = CurrencyMode.NATIVE,
               token_id: Optional[str] = None, description: str = "") -> TransferReceipt:
        """托管账户 -> 外部账户"""
        pass

    @abstractmethod
    def refund(self, receipt: TransferReceipt) -> TransferReceipt:
        """撤销一笔已执行的转移"""
        pass


BalanceKey = Tuple[str, CurrencyMode, Optional[str]]


class InMemoryValueTransferService(ValueTransferService):
    """
    内存价值转移服务

    余额不足时抛出 TokenTransferError，不会产生负余额。
    """

    def __init__(self, initial_balances: Optional[Dict[str, int]] = None):
        """
        Args:
            initial_balances: 原生资产的初始余额
        """
        self._balances: Dict[BalanceKey, int] = {}
        self._history: List[TransferReceipt] = []
        self._lock = threading.RLock()
        self._logger = logging.getLogger(__name__)

        for account, balance in (initial_balances or {}).items():
            if balance < 0:
                raise ValueError(f"账户{account}的初始余额不能为负数: {balance}")
            self._balances[(account, CurrencyMode.NATIVE, None)] = balance

    def credit(self, account: str, amount: int,
               currency_mode: CurrencyMode = CurrencyMode.NATIVE,
               token_id: Optional[str] = None) -> None:
        """直接为账户充值（宿主侧资金注入）"""
        if amount <= 0:
            raise ValueError("充值数量必须为正数")
        with self._lock:
            key = (account, currency_mode, token_id)
            self._balances[key] = self._balances.get(key, 0) + amount

    def get_balance(self, account: str, currency_mode: CurrencyMode = CurrencyMode.NATIVE,
                    token_id: Optional[str] = None) -> int:
        with self._lock:
            return self._balances.get((account, currency_mode, token_id), 0)

    def get_total(self, currency_mode: CurrencyMode = CurrencyMode.NATIVE,
                  token_id: Optional[str] = None) -> int:
        """某一资产在所有账户上的余额总和"""
        with self._lock:
            return sum(v for (_, mode, token), v in self._balances.items()
                       if mode == currency_mode and token == token_id)

    def get_history(self) -> List[TransferReceipt]:
        with self._lock:
            return list(self._history)

    def deposit(self, source, custody, amount, currency_mode=CurrencyMode.NATIVE,
                token_id=None, description=""):
        return self._move(source, custody, amount, currency_mode, token_id, description)

    def payout(self, custody, destination, amount, currency_mode=CurrencyMode.NATIVE,
               token_id=None, description=""):
        return self._move(custody, destination, amount, currency_mode, token_id, description)

    def refund(self, receipt: TransferReceipt) -> TransferReceipt:
        self._logger.warning(f"退款 {receipt.receipt_id}: {receipt.amount} "
                             f"{receipt.destination} -> {receipt.source}")
        return self._move(receipt.destination, receipt.source, receipt.amount,
                          receipt.currency_mode, receipt.token_id,
                          f"退款: {receipt.description}", refund_of=receipt.receipt_id)

    def _move(self, source: str, destination: str, amount: int, currency_mode: CurrencyMode,
              token_id: Optional[str], description: str,
              refund_of: Optional[str] = None) -> TransferReceipt:
        if amount <= 0:
            raise TokenTransferError(f"转移金额必须为正数: {amount}")
        if source == destination:
            raise TokenTransferError("不能向自己转移")

        with self._lock:
            source_key = (source, currency_mode, token_id)
            available = self._balances.get(source_key, 0)
            if available < amount:
                raise TokenTransferError(
                    f"账户 {source} 余额不足: 需要 {amount}, 可用 {available}")

            destination_key = (destination, currency_mode, token_id)
            self._balances[source_key] = available - amount
            self._balances[destination_key] = self._balances.get(destination_key, 0) + amount

            receipt = TransferReceipt(
                receipt_id=uuid.uuid4().hex,
                source=source,
                destination=destination,
                amount=amount,
                currency_mode=currency_mode,
                token_id=token_id,
                description=description,
                timestamp=time.time(),
                refund_of=refund_of,
            )
            self._history.append(receipt)

        self._logger.debug(f"转移 {amount} {source} -> {destination}: {description}")
        return receipt
