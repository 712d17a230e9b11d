"""
价值转移请求

引擎不直接转移资金，只生成转移请求，由应用层交给价值转移服务执行。
"""

from dataclasses import dataclass
from enum import Enum, auto

__all__ = ['TransferKind', 'TransferRequest']


class TransferKind(Enum):
    """转移方向"""
    DEPOSIT = auto()   # 外部账户 -> 托管账户
    PAYOUT = auto()    # 托管账户 -> 外部账户


@dataclass(frozen=True)
class TransferRequest:
    """单笔价值转移请求"""
    kind: TransferKind
    account: str
    amount: int
    description: str = ""

    def __post_init__(self):
        if not self.account:
            raise ValueError("account不能为空")
        if self.amount <= 0:
            raise ValueError("转移金额必须为正数")

    @classmethod
    def deposit(cls, payer: str, amount: int, description: str) -> 'TransferRequest':
        """创建入金请求"""
        return cls(kind=TransferKind.DEPOSIT, account=payer, amount=amount, description=description)

    @classmethod
    def payout(cls, payee: str, amount: int, description: str) -> 'TransferRequest':
        """创建出金请求"""
        return cls(kind=TransferKind.PAYOUT, account=payee, amount=amount, description=description)
