"""
账本模块

提供报名费拆分、结算、奖金支付和协议费提取。
"""

from .fee_ledger import FeeLedger, FeeSplit, DEFAULT_FEE_NUMERATOR, DEFAULT_FEE_DENOMINATOR
from .transfer_request import TransferKind, TransferRequest

__all__ = [
    'FeeLedger',
    'FeeSplit',
    'DEFAULT_FEE_NUMERATOR',
    'DEFAULT_FEE_DENOMINATOR',
    'TransferKind',
    'TransferRequest',
]
