"""
对局引擎业务异常定义

所有异常在任何状态修改生效之前同步抛出，操作整体被丢弃，记录保持不变。
引擎内部没有重试，重试由调用方重新提交操作完成。
"""

from typing import Optional

__all__ = [
    'RPSEngineError',
    'InvalidPlayerState',
    'InvalidGameState',
    'PlayerNotFound',
    'GameFull',
    'PlayerAlreadyJoined',
    'InvalidChoice',
    'InvalidHash',
    'TimeoutNotReached',
    'NotWinner',
    'InvalidParameter',
    'InsufficientFunds',
    'NotAuthorized',
    'FeeCalculationError',
    'TokenTransferError',
    'VersionConflict',
    'RecordNotFound',
]


class RPSEngineError(Exception):
    """引擎基础异常类"""

    error_code = "ENGINE_ERROR"

    def __init__(self, message: str = "", error_code: Optional[str] = None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__
        if error_code is not None:
            self.error_code = error_code


class InvalidPlayerState(RPSEngineError):
    """玩家状态不允许此操作"""
    error_code = "INVALID_PLAYER_STATE"


class InvalidGameState(RPSEngineError):
    """对局不处于操作所需的阶段"""
    error_code = "INVALID_GAME_STATE"


class PlayerNotFound(RPSEngineError):
    """玩家不在名单中"""
    error_code = "PLAYER_NOT_FOUND"


class GameFull(RPSEngineError):
    """名单已满"""
    error_code = "GAME_FULL"


class PlayerAlreadyJoined(RPSEngineError):
    """玩家已经加入"""
    error_code = "PLAYER_ALREADY_JOINED"


class InvalidChoice(RPSEngineError):
    """揭示时提交了 None"""
    error_code = "INVALID_CHOICE"


class InvalidHash(RPSEngineError):
    """揭示的出拳与承诺不匹配"""
    error_code = "INVALID_HASH"


class TimeoutNotReached(RPSEngineError):
    """超时时间尚未到达"""
    error_code = "TIMEOUT_NOT_REACHED"


class NotWinner(RPSEngineError):
    """调用者不是可领奖的赢家"""
    error_code = "NOT_WINNER"


class InvalidParameter(RPSEngineError):
    """操作参数格式错误"""
    error_code = "INVALID_PARAMETER"


class InsufficientFunds(RPSEngineError):
    """可支付金额为零"""
    error_code = "INSUFFICIENT_FUNDS"


class NotAuthorized(RPSEngineError):
    """缺少签名或身份不符"""
    error_code = "NOT_AUTHORIZED"


class FeeCalculationError(RPSEngineError):
    """费用计算越界"""
    error_code = "FEE_CALCULATION_ERROR"


class TokenTransferError(RPSEngineError):
    """价值转移失败"""
    error_code = "TOKEN_TRANSFER_ERROR"


class VersionConflict(RPSEngineError):
    """记录版本与调用方读取的版本不一致"""
    error_code = "VERSION_CONFLICT"

    def __init__(self, expected: int, actual: int):
        super().__init__(f"记录版本冲突: 期望 {expected}, 实际 {actual}")
        self.expected = expected
        self.actual = actual


class RecordNotFound(RPSEngineError):
    """目标记录不存在"""
    error_code = "RECORD_NOT_FOUND"

    def __init__(self, record_id: str):
        super().__init__(f"记录 {record_id} 不存在")
        self.record_id = record_id
