"""
操作参数校验

操作参数来自不受信任的调用者，进入状态机前统一检查类型与取值范围，
格式错误一律以 InvalidParameter 拒绝。
"""

from .exceptions import InvalidParameter
from .types import MAX_U64

__all__ = ['validate_int', 'validate_flag', 'coerce_enum']


def validate_int(value, what: str, low: int = 0, high: int = MAX_U64) -> int:
    """
    校验整数参数

    bool 虽然是 int 的子类，但不接受为数量。

    Raises:
        InvalidParameter: 不是整数或不在 [low, high] 内
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidParameter(f"{what}必须为整数: {value!r}")
    if value < low or value > high:
        raise InvalidParameter(f"{what}必须在 {low}-{high} 之间: {value}")
    return value


def validate_flag(value, what: str) -> bool:
    if not isinstance(value, bool):
        raise InvalidParameter(f"{what}必须为布尔值: {value!r}")
    return value


def coerce_enum(enum_cls, value, what: str):
    """把整数或枚举成员转换为枚举，其他类型一律拒绝"""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidParameter(f"无效的{what}: {value!r}")
    try:
        return enum_cls(value)
    except ValueError:
        raise InvalidParameter(f"无效的{what}: {value}") from None
