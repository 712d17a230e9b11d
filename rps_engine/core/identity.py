"""
身份与地址派生

托管账户地址由固定域标签与记录自身ID确定性派生，不需要外部种子。
"""

import hashlib

from .exceptions import InvalidParameter
from .types import IDENTITY_SIZE

__all__ = [
    'GAME_DOMAIN_TAG',
    'TOURNAMENT_DOMAIN_TAG',
    'validate_identity',
    'derive_custody_address',
    'derive_bot_identity',
]

GAME_DOMAIN_TAG = b"rps_game"
TOURNAMENT_DOMAIN_TAG = b"rps_tournament"
BOT_PREFIX = "bot_"


def validate_identity(identity: str, what: str = "identity") -> str:
    """
    校验身份能放入32字节身份槽

    Raises:
        InvalidParameter: 为空或UTF-8编码超过32字节
    """
    if not isinstance(identity, str) or not identity:
        raise InvalidParameter(f"{what}不能为空")
    if "\x00" in identity:
        raise InvalidParameter(f"{what}不能包含NUL字符")
    if len(identity.encode('utf-8')) > IDENTITY_SIZE:
        raise InvalidParameter(f"{what}超过{IDENTITY_SIZE}字节: {identity}")
    return identity


def derive_custody_address(domain_tag: bytes, record_id: str) -> str:
    """托管账户地址 = sha256(域标签 + 记录ID)"""
    return hashlib.sha256(domain_tag + record_id.encode('utf-8')).hexdigest()


def derive_bot_identity(game_id: str, roster_size: int, index: int) -> str:
    """
    合成玩家身份

    由对局ID、当前名单人数和序号确定性派生，截断为32个字符以放入身份槽。
    """
    seed = f"bot_{game_id}_{roster_size}_{index}".encode('utf-8')
    digest = hashlib.sha256(seed).hexdigest()
    return (BOT_PREFIX + digest)[:IDENTITY_SIZE]
