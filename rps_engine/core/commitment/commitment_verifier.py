"""
承诺校验器

承诺 = HMAC-SHA512(key=salt, msg=出拳单字节编码)，输出恰好填满64字节承诺槽。
揭示时重新计算并逐字节比较，保证玩家在看到他人出拳后无法改口。
"""

import hashlib
import hmac
import logging
import secrets

from ..exceptions import InvalidChoice, InvalidHash, InvalidParameter
from ..types import Choice, COMMITMENT_SIZE, EMPTY_COMMITMENT, SALT_SIZE

__all__ = ['CommitmentVerifier', 'generate_salt', 'create_commitment']

logger = logging.getLogger(__name__)


def generate_salt() -> bytes:
    """生成32字节随机盐值（客户端使用）"""
    return secrets.token_bytes(SALT_SIZE)


def create_commitment(choice: Choice, salt: bytes) -> bytes:
    """
    计算出拳承诺

    Args:
        choice: 出拳，不能为NONE
        salt: 32字节盐值

    Returns:
        64字节承诺
    """
    if choice == Choice.NONE:
        raise InvalidChoice("不能对NONE生成承诺")
    return hmac.new(salt, bytes([int(choice)]), hashlib.sha512).digest()


class CommitmentVerifier:
    """承诺校验器"""

    @staticmethod
    def validate_commit_payload(commitment: bytes, salt: bytes) -> None:
        """
        校验提交的承诺与盐值的格式

        Raises:
            InvalidParameter: 长度不符或承诺全零
        """
        if not isinstance(commitment, (bytes, bytearray)) or len(commitment) != COMMITMENT_SIZE:
            raise InvalidParameter(f"承诺必须为{COMMITMENT_SIZE}字节")
        if not isinstance(salt, (bytes, bytearray)) or len(salt) != SALT_SIZE:
            raise InvalidParameter(f"盐值必须为{SALT_SIZE}字节")
        if bytes(commitment) == EMPTY_COMMITMENT:
            raise InvalidParameter("承诺不能为全零")

    @staticmethod
    def verify(choice: Choice, salt: bytes, commitment: bytes) -> None:
        """
        校验揭示的出拳与承诺是否一致

        Args:
            choice: 揭示的出拳
            salt: 提交承诺时保存的盐值
            commitment: 保存的承诺

        Raises:
            InvalidChoice: 出拳为NONE
            InvalidHash: 重新计算的哈希与承诺不一致
        """
        if choice == Choice.NONE:
            raise InvalidChoice("揭示的出拳不能为NONE")

        expected = create_commitment(choice, salt)
        if not hmac.compare_digest(expected, bytes(commitment)):
            logger.warning("揭示的出拳与承诺不匹配")
            raise InvalidHash("揭示的出拳与承诺不匹配")
