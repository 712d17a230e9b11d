"""
承诺-揭示模块

提供承诺格式校验、揭示校验以及客户端生成承诺的辅助函数。
"""

from .commitment_verifier import CommitmentVerifier, generate_salt, create_commitment

__all__ = [
    'CommitmentVerifier',
    'generate_salt',
    'create_commitment',
]
