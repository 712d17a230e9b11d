"""
超时模块
"""

from .timeout_resolver import TimeoutResolver

__all__ = ['TimeoutResolver']
