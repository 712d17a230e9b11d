"""
Snapshot Module - 记录编解码

定长二进制布局与字典视图。
"""

from .record_codec import (
    RecordKind,
    RecordCodec,
    SerializationError,
    DeserializationError,
    max_record_size,
    max_tournament_record_size,
)

__all__ = [
    'RecordKind',
    'RecordCodec',
    'SerializationError',
    'DeserializationError',
    'max_record_size',
    'max_tournament_record_size',
]
