"""
记录存储

按记录ID保存定长字节记录。引擎在一次读取-修改-写入期间持有存储锁，
同一时刻只有一个操作能修改存储。
"""

import logging
import threading
from typing import Dict, List

from ..core.exceptions import InvalidParameter, RecordNotFound

__all__ = ['InMemoryRecordStore']


class InMemoryRecordStore:
    """内存记录存储"""

    def __init__(self):
        self._records: Dict[str, bytes] = {}
        self.lock = threading.RLock()
        self._logger = logging.getLogger(__name__)

    def exists(self, record_id: str) -> bool:
        with self.lock:
            return record_id in self._records

    def get(self, record_id: str) -> bytes:
        """
        Raises:
            RecordNotFound: 记录不存在
        """
        with self.lock:
            try:
                return self._records[record_id]
            except KeyError:
                raise RecordNotFound(record_id) from None

    def create(self, record_id: str, data: bytes) -> None:
        """分配新记录槽，槽大小即首次写入的长度"""
        with self.lock:
            if record_id in self._records:
                raise InvalidParameter(f"记录 {record_id} 已存在")
            self._records[record_id] = bytes(data)
            self._logger.debug(f"分配记录 {record_id} ({len(data)} 字节)")

    def put(self, record_id: str, data: bytes) -> None:
        """覆盖已有记录，长度必须与分配时一致"""
        with self.lock:
            current = self.get(record_id)
            if len(data) != len(current):
                raise ValueError(
                    f"记录 {record_id} 长度不能改变: {len(current)} -> {len(data)}")
            self._records[record_id] = bytes(data)

    def record_ids(self) -> List[str]:
        with self.lock:
            return list(self._records)
