"""
Event Bus - 事件总线

同步发布/订阅。处理器异常只记录日志，不影响已提交的操作。
"""

from __future__ import annotations
from collections import defaultdict
from typing import Callable, Dict, List, Optional
import logging
import threading

from .domain_events import DomainEvent, EventType

__all__ = ['EventBus', 'EventHandler', 'get_event_bus']

EventHandler = Callable[[DomainEvent], None]


class EventBus:
    """事件总线"""

    def __init__(self, max_history_size: int = 1000):
        self._handlers: Dict[EventType, List[EventHandler]] = defaultdict(list)
        self._global_handlers: List[EventHandler] = []
        self._event_history: List[DomainEvent] = []
        self._max_history_size = max_history_size
        self._lock = threading.RLock()
        self._logger = logging.getLogger(__name__)

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """订阅特定类型的事件"""
        with self._lock:
            self._handlers[event_type].append(handler)

    def subscribe_all(self, handler: EventHandler) -> None:
        """订阅所有事件"""
        with self._lock:
            self._global_handlers.append(handler)

    def unsubscribe(self, event_type: EventType, handler: EventHandler) -> None:
        with self._lock:
            if handler in self._handlers[event_type]:
                self._handlers[event_type].remove(handler)

    def publish(self, event: DomainEvent) -> None:
        """发布事件并同步调用所有处理器"""
        with self._lock:
            self._event_history.append(event)
            if len(self._event_history) > self._max_history_size:
                self._event_history = self._event_history[-self._max_history_size:]
            handlers = list(self._handlers[event.event_type]) + list(self._global_handlers)

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                self._logger.error(f"事件处理器执行失败 {event.event_type.name}: {e}")

    def get_event_history(self, event_type: Optional[EventType] = None) -> List[DomainEvent]:
        with self._lock:
            if event_type is None:
                return list(self._event_history)
            return [e for e in self._event_history if e.event_type == event_type]

    def clear_history(self) -> None:
        with self._lock:
            self._event_history.clear()


_global_event_bus: Optional[EventBus] = None


def get_event_bus() -> EventBus:
    """获取全局事件总线"""
    global _global_event_bus
    if _global_event_bus is None:
        _global_event_bus = EventBus()
    return _global_event_bus
