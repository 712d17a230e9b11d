"""
Events Module - 领域事件系统
"""

from .domain_events import DomainEvent, EventType
from .event_bus import EventBus, EventHandler, get_event_bus

__all__ = [
    'DomainEvent',
    'EventType',
    'EventBus',
    'EventHandler',
    'get_event_bus',
]
