"""Domain event base type and the per-aggregate event buffer."""

from src.core.events.buffer import DomainEventBuffer
from src.core.events.domain_event import DomainEvent, utc_now

__all__ = [
    "DomainEvent",
    "DomainEventBuffer",
    "utc_now",
]
