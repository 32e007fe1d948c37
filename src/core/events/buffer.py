"""
DomainEventBuffer — ordered, append-only event list owned by one aggregate

The buffer is drained exactly once per unit of work: the command handler saves
the aggregate, then drains and publishes. Draining returns the events in
emission order and leaves the buffer empty.
"""

from typing import Iterator, List

from src.core.events.domain_event import DomainEvent


class DomainEventBuffer:
    """Pending events of a single aggregate instance."""

    def __init__(self) -> None:
        self._events: List[DomainEvent] = []

    def append(self, event: DomainEvent) -> None:
        self._events.append(event)

    def pending(self) -> List[DomainEvent]:
        """Copy of the pending events (buffer unchanged)."""
        return list(self._events)

    def drain(self) -> List[DomainEvent]:
        """Return all pending events in order and clear the buffer."""
        events, self._events = self._events, []
        return events

    def clear(self) -> None:
        self._events = []

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[DomainEvent]:
        return iter(list(self._events))
