"""
Tests for DomainEvent and DomainEventBuffer
"""

import pytest
from pydantic import ValidationError

from src.core.domain import events
from src.core.events import DomainEvent, DomainEventBuffer
from src.core.money import MonetaryValue


def _event(n: int) -> DomainEvent:
    return events.AfeStatusChanged(
        aggregate_id=f"afe-{n}",
        organization_id="org-1",
        old_status="draft",
        new_status="submitted",
    )


class TestDomainEvent:
    """Immutable events with identity and envelope"""

    def test_defaults(self) -> None:
        event = _event(1)
        assert event.event_type == "afe.status_changed"
        assert event.event_id
        assert event.occurred_at.tzinfo is not None

    def test_event_ids_unique(self) -> None:
        assert _event(1).event_id != _event(1).event_id

    def test_frozen(self) -> None:
        event = _event(1)
        with pytest.raises(ValidationError):
            event.aggregate_id = "other"

    def test_organization_required(self) -> None:
        with pytest.raises(ValidationError):
            events.AfeStatusChanged(
                aggregate_id="afe-1", organization_id="", old_status="draft", new_status="submitted"
            )

    def test_to_message(self) -> None:
        event = events.AfeSubmitted(
            aggregate_id="afe-1",
            organization_id="org-1",
            afe_number="AFE-2024-0001",
            submitted_by="user-1",
            estimated_cost=MonetaryValue(75000),
        )
        message = event.to_message()

        assert message["event_type"] == "afe.submitted"
        assert message["payload"]["estimated_cost"] == {"amount": "75000.00", "currency": "USD"}
        assert message["payload"]["event_id"] == event.event_id


class TestDomainEventBuffer:
    """Ordered append-only buffer drained exactly once"""

    def test_append_preserves_order(self) -> None:
        buffer = DomainEventBuffer()
        first, second = _event(1), _event(2)
        buffer.append(first)
        buffer.append(second)

        assert len(buffer) == 2
        assert list(buffer) == [first, second]

    def test_pending_is_a_copy(self) -> None:
        buffer = DomainEventBuffer()
        buffer.append(_event(1))

        pending = buffer.pending()
        pending.clear()

        assert len(buffer) == 1

    def test_drain_returns_then_clears(self) -> None:
        buffer = DomainEventBuffer()
        first, second = _event(1), _event(2)
        buffer.append(first)
        buffer.append(second)

        assert buffer.drain() == [first, second]
        assert len(buffer) == 0
        assert buffer.drain() == []

    def test_clear(self) -> None:
        buffer = DomainEventBuffer()
        buffer.append(_event(1))
        buffer.clear()
        assert buffer.pending() == []
