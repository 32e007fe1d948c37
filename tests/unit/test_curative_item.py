"""
Tests for the CurativeItem aggregate
"""

from datetime import date

import pytest

from src.core.domain.curative_item import (
    CurativeItem,
    CurativePriority,
    CurativeStatus,
    can_transition,
)
from src.core.errors import DomainValidationError, InvalidTransitionError


@pytest.fixture
def item() -> CurativeItem:
    curative = CurativeItem.create(
        "org-1",
        "opinion-4",
        "CI-001",
        "missing_release",
        "Release of 1998 mortgage not of record",
        CurativePriority.HIGH,
        due_date=date(2024, 6, 30),
    )
    curative.drain_events()
    return curative


class TestCreate:
    def test_create(self) -> None:
        curative = CurativeItem.create("org-1", "op-1", "CI-9", "gap", "Gap in chain", "low")

        assert curative.status == CurativeStatus.OPEN
        assert curative.priority == CurativePriority.LOW
        assert [e.event_type for e in curative.pending_events] == ["curative_item.created"]

    def test_unknown_priority_rejected(self) -> None:
        with pytest.raises(DomainValidationError):
            CurativeItem.create("org-1", "op-1", "CI-9", "gap", "Gap in chain", "urgent")


class TestUpdateStatus:
    """Transition table, no-op and terminal rules"""

    def test_transition_table(self) -> None:
        assert can_transition(CurativeStatus.IN_PROGRESS, CurativeStatus.OPEN)
        assert not can_transition(CurativeStatus.RESOLVED, CurativeStatus.OPEN)
        assert not can_transition(CurativeStatus.WAIVED, CurativeStatus.IN_PROGRESS)

    def test_same_status_is_noop(self, item) -> None:
        item.update_status("open", "user-1")

        assert item.version == 1
        assert item.pending_events == []

    def test_invalid_status_string(self, item) -> None:
        with pytest.raises(DomainValidationError, match="Invalid status: closed"):
            item.update_status("closed")

    def test_open_to_in_progress(self, item) -> None:
        item.update_status(CurativeStatus.IN_PROGRESS, "user-1")

        assert item.status == CurativeStatus.IN_PROGRESS
        assert item.version == 2
        assert [e.event_type for e in item.pending_events] == ["curative_item.status_changed"]

    def test_resolve_stamps_date(self, item) -> None:
        item.resolve("Release recorded", date(2024, 5, 2), "user-1")

        assert item.status == CurativeStatus.RESOLVED
        assert item.resolution_date == date(2024, 5, 2)
        assert item.resolution_notes == "Release recorded"
        assert [e.event_type for e in item.pending_events] == [
            "curative_item.status_changed",
            "curative_item.resolved",
        ]

    def test_resolve_defaults_to_today(self, item) -> None:
        item.update_status(CurativeStatus.RESOLVED)
        assert item.resolution_date is not None

    def test_resolved_cannot_be_waived(self, item) -> None:
        item.resolve()
        with pytest.raises(InvalidTransitionError, match="Cannot waive a resolved item"):
            item.waive("No longer relevant")

    def test_resolved_is_terminal(self, item) -> None:
        item.resolve()
        with pytest.raises(InvalidTransitionError, match="Invalid status transition from resolved to open"):
            item.update_status(CurativeStatus.OPEN)

    def test_waive_requires_reason(self, item) -> None:
        with pytest.raises(DomainValidationError):
            item.waive("  ")
        with pytest.raises(DomainValidationError):
            item.update_status(CurativeStatus.WAIVED)
        assert item.status == CurativeStatus.OPEN
        assert item.pending_events == []

    def test_waive(self, item) -> None:
        item.waive("Outside lease depth", "user-1")

        assert item.status == CurativeStatus.WAIVED
        assert item.resolution_notes == "Outside lease depth"
        assert item.pending_events[-1].reason == "Outside lease depth"


class TestAssignment:
    def test_start_progress_assigns(self, item) -> None:
        item.start_progress("analyst-2", "user-1")

        assert item.status == CurativeStatus.IN_PROGRESS
        assert item.assigned_to == "analyst-2"
        assert [e.event_type for e in item.pending_events] == [
            "curative_item.reassigned",
            "curative_item.status_changed",
        ]

    def test_start_progress_on_terminal_item_fails(self, item) -> None:
        item.resolve()
        item.drain_events()

        with pytest.raises(InvalidTransitionError):
            item.start_progress("analyst-2")
        assert item.assigned_to is None
        assert item.pending_events == []

    def test_set_due_date_and_overdue(self, item) -> None:
        assert item.is_overdue(date(2024, 7, 1))
        assert not item.is_overdue(date(2024, 6, 30))

        item.set_due_date(date(2024, 12, 31))
        assert not item.is_overdue(date(2024, 7, 1))

    def test_terminal_item_is_never_overdue(self, item) -> None:
        item.resolve()
        assert not item.is_overdue(date(2030, 1, 1))


class TestPersistence:
    def test_round_trip(self, item) -> None:
        item.start_progress("analyst-2")
        item.resolve("Done", date(2024, 5, 2))

        restored = CurativeItem.from_persistence(item.to_persistence())

        assert restored.status == CurativeStatus.RESOLVED
        assert restored.version == item.version
        assert restored.resolution_date == date(2024, 5, 2)
        assert restored.assigned_to == "analyst-2"
        assert restored.pending_events == []
