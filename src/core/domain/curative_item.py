"""
CurativeItem — a title defect that must be cured or waived

    OPEN ◀──▶ IN_PROGRESS
      │          │
      ├──────────┴──▶ RESOLVED (terminal)
      └──────────────▶ WAIVED   (terminal)

Requesting the status an item already has is a no-op: no version bump and no
event. A resolved item can never be waived.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Final, List, Optional
from uuid import uuid4

from src.core.contracts.validators import validate_curative_item_record
from src.core.domain import events
from src.core.domain.serialization import (
    dump_date,
    dump_datetime,
    load_date,
    load_datetime,
    require_text,
)
from src.core.errors import DomainValidationError, InvalidTransitionError
from src.core.events import DomainEvent, DomainEventBuffer, utc_now


class CurativeStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"  # Terminal
    WAIVED = "waived"  # Terminal


class CurativePriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


VALID_TRANSITIONS: Final[Dict[CurativeStatus, frozenset]] = {
    CurativeStatus.OPEN: frozenset(
        {CurativeStatus.IN_PROGRESS, CurativeStatus.RESOLVED, CurativeStatus.WAIVED}
    ),
    CurativeStatus.IN_PROGRESS: frozenset(
        {CurativeStatus.OPEN, CurativeStatus.RESOLVED, CurativeStatus.WAIVED}
    ),
    CurativeStatus.RESOLVED: frozenset(),
    CurativeStatus.WAIVED: frozenset(),
}

TERMINAL_STATUSES: Final[frozenset] = frozenset({CurativeStatus.RESOLVED, CurativeStatus.WAIVED})


def can_transition(from_status: CurativeStatus, to_status: CurativeStatus) -> bool:
    return to_status in VALID_TRANSITIONS.get(from_status, frozenset())


class CurativeItem:
    """Curative item aggregate root (belongs to a title opinion)."""

    def __init__(
        self,
        item_id: str,
        organization_id: str,
        title_opinion_id: str,
        item_number: str,
        defect_type: str,
        description: str,
        priority: CurativePriority | str,
        *,
        status: CurativeStatus | str = CurativeStatus.OPEN,
        assigned_to: Optional[str] = None,
        due_date: Optional[date] = None,
        resolution_date: Optional[date] = None,
        resolution_notes: Optional[str] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
        version: int = 1,
    ):
        if version < 1:
            raise DomainValidationError(f"version must be >= 1, got {version}")
        try:
            self._priority = CurativePriority(priority)
        except ValueError as e:
            raise DomainValidationError(str(e)) from e

        self._status = self._coerce_status(status)
        self._id = require_text(item_id, "item_id")
        self._organization_id = require_text(organization_id, "organization_id")
        self._title_opinion_id = require_text(title_opinion_id, "title_opinion_id")
        self._item_number = require_text(item_number, "item_number")
        self._defect_type = require_text(defect_type, "defect_type")
        self._description = require_text(description, "description")
        self._assigned_to = assigned_to
        self._due_date = due_date
        self._resolution_date = resolution_date
        self._resolution_notes = resolution_notes
        self._created_at = created_at or utc_now()
        self._updated_at = updated_at or self._created_at
        self._version = version
        self._events = DomainEventBuffer()

    @classmethod
    def create(
        cls,
        organization_id: str,
        title_opinion_id: str,
        item_number: str,
        defect_type: str,
        description: str,
        priority: CurativePriority | str = CurativePriority.MEDIUM,
        *,
        assigned_to: Optional[str] = None,
        due_date: Optional[date] = None,
        item_id: Optional[str] = None,
    ) -> "CurativeItem":
        """New OPEN item with one pending CurativeItemCreated event."""
        item = cls(
            item_id or str(uuid4()),
            organization_id,
            title_opinion_id,
            item_number,
            defect_type,
            description,
            priority,
            assigned_to=assigned_to,
            due_date=due_date,
        )
        item._record(
            events.CurativeItemCreated(
                aggregate_id=item.id,
                organization_id=item.organization_id,
                title_opinion_id=item.title_opinion_id,
                item_number=item.item_number,
                defect_type=item.defect_type,
                priority=item.priority.value,
            )
        )
        return item

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def id(self) -> str:
        return self._id

    @property
    def organization_id(self) -> str:
        return self._organization_id

    @property
    def title_opinion_id(self) -> str:
        return self._title_opinion_id

    @property
    def item_number(self) -> str:
        return self._item_number

    @property
    def defect_type(self) -> str:
        return self._defect_type

    @property
    def description(self) -> str:
        return self._description

    @property
    def priority(self) -> CurativePriority:
        return self._priority

    @property
    def status(self) -> CurativeStatus:
        return self._status

    @property
    def assigned_to(self) -> Optional[str]:
        return self._assigned_to

    @property
    def due_date(self) -> Optional[date]:
        return self._due_date

    @property
    def resolution_date(self) -> Optional[date]:
        return self._resolution_date

    @property
    def resolution_notes(self) -> Optional[str]:
        return self._resolution_notes

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    @property
    def version(self) -> int:
        return self._version

    @property
    def pending_events(self) -> List[DomainEvent]:
        return self._events.pending()

    def drain_events(self) -> List[DomainEvent]:
        return self._events.drain()

    def _record(self, event: DomainEvent) -> None:
        self._events.append(event)

    # =========================================================================
    # STATUS
    # =========================================================================

    def update_status(
        self,
        new_status: CurativeStatus | str,
        updated_by: Optional[str] = None,
        resolution_notes: Optional[str] = None,
        resolution_date: Optional[date] = None,
    ) -> None:
        """
        Move the item to ``new_status``.

        Same status: no-op. RESOLVED stamps the resolution date (today unless
        given); WAIVED requires ``resolution_notes`` as the waiver reason.

        Raises:
            DomainValidationError: unknown status, or waiver without a reason
            InvalidTransitionError: edge not in VALID_TRANSITIONS
        """
        target = self._coerce_status(new_status)
        if target == self._status:
            return

        if self._status == CurativeStatus.RESOLVED and target == CurativeStatus.WAIVED:
            raise InvalidTransitionError(
                "Cannot waive a resolved item",
                aggregate="curative_item",
                from_status=self._status.value,
                to_status=target.value,
            )
        if not can_transition(self._status, target):
            raise InvalidTransitionError.for_edge("curative_item", self._status.value, target.value)
        if target == CurativeStatus.WAIVED and not (resolution_notes and resolution_notes.strip()):
            raise DomainValidationError("A reason is required to waive a curative item")

        old_status = self._status
        self._status = target
        if target == CurativeStatus.RESOLVED:
            self._resolution_date = resolution_date or utc_now().date()
            self._resolution_notes = resolution_notes
        elif target == CurativeStatus.WAIVED:
            self._resolution_notes = resolution_notes.strip()
        self._touch()

        self._record(
            events.CurativeItemStatusChanged(
                aggregate_id=self._id,
                organization_id=self._organization_id,
                old_status=old_status.value,
                new_status=target.value,
                changed_by=updated_by,
                resolution_notes=self._resolution_notes if target in TERMINAL_STATUSES else None,
            )
        )
        if target == CurativeStatus.RESOLVED:
            self._record(
                events.CurativeItemResolved(
                    aggregate_id=self._id,
                    organization_id=self._organization_id,
                    resolved_by=updated_by,
                    resolution_date=self._resolution_date,
                    resolution_notes=self._resolution_notes,
                )
            )
        elif target == CurativeStatus.WAIVED:
            self._record(
                events.CurativeItemWaived(
                    aggregate_id=self._id,
                    organization_id=self._organization_id,
                    waived_by=updated_by,
                    reason=self._resolution_notes,
                )
            )

    def start_progress(self, assignee: Optional[str] = None, updated_by: Optional[str] = None) -> None:
        """OPEN → IN_PROGRESS; assigns ``assignee`` when given, keeps the current one otherwise."""
        if assignee is not None and assignee != self._assigned_to:
            if self._status in TERMINAL_STATUSES:
                raise InvalidTransitionError.for_edge(
                    "curative_item", self._status.value, CurativeStatus.IN_PROGRESS.value
                )
            self.reassign(assignee, updated_by)
        self.update_status(CurativeStatus.IN_PROGRESS, updated_by)

    def resolve(
        self,
        resolution_notes: Optional[str] = None,
        resolution_date: Optional[date] = None,
        resolved_by: Optional[str] = None,
    ) -> None:
        self.update_status(CurativeStatus.RESOLVED, resolved_by, resolution_notes, resolution_date)

    def waive(self, reason: str, waived_by: Optional[str] = None) -> None:
        self.update_status(CurativeStatus.WAIVED, waived_by, reason)

    # =========================================================================
    # ASSIGNMENT
    # =========================================================================

    def reassign(self, new_assignee: Optional[str], reassigned_by: Optional[str] = None) -> None:
        previous = self._assigned_to
        self._assigned_to = new_assignee
        self._touch()
        self._record(
            events.CurativeItemReassigned(
                aggregate_id=self._id,
                organization_id=self._organization_id,
                previous_assignee=previous,
                new_assignee=new_assignee,
                reassigned_by=reassigned_by,
            )
        )

    def set_due_date(self, due_date: Optional[date], set_by: Optional[str] = None) -> None:
        previous = self._due_date
        self._due_date = due_date
        self._touch()
        self._record(
            events.CurativeItemDueDateSet(
                aggregate_id=self._id,
                organization_id=self._organization_id,
                previous_due_date=previous,
                due_date=due_date,
                set_by=set_by,
            )
        )

    def is_overdue(self, today: Optional[date] = None) -> bool:
        """Past the due date and still open or in progress."""
        if self._due_date is None or self._status in TERMINAL_STATUSES:
            return False
        return (today or utc_now().date()) > self._due_date

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def to_persistence(self) -> Dict[str, Any]:
        return {
            "id": self._id,
            "organization_id": self._organization_id,
            "title_opinion_id": self._title_opinion_id,
            "item_number": self._item_number,
            "defect_type": self._defect_type,
            "description": self._description,
            "priority": self._priority.value,
            "status": self._status.value,
            "assigned_to": self._assigned_to,
            "due_date": dump_date(self._due_date),
            "resolution_date": dump_date(self._resolution_date),
            "resolution_notes": self._resolution_notes,
            "created_at": dump_datetime(self._created_at),
            "updated_at": dump_datetime(self._updated_at),
            "version": self._version,
        }

    @classmethod
    def from_persistence(cls, data: Dict[str, Any]) -> "CurativeItem":
        validate_curative_item_record(data)
        return cls(
            data["id"],
            data["organization_id"],
            data["title_opinion_id"],
            data["item_number"],
            data["defect_type"],
            data["description"],
            data["priority"],
            status=data["status"],
            assigned_to=data.get("assigned_to"),
            due_date=load_date(data.get("due_date")),
            resolution_date=load_date(data.get("resolution_date")),
            resolution_notes=data.get("resolution_notes"),
            created_at=load_datetime(data["created_at"]),
            updated_at=load_datetime(data["updated_at"]),
            version=data["version"],
        )

    # =========================================================================
    # INTERNALS
    # =========================================================================

    @staticmethod
    def _coerce_status(value: CurativeStatus | str) -> CurativeStatus:
        try:
            return CurativeStatus(value)
        except ValueError:
            raise DomainValidationError(f"Invalid status: {value}") from None

    def _touch(self) -> None:
        self._version += 1
        self._updated_at = utc_now()

    def __repr__(self) -> str:
        return f"CurativeItem(id={self._id!r}, number={self._item_number!r}, status={self._status.value})"
