"""
AFE — Authorization for Expenditure aggregate

An AFE authorizes capital spending on a well or lease. It moves through a
fixed workflow:

    DRAFT ──submit──▶ SUBMITTED ──approve──▶ APPROVED ──close──▶ CLOSED
      ▲                 │    │
      └──return_to_draft┘    └──reject──▶ REJECTED ──return_to_draft──▶ DRAFT

Every status change is checked against VALID_TRANSITIONS before anything is
mutated, bumps the version and emits AfeStatusChanged followed by the specific
event (AfeSubmitted, AfeApproved, ...).
"""

import re
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Final, List, Optional
from uuid import uuid4

from src.core.contracts.validators import validate_afe_record
from src.core.domain import events
from src.core.domain.serialization import (
    dump_date,
    dump_datetime,
    dump_money,
    load_date,
    load_datetime,
    load_money,
    require_text,
)
from src.core.errors import CurrencyMismatchError, DomainValidationError, InvalidTransitionError
from src.core.events import DomainEvent, DomainEventBuffer, utc_now
from src.core.money.monetary_value import DEFAULT_CURRENCY, MonetaryValue


# =============================================================================
# ENUMS
# =============================================================================


class AfeStatus(str, Enum):
    """AFE workflow status"""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    CLOSED = "closed"  # Terminal


class AfeType(str, Enum):
    """Kind of expenditure being authorized"""

    DRILLING = "drilling"
    COMPLETION = "completion"
    WORKOVER = "workover"
    FACILITY = "facility"
    OTHER = "other"


# =============================================================================
# TRANSITION TABLE
# =============================================================================

VALID_TRANSITIONS: Final[Dict[AfeStatus, frozenset]] = {
    AfeStatus.DRAFT: frozenset({AfeStatus.SUBMITTED}),
    AfeStatus.SUBMITTED: frozenset({AfeStatus.APPROVED, AfeStatus.REJECTED, AfeStatus.DRAFT}),
    AfeStatus.APPROVED: frozenset({AfeStatus.CLOSED}),
    AfeStatus.REJECTED: frozenset({AfeStatus.DRAFT}),
    AfeStatus.CLOSED: frozenset(),
}

# AFE-YYYY-NNNN
AFE_NUMBER_PATTERN: Final = re.compile(r"^AFE-\d{4}-\d{4}$")


def can_transition(from_status: AfeStatus, to_status: AfeStatus) -> bool:
    """True if (from_status, to_status) is an edge of the AFE workflow."""
    return to_status in VALID_TRANSITIONS.get(from_status, frozenset())


def validate_afe_number(value: str) -> str:
    if not isinstance(value, str) or not AFE_NUMBER_PATTERN.match(value.strip()):
        raise DomainValidationError(f"AFE number must match AFE-YYYY-NNNN, got {value!r}")
    return value.strip()


# =============================================================================
# AGGREGATE
# =============================================================================


class Afe:
    """
    AFE aggregate root.

    Attributes are read-only properties; state changes only through the
    lifecycle methods. ``create`` emits AfeCreated, the constructor (used for
    rehydration) emits nothing.
    """

    def __init__(
        self,
        afe_id: str,
        organization_id: str,
        afe_number: str,
        afe_type: AfeType | str,
        *,
        status: AfeStatus | str = AfeStatus.DRAFT,
        estimated_cost: Optional[MonetaryValue] = None,
        approved_amount: Optional[MonetaryValue] = None,
        actual_cost: Optional[MonetaryValue] = None,
        well_id: Optional[str] = None,
        lease_id: Optional[str] = None,
        description: Optional[str] = None,
        effective_date: Optional[date] = None,
        submitted_at: Optional[datetime] = None,
        approval_date: Optional[datetime] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
        version: int = 1,
    ):
        if version < 1:
            raise DomainValidationError(f"version must be >= 1, got {version}")

        try:
            self._afe_type = AfeType(afe_type)
            self._status = AfeStatus(status)
        except ValueError as e:
            raise DomainValidationError(str(e)) from e

        self._id = require_text(afe_id, "afe_id")
        self._organization_id = require_text(organization_id, "organization_id")
        self._afe_number = validate_afe_number(afe_number)
        self._estimated_cost = estimated_cost
        self._approved_amount = approved_amount
        self._actual_cost = actual_cost
        self._well_id = well_id
        self._lease_id = lease_id
        self._description = description
        self._effective_date = effective_date
        self._submitted_at = submitted_at
        self._approval_date = approval_date
        self._created_at = created_at or utc_now()
        self._updated_at = updated_at or self._created_at
        self._version = version
        self._events = DomainEventBuffer()

    @classmethod
    def create(
        cls,
        organization_id: str,
        afe_number: str,
        afe_type: AfeType | str,
        *,
        estimated_cost: Optional[MonetaryValue] = None,
        well_id: Optional[str] = None,
        lease_id: Optional[str] = None,
        description: Optional[str] = None,
        effective_date: Optional[date] = None,
        created_by: Optional[str] = None,
        afe_id: Optional[str] = None,
    ) -> "Afe":
        """
        New DRAFT AFE (version 1) with one pending AfeCreated event.

        Raises:
            DomainValidationError: malformed number/type or non-positive estimate
        """
        if estimated_cost is not None and not estimated_cost.is_positive():
            raise DomainValidationError("Estimated cost must be greater than zero")

        afe = cls(
            afe_id or str(uuid4()),
            organization_id,
            afe_number,
            afe_type,
            estimated_cost=estimated_cost,
            well_id=well_id,
            lease_id=lease_id,
            description=description,
            effective_date=effective_date,
        )
        afe._record(
            events.AfeCreated(
                aggregate_id=afe.id,
                organization_id=afe.organization_id,
                afe_number=afe.afe_number,
                afe_type=afe.afe_type.value,
                estimated_cost=estimated_cost,
                created_by=created_by,
            )
        )
        return afe

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
    def afe_number(self) -> str:
        return self._afe_number

    @property
    def afe_type(self) -> AfeType:
        return self._afe_type

    @property
    def status(self) -> AfeStatus:
        return self._status

    @property
    def estimated_cost(self) -> Optional[MonetaryValue]:
        return self._estimated_cost

    @property
    def approved_amount(self) -> Optional[MonetaryValue]:
        return self._approved_amount

    @property
    def actual_cost(self) -> Optional[MonetaryValue]:
        return self._actual_cost

    @property
    def well_id(self) -> Optional[str]:
        return self._well_id

    @property
    def lease_id(self) -> Optional[str]:
        return self._lease_id

    @property
    def description(self) -> Optional[str]:
        return self._description

    @property
    def effective_date(self) -> Optional[date]:
        return self._effective_date

    @property
    def submitted_at(self) -> Optional[datetime]:
        return self._submitted_at

    @property
    def approval_date(self) -> Optional[datetime]:
        return self._approval_date

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
    def currency(self) -> str:
        if self._estimated_cost is not None:
            return self._estimated_cost.currency
        return DEFAULT_CURRENCY

    # =========================================================================
    # EVENTS
    # =========================================================================

    @property
    def pending_events(self) -> List[DomainEvent]:
        return self._events.pending()

    def drain_events(self) -> List[DomainEvent]:
        return self._events.drain()

    def _record(self, event: DomainEvent) -> None:
        self._events.append(event)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def submit(self, submitted_by: str) -> None:
        """
        DRAFT → SUBMITTED.

        Raises:
            InvalidTransitionError: not in DRAFT, no positive estimated cost,
                or empty description
        """
        self._assert_transition(AfeStatus.SUBMITTED)
        self._validate_for_submission()

        self._submitted_at = utc_now()
        self._change_status(AfeStatus.SUBMITTED, submitted_by)
        self._record(
            events.AfeSubmitted(
                aggregate_id=self._id,
                organization_id=self._organization_id,
                afe_number=self._afe_number,
                submitted_by=submitted_by,
                estimated_cost=self._estimated_cost,
            )
        )

    def approve(self, approved_by: str, approved_amount: Optional[MonetaryValue] = None) -> None:
        """
        SUBMITTED → APPROVED.

        Sets approval_date and approved_amount (the estimated cost when no
        amount is given).

        Raises:
            InvalidTransitionError: not in SUBMITTED
            DomainValidationError: negative amount or amount above estimated cost
            CurrencyMismatchError: amount in another currency than the estimate
        """
        self._assert_transition(AfeStatus.APPROVED)

        if approved_amount is not None:
            if approved_amount.is_negative():
                raise DomainValidationError("Approved amount cannot be negative")
            if self._estimated_cost is not None:
                if approved_amount.currency != self._estimated_cost.currency:
                    raise CurrencyMismatchError(
                        self._estimated_cost.currency, approved_amount.currency
                    )
                if approved_amount.greater_than(self._estimated_cost):
                    raise DomainValidationError(
                        f"Approved amount {approved_amount} exceeds estimated cost "
                        f"{self._estimated_cost}"
                    )

        self._approved_amount = (
            approved_amount if approved_amount is not None else self._estimated_cost
        )
        self._approval_date = utc_now()
        self._change_status(AfeStatus.APPROVED, approved_by)
        self._record(
            events.AfeApproved(
                aggregate_id=self._id,
                organization_id=self._organization_id,
                afe_number=self._afe_number,
                approved_by=approved_by,
                approved_amount=self._approved_amount,
            )
        )

    def reject(self, rejected_by: str, reason: Optional[str] = None) -> None:
        """SUBMITTED → REJECTED."""
        self._assert_transition(AfeStatus.REJECTED)

        self._change_status(AfeStatus.REJECTED, rejected_by, reason)
        self._record(
            events.AfeRejected(
                aggregate_id=self._id,
                organization_id=self._organization_id,
                afe_number=self._afe_number,
                rejected_by=rejected_by,
                reason=reason,
            )
        )

    def return_to_draft(self, returned_by: str, reason: Optional[str] = None) -> None:
        """SUBMITTED or REJECTED → DRAFT (withdraw for rework)."""
        self._assert_transition(AfeStatus.DRAFT)

        self._change_status(AfeStatus.DRAFT, returned_by, reason)
        self._record(
            events.AfeReturnedToDraft(
                aggregate_id=self._id,
                organization_id=self._organization_id,
                afe_number=self._afe_number,
                returned_by=returned_by,
                reason=reason,
            )
        )

    def close(self, closed_by: str) -> None:
        """APPROVED → CLOSED (terminal)."""
        self._assert_transition(AfeStatus.CLOSED)

        self._change_status(AfeStatus.CLOSED, closed_by)
        self._record(
            events.AfeClosed(
                aggregate_id=self._id,
                organization_id=self._organization_id,
                afe_number=self._afe_number,
                closed_by=closed_by,
                actual_cost=self._actual_cost,
            )
        )

    # =========================================================================
    # EDITS
    # =========================================================================

    def update_estimated_cost(
        self, new_cost: MonetaryValue, updated_by: Optional[str] = None
    ) -> None:
        """
        Replace the estimate (DRAFT only).

        Raises:
            InvalidTransitionError: AFE already submitted
            DomainValidationError: non-positive cost
        """
        if self._status != AfeStatus.DRAFT:
            raise InvalidTransitionError(
                "Cannot update estimated cost after AFE is submitted",
                aggregate="afe",
                from_status=self._status.value,
            )
        if not new_cost.is_positive():
            raise DomainValidationError("Estimated cost must be greater than zero")

        previous = self._estimated_cost
        self._estimated_cost = new_cost
        self._touch()
        self._record(
            events.AfeCostUpdated(
                aggregate_id=self._id,
                organization_id=self._organization_id,
                cost_kind="estimated",
                previous_cost=previous,
                new_cost=new_cost,
                updated_by=updated_by,
            )
        )

    def update_actual_cost(self, actual_cost: MonetaryValue, updated_by: Optional[str] = None) -> None:
        """
        Record spending against an APPROVED or CLOSED AFE.

        Raises:
            InvalidTransitionError: AFE is neither APPROVED nor CLOSED
            DomainValidationError: negative cost
            CurrencyMismatchError: cost in another currency than the estimate
        """
        if self._status not in (AfeStatus.APPROVED, AfeStatus.CLOSED):
            raise InvalidTransitionError(
                "Can only update actual cost for approved or closed AFEs",
                aggregate="afe",
                from_status=self._status.value,
            )
        if actual_cost.is_negative():
            raise DomainValidationError("Actual cost cannot be negative")
        if self._estimated_cost is not None and actual_cost.currency != self._estimated_cost.currency:
            raise CurrencyMismatchError(self._estimated_cost.currency, actual_cost.currency)

        previous = self._actual_cost
        self._actual_cost = actual_cost
        self._touch()
        self._record(
            events.AfeCostUpdated(
                aggregate_id=self._id,
                organization_id=self._organization_id,
                cost_kind="actual",
                previous_cost=previous,
                new_cost=actual_cost,
                updated_by=updated_by,
            )
        )

    def update_description(self, description: str) -> None:
        """Replace the description (DRAFT only, no event)."""
        if self._status != AfeStatus.DRAFT:
            raise InvalidTransitionError(
                "Cannot update description after AFE is submitted",
                aggregate="afe",
                from_status=self._status.value,
            )
        self._description = require_text(description, "description")
        self._touch()

    # =========================================================================
    # QUERIES
    # =========================================================================

    def cost_variance(self) -> Optional[MonetaryValue]:
        """actual − authorized (approved amount, else estimate); None without both."""
        authorized = self._approved_amount or self._estimated_cost
        if self._actual_cost is None or authorized is None:
            return None
        return self._actual_cost.subtract(authorized)

    def is_over_budget(self) -> bool:
        variance = self.cost_variance()
        return variance is not None and variance.is_positive()

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def to_persistence(self) -> Dict[str, Any]:
        """Flat record: money as decimal strings, timestamps ISO-8601."""
        return {
            "id": self._id,
            "organization_id": self._organization_id,
            "afe_number": self._afe_number,
            "afe_type": self._afe_type.value,
            "status": self._status.value,
            "currency": self.currency,
            "estimated_cost": dump_money(self._estimated_cost),
            "approved_amount": dump_money(self._approved_amount),
            "actual_cost": dump_money(self._actual_cost),
            "well_id": self._well_id,
            "lease_id": self._lease_id,
            "description": self._description,
            "effective_date": dump_date(self._effective_date),
            "submitted_at": dump_datetime(self._submitted_at),
            "approval_date": dump_datetime(self._approval_date),
            "created_at": dump_datetime(self._created_at),
            "updated_at": dump_datetime(self._updated_at),
            "version": self._version,
        }

    @classmethod
    def from_persistence(cls, data: Dict[str, Any]) -> "Afe":
        """
        Rehydrate from a stored record (no pending events).

        Raises:
            jsonschema.ValidationError: record violates the afe_record contract
        """
        validate_afe_record(data)

        currency = data["currency"]
        return cls(
            data["id"],
            data["organization_id"],
            data["afe_number"],
            data["afe_type"],
            status=data["status"],
            estimated_cost=load_money(data.get("estimated_cost"), currency),
            approved_amount=load_money(data.get("approved_amount"), currency),
            actual_cost=load_money(data.get("actual_cost"), currency),
            well_id=data.get("well_id"),
            lease_id=data.get("lease_id"),
            description=data.get("description"),
            effective_date=load_date(data.get("effective_date")),
            submitted_at=load_datetime(data.get("submitted_at")),
            approval_date=load_datetime(data.get("approval_date")),
            created_at=load_datetime(data["created_at"]),
            updated_at=load_datetime(data["updated_at"]),
            version=data["version"],
        )

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _assert_transition(self, to_status: AfeStatus) -> None:
        if not can_transition(self._status, to_status):
            raise InvalidTransitionError.for_edge("afe", self._status.value, to_status.value)

    def _validate_for_submission(self) -> None:
        if self._estimated_cost is None:
            raise InvalidTransitionError(
                "Total estimated cost is required for submission", aggregate="afe"
            )
        if not self._estimated_cost.is_positive():
            raise InvalidTransitionError(
                "Total estimated cost must be greater than zero", aggregate="afe"
            )
        if not self._description or not self._description.strip():
            raise InvalidTransitionError("Description is required for submission", aggregate="afe")

    def _change_status(
        self, new_status: AfeStatus, changed_by: Optional[str], reason: Optional[str] = None
    ) -> None:
        old_status = self._status
        self._status = new_status
        self._touch()
        self._record(
            events.AfeStatusChanged(
                aggregate_id=self._id,
                organization_id=self._organization_id,
                old_status=old_status.value,
                new_status=new_status.value,
                changed_by=changed_by,
                reason=reason,
            )
        )

    def _touch(self) -> None:
        self._version += 1
        self._updated_at = utc_now()

    def __repr__(self) -> str:
        return f"Afe(id={self._id!r}, number={self._afe_number!r}, status={self._status.value})"
