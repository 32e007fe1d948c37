"""
Permit — regulatory permit aggregate

    DRAFT → SUBMITTED → UNDER_REVIEW → APPROVED ⇄ SUSPENDED
                 │            │            │
                 │            └─▶ DENIED   ├─▶ RENEWED ─▶ (EXPIRED | RENEWED | SUSPENDED | REVOKED)
                 └──▶ APPROVED / DENIED    └─▶ EXPIRED | REVOKED

DENIED, EXPIRED and REVOKED are terminal. Each change emits PermitStatusChanged
followed by the specific event.
"""

from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Dict, Final, List, Optional
from uuid import uuid4

from src.core.contracts.validators import validate_permit_record
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


class PermitStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    DENIED = "denied"  # Terminal
    EXPIRED = "expired"  # Terminal
    RENEWED = "renewed"
    SUSPENDED = "suspended"
    REVOKED = "revoked"  # Terminal


class PermitType(str, Enum):
    DRILLING = "drilling"
    COMPLETION = "completion"
    PRODUCTION = "production"
    INJECTION = "injection"
    DISPOSAL = "disposal"
    TRANSPORTATION = "transportation"
    STORAGE = "storage"
    PROCESSING = "processing"


_LIVE_TARGETS: Final = frozenset(
    {PermitStatus.EXPIRED, PermitStatus.RENEWED, PermitStatus.SUSPENDED, PermitStatus.REVOKED}
)

VALID_TRANSITIONS: Final[Dict[PermitStatus, frozenset]] = {
    PermitStatus.DRAFT: frozenset({PermitStatus.SUBMITTED}),
    PermitStatus.SUBMITTED: frozenset(
        {PermitStatus.UNDER_REVIEW, PermitStatus.APPROVED, PermitStatus.DENIED}
    ),
    PermitStatus.UNDER_REVIEW: frozenset({PermitStatus.APPROVED, PermitStatus.DENIED}),
    PermitStatus.APPROVED: _LIVE_TARGETS,
    PermitStatus.RENEWED: _LIVE_TARGETS,
    PermitStatus.SUSPENDED: frozenset({PermitStatus.APPROVED, PermitStatus.REVOKED}),
    PermitStatus.DENIED: frozenset(),
    PermitStatus.EXPIRED: frozenset(),
    PermitStatus.REVOKED: frozenset(),
}

ACTIVE_STATUSES: Final = frozenset({PermitStatus.APPROVED, PermitStatus.RENEWED})

# Drilling and completion permits are one-shot; every other type must be renewed
RENEWABLE_TYPES: Final = frozenset(set(PermitType) - {PermitType.DRILLING, PermitType.COMPLETION})

# Days before expiration at which renewal becomes due
RENEWAL_WINDOW_DAYS: Final[int] = 90


def can_transition(from_status: PermitStatus, to_status: PermitStatus) -> bool:
    return to_status in VALID_TRANSITIONS.get(from_status, frozenset())


class Permit:
    """Permit aggregate root."""

    def __init__(
        self,
        permit_id: str,
        organization_id: str,
        permit_number: str,
        permit_type: PermitType | str,
        issuing_agency: str,
        created_by: str,
        *,
        status: PermitStatus | str = PermitStatus.DRAFT,
        well_id: Optional[str] = None,
        submitted_date: Optional[date] = None,
        approval_date: Optional[date] = None,
        expiration_date: Optional[date] = None,
        fee_amount: Optional[MonetaryValue] = None,
        bond_amount: Optional[MonetaryValue] = None,
        status_reason: Optional[str] = None,
        updated_by: Optional[str] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
        version: int = 1,
    ):
        if version < 1:
            raise DomainValidationError(f"version must be >= 1, got {version}")
        try:
            self._permit_type = PermitType(permit_type)
            self._status = PermitStatus(status)
        except ValueError as e:
            raise DomainValidationError(str(e)) from e

        for name, amount in (("fee_amount", fee_amount), ("bond_amount", bond_amount)):
            if amount is not None and amount.is_negative():
                raise DomainValidationError(f"{name} cannot be negative")
        if (
            fee_amount is not None
            and bond_amount is not None
            and fee_amount.currency != bond_amount.currency
        ):
            raise CurrencyMismatchError(fee_amount.currency, bond_amount.currency)

        self._id = require_text(permit_id, "permit_id")
        self._organization_id = require_text(organization_id, "organization_id")
        self._permit_number = require_text(permit_number, "permit_number")
        self._issuing_agency = require_text(issuing_agency, "issuing_agency")
        self._created_by = require_text(created_by, "created_by")
        self._well_id = well_id
        self._submitted_date = submitted_date
        self._approval_date = approval_date
        self._expiration_date = expiration_date
        self._fee_amount = fee_amount
        self._bond_amount = bond_amount
        self._status_reason = status_reason
        self._updated_by = updated_by
        self._created_at = created_at or utc_now()
        self._updated_at = updated_at or self._created_at
        self._version = version
        self._events = DomainEventBuffer()

    @classmethod
    def create(
        cls,
        organization_id: str,
        permit_number: str,
        permit_type: PermitType | str,
        issuing_agency: str,
        created_by: str,
        *,
        well_id: Optional[str] = None,
        expiration_date: Optional[date] = None,
        fee_amount: Optional[MonetaryValue] = None,
        bond_amount: Optional[MonetaryValue] = None,
        permit_id: Optional[str] = None,
    ) -> "Permit":
        """New DRAFT permit with one pending PermitCreated event."""
        permit = cls(
            permit_id or str(uuid4()),
            organization_id,
            permit_number,
            permit_type,
            issuing_agency,
            created_by,
            well_id=well_id,
            expiration_date=expiration_date,
            fee_amount=fee_amount,
            bond_amount=bond_amount,
        )
        permit._record(
            events.PermitCreated(
                aggregate_id=permit.id,
                organization_id=permit.organization_id,
                permit_number=permit.permit_number,
                permit_type=permit.permit_type.value,
                issuing_agency=permit.issuing_agency,
                created_by=permit.created_by,
            )
        )
        return permit

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
    def permit_number(self) -> str:
        return self._permit_number

    @property
    def permit_type(self) -> PermitType:
        return self._permit_type

    @property
    def issuing_agency(self) -> str:
        return self._issuing_agency

    @property
    def status(self) -> PermitStatus:
        return self._status

    @property
    def well_id(self) -> Optional[str]:
        return self._well_id

    @property
    def submitted_date(self) -> Optional[date]:
        return self._submitted_date

    @property
    def approval_date(self) -> Optional[date]:
        return self._approval_date

    @property
    def expiration_date(self) -> Optional[date]:
        return self._expiration_date

    @property
    def fee_amount(self) -> Optional[MonetaryValue]:
        return self._fee_amount

    @property
    def bond_amount(self) -> Optional[MonetaryValue]:
        return self._bond_amount

    @property
    def status_reason(self) -> Optional[str]:
        return self._status_reason

    @property
    def created_by(self) -> str:
        return self._created_by

    @property
    def updated_by(self) -> Optional[str]:
        return self._updated_by

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
    # LIFECYCLE
    # =========================================================================

    def submit(self, submitted_by: str) -> None:
        self._assert_transition(PermitStatus.SUBMITTED, "submit")

        self._submitted_date = utc_now().date()
        self._change_status(PermitStatus.SUBMITTED, submitted_by)
        self._record(
            events.PermitSubmitted(
                aggregate_id=self._id,
                organization_id=self._organization_id,
                permit_number=self._permit_number,
                submitted_date=self._submitted_date,
            )
        )

    def begin_review(self, reviewed_by: str) -> None:
        self._assert_transition(PermitStatus.UNDER_REVIEW, "review")

        self._change_status(PermitStatus.UNDER_REVIEW, reviewed_by)
        self._record(
            events.PermitReviewStarted(
                aggregate_id=self._id,
                organization_id=self._organization_id,
                permit_number=self._permit_number,
            )
        )

    def approve(
        self,
        approved_by: str,
        approval_date: Optional[date] = None,
        expiration_date: Optional[date] = None,
    ) -> None:
        """
        SUBMITTED/UNDER_REVIEW → APPROVED.

        Raises:
            InvalidTransitionError: any other current status
            DomainValidationError: expiration date not after the approval date
        """
        self._assert_transition(PermitStatus.APPROVED, "approve")
        if self._status == PermitStatus.SUSPENDED:
            raise InvalidTransitionError(
                "Use reinstate to lift a suspension",
                aggregate="permit",
                from_status=self._status.value,
                to_status=PermitStatus.APPROVED.value,
            )

        approved_on = approval_date or utc_now().date()
        expires_on = expiration_date or self._expiration_date
        if expires_on is not None and expires_on <= approved_on:
            raise DomainValidationError(
                f"Expiration date {expires_on} must be after approval date {approved_on}"
            )

        self._approval_date = approved_on
        self._expiration_date = expires_on
        self._status_reason = None
        self._change_status(PermitStatus.APPROVED, approved_by)
        self._record(
            events.PermitApproved(
                aggregate_id=self._id,
                organization_id=self._organization_id,
                permit_number=self._permit_number,
                approval_date=approved_on,
                expiration_date=expires_on,
            )
        )

    def deny(self, denied_by: str, reason: str) -> None:
        self._assert_transition(PermitStatus.DENIED, "deny")
        reason = require_text(reason, "reason")

        self._status_reason = reason
        self._change_status(PermitStatus.DENIED, denied_by, reason)
        self._record(
            events.PermitDenied(
                aggregate_id=self._id,
                organization_id=self._organization_id,
                permit_number=self._permit_number,
                reason=reason,
            )
        )

    def expire(self, today: Optional[date] = None, expired_by: Optional[str] = None) -> None:
        """
        Mark an active permit as expired.

        Raises:
            InvalidTransitionError: not active, or the expiration date is
                still in the future
        """
        self._assert_transition(PermitStatus.EXPIRED, "expire")
        today = today or utc_now().date()
        if self._expiration_date is not None and today < self._expiration_date:
            raise InvalidTransitionError(
                "Cannot mark permit as expired before expiration date",
                aggregate="permit",
                from_status=self._status.value,
                to_status=PermitStatus.EXPIRED.value,
            )

        if self._expiration_date is None:
            self._expiration_date = today
        self._change_status(PermitStatus.EXPIRED, expired_by)
        self._record(
            events.PermitExpired(
                aggregate_id=self._id,
                organization_id=self._organization_id,
                permit_number=self._permit_number,
                expiration_date=self._expiration_date,
            )
        )

    def renew(self, renewed_by: str, new_expiration_date: date, today: Optional[date] = None) -> None:
        """
        Extend an active permit.

        Raises:
            InvalidTransitionError: not APPROVED/RENEWED
            DomainValidationError: new date does not extend the current one
                or is not in the future
        """
        self._assert_transition(PermitStatus.RENEWED, "renew")
        today = today or utc_now().date()
        if new_expiration_date <= today:
            raise DomainValidationError("New expiration date must be in the future")
        if self._expiration_date is not None and new_expiration_date <= self._expiration_date:
            raise DomainValidationError(
                f"New expiration date {new_expiration_date} must extend the current "
                f"expiration date {self._expiration_date}"
            )

        previous = self._expiration_date
        self._expiration_date = new_expiration_date
        self._change_status(PermitStatus.RENEWED, renewed_by)
        self._record(
            events.PermitRenewed(
                aggregate_id=self._id,
                organization_id=self._organization_id,
                permit_number=self._permit_number,
                previous_expiration_date=previous,
                new_expiration_date=new_expiration_date,
            )
        )

    def suspend(self, suspended_by: str, reason: str) -> None:
        self._assert_transition(PermitStatus.SUSPENDED, "suspend")
        reason = require_text(reason, "reason")

        self._status_reason = reason
        self._change_status(PermitStatus.SUSPENDED, suspended_by, reason)
        self._record(
            events.PermitSuspended(
                aggregate_id=self._id,
                organization_id=self._organization_id,
                permit_number=self._permit_number,
                reason=reason,
            )
        )

    def reinstate(self, reinstated_by: str) -> None:
        """SUSPENDED → APPROVED."""
        if self._status != PermitStatus.SUSPENDED:
            raise InvalidTransitionError(
                f"Cannot reinstate permit in status: {self._status.value}",
                aggregate="permit",
                from_status=self._status.value,
                to_status=PermitStatus.APPROVED.value,
            )

        self._status_reason = None
        self._change_status(PermitStatus.APPROVED, reinstated_by)
        self._record(
            events.PermitReinstated(
                aggregate_id=self._id,
                organization_id=self._organization_id,
                permit_number=self._permit_number,
            )
        )

    def revoke(self, revoked_by: str, reason: str) -> None:
        self._assert_transition(PermitStatus.REVOKED, "revoke")
        reason = require_text(reason, "reason")

        self._status_reason = reason
        self._change_status(PermitStatus.REVOKED, revoked_by, reason)
        self._record(
            events.PermitRevoked(
                aggregate_id=self._id,
                organization_id=self._organization_id,
                permit_number=self._permit_number,
                reason=reason,
            )
        )

    # =========================================================================
    # QUERIES
    # =========================================================================

    def is_expired(self, today: Optional[date] = None) -> bool:
        if self._status == PermitStatus.EXPIRED:
            return True
        if self._expiration_date is None:
            return False
        return (today or utc_now().date()) > self._expiration_date

    def is_expiring_soon(self, days: int = 30, today: Optional[date] = None) -> bool:
        if self._expiration_date is None:
            return False
        return self._expiration_date <= (today or utc_now().date()) + timedelta(days=days)

    def requires_renewal(self, today: Optional[date] = None) -> bool:
        return self._permit_type in RENEWABLE_TYPES and self.is_expiring_soon(
            RENEWAL_WINDOW_DAYS, today
        )

    def is_active(self, today: Optional[date] = None) -> bool:
        return self._status in ACTIVE_STATUSES and not self.is_expired(today)

    def can_be_renewed(self, today: Optional[date] = None) -> bool:
        """Active permit with an expiration date that has not passed yet."""
        if self._status not in ACTIVE_STATUSES or self._expiration_date is None:
            return False
        return (today or utc_now().date()) <= self._expiration_date

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def to_persistence(self) -> Dict[str, Any]:
        money = self._fee_amount or self._bond_amount
        return {
            "id": self._id,
            "organization_id": self._organization_id,
            "permit_number": self._permit_number,
            "permit_type": self._permit_type.value,
            "status": self._status.value,
            "issuing_agency": self._issuing_agency,
            "well_id": self._well_id,
            "submitted_date": dump_date(self._submitted_date),
            "approval_date": dump_date(self._approval_date),
            "expiration_date": dump_date(self._expiration_date),
            "currency": money.currency if money is not None else DEFAULT_CURRENCY,
            "fee_amount": dump_money(self._fee_amount),
            "bond_amount": dump_money(self._bond_amount),
            "status_reason": self._status_reason,
            "created_by": self._created_by,
            "updated_by": self._updated_by,
            "created_at": dump_datetime(self._created_at),
            "updated_at": dump_datetime(self._updated_at),
            "version": self._version,
        }

    @classmethod
    def from_persistence(cls, data: Dict[str, Any]) -> "Permit":
        validate_permit_record(data)
        currency = data["currency"]
        return cls(
            data["id"],
            data["organization_id"],
            data["permit_number"],
            data["permit_type"],
            data["issuing_agency"],
            data["created_by"],
            status=data["status"],
            well_id=data.get("well_id"),
            submitted_date=load_date(data.get("submitted_date")),
            approval_date=load_date(data.get("approval_date")),
            expiration_date=load_date(data.get("expiration_date")),
            fee_amount=load_money(data.get("fee_amount"), currency),
            bond_amount=load_money(data.get("bond_amount"), currency),
            status_reason=data.get("status_reason"),
            updated_by=data.get("updated_by"),
            created_at=load_datetime(data["created_at"]),
            updated_at=load_datetime(data["updated_at"]),
            version=data["version"],
        )

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _assert_transition(self, to_status: PermitStatus, verb: str) -> None:
        if not can_transition(self._status, to_status):
            raise InvalidTransitionError(
                f"Cannot {verb} permit: Invalid status transition from "
                f"{self._status.value} to {to_status.value}",
                aggregate="permit",
                from_status=self._status.value,
                to_status=to_status.value,
            )

    def _change_status(
        self, new_status: PermitStatus, changed_by: Optional[str], reason: Optional[str] = None
    ) -> None:
        old_status = self._status
        self._status = new_status
        self._updated_by = changed_by
        self._version += 1
        self._updated_at = utc_now()
        self._record(
            events.PermitStatusChanged(
                aggregate_id=self._id,
                organization_id=self._organization_id,
                permit_number=self._permit_number,
                old_status=old_status.value,
                new_status=new_status.value,
                changed_by=changed_by,
                reason=reason,
            )
        )

    def __repr__(self) -> str:
        return f"Permit(id={self._id!r}, number={self._permit_number!r}, status={self._status.value})"
