"""
LeaseOperatingStatement — monthly operating-expense statement for a lease

Workflow:

    DRAFT ──finalize──▶ FINALIZED ──distribute──▶ DISTRIBUTED ──archive──▶ ARCHIVED
      ▲                   │
      └──────reopen───────┘

Expense line items can only be added, changed or removed in DRAFT. Totals are
always derived from the line items, split by expense type (operating/capital).
"""

import re
from datetime import datetime
from enum import Enum
from functools import reduce
from typing import Any, Dict, Final, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from src.core.contracts.validators import validate_lease_operating_statement_record
from src.core.domain import events
from src.core.domain.serialization import (
    dump_datetime,
    load_datetime,
    require_text,
)
from src.core.errors import CurrencyMismatchError, DomainValidationError, InvalidTransitionError
from src.core.events import DomainEvent, DomainEventBuffer, utc_now
from src.core.money.monetary_value import DEFAULT_CURRENCY, MonetaryValue


# =============================================================================
# ENUMS
# =============================================================================


class LosStatus(str, Enum):
    """Statement lifecycle status"""

    DRAFT = "draft"
    FINALIZED = "finalized"
    DISTRIBUTED = "distributed"
    ARCHIVED = "archived"  # Terminal


class ExpenseType(str, Enum):
    OPERATING = "operating"
    CAPITAL = "capital"


VALID_TRANSITIONS: Final[Dict[LosStatus, frozenset]] = {
    LosStatus.DRAFT: frozenset({LosStatus.FINALIZED}),
    LosStatus.FINALIZED: frozenset({LosStatus.DISTRIBUTED, LosStatus.DRAFT}),
    LosStatus.DISTRIBUTED: frozenset({LosStatus.ARCHIVED}),
    LosStatus.ARCHIVED: frozenset(),
}

_MONTH_RE: Final = re.compile(r"^(\d{4})-(\d{2})$")


def can_transition(from_status: LosStatus, to_status: LosStatus) -> bool:
    return to_status in VALID_TRANSITIONS.get(from_status, frozenset())


# =============================================================================
# VALUE OBJECTS
# =============================================================================


class StatementMonth(BaseModel):
    """Calendar month a statement covers (``YYYY-MM``)."""

    year: int = Field(..., ge=1900, le=9999)
    month: int = Field(..., ge=1, le=12)

    model_config = {"frozen": True}

    @classmethod
    def parse(cls, value: str) -> "StatementMonth":
        """
        Raises:
            DomainValidationError: value is not YYYY-MM
        """
        match = _MONTH_RE.match(value.strip()) if isinstance(value, str) else None
        if match is None:
            raise DomainValidationError(f"Statement month must be YYYY-MM, got {value!r}")
        year, month = int(match.group(1)), int(match.group(2))
        if not 1 <= month <= 12:
            raise DomainValidationError(f"Statement month must be YYYY-MM, got {value!r}")
        return cls(year=year, month=month)

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


class ExpenseLineItem(BaseModel):
    """Single expense on a statement. Amount is strictly positive."""

    id: str = Field(default_factory=lambda: str(uuid4()), min_length=1)
    description: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    expense_type: ExpenseType
    amount: MonetaryValue
    vendor_id: Optional[str] = None
    notes: Optional[str] = None

    model_config = {"frozen": True}

    @field_validator("amount")
    @classmethod
    def validate_amount_positive(cls, v: MonetaryValue) -> MonetaryValue:
        if not v.is_positive():
            raise ValueError(f"Expense amount must be greater than zero, got {v}")
        return v

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "category": self.category,
            "expense_type": self.expense_type.value,
            "amount": str(self.amount.amount),
            "vendor_id": self.vendor_id,
            "notes": self.notes,
        }

    @classmethod
    def from_record(cls, data: Dict[str, Any], currency: str) -> "ExpenseLineItem":
        return cls(
            id=data["id"],
            description=data["description"],
            category=data["category"],
            expense_type=data["expense_type"],
            amount=MonetaryValue(data["amount"], currency),
            vendor_id=data.get("vendor_id"),
            notes=data.get("notes"),
        )


# =============================================================================
# AGGREGATE
# =============================================================================


class LeaseOperatingStatement:
    """LOS aggregate root; one statement per lease and month."""

    def __init__(
        self,
        los_id: str,
        organization_id: str,
        lease_id: str,
        statement_month: StatementMonth | str,
        *,
        currency: str = DEFAULT_CURRENCY,
        status: LosStatus | str = LosStatus.DRAFT,
        notes: Optional[str] = None,
        expense_line_items: Optional[List[ExpenseLineItem]] = None,
        finalized_at: Optional[datetime] = None,
        finalized_by: Optional[str] = None,
        distributed_at: Optional[datetime] = None,
        distributed_by: Optional[str] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
        version: int = 1,
    ):
        if version < 1:
            raise DomainValidationError(f"version must be >= 1, got {version}")
        try:
            self._status = LosStatus(status)
        except ValueError as e:
            raise DomainValidationError(str(e)) from e

        self._id = require_text(los_id, "los_id")
        self._organization_id = require_text(organization_id, "organization_id")
        self._lease_id = require_text(lease_id, "lease_id")
        self._statement_month = (
            statement_month
            if isinstance(statement_month, StatementMonth)
            else StatementMonth.parse(statement_month)
        )
        # Currency is validated by MonetaryValue
        self._currency = MonetaryValue.zero(currency).currency
        self._notes = notes
        self._expenses: Dict[str, ExpenseLineItem] = {}
        for item in expense_line_items or []:
            self._check_new_expense(item)
            self._expenses[item.id] = item
        self._finalized_at = finalized_at
        self._finalized_by = finalized_by
        self._distributed_at = distributed_at
        self._distributed_by = distributed_by
        self._created_at = created_at or utc_now()
        self._updated_at = updated_at or self._created_at
        self._version = version
        self._events = DomainEventBuffer()

    @classmethod
    def create(
        cls,
        organization_id: str,
        lease_id: str,
        statement_month: StatementMonth | str,
        *,
        currency: str = DEFAULT_CURRENCY,
        notes: Optional[str] = None,
        created_by: Optional[str] = None,
        los_id: Optional[str] = None,
    ) -> "LeaseOperatingStatement":
        """New DRAFT statement with one pending LosCreated event."""
        los = cls(
            los_id or str(uuid4()),
            organization_id,
            lease_id,
            statement_month,
            currency=currency,
            notes=notes,
        )
        los._record(
            events.LosCreated(
                aggregate_id=los.id,
                organization_id=los.organization_id,
                lease_id=los.lease_id,
                statement_month=str(los.statement_month),
                created_by=created_by,
            )
        )
        return los

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
    def lease_id(self) -> str:
        return self._lease_id

    @property
    def statement_month(self) -> StatementMonth:
        return self._statement_month

    @property
    def currency(self) -> str:
        return self._currency

    @property
    def status(self) -> LosStatus:
        return self._status

    @property
    def notes(self) -> Optional[str]:
        return self._notes

    @property
    def expense_line_items(self) -> List[ExpenseLineItem]:
        return list(self._expenses.values())

    @property
    def finalized_at(self) -> Optional[datetime]:
        return self._finalized_at

    @property
    def finalized_by(self) -> Optional[str]:
        return self._finalized_by

    @property
    def distributed_at(self) -> Optional[datetime]:
        return self._distributed_at

    @property
    def distributed_by(self) -> Optional[str]:
        return self._distributed_by

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
    # TOTALS
    # =========================================================================

    def total_expenses(self) -> MonetaryValue:
        return self._sum(self._expenses.values())

    def operating_expenses(self) -> MonetaryValue:
        return self._sum(
            item for item in self._expenses.values() if item.expense_type == ExpenseType.OPERATING
        )

    def capital_expenses(self) -> MonetaryValue:
        return self._sum(
            item for item in self._expenses.values() if item.expense_type == ExpenseType.CAPITAL
        )

    def _sum(self, items) -> MonetaryValue:
        return reduce(
            lambda total, item: total.add(item.amount), items, MonetaryValue.zero(self._currency)
        )

    # =========================================================================
    # EXPENSES (DRAFT only)
    # =========================================================================

    def add_expense(self, item: ExpenseLineItem, added_by: Optional[str] = None) -> None:
        """
        Raises:
            InvalidTransitionError: statement is not in DRAFT
            DomainValidationError: duplicate line item id
            CurrencyMismatchError: amount not in the statement currency
        """
        self._ensure_draft()
        self._check_new_expense(item)

        self._expenses[item.id] = item
        self._touch()
        self._record(
            events.LosExpenseAdded(
                aggregate_id=self._id,
                organization_id=self._organization_id,
                expense_id=item.id,
                description=item.description,
                category=item.category,
                expense_type=item.expense_type.value,
                amount=item.amount,
            )
        )

    def update_expense(self, item: ExpenseLineItem) -> None:
        """Replace the line item with the same id."""
        self._ensure_draft()
        previous = self._get_expense(item.id)
        self._check_currency(item)

        self._expenses[item.id] = item
        self._touch()
        self._record(
            events.LosExpenseUpdated(
                aggregate_id=self._id,
                organization_id=self._organization_id,
                expense_id=item.id,
                previous_amount=previous.amount,
                amount=item.amount,
            )
        )

    def remove_expense(self, expense_id: str) -> None:
        self._ensure_draft()
        removed = self._get_expense(expense_id)

        del self._expenses[expense_id]
        self._touch()
        self._record(
            events.LosExpenseRemoved(
                aggregate_id=self._id,
                organization_id=self._organization_id,
                expense_id=expense_id,
                amount=removed.amount,
            )
        )

    def update_notes(self, notes: Optional[str]) -> None:
        """Notes stay editable until the statement is archived."""
        if self._status == LosStatus.ARCHIVED:
            raise InvalidTransitionError(
                "Cannot update notes of an archived statement",
                aggregate="lease_operating_statement",
                from_status=self._status.value,
            )
        self._notes = notes
        self._touch()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def finalize(self, finalized_by: str) -> None:
        """
        DRAFT → FINALIZED.

        Raises:
            InvalidTransitionError: not in DRAFT, or no expense line items
        """
        self._assert_transition(LosStatus.FINALIZED)
        if not self._expenses:
            raise InvalidTransitionError(
                "Cannot finalize LOS without expenses", aggregate="lease_operating_statement"
            )

        self._finalized_at = utc_now()
        self._finalized_by = finalized_by
        self._change_status(LosStatus.FINALIZED, finalized_by)
        self._record(
            events.LosFinalized(
                aggregate_id=self._id,
                organization_id=self._organization_id,
                lease_id=self._lease_id,
                statement_month=str(self._statement_month),
                finalized_by=finalized_by,
                total_expenses=self.total_expenses(),
                operating_expenses=self.operating_expenses(),
                capital_expenses=self.capital_expenses(),
                expense_count=len(self._expenses),
            )
        )

    def reopen(self, reopened_by: str, reason: Optional[str] = None) -> None:
        """FINALIZED → DRAFT for corrections; clears the finalization stamp."""
        self._assert_transition(LosStatus.DRAFT)

        self._finalized_at = None
        self._finalized_by = None
        self._change_status(LosStatus.DRAFT, reopened_by)
        self._record(
            events.LosReopened(
                aggregate_id=self._id,
                organization_id=self._organization_id,
                reopened_by=reopened_by,
                reason=reason,
            )
        )

    def distribute(self, distributed_by: str, distribution_method: str, recipient_count: int) -> None:
        """
        FINALIZED → DISTRIBUTED.

        Raises:
            InvalidTransitionError: not in FINALIZED
            DomainValidationError: empty method or recipient_count <= 0
        """
        self._assert_transition(LosStatus.DISTRIBUTED)
        method = require_text(distribution_method, "distribution_method")
        if isinstance(recipient_count, bool) or not isinstance(recipient_count, int) or recipient_count <= 0:
            raise DomainValidationError(
                f"recipient_count must be a positive integer, got {recipient_count!r}"
            )

        self._distributed_at = utc_now()
        self._distributed_by = distributed_by
        self._change_status(LosStatus.DISTRIBUTED, distributed_by)
        self._record(
            events.LosDistributed(
                aggregate_id=self._id,
                organization_id=self._organization_id,
                lease_id=self._lease_id,
                statement_month=str(self._statement_month),
                distributed_by=distributed_by,
                distribution_method=method,
                recipient_count=recipient_count,
                total_expenses=self.total_expenses(),
            )
        )

    def archive(self, archived_by: str) -> None:
        """DISTRIBUTED → ARCHIVED (terminal)."""
        self._assert_transition(LosStatus.ARCHIVED)

        self._change_status(LosStatus.ARCHIVED, archived_by)
        self._record(
            events.LosArchived(
                aggregate_id=self._id,
                organization_id=self._organization_id,
                archived_by=archived_by,
            )
        )

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def to_persistence(self) -> Dict[str, Any]:
        return {
            "id": self._id,
            "organization_id": self._organization_id,
            "lease_id": self._lease_id,
            "statement_month": str(self._statement_month),
            "currency": self._currency,
            "status": self._status.value,
            "notes": self._notes,
            "expense_line_items": [item.to_record() for item in self._expenses.values()],
            "total_expenses": str(self.total_expenses().amount),
            "operating_expenses": str(self.operating_expenses().amount),
            "capital_expenses": str(self.capital_expenses().amount),
            "finalized_at": dump_datetime(self._finalized_at),
            "finalized_by": self._finalized_by,
            "distributed_at": dump_datetime(self._distributed_at),
            "distributed_by": self._distributed_by,
            "created_at": dump_datetime(self._created_at),
            "updated_at": dump_datetime(self._updated_at),
            "version": self._version,
        }

    @classmethod
    def from_persistence(cls, data: Dict[str, Any]) -> "LeaseOperatingStatement":
        """
        Rehydrate from a stored record (no pending events).

        Raises:
            jsonschema.ValidationError: record violates the contract
            DomainValidationError: stored totals disagree with the line items
        """
        validate_lease_operating_statement_record(data)

        currency = data["currency"]
        los = cls(
            data["id"],
            data["organization_id"],
            data["lease_id"],
            data["statement_month"],
            currency=currency,
            status=data["status"],
            notes=data.get("notes"),
            expense_line_items=[
                ExpenseLineItem.from_record(item, currency)
                for item in data.get("expense_line_items", [])
            ],
            finalized_at=load_datetime(data.get("finalized_at")),
            finalized_by=data.get("finalized_by"),
            distributed_at=load_datetime(data.get("distributed_at")),
            distributed_by=data.get("distributed_by"),
            created_at=load_datetime(data["created_at"]),
            updated_at=load_datetime(data["updated_at"]),
            version=data["version"],
        )

        stored_total = data.get("total_expenses")
        if stored_total is not None and not MonetaryValue(stored_total, currency).equals(
            los.total_expenses()
        ):
            raise DomainValidationError(
                f"Stored total {stored_total} does not match line items "
                f"({los.total_expenses().amount})"
            )
        return los

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _ensure_draft(self) -> None:
        if self._status != LosStatus.DRAFT:
            raise InvalidTransitionError(
                f"Cannot modify expenses of a {self._status.value} statement",
                aggregate="lease_operating_statement",
                from_status=self._status.value,
            )

    def _check_new_expense(self, item: ExpenseLineItem) -> None:
        if item.id in self._expenses:
            raise DomainValidationError(f"Expense line item with ID {item.id} already exists")
        self._check_currency(item)

    def _check_currency(self, item: ExpenseLineItem) -> None:
        if item.amount.currency != self._currency:
            raise CurrencyMismatchError(self._currency, item.amount.currency)

    def _get_expense(self, expense_id: str) -> ExpenseLineItem:
        try:
            return self._expenses[expense_id]
        except KeyError:
            raise DomainValidationError(f"Expense line item with ID {expense_id} not found") from None

    def _assert_transition(self, to_status: LosStatus) -> None:
        if not can_transition(self._status, to_status):
            raise InvalidTransitionError.for_edge(
                "lease_operating_statement", self._status.value, to_status.value
            )

    def _change_status(self, new_status: LosStatus, changed_by: Optional[str]) -> None:
        old_status = self._status
        self._status = new_status
        self._touch()
        self._record(
            events.LosStatusChanged(
                aggregate_id=self._id,
                organization_id=self._organization_id,
                old_status=old_status.value,
                new_status=new_status.value,
                changed_by=changed_by,
            )
        )

    def _touch(self) -> None:
        self._version += 1
        self._updated_at = utc_now()

    def __repr__(self) -> str:
        return (
            f"LeaseOperatingStatement(id={self._id!r}, lease={self._lease_id!r}, "
            f"month={self._statement_month}, status={self._status.value})"
        )
