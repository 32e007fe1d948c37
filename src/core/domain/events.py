"""
Domain event catalogue

One frozen pydantic model per fact emitted by the AFE, lease operating
statement, curative item and permit aggregates. Status fields carry the
lower-case status string so events stay independent of aggregate modules.

Every status change emits a generic ``*StatusChanged`` event followed by the
specific event for the operation (e.g. ``AfeStatusChanged`` + ``AfeSubmitted``).
"""

from datetime import date
from typing import ClassVar

from pydantic import Field

from src.core.events.domain_event import DomainEvent
from src.core.money.monetary_value import MonetaryValue


# =============================================================================
# AFE
# =============================================================================


class AfeCreated(DomainEvent):
    event_type: ClassVar[str] = "afe.created"

    afe_number: str
    afe_type: str
    estimated_cost: MonetaryValue | None = None
    created_by: str | None = None


class AfeStatusChanged(DomainEvent):
    event_type: ClassVar[str] = "afe.status_changed"

    old_status: str
    new_status: str
    changed_by: str | None = None
    reason: str | None = None


class AfeSubmitted(DomainEvent):
    event_type: ClassVar[str] = "afe.submitted"

    afe_number: str
    submitted_by: str
    estimated_cost: MonetaryValue


class AfeApproved(DomainEvent):
    event_type: ClassVar[str] = "afe.approved"

    afe_number: str
    approved_by: str
    approved_amount: MonetaryValue | None = None


class AfeRejected(DomainEvent):
    event_type: ClassVar[str] = "afe.rejected"

    afe_number: str
    rejected_by: str
    reason: str | None = None


class AfeReturnedToDraft(DomainEvent):
    event_type: ClassVar[str] = "afe.returned_to_draft"

    afe_number: str
    returned_by: str
    reason: str | None = None


class AfeClosed(DomainEvent):
    event_type: ClassVar[str] = "afe.closed"

    afe_number: str
    closed_by: str
    actual_cost: MonetaryValue | None = None


class AfeCostUpdated(DomainEvent):
    """Estimated (DRAFT) or actual (APPROVED/CLOSED) cost changed."""

    event_type: ClassVar[str] = "afe.cost_updated"

    cost_kind: str = Field(..., pattern=r"^(estimated|actual)$")
    previous_cost: MonetaryValue | None = None
    new_cost: MonetaryValue
    updated_by: str | None = None


class AfePartnerApprovalRecorded(DomainEvent):
    """A working-interest partner responded to an AFE (aggregate_id is the AFE id)."""

    event_type: ClassVar[str] = "afe.partner_approval_recorded"

    partner_id: str
    status: str
    approved_amount: MonetaryValue | None = None


# =============================================================================
# LEASE OPERATING STATEMENT
# =============================================================================


class LosCreated(DomainEvent):
    event_type: ClassVar[str] = "los.created"

    lease_id: str
    statement_month: str
    created_by: str | None = None


class LosExpenseAdded(DomainEvent):
    event_type: ClassVar[str] = "los.expense_added"

    expense_id: str
    description: str
    category: str
    expense_type: str
    amount: MonetaryValue


class LosExpenseUpdated(DomainEvent):
    event_type: ClassVar[str] = "los.expense_updated"

    expense_id: str
    previous_amount: MonetaryValue
    amount: MonetaryValue


class LosExpenseRemoved(DomainEvent):
    event_type: ClassVar[str] = "los.expense_removed"

    expense_id: str
    amount: MonetaryValue


class LosStatusChanged(DomainEvent):
    event_type: ClassVar[str] = "los.status_changed"

    old_status: str
    new_status: str
    changed_by: str | None = None


class LosFinalized(DomainEvent):
    event_type: ClassVar[str] = "los.finalized"

    lease_id: str
    statement_month: str
    finalized_by: str
    total_expenses: MonetaryValue
    operating_expenses: MonetaryValue
    capital_expenses: MonetaryValue
    expense_count: int = Field(..., ge=1)


class LosReopened(DomainEvent):
    event_type: ClassVar[str] = "los.reopened"

    reopened_by: str
    reason: str | None = None


class LosDistributed(DomainEvent):
    event_type: ClassVar[str] = "los.distributed"

    lease_id: str
    statement_month: str
    distributed_by: str
    distribution_method: str
    recipient_count: int = Field(..., gt=0)
    total_expenses: MonetaryValue


class LosArchived(DomainEvent):
    event_type: ClassVar[str] = "los.archived"

    archived_by: str


# =============================================================================
# CURATIVE ITEM
# =============================================================================


class CurativeItemCreated(DomainEvent):
    event_type: ClassVar[str] = "curative_item.created"

    title_opinion_id: str
    item_number: str
    defect_type: str
    priority: str


class CurativeItemStatusChanged(DomainEvent):
    event_type: ClassVar[str] = "curative_item.status_changed"

    old_status: str
    new_status: str
    changed_by: str | None = None
    resolution_notes: str | None = None


class CurativeItemResolved(DomainEvent):
    event_type: ClassVar[str] = "curative_item.resolved"

    resolved_by: str | None = None
    resolution_date: date
    resolution_notes: str | None = None


class CurativeItemWaived(DomainEvent):
    event_type: ClassVar[str] = "curative_item.waived"

    waived_by: str | None = None
    reason: str


class CurativeItemReassigned(DomainEvent):
    event_type: ClassVar[str] = "curative_item.reassigned"

    previous_assignee: str | None = None
    new_assignee: str | None = None
    reassigned_by: str | None = None


class CurativeItemDueDateSet(DomainEvent):
    event_type: ClassVar[str] = "curative_item.due_date_set"

    previous_due_date: date | None = None
    due_date: date | None = None
    set_by: str | None = None


# =============================================================================
# PERMIT
# =============================================================================


class PermitCreated(DomainEvent):
    event_type: ClassVar[str] = "permit.created"

    permit_number: str
    permit_type: str
    issuing_agency: str
    created_by: str


class PermitStatusChanged(DomainEvent):
    event_type: ClassVar[str] = "permit.status_changed"

    permit_number: str
    old_status: str
    new_status: str
    changed_by: str | None = None
    reason: str | None = None


class PermitSubmitted(DomainEvent):
    event_type: ClassVar[str] = "permit.submitted"

    permit_number: str
    submitted_date: date


class PermitReviewStarted(DomainEvent):
    event_type: ClassVar[str] = "permit.review_started"

    permit_number: str


class PermitApproved(DomainEvent):
    event_type: ClassVar[str] = "permit.approved"

    permit_number: str
    approval_date: date
    expiration_date: date | None = None


class PermitDenied(DomainEvent):
    event_type: ClassVar[str] = "permit.denied"

    permit_number: str
    reason: str


class PermitExpired(DomainEvent):
    event_type: ClassVar[str] = "permit.expired"

    permit_number: str
    expiration_date: date


class PermitRenewed(DomainEvent):
    event_type: ClassVar[str] = "permit.renewed"

    permit_number: str
    previous_expiration_date: date | None = None
    new_expiration_date: date


class PermitSuspended(DomainEvent):
    event_type: ClassVar[str] = "permit.suspended"

    permit_number: str
    reason: str


class PermitReinstated(DomainEvent):
    event_type: ClassVar[str] = "permit.reinstated"

    permit_number: str


class PermitRevoked(DomainEvent):
    event_type: ClassVar[str] = "permit.revoked"

    permit_number: str
    reason: str
