"""
Commands and queries accepted by the handlers.

Plain frozen dataclasses; every command is scoped to an organization.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from src.core.domain.afe import AfeType
from src.core.domain.approval import ApprovalStatus
from src.core.domain.curative_item import CurativeStatus
from src.core.money.monetary_value import MonetaryValue


# =============================================================================
# AFE
# =============================================================================


@dataclass(frozen=True)
class CreateAfeCommand:
    organization_id: str
    afe_number: str
    afe_type: AfeType | str
    created_by: str
    estimated_cost: Optional[MonetaryValue] = None
    well_id: Optional[str] = None
    lease_id: Optional[str] = None
    description: Optional[str] = None
    effective_date: Optional[date] = None


@dataclass(frozen=True)
class SubmitAfeCommand:
    afe_id: str
    organization_id: str
    submitted_by: str


@dataclass(frozen=True)
class ApproveAfeCommand:
    afe_id: str
    organization_id: str
    approved_by: str
    approved_amount: Optional[MonetaryValue] = None


@dataclass(frozen=True)
class RejectAfeCommand:
    afe_id: str
    organization_id: str
    rejected_by: str
    reason: Optional[str] = None


@dataclass(frozen=True)
class CloseAfeCommand:
    afe_id: str
    organization_id: str
    closed_by: str


@dataclass(frozen=True)
class RecordPartnerApprovalCommand:
    afe_id: str
    organization_id: str
    partner_id: str
    status: ApprovalStatus | str
    approved_amount: Optional[MonetaryValue] = None
    comments: Optional[str] = None
    approved_by_user_id: Optional[str] = None


@dataclass(frozen=True)
class EvaluateAfeApprovalQuery:
    afe_id: str
    organization_id: str


@dataclass(frozen=True)
class ResolveAfeApprovalCommand:
    """Apply the workflow verdict: approve or reject the submitted AFE."""

    afe_id: str
    organization_id: str
    resolved_by: str


# =============================================================================
# OTHER AGGREGATES
# =============================================================================


@dataclass(frozen=True)
class FinalizeLosCommand:
    los_id: str
    organization_id: str
    finalized_by: str


@dataclass(frozen=True)
class UpdateCurativeItemStatusCommand:
    item_id: str
    organization_id: str
    new_status: CurativeStatus | str
    updated_by: Optional[str] = None
    resolution_notes: Optional[str] = None


@dataclass(frozen=True)
class RenewPermitCommand:
    permit_id: str
    organization_id: str
    renewed_by: str
    new_expiration_date: date
