"""
AFE Approval Workflow — weighted partner consensus

Pure evaluator: (estimated cost, partner roster, approval records) → verdict.
Holds no state and performs no I/O; the same inputs always give the same
result.

Rules:
1. Cost below the approval-required threshold: complete and approved, no
   partner involvement.
2. Otherwise approved/rejected interest = Σ working interest of the
   approved/rejected records whose partner is on the roster.
3. Partners with working interest ≥ major-partner threshold are required to
   respond.
4. Approved  ⇔ required partners responded ∧ approved share ≥ majority
               ∧ rejected share < majority
   Rejected  ⇔ rejected share ≥ majority ∨ a required partner rejected
   Complete  ⇔ approved ∨ rejected ∨ no partner pending
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from functools import reduce
from typing import Dict, List, Optional, Sequence, Tuple

from src.core.domain.afe import Afe
from src.core.domain.approval import (
    ApprovalRecord,
    ApprovalStatus,
    Partner,
    PartnerApprovalRequirement,
)
from src.core.errors import DomainValidationError
from src.core.events import utc_now
from src.core.math.numerical_safeguards import (
    below_threshold,
    interest_share,
    meets_threshold,
    sum_fractions,
)
from src.core.money.monetary_value import MonetaryValue


# =============================================================================
# CONFIG
# =============================================================================


@dataclass(frozen=True)
class ApprovalWorkflowConfig:
    """Approval workflow thresholds.

    Literal values; no per-organization overrides exist.
    """

    # Estimated cost at or above which partner approval is required
    approval_required_threshold: Decimal = Decimal("50000")

    # Working interest at or above which a partner must respond
    major_partner_threshold: float = 0.25

    # Share of total working interest needed to approve (or to reject)
    majority_consent_threshold: float = 0.5

    # Approval window from AFE creation (calendar days)
    approval_window_days: int = 30


# =============================================================================
# RESULT
# =============================================================================


@dataclass(frozen=True)
class ApprovalWorkflowResult:
    """Workflow verdict for one AFE."""

    is_complete: bool
    is_approved: bool
    is_rejected: bool

    pending_approvals: Tuple[PartnerApprovalRequirement, ...]
    completed_approvals: Tuple[ApprovalRecord, ...]

    # Interest tallies (fractions, roster partners only)
    approved_interest: float
    rejected_interest: float
    total_interest: float
    required_partners_responded: bool

    # Σ approved_amount × working interest over approved records with an amount
    total_approved_amount: Optional[MonetaryValue]
    rejection_reasons: Tuple[str, ...] = field(default_factory=tuple)

    # Diagnostics
    reason: str = ""
    details: str = ""

    @property
    def approval_share(self) -> float:
        return interest_share(self.approved_interest, self.total_interest)

    @property
    def rejection_share(self) -> float:
        return interest_share(self.rejected_interest, self.total_interest)


# =============================================================================
# EVALUATOR
# =============================================================================


class ApprovalWorkflowEvaluator:
    """Decides whether working-interest partners have validly approved an AFE."""

    def __init__(self, config: Optional[ApprovalWorkflowConfig] = None):
        """
        Args:
            config: thresholds (default: ApprovalWorkflowConfig())
        """
        self.config = config or ApprovalWorkflowConfig()

    # =========================================================================
    # REQUIREMENTS
    # =========================================================================

    def requires_partner_approval(self, estimated_cost: Optional[MonetaryValue]) -> bool:
        """
        True if the cost triggers the partner workflow (cost ≥ threshold).

        Examples:
            >>> ApprovalWorkflowEvaluator().requires_partner_approval(MonetaryValue(50000))
            True
            >>> ApprovalWorkflowEvaluator().requires_partner_approval(MonetaryValue(49999.99))
            False
        """
        if estimated_cost is None:
            return False
        return estimated_cost.amount >= self.config.approval_required_threshold

    def get_approval_requirements(
        self, estimated_cost: Optional[MonetaryValue], partners: Sequence[Partner]
    ) -> List[PartnerApprovalRequirement]:
        """One requirement per roster partner; empty below the threshold."""
        if not self.requires_partner_approval(estimated_cost):
            return []

        return [
            PartnerApprovalRequirement(
                partner_id=partner.id,
                partner_name=partner.name,
                working_interest=partner.working_interest,
                approval_threshold=estimated_cost,
                is_required=meets_threshold(
                    partner.working_interest, self.config.major_partner_threshold
                ),
            )
            for partner in partners
        ]

    # =========================================================================
    # EVALUATION
    # =========================================================================

    def evaluate(
        self,
        estimated_cost: Optional[MonetaryValue],
        partners: Sequence[Partner],
        approvals: Sequence[ApprovalRecord],
    ) -> ApprovalWorkflowResult:
        """
        Evaluate the partner consensus for an AFE.

        Args:
            estimated_cost: AFE estimated cost (None is treated as below threshold)
            partners: working-interest roster
            approvals: approval records for the AFE

        Returns:
            ApprovalWorkflowResult
        """
        if not self.requires_partner_approval(estimated_cost):
            return ApprovalWorkflowResult(
                is_complete=True,
                is_approved=True,
                is_rejected=False,
                pending_approvals=(),
                completed_approvals=(),
                approved_interest=0.0,
                rejected_interest=0.0,
                total_interest=0.0,
                required_partners_responded=True,
                total_approved_amount=None,
                reason="below_approval_threshold",
                details=(
                    f"Estimated cost {estimated_cost} below "
                    f"{self.config.approval_required_threshold}: no partner approval required"
                ),
            )

        requirements = self.get_approval_requirements(estimated_cost, partners)
        interest_by_partner: Dict[str, float] = {
            req.partner_id: req.working_interest for req in requirements
        }

        completed = [a for a in approvals if a.status != ApprovalStatus.PENDING]
        completed_by_partner: Dict[str, ApprovalRecord] = {a.partner_id: a for a in completed}
        approved = [a for a in completed if a.status == ApprovalStatus.APPROVED]
        rejected = [a for a in completed if a.status == ApprovalStatus.REJECTED]

        pending = tuple(req for req in requirements if req.partner_id not in completed_by_partner)

        total_interest = sum_fractions(interest_by_partner.values())
        approved_interest = sum_fractions(interest_by_partner.get(a.partner_id, 0.0) for a in approved)
        rejected_interest = sum_fractions(interest_by_partner.get(a.partner_id, 0.0) for a in rejected)

        approval_share = interest_share(approved_interest, total_interest)
        rejection_share = interest_share(rejected_interest, total_interest)
        majority = self.config.majority_consent_threshold

        required = [req for req in requirements if req.is_required]
        required_responded = all(req.partner_id in completed_by_partner for req in required)
        required_rejected = any(
            completed_by_partner[req.partner_id].status == ApprovalStatus.REJECTED
            for req in required
            if req.partner_id in completed_by_partner
        )

        majority_rejected = meets_threshold(rejection_share, majority)
        is_rejected = majority_rejected or required_rejected
        # Verdicts are independent: a majority approval stands even when a
        # required minority partner rejected
        is_approved = (
            required_responded
            and meets_threshold(approval_share, majority)
            and below_threshold(rejection_share, majority)
        )
        is_complete = is_approved or is_rejected or len(pending) == 0

        if is_approved:
            reason = "approved"
        elif majority_rejected:
            reason = "rejected_by_majority"
        elif required_rejected:
            reason = "rejected_by_required_partner"
        elif is_complete:
            reason = "complete_without_consensus"
        else:
            reason = "awaiting_responses"

        return ApprovalWorkflowResult(
            is_complete=is_complete,
            is_approved=is_complete and is_approved,
            is_rejected=is_rejected,
            pending_approvals=pending,
            completed_approvals=tuple(completed),
            approved_interest=approved_interest,
            rejected_interest=rejected_interest,
            total_interest=total_interest,
            required_partners_responded=required_responded,
            total_approved_amount=self._weighted_approved_amount(
                approved, interest_by_partner, estimated_cost.currency
            ),
            rejection_reasons=tuple(a.comments for a in rejected if a.comments),
            reason=reason,
            details=(
                f"approved={approval_share:.4f} rejected={rejection_share:.4f} "
                f"of total_interest={total_interest:.4f}; "
                f"pending={len(pending)} required_responded={required_responded}"
            ),
        )

    def evaluate_afe(
        self, afe: Afe, partners: Sequence[Partner], approvals: Sequence[ApprovalRecord]
    ) -> ApprovalWorkflowResult:
        """evaluate() with the AFE's estimated cost; records of other AFEs are ignored."""
        return self.evaluate(
            afe.estimated_cost, partners, [a for a in approvals if a.afe_id == afe.id]
        )

    @staticmethod
    def _weighted_approved_amount(
        approved: Sequence[ApprovalRecord],
        interest_by_partner: Dict[str, float],
        currency: str,
    ) -> Optional[MonetaryValue]:
        with_amount = [a for a in approved if a.approved_amount is not None]
        if not with_amount:
            return None
        return reduce(
            lambda total, a: total.add(
                a.approved_amount.multiply(interest_by_partner.get(a.partner_id, 0.0))
            ),
            with_amount,
            MonetaryValue.zero(currency),
        )

    # =========================================================================
    # PER-PARTNER VALIDATION
    # =========================================================================

    def validate_partner_approval(
        self,
        requirement: PartnerApprovalRequirement,
        *,
        partner_id: Optional[str],
        status: Optional[ApprovalStatus | str],
        approved_amount: Optional[MonetaryValue] = None,
        comments: Optional[str] = None,
    ) -> ApprovalStatus:
        """
        Local guard applied before an approval record is accepted.

        Returns:
            The validated ApprovalStatus

        Raises:
            DomainValidationError: partner mismatch, missing/unknown status,
                amount above the estimated cost, or rejection without comment
            CurrencyMismatchError: amount in another currency than the cost
        """
        if not partner_id or partner_id != requirement.partner_id:
            raise DomainValidationError("Invalid partner ID for approval")

        if status is None or status == "":
            raise DomainValidationError("Approval status is required")
        try:
            approval_status = ApprovalStatus(status)
        except ValueError:
            raise DomainValidationError(f"Invalid approval status: {status}") from None

        if (
            approval_status == ApprovalStatus.APPROVED
            and approved_amount is not None
            and approved_amount.greater_than(requirement.approval_threshold)
        ):
            raise DomainValidationError(
                "Approved amount cannot exceed the original AFE estimated cost"
            )

        if approval_status == ApprovalStatus.REJECTED and not (comments and comments.strip()):
            raise DomainValidationError("Rejection reason is required")

        return approval_status

    def can_partner_approve(
        self, partner_id: str, requirements: Sequence[PartnerApprovalRequirement]
    ) -> bool:
        return any(req.partner_id == partner_id for req in requirements)

    # =========================================================================
    # DEADLINE
    # =========================================================================

    def get_approval_deadline(self, created_at: datetime) -> datetime:
        """created_at + approval window (30 calendar days)."""
        return created_at + timedelta(days=self.config.approval_window_days)

    def is_approval_overdue(self, created_at: datetime, now: Optional[datetime] = None) -> bool:
        return (now or utc_now()) > self.get_approval_deadline(created_at)
