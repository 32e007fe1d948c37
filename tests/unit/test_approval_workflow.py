"""
Tests for ApprovalWorkflowEvaluator

Covers:
1. Cost threshold (partner approval only at or above 50,000)
2. Weighted majority and required-partner rules
3. Per-partner validation
4. Deadline
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from src.core.domain.afe import Afe
from src.core.domain.approval import ApprovalRecord, ApprovalStatus, Partner
from src.core.errors import CurrencyMismatchError, DomainValidationError
from src.core.money import MonetaryValue
from src.workflow import ApprovalWorkflowConfig, ApprovalWorkflowEvaluator

AFE_ID = "afe-1"
COST = MonetaryValue(100000)


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def evaluator() -> ApprovalWorkflowEvaluator:
    return ApprovalWorkflowEvaluator()


@pytest.fixture
def operator_and_minor():
    """0.8 major partner (required) and 0.2 minor partner (not required)."""
    return [
        Partner(id="p-major", name="Permian Operating LLC", working_interest=0.8),
        Partner(id="p-minor", name="Small Royalty Co", working_interest=0.2),
    ]


@pytest.fixture
def two_major_partners():
    """0.6 and 0.4: both at or above the 0.25 required threshold."""
    return [
        Partner(id="p-60", name="Alpha Energy", working_interest=0.6),
        Partner(id="p-40", name="Beta Resources", working_interest=0.4),
    ]


def _approval(partner_id: str, status=ApprovalStatus.APPROVED, amount=None, comments=None, afe_id=AFE_ID):
    return ApprovalRecord(
        afe_id=afe_id,
        partner_id=partner_id,
        status=status,
        approved_amount=amount,
        comments=comments,
    )


# =============================================================================
# CONFIG
# =============================================================================


class TestApprovalWorkflowConfig:
    def test_defaults(self) -> None:
        config = ApprovalWorkflowConfig()
        assert config.approval_required_threshold == Decimal("50000")
        assert config.major_partner_threshold == 0.25
        assert config.majority_consent_threshold == 0.5
        assert config.approval_window_days == 30

    def test_frozen(self) -> None:
        config = ApprovalWorkflowConfig()
        with pytest.raises(AttributeError):
            config.major_partner_threshold = 0.1


# =============================================================================
# THRESHOLD
# =============================================================================


class TestRequirements:
    """Who has to answer"""

    def test_threshold_is_inclusive(self, evaluator) -> None:
        assert evaluator.requires_partner_approval(MonetaryValue(50000))
        assert not evaluator.requires_partner_approval(MonetaryValue(49999.99))
        assert not evaluator.requires_partner_approval(None)

    def test_below_threshold_without_records_is_approved(self, evaluator, two_major_partners) -> None:
        result = evaluator.evaluate(MonetaryValue(49999.99), two_major_partners, [])

        assert result.is_complete
        assert result.is_approved
        assert not result.is_rejected
        assert result.reason == "below_approval_threshold"
        assert result.pending_approvals == ()

    def test_no_requirements_below_threshold(self, evaluator, two_major_partners) -> None:
        assert evaluator.get_approval_requirements(MonetaryValue(100), two_major_partners) == []

    def test_required_flag(self, evaluator, operator_and_minor) -> None:
        requirements = evaluator.get_approval_requirements(COST, operator_and_minor)

        assert [(r.partner_id, r.is_required) for r in requirements] == [
            ("p-major", True),
            ("p-minor", False),
        ]
        assert requirements[0].approval_threshold.equals(COST)

    def test_exactly_quarter_interest_is_required(self, evaluator) -> None:
        partners = [Partner(id="p-q", name="Quarter", working_interest=0.25)]
        assert evaluator.get_approval_requirements(COST, partners)[0].is_required


# =============================================================================
# CONSENSUS
# =============================================================================


class TestEvaluate:
    """Weighted consensus"""

    def test_major_partner_approval_is_enough(self, evaluator, operator_and_minor) -> None:
        result = evaluator.evaluate(COST, operator_and_minor, [_approval("p-major")])

        assert result.is_complete
        assert result.is_approved
        assert not result.is_rejected
        assert result.approved_interest == pytest.approx(0.8)
        assert result.approval_share == pytest.approx(0.8)
        assert [r.partner_id for r in result.pending_approvals] == ["p-minor"]
        assert result.reason == "approved"

    def test_required_partner_pending_blocks_approval(self, evaluator, two_major_partners) -> None:
        result = evaluator.evaluate(COST, two_major_partners, [_approval("p-60")])

        assert not result.is_approved
        assert not result.is_complete
        assert not result.required_partners_responded
        assert result.reason == "awaiting_responses"

    def test_all_approve(self, evaluator, two_major_partners) -> None:
        result = evaluator.evaluate(
            COST, two_major_partners, [_approval("p-60"), _approval("p-40")]
        )
        assert result.is_approved
        assert result.approval_share == pytest.approx(1.0)

    def test_required_minority_rejection_does_not_override_majority(self, evaluator) -> None:
        partners = [
            Partner(id="p-70", name="Alpha", working_interest=0.7),
            Partner(id="p-30", name="Beta", working_interest=0.3),
        ]
        result = evaluator.evaluate(
            COST,
            partners,
            [
                _approval("p-70"),
                _approval("p-30", ApprovalStatus.REJECTED, comments="Too expensive"),
            ],
        )

        # Both verdicts hold: approval by majority, rejection by a required partner
        assert result.is_approved
        assert result.is_rejected
        assert result.is_complete
        assert result.reason == "approved"
        assert result.rejection_reasons == ("Too expensive",)

    def test_required_partner_rejection_without_majority(self, evaluator, two_major_partners) -> None:
        result = evaluator.evaluate(
            COST,
            two_major_partners,
            [_approval("p-40", ApprovalStatus.REJECTED, comments="Pressure test first")],
        )

        assert result.is_rejected
        assert not result.is_approved
        assert result.is_complete
        assert result.reason == "rejected_by_required_partner"

    def test_majority_rejection(self, evaluator, operator_and_minor) -> None:
        result = evaluator.evaluate(
            COST,
            operator_and_minor,
            [_approval("p-major", ApprovalStatus.REJECTED, comments="No")],
        )
        assert result.is_rejected
        assert result.is_complete
        assert result.reason == "rejected_by_majority"

    def test_minor_rejection_does_not_block(self, evaluator, operator_and_minor) -> None:
        result = evaluator.evaluate(
            COST,
            operator_and_minor,
            [_approval("p-major"), _approval("p-minor", ApprovalStatus.REJECTED, comments="No")],
        )
        assert result.is_approved
        assert result.rejected_interest == pytest.approx(0.2)

    def test_float_noise_still_reaches_majority(self, evaluator) -> None:
        partners = [
            Partner(id=f"p-{i}", name=f"Partner {i}", working_interest=w)
            for i, w in enumerate([0.1, 0.2, 0.2, 0.2, 0.1, 0.2])
        ]
        records = [_approval("p-0"), _approval("p-1"), _approval("p-2")]

        result = evaluator.evaluate(COST, partners, records)

        assert result.is_approved

    def test_pending_records_are_ignored(self, evaluator, operator_and_minor) -> None:
        result = evaluator.evaluate(
            COST, operator_and_minor, [_approval("p-major", ApprovalStatus.PENDING)]
        )
        assert not result.is_complete
        assert result.completed_approvals == ()

    def test_records_of_unknown_partners_carry_no_weight(self, evaluator, two_major_partners) -> None:
        result = evaluator.evaluate(
            COST, two_major_partners, [_approval("p-60"), _approval("stranger")]
        )
        assert result.approved_interest == pytest.approx(0.6)
        assert not result.is_approved

    def test_empty_roster_is_complete_without_consensus(self, evaluator) -> None:
        result = evaluator.evaluate(COST, [], [])

        assert result.is_complete
        assert not result.is_approved
        assert not result.is_rejected
        assert result.total_interest == 0.0
        assert result.approval_share == 0.0
        assert result.reason == "complete_without_consensus"

    def test_weighted_approved_amount(self, evaluator, operator_and_minor) -> None:
        result = evaluator.evaluate(
            COST,
            operator_and_minor,
            [_approval("p-major", amount=MonetaryValue(60000)), _approval("p-minor")],
        )
        assert result.total_approved_amount.amount == Decimal("48000.00")

    def test_no_approved_amounts(self, evaluator, operator_and_minor) -> None:
        result = evaluator.evaluate(COST, operator_and_minor, [_approval("p-major")])
        assert result.total_approved_amount is None

    def test_evaluate_afe_filters_other_afes(self, evaluator, operator_and_minor) -> None:
        afe = Afe(
            AFE_ID, "org-1", "AFE-2024-0001", "drilling",
            status="submitted", estimated_cost=COST, description="x",
        )
        records = [_approval("p-major", afe_id="afe-other")]

        result = evaluator.evaluate_afe(afe, operator_and_minor, records)

        assert not result.is_approved
        assert result.completed_approvals == ()

    def test_is_pure(self, evaluator, operator_and_minor) -> None:
        records = [_approval("p-major")]
        assert evaluator.evaluate(COST, operator_and_minor, records) == evaluator.evaluate(
            COST, operator_and_minor, records
        )

    def test_custom_config(self, operator_and_minor) -> None:
        strict = ApprovalWorkflowEvaluator(ApprovalWorkflowConfig(majority_consent_threshold=0.9))
        result = strict.evaluate(COST, operator_and_minor, [_approval("p-major")])
        assert not result.is_approved


# =============================================================================
# PER-PARTNER VALIDATION
# =============================================================================


class TestValidatePartnerApproval:
    """Guard applied before a record is accepted"""

    @pytest.fixture
    def requirement(self, evaluator, operator_and_minor):
        return evaluator.get_approval_requirements(COST, operator_and_minor)[0]

    def test_valid_approval(self, evaluator, requirement) -> None:
        status = evaluator.validate_partner_approval(
            requirement, partner_id="p-major", status="approved", approved_amount=MonetaryValue(90000)
        )
        assert status == ApprovalStatus.APPROVED

    def test_partner_mismatch(self, evaluator, requirement) -> None:
        with pytest.raises(DomainValidationError, match="Invalid partner ID for approval"):
            evaluator.validate_partner_approval(requirement, partner_id="p-minor", status="approved")

    def test_status_required(self, evaluator, requirement) -> None:
        with pytest.raises(DomainValidationError, match="Approval status is required"):
            evaluator.validate_partner_approval(requirement, partner_id="p-major", status=None)

    def test_unknown_status(self, evaluator, requirement) -> None:
        with pytest.raises(DomainValidationError, match="Invalid approval status"):
            evaluator.validate_partner_approval(requirement, partner_id="p-major", status="conditional")

    def test_amount_above_estimate(self, evaluator, requirement) -> None:
        with pytest.raises(DomainValidationError, match="cannot exceed the original AFE estimated cost"):
            evaluator.validate_partner_approval(
                requirement,
                partner_id="p-major",
                status=ApprovalStatus.APPROVED,
                approved_amount=MonetaryValue(100000.01),
            )

    def test_amount_in_other_currency(self, evaluator, requirement) -> None:
        with pytest.raises(CurrencyMismatchError):
            evaluator.validate_partner_approval(
                requirement,
                partner_id="p-major",
                status=ApprovalStatus.APPROVED,
                approved_amount=MonetaryValue(1, "EUR"),
            )

    def test_rejection_needs_reason(self, evaluator, requirement) -> None:
        with pytest.raises(DomainValidationError, match="Rejection reason is required"):
            evaluator.validate_partner_approval(
                requirement, partner_id="p-major", status="rejected", comments="  "
            )

    def test_can_partner_approve(self, evaluator, operator_and_minor) -> None:
        requirements = evaluator.get_approval_requirements(COST, operator_and_minor)
        assert evaluator.can_partner_approve("p-minor", requirements)
        assert not evaluator.can_partner_approve("p-other", requirements)


# =============================================================================
# DEADLINE
# =============================================================================


class TestDeadline:
    def test_deadline_is_thirty_days(self, evaluator) -> None:
        created = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert evaluator.get_approval_deadline(created) == created + timedelta(days=30)

    def test_overdue(self, evaluator) -> None:
        created = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert not evaluator.is_approval_overdue(created, created + timedelta(days=30))
        assert evaluator.is_approval_overdue(created, created + timedelta(days=30, seconds=1))
