"""
Command handlers

Unit of work for every state change:
1. load the aggregate (tenant-scoped), remember its version
2. invoke the aggregate operation (all checks happen before any mutation)
3. save with the remembered version (optimistic concurrency)
4. drain the aggregate's event buffer and publish each event

Nothing is published when the operation or the save fails. Publication
failures are logged and swallowed: the state change is already durable.
"""

from typing import Generic, List, Optional, TypeVar
from uuid import uuid4

import structlog

from src.application.commands import (
    ApproveAfeCommand,
    CloseAfeCommand,
    CreateAfeCommand,
    EvaluateAfeApprovalQuery,
    FinalizeLosCommand,
    RecordPartnerApprovalCommand,
    RejectAfeCommand,
    RenewPermitCommand,
    ResolveAfeApprovalCommand,
    SubmitAfeCommand,
    UpdateCurativeItemStatusCommand,
)
from src.application.ports import (
    AggregateRepository,
    ApprovalRecordRepository,
    EventPublisher,
    PartnerRoster,
)
from src.core.domain import events
from src.core.domain.afe import Afe, AfeStatus
from src.core.domain.approval import ApprovalRecord, ApprovalStatus
from src.core.domain.curative_item import CurativeItem
from src.core.domain.lease_operating_statement import LeaseOperatingStatement
from src.core.domain.permit import Permit
from src.core.errors import (
    AggregateNotFoundError,
    DomainValidationError,
    DuplicateApprovalError,
    InvalidTransitionError,
    WorkflowNotSatisfiedError,
)
from src.core.events import DomainEvent, utc_now
from src.workflow.approval_workflow import ApprovalWorkflowEvaluator, ApprovalWorkflowResult

logger = structlog.get_logger(__name__)

T = TypeVar("T")


# =============================================================================
# BASE
# =============================================================================


def publish_all(publisher: EventPublisher, published: List[DomainEvent]) -> None:
    """Publish in order; a failing event is logged and the rest still go out."""
    for event in published:
        try:
            publisher.publish(event)
        except Exception as e:
            logger.error(
                "event_publish_failed",
                event_type=event.event_type,
                event_id=event.event_id,
                aggregate_id=event.aggregate_id,
                error=str(e),
            )


class AggregateCommandHandler(Generic[T]):
    """Load / save / drain-and-publish plumbing shared by the handlers."""

    aggregate_name: str = "aggregate"

    def __init__(self, repository: AggregateRepository, publisher: EventPublisher):
        self.repository = repository
        self.publisher = publisher

    def _load(self, aggregate_id: str, organization_id: str) -> T:
        aggregate = self.repository.find_by_id(aggregate_id, organization_id)
        if aggregate is None:
            raise AggregateNotFoundError(self.aggregate_name, aggregate_id)
        return aggregate

    def _commit(self, aggregate, expected_version: Optional[int]) -> List[DomainEvent]:
        """Save, then drain and publish. Returns the drained events."""
        self.repository.save(aggregate, expected_version)
        drained = aggregate.drain_events()
        publish_all(self.publisher, drained)
        logger.debug(
            "aggregate_committed",
            aggregate=self.aggregate_name,
            aggregate_id=aggregate.id,
            version=aggregate.version,
            events=len(drained),
        )
        return drained


# =============================================================================
# AFE LIFECYCLE
# =============================================================================


class CreateAfeHandler(AggregateCommandHandler[Afe]):
    aggregate_name = "AFE"

    def handle(self, command: CreateAfeCommand) -> Afe:
        afe = Afe.create(
            command.organization_id,
            command.afe_number,
            command.afe_type,
            estimated_cost=command.estimated_cost,
            well_id=command.well_id,
            lease_id=command.lease_id,
            description=command.description,
            effective_date=command.effective_date,
            created_by=command.created_by,
        )
        self._commit(afe, expected_version=None)
        logger.info(
            "afe_created",
            afe_id=afe.id,
            afe_number=afe.afe_number,
            organization_id=afe.organization_id,
        )
        return afe


class SubmitAfeHandler(AggregateCommandHandler[Afe]):
    aggregate_name = "AFE"

    def handle(self, command: SubmitAfeCommand) -> Afe:
        afe = self._load(command.afe_id, command.organization_id)
        loaded_version = afe.version

        afe.submit(command.submitted_by)

        self._commit(afe, loaded_version)
        logger.info("afe_submitted", afe_id=afe.id, submitted_by=command.submitted_by)
        return afe


class _AfeWorkflowHandler(AggregateCommandHandler[Afe]):
    """AFE handler that consults the partner approval workflow."""

    aggregate_name = "AFE"

    def __init__(
        self,
        repository: AggregateRepository,
        publisher: EventPublisher,
        approvals: ApprovalRecordRepository,
        roster: PartnerRoster,
        evaluator: Optional[ApprovalWorkflowEvaluator] = None,
    ):
        super().__init__(repository, publisher)
        self.approvals = approvals
        self.roster = roster
        self.evaluator = evaluator or ApprovalWorkflowEvaluator()

    def _evaluate(self, afe: Afe) -> ApprovalWorkflowResult:
        return self.evaluator.evaluate_afe(
            afe, self.roster.partners_for_afe(afe), self.approvals.find_by_afe(afe.id)
        )


class ApproveAfeHandler(_AfeWorkflowHandler):
    """Operator approval; only allowed once partner consensus supports it."""

    def handle(self, command: ApproveAfeCommand) -> Afe:
        afe = self._load(command.afe_id, command.organization_id)
        loaded_version = afe.version

        if afe.status == AfeStatus.SUBMITTED:
            verdict = self._evaluate(afe)
            if not verdict.is_approved:
                raise WorkflowNotSatisfiedError(
                    f"Partner approval workflow does not support approval of AFE "
                    f"{afe.afe_number}: {verdict.reason}",
                    aggregate="afe",
                    from_status=afe.status.value,
                    to_status=AfeStatus.APPROVED.value,
                )

        afe.approve(command.approved_by, command.approved_amount)

        self._commit(afe, loaded_version)
        logger.info("afe_approved", afe_id=afe.id, approved_by=command.approved_by)
        return afe


class RejectAfeHandler(AggregateCommandHandler[Afe]):
    aggregate_name = "AFE"

    def handle(self, command: RejectAfeCommand) -> Afe:
        afe = self._load(command.afe_id, command.organization_id)
        loaded_version = afe.version

        afe.reject(command.rejected_by, command.reason)

        self._commit(afe, loaded_version)
        logger.info("afe_rejected", afe_id=afe.id, rejected_by=command.rejected_by)
        return afe


class CloseAfeHandler(AggregateCommandHandler[Afe]):
    aggregate_name = "AFE"

    def handle(self, command: CloseAfeCommand) -> Afe:
        afe = self._load(command.afe_id, command.organization_id)
        loaded_version = afe.version

        afe.close(command.closed_by)

        self._commit(afe, loaded_version)
        logger.info("afe_closed", afe_id=afe.id, closed_by=command.closed_by)
        return afe


# =============================================================================
# PARTNER APPROVALS
# =============================================================================


class RecordPartnerApprovalHandler(_AfeWorkflowHandler):
    """Accepts one partner's response to a submitted AFE."""

    def handle(self, command: RecordPartnerApprovalCommand) -> ApprovalRecord:
        """
        Raises:
            AggregateNotFoundError: unknown AFE
            InvalidTransitionError: AFE is not SUBMITTED
            DomainValidationError: partner not on the roster, or invalid response
            DuplicateApprovalError: partner already responded
        """
        afe = self._load(command.afe_id, command.organization_id)
        if afe.status != AfeStatus.SUBMITTED:
            raise InvalidTransitionError(
                f"Partner approvals can only be recorded for submitted AFEs "
                f"(AFE {afe.afe_number} is {afe.status.value})",
                aggregate="afe",
                from_status=afe.status.value,
            )

        requirements = self.evaluator.get_approval_requirements(
            afe.estimated_cost, self.roster.partners_for_afe(afe)
        )
        if not self.evaluator.can_partner_approve(command.partner_id, requirements):
            raise DomainValidationError(
                f"Partner {command.partner_id} is not an approving partner of AFE {afe.afe_number}"
            )
        requirement = next(r for r in requirements if r.partner_id == command.partner_id)

        status = self.evaluator.validate_partner_approval(
            requirement,
            partner_id=command.partner_id,
            status=command.status,
            approved_amount=command.approved_amount,
            comments=command.comments,
        )

        existing = self.approvals.find_by_afe_and_partner(afe.id, command.partner_id)
        if existing is not None and existing.is_completed:
            raise DuplicateApprovalError(afe.id, command.partner_id)

        record = ApprovalRecord(
            id=existing.id if existing is not None else str(uuid4()),
            afe_id=afe.id,
            partner_id=command.partner_id,
            status=status,
            approved_amount=command.approved_amount if status == ApprovalStatus.APPROVED else None,
            comments=command.comments,
            approval_date=utc_now() if status != ApprovalStatus.PENDING else None,
            approved_by_user_id=command.approved_by_user_id,
        )
        self.approvals.save(record)

        publish_all(
            self.publisher,
            [
                events.AfePartnerApprovalRecorded(
                    aggregate_id=afe.id,
                    organization_id=afe.organization_id,
                    partner_id=record.partner_id,
                    status=record.status.value,
                    approved_amount=record.approved_amount,
                )
            ],
        )
        logger.info(
            "partner_approval_recorded",
            afe_id=afe.id,
            partner_id=record.partner_id,
            status=record.status.value,
        )
        return record


class EvaluateAfeApprovalHandler(_AfeWorkflowHandler):
    """Read-only: current workflow verdict for an AFE."""

    def handle(self, query: EvaluateAfeApprovalQuery) -> ApprovalWorkflowResult:
        afe = self._load(query.afe_id, query.organization_id)
        return self._evaluate(afe)


class ResolveAfeApprovalHandler(_AfeWorkflowHandler):
    """Applies a complete workflow verdict to a submitted AFE."""

    def handle(self, command: ResolveAfeApprovalCommand) -> Afe:
        """
        Raises:
            WorkflowNotSatisfiedError: verdict is neither approved nor rejected
            InvalidTransitionError: AFE is not SUBMITTED
        """
        afe = self._load(command.afe_id, command.organization_id)
        loaded_version = afe.version

        verdict = self._evaluate(afe)
        if verdict.is_approved:
            afe.approve(command.resolved_by)
        elif verdict.is_rejected:
            reason = "; ".join(verdict.rejection_reasons) or verdict.reason
            afe.reject(command.resolved_by, reason)
        else:
            raise WorkflowNotSatisfiedError(
                f"Partner approval workflow for AFE {afe.afe_number} has no verdict yet: "
                f"{verdict.reason}",
                aggregate="afe",
                from_status=afe.status.value,
            )

        self._commit(afe, loaded_version)
        logger.info(
            "afe_approval_resolved",
            afe_id=afe.id,
            status=afe.status.value,
            reason=verdict.reason,
        )
        return afe


# =============================================================================
# OTHER AGGREGATES
# =============================================================================


class FinalizeLosHandler(AggregateCommandHandler[LeaseOperatingStatement]):
    aggregate_name = "LeaseOperatingStatement"

    def handle(self, command: FinalizeLosCommand) -> LeaseOperatingStatement:
        los = self._load(command.los_id, command.organization_id)
        loaded_version = los.version

        los.finalize(command.finalized_by)

        self._commit(los, loaded_version)
        logger.info(
            "los_finalized",
            los_id=los.id,
            statement_month=str(los.statement_month),
            total_expenses=str(los.total_expenses()),
        )
        return los


class UpdateCurativeItemStatusHandler(AggregateCommandHandler[CurativeItem]):
    aggregate_name = "CurativeItem"

    def handle(self, command: UpdateCurativeItemStatusCommand) -> CurativeItem:
        item = self._load(command.item_id, command.organization_id)
        loaded_version = item.version

        item.update_status(command.new_status, command.updated_by, command.resolution_notes)

        if item.version == loaded_version:
            # Same-status request: nothing to persist or publish
            return item

        self._commit(item, loaded_version)
        logger.info("curative_item_status_updated", item_id=item.id, status=item.status.value)
        return item


class RenewPermitHandler(AggregateCommandHandler[Permit]):
    aggregate_name = "Permit"

    def handle(self, command: RenewPermitCommand) -> Permit:
        permit = self._load(command.permit_id, command.organization_id)
        loaded_version = permit.version

        permit.renew(command.renewed_by, command.new_expiration_date)

        self._commit(permit, loaded_version)
        logger.info(
            "permit_renewed",
            permit_id=permit.id,
            expiration_date=permit.expiration_date.isoformat(),
        )
        return permit
